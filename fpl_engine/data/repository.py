"""
Repository Layer for the fantasy engine database

Implements the engine's collaborator accessors (players, gameweeks,
stat lines, squads) over DuckDB. All SQL queries are centralized here.
"""

import logging
import threading
from datetime import timezone
from typing import Any, Dict, List, Optional, Tuple

import duckdb

from ..errors import ErrorKind, ValidationError
from ..models.player import MatchStatLine, Player
from ..models.squad import Gameweek, Squad
from .database import get_connection

logger = logging.getLogger(__name__)

# DuckDB connections are not safe for concurrent use from several threads.
# Entries hold the connection so its id cannot be reused while registered.
_con_locks: Dict[int, Tuple[duckdb.DuckDBPyConnection, threading.RLock]] = {}
_con_locks_guard = threading.Lock()


def _lock_for(con: duckdb.DuckDBPyConnection) -> threading.RLock:
    with _con_locks_guard:
        entry = _con_locks.get(id(con))
        if entry is None or entry[0] is not con:
            entry = (con, threading.RLock())
            _con_locks[id(con)] = entry
        return entry[1]


def release_lock(con: duckdb.DuckDBPyConnection) -> None:
    """Forget the lock of a connection that is being closed."""
    with _con_locks_guard:
        entry = _con_locks.get(id(con))
        if entry is not None and entry[0] is con:
            del _con_locks[id(con)]


class _Repository:
    def __init__(self, con: Optional[duckdb.DuckDBPyConnection] = None):
        self.con = con or get_connection()
        self._lock = _lock_for(self.con)


class PlayerRepository(_Repository):
    """Repository for player reference data."""

    def upsert(self, player: Player) -> None:
        with self._lock:
            self.con.execute("""
                INSERT OR REPLACE INTO players (id, web_name, position, cost, team_id, team_name)
                VALUES (?, ?, ?, ?, ?, ?)
            """, [player.id, player.web_name, int(player.position), player.cost,
                  player.team_id, player.team_name])

    def get(self, player_id: int) -> Optional[Player]:
        with self._lock:
            row = self.con.execute("""
                SELECT id, web_name, position, cost, team_id, team_name
                FROM players WHERE id = ?
            """, [player_id]).fetchone()
        return self._to_player(row) if row else None

    def get_all(self, position: Optional[int] = None) -> List[Player]:
        query = "SELECT id, web_name, position, cost, team_id, team_name FROM players"
        params: List[Any] = []
        if position:
            query += " WHERE position = ?"
            params.append(int(position))
        query += " ORDER BY id"
        with self._lock:
            rows = self.con.execute(query, params).fetchall()
        return [self._to_player(row) for row in rows]

    def update_cost(self, player_id: int, cost) -> None:
        """Between-gameweek price change."""
        with self._lock:
            self.con.execute("UPDATE players SET cost = ? WHERE id = ?", [cost, player_id])

    @staticmethod
    def _to_player(row) -> Player:
        return Player(
            id=row[0],
            web_name=row[1],
            position=row[2],
            cost=row[3],
            team_id=row[4] or 0,
            team_name=row[5] or '',
        )


class GameweekRepository(_Repository):
    """Repository for gameweek records."""

    def upsert(self, gameweek: Gameweek) -> None:
        lock_at = gameweek.lock_at.astimezone(timezone.utc).replace(tzinfo=None)
        with self._lock:
            self.con.execute("""
                INSERT OR REPLACE INTO gameweeks (id, number, lock_at, name)
                VALUES (?, ?, ?, ?)
            """, [gameweek.id, gameweek.number, lock_at, gameweek.name])

    def get(self, gameweek_id: int) -> Optional[Gameweek]:
        with self._lock:
            row = self.con.execute(
                "SELECT id, number, lock_at, name FROM gameweeks WHERE id = ?",
                [gameweek_id]
            ).fetchone()
        return self._to_gameweek(row) if row else None

    def get_all(self) -> List[Gameweek]:
        with self._lock:
            rows = self.con.execute(
                "SELECT id, number, lock_at, name FROM gameweeks ORDER BY number"
            ).fetchall()
        return [self._to_gameweek(row) for row in rows]

    @staticmethod
    def _to_gameweek(row) -> Gameweek:
        return Gameweek(id=row[0], number=row[1],
                        lock_at=row[2].replace(tzinfo=timezone.utc), name=row[3] or '')


class StatLineRepository(_Repository):
    """
    Repository for match statistics.

    Lines are never updated in place; a correction inserts a row with a
    higher revision.
    """

    _COLUMNS = (
        "player_id, gameweek, revision, minutes, goals_scored, assists, "
        "goals_conceded, team_goals_conceded, saves, yellow_cards, red_cards"
    )

    def record(self, line: MatchStatLine) -> MatchStatLine:
        with self._lock:
            latest = self._latest_revision(line.player_id, line.gameweek)
            if latest is not None and line.revision <= latest:
                raise ValueError(
                    f"Stat line for player {line.player_id} GW{line.gameweek} "
                    f"revision {line.revision} does not supersede revision {latest}"
                )
            self.con.execute(f"""
                INSERT INTO stat_lines ({self._COLUMNS})
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """, [line.player_id, line.gameweek, line.revision, line.minutes,
                  line.goals_scored, line.assists, line.goals_conceded,
                  line.team_goals_conceded, line.saves, line.yellow_cards, line.red_cards])
        if line.revision > 0:
            logger.info("Correction stored for player %s GW%s (revision %s)",
                        line.player_id, line.gameweek, line.revision)
        return line

    def correct(self, player_id: int, gameweek: int, **changes: Any) -> MatchStatLine:
        current = self.get(player_id, gameweek)
        if current is None:
            raise KeyError(f"No stat line for player {player_id} GW{gameweek}")
        return self.record(current.corrected(**changes))

    def get(self, player_id: int, gameweek: int) -> Optional[MatchStatLine]:
        with self._lock:
            row = self.con.execute(f"""
                SELECT {self._COLUMNS} FROM stat_lines
                WHERE player_id = ? AND gameweek = ?
                ORDER BY revision DESC
                LIMIT 1
            """, [player_id, gameweek]).fetchone()
        return self._to_line(row) if row else None

    def lines_for_gameweek(self, gameweek: int) -> List[MatchStatLine]:
        with self._lock:
            rows = self.con.execute(f"""
                SELECT {self._COLUMNS} FROM stat_lines
                WHERE gameweek = ?
                QUALIFY ROW_NUMBER() OVER (PARTITION BY player_id ORDER BY revision DESC) = 1
                ORDER BY player_id
            """, [gameweek]).fetchall()
        return [self._to_line(row) for row in rows]

    def _latest_revision(self, player_id: int, gameweek: int) -> Optional[int]:
        row = self.con.execute("""
            SELECT MAX(revision) FROM stat_lines WHERE player_id = ? AND gameweek = ?
        """, [player_id, gameweek]).fetchone()
        return row[0] if row else None

    @staticmethod
    def _to_line(row) -> MatchStatLine:
        return MatchStatLine(
            player_id=row[0], gameweek=row[1], revision=row[2], minutes=row[3],
            goals_scored=row[4], assists=row[5], goals_conceded=row[6],
            team_goals_conceded=row[7], saves=row[8],
            yellow_cards=row[9], red_cards=row[10],
        )


class SquadRepository(_Repository):
    """Repository for manager squads, with optimistic version checks."""

    def get(self, manager_id: int, gameweek: int) -> Optional[Squad]:
        with self._lock:
            head = self.con.execute("""
                SELECT captain_id, vice_captain_id, version
                FROM squads WHERE manager_id = ? AND gameweek = ?
            """, [manager_id, gameweek]).fetchone()
            if head is None:
                return None
            rows = self.con.execute("""
                SELECT player_id, is_starter FROM squad_players
                WHERE manager_id = ? AND gameweek = ?
                ORDER BY squad_position
            """, [manager_id, gameweek]).fetchall()

        return Squad(
            manager_id=manager_id,
            gameweek=gameweek,
            starters=tuple(pid for pid, starter in rows if starter),
            bench=tuple(pid for pid, starter in rows if not starter),
            captain_id=head[0],
            vice_captain_id=head[1],
            version=head[2],
        )

    def put(self, squad: Squad) -> Squad:
        """
        Store a squad read at squad.version.

        Raises:
            ValidationError: ConcurrentModification if the stored version moved
        """
        key = [squad.manager_id, squad.gameweek]
        with self._lock:
            self.con.execute("BEGIN TRANSACTION")
            try:
                row = self.con.execute(
                    "SELECT version FROM squads WHERE manager_id = ? AND gameweek = ?", key
                ).fetchone()
                current_version = row[0] if row else 0
                if squad.version != current_version:
                    raise ValidationError(
                        ErrorKind.CONCURRENT_MODIFICATION,
                        f"Squad for manager {squad.manager_id} GW{squad.gameweek} is at "
                        f"version {current_version}, edit was based on {squad.version}"
                    )

                new_version = current_version + 1
                self.con.execute("DELETE FROM squad_players WHERE manager_id = ? AND gameweek = ?", key)
                self.con.execute("DELETE FROM squads WHERE manager_id = ? AND gameweek = ?", key)
                self.con.execute("""
                    INSERT INTO squads (manager_id, gameweek, captain_id, vice_captain_id, version)
                    VALUES (?, ?, ?, ?, ?)
                """, key + [squad.captain_id, squad.vice_captain_id, new_version])
                self.con.executemany("""
                    INSERT INTO squad_players (manager_id, gameweek, squad_position, player_id, is_starter)
                    VALUES (?, ?, ?, ?, ?)
                """, [key + [slot, pid, squad.is_starter(pid)]
                      for slot, pid in enumerate(squad.player_ids, start=1)])
                self.con.execute("COMMIT")
            except Exception:
                self.con.execute("ROLLBACK")
                raise

        return squad.with_version(new_version)

    def for_gameweek(self, gameweek: int) -> List[Squad]:
        with self._lock:
            managers = [row[0] for row in self.con.execute(
                "SELECT manager_id FROM squads WHERE gameweek = ? ORDER BY manager_id", [gameweek]
            ).fetchall()]
        return [self.get(manager_id, gameweek) for manager_id in managers]


def get_repositories(con: Optional[duckdb.DuckDBPyConnection] = None) -> Dict[str, Any]:
    """Get all repositories sharing one connection."""
    con = con or get_connection()
    return {
        'players': PlayerRepository(con),
        'gameweeks': GameweekRepository(con),
        'stats': StatLineRepository(con),
        'squads': SquadRepository(con),
    }
