"""
In-memory reference data and squad storage
"""

import logging
import threading
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Tuple, Union

from ..errors import ErrorKind, ValidationError
from ..models.player import Player
from ..models.squad import Gameweek, Squad

logger = logging.getLogger(__name__)


class PlayerRegistry:
    """Player reference data keyed by id"""

    def __init__(self, players: Optional[Iterable[Player]] = None):
        self._players: Dict[int, Player] = {p.id: p for p in players or ()}

    def get(self, player_id: int) -> Optional[Player]:
        return self._players.get(player_id)

    def add(self, player: Player) -> None:
        self._players[player.id] = player

    def revalue(self, player_id: int, cost: Union[int, float, str, Decimal]) -> Player:
        """Apply a between-gameweek price change"""
        player = self._players[player_id].revalued(cost)
        self._players[player_id] = player
        return player

    def all(self) -> List[Player]:
        return sorted(self._players.values(), key=lambda p: p.id)

    def __len__(self) -> int:
        return len(self._players)


class GameweekCalendar:
    """Gameweeks of a season, ordered by number"""

    def __init__(self, gameweeks: Optional[Iterable[Gameweek]] = None):
        self._gameweeks: Dict[int, Gameweek] = {gw.id: gw for gw in gameweeks or ()}

    def get(self, gameweek_id: int) -> Optional[Gameweek]:
        return self._gameweeks.get(gameweek_id)

    def add(self, gameweek: Gameweek) -> None:
        self._gameweeks[gameweek.id] = gameweek

    def all(self) -> List[Gameweek]:
        return sorted(self._gameweeks.values(), key=lambda gw: gw.number)


class InMemorySquadStore:
    """Squads keyed by (manager, gameweek), with compare-and-set writes"""

    def __init__(self):
        self._squads: Dict[Tuple[int, int], Squad] = {}
        self._lock = threading.Lock()

    def get(self, manager_id: int, gameweek: int) -> Optional[Squad]:
        with self._lock:
            return self._squads.get((manager_id, gameweek))

    def put(self, squad: Squad) -> Squad:
        """
        Store a squad read at squad.version.

        Returns:
            The stored squad with its version bumped

        Raises:
            ValidationError: ConcurrentModification if another write won
        """
        with self._lock:
            current = self._squads.get(squad.key)
            current_version = current.version if current else 0
            if squad.version != current_version:
                raise ValidationError(
                    ErrorKind.CONCURRENT_MODIFICATION,
                    f"Squad for manager {squad.manager_id} GW{squad.gameweek} is at "
                    f"version {current_version}, edit was based on {squad.version}"
                )
            stored = squad.with_version(current_version + 1)
            self._squads[squad.key] = stored

        logger.debug("Stored squad %s at version %s", squad.key, stored.version)
        return stored

    def for_gameweek(self, gameweek: int) -> List[Squad]:
        with self._lock:
            return [s for (_, gw), s in sorted(self._squads.items()) if gw == gameweek]
