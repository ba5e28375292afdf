"""
Data loader for season JSON files

Parses a season export and builds the in-memory player registry,
gameweek calendar, stat ledger and squad list.
"""

import json
import logging
from typing import Any, Dict, List, Optional, Tuple

from ..config import (
    SCORING, SQUAD_RULES, ScoringRules, SquadRules,
    scoring_rules_from_dict, squad_rules_from_dict,
)
from ..errors import DataLoadError
from ..models.player import MatchStatLine, Player
from ..models.squad import Gameweek, Squad
from .ledger import StatLedger
from .stores import GameweekCalendar, PlayerRegistry

logger = logging.getLogger(__name__)


class SeasonLoader:
    """
    Loads a season from a JSON export.

    Expected JSON structure:
    {
        "players": [{"id", "web_name", "position", "cost", "team_id", "team_name"}, ...],
        "gameweeks": [{"id", "number", "lock_at", "name"}, ...],
        "stats": [{"player_id", "gameweek", "minutes", "goals_scored", ...}, ...],
        "squads": [{"manager_id", "gameweek", "starters", "bench",
                    "captain_id", "vice_captain_id"}, ...],
        "rules": {"scoring": {...}, "squad": {...}}          (optional)
    }

    Stat lines for the same player and gameweek are treated as corrections
    in file order; missing revisions are assigned incrementally. A manager
    may list only one squad per gameweek.
    """

    def __init__(self):
        self.raw_data: Dict[str, Any] = {}
        self.players = PlayerRegistry()
        self.gameweeks = GameweekCalendar()
        self.ledger = StatLedger()
        self.squads: List[Squad] = []
        self.scoring: ScoringRules = SCORING
        self.squad_rules: SquadRules = SQUAD_RULES

    def load_from_file(self, filepath: str) -> 'SeasonLoader':
        """
        Load data from a JSON file.

        Raises:
            DataLoadError: If the file is missing or not valid JSON
        """
        try:
            with open(filepath, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except FileNotFoundError as e:
            raise DataLoadError(f"File not found: {filepath}") from e
        except json.JSONDecodeError as e:
            raise DataLoadError(f"Invalid JSON in {filepath}: {e}") from e
        return self.load_from_dict(data)

    def load_from_string(self, json_string: str) -> 'SeasonLoader':
        try:
            data = json.loads(json_string)
        except json.JSONDecodeError as e:
            raise DataLoadError(f"Invalid JSON: {e}") from e
        return self.load_from_dict(data)

    def load_from_dict(self, data: Dict[str, Any]) -> 'SeasonLoader':
        """Load data from a dictionary."""
        self.raw_data = data
        try:
            self._load_rules(data.get('rules', {}))
            for record in data.get('players', []):
                self.players.add(Player.from_dict(record))
            for record in data.get('gameweeks', []):
                self.gameweeks.add(Gameweek.from_dict(record))
            self._load_stats(data.get('stats', []))
            self._load_squads(data.get('squads', []))
        except (KeyError, TypeError, ValueError, ArithmeticError) as e:
            raise DataLoadError(f"Invalid season data: {e!r}") from e

        logger.info("Loaded %d players, %d gameweeks, %d stat lines, %d squads",
                    len(self.players), len(self.gameweeks.all()),
                    len(self.ledger), len(self.squads))
        return self

    def _load_rules(self, rules: Dict[str, Any]) -> None:
        self.scoring = scoring_rules_from_dict(rules.get('scoring', {}))
        self.squad_rules = squad_rules_from_dict(rules.get('squad', {}))

    def _load_stats(self, records: List[Dict[str, Any]]) -> None:
        for record in records:
            line = MatchStatLine.from_dict(record)
            current = self.ledger.get(line.player_id, line.gameweek)
            if current is not None and 'revision' not in record:
                line = current.corrected(**{
                    k: v for k, v in line.to_dict().items()
                    if k not in ('player_id', 'gameweek', 'revision')
                })
            self.ledger.record(line)

    def _load_squads(self, records: List[Dict[str, Any]]) -> None:
        """One squad per manager and gameweek"""
        squads: Dict[Tuple[int, int], Squad] = {}
        for record in records:
            squad = Squad.from_dict(record)
            if squad.key in squads:
                raise ValueError(
                    f"Duplicate squad for manager {squad.manager_id} GW{squad.gameweek}"
                )
            squads[squad.key] = squad
        self.squads = list(squads.values())

    def get_squad(self, manager_id: int, gameweek: int) -> Optional[Squad]:
        for squad in self.squads:
            if squad.manager_id == manager_id and squad.gameweek == gameweek:
                return squad
        return None

    def export_to_database(self, repos: Dict[str, Any]) -> Tuple[int, int, int]:
        """
        Write players, gameweeks and stat lines to the DuckDB repositories.

        Squads are not exported here; they go through SquadService so they
        are validated.

        Returns:
            (players, gameweeks, stat lines) written
        """
        players = self.players.all()
        for player in players:
            repos['players'].upsert(player)
        gameweeks = self.gameweeks.all()
        for gameweek in gameweeks:
            repos['gameweeks'].upsert(gameweek)

        lines = 0
        for player_id, gameweek_id in self.ledger.keys():
            stored = repos['stats'].get(player_id, gameweek_id)
            for line in self.ledger.history(player_id, gameweek_id):
                if stored is not None and line.revision <= stored.revision:
                    continue
                repos['stats'].record(line)
                lines += 1

        logger.info("Exported %d players, %d gameweeks, %d stat lines",
                    len(players), len(gameweeks), lines)
        return len(players), len(gameweeks), lines
