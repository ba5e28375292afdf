"""
Squad service

Entry point for squad reads and edits. An edit is lock-checked, validated
and committed as one step per (manager, gameweek); a stale edit loses.
"""

import logging
import threading
from collections import defaultdict
from datetime import datetime
from typing import Dict, Optional, Tuple

from ..config import SETTINGS, EngineSettings
from ..errors import ErrorKind, ValidationError
from ..models.score import TeamGameweekScore
from ..models.squad import Squad
from .gameweek_lock import GameweekLock
from .score_cache import ScoreCache
from .points_calculator import PointsCalculator
from .squad_aggregator import SquadAggregator
from .squad_validator import SquadValidator

logger = logging.getLogger(__name__)


class SquadService:
    """Coordinates validator, lock checks, squad storage and scoring"""

    def __init__(self, players, stats, gameweeks, store,
                 settings: EngineSettings = SETTINGS,
                 lock: Optional[GameweekLock] = None):
        """
        Args:
            players: Player source with get(player_id)
            stats: Stat source with get(player_id, gameweek)
            gameweeks: Gameweek source with get(gameweek_id)
            store: Squad store with get(manager_id, gameweek) and put(squad)
            settings: Rules and the testing-mode flag
            lock: Lock checker; built from settings if omitted
        """
        self.players = players
        self.gameweeks = gameweeks
        self.store = store
        self.settings = settings
        self.lock = lock or GameweekLock(testing_mode=settings.testing_mode)
        self.validator = SquadValidator(players, settings.squad_rules, settings.testing_mode)
        self.cache = ScoreCache(stats, players, PointsCalculator(settings.scoring))
        self.aggregator = SquadAggregator(self.cache, settings.squad_rules)

        self._squad_locks: Dict[Tuple[int, int], threading.Lock] = defaultdict(threading.Lock)
        self._registry_lock = threading.Lock()

    def _squad_lock(self, key: Tuple[int, int]) -> threading.Lock:
        with self._registry_lock:
            return self._squad_locks[key]

    def get_squad(self, manager_id: int, gameweek: int) -> Optional[Squad]:
        """Reads are allowed whether or not the gameweek is locked"""
        return self.store.get(manager_id, gameweek)

    def save_squad(self, squad: Squad, now: Optional[datetime] = None) -> Squad:
        """
        Create or edit a squad.

        Args:
            squad: Candidate squad; version must match the stored squad
                   (0 when creating)
            now: Evaluation time for the lock check (clock if omitted)

        Returns:
            The committed squad with its new version

        Raises:
            ValidationError: UnknownGameweek, GameweekLocked, any validation
                             kind, or ConcurrentModification
        """
        gameweek = self.gameweeks.get(squad.gameweek)
        if gameweek is None:
            raise ValidationError(ErrorKind.UNKNOWN_GAMEWEEK,
                                  f"Unknown gameweek {squad.gameweek}")

        with self._squad_lock(squad.key):
            try:
                self.lock.ensure_editable(gameweek, now)
                self.validator.validate(squad)

                current = self.store.get(squad.manager_id, squad.gameweek)
                current_version = current.version if current else 0
                if squad.version != current_version:
                    raise ValidationError(
                        ErrorKind.CONCURRENT_MODIFICATION,
                        f"Squad was modified (version {current_version}, "
                        f"edit based on {squad.version})"
                    )
                stored = self.store.put(squad)
            except ValidationError as err:
                logger.warning("Rejected squad edit for manager %s GW%s: %s",
                               squad.manager_id, squad.gameweek, err)
                raise

        logger.info("Committed squad for manager %s GW%s (version %s)",
                    stored.manager_id, stored.gameweek, stored.version)
        return stored

    def team_score(self, manager_id: int, gameweek: int) -> TeamGameweekScore:
        """Aggregate the stored squad's score for a gameweek"""
        squad = self.store.get(manager_id, gameweek)
        if squad is None:
            raise KeyError(f"No squad for manager {manager_id} GW{gameweek}")
        return self.aggregator.aggregate(squad, gameweek)
