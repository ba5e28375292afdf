"""
Score cache

Memoizes PlayerGameweekScore per (player, gameweek). Concurrent first
requests for the same key share a single computation; a stat-line
correction (higher revision) makes the cached entry stale.
"""

import logging
import threading
from concurrent.futures import Future
from typing import Dict, Optional, Tuple

from ..errors import ErrorKind, ValidationError
from ..models.score import PlayerGameweekScore
from .points_calculator import PointsCalculator

logger = logging.getLogger(__name__)


class ScoreCache:
    """Compute-once-per-key cache in front of the points calculator"""

    def __init__(self, stats, players, calculator: Optional[PointsCalculator] = None):
        """
        Args:
            stats: Stat source with get(player_id, gameweek) -> Optional[MatchStatLine]
            players: Player source with get(player_id) -> Optional[Player]
            calculator: Points calculator (default rules if omitted)
        """
        self.stats = stats
        self.players = players
        self.calculator = calculator or PointsCalculator()
        self._scores: Dict[Tuple[int, int], PlayerGameweekScore] = {}
        self._inflight: Dict[Tuple[int, int, int], Future] = {}
        self._lock = threading.Lock()
        self._counters = {'hits': 0, 'computed': 0, 'shared': 0}

    def get_score(self, player_id: int, gameweek: int) -> PlayerGameweekScore:
        """
        Score for a player and gameweek, computed at most once per revision.

        Returns an UNKNOWN-participation placeholder when no stat line has
        been ingested; placeholders are not cached.
        """
        player = self.players.get(player_id)
        if player is None:
            raise ValidationError(ErrorKind.UNKNOWN_PLAYER, f"Unknown player {player_id}")

        stat = self.stats.get(player_id, gameweek)
        if stat is None:
            return PlayerGameweekScore.missing(player_id, gameweek, player.position)

        key = (player_id, gameweek)
        flight_key = (player_id, gameweek, stat.revision)
        with self._lock:
            cached = self._scores.get(key)
            if cached is not None and cached.revision == stat.revision:
                self._counters['hits'] += 1
                return cached

            flight = self._inflight.get(flight_key)
            leader = flight is None
            if leader:
                flight = Future()
                self._inflight[flight_key] = flight
            else:
                self._counters['shared'] += 1

        if not leader:
            return flight.result()

        try:
            score = self.calculator.compute_score(stat, player.position)
        except Exception as exc:
            with self._lock:
                del self._inflight[flight_key]
            flight.set_exception(exc)
            raise

        with self._lock:
            current = self._scores.get(key)
            if current is None or (current.revision or 0) <= stat.revision:
                self._scores[key] = score
            del self._inflight[flight_key]
            self._counters['computed'] += 1

        logger.debug("Computed player %s GW%s revision %s: %s pts",
                     player_id, gameweek, stat.revision, score.total)
        flight.set_result(score)
        return score

    def peek(self, player_id: int, gameweek: int) -> Optional[PlayerGameweekScore]:
        """Cached score without computing"""
        with self._lock:
            return self._scores.get((player_id, gameweek))

    def invalidate(self, player_id: int, gameweek: int) -> None:
        with self._lock:
            self._scores.pop((player_id, gameweek), None)

    def clear(self) -> None:
        with self._lock:
            self._scores.clear()

    def get_stats(self) -> Dict[str, int]:
        """Get cache statistics."""
        with self._lock:
            return dict(self._counters, size=len(self._scores))
