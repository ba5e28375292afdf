"""Scoring, aggregation, validation and lock modules"""

from .points_calculator import PointsCalculator, compute_score
from .score_cache import ScoreCache
from .squad_aggregator import SquadAggregator, choose_multiplier_target
from .squad_validator import SquadValidator
from .gameweek_lock import GameweekLock, LockState, is_locked, lock_state, ensure_editable
from .squad_service import SquadService

__all__ = [
    'PointsCalculator', 'compute_score', 'ScoreCache',
    'SquadAggregator', 'choose_multiplier_target', 'SquadValidator',
    'GameweekLock', 'LockState', 'is_locked', 'lock_state', 'ensure_editable',
    'SquadService',
]
