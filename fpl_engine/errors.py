"""
Engine error types

Every rejection the engine produces is a ValidationError carrying a
machine-readable kind and a human-readable detail, so the UI layer can
surface it verbatim.
"""

from enum import Enum
from typing import Any, Dict


class ErrorKind(str, Enum):
    """Distinct rejection reasons"""
    MALFORMED_STAT = 'MalformedStat'
    BUDGET_EXCEEDED = 'BudgetExceeded'
    INVALID_SQUAD_SIZE = 'InvalidSquadSize'
    UNKNOWN_PLAYER = 'UnknownPlayer'
    UNKNOWN_GAMEWEEK = 'UnknownGameweek'
    CAPTAIN_NOT_SELECTED = 'CaptainNotSelected'
    DUPLICATE_CAPTAIN_VICE = 'DuplicateCaptainVice'
    COMPOSITION_CONSTRAINT_VIOLATED = 'CompositionConstraintViolated'
    GAMEWEEK_LOCKED = 'GameweekLocked'
    CONCURRENT_MODIFICATION = 'ConcurrentModification'


class FantasyEngineError(Exception):
    """Base class for engine errors"""


class ValidationError(FantasyEngineError):
    """A recoverable, input-dependent rejection"""

    def __init__(self, kind: ErrorKind, detail: str):
        super().__init__(f"{kind.value}: {detail}")
        self.kind = kind
        self.detail = detail

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization"""
        return {'kind': self.kind.value, 'detail': self.detail}


class DataLoadError(FantasyEngineError):
    """Raised when a season or league file cannot be read"""
