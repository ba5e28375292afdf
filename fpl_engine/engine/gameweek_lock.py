"""
Gameweek lock state machine

A gameweek is Open until its lock timestamp and Locked afterwards. The
transition is driven by the caller's clock; nothing here schedules itself.
Testing mode suspends every lock check.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Optional

from ..errors import ErrorKind, ValidationError
from ..models.squad import Gameweek, as_utc


class LockState(Enum):
    OPEN = 'open'
    LOCKED = 'locked'


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def lock_state(gameweek: Gameweek, now: datetime, testing_mode: bool = False) -> LockState:
    """State of a gameweek at a given moment"""
    if testing_mode:
        return LockState.OPEN
    if as_utc(now) >= gameweek.lock_at:
        return LockState.LOCKED
    return LockState.OPEN


def is_locked(gameweek: Gameweek, now: datetime, testing_mode: bool = False) -> bool:
    """Whether squad edits are rejected for the gameweek at `now`"""
    return lock_state(gameweek, now, testing_mode) is LockState.LOCKED


def ensure_editable(gameweek: Gameweek, now: datetime, testing_mode: bool = False) -> None:
    """Raise GameweekLocked if edits are not permitted"""
    if is_locked(gameweek, now, testing_mode):
        raise ValidationError(
            ErrorKind.GAMEWEEK_LOCKED,
            f"{gameweek.label} locked at {gameweek.lock_at.isoformat()}"
        )


class GameweekLock:
    """Lock checks bound to an injected clock and testing-mode flag"""

    def __init__(self, testing_mode: bool = False,
                 clock: Optional[Callable[[], datetime]] = None):
        self.testing_mode = testing_mode
        self.clock = clock or utc_now

    def state(self, gameweek: Gameweek, now: Optional[datetime] = None) -> LockState:
        return lock_state(gameweek, now or self.clock(), self.testing_mode)

    def is_locked(self, gameweek: Gameweek, now: Optional[datetime] = None) -> bool:
        return is_locked(gameweek, now or self.clock(), self.testing_mode)

    def ensure_editable(self, gameweek: Gameweek, now: Optional[datetime] = None) -> None:
        ensure_editable(gameweek, now or self.clock(), self.testing_mode)
