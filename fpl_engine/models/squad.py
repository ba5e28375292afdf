"""
Squad and gameweek models
"""

from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple


def as_utc(moment: datetime) -> datetime:
    """Treat naive datetimes as UTC so they compare with aware ones"""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


@dataclass(frozen=True)
class Gameweek:
    """A scoring period. Squad edits close at lock_at."""

    id: int
    number: int
    lock_at: datetime
    name: str = ""

    def __post_init__(self):
        object.__setattr__(self, 'lock_at', as_utc(self.lock_at))

    @property
    def label(self) -> str:
        return self.name or f"GW{self.number}"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Gameweek':
        lock_at = data.get('lock_at') or data.get('deadline')
        if isinstance(lock_at, str):
            lock_at = datetime.fromisoformat(lock_at.replace('Z', '+00:00'))
        if not isinstance(lock_at, datetime):
            raise ValueError(f"Gameweek {data['id']} has no valid lock_at: {lock_at!r}")
        return cls(
            id=int(data['id']),
            number=int(data.get('number', data['id'])),
            lock_at=lock_at,
            name=data.get('name', ''),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'number': self.number,
            'lock_at': self.lock_at.isoformat(),
            'name': self.name,
        }


@dataclass(frozen=True)
class Squad:
    """
    A manager's selection for one gameweek.

    Starters score; bench order is kept for substitution priority.
    version is bumped on every commit and guards concurrent edits.
    """

    manager_id: int
    gameweek: int
    starters: Tuple[int, ...]
    bench: Tuple[int, ...]
    captain_id: int
    vice_captain_id: int
    version: int = 0

    def __post_init__(self):
        object.__setattr__(self, 'starters', tuple(self.starters))
        object.__setattr__(self, 'bench', tuple(self.bench))

    @property
    def key(self) -> Tuple[int, int]:
        return (self.manager_id, self.gameweek)

    @property
    def player_ids(self) -> Tuple[int, ...]:
        """All selected players, starters first"""
        return self.starters + self.bench

    def is_starter(self, player_id: int) -> bool:
        return player_id in self.starters

    def with_version(self, version: int) -> 'Squad':
        return replace(self, version=version)

    def edited(self,
               starters: Optional[Tuple[int, ...]] = None,
               bench: Optional[Tuple[int, ...]] = None,
               captain_id: Optional[int] = None,
               vice_captain_id: Optional[int] = None) -> 'Squad':
        """Candidate squad for an edit, keeping the version it was read at"""
        return replace(
            self,
            starters=self.starters if starters is None else tuple(starters),
            bench=self.bench if bench is None else tuple(bench),
            captain_id=self.captain_id if captain_id is None else captain_id,
            vice_captain_id=self.vice_captain_id if vice_captain_id is None else vice_captain_id,
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Squad':
        return cls(
            manager_id=int(data['manager_id']),
            gameweek=int(data['gameweek']),
            starters=tuple(int(pid) for pid in data.get('starters', [])),
            bench=tuple(int(pid) for pid in data.get('bench', [])),
            captain_id=int(data['captain_id']),
            vice_captain_id=int(data['vice_captain_id']),
            version=int(data.get('version', 0)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'manager_id': self.manager_id,
            'gameweek': self.gameweek,
            'starters': list(self.starters),
            'bench': list(self.bench),
            'captain_id': self.captain_id,
            'vice_captain_id': self.vice_captain_id,
            'version': self.version,
        }
