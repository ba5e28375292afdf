"""
Score result models
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from ..config import Position


class Participation(Enum):
    """Whether a player took part in a gameweek"""
    PLAYED = 'played'
    DID_NOT_PLAY = 'did_not_play'
    UNKNOWN = 'unknown'  # no stat line ingested yet


@dataclass(frozen=True)
class ScoreBreakdown:
    """Points awarded by each scoring rule"""

    playing: int = 0
    goals: int = 0
    assists: int = 0
    clean_sheet: int = 0
    saves: int = 0
    yellow_card: int = 0
    red_card: int = 0
    goals_conceded: int = 0

    @property
    def total(self) -> int:
        """Sum of all rules"""
        return (
            self.playing +
            self.goals +
            self.assists +
            self.clean_sheet +
            self.saves +
            self.yellow_card +  # Already negative
            self.red_card +  # Already negative
            self.goals_conceded  # Already negative
        )

    def to_dict(self) -> Dict[str, int]:
        """Convert to dictionary for JSON serialization"""
        return {
            'playing': self.playing,
            'goals': self.goals,
            'assists': self.assists,
            'clean_sheet': self.clean_sheet,
            'saves': self.saves,
            'yellow_card': self.yellow_card,
            'red_card': self.red_card,
            'goals_conceded': self.goals_conceded,
            'total': self.total,
        }

    def to_short_string(self) -> str:
        """Get a short summary string of the non-zero rules"""
        parts = [f"{name} {points:+d}" for name, points in self.to_dict().items()
                 if name != 'total' and points]
        return ", ".join(parts) if parts else "-"


@dataclass(frozen=True)
class PlayerGameweekScore:
    """Points for one player in one gameweek, with the rule breakdown"""

    player_id: int
    gameweek: int
    position: Position
    participation: Participation
    breakdown: ScoreBreakdown = field(default_factory=ScoreBreakdown)
    revision: Optional[int] = None

    @property
    def total(self) -> int:
        return self.breakdown.total

    @property
    def played(self) -> bool:
        return self.participation is Participation.PLAYED

    @classmethod
    def missing(cls, player_id: int, gameweek: int, position: Position) -> 'PlayerGameweekScore':
        """Placeholder for a player with no stat line"""
        return cls(
            player_id=player_id,
            gameweek=gameweek,
            position=position,
            participation=Participation.UNKNOWN,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization"""
        return {
            'player_id': self.player_id,
            'gameweek': self.gameweek,
            'position': self.position.name,
            'participation': self.participation.value,
            'revision': self.revision,
            'total': self.total,
            'breakdown': self.breakdown.to_dict(),
        }


@dataclass(frozen=True)
class TeamScoreEntry:
    """One squad member's contribution to a team score"""

    score: PlayerGameweekScore
    is_starter: bool
    multiplier: int = 1

    @property
    def player_id(self) -> int:
        return self.score.player_id

    @property
    def points(self) -> int:
        """Points counted towards the team total"""
        if not self.is_starter:
            return 0
        return self.score.total * self.multiplier

    def to_dict(self) -> Dict[str, Any]:
        return {
            'player_id': self.player_id,
            'base_points': self.score.total,
            'multiplier': self.multiplier,
            'is_starter': self.is_starter,
            'participation': self.score.participation.value,
            'points': self.points,
        }


@dataclass(frozen=True)
class TeamGameweekScore:
    """A manager's aggregated score for one gameweek"""

    manager_id: int
    gameweek: int
    entries: List[TeamScoreEntry] = field(default_factory=list)
    captain_id: Optional[int] = None
    vice_captain_id: Optional[int] = None
    multiplier_player_id: Optional[int] = None
    captain_participation: Participation = Participation.UNKNOWN
    vice_captain_participation: Participation = Participation.UNKNOWN

    @property
    def total(self) -> int:
        return sum(entry.points for entry in self.entries)

    @property
    def starters(self) -> List[TeamScoreEntry]:
        return [entry for entry in self.entries if entry.is_starter]

    @property
    def bench(self) -> List[TeamScoreEntry]:
        return [entry for entry in self.entries if not entry.is_starter]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization"""
        return {
            'manager_id': self.manager_id,
            'gameweek': self.gameweek,
            'total': self.total,
            'captain_id': self.captain_id,
            'vice_captain_id': self.vice_captain_id,
            'multiplier_player_id': self.multiplier_player_id,
            'captain_participation': self.captain_participation.value,
            'vice_captain_participation': self.vice_captain_participation.value,
            'starters': [entry.to_dict() for entry in self.starters],
            'bench': [entry.to_dict() for entry in self.bench],
        }
