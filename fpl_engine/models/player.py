"""
Player and match statistics models
"""

from dataclasses import dataclass, replace
from decimal import Decimal
from typing import Any, Dict, Optional, Union

from ..config import Position


def to_cost(value: Union[int, float, str, Decimal]) -> Decimal:
    """Convert a budget amount to Decimal without float artifacts"""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


@dataclass(frozen=True)
class MatchStatLine:
    """
    A player's raw statistics for one gameweek.

    Lines are never edited; a correction is a new line with a higher
    revision that supersedes the previous one.
    """

    player_id: int
    gameweek: int

    # Playing time
    minutes: int = 0

    # Attacking stats
    goals_scored: int = 0
    assists: int = 0

    # Defensive stats (goals conceded while on the pitch)
    goals_conceded: int = 0
    team_goals_conceded: Optional[int] = None

    # Goalkeeper specific
    saves: int = 0

    # Disciplinary
    yellow_cards: int = 0
    red_cards: int = 0

    revision: int = 0

    @property
    def conceded_by_team(self) -> int:
        """Goals conceded by the player's team, falling back to on-pitch goals"""
        if self.team_goals_conceded is None:
            return self.goals_conceded
        return self.team_goals_conceded

    @property
    def has_events(self) -> bool:
        """Whether any counted event was recorded"""
        return any((
            self.goals_scored, self.assists, self.goals_conceded,
            self.saves, self.yellow_cards, self.red_cards,
        ))

    def is_clean_sheet(self, min_minutes: int) -> bool:
        """Team conceded nothing and the player reached the minutes threshold"""
        return self.conceded_by_team == 0 and self.minutes >= min_minutes

    def corrected(self, **changes: Any) -> 'MatchStatLine':
        """Create the superseding line for a correction"""
        return replace(self, revision=self.revision + 1, **changes)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'MatchStatLine':
        """Create from an ingested stats record"""
        team_conceded = data.get('team_goals_conceded')
        return cls(
            player_id=int(data['player_id']),
            gameweek=int(data['gameweek']),
            minutes=int(data.get('minutes', 0)),
            goals_scored=int(data.get('goals_scored', data.get('goals', 0))),
            assists=int(data.get('assists', 0)),
            goals_conceded=int(data.get('goals_conceded', 0)),
            team_goals_conceded=None if team_conceded is None else int(team_conceded),
            saves=int(data.get('saves', 0)),
            yellow_cards=int(data.get('yellow_cards', 0)),
            red_cards=int(data.get('red_cards', 0)),
            revision=int(data.get('revision', 0)),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization"""
        return {
            'player_id': self.player_id,
            'gameweek': self.gameweek,
            'minutes': self.minutes,
            'goals_scored': self.goals_scored,
            'assists': self.assists,
            'goals_conceded': self.goals_conceded,
            'team_goals_conceded': self.team_goals_conceded,
            'saves': self.saves,
            'yellow_cards': self.yellow_cards,
            'red_cards': self.red_cards,
            'revision': self.revision,
        }


@dataclass(frozen=True)
class Player:
    """A selectable player. Only cost changes during a season."""

    id: int
    web_name: str
    position: Position
    cost: Decimal
    team_id: int = 0
    team_name: str = ""

    def __post_init__(self):
        object.__setattr__(self, 'position', Position.parse(self.position))
        object.__setattr__(self, 'cost', to_cost(self.cost))
        if self.cost <= 0:
            raise ValueError(f"Player {self.id} must have a positive cost, got {self.cost}")

    @property
    def position_name(self) -> str:
        """Short position code"""
        return self.position.name

    def revalued(self, cost: Union[int, float, str, Decimal]) -> 'Player':
        """Copy of this player with a new cost"""
        return replace(self, cost=to_cost(cost))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Player':
        """Create from a player record"""
        return cls(
            id=int(data['id']),
            web_name=data.get('web_name') or data.get('name', f"Player {data['id']}"),
            position=Position.parse(data.get('position', data.get('element_type'))),
            cost=to_cost(data['cost']),
            team_id=int(data.get('team_id', data.get('team', 0))),
            team_name=data.get('team_name', ''),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization"""
        return {
            'id': self.id,
            'web_name': self.web_name,
            'position': self.position_name,
            'cost': str(self.cost),
            'team_id': self.team_id,
            'team_name': self.team_name,
        }
