"""Data models for the fantasy engine"""

from .player import Player, MatchStatLine
from .score import (
    Participation, ScoreBreakdown, PlayerGameweekScore,
    TeamScoreEntry, TeamGameweekScore,
)
from .squad import Squad, Gameweek

__all__ = [
    'Player', 'MatchStatLine',
    'Participation', 'ScoreBreakdown', 'PlayerGameweekScore',
    'TeamScoreEntry', 'TeamGameweekScore',
    'Squad', 'Gameweek',
]
