"""
Points calculator

Converts a player's match statistics into fantasy points using
position-dependent scoring rules.
"""

import logging

from ..config import SCORING, Position, ScoringRules
from ..errors import ErrorKind, ValidationError
from ..models.player import MatchStatLine
from ..models.score import Participation, PlayerGameweekScore, ScoreBreakdown

logger = logging.getLogger(__name__)

_COUNT_FIELDS = (
    'goals_scored', 'assists', 'goals_conceded', 'saves',
    'yellow_cards', 'red_cards',
)


class PointsCalculator:
    """
    Calculates fantasy points from match statistics.

    Stateless apart from the rules it was built with; the same stat line
    always yields the same score.
    """

    def __init__(self, rules: ScoringRules = SCORING):
        """
        Initialize the calculator.

        Args:
            rules: Scoring rules to apply
        """
        self.rules = rules

    def compute_score(self, stat: MatchStatLine, position: Position) -> PlayerGameweekScore:
        """
        Calculate points for a player's stat line.

        Args:
            stat: Match statistics for one player and gameweek
            position: The player's position

        Returns:
            PlayerGameweekScore with total and breakdown

        Raises:
            ValidationError: MalformedStat for out-of-range values
        """
        self.check_stat_line(stat)
        position = Position.parse(position)
        breakdown = self._calculate_breakdown(stat, position)

        if stat.minutes == 0 and stat.has_events:
            logger.debug("Player %s GW%s has events with 0 minutes; scoring literally",
                         stat.player_id, stat.gameweek)

        participation = (
            Participation.PLAYED if stat.minutes > 0 or stat.has_events
            else Participation.DID_NOT_PLAY
        )

        return PlayerGameweekScore(
            player_id=stat.player_id,
            gameweek=stat.gameweek,
            position=position,
            participation=participation,
            breakdown=breakdown,
            revision=stat.revision,
        )

    def check_stat_line(self, stat: MatchStatLine) -> None:
        """Reject corrupt statistics instead of clamping them"""
        if stat.minutes < 0 or stat.minutes > self.rules.MAX_MINUTES:
            raise ValidationError(
                ErrorKind.MALFORMED_STAT,
                f"Player {stat.player_id} GW{stat.gameweek}: minutes {stat.minutes} "
                f"outside 0-{self.rules.MAX_MINUTES}"
            )

        for name in _COUNT_FIELDS:
            value = getattr(stat, name)
            if value < 0:
                raise ValidationError(
                    ErrorKind.MALFORMED_STAT,
                    f"Player {stat.player_id} GW{stat.gameweek}: {name} is negative ({value})"
                )

        if stat.team_goals_conceded is not None and stat.team_goals_conceded < 0:
            raise ValidationError(
                ErrorKind.MALFORMED_STAT,
                f"Player {stat.player_id} GW{stat.gameweek}: team_goals_conceded is negative"
            )

        if stat.red_cards > 1:
            raise ValidationError(
                ErrorKind.MALFORMED_STAT,
                f"Player {stat.player_id} GW{stat.gameweek}: {stat.red_cards} red cards"
            )

    def _calculate_breakdown(self, stat: MatchStatLine, position: Position) -> ScoreBreakdown:
        """Apply every rule in the table and keep the per-rule points"""
        rules = self.rules

        # Playing time points
        if stat.minutes >= rules.FULL_MATCH_MINUTES:
            playing = rules.FULL_MATCH
        elif stat.minutes > 0:
            playing = rules.PARTIAL_MATCH
        else:
            playing = 0

        clean_sheet = 0
        if stat.is_clean_sheet(rules.CLEAN_SHEET_MINUTES):
            clean_sheet = rules.CLEAN_SHEET.get(position, 0)

        # floor(saves / 3), so fewer than 3 saves earn nothing
        save_blocks = stat.saves // rules.SAVES_PER_POINT
        saves = save_blocks * rules.SAVE_POINTS.get(position, 0)

        return ScoreBreakdown(
            playing=playing,
            goals=stat.goals_scored * rules.GOALS.get(position, 0),
            assists=stat.assists * rules.ASSIST,
            clean_sheet=clean_sheet,
            saves=saves,
            yellow_card=rules.YELLOW_CARD if stat.yellow_cards > 0 else 0,
            red_card=rules.RED_CARD if stat.red_cards > 0 else 0,
            goals_conceded=stat.goals_conceded * rules.GOAL_CONCEDED.get(position, 0),
        )


def compute_score(stat: MatchStatLine, position: Position,
                  rules: ScoringRules = SCORING) -> PlayerGameweekScore:
    """Score a stat line with a throwaway calculator"""
    return PointsCalculator(rules).compute_score(stat, position)
