"""
Squad aggregator

Sums a squad's starter scores for a gameweek and applies the captain
multiplier, falling back to the vice-captain when the captain did not play.
"""

import logging
from typing import Dict, Optional

from ..config import SQUAD_RULES, SquadRules
from ..models.score import Participation, PlayerGameweekScore, TeamGameweekScore, TeamScoreEntry
from ..models.squad import Squad
from .score_cache import ScoreCache

logger = logging.getLogger(__name__)


def choose_multiplier_target(squad: Squad,
                             scores: Dict[int, PlayerGameweekScore]) -> Optional[int]:
    """
    Pick the player whose score is multiplied.

    The captain if they played, otherwise the vice-captain if they
    played, otherwise nobody. Benched players are never chosen.
    """
    captain = scores.get(squad.captain_id)
    vice = scores.get(squad.vice_captain_id)

    if captain is not None and captain.participation is Participation.PLAYED \
            and squad.is_starter(squad.captain_id):
        return squad.captain_id
    if vice is not None and vice.participation is Participation.PLAYED \
            and squad.is_starter(squad.vice_captain_id):
        return squad.vice_captain_id
    return None


class SquadAggregator:
    """Builds TeamGameweekScore from cached player scores"""

    def __init__(self, cache: ScoreCache, rules: SquadRules = SQUAD_RULES):
        """
        Args:
            cache: Score cache used to look up player scores
            rules: Squad rules (captain multiplier)
        """
        self.cache = cache
        self.rules = rules

    def aggregate(self, squad: Squad, gameweek: Optional[int] = None) -> TeamGameweekScore:
        """
        Calculate a squad's total for a gameweek.

        Args:
            squad: The manager's squad
            gameweek: Gameweek to score; defaults to the squad's own gameweek

        Returns:
            TeamGameweekScore with per-player entries
        """
        gw = squad.gameweek if gameweek is None else gameweek
        scores = {pid: self.cache.get_score(pid, gw) for pid in squad.player_ids}

        target = choose_multiplier_target(squad, scores)
        if target is not None and target != squad.captain_id:
            logger.debug("Manager %s GW%s: captain %s did not play, vice-captain %s multiplied",
                         squad.manager_id, gw, squad.captain_id, target)

        entries = []
        for pid in squad.player_ids:
            multiplier = self.rules.CAPTAIN_MULTIPLIER if pid == target else 1
            entries.append(TeamScoreEntry(
                score=scores[pid],
                is_starter=squad.is_starter(pid),
                multiplier=multiplier,
            ))

        return TeamGameweekScore(
            manager_id=squad.manager_id,
            gameweek=gw,
            entries=entries,
            captain_id=squad.captain_id,
            vice_captain_id=squad.vice_captain_id,
            multiplier_player_id=target,
            captain_participation=scores[squad.captain_id].participation
            if squad.captain_id in scores else Participation.UNKNOWN,
            vice_captain_participation=scores[squad.vice_captain_id].participation
            if squad.vice_captain_id in scores else Participation.UNKNOWN,
        )
