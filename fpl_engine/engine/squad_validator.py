"""
Squad Validator - Gates every squad mutation before it is committed.

Checks, in order:
- Squad size (15 distinct players, 11 of them starters) and known players
- Captain / vice-captain membership and distinctness
- Budget ceiling
- Composition (squad position limits, starting formation, players per team)
"""

from collections import Counter
from datetime import datetime
from decimal import Decimal
from typing import Dict, Iterator, List, Mapping, Optional, Tuple

from ..config import POSITION_NAMES, SQUAD_RULES, Position, SquadRules
from ..errors import ErrorKind, ValidationError
from ..models.player import Player
from ..models.squad import Gameweek, Squad
from .gameweek_lock import ensure_editable


class SquadValidator:
    """Validates candidate squads against a league's squad rules."""

    def __init__(self, players, rules: SquadRules = SQUAD_RULES, testing_mode: bool = False):
        """
        Args:
            players: Player source with get(player_id) -> Optional[Player]
            rules: Budget and composition rules
            testing_mode: Skip gameweek lock checks in validate_edit
        """
        self.players = players
        self.rules = rules
        self.testing_mode = testing_mode

    def validate(self, squad: Squad) -> None:
        """
        Validate a squad, raising the first violation found.

        Raises:
            ValidationError: With the kind of the first failed check
        """
        first = next(self._iter_errors(squad), None)
        if first is not None:
            raise first

    def collect_errors(self, squad: Squad) -> List[ValidationError]:
        """Every violation, in check order"""
        return list(self._iter_errors(squad))

    def is_valid(self, squad: Squad) -> bool:
        return next(self._iter_errors(squad), None) is None

    def validate_edit(self, squad: Squad, gameweek: Gameweek, now: datetime,
                      testing_mode: Optional[bool] = None) -> None:
        """Lock check for the gameweek, then validate"""
        if testing_mode is None:
            testing_mode = self.testing_mode
        ensure_editable(gameweek, now, testing_mode)
        self.validate(squad)

    def total_cost(self, squad: Squad) -> Decimal:
        """Sum of current costs of the known selected players"""
        return sum((p.cost for p in self._resolve(squad)[0].values()), Decimal('0'))

    def _resolve(self, squad: Squad) -> Tuple[Dict[int, Player], List[int]]:
        known: Dict[int, Player] = {}
        unknown: List[int] = []
        for pid in dict.fromkeys(squad.player_ids):
            player = self.players.get(pid)
            if player is None:
                unknown.append(pid)
            else:
                known[pid] = player
        return known, unknown

    def _iter_errors(self, squad: Squad) -> Iterator[ValidationError]:
        yield from self._check_size(squad)

        known, unknown = self._resolve(squad)
        for pid in unknown:
            yield ValidationError(ErrorKind.UNKNOWN_PLAYER, f"Unknown player {pid}")

        yield from self._check_captaincy(squad)
        yield from self._check_budget(known)
        yield from self._check_composition(squad, known)

    def _check_size(self, squad: Squad) -> Iterator[ValidationError]:
        rules = self.rules
        ids = squad.player_ids

        duplicates = sorted(pid for pid, count in Counter(ids).items() if count > 1)
        if duplicates:
            yield ValidationError(
                ErrorKind.INVALID_SQUAD_SIZE,
                f"Players selected more than once: {duplicates}"
            )

        if len(ids) != rules.SQUAD_SIZE:
            yield ValidationError(
                ErrorKind.INVALID_SQUAD_SIZE,
                f"Squad must have exactly {rules.SQUAD_SIZE} players (has {len(ids)})"
            )

        if len(squad.starters) != rules.STARTING_SIZE:
            yield ValidationError(
                ErrorKind.INVALID_SQUAD_SIZE,
                f"Must have exactly {rules.STARTING_SIZE} starters (has {len(squad.starters)})"
            )

    def _check_captaincy(self, squad: Squad) -> Iterator[ValidationError]:
        selected = set(squad.player_ids)
        for role, pid in (('Captain', squad.captain_id), ('Vice-captain', squad.vice_captain_id)):
            if pid not in selected:
                yield ValidationError(
                    ErrorKind.CAPTAIN_NOT_SELECTED,
                    f"{role} {pid} is not in the squad"
                )

        if squad.captain_id == squad.vice_captain_id:
            yield ValidationError(
                ErrorKind.DUPLICATE_CAPTAIN_VICE,
                f"Captain and vice-captain must be different players ({squad.captain_id})"
            )

    def _check_budget(self, players: Mapping[int, Player]) -> Iterator[ValidationError]:
        total = sum((p.cost for p in players.values()), Decimal('0'))
        if total > self.rules.BUDGET:
            yield ValidationError(
                ErrorKind.BUDGET_EXCEEDED,
                f"Squad cost ({total}) exceeds budget ({self.rules.BUDGET})"
            )

    def _check_composition(self, squad: Squad,
                           players: Mapping[int, Player]) -> Iterator[ValidationError]:
        rules = self.rules

        squad_counts = Counter(p.position for p in players.values())
        yield from _check_limits(squad_counts, rules.SQUAD_LIMITS, "squad")

        starter_counts = Counter(
            players[pid].position for pid in dict.fromkeys(squad.starters) if pid in players
        )
        yield from _check_limits(starter_counts, rules.FORMATION_LIMITS, "starting lineup")

        if rules.MAX_PLAYERS_PER_TEAM is not None:
            team_counts = Counter(p.team_id for p in players.values())
            for team_id, count in sorted(team_counts.items()):
                if count > rules.MAX_PLAYERS_PER_TEAM:
                    team_name = next(
                        (p.team_name for p in players.values()
                         if p.team_id == team_id and p.team_name),
                        f"Team {team_id}"
                    )
                    yield ValidationError(
                        ErrorKind.COMPOSITION_CONSTRAINT_VIOLATED,
                        f"Cannot have more than {rules.MAX_PLAYERS_PER_TEAM} players "
                        f"from {team_name} (you have {count})"
                    )


def _check_limits(counts: Mapping[Position, int],
                  limits: Mapping[Position, Tuple[int, int]],
                  scope: str) -> Iterator[ValidationError]:
    for position, (minimum, maximum) in sorted(limits.items()):
        count = counts.get(position, 0)
        name = POSITION_NAMES[position].lower() + 's'
        if count < minimum:
            yield ValidationError(
                ErrorKind.COMPOSITION_CONSTRAINT_VIOLATED,
                f"{scope.capitalize()} must have at least {minimum} {name} (has {count})"
            )
        elif count > maximum:
            yield ValidationError(
                ErrorKind.COMPOSITION_CONSTRAINT_VIOLATED,
                f"{scope.capitalize()} can have at most {maximum} {name} (has {count})"
            )
