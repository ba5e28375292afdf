"""
Fantasy Engine Configuration

Contains scoring rules, squad composition rules, and engine settings.
"""

import json
from dataclasses import dataclass, field, replace
from decimal import Decimal
from enum import IntEnum
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple, Union


class Position(IntEnum):
    """Player position IDs"""
    GK = 1
    DEF = 2
    MID = 3
    FWD = 4

    @property
    def full_name(self) -> str:
        return POSITION_NAMES[self]

    @classmethod
    def parse(cls, value: Union[int, str, 'Position']) -> 'Position':
        """Parse an id, short code ("GK") or full name ("Goalkeeper")"""
        if isinstance(value, cls):
            return value
        if isinstance(value, int):
            return cls(value)

        text = str(value).strip()
        if text.isdigit():
            return cls(int(text))

        key = text.upper()
        if key in cls.__members__:
            return cls[key]
        for position, name in POSITION_NAMES.items():
            if name.upper() == key:
                return position
        raise ValueError(f"Unknown position: {value!r}")


POSITION_NAMES: Dict[Position, str] = {
    Position.GK: 'Goalkeeper',
    Position.DEF: 'Defender',
    Position.MID: 'Midfielder',
    Position.FWD: 'Forward',
}


# =============================================================================
# SCORING RULES
# =============================================================================

@dataclass(frozen=True)
class ScoringRules:
    """Points for each action, by position where the rule depends on it"""

    # Playing time points
    FULL_MATCH_MINUTES: int = 90
    FULL_MATCH: int = 2
    PARTIAL_MATCH: int = 1

    # Goals scored by position
    GOALS: Mapping[Position, int] = field(default_factory=lambda: {
        Position.GK: 8,
        Position.DEF: 8,
        Position.MID: 6,
        Position.FWD: 5,
    })

    # Assists (same for all positions)
    ASSIST: int = 3

    # Clean sheets by position (must reach CLEAN_SHEET_MINUTES)
    CLEAN_SHEET: Mapping[Position, int] = field(default_factory=lambda: {
        Position.GK: 4,
        Position.DEF: 4,
        Position.MID: 4,
        Position.FWD: 4,
    })
    CLEAN_SHEET_MINUTES: int = 60

    # Save bonus: points per block of SAVES_PER_POINT saves
    SAVES_PER_POINT: int = 3
    SAVE_POINTS: Mapping[Position, int] = field(default_factory=lambda: {
        Position.GK: 1,
        Position.DEF: 0,
        Position.MID: 0,
        Position.FWD: 0,
    })

    # Per goal conceded while on the pitch
    GOAL_CONCEDED: Mapping[Position, int] = field(default_factory=lambda: {
        Position.GK: -1,
        Position.DEF: -1,
        Position.MID: 0,
        Position.FWD: 0,
    })

    # Disciplinary
    YELLOW_CARD: int = -1
    RED_CARD: int = -3

    # Upper bound for a single stat line, stoppage and extra time included
    MAX_MINUTES: int = 130


# Global scoring rules instance
SCORING = ScoringRules()


# =============================================================================
# SQUAD RULES
# =============================================================================

@dataclass(frozen=True)
class SquadRules:
    """Budget and composition constraints for a league"""

    SQUAD_SIZE: int = 15
    STARTING_SIZE: int = 11
    BUDGET: Decimal = Decimal('100.0')
    MAX_PLAYERS_PER_TEAM: Optional[int] = 3
    CAPTAIN_MULTIPLIER: int = 2

    # (min, max) per position across the whole squad
    SQUAD_LIMITS: Mapping[Position, Tuple[int, int]] = field(default_factory=lambda: {
        Position.GK: (2, 2),
        Position.DEF: (5, 5),
        Position.MID: (5, 5),
        Position.FWD: (3, 3),
    })

    # (min, max) per position in the starting lineup
    FORMATION_LIMITS: Mapping[Position, Tuple[int, int]] = field(default_factory=lambda: {
        Position.GK: (1, 1),
        Position.DEF: (3, 5),
        Position.MID: (2, 5),
        Position.FWD: (1, 3),
    })

    @property
    def bench_size(self) -> int:
        return self.SQUAD_SIZE - self.STARTING_SIZE


SQUAD_RULES = SquadRules()


# =============================================================================
# ENGINE SETTINGS
# =============================================================================

@dataclass(frozen=True)
class EngineSettings:
    """Process-level switches, injected into the services that need them"""

    # Suspends every gameweek lock check when True
    testing_mode: bool = False

    scoring: ScoringRules = SCORING
    squad_rules: SquadRules = SQUAD_RULES


SETTINGS = EngineSettings()


# =============================================================================
# LEAGUE CONFIG FILES
# =============================================================================

_POSITION_MAPPINGS = ('GOALS', 'CLEAN_SHEET', 'SAVE_POINTS', 'GOAL_CONCEDED')
_LIMIT_MAPPINGS = ('SQUAD_LIMITS', 'FORMATION_LIMITS')


def _position_keys(mapping: Mapping[Any, Any]) -> Dict[Position, Any]:
    return {Position.parse(key): value for key, value in mapping.items()}


def scoring_rules_from_dict(data: Mapping[str, Any],
                            base: ScoringRules = SCORING) -> ScoringRules:
    """Build ScoringRules from a dict, overriding only the keys present"""
    overrides: Dict[str, Any] = {}
    for key, value in data.items():
        name = key.upper()
        if not hasattr(base, name):
            raise ValueError(f"Unknown scoring rule: {key}")
        if name in _POSITION_MAPPINGS:
            merged = dict(getattr(base, name))
            merged.update({pos: int(points) for pos, points in _position_keys(value).items()})
            value = merged
        else:
            value = int(value)
        overrides[name] = value
    return replace(base, **overrides)


def squad_rules_from_dict(data: Mapping[str, Any],
                          base: SquadRules = SQUAD_RULES) -> SquadRules:
    """Build SquadRules from a dict, overriding only the keys present"""
    overrides: Dict[str, Any] = {}
    for key, value in data.items():
        name = key.upper()
        if not hasattr(base, name):
            raise ValueError(f"Unknown squad rule: {key}")
        if name in _LIMIT_MAPPINGS:
            value = {pos: (int(lo), int(hi)) for pos, (lo, hi) in _position_keys(value).items()}
        elif name == 'BUDGET':
            value = Decimal(str(value))
        elif value is not None:
            value = int(value)
        overrides[name] = value
    return replace(base, **overrides)


def load_league_config(path: Union[str, Path]) -> Tuple[ScoringRules, SquadRules]:
    """
    Load league rule overrides from a JSON file.

    Expected structure:
    {
        "scoring": {"goals": {"FWD": 4}, "assist": 3, ...},
        "squad": {"budget": 83.5, "squad_limits": {"GK": [1, 2]}, ...}
    }
    """
    data = json.loads(Path(path).read_text(encoding='utf-8'))
    scoring = scoring_rules_from_dict(data.get('scoring', {}))
    squad = squad_rules_from_dict(data.get('squad', {}))
    return scoring, squad
