"""
Stat ledger

In-memory store of ingested match statistics. Keeps every revision of a
(player, gameweek) line; reads return the latest one.
"""

import logging
import threading
from collections import defaultdict
from typing import Any, Dict, Iterable, List, Optional, Tuple

from ..models.player import MatchStatLine

logger = logging.getLogger(__name__)


class StatLedger:
    """Append-only ledger of MatchStatLine revisions"""

    def __init__(self, lines: Optional[Iterable[MatchStatLine]] = None):
        self._lines: Dict[Tuple[int, int], List[MatchStatLine]] = defaultdict(list)
        self._lock = threading.Lock()
        for line in lines or ():
            self.record(line)

    def record(self, line: MatchStatLine) -> MatchStatLine:
        """
        Add an ingested line.

        Args:
            line: Stat line; must have a higher revision than any stored
                  line for the same player and gameweek

        Returns:
            The stored line

        Raises:
            ValueError: If the line does not supersede the stored one
        """
        key = (line.player_id, line.gameweek)
        with self._lock:
            history = self._lines[key]
            if history and line.revision <= history[-1].revision:
                raise ValueError(
                    f"Stat line for player {line.player_id} GW{line.gameweek} "
                    f"revision {line.revision} does not supersede revision {history[-1].revision}"
                )
            history.append(line)

        if line.revision > 0:
            logger.info("Correction recorded for player %s GW%s (revision %s)",
                        line.player_id, line.gameweek, line.revision)
        return line

    def correct(self, player_id: int, gameweek: int, **changes: Any) -> MatchStatLine:
        """Record a correction to the latest line, bumping its revision"""
        current = self.get(player_id, gameweek)
        if current is None:
            raise KeyError(f"No stat line for player {player_id} GW{gameweek}")
        return self.record(current.corrected(**changes))

    def get(self, player_id: int, gameweek: int) -> Optional[MatchStatLine]:
        """Latest line for a player and gameweek, or None if not ingested"""
        with self._lock:
            history = self._lines.get((player_id, gameweek))
            return history[-1] if history else None

    def history(self, player_id: int, gameweek: int) -> List[MatchStatLine]:
        """All revisions, oldest first"""
        with self._lock:
            return list(self._lines.get((player_id, gameweek), ()))

    def keys(self) -> List[Tuple[int, int]]:
        """(player_id, gameweek) pairs with at least one line"""
        with self._lock:
            return sorted(key for key, history in self._lines.items() if history)

    def lines_for_gameweek(self, gameweek: int) -> List[MatchStatLine]:
        """Latest line of every player for a gameweek"""
        with self._lock:
            return [
                history[-1] for (_, gw), history in sorted(self._lines.items())
                if gw == gameweek and history
            ]

    def __len__(self) -> int:
        with self._lock:
            return len(self._lines)
