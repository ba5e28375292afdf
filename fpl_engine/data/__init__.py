"""Data loading, in-memory stores, and database modules"""

from .ledger import StatLedger
from .stores import PlayerRegistry, GameweekCalendar, InMemorySquadStore
from .loader import SeasonLoader
from .database import connect, get_connection, close_connection, init_schema, get_db_stats, reset_database
from .repository import (
    PlayerRepository, GameweekRepository, StatLineRepository, SquadRepository,
    get_repositories, release_lock
)

__all__ = [
    'StatLedger', 'PlayerRegistry', 'GameweekCalendar', 'InMemorySquadStore',
    'SeasonLoader',
    'connect', 'get_connection', 'close_connection', 'init_schema', 'get_db_stats', 'reset_database',
    'PlayerRepository', 'GameweekRepository', 'StatLineRepository', 'SquadRepository',
    'get_repositories', 'release_lock',
]
