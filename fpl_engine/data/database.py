"""
DuckDB Database Module for the fantasy engine

Provides connection management and schema initialization for the
optional storage adapter.
"""

import atexit
import logging
import threading
from pathlib import Path
from typing import Optional, Union

import duckdb

logger = logging.getLogger(__name__)

# Database file location (project root)
DB_PATH = Path(__file__).parent.parent.parent / "fpl_engine.duckdb"

# Global connection, shared by the repositories
_global_connection: Optional[duckdb.DuckDBPyConnection] = None
_lock = threading.Lock()

TABLES = ('players', 'gameweeks', 'stat_lines', 'squads', 'squad_players')


def connect(path: Union[str, Path, None] = None) -> duckdb.DuckDBPyConnection:
    """
    Open a new connection with the schema in place.

    Args:
        path: Database file, or ":memory:". Defaults to DB_PATH.
    """
    con = duckdb.connect(str(path or DB_PATH))
    init_schema(con)
    return con


def get_connection() -> duckdb.DuckDBPyConnection:
    """Get the global DuckDB connection, creating it on first use."""
    global _global_connection

    with _lock:
        if _global_connection is None:
            _global_connection = connect(DB_PATH)
        return _global_connection


def close_connection():
    """Close the global connection if it exists."""
    global _global_connection

    with _lock:
        if _global_connection is not None:
            _global_connection.close()
            _global_connection = None


# Register cleanup on exit
atexit.register(close_connection)


def init_schema(con: duckdb.DuckDBPyConnection):
    """
    Initialize the database schema.

    Creates all tables if they don't exist. Safe to call multiple times.
    """
    con.execute("""
        CREATE TABLE IF NOT EXISTS players (
            id INTEGER PRIMARY KEY,
            web_name VARCHAR NOT NULL,
            position INTEGER NOT NULL,  -- 1=GK, 2=DEF, 3=MID, 4=FWD
            cost DECIMAL(10,2) NOT NULL,
            team_id INTEGER,
            team_name VARCHAR
        )
    """)

    con.execute("""
        CREATE TABLE IF NOT EXISTS gameweeks (
            id INTEGER PRIMARY KEY,
            number INTEGER NOT NULL,
            lock_at TIMESTAMP NOT NULL,  -- UTC
            name VARCHAR
        )
    """)

    # One row per revision; the highest revision is authoritative
    con.execute("""
        CREATE TABLE IF NOT EXISTS stat_lines (
            player_id INTEGER NOT NULL,
            gameweek INTEGER NOT NULL,
            revision INTEGER NOT NULL DEFAULT 0,
            minutes INTEGER DEFAULT 0,
            goals_scored INTEGER DEFAULT 0,
            assists INTEGER DEFAULT 0,
            goals_conceded INTEGER DEFAULT 0,
            team_goals_conceded INTEGER,
            saves INTEGER DEFAULT 0,
            yellow_cards INTEGER DEFAULT 0,
            red_cards INTEGER DEFAULT 0,
            recorded_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            PRIMARY KEY (player_id, gameweek, revision)
        )
    """)

    con.execute("""
        CREATE TABLE IF NOT EXISTS squads (
            manager_id INTEGER NOT NULL,
            gameweek INTEGER NOT NULL,
            captain_id INTEGER NOT NULL,
            vice_captain_id INTEGER NOT NULL,
            version INTEGER NOT NULL,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            PRIMARY KEY (manager_id, gameweek)
        )
    """)

    con.execute("""
        CREATE TABLE IF NOT EXISTS squad_players (
            manager_id INTEGER NOT NULL,
            gameweek INTEGER NOT NULL,
            squad_position INTEGER NOT NULL,  -- 1-based, starters first
            player_id INTEGER NOT NULL,
            is_starter BOOLEAN NOT NULL,
            PRIMARY KEY (manager_id, gameweek, squad_position)
        )
    """)


def get_db_stats(con: duckdb.DuckDBPyConnection) -> dict:
    """Row counts per table."""
    return {
        table: con.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0]
        for table in TABLES
    }


def reset_database(con: duckdb.DuckDBPyConnection):
    """Drop and recreate all tables."""
    for table in reversed(TABLES):
        con.execute(f"DROP TABLE IF EXISTS {table}")
    init_schema(con)
    logger.info("Schema reset complete")
