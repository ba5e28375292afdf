"""
Tests for SeasonLoader and league config files.
"""

import json
import os
import tempfile
import unittest
from decimal import Decimal

from fpl_engine.config import Position, load_league_config, squad_rules_from_dict
from fpl_engine.data import SeasonLoader
from fpl_engine.data.database import connect
from fpl_engine.data.repository import get_repositories
from fpl_engine.errors import DataLoadError

POSITIONS = ['GK'] * 2 + ['DEF'] * 5 + ['MID'] * 5 + ['FWD'] * 3


def season_data():
    """A one-gameweek season with a single manager."""
    return {
        "players": [
            {"id": pid, "web_name": f"P{pid}", "position": pos, "cost": 6.5,
             "team_id": (pid - 1) // 3 + 1, "team_name": f"Team {(pid - 1) // 3 + 1}"}
            for pid, pos in enumerate(POSITIONS, start=1)
        ],
        "gameweeks": [
            {"id": 1, "number": 1, "lock_at": "2025-08-15T17:30:00Z"},
            {"id": 2, "number": 2, "deadline": "2025-08-22T17:30:00Z"},
        ],
        "stats": [
            {"player_id": 13, "gameweek": 1, "minutes": 90, "goals_scored": 1,
             "assists": 1, "team_goals_conceded": 2},
            {"player_id": 8, "gameweek": 1, "minutes": 90, "goals_scored": 1,
             "team_goals_conceded": 2},
            {"player_id": 1, "gameweek": 1, "minutes": 90, "saves": 6,
             "goals_conceded": 1},
        ],
        "squads": [
            {"manager_id": 100, "gameweek": 1,
             "starters": [1, 3, 4, 5, 6, 8, 9, 10, 11, 13, 14],
             "bench": [2, 7, 12, 15],
             "captain_id": 13, "vice_captain_id": 8},
        ],
    }


class TestSeasonLoader(unittest.TestCase):

    def test_load_from_dict(self):
        loader = SeasonLoader().load_from_dict(season_data())

        self.assertEqual(len(loader.players), 15)
        self.assertEqual(loader.players.get(13).position, Position.FWD)
        self.assertEqual(loader.players.get(13).cost, Decimal('6.5'))
        self.assertEqual([gw.number for gw in loader.gameweeks.all()], [1, 2])
        self.assertEqual(loader.ledger.get(13, 1).goals_scored, 1)
        self.assertEqual(loader.get_squad(100, 1).captain_id, 13)
        self.assertIsNone(loader.get_squad(100, 2))

    def test_repeated_line_is_correction(self):
        data = season_data()
        data['stats'].append({"player_id": 13, "gameweek": 1, "minutes": 90,
                              "goals_scored": 2, "team_goals_conceded": 2})
        loader = SeasonLoader().load_from_dict(data)

        line = loader.ledger.get(13, 1)
        self.assertEqual(line.revision, 1)
        self.assertEqual(line.goals_scored, 2)
        self.assertEqual(len(loader.ledger.history(13, 1)), 2)

    def test_stale_explicit_revision_rejected(self):
        data = season_data()
        data['stats'][0]['revision'] = 3
        data['stats'].append({"player_id": 13, "gameweek": 1, "minutes": 10, "revision": 2})
        with self.assertRaises(DataLoadError):
            SeasonLoader().load_from_dict(data)

    def test_rules_section(self):
        data = season_data()
        data['rules'] = {"scoring": {"goals": {"FWD": 4}}, "squad": {"budget": 83.5}}
        loader = SeasonLoader().load_from_dict(data)

        self.assertEqual(loader.scoring.GOALS[Position.FWD], 4)
        self.assertEqual(loader.squad_rules.BUDGET, Decimal('83.5'))

    def test_unknown_rule_rejected(self):
        data = season_data()
        data['rules'] = {"scoring": {"own_goal": -2}}
        with self.assertRaises(DataLoadError):
            SeasonLoader().load_from_dict(data)

    def test_invalid_records(self):
        data = season_data()
        data['players'][0]['cost'] = 0
        with self.assertRaises(DataLoadError):
            SeasonLoader().load_from_dict(data)

        data = season_data()
        data['players'][0]['position'] = 'Sweeper'
        with self.assertRaises(DataLoadError):
            SeasonLoader().load_from_dict(data)

    def test_gameweek_without_lock_time(self):
        data = season_data()
        del data['gameweeks'][0]['lock_at']
        with self.assertRaises(DataLoadError) as ctx:
            SeasonLoader().load_from_dict(data)
        self.assertIn("lock_at", str(ctx.exception))

        data = season_data()
        data['gameweeks'][0]['lock_at'] = 1755279000
        with self.assertRaises(DataLoadError):
            SeasonLoader().load_from_dict(data)

    def test_duplicate_squad_rejected(self):
        data = season_data()
        data['squads'].append(dict(data['squads'][0], captain_id=14))
        with self.assertRaises(DataLoadError) as ctx:
            SeasonLoader().load_from_dict(data)
        self.assertIn("Duplicate squad for manager 100 GW1", str(ctx.exception))

    def test_same_manager_other_gameweek(self):
        data = season_data()
        data['squads'].append(dict(data['squads'][0], gameweek=2))
        loader = SeasonLoader().load_from_dict(data)
        self.assertEqual(len(loader.squads), 2)
        self.assertIsNotNone(loader.get_squad(100, 2))

    def test_invalid_json(self):
        with self.assertRaises(DataLoadError):
            SeasonLoader().load_from_string("{not json")

    def test_missing_file(self):
        with self.assertRaises(DataLoadError):
            SeasonLoader().load_from_file("/nonexistent/season.json")

    def test_load_from_file(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "season.json")
            with open(path, 'w') as f:
                json.dump(season_data(), f)
            loader = SeasonLoader().load_from_file(path)
        self.assertEqual(len(loader.squads), 1)

    def test_export_to_database(self):
        data = season_data()
        data['stats'].append({"player_id": 13, "gameweek": 1, "minutes": 90,
                              "goals_scored": 2, "team_goals_conceded": 2})
        loader = SeasonLoader().load_from_dict(data)
        con = connect(':memory:')
        try:
            repos = get_repositories(con)
            self.assertEqual(loader.export_to_database(repos), (15, 2, 4))
            self.assertEqual(repos['stats'].get(13, 1).goals_scored, 2)

            # a second export writes no stat lines
            self.assertEqual(loader.export_to_database(repos), (15, 2, 0))
        finally:
            con.close()


class TestLeagueConfig(unittest.TestCase):

    def test_load_league_config(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "league.json")
            with open(path, 'w') as f:
                json.dump({
                    "scoring": {"clean_sheet_minutes": 45, "clean_sheet": {"MID": 1}},
                    "squad": {"max_players_per_team": 2,
                              "formation_limits": {"GK": [1, 1], "DEF": [4, 5],
                                                   "MID": [2, 5], "FWD": [1, 3]}},
                }, f)
            scoring, squad = load_league_config(path)

        self.assertEqual(scoring.CLEAN_SHEET_MINUTES, 45)
        self.assertEqual(scoring.CLEAN_SHEET[Position.MID], 1)
        self.assertEqual(scoring.CLEAN_SHEET[Position.DEF], 4)
        self.assertEqual(squad.MAX_PLAYERS_PER_TEAM, 2)
        self.assertEqual(squad.FORMATION_LIMITS[Position.DEF], (4, 5))
        self.assertEqual(squad.SQUAD_SIZE, 15)

    def test_derived_and_unknown_squad_rules_rejected(self):
        for key in ('bench_size', 'max_subs'):
            with self.subTest(key=key):
                with self.assertRaises(ValueError):
                    squad_rules_from_dict({key: 4})


if __name__ == '__main__':
    unittest.main()
