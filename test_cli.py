"""
Tests for the click CLI.
"""

import json
import os
import tempfile
import unittest

from click.testing import CliRunner

from fpl_engine.main import cli
from test_loader import season_data


class TestCli(unittest.TestCase):

    def setUp(self):
        """Set up test fixtures."""
        self.runner = CliRunner()
        self.tmp = tempfile.TemporaryDirectory()
        self.data_file = self.write_season(season_data())

    def tearDown(self):
        self.tmp.cleanup()

    def write_season(self, data, name="season.json"):
        path = os.path.join(self.tmp.name, name)
        with open(path, 'w') as f:
            json.dump(data, f)
        return path

    def invoke(self, *args):
        return self.runner.invoke(cli, list(args))

    def test_rules(self):
        result = self.invoke('rules')
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("Scoring Rules", result.output)
        self.assertIn("Budget: 100.0", result.output)

    def test_rules_with_league_file(self):
        league = self.write_season({"squad": {"budget": 83.5}}, name="league.json")
        result = self.invoke('rules', '--league', league)
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("Budget: 83.5", result.output)

    def test_score_single_player(self):
        result = self.invoke('score', self.data_file, '-g', '1', '-p', '13')
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("TOTAL", result.output)
        self.assertIn("10", result.output)

    def test_score_export(self):
        output = os.path.join(self.tmp.name, "scores.json")
        result = self.invoke('score', self.data_file, '-g', '1', '-o', output)
        self.assertEqual(result.exit_code, 0, result.output)

        with open(output) as f:
            scores = {s['player_id']: s['total'] for s in json.load(f)}
        # GK: floor(6/3) saves + full match - 1 conceded = 3
        self.assertEqual(scores, {1: 3, 8: 8, 13: 10})

    def test_score_malformed_line(self):
        data = season_data()
        data['stats'][0]['minutes'] = 200
        result = self.invoke('score', self.write_season(data), '-g', '1', '-p', '13')
        self.assertEqual(result.exit_code, 1)
        self.assertIn("MalformedStat", result.output)

    def test_team(self):
        result = self.invoke('team', self.data_file, '-m', '100', '-g', '1')
        self.assertEqual(result.exit_code, 0, result.output)
        # captain 10 x 2 + vice 8 + goalkeeper 3
        self.assertIn("Total: 31", result.output)

    def test_team_missing_squad(self):
        result = self.invoke('team', self.data_file, '-m', '999', '-g', '1')
        self.assertEqual(result.exit_code, 1)

    def test_validate_valid_squad(self):
        result = self.invoke('validate', self.data_file, '-m', '100', '-g', '1',
                             '--now', '2025-08-01')
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("Squad is valid", result.output)
        self.assertNotIn("locked", result.output)

    def test_validate_reports_every_error(self):
        data = season_data()
        data['squads'][0]['vice_captain_id'] = 13
        data['squads'][0]['bench'] = [2, 7, 12]
        result = self.invoke('validate', self.write_season(data), '-m', '100', '-g', '1')

        self.assertEqual(result.exit_code, 1)
        self.assertIn("InvalidSquadSize", result.output)
        self.assertIn("DuplicateCaptainVice", result.output)

    def test_validate_warns_when_locked(self):
        result = self.invoke('validate', self.data_file, '-m', '100', '-g', '1',
                             '--now', '2025-08-16')
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("locked", result.output)

    def test_lock_status(self):
        result = self.invoke('lock-status', self.data_file, '--now', '2025-08-20')
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("locked", result.output)
        self.assertIn("open", result.output)

    def test_lock_status_testing_mode(self):
        result = self.invoke('--testing-mode', 'lock-status', self.data_file,
                             '--now', '2025-09-01')
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("Testing mode", result.output)
        self.assertNotIn("locked", result.output)

    def test_import_testing_mode(self):
        db_path = os.path.join(self.tmp.name, "season.duckdb")
        result = self.invoke('--testing-mode', 'import', self.data_file, '--db', db_path)
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("Squads saved: 1, rejected: 0", result.output)

    def test_import_rejects_locked_squads(self):
        db_path = os.path.join(self.tmp.name, "season.duckdb")
        result = self.invoke('import', self.data_file, '--db', db_path)
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("Squads saved: 0, rejected: 1", result.output)

    def test_duplicate_squad_is_load_error(self):
        data = season_data()
        data['squads'].append(data['squads'][0])
        path = self.write_season(data)

        for command in (['lock-status', path], ['team', path, '-m', '100', '-g', '1']):
            with self.subTest(command=command[0]):
                result = self.invoke(*command)
                self.assertEqual(result.exit_code, 1)
                self.assertIsInstance(result.exception, SystemExit)
                self.assertIn("Duplicate squad", result.output)

    def test_gameweek_without_lock_time_is_load_error(self):
        data = season_data()
        del data['gameweeks'][0]['lock_at']
        result = self.invoke('lock-status', self.write_season(data))

        self.assertEqual(result.exit_code, 1)
        self.assertIsInstance(result.exception, SystemExit)
        self.assertIn("Invalid season data", result.output)

    def test_missing_data_file(self):
        result = self.invoke('score', os.path.join(self.tmp.name, "nope.json"), '-g', '1')
        self.assertNotEqual(result.exit_code, 0)


if __name__ == '__main__':
    unittest.main()
