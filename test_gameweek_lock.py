"""
Unit tests for gameweek lock checks.
"""

import unittest
from datetime import datetime, timedelta, timezone

from fpl_engine.engine import GameweekLock, LockState, ensure_editable, is_locked, lock_state
from fpl_engine.errors import ErrorKind, ValidationError
from fpl_engine.models import Gameweek

LOCK_AT = datetime(2025, 8, 15, 17, 30, tzinfo=timezone.utc)


class TestLockState(unittest.TestCase):
    """Test cases for the Open -> Locked transition"""

    def setUp(self):
        """Set up test fixtures."""
        self.gameweek = Gameweek(id=1, number=1, lock_at=LOCK_AT)

    def test_open_before_lock(self):
        now = LOCK_AT - timedelta(seconds=1)
        self.assertEqual(lock_state(self.gameweek, now), LockState.OPEN)
        self.assertFalse(is_locked(self.gameweek, now))

    def test_locked_at_lock_time(self):
        self.assertEqual(lock_state(self.gameweek, LOCK_AT), LockState.LOCKED)

    def test_locked_after_lock_time(self):
        self.assertTrue(is_locked(self.gameweek, LOCK_AT + timedelta(days=3)))

    def test_testing_mode_keeps_gameweek_open(self):
        now = LOCK_AT + timedelta(days=3)
        self.assertEqual(lock_state(self.gameweek, now, testing_mode=True), LockState.OPEN)
        ensure_editable(self.gameweek, now, testing_mode=True)

    def test_testing_mode_toggle(self):
        """Turning testing mode off restores the normal check"""
        now = LOCK_AT + timedelta(hours=1)
        self.assertFalse(is_locked(self.gameweek, now, testing_mode=True))
        self.assertTrue(is_locked(self.gameweek, now, testing_mode=False))

    def test_ensure_editable_raises_locked(self):
        with self.assertRaises(ValidationError) as ctx:
            ensure_editable(self.gameweek, LOCK_AT)
        self.assertEqual(ctx.exception.kind, ErrorKind.GAMEWEEK_LOCKED)
        self.assertIn("GW1", str(ctx.exception))

    def test_naive_times_are_utc(self):
        gameweek = Gameweek(id=2, number=2, lock_at=datetime(2025, 8, 22, 17, 30))
        self.assertEqual(gameweek.lock_at.tzinfo, timezone.utc)

        self.assertFalse(is_locked(gameweek, datetime(2025, 8, 22, 17, 29)))
        self.assertTrue(is_locked(gameweek, datetime(2025, 8, 22, 17, 30)))

    def test_other_timezones_compare_on_instant(self):
        plus_two = timezone(timedelta(hours=2))
        self.assertFalse(is_locked(self.gameweek, datetime(2025, 8, 15, 19, 29, tzinfo=plus_two)))
        self.assertTrue(is_locked(self.gameweek, datetime(2025, 8, 15, 19, 30, tzinfo=plus_two)))

    def test_from_dict_parses_deadline(self):
        gameweek = Gameweek.from_dict({'id': 3, 'deadline': '2025-08-30T10:00:00Z'})
        self.assertEqual(gameweek.number, 3)
        self.assertEqual(gameweek.lock_at, datetime(2025, 8, 30, 10, 0, tzinfo=timezone.utc))


class TestGameweekLock(unittest.TestCase):
    """Test cases for GameweekLock with an injected clock"""

    def setUp(self):
        """Set up test fixtures."""
        self.gameweek = Gameweek(id=1, number=1, lock_at=LOCK_AT)
        self.now = LOCK_AT - timedelta(minutes=5)
        self.lock = GameweekLock(clock=lambda: self.now)

    def test_clock_drives_transition(self):
        self.assertEqual(self.lock.state(self.gameweek), LockState.OPEN)
        self.now = LOCK_AT + timedelta(minutes=5)
        self.assertEqual(self.lock.state(self.gameweek), LockState.LOCKED)

        with self.assertRaises(ValidationError):
            self.lock.ensure_editable(self.gameweek)

    def test_explicit_now_overrides_clock(self):
        self.assertTrue(self.lock.is_locked(self.gameweek, LOCK_AT))

    def test_testing_mode_lock(self):
        lock = GameweekLock(testing_mode=True, clock=lambda: LOCK_AT + timedelta(days=7))
        self.assertFalse(lock.is_locked(self.gameweek))
        lock.ensure_editable(self.gameweek)


if __name__ == '__main__':
    unittest.main()
