#!/usr/bin/env python3
"""
SessionTracker Unit Tests
"""

import unittest
from datetime import datetime, timedelta

from parkgate.domain.errors import (
    DuplicateSessionError, InvalidTimestampError, SpotOccupiedError, UnknownSessionError
)
from parkgate.domain.sessions import SessionTracker


class TestSessionTracker(unittest.TestCase):

    def setUp(self):
        self.tracker = SessionTracker()
        self.t0 = datetime(2024, 1, 15, 8, 0)

    def test_start_and_end(self):
        session = self.tracker.start("ABC123", 3, self.t0)
        self.assertEqual(session.spot_id, 3)
        self.assertTrue(self.tracker.is_active("abc123"))

        closed = self.tracker.end("ABC123", self.t0 + timedelta(hours=1))
        self.assertEqual(closed, session)
        self.assertFalse(self.tracker.is_active("ABC123"))
        self.assertIsNone(self.tracker.session_for_spot(3))
        self.assertEqual(len(self.tracker), 0)

    def test_duplicate_start_keeps_first_session(self):
        first = self.tracker.start("ABC123", 3, self.t0)
        with self.assertRaises(DuplicateSessionError) as ctx:
            self.tracker.start("ABC123", 4, self.t0 + timedelta(minutes=5))

        self.assertEqual(ctx.exception.spot_id, 3)
        self.assertEqual(self.tracker.get("ABC123"), first)
        self.assertIsNone(self.tracker.session_for_spot(4))

    def test_spot_cannot_hold_two_sessions(self):
        self.tracker.start("ABC123", 3, self.t0)
        with self.assertRaises(SpotOccupiedError):
            self.tracker.start("XYZ789", 3, self.t0)
        self.assertFalse(self.tracker.is_active("XYZ789"))

    def test_end_without_session(self):
        with self.assertRaises(UnknownSessionError):
            self.tracker.end("NOPE", self.t0)

    def test_end_before_entry_keeps_session(self):
        self.tracker.start("ABC123", 3, self.t0)
        with self.assertRaises(InvalidTimestampError):
            self.tracker.end("ABC123", self.t0 - timedelta(seconds=1))
        self.assertTrue(self.tracker.is_active("ABC123"))

    def test_zero_length_session_allowed(self):
        self.tracker.start("ABC123", 3, self.t0)
        session = self.tracker.end("ABC123", self.t0)
        self.assertEqual(session.elapsed(self.t0), timedelta(0))

    def test_plate_can_return_after_exit(self):
        self.tracker.start("ABC123", 3, self.t0)
        self.tracker.end("ABC123", self.t0 + timedelta(hours=1))
        session = self.tracker.start("ABC123", 4, self.t0 + timedelta(hours=2))
        self.assertEqual(session.spot_id, 4)

    def test_active_sessions_ordered_by_spot(self):
        self.tracker.start("B", 9, self.t0)
        self.tracker.start("A", 2, self.t0)
        self.assertEqual([s.plate for s in self.tracker.active_sessions()], ["A", "B"])
        self.assertEqual(self.tracker.referenced_spot_ids(), [2, 9])
        self.assertIn("a", self.tracker)


if __name__ == '__main__':
    unittest.main()
