#!/usr/bin/env python3
"""
Event Bus and Receipt Archive Integration Tests
"""

import unittest
from datetime import datetime, timedelta
from decimal import Decimal
from unittest import mock

from sqlalchemy.exc import OperationalError

from parkgate.domain.models import (
    EventType, Money, ParkingSession, Receipt, SpotCategory, VehicleEnteredEvent,
    VehicleExitedEvent
)
from parkgate.infrastructure.config import example_config
from parkgate.infrastructure.factories import FacilityFactory
from parkgate.infrastructure.messaging import EventBus, EventHandler, RecordingEventHandler
from parkgate.infrastructure.repositories import (
    ReceiptArchiveHandler, SQLAlchemyReceiptArchive, create_archive_engine
)


class FailingHandler(EventHandler):
    def handle(self, event):
        raise RuntimeError("handler exploded")


def make_receipt(plate="ABC123", hours=2):
    start = datetime(2024, 1, 15, 8, 0)
    session = ParkingSession(plate=plate, spot_id=3, entry_time=start)
    return Receipt.close(
        session, SpotCategory.REGULAR, start + timedelta(hours=hours, minutes=-30),
        hours, Money(Decimal("10.00"))
    )


def transient_error():
    return OperationalError("INSERT INTO receipts", {}, Exception("database is locked"))


class TestEventBus(unittest.TestCase):

    def setUp(self):
        self.bus = EventBus()
        self.recorder = RecordingEventHandler()

    def test_facility_publishes_entry_and_exit(self):
        self.bus.subscribe(EventType.VEHICLE_ENTERED, self.recorder)
        self.bus.subscribe(EventType.VEHICLE_EXITED, self.recorder)
        facility = FacilityFactory.create(example_config(), self.bus)
        start = datetime(2024, 1, 15, 8, 0)

        facility.entry("ABC123", SpotCategory.REGULAR, start)
        facility.entry("ABC123", SpotCategory.REGULAR, start)  # rejected, no event
        facility.exit("ABC123", start + timedelta(hours=1))

        events = self.recorder.events
        self.assertEqual(len(events), 2)
        self.assertIsInstance(events[0], VehicleEnteredEvent)
        self.assertEqual(events[0].session.spot_id, 3)
        self.assertIsInstance(events[1], VehicleExitedEvent)
        self.assertIs(events[1].receipt, facility.history("ABC123")[0])
        self.assertEqual(events[1].to_dict()["event_type"], "vehicle.exited")

    def test_failing_handler_is_isolated(self):
        self.bus.subscribe(EventType.VEHICLE_EXITED, FailingHandler())
        self.bus.subscribe(EventType.VEHICLE_EXITED, self.recorder)

        with self.assertLogs("EventBus", level="ERROR") as logs:
            delivered = self.bus.publish(VehicleExitedEvent(make_receipt()))

        self.assertEqual(delivered, 1)
        self.assertEqual(len(self.recorder.events), 1)
        self.assertIn("handler exploded", logs.output[0])

    def test_subscribe_is_idempotent_and_unsubscribe(self):
        self.bus.subscribe(EventType.VEHICLE_EXITED, self.recorder)
        self.bus.subscribe(EventType.VEHICLE_EXITED, self.recorder)
        self.assertEqual(self.bus.publish(VehicleExitedEvent(make_receipt())), 1)

        self.assertTrue(self.bus.unsubscribe(EventType.VEHICLE_EXITED, self.recorder))
        self.assertFalse(self.bus.unsubscribe(EventType.VEHICLE_EXITED, self.recorder))
        self.assertEqual(self.bus.publish(VehicleExitedEvent(make_receipt())), 0)

    def test_clear_subscribers(self):
        self.bus.subscribe(EventType.VEHICLE_ENTERED, self.recorder)
        self.bus.subscribe(EventType.VEHICLE_EXITED, self.recorder)
        self.bus.clear_subscribers()
        self.assertEqual(self.bus.publish(VehicleExitedEvent(make_receipt())), 0)
        self.assertEqual(self.recorder.events, [])

    def test_failing_archive_does_not_affect_facility(self):
        self.bus.subscribe(EventType.VEHICLE_EXITED, FailingHandler())
        facility = FacilityFactory.create(example_config(), self.bus)
        start = datetime(2024, 1, 15, 8, 0)
        facility.entry("ABC123", SpotCategory.REGULAR, start)

        with self.assertLogs("EventBus", level="ERROR"):
            result = facility.exit("ABC123", start + timedelta(hours=1))

        self.assertTrue(result.success)
        self.assertEqual(len(facility.history("ABC123")), 1)
        facility.check_invariants()


class TestReceiptArchive(unittest.TestCase):

    def setUp(self):
        self.archive = SQLAlchemyReceiptArchive(create_archive_engine("sqlite://"), retry_delay=0)

    def test_save_and_load(self):
        receipt = make_receipt()
        self.archive.save(receipt)

        loaded = self.archive.get(receipt.receipt_id)
        self.assertEqual(loaded.plate, "ABC123")
        self.assertEqual(loaded.category, SpotCategory.REGULAR)
        self.assertEqual(loaded.duration, timedelta(hours=1, minutes=30))
        self.assertEqual(loaded.cost, Money(Decimal("10.00")))
        self.assertIsNone(self.archive.get("missing"))

    def test_find_by_plate_in_exit_order(self):
        later = make_receipt(hours=4)
        earlier = make_receipt(hours=1)
        self.archive.save(later)
        self.archive.save(earlier)
        self.archive.save(make_receipt(plate="OTHER"))

        found = self.archive.find_by_plate("abc123")
        self.assertEqual([r.receipt_id for r in found], [earlier.receipt_id, later.receipt_id])
        self.assertEqual(self.archive.count(), 3)

    def test_archive_handler_through_facility(self):
        bus = EventBus()
        bus.subscribe(EventType.VEHICLE_EXITED, ReceiptArchiveHandler(self.archive))
        facility = FacilityFactory.create(example_config(), bus)
        start = datetime(2024, 1, 15, 8, 0)

        facility.entry("ABC123", SpotCategory.VIP, start)
        receipt = facility.exit("ABC123", start + timedelta(minutes=90)).receipt

        archived = self.archive.find_by_plate("ABC123")
        self.assertEqual(len(archived), 1)
        self.assertEqual(archived[0].receipt_id, receipt.receipt_id)
        self.assertEqual(archived[0].cost, Money(Decimal("24.00")))

    def test_transient_failure_is_retried(self):
        real_factory = self.archive._session_factory
        attempts = []

        def flaky_begin():
            attempts.append(1)
            if len(attempts) == 1:
                raise transient_error()
            return real_factory.begin()

        flaky = mock.Mock(side_effect=real_factory)
        flaky.begin = flaky_begin
        self.archive._session_factory = flaky

        receipt = make_receipt()
        with self.assertLogs("SQLAlchemyReceiptArchive", level="WARNING"):
            self.archive.save(receipt)

        self.assertEqual(len(attempts), 2)
        self.assertIsNotNone(self.archive.get(receipt.receipt_id))

    def test_gives_up_after_max_attempts(self):
        flaky = mock.Mock()
        flaky.begin.side_effect = transient_error()
        self.archive._session_factory = flaky

        with self.assertLogs("SQLAlchemyReceiptArchive", level="WARNING"):
            with self.assertRaises(OperationalError):
                self.archive.save(make_receipt())
        self.assertEqual(flaky.begin.call_count, 3)

    def test_needs_an_attempt(self):
        with self.assertRaises(ValueError):
            SQLAlchemyReceiptArchive(create_archive_engine("sqlite://"), max_attempts=0)


if __name__ == '__main__':
    unittest.main()
