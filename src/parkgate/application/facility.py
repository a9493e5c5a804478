# File: src/parkgate/application/facility.py
"""
Parking Facility Application Service

Orchestrates the four facility use cases:
1. Entry   - allocate a spot, open a session, count the hour
2. Exit    - close the session, price it, record the receipt, free the spot
3. History - receipts of a plate, oldest first
4. Traffic - hour-of-day entry counts

SpotRegistry and SessionTracker form one consistency domain, so every Entry
and Exit runs inside a single facility lock. The closed session is handed to
the ledger and its spot released within the same critical section. Domain
events are published after the lock is released.

Expected business failures (full lot, duplicate entry, unknown exit, clock
anomaly) come back as failed results. Invalid input and invariant violations
raise.
"""

from dataclasses import dataclass
from datetime import datetime
from threading import RLock
from typing import List, Mapping, Optional, Tuple, Union
import logging

from ..domain.billing import BillingEngine
from ..domain.errors import (
    DuplicateSessionError, EntryBeforeLastExitError, ErrorCode, InvalidTimestampError,
    InvariantViolation, SpotOccupiedError, SpotUnavailableError, UnknownCategoryError,
    UnknownSessionError
)
from ..domain.ledger import ReceiptLedger
from ..domain.models import (
    DomainEvent, LicensePlate, Money, ParkingSession, Receipt, SpotCategory,
    VehicleEnteredEvent, VehicleExitedEvent
)
from ..domain.sessions import SessionTracker
from ..domain.spot_registry import SpotRegistry
from ..domain.traffic import TrafficAggregator
from .dtos import CategoryStatusDTO, FacilityStatusDTO, MoneyDTO, TrafficReportDTO


# ============================================================================
# RESULTS
# ============================================================================

@dataclass(frozen=True)
class EntryResult:
    """Outcome of an Entry request"""
    success: bool
    plate: str
    category: SpotCategory
    spot_id: Optional[int] = None
    entry_time: Optional[datetime] = None
    hourly_rate: Optional[Money] = None
    error: Optional[ErrorCode] = None
    message: Optional[str] = None


@dataclass(frozen=True)
class ExitResult:
    """Outcome of an Exit request"""
    success: bool
    plate: str
    receipt: Optional[Receipt] = None
    error: Optional[ErrorCode] = None
    message: Optional[str] = None


# ============================================================================
# FACILITY SERVICE
# ============================================================================

class ParkingFacility:
    """
    Single-facility walk-up allocation and billing

    Thread-safe: gate terminals may call entry/exit concurrently.
    """

    def __init__(
        self,
        spots: SpotRegistry,
        billing: BillingEngine,
        sessions: Optional[SessionTracker] = None,
        ledger: Optional[ReceiptLedger] = None,
        traffic: Optional[TrafficAggregator] = None,
        event_bus=None
    ):
        """
        Wire the facility components

        Args:
            spots: spot inventory
            billing: pricing for every category present in the inventory
            sessions, ledger, traffic: empty components are created when omitted
            event_bus: optional object with publish(event); receives domain events

        Raises: UnknownCategoryError if a spot category has no rate
        """
        self.logger = logging.getLogger(self.__class__.__name__)

        for category in spots.categories():
            if not billing.supports(category):
                raise UnknownCategoryError(category)

        self._spots = spots
        self._billing = billing
        self._sessions = sessions if sessions is not None else SessionTracker()
        self._ledger = (
            ledger if ledger is not None
            else ReceiptLedger(currency=billing.min_charge.currency)
        )
        self._traffic = traffic if traffic is not None else TrafficAggregator()
        self._event_bus = event_bus
        self._lock = RLock()

        self.logger.info(
            f"ParkingFacility initialized with {spots.total_spots} spots "
            f"({', '.join(str(c) for c in spots.categories())})"
        )

    # ========================================================================
    # USE CASES
    # ========================================================================

    def entry(
        self,
        plate: str,
        category: Union[str, SpotCategory],
        time: Optional[datetime] = None
    ) -> EntryResult:
        """
        Admit a vehicle: lowest free spot of the category, new session, hourly count

        Failed results: SPOT_UNAVAILABLE, DUPLICATE_SESSION,
                        INVALID_TIMESTAMP (entry before the plate's last exit)
        Raises: InvalidPlateError, UnknownCategoryError
        """
        plate = LicensePlate.of(plate).value
        category = SpotCategory.parse(category)
        entry_time = time or datetime.now()

        try:
            with self._lock:
                existing = self._sessions.get(plate)
                if existing is not None:
                    raise DuplicateSessionError(plate, existing.spot_id)

                last = self._ledger.latest(plate)
                if last is not None and entry_time < last.exit_time:
                    raise EntryBeforeLastExitError(plate, entry_time, last.exit_time)

                spot_id = self._spots.allocate(category)
                try:
                    session = self._sessions.start(plate, spot_id, entry_time)
                except SpotOccupiedError:
                    self._spots.release(spot_id)
                    raise
                self._traffic.increment(entry_time.hour)
        except (SpotUnavailableError, DuplicateSessionError, EntryBeforeLastExitError) as e:
            self.logger.warning(f"Entry rejected for {plate}: {e.message}")
            return EntryResult(
                success=False,
                plate=plate,
                category=category,
                error=e.code,
                message=e.message
            )

        self.logger.info(f"Vehicle {plate} entered spot {spot_id} ({category})")
        self._publish(VehicleEnteredEvent(session, category))

        return EntryResult(
            success=True,
            plate=plate,
            category=category,
            spot_id=spot_id,
            entry_time=entry_time,
            hourly_rate=self._billing.hourly_rate(category),
            message=f"Vehicle {plate} assigned to spot {spot_id}"
        )

    def exit(self, plate: str, time: Optional[datetime] = None) -> ExitResult:
        """
        Release a vehicle: close its session, price it, record the receipt, free the spot

        Failed results: UNKNOWN_SESSION, INVALID_TIMESTAMP
        Raises: InvalidPlateError, InvariantViolation
        """
        plate = LicensePlate.of(plate).value
        exit_time = time or datetime.now()

        try:
            with self._lock:
                session = self._sessions.end(plate, exit_time)
                receipt = self._close_session(session, exit_time)
        except (UnknownSessionError, InvalidTimestampError) as e:
            self.logger.warning(f"Exit rejected for {plate}: {e.message}")
            return ExitResult(success=False, plate=plate, error=e.code, message=e.message)

        self.logger.info(
            f"Vehicle {plate} left spot {receipt.spot_id} after "
            f"{receipt.billed_hours}h billed. Fee: {receipt.cost.format()}"
        )
        self._publish(VehicleExitedEvent(receipt))

        return ExitResult(
            success=True,
            plate=plate,
            receipt=receipt,
            message=f"Vehicle {plate} charged {receipt.cost.format()}"
        )

    def history(self, plate: str) -> Tuple[Receipt, ...]:
        """All receipts for the plate, oldest first"""
        return self._ledger.history(LicensePlate.of(plate).value)

    def traffic_snapshot(self) -> Mapping[int, int]:
        """Hour of day (0-23) -> entry count"""
        return self._traffic.snapshot()

    # ========================================================================
    # QUERIES
    # ========================================================================

    def active_session(self, plate: str) -> Optional[ParkingSession]:
        with self._lock:
            return self._sessions.get(plate)

    def active_sessions(self) -> List[ParkingSession]:
        with self._lock:
            return self._sessions.active_sessions()

    def free_spot_ids(self) -> List[int]:
        with self._lock:
            return self._spots.free_spot_ids()

    def occupied_spot_ids(self) -> List[int]:
        with self._lock:
            return self._spots.occupied_spot_ids()

    def status(self) -> FacilityStatusDTO:
        """Consistent occupancy summary"""
        with self._lock:
            total = self._spots.total_spots
            occupied = len(self._spots.occupied_spot_ids())
            active = len(self._sessions)
            by_category = []
            for category in self._spots.categories():
                counts = self._spots.count_by_category(category)
                rate = self._billing.hourly_rate(category)
                by_category.append(CategoryStatusDTO(
                    category=category,
                    hourly_rate=MoneyDTO(amount=rate.amount, currency=rate.currency),
                    **counts
                ))

        revenue = self._ledger.total_revenue()
        min_charge = self._billing.min_charge
        return FacilityStatusDTO(
            total_spots=total,
            occupied_spots=occupied,
            free_spots=total - occupied,
            occupancy_rate=(occupied / total * 100.0) if total else 0.0,
            active_sessions=active,
            by_category=by_category,
            completed_sessions=self._ledger.receipt_count(),
            total_revenue=MoneyDTO(amount=revenue.amount, currency=revenue.currency),
            min_charge=MoneyDTO(amount=min_charge.amount, currency=min_charge.currency),
            timestamp=datetime.now()
        )

    def traffic_report(self) -> TrafficReportDTO:
        snapshot = self._traffic.snapshot()
        return TrafficReportDTO.from_snapshot(snapshot, self._traffic.peak_hour(snapshot))

    def check_invariants(self) -> None:
        """
        Verify that occupied spots are exactly the spots held by active sessions
        Raises: InvariantViolation
        """
        with self._lock:
            occupied = self._spots.occupied_spot_ids()
            referenced = self._sessions.referenced_spot_ids()
            if occupied != referenced:
                self.logger.error(
                    f"Occupancy mismatch: occupied={occupied} sessions={referenced}"
                )
                raise InvariantViolation(
                    f"Occupied spots {occupied} differ from session spots {referenced}"
                )
            free = self._spots.free_spot_ids()
            if len(free) + len(referenced) != self._spots.total_spots:
                raise InvariantViolation("Free spots and active sessions do not cover the inventory")

    # ========================================================================
    # INTERNAL HELPERS
    # ========================================================================

    def _close_session(self, session: ParkingSession, exit_time: datetime) -> Receipt:
        """Price a removed session, hand its receipt to the ledger and free the spot"""
        category = self._spots.category_of(session.spot_id)
        duration = session.elapsed(exit_time)
        receipt = Receipt.close(
            session,
            category=category,
            exit_time=exit_time,
            billed_hours=self._billing.billed_hours(duration),
            cost=self._billing.compute(category, duration)
        )
        self._ledger.append(receipt)
        self._spots.release(session.spot_id)
        return receipt

    def _publish(self, event: DomainEvent) -> None:
        if self._event_bus is not None:
            self._event_bus.publish(event)
