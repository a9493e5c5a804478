# File: src/parkgate/domain/models.py
"""
Domain Models for the Parking Facility

This module contains:
1. Value Objects: LicensePlate, Money (immutable, no identity)
2. Enums: SpotCategory
3. Entities: Spot (identity + occupancy lifecycle)
4. Records: ParkingSession, Receipt
5. Domain Events: VehicleEnteredEvent, VehicleExitedEvent
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Union
import uuid

from .errors import InvalidPlateError, UnknownCategoryError


CENTS = Decimal('0.01')


# ============================================================================
# VALUE OBJECTS
# ============================================================================

@dataclass(frozen=True)
class LicensePlate:
    """
    Value Object: License plate used as the session key
    Normalized to upper case without surrounding whitespace
    """
    value: str

    def __post_init__(self):
        if not isinstance(self.value, str) or not self.value.strip():
            raise InvalidPlateError(self.value)
        object.__setattr__(self, 'value', self.value.strip().upper())

    @classmethod
    def of(cls, plate: Union[str, 'LicensePlate']) -> 'LicensePlate':
        if isinstance(plate, LicensePlate):
            return plate
        return cls(plate)

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Money:
    """
    Value Object: Monetary amount with currency
    Arithmetic and comparison are only defined within one currency
    """
    amount: Decimal
    currency: str = "USD"

    def __post_init__(self):
        if not isinstance(self.amount, Decimal):
            object.__setattr__(self, 'amount', Decimal(str(self.amount)))

        if self.amount < Decimal('0'):
            raise ValueError("Money amount cannot be negative")

        if len(self.currency) != 3:
            raise ValueError(f"Currency must be 3-letter code: {self.currency}")

    @classmethod
    def zero(cls, currency: str = "USD") -> 'Money':
        return cls(Decimal('0.00'), currency)

    def _check_currency(self, other: 'Money') -> None:
        if self.currency != other.currency:
            raise ValueError(f"Currency mismatch: {self.currency} vs {other.currency}")

    def __add__(self, other: 'Money') -> 'Money':
        self._check_currency(other)
        return Money(self.amount + other.amount, self.currency)

    def __mul__(self, multiplier: Union[int, Decimal]) -> 'Money':
        if multiplier < 0:
            raise ValueError("Multiplier cannot be negative")
        return Money(self.amount * Decimal(multiplier), self.currency)

    def __lt__(self, other: 'Money') -> bool:
        self._check_currency(other)
        return self.amount < other.amount

    def __le__(self, other: 'Money') -> bool:
        self._check_currency(other)
        return self.amount <= other.amount

    def rounded(self) -> 'Money':
        """Round to whole cents"""
        return Money(self.amount.quantize(CENTS), self.currency)

    def format(self) -> str:
        return f"${self.amount:.2f} {self.currency}"

    def to_dict(self) -> Dict[str, Any]:
        return {"amount": str(self.amount), "currency": self.currency}


# ============================================================================
# ENUMS
# ============================================================================

class SpotCategory(Enum):
    """
    Closed set of spot categories
    The category of a spot decides its hourly rate
    """
    REGULAR = "regular"
    VIP = "vip"
    DISABLED = "disabled"

    @classmethod
    def parse(cls, value: Union[str, 'SpotCategory']) -> 'SpotCategory':
        """
        Resolve a category from an enum member, value or name
        Raises: UnknownCategoryError for anything else
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            key = value.strip().lower()
            for category in cls:
                if category.value == key:
                    return category
        raise UnknownCategoryError(value)

    def __str__(self) -> str:
        names = {
            SpotCategory.REGULAR: "Regular",
            SpotCategory.VIP: "VIP",
            SpotCategory.DISABLED: "Disabled",
        }
        return names[self]


# ============================================================================
# ENTITIES
# ============================================================================

class Spot:
    """
    Entity: Physical parking spot
    Identity and category are fixed at construction; only occupancy changes,
    and only through SpotRegistry.
    """

    __slots__ = ('_spot_id', '_category', 'is_occupied')

    def __init__(self, spot_id: int, category: SpotCategory):
        if isinstance(spot_id, bool) or not isinstance(spot_id, int) or spot_id < 0:
            raise ValueError(f"Spot id must be a non-negative integer, got: {spot_id!r}")
        self._spot_id = spot_id
        self._category = SpotCategory.parse(category)
        self.is_occupied = False

    @property
    def spot_id(self) -> int:
        return self._spot_id

    @property
    def category(self) -> SpotCategory:
        return self._category

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Spot):
            return False
        return self._spot_id == other._spot_id

    def __hash__(self) -> int:
        return hash(self._spot_id)

    def __repr__(self) -> str:
        state = "occupied" if self.is_occupied else "free"
        return f"Spot(id={self._spot_id}, category={self._category.value}, {state})"


@dataclass(frozen=True)
class ParkingSession:
    """Active occupancy of one spot by one plate"""
    plate: str
    spot_id: int
    entry_time: datetime

    def elapsed(self, exit_time: datetime) -> timedelta:
        return exit_time - self.entry_time


@dataclass(frozen=True)
class Receipt:
    """
    Priced record of a completed session
    Immutable; duration is always exit_time - entry_time and never negative.
    """
    plate: str
    spot_id: int
    category: SpotCategory
    entry_time: datetime
    exit_time: datetime
    duration: timedelta
    billed_hours: int
    cost: Money
    receipt_id: str = field(default_factory=lambda: str(uuid.uuid4()))

    def __post_init__(self):
        if self.duration != self.exit_time - self.entry_time:
            raise ValueError("Receipt duration must equal exit_time - entry_time")
        if self.duration < timedelta(0):
            raise ValueError("Receipt duration cannot be negative")

    @classmethod
    def close(
        cls,
        session: ParkingSession,
        category: SpotCategory,
        exit_time: datetime,
        billed_hours: int,
        cost: Money
    ) -> 'Receipt':
        """Convert a closed session into its receipt"""
        return cls(
            plate=session.plate,
            spot_id=session.spot_id,
            category=category,
            entry_time=session.entry_time,
            exit_time=exit_time,
            duration=session.elapsed(exit_time),
            billed_hours=billed_hours,
            cost=cost,
        )

    @property
    def duration_seconds(self) -> float:
        return self.duration.total_seconds()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "receipt_id": self.receipt_id,
            "plate": self.plate,
            "spot_id": self.spot_id,
            "category": self.category.value,
            "entry_time": self.entry_time.isoformat(),
            "exit_time": self.exit_time.isoformat(),
            "duration_seconds": self.duration_seconds,
            "billed_hours": self.billed_hours,
            "cost": self.cost.to_dict(),
        }


# ============================================================================
# DOMAIN EVENTS
# ============================================================================

class EventType(str, Enum):
    VEHICLE_ENTERED = "vehicle.entered"
    VEHICLE_EXITED = "vehicle.exited"


class DomainEvent(ABC):
    """
    Base class for all domain events
    Events represent something that happened in the facility
    """
    event_type: EventType

    def __init__(self):
        self.event_id = str(uuid.uuid4())
        self.timestamp = datetime.now()
        self.version = "1.0"

    @abstractmethod
    def data(self) -> Dict[str, Any]:
        """Event payload"""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event_type": self.event_type.value,
            "event_id": self.event_id,
            "timestamp": self.timestamp.isoformat(),
            "version": self.version,
            "data": self.data(),
        }

    def __str__(self) -> str:
        return f"{self.__class__.__name__} at {self.timestamp}"


class VehicleEnteredEvent(DomainEvent):
    """Raised when a vehicle is assigned a spot"""
    event_type = EventType.VEHICLE_ENTERED

    def __init__(self, session: ParkingSession, category: SpotCategory):
        super().__init__()
        self.session = session
        self.category = category

    def data(self) -> Dict[str, Any]:
        return {
            "plate": self.session.plate,
            "spot_id": self.session.spot_id,
            "category": self.category.value,
            "entry_time": self.session.entry_time.isoformat(),
        }


class VehicleExitedEvent(DomainEvent):
    """Raised when a session is closed and priced"""
    event_type = EventType.VEHICLE_EXITED

    def __init__(self, receipt: Receipt):
        super().__init__()
        self.receipt = receipt

    def data(self) -> Dict[str, Any]:
        return self.receipt.to_dict()
