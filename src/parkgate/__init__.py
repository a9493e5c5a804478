"""
parkgate - single-facility parking occupancy and billing engine

Walk-up spot allocation, session tracking, time-based billing with
per-category rates and a minimum charge, receipt history and hourly
traffic counts, safe under concurrent gate traffic.
"""

from .application.facility import EntryResult, ExitResult, ParkingFacility
from .domain.errors import ErrorCode, ParkingError
from .domain.models import Money, ParkingSession, Receipt, SpotCategory
from .infrastructure.config import FacilityConfig
from .infrastructure.factories import FacilityBuilder, FacilityFactory

__version__ = "1.0.0"

__all__ = [
    "EntryResult", "ExitResult", "ParkingFacility",
    "ErrorCode", "ParkingError",
    "Money", "ParkingSession", "Receipt", "SpotCategory",
    "FacilityConfig", "FacilityBuilder", "FacilityFactory",
]
