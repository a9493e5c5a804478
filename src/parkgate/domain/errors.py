# File: src/parkgate/domain/errors.py
"""
Domain Errors for the Parking Facility

Error taxonomy:
1. Business errors - expected conditions (full lot, duplicate entry, unknown exit).
   The application service converts these into failed results.
2. Input/configuration errors - bad category, hour or plate, rejected at the boundary.
3. Invariant violations - internal consistency failures that should never occur
   while the invariants hold. These always propagate.
"""

from enum import Enum


class ErrorCode(str, Enum):
    """Machine-readable code attached to every parking error"""
    SPOT_UNAVAILABLE = "spot_unavailable"
    DUPLICATE_SESSION = "duplicate_session"
    UNKNOWN_SESSION = "unknown_session"
    INVALID_TIMESTAMP = "invalid_timestamp"
    UNKNOWN_SPOT = "unknown_spot"
    SPOT_NOT_OCCUPIED = "spot_not_occupied"
    SPOT_OCCUPIED = "spot_occupied"
    UNKNOWN_CATEGORY = "unknown_category"
    INVALID_HOUR = "invalid_hour"
    INVALID_PLATE = "invalid_plate"


class ParkingError(Exception):
    """Base exception for all parking domain errors"""
    code: ErrorCode

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


# ============================================================================
# BUSINESS ERRORS
# ============================================================================

class SpotUnavailableError(ParkingError):
    """No free spot of the requested category"""
    code = ErrorCode.SPOT_UNAVAILABLE

    def __init__(self, category):
        super().__init__(f"No free {category} spot available")
        self.category = category


class DuplicateSessionError(ParkingError):
    """Plate already has an active session"""
    code = ErrorCode.DUPLICATE_SESSION

    def __init__(self, plate: str, spot_id: int):
        super().__init__(f"Vehicle {plate} is already parked in spot {spot_id}")
        self.plate = plate
        self.spot_id = spot_id


class UnknownSessionError(ParkingError, LookupError):
    """No active session exists for the plate"""
    code = ErrorCode.UNKNOWN_SESSION

    def __init__(self, plate: str):
        super().__init__(f"No active session for vehicle {plate}")
        self.plate = plate


class InvalidTimestampError(ParkingError, ValueError):
    """Exit time precedes the session entry time"""
    code = ErrorCode.INVALID_TIMESTAMP

    def __init__(self, plate: str, entry_time, exit_time):
        super().__init__(
            f"Exit time {exit_time.isoformat()} for {plate} is before "
            f"entry time {entry_time.isoformat()}"
        )
        self.plate = plate
        self.entry_time = entry_time
        self.exit_time = exit_time


class EntryBeforeLastExitError(InvalidTimestampError):
    """Entry time precedes the exit recorded on the plate's latest receipt"""

    def __init__(self, plate: str, entry_time, last_exit_time):
        ParkingError.__init__(
            self,
            f"Entry time {entry_time.isoformat()} for {plate} is before its "
            f"last exit at {last_exit_time.isoformat()}"
        )
        self.plate = plate
        self.entry_time = entry_time
        self.exit_time = last_exit_time


# ============================================================================
# INPUT / CONFIGURATION ERRORS
# ============================================================================

class UnknownCategoryError(ParkingError, ValueError):
    """Category is not a spot category or has no rate"""
    code = ErrorCode.UNKNOWN_CATEGORY

    def __init__(self, category):
        super().__init__(f"Unknown spot category: {category!r}")
        self.category = category


class InvalidHourError(ParkingError, ValueError):
    """Hour of day outside 0-23"""
    code = ErrorCode.INVALID_HOUR

    def __init__(self, hour):
        super().__init__(f"Hour must be in range 0-23, got: {hour!r}")
        self.hour = hour


class InvalidPlateError(ParkingError, ValueError):
    """License plate is empty or not a string"""
    code = ErrorCode.INVALID_PLATE

    def __init__(self, plate):
        super().__init__(f"License plate cannot be empty: {plate!r}")
        self.plate = plate


# ============================================================================
# INVARIANT VIOLATIONS
# ============================================================================

class InvariantViolation(ParkingError):
    """Internal consistency failure between registry, tracker and ledger"""


class UnknownSpotError(InvariantViolation, LookupError):
    code = ErrorCode.UNKNOWN_SPOT

    def __init__(self, spot_id):
        super().__init__(f"Spot {spot_id!r} not found")
        self.spot_id = spot_id


class SpotNotOccupiedError(InvariantViolation):
    code = ErrorCode.SPOT_NOT_OCCUPIED

    def __init__(self, spot_id: int):
        super().__init__(f"Spot {spot_id} is not occupied")
        self.spot_id = spot_id


class SpotOccupiedError(InvariantViolation):
    code = ErrorCode.SPOT_OCCUPIED

    def __init__(self, spot_id: int, plate: str):
        super().__init__(f"Spot {spot_id} is already held by vehicle {plate}")
        self.spot_id = spot_id
        self.plate = plate
