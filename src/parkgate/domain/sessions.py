# File: src/parkgate/domain/sessions.py
"""
Session Tracker

Owns the active sessions, keyed by plate, with a reverse index by spot.
Per plate the only transitions are NoSession -> Active (start) and
Active -> NoSession (end). Like SpotRegistry it relies on ParkingFacility
for mutual exclusion.
"""

from datetime import datetime
from typing import Dict, List, Optional
import logging

from .errors import (
    DuplicateSessionError, InvalidTimestampError,
    SpotOccupiedError, UnknownSessionError
)
from .models import LicensePlate, ParkingSession


class SessionTracker:
    """Active sessions: at most one per plate and one per spot"""

    def __init__(self):
        self._logger = logging.getLogger(self.__class__.__name__)
        self._by_plate: Dict[str, ParkingSession] = {}
        self._by_spot: Dict[int, str] = {}

    def start(self, plate: str, spot_id: int, entry_time: datetime) -> ParkingSession:
        """
        Open a session for the plate on the given spot
        Raises: DuplicateSessionError if the plate is already active,
                SpotOccupiedError if another session holds the spot
        """
        plate = LicensePlate.of(plate).value

        existing = self._by_plate.get(plate)
        if existing is not None:
            raise DuplicateSessionError(plate, existing.spot_id)

        holder = self._by_spot.get(spot_id)
        if holder is not None:
            raise SpotOccupiedError(spot_id, holder)

        session = ParkingSession(plate=plate, spot_id=spot_id, entry_time=entry_time)
        self._by_plate[plate] = session
        self._by_spot[spot_id] = plate

        self._logger.debug(f"Session started: {plate} -> spot {spot_id}")
        return session

    def end(self, plate: str, exit_time: datetime) -> ParkingSession:
        """
        Close and remove the plate's session
        Returns: the removed session
        Raises: UnknownSessionError if the plate is not parked,
                InvalidTimestampError if exit_time precedes entry (session kept)
        """
        plate = LicensePlate.of(plate).value

        session = self._by_plate.get(plate)
        if session is None:
            raise UnknownSessionError(plate)

        if exit_time < session.entry_time:
            raise InvalidTimestampError(plate, session.entry_time, exit_time)

        del self._by_plate[plate]
        del self._by_spot[session.spot_id]

        self._logger.debug(f"Session ended: {plate} left spot {session.spot_id}")
        return session

    # ========================================================================
    # QUERIES
    # ========================================================================

    def get(self, plate: str) -> Optional[ParkingSession]:
        return self._by_plate.get(LicensePlate.of(plate).value)

    def is_active(self, plate: str) -> bool:
        return self.get(plate) is not None

    def session_for_spot(self, spot_id: int) -> Optional[ParkingSession]:
        plate = self._by_spot.get(spot_id)
        if plate is None:
            return None
        return self._by_plate[plate]

    def active_sessions(self) -> List[ParkingSession]:
        """Active sessions ordered by spot id"""
        return sorted(self._by_plate.values(), key=lambda s: s.spot_id)

    def referenced_spot_ids(self) -> List[int]:
        return sorted(self._by_spot)

    def __len__(self) -> int:
        return len(self._by_plate)

    def __contains__(self, plate: object) -> bool:
        return isinstance(plate, str) and plate.strip().upper() in self._by_plate
