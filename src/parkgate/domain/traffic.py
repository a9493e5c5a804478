# File: src/parkgate/domain/traffic.py
"""
Traffic Aggregator

Counts entries per hour of day. All 24 buckets live behind one lock so a
snapshot is a consistent point-in-time copy.
"""

from threading import Lock
from types import MappingProxyType
from typing import Mapping, Optional
import logging

from .errors import InvalidHourError

HOURS_PER_DAY = 24


class TrafficAggregator:
    """Hour-of-day entry counters"""

    def __init__(self):
        self._logger = logging.getLogger(self.__class__.__name__)
        self._lock = Lock()
        self._counts = [0] * HOURS_PER_DAY

    @staticmethod
    def _check_hour(hour: int) -> int:
        if isinstance(hour, bool) or not isinstance(hour, int) or not 0 <= hour < HOURS_PER_DAY:
            raise InvalidHourError(hour)
        return hour

    def increment(self, hour: int) -> None:
        """Raises: InvalidHourError for hours outside 0-23"""
        self._check_hour(hour)
        with self._lock:
            self._counts[hour] += 1

    def snapshot(self) -> Mapping[int, int]:
        """Read-only hour -> count mapping covering all 24 hours"""
        with self._lock:
            counts = dict(enumerate(self._counts))
        return MappingProxyType(counts)

    def count(self, hour: int) -> int:
        self._check_hour(hour)
        with self._lock:
            return self._counts[hour]

    def total(self) -> int:
        with self._lock:
            return sum(self._counts)

    def peak_hour(self, snapshot: Optional[Mapping[int, int]] = None) -> Optional[int]:
        """
        Busiest hour (earliest on ties), None before any traffic
        Reads a fresh snapshot unless one is passed in.
        """
        if snapshot is None:
            snapshot = self.snapshot()
        busiest = max(snapshot, key=lambda hour: (snapshot[hour], -hour))
        if snapshot[busiest] == 0:
            return None
        return busiest
