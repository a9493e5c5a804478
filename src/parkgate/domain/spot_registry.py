# File: src/parkgate/domain/spot_registry.py
"""
Spot Registry

Owns the fixed spot inventory and its free/occupied state. Allocation is
deterministic: the lowest free identifier of the requested category wins.

The registry does not lock. ParkingFacility serializes every call together
with the SessionTracker so that allocation and session bookkeeping appear
atomic.
"""

from typing import Dict, Iterable, List, Optional, Tuple
import logging

from .errors import SpotNotOccupiedError, SpotUnavailableError, UnknownSpotError
from .models import Spot, SpotCategory


class SpotRegistry:
    """Inventory of spots with lowest-id-first allocation"""

    def __init__(self, layout: Iterable[Tuple[int, SpotCategory]]):
        """
        Build the registry from a static layout

        Args:
            layout: (spot_id, category) pairs; ids must be unique non-negative integers

        Raises: ValueError on duplicate or negative ids
        """
        self._logger = logging.getLogger(self.__class__.__name__)
        self._spots: Dict[int, Spot] = {}
        self._by_category: Dict[SpotCategory, List[int]] = {
            category: [] for category in SpotCategory
        }

        for spot_id, category in layout:
            spot = Spot(spot_id, category)
            if spot.spot_id in self._spots:
                raise ValueError(f"Duplicate spot id in layout: {spot.spot_id}")
            self._spots[spot.spot_id] = spot
            self._by_category[spot.category].append(spot.spot_id)

        for ids in self._by_category.values():
            ids.sort()

        self._logger.debug(f"Initialized {len(self._spots)} spots")

    # ========================================================================
    # COMMANDS
    # ========================================================================

    def allocate(self, category: SpotCategory) -> int:
        """
        Occupy the lowest-numbered free spot of the category
        Returns: spot id
        Raises: SpotUnavailableError if every spot of the category is taken
        """
        category = SpotCategory.parse(category)
        for spot_id in self._by_category[category]:
            spot = self._spots[spot_id]
            if not spot.is_occupied:
                spot.is_occupied = True
                self._logger.debug(f"Allocated spot {spot_id} ({category})")
                return spot_id

        raise SpotUnavailableError(category)

    def release(self, spot_id: int) -> None:
        """
        Mark a spot free again
        Raises: UnknownSpotError, SpotNotOccupiedError
        """
        spot = self._spots.get(spot_id)
        if spot is None:
            raise UnknownSpotError(spot_id)
        if not spot.is_occupied:
            raise SpotNotOccupiedError(spot_id)

        spot.is_occupied = False
        self._logger.debug(f"Released spot {spot_id}")

    # ========================================================================
    # QUERIES
    # ========================================================================

    def get(self, spot_id: int) -> Optional[Spot]:
        return self._spots.get(spot_id)

    def category_of(self, spot_id: int) -> SpotCategory:
        spot = self._spots.get(spot_id)
        if spot is None:
            raise UnknownSpotError(spot_id)
        return spot.category

    def spots(self) -> List[Spot]:
        """All spots in ascending id order"""
        return [self._spots[spot_id] for spot_id in sorted(self._spots)]

    def categories(self) -> List[SpotCategory]:
        """Categories that have at least one spot"""
        return [category for category, ids in self._by_category.items() if ids]

    def free_spot_ids(self) -> List[int]:
        return sorted(i for i, spot in self._spots.items() if not spot.is_occupied)

    def occupied_spot_ids(self) -> List[int]:
        return sorted(i for i, spot in self._spots.items() if spot.is_occupied)

    def count_by_category(self, category: SpotCategory) -> Dict[str, int]:
        ids = self._by_category[SpotCategory.parse(category)]
        occupied = sum(1 for spot_id in ids if self._spots[spot_id].is_occupied)
        return {"total": len(ids), "occupied": occupied, "free": len(ids) - occupied}

    @property
    def total_spots(self) -> int:
        return len(self._spots)

    def __contains__(self, spot_id: object) -> bool:
        return spot_id in self._spots

    def __len__(self) -> int:
        return len(self._spots)
