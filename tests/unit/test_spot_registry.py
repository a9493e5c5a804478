#!/usr/bin/env python3
"""
SpotRegistry Unit Tests
"""

import unittest

from parkgate.domain.errors import (
    SpotNotOccupiedError, SpotUnavailableError, UnknownCategoryError, UnknownSpotError
)
from parkgate.domain.models import SpotCategory
from parkgate.domain.spot_registry import SpotRegistry


class TestSpotRegistry(unittest.TestCase):
    """Allocation, release and inventory queries"""

    def setUp(self):
        # Deliberately unsorted layout
        self.registry = SpotRegistry([
            (5, SpotCategory.REGULAR),
            (1, SpotCategory.DISABLED),
            (3, SpotCategory.REGULAR),
            (4, SpotCategory.REGULAR),
            (7, SpotCategory.VIP),
        ])

    def test_allocates_lowest_free_id_of_category(self):
        self.assertEqual(self.registry.allocate(SpotCategory.REGULAR), 3)
        self.assertEqual(self.registry.allocate(SpotCategory.REGULAR), 4)
        self.assertEqual(self.registry.allocate(SpotCategory.REGULAR), 5)
        self.assertEqual(self.registry.allocate(SpotCategory.VIP), 7)

    def test_released_spot_is_reused_first(self):
        for _ in range(3):
            self.registry.allocate(SpotCategory.REGULAR)
        self.registry.release(4)
        self.assertEqual(self.registry.allocate(SpotCategory.REGULAR), 4)

    def test_exhausted_category_raises(self):
        self.registry.allocate(SpotCategory.VIP)
        with self.assertRaises(SpotUnavailableError) as ctx:
            self.registry.allocate(SpotCategory.VIP)
        self.assertEqual(ctx.exception.category, SpotCategory.VIP)
        # other categories are unaffected
        self.assertEqual(self.registry.allocate(SpotCategory.DISABLED), 1)

    def test_failed_allocation_changes_nothing(self):
        self.registry.allocate(SpotCategory.VIP)
        before = self.registry.occupied_spot_ids()
        with self.assertRaises(SpotUnavailableError):
            self.registry.allocate(SpotCategory.VIP)
        self.assertEqual(self.registry.occupied_spot_ids(), before)

    def test_allocate_accepts_category_names(self):
        self.assertEqual(self.registry.allocate("vip"), 7)
        with self.assertRaises(UnknownCategoryError):
            self.registry.allocate("premium")

    def test_release_unknown_spot(self):
        with self.assertRaises(UnknownSpotError):
            self.registry.release(99)

    def test_double_release_detected(self):
        spot_id = self.registry.allocate(SpotCategory.REGULAR)
        self.registry.release(spot_id)
        with self.assertRaises(SpotNotOccupiedError):
            self.registry.release(spot_id)

    def test_duplicate_ids_rejected(self):
        with self.assertRaises(ValueError):
            SpotRegistry([(1, SpotCategory.REGULAR), (1, SpotCategory.VIP)])

    def test_negative_ids_rejected(self):
        with self.assertRaises(ValueError):
            SpotRegistry([(-1, SpotCategory.REGULAR)])

    def test_free_and_occupied_partition_inventory(self):
        self.registry.allocate(SpotCategory.REGULAR)
        self.registry.allocate(SpotCategory.VIP)
        free = set(self.registry.free_spot_ids())
        occupied = set(self.registry.occupied_spot_ids())
        self.assertFalse(free & occupied)
        self.assertEqual(free | occupied, {1, 3, 4, 5, 7})

    def test_queries(self):
        self.assertEqual([s.spot_id for s in self.registry.spots()], [1, 3, 4, 5, 7])
        self.assertEqual(self.registry.category_of(7), SpotCategory.VIP)
        self.assertEqual(len(self.registry), 5)
        self.assertIn(3, self.registry)
        self.assertNotIn(2, self.registry)
        self.assertIsNone(self.registry.get(2))

        self.registry.allocate(SpotCategory.REGULAR)
        self.assertEqual(
            self.registry.count_by_category(SpotCategory.REGULAR),
            {"total": 3, "occupied": 1, "free": 2}
        )

    def test_categories_without_spots_are_not_listed(self):
        registry = SpotRegistry([(1, SpotCategory.REGULAR)])
        self.assertEqual(registry.categories(), [SpotCategory.REGULAR])
        with self.assertRaises(SpotUnavailableError):
            registry.allocate(SpotCategory.VIP)


if __name__ == '__main__':
    unittest.main()
