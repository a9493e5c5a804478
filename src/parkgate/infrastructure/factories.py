# File: src/parkgate/infrastructure/factories.py
"""
Factories that wire a ParkingFacility from configuration

FacilityFactory builds the domain components from a validated
FacilityConfig. FacilityBuilder offers a fluent alternative for tests and
embedding code that assemble a layout programmatically.
"""

from decimal import Decimal
from typing import List, Optional, Tuple, Union
import logging

from ..application.facility import ParkingFacility
from ..domain.billing import BillingEngine, RateTable
from ..domain.ledger import ReceiptLedger
from ..domain.models import SpotCategory
from ..domain.spot_registry import SpotRegistry
from .config import FacilityConfig
from .messaging import EventBus


logger = logging.getLogger(__name__)


class FacilityFactory:
    """Creates facilities from FacilityConfig"""

    @staticmethod
    def create(config: FacilityConfig, event_bus: Optional[EventBus] = None) -> ParkingFacility:
        rates = RateTable(config.rates, currency=config.currency)
        billing = BillingEngine(rates, config.min_charge)
        facility = ParkingFacility(
            spots=SpotRegistry(config.layout()),
            billing=billing,
            ledger=ReceiptLedger(num_shards=config.ledger_shards, currency=config.currency),
            event_bus=event_bus,
        )
        logger.debug(f"Created facility from config: {rates!r}, min charge {billing.min_charge.format()}")
        return facility

    @staticmethod
    def from_json_file(path, event_bus: Optional[EventBus] = None) -> ParkingFacility:
        return FacilityFactory.create(FacilityConfig.from_json_file(path), event_bus)


class FacilityBuilder:
    """
    Fluent builder for facilities

        facility = (FacilityBuilder()
                    .with_spots(SpotCategory.REGULAR, 3, 4, 5)
                    .with_rate(SpotCategory.REGULAR, "5.00")
                    .with_min_charge("5.00")
                    .build())
    """

    def __init__(self):
        self._layout: List[Tuple[int, SpotCategory]] = []
        self._rates = {}
        self._min_charge = Decimal('0.00')
        self._currency = "USD"
        self._event_bus: Optional[EventBus] = None

    def with_spots(self, category: Union[str, SpotCategory], *spot_ids: int) -> 'FacilityBuilder':
        category = SpotCategory.parse(category)
        self._layout.extend((spot_id, category) for spot_id in spot_ids)
        return self

    def with_rate(self, category: Union[str, SpotCategory], hourly_rate) -> 'FacilityBuilder':
        self._rates[SpotCategory.parse(category)] = Decimal(str(hourly_rate))
        return self

    def with_min_charge(self, amount) -> 'FacilityBuilder':
        self._min_charge = Decimal(str(amount))
        return self

    def with_currency(self, currency: str) -> 'FacilityBuilder':
        self._currency = currency
        return self

    def with_event_bus(self, event_bus: EventBus) -> 'FacilityBuilder':
        self._event_bus = event_bus
        return self

    def build(self) -> ParkingFacility:
        """Raises: ValueError on duplicate spot ids, UnknownCategoryError on unpriced categories"""
        billing = BillingEngine(RateTable(self._rates, currency=self._currency), self._min_charge)
        return ParkingFacility(
            spots=SpotRegistry(self._layout),
            billing=billing,
            event_bus=self._event_bus,
        )
