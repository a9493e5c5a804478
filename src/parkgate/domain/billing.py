# File: src/parkgate/domain/billing.py
"""
Billing Engine

Stateless pricing of a completed session:

    hours = ceil(duration_seconds / 3600)
    raw   = hours * rate[category]
    cost  = max(raw, min_charge)

A started hour is billed as a full hour and the minimum charge is a floor
per session, not per hour. Instances hold only read-only data, so one engine
can be shared by any number of threads without locking.
"""

from datetime import timedelta
from decimal import Decimal
from types import MappingProxyType
from typing import Dict, Mapping, Union
import math

from .errors import UnknownCategoryError
from .models import Money, SpotCategory


SECONDS_PER_HOUR = Decimal(3600)

Duration = Union[int, float, Decimal, timedelta]


class RateTable:
    """Read-only mapping of category to price per hour"""

    def __init__(self, rates: Mapping[Union[str, SpotCategory], Union[Money, Decimal, int, float, str]],
                 currency: str = "USD"):
        table: Dict[SpotCategory, Money] = {}
        for category, rate in rates.items():
            if not isinstance(rate, Money):
                rate = Money(Decimal(str(rate)), currency)
            elif rate.currency != currency:
                raise ValueError(f"Rate for {category} is in {rate.currency}, expected {currency}")
            table[SpotCategory.parse(category)] = rate
        self._rates = MappingProxyType(table)
        self.currency = currency

    def rate_for(self, category: SpotCategory) -> Money:
        try:
            return self._rates[SpotCategory.parse(category)]
        except KeyError:
            raise UnknownCategoryError(category) from None

    def __contains__(self, category: object) -> bool:
        return category in self._rates

    def as_dict(self) -> Mapping[SpotCategory, Money]:
        return self._rates

    def __repr__(self) -> str:
        rates = ", ".join(f"{c.value}={m.amount}" for c, m in self._rates.items())
        return f"RateTable({rates} {self.currency})"


class BillingEngine:
    """Prices sessions from a rate table and a per-session minimum charge"""

    def __init__(self, rate_table: RateTable, min_charge: Union[Money, Decimal, int, float, str]):
        if not isinstance(min_charge, Money):
            min_charge = Money(Decimal(str(min_charge)), rate_table.currency)
        if min_charge.currency != rate_table.currency:
            raise ValueError("Minimum charge and rate table must share a currency")
        self._rates = rate_table
        self._min_charge = min_charge

    @property
    def min_charge(self) -> Money:
        return self._min_charge

    @property
    def rate_table(self) -> RateTable:
        return self._rates

    def supports(self, category: SpotCategory) -> bool:
        return category in self._rates

    def hourly_rate(self, category: SpotCategory) -> Money:
        """Raises: UnknownCategoryError"""
        return self._rates.rate_for(category)

    @staticmethod
    def billed_hours(duration: Duration) -> int:
        """
        Whole hours billed for a duration, partial hours rounded up
        Raises: ValueError for negative durations
        """
        if isinstance(duration, timedelta):
            seconds = Decimal(str(duration.total_seconds()))
        else:
            seconds = Decimal(str(duration))

        if seconds < 0:
            raise ValueError(f"Duration cannot be negative: {duration}")

        return math.ceil(seconds / SECONDS_PER_HOUR)

    def compute(self, category: SpotCategory, duration: Duration) -> Money:
        """
        Fee for parking `duration` (seconds or timedelta) in a spot of `category`
        Raises: UnknownCategoryError, ValueError
        """
        rate = self._rates.rate_for(category)
        raw = (rate * self.billed_hours(duration)).rounded()

        if raw < self._min_charge:
            return self._min_charge
        return raw
