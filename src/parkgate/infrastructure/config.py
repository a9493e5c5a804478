# File: src/parkgate/infrastructure/config.py
"""
Startup configuration for a parking facility

The facility core never reads files. This loader validates the spot layout,
rate table and minimum charge with pydantic and hands them to the factory.

Example JSON:

    {
        "currency": "USD",
        "min_charge": "5.00",
        "rates": {"regular": "5.00", "vip": "12.00", "disabled": "3.00"},
        "spots": [{"id": 1, "category": "disabled"}, {"id": 3, "category": "regular"}]
    }
"""

from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, List, Union
import json

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..domain.models import SpotCategory


class SpotConfig(BaseModel):
    """One entry of the static spot layout"""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    spot_id: int = Field(alias="id", ge=0, description="Unique non-negative spot identifier")
    category: SpotCategory

    @field_validator('category', mode='before')
    @classmethod
    def parse_category(cls, v):
        return SpotCategory.parse(v).value


class FacilityConfig(BaseModel):
    """Spot inventory, hourly rates and minimum charge"""
    model_config = ConfigDict(frozen=True)

    spots: List[SpotConfig] = Field(min_length=1)
    rates: Dict[SpotCategory, Decimal]
    min_charge: Decimal = Field(ge=0)
    currency: str = Field(default="USD", min_length=3, max_length=3)
    ledger_shards: int = Field(default=16, ge=1)

    @field_validator('rates', mode='before')
    @classmethod
    def parse_rate_categories(cls, v):
        if not isinstance(v, dict):
            raise ValueError("rates must be a mapping of category to hourly price")
        return {SpotCategory.parse(category).value: rate for category, rate in v.items()}

    @field_validator('rates')
    @classmethod
    def validate_rates(cls, v):
        negative = [category.value for category, rate in v.items() if rate < 0]
        if negative:
            raise ValueError(f"Hourly rates cannot be negative: {negative}")
        return v

    @field_validator('currency')
    @classmethod
    def normalize_currency(cls, v):
        return v.upper()

    @model_validator(mode='after')
    def validate_layout(self) -> 'FacilityConfig':
        seen = set()
        duplicates = set()
        for spot in self.spots:
            if spot.spot_id in seen:
                duplicates.add(spot.spot_id)
            seen.add(spot.spot_id)
        if duplicates:
            raise ValueError(f"Duplicate spot ids: {sorted(duplicates)}")

        unpriced = {spot.category for spot in self.spots} - set(self.rates)
        if unpriced:
            raise ValueError(f"No rate for categories: {sorted(c.value for c in unpriced)}")
        return self

    def layout(self) -> List[tuple]:
        return [(spot.spot_id, spot.category) for spot in self.spots]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'FacilityConfig':
        return cls.model_validate(data)

    @classmethod
    def from_json(cls, json_str: str) -> 'FacilityConfig':
        return cls.model_validate_json(json_str)

    @classmethod
    def from_json_file(cls, path: Union[str, Path]) -> 'FacilityConfig':
        return cls.from_json(Path(path).read_text(encoding="utf-8"))


def example_config() -> FacilityConfig:
    """
    Small demo facility: spots 1-2 disabled, 3-6 regular, 7-8 VIP
    Regular 5.00/h, VIP 12.00/h, Disabled 3.00/h, minimum charge 5.00
    """
    spots = (
        [{"id": i, "category": "disabled"} for i in (1, 2)]
        + [{"id": i, "category": "regular"} for i in (3, 4, 5, 6)]
        + [{"id": i, "category": "vip"} for i in (7, 8)]
    )
    return FacilityConfig.from_dict({
        "spots": spots,
        "rates": {"regular": "5.00", "vip": "12.00", "disabled": "3.00"},
        "min_charge": "5.00",
    })
