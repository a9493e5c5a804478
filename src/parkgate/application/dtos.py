# File: src/parkgate/application/dtos.py
"""
Data Transfer Objects for reporting consumers

Output DTOs built from domain objects for report formatters, HTTP handlers
or any other outward-facing collaborator. No business logic, only data and
serialization.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional
import json

from pydantic import BaseModel, ConfigDict, Field

from ..domain.models import Receipt, SpotCategory


# ============================================================================
# BASE DTO
# ============================================================================

class BaseDTO(BaseModel):
    """Base DTO with common functionality"""

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        use_enum_values=True,
        frozen=True,
    )

    def to_dict(self, exclude_none: bool = False, **kwargs) -> Dict[str, Any]:
        return self.model_dump(exclude_none=exclude_none, **kwargs)

    def to_json(self, **kwargs) -> str:
        return self.model_dump_json(**kwargs)

    @classmethod
    def from_json(cls, json_str: str) -> 'BaseDTO':
        return cls(**json.loads(json_str))


class MoneyDTO(BaseDTO):
    amount: Decimal = Field(ge=0, description="Amount")
    currency: str = Field(default="USD", min_length=3, max_length=3)


# ============================================================================
# RECEIPTS
# ============================================================================

class ReceiptDTO(BaseDTO):
    """Completed session as seen by reporting"""
    receipt_id: str
    plate: str
    spot_id: int
    category: SpotCategory
    entry_time: datetime
    exit_time: datetime
    duration_seconds: float = Field(ge=0)
    billed_hours: int = Field(ge=0)
    cost: MoneyDTO

    @classmethod
    def from_receipt(cls, receipt: Receipt) -> 'ReceiptDTO':
        return cls(
            receipt_id=receipt.receipt_id,
            plate=receipt.plate,
            spot_id=receipt.spot_id,
            category=receipt.category,
            entry_time=receipt.entry_time,
            exit_time=receipt.exit_time,
            duration_seconds=receipt.duration_seconds,
            billed_hours=receipt.billed_hours,
            cost=MoneyDTO(amount=receipt.cost.amount, currency=receipt.cost.currency),
        )


# ============================================================================
# STATUS AND TRAFFIC
# ============================================================================

class CategoryStatusDTO(BaseDTO):
    category: SpotCategory
    total: int = Field(ge=0)
    occupied: int = Field(ge=0)
    free: int = Field(ge=0)
    hourly_rate: MoneyDTO


class FacilityStatusDTO(BaseDTO):
    """Point-in-time occupancy summary"""
    total_spots: int = Field(ge=0)
    occupied_spots: int = Field(ge=0)
    free_spots: int = Field(ge=0)
    occupancy_rate: float = Field(ge=0, le=100, description="Percentage of occupied spots")
    active_sessions: int = Field(ge=0)
    by_category: List[CategoryStatusDTO]
    completed_sessions: int = Field(ge=0)
    total_revenue: MoneyDTO
    min_charge: MoneyDTO
    timestamp: datetime


class TrafficReportDTO(BaseDTO):
    """Entries per hour of day"""
    hourly_counts: Dict[int, int]
    total_entries: int = Field(ge=0)
    peak_hour: Optional[int] = Field(default=None, ge=0, le=23)

    @classmethod
    def from_snapshot(cls, snapshot: Mapping[int, int], peak_hour: Optional[int]) -> 'TrafficReportDTO':
        counts = dict(snapshot)
        return cls(hourly_counts=counts, total_entries=sum(counts.values()), peak_hour=peak_hour)
