# File: src/parkgate/infrastructure/repositories.py
"""
Receipt persistence for the parking facility

The facility core keeps receipts in memory only. This module provides the
external archive collaborator: a SQLAlchemy-backed receipt store fed by
VehicleExitedEvent through the event bus. Every write is bounded by a
database timeout and retried a fixed number of times on transient
(operational) failures.
"""

from decimal import Decimal
from threading import Lock
from typing import List, Optional
import logging
import time

from sqlalchemy import (
    DECIMAL, Column, DateTime, Float, Integer, String, create_engine, func, select
)
from sqlalchemy.engine import Engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from ..domain.models import DomainEvent, Money, Receipt, SpotCategory, VehicleExitedEvent
from .messaging import EventHandler


Base = declarative_base()


# ============================================================================
# SQLALCHEMY ORM MODELS
# ============================================================================

class ReceiptModel(Base):
    """SQLAlchemy model for Receipt"""
    __tablename__ = 'receipts'

    receipt_id = Column(String(36), primary_key=True)
    plate = Column(String(20), nullable=False, index=True)
    spot_id = Column(Integer, nullable=False)
    category = Column(String(20), nullable=False)
    entry_time = Column(DateTime, nullable=False)
    exit_time = Column(DateTime, nullable=False)
    duration_seconds = Column(Float, nullable=False)
    billed_hours = Column(Integer, nullable=False)
    cost_amount = Column(DECIMAL(10, 2), nullable=False)
    cost_currency = Column(String(3), default='USD', nullable=False)


class ReceiptMapper:
    """Maps between Receipt and ReceiptModel"""

    @staticmethod
    def to_model(receipt: Receipt) -> ReceiptModel:
        return ReceiptModel(
            receipt_id=receipt.receipt_id,
            plate=receipt.plate,
            spot_id=receipt.spot_id,
            category=receipt.category.value,
            entry_time=receipt.entry_time,
            exit_time=receipt.exit_time,
            duration_seconds=receipt.duration_seconds,
            billed_hours=receipt.billed_hours,
            cost_amount=receipt.cost.amount,
            cost_currency=receipt.cost.currency,
        )

    @staticmethod
    def to_domain(model: ReceiptModel) -> Receipt:
        return Receipt(
            plate=model.plate,
            spot_id=model.spot_id,
            category=SpotCategory.parse(model.category),
            entry_time=model.entry_time,
            exit_time=model.exit_time,
            duration=model.exit_time - model.entry_time,
            billed_hours=model.billed_hours,
            cost=Money(Decimal(model.cost_amount), model.cost_currency),
            receipt_id=model.receipt_id,
        )


def create_archive_engine(url: str = "sqlite://", timeout: float = 5.0) -> Engine:
    """
    Engine for the receipt archive with a connection/lock timeout
    In-memory SQLite shares one connection across threads.
    """
    if url.startswith("sqlite"):
        kwargs = {"connect_args": {"timeout": timeout, "check_same_thread": False}}
        if url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
    else:
        kwargs = {"pool_timeout": timeout, "pool_pre_ping": True}
    return create_engine(url, **kwargs)


# ============================================================================
# SQLALCHEMY ARCHIVE
# ============================================================================

class SQLAlchemyReceiptArchive:
    """Relational receipt store with bounded retries on transient failures"""

    def __init__(self, engine: Engine, max_attempts: int = 3, retry_delay: float = 0.1):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self._engine = engine
        self._session_factory = sessionmaker(bind=engine, expire_on_commit=False)
        self._max_attempts = max_attempts
        self._retry_delay = retry_delay
        self._lock = Lock()
        self._logger = logging.getLogger(self.__class__.__name__)

        Base.metadata.create_all(engine)

    def save(self, receipt: Receipt) -> None:
        """
        Persist a receipt
        Raises: OperationalError once all attempts failed, other SQLAlchemyError immediately
        """
        for attempt in range(1, self._max_attempts + 1):
            try:
                with self._lock, self._session_factory.begin() as session:
                    session.add(ReceiptMapper.to_model(receipt))
                self._logger.debug(f"Archived receipt {receipt.receipt_id}")
                return
            except OperationalError as e:
                if attempt == self._max_attempts:
                    self._logger.error(
                        f"Giving up on receipt {receipt.receipt_id} after {attempt} attempts: {e}"
                    )
                    raise
                self._logger.warning(
                    f"Archive write failed (attempt {attempt}/{self._max_attempts}), retrying: {e}"
                )
                time.sleep(self._retry_delay * attempt)

    def get(self, receipt_id: str) -> Optional[Receipt]:
        with self._lock, self._session_factory() as session:
            model = session.get(ReceiptModel, receipt_id)
            return ReceiptMapper.to_domain(model) if model else None

    def find_by_plate(self, plate: str) -> List[Receipt]:
        """Archived receipts for a plate ordered by exit time"""
        stmt = (
            select(ReceiptModel)
            .where(ReceiptModel.plate == plate.strip().upper())
            .order_by(ReceiptModel.exit_time, ReceiptModel.entry_time)
        )
        with self._lock, self._session_factory() as session:
            return [ReceiptMapper.to_domain(m) for m in session.scalars(stmt)]

    def count(self) -> int:
        with self._lock, self._session_factory() as session:
            return session.scalar(select(func.count()).select_from(ReceiptModel))


class ReceiptArchiveHandler(EventHandler):
    """Archives the receipt carried by each VehicleExitedEvent"""

    def __init__(self, archive: SQLAlchemyReceiptArchive):
        self.archive = archive

    def can_handle(self, event: DomainEvent) -> bool:
        return isinstance(event, VehicleExitedEvent)

    def handle(self, event: DomainEvent) -> None:
        self.archive.save(event.receipt)
