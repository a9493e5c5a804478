# File: src/parkgate/domain/ledger.py
"""
Receipt Ledger

Append-only receipt history per plate, in exit order. Plates are spread
over a fixed number of lock shards, so appends and reads for different
plates rarely share a lock.
"""

from threading import Lock
from typing import Dict, List, Optional, Tuple
import logging
import zlib

from .models import Money, Receipt


class ReceiptLedger:
    """Per-plate ordered receipt history"""

    def __init__(self, num_shards: int = 16, currency: str = "USD"):
        if num_shards < 1:
            raise ValueError("Ledger needs at least one shard")
        self._logger = logging.getLogger(self.__class__.__name__)
        self._currency = currency
        self._locks = [Lock() for _ in range(num_shards)]
        self._shards: List[Dict[str, List[Receipt]]] = [{} for _ in range(num_shards)]

    def _shard_index(self, plate: str) -> int:
        # crc32 rather than hash() so shard placement is stable across runs
        return zlib.crc32(plate.encode("utf-8")) % len(self._shards)

    def append(self, receipt: Receipt) -> None:
        index = self._shard_index(receipt.plate)
        with self._locks[index]:
            self._shards[index].setdefault(receipt.plate, []).append(receipt)
        self._logger.debug(f"Recorded receipt {receipt.receipt_id} for {receipt.plate}")

    def history(self, plate: str) -> Tuple[Receipt, ...]:
        """Receipts for the plate, oldest first; empty for unknown plates"""
        plate = plate.strip().upper()
        index = self._shard_index(plate)
        with self._locks[index]:
            return tuple(self._shards[index].get(plate, ()))

    def latest(self, plate: str) -> Optional[Receipt]:
        """Most recent receipt for the plate, None if it has none"""
        plate = plate.strip().upper()
        index = self._shard_index(plate)
        with self._locks[index]:
            receipts = self._shards[index].get(plate)
            return receipts[-1] if receipts else None

    def plates(self) -> List[str]:
        plates: List[str] = []
        for lock, shard in zip(self._locks, self._shards):
            with lock:
                plates.extend(shard)
        return sorted(plates)

    def receipt_count(self) -> int:
        total = 0
        for lock, shard in zip(self._locks, self._shards):
            with lock:
                total += sum(len(receipts) for receipts in shard.values())
        return total

    def total_revenue(self) -> Money:
        total = Money.zero(self._currency)
        for lock, shard in zip(self._locks, self._shards):
            with lock:
                for receipts in shard.values():
                    for receipt in receipts:
                        total = total + receipt.cost
        return total
