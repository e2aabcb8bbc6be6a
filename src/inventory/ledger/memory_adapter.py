"""In-memory stock ledger for development and tests.

A single mutex plays the role of the database's row lock: the check and the
write of a decrement happen under it, so concurrent callers serialize.
"""

import threading

from shared.errors import InsufficientStock, StockNotFound

from inventory.ledger.port import StockLedger, StockLevel


class MemoryStockLedger(StockLedger):
    def __init__(self) -> None:
        self._records: dict[str, StockLevel] = {}
        self._movements: dict[str, StockLevel] = {}
        self._lock = threading.Lock()

    def open(self, product_id: str, quantity: int, low_stock_threshold: int) -> StockLevel:
        level = StockLevel(str(product_id), quantity, low_stock_threshold)
        with self._lock:
            self._records[level.product_id] = level
        return level

    def level(self, product_id: str) -> StockLevel:
        with self._lock:
            return self._get(str(product_id))

    def decrease(self, product_id: str, quantity: int, idempotency_key: str | None = None) -> StockLevel:
        return self._apply(str(product_id), -quantity, idempotency_key)

    def increase(self, product_id: str, quantity: int, idempotency_key: str | None = None) -> StockLevel:
        return self._apply(str(product_id), quantity, idempotency_key)

    def low_stock(self) -> list[StockLevel]:
        with self._lock:
            return [level for level in self._records.values() if level.is_low_stock]

    def _get(self, product_id: str) -> StockLevel:
        level = self._records.get(product_id)
        if level is None:
            raise StockNotFound("Product not found", product_id=product_id)
        return level

    def _apply(self, product_id: str, delta: int, idempotency_key: str | None) -> StockLevel:
        with self._lock:
            if idempotency_key and idempotency_key in self._movements:
                return self._movements[idempotency_key]

            current = self._get(product_id)
            if current.quantity + delta < 0:
                raise InsufficientStock(
                    "Insufficient stock",
                    product_id=product_id,
                    available=current.quantity,
                    requested=-delta,
                )

            updated = StockLevel(product_id, current.quantity + delta, current.low_stock_threshold)
            self._records[product_id] = updated
            if idempotency_key:
                self._movements[idempotency_key] = updated
            return updated
