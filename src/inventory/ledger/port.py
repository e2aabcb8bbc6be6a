"""Stock ledger port.

The ledger owns per-product quantities. Every mutation is a single atomic
conditional operation on the backing store; callers never read-then-write.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class StockLevel:
    product_id: str
    quantity: int
    low_stock_threshold: int

    @property
    def is_low_stock(self) -> bool:
        return self.quantity <= self.low_stock_threshold

    def to_dict(self) -> dict:
        return {
            "product_id": self.product_id,
            "stock_quantity": self.quantity,
            "low_stock_threshold": self.low_stock_threshold,
            "is_low_stock": self.is_low_stock,
        }


class StockLedger(ABC):
    @abstractmethod
    def open(self, product_id: str, quantity: int, low_stock_threshold: int) -> StockLevel:
        """Create the stock record for a newly registered product."""
        ...

    @abstractmethod
    def level(self, product_id: str) -> StockLevel:
        """Current level; raises ``StockNotFound`` for unknown products."""
        ...

    @abstractmethod
    def decrease(self, product_id: str, quantity: int, idempotency_key: str | None = None) -> StockLevel:
        """Subtract ``quantity`` only if at least that much is on hand.

        Raises ``StockNotFound`` or ``InsufficientStock`` and leaves the record
        untouched otherwise. Replaying an ``idempotency_key`` returns the level
        recorded by the first successful call without decrementing again.
        """
        ...

    @abstractmethod
    def increase(self, product_id: str, quantity: int, idempotency_key: str | None = None) -> StockLevel:
        ...

    @abstractmethod
    def low_stock(self) -> list[StockLevel]:
        ...
