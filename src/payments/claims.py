"""Callback claims: the single atomic step that settles a payment.

Before a pending payment is moved to a terminal status, the callback handler
claims the gateway order id. Exactly one claim per id succeeds, no matter how
many duplicate callbacks arrive concurrently. A claim whose settlement fails
is released, so the next delivery of the callback can settle the payment.
"""

import threading
from abc import ABC, abstractmethod
from datetime import UTC, datetime

from shared.database import engine_for, metadata
from shared.settings import get_settings
from sqlalchemy import Column, DateTime, String, Table, delete, insert
from sqlalchemy.exc import IntegrityError

payment_callback_claims = Table(
    "payment_callback_claims",
    metadata,
    Column("gateway_order_id", String(255), primary_key=True),
    Column("transaction_id", String(255)),
    Column("claimed_at", DateTime(timezone=True)),
)


class ClaimStore(ABC):
    @abstractmethod
    def claim(self, gateway_order_id: str, transaction_id: str | None = None) -> bool:
        """Return True for the first caller only."""
        ...

    @abstractmethod
    def release(self, gateway_order_id: str) -> None:
        """Drop a claim so the gateway order id can be claimed again."""
        ...


class MemoryClaimStore(ClaimStore):
    def __init__(self) -> None:
        self._claimed: dict[str, str | None] = {}
        self._lock = threading.Lock()

    def claim(self, gateway_order_id: str, transaction_id: str | None = None) -> bool:
        with self._lock:
            if gateway_order_id in self._claimed:
                return False
            self._claimed[gateway_order_id] = transaction_id
            return True

    def release(self, gateway_order_id: str) -> None:
        with self._lock:
            self._claimed.pop(gateway_order_id, None)


class SqlClaimStore(ClaimStore):
    def __init__(self, database_uri: str) -> None:
        self.engine = engine_for(database_uri)

    def claim(self, gateway_order_id: str, transaction_id: str | None = None) -> bool:
        try:
            with self.engine.begin() as conn:
                conn.execute(
                    insert(payment_callback_claims).values(
                        gateway_order_id=gateway_order_id,
                        transaction_id=transaction_id,
                        claimed_at=datetime.now(UTC),
                    )
                )
        except IntegrityError:
            return False
        return True

    def release(self, gateway_order_id: str) -> None:
        with self.engine.begin() as conn:
            conn.execute(
                delete(payment_callback_claims).where(payment_callback_claims.c.gateway_order_id == gateway_order_id)
            )


_current_store: ClaimStore | None = None


def get_claim_store() -> ClaimStore:
    global _current_store
    if _current_store is None:
        database_url = get_settings().database_url
        _current_store = SqlClaimStore(database_url) if database_url else MemoryClaimStore()
    return _current_store


def set_claim_store(store: ClaimStore) -> None:
    global _current_store
    _current_store = store


def reset_claim_store() -> None:
    global _current_store
    _current_store = None
