"""Stock ledger factory.

``get_ledger()`` returns the SQL ledger when DATABASE_URL is configured and an
in-memory ledger otherwise; ``set_ledger()`` swaps it (tests, tooling).
"""

from shared.settings import get_settings

from inventory.ledger.memory_adapter import MemoryStockLedger
from inventory.ledger.port import StockLedger, StockLevel
from inventory.ledger.sql_adapter import SqlStockLedger

__all__ = ["StockLedger", "StockLevel", "get_ledger", "set_ledger", "reset_ledger"]

_current_ledger: StockLedger | None = None


def get_ledger() -> StockLedger:
    global _current_ledger
    if _current_ledger is None:
        database_url = get_settings().database_url
        _current_ledger = SqlStockLedger(database_url) if database_url else MemoryStockLedger()
    return _current_ledger


def set_ledger(ledger: StockLedger) -> None:
    global _current_ledger
    _current_ledger = ledger


def reset_ledger() -> None:
    global _current_ledger
    _current_ledger = None
