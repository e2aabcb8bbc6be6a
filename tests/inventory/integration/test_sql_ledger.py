"""SQL stock ledger against a SQLite file."""

import threading

import pytest
from inventory.ledger.sql_adapter import SqlStockLedger
from shared.database import create_tables, drop_tables
from shared.errors import InsufficientStock, StockNotFound


@pytest.fixture
def sql_ledger(tmp_path):
    uri = f"sqlite:///{tmp_path / 'ledger.db'}"
    create_tables(uri)
    ledger = SqlStockLedger(uri)
    ledger.open("p1", 5, 2)
    yield ledger
    drop_tables(uri)


class TestSqlLedger:
    def test_conditional_decrement(self, sql_ledger):
        level = sql_ledger.decrease("p1", 4)
        assert level.quantity == 1
        assert level.is_low_stock

    def test_insufficient_stock_does_not_mutate(self, sql_ledger):
        with pytest.raises(InsufficientStock) as exc_info:
            sql_ledger.decrease("p1", 6)
        assert exc_info.value.details["available"] == 5
        assert sql_ledger.level("p1").quantity == 5

    def test_unknown_product(self, sql_ledger):
        with pytest.raises(StockNotFound):
            sql_ledger.decrease("missing", 1)

    def test_idempotency_key_is_recorded(self, sql_ledger):
        sql_ledger.decrease("p1", 2, idempotency_key="o1:i1")
        replay = sql_ledger.decrease("p1", 2, idempotency_key="o1:i1")
        assert replay.quantity == 3
        assert sql_ledger.level("p1").quantity == 3

    def test_low_stock(self, sql_ledger):
        sql_ledger.open("p2", 100, 10)
        sql_ledger.decrease("p1", 3)
        assert [level.product_id for level in sql_ledger.low_stock()] == ["p1"]

    def test_concurrent_decrements_never_oversell(self, sql_ledger):
        successes = []
        lock = threading.Lock()

        def worker():
            try:
                sql_ledger.decrease("p1", 1)
            except InsufficientStock:
                return
            with lock:
                successes.append(1)

        threads = [threading.Thread(target=worker) for _ in range(10)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(successes) == 5
        assert sql_ledger.level("p1").quantity == 0
