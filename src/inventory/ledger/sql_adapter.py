"""SQL-backed stock ledger (SQLAlchemy Core).

Decrements are one conditional ``UPDATE ... WHERE quantity >= :q``; the
database's row lock is the only serialization point. Idempotency keys live in
``stock_movements`` under a primary key, written in the same transaction as
the quantity change, so a replayed key can never apply twice.
"""

from datetime import UTC, datetime

from shared.database import engine_for, metadata
from shared.errors import InsufficientStock, StockNotFound
from sqlalchemy import CheckConstraint, Column, DateTime, Integer, String, Table, insert, select, update
from sqlalchemy.exc import IntegrityError

from inventory.ledger.port import StockLedger, StockLevel

stock_records = Table(
    "stock_records",
    metadata,
    Column("product_id", String(64), primary_key=True),
    Column("quantity", Integer, nullable=False),
    Column("low_stock_threshold", Integer, nullable=False, default=10),
    Column("updated_at", DateTime(timezone=True)),
    CheckConstraint("quantity >= 0", name="ck_stock_records_quantity_non_negative"),
)

stock_movements = Table(
    "stock_movements",
    metadata,
    Column("idempotency_key", String(255), primary_key=True),
    Column("product_id", String(64), nullable=False),
    Column("delta", Integer, nullable=False),
    Column("resulting_quantity", Integer, nullable=False),
    Column("low_stock_threshold", Integer, nullable=False),
    Column("created_at", DateTime(timezone=True)),
)


class SqlStockLedger(StockLedger):
    def __init__(self, database_uri: str) -> None:
        self.engine = engine_for(database_uri)

    def open(self, product_id: str, quantity: int, low_stock_threshold: int) -> StockLevel:
        with self.engine.begin() as conn:
            conn.execute(
                insert(stock_records).values(
                    product_id=str(product_id),
                    quantity=quantity,
                    low_stock_threshold=low_stock_threshold,
                    updated_at=datetime.now(UTC),
                )
            )
        return StockLevel(str(product_id), quantity, low_stock_threshold)

    def level(self, product_id: str) -> StockLevel:
        with self.engine.connect() as conn:
            row = conn.execute(select(stock_records).where(stock_records.c.product_id == str(product_id))).first()
        if row is None:
            raise StockNotFound("Product not found", product_id=str(product_id))
        return StockLevel(row.product_id, row.quantity, row.low_stock_threshold)

    def decrease(self, product_id: str, quantity: int, idempotency_key: str | None = None) -> StockLevel:
        return self._apply(str(product_id), -quantity, idempotency_key)

    def increase(self, product_id: str, quantity: int, idempotency_key: str | None = None) -> StockLevel:
        return self._apply(str(product_id), quantity, idempotency_key)

    def low_stock(self) -> list[StockLevel]:
        query = select(stock_records).where(stock_records.c.quantity <= stock_records.c.low_stock_threshold)
        with self.engine.connect() as conn:
            rows = conn.execute(query).all()
        return [StockLevel(row.product_id, row.quantity, row.low_stock_threshold) for row in rows]

    def _recorded(self, idempotency_key: str) -> StockLevel | None:
        with self.engine.connect() as conn:
            row = conn.execute(
                select(stock_movements).where(stock_movements.c.idempotency_key == idempotency_key)
            ).first()
        if row is None:
            return None
        return StockLevel(row.product_id, row.resulting_quantity, row.low_stock_threshold)

    def _apply(self, product_id: str, delta: int, idempotency_key: str | None) -> StockLevel:
        if idempotency_key:
            recorded = self._recorded(idempotency_key)
            if recorded is not None:
                return recorded

        statement = (
            update(stock_records)
            .where(stock_records.c.product_id == product_id)
            .values(quantity=stock_records.c.quantity + delta, updated_at=datetime.now(UTC))
        )
        if delta < 0:
            statement = statement.where(stock_records.c.quantity >= -delta)

        try:
            with self.engine.begin() as conn:
                result = conn.execute(statement)
                if result.rowcount == 0:
                    row = conn.execute(
                        select(stock_records.c.quantity).where(stock_records.c.product_id == product_id)
                    ).first()
                    if row is None:
                        raise StockNotFound("Product not found", product_id=product_id)
                    raise InsufficientStock(
                        "Insufficient stock", product_id=product_id, available=row.quantity, requested=-delta
                    )

                row = conn.execute(
                    select(stock_records.c.quantity, stock_records.c.low_stock_threshold).where(
                        stock_records.c.product_id == product_id
                    )
                ).one()
                level = StockLevel(product_id, row.quantity, row.low_stock_threshold)

                if idempotency_key:
                    conn.execute(
                        insert(stock_movements).values(
                            idempotency_key=idempotency_key,
                            product_id=product_id,
                            delta=delta,
                            resulting_quantity=level.quantity,
                            low_stock_threshold=level.low_stock_threshold,
                            created_at=datetime.now(UTC),
                        )
                    )
        except IntegrityError:
            # A concurrent call with the same key committed first; our update rolled back.
            recorded = self._recorded(idempotency_key) if idempotency_key else None
            if recorded is None:
                raise
            return recorded
        return level
