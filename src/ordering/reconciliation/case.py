"""ReconciliationCase aggregate: the operator work queue.

Committed stock is never rolled back automatically. When a paid order cannot
be fulfilled as charged, a case records what happened per item and stays
open until an operator settles it by hand (restock, refund, or both).
"""

import json
from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import DateTime, Identifier, String, Text

from ordering.domain import ordering


class CaseKind(Enum):
    STOCK_COMMIT_FAILED = "stock_commit_failed"
    REFUND_RESTOCK = "refund_restock"


class CaseStatus(Enum):
    OPEN = "open"
    RESOLVED = "resolved"


@ordering.aggregate
class ReconciliationCase:
    order_id = Identifier(required=True)
    kind = String(choices=CaseKind, required=True)
    status = String(choices=CaseStatus, default=CaseStatus.OPEN.value)
    details = Text()  # JSON
    opened_at = DateTime()
    resolved_at = DateTime()
    resolution = String(max_length=1000)
    resolved_by = Identifier()

    @classmethod
    def open(cls, order_id, kind: CaseKind, details: dict):
        return cls(
            order_id=order_id,
            kind=kind.value,
            status=CaseStatus.OPEN.value,
            details=json.dumps(details),
            opened_at=datetime.now(UTC),
        )

    @property
    def is_open(self) -> bool:
        return self.status == CaseStatus.OPEN.value

    def resolve(self, resolution: str, resolved_by) -> None:
        if not self.is_open:
            raise ValidationError({"status": ["Case is already resolved"]})
        if not resolution:
            raise ValidationError({"resolution": ["A resolution note is required"]})
        self.status = CaseStatus.RESOLVED.value
        self.resolution = resolution
        self.resolved_by = resolved_by
        self.resolved_at = datetime.now(UTC)

    def to_response(self) -> dict:
        return {
            "id": str(self.id),
            "order_id": str(self.order_id),
            "kind": self.kind,
            "status": self.status,
            "details": json.loads(self.details) if self.details else {},
            "opened_at": self.opened_at.isoformat() if self.opened_at else None,
            "resolved_at": self.resolved_at.isoformat() if self.resolved_at else None,
            "resolution": self.resolution,
            "resolved_by": str(self.resolved_by) if self.resolved_by else None,
        }
