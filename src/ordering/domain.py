"""Ordering bounded context: orders, their payment saga and the reconciliation queue.

Orders are plain CQRS aggregates. The checkout saga that follows a payment is
recorded on the order itself and driven by ``ordering.checkout.saga``.
"""

import structlog
from protean.domain import Domain

ordering = Domain(name="ordering")

logger = structlog.get_logger(__name__)
