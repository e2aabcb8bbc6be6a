"""Inventory bounded context: products and their stock ledger.

Product details are a regular Protean aggregate; per-product quantities live
in the stock ledger so that decrements are single atomic store operations.
"""

import structlog
from protean.domain import Domain

inventory = Domain(name="inventory")

logger = structlog.get_logger(__name__)
