"""Payments bounded context: gateway checkout and payment settlement.

Owns one Payment per checkout attempt, drives the gateway handshake, consumes
the gateway's transaction callbacks and relays each settled outcome to the
orders service.
"""

import structlog
from protean.domain import Domain

payments = Domain(name="payments")

logger = structlog.get_logger(__name__)
