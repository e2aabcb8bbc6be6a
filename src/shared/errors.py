"""Error taxonomy shared across services and its HTTP mapping.

Input and state violations are Protean ``ValidationError`` (400) and missing
aggregates are ``ObjectNotFoundError`` (404); both are mapped by Protean's own
FastAPI handlers. The classes below cover what crosses service boundaries.
"""

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from protean.integrations.fastapi import register_exception_handlers as register_protean_handlers

logger = structlog.get_logger(__name__)


class OrderFlowError(Exception):
    """Base class for errors that map onto a fixed HTTP status."""

    status_code = 500

    def __init__(self, message: str, **details) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict:
        body = {"message": self.message}
        if self.details:
            body["details"] = self.details
        return body


class AuthenticationRequired(OrderFlowError):
    status_code = 401


class AuthorizationError(OrderFlowError):
    """Caller is neither the owner nor holds the role the operation requires."""

    status_code = 403


class NotFoundError(OrderFlowError):
    """A referenced record does not exist in a collaborator's store."""

    status_code = 404


class UpstreamUnavailable(OrderFlowError):
    """A collaborator could not be reached after bounded retries.

    The status code is chosen by the raiser: order creation reports it as a
    client-visible 400, everything else as 500.
    """

    def __init__(self, message: str, status_code: int = 500, **details) -> None:
        super().__init__(message, **details)
        self.status_code = status_code


class InsufficientStock(OrderFlowError):
    status_code = 400


class StockNotFound(NotFoundError):
    pass


class ReconciliationRequired(OrderFlowError):
    """An operator must close the open reconciliation case first."""

    status_code = 409


async def _orderflow_error_handler(request: Request, exc: OrderFlowError) -> JSONResponse:
    logger.info("request_rejected", path=request.url.path, status_code=exc.status_code, reason=exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def _unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    # Internals stay in the logs; callers get a generic body.
    logger.exception("unhandled_error", path=request.url.path, error_type=type(exc).__name__)
    return JSONResponse(status_code=500, content={"message": "Internal server error"})


def register_exception_handlers(app: FastAPI) -> None:
    """Install Protean's handlers plus the cross-service error mapping on ``app``."""
    register_protean_handlers(app)
    app.add_exception_handler(OrderFlowError, _orderflow_error_handler)
    app.add_exception_handler(Exception, _unexpected_error_handler)
