"""OrderFlow FastAPI application.

Hosts the orders, payments and inventory services. One process can mount all
three or a subset selected with ``SERVICES`` (one service per deployment).
Each request is wrapped in the correct domain context based on URL prefix.

The services always talk to each other over HTTP. When all three run in one
process, point ``ORDER_SERVICE_URL``, ``PAYMENT_SERVICE_URL`` and
``PRODUCT_SERVICE_URL`` at that process; routes that call another service run
in the threadpool, so such a call does not block the one serving it. With the
URLs unset every collaborator is an in-process fake, which suits tests and
local development only: orders are priced from an empty fake catalogue and
payment outcomes are recorded instead of relayed.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000 --reload
"""

from uuid import uuid4

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# Domains are initialized at module level so uvicorn workers share them.
# PROTEAN_ENV controls which config overlay is applied.
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from inventory.domain import inventory  # noqa: E402
from ordering.domain import ordering  # noqa: E402
from payments.domain import payments  # noqa: E402
from shared.errors import register_exception_handlers
from shared.logging import add_context, clear_context, configure_logging
from shared.settings import get_settings

configure_logging()

settings = get_settings()

_DOMAINS = {"ordering": ordering, "payments": payments, "inventory": inventory}
_ENABLED = {name: domain for name, domain in _DOMAINS.items() if name in settings.enabled_services}

for domain in _ENABLED.values():
    domain.init()

# ---------------------------------------------------------------------------
# Route-to-domain mapping
# ---------------------------------------------------------------------------
_ROUTE_DOMAIN_MAP = {
    "/orders": ordering,
    "/payments": payments,
    "/products": inventory,
}


def _resolve_domain(path: str):
    """Return the domain for the given request path, or None."""
    for prefix, domain in _ROUTE_DOMAIN_MAP.items():
        if path.startswith(prefix) and domain in _ENABLED.values():
            return domain
    return None


# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="OrderFlow API",
    description="Orders, payments and inventory services",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)


@app.middleware("http")
async def domain_context_middleware(request: Request, call_next):
    """Push the correct Protean domain context for each request."""
    clear_context()
    add_context(request_id=request.headers.get("x-request-id") or uuid4().hex, path=request.url.path)

    domain = _resolve_domain(request.url.path)
    if domain is not None:
        with domain.domain_context():
            response = await call_next(request)
        return response
    # No domain match: pass through (health check, docs, etc.)
    return await call_next(request)


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
if "ordering" in _ENABLED:
    from ordering.api import order_router  # noqa: E402

    app.include_router(order_router)

if "payments" in _ENABLED:
    from payments.api import payment_router  # noqa: E402

    app.include_router(payment_router)

if "inventory" in _ENABLED:
    from inventory.api import product_router  # noqa: E402

    app.include_router(product_router)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return JSONResponse(
        content={
            "status": "ok",
            "domains": {name: {"name": domain.name} for name, domain in _ENABLED.items()},
        }
    )
