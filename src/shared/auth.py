"""Caller identity and authorization predicates.

Token verification happens at the edge; the services receive the verified
identity as ``X-User-*`` headers. Service-to-service endpoints are guarded by
a shared secret instead.
"""

import hmac
from dataclasses import dataclass

import structlog
from fastapi import Depends, Header

from shared.errors import AuthenticationRequired, AuthorizationError
from shared.settings import get_settings

logger = structlog.get_logger(__name__)

ADMIN_ROLE = "admin"


@dataclass(frozen=True)
class Principal:
    user_id: str
    role: str = "customer"
    email: str | None = None
    name: str | None = None


def authorize(principal: Principal, *, owner_id: str | None = None, role: str | None = None) -> None:
    """Allow the call when the principal owns the resource or holds ``role``."""
    if role is not None and principal.role == role:
        return
    if owner_id is not None and principal.user_id == str(owner_id):
        return
    raise AuthorizationError("Not authorized to access this resource", user_id=principal.user_id)


def current_principal(
    x_user_id: str | None = Header(default=None),
    x_user_role: str = Header(default="customer"),
    x_user_email: str | None = Header(default=None),
    x_user_name: str | None = Header(default=None),
) -> Principal:
    if not x_user_id:
        raise AuthenticationRequired("Not authorized, no user identity")
    return Principal(user_id=x_user_id, role=x_user_role, email=x_user_email, name=x_user_name)


def require_admin(principal: Principal = Depends(current_principal)) -> Principal:
    authorize(principal, role=ADMIN_ROLE)
    return principal


def require_internal_caller(x_internal_token: str | None = Header(default=None)) -> None:
    expected = get_settings().internal_api_key
    if not expected:
        logger.warning("internal_call_rejected", reason="no shared secret configured")
        raise AuthorizationError("Internal endpoint")
    if not x_internal_token or not hmac.compare_digest(x_internal_token.encode(), expected.encode()):
        raise AuthorizationError("Internal endpoint")
