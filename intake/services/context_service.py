"""
Request context resolution.

Turns the identity the JWT middleware put on ``flask.g`` into a
RequestContext naming the tenant being acted on. Self-service and
administrator requests share every service call below this point; the only
difference is ``is_elevated``.
"""

from dataclasses import dataclass

from flask import g

from intake.core.exceptions import AuthenticationError, ForbiddenError, NotFoundError
from intake.models import db
from intake.models.auth import ROLE_PLATFORM_ADMIN, Tenant
from intake.models.buyer import Program


@dataclass(frozen=True)
class RequestContext:
    tenant_id: int
    actor_id: int | None
    program_id: int | None = None
    is_elevated: bool = False


def _is_elevated() -> bool:
    return ROLE_PLATFORM_ADMIN in (getattr(g, "jwt_roles", None) or [])


def resolve_context(target_tenant_id: int | None = None) -> RequestContext:
    """Build the RequestContext for the current request.

    Args:
        target_tenant_id: Tenant named in the URL (admin routes). Defaults to
            the caller's own tenant.

    Raises:
        AuthenticationError: no identity on the request.
        ForbiddenError: non-elevated caller targeting another tenant.
        NotFoundError: target tenant does not exist.
    """
    user_id = getattr(g, "jwt_user_id", None)
    if user_id is None:
        raise AuthenticationError()

    own_tenant_id = getattr(g, "jwt_tenant_id", None)
    elevated = _is_elevated()
    tenant_id = target_tenant_id if target_tenant_id is not None else own_tenant_id

    if tenant_id is None:
        raise ForbiddenError("No tenant associated with this account")
    if not elevated and tenant_id != own_tenant_id:
        raise ForbiddenError()

    if db.session.get(Tenant, tenant_id) is None:
        raise NotFoundError(resource="Tenant", resource_id=tenant_id)

    program = Program.query_for_tenant(tenant_id).first()
    return RequestContext(
        tenant_id=tenant_id,
        actor_id=user_id,
        program_id=program.id if program else None,
        is_elevated=elevated,
    )


def require_elevated() -> None:
    """Gate for admin-only endpoints."""
    if getattr(g, "jwt_user_id", None) is None:
        raise AuthenticationError()
    if not _is_elevated():
        raise ForbiddenError("Platform administrator role required")
