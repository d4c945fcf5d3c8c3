"""Session gate and tenant-context dependencies for protected routes.

Each protected route declares these dependencies itself; nothing here keeps
state between requests. Ordering is fixed by the dependency graph: the session
is checked first, then the organization is loaded and the tenant context
built, and only then do feature dependencies run.
"""

from __future__ import annotations

import logging
from typing import Callable
from urllib.parse import urlencode

from fastapi import Depends, Request, status
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import RedirectResponse
from prometheus_client import Counter
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from carenotes.auth.sessions import AuthSession, lookup_session
from carenotes.core.config import settings
from carenotes.core.errors import SessionRequired, TenantContextError
from carenotes.db.session import get_db
from carenotes.logging_utils import set_region_context, set_tenant_context
from carenotes.services.organizations import get_organization
from carenotes.tenancy.context import TenantContext, build_tenant_context

logger = logging.getLogger(__name__)

SESSION_GATE_REDIRECTS = Counter(
    "carenotes_session_gate_redirects_total",
    "Protected requests redirected to the sign-in page.",
    ["reason"],
)


def _requested_path(request: Request) -> str:
    query = request.url.query
    return f"{request.url.path}?{query}" if query else request.url.path


def require_session(request: Request) -> AuthSession:
    """Return the caller's session or stop the request with a sign-in redirect."""

    session = lookup_session(request)
    if session is None:
        raise SessionRequired(next_path=_requested_path(request))
    request.state.auth_session = session
    return session


async def get_tenant_context(
    request: Request,
    session: AuthSession = Depends(require_session),
    db: Session = Depends(get_db),
) -> TenantContext:
    """Build the tenant context for the authenticated caller.

    Runs on the event loop so the logging context bound here is inherited by
    the endpoint; only the organization lookup goes to the threadpool.
    """

    try:
        organization = await run_in_threadpool(get_organization, db, session.organization_id)
    except SQLAlchemyError as exc:
        logger.exception("organization lookup failed", extra={"user_id": session.user_id})
        raise SessionRequired(
            next_path=_requested_path(request), reason="tenant_resolution"
        ) from exc

    try:
        context = build_tenant_context(session, organization)
    except TenantContextError as exc:
        logger.warning(
            "tenant resolution failed",
            extra={"user_id": session.user_id, "reason": exc.detail},
        )
        raise SessionRequired(
            next_path=_requested_path(request), reason="tenant_resolution"
        ) from exc

    set_tenant_context(context.tenant_id)
    set_region_context(context.region_key)
    request.state.tenant_id = context.tenant_id
    request.state.region = context.region_key
    return context


def require_capability(
    feature: str | None = None, permission: str | None = None
) -> Callable[..., TenantContext]:
    """Dependency factory gating a route on a feature flag and/or a permission."""

    def dependency(context: TenantContext = Depends(get_tenant_context)) -> TenantContext:
        if feature is not None:
            context.require_feature(feature)
        if permission is not None:
            context.require_permission(permission)
        return context

    return dependency


def require_permission(permission: str) -> Callable[..., TenantContext]:
    return require_capability(permission=permission)


def sign_in_redirect(request: Request, exc: SessionRequired) -> RedirectResponse:
    """Redirect an unauthenticated caller to the sign-in page."""

    params = {"callbackUrl": exc.next_path or settings.dashboard_path}
    if exc.reason != "no_session":
        params["error"] = exc.reason
    SESSION_GATE_REDIRECTS.labels(reason=exc.reason).inc()

    status_code = (
        status.HTTP_307_TEMPORARY_REDIRECT
        if request.method in ("GET", "HEAD")
        else status.HTTP_303_SEE_OTHER
    )
    return RedirectResponse(
        f"{settings.sign_in_path}?{urlencode(params)}", status_code=status_code
    )


__all__ = [
    "SESSION_GATE_REDIRECTS",
    "get_tenant_context",
    "require_capability",
    "require_permission",
    "require_session",
    "sign_in_redirect",
]
