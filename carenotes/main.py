from __future__ import annotations

import asyncio
import logging
import time
import uuid
from typing import Any, Literal
from uuid import UUID

from fastapi import Depends, FastAPI, Query, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse, Response
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from starlette.middleware.base import BaseHTTPMiddleware

from carenotes.auth.gate import (
    get_tenant_context,
    require_capability,
    require_permission,
    require_session,
    sign_in_redirect,
)
from carenotes.auth.sessions import AuthSession, lookup_session
from carenotes.core.config import settings
from carenotes.core.errors import CareNotesError, SessionRequired
from carenotes.db.session import get_db
from carenotes.logging_utils import (
    _region_ctx_var,
    _request_id_ctx_var,
    _tenant_id_ctx_var,
    configure_logging,
)
from carenotes.models import AuditLogAction, AuditLogActorType, AuditLogStatus
from carenotes.navigation import build_navigation
from carenotes.schemas import (
    AuditLogEntry,
    BankImportCreate,
    BankImportOut,
    BarcodeScan,
    PINVerification,
    PinUpdate,
    VerificationResult,
    WitnessVerification,
)
from carenotes.services import (
    BED_DASHBOARDS,
    create_bank_import,
    fetch_bed_statuses,
    fetch_maintenance,
    fetch_occupancy,
    fetch_overview,
    list_audit_logs,
)
from carenotes.services import verification
from carenotes.services.bed_management import QueryResult, QueryState
from carenotes.tenancy.context import TenantContext
from carenotes.tenancy.permissions import (
    FEATURE_ACCOUNTING,
    FEATURE_AUDIT,
    FEATURE_BED_MANAGEMENT,
    FEATURE_MEDICATION,
)
from carenotes.tenancy.regions import LANGUAGE_REQUIREMENTS, REGULATORS, path_segments, region_from_key

configure_logging(settings.log_level)

app = FastAPI(title=settings.app_name, version="0.1.0")

logger = logging.getLogger(__name__)

REQUEST_COUNTER = Counter(
    "carenotes_api_requests_total",
    "Total number of processed HTTP requests.",
    ["method", "path", "status", "tenant"],
)
REQUEST_LATENCY = Histogram(
    "carenotes_api_request_duration_seconds",
    "HTTP request latency in seconds.",
    ["method", "path"],
)


class SimpleRateLimiter:
    """In-memory fixed-window rate limiter keyed by client."""

    def __init__(self, limit: int, window_seconds: int) -> None:
        self.limit = max(1, limit)
        self.window_seconds = max(1, window_seconds)
        self._entries: dict[str, tuple[int, float]] = {}
        self._lock = asyncio.Lock()

    async def allow(self, key: str) -> bool:
        now = time.monotonic()
        async with self._lock:
            count, window_start = self._entries.get(key, (0, now))
            if now - window_start >= self.window_seconds:
                self._entries[key] = (1, now)
                return True
            if count >= self.limit:
                return False
            self._entries[key] = (count + 1, window_start)
            return True


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Bind a request id for logging and echo it back to the caller."""

    async def dispatch(self, request: Request, call_next):  # type: ignore[override]
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())

        request.state.request_id = request_id
        request.state.tenant_id = None
        request.state.region = None
        request_id_token = _request_id_ctx_var.set(request_id)
        tenant_token = _tenant_id_ctx_var.set(None)
        region_token = _region_ctx_var.set(None)

        try:
            response = await call_next(request)
        finally:
            _request_id_ctx_var.reset(request_id_token)
            _tenant_id_ctx_var.reset(tenant_token)
            _region_ctx_var.reset(region_token)

        response.headers["X-Request-ID"] = request_id
        return response


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Apply a coarse rate limit per client address."""

    def __init__(self, app: FastAPI, limiter: SimpleRateLimiter) -> None:  # type: ignore[override]
        super().__init__(app)
        self.limiter = limiter

    async def dispatch(self, request: Request, call_next):  # type: ignore[override]
        if request.method == "OPTIONS":
            return await call_next(request)

        client_host = request.client.host if request.client else "unknown"
        allowed = await self.limiter.allow(client_host)
        if not allowed:
            logger.warning("rate limit exceeded", extra={"client_ip": client_host})
            return JSONResponse(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                content={"error": "rate_limited", "detail": "Rate limit exceeded"},
            )

        return await call_next(request)


class AccessLogMiddleware(BaseHTTPMiddleware):
    """Emit structured access logs and feed metrics."""

    async def dispatch(self, request: Request, call_next):  # type: ignore[override]
        start_time = time.perf_counter()
        path = request.scope.get("root_path", "") + request.scope.get("path", request.url.path)
        method = request.method

        try:
            response = await call_next(request)
        except Exception:
            elapsed = time.perf_counter() - start_time
            tenant_label = getattr(request.state, "tenant_id", None) or "anonymous"
            REQUEST_COUNTER.labels(method=method, path=path, status="500", tenant=tenant_label).inc()
            REQUEST_LATENCY.labels(method=method, path=path).observe(elapsed)
            logger.exception(
                "request failed",
                extra={
                    "method": method,
                    "path": path,
                    "duration_ms": round(elapsed * 1000, 2),
                },
            )
            raise

        elapsed = time.perf_counter() - start_time
        status_code = response.status_code
        # Tenant and region are resolved inside the endpoint task; read them
        # from the shared request state.
        tenant_label = getattr(request.state, "tenant_id", None) or "anonymous"

        REQUEST_COUNTER.labels(
            method=method,
            path=path,
            status=str(status_code),
            tenant=tenant_label,
        ).inc()
        REQUEST_LATENCY.labels(method=method, path=path).observe(elapsed)

        logger.info(
            "request completed",
            extra={
                "method": method,
                "path": path,
                "status_code": status_code,
                "duration_ms": round(elapsed * 1000, 2),
                "tenant_id": tenant_label,
                "region": getattr(request.state, "region", None),
            },
        )

        return response


rate_limiter = SimpleRateLimiter(
    settings.rate_limit_requests, settings.rate_limit_window_seconds
)


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RateLimitMiddleware, limiter=rate_limiter)
app.add_middleware(AccessLogMiddleware)
# Outermost, so the access log runs with the request id bound.
app.add_middleware(RequestContextMiddleware)


@app.exception_handler(SessionRequired)
async def session_required_handler(request: Request, exc: SessionRequired) -> Response:
    return sign_in_redirect(request, exc)


@app.exception_handler(CareNotesError)
async def carenotes_error_handler(request: Request, exc: CareNotesError) -> JSONResponse:
    content: dict[str, Any] = {"error": exc.kind, "detail": exc.detail}
    if exc.extra:
        content.update(jsonable_encoder(exc.extra))
    return JSONResponse(status_code=exc.status_code, content=content)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"error": "validation_error", "detail": jsonable_encoder(exc.errors())},
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "internal_error", "detail": "Internal server error"},
    )


def _actor(session: AuthSession) -> str:
    return session.email or session.user_id


def _tenant_summary(context: TenantContext) -> dict[str, Any]:
    regulator = REGULATORS[context.region]
    return {
        "organization_id": context.organization_id,
        "tenant_id": context.tenant_id,
        "region": context.region.value,
        "region_key": context.region_key,
        "timezone": context.timezone,
        "regulator": regulator.code,
        "languages": list(LANGUAGE_REQUIREMENTS[context.region].supported),
        "features": sorted(context.features),
        "permissions": sorted(context.permissions),
        "settings": context.settings.model_dump(),
        "locale": context.locale.model_dump(),
    }


def _regional_redirect(request: Request, region: str, context: TenantContext) -> Response | None:
    """Validate the path region; redirect to the tenant's own region if it differs."""

    requested = region_from_key(region)
    if requested is context.region:
        return None
    rest = "/".join(path_segments(request.url.path)[1:])
    target = f"/{context.region_key}/{rest}" if rest else f"/{context.region_key}"
    if request.url.query:
        target = f"{target}?{request.url.query}"
    return RedirectResponse(target, status_code=status.HTTP_307_TEMPORARY_REDIRECT)


def _query_response(view: str, result: QueryResult[Any]) -> Response | dict[str, Any]:
    if result.state is QueryState.ERROR:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"error": "data_unavailable", "detail": result.error, "state": result.state.value},
        )
    return {"view": view, "state": result.state.value, "data": jsonable_encoder(result.data)}


@app.get("/metrics")
def metrics() -> Response:
    """Expose Prometheus metrics for scraping."""

    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


@app.get("/health")
def health() -> dict[str, str]:
    """Health check endpoint used by infrastructure probes."""

    return {"status": "ok"}


@app.get("/", response_model=None)
def index(request: Request) -> Response | dict[str, Any]:
    if lookup_session(request) is not None:
        return RedirectResponse(settings.dashboard_path, status_code=status.HTTP_307_TEMPORARY_REDIRECT)
    return {"app": settings.app_name, "sign_in": settings.sign_in_path}


@app.get(settings.sign_in_path, response_model=None)
def sign_in(
    request: Request,
    callback_url: str | None = Query(default=None, alias="callbackUrl"),
    error: str | None = None,
) -> Response | dict[str, Any]:
    """Sign-in landing; the identity provider handles the credential exchange."""

    if lookup_session(request) is not None:
        return RedirectResponse(settings.dashboard_path, status_code=status.HTTP_307_TEMPORARY_REDIRECT)
    return {"sign_in": True, "callback_url": callback_url or settings.dashboard_path, "error": error}


@app.get(settings.dashboard_path)
def dashboard_entry(context: TenantContext = Depends(get_tenant_context)) -> RedirectResponse:
    return RedirectResponse(
        f"/{context.region_key}/dashboard", status_code=status.HTTP_307_TEMPORARY_REDIRECT
    )


@app.get("/api/session")
def current_session(
    session: AuthSession = Depends(require_session),
    context: TenantContext = Depends(get_tenant_context),
) -> dict[str, Any]:
    return {
        "user": {
            "id": session.user_id,
            "email": session.email,
            "name": session.name,
            "role": session.role,
        },
        "expires_at": session.expires_at.isoformat() if session.expires_at else None,
        "tenant": _tenant_summary(context),
    }


@app.get("/api/navigation")
def navigation(
    path: str = Query(default="/dashboard", max_length=512),
    context: TenantContext = Depends(get_tenant_context),
) -> dict[str, Any]:
    return {"region": context.region_key, "items": build_navigation(context, path)}


@app.get("/api/bed-management/{view}", response_model=None)
def bed_management(
    view: Literal["overview", "status", "metrics", "maintenance"],
    include_completed: bool = False,
    context: TenantContext = Depends(
        require_capability(feature=FEATURE_BED_MANAGEMENT, permission="beds:read")
    ),
    db: Session = Depends(get_db),
) -> Response | dict[str, Any]:
    """Bed status, occupancy metrics or maintenance jobs for the organization."""

    if view == "status":
        result = fetch_bed_statuses(db, context)
    elif view == "metrics":
        result = fetch_occupancy(db, context)
    elif view == "maintenance":
        result = fetch_maintenance(db, context, include_completed=include_completed)
    else:
        result = fetch_overview(db, context)
    return _query_response(view, result)


@app.post("/api/accounting/bank-import", status_code=status.HTTP_201_CREATED)
def bank_import(
    payload: BankImportCreate,
    session: AuthSession = Depends(require_session),
    context: TenantContext = Depends(
        require_capability(feature=FEATURE_ACCOUNTING, permission="accounting:import")
    ),
    db: Session = Depends(get_db),
) -> dict[str, Any]:
    """Import a bank statement for reconciliation."""

    try:
        record = create_bank_import(db, context, payload, imported_by=_actor(session))
    except SQLAlchemyError as exc:
        logger.exception("bank import failed", extra={"account_id": payload.account_id})
        raise CareNotesError("Bank import could not be saved") from exc
    return BankImportOut.model_validate(record).model_dump(mode="json")


_medication_gate = require_capability(feature=FEATURE_MEDICATION, permission="medication:administer")
_staff_gate = require_permission("staff:manage")


@app.post("/api/verification/barcode")
def verify_barcode(
    scan: BarcodeScan,
    context: TenantContext = Depends(_medication_gate),
    db: Session = Depends(get_db),
) -> VerificationResult:
    return verification.verify_barcode(db, context, scan.code)


@app.post("/api/verification/pin")
def verify_pin(
    payload: PINVerification,
    session: AuthSession = Depends(require_session),
    context: TenantContext = Depends(_medication_gate),
    db: Session = Depends(get_db),
) -> VerificationResult:
    return verification.verify_pin(db, context, payload, actor=_actor(session))


@app.post("/api/verification/witness")
def verify_witness(
    payload: WitnessVerification,
    session: AuthSession = Depends(require_session),
    context: TenantContext = Depends(_medication_gate),
    db: Session = Depends(get_db),
) -> VerificationResult:
    return verification.verify_witness(db, context, payload, actor=_actor(session))


@app.put("/api/staff/{staff_id}/pin")
def update_staff_pin(
    staff_id: UUID,
    payload: PinUpdate,
    session: AuthSession = Depends(require_session),
    context: TenantContext = Depends(_staff_gate),
    db: Session = Depends(get_db),
) -> VerificationResult:
    return verification.update_pin(db, context, staff_id, payload.new_pin, actor=_actor(session))


@app.post("/api/staff/{staff_id}/temporary-pin")
def issue_temporary_pin(
    staff_id: UUID,
    session: AuthSession = Depends(require_session),
    context: TenantContext = Depends(_staff_gate),
    db: Session = Depends(get_db),
) -> dict[str, Any]:
    pin = verification.issue_temporary_pin(db, context, staff_id, actor=_actor(session))
    return {
        "staff_id": str(staff_id),
        "temporary_pin": pin,
        "expires_in_hours": verification.TEMPORARY_PIN_DAYS * 24,
    }


@app.post("/api/staff/{staff_id}/unlock")
def unlock_staff(
    staff_id: UUID,
    session: AuthSession = Depends(require_session),
    context: TenantContext = Depends(_staff_gate),
    db: Session = Depends(get_db),
) -> dict[str, Any]:
    staff = verification.unlock_staff(db, context, staff_id, actor=_actor(session))
    return {"staff_id": str(staff.id), "account_locked": staff.account_locked}


@app.get("/api/audit-logs")
def audit_logs(
    action: AuditLogAction | None = None,
    status_filter: AuditLogStatus | None = Query(default=None, alias="status"),
    actor_type: AuditLogActorType | None = None,
    limit: int = Query(default=100, ge=1, le=500),
    context: TenantContext = Depends(
        require_capability(feature=FEATURE_AUDIT, permission="audit:read")
    ),
    db: Session = Depends(get_db),
) -> dict[str, Any]:
    entries = list_audit_logs(
        db, context, action=action, status=status_filter, actor_type=actor_type, limit=limit
    )
    return {
        "items": [
            AuditLogEntry.model_validate(entry).model_dump(mode="json", by_alias=True)
            for entry in entries
        ]
    }


@app.get("/{region}/dashboard", response_model=None)
def regional_dashboard(
    region: str,
    request: Request,
    context: TenantContext = Depends(get_tenant_context),
) -> Response | dict[str, Any]:
    redirect = _regional_redirect(request, region, context)
    if redirect is not None:
        return redirect
    return {
        "page": "dashboard",
        "tenant": _tenant_summary(context),
        "navigation": build_navigation(context, request.url.path),
    }


@app.get("/{region}/bed-management", response_model=None)
def regional_bed_management(
    region: str,
    request: Request,
    context: TenantContext = Depends(get_tenant_context),
    db: Session = Depends(get_db),
) -> Response | dict[str, Any]:
    """Bed-management page laid out for the organization's regulator."""

    redirect = _regional_redirect(request, region, context)
    if redirect is not None:
        return redirect
    context.require_feature(FEATURE_BED_MANAGEMENT)
    context.require_permission("beds:read")

    dashboard = BED_DASHBOARDS.select(context.region)
    layout = dashboard.render(fetch_overview(db, context), context)
    return {
        "page": "bed-management",
        "layout": layout,
        "navigation": build_navigation(context, request.url.path),
    }
