"""Outbound delivery of operational notices to the configured webhook."""

from __future__ import annotations

import logging
import uuid
from dataclasses import asdict, dataclass, field
from typing import Any

import httpx

from carenotes.core.config import settings

logger = logging.getLogger(__name__)

_TIMEOUT = httpx.Timeout(connect=5.0, read=15.0, write=15.0, pool=5.0)


@dataclass(frozen=True)
class Notice:
    """A single notice addressed to one organization."""

    kind: str
    organization_id: str
    tenant_id: str
    message: str
    details: dict[str, Any] = field(default_factory=dict)


def _mock_send(payload: dict[str, Any]) -> tuple[str, dict[str, Any]]:
    notice_id = f"mocked-{uuid.uuid4()}"
    logger.debug("Mocking notification send with payload: %s", payload)
    return notice_id, {"id": notice_id, "mocked": True, "payload": payload}


def _response_body(response: httpx.Response) -> dict[str, Any]:
    if not response.content:
        return {}
    try:
        data = response.json()
    except ValueError:
        logger.warning("notification webhook replied with a non-JSON body")
        return {}
    return data if isinstance(data, dict) else {}


def send_notice(
    notice: Notice, *, transport: httpx.BaseTransport | None = None
) -> tuple[str, dict[str, Any]]:
    """Deliver ``notice`` and return the receiver's identifier and response body.

    A reply body that is not a JSON object is treated as empty.
    """

    payload = asdict(notice)
    if settings.notification_mock_mode:
        return _mock_send(payload)

    url = settings.notification_webhook_url
    if not url:
        raise RuntimeError("NOTIFICATION_WEBHOOK_URL is not configured")

    with httpx.Client(timeout=_TIMEOUT, transport=transport) as client:
        response = client.post(url, json=payload)
    response.raise_for_status()
    data = _response_body(response)
    notice_id = data.get("id") or response.headers.get("X-Request-ID") or str(uuid.uuid4())
    logger.debug("Notification webhook responded with %s", data)
    return notice_id, data
