import logging

from carenotes.logging_utils import RequestContextFilter
from carenotes.tenancy.regions import Region


def test_health_endpoint(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_metrics_endpoint(client):
    client.get("/health")
    response = client.get("/metrics")
    assert response.status_code == 200
    assert "carenotes_api_requests_total" in response.text
    assert response.headers["content-type"].startswith("text/plain")


def test_request_id_is_echoed(client):
    response = client.get("/health", headers={"X-Request-ID": "req-123"})
    assert response.headers["X-Request-ID"] == "req-123"


def test_request_id_generated_when_missing(client):
    response = client.get("/health")
    assert response.headers["X-Request-ID"]


def test_session_gate_redirects_are_counted(client):
    client.get("/api/session")
    response = client.get("/metrics")
    assert 'carenotes_session_gate_redirects_total{reason="no_session"}' in response.text


def test_access_log_carries_request_context(client, make_org, auth_headers, caplog):
    caplog.handler.addFilter(RequestContextFilter())
    caplog.set_level(logging.INFO, logger="carenotes.main")
    organization = make_org(Region.UK_WALES)
    headers = {**auth_headers(organization), "X-Request-ID": "req-ctx-1"}

    client.get("/api/session", headers=headers)

    (record,) = [r for r in caplog.records if r.getMessage() == "request completed"]
    assert record.request_id == "req-ctx-1"
    assert record.region == "wales"
    assert record.tenant_id == organization.tenant_id
