from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from carenotes import main
from carenotes.models import AuditLog, AuditLogAction, BankImport


def _payload(**overrides):
    payload = {
        "account_id": "ACC-001",
        "format": "CSV",
        "statement_date": "2026-09-30",
        "transactions": [
            {
                "transaction_date": "2026-09-02",
                "description": "Resident fees - September",
                "amount": "2450.00",
                "reference": "INV-1001",
            },
            {
                "transaction_date": "2026-09-05",
                "description": "Pharmacy supplies",
                "amount": "-312.40",
            },
        ],
    }
    payload.update(overrides)
    return payload


def test_bank_import_created(client, db, make_org, auth_headers):
    organization = make_org()

    response = client.post(
        "/api/accounting/bank-import", json=_payload(), headers=auth_headers(organization)
    )

    assert response.status_code == 201
    body = response.json()
    assert body["account_id"] == "ACC-001"
    assert body["transaction_count"] == 2
    assert body["imported_by"] == "manager@example.com"
    assert [item["position"] for item in body["transactions"]] == [0, 1]

    stored = db.execute(select(BankImport)).scalar_one()
    assert stored.organization_id == organization.id
    audit = db.execute(select(AuditLog)).scalar_one()
    assert audit.action is AuditLogAction.IMPORT
    assert audit.entity_id == str(stored.id)


def test_finance_role_may_import(client, make_org, auth_headers):
    response = client.post(
        "/api/accounting/bank-import",
        json=_payload(),
        headers=auth_headers(make_org(), role="finance"),
    )
    assert response.status_code == 201


def test_zero_amount_is_validation_error(client, make_org, auth_headers):
    payload = _payload(
        transactions=[{"transaction_date": "2026-09-02", "description": "Nothing", "amount": "0"}]
    )

    response = client.post(
        "/api/accounting/bank-import", json=payload, headers=auth_headers(make_org())
    )

    assert response.status_code == 422
    assert response.json()["error"] == "validation_error"


def test_malformed_payloads_are_validation_errors(client, db, make_org, auth_headers):
    headers = auth_headers(make_org())
    bad_payloads = [
        _payload(transactions=[]),
        _payload(format="XLSX"),
        _payload(account_id=""),
        _payload(transactions=[{"description": "no date", "amount": "1.00"}]),
        _payload(
            transactions=[
                {"transaction_date": "2026-09-02", "description": "x", "amount": "1.005"}
            ]
        ),
    ]

    for payload in bad_payloads:
        response = client.post("/api/accounting/bank-import", json=payload, headers=headers)
        assert response.status_code == 422, payload
        assert response.json()["error"] == "validation_error"

    assert db.execute(select(BankImport)).first() is None


def test_persistence_failure_is_internal_error(client, db, make_org, auth_headers, monkeypatch):
    def _fail(*args, **kwargs):
        raise OperationalError("INSERT", {}, Exception("disk full"))

    monkeypatch.setattr(main, "create_bank_import", _fail)

    response = client.post(
        "/api/accounting/bank-import", json=_payload(), headers=auth_headers(make_org())
    )

    assert response.status_code == 500
    assert response.json()["error"] == "internal_error"


def test_import_requires_permission(client, make_org, auth_headers):
    response = client.post(
        "/api/accounting/bank-import",
        json=_payload(),
        headers=auth_headers(make_org(), role="nurse"),
    )
    assert response.status_code == 403
    assert response.json()["error"] == "permission_denied"


def test_import_requires_accounting_feature(client, make_org, auth_headers):
    response = client.post(
        "/api/accounting/bank-import",
        json=_payload(),
        headers=auth_headers(make_org(features=["bed_management"])),
    )
    assert response.status_code == 403
    assert response.json()["error"] == "feature_disabled"
