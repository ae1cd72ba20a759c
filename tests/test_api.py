"""Tests for the HTTP surface with fake resolver and transport."""

import logging

import pytest
from fastapi.testclient import TestClient

from fakes import FakeResolver, FakeTransport, make_png
from licenseshop.api.deps import get_email_service, get_renderer
from licenseshop.infrastructure.assets import MemoryAssetStore
from licenseshop.main import app
from licenseshop.services.email_delivery import EmailService
from licenseshop.services.email_verifier import EmailVerifier
from licenseshop.services.invoice_pdf import InvoiceRenderer

INVOICE = {"id": "INV-42", "email": "buyer@example.com", "license_key": "SEP-1", "amount_cents": 19900}


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def client(transport):
    resolver = FakeResolver({"nomx.example": [], "example.com": [(20, "b.mx"), (10, "a.mx")]})
    service = EmailService(EmailVerifier(resolver), transport, sender="billing@nk2it.com.au")
    renderer = InvoiceRenderer(assets=MemoryAssetStore(), logo_path="logo.png")

    app.dependency_overrides[get_email_service] = lambda: service
    app.dependency_overrides[get_renderer] = lambda: renderer
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert response.json()["smtp_configured"] is False


def test_verify_returns_camel_case_result(client):
    response = client.post("/api/v1/email/verify", json={"email": "user@example.com"})

    assert response.status_code == 200
    body = response.json()
    assert body["isValid"] is True
    assert body["risk"] == "low"
    assert body["mxRecords"] == ["a.mx", "b.mx"]
    assert body["reason"] is None


def test_verify_invalid_format_is_not_an_http_error(client):
    body = client.post("/api/v1/email/verify", json={"email": "not-an-email"}).json()
    assert body == {
        "email": "not-an-email",
        "isValid": False,
        "risk": "high",
        "reason": "invalid_format",
        "mxRecords": [],
        "error": None,
    }


def test_verify_batch_keeps_order(client):
    response = client.post(
        "/api/v1/email/verify-batch",
        json={"emails": ["a@nomx.example", "bad", "c@example.com"]},
    )
    assert [r["reason"] for r in response.json()] == ["no_mx_records", "invalid_format", None]


def test_render_pdf_reports_missing_logo(client):
    response = client.post("/api/v1/invoices/pdf", json=INVOICE)

    assert response.status_code == 200
    assert response.headers["content-type"] == "application/pdf"
    assert 'filename="NK2IT-Invoice-INV-42.pdf"' in response.headers["content-disposition"]
    assert response.headers["x-invoice-warnings"] == "logo_unavailable"
    assert response.content.startswith(b"%PDF-")


def test_negative_amount_is_rejected(client):
    response = client.post("/api/v1/invoices/pdf", json={**INVOICE, "amount_cents": -5})
    assert response.status_code == 422


def test_issue_renders_records_and_sends(client, transport):
    response = client.post("/api/v1/invoices/issue", json=INVOICE)

    assert response.status_code == 200
    body = response.json()
    assert body["record"]["gst_cents"] == 1990
    assert body["record"]["total_cents"] == 21890
    assert body["record"]["total_display"] == "$218.90"
    assert body["record"]["pdf_file_name"] == "NK2IT-Invoice-INV-42.pdf"
    assert body["warnings"] == ["logo_unavailable"]
    assert body["delivery"]["sent"] is True
    assert transport.sent[0].attachments[0].content.startswith(b"%PDF-")


def test_issue_without_delivery(client, transport):
    body = client.post("/api/v1/invoices/issue?deliver=false", json=INVOICE).json()
    assert body["delivery"] is None
    assert transport.sent == []


def test_issue_to_rejected_address_is_422(client, transport):
    response = client.post("/api/v1/invoices/issue", json={**INVOICE, "email": "x@nomx.example"})
    assert response.status_code == 422
    assert "no_mx_records" in response.json()["detail"]
    assert transport.sent == []


def test_issue_transport_failure_is_502(client, transport):
    transport.fail_for.add("buyer@example.com")
    response = client.post("/api/v1/invoices/issue", json=INVOICE)
    assert response.status_code == 502


def test_send_bulk_reports_each_recipient(client):
    response = client.post("/api/v1/email/send-bulk", json={"recipients": [
        {"email": "a@example.com", "subject": "s", "content": "c"},
        {"email": "bad", "subject": "s", "content": "c"},
    ]})
    assert [e["status"] for e in response.json()] == ["success", "skipped"]


def test_render_pdf_with_non_ascii_id(client):
    response = client.post("/api/v1/invoices/pdf", json={**INVOICE, "id": "发票-42"})

    assert response.status_code == 200
    disposition = response.headers["content-disposition"]
    assert 'filename="NK2IT-Invoice-__-42.pdf"' in disposition
    assert "filename*=UTF-8''NK2IT-Invoice-%E5%8F%91%E7%A5%A8-42.pdf" in disposition


def test_render_pdf_with_quote_in_id(client):
    response = client.post("/api/v1/invoices/pdf", json={**INVOICE, "id": 'INV"7'})

    assert response.status_code == 200
    disposition = response.headers["content-disposition"]
    assert 'filename="NK2IT-Invoice-INV_7.pdf"' in disposition
    assert "filename*=UTF-8''NK2IT-Invoice-INV%227.pdf" in disposition


def test_startup_warns_when_logo_missing(tmp_path, monkeypatch, caplog):
    monkeypatch.setenv("ASSET_PATH", str(tmp_path))

    with caplog.at_level(logging.WARNING, logger="licenseshop.main"):
        with TestClient(app):
            pass

    assert any("nk2it-logo.png not found" in r.getMessage() for r in caplog.records)


def test_startup_finds_logo_in_asset_store(tmp_path, monkeypatch, caplog):
    (tmp_path / "nk2it-logo.png").write_bytes(make_png())
    monkeypatch.setenv("ASSET_PATH", str(tmp_path))

    with caplog.at_level(logging.WARNING, logger="licenseshop.main"):
        with TestClient(app):
            pass

    assert not any("not found" in r.getMessage() for r in caplog.records)
