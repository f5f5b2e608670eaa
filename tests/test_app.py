"""Health and readiness endpoints, error envelope and drain behaviour of the HTTP layer."""

from __future__ import annotations

import logging

from fastapi.testclient import TestClient
from pythonjsonlogger.json import JsonFormatter

from voice_capture.main import create_app
from voice_capture.services.email import MailClient


def test_health_reports_ok(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"ok": True}
    assert response.headers["X-Request-Id"]


def test_health_reports_draining(client, lifecycle):
    lifecycle.begin_drain()

    response = client.get("/health")

    assert response.status_code == 503
    assert response.json() == {"ok": False, "shuttingDown": True}


def test_ready_when_configured(client):
    response = client.get("/ready")

    assert response.status_code == 200
    assert response.json() == {"ok": True}


def test_not_ready_when_required_value_blank(settings, lifecycle, transcriber, mailer, sink):
    blank_mail = settings.mail.model_copy(update={"host": ""})
    incomplete = settings.model_copy(update={"mail": blank_mail})
    client = TestClient(
        create_app(incomplete, lifecycle=lifecycle, transcriber=transcriber, mailer=mailer, events=sink)
    )

    response = client.get("/ready")

    assert response.status_code == 503
    assert response.json() == {"ok": False, "error": "Service not ready"}


def test_other_paths_rejected_while_draining(client, lifecycle):
    lifecycle.begin_drain()

    response = client.get("/ready")

    assert response.status_code == 503
    assert response.json() == {"ok": False, "error": "Service is shutting down"}
    assert response.headers["X-Request-Id"]


def test_unknown_path_returns_json_404(client):
    response = client.get("/nope")

    assert response.status_code == 404
    assert response.json() == {"ok": False, "error": "Not found"}
    assert response.headers["X-Request-Id"]


def test_wrong_method_returns_json_405(client):
    response = client.get("/voice")

    assert response.status_code == 405
    assert response.json() == {"ok": False, "error": "Method not allowed"}


def test_request_ids_are_unique(client):
    first = client.get("/health").headers["X-Request-Id"]
    second = client.get("/health").headers["X-Request-Id"]

    assert first != second


def test_metrics_exposes_pipeline_counters(settings, lifecycle, transcriber, mailer):
    # Default sink so the Prometheus collectors are exercised.
    client = TestClient(create_app(settings, lifecycle=lifecycle, transcriber=transcriber, mailer=mailer))
    client.post("/voice", files={"file": ("a.wav", b"RIFF", "audio/wav")})

    response = client.get("/metrics")

    assert response.status_code == 200
    assert "voice_capture_pipeline_events_total" in response.text
    assert 'metric="auth"' in response.text
    assert "voice_capture_http_requests_total" in response.text


def test_startup_initializes_mail_client(settings, lifecycle, transcriber):
    mail_client = MailClient(settings.mail)
    app = create_app(settings, lifecycle=lifecycle, transcriber=transcriber, mailer=mail_client)

    assert not mail_client.initialized
    with TestClient(app):
        assert mail_client.initialized


def test_logs_are_formatted_as_json(settings, lifecycle, transcriber, mailer):
    create_app(settings, lifecycle=lifecycle, transcriber=transcriber, mailer=mailer)

    formatters = [handler.formatter for handler in logging.getLogger().handlers]
    assert any(isinstance(formatter, JsonFormatter) for formatter in formatters)
