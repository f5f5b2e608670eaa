"""Shared fixtures: settings, fake collaborators and a wired test client."""

from __future__ import annotations

from pathlib import Path
import sys

import pytest
from fastapi.testclient import TestClient

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from voice_capture.config.settings import MailConfig, Settings, TranscriptionConfig  # noqa: E402
from voice_capture.lifecycle import LifecycleController  # noqa: E402
from voice_capture.main import create_app  # noqa: E402
from voice_capture.services.transcribe import TranscriptionResult  # noqa: E402

INGEST_TOKEN = "test-ingest-token"
AUTH_HEADER = {"Authorization": f"Bearer {INGEST_TOKEN}"}


class FakeTranscriber:
    """Records calls and returns a fixed result or raises a fixed error."""

    def __init__(self, result: TranscriptionResult | None = None, error: Exception | None = None):
        self.result = result or TranscriptionResult(text="buy milk", language="en")
        self.error = error
        self.calls: list[dict] = []

    async def transcribe(self, content, filename, context):
        self.calls.append({"content": content, "filename": filename, "request_id": context.request_id})
        if self.error is not None:
            raise self.error
        return self.result


class FakeMailer:
    def __init__(self, error: Exception | None = None):
        self.error = error
        self.sent: list = []

    async def send(self, payload, context):
        if self.error is not None:
            raise self.error
        self.sent.append(payload)


class RecordingSink:
    def __init__(self):
        self.events = []

    def emit(self, event):
        self.events.append(event)

    def metrics(self) -> list[str]:
        return [event.metric for event in self.events]

    def find(self, metric: str):
        matches = [event for event in self.events if event.metric == metric]
        assert len(matches) == 1, f"expected exactly one {metric} event, got {len(matches)}"
        return matches[0]


@pytest.fixture
def settings() -> Settings:
    return Settings(
        ingest_token=INGEST_TOKEN,
        transcription=TranscriptionConfig(api_key="sk-test", base_url="https://stt.example.com/v1"),
        mail=MailConfig(
            host="smtp.example.com",
            port=587,
            username="mailer",
            password="mail-secret",
            sender="voice@example.com",
            recipient="inbox@example.com",
        ),
    )


@pytest.fixture
def lifecycle() -> LifecycleController:
    return LifecycleController()


@pytest.fixture
def transcriber() -> FakeTranscriber:
    return FakeTranscriber()


@pytest.fixture
def mailer() -> FakeMailer:
    return FakeMailer()


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def client(settings, lifecycle, transcriber, mailer, sink) -> TestClient:
    app = create_app(
        settings,
        lifecycle=lifecycle,
        transcriber=transcriber,
        mailer=mailer,
        events=sink,
    )
    return TestClient(app)

