import json
from typing import Any, Callable, Dict, List

import httpx
import pytest
from fastapi.testclient import TestClient

from app.main import app, get_bridge
from bridge.bridge import CommandInterpreter
from bridge.core.memory import BackupStore, TranscriptStore
from bridge.tools import BackendQueryComposer


BACKEND_URL = "http://flowise.test/api/v1/prediction/flow"
MARKERS = ("task complete", "anything else i can help you with")


class FakeBackend:
    """Scripted Flowise stand-in; records every JSON payload it receives."""

    def __init__(self) -> None:
        self.replies: List[Callable[[httpx.Request], httpx.Response]] = []
        self.payloads: List[Dict[str, Any]] = []

    def reply_text(self, text: str) -> None:
        self.replies.append(lambda request: httpx.Response(200, json={"text": text}))

    def reply(self, status_code: int, **kwargs: Any) -> None:
        self.replies.append(lambda request: httpx.Response(status_code, **kwargs))

    def fail_transport(self) -> None:
        def _raise(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        self.replies.append(_raise)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.payloads.append(json.loads(request.content))
        if not self.replies:
            return httpx.Response(200, json={"text": "default reply"})
        return self.replies.pop(0)(request)


@pytest.fixture()
def backend():
    return FakeBackend()


@pytest.fixture()
def transcripts():
    return TranscriptStore()


@pytest.fixture()
def backups():
    return BackupStore()


@pytest.fixture()
def composer(transcripts, backend):
    return BackendQueryComposer(
        transcripts,
        endpoint=BACKEND_URL,
        timeout=5.0,
        transport=httpx.MockTransport(backend),
    )


@pytest.fixture()
def interpreter(transcripts, backups, composer):
    return CommandInterpreter(transcripts, backups, composer, completion_markers=MARKERS)


@pytest.fixture()
def client(interpreter):
    """A test client whose webhook talks to fresh stores and the fake backend."""
    app.dependency_overrides[get_bridge] = lambda: interpreter
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
