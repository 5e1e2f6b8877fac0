"""
Global test configuration and the scripted pengine server used by the tests.
"""

from collections import deque
from dataclasses import dataclass, field
import json
import logging
import os
from typing import Any, Deque, Dict, List, Optional, Union

import httpx
import pytest

from pengines import HttpTransport, PengineBuilder

SERVER_URL = "http://pengines.test/"


# --- Environment Isolation (Autouse) ---
@pytest.fixture(autouse=True)
def isolate_pengine_env(request, monkeypatch):
    """Ensure a clean PENGINE_* environment for each test.

    Escape hatch: @pytest.mark.allow_env_pollution keeps the current env.
    """
    if request.node.get_closest_marker("allow_env_pollution"):
        return
    for key in list(os.environ.keys()):
        if key.startswith("PENGINE_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.delenv("DEBUG", raising=False)


# --- Logging Fixtures ---
@pytest.fixture(scope="session", autouse=True)
def quiet_noisy_libraries():
    """Sets the log level for noisy external libraries to WARNING."""
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


# --- Scripted Server ---
@dataclass
class RecordedRequest:
    path: str
    params: Dict[str, str]
    body: str
    content_type: str

    @property
    def json(self) -> Any:
        return json.loads(self.body)


@dataclass
class ScriptedPengineServer:
    """Answers each request with the next queued event, in order.

    Every request is recorded so tests can assert on the exact sequence of
    round trips. An empty queue answers 500.
    """

    pengine_id: str = "pid-1"
    requests: List[RecordedRequest] = field(default_factory=list)
    _replies: Deque[Union[Dict[str, Any], httpx.Response]] = field(
        default_factory=deque
    )

    def queue(self, *replies: Union[Dict[str, Any], httpx.Response]) -> None:
        self._replies.extend(replies)

    @property
    def pending(self) -> int:
        return len(self._replies)

    @property
    def bodies(self) -> List[str]:
        return [r.body for r in self.requests]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(
            RecordedRequest(
                path=request.url.path,
                params=dict(request.url.params),
                body=request.content.decode("utf-8"),
                content_type=request.headers.get("content-type", ""),
            )
        )
        if not self._replies:
            return httpx.Response(500, text="no scripted reply")
        reply = self._replies.popleft()
        if isinstance(reply, httpx.Response):
            return reply
        return httpx.Response(200, json=reply)

    def transport(self) -> HttpTransport:
        return HttpTransport(client=httpx.Client(transport=httpx.MockTransport(self.handler)))

    # Event builders

    def create(self, answer: Optional[Dict[str, Any]] = None, slave_limit: int = 3):
        event = {"event": "create", "id": self.pengine_id, "slave_limit": slave_limit}
        if answer is not None:
            event["answer"] = answer
        return event

    def success(self, *records: Dict[str, Any], more: bool = True):
        return {
            "event": "success",
            "id": self.pengine_id,
            "data": list(records),
            "more": more,
        }

    def failure(self):
        return {"event": "failure", "id": self.pengine_id}

    def stop(self):
        return {"event": "stop", "id": self.pengine_id}

    def error(self, message: str = "Unknown procedure: foo/0", code: str = "existence_error"):
        return {"event": "error", "id": self.pengine_id, "data": message, "code": code}

    def output(self, text: str = "hello"):
        return {"event": "output", "id": self.pengine_id, "data": text}

    def destroy(self, data: Optional[Dict[str, Any]] = None):
        event = {"event": "destroy", "id": self.pengine_id}
        if data is not None:
            event["data"] = data
        return event


@pytest.fixture
def server() -> ScriptedPengineServer:
    return ScriptedPengineServer()


@pytest.fixture
def transport(server) -> HttpTransport:
    return server.transport()


@pytest.fixture
def builder() -> PengineBuilder:
    """Builder that keeps the pengine alive between queries"""
    return PengineBuilder(server=SERVER_URL, destroy=False)


@pytest.fixture
def pengine(server, transport, builder):
    """A created, idle pengine"""
    server.queue(server.create())
    return builder.new_pengine(transport=transport)


# --- Test Environment Markers ---
def pytest_configure(config):
    """Configure custom markers for test organization."""
    markers = [
        "unit: Fast, isolated unit tests",
        "integration: Pengine sessions against the scripted server",
        "allow_env_pollution: Keep PENGINE_* variables from the real environment",
    ]
    for marker in markers:
        config.addinivalue_line("markers", marker)
