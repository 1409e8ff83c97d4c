from __future__ import annotations

import json
from typing import Any

import pytest

from keytap.core import Tab
from keytap.errors import TransportError


class FakeTransport:
    """In-memory transport that records what happens to it."""

    def __init__(self, recorder: Recorder, url: str, **callbacks: Any) -> None:
        self.recorder = recorder
        self.url = url
        self.on_open = callbacks["on_open"]
        self.on_message = callbacks["on_message"]
        self.on_close = callbacks["on_close"]
        self.on_error = callbacks["on_error"]
        self.is_open = False
        self.sent: list[dict[str, Any]] = []
        self.error: BaseException | None = None

    def open(self) -> bool:
        if self.url in self.recorder.refuse:
            self.error = ConnectionRefusedError(self.url)
            self.on_error(self, self.error)
            return False
        self.recorder.events.append(("open", self.url))
        self.is_open = True
        self.on_open(self)
        return True

    def send(self, message: str) -> None:
        if self.url in self.recorder.broken:
            raise TransportError(self.url, ConnectionResetError("peer went away"))
        self.sent.append(json.loads(message))
        self.recorder.sent.append(json.loads(message))

    def close(self) -> None:
        self.recorder.events.append(("close", self.url))
        self.is_open = False


class Recorder:
    def __init__(self) -> None:
        self.transports: list[FakeTransport] = []
        self.events: list[tuple[str, str]] = []
        self.sent: list[dict[str, Any]] = []
        self.refuse: set[str] = set()
        self.broken: set[str] = set()

    def factory(self, url: str, **callbacks: Any) -> FakeTransport:
        transport = FakeTransport(self, url, **callbacks)
        self.transports.append(transport)
        return transport


@pytest.fixture
def recorder() -> Recorder:
    return Recorder()


def make_tab(tab_id: str) -> Tab:
    return Tab(
        id=tab_id,
        title=f"Tab {tab_id}",
        url=f"https://{tab_id}.example",
        debugger_url=f"ws://127.0.0.1:9222/devtools/page/{tab_id}",
    )


class FakeResponse:
    def __init__(self, body: bytes) -> None:
        self._body = body

    def read(self) -> bytes:
        return self._body

    def __enter__(self) -> FakeResponse:
        return self

    def __exit__(self, *args: Any) -> bool:
        return False
