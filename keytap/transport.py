"""WebSocket transport to a single CDP page target.

The handshake runs on the caller's thread. Once open, a daemon thread reads
inbound frames and reports them through callbacks. Every callback receives
the transport itself as its first argument so the owner can tell a live
connection from one it has already replaced.
"""

from __future__ import annotations

import logging
import threading
from contextlib import ExitStack
from typing import Any, Callable

from websockets.exceptions import ConnectionClosed, InvalidHandshake, InvalidURI
from websockets.sync.client import ClientConnection
from websockets.sync.client import connect as ws_connect

from keytap.errors import TransportError

logger = logging.getLogger("keytap.transport")

OpenCallback = Callable[[Any], None]
MessageCallback = Callable[[Any, str], None]
CloseCallback = Callable[[Any], None]
ErrorCallback = Callable[[Any, BaseException], None]


def _noop(*_args: Any) -> None:
    return None


class WebSocketTransport:
    """One WebSocket connection with open/message/close/error callbacks.

    Example:
        t = WebSocketTransport(tab.debugger_url, on_open=lambda t: ...)
        if t.open():
            t.send('{"id": 1, "method": "Page.reload", "params": {}}')
        t.close()
    """

    def __init__(
        self,
        url: str,
        *,
        on_open: OpenCallback | None = None,
        on_message: MessageCallback | None = None,
        on_close: CloseCallback | None = None,
        on_error: ErrorCallback | None = None,
    ) -> None:
        self.url = url
        self.error: BaseException | None = None
        self._on_open = on_open or _noop
        self._on_message = on_message or _noop
        self._on_close = on_close or _noop
        self._on_error = on_error or _noop
        self._stack = ExitStack()
        self._ws: ClientConnection | None = None
        self._reader: threading.Thread | None = None
        self._closed = False

    @property
    def is_open(self) -> bool:
        return self._ws is not None and not self._closed

    def open(self) -> bool:
        """Perform the handshake, fire on_open, start reading.

        No open timeout is applied. A failed handshake is reported through
        on_error and returns False. Exceptions from on_open propagate and
        leave the connection for the caller to close.
        """
        try:
            self._ws = self._stack.enter_context(
                ws_connect(self.url, open_timeout=None, max_size=None)
            )
        except (OSError, InvalidHandshake, InvalidURI, TimeoutError) as exc:
            self._closed = True
            self.error = exc
            self._on_error(self, exc)
            return False

        logger.debug("opened %s", self.url)
        self._on_open(self)
        self._reader = threading.Thread(
            target=self._read_loop, name=f"keytap-reader-{id(self):x}", daemon=True
        )
        self._reader.start()
        return True

    def send(self, message: str) -> None:
        """Write one text frame.

        Raises:
            TransportError: the connection is not open or was closed by the peer.
        """
        if self._ws is None or self._closed:
            raise TransportError(self.url, ConnectionError("connection is not open"))
        try:
            self._ws.send(message)
        except ConnectionClosed as exc:
            self._closed = True
            raise TransportError(self.url, exc) from exc

    def close(self) -> None:
        """Close the connection. Blocks until the closing handshake ends."""
        self._closed = True
        try:
            self._stack.close()
        except OSError as exc:
            logger.debug("close of %s failed: %s", self.url, exc)

    def _read_loop(self) -> None:
        ws = self._ws
        assert ws is not None
        try:
            for raw in ws:
                text = raw.decode("utf-8", errors="replace") if isinstance(raw, bytes) else raw
                self._on_message(self, text)
        except ConnectionClosed:
            pass
        except Exception as exc:  # noqa: BLE001
            self._closed = True
            self.error = exc
            self._on_error(self, exc)
            return
        self._closed = True
        self._on_close(self)

    def __repr__(self) -> str:
        state = "open" if self.is_open else "closed"
        return f"WebSocketTransport({self.url!r}, {state})"
