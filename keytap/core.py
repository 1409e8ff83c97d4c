"""Core tab directory, session manager and command dispatcher.

This is the main module. Use Bridge for the editor-facing entry points;
TabDirectory, SessionManager and CommandDispatcher are the parts it wires
together.

    from keytap import Bridge

    b = Bridge()
    b.select(b.tabs()[0])
    b.send_key("C-x")
    b.navigate("example.com")
"""

from __future__ import annotations

import json
import logging
import random
from dataclasses import dataclass
from typing import Any, Callable
from urllib.error import URLError
from urllib.request import Request, urlopen

from keytap.config import BridgeConfig
from keytap.errors import (
    ConnectivityError,
    NoSessionError,
    NotFoundError,
    TransportError,
)
from keytap.keys import key_event_params
from keytap.modes import ForwardingMode
from keytap.transport import WebSocketTransport

logger = logging.getLogger("keytap")

# ── Data classes ──


@dataclass(frozen=True)
class Tab:
    """Represents a browser tab."""

    id: str
    title: str
    url: str
    debugger_url: str
    attached: bool = False

    @classmethod
    def from_json(cls, entry: dict) -> Tab:
        """Project one /json descriptor into a Tab."""
        return cls(
            id=str(entry.get("id", "")),
            title=entry.get("title", "") or "",
            url=entry.get("url", "") or "",
            debugger_url=entry.get("webSocketDebuggerUrl", "") or "",
            attached=bool(entry.get("attached", False)),
        )

    def __str__(self) -> str:
        return f"{self.title or '(untitled)'} — {self.url}"


@dataclass
class Session:
    """The tracked transport and the tab it belongs to."""

    transport: Any = None
    current_tab: Tab | None = None

    def clear(self) -> None:
        self.transport = None
        self.current_tab = None


# ── Tab directory (HTTP) ──


class TabDirectory:
    """Lists and creates tabs through the debugging host's HTTP endpoints."""

    def __init__(self, config: BridgeConfig) -> None:
        self.config = config

    def _fetch_json(self, path: str, method: str = "GET") -> Any:
        """Fetch JSON from the debugging HTTP endpoint."""
        req = Request(f"{self.config.base_url}{path}", method=method)
        try:
            with urlopen(req) as resp:
                return json.loads(resp.read())
        except (URLError, OSError) as exc:
            raise ConnectivityError(self.config.port, str(exc)) from exc
        except ValueError as exc:
            raise ConnectivityError(self.config.port, "response is not JSON") from exc

    def list_tabs(self) -> list[Tab]:
        """List all targets the browser reports.

        Returns:
            A fresh list of Tab records, in the browser's order.
        """
        targets = self._fetch_json("/json")
        if not isinstance(targets, list):
            raise ConnectivityError(self.config.port, "tab list is not a JSON array")
        return [Tab.from_json(t) for t in targets if isinstance(t, dict)]

    def create_tab(self) -> Tab:
        """Open a new tab and return its entry from a fresh listing.

        Raises:
            NotFoundError: the new id is absent from the listing that follows.
        """
        created = self._fetch_json("/json/new", method="PUT")
        tab_id = str(created.get("id") or "") if isinstance(created, dict) else ""
        if not tab_id:
            raise NotFoundError(tab_id)
        for tab in self.list_tabs():
            if tab.id == tab_id:
                return tab
        raise NotFoundError(tab_id)


# ── Session manager ──


class SessionManager:
    """Owns the single transport of a Session.

    Connecting replaces any tracked transport: the old one is closed before
    the new one is opened. Close callbacks from replaced transports are
    ignored; error callbacks always tear the session down.

    Args:
        config: Bridge settings (debug flag).
        session: Session to manage (a fresh one by default).
        select_tab: Called when a command needs a tab and none is connected.
                    Returns the Tab to connect to, or None.
        transport_factory: Builds a transport for a debugger URL.
        on_error: Receives a TransportError for failures after open.
    """

    def __init__(
        self,
        config: BridgeConfig,
        *,
        session: Session | None = None,
        select_tab: Callable[[], Tab | None] | None = None,
        transport_factory: Callable[..., Any] = WebSocketTransport,
        on_error: Callable[[TransportError], None] | None = None,
    ) -> None:
        self.config = config
        self.session = session if session is not None else Session()
        self.select_tab = select_tab
        self._transport_factory = transport_factory
        self._on_error = on_error
        self._opening: Any = None

    @property
    def current_tab(self) -> Tab | None:
        return self.session.current_tab

    def is_connected(self) -> bool:
        transport = self.session.transport
        return transport is not None and bool(transport.is_open)

    def connect(self, tab: Tab, on_connect: Callable[[], None] | None = None) -> None:
        """Connect to a tab, replacing any current connection.

        Raises:
            TransportError: the WebSocket handshake failed.
        """
        self.disconnect()

        def handle_open(transport: Any) -> None:
            _send(transport, "Target.activateTarget", {"targetId": tab.id}, self.config.debug)
            if on_connect is not None:
                on_connect()

        transport = self._transport_factory(
            tab.debugger_url,
            on_open=handle_open,
            on_message=self._handle_message,
            on_close=self._handle_close,
            on_error=self._handle_error,
        )
        self.session.transport = transport
        self.session.current_tab = tab
        logger.info("connecting to tab %s (%s)", tab.id, tab.url)

        # Handshake failures are raised here rather than passed to on_error
        self._opening = transport
        try:
            opened = transport.open()
        except Exception:
            # on_open or on_connect failed after the handshake
            if self.session.transport is transport:
                self.session.clear()
            transport.close()
            raise
        finally:
            self._opening = None
        if not opened:
            raise TransportError(tab.debugger_url, getattr(transport, "error", None))

    def disconnect(self) -> None:
        """Close the tracked transport, if any."""
        transport = self.session.transport
        self.session.clear()
        if transport is not None:
            transport.close()

    def ensure_connected(self) -> Any:
        """Return the open transport, prompting for a tab if needed.

        Raises:
            NoSessionError: still no open transport after the prompt.
        """
        # The reader thread may clear the session at any time; work on a local
        transport = self.session.transport
        if (transport is None or not transport.is_open) and self.select_tab is not None:
            tab = self.select_tab()
            if tab is not None:
                try:
                    self.connect(tab)
                except TransportError as exc:
                    raise NoSessionError() from exc
                transport = self.session.transport
        if transport is None or not transport.is_open:
            raise NoSessionError()
        return transport

    # ── Transport callbacks ──

    def _handle_message(self, transport: Any, message: str) -> None:
        if self.config.debug:
            logger.debug("<- %s", message)

    def _handle_close(self, transport: Any) -> None:
        if self.session.transport is transport:
            logger.info("connection to %s closed", transport.url)
            self.session.clear()
        else:
            logger.debug("ignoring close of replaced transport %s", transport.url)

    def _handle_error(self, transport: Any, exc: BaseException) -> None:
        self.session.clear()
        error = TransportError(transport.url, exc)
        logger.error("%s", error)
        if self._on_error is not None and transport is not self._opening:
            self._on_error(error)

    def __repr__(self) -> str:
        tab = self.session.current_tab
        return f"SessionManager(tab={tab.id if tab else None!r})"


# ── Command dispatcher ──


def _send(transport: Any, method: str, params: dict | None, debug: bool) -> None:
    """Serialize one command and write it. The id is never matched."""
    message = json.dumps(
        {"id": random.randint(1, 2**31 - 1), "method": method, "params": params or {}}
    )
    if debug:
        logger.debug("-> %s", message)
    transport.send(message)


_OPAQUE_SCHEMES = ("about:", "data:", "javascript:", "chrome:")


class CommandDispatcher:
    """Fire-and-forget CDP commands over the manager's transport."""

    def __init__(self, manager: SessionManager) -> None:
        self.manager = manager

    def dispatch(self, method: str, params: dict | None = None) -> None:
        """Send a CDP command without waiting for its response.

        Raises:
            NoSessionError: no tab could be connected.
        """
        transport = self.manager.ensure_connected()
        _send(transport, method, params, self.manager.config.debug)

    def send_key(self, descriptor: str) -> None:
        """Forward one editor key as a keyDown/keyUp pair."""
        params = key_event_params(descriptor)
        self.dispatch("Input.dispatchKeyEvent", params)
        up = dict(params)
        up["type"] = "keyUp"
        self.dispatch("Input.dispatchKeyEvent", up)

    def send_keys(self, descriptors: list[str]) -> None:
        """Forward keys in order, one pair each."""
        for descriptor in descriptors:
            self.send_key(descriptor)

    def insert_text(self, text: str) -> None:
        self.dispatch("Input.insertText", {"text": text})

    def navigate(self, url: str) -> None:
        """Navigate the connected tab. 'https://' is added if no scheme."""
        if "://" not in url and not url.startswith(_OPAQUE_SCHEMES):
            url = "https://" + url
        self.dispatch("Page.navigate", {"url": url})

    def reload(self, ignore_cache: bool = False) -> None:
        self.dispatch("Page.reload", {"ignoreCache": ignore_cache})


# ── Bridge (editor-facing API) ──


class Bridge:
    """Editor-facing control of one browser tab.

    Connects to a Chrome/Chromium started with --remote-debugging-port and
    forwards keys and page commands to the selected tab. Commands issued
    before a tab is selected call ``select_tab`` to pick one.

    Args:
        config: Settings (default: BridgeConfig.load()).
        select_tab: Chooser used on the first command without a tab.
        transport_factory: Transport class/factory (for tests).
        on_error: Receives connection errors raised after open.

    Example:
        b = Bridge()
        b.create_and_connect()     # new tab, navigated to default_url
        b.send_key("<return>")
        b.reload()
    """

    def __init__(
        self,
        config: BridgeConfig | None = None,
        *,
        select_tab: Callable[[], Tab | None] | None = None,
        transport_factory: Callable[..., Any] = WebSocketTransport,
        on_error: Callable[[TransportError], None] | None = None,
    ) -> None:
        self.config = config or BridgeConfig.load()
        self.directory = TabDirectory(self.config)
        self.manager = SessionManager(
            self.config,
            select_tab=select_tab,
            transport_factory=transport_factory,
            on_error=on_error,
        )
        self.dispatcher = CommandDispatcher(self.manager)
        self.mode = ForwardingMode()

    @property
    def current_tab(self) -> Tab | None:
        return self.manager.current_tab

    def is_connected(self) -> bool:
        return self.manager.is_connected()

    # ── Tabs ──

    def tabs(self) -> list[Tab]:
        return self.directory.list_tabs()

    def select(self, tab: Tab) -> None:
        """Connect to a tab from tabs()."""
        self.manager.connect(tab)

    def create_and_connect(self) -> Tab:
        """Open a new tab, connect to it and load the default URL.

        Returns:
            The new Tab.
        """
        tab = self.directory.create_tab()
        self.manager.connect(
            tab, on_connect=lambda: self.dispatcher.navigate(self.config.default_url)
        )
        return tab

    def disconnect(self) -> None:
        self.manager.disconnect()

    # ── Commands ──

    def reload(self, ignore_cache: bool = False) -> None:
        self.dispatcher.reload(ignore_cache)

    def navigate(self, url: str) -> None:
        self.dispatcher.navigate(url)

    def insert_text(self, text: str) -> None:
        self.dispatcher.insert_text(text)

    def send_key(self, descriptor: str) -> None:
        self.dispatcher.send_key(descriptor)

    def send_keys(self, *descriptors: str) -> None:
        self.dispatcher.send_keys(list(descriptors))

    def __repr__(self) -> str:
        return f"Bridge(base_url={self.config.base_url!r})"
