"""Errors raised by the bridge. All derive from KeytapError."""

from __future__ import annotations


class KeytapError(Exception):
    """Base class for bridge errors."""


class ConnectivityError(KeytapError):
    """Raised when the tab list endpoint is unreachable or unparsable."""

    def __init__(self, port: int, detail: str = "") -> None:
        self.port = port
        message = (
            f"Cannot reach the browser debugging endpoint on port {port}"
            + (f" ({detail})" if detail else "")
            + "\n\nMake sure Chrome/Chromium is running with remote debugging enabled:\n"
            f"  chrome --remote-debugging-port={port}"
        )
        super().__init__(message)


class NoSessionError(KeytapError):
    """Raised when a command is issued with no open transport."""

    def __init__(self) -> None:
        super().__init__(
            "No browser tab connected.\n"
            "Hint: select a tab first (keytap tabs, then :tab N)."
        )


class NotFoundError(KeytapError):
    """Raised when a freshly created tab is missing from the tab list."""

    def __init__(self, tab_id: str) -> None:
        self.tab_id = tab_id
        if not tab_id:
            super().__init__("Tab creation returned no id; not connecting.")
            return
        super().__init__(f"Created tab {tab_id} is not in the tab list; not connecting.")


class TransportError(KeytapError):
    """Error from the WebSocket connection to a tab."""

    def __init__(self, url: str, cause: BaseException | None = None) -> None:
        self.url = url
        detail = f": {cause}" if cause else ""
        super().__init__(f"Connection to {url} failed{detail}")
        self.__cause__ = cause


