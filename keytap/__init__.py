"""keytap — forward editor keystrokes to a browser tab over CDP.

Connect to any Chrome/Chromium started with --remote-debugging-port, pick a
tab, and send it keys, text and page commands from your editor.

Quick start:
    from keytap import Bridge

    b = Bridge()                      # localhost:9222 by default
    b.select(b.tabs()[0])             # Connect to the first tab
    b.send_key("C-a")                 # Ctrl+A as keyDown/keyUp
    b.insert_text("hello")            # Insert text at the caret
    b.reload()                        # Reload the page
"""

from keytap.core import (
    Bridge,
    CommandDispatcher,
    ConnectivityError,
    NoSessionError,
    NotFoundError,
    Session,
    SessionManager,
    Tab,
    TabDirectory,
    TransportError,
)
from keytap.errors import KeytapError
from keytap.keys import parse_key

__version__ = "0.1.0"
__all__ = [
    "Bridge",
    "CommandDispatcher",
    "ConnectivityError",
    "KeytapError",
    "NoSessionError",
    "NotFoundError",
    "Session",
    "SessionManager",
    "Tab",
    "TabDirectory",
    "TransportError",
    "parse_key",
]
