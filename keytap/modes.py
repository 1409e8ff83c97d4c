"""Key forwarding toggle.

While forwarding is on, the editor routes keystrokes to the browser. Turning
it off hands control back to whatever input state the editor was in before,
through a table of restore handlers keyed by HostState. The transport is not
touched either way.
"""

from __future__ import annotations

import enum
import logging
from typing import TYPE_CHECKING, Callable

if TYPE_CHECKING:
    from keytap.core import Bridge

logger = logging.getLogger("keytap.modes")


class HostState(enum.Enum):
    """Input states an editor can be in when forwarding starts."""

    NORMAL = "normal"
    INSERT = "insert"
    VISUAL = "visual"
    MOTION = "motion"
    EMACS = "emacs"


class ForwardingMode:
    """Tracks whether keys are forwarded and which state to restore.

    Args:
        restore_handlers: Called on disable() for the state that was active
                          when enable() ran.

    Example:
        mode = ForwardingMode({HostState.NORMAL: editor.enter_normal})
        mode.enable(HostState.NORMAL)
        mode.forward(bridge, "a")
        mode.disable()                # calls editor.enter_normal()
    """

    def __init__(
        self, restore_handlers: dict[HostState, Callable[[], None]] | None = None
    ) -> None:
        self.restore_handlers: dict[HostState, Callable[[], None]] = dict(
            restore_handlers or {}
        )
        self.active = False
        self.prior_state: HostState | None = None

    def enable(self, prior_state: HostState | None = None) -> None:
        if self.active:
            return
        self.prior_state = prior_state
        self.active = True

    def disable(self) -> None:
        if not self.active:
            return
        self.active = False
        state, self.prior_state = self.prior_state, None
        if state is None:
            return
        handler = self.restore_handlers.get(state)
        if handler is None:
            logger.debug("no restore handler for %s", state.value)
            return
        handler()

    def toggle(self, prior_state: HostState | None = None) -> bool:
        """Flip forwarding. Returns the new state."""
        if self.active:
            self.disable()
        else:
            self.enable(prior_state)
        return self.active

    def forward(self, bridge: Bridge, descriptor: str) -> bool:
        """Send a key through the bridge if forwarding is on."""
        if not self.active:
            return False
        bridge.send_key(descriptor)
        return True
