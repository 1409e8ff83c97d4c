"""keytap CLI — drive a browser tab from the terminal or an editor pipe.

Usage:
    keytap <command> [args...]
    keytap --help

Examples:
    keytap tabs                    # See your open tabs
    keytap key C-l                 # Send Ctrl+L to a tab
    keytap open github.com         # Navigate
    keytap forward                 # Read keys from stdin, one per line
"""

from __future__ import annotations

import logging
import os
import sys
from typing import TextIO

from keytap.config import BridgeConfig
from keytap.core import Bridge, Tab, TabDirectory
from keytap.errors import ConnectivityError, KeytapError

# ── Colors (disable with NO_COLOR env var) ──

_NO_COLOR = os.environ.get("NO_COLOR") or not sys.stdout.isatty()


def _dim(s: str) -> str:
    return s if _NO_COLOR else f"\033[2m{s}\033[0m"


def _bold(s: str) -> str:
    return s if _NO_COLOR else f"\033[1m{s}\033[0m"


def _cyan(s: str) -> str:
    return s if _NO_COLOR else f"\033[36m{s}\033[0m"


def _green(s: str) -> str:
    return s if _NO_COLOR else f"\033[32m{s}\033[0m"


def _yellow(s: str) -> str:
    return s if _NO_COLOR else f"\033[33m{s}\033[0m"


def _red(s: str) -> str:
    return s if _NO_COLOR else f"\033[31m{s}\033[0m"


# ── Help text ──

COMMANDS_HELP = {
    "tabs": {
        "usage": "keytap tabs",
        "desc": "List all open browser tabs with their index, title, and URL.",
        "example": (
            "  $ keytap tabs\n"
            "  [0] Google — https://google.com\n"
            "  [1] GitHub — https://github.com"
        ),
        "hint": "Use the [index] number when asked which tab to connect to.",
    },
    "new": {
        "usage": "keytap new",
        "desc": "Create a tab, connect to it, and load the default URL.",
        "example": "  $ keytap new\n  Connected to new tab 5F2A…",
        "hint": "Set KEYTAP_DEFAULT_URL to change the page new tabs load.",
    },
    "key": {
        "usage": "keytap key <descriptor> [descriptor...]",
        "desc": (
            "Send editor-style key descriptors as keyDown/keyUp pairs.\n"
            "Modifiers: C- (Control), M- (Alt), S- (Shift), s- (Super).\n"
            "Named keys: <return> <tab> <backspace> <delete> <escape>\n"
            "<left> <right> <up> <down> <home> <end> <prior> <next> SPC"
        ),
        "example": "  $ keytap key C-a <backspace> h i <return>",
    },
    "insert": {
        "usage": "keytap insert <text>",
        "desc": "Insert text at the caret of the focused element.",
        "example": '  $ keytap insert "hello world"',
    },
    "open": {
        "usage": "keytap open <url>",
        "desc": "Navigate the connected tab to a URL. Adds https:// if missing.",
        "example": "  $ keytap open github.com",
    },
    "reload": {
        "usage": "keytap reload",
        "desc": "Reload the connected tab.",
        "example": "  $ keytap reload",
    },
    "forward": {
        "usage": "keytap forward",
        "desc": (
            "Read events from stdin, one per line, over a single connection.\n"
            "Plain lines are key descriptors. Lines starting with ':' are commands:\n"
            "  :tab N     connect to tab N\n"
            "  :new       create and connect to a new tab\n"
            "  :reload    reload the page\n"
            "  :open URL  navigate\n"
            "  :insert T  insert text\n"
            "  :quit      stop"
        ),
        "example": "  $ printf 'C-l\\n:insert hi\\n<return>\\n' | keytap forward",
        "hint": "Editors can spawn this once and write each keystroke to its stdin.",
    },
}


def print_main_help() -> None:
    print(_bold("keytap") + " — forward editor keystrokes to a browser tab\n")
    print(_bold("Usage:") + " keytap <command> [args...]\n")
    print(_bold("Commands:"))
    for name, info in COMMANDS_HELP.items():
        first_line = info["desc"].split("\n")[0]
        print(f"  {_cyan(name.ljust(10))} {first_line}")
    print()
    print(_bold("Options:"))
    print(f"  {_cyan('--port N'.ljust(10))} Debugging port (default: 9222, env KEYTAP_PORT)")
    print(f"  {_cyan('--debug'.ljust(10))} Log protocol traffic to stderr")
    print()
    print(_dim("Run 'keytap <command> --help' for details on a command."))


def print_command_help(cmd: str) -> None:
    info = COMMANDS_HELP.get(cmd)
    if not info:
        print(_red(f"Unknown command: {cmd}"))
        print("Run 'keytap --help' to see all commands.")
        return
    print(_bold("Usage:") + f" {info['usage']}\n")
    print(info["desc"])
    if info.get("example"):
        print(f"\n{_bold('Example:')}\n{info['example']}")
    if info.get("hint"):
        print(f"\n{_yellow('💡')} {info['hint']}")


# ── Tab chooser ──


def print_tabs(tabs: list[Tab], out: TextIO = sys.stdout) -> None:
    if not tabs:
        print(_dim("No tabs open."), file=out)
        return
    for i, tab in enumerate(tabs):
        attached = _dim(" (attached)") if tab.attached else ""
        print(f"{_cyan(f'[{i}]')} {tab}{attached}", file=out)


def make_chooser(directory: TabDirectory, stdin: TextIO | None = None):
    """Build the select_tab callable: list tabs, read an index.

    Reads from the terminal when stdin is a pipe carrying key events.
    Empty input or EOF means no tab.
    """

    def choose() -> Tab | None:
        tabs = directory.list_tabs()
        if not tabs:
            print(_yellow("No tabs to connect to. Try 'keytap new'."), file=sys.stderr)
            return None
        print_tabs(tabs, out=sys.stderr)
        print(_cyan("Tab: "), end="", file=sys.stderr, flush=True)
        source = stdin or sys.stdin
        line = source.readline()
        choice = line.strip()
        if not choice:
            return None
        try:
            index = int(choice)
        except ValueError:
            print(_red(f"Not a tab number: {choice}"), file=sys.stderr)
            return None
        if index < 0 or index >= len(tabs):
            print(_red(f"Tab index {index} out of range (0–{len(tabs) - 1})."), file=sys.stderr)
            return None
        return tabs[index]

    return choose


def _open_tty() -> TextIO | None:
    try:
        return open("/dev/tty")
    except OSError:
        return None


# ── Commands ──


def run_command(bridge: Bridge, cmd: str, args: list[str]) -> str | None:
    """Run a single command. Returns output text or None."""
    if cmd == "tabs":
        print_tabs(bridge.tabs())
        return None

    elif cmd == "new":
        tab = bridge.create_and_connect()
        return f"{_green('✓')} Connected to new tab {tab.id} — {bridge.config.default_url}"

    elif cmd == "key":
        if not args:
            print_command_help("key")
            return None
        bridge.send_keys(*args)
        return f"Sent {len(args)} key(s)"

    elif cmd == "insert":
        if not args:
            print_command_help("insert")
            return None
        text = " ".join(args)
        bridge.insert_text(text)
        return f"Inserted {len(text)} chars"

    elif cmd == "open":
        if not args:
            print_command_help("open")
            return None
        bridge.navigate(args[0])
        return f"Navigating to {args[0]}"

    elif cmd == "reload":
        bridge.reload()
        return "Reloading."

    elif cmd == "forward":
        run_forward(bridge, sys.stdin)
        return None

    else:
        print(_red(f"Unknown command: {cmd}"))
        print("Run 'keytap --help' to see all commands.")
        sys.exit(1)


def handle_line(bridge: Bridge, line: str) -> bool:
    """Handle one forwarded line. Returns False to stop."""
    line = line.rstrip("\r\n")
    if not line:
        return True
    if not line.startswith(":") or line == ":":
        bridge.send_key(line)
        return True

    cmd, _, arg = line[1:].partition(" ")
    if cmd in ("quit", "q"):
        return False
    if cmd == "tab":
        tabs = bridge.tabs()
        try:
            bridge.select(tabs[int(arg)])
        except (ValueError, IndexError):
            print(_red(f"No tab {arg!r}. Run 'keytap tabs'."), file=sys.stderr)
    elif cmd == "new":
        bridge.create_and_connect()
    elif cmd == "reload":
        bridge.reload()
    elif cmd == "open":
        bridge.navigate(arg)
    elif cmd == "insert":
        bridge.insert_text(arg)
    else:
        print(_red(f"Unknown command: :{cmd}"), file=sys.stderr)
    return True


def run_forward(bridge: Bridge, stream: TextIO) -> None:
    """Forward lines from a stream until EOF or :quit."""
    for line in stream:
        try:
            if not handle_line(bridge, line):
                break
        except KeytapError as e:
            print(_red(f"✗ {e}"), file=sys.stderr)
    bridge.disconnect()


def _parse_options(args: list[str]) -> tuple[list[str], dict]:
    """Pull --port/--debug out of argv."""
    rest: list[str] = []
    overrides: dict = {}
    i = 0
    while i < len(args):
        if args[i] in ("--port", "-p") and i + 1 < len(args):
            overrides["port"] = args[i + 1]
            i += 2
        elif args[i] == "--debug":
            overrides["debug"] = True
            i += 1
        else:
            rest.append(args[i])
            i += 1
    return rest, overrides


def main() -> None:
    """CLI entry point."""
    args, overrides = _parse_options(sys.argv[1:])

    # No args or help flag
    if not args or args[0] in ("--help", "-h", "help"):
        print_main_help()
        return

    cmd = args[0].lower()
    cmd_args = args[1:]

    # Per-command help
    if cmd_args and cmd_args[0] in ("--help", "-h"):
        print_command_help(cmd)
        return

    # Version
    if cmd in ("--version", "-V", "version"):
        from keytap import __version__
        print(f"keytap {__version__}")
        return

    bridge: Bridge | None = None
    chooser_input: TextIO | None = None
    try:
        config = BridgeConfig.load(overrides)
        logging.basicConfig(
            level=logging.DEBUG if config.debug else logging.WARNING,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
            stream=sys.stderr,
        )

        directory = TabDirectory(config)
        # `forward` owns stdin, so the chooser reads from the terminal
        chooser_input = _open_tty() if cmd == "forward" else None
        bridge = Bridge(
            config,
            select_tab=make_chooser(directory, chooser_input),
            on_error=lambda err: print(_red(f"✗ {err}"), file=sys.stderr),
        )
        result = run_command(bridge, cmd, cmd_args)
        if result is not None:
            print(result)
    except ConnectivityError as e:
        print(_red("✗ Browser not reachable\n"))
        print(str(e))
        sys.exit(1)
    except KeytapError as e:
        print(_red(f"✗ {e}"))
        sys.exit(1)
    except ValueError as e:
        print(_red(f"✗ {e}"))
        sys.exit(1)
    except KeyboardInterrupt:
        pass
    finally:
        if bridge is not None:
            bridge.disconnect()
        if chooser_input is not None:
            chooser_input.close()


if __name__ == "__main__":
    main()
