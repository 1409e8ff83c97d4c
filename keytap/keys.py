"""Editor key descriptors → CDP key events.

Editors describe keys as strings such as ``a``, ``C-x``, ``C-M-S-a``,
``<return>`` or ``SPC``. ``parse_key`` splits a descriptor into a modifier
bitmask and a key, and ``key_event_params`` builds the
``Input.dispatchKeyEvent`` parameters for it.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

# ── Modifier bits (Input.dispatchKeyEvent "modifiers") ──

ALT = 1
CONTROL = 2
SUPER = 4
SHIFT = 8

MODIFIER_PREFIXES: dict[str, int] = {
    "M": ALT,
    "C": CONTROL,
    "s": SUPER,
    "S": SHIFT,
}


@dataclass(frozen=True)
class KeyMapEntry:
    """A named editor key and its CDP identity."""

    host_name: str
    key: str
    virtual_key_code: int


KEY_MAP: tuple[KeyMapEntry, ...] = (
    KeyMapEntry("<backspace>", "Backspace", 8),
    KeyMapEntry("<delete>", "Delete", 46),
    KeyMapEntry("<left>", "ArrowLeft", 37),
    KeyMapEntry("<up>", "ArrowUp", 38),
    KeyMapEntry("<right>", "ArrowRight", 39),
    KeyMapEntry("<down>", "ArrowDown", 40),
    KeyMapEntry("<end>", "End", 35),
    KeyMapEntry("<escape>", "Escape", 27),
    KeyMapEntry("<home>", "Home", 36),
    KeyMapEntry("<prior>", "PageUp", 33),
    KeyMapEntry("<next>", "PageDown", 34),
    KeyMapEntry("<return>", "Enter", 13),
    KeyMapEntry("<tab>", "Tab", 9),
    KeyMapEntry("SPC", " ", 32),
)

_BY_NAME: dict[str, KeyMapEntry] = {entry.host_name: entry for entry in KEY_MAP}

# Terse names some editors report instead of the bracketed form
ALIASES: dict[str, str] = {
    "RET": "<return>",
    "TAB": "<tab>",
    "DEL": "<backspace>",
    "ESC": "<escape>",
}

_SINGLE_CHAR_RE = re.compile(r"((?:[CMSs]-)*)(.)", re.DOTALL)
_NAMED_KEY_RE = re.compile(r"((?:[CMSs]-)+)(<[^<>]+>|[A-Z]{3})")


def lookup(name: str) -> KeyMapEntry | None:
    """Find the table entry for a key name, following aliases."""
    return _BY_NAME.get(ALIASES.get(name, name))


def _modifier_bits(prefixes: str) -> int:
    bits = 0
    for token in prefixes.split("-"):
        if token:
            bits |= MODIFIER_PREFIXES[token]
    return bits


def parse_key(descriptor: str) -> tuple[int, KeyMapEntry | None, str]:
    """Split a key descriptor into (modifiers, table entry, raw key).

    Examples:
        >>> parse_key("C-x")
        (2, None, 'x')
        >>> parse_key("<return>")[1].key
        'Enter'
    """
    if len(descriptor) == 1:
        return 0, lookup(descriptor), descriptor

    match = _SINGLE_CHAR_RE.fullmatch(descriptor)
    if match:
        key = match.group(2)
        return _modifier_bits(match.group(1)), lookup(key), key

    match = _NAMED_KEY_RE.fullmatch(descriptor)
    if match and lookup(match.group(2)) is not None:
        key = match.group(2)
        return _modifier_bits(match.group(1)), lookup(key), key

    return 0, lookup(descriptor), descriptor


def key_event_params(descriptor: str) -> dict:
    """Build keyDown params for ``Input.dispatchKeyEvent``.

    ``windowsVirtualKeyCode`` is present only for table keys; ``text`` only
    when the resolved key is a single printable character.
    """
    modifiers, entry, raw_key = parse_key(descriptor)
    key = entry.key if entry else raw_key
    params: dict = {"type": "keyDown", "key": key, "modifiers": modifiers}
    if entry:
        params["windowsVirtualKeyCode"] = entry.virtual_key_code
    if len(key) == 1 and ord(key) >= 32:
        params["text"] = key
    return params
