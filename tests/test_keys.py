from __future__ import annotations

import pytest

from keytap.keys import KEY_MAP, key_event_params, parse_key


@pytest.mark.parametrize("descriptor", ["a", "Z", "7", "-", "<", "C", " ", "é"])
def test_single_character_has_no_modifiers(descriptor: str) -> None:
    modifiers, _entry, key = parse_key(descriptor)
    assert modifiers == 0
    assert key == descriptor


def test_control_prefix() -> None:
    assert parse_key("C-x") == (2, None, "x")


def test_prefix_order_is_irrelevant() -> None:
    assert parse_key("C-M-S-a")[0] == 11
    assert parse_key("S-M-C-a")[0] == 11
    assert parse_key("C-M-S-a")[2] == "a"


def test_each_modifier_bit() -> None:
    assert parse_key("M-a")[0] == 1
    assert parse_key("C-a")[0] == 2
    assert parse_key("s-a")[0] == 4
    assert parse_key("S-a")[0] == 8


def test_modifier_with_dash_key() -> None:
    assert parse_key("C--") == (2, None, "-")


def test_bracketed_name_resolves_through_table() -> None:
    modifiers, entry, key = parse_key("<return>")
    assert modifiers == 0
    assert entry is not None
    assert entry.key == "Enter"
    assert entry.virtual_key_code == 13
    assert key == "<return>"


def test_spc_maps_to_space() -> None:
    _modifiers, entry, _key = parse_key("SPC")
    assert entry is not None
    assert entry.key == " "
    assert entry.virtual_key_code == 32


def test_terse_aliases() -> None:
    assert parse_key("RET")[1].key == "Enter"
    assert parse_key("TAB")[1].key == "Tab"
    assert parse_key("DEL")[1].key == "Backspace"
    assert parse_key("ESC")[1].key == "Escape"


def test_modifier_with_named_key() -> None:
    modifiers, entry, _key = parse_key("C-<return>")
    assert modifiers == 2
    assert entry is not None and entry.key == "Enter"
    assert parse_key("M-SPC")[0] == 1


def test_unknown_name_falls_back_to_raw() -> None:
    assert parse_key("<f5>") == (0, None, "<f5>")


def test_table_has_fourteen_entries() -> None:
    assert len(KEY_MAP) == 14
    assert len({e.host_name for e in KEY_MAP}) == 14


def test_printable_key_carries_text() -> None:
    params = key_event_params("a")
    assert params == {"type": "keyDown", "key": "a", "modifiers": 0, "text": "a"}


def test_mapped_multichar_key_has_no_text() -> None:
    params = key_event_params("<tab>")
    assert params["key"] == "Tab"
    assert params["windowsVirtualKeyCode"] == 9
    assert "text" not in params


def test_space_carries_text_and_code() -> None:
    params = key_event_params("SPC")
    assert params["key"] == " "
    assert params["text"] == " "
    assert params["windowsVirtualKeyCode"] == 32


def test_control_character_has_no_text() -> None:
    params = key_event_params("\x01")
    assert "text" not in params
    assert "windowsVirtualKeyCode" not in params


def test_modified_char_keeps_text_and_bits() -> None:
    params = key_event_params("C-x")
    assert params["modifiers"] == 2
    assert params["key"] == "x"
    assert params["text"] == "x"


def test_unknown_name_is_sent_as_key_without_text() -> None:
    params = key_event_params("<f5>")
    assert params == {"type": "keyDown", "key": "<f5>", "modifiers": 0}
