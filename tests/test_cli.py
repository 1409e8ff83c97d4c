from __future__ import annotations

import io

import pytest

from conftest import Recorder, make_tab
from keytap import cli
from keytap.config import BridgeConfig
from keytap.core import Bridge


class DummyDirectory:
    def __init__(self, tabs) -> None:  # noqa: ANN001
        self._tabs = tabs

    def list_tabs(self):  # noqa: ANN201
        return list(self._tabs)


def _connected(recorder: Recorder, monkeypatch) -> Bridge:  # noqa: ANN001
    bridge = Bridge(BridgeConfig(), transport_factory=recorder.factory)
    monkeypatch.setattr(bridge, "tabs", lambda: [make_tab("a"), make_tab("b")])
    bridge.select(make_tab("a"))
    recorder.sent.clear()
    return bridge


def test_chooser_picks_index() -> None:
    tabs = [make_tab("a"), make_tab("b")]
    choose = cli.make_chooser(DummyDirectory(tabs), io.StringIO("1\n"))
    assert choose() == tabs[1]


@pytest.mark.parametrize("answer", ["", "x\n", "7\n", "-1\n"])
def test_chooser_rejects_bad_input(answer: str) -> None:
    choose = cli.make_chooser(DummyDirectory([make_tab("a")]), io.StringIO(answer))
    assert choose() is None


def test_chooser_with_no_tabs() -> None:
    choose = cli.make_chooser(DummyDirectory([]), io.StringIO("0\n"))
    assert choose() is None


def test_forward_stream(recorder: Recorder, monkeypatch) -> None:  # noqa: ANN001
    bridge = _connected(recorder, monkeypatch)
    stream = io.StringIO("C-l\n:insert hello world\n<return>\n:reload\n:quit\nb\n")

    cli.run_forward(bridge, stream)

    sent = [(m["method"], m["params"].get("type") or m["params"]) for m in recorder.sent]
    assert sent == [
        ("Input.dispatchKeyEvent", "keyDown"),
        ("Input.dispatchKeyEvent", "keyUp"),
        ("Input.insertText", {"text": "hello world"}),
        ("Input.dispatchKeyEvent", "keyDown"),
        ("Input.dispatchKeyEvent", "keyUp"),
        ("Page.reload", {"ignoreCache": False}),
    ]
    assert not bridge.is_connected()


def test_forward_tab_switch(recorder: Recorder, monkeypatch) -> None:  # noqa: ANN001
    bridge = _connected(recorder, monkeypatch)

    assert cli.handle_line(bridge, ":tab 1\n") is True

    assert bridge.current_tab.id == "b"
    assert len([t for t in recorder.transports if t.is_open]) == 1


def test_lone_colon_is_a_key(recorder: Recorder, monkeypatch) -> None:  # noqa: ANN001
    bridge = _connected(recorder, monkeypatch)
    cli.handle_line(bridge, ":\n")
    assert recorder.sent[0]["params"]["key"] == ":"


def test_parse_options() -> None:
    rest, overrides = cli._parse_options(["--port", "9333", "key", "a", "--debug"])
    assert rest == ["key", "a"]
    assert overrides == {"port": "9333", "debug": True}


def test_print_tabs(capsys) -> None:  # noqa: ANN001
    cli.print_tabs([make_tab("a")])
    out = capsys.readouterr().out
    assert "[0]" in out
    assert "https://a.example" in out


def test_forward_survives_failed_lazy_connect(recorder: Recorder, capsys) -> None:  # noqa: ANN001
    bad, good = make_tab("bad"), make_tab("good")
    recorder.refuse.add(bad.debugger_url)
    choices = iter([bad, good])
    bridge = Bridge(
        BridgeConfig(), transport_factory=recorder.factory, select_tab=lambda: next(choices)
    )

    cli.run_forward(bridge, io.StringIO("a\nb\n:quit\nc\n"))

    keys = [m["params"]["key"] for m in recorder.sent if m["method"] == "Input.dispatchKeyEvent"]
    assert keys == ["b", "b"]
    assert "No browser tab connected" in capsys.readouterr().err


def test_forward_reports_command_errors_and_continues(recorder: Recorder, monkeypatch, capsys) -> None:  # noqa: ANN001
    bridge = _connected(recorder, monkeypatch)
    broken = make_tab("b")
    recorder.refuse.add(broken.debugger_url)

    def unreachable():  # noqa: ANN202
        raise cli.ConnectivityError(9222)

    monkeypatch.setattr(bridge, "tabs", unreachable)
    cli.run_forward(bridge, io.StringIO(":tab 0\n:quit\n"))
    assert "9222" in capsys.readouterr().err

    monkeypatch.setattr(bridge, "tabs", lambda: [make_tab("a"), broken])
    bridge.select(make_tab("a"))
    recorder.sent.clear()
    cli.run_forward(bridge, io.StringIO(":tab 1\n:insert still here\n:quit\n"))

    err = capsys.readouterr().err
    assert broken.debugger_url in err
    assert recorder.sent == []
    assert "No browser tab connected" in err
