"""
Tests for clipboard sessions.
"""
import subprocess
import sys
import time

import pytest

from page import clipboard
from page.clipboard import (
    ClipboardError, CommandSink, SystemSink, clear_in_background_process,
    copy_to_clipboard, sink_from_spec,
)


class TestCopyToClipboard:

    def test_clears_after_timeout_without_blocking(self, sink):
        start = time.monotonic()
        timer = copy_to_clipboard("hunter2", sink, 2)
        assert time.monotonic() - start < 1
        assert sink.content == "hunter2"

        timer.join(5)
        assert time.monotonic() - start >= 1.9
        assert sink.content == ""

    def test_disabled_clearing(self, sink):
        assert copy_to_clipboard("hunter2", sink, None) is None
        assert sink.writes == ["hunter2"]

    def test_overwrites_whatever_is_there(self, sink):
        timer = copy_to_clipboard("hunter2", sink, 0)
        timer.join(5)
        assert sink.writes == ["hunter2", ""]

    def test_custom_scheduler(self, sink):
        calls = []
        result = copy_to_clipboard("s", sink, 7, schedule=lambda t, s: calls.append((t, s)) or "handle")
        assert result == "handle"
        assert calls == [(7, sink)]
        assert sink.content == "s"


class TestSinks:

    def test_spec_system(self):
        assert isinstance(sink_from_spec("system"), SystemSink)

    def test_spec_command(self):
        sink = sink_from_spec("xclip -selection clipboard")
        assert isinstance(sink, CommandSink)
        assert sink.command == ["xclip", "-selection", "clipboard"]

    def test_command_receives_text(self, monkeypatch):
        seen = {}

        def fake_run(command, input=None, **kwargs):
            seen["command"] = command
            seen["input"] = input
            return subprocess.CompletedProcess(command, 0)

        monkeypatch.setattr(subprocess, "run", fake_run)
        CommandSink(["wl-copy"]).write("abc")
        assert seen == {"command": ["wl-copy"], "input": b"abc"}

    def test_missing_tool(self):
        with pytest.raises(ClipboardError):
            CommandSink(["page-no-such-clipboard-tool"]).write("x")

    def test_empty_command(self):
        with pytest.raises(ClipboardError):
            CommandSink([])

    def test_system_sink_uses_pyperclip(self, monkeypatch):
        copied = []
        monkeypatch.setattr(clipboard.pyperclip, "copy", copied.append)
        SystemSink().clear()
        assert copied == [""]


class TestBackgroundProcess:

    def test_spawns_detached_helper(self, monkeypatch, sink):
        seen = {}

        def fake_popen(args, **kwargs):
            seen["args"] = args
            seen["kwargs"] = kwargs
            return "proc"

        monkeypatch.setattr(subprocess, "Popen", fake_popen)
        schedule = clear_in_background_process("wl-copy")
        assert copy_to_clipboard("hunter2", sink, 15, schedule) == "proc"
        assert seen["args"] == [sys.executable, "-m", "page.clipboard", "15", "wl-copy"]
        assert seen["kwargs"]["start_new_session"] is True
        assert "hunter2" not in " ".join(seen["args"])

    def test_helper_main_clears(self, monkeypatch, sink):
        monkeypatch.setattr(clipboard, "sink_from_spec", lambda spec: sink)
        assert clipboard.main(["0", "fake"]) == 0
        assert sink.content == ""

    def test_helper_usage(self):
        assert clipboard.main([]) == 2
