"""
clipboard.py - Clipboard sessions with auto-clear

A secret is written to the clipboard right away; clearing it later is
handed to a scheduler so the caller never waits for the timeout. The
clearer simply writes an empty value, it does not check whether the
secret is still there (that would mean holding on to it).
"""
import logging
import shlex
import subprocess
import sys
import threading
import time
from typing import Callable, List, Optional

import pyperclip

from .errors import PageError

logger = logging.getLogger("page.clipboard")

SYSTEM = "system"


class ClipboardError(PageError):
    pass


class ClipboardSink:
    """Something that accepts text and keeps it as the clipboard"""

    def write(self, text: str) -> None:
        raise NotImplementedError

    def clear(self) -> None:
        self.write("")


class CommandSink(ClipboardSink):
    """Clipboard tool fed on stdin, e.g. wl-copy or xclip -selection clipboard"""

    def __init__(self, command: List[str]):
        if not command:
            raise ClipboardError("empty clipboard command")
        self.command = command

    def write(self, text: str) -> None:
        try:
            subprocess.run(
                self.command, input=text.encode(), check=True,
                stdout=subprocess.DEVNULL, stderr=subprocess.PIPE,
            )
        except FileNotFoundError as e:
            raise ClipboardError(f"clipboard tool '{self.command[0]}' not found") from e
        except subprocess.CalledProcessError as e:
            raise ClipboardError(
                f"clipboard tool failed: {e.stderr.decode(errors='replace').strip()}"
            ) from e


class SystemSink(ClipboardSink):
    """Platform clipboard through pyperclip"""

    def write(self, text: str) -> None:
        try:
            pyperclip.copy(text)
        except pyperclip.PyperclipException as e:
            raise ClipboardError(f"clipboard not available: {e}") from e


def sink_from_spec(spec: str) -> ClipboardSink:
    """Build a sink from the PAGE_CLIPBOARD setting."""
    if spec.strip() == SYSTEM:
        return SystemSink()
    return CommandSink(shlex.split(spec))


def clear_in_thread(timeout: int, sink: ClipboardSink) -> threading.Timer:
    """Clear the sink after timeout seconds from a daemon timer thread."""
    timer = threading.Timer(timeout, _clear_quietly, args=(sink,))
    timer.daemon = True
    timer.start()
    return timer


def clear_in_background_process(spec: str) -> Callable[[int, ClipboardSink], subprocess.Popen]:
    """
    Scheduler that clears the clipboard from a detached helper process.

    The helper is started in its own session so it outlives this process
    and survives the terminal closing. It only gets the sink spec, never
    the secret.
    """
    def schedule(timeout: int, sink: ClipboardSink) -> subprocess.Popen:
        return subprocess.Popen(
            [sys.executable, "-m", "page.clipboard", str(timeout), spec],
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            start_new_session=True,
        )
    return schedule


def _clear_quietly(sink: ClipboardSink) -> None:
    try:
        sink.clear()
    except ClipboardError as e:
        logger.warning("Could not clear clipboard: %s", e.message)


def copy_to_clipboard(
    secret: str,
    sink: ClipboardSink,
    timeout: Optional[int],
    schedule: Optional[Callable] = None,
):
    """
    Put secret on the clipboard and arrange for it to be cleared.

    Args:
        secret: Text to copy
        sink: Where the clipboard lives
        timeout: Seconds until clearing, None to leave it there
        schedule: Callable(timeout, sink) starting the delayed clear;
            defaults to a timer thread

    Returns:
        Whatever the scheduler returned (a Timer, a Popen), or None if
        clearing is disabled
    """
    sink.write(secret)
    if timeout is None:
        return None
    schedule = schedule or clear_in_thread
    handle = schedule(timeout, sink)
    logger.debug("Clipboard clear scheduled in %ss", timeout)
    return handle


def main(argv: Optional[List[str]] = None) -> int:
    """Helper process entry point: page.clipboard SECONDS SINK"""
    argv = sys.argv[1:] if argv is None else argv
    if len(argv) != 2:
        sys.stderr.write("usage: python -m page.clipboard SECONDS SINK\n")
        return 2
    time.sleep(int(argv[0]))
    _clear_quietly(sink_from_spec(argv[1]))
    return 0


if __name__ == "__main__":
    sys.exit(main())
