"""
terminal.py - Yes/no confirmation and no-echo secret input

Both prompts change terminal modes. The mode in effect when page started
is remembered once and put back on every way out: normal return, errors,
Ctrl-C, SIGTERM/SIGHUP and interpreter exit.
"""
import atexit
import logging
import signal
import sys

import click

try:
    import termios
except ImportError:  # Windows: click handles the console itself
    termios = None

logger = logging.getLogger("page.terminal")

_saved = None


def _stdin_fd():
    try:
        fd = sys.stdin.fileno()
    except (AttributeError, ValueError, OSError):
        return None
    return fd if termios is not None and sys.stdin.isatty() else None


def restore_terminal() -> None:
    """Put back the terminal mode saved by install_restore_handlers()."""
    if _saved is None:
        return
    fd, attrs = _saved
    try:
        termios.tcsetattr(fd, termios.TCSADRAIN, attrs)
    except termios.error as e:
        logger.debug("Could not restore terminal: %s", e)


def _on_signal(signum, frame):
    restore_terminal()
    signal.signal(signum, signal.SIG_DFL)
    signal.raise_signal(signum)


def install_restore_handlers() -> bool:
    """
    Remember the current terminal mode and restore it on exit.

    Only does something when stdin is an interactive terminal. Safe to
    call more than once; only the first call saves the mode.

    Returns:
        True if handlers are installed
    """
    global _saved
    if _saved is not None:
        return True
    fd = _stdin_fd()
    if fd is None:
        return False
    _saved = (fd, termios.tcgetattr(fd))
    atexit.register(restore_terminal)
    for signum in (signal.SIGTERM, signal.SIGHUP):
        signal.signal(signum, _on_signal)
    return True


def confirm(prompt: str) -> bool:
    """Ask a yes/no question, reading a single key. Only y/Y is yes."""
    click.echo(prompt, nl=False, err=True)
    # getchar holds raw mode only while reading; Ctrl-C raises KeyboardInterrupt
    try:
        answer = click.getchar(echo=False)
    except EOFError:
        answer = ""
    click.echo(err=True)
    return answer[:1] in ("y", "Y")


def read_secret(prompt: str) -> str:
    """Read one line without echoing it."""
    return click.prompt(
        prompt, hide_input=True, default="", show_default=False,
        prompt_suffix="", err=True,
    )
