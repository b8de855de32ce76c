"""Global stop key for viewer sessions whose preview window may lack focus."""

from __future__ import annotations

import sys
from typing import Callable, List, Optional

from pynput import keyboard
from utils.logger import Logger, LoggerType


def _disable_echo() -> Optional[List]:
    """Hide typed keys in the terminal; return the attributes to restore."""
    if not sys.stdin.isatty():
        return None
    import termios

    fd = sys.stdin.fileno()
    saved = termios.tcgetattr(fd)
    quiet = termios.tcgetattr(fd)
    quiet[3] &= ~(termios.ECHO | termios.ICANON)
    termios.tcsetattr(fd, termios.TCSADRAIN, quiet)
    return saved


def _restore_echo(saved: List) -> None:
    import termios

    termios.tcsetattr(sys.stdin.fileno(), termios.TCSADRAIN, saved)


class StopKeyListener:
    """
    Call ``on_stop`` when ``key`` is pressed anywhere on the desktop.

    The HighGUI window only sees ESC while focused; this listener covers the
    headless case and windows hidden behind a terminal.
    """

    def __init__(
        self,
        on_stop: Callable[[], None],
        key: str = "esc",
        *,
        hide_echo: bool = True,
        logger: LoggerType | None = None,
    ) -> None:
        self.on_stop = on_stop
        self.key = key
        self.hide_echo = hide_echo
        self.logger = logger or Logger.get_logger("utils.keyboard")
        self._listener: keyboard.GlobalHotKeys | None = None
        self._saved_echo: Optional[List] = None

    @property
    def running(self) -> bool:
        return self._listener is not None

    def _fire(self) -> None:
        self.logger.info(f"Stop key '{self.key}' pressed")
        self.on_stop()

    def start(self) -> None:
        if self._listener is not None:
            return
        self._listener = keyboard.GlobalHotKeys({f"<{self.key}>": self._fire})
        self._listener.daemon = True
        self._listener.start()
        if self.hide_echo:
            try:
                self._saved_echo = _disable_echo()
            except Exception as e:
                self.logger.warning(f"Terminal echo left on: {e}")
        self.logger.debug(f"Listening for '{self.key}'")

    def stop(self) -> None:
        if self._listener is None:
            return
        try:
            self._listener.stop()
        finally:
            self._listener = None
            if self._saved_echo is not None:
                _restore_echo(self._saved_echo)
                self._saved_echo = None
            self.logger.debug(f"Stopped listening for '{self.key}'")

    def __enter__(self) -> "StopKeyListener":
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.stop()
