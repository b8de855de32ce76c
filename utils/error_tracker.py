"""Error types and centralized unhandled exception tracking."""

from __future__ import annotations

import os
import signal
import sys
import traceback
from typing import Any, Callable, List, Optional

from utils.logger import Logger


class FrameSourceError(Exception):
    """Base class for camera and frame source errors."""


class CameraConnectionError(FrameSourceError):
    """Raised when the camera device cannot be opened."""


class TextureError(Exception):
    """Base class for texture allocation and upload errors."""


class UnsupportedFormatError(TextureError, ValueError):
    """Raised for pixel formats that have no texture counterpart."""


class ErrorTracker:
    """Installable global exception hook that logs uncaught errors."""

    logger = Logger.get_logger("utils.error_tracker")
    _installed = False
    _orig_hook: Optional[Callable[..., None]] = None
    _cleanup_funcs: List[Callable[[], None]] = []
    _keyboard_listener: Any = None

    @classmethod
    def register_cleanup(cls, func: Callable[[], None]) -> None:
        """Register a cleanup function executed on fatal errors."""
        if func not in cls._cleanup_funcs:
            cls._cleanup_funcs.append(func)

    @classmethod
    def unregister_cleanup(cls, func: Callable[[], None]) -> None:
        """Forget a cleanup function once its resource is released."""
        if func in cls._cleanup_funcs:
            cls._cleanup_funcs.remove(func)

    @classmethod
    def _run_cleanup(cls) -> None:
        for func in list(cls._cleanup_funcs):
            try:
                func()
            except Exception as e:
                cls.logger.error(f"Cleanup failed: {e}")
        cls.stop_keyboard_listener()

    @classmethod
    def install_excepthook(cls) -> None:
        """Log unhandled exceptions through the project logger."""
        if cls._installed:
            return

        cls._orig_hook = sys.excepthook

        def _hook(exc_type, exc, tb) -> None:
            message = "".join(traceback.format_exception(exc_type, exc, tb))
            cls.logger.error(f"Unhandled exception:\n{message}")
            cls._run_cleanup()
            if cls._orig_hook:
                cls._orig_hook(exc_type, exc, tb)

        sys.excepthook = _hook
        cls._installed = True
        cls.logger.debug("Global exception hook installed")

    @classmethod
    def install_signal_handlers(cls) -> None:
        """Shutdown gracefully on SIGINT or SIGTERM."""

        def _handler(signum, frame) -> None:
            cls.logger.info(f"Received signal {signum}")
            cls._run_cleanup()
            raise SystemExit(1)

        signal.signal(signal.SIGINT, _handler)
        signal.signal(signal.SIGTERM, _handler)

    @classmethod
    def install_keyboard_listener(
        cls, on_stop: Callable[[], None] | None = None, stop_key: str = "esc"
    ) -> None:
        """
        Watch ``stop_key`` globally.

        ``on_stop`` is called when the key is pressed; without one the
        registered cleanups run and the process exits.
        """

        if cls._keyboard_listener is not None:
            return

        from utils.keyboard import StopKeyListener

        def _exit() -> None:
            cls._run_cleanup()
            os._exit(1)

        cls._keyboard_listener = StopKeyListener(on_stop or _exit, stop_key)
        cls._keyboard_listener.start()

    @classmethod
    def stop_keyboard_listener(cls) -> None:
        """Stop the background keyboard listener if running."""

        listener, cls._keyboard_listener = cls._keyboard_listener, None
        if listener is not None:
            listener.stop()
