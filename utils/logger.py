"""Logging helpers built on top of loguru."""

from __future__ import annotations

import os
import sys
import threading
from datetime import datetime
from pathlib import Path
from typing import Iterable, TypeVar, cast

from loguru import logger as _logger
from loguru._logger import Logger as LoguruLogger
from tqdm.auto import tqdm

from utils.settings import logging as LOGCFG

LoggerType = LoguruLogger
T = TypeVar("T")

_configured = False


class Logger:
    """Project-wide loguru setup: console sink plus one file per session."""

    @staticmethod
    def _install_sinks(level: str, log_dir: Path, json_format: bool) -> None:
        global _configured
        _logger.remove()
        log_dir.mkdir(parents=True, exist_ok=True)
        session = datetime.now().strftime("%Y%m%d_%H%M%S")
        _logger.add(sys.stdout, level=level, format=LOGCFG.log_format)
        # frame callbacks log from SDK threads
        _logger.add(
            log_dir / f"{session}.log.json",
            level=level,
            serialize=json_format,
            format=LOGCFG.log_file_format,
            enqueue=True,
        )
        _configured = True

    @staticmethod
    def get_logger(name: str) -> LoguruLogger:
        """Logger bound to ``name``; installs the default sinks on first use."""
        if not _configured:
            Logger._install_sinks(LOGCFG.level, Path(LOGCFG.log_dir), LOGCFG.json)
        return _logger.bind(module=name)

    @staticmethod
    def configure(
        level: str | None = None,
        log_dir: str | Path | None = None,
        json_format: bool | None = None,
    ) -> None:
        """Reinstall the sinks, falling back to ``settings.logging`` per field."""
        Logger._install_sinks(
            level or LOGCFG.level,
            Path(log_dir) if log_dir is not None else Path(LOGCFG.log_dir),
            LOGCFG.json if json_format is None else json_format,
        )

    @staticmethod
    def progress(
        iterable: Iterable[T], desc: str | None = None, total: int | None = None
    ) -> Iterable[T]:
        """tqdm bar in the project style, cleared when done."""
        bar = tqdm(
            iterable,
            desc=desc,
            total=total,
            leave=False,
            bar_format=LOGCFG.progress_bar_format,
        )
        return cast(Iterable[T], bar)


class CaptureStderrToLogger:
    """
    Route native writes to fd 2 into ``logger`` while the block runs.

    librealsense reports device and playback warnings straight to stderr,
    bypassing Python; wrapping ``pipeline.start`` keeps them in the session log.
    """

    def __init__(self, logger: LoggerType) -> None:
        self.logger = logger
        self._saved_fd: int | None = None
        self._write_fd: int | None = None
        self._reader: threading.Thread | None = None

    def _pump(self, read_fd: int) -> None:
        with os.fdopen(read_fd, "r", errors="replace") as pipe:
            for line in pipe:
                if line.strip():
                    self.logger.warning(f"[librealsense] {line.rstrip()}")

    def __enter__(self) -> "CaptureStderrToLogger":
        sys.stderr.flush()
        self._saved_fd = os.dup(2)
        read_fd, self._write_fd = os.pipe()
        os.dup2(self._write_fd, 2)
        self._reader = threading.Thread(target=self._pump, args=(read_fd,), daemon=True)
        self._reader.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        sys.stderr.flush()
        os.dup2(self._saved_fd, 2)
        os.close(self._write_fd)
        os.close(self._saved_fd)
        if self._reader is not None:
            self._reader.join(timeout=0.2)
