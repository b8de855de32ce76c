import os
import sys
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parents[1]))

from utils.logger import CaptureStderrToLogger, Logger


class ListLogger:
    def __init__(self) -> None:
        self.lines: list[str] = []

    def warning(self, msg: str) -> None:
        self.lines.append(msg)


def test_configure_writes_session_file(tmp_path) -> None:
    Logger.configure(level="DEBUG", log_dir=tmp_path, json_format=False)
    log = Logger.get_logger("tests.logger")
    log.info("hello from the test")
    log.complete()
    (session,) = tmp_path.glob("*.log.json")
    assert "hello from the test" in session.read_text()


def test_native_stderr_is_routed_to_logger() -> None:
    sink = ListLogger()
    with CaptureStderrToLogger(sink):
        os.write(2, b"Device disconnected\n\n")
    assert sink.lines == ["[librealsense] Device disconnected"]
