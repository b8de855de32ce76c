import sys
import threading
from pathlib import Path

import cv2
import numpy as np
import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from cli.texture_cli import create_cli, segment_files
from utils.config import DEFAULT_CONFIG_PATH
from utils.error_tracker import ErrorTracker


def write_blobs(folder: Path, n: int = 2) -> None:
    folder.mkdir(parents=True, exist_ok=True)
    for i in range(n):
        img = np.zeros((120, 160, 3), np.uint8)
        img[30:90, 20 + 10 * i : 80 + 10 * i] = 255
        cv2.imwrite(str(folder / f"img_{i}.png"), img)


def test_segment_files_writes_annotated_images(tmp_path) -> None:
    write_blobs(tmp_path / "in")
    (tmp_path / "in" / "notes.txt").write_text("not an image")
    written = segment_files([tmp_path / "in"], tmp_path / "out", stages=True)
    assert [p.name for p in written] == ["img_0_contours.png", "img_1_contours.png"]
    out = cv2.imread(str(written[0]))
    assert (out == (0, 0, 255)).all(axis=2).any()
    assert (tmp_path / "out" / "img_0_stages.png").exists()


def test_segment_files_takes_upper_case_images(tmp_path) -> None:
    write_blobs(tmp_path / "in", n=1)
    (tmp_path / "in" / "img_0.png").rename(tmp_path / "in" / "SHOT.PNG")
    written = segment_files([tmp_path / "in"], tmp_path / "out")
    assert [p.name for p in written] == ["SHOT_contours.png"]


def test_segment_command(tmp_path) -> None:
    write_blobs(tmp_path / "in", n=1)
    create_cli().run(
        [
            "segment",
            str(tmp_path / "in" / "img_0.png"),
            "--output",
            str(tmp_path / "out"),
            "--config",
            str(DEFAULT_CONFIG_PATH),
            "--centroid",
        ],
        track_exceptions=False,
    )
    assert (tmp_path / "out" / "img_0_contours.png").exists()


def test_view_command_headless_with_images(tmp_path) -> None:
    write_blobs(tmp_path / "in", n=1)
    create_cli().run(
        [
            "view",
            "--images",
            str(tmp_path / "in"),
            "--headless",
            "--max-ticks",
            "5",
            "--config",
            str(DEFAULT_CONFIG_PATH),
        ],
        track_exceptions=False,
    )


def test_bad_arguments_exit() -> None:
    with pytest.raises(SystemExit):
        create_cli().run(["view", "--filter", "nearest"], track_exceptions=False)


def test_view_stop_key_ends_session(tmp_path, monkeypatch) -> None:
    calls = []

    def install(on_stop=None, stop_key="esc"):
        calls.append("install")
        threading.Timer(0.2, on_stop).start()

    monkeypatch.setattr(ErrorTracker, "install_keyboard_listener", install)
    monkeypatch.setattr(ErrorTracker, "stop_keyboard_listener", lambda: calls.append("stop"))
    write_blobs(tmp_path / "in", n=1)
    # no --max-ticks: only the stop key ends the loop
    create_cli().run(
        [
            "view",
            "--images",
            str(tmp_path / "in"),
            "--headless",
            "--hotkeys",
            "--config",
            str(DEFAULT_CONFIG_PATH),
        ],
        track_exceptions=False,
    )
    assert calls == ["install", "stop"]
