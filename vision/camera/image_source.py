"""Replay still images as a color (and optional depth) frame stream."""

from __future__ import annotations

import threading
import time
from pathlib import Path
from typing import Iterable, Sequence

import cv2
import numpy as np

from utils.error_tracker import FrameSourceError
from utils.logger import LoggerType
from utils.settings import IMAGE_SUFFIXES, ReplayCfg, replay as default_replay
from vision.formats import PixelFormat, StreamKind
from vision.frames import FrameSet, StreamProfile, VideoFrame

from .camera_base import ActiveProfile, Frame, FrameSource


def collect_image_files(paths: Iterable[str | Path]) -> list[Path]:
    """Expand directories to their image files (any suffix case), sorted by name.

    Explicit file paths are kept as given.
    """

    files: list[Path] = []
    for p in map(Path, paths):
        if p.is_dir():
            files.extend(
                sorted(
                    f
                    for f in p.iterdir()
                    if f.is_file() and f.suffix.lower() in IMAGE_SUFFIXES
                )
            )
        else:
            files.append(p)
    return files


def load_images(paths: Iterable[str | Path]) -> list[np.ndarray]:
    """Read BGR images from files or directories (sorted)."""

    images = []
    for f in collect_image_files(paths):
        img = cv2.imread(str(f), cv2.IMREAD_COLOR)
        if img is None:
            raise FrameSourceError(f"Cannot read image: {f}")
        images.append(img)
    if not images:
        raise FrameSourceError("No images to replay")
    return images


class ImageFrameSource(FrameSource):
    """
    Frame source backed by BGR images held in memory.

    Color frames are delivered as RGB8. When ``depths`` are given each color
    frame is paired with the Z16 depth at the same position and the pair is
    delivered as a :class:`FrameSet`.

    With ``threaded=False`` nothing is emitted until :meth:`step` is called,
    which makes the source deterministic for tests.
    """

    def __init__(
        self,
        images: Sequence[np.ndarray],
        depths: Sequence[np.ndarray] | None = None,
        cfg: ReplayCfg | None = None,
        threaded: bool = True,
        logger: LoggerType | None = None,
    ) -> None:
        super().__init__(logger)
        if not images:
            raise FrameSourceError("ImageFrameSource needs at least one image")
        if depths is not None and len(depths) != len(images):
            raise FrameSourceError("depths and images must have the same length")
        self.images = list(images)
        self.depths = list(depths) if depths is not None else None
        self.cfg = cfg or default_replay
        self.threaded = threaded
        self.color_profile = StreamProfile(
            StreamKind.COLOR, PixelFormat.RGB8, 0, int(self.cfg.fps)
        )
        self.depth_profile = StreamProfile(
            StreamKind.DEPTH, PixelFormat.Z16, 0, int(self.cfg.fps)
        )
        self._position = 0
        self._frame_number = 0
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    @classmethod
    def from_files(cls, paths: Iterable[str | Path], **kwargs) -> "ImageFrameSource":
        return cls(load_images(paths), **kwargs)

    def _make_frame(self, idx: int) -> Frame:
        self._frame_number += 1
        ts = time.time() * 1000.0
        rgb = cv2.cvtColor(self.images[idx], cv2.COLOR_BGR2RGB)
        color = VideoFrame.from_array(rgb, self.color_profile, self._frame_number, ts)
        if self.depths is None:
            return color
        depth = VideoFrame.from_array(
            self.depths[idx].astype(np.uint16), self.depth_profile, self._frame_number, ts
        )
        return FrameSet([depth, color], self._frame_number, ts)

    def step(self) -> bool:
        """Emit the next frame; ``False`` once a non-looping replay is done."""

        if self._position >= len(self.images):
            if not self.cfg.loop:
                return False
            self._position = 0
        frame = self._make_frame(self._position)
        self._position += 1
        self.emit(frame)
        return True

    def _run(self) -> None:
        period = 1.0 / self.cfg.fps if self.cfg.fps > 0 else 0.0
        while not self._stop_event.is_set():
            try:
                if not self.step():
                    break
            except Exception as e:
                self.logger.exception(f"Replay failed: {e}")
                break
            self._stop_event.wait(period)
        self.logger.debug("Replay thread finished")

    def start(self) -> ActiveProfile:
        streams = [self.color_profile]
        if self.depths is not None:
            streams.insert(0, self.depth_profile)
        active = self._started(ActiveProfile(streams=streams, device="image replay"))
        if self.threaded:
            self._stop_event.clear()
            self._thread = threading.Thread(target=self._run, daemon=True)
            self._thread.start()
        return active

    def stop(self) -> None:
        if not self.streaming:
            return
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=2.0)
            self._thread = None
        self._stopped()
