import sys
from pathlib import Path
from types import SimpleNamespace

import numpy as np
import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

rs = pytest.importorskip("pyrealsense2")

from utils.error_tracker import CameraConnectionError
from vision.camera.camera_base import ActiveProfile
from vision.camera.realsense_source import RealSenseFrameSource, convert_frame
from vision.formats import PixelFormat, StreamKind
from vision.frames import FrameSet, VideoFrame
from vision.texture_binding import RsTextureBinder


class FakeProfile:
    def __init__(self, stream: str, fmt: str, index: int = 0) -> None:
        self._stream, self._fmt, self._index = stream, fmt, index

    def stream_type(self):
        return SimpleNamespace(name=self._stream)

    def format(self):
        return SimpleNamespace(name=self._fmt)

    def stream_index(self) -> int:
        return self._index

    def fps(self) -> int:
        return 30


class FakeVideoFrame:
    """Just enough of ``rs.video_frame`` for the conversion code."""

    def __init__(self, img: np.ndarray, profile: FakeProfile, number: int = 7) -> None:
        self.img = img
        self.profile = profile
        self.number = number

    def is_frameset(self) -> bool:
        return False

    def is_video_frame(self) -> bool:
        return True

    def as_video_frame(self):
        return self

    def get_width(self) -> int:
        return self.img.shape[1]

    def get_height(self) -> int:
        return self.img.shape[0]

    def get_bits_per_pixel(self) -> int:
        channels = self.img.shape[2] if self.img.ndim == 3 else 1
        return self.img.dtype.itemsize * channels * 8

    def get_data(self):
        return self.img

    def get_profile(self) -> FakeProfile:
        return self.profile

    def get_frame_number(self) -> int:
        return self.number

    def get_timestamp(self) -> float:
        return 1000.0


class FakeMotionFrame:
    def is_frameset(self) -> bool:
        return False

    def is_video_frame(self) -> bool:
        return False


class FakeFrameSet(list):
    def is_frameset(self) -> bool:
        return True

    def as_frameset(self):
        return self

    def get_frame_number(self) -> int:
        return 42

    def get_timestamp(self) -> float:
        return 2000.0


class BrokenFrame(FakeVideoFrame):
    def get_data(self):
        raise RuntimeError("frame didn't arrive within 5000")


def color_frame() -> FakeVideoFrame:
    img = np.zeros((6, 8, 3), np.uint8)
    img[2:4, 2:6] = (10, 20, 30)
    return FakeVideoFrame(img, FakeProfile("color", "rgb8"))


def test_video_frame_is_copied() -> None:
    fake = color_frame()
    frame = convert_frame(fake)
    assert isinstance(frame, VideoFrame)
    assert frame.profile.stream is StreamKind.COLOR
    assert frame.profile.format is PixelFormat.RGB8
    assert frame.profile.fps == 30
    assert (frame.width, frame.height, frame.stride) == (8, 6, 24)
    assert frame.frame_number == 7
    fake.img[:] = 0
    assert frame.as_array(channels=3)[3, 3].tolist() == [10, 20, 30]


def test_frameset_drops_non_video_members() -> None:
    depth = FakeVideoFrame(np.full((6, 8), 500, np.uint16), FakeProfile("depth", "z16"))
    fs = convert_frame(FakeFrameSet([depth, FakeMotionFrame(), color_frame()]))
    assert isinstance(fs, FrameSet)
    assert [f.profile.stream for f in fs] == [StreamKind.DEPTH, StreamKind.COLOR]
    assert fs.frames[0].bits_per_pixel == 16
    assert fs.frame_number == 42


def test_motion_frame_is_not_converted() -> None:
    assert convert_frame(FakeMotionFrame()) is None


def test_unknown_sdk_format_is_never_bound() -> None:
    img = np.zeros((6, 8), np.uint16)
    frame = convert_frame(FakeVideoFrame(img, FakeProfile("infrared", "y8i", 1)))
    assert frame.profile.stream is StreamKind.INFRARED
    assert frame.profile.format is PixelFormat.ANY

    src = RealSenseFrameSource()
    binder = RsTextureBinder(src, stream=StreamKind.INFRARED, format=PixelFormat.Y8)
    binder.on_start_streaming(ActiveProfile(streams=[], device="fake"))
    binder.on_new_sample(frame)
    assert len(binder.queue) == 0


def test_frame_callback_never_raises() -> None:
    src = RealSenseFrameSource()
    received = []
    src.on_new_sample += received.append
    src._on_frame(BrokenFrame(np.zeros((2, 2, 3), np.uint8), FakeProfile("color", "rgb8")))
    src._on_frame(FakeVideoFrame(np.zeros((2, 2), np.uint8), FakeProfile("accel", "mjpeg")))
    src._on_frame(color_frame())
    assert len(received) == 2
    assert received[0].profile.format is PixelFormat.ANY
    assert received[1].profile.format is PixelFormat.RGB8


def test_missing_bag_file_rejected(tmp_path) -> None:
    src = RealSenseFrameSource(bag_file=tmp_path / "missing.bag")
    with pytest.raises(CameraConnectionError):
        src._build_config()


def test_live_config_is_built_without_device() -> None:
    src = RealSenseFrameSource()
    assert isinstance(src._build_config(), rs.config)
