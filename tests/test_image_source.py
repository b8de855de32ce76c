import sys
import time
from pathlib import Path

import cv2
import numpy as np
import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from utils.error_tracker import FrameSourceError
from utils.settings import ReplayCfg, ViewerCfg
from vision.camera import ImageFrameSource, collect_image_files, load_images
from vision.formats import PixelFormat, StreamKind
from vision.frames import FrameSet, VideoFrame
from vision.render_loop import RenderLoop
from vision.segmentation import ContourSegmenter
from vision.texture_binding import RsTextureBinder


def blob() -> np.ndarray:
    img = np.zeros((60, 80, 3), np.uint8)
    img[20:40, 20:60] = (0, 128, 255)
    return img


def test_step_emits_rgb_color_frames() -> None:
    received = []
    src = ImageFrameSource([blob()], cfg=ReplayCfg(fps=0, loop=False), threaded=False)
    src.on_new_sample += received.append
    profile = src.start()
    assert [p.stream for p in profile.streams] == [StreamKind.COLOR]
    assert src.step() is True
    assert src.step() is False
    (frame,) = received
    assert isinstance(frame, VideoFrame)
    assert frame.profile.format is PixelFormat.RGB8
    assert frame.bits_per_pixel == 24 and frame.stride == 80 * 3
    assert frame.as_array(channels=3)[30, 30].tolist() == [255, 128, 0]


def test_depth_pairs_become_framesets() -> None:
    received = []
    depth = np.arange(60 * 80, dtype=np.uint16).reshape(60, 80)
    src = ImageFrameSource([blob()], depths=[depth], threaded=False)
    src.on_new_sample += received.append
    src.start()
    src.step()
    (fs,) = received
    assert isinstance(fs, FrameSet) and fs.is_composite
    kinds = [f.profile.stream for f in fs]
    assert kinds == [StreamKind.DEPTH, StreamKind.COLOR]
    assert np.array_equal(fs.frames[0].as_array(np.uint16), depth)


def test_mismatched_depths_rejected() -> None:
    with pytest.raises(FrameSourceError):
        ImageFrameSource([blob(), blob()], depths=[np.zeros((60, 80), np.uint16)])


def test_load_images_from_directory(tmp_path) -> None:
    cv2.imwrite(str(tmp_path / "b.png"), blob())
    cv2.imwrite(str(tmp_path / "a.png"), blob())
    images = load_images([tmp_path])
    assert len(images) == 2 and images[0].shape == (60, 80, 3)
    with pytest.raises(FrameSourceError):
        load_images([tmp_path / "missing.png"])


def test_directory_collection_ignores_suffix_case(tmp_path) -> None:
    cv2.imwrite(str(tmp_path / "a.png"), blob())
    cv2.imwrite(str(tmp_path / "B.PNG"), blob())
    (tmp_path / "notes.txt").write_text("not an image")
    files = collect_image_files([tmp_path])
    assert [f.name for f in files] == ["B.PNG", "a.png"]
    assert len(load_images([tmp_path])) == 2


def test_threaded_replay_feeds_render_loop() -> None:
    src = ImageFrameSource([blob()], cfg=ReplayCfg(fps=100.0, loop=True))
    binder = RsTextureBinder(src, segmenter=ContourSegmenter())
    loop = RenderLoop(binder, ViewerCfg(headless=True, tick_rate=200.0))
    binder.start()
    src.start()
    try:
        frames = loop.run(max_ticks=40)
    finally:
        src.stop()
    assert loop.ticks == 40
    assert frames >= 1
    assert loop.sink.texture is binder.output_texture
    assert loop.sink.image().shape == (60, 80, 3)


def test_stop_joins_replay_thread() -> None:
    src = ImageFrameSource([blob()], cfg=ReplayCfg(fps=50.0, loop=True))
    stopped = []
    src.on_stop += lambda: stopped.append(True)
    src.start()
    time.sleep(0.05)
    src.stop()
    assert stopped == [True]
    assert src._thread is None and not src.streaming
    src.stop()
    assert stopped == [True]
