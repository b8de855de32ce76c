"""Bind one stream of a frame source to a texture and outline detected objects.

Frames arrive on the source thread and are parked in a single-slot
:class:`FrameQueue`; :meth:`RsTextureBinder.late_update` runs on the render
thread, pops at most one frame, (re)allocates the texture when the frame
geometry changes, uploads the pixels and optionally runs the contour
segmentation before publishing the texture to listeners.
"""

from __future__ import annotations

from typing import Callable, List, cast

from utils.logger import Logger, LoggerType
from utils.settings import BindingCfg
from .camera.camera_base import ActiveProfile, Frame, FrameSource
from .formats import (
    ColorSpace,
    FilterMode,
    PixelFormat,
    StreamKind,
    TextureFormat,
    WrapMode,
    bits_per_pixel,
    format_from_name,
    stream_from_name,
    to_texture_format,
)
from .frame_queue import FrameQueue
from .frames import VideoFrame
from .segmentation import ContourSegmenter, SegmentationResult
from .texture import Texture, mat_to_texture, texture_to_mat

TextureListener = Callable[[Texture], None]


class TextureEvent:
    """Listeners notified with the texture whenever it is (re)published."""

    def __init__(self, logger: LoggerType | None = None) -> None:
        self._listeners: List[TextureListener] = []
        self.logger = logger or Logger.get_logger("vision.texture_event")

    def add_listener(self, listener: TextureListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: TextureListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def __len__(self) -> int:
        return len(self._listeners)

    def invoke(self, texture: Texture) -> None:
        for listener in list(self._listeners):
            try:
                listener(texture)
            except Exception as e:
                self.logger.exception(f"Texture listener {listener!r} failed: {e}")


class RsTextureBinder:
    """
    Keeps a texture in sync with one stream of ``source``.

    Matching frames are the ones whose profile has the configured stream
    kind, pixel format and stream index. With a ``segmenter`` every frame is
    outlined and the result is written to :attr:`output_texture`, otherwise
    the raw :attr:`texture` is what listeners see.
    """

    def __init__(
        self,
        source: FrameSource,
        stream: StreamKind = StreamKind.COLOR,
        format: PixelFormat = PixelFormat.RGB8,
        stream_index: int = 0,
        filter_mode: FilterMode = FilterMode.POINT,
        color_space: ColorSpace = ColorSpace.GAMMA,
        segmenter: ContourSegmenter | None = None,
        logger: LoggerType | None = None,
    ) -> None:
        self.source = source
        self.stream = StreamKind(stream)
        self.format = PixelFormat(format)
        self.stream_index = stream_index
        self.filter_mode = FilterMode(filter_mode)
        self.color_space = ColorSpace(color_space)
        self.segmenter = segmenter
        self.logger = logger or Logger.get_logger("vision.texture_binding")
        self.texture_binding = TextureEvent(self.logger)
        self.texture: Texture | None = None
        self.output_texture: Texture | None = None
        self.last_result: SegmentationResult | None = None
        self.frames_processed = 0
        self._queue: FrameQueue[VideoFrame] | None = None
        self._matcher: Callable[[VideoFrame], bool] | None = None

    @classmethod
    def from_config(
        cls,
        source: FrameSource,
        cfg: BindingCfg,
        segmenter: ContourSegmenter | None = None,
        logger: LoggerType | None = None,
    ) -> "RsTextureBinder":
        return cls(
            source,
            stream=stream_from_name(cfg.stream),
            format=format_from_name(cfg.format),
            stream_index=cfg.stream_index,
            filter_mode=FilterMode(cfg.filter_mode.lower()),
            color_space=ColorSpace(cfg.color_space.lower()),
            segmenter=segmenter if cfg.segmentation else None,
            logger=logger,
        )

    # ------------------------------------------------------------------
    # lifecycle
    def start(self) -> None:
        """Follow the source's start/stop notifications."""
        self.source.on_start += self.on_start_streaming
        self.source.on_stop += self.on_stop_streaming
        if self.source.streaming and self.source.active_profile is not None:
            self.on_start_streaming(self.source.active_profile)

    def on_start_streaming(self, profile: ActiveProfile) -> None:
        if self._queue is not None:
            self._queue.dispose()
        self._queue = FrameQueue(1)
        # the predicate is fixed for the whole streaming session
        self._matcher = self._predicate()
        self.source.on_new_sample -= self.on_new_sample
        self.source.on_new_sample += self.on_new_sample
        if profile.get_stream(self.stream, self.stream_index) is None:
            self.logger.warning(
                f"{self.stream.value}#{self.stream_index} is not among the active streams"
            )

    def on_stop_streaming(self) -> None:
        self.source.on_new_sample -= self.on_new_sample
        self._matcher = None
        if self._queue is not None:
            self._queue.dispose()
            self._queue = None

    def destroy(self) -> None:
        """Release textures and the queue and forget the source."""
        for tex in (self.texture, self.output_texture):
            if tex is not None:
                tex.destroy()
        self.texture = None
        self.output_texture = None
        if self._queue is not None:
            self._queue.dispose()
            self._queue = None
        self.source.on_new_sample -= self.on_new_sample
        self.source.on_start -= self.on_start_streaming
        self.source.on_stop -= self.on_stop_streaming

    @property
    def queue(self) -> FrameQueue[VideoFrame] | None:
        return self._queue

    # ------------------------------------------------------------------
    # source thread
    def _predicate(self) -> Callable[[VideoFrame], bool]:
        stream, fmt, index = self.stream, self.format, self.stream_index
        return lambda f: (
            f.profile.stream == stream
            and f.profile.format == fmt
            and f.profile.index == index
        )

    def matches(self, frame: VideoFrame) -> bool:
        """
        Whether ``frame`` would be queued.

        While streaming this is the predicate captured at start; field changes
        made since then only apply from the next start.
        """
        return (self._matcher or self._predicate())(frame)

    def on_new_sample(self, frame: Frame) -> None:
        try:
            queue, matcher = self._queue, self._matcher
            if queue is None or matcher is None:
                return
            if frame.is_composite:
                f = frame.first_or_default(matcher)
                if f is not None:
                    queue.enqueue(f)
                return
            if not matcher(frame):
                return
            queue.enqueue(frame)
        except Exception as e:
            self.logger.exception(f"Dropping sample: {e}")

    # ------------------------------------------------------------------
    # render thread
    def has_texture_conflict(self, frame: VideoFrame) -> bool:
        return (
            not self.texture
            or self.texture.width != frame.width
            or self.texture.height != frame.height
            or bits_per_pixel(self.texture.format) != frame.bits_per_pixel
        )

    def late_update(self) -> bool:
        """Process at most one pending frame; ``True`` if one was processed."""
        if self._queue is None:
            return False
        frame = self._queue.poll_for_frame()
        if frame is None:
            return False
        self.process_frame(frame)
        return True

    def _allocate(self, frame: VideoFrame) -> None:
        if self.texture is not None:
            self.texture.destroy()
        if self.output_texture is not None:
            self.output_texture.destroy()
            self.output_texture = None
        p = frame.profile
        linear = self.color_space != ColorSpace.LINEAR or p.stream not in (
            StreamKind.COLOR,
            StreamKind.INFRARED,
        )
        self.texture = Texture(
            frame.width,
            frame.height,
            to_texture_format(p.format),
            linear=linear,
            filter_mode=self.filter_mode,
            wrap_mode=WrapMode.CLAMP,
        )
        self.logger.info(f"Allocated {self.texture!r} for {p.stream.value}/{p.format.value}")
        if self.segmenter is not None:
            self.output_texture = Texture(
                frame.width,
                frame.height,
                TextureFormat.RGBA32,
                linear=linear,
                filter_mode=self.filter_mode,
                wrap_mode=WrapMode.CLAMP,
            )
        self.texture_binding.invoke(self.output_texture or self.texture)

    def process_frame(self, frame: VideoFrame) -> None:
        if self.has_texture_conflict(frame):
            self._allocate(frame)
        texture = cast(Texture, self.texture)
        texture.load_raw_texture_data(frame.data, frame.size, frame.stride)
        self.frames_processed += 1

        if self.segmenter is None:
            texture.apply()
            return

        mat = texture_to_mat(texture)
        self.last_result = self.segmenter.process(mat)
        self.output_texture = mat_to_texture(
            self.last_result.output, self.output_texture, self.filter_mode
        )
        self.texture_binding.invoke(self.output_texture)
        self.output_texture.apply()

    @property
    def published(self) -> Texture | None:
        """The texture listeners are bound to."""
        return self.output_texture if self.segmenter is not None else self.texture
