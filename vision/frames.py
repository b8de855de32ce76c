"""Frame containers handed from frame sources to consumers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Iterator, Optional, Sequence

import numpy as np

from .formats import PixelFormat, StreamKind

FramePredicate = Callable[["VideoFrame"], bool]


@dataclass(frozen=True)
class StreamProfile:
    """Identity of a stream: kind, pixel format, index and frame rate."""

    stream: StreamKind
    format: PixelFormat
    index: int = 0
    fps: int = 0


@dataclass
class VideoFrame:
    """
    A single image frame.

    ``data`` is a flat ``uint8`` buffer holding ``height`` rows of ``stride``
    bytes each; only the first ``width * bits_per_pixel / 8`` bytes of a row
    are pixels.
    """

    profile: StreamProfile
    width: int
    height: int
    stride: int
    bits_per_pixel: int
    data: np.ndarray
    frame_number: int = 0
    timestamp: float = 0.0

    is_composite = False

    @classmethod
    def from_array(
        cls,
        image: np.ndarray,
        profile: StreamProfile,
        frame_number: int = 0,
        timestamp: float = 0.0,
    ) -> "VideoFrame":
        """Wrap an HxW or HxWxC array as a tightly packed frame."""
        image = np.ascontiguousarray(image)
        height, width = image.shape[:2]
        channels = image.shape[2] if image.ndim == 3 else 1
        bpp = image.dtype.itemsize * channels * 8
        return cls(
            profile=profile,
            width=width,
            height=height,
            stride=width * bpp // 8,
            bits_per_pixel=bpp,
            data=image.reshape(-1).view(np.uint8),
            frame_number=frame_number,
            timestamp=timestamp,
        )

    @property
    def row_bytes(self) -> int:
        return self.width * self.bits_per_pixel // 8

    @property
    def size(self) -> int:
        """Bytes covered by ``stride * height``."""
        return self.stride * self.height

    def as_array(self, dtype: np.dtype | type = np.uint8, channels: int = 1) -> np.ndarray:
        """Return the pixels as an HxW or HxWxC array (stride padding dropped)."""
        rows = self.data[: self.size].reshape(self.height, self.stride)
        rows = rows[:, : self.row_bytes]
        img = np.ascontiguousarray(rows).view(dtype)
        if channels > 1:
            return img.reshape(self.height, self.width, channels)
        return img.reshape(self.height, self.width)


@dataclass
class FrameSet:
    """Composite frame delivered when several streams are synchronized."""

    frames: Sequence[VideoFrame] = field(default_factory=list)
    frame_number: int = 0
    timestamp: float = 0.0

    is_composite = True

    def __iter__(self) -> Iterator[VideoFrame]:
        return iter(self.frames)

    def __len__(self) -> int:
        return len(self.frames)

    def first_or_default(self, predicate: FramePredicate) -> Optional[VideoFrame]:
        """Return the first member matching ``predicate`` or ``None``."""
        return next((f for f in self.frames if predicate(f)), None)
