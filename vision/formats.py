"""Stream, pixel and texture format enumerations.

Stream kinds and pixel formats carry the librealsense names as values so
``pyrealsense2`` enums convert by name (see :func:`stream_from_name`).
"""

from __future__ import annotations

from enum import Enum
from typing import NamedTuple

import numpy as np

from utils.error_tracker import UnsupportedFormatError


class StreamKind(str, Enum):
    ANY = "any"
    DEPTH = "depth"
    COLOR = "color"
    INFRARED = "infrared"
    FISHEYE = "fisheye"
    GYRO = "gyro"
    ACCEL = "accel"
    GPIO = "gpio"
    POSE = "pose"
    CONFIDENCE = "confidence"


class PixelFormat(str, Enum):
    ANY = "any"
    Z16 = "z16"
    DISPARITY16 = "disparity16"
    XYZ32F = "xyz32f"
    YUYV = "yuyv"
    RGB8 = "rgb8"
    BGR8 = "bgr8"
    RGBA8 = "rgba8"
    BGRA8 = "bgra8"
    Y8 = "y8"
    Y16 = "y16"
    RAW10 = "raw10"
    RAW16 = "raw16"
    RAW8 = "raw8"
    UYVY = "uyvy"
    MOTION_RAW = "motion_raw"
    MOTION_XYZ32F = "motion_xyz32f"
    GPIO_RAW = "gpio_raw"
    SIX_DOF = "six_dof"
    DISPARITY32 = "disparity32"


class TextureFormat(str, Enum):
    ALPHA8 = "alpha8"
    R8 = "r8"
    R16 = "r16"
    RGB24 = "rgb24"
    RGBA32 = "rgba32"
    BGRA32 = "bgra32"
    ARGB32 = "argb32"
    RFLOAT = "rfloat"


class FilterMode(str, Enum):
    POINT = "point"
    BILINEAR = "bilinear"
    TRILINEAR = "trilinear"


class WrapMode(str, Enum):
    CLAMP = "clamp"
    REPEAT = "repeat"


class ColorSpace(str, Enum):
    GAMMA = "gamma"
    LINEAR = "linear"


class TextureLayout(NamedTuple):
    """Storage of one texel: numpy dtype and number of channels."""

    dtype: np.dtype
    channels: int


_TEXTURE_FORMATS: dict[PixelFormat, TextureFormat] = {
    PixelFormat.Z16: TextureFormat.R16,
    PixelFormat.DISPARITY16: TextureFormat.R16,
    PixelFormat.RGB8: TextureFormat.RGB24,
    PixelFormat.RGBA8: TextureFormat.RGBA32,
    PixelFormat.BGRA8: TextureFormat.BGRA32,
    PixelFormat.Y8: TextureFormat.ALPHA8,
    PixelFormat.Y16: TextureFormat.R16,
    PixelFormat.RAW16: TextureFormat.R16,
    PixelFormat.RAW8: TextureFormat.ALPHA8,
    PixelFormat.DISPARITY32: TextureFormat.RFLOAT,
}

_BITS_PER_PIXEL: dict[TextureFormat, int] = {
    TextureFormat.ARGB32: 32,
    TextureFormat.BGRA32: 32,
    TextureFormat.RGBA32: 32,
    TextureFormat.RGB24: 24,
    TextureFormat.R16: 16,
    TextureFormat.R8: 8,
    TextureFormat.ALPHA8: 8,
}

_LAYOUTS: dict[TextureFormat, TextureLayout] = {
    TextureFormat.ALPHA8: TextureLayout(np.dtype(np.uint8), 1),
    TextureFormat.R8: TextureLayout(np.dtype(np.uint8), 1),
    TextureFormat.R16: TextureLayout(np.dtype(np.uint16), 1),
    TextureFormat.RGB24: TextureLayout(np.dtype(np.uint8), 3),
    TextureFormat.RGBA32: TextureLayout(np.dtype(np.uint8), 4),
    TextureFormat.BGRA32: TextureLayout(np.dtype(np.uint8), 4),
    TextureFormat.ARGB32: TextureLayout(np.dtype(np.uint8), 4),
    TextureFormat.RFLOAT: TextureLayout(np.dtype(np.float32), 1),
}


def to_texture_format(fmt: PixelFormat) -> TextureFormat:
    """Translate a camera pixel format into the matching texture format."""
    try:
        return _TEXTURE_FORMATS[PixelFormat(fmt)]
    except (KeyError, ValueError):
        raise UnsupportedFormatError(
            f"librealsense format: {getattr(fmt, 'value', fmt)}, is not supported as a texture"
        ) from None


def bits_per_pixel(fmt: TextureFormat) -> int:
    """Bits per texel for the texture formats frames are compared against."""
    try:
        return _BITS_PER_PIXEL[TextureFormat(fmt)]
    except (KeyError, ValueError):
        raise UnsupportedFormatError(
            f"unsupported format {getattr(fmt, 'value', fmt)}"
        ) from None


def texture_layout(fmt: TextureFormat) -> TextureLayout:
    """Return dtype and channel count used to store ``fmt`` texels."""
    try:
        return _LAYOUTS[TextureFormat(fmt)]
    except (KeyError, ValueError):
        raise UnsupportedFormatError(
            f"unsupported format {getattr(fmt, 'value', fmt)}"
        ) from None


def stream_from_name(name: str) -> StreamKind:
    """Parse ``"color"``, ``"COLOR"`` or ``"stream.color"`` into a kind."""
    return StreamKind(str(name).rsplit(".", 1)[-1].lower())


def format_from_name(name: str) -> PixelFormat:
    """Parse ``"rgb8"``, ``"RGB8"`` or ``"format.rgb8"`` into a format."""
    return PixelFormat(str(name).rsplit(".", 1)[-1].lower())
