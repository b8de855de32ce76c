"""CPU-side texture object and conversions to/from OpenCV images."""

from __future__ import annotations

import cv2
import numpy as np

from utils.error_tracker import TextureError
from .formats import FilterMode, TextureFormat, WrapMode, texture_layout


class Texture:
    """
    2D pixel buffer with texture sampling attributes.

    Pixels are stored top row first as an HxW or HxWxC numpy array whose
    dtype and channel count follow :func:`vision.formats.texture_layout`.
    ``version`` increases on every :meth:`apply` so consumers can tell when
    new content was published. A destroyed texture is falsy.
    """

    def __init__(
        self,
        width: int,
        height: int,
        format: TextureFormat,
        linear: bool = False,
        filter_mode: FilterMode = FilterMode.POINT,
        wrap_mode: WrapMode = WrapMode.CLAMP,
    ) -> None:
        if width <= 0 or height <= 0:
            raise TextureError(f"Invalid texture size {width}x{height}")
        self.width = width
        self.height = height
        self.format = TextureFormat(format)
        self.linear = linear
        self.filter_mode = FilterMode(filter_mode)
        self.wrap_mode = WrapMode(wrap_mode)
        self.layout = texture_layout(self.format)
        shape = (height, width) if self.layout.channels == 1 else (
            height,
            width,
            self.layout.channels,
        )
        self._pixels: np.ndarray | None = np.zeros(shape, dtype=self.layout.dtype)
        self.version = 0
        self.dirty = False

    @property
    def texel_bytes(self) -> int:
        return self.layout.dtype.itemsize * self.layout.channels

    @property
    def destroyed(self) -> bool:
        return self._pixels is None

    def __bool__(self) -> bool:
        return not self.destroyed

    def __repr__(self) -> str:
        state = "destroyed" if self.destroyed else f"v{self.version}"
        return (
            f"Texture({self.width}x{self.height}, {self.format.value}, "
            f"{self.filter_mode.value}, {state})"
        )

    @property
    def pixels(self) -> np.ndarray:
        if self._pixels is None:
            raise TextureError("Texture has been destroyed")
        return self._pixels

    def load_raw_texture_data(
        self, data: np.ndarray | bytes, size: int, stride: int | None = None
    ) -> None:
        """
        Copy ``size`` raw bytes from ``data`` into the texture.

        Rows longer than ``width`` texels (``stride`` padding) are trimmed.
        Raises ``ValueError`` if fewer bytes than the texture holds are given.
        """

        if isinstance(data, (bytes, bytearray, memoryview)):
            buf = np.frombuffer(data, dtype=np.uint8)
        else:
            buf = np.ascontiguousarray(data).reshape(-1).view(np.uint8)
        if size > buf.size:
            raise ValueError(f"size {size} exceeds the {buf.size} bytes available")
        row = self.width * self.texel_bytes
        needed = row * self.height
        if size < needed:
            raise ValueError(
                f"not enough data provided: {size} bytes for a "
                f"{self.width}x{self.height} {self.format.value} texture ({needed})"
            )
        buf = buf[:size]
        if stride is not None and stride > row:
            if stride * self.height > size:
                raise ValueError(f"stride {stride} does not fit {size} bytes")
            buf = buf.reshape(-1)[: stride * self.height].reshape(self.height, stride)
            buf = np.ascontiguousarray(buf[:, :row])
        else:
            buf = buf[:needed]
        self.pixels[...] = buf.view(self.layout.dtype).reshape(self.pixels.shape)
        self.dirty = True

    def set_pixels(self, pixels: np.ndarray) -> None:
        """Replace the content with an array of the texture's shape."""
        if pixels.shape != self.pixels.shape:
            raise ValueError(f"shape {pixels.shape} != texture {self.pixels.shape}")
        self.pixels[...] = pixels.astype(self.layout.dtype, copy=False)
        self.dirty = True

    def get_pixels(self) -> np.ndarray:
        return self.pixels.copy()

    def apply(self) -> None:
        """Publish pending writes."""
        if self.destroyed:
            raise TextureError("Texture has been destroyed")
        self.version += 1
        self.dirty = False

    def destroy(self) -> None:
        self._pixels = None


def texture_to_mat(texture: Texture) -> np.ndarray:
    """Return an 8-bit BGR image with the texture content."""

    px = texture.pixels
    fmt = texture.format
    if fmt == TextureFormat.RGB24:
        return cv2.cvtColor(px, cv2.COLOR_RGB2BGR)
    if fmt == TextureFormat.RGBA32:
        return cv2.cvtColor(px, cv2.COLOR_RGBA2BGR)
    if fmt == TextureFormat.BGRA32:
        return cv2.cvtColor(px, cv2.COLOR_BGRA2BGR)
    if fmt == TextureFormat.ARGB32:
        return np.ascontiguousarray(px[..., [3, 2, 1]])
    if fmt in (TextureFormat.ALPHA8, TextureFormat.R8):
        return cv2.cvtColor(px, cv2.COLOR_GRAY2BGR)
    # 16-bit and float textures (depth, disparity): stretch to 0..255
    gray = cv2.normalize(px, None, 0, 255, cv2.NORM_MINMAX).astype(np.uint8)
    return cv2.cvtColor(gray, cv2.COLOR_GRAY2BGR)


def mat_to_texture(
    mat: np.ndarray,
    texture: Texture | None = None,
    filter_mode: FilterMode = FilterMode.POINT,
) -> Texture:
    """
    Write an 8-bit BGR (or gray) image into an RGBA32 texture.

    ``texture`` is reused when it is alive, RGBA32 and of the same size,
    otherwise a new texture is allocated.
    """

    if mat.ndim == 2:
        rgba = cv2.cvtColor(mat, cv2.COLOR_GRAY2RGBA)
    else:
        rgba = cv2.cvtColor(mat, cv2.COLOR_BGR2RGBA)
    h, w = rgba.shape[:2]
    if not (
        texture
        and texture.format == TextureFormat.RGBA32
        and texture.width == w
        and texture.height == h
    ):
        texture = Texture(w, h, TextureFormat.RGBA32, filter_mode=filter_mode)
    texture.set_pixels(rgba)
    return texture
