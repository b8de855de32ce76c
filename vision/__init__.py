"""Camera-to-texture binding and contour segmentation.

The vision package turns a stream of camera frames into a texture that is
kept up to date on a render loop. Frame sources push frames from their own
thread into a single-slot queue; the binder uploads the newest matching
frame, runs the OpenCV contour pipeline on it and publishes the annotated
texture to listeners.
"""

from .camera import ActiveProfile, Event, FrameSource, ImageFrameSource
from .formats import (
    ColorSpace,
    FilterMode,
    PixelFormat,
    StreamKind,
    TextureFormat,
    WrapMode,
    bits_per_pixel,
    to_texture_format,
)
from .frame_queue import FrameQueue
from .frames import FrameSet, StreamProfile, VideoFrame
from .render_loop import RenderLoop, TextureSink
from .segmentation import ContourSegmenter, SegmentationResult, stage_grid
from .texture import Texture, mat_to_texture, texture_to_mat
from .texture_binding import RsTextureBinder, TextureEvent

__all__ = [
    "ActiveProfile",
    "Event",
    "FrameSource",
    "ImageFrameSource",
    "ColorSpace",
    "FilterMode",
    "PixelFormat",
    "StreamKind",
    "TextureFormat",
    "WrapMode",
    "bits_per_pixel",
    "to_texture_format",
    "FrameQueue",
    "FrameSet",
    "StreamProfile",
    "VideoFrame",
    "RenderLoop",
    "TextureSink",
    "ContourSegmenter",
    "SegmentationResult",
    "stage_grid",
    "Texture",
    "mat_to_texture",
    "texture_to_mat",
    "RsTextureBinder",
    "TextureEvent",
]
