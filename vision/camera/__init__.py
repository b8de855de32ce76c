"""Frame sources.

This subpackage defines the abstract :class:`FrameSource`, a RealSense
implementation (live device or bag playback) and an image replay source
used for offline runs and tests. The RealSense source is imported lazily so
the rest of the package works without ``pyrealsense2`` installed.
"""

from .camera_base import ActiveProfile, Event, Frame, FrameSource
from .image_source import ImageFrameSource, collect_image_files, load_images

__all__ = [
    "ActiveProfile",
    "Event",
    "Frame",
    "FrameSource",
    "ImageFrameSource",
    "collect_image_files",
    "load_images",
]
