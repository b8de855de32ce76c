"""Shared helper modules used across the project.

The :mod:`utils` package contains lightweight helpers for logging, YAML
configuration, CLI dispatching and error tracking. These utilities are used
by the vision package and the command line tools.
"""

from .logger import Logger, LoggerType
from .settings import (
    IMAGE_EXT,
    IMAGE_SUFFIXES,
    BindingCfg,
    LoggingCfg,
    ReplayCfg,
    SegmentationCfg,
    StreamCfg,
    ViewerCfg,
    paths,
    logging,
    stream,
    binding,
    segmentation,
    viewer,
    replay,
)
from .error_tracker import (
    CameraConnectionError,
    ErrorTracker,
    FrameSourceError,
    TextureError,
    UnsupportedFormatError,
)

__all__ = [
    "Logger",
    "LoggerType",
    "IMAGE_EXT",
    "IMAGE_SUFFIXES",
    "BindingCfg",
    "LoggingCfg",
    "ReplayCfg",
    "SegmentationCfg",
    "StreamCfg",
    "ViewerCfg",
    "paths",
    "logging",
    "stream",
    "binding",
    "segmentation",
    "viewer",
    "replay",
    "CameraConnectionError",
    "ErrorTracker",
    "FrameSourceError",
    "TextureError",
    "UnsupportedFormatError",
]
