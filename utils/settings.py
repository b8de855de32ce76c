"""Project wide configuration dataclasses and default values."""

from dataclasses import dataclass
from pathlib import Path

import cv2

# Root dir
BASE_DIR = Path(__file__).resolve().parent.parent

# Common file name extensions for images written by the tools
IMAGE_EXT = ".png"
IMAGE_SUFFIXES = (".png", ".jpg", ".jpeg", ".bmp")


@dataclass(frozen=True)
class Paths:
    """
    Dataclass aggregating filesystem paths used in the project.
    """

    CONF_DIR: Path = BASE_DIR / "conf"
    LOG_DIR: Path = BASE_DIR / ".logs"
    OUTPUT_DIR: Path = BASE_DIR / ".output"


paths = Paths()


@dataclass(frozen=True)
class LoggingCfg:
    """
    Logging configuration for the project.

    - level: Log level ("INFO", "DEBUG", etc.)
    - json: Enable/disable structured JSON logging.
    - log_dir: Directory where log files are stored.
    - log_format: Console log output format.
    - log_file_format: File log output format.
    - progress_bar_format: TQDM progress bar format.
    """

    level: str = "INFO"
    json: bool = True
    log_dir: Path = Path(".logs")
    log_format: str = (
        "<green>{time:MM-DD HH:mm:ss}</green>"
        "[<level>{level:.3}</level>]"
        "[<cyan>{extra[module]:.16}</cyan>:<cyan>{line:<3}</cyan>]"
        "<level>{message}</level>"
    )
    log_file_format: str = "{time:YYYY-MM-DD HH:mm:ss}[{level}][{file}:{line}]{message}"
    progress_bar_format: str = (
        "{l_bar}{bar}| {n_fmt}/{total_fmt} [{elapsed}<{remaining}]"
    )


logging = LoggingCfg()


@dataclass(frozen=True)
class StreamCfg:
    """
    RealSense stream request:
    - color/depth frame size
    - frame rate
    - pixel formats (librealsense names)
    """

    color_width: int = 1280
    color_height: int = 720
    depth_width: int = 1280
    depth_height: int = 720
    fps: int = 30
    color_format: str = "rgb8"
    depth_format: str = "z16"
    enable_color: bool = True
    enable_depth: bool = True


stream = StreamCfg()


@dataclass(frozen=True)
class BindingCfg:
    """
    Which frames get bound to the texture and how the texture is sampled.
    Stream kind and pixel format use librealsense names.
    """

    stream: str = "color"
    format: str = "rgb8"
    stream_index: int = 0
    filter_mode: str = "point"
    color_space: str = "gamma"
    segmentation: bool = True


binding = BindingCfg()


@dataclass(frozen=True)
class SegmentationCfg:
    """
    Contour segmentation parameters.

    Otsu picks the binary threshold, so ``threshold`` is only a seed.
    ``sure_fg_threshold`` is in pixels of the L2 distance map.
    ``polyline_color`` and ``centroid_color`` are BGR.
    With the default 1x1 ``kernel_size`` opening and dilation leave the mask
    unchanged; a 3x3 kernel drops specks and grows the outlined regions.
    """

    threshold: float = 0.0
    max_value: float = 255.0
    threshold_type: int = cv2.THRESH_BINARY | cv2.THRESH_OTSU
    kernel_size: int = 1
    open_iterations: int = 2
    dilate_iterations: int = 2
    distance_type: int = cv2.DIST_L2
    distance_mask: int = cv2.DIST_MASK_5
    sure_fg_threshold: float = 11.0
    retrieval_mode: int = cv2.RETR_LIST
    approximation: int = cv2.CHAIN_APPROX_TC89_KCOS
    min_contour_area: float = 0.0
    polyline_color: tuple[int, int, int] = (0, 0, 255)
    polyline_thickness: int = 5
    closed: bool = True
    draw_centroid: bool = False
    centroid_radius: int = 50
    centroid_color: tuple[int, int, int] = (0, 0, 255)
    centroid_thickness: int = 3
    compute_unknown: bool = False


segmentation = SegmentationCfg()


@dataclass(frozen=True)
class ViewerCfg:
    """Preview window options for the render loop."""

    window_name: str = "Texture"
    display_width: int = 640
    display_height: int = 480
    tick_rate: float = 30.0
    show_stages: bool = False
    headless: bool = False
    max_ticks: int = 0  # 0 = run until ESC
    hotkeys: bool = False  # global ESC listener (pynput)


viewer = ViewerCfg()


@dataclass(frozen=True)
class ReplayCfg:
    """Image replay source options."""

    fps: float = 15.0
    loop: bool = True


replay = ReplayCfg()

__all__ = [
    "Paths",
    "LoggingCfg",
    "StreamCfg",
    "BindingCfg",
    "SegmentationCfg",
    "ViewerCfg",
    "ReplayCfg",
    "paths",
    "logging",
    "stream",
    "binding",
    "segmentation",
    "viewer",
    "replay",
    "IMAGE_EXT",
    "IMAGE_SUFFIXES",
]
