"""Intel RealSense frame source (live device or ``.bag`` playback)."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import numpy as np
import pyrealsense2 as rs

from utils.error_tracker import CameraConnectionError, ErrorTracker
from utils.logger import CaptureStderrToLogger, LoggerType
from utils.settings import StreamCfg, stream as default_stream
from vision.formats import PixelFormat, StreamKind, format_from_name, stream_from_name
from vision.frames import FrameSet, StreamProfile, VideoFrame

from .camera_base import ActiveProfile, Frame, FrameSource


@dataclass
class RealSenseSensorSettings:
    """Optional sensor options; ``None`` leaves the device default."""

    rgb_auto_exposure: bool | None = None
    rgb_exposure: int | None = None
    emitter_enabled: bool | None = None
    depth_units: float | None = None


def _kind(name: str) -> StreamKind:
    try:
        return stream_from_name(name)
    except ValueError:
        return StreamKind.ANY


def _format(name: str) -> PixelFormat:
    # y8i, mjpeg, w10 and friends have no texture mapping; never bound
    try:
        return format_from_name(name)
    except ValueError:
        return PixelFormat.ANY


def _to_profile(sp: rs.stream_profile) -> StreamProfile:
    return StreamProfile(
        stream=_kind(sp.stream_type().name),
        format=_format(sp.format().name),
        index=int(sp.stream_index()),
        fps=int(sp.fps()),
    )


def convert_frame(frame: rs.frame) -> Frame | None:
    """Copy an SDK frame into a :class:`VideoFrame` or :class:`FrameSet`.

    Non-video members (motion, pose) are skipped; ``None`` if nothing is left.
    """

    if frame.is_frameset():
        fs = frame.as_frameset()
        members = [convert_frame(f) for f in fs]
        return FrameSet(
            frames=[m for m in members if isinstance(m, VideoFrame)],
            frame_number=int(fs.get_frame_number()),
            timestamp=float(fs.get_timestamp()),
        )
    if not frame.is_video_frame():
        return None
    vf = frame.as_video_frame()
    width, height = vf.get_width(), vf.get_height()
    bpp = vf.get_bits_per_pixel()
    # copy out of the SDK buffer so the frame can be released immediately
    raw = np.frombuffer(np.asanyarray(vf.get_data()).tobytes(), dtype=np.uint8)
    return VideoFrame(
        profile=_to_profile(vf.get_profile()),
        width=width,
        height=height,
        stride=width * bpp // 8,
        bits_per_pixel=bpp,
        data=raw,
        frame_number=int(vf.get_frame_number()),
        timestamp=float(vf.get_timestamp()),
    )


class RealSenseFrameSource(FrameSource):
    """
    Streams color and depth from a RealSense device through a frame callback.

    The callback runs on the librealsense thread and only converts the frame
    and forwards it to ``on_new_sample``.
    """

    def __init__(
        self,
        stream_cfg: StreamCfg | None = None,
        bag_file: str | Path | None = None,
        repeat_playback: bool = True,
        settings: RealSenseSensorSettings | None = None,
        logger: LoggerType | None = None,
    ) -> None:
        super().__init__(logger)
        self.stream_cfg = stream_cfg or default_stream
        self.bag_file = Path(bag_file) if bag_file else None
        self.repeat_playback = repeat_playback
        self.settings = settings or RealSenseSensorSettings()
        self.pipeline = rs.pipeline()
        self.profile: rs.pipeline_profile | None = None

    def _build_config(self) -> rs.config:
        cfg = self.stream_cfg
        config = rs.config()
        if self.bag_file is not None:
            if not self.bag_file.exists():
                raise CameraConnectionError(f"Bag file not found: {self.bag_file}")
            config.enable_device_from_file(
                str(self.bag_file), repeat_playback=self.repeat_playback
            )
            return config
        if cfg.enable_depth:
            config.enable_stream(
                rs.stream.depth,
                cfg.depth_width,
                cfg.depth_height,
                getattr(rs.format, PixelFormat(cfg.depth_format).value),
                cfg.fps,
            )
        if cfg.enable_color:
            config.enable_stream(
                rs.stream.color,
                cfg.color_width,
                cfg.color_height,
                getattr(rs.format, PixelFormat(cfg.color_format).value),
                cfg.fps,
            )
        return config

    def _apply_settings(self, device: rs.device) -> None:
        s = self.settings
        for sensor in device.sensors:
            name = sensor.get_info(rs.camera_info.name)
            if name == "RGB Camera":
                if s.rgb_auto_exposure is not None and sensor.supports(
                    rs.option.enable_auto_exposure
                ):
                    sensor.set_option(
                        rs.option.enable_auto_exposure, float(s.rgb_auto_exposure)
                    )
                if s.rgb_exposure is not None and sensor.supports(rs.option.exposure):
                    sensor.set_option(rs.option.exposure, float(s.rgb_exposure))
                    self.logger.info(f"RGB exposure set to {s.rgb_exposure}")
            elif sensor.is_depth_sensor():
                if s.emitter_enabled is not None and sensor.supports(
                    rs.option.emitter_enabled
                ):
                    sensor.set_option(rs.option.emitter_enabled, float(s.emitter_enabled))
                    self.logger.info(f"Depth emitter enabled={s.emitter_enabled}")
                if s.depth_units is not None and sensor.supports(rs.option.depth_units):
                    sensor.set_option(rs.option.depth_units, s.depth_units)
                    self.logger.info(f"Depth units set to {s.depth_units} meters")

    def _on_frame(self, frame: rs.frame) -> None:
        # runs on the librealsense thread; nothing may escape back into the SDK
        try:
            converted = convert_frame(frame)
            if converted is not None:
                self.emit(converted)
        except Exception as e:
            self.logger.exception(f"Skipping RealSense frame: {e}")

    def start(self) -> ActiveProfile:
        """Start the pipeline with the frame callback and fire ``on_start``."""

        try:
            config = self._build_config()
            with CaptureStderrToLogger(self.logger):
                self.profile = self.pipeline.start(config, self._on_frame)
            device = self.profile.get_device()
            if self.bag_file is None:
                self._apply_settings(device)
            else:
                device.as_playback().set_real_time(True)
            name = device.get_info(rs.camera_info.name)
        except CameraConnectionError:
            raise
        except Exception as e:
            self.logger.error(f"Failed to start RealSense pipeline: {e}")
            raise CameraConnectionError(str(e)) from e

        ErrorTracker.register_cleanup(self.stop)
        self.logger.info(f"Device: {name}" + (f" ({self.bag_file})" if self.bag_file else ""))
        active = ActiveProfile(
            streams=[_to_profile(sp) for sp in self.profile.get_streams()],
            device=name,
        )
        return self._started(active)

    def stop(self) -> None:
        """Fire ``on_stop`` and stop the pipeline."""

        if not self.streaming:
            return
        self._stopped()
        self.pipeline.stop()
        ErrorTracker.unregister_cleanup(self.stop)
