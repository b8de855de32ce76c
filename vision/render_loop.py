"""Single-threaded host loop that ticks a texture binder and shows the result."""

from __future__ import annotations

import time

import cv2
import numpy as np

from utils.error_tracker import ErrorTracker
from utils.logger import Logger, LoggerType
from utils.settings import ViewerCfg, viewer as default_viewer
from .segmentation import stage_grid
from .texture import Texture, texture_to_mat
from .texture_binding import RsTextureBinder


class TextureSink:
    """Texture listener that remembers the most recent texture it was given."""

    def __init__(self) -> None:
        self.texture: Texture | None = None
        self.bindings = 0

    def __call__(self, texture: Texture) -> None:
        self.texture = texture
        self.bindings += 1

    def image(self) -> np.ndarray | None:
        """Current content as an 8-bit BGR image, ``None`` if nothing bound."""
        if not self.texture:
            return None
        return texture_to_mat(self.texture)


class RenderLoop:
    """Drive ``binder.late_update`` at a fixed rate and display its texture."""

    def __init__(
        self,
        binder: RsTextureBinder,
        cfg: ViewerCfg | None = None,
        logger: LoggerType | None = None,
    ) -> None:
        self.binder = binder
        self.cfg = cfg or default_viewer
        self.logger = logger or Logger.get_logger("vision.render_loop")
        self.sink = TextureSink()
        self.binder.texture_binding.add_listener(self.sink)
        self.ticks = 0
        self.frames = 0
        self._running = False

    def _show(self) -> bool:
        """Update windows; ``False`` when ESC was pressed."""
        img = self.sink.image()
        if img is not None:
            disp = cv2.resize(
                img,
                (self.cfg.display_width, self.cfg.display_height),
                interpolation=cv2.INTER_AREA,
            )
            cv2.imshow(self.cfg.window_name, disp)
            result = self.binder.last_result
            if self.cfg.show_stages and result is not None:
                cv2.imshow(f"{self.cfg.window_name} stages", stage_grid(result))
        return (cv2.waitKey(1) & 0xFF) != 27

    def tick(self) -> bool:
        """One frame of the host loop; ``False`` asks the loop to stop."""
        self.ticks += 1
        if self.binder.late_update():
            self.frames += 1
        if self.cfg.headless:
            return True
        return self._show()

    def stop(self) -> None:
        self._running = False

    def run(self, max_ticks: int | None = None) -> int:
        """Loop until ESC, :meth:`stop` or ``max_ticks``; return frames shown."""

        limit = self.cfg.max_ticks if max_ticks is None else max_ticks
        period = 1.0 / self.cfg.tick_rate if self.cfg.tick_rate > 0 else 0.0
        self._running = True
        if not self.cfg.headless:
            ErrorTracker.register_cleanup(cv2.destroyAllWindows)
        start = time.perf_counter()
        try:
            while self._running:
                t0 = time.perf_counter()
                if not self.tick():
                    self.logger.info("ESC pressed, leaving render loop")
                    break
                if limit and self.ticks >= limit:
                    break
                remaining = period - (time.perf_counter() - t0)
                if remaining > 0:
                    time.sleep(remaining)
        finally:
            self._running = False
            if not self.cfg.headless:
                cv2.destroyAllWindows()
                ErrorTracker.unregister_cleanup(cv2.destroyAllWindows)
        elapsed = time.perf_counter() - start
        self.logger.info(
            f"{self.frames} frames in {self.ticks} ticks ({elapsed:.1f}s)"
        )
        return self.frames
