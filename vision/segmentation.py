"""Contour segmentation: Otsu mask, morphology, distance transform, outlines."""

from __future__ import annotations

from dataclasses import dataclass, field

import cv2
import numpy as np

from utils.logger import Logger, LoggerType
from utils.settings import SegmentationCfg, segmentation as default_segmentation


@dataclass
class SegmentationResult:
    """All intermediate stages of one :meth:`ContourSegmenter.process` call."""

    gray: np.ndarray
    binary: np.ndarray
    opened: np.ndarray
    dilated: np.ndarray
    distance: np.ndarray
    sure_fg: np.ndarray
    contours: list[np.ndarray] = field(default_factory=list)
    output: np.ndarray | None = None
    unknown: np.ndarray | None = None
    largest: int = -1
    centroid: tuple[int, int] | None = None
    otsu_threshold: float = 0.0

    def stages(self) -> list[tuple[str, np.ndarray]]:
        items = [
            ("Gray", self.gray),
            ("Binary", self.binary),
            ("Opened", self.opened),
            ("Dilated", self.dilated),
            ("Distance", self.distance),
            ("Sure FG", self.sure_fg),
        ]
        if self.unknown is not None:
            items.append(("Unknown", self.unknown))
        if self.output is not None:
            items.append(("Contours", self.output))
        return items


class ContourSegmenter:
    """Find object outlines in a BGR image and draw them on a copy."""

    def __init__(
        self, cfg: SegmentationCfg | None = None, logger: LoggerType | None = None
    ) -> None:
        self.cfg = cfg or default_segmentation
        self.logger = logger or Logger.get_logger("vision.segmentation")
        k = max(1, int(self.cfg.kernel_size))
        self.kernel = np.ones((k, k), np.uint8)

    def threshold(self, gray: np.ndarray) -> tuple[float, np.ndarray]:
        c = self.cfg
        return cv2.threshold(gray, c.threshold, c.max_value, c.threshold_type)

    def morphology(self, binary: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
        """Opening then dilation; a 1x1 kernel leaves the mask as it is."""
        c = self.cfg
        opened = cv2.morphologyEx(
            binary, cv2.MORPH_OPEN, self.kernel, iterations=c.open_iterations
        )
        dilated = cv2.dilate(
            opened,
            self.kernel,
            iterations=c.dilate_iterations,
            borderType=cv2.BORDER_CONSTANT,
        )
        return opened, dilated

    def sure_foreground(self, opened: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
        c = self.cfg
        distance = cv2.distanceTransform(opened, c.distance_type, c.distance_mask)
        _, sure_fg = cv2.threshold(
            distance, c.sure_fg_threshold, 255, cv2.THRESH_BINARY
        )
        return distance, sure_fg.astype(np.uint8)

    def find_contours(self, mask: np.ndarray) -> list[np.ndarray]:
        c = self.cfg
        contours, _ = cv2.findContours(mask, c.retrieval_mode, c.approximation)
        if c.min_contour_area > 0:
            contours = [
                cnt for cnt in contours if cv2.contourArea(cnt) >= c.min_contour_area
            ]
        return list(contours)

    @staticmethod
    def largest_contour(contours: list[np.ndarray]) -> tuple[int, tuple[int, int] | None]:
        """Index of the largest-area contour and the mean of its points."""
        best, best_area = -1, 0.0
        for i, cnt in enumerate(contours):
            area = cv2.contourArea(cnt)
            if area > best_area:
                best, best_area = i, area
        if best < 0:
            return -1, None
        pts = contours[best].reshape(-1, 2)
        cx, cy = pts.mean(axis=0)
        return best, (int(cx), int(cy))

    def draw(self, image: np.ndarray, result: SegmentationResult) -> np.ndarray:
        c = self.cfg
        out = image.copy()
        if result.contours:
            cv2.polylines(
                out, result.contours, c.closed, c.polyline_color, c.polyline_thickness
            )
        if c.draw_centroid and result.centroid is not None:
            cv2.circle(
                out,
                result.centroid,
                c.centroid_radius,
                c.centroid_color,
                c.centroid_thickness,
                cv2.LINE_4,
            )
        return out

    def process(self, image: np.ndarray) -> SegmentationResult:
        """Run the full pipeline on an 8-bit BGR (or gray) image."""

        if image.dtype != np.uint8:
            raise ValueError(f"expected an 8-bit image, got {image.dtype}")
        if image.ndim == 2:
            gray = image
            image = cv2.cvtColor(gray, cv2.COLOR_GRAY2BGR)
        else:
            gray = cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)
        otsu, binary = self.threshold(gray)
        opened, dilated = self.morphology(binary)
        distance, sure_fg = self.sure_foreground(opened)
        result = SegmentationResult(
            gray=gray,
            binary=binary,
            opened=opened,
            dilated=dilated,
            distance=distance,
            sure_fg=sure_fg,
            otsu_threshold=float(otsu),
        )
        if self.cfg.compute_unknown:
            result.unknown = cv2.subtract(dilated, sure_fg)
        result.contours = self.find_contours(dilated)
        result.largest, result.centroid = self.largest_contour(result.contours)
        result.output = self.draw(image, result)
        self.logger.debug(
            f"otsu={otsu:.1f} contours={len(result.contours)} largest={result.largest}"
        )
        return result


def stage_grid(
    result: SegmentationResult, tile_size: tuple[int, int] = (320, 240), cols: int = 3
) -> np.ndarray:
    """Tile every stage of ``result`` into one labelled BGR image."""

    tiles = []
    for label, img in result.stages():
        if img.dtype != np.uint8:
            img = cv2.normalize(img, None, 0, 255, cv2.NORM_MINMAX).astype(np.uint8)
        if img.ndim == 2:
            img = cv2.cvtColor(img, cv2.COLOR_GRAY2BGR)
        tile = cv2.resize(img, tile_size, interpolation=cv2.INTER_AREA)
        cv2.putText(
            tile, label, (10, 30), cv2.FONT_HERSHEY_SIMPLEX, 0.8, (255, 255, 255), 2
        )
        tiles.append(tile)
    w, h = tile_size
    rows = (len(tiles) + cols - 1) // cols
    out = np.zeros((rows * h, cols * w, 3), np.uint8)
    for idx, tile in enumerate(tiles):
        r, c = divmod(idx, cols)
        out[r * h : (r + 1) * h, c * w : (c + 1) * w] = tile
    return out
