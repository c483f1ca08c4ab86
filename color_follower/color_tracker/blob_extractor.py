#!/usr/bin/env python3
"""
blob_extractor.py - Largest Blob Centroid and Area

Finds the external contours of a binary mask, keeps the one enclosing the
largest area, rasterizes it filled and measures it with image moments:

    area      = m00
    centroid  = (m10 / m00, m01 / m00)   truncated to int

The mask is rasterized with value 255, so area is in 8-bit moment units
(255 per foreground pixel). Area thresholds multiplied by AREA_SCALE are
expressed in the same units.

Usage:
    from color_follower.color_tracker.blob_extractor import BlobExtractor

    extractor = BlobExtractor()
    detection = extractor.extract(mask, tunables.area)
    if detection.detected:
        print(detection.centroid_x, detection.centroid_y)
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

import cv2
import numpy as np

from color_follower.color_tracker.config import AreaThresholds

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DetectionResult:
    """
    Outcome of one frame's blob extraction.

    Attributes:
        detected: Whether an accepted blob was found.
        centroid_x: Blob centroid x in pixels (0 when not detected).
        centroid_y: Blob centroid y in pixels (0 when not detected).
        area: Raw moment area of the selected blob (0.0 if none).
        contour: Selected contour points, for overlays.
    """

    detected: bool = False
    centroid_x: int = 0
    centroid_y: int = 0
    area: float = 0.0
    contour: Optional[np.ndarray] = field(default=None, repr=False, compare=False)

    @property
    def centroid(self) -> tuple:
        return (self.centroid_x, self.centroid_y)

    def __str__(self) -> str:
        if not self.detected:
            return f"Detection(none, area={self.area:.0f})"
        return (
            f"Detection(centroid=({self.centroid_x}, {self.centroid_y}), "
            f"area={self.area:.0f})"
        )


NOT_DETECTED = DetectionResult()


def select_largest_contour(contours: List[np.ndarray]) -> Optional[np.ndarray]:
    """
    Pick the contour enclosing the largest area.

    Contours with zero enclosed area are never selected. Equal areas resolve
    to the contour whose bounding box comes first in raster order (top, then
    left), independent of the order findContours reports them in.

    Args:
        contours: Contours from cv2.findContours.

    Returns:
        The selected contour, or None.
    """
    best = None
    best_key = None

    for contour in contours:
        area = cv2.contourArea(contour)
        if area <= 0.0:
            continue

        x, y, _, _ = cv2.boundingRect(contour)
        key = (-area, y, x)
        if best_key is None or key < best_key:
            best_key = key
            best = contour

    return best


class BlobExtractor:
    """
    Largest-blob detector over binary masks.

    Stateless: every call starts from scratch.
    """

    def extract(
        self,
        mask: np.ndarray,
        area_thresholds: AreaThresholds,
    ) -> DetectionResult:
        """
        Extract the largest blob from a mask.

        Args:
            mask: HxW uint8 binary mask.
            area_thresholds: Detection floor (min_area) in UI units.

        Returns:
            DetectionResult: detected only if the blob's moment area exceeds
            min_area * AREA_SCALE.
        """
        contours, _ = cv2.findContours(
            mask, cv2.RETR_EXTERNAL, cv2.CHAIN_APPROX_SIMPLE
        )
        if not contours:
            return NOT_DETECTED

        largest = select_largest_contour(list(contours))
        if largest is None:
            return NOT_DETECTED

        filled = np.zeros(mask.shape[:2], dtype=np.uint8)
        cv2.drawContours(filled, [largest], -1, 255, thickness=cv2.FILLED)

        moments = cv2.moments(filled)
        area = moments["m00"]

        if area == 0:
            return DetectionResult(detected=False, contour=largest)

        if area <= area_thresholds.min_raw:
            return DetectionResult(detected=False, area=area, contour=largest)

        return DetectionResult(
            detected=True,
            centroid_x=int(moments["m10"] / area),
            centroid_y=int(moments["m01"] / area),
            area=area,
            contour=largest,
        )
