#!/usr/bin/env python3
"""
color_segmenter.py - HSV Band-Pass Segmentation

Converts a color frame into a binary mask: a pixel is foreground (255) when
its hue, saturation and value all lie inside the configured band, inclusive.
A morphological closing with a small square kernel then fills pinholes and
joins speckle.

Usage:
    from color_follower.color_tracker.color_segmenter import ColorSegmenter

    segmenter = ColorSegmenter()
    mask = segmenter.segment(to_hsv(frame), band)
"""

import logging

import cv2
import numpy as np

from color_follower.color_tracker.config import ColorBand

logger = logging.getLogger(__name__)

# Structuring element size for the closing pass
CLOSING_KERNEL_SIZE = 3


def to_hsv(frame_bgr: np.ndarray) -> np.ndarray:
    """Convert a BGR capture frame to OpenCV HSV."""
    return cv2.cvtColor(frame_bgr, cv2.COLOR_BGR2HSV)


class ColorSegmenter:
    """
    Threshold-based color classifier.

    Attributes:
        kernel: Rectangular structuring element used for closing.
    """

    def __init__(self, kernel_size: int = CLOSING_KERNEL_SIZE):
        self.kernel = cv2.getStructuringElement(
            cv2.MORPH_RECT, (kernel_size, kernel_size)
        )

    def threshold(self, hsv_frame: np.ndarray, band: ColorBand) -> np.ndarray:
        """
        Raw band-pass mask without denoising.

        An inverted band (low > high on any channel) selects nothing.
        """
        lower = np.array(band.lower, dtype=np.uint8)
        upper = np.array(band.upper, dtype=np.uint8)
        return cv2.inRange(hsv_frame, lower, upper)

    def segment(self, hsv_frame: np.ndarray, band: ColorBand) -> np.ndarray:
        """
        Segment an HSV frame.

        Args:
            hsv_frame: HxWx3 uint8 HSV image.
            band: Inclusive HSV band.

        Returns:
            np.ndarray: HxW uint8 mask with values 0 or 255.
        """
        mask = self.threshold(hsv_frame, band)
        return cv2.morphologyEx(mask, cv2.MORPH_CLOSE, self.kernel)
