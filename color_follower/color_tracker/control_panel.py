#!/usr/bin/env python3
"""
control_panel.py - Trackbar Control Window and HUD Overlays

ControlPanel owns the "Control" window whose trackbars edit the active
profile's HSV band and area thresholds. Trackbars are polled once per frame
and any change becomes a ModeController.update_tunables() event. The window
is rebuilt with the new profile's values on camera switch.

HudRenderer composes the "Input" window image from the camera frame and
three overlay layers:
    - statistics (redrawn every stat_refresh_frames frames)
    - dead-zone rectangle (redrawn when the dead-zone changes)
    - selected contour outline and centroid marker (every frame)

Layers are combined with saturating addition, so black pixels are
transparent.
"""

import logging
from typing import Optional

import cv2
import numpy as np

from color_follower.color_tracker.blob_extractor import DetectionResult
from color_follower.color_tracker.config import (
    AREA_SCALE,
    AREA_UI_MAX,
    HUE_MAX,
    SAT_MAX,
    VAL_MAX,
    AreaThresholds,
    ColorBand,
    ProfileTunables,
)
from color_follower.color_tracker.deadzone import DeadzoneBounds

logger = logging.getLogger(__name__)

CONTROL_WINDOW = "Control"
INPUT_WINDOW = "Input"

# (trackbar name, ProfileTunables path, max value)
TRACKBARS = (
    ("Hue LOW", "hue_low", HUE_MAX),
    ("Hue HIGH", "hue_high", HUE_MAX),
    ("Sat LOW", "sat_low", SAT_MAX),
    ("Sat HIGH", "sat_high", SAT_MAX),
    ("Val LOW", "val_low", VAL_MAX),
    ("Val HIGH", "val_high", VAL_MAX),
    ("Area MIN", "min_area", AREA_UI_MAX),
    ("Area MAX", "max_area", AREA_UI_MAX),
)

FONT = cv2.FONT_HERSHEY_COMPLEX_SMALL
FONT_SCALE = 0.9

# BGR
GREEN = (0, 255, 0)
RED = (0, 0, 255)
CYAN = (255, 255, 0)
YELLOW = (0, 255, 255)
MAGENTA = (255, 0, 255)


def _noop(_value) -> None:
    pass


class ControlPanel:
    """Trackbar window bound to the active profile's tunables."""

    def __init__(self, window_name: str = CONTROL_WINDOW):
        self.window_name = window_name
        self._values: dict = {}

    def build(self, tunables: ProfileTunables) -> None:
        """(Re)create the window with trackbars set to `tunables`."""
        try:
            cv2.destroyWindow(self.window_name)
        except cv2.error:
            pass

        cv2.namedWindow(self.window_name, cv2.WINDOW_NORMAL)
        cv2.resizeWindow(self.window_name, 1280, 480)
        cv2.moveWindow(self.window_name, 0, 395)

        self._values = tunables.to_dict()
        for name, key, maximum in TRACKBARS:
            cv2.createTrackbar(name, self.window_name, self._values[key], maximum, _noop)

        logger.debug("Control window built: %s", self._values)

    def poll(self, controller) -> bool:
        """
        Read trackbar positions and forward changes to the controller.

        Args:
            controller: ModeController receiving update_tunables().

        Returns:
            bool: True if any value changed.
        """
        positions = {
            key: cv2.getTrackbarPos(name, self.window_name)
            for name, key, _ in TRACKBARS
        }
        current = {key: self._values.get(key) for _, key, _ in TRACKBARS}
        if positions == current:
            return False

        self._values.update(positions)
        controller.update_tunables(
            color_band=ColorBand(
                hue_low=positions["hue_low"],
                hue_high=positions["hue_high"],
                sat_low=positions["sat_low"],
                sat_high=positions["sat_high"],
                val_low=positions["val_low"],
                val_high=positions["val_high"],
            ),
            area=AreaThresholds(
                min_area=positions["min_area"],
                max_area=positions["max_area"],
            ),
        )
        return True


class HudRenderer:
    """
    Builds the annotated "Input" image.

    Attributes:
        width: Frame width.
        height: Frame height.
        stat_refresh_frames: Statistics redraw divider.
    """

    def __init__(self, width: int, height: int, stat_refresh_frames: int = 15):
        self.width = width
        self.height = height
        self.stat_refresh_frames = max(1, stat_refresh_frames)

        self._stat_image = self._blank()
        self._deadzone_image = self._blank()
        self._deadzone: Optional[tuple] = None
        self._stat_count = 0

    def _blank(self) -> np.ndarray:
        return np.zeros((self.height, self.width, 3), dtype=np.uint8)

    def draw_deadzone(self, bounds: DeadzoneBounds) -> None:
        """Redraw the dead-zone layer if the rectangle changed."""
        rect = bounds.as_tuple()
        if rect == self._deadzone:
            return
        self._deadzone = rect
        self._deadzone_image = self._blank()
        cv2.rectangle(
            self._deadzone_image,
            (bounds.x1, bounds.y1),
            (bounds.x2, bounds.y2),
            MAGENTA,
            1,
        )

    def draw_stats(
        self,
        detection: DetectionResult,
        follow_enabled: bool,
        auto_land_enabled: bool,
        battery_percent: float,
    ) -> None:
        """Redraw the statistics layer."""
        image = self._blank()

        if detection.detected:
            cv2.putText(image, "OBJECT DETECTED", (10, 30), FONT, FONT_SCALE, GREEN)
        else:
            cv2.putText(image, "NO OBJECT DETECTED", (10, 30), FONT, FONT_SCALE, RED)

        if follow_enabled:
            cv2.putText(image, "FOLLOWING ON", (10, 60), FONT, FONT_SCALE, GREEN)
        else:
            cv2.putText(image, "FOLLOWING OFF", (10, 60), FONT, FONT_SCALE, RED)

        if auto_land_enabled:
            cv2.putText(image, "AUTO LANDING ON", (10, 90), FONT, FONT_SCALE, GREEN)
        else:
            cv2.putText(image, "AUTO LANDING OFF", (10, 90), FONT, FONT_SCALE, RED)

        area_str = "Object area: %.2f" % (detection.area / AREA_SCALE)
        bat_str = "Battery: %d %%" % int(battery_percent)
        cv2.putText(image, area_str, (10, self.height - 50), FONT, FONT_SCALE, CYAN)
        cv2.putText(image, bat_str, (10, self.height - 20), FONT, FONT_SCALE, CYAN)

        self._stat_image = image

    def tick_stats(self, *args, **kwargs) -> bool:
        """
        Count a frame and redraw statistics every stat_refresh_frames frames.

        Takes the same arguments as draw_stats().

        Returns:
            bool: True if the statistics were redrawn.
        """
        if self._stat_count % self.stat_refresh_frames == 0:
            self.draw_stats(*args, **kwargs)
            redrawn = True
        else:
            redrawn = False
        self._stat_count += 1
        return redrawn

    def compose(self, frame_bgr: np.ndarray, detection: DetectionResult) -> np.ndarray:
        """
        Overlay every layer on a copy of the frame.

        Args:
            frame_bgr: Camera frame (height x width x 3).
            detection: This frame's detection.

        Returns:
            np.ndarray: Annotated image.
        """
        contour_image = self._blank()
        if detection.contour is not None:
            cv2.drawContours(contour_image, [detection.contour], -1, GREEN, 2)

        image = frame_bgr.copy()
        if detection.detected:
            cv2.drawMarker(
                image,
                detection.centroid,
                YELLOW,
                markerType=cv2.MARKER_CROSS,
                markerSize=25,
                thickness=2,
            )

        image = cv2.add(image, self._stat_image)
        image = cv2.add(image, contour_image)
        image = cv2.add(image, self._deadzone_image)
        return image

    @staticmethod
    def open_input_window(width: int, height: int) -> None:
        cv2.namedWindow(INPUT_WINDOW, cv2.WINDOW_NORMAL)
        cv2.resizeWindow(INPUT_WINDOW, width, height)
        cv2.moveWindow(INPUT_WINDOW, 0, 0)

    @staticmethod
    def show(image: np.ndarray) -> None:
        cv2.imshow(INPUT_WINDOW, image)
