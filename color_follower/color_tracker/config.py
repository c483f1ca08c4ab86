#!/usr/bin/env python3
"""
config.py - Color Tracker Configuration Parameters

Centralized configuration for the color-blob following controller.
Per-camera tunables (HSV band, area thresholds, dead-zone) are immutable
snapshots; every edit produces a new snapshot that the next frame picks up.

Usage:
    from color_follower.color_tracker.config import (
        CameraProfile,
        ProfileTunables,
        FOLLOWER_CONFIG,
    )
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict

# Multiplier converting UI-level area units into raw moment area.
AREA_SCALE = 100000

# Frame geometry of the capture device
FRAME_WIDTH = 640
FRAME_HEIGHT = 360

# Channel ranges (OpenCV 8-bit HSV)
HUE_MAX = 179
SAT_MAX = 255
VAL_MAX = 255
AREA_UI_MAX = 500


def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(int(value), high))


class CameraProfile(Enum):
    """Camera whose tunables and steering variant are active."""

    FRONT = "front"
    BOTTOM = "bottom"

    @property
    def other(self) -> "CameraProfile":
        """The profile a camera switch moves to."""
        if self is CameraProfile.FRONT:
            return CameraProfile.BOTTOM
        return CameraProfile.FRONT


@dataclass(frozen=True)
class ColorBand:
    """
    Inclusive HSV band-pass.

    low > high on any channel is a valid degenerate band that selects
    nothing.
    """

    hue_low: int = 0
    hue_high: int = HUE_MAX
    sat_low: int = 0
    sat_high: int = SAT_MAX
    val_low: int = 0
    val_high: int = VAL_MAX

    @property
    def lower(self) -> tuple:
        return (self.hue_low, self.sat_low, self.val_low)

    @property
    def upper(self) -> tuple:
        return (self.hue_high, self.sat_high, self.val_high)

    def clamped(self) -> "ColorBand":
        """Return a copy with every bound clamped to its channel range."""
        return ColorBand(
            hue_low=_clamp(self.hue_low, 0, HUE_MAX),
            hue_high=_clamp(self.hue_high, 0, HUE_MAX),
            sat_low=_clamp(self.sat_low, 0, SAT_MAX),
            sat_high=_clamp(self.sat_high, 0, SAT_MAX),
            val_low=_clamp(self.val_low, 0, VAL_MAX),
            val_high=_clamp(self.val_high, 0, VAL_MAX),
        )


@dataclass(frozen=True)
class AreaThresholds:
    """
    Blob area thresholds in UI units.

    Attributes:
        min_area: Detection floor; blobs at or below min_area * AREA_SCALE
            are not detections.
        max_area: Target size; used for approach/retreat and auto-land.
    """

    min_area: int = 0
    max_area: int = AREA_UI_MAX

    @property
    def min_raw(self) -> int:
        return self.min_area * AREA_SCALE

    @property
    def max_raw(self) -> int:
        return self.max_area * AREA_SCALE

    def clamped(self) -> "AreaThresholds":
        return AreaThresholds(
            min_area=_clamp(self.min_area, 0, AREA_UI_MAX),
            max_area=_clamp(self.max_area, 0, AREA_UI_MAX),
        )


@dataclass(frozen=True)
class Deadzone:
    """Centered tolerance box in pixels."""

    width: int = 320
    height: int = 180

    def clamped(
        self,
        frame_width: int = FRAME_WIDTH,
        frame_height: int = FRAME_HEIGHT,
    ) -> "Deadzone":
        return Deadzone(
            width=_clamp(self.width, 0, frame_width),
            height=_clamp(self.height, 0, frame_height),
        )


@dataclass(frozen=True)
class ProfileTunables:
    """The persisted tunables of one camera profile."""

    color_band: ColorBand = field(default_factory=ColorBand)
    area: AreaThresholds = field(default_factory=AreaThresholds)
    deadzone: Deadzone = field(default_factory=Deadzone)

    def clamped(self) -> "ProfileTunables":
        return ProfileTunables(
            color_band=self.color_band.clamped(),
            area=self.area.clamped(),
            deadzone=self.deadzone.clamped(),
        )

    def with_changes(self, **changes) -> "ProfileTunables":
        """Return a new clamped snapshot with the given fields replaced."""
        return replace(self, **changes).clamped()

    def to_dict(self) -> Dict[str, Any]:
        """Convert tunables to a flat dictionary."""
        band = self.color_band
        return {
            "hue_low": band.hue_low,
            "hue_high": band.hue_high,
            "sat_low": band.sat_low,
            "sat_high": band.sat_high,
            "val_low": band.val_low,
            "val_high": band.val_high,
            "min_area": self.area.min_area,
            "max_area": self.area.max_area,
            "deadzone_width": self.deadzone.width,
            "deadzone_height": self.deadzone.height,
        }


@dataclass
class FollowerConfig:
    """
    Configuration for the follower application.

    Attributes:
        frame_width: Capture width in pixels.
        frame_height: Capture height in pixels.
        config_dir: Directory holding the per-camera XML files.
        loop_sleep_s: Pause at the end of every frame iteration.
        hold_undriven_axes: Keep the previous value on axes no rule drives
            (original latching behaviour) instead of starting from zero.
        stat_refresh_frames: HUD statistics redraw divider.
        log_every_frames: Periodic frame log divider.
        max_failed_reads: Consecutive failed frame reads before the loop
            stops (end of a video file, unplugged camera).
        nudge_value: Normalized command set by a manual nudge key.
    """

    frame_width: int = FRAME_WIDTH
    frame_height: int = FRAME_HEIGHT
    config_dir: str = "config"
    loop_sleep_s: float = 0.03
    hold_undriven_axes: bool = False
    stat_refresh_frames: int = 15
    log_every_frames: int = 30
    max_failed_reads: int = 100
    nudge_value: float = 1.0

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary."""
        return {
            "frame_width": self.frame_width,
            "frame_height": self.frame_height,
            "config_dir": self.config_dir,
            "loop_sleep_s": self.loop_sleep_s,
            "hold_undriven_axes": self.hold_undriven_axes,
            "stat_refresh_frames": self.stat_refresh_frames,
            "log_every_frames": self.log_every_frames,
            "max_failed_reads": self.max_failed_reads,
            "nudge_value": self.nudge_value,
        }


@dataclass
class ActuatorConfig:
    """
    Scaling from normalized commands to MAVSDK body-frame setpoints.

    Attributes:
        max_horizontal_speed: m/s at |vx| or |vy| == 1.
        max_vertical_speed: m/s at |vz| == 1.
        max_yaw_rate: deg/s at |yaw_rate| == 1.
        takeoff_altitude: Takeoff altitude in meters.
    """

    max_horizontal_speed: float = 1.0
    max_vertical_speed: float = 0.5
    max_yaw_rate: float = 30.0
    takeoff_altitude: float = 2.5

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary."""
        return {
            "max_horizontal_speed": self.max_horizontal_speed,
            "max_vertical_speed": self.max_vertical_speed,
            "max_yaw_rate": self.max_yaw_rate,
            "takeoff_altitude": self.takeoff_altitude,
        }


@dataclass
class ModeControllerConfig:
    """
    Configuration for the mode controller's HTTP command API.

    Attributes:
        http_port: Port for HTTP control API.
        http_host: Host to bind HTTP server.
        enable_http: Whether to start HTTP control server.
    """

    http_port: int = 8080
    http_host: str = "0.0.0.0"
    enable_http: bool = True

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary."""
        return {
            "http_port": self.http_port,
            "http_host": self.http_host,
            "enable_http": self.enable_http,
        }


# Default configuration instances
DEFAULT_TUNABLES = ProfileTunables()
FOLLOWER_CONFIG = FollowerConfig()
ACTUATOR_CONFIG = ActuatorConfig()
MODE_CONTROLLER_CONFIG = ModeControllerConfig()


def get_config_summary() -> str:
    """
    Get a human-readable summary of current configuration.

    Returns:
        str: Formatted configuration summary.
    """
    lines = [
        "=" * 50,
        "Color Follower Configuration",
        "=" * 50,
        "",
        "Frame loop:",
        f"  Frame: {FOLLOWER_CONFIG.frame_width}x{FOLLOWER_CONFIG.frame_height}",
        f"  Config dir: {FOLLOWER_CONFIG.config_dir}",
        f"  Hold un-driven axes: {FOLLOWER_CONFIG.hold_undriven_axes}",
        "",
        "Actuator:",
        f"  Max horizontal speed: {ACTUATOR_CONFIG.max_horizontal_speed:.1f} m/s",
        f"  Max vertical speed: {ACTUATOR_CONFIG.max_vertical_speed:.1f} m/s",
        f"  Max yaw rate: {ACTUATOR_CONFIG.max_yaw_rate:.1f} deg/s",
        f"  Takeoff altitude: {ACTUATOR_CONFIG.takeoff_altitude:.1f} m",
        "",
        "Mode Controller:",
        f"  HTTP API: {'enabled' if MODE_CONTROLLER_CONFIG.enable_http else 'disabled'} (port {MODE_CONTROLLER_CONFIG.http_port})",
        "=" * 50,
    ]
    return "\n".join(lines)


if __name__ == "__main__":
    # Print configuration when run directly
    print(get_config_summary())
