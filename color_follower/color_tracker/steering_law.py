#!/usr/bin/env python3
"""
steering_law.py - Proportional Steering Law

Converts blob geometry into a 4-axis velocity command so the target stays
centered and at its configured apparent size.

Front camera:
    - vertical offset  -> climb/descend (vz)
    - horizontal offset -> yaw
    - blob area vs max_area -> approach/retreat (vx)

Bottom camera:
    - vertical offset  -> forward/back (vx)
    - horizontal offset -> strafe (vy)
    - auto-land: slow descent, land once the blob is large enough

Each axis is only driven while the centroid is outside the dead-zone on that
axis; un-driven axes keep the value of the command passed in as `previous`.

Usage:
    from color_follower.color_tracker.steering_law import SteeringLaw

    law = SteeringLaw()
    result = law.steer(detection, bounds, tunables.area, CameraProfile.FRONT,
                       auto_land=False, previous=VelocityCommand())
"""

import logging
from dataclasses import dataclass, replace
from typing import Optional

from color_follower.color_tracker.blob_extractor import DetectionResult
from color_follower.color_tracker.config import AREA_SCALE, AreaThresholds, CameraProfile
from color_follower.color_tracker.deadzone import DeadzoneBounds

logger = logging.getLogger(__name__)

# Gain reciprocals (pixels per unit command), tuned empirically
FRONT_VERTICAL_DIVISOR = -250.0
FRONT_YAW_DIVISOR = -200.0
BOTTOM_FORWARD_DIVISOR = -400.0
BOTTOM_LATERAL_DIVISOR = -800.0

# Front camera approach/retreat
APPROACH_SPEED = 0.3
RETREAT_SPEED = -0.3
RETREAT_MARGIN = 10  # UI area units above max_area before backing off

# Bottom camera auto-land descent
AUTO_LAND_DESCENT = -0.1


@dataclass(frozen=True)
class VelocityCommand:
    """
    Normalized velocity command.

    Attributes:
        vx: Forward velocity (positive = forward).
        vy: Lateral velocity (positive = left).
        vz: Vertical velocity (positive = up).
        yaw_rate: Yaw rate (positive = counter-clockwise).
    """

    vx: float = 0.0
    vy: float = 0.0
    vz: float = 0.0
    yaw_rate: float = 0.0

    @property
    def is_zero(self) -> bool:
        """Check if this is a zero/hover command."""
        return (
            abs(self.vx) < 0.01
            and abs(self.vy) < 0.01
            and abs(self.vz) < 0.01
            and abs(self.yaw_rate) < 0.01
        )

    def __str__(self) -> str:
        return (
            f"Velocity(vx={self.vx:+.2f}, vy={self.vy:+.2f}, "
            f"vz={self.vz:+.2f}, yaw={self.yaw_rate:+.2f})"
        )


HOVER = VelocityCommand()


@dataclass(frozen=True)
class SteeringResult:
    """
    Output of one steering step.

    Attributes:
        command: Velocity command to send.
        land: True when auto-land asks for touchdown.
    """

    command: VelocityCommand
    land: bool = False


class SteeringLaw:
    """
    Stateless proportional steering law.

    The same inputs always produce the same result; the only memory is the
    `previous` command the caller chooses to pass in.
    """

    def steer(
        self,
        detection: DetectionResult,
        bounds: DeadzoneBounds,
        area_thresholds: AreaThresholds,
        camera: Optional[CameraProfile],
        auto_land: bool = False,
        previous: VelocityCommand = HOVER,
    ) -> SteeringResult:
        """
        Compute the steering command for one frame.

        Args:
            detection: Blob detection for this frame.
            bounds: Dead-zone rectangle and frame geometry.
            area_thresholds: Target area (max_area) in UI units.
            camera: Active camera profile.
            auto_land: Whether auto-land is enabled (bottom camera only).
            previous: Command whose un-driven axes are carried over.

        Returns:
            SteeringResult: New command and land request.
        """
        if not detection.detected:
            return SteeringResult(previous)

        if camera is CameraProfile.FRONT:
            return SteeringResult(
                self._steer_front(detection, bounds, area_thresholds, previous)
            )

        if camera is CameraProfile.BOTTOM:
            return self._steer_bottom(
                detection, bounds, area_thresholds, auto_land, previous
            )

        return SteeringResult(previous)

    def _steer_front(
        self,
        detection: DetectionResult,
        bounds: DeadzoneBounds,
        area_thresholds: AreaThresholds,
        previous: VelocityCommand,
    ) -> VelocityCommand:
        changes = {}
        cx, cy = detection.centroid

        if not bounds.contains_y(cy):
            changes["vz"] = (cy - bounds.center_y) / FRONT_VERTICAL_DIVISOR

        if not bounds.contains_x(cx):
            changes["yaw_rate"] = (cx - bounds.center_x) / FRONT_YAW_DIVISOR

        # Between max_area and max_area + margin, vx is left alone
        if detection.area < area_thresholds.max_area * AREA_SCALE:
            changes["vx"] = APPROACH_SPEED
        if detection.area > (area_thresholds.max_area + RETREAT_MARGIN) * AREA_SCALE:
            changes["vx"] = RETREAT_SPEED

        return replace(previous, **changes)

    def _steer_bottom(
        self,
        detection: DetectionResult,
        bounds: DeadzoneBounds,
        area_thresholds: AreaThresholds,
        auto_land: bool,
        previous: VelocityCommand,
    ) -> SteeringResult:
        changes = {}
        cx, cy = detection.centroid
        land = False

        if not bounds.contains_y(cy):
            changes["vx"] = (cy - bounds.center_y) / BOTTOM_FORWARD_DIVISOR

        if not bounds.contains_x(cx):
            changes["vy"] = (cx - bounds.center_x) / BOTTOM_LATERAL_DIVISOR

        if auto_land:
            changes["vz"] = AUTO_LAND_DESCENT
            if detection.area > area_thresholds.max_area * AREA_SCALE:
                land = True

        return SteeringResult(replace(previous, **changes), land=land)
