#!/usr/bin/env python3
"""
deadzone.py - Centered Dead-Zone Geometry

The dead-zone is the rectangle around the frame center inside which no
corrective command is issued on the corresponding axis.
"""

from dataclasses import dataclass

from color_follower.color_tracker.config import Deadzone


@dataclass(frozen=True)
class DeadzoneBounds:
    """
    Dead-zone rectangle in pixel coordinates, plus the frame it lives in.

    Attributes:
        x1: Left edge.
        y1: Top edge.
        x2: Right edge.
        y2: Bottom edge.
        frame_width: Frame width in pixels.
        frame_height: Frame height in pixels.
    """

    x1: int
    y1: int
    x2: int
    y2: int
    frame_width: int
    frame_height: int

    @property
    def center_x(self) -> int:
        return self.frame_width // 2

    @property
    def center_y(self) -> int:
        return self.frame_height // 2

    def contains_x(self, x: int) -> bool:
        """True if x lies within the horizontal band (edges inclusive)."""
        return self.x1 <= x <= self.x2

    def contains_y(self, y: int) -> bool:
        """True if y lies within the vertical band (edges inclusive)."""
        return self.y1 <= y <= self.y2

    def as_tuple(self) -> tuple:
        return (self.x1, self.y1, self.x2, self.y2)


def deadzone_bounds(
    frame_width: int,
    frame_height: int,
    deadzone_width: int,
    deadzone_height: int,
) -> DeadzoneBounds:
    """
    Compute the centered dead-zone rectangle.

    Edges are (frame - deadzone) // 2 and (frame + deadzone) // 2, so a
    320x180 dead-zone in a 640x360 frame spans (160, 90)-(480, 270).

    Args:
        frame_width: Frame width in pixels.
        frame_height: Frame height in pixels.
        deadzone_width: Dead-zone width in pixels.
        deadzone_height: Dead-zone height in pixels.

    Returns:
        DeadzoneBounds: The rectangle.
    """
    return DeadzoneBounds(
        x1=(frame_width - deadzone_width) // 2,
        y1=(frame_height - deadzone_height) // 2,
        x2=(frame_width + deadzone_width) // 2,
        y2=(frame_height + deadzone_height) // 2,
        frame_width=frame_width,
        frame_height=frame_height,
    )


def bounds_for(deadzone: Deadzone, frame_width: int, frame_height: int) -> DeadzoneBounds:
    """Bounds of a Deadzone tunable, clamped to the frame."""
    deadzone = deadzone.clamped(frame_width, frame_height)
    return deadzone_bounds(frame_width, frame_height, deadzone.width, deadzone.height)
