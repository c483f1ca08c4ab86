"""
Pytest configuration and shared fixtures for color follower tests.

This module provides:
- Async test support via pytest-asyncio
- Synthetic frames and masks with colored blobs
- Profile store in a temporary config directory
- Simulated actuator and mode controller
- Test markers configuration
"""

import asyncio

import numpy as np
import pytest

from color_follower.color_tracker.actuator import SimulatedActuator
from color_follower.color_tracker.config import (
    FRAME_HEIGHT,
    FRAME_WIDTH,
    ColorBand,
    ModeControllerConfig,
)
from color_follower.color_tracker.mode_controller import ModeController
from color_follower.color_tracker.profile_store import ProfileStore

# Pure red in BGR is hue 0 in OpenCV HSV
RED_BGR = (0, 0, 255)
RED_BAND = ColorBand(
    hue_low=0, hue_high=10, sat_low=100, sat_high=255, val_low=100, val_high=255
)


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers",
        "asyncio: mark test as async"
    )
    config.addinivalue_line(
        "markers",
        "gui: mark test as requiring a display"
    )


@pytest.fixture(scope="session")
def event_loop_policy():
    """Set event loop policy for all tests."""
    return asyncio.DefaultEventLoopPolicy()


def make_mask(rects, width=FRAME_WIDTH, height=FRAME_HEIGHT):
    """
    Build a binary mask with filled rectangles.

    Args:
        rects: Iterable of (x, y, w, h).

    Returns:
        np.ndarray: uint8 mask, 255 inside the rectangles.
    """
    mask = np.zeros((height, width), dtype=np.uint8)
    for x, y, w, h in rects:
        mask[y:y + h, x:x + w] = 255
    return mask


def make_frame(rects, color=RED_BGR, width=FRAME_WIDTH, height=FRAME_HEIGHT):
    """
    Build a black BGR frame with filled colored rectangles.

    Args:
        rects: Iterable of (x, y, w, h).
        color: BGR color of the rectangles.

    Returns:
        np.ndarray: uint8 frame.
    """
    frame = np.zeros((height, width, 3), dtype=np.uint8)
    for x, y, w, h in rects:
        frame[y:y + h, x:x + w] = color
    return frame


@pytest.fixture
def store(tmp_path):
    """Profile store writing to a temporary config directory."""
    return ProfileStore(str(tmp_path / "config"))


@pytest.fixture
def actuator():
    """Simulated actuator, on the ground."""
    return SimulatedActuator(on_ground=True)


@pytest.fixture
def airborne_actuator():
    """Simulated actuator, already in the air."""
    return SimulatedActuator(on_ground=False)


@pytest.fixture
def controller(actuator, store):
    """Mode controller with HTTP disabled."""
    return ModeController(actuator, store, ModeControllerConfig(enable_http=False))
