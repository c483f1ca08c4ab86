#!/usr/bin/env python3
"""
Manual Control Module

Keyboard input for the color follower: command keys (arm toggle, camera
switch, follow and auto-land toggles, ...) and one-frame velocity nudges.
Works through a pynput listener or the OpenCV window.
"""

from color_follower.manual_control.keyboard_controller import (
    ControlInput,
    KeyMapping,
    KeyboardController,
    DEFAULT_KEY_MAPPING,
    print_controls,
)

__all__ = [
    "ControlInput",
    "KeyMapping",
    "KeyboardController",
    "DEFAULT_KEY_MAPPING",
    "print_controls",
]
