#!/usr/bin/env python3
"""
keyboard_controller.py - Non-blocking Keyboard Input Handler

Maps key presses to follower commands and manual velocity nudges. Keys
arrive from a pynput listener thread (works over SSH) and from the OpenCV
window (cv2.waitKey); both feed press().

Control Scheme:
    Space       - Arm toggle (takeoff / land)
    W/S         - Forward / back        -> vx
    A/D         - Yaw left / right      -> yaw_rate
    Q/E         - Strafe left / right   -> vy
    I/K         - Climb / descend       -> vz
    C           - Switch camera (front / bottom)
    V           - Calibrate
    T           - Flat trim
    P           - Emergency (kill motors)
    F           - Toggle following
    L           - Toggle auto landing
    Esc         - Quit

A nudge lasts one frame: the frame loop takes it with take_nudge() and
applies it before the steering law runs.

Usage:
    from color_follower.manual_control.keyboard_controller import KeyboardController

    keyboard = KeyboardController()
    keyboard.on_command(controller.submit)
    keyboard.start()

    # In the frame loop:
    nudge = keyboard.take_nudge()
    command = nudge.apply(command)

    keyboard.stop()
"""

import logging
import threading
import time
from dataclasses import dataclass, field, replace
from typing import Callable, Dict, List, Optional

from color_follower.color_tracker.mode_controller import Command
from color_follower.color_tracker.steering_law import VelocityCommand

logger = logging.getLogger(__name__)

# cv2.waitKey codes that are not printable characters
_WAITKEY_NAMES = {
    27: "esc",
    32: "space",
    13: "enter",
    9: "tab",
}


@dataclass
class ControlInput:
    """
    Manual velocity nudge for one frame.

    Axes left as None are not touched by the nudge.

    Attributes:
        vx: Forward (+1) / back (-1).
        vy: Left (+1) / right (-1).
        vz: Up (+1) / down (-1).
        yaw_rate: Counter-clockwise (+1) / clockwise (-1).
        timestamp: When this input was captured.
    """

    vx: Optional[float] = None
    vy: Optional[float] = None
    vz: Optional[float] = None
    yaw_rate: Optional[float] = None
    timestamp: float = field(default_factory=time.time)

    @property
    def has_input(self) -> bool:
        return any(
            value is not None for value in (self.vx, self.vy, self.vz, self.yaw_rate)
        )

    def apply(self, command: VelocityCommand) -> VelocityCommand:
        """Return `command` with the nudged axes replaced."""
        changes = {
            name: value
            for name, value in (
                ("vx", self.vx),
                ("vy", self.vy),
                ("vz", self.vz),
                ("yaw_rate", self.yaw_rate),
            )
            if value is not None
        }
        return replace(command, **changes) if changes else command

    def __str__(self) -> str:
        def fmt(value):
            return "-" if value is None else f"{value:+.2f}"

        return (
            f"Input(vx={fmt(self.vx)}, vy={fmt(self.vy)}, "
            f"vz={fmt(self.vz)}, yaw={fmt(self.yaw_rate)})"
        )


@dataclass
class KeyMapping:
    """
    Key mapping configuration.

    Attributes:
        arm_toggle: Takeoff when landed, land when airborne.
        forward, back: vx nudges.
        yaw_left, yaw_right: yaw_rate nudges.
        strafe_left, strafe_right: vy nudges.
        up, down: vz nudges.
        switch_camera, calibrate, flat_trim, emergency,
        toggle_follow, toggle_auto_land, quit: Command keys.
    """

    arm_toggle: str = "space"
    forward: str = "w"
    back: str = "s"
    yaw_left: str = "a"
    yaw_right: str = "d"
    strafe_left: str = "q"
    strafe_right: str = "e"
    up: str = "i"
    down: str = "k"
    switch_camera: str = "c"
    calibrate: str = "v"
    flat_trim: str = "t"
    emergency: str = "p"
    toggle_follow: str = "f"
    toggle_auto_land: str = "l"
    quit: str = "esc"

    def commands(self) -> Dict[str, Command]:
        """Key name -> Command."""
        return {
            self.arm_toggle: Command.ARM_TOGGLE,
            self.switch_camera: Command.SWITCH_CAMERA,
            self.calibrate: Command.CALIBRATE,
            self.flat_trim: Command.FLAT_TRIM,
            self.emergency: Command.EMERGENCY,
            self.toggle_follow: Command.TOGGLE_FOLLOW,
            self.toggle_auto_land: Command.TOGGLE_AUTO_LAND,
            self.quit: Command.QUIT,
        }

    def nudges(self) -> Dict[str, tuple]:
        """Key name -> (axis, sign)."""
        return {
            self.forward: ("vx", 1.0),
            self.back: ("vx", -1.0),
            self.strafe_left: ("vy", 1.0),
            self.strafe_right: ("vy", -1.0),
            self.up: ("vz", 1.0),
            self.down: ("vz", -1.0),
            self.yaw_left: ("yaw_rate", 1.0),
            self.yaw_right: ("yaw_rate", -1.0),
        }


# Default key mapping
DEFAULT_KEY_MAPPING = KeyMapping()


class KeyboardController:
    """
    Keyboard input for the follower.

    Command keys are forwarded to the registered command callbacks
    (typically ModeController.submit). Nudge keys accumulate into a pending
    ControlInput consumed once per frame. Thread-safe.

    Attributes:
        key_mapping: Key mapping configuration.
        nudge_value: Magnitude applied by a nudge key.
        is_running: Whether the pynput listener is active.
    """

    def __init__(
        self,
        key_mapping: Optional[KeyMapping] = None,
        nudge_value: float = 1.0,
        debounce_s: float = 0.2,
    ):
        """
        Initialize the keyboard controller.

        Args:
            key_mapping: Custom key mapping. Uses defaults if None.
            nudge_value: Axis value set by a nudge key (clamped to 0.0-1.0).
            debounce_s: Minimum interval between repeats of one command key.
        """
        self.key_mapping = key_mapping or DEFAULT_KEY_MAPPING
        self.nudge_value = max(0.0, min(1.0, nudge_value))
        self._debounce_s = debounce_s

        self._commands = self.key_mapping.commands()
        self._nudges = self.key_mapping.nudges()

        self._pending: Dict[str, float] = {}
        self._last_command_time: Dict[Command, float] = {}

        self._lock = threading.Lock()
        self._listener = None
        self._running = False

        self._on_command_callbacks: List[Callable] = []

        logger.debug("KeyboardController initialized (nudge=%.2f)", self.nudge_value)

    @property
    def is_running(self) -> bool:
        """Check if the keyboard listener is running."""
        return self._running

    def on_command(self, callback: Callable) -> None:
        """Register callback(command) for command keys."""
        self._on_command_callbacks.append(callback)

    def start(self) -> bool:
        """
        Start the pynput keyboard listener.

        Returns:
            bool: True if started, False if already running or unavailable.
        """
        if self._running:
            logger.warning("KeyboardController already running")
            return False

        try:
            from pynput import keyboard

            self._listener = keyboard.Listener(on_press=self._on_key_press)
            self._listener.start()
            self._running = True
            logger.info("KeyboardController started")
            return True

        except ImportError:
            logger.error("pynput not installed. Install with: pip install pynput")
            return False
        except Exception as e:
            # No display / input device: the OpenCV window still delivers keys
            logger.warning("Failed to start keyboard listener: %s", e)
            return False

    def stop(self) -> None:
        """Stop the keyboard listener."""
        self._running = False

        if self._listener:
            self._listener.stop()
            self._listener = None

        with self._lock:
            self._pending.clear()

        logger.info("KeyboardController stopped")

    def press(self, key_name: str) -> Optional[Command]:
        """
        Handle one key press by name.

        Args:
            key_name: Normalized key name ("w", "space", "esc", ...).

        Returns:
            Command if the key is a command key and was not debounced.
        """
        key_name = key_name.lower()

        nudge = self._nudges.get(key_name)
        if nudge is not None:
            axis, sign = nudge
            with self._lock:
                self._pending[axis] = sign * self.nudge_value
            return None

        command = self._commands.get(key_name)
        if command is None:
            return None

        now = time.time()
        with self._lock:
            last = self._last_command_time.get(command, 0.0)
            if now - last < self._debounce_s:
                return None
            self._last_command_time[command] = now

        logger.debug("Key '%s' -> %s", key_name, command.value)
        for callback in self._on_command_callbacks:
            try:
                callback(command)
            except Exception as e:
                logger.error("Command callback error: %s", e)
        return command

    def press_code(self, code: int) -> Optional[Command]:
        """
        Handle a cv2.waitKey() return code.

        Args:
            code: Key code (-1 when no key was pressed).
        """
        if code < 0:
            return None
        code &= 0xFF
        name = _WAITKEY_NAMES.get(code)
        if name is None:
            if not 32 < code < 127:
                return None
            name = chr(code)
        return self.press(name)

    def take_nudge(self) -> ControlInput:
        """
        Return and clear the pending nudge.

        Returns:
            ControlInput: Nudged axes since the last call.
        """
        with self._lock:
            pending = self._pending
            self._pending = {}
        return ControlInput(**pending)

    def _normalize_key(self, key) -> str:
        """
        Normalize key object to string representation.

        Args:
            key: pynput Key object or KeyCode.

        Returns:
            str: Normalized key name.
        """
        try:
            from pynput.keyboard import Key

            key_map = {
                Key.space: "space",
                Key.esc: "esc",
                Key.enter: "enter",
                Key.tab: "tab",
            }

            if key in key_map:
                return key_map[key]

            if hasattr(key, "char") and key.char:
                return key.char.lower()

            return str(key)

        except Exception:
            return str(key)

    def _on_key_press(self, key) -> None:
        """Handle pynput key press event."""
        self.press(self._normalize_key(key))


def print_controls(key_mapping: KeyMapping = DEFAULT_KEY_MAPPING) -> None:
    """Print control scheme to console."""
    m = key_mapping
    print("\n" + "=" * 50)
    print("KEYBOARD CONTROLS")
    print("=" * 50)
    print("  Flight:")
    print(f"    {m.arm_toggle.upper():<12}- Arm toggle (takeoff / land)")
    print(f"    {m.forward.upper()}/{m.back.upper():<10}- Forward / Back")
    print(f"    {m.yaw_left.upper()}/{m.yaw_right.upper():<10}- Yaw Left / Right")
    print(f"    {m.strafe_left.upper()}/{m.strafe_right.upper():<10}- Strafe Left / Right")
    print(f"    {m.up.upper()}/{m.down.upper():<10}- Up / Down")
    print()
    print("  Drone:")
    print(f"    {m.switch_camera.upper():<12}- Switch camera")
    print(f"    {m.calibrate.upper():<12}- Calibrate")
    print(f"    {m.flat_trim.upper():<12}- Flat trim")
    print(f"    {m.emergency.upper():<12}- Emergency (kill motors)")
    print()
    print("  Follower:")
    print(f"    {m.toggle_follow.upper():<12}- Toggle following")
    print(f"    {m.toggle_auto_land.upper():<12}- Toggle auto landing")
    print(f"    {m.quit.upper():<12}- Quit")
    print("=" * 50 + "\n")
