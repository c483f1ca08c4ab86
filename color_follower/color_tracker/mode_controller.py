#!/usr/bin/env python3
"""
mode_controller.py - Follow / Auto-Land / Camera Mode Controller

Owns the follower's mode state and the active camera profile's tunables,
and turns discrete user commands into state changes or actuator calls.

State:
    {Landed, Airborne}          - queried from the actuator
    follow_enabled              - steering law runs on detections
    auto_land_enabled           - bottom camera descends and lands on target
    camera                      - FRONT or BOTTOM profile

Command sources (keyboard thread, HTTP handlers) only enqueue commands with
submit(); the frame loop applies them with process_pending() between frames,
so pipeline state never changes mid-frame.

Usage:
    from color_follower.color_tracker.mode_controller import Command, ModeController

    controller = ModeController(actuator, store)
    controller.submit(Command.TOGGLE_FOLLOW)
    await controller.process_pending()

    if controller.should_steer(detection):
        ...

    # Control via HTTP:
    # curl http://localhost:8080/status
    # curl -X POST http://localhost:8080/command/toggle_follow
"""

import logging
import time
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Deque, Dict, List, Optional

from color_follower.color_tracker.actuator import Actuator
from color_follower.color_tracker.blob_extractor import DetectionResult
from color_follower.color_tracker.config import (
    MODE_CONTROLLER_CONFIG,
    AreaThresholds,
    CameraProfile,
    ColorBand,
    Deadzone,
    ModeControllerConfig,
    ProfileTunables,
)
from color_follower.color_tracker.profile_store import ProfileStore

logger = logging.getLogger(__name__)


class Command(Enum):
    """Discrete user commands."""

    ARM_TOGGLE = "arm_toggle"
    TOGGLE_FOLLOW = "toggle_follow"
    TOGGLE_AUTO_LAND = "toggle_auto_land"
    SWITCH_CAMERA = "switch_camera"
    CALIBRATE = "calibrate"
    FLAT_TRIM = "flat_trim"
    EMERGENCY = "emergency"
    QUIT = "quit"


@dataclass
class ModeState:
    """
    Current mode state.

    Attributes:
        follow_enabled: Whether the steering law drives the vehicle.
        auto_land_enabled: Whether bottom-camera auto-land is armed.
        camera: Active camera profile.
        quit_requested: Set by QUIT; the frame loop exits on it.
        changed_at: Timestamp of last change.
    """

    follow_enabled: bool = False
    auto_land_enabled: bool = False
    camera: CameraProfile = CameraProfile.FRONT
    quit_requested: bool = False
    changed_at: float = 0.0


class ModeController:
    """
    Mode state machine and command dispatcher.

    Attributes:
        actuator: Drone collaborator.
        store: Per-profile tunable persistence.
        config: HTTP API configuration.
        state: Current mode state.
        tunables: Active profile's tunables (immutable snapshot).
    """

    def __init__(
        self,
        actuator: Actuator,
        store: ProfileStore,
        config: Optional[ModeControllerConfig] = None,
        camera: CameraProfile = CameraProfile.FRONT,
    ):
        """
        Initialize the mode controller and load the starting profile.

        Args:
            actuator: Drone collaborator.
            store: Profile persistence.
            config: HTTP API configuration. Uses defaults if None.
            camera: Initial camera profile.
        """
        self.actuator = actuator
        self.store = store
        self.config = config or MODE_CONTROLLER_CONFIG
        self.state = ModeState(camera=camera)
        self.tunables: ProfileTunables = store.load(camera)

        self._pending: Deque[Command] = deque()
        self._http_runner = None

        self._on_camera_switch_callbacks: List[Callable] = []
        self._on_tunables_changed_callbacks: List[Callable] = []

        logger.debug("ModeController initialized (camera=%s)", camera.value)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    @property
    def camera(self) -> CameraProfile:
        return self.state.camera

    @property
    def follow_enabled(self) -> bool:
        return self.state.follow_enabled

    @property
    def auto_land_enabled(self) -> bool:
        return self.state.auto_land_enabled

    @property
    def quit_requested(self) -> bool:
        return self.state.quit_requested

    @property
    def airborne(self) -> bool:
        return not self.actuator.on_ground()

    def should_steer(self, detection: DetectionResult) -> bool:
        """The steering law runs only on a detection with follow enabled."""
        return detection.detected and self.state.follow_enabled

    # -------------------------------------------------------------------------
    # Callbacks
    # -------------------------------------------------------------------------

    def on_camera_switch(self, callback: Callable) -> None:
        """Register callback(camera, tunables) fired after a camera switch."""
        self._on_camera_switch_callbacks.append(callback)

    def on_tunables_changed(self, callback: Callable) -> None:
        """Register callback(tunables) fired after an update_tunables edit."""
        self._on_tunables_changed_callbacks.append(callback)

    def _fire(self, callbacks: List[Callable], *args) -> None:
        for callback in callbacks:
            try:
                callback(*args)
            except Exception as e:
                logger.error("Mode callback error: %s", e)

    # -------------------------------------------------------------------------
    # Commands
    # -------------------------------------------------------------------------

    def submit(self, command: Command) -> None:
        """
        Queue a command for the next frame.

        Safe to call from the keyboard listener thread.
        """
        self._pending.append(command)
        logger.debug("Command queued: %s", command.value)

    async def process_pending(self) -> int:
        """
        Dispatch every queued command in arrival order.

        Returns:
            int: Number of commands dispatched.
        """
        count = 0
        while self._pending:
            command = self._pending.popleft()
            await self.dispatch(command)
            count += 1
        return count

    async def dispatch(self, command: Command) -> None:
        """
        Execute a command now.

        Args:
            command: Command to execute.
        """
        logger.debug("Dispatching %s", command.value)

        if command is Command.ARM_TOGGLE:
            if self.actuator.on_ground():
                logger.info("Arm toggle: takeoff")
                await self.actuator.takeoff()
            else:
                logger.info("Arm toggle: land")
                await self.actuator.land()

        elif command is Command.TOGGLE_FOLLOW:
            self.state.follow_enabled = not self.state.follow_enabled
            self._touch()
            logger.info("Following %s", "ON" if self.state.follow_enabled else "OFF")

        elif command is Command.TOGGLE_AUTO_LAND:
            self.state.auto_land_enabled = not self.state.auto_land_enabled
            self._touch()
            logger.info(
                "Auto landing %s", "ON" if self.state.auto_land_enabled else "OFF"
            )

        elif command is Command.SWITCH_CAMERA:
            self.switch_camera()

        elif command is Command.CALIBRATE:
            await self.actuator.calibrate()

        elif command is Command.FLAT_TRIM:
            await self.actuator.flat_trim()

        elif command is Command.EMERGENCY:
            await self.actuator.emergency()

        elif command is Command.QUIT:
            self.state.quit_requested = True
            logger.info("Quit requested")

    def switch_camera(self) -> CameraProfile:
        """
        Save the current profile's tunables, then load the other profile's.

        Returns:
            CameraProfile: The newly active profile.
        """
        self.store.save(self.state.camera, self.tunables)
        self.state.camera = self.state.camera.other
        self.tunables = self.store.load(self.state.camera)
        self._touch()

        logger.info("Camera switched to %s", self.state.camera.value)
        self._fire(self._on_camera_switch_callbacks, self.state.camera, self.tunables)
        return self.state.camera

    async def request_land(self) -> bool:
        """
        Auto-land touchdown request; lands only while airborne.

        Returns:
            bool: True if a land command was sent.
        """
        if self.actuator.on_ground():
            return False
        logger.info("Auto-land: target reached, landing")
        await self.actuator.land()
        return True

    # -------------------------------------------------------------------------
    # Tunables
    # -------------------------------------------------------------------------

    def update_tunables(
        self,
        color_band: Optional[ColorBand] = None,
        area: Optional[AreaThresholds] = None,
        deadzone: Optional[Deadzone] = None,
    ) -> ProfileTunables:
        """
        Replace parts of the active tunables with a new clamped snapshot.

        Returns:
            ProfileTunables: The new snapshot (also stored on self.tunables).
        """
        changes: Dict[str, Any] = {}
        if color_band is not None:
            changes["color_band"] = color_band
        if area is not None:
            changes["area"] = area
        if deadzone is not None:
            changes["deadzone"] = deadzone

        if not changes:
            return self.tunables

        updated = self.tunables.with_changes(**changes)
        if updated != self.tunables:
            self.tunables = updated
            logger.debug("Tunables changed: %s", updated.to_dict())
            self._fire(self._on_tunables_changed_callbacks, updated)
        return self.tunables

    def save(self) -> None:
        """Persist the active profile's tunables."""
        self.store.save(self.state.camera, self.tunables)

    async def shutdown(self) -> None:
        """Persist tunables and stop the HTTP API."""
        self.save()
        await self.stop_http()

    def _touch(self) -> None:
        self.state.changed_at = time.time()

    def get_status(self) -> Dict[str, Any]:
        """
        Get current mode status.

        Returns:
            dict: Status information.
        """
        return {
            "follow_enabled": self.state.follow_enabled,
            "auto_land_enabled": self.state.auto_land_enabled,
            "camera": self.state.camera.value,
            "airborne": self.airborne,
            "quit_requested": self.state.quit_requested,
            "changed_at": self.state.changed_at,
            "pending_commands": len(self._pending),
            "tunables": self.tunables.to_dict(),
            "http_enabled": self.config.enable_http,
            "http_port": self.config.http_port,
        }

    # -------------------------------------------------------------------------
    # HTTP Server
    # -------------------------------------------------------------------------

    def build_http_app(self) -> "web.Application":
        """Create the aiohttp application serving the control API."""
        from aiohttp import web

        app = web.Application()
        app.router.add_get("/", self._handle_root)
        app.router.add_get("/status", self._handle_status)
        app.router.add_post("/command/{name}", self._handle_command)
        return app

    async def start_http(self) -> None:
        """Start the HTTP control server if enabled."""
        if not self.config.enable_http or self._http_runner is not None:
            return

        try:
            from aiohttp import web
        except ImportError:
            logger.warning("aiohttp not installed, HTTP control disabled")
            return

        self._http_runner = web.AppRunner(self.build_http_app())
        await self._http_runner.setup()

        site = web.TCPSite(
            self._http_runner,
            self.config.http_host,
            self.config.http_port,
        )
        await site.start()

        logger.info(
            "HTTP control server started on http://%s:%d",
            self.config.http_host,
            self.config.http_port,
        )

    async def stop_http(self) -> None:
        """Stop the HTTP control server."""
        if self._http_runner:
            await self._http_runner.cleanup()
            self._http_runner = None
            logger.info("HTTP control server stopped")

    async def _handle_root(self, request) -> "web.Response":
        """Handle root endpoint with usage info."""
        from aiohttp import web

        commands = "\n".join(
            f"curl -X POST http://localhost:{self.config.http_port}/command/{c.value}"
            for c in Command
        )
        text = (
            "Color Follower Control\n\n"
            "GET  /status\n"
            "POST /command/{name}\n\n"
            f"{commands}\n"
        )
        return web.Response(text=text)

    async def _handle_status(self, request) -> "web.Response":
        """Handle GET /status endpoint."""
        from aiohttp import web

        return web.json_response(self.get_status())

    async def _handle_command(self, request) -> "web.Response":
        """Handle POST /command/{name} endpoint."""
        from aiohttp import web

        name = request.match_info["name"]
        try:
            command = Command(name)
        except ValueError:
            return web.json_response(
                {"success": False, "error": f"unknown command: {name}"},
                status=404,
            )

        self.submit(command)
        return web.json_response({"success": True, "queued": command.value})
