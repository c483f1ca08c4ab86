#!/usr/bin/env python3
"""
follower_app.py - Color Blob Follower Application

Runs the visual-servoing loop: every frame is thresholded in HSV, the
largest blob is measured, and (when following is enabled) the steering law
turns its position and size into a velocity command for the drone.

One asyncio task runs the frame loop:

    keys -> pending commands -> capture -> segment -> extract
         -> steer -> land request -> set_velocity -> HUD -> sleep

Keyboard (pynput thread, OpenCV window) and HTTP handlers only queue
commands; the loop applies them between frames.

Usage:
    # Webcam, simulated drone
    python -m color_follower.color_tracker.follower_app --no-drone

    # SITL over TCP
    python -m color_follower.color_tracker.follower_app -c tcp --tcp-host localhost

    # Headless, command via HTTP
    python -m color_follower.color_tracker.follower_app --no-gui
    curl -X POST http://localhost:8080/command/toggle_follow
"""

import asyncio
import logging
import sys
from dataclasses import dataclass
from typing import Optional, Union

import cv2
import numpy as np

from color_follower.color_tracker.actuator import (
    Actuator,
    MavsdkActuator,
    SimulatedActuator,
)
from color_follower.color_tracker.blob_extractor import BlobExtractor, DetectionResult
from color_follower.color_tracker.color_segmenter import ColorSegmenter, to_hsv
from color_follower.color_tracker.config import (
    FOLLOWER_CONFIG,
    MODE_CONTROLLER_CONFIG,
    FollowerConfig,
    ModeControllerConfig,
    get_config_summary,
)
from color_follower.color_tracker.control_panel import ControlPanel, HudRenderer
from color_follower.color_tracker.deadzone import bounds_for
from color_follower.color_tracker.mode_controller import ModeController
from color_follower.color_tracker.profile_store import ProfileStore
from color_follower.color_tracker.steering_law import (
    HOVER,
    SteeringLaw,
    VelocityCommand,
)
from color_follower.common.drone_helpers import (
    connect_drone,
    create_argument_parser,
    get_connection_string_from_args,
    is_shutdown_requested,
    setup_logging,
    setup_signal_handlers,
)
from color_follower.manual_control.keyboard_controller import (
    KeyboardController,
    print_controls,
)

logger = logging.getLogger(__name__)


@dataclass
class FrameResult:
    """
    Outcome of processing one frame.

    Attributes:
        detection: Blob detection.
        command: Velocity command for this frame.
        land: Auto-land touchdown request.
        mask: Segmentation mask (for debugging views).
    """

    detection: DetectionResult
    command: VelocityCommand
    land: bool = False
    mask: Optional[np.ndarray] = None


class FollowerApp:
    """
    Frame loop tying the pipeline to the mode controller and actuator.

    Attributes:
        controller: Mode state and active tunables.
        actuator: Drone collaborator.
        config: Frame loop configuration.
        keyboard: Optional keyboard input.
        show_gui: Whether OpenCV windows are shown.
        command: Last command sent.
        frame_count: Frames processed.
    """

    def __init__(
        self,
        controller: ModeController,
        actuator: Actuator,
        config: Optional[FollowerConfig] = None,
        keyboard: Optional[KeyboardController] = None,
        show_gui: bool = True,
    ):
        self.controller = controller
        self.actuator = actuator
        self.config = config or FOLLOWER_CONFIG
        self.keyboard = keyboard
        self.show_gui = show_gui

        self.segmenter = ColorSegmenter()
        self.extractor = BlobExtractor()
        self.steering = SteeringLaw()

        self.command: VelocityCommand = HOVER
        self.frame_count = 0

        self.panel: Optional[ControlPanel] = None
        self.hud = HudRenderer(
            self.config.frame_width,
            self.config.frame_height,
            self.config.stat_refresh_frames,
        )

        self.controller.on_camera_switch(self._on_camera_switch)

    # -------------------------------------------------------------------------
    # Pipeline
    # -------------------------------------------------------------------------

    def process_frame(self, frame_bgr: np.ndarray) -> FrameResult:
        """
        Run the vision pipeline and steering law on one frame.

        Does not touch the actuator.

        Args:
            frame_bgr: Camera frame, BGR.

        Returns:
            FrameResult: Detection and the command to send.
        """
        tunables = self.controller.tunables

        hsv = to_hsv(frame_bgr)
        mask = self.segmenter.segment(hsv, tunables.color_band)
        detection = self.extractor.extract(mask, tunables.area)

        command = self.command if self.config.hold_undriven_axes else HOVER
        if self.keyboard is not None:
            command = self.keyboard.take_nudge().apply(command)

        land = False
        if self.controller.should_steer(detection):
            bounds = bounds_for(
                tunables.deadzone, self.config.frame_width, self.config.frame_height
            )
            result = self.steering.steer(
                detection,
                bounds,
                tunables.area,
                self.controller.camera,
                auto_land=self.controller.auto_land_enabled,
                previous=command,
            )
            command = result.command
            land = result.land

        self.command = command
        return FrameResult(detection=detection, command=command, land=land, mask=mask)

    async def step(self, frame_bgr: np.ndarray) -> FrameResult:
        """
        Process one frame and act on it.

        Args:
            frame_bgr: Camera frame, BGR.

        Returns:
            FrameResult: What was computed and sent.
        """
        result = self.process_frame(frame_bgr)

        if result.land:
            await self.controller.request_land()

        try:
            await self.actuator.set_velocity(result.command)
        except Exception as e:
            logger.error("set_velocity failed: %s", e)

        self.frame_count += 1
        if self.frame_count % self.config.log_every_frames == 0:
            logger.debug(
                "Frame %d: %s -> %s", self.frame_count, result.detection, result.command
            )

        return result

    # -------------------------------------------------------------------------
    # GUI
    # -------------------------------------------------------------------------

    def _on_camera_switch(self, camera, tunables) -> None:
        self.command = HOVER
        if self.panel is not None:
            self.panel.build(tunables)

    def _open_windows(self) -> None:
        HudRenderer.open_input_window(self.config.frame_width, self.config.frame_height)
        self.panel = ControlPanel()
        self.panel.build(self.controller.tunables)

    def _render(self, frame_bgr: np.ndarray, result: FrameResult) -> None:
        tunables = self.controller.tunables
        self.hud.draw_deadzone(
            bounds_for(tunables.deadzone, self.config.frame_width, self.config.frame_height)
        )
        self.hud.tick_stats(
            result.detection,
            self.controller.follow_enabled,
            self.controller.auto_land_enabled,
            self.actuator.battery_percent,
        )
        HudRenderer.show(self.hud.compose(frame_bgr, result.detection))

    # -------------------------------------------------------------------------
    # Loop
    # -------------------------------------------------------------------------

    def _fit_frame(self, frame: np.ndarray) -> np.ndarray:
        height, width = frame.shape[:2]
        if (width, height) != (self.config.frame_width, self.config.frame_height):
            frame = cv2.resize(frame, (self.config.frame_width, self.config.frame_height))
        return frame

    async def run(self, capture) -> None:
        """
        Run the frame loop until QUIT or a shutdown signal.

        Args:
            capture: Opened cv2.VideoCapture (or anything with read()).
        """
        if self.show_gui:
            self._open_windows()

        logger.info("Frame loop started (camera=%s)", self.controller.camera.value)
        failed_reads = 0

        try:
            while True:
                if self.show_gui and self.keyboard is not None:
                    self.keyboard.press_code(cv2.waitKey(1))

                await self.controller.process_pending()
                if self.controller.quit_requested or is_shutdown_requested():
                    break

                if self.panel is not None:
                    self.panel.poll(self.controller)

                ok, frame = capture.read()
                if not ok or frame is None:
                    failed_reads += 1
                    if failed_reads >= self.config.max_failed_reads:
                        logger.error(
                            "Frame source exhausted after %d failed reads, stopping",
                            failed_reads,
                        )
                        break
                    if failed_reads == 1:
                        logger.warning("Frame read failed, skipping")
                    await asyncio.sleep(self.config.loop_sleep_s)
                    continue
                failed_reads = 0

                frame = self._fit_frame(frame)
                result = await self.step(frame)

                if self.show_gui:
                    self._render(frame, result)

                await asyncio.sleep(self.config.loop_sleep_s)

        except asyncio.CancelledError:
            logger.info("Frame loop cancelled")
        finally:
            logger.info("Frame loop stopped after %d frames", self.frame_count)


def _parse_source(source: str) -> Union[int, str]:
    """Device index for digit strings, otherwise a path or URL."""
    return int(source) if source.isdigit() else source


def open_capture(source: Union[int, str], width: int, height: int):
    """
    Open the frame source.

    Returns:
        cv2.VideoCapture, or None if it could not be opened.
    """
    capture = cv2.VideoCapture(source)
    if not capture.isOpened():
        return None
    capture.set(cv2.CAP_PROP_FRAME_WIDTH, width)
    capture.set(cv2.CAP_PROP_FRAME_HEIGHT, height)
    return capture


async def main_async(args) -> int:
    """
    Async main function.

    Args:
        args: Parsed command line arguments.

    Returns:
        int: Process exit status.
    """
    config = FollowerConfig(
        config_dir=args.config_dir,
        hold_undriven_axes=args.hold_axes,
    )
    mode_config = ModeControllerConfig(
        http_port=args.http_port,
        http_host=MODE_CONTROLLER_CONFIG.http_host,
        enable_http=not args.no_http,
    )

    capture = open_capture(
        _parse_source(args.source), config.frame_width, config.frame_height
    )
    if capture is None:
        logger.error("Failed to open capture device: %s", args.source)
        return 1

    if args.no_drone:
        logger.info("Running without a drone (simulated actuator)")
        actuator: Actuator = SimulatedActuator()
    else:
        drone = await connect_drone(get_connection_string_from_args(args))
        if drone is None:
            logger.error("Failed to connect to drone")
            capture.release()
            return 1
        actuator = MavsdkActuator(drone)

    store = ProfileStore(config.config_dir)
    controller = ModeController(actuator, store, mode_config)

    keyboard = KeyboardController(nudge_value=config.nudge_value)
    keyboard.on_command(controller.submit)
    keyboard.start()

    app = FollowerApp(
        controller,
        actuator,
        config=config,
        keyboard=keyboard,
        show_gui=not args.no_gui,
    )

    try:
        await actuator.start()
        await controller.start_http()
        await app.run(capture)
    finally:
        await controller.shutdown()
        await actuator.stop()
        keyboard.stop()
        capture.release()
        if app.show_gui:
            cv2.destroyAllWindows()

    return 0


def main():
    """Main entry point."""
    setup_signal_handlers()

    parser = create_argument_parser(
        description="Follow a colored object with a drone using a camera",
    )
    parser.add_argument(
        "--source",
        default="0",
        help="Capture device index, video file or stream URL (default: 0)",
    )
    parser.add_argument(
        "--config-dir",
        default=FOLLOWER_CONFIG.config_dir,
        help=f"Directory with per-camera XML tunables (default: {FOLLOWER_CONFIG.config_dir})",
    )
    parser.add_argument(
        "--no-drone",
        action="store_true",
        help="Run without a drone (simulated actuator)",
    )
    parser.add_argument(
        "--no-gui",
        action="store_true",
        help="Run without OpenCV windows",
    )
    parser.add_argument(
        "--http-port",
        type=int,
        default=MODE_CONTROLLER_CONFIG.http_port,
        help=f"HTTP control API port (default: {MODE_CONTROLLER_CONFIG.http_port})",
    )
    parser.add_argument(
        "--no-http",
        action="store_true",
        help="Disable the HTTP control API",
    )
    parser.add_argument(
        "--hold-axes",
        action="store_true",
        help="Keep the previous command on axes the steering law does not drive",
    )

    args = parser.parse_args()

    log_level = logging.DEBUG if args.verbose else logging.INFO
    setup_logging(level=log_level)

    print(get_config_summary())
    print_controls()

    try:
        sys.exit(asyncio.run(main_async(args)))
    except KeyboardInterrupt:
        print("\nInterrupted")
        sys.exit(0)


if __name__ == "__main__":
    main()
