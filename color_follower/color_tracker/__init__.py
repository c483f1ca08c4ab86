"""
color_tracker - Color Blob Following Controller

Main components:
- config: Tunables, camera profiles and application settings
- profile_store: Per-camera tunables persisted as OpenCV XML
- color_segmenter: HSV band-pass and morphological closing
- blob_extractor: Largest blob area and centroid from image moments
- deadzone: Centered dead-zone rectangle
- steering_law: Proportional front/bottom camera steering
- mode_controller: Follow / auto-land / camera modes, HTTP commands
- actuator: MAVSDK and simulated drone adapters
- control_panel: Trackbar window and HUD overlays
- follower_app: Frame loop and CLI

Usage:
    python -m color_follower.color_tracker.follower_app --source 0
"""

from color_follower.color_tracker.config import (
    AREA_SCALE,
    FOLLOWER_CONFIG,
    ACTUATOR_CONFIG,
    MODE_CONTROLLER_CONFIG,
    AreaThresholds,
    CameraProfile,
    ColorBand,
    Deadzone,
    ProfileTunables,
    FollowerConfig,
    ActuatorConfig,
    ModeControllerConfig,
    get_config_summary,
)

from color_follower.color_tracker.profile_store import ProfileStore

from color_follower.color_tracker.color_segmenter import ColorSegmenter, to_hsv

from color_follower.color_tracker.blob_extractor import (
    DetectionResult,
    BlobExtractor,
)

from color_follower.color_tracker.deadzone import (
    DeadzoneBounds,
    deadzone_bounds,
)

from color_follower.color_tracker.steering_law import (
    HOVER,
    VelocityCommand,
    SteeringResult,
    SteeringLaw,
)

from color_follower.color_tracker.actuator import (
    Actuator,
    SimulatedActuator,
    MavsdkActuator,
    to_body_velocity,
)

from color_follower.color_tracker.mode_controller import (
    Command,
    ModeState,
    ModeController,
)

__all__ = [
    # Config
    "AREA_SCALE",
    "FOLLOWER_CONFIG",
    "ACTUATOR_CONFIG",
    "MODE_CONTROLLER_CONFIG",
    "AreaThresholds",
    "CameraProfile",
    "ColorBand",
    "Deadzone",
    "ProfileTunables",
    "FollowerConfig",
    "ActuatorConfig",
    "ModeControllerConfig",
    "get_config_summary",
    # Persistence
    "ProfileStore",
    # Vision
    "ColorSegmenter",
    "to_hsv",
    "DetectionResult",
    "BlobExtractor",
    "DeadzoneBounds",
    "deadzone_bounds",
    # Steering
    "HOVER",
    "VelocityCommand",
    "SteeringResult",
    "SteeringLaw",
    # Actuator
    "Actuator",
    "SimulatedActuator",
    "MavsdkActuator",
    "to_body_velocity",
    # Modes
    "Command",
    "ModeState",
    "ModeController",
]
