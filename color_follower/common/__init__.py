"""
Common utilities for the color follower.

Modules:
    drone_helpers: Connection, takeoff, land, calibration, logging setup.
    mavlink_connection: MAVLink connection strings from env and CLI.
"""

from .drone_helpers import (
    connect_drone,
    arm_and_takeoff,
    land,
    emergency_stop,
    run_calibration,
    setup_logging,
    create_argument_parser,
    get_connection_string_from_args,
    is_shutdown_requested,
    setup_signal_handlers,
)

from .mavlink_connection import (
    ConnectionConfig,
    ConnectionType,
    add_connection_arguments,
)

__all__ = [
    # drone_helpers
    "connect_drone",
    "arm_and_takeoff",
    "land",
    "emergency_stop",
    "run_calibration",
    "setup_logging",
    "create_argument_parser",
    "get_connection_string_from_args",
    "is_shutdown_requested",
    "setup_signal_handlers",
    # mavlink_connection
    "ConnectionConfig",
    "ConnectionType",
    "add_connection_arguments",
]
