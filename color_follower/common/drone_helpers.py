#!/usr/bin/env python3
"""
drone_helpers.py - Common Drone Operations

Provides shared functionality for the follower application:
- Connection management
- Takeoff, landing and emergency stop
- Sensor calibration
- Logging and signal setup
- Standard argument parser

Usage:
    from color_follower.common import (
        connect_drone,
        arm_and_takeoff,
        land,
        emergency_stop,
    )

    drone = await connect_drone("tcp://localhost:5760")
    await arm_and_takeoff(drone, altitude=2.5)
    await land(drone)
"""

import argparse
import asyncio
import logging
import signal
import time
from typing import Optional

from color_follower.common.mavlink_connection import (
    ConnectionConfig,
    add_connection_arguments,
)

# Module-level logger
logger = logging.getLogger(__name__)

# Global shutdown flag for signal handling
_shutdown_requested = False


def _signal_handler(signum, frame):
    """Handle shutdown signals (Ctrl+C)."""
    global _shutdown_requested
    logger.warning("Shutdown requested (signal %d)", signum)
    _shutdown_requested = True


def is_shutdown_requested() -> bool:
    """
    Check if shutdown has been requested.

    Returns:
        bool: True if shutdown was requested via signal.
    """
    return _shutdown_requested


def setup_signal_handlers():
    """Set up signal handlers for graceful shutdown."""
    signal.signal(signal.SIGINT, _signal_handler)
    signal.signal(signal.SIGTERM, _signal_handler)


def setup_logging(
    level: int = logging.INFO,
    format_string: str = "%(asctime)s [%(levelname)s] %(message)s",
    datefmt: str = "%H:%M:%S",
) -> logging.Logger:
    """
    Configure logging for the application.

    Args:
        level: Logging level (default: INFO).
        format_string: Log message format.
        datefmt: Date format string.

    Returns:
        logging.Logger: Configured root logger.
    """
    logging.basicConfig(
        level=level,
        format=format_string,
        datefmt=datefmt,
    )
    return logging.getLogger()


def create_argument_parser(
    description: str,
    add_verbose: bool = True,
) -> argparse.ArgumentParser:
    """
    Create a standard argument parser with connection options.

    Args:
        description: Program description.
        add_verbose: Add --verbose flag.

    Returns:
        argparse.ArgumentParser: Configured parser.
    """
    parser = argparse.ArgumentParser(description=description)

    if add_verbose:
        parser.add_argument(
            "--verbose",
            "-v",
            action="store_true",
            help="Enable verbose logging",
        )

    add_connection_arguments(parser)

    return parser


def get_connection_string_from_args(args: argparse.Namespace) -> str:
    """
    Build connection string from parsed arguments.

    Args:
        args: Parsed command line arguments.

    Returns:
        str: MAVSDK connection string.
    """
    config = ConnectionConfig.from_args(
        connection_type=args.connection_type,
        uart_device=args.uart_device,
        uart_baud=args.uart_baud,
        udp_host=args.udp_host,
        udp_port=args.udp_port,
        tcp_host=args.tcp_host,
        tcp_port=args.tcp_port,
    )
    logger.info("MAVLink connection: %s", config)
    return config.get_connection_string()


async def connect_drone(
    connection_string: str,
    timeout: float = 30.0,
) -> Optional["System"]:
    """
    Connect to a drone and wait for heartbeat.

    Args:
        connection_string: MAVSDK connection string.
        timeout: Connection timeout in seconds.

    Returns:
        System: Connected MAVSDK System, or None if failed.
    """
    from mavsdk import System

    logger.info("Connecting to drone: %s", connection_string)

    drone = System()
    await drone.connect(system_address=connection_string)

    start_time = time.time()
    async for state in drone.core.connection_state():
        if state.is_connected:
            logger.info("Connected to drone")
            return drone

        elapsed = time.time() - start_time
        if elapsed > timeout:
            logger.error("Connection timeout after %.0fs", timeout)
            return None

        if is_shutdown_requested():
            logger.warning("Connection cancelled by user")
            return None

        await asyncio.sleep(0.5)

    return None


async def arm_and_takeoff(drone: "System", altitude: float = 2.5) -> bool:
    """
    Arm the drone and command a takeoff.

    Returns once the takeoff command is accepted; climbing continues in the
    background so the frame loop keeps running.

    Args:
        drone: Connected MAVSDK System.
        altitude: Target altitude in meters.

    Returns:
        bool: True if the commands were accepted.
    """
    logger.info("Arming and taking off to %.1fm...", altitude)

    try:
        await drone.action.arm()
        await drone.action.set_takeoff_altitude(altitude)
        await drone.action.takeoff()
        logger.info("  Takeoff command sent")
        return True
    except Exception as e:
        logger.error("Takeoff failed: %s", e)
        return False


async def land(drone: "System") -> bool:
    """
    Command a landing without waiting for touchdown.

    Args:
        drone: Connected MAVSDK System.

    Returns:
        bool: True if the land command was accepted.
    """
    logger.info("Landing...")

    try:
        await drone.action.land()
        logger.info("  Land command sent")
        return True
    except Exception as e:
        logger.error("Landing failed: %s", e)
        return False


async def emergency_stop(drone: "System") -> bool:
    """
    Emergency stop - kill motors immediately.

    WARNING: This will cause the drone to fall from the sky!

    Args:
        drone: Connected MAVSDK System.

    Returns:
        bool: True if kill command sent.
    """
    logger.error("EMERGENCY STOP - KILLING MOTORS!")

    try:
        await drone.action.kill()
        logger.info("  Kill command sent")
        return True
    except Exception as e:
        logger.error("Emergency stop failed: %s", e)
        return False


async def run_calibration(drone: "System", kind: str) -> bool:
    """
    Run a sensor calibration to completion, logging its progress.

    Args:
        drone: Connected MAVSDK System.
        kind: "gyro" or "level_horizon".

    Returns:
        bool: True if the calibration finished without error.
    """
    if kind == "gyro":
        stream = drone.calibration.calibrate_gyro()
    elif kind == "level_horizon":
        stream = drone.calibration.calibrate_level_horizon()
    else:
        raise ValueError(f"Unknown calibration: {kind}")

    logger.info("Calibration (%s) started", kind)

    try:
        async for progress in stream:
            if progress.has_status_text:
                logger.info("  %s: %s", kind, progress.status_text)
            elif progress.has_progress:
                logger.debug("  %s: %.0f%%", kind, progress.progress * 100)
        logger.info("Calibration (%s) complete", kind)
        return True
    except Exception as e:
        logger.error("Calibration (%s) failed: %s", kind, e)
        return False
