#!/usr/bin/env python3
"""
actuator.py - Drone Actuator Adapters

The frame loop talks to the drone through a small interface:

    set_velocity(command)     once per frame
    takeoff() / land()        arm toggle and auto-land
    calibrate() / flat_trim() sensor calibration pass-through
    emergency()               motor kill
    on_ground()               decides what the arm toggle means

MavsdkActuator drives a PX4 vehicle through MAVSDK offboard velocity
setpoints. SimulatedActuator has the same interface, changes state
instantly and records every call; it backs --no-drone runs and the tests.

Command conventions (normalized, [-1, 1]):
    vx forward+, vy left+, vz up+, yaw_rate counter-clockwise+
MAVSDK body frame:
    forward+, right+, down+, yawspeed clockwise+ (deg/s)
"""

import asyncio
import logging
import time
from typing import List, Optional, Tuple

from color_follower.color_tracker.config import ACTUATOR_CONFIG, ActuatorConfig
from color_follower.color_tracker.steering_law import HOVER, VelocityCommand
from color_follower.common.drone_helpers import (
    arm_and_takeoff,
    emergency_stop,
    land,
    run_calibration,
)

logger = logging.getLogger(__name__)


def _unit(value: float) -> float:
    return max(-1.0, min(1.0, value))


def to_body_velocity(
    command: VelocityCommand,
    config: ActuatorConfig = ACTUATOR_CONFIG,
) -> Tuple[float, float, float, float]:
    """
    Convert a normalized command to a MAVSDK body-frame setpoint.

    Each axis is clamped to [-1, 1] before scaling.

    Args:
        command: Normalized velocity command.
        config: Speed limits.

    Returns:
        (forward_m_s, right_m_s, down_m_s, yawspeed_deg_s)
    """
    return (
        _unit(command.vx) * config.max_horizontal_speed,
        -_unit(command.vy) * config.max_horizontal_speed,
        -_unit(command.vz) * config.max_vertical_speed,
        -_unit(command.yaw_rate) * config.max_yaw_rate,
    )


class Actuator:
    """Interface of the drone collaborator."""

    @property
    def battery_percent(self) -> float:
        return 0.0

    def on_ground(self) -> bool:
        raise NotImplementedError

    async def start(self) -> None:
        """Start background work (telemetry readers)."""

    async def stop(self) -> None:
        """Stop background work."""

    async def set_velocity(self, command: VelocityCommand) -> None:
        raise NotImplementedError

    async def takeoff(self) -> None:
        raise NotImplementedError

    async def land(self) -> None:
        raise NotImplementedError

    async def calibrate(self) -> None:
        raise NotImplementedError

    async def flat_trim(self) -> None:
        raise NotImplementedError

    async def emergency(self) -> None:
        raise NotImplementedError


class SimulatedActuator(Actuator):
    """
    In-memory actuator.

    Attributes:
        calls: Names of discrete commands received, in order.
        last_velocity: Most recent velocity accepted while airborne.
        velocity_count: Number of velocity commands received.
    """

    def __init__(self, on_ground: bool = True, battery_percent: float = 100.0):
        self._on_ground = on_ground
        self._battery_percent = battery_percent
        self.calls: List[str] = []
        self.last_velocity: VelocityCommand = HOVER
        self.velocity_count: int = 0

    @property
    def battery_percent(self) -> float:
        return self._battery_percent

    def on_ground(self) -> bool:
        return self._on_ground

    async def set_velocity(self, command: VelocityCommand) -> None:
        self.velocity_count += 1
        # Landed vehicles ignore velocity until the next takeoff
        if not self._on_ground:
            self.last_velocity = command

    async def takeoff(self) -> None:
        self.calls.append("takeoff")
        self._on_ground = False
        logger.info("[sim] takeoff")

    async def land(self) -> None:
        self.calls.append("land")
        self._on_ground = True
        self.last_velocity = HOVER
        logger.info("[sim] land")

    async def calibrate(self) -> None:
        self.calls.append("calibrate")
        logger.info("[sim] calibrate")

    async def flat_trim(self) -> None:
        self.calls.append("flat_trim")
        logger.info("[sim] flat trim")

    async def emergency(self) -> None:
        self.calls.append("emergency")
        self._on_ground = True
        self.last_velocity = HOVER
        logger.warning("[sim] emergency stop")


class MavsdkActuator(Actuator):
    """
    MAVSDK-backed actuator using offboard body-frame velocity control.

    Offboard mode is started lazily on the first setpoint sent while the
    vehicle is in the air, and considered stopped after land/kill.

    Attributes:
        drone: Connected mavsdk.System.
        config: Speed limits and takeoff altitude.
    """

    def __init__(self, drone: "System", config: Optional[ActuatorConfig] = None):
        self.drone = drone
        self.config = config or ACTUATOR_CONFIG

        self._in_air: bool = False
        self._battery_percent: float = 0.0
        self._offboard_started: bool = False
        # Set by land/kill until telemetry reports on-ground
        self._landing: bool = False
        self._tasks: List[asyncio.Task] = []
        self._calibration_task: Optional[asyncio.Task] = None
        self._last_error_time: float = 0.0

    @property
    def battery_percent(self) -> float:
        return self._battery_percent

    def on_ground(self) -> bool:
        return not self._in_air

    async def start(self) -> None:
        """Start background telemetry readers."""
        self._tasks = [
            asyncio.create_task(self._read_in_air()),
            asyncio.create_task(self._read_battery()),
        ]
        logger.debug("MavsdkActuator telemetry started")

    async def stop(self) -> None:
        """Stop offboard mode and telemetry readers."""
        await self._stop_offboard()

        tasks = list(self._tasks)
        if self._calibration_task is not None:
            tasks.append(self._calibration_task)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks = []
        self._calibration_task = None
        logger.debug("MavsdkActuator stopped")

    async def set_velocity(self, command: VelocityCommand) -> None:
        if not self._in_air or self._landing:
            return

        from mavsdk.offboard import VelocityBodyYawspeed

        setpoint = VelocityBodyYawspeed(*to_body_velocity(command, self.config))

        try:
            if not self._offboard_started:
                # A setpoint must be streaming before offboard can start
                await self.drone.offboard.set_velocity_body(setpoint)
                await self.drone.offboard.start()
                self._offboard_started = True
                logger.info("Offboard mode started")

            await self.drone.offboard.set_velocity_body(setpoint)

        except Exception as e:
            # Rate-limit the log; this runs every frame
            now = time.time()
            if now - self._last_error_time > 1.0:
                logger.error("Velocity command failed: %s", e)
                self._last_error_time = now

    async def takeoff(self) -> None:
        self._landing = False
        await arm_and_takeoff(self.drone, altitude=self.config.takeoff_altitude)

    async def land(self) -> None:
        if self._landing:
            logger.debug("Land already in progress")
            return
        self._landing = True
        await self._stop_offboard()
        await land(self.drone)

    async def calibrate(self) -> None:
        self._start_calibration("gyro")

    async def flat_trim(self) -> None:
        self._start_calibration("level_horizon")

    async def emergency(self) -> None:
        self._landing = True
        self._offboard_started = False
        await emergency_stop(self.drone)

    def _start_calibration(self, kind: str) -> None:
        if self._calibration_task is not None and not self._calibration_task.done():
            logger.warning("Calibration already running, ignoring %s request", kind)
            return
        self._calibration_task = asyncio.create_task(run_calibration(self.drone, kind))

    async def _stop_offboard(self) -> None:
        if not self._offboard_started:
            return
        self._offboard_started = False
        try:
            await self.drone.offboard.stop()
            logger.info("Offboard mode stopped")
        except Exception as e:
            logger.warning("Failed to stop offboard: %s", e)

    async def _read_in_air(self) -> None:
        """Background task caching the in-air flag."""
        try:
            async for in_air in self.drone.telemetry.in_air():
                if in_air != self._in_air:
                    logger.info("Vehicle %s", "airborne" if in_air else "on ground")
                    if not in_air:
                        self._offboard_started = False
                        self._landing = False
                self._in_air = in_air

                # Yield so commands are not starved by telemetry
                await asyncio.sleep(0)

        except asyncio.CancelledError:
            pass
        except Exception as e:
            logger.error("In-air telemetry error: %s", e)

    async def _read_battery(self) -> None:
        """Background task caching battery remaining."""
        try:
            async for battery in self.drone.telemetry.battery():
                self._battery_percent = battery.remaining_percent * 100.0
                await asyncio.sleep(0)

        except asyncio.CancelledError:
            pass
        except Exception as e:
            logger.error("Battery telemetry error: %s", e)
