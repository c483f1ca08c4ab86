#!/usr/bin/env python3
"""
mavlink_connection.py - MAVLink Connection Settings

Builds MAVSDK connection strings for TCP, UDP or UART links from environment
variables with command-line overrides.

Connection Types:
    - tcp: TCP connection (DEFAULT - SITL and companion computers)
    - udp: UDP listen address (lower latency, needs network config)
    - uart: Serial connection (flight controller telemetry port)

Usage:
    from color_follower.common.mavlink_connection import ConnectionConfig

    config = ConnectionConfig.from_env()
    conn_str = config.get_connection_string()

Environment Variables:
    FOLLOWER_CONNECTION_TYPE  - Connection type: "tcp", "udp", or "uart" (default: tcp)
    FOLLOWER_TCP_HOST         - TCP host IP (default: localhost)
    FOLLOWER_TCP_PORT         - TCP port (default: 5760)
    FOLLOWER_UDP_HOST         - UDP listen address (default: 0.0.0.0)
    FOLLOWER_UDP_PORT         - UDP port (default: 14540)
    FOLLOWER_UART_DEVICE      - Serial device path (default: /dev/ttyAMA0)
    FOLLOWER_UART_BAUD        - Serial baud rate (default: 57600)
"""

import logging
import os
from dataclasses import dataclass
from enum import Enum

logger = logging.getLogger(__name__)


class ConnectionType(Enum):
    """MAVLink connection types."""
    UART = "uart"
    UDP = "udp"
    TCP = "tcp"


# Default configuration values
DEFAULTS = {
    "connection_type": "tcp",
    "uart_device": "/dev/ttyAMA0",
    "uart_baud": 57600,
    "udp_host": "0.0.0.0",
    "udp_port": 14540,
    "tcp_host": "localhost",
    "tcp_port": 5760,
}

ENV_PREFIX = "FOLLOWER_"


def _env(name: str, default):
    return os.environ.get(ENV_PREFIX + name, default)


@dataclass
class ConnectionConfig:
    """
    MAVLink connection configuration.

    Attributes:
        connection_type: Type of connection (uart, udp, or tcp).
        uart_device: Serial device path for UART mode.
        uart_baud: Baud rate for UART mode.
        udp_host: Listen address for UDP mode.
        udp_port: UDP port for UDP mode.
        tcp_host: Host IP/hostname for TCP mode.
        tcp_port: TCP port for TCP mode.
    """
    connection_type: ConnectionType
    uart_device: str = DEFAULTS["uart_device"]
    uart_baud: int = DEFAULTS["uart_baud"]
    udp_host: str = DEFAULTS["udp_host"]
    udp_port: int = DEFAULTS["udp_port"]
    tcp_host: str = DEFAULTS["tcp_host"]
    tcp_port: int = DEFAULTS["tcp_port"]

    @classmethod
    def from_env(cls) -> "ConnectionConfig":
        """
        Create configuration from environment variables.

        Returns:
            ConnectionConfig: Configuration populated from environment.
        """
        conn_type_str = _env("CONNECTION_TYPE", DEFAULTS["connection_type"]).lower()

        try:
            conn_type = ConnectionType(conn_type_str)
        except ValueError:
            logger.warning("Unknown connection type '%s', using tcp", conn_type_str)
            conn_type = ConnectionType.TCP

        return cls(
            connection_type=conn_type,
            uart_device=_env("UART_DEVICE", DEFAULTS["uart_device"]),
            uart_baud=int(_env("UART_BAUD", DEFAULTS["uart_baud"])),
            udp_host=_env("UDP_HOST", DEFAULTS["udp_host"]),
            udp_port=int(_env("UDP_PORT", DEFAULTS["udp_port"])),
            tcp_host=_env("TCP_HOST", DEFAULTS["tcp_host"]),
            tcp_port=int(_env("TCP_PORT", DEFAULTS["tcp_port"])),
        )

    @classmethod
    def from_args(
        cls,
        connection_type: str = None,
        uart_device: str = None,
        uart_baud: int = None,
        udp_host: str = None,
        udp_port: int = None,
        tcp_host: str = None,
        tcp_port: int = None,
    ) -> "ConnectionConfig":
        """
        Create configuration from arguments with environment fallback.

        Returns:
            ConnectionConfig: Configuration with argument overrides.
        """
        config = cls.from_env()

        if connection_type is not None:
            try:
                config.connection_type = ConnectionType(connection_type.lower())
            except ValueError:
                logger.warning("Unknown connection type '%s'", connection_type)

        if uart_device is not None:
            config.uart_device = uart_device
        if uart_baud is not None:
            config.uart_baud = uart_baud
        if udp_host is not None:
            config.udp_host = udp_host
        if udp_port is not None:
            config.udp_port = udp_port
        if tcp_host is not None:
            config.tcp_host = tcp_host
        if tcp_port is not None:
            config.tcp_port = tcp_port

        return config

    def get_connection_string(self) -> str:
        """
        Generate MAVSDK connection string based on configuration.

        Returns:
            str: MAVSDK-compatible connection string.
        """
        if self.connection_type == ConnectionType.UART:
            return f"serial://{self.uart_device}:{self.uart_baud}"
        elif self.connection_type == ConnectionType.TCP:
            return f"tcp://{self.tcp_host}:{self.tcp_port}"
        else:
            # udpin:// listens for incoming packets (udp:// is deprecated)
            return f"udpin://{self.udp_host}:{self.udp_port}"

    def __str__(self) -> str:
        if self.connection_type == ConnectionType.UART:
            return f"UART: {self.uart_device} @ {self.uart_baud} baud"
        elif self.connection_type == ConnectionType.TCP:
            return f"TCP: {self.tcp_host}:{self.tcp_port}"
        else:
            return f"UDP: {self.udp_host}:{self.udp_port}"


def add_connection_arguments(parser) -> None:
    """
    Add standard connection arguments to an argparse parser.

    Args:
        parser: argparse.ArgumentParser to add arguments to.
    """
    conn_group = parser.add_argument_group("Connection Options")

    conn_group.add_argument(
        "--connection-type", "-c",
        choices=["uart", "udp", "tcp"],
        default=None,
        help="Connection type: uart (serial), udp, or tcp (default). "
             f"Default: {ENV_PREFIX}CONNECTION_TYPE env or 'tcp'"
    )
    conn_group.add_argument(
        "--uart-device",
        default=None,
        help=f"Serial device for UART mode. "
             f"Default: {ENV_PREFIX}UART_DEVICE env or '{DEFAULTS['uart_device']}'"
    )
    conn_group.add_argument(
        "--uart-baud",
        type=int,
        default=None,
        help=f"Baud rate for UART mode. "
             f"Default: {ENV_PREFIX}UART_BAUD env or {DEFAULTS['uart_baud']}"
    )
    conn_group.add_argument(
        "--udp-host",
        default=None,
        help=f"Listen address for UDP mode. "
             f"Default: {ENV_PREFIX}UDP_HOST env or '{DEFAULTS['udp_host']}'"
    )
    conn_group.add_argument(
        "--udp-port",
        type=int,
        default=None,
        help=f"UDP port for UDP mode. "
             f"Default: {ENV_PREFIX}UDP_PORT env or {DEFAULTS['udp_port']}"
    )
    conn_group.add_argument(
        "--tcp-host",
        default=None,
        help=f"Host IP for TCP mode. "
             f"Default: {ENV_PREFIX}TCP_HOST env or '{DEFAULTS['tcp_host']}'"
    )
    conn_group.add_argument(
        "--tcp-port",
        type=int,
        default=None,
        help=f"TCP port for TCP mode. "
             f"Default: {ENV_PREFIX}TCP_PORT env or {DEFAULTS['tcp_port']}"
    )
