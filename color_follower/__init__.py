"""
Color Follower

Follows a colored object with a PX4 drone using a single camera: HSV
thresholding, largest-blob moments, and a proportional dead-zone steering
law sent to the vehicle as MAVSDK offboard velocity setpoints.

Packages:
    color_follower/color_tracker/   - Vision pipeline, steering, modes, app
    color_follower/manual_control/  - Keyboard commands and nudges
    color_follower/common/          - Connection, flight helpers, logging

Connection Types:
    - TCP (default): --tcp-host HOST --tcp-port PORT
    - UDP: -c udp --udp-host HOST --udp-port PORT
    - UART: -c uart --uart-device DEVICE --uart-baud BAUD

Usage:
    color-follower --no-drone
    python -m color_follower.color_tracker.follower_app -c tcp --tcp-host px4-sitl
"""

__version__ = "0.1.0"
