#!/usr/bin/env python3
"""
profile_store.py - Per-Camera Tunable Persistence

Loads and saves one XML document per camera profile using OpenCV's
FileStorage, keeping the on-disk key names of the original calibration
files:

    config/front_camera_config.xml
    config/bottom_camera_config.xml

Missing files resolve to the built-in defaults, missing keys to zero, and
unreadable files to defaults. None of these are treated as errors.

Usage:
    from color_follower.color_tracker.profile_store import ProfileStore

    store = ProfileStore("config")
    tunables = store.load(CameraProfile.FRONT)
    store.save(CameraProfile.FRONT, tunables)
"""

import logging
import os
from typing import Dict, Optional

import cv2

from color_follower.color_tracker.config import (
    DEFAULT_TUNABLES,
    AreaThresholds,
    CameraProfile,
    ColorBand,
    Deadzone,
    ProfileTunables,
)

logger = logging.getLogger(__name__)

PROFILE_FILES: Dict[CameraProfile, str] = {
    CameraProfile.FRONT: "front_camera_config.xml",
    CameraProfile.BOTTOM: "bottom_camera_config.xml",
}

# Key order of the persisted document
KEYS = (
    "HueLOW",
    "HueHIGH",
    "SaturationLOW",
    "SaturationHIGH",
    "ValueLOW",
    "ValueHIGH",
    "AreaMIN",
    "AreaMAX",
    "DeadzoneX",
    "DeadzoneY",
)


def tunables_to_record(tunables: ProfileTunables) -> Dict[str, int]:
    """Flatten tunables into the persisted key-value record."""
    band = tunables.color_band
    return {
        "HueLOW": band.hue_low,
        "HueHIGH": band.hue_high,
        "SaturationLOW": band.sat_low,
        "SaturationHIGH": band.sat_high,
        "ValueLOW": band.val_low,
        "ValueHIGH": band.val_high,
        "AreaMIN": tunables.area.min_area,
        "AreaMAX": tunables.area.max_area,
        "DeadzoneX": tunables.deadzone.width,
        "DeadzoneY": tunables.deadzone.height,
    }


def record_to_tunables(record: Dict[str, int]) -> ProfileTunables:
    """Build clamped tunables from a record; absent keys read as zero."""
    return ProfileTunables(
        color_band=ColorBand(
            hue_low=record.get("HueLOW", 0),
            hue_high=record.get("HueHIGH", 0),
            sat_low=record.get("SaturationLOW", 0),
            sat_high=record.get("SaturationHIGH", 0),
            val_low=record.get("ValueLOW", 0),
            val_high=record.get("ValueHIGH", 0),
        ),
        area=AreaThresholds(
            min_area=record.get("AreaMIN", 0),
            max_area=record.get("AreaMAX", 0),
        ),
        deadzone=Deadzone(
            width=record.get("DeadzoneX", 0),
            height=record.get("DeadzoneY", 0),
        ),
    ).clamped()


class ProfileStore:
    """
    Reads and writes camera profile tunables.

    Attributes:
        config_dir: Directory containing the profile documents.
        defaults: Tunables used when a profile has never been saved.
    """

    def __init__(
        self,
        config_dir: str = "config",
        defaults: Optional[ProfileTunables] = None,
    ):
        self.config_dir = config_dir
        self.defaults = defaults or DEFAULT_TUNABLES

    def path_for(self, profile: CameraProfile) -> str:
        """Get the document path for a profile."""
        return os.path.join(self.config_dir, PROFILE_FILES[profile])

    def load(self, profile: CameraProfile) -> ProfileTunables:
        """
        Load the tunables of a profile.

        Args:
            profile: Camera profile to load.

        Returns:
            ProfileTunables: Stored tunables, or defaults if the document is
            missing or unreadable.
        """
        path = self.path_for(profile)
        if not os.path.exists(path):
            logger.info("No saved %s profile at %s, using defaults", profile.value, path)
            return self.defaults

        # A malformed document surfaces as SystemError from the bindings
        try:
            fs = cv2.FileStorage(path, cv2.FILE_STORAGE_READ)
        except (cv2.error, SystemError) as e:
            logger.warning("Could not read %s (%s), using defaults", path, e)
            return self.defaults

        if not fs.isOpened():
            logger.warning("Could not open %s, using defaults", path)
            return self.defaults

        record = {}
        try:
            for key in KEYS:
                node = fs.getNode(key)
                if node.empty():
                    continue
                record[key] = int(node.real())
        except (cv2.error, SystemError) as e:
            logger.warning("Could not parse %s (%s), using defaults", path, e)
            return self.defaults
        finally:
            fs.release()

        tunables = record_to_tunables(record)
        logger.info("Loaded %s profile from %s", profile.value, path)
        logger.debug("  %s", tunables.to_dict())
        return tunables

    def save(self, profile: CameraProfile, tunables: ProfileTunables) -> bool:
        """
        Persist the tunables of a profile.

        Args:
            profile: Camera profile to save.
            tunables: Values to write.

        Returns:
            bool: True if the document was written.
        """
        path = self.path_for(profile)

        try:
            os.makedirs(self.config_dir, exist_ok=True)
            fs = cv2.FileStorage(path, cv2.FILE_STORAGE_WRITE)
        except (OSError, cv2.error) as e:
            logger.error("Could not save %s profile to %s: %s", profile.value, path, e)
            return False

        if not fs.isOpened():
            logger.error("Could not open %s for writing", path)
            return False

        try:
            for key, value in tunables_to_record(tunables).items():
                fs.write(key, int(value))
        finally:
            fs.release()

        logger.info("Saved %s profile to %s", profile.value, path)
        return True
