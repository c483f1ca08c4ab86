#!/usr/bin/env python3
"""
test_profile_store.py - Tests for Per-Camera Tunable Persistence

Run with:
    pytest tests/test_profile_store.py -v
"""

import os

import cv2

from color_follower.color_tracker.config import (
    DEFAULT_TUNABLES,
    AreaThresholds,
    CameraProfile,
    ColorBand,
    Deadzone,
    ProfileTunables,
)
from color_follower.color_tracker.profile_store import (
    KEYS,
    ProfileStore,
    record_to_tunables,
    tunables_to_record,
)

CUSTOM = ProfileTunables(
    color_band=ColorBand(5, 25, 80, 240, 60, 250),
    area=AreaThresholds(3, 120),
    deadzone=Deadzone(200, 100),
)


class TestRecordConversion:
    """Tests for tunables <-> record conversion."""

    def test_record_keys(self):
        """Test every persisted key is present."""
        record = tunables_to_record(CUSTOM)
        assert tuple(record) == KEYS
        assert record["HueLOW"] == 5
        assert record["AreaMAX"] == 120
        assert record["DeadzoneY"] == 100

    def test_round_trip(self):
        """Test conversion is lossless for in-range values."""
        assert record_to_tunables(tunables_to_record(CUSTOM)) == CUSTOM

    def test_missing_keys_read_zero(self):
        """Test absent keys become zero."""
        tunables = record_to_tunables({"HueHIGH": 30})
        assert tunables.color_band == ColorBand(0, 30, 0, 0, 0, 0)
        assert tunables.area == AreaThresholds(0, 0)
        assert tunables.deadzone == Deadzone(0, 0)

    def test_out_of_range_clamped(self):
        """Test stored values are clamped on load."""
        tunables = record_to_tunables({"HueHIGH": 400, "AreaMAX": 9000, "DeadzoneX": 5000})
        assert tunables.color_band.hue_high == 179
        assert tunables.area.max_area == 500
        assert tunables.deadzone.width == 640


class TestProfileStore:
    """Tests for ProfileStore."""

    def test_missing_file_defaults(self, store):
        """Test a never-saved profile loads the defaults."""
        assert store.load(CameraProfile.FRONT) == DEFAULT_TUNABLES

    def test_custom_defaults(self, tmp_path):
        """Test a store with custom defaults."""
        store = ProfileStore(str(tmp_path), defaults=CUSTOM)
        assert store.load(CameraProfile.BOTTOM) == CUSTOM

    def test_save_and_load(self, store):
        """Test values survive a save/load cycle."""
        assert store.save(CameraProfile.FRONT, CUSTOM) is True
        assert os.path.exists(store.path_for(CameraProfile.FRONT))
        assert store.load(CameraProfile.FRONT) == CUSTOM

    def test_profiles_independent(self, store):
        """Test saving one profile does not affect the other."""
        store.save(CameraProfile.FRONT, CUSTOM)
        assert store.load(CameraProfile.BOTTOM) == DEFAULT_TUNABLES
        assert not os.path.exists(store.path_for(CameraProfile.BOTTOM))

    def test_file_names(self, store):
        """Test on-disk file names per profile."""
        assert store.path_for(CameraProfile.FRONT).endswith("front_camera_config.xml")
        assert store.path_for(CameraProfile.BOTTOM).endswith("bottom_camera_config.xml")

    def test_partial_file_missing_keys_zero(self, store):
        """Test a document missing keys reads them as zero."""
        os.makedirs(store.config_dir, exist_ok=True)
        fs = cv2.FileStorage(store.path_for(CameraProfile.FRONT), cv2.FILE_STORAGE_WRITE)
        fs.write("HueLOW", 10)
        fs.write("HueHIGH", 20)
        fs.release()

        tunables = store.load(CameraProfile.FRONT)
        assert tunables.color_band.hue_low == 10
        assert tunables.color_band.hue_high == 20
        assert tunables.color_band.sat_high == 0
        assert tunables.area.max_area == 0
        assert tunables.deadzone == Deadzone(0, 0)

    def test_malformed_file_defaults(self, store):
        """Test an unreadable document falls back to defaults."""
        os.makedirs(store.config_dir, exist_ok=True)
        with open(store.path_for(CameraProfile.FRONT), "w") as f:
            f.write("<not-opencv-storage><<<")

        assert store.load(CameraProfile.FRONT) == DEFAULT_TUNABLES

    def test_save_failure_returns_false(self, tmp_path):
        """Test saving into a path that is a file fails softly."""
        blocker = tmp_path / "blocker"
        blocker.write_text("x")
        store = ProfileStore(str(blocker / "config"))

        assert store.save(CameraProfile.FRONT, CUSTOM) is False
