#!/usr/bin/env python3
"""
test_color_tracker.py - Tests for the Color Tracking Pipeline

Tests for:
- Configuration dataclasses and clamping
- ColorSegmenter band-pass and closing
- BlobExtractor area, centroid and selection
- Dead-zone geometry
- SteeringLaw front/bottom camera variants

Run with:
    pytest tests/test_color_tracker.py -v
"""

import numpy as np
import pytest

from conftest import RED_BAND, make_frame, make_mask

from color_follower.color_tracker.blob_extractor import (
    BlobExtractor,
    DetectionResult,
    select_largest_contour,
)
from color_follower.color_tracker.color_segmenter import ColorSegmenter, to_hsv
from color_follower.color_tracker.config import (
    AREA_SCALE,
    AreaThresholds,
    CameraProfile,
    ColorBand,
    Deadzone,
    ProfileTunables,
    get_config_summary,
)
from color_follower.color_tracker.deadzone import bounds_for, deadzone_bounds
from color_follower.color_tracker.steering_law import (
    HOVER,
    SteeringLaw,
    SteeringResult,
    VelocityCommand,
)

# 640x360 frame with the default 320x180 dead-zone
BOUNDS = deadzone_bounds(640, 360, 320, 180)


def detection_at(x, y, area=1_000_000.0):
    return DetectionResult(detected=True, centroid_x=x, centroid_y=y, area=area)


# =============================================================================
# Configuration Tests
# =============================================================================


class TestConfig:
    """Tests for configuration dataclasses."""

    def test_default_tunables(self):
        """Test built-in defaults select everything."""
        tunables = ProfileTunables()
        assert tunables.color_band.lower == (0, 0, 0)
        assert tunables.color_band.upper == (179, 255, 255)
        assert tunables.area == AreaThresholds(0, 500)
        assert tunables.deadzone == Deadzone(320, 180)

    def test_band_clamping(self):
        """Test out-of-range band values are clamped."""
        band = ColorBand(hue_low=-5, hue_high=300, sat_high=999, val_low=-1).clamped()
        assert band.hue_low == 0
        assert band.hue_high == 179
        assert band.sat_high == 255
        assert band.val_low == 0

    def test_inverted_band_kept(self):
        """Test clamping does not reorder an inverted band."""
        band = ColorBand(hue_low=50, hue_high=10).clamped()
        assert band.hue_low == 50
        assert band.hue_high == 10

    def test_with_changes_clamps_deadzone(self):
        """Test edits produce a new clamped snapshot."""
        tunables = ProfileTunables()
        updated = tunables.with_changes(deadzone=Deadzone(1000, 1000))

        assert updated.deadzone == Deadzone(640, 360)
        assert tunables.deadzone == Deadzone(320, 180)

    def test_area_raw_units(self):
        """Test UI area units scale to moment units."""
        area = AreaThresholds(min_area=3, max_area=7)
        assert area.min_raw == 3 * AREA_SCALE
        assert area.max_raw == 7 * AREA_SCALE

    def test_camera_profile_other(self):
        """Test camera switch target."""
        assert CameraProfile.FRONT.other is CameraProfile.BOTTOM
        assert CameraProfile.BOTTOM.other is CameraProfile.FRONT

    def test_config_summary(self):
        """Test summary mentions each section."""
        summary = get_config_summary()
        assert "Frame loop" in summary
        assert "Actuator" in summary
        assert "HTTP API" in summary


# =============================================================================
# ColorSegmenter Tests
# =============================================================================


class TestColorSegmenter:
    """Tests for ColorSegmenter."""

    def test_selects_band(self):
        """Test pixels inside the band become foreground."""
        frame = make_frame([(100, 100, 40, 40)])
        mask = ColorSegmenter().segment(to_hsv(frame), RED_BAND)

        assert mask.shape == (360, 640)
        assert mask.dtype == np.uint8
        assert mask[120, 120] == 255
        assert mask[10, 10] == 0
        assert np.count_nonzero(mask) == 40 * 40

    def test_mask_is_binary(self):
        """Test mask only holds 0 and 255."""
        frame = make_frame([(10, 10, 30, 30), (300, 200, 50, 20)])
        mask = ColorSegmenter().segment(to_hsv(frame), RED_BAND)
        assert set(np.unique(mask)) <= {0, 255}

    def test_inverted_band_empty(self):
        """Test an inverted band yields an all-background mask."""
        frame = make_frame([(100, 100, 40, 40)])
        band = ColorBand(hue_low=10, hue_high=0)
        mask = ColorSegmenter().segment(to_hsv(frame), band)
        assert np.count_nonzero(mask) == 0

    def test_closing_fills_pinhole(self):
        """Test closing fills a one-pixel hole inside a blob."""
        frame = make_frame([(100, 100, 40, 40)])
        frame[120, 120] = (0, 0, 0)
        segmenter = ColorSegmenter()
        hsv = to_hsv(frame)

        assert segmenter.threshold(hsv, RED_BAND)[120, 120] == 0
        assert segmenter.segment(hsv, RED_BAND)[120, 120] == 255

    def test_other_color_rejected(self):
        """Test a blue blob is not selected by the red band."""
        frame = make_frame([(100, 100, 40, 40)], color=(255, 0, 0))
        mask = ColorSegmenter().segment(to_hsv(frame), RED_BAND)
        assert np.count_nonzero(mask) == 0


# =============================================================================
# BlobExtractor Tests
# =============================================================================


class TestBlobExtractor:
    """Tests for BlobExtractor."""

    def test_empty_mask(self):
        """Test empty mask is not detected."""
        mask = make_mask([])
        detection = BlobExtractor().extract(mask, AreaThresholds(0, 500))

        assert detection.detected is False
        assert detection.area == 0.0
        assert detection.centroid == (0, 0)

    def test_single_square(self):
        """Test area and centroid of a 100x100 square."""
        mask = make_mask([(100, 100, 100, 100)])
        detection = BlobExtractor().extract(mask, AreaThresholds(0, 500))

        assert detection.detected is True
        assert detection.area == 255 * 100 * 100
        # Mean of 100..199 is 149.5, truncated
        assert detection.centroid == (149, 149)
        assert detection.contour is not None

    def test_min_area_threshold(self):
        """Test detection requires area strictly above min_area * AREA_SCALE."""
        mask = make_mask([(100, 100, 100, 100)])  # area 2,550,000
        extractor = BlobExtractor()

        assert extractor.extract(mask, AreaThresholds(25, 500)).detected is True

        rejected = extractor.extract(mask, AreaThresholds(26, 500))
        assert rejected.detected is False
        assert rejected.area == 2_550_000
        assert rejected.centroid == (0, 0)

    def test_largest_blob_selected(self):
        """Test only the largest blob contributes."""
        mask = make_mask([(10, 10, 20, 20), (300, 150, 60, 60), (500, 300, 30, 30)])
        detection = BlobExtractor().extract(mask, AreaThresholds(0, 500))

        assert detection.area == 255 * 60 * 60
        assert detection.centroid == (329, 179)

    def test_equal_area_tie_picks_topmost(self):
        """Test equal areas resolve to the blob first in raster order."""
        mask = make_mask([(100, 250, 50, 50), (400, 50, 50, 50)])
        detection = BlobExtractor().extract(mask, AreaThresholds(0, 500))

        assert detection.centroid == (424, 74)

    def test_equal_area_same_row_picks_leftmost(self):
        """Test equal areas on the same row resolve to the left blob."""
        mask = make_mask([(400, 100, 50, 50), (100, 100, 50, 50)])
        detection = BlobExtractor().extract(mask, AreaThresholds(0, 500))

        assert detection.centroid == (124, 124)

    def test_single_pixel_never_selected(self):
        """Test zero-area contours are not selected."""
        mask = make_mask([(200, 200, 1, 1)])
        detection = BlobExtractor().extract(mask, AreaThresholds(0, 500))

        assert detection.detected is False

    def test_select_largest_contour_empty(self):
        """Test selection from no contours."""
        assert select_largest_contour([]) is None

    def test_pipeline_on_frame(self):
        """Test segmenter and extractor together."""
        frame = make_frame([(300, 0, 40, 40)])
        mask = ColorSegmenter().segment(to_hsv(frame), RED_BAND)
        detection = BlobExtractor().extract(mask, AreaThresholds(0, 500))

        assert detection.detected is True
        assert detection.centroid == (319, 19)

    def test_detection_string(self):
        """Test string representation."""
        assert "none" in str(DetectionResult())
        assert "(10, 20)" in str(detection_at(10, 20))


# =============================================================================
# Dead-zone Tests
# =============================================================================


class TestDeadzone:
    """Tests for dead-zone geometry."""

    def test_default_bounds(self):
        """Test 320x180 in 640x360."""
        assert BOUNDS.as_tuple() == (160, 90, 480, 270)
        assert BOUNDS.center_x == 320
        assert BOUNDS.center_y == 180

    def test_odd_sizes_use_integer_division(self):
        """Test odd dead-zone sizes floor the full-frame sums."""
        bounds = deadzone_bounds(640, 360, 101, 51)
        assert bounds.as_tuple() == (269, 154, 370, 205)

    def test_odd_height_lower_edge(self):
        """Test a 181 pixel dead-zone starts at row 89."""
        bounds = bounds_for(Deadzone(320, 181), 640, 360)
        assert (bounds.y1, bounds.y2) == (89, 270)
        assert bounds.contains_y(89) is True

    def test_full_frame(self):
        """Test a dead-zone the size of the frame."""
        assert deadzone_bounds(640, 360, 640, 360).as_tuple() == (0, 0, 640, 360)

    def test_zero_size(self):
        """Test a zero dead-zone collapses to the center."""
        assert deadzone_bounds(640, 360, 0, 0).as_tuple() == (320, 180, 320, 180)

    def test_edges_inclusive(self):
        """Test membership includes the edges."""
        assert BOUNDS.contains_x(160)
        assert BOUNDS.contains_x(480)
        assert not BOUNDS.contains_x(159)
        assert not BOUNDS.contains_x(481)
        assert BOUNDS.contains_y(90)
        assert BOUNDS.contains_y(270)
        assert not BOUNDS.contains_y(89)

    def test_bounds_for_clamps(self):
        """Test bounds_for clamps an oversized dead-zone."""
        bounds = bounds_for(Deadzone(2000, 2000), 640, 360)
        assert bounds.as_tuple() == (0, 0, 640, 360)


# =============================================================================
# SteeringLaw Tests
# =============================================================================


class TestSteeringLawFront:
    """Tests for the front camera steering variant."""

    def test_centered_target_only_approaches(self):
        """Test a centered small blob only drives vx."""
        result = SteeringLaw().steer(
            detection_at(320, 180), BOUNDS, AreaThresholds(0, 500), CameraProfile.FRONT
        )
        assert result == SteeringResult(VelocityCommand(vx=0.3))

    def test_target_above_climbs(self):
        """Test a blob at the top edge commands climb."""
        result = SteeringLaw().steer(
            detection_at(320, 0), BOUNDS, AreaThresholds(0, 500), CameraProfile.FRONT
        )
        assert result.command.vz == pytest.approx(0.72)
        assert result.command.yaw_rate == 0.0

    def test_target_below_descends(self):
        """Test a blob at the bottom commands descent."""
        result = SteeringLaw().steer(
            detection_at(320, 360), BOUNDS, AreaThresholds(0, 500), CameraProfile.FRONT
        )
        assert result.command.vz == pytest.approx(-0.72)

    def test_target_right_yaws_clockwise(self):
        """Test a blob to the right commands negative yaw rate."""
        result = SteeringLaw().steer(
            detection_at(600, 180), BOUNDS, AreaThresholds(0, 500), CameraProfile.FRONT
        )
        assert result.command.yaw_rate == pytest.approx(-1.4)
        assert result.command.vz == 0.0

    def test_deadzone_edge_not_driven(self):
        """Test a centroid on the dead-zone edge leaves the axis alone."""
        previous = VelocityCommand(yaw_rate=0.5, vz=0.25)
        result = SteeringLaw().steer(
            detection_at(160, 270),
            BOUNDS,
            AreaThresholds(0, 500),
            CameraProfile.FRONT,
            previous=previous,
        )
        assert result.command.yaw_rate == 0.5
        assert result.command.vz == 0.25

    def test_odd_deadzone_edge_not_driven(self):
        """Test the top edge of an odd-height dead-zone is inside it."""
        bounds = bounds_for(Deadzone(320, 181), 640, 360)
        result = SteeringLaw().steer(
            detection_at(320, 89), bounds, AreaThresholds(0, 500), CameraProfile.FRONT
        )
        assert result.command.vz == 0.0

        result = SteeringLaw().steer(
            detection_at(320, 88), bounds, AreaThresholds(0, 500), CameraProfile.FRONT
        )
        assert result.command.vz == pytest.approx((88 - 180) / -250.0)

    def test_large_target_retreats(self):
        """Test a blob beyond max_area + margin backs off."""
        area = AreaThresholds(0, 10)
        result = SteeringLaw().steer(
            detection_at(320, 180, area=21 * AREA_SCALE), BOUNDS, area, CameraProfile.FRONT
        )
        assert result.command.vx == -0.3

    def test_area_hysteresis_band_keeps_vx(self):
        """Test vx is untouched between max_area and max_area + margin."""
        area = AreaThresholds(0, 10)
        previous = VelocityCommand(vx=0.3)
        result = SteeringLaw().steer(
            detection_at(320, 180, area=15 * AREA_SCALE),
            BOUNDS,
            area,
            CameraProfile.FRONT,
            previous=previous,
        )
        assert result.command.vx == 0.3

    def test_front_never_lands(self):
        """Test auto-land has no effect on the front camera."""
        area = AreaThresholds(0, 0)
        result = SteeringLaw().steer(
            detection_at(320, 180), BOUNDS, area, CameraProfile.FRONT, auto_land=True
        )
        assert result.land is False
        assert result.command.vz == 0.0


class TestSteeringLawBottom:
    """Tests for the bottom camera steering variant."""

    def test_offset_drives_vx_and_vy(self):
        """Test image offsets map to forward and lateral velocity."""
        result = SteeringLaw().steer(
            detection_at(0, 300), BOUNDS, AreaThresholds(0, 500), CameraProfile.BOTTOM
        )
        assert result.command.vx == pytest.approx(-0.3)
        assert result.command.vy == pytest.approx(0.4)
        assert result.command.vz == 0.0
        assert result.command.yaw_rate == 0.0
        assert result.land is False

    def test_auto_land_descends(self):
        """Test auto-land descends without landing below max_area."""
        area = AreaThresholds(0, 500)
        result = SteeringLaw().steer(
            detection_at(320, 180), BOUNDS, area, CameraProfile.BOTTOM, auto_land=True
        )
        assert result.command.vz == pytest.approx(-0.1)
        assert result.land is False

    def test_auto_land_touchdown(self):
        """Test auto-land requests landing above max_area."""
        area = AreaThresholds(0, 5)
        result = SteeringLaw().steer(
            detection_at(320, 180, area=6 * AREA_SCALE),
            BOUNDS,
            area,
            CameraProfile.BOTTOM,
            auto_land=True,
        )
        assert result.command.vz == pytest.approx(-0.1)
        assert result.land is True

    def test_no_auto_land_no_descent(self):
        """Test without auto-land the vertical axis is left alone."""
        area = AreaThresholds(0, 0)
        result = SteeringLaw().steer(
            detection_at(320, 180), BOUNDS, area, CameraProfile.BOTTOM
        )
        assert result.land is False
        assert result.command.vz == 0.0


class TestSteeringLawGeneral:
    """Tests shared by both variants."""

    def test_not_detected_returns_previous(self):
        """Test a missing detection leaves the command unchanged."""
        previous = VelocityCommand(vx=0.1, vy=0.2, vz=0.3, yaw_rate=0.4)
        result = SteeringLaw().steer(
            DetectionResult(),
            BOUNDS,
            AreaThresholds(0, 500),
            CameraProfile.FRONT,
            previous=previous,
        )
        assert result.command == previous
        assert result.land is False

    def test_undefined_profile_returns_previous(self):
        """Test an unknown camera profile changes nothing."""
        previous = VelocityCommand(vx=0.1)
        result = SteeringLaw().steer(
            detection_at(0, 0), BOUNDS, AreaThresholds(0, 0), None,
            auto_land=True, previous=previous,
        )
        assert result == SteeringResult(previous)

    def test_idempotent(self):
        """Test identical inputs give identical outputs."""
        law = SteeringLaw()
        args = (detection_at(10, 350), BOUNDS, AreaThresholds(0, 500), CameraProfile.BOTTOM)
        assert law.steer(*args, auto_land=True) == law.steer(*args, auto_land=True)

    def test_previous_not_mutated(self):
        """Test steering returns a new command."""
        previous = VelocityCommand()
        result = SteeringLaw().steer(
            detection_at(0, 0), BOUNDS, AreaThresholds(0, 500), CameraProfile.FRONT,
            previous=previous,
        )
        assert previous == HOVER
        assert result.command != previous


class TestVelocityCommand:
    """Tests for VelocityCommand."""

    def test_zero_command(self):
        """Test hover detection."""
        assert HOVER.is_zero is True
        assert VelocityCommand(vx=0.5).is_zero is False

    def test_command_string(self):
        """Test string representation."""
        s = str(VelocityCommand(vx=0.3, vy=-0.2, vz=0.1, yaw_rate=-1.4))
        assert "+0.30" in s
        assert "-0.20" in s
        assert "-1.40" in s
