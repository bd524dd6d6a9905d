"""Tests for map calibration and coordinate mapping."""

import pytest

from matchlens.errors import ConfigurationError, UnknownMapError
from matchlens.map_data import (
    MapCalibration,
    available_maps,
    get_calibration,
    map_to_pixel,
    normalize_map_name,
)


class TestCalibrationLookup:
    """Tests for get_calibration()."""

    def test_known_map(self):
        """Known maps resolve to their scale and origin."""
        cal = get_calibration("de_dust2")
        assert cal.map_name == "de_dust2"
        assert cal.pos_x == -2476
        assert cal.pos_y == 3239
        assert cal.scale == pytest.approx(4.4)

    def test_prefix_optional(self):
        """'mirage' and 'DE_MIRAGE' resolve like 'de_mirage'."""
        assert get_calibration("mirage") == get_calibration("de_mirage")
        assert get_calibration("DE_MIRAGE ") == get_calibration("de_mirage")

    def test_hostage_maps_keep_prefix(self):
        """cs_ maps are not rewritten to de_cs_..."""
        assert normalize_map_name("cs_office") == "cs_office"
        assert get_calibration("cs_office").scale == pytest.approx(4.1)

    def test_unknown_map_is_fatal(self):
        """Unknown maps raise immediately instead of falling back."""
        with pytest.raises(UnknownMapError) as exc_info:
            get_calibration("de_cache")
        assert exc_info.value.map_name == "de_cache"
        assert isinstance(exc_info.value, ConfigurationError)

    def test_available_maps_sorted(self):
        maps = available_maps()
        assert maps == sorted(maps)
        assert "de_inferno" in maps


class TestMapToPixel:
    """Tests for map_to_pixel()."""

    def test_origin_maps_to_top_left(self, dust2):
        """The calibration origin is pixel (0, 0)."""
        assert map_to_pixel(-2476, 3239, dust2) == pytest.approx((0.0, 0.0))

    def test_scale_and_y_inversion(self, dust2):
        """World +x goes right, world +y goes up (smaller pixel y)."""
        x, y = map_to_pixel(-2476 + 44, 3239 - 44, dust2)
        assert x == pytest.approx(10.0)
        assert y == pytest.approx(10.0)

    def test_deterministic(self, dust2):
        assert map_to_pixel(123.5, -456.25, dust2) == map_to_pixel(123.5, -456.25, dust2)

    def test_no_clamping(self):
        """Positions outside the overview are not clamped."""
        cal = MapCalibration(map_name="de_test", pos_x=0.0, pos_y=0.0, scale=2.0)
        assert map_to_pixel(-10.0, 10.0, cal) == pytest.approx((-5.0, -5.0))
