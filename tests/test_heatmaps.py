"""Tests for heatmap rendering."""

import numpy as np
import pytest
from PIL import Image

from matchlens.errors import ConfigurationError, EmptyPointSeriesError, HeatmapError
from matchlens.visualization import heatmaps
from matchlens.visualization.heatmaps import (
    bounding_rect,
    build_density_field,
    colorize,
    density_points,
    encode_jpeg,
    find_map_image,
    heatmap_filename,
    load_map_image,
    make_dot,
    render,
)

POINTS = [(0.0, 0.0), (10.0, 10.0), (20.0, 0.0)]


@pytest.fixture
def overview() -> Image.Image:
    return Image.new("RGB", (100, 80), (50, 50, 50))


class TestBounds:
    """Tests for bounding_rect()."""

    def test_includes_every_point(self):
        """Bounds cover all points, including the one later dropped."""
        bounds = bounding_rect(POINTS)
        assert (bounds.x0, bounds.y0, bounds.x1, bounds.y1) == (0, 0, 20, 10)
        assert (bounds.width, bounds.height) == (20, 10)

    def test_truncates_to_int(self):
        bounds = bounding_rect([(1.9, 2.7), (5.2, 8.9)])
        assert (bounds.x0, bounds.y0, bounds.x1, bounds.y1) == (1, 2, 5, 8)

    def test_empty_series(self):
        with pytest.raises(EmptyPointSeriesError):
            bounding_rect([])


class TestDensityField:
    """Tests for the density surface."""

    def test_first_point_dropped(self):
        """The density uses every point after the first, with Y negated."""
        assert density_points(POINTS) == [(10.0, -10.0), (20.0, -0.0)]

    def test_render_feeds_remaining_points(self, overview, monkeypatch):
        captured = {}

        def fake_field(data, width, height, dot_size):
            captured["data"] = list(data)
            captured["size"] = (width, height)
            return np.zeros((height, width), dtype=np.float32)

        monkeypatch.setattr(heatmaps, "build_density_field", fake_field)
        render(POINTS, overview)

        assert captured["data"] == [(10.0, -10.0), (20.0, 0.0)]
        assert captured["size"] == (20, 10)

    def test_dot_densest_at_center(self):
        dot = make_dot(30)
        assert dot.shape == (30, 30)
        assert dot[15, 15] == pytest.approx(205 / 255, abs=1e-3)
        assert dot[0, 0] == 0.0

    def test_field_values_in_range(self):
        field = build_density_field([(10.0, -10.0), (20.0, 0.0)], 100, 100, 30)
        assert field.shape == (100, 100)
        assert field.max() > 0.0
        assert field.max() <= 1.0
        assert field.min() >= 0.0

    def test_overlapping_dots_accumulate(self):
        single = build_density_field([(0.0, 0.0)], 60, 60, 30)
        double = build_density_field([(0.0, 0.0), (0.0, 0.0)], 60, 60, 30)
        assert double.max() > single.max()

    def test_empty_data(self):
        assert not build_density_field([], 10, 10).any()


class TestColorize:
    """Tests for colorize()."""

    def test_zero_density_is_transparent(self):
        rgba = colorize(np.zeros((4, 4), dtype=np.float32))
        assert rgba.shape == (4, 4, 4)
        assert not rgba.any()

    def test_alpha_scales_with_opacity(self):
        rgba = colorize(np.ones((2, 2), dtype=np.float32), opacity=128)
        assert (rgba[..., 3] == 128).all()

    def test_unknown_colormap(self):
        with pytest.raises(ConfigurationError):
            colorize(np.zeros((2, 2)), colormap="not-a-colormap")


class TestRender:
    """Tests for render() and encoding."""

    def test_output_matches_overview_size(self, overview):
        image = render(POINTS, overview)
        assert image.size == (100, 80)
        assert image.mode == "RGB"

    def test_outside_bounds_untouched(self, overview):
        image = render(POINTS, overview)
        assert image.getpixel((90, 70)) == (50, 50, 50)

    def test_custom_canvas_size(self, overview):
        assert render(POINTS, overview, canvas_size=(120, 90)).size == (120, 90)

    def test_single_point_renders_plain_overview(self, overview):
        """One point leaves nothing to stamp once the first point is dropped."""
        image = render([(40.0, 40.0)], overview)

        assert image.size == (100, 80)
        assert image.getpixel((40, 40)) == (50, 50, 50)

    def test_points_on_one_row(self, overview):
        """A series with zero pixel height still renders an overlay."""
        image = render([(10.0, 50.0), (40.0, 50.2), (80.0, 50.7)], overview)

        assert image.size == (100, 80)
        assert np.asarray(image).astype(int).sum() != np.asarray(overview).astype(int).sum()

    def test_points_on_one_column(self, overview):
        image = render([(30.0, 5.0), (30.4, 40.0), (30.9, 70.0)], overview)
        assert image.size == (100, 80)

    def test_non_finite_point(self, overview):
        with pytest.raises(HeatmapError):
            render([(1.0, 1.0), (float("nan"), 5.0)], overview)

    def test_empty_series(self, overview):
        with pytest.raises(EmptyPointSeriesError):
            render([], overview)

    def test_encode_jpeg(self, overview):
        data = encode_jpeg(render(POINTS, overview), quality=90)
        assert data[:2] == b"\xff\xd8"


class TestMapImages:
    """Tests for overview lookup and naming."""

    def test_find_prefers_jpg(self, tmp_path):
        Image.new("RGB", (4, 4)).save(tmp_path / "de_dust2.png")
        Image.new("RGB", (4, 4)).save(tmp_path / "de_dust2.jpg")
        assert find_map_image(tmp_path, "de_dust2").name == "de_dust2.jpg"

    def test_load_map_image(self, tmp_path):
        Image.new("RGB", (8, 6)).save(tmp_path / "de_nuke.png")
        assert load_map_image(tmp_path, "de_nuke").size == (8, 6)

    def test_missing_overview(self, tmp_path):
        with pytest.raises(ConfigurationError):
            find_map_image(tmp_path, "de_dust2")

    def test_corrupt_overview(self, tmp_path):
        (tmp_path / "de_dust2.jpg").write_bytes(b"not an image")
        with pytest.raises(ConfigurationError):
            load_map_image(tmp_path, "de_dust2")

    def test_filename(self):
        assert heatmap_filename("m1", "P1", "kills") == "m1-P1-kills.jpg"

    def test_filename_escapes_separators(self):
        """Nicknames cannot introduce path segments."""
        name = heatmap_filename("m1", "/../../../escaped", "kills")
        assert "/" not in name
        assert name == "m1-_.._.._.._escaped-kills.jpg"

        assert "\\" not in heatmap_filename("m1", "a\\b", "deaths")
