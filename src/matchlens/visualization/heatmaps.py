"""
Heatmap Rendering Module for CS2 Demo Visualization.

Builds a density surface from a point series (overview pixel space) and
composites it over the map overview image.

Render policy:
1. Bounding rectangle of all points (at least one point); a flat extent
   is widened to one dot
2. The first point of the series is dropped before density computation
3. Every remaining point stamps a radial dot; overlapping dots accumulate
4. Density is colored with a warm colormap and given a fixed opacity
5. Overview is drawn on a fresh canvas, density on top at the bounds origin

Density data is ordered bottom-to-top, so callers negate the pixel Y of
every point before building the field (see density_points()).
"""

from __future__ import annotations

import io
import logging
import math
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

import numpy as np
from matplotlib import colormaps
from PIL import Image, UnidentifiedImageError

from matchlens.constants import DOT_SIZE, HEATMAP_COLORMAP, JPEG_QUALITY, OPACITY
from matchlens.errors import ConfigurationError, EmptyPointSeriesError, HeatmapError

logger = logging.getLogger(__name__)

Point = Sequence[float]

MAP_IMAGE_SUFFIXES = (".jpg", ".jpeg", ".png")


@dataclass(frozen=True)
class PixelBounds:
    """Axis-aligned integer rectangle, max edge exclusive."""

    x0: int
    y0: int
    x1: int
    y1: int

    @property
    def width(self) -> int:
        return self.x1 - self.x0

    @property
    def height(self) -> int:
        return self.y1 - self.y0


def bounding_rect(points: Sequence[Point]) -> PixelBounds:
    """Bounding rectangle of all points, truncated to whole pixels."""
    if not points:
        raise EmptyPointSeriesError("At least one point is required to render a heatmap")

    xs = [p[0] for p in points]
    ys = [p[1] for p in points]
    if not all(math.isfinite(v) for v in xs + ys):
        raise HeatmapError(f"Non-finite coordinate in point series of {len(points)} points")

    return PixelBounds(
        x0=int(min(xs)),
        y0=int(min(ys)),
        x1=int(max(xs)),
        y1=int(max(ys)),
    )


def density_points(points: Sequence[Point]) -> list[tuple[float, float]]:
    """Points that feed the density field.

    The first point is skipped (kept for output compatibility with earlier
    renders; it looks like it was a placeholder and is worth revisiting).
    Y is negated because the density field is laid out bottom-to-top.
    """
    return [(float(p[0]), -float(p[1])) for p in points[1:]]


def make_dot(dot_size: int) -> np.ndarray:
    """Alpha mask (0..1) of a single radial sample, densest at the center."""
    half = dot_size / 2.0
    max_dist = 0.5 * np.sqrt(half**2 + half**2)

    coords = np.arange(dot_size, dtype=np.float32)
    dx = coords[np.newaxis, :] - half
    dy = coords[:, np.newaxis] - half
    dist = np.sqrt(dx * dx + dy * dy)

    shade = 200.0 * dist / max_dist + 50.0
    dot = np.where(dist < max_dist, (255.0 - shade) / 255.0, 0.0)
    return dot.astype(np.float32)


def _stamp(field: np.ndarray, dot: np.ndarray, x: int, y: int) -> None:
    """Draw ``dot`` over ``field`` at (x, y) with source-over alpha, clipped."""
    height, width = field.shape
    size = dot.shape[0]

    fx0, fy0 = max(x, 0), max(y, 0)
    fx1, fy1 = min(x + size, width), min(y + size, height)
    if fx0 >= fx1 or fy0 >= fy1:
        return

    src = dot[fy0 - y : fy1 - y, fx0 - x : fx1 - x]
    dst = field[fy0:fy1, fx0:fx1]
    field[fy0:fy1, fx0:fx1] = src + dst * (1.0 - src)


def build_density_field(
    data: Sequence[tuple[float, float]],
    width: int,
    height: int,
    dot_size: int = DOT_SIZE,
) -> np.ndarray:
    """Accumulated alpha field of shape (height, width), values in 0..1.

    ``data`` is bottom-to-top: the largest Y lands on the first image row.
    Points are normalized to their own extent and spread over the field,
    leaving room for one dot.
    """
    field = np.zeros((height, width), dtype=np.float32)
    if not data:
        return field

    dot = make_dot(dot_size)
    arr = np.asarray(data, dtype=np.float64)
    min_x, min_y = arr.min(axis=0)
    max_x, max_y = arr.max(axis=0)
    span_x = max_x - min_x
    span_y = max_y - min_y

    for px, py in arr:
        nx = (px - min_x) / span_x if span_x > 0 else 0.5
        ny = (py - min_y) / span_y if span_y > 0 else 0.5
        x = int(nx * (width - dot_size))
        y = int((1.0 - ny) * (height - dot_size))
        _stamp(field, dot, x, y)

    return field


def colorize(field: np.ndarray, colormap: str = HEATMAP_COLORMAP, opacity: int = OPACITY) -> np.ndarray:
    """Map a density field to an RGBA uint8 array."""
    try:
        cmap = colormaps[colormap]
    except KeyError as e:
        raise ConfigurationError(f"Unknown colormap: {colormap}") from e

    rgba = cmap(np.clip(field, 0.0, 1.0))
    out = (rgba * 255.0).astype(np.uint8)
    out[..., 3] = (field * opacity).astype(np.uint8)
    out[field <= 0.0] = 0
    return out


def render(
    points: Sequence[Point],
    base_image: Image.Image,
    canvas_size: tuple[int, int] | None = None,
    *,
    dot_size: int = DOT_SIZE,
    opacity: int = OPACITY,
    colormap: str = HEATMAP_COLORMAP,
) -> Image.Image:
    """Render a heatmap of ``points`` over ``base_image``.

    Args:
        points: Point series in overview pixel space (image orientation)
        base_image: Map overview
        canvas_size: Output size, defaults to the overview size

    Returns:
        RGB image ready for encoding

    Raises:
        EmptyPointSeriesError: If ``points`` is empty
        HeatmapError: If a coordinate is not finite
    """
    bounds = bounding_rect(points)
    # Points on one row or column still get a visible overlay
    width = bounds.width if bounds.width > 0 else dot_size
    height = bounds.height if bounds.height > 0 else dot_size

    field = build_density_field(density_points(points), width, height, dot_size)
    overlay = Image.fromarray(colorize(field, colormap, opacity))

    size = canvas_size or base_image.size
    canvas = Image.new("RGBA", size)
    canvas.paste(base_image.convert("RGBA"), (0, 0))

    layer = Image.new("RGBA", size, (0, 0, 0, 0))
    layer.paste(overlay, (bounds.x0, bounds.y0))
    canvas = Image.alpha_composite(canvas, layer)

    logger.debug(
        f"Rendered {len(points) - 1} points into {width}x{height} "
        f"at ({bounds.x0}, {bounds.y0})"
    )
    return canvas.convert("RGB")


def encode_jpeg(image: Image.Image, quality: int = JPEG_QUALITY) -> bytes:
    buf = io.BytesIO()
    image.convert("RGB").save(buf, format="JPEG", quality=quality)
    return buf.getvalue()


def find_map_image(maps_dir: str | Path, map_name: str) -> Path:
    """Locate the overview image for ``map_name`` in ``maps_dir``."""
    maps_dir = Path(maps_dir)
    for suffix in MAP_IMAGE_SUFFIXES:
        candidate = maps_dir / f"{map_name}{suffix}"
        if candidate.exists():
            return candidate
    raise ConfigurationError(f"No overview image for {map_name} in {maps_dir}")


def load_map_image(maps_dir: str | Path, map_name: str) -> Image.Image:
    path = find_map_image(maps_dir, map_name)
    try:
        with Image.open(path) as img:
            img.load()
            return img.copy()
    except (UnidentifiedImageError, OSError) as e:
        raise ConfigurationError(f"Unreadable overview image {path}: {e}") from e


def heatmap_filename(match_id: str, nickname: str, kind: str) -> str:
    """``<matchId>-<nickname>-<kind>.jpg``; path separators in the nickname become '_'."""
    safe_nickname = nickname.replace("/", "_").replace("\\", "_")
    return f"{match_id}-{safe_nickname}-{kind}.jpg"
