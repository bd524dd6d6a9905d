"""CS2 map calibration for coordinate transformation.

To convert world coordinates to overview pixel coordinates:
    pixel_x = (world_x - pos_x) / scale
    pixel_y = (pos_y - world_y) / scale  # Y is inverted

Overview images are 1024x1024 pixels. pos_x/pos_y is the world position of
the top-left corner of the overview, scale is world units per pixel.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from matchlens.errors import UnknownMapError

logger = logging.getLogger(__name__)

MAP_METADATA = {
    "de_ancient": {"pos_x": -2953, "pos_y": 2164, "scale": 5.0},
    "de_mirage": {"pos_x": -3230, "pos_y": 1713, "scale": 5.0},
    "de_inferno": {"pos_x": -2087, "pos_y": 3870, "scale": 4.9},
    "de_dust2": {"pos_x": -2476, "pos_y": 3239, "scale": 4.4},
    "de_anubis": {"pos_x": -2796, "pos_y": 3328, "scale": 5.22},
    "de_nuke": {"pos_x": -3453, "pos_y": 2887, "scale": 7.0},
    "de_overpass": {"pos_x": -4831, "pos_y": 1781, "scale": 5.2},
    "de_vertigo": {"pos_x": -3168, "pos_y": 1762, "scale": 4.0},
    "de_train": {"pos_x": -2477, "pos_y": 2392, "scale": 4.7},
    "cs_office": {"pos_x": -1838, "pos_y": 1858, "scale": 4.1},
    "cs_italy": {"pos_x": -2647, "pos_y": 2592, "scale": 4.6},
}

_MAP_PREFIXES = ("de_", "cs_", "ar_")


@dataclass(frozen=True)
class MapCalibration:
    """Scale + origin offset converting world units to overview pixels."""

    map_name: str
    pos_x: float
    pos_y: float
    scale: float


def normalize_map_name(map_name: str) -> str:
    """Lower-case a map name and add the 'de_' prefix when it has none."""
    name = map_name.lower().strip()
    if not name.startswith(_MAP_PREFIXES):
        name = f"de_{name}"
    return name


def get_calibration(map_name: str) -> MapCalibration:
    """Get the calibration for a map.

    Args:
        map_name: Map name with or without 'de_' prefix

    Returns:
        MapCalibration for the map

    Raises:
        UnknownMapError: If the map has no calibration entry
    """
    name = normalize_map_name(map_name)
    meta = MAP_METADATA.get(name)
    if meta is None:
        raise UnknownMapError(map_name)

    return MapCalibration(
        map_name=name,
        pos_x=float(meta["pos_x"]),
        pos_y=float(meta["pos_y"]),
        scale=float(meta["scale"]),
    )


def available_maps() -> list[str]:
    """List all maps with a calibration entry."""
    return sorted(MAP_METADATA)


def map_to_pixel(
    world_x: float, world_y: float, calibration: MapCalibration
) -> tuple[float, float]:
    """Convert world coordinates to overview pixel coordinates.

    The result is in image space (Y grows downwards). Density rendering
    expects bottom-to-top data, so the Y flip for rendering happens at the
    render call site, not here.
    """
    pixel_x = (world_x - calibration.pos_x) / calibration.scale
    pixel_y = (calibration.pos_y - world_y) / calibration.scale  # Y inverted

    return (pixel_x, pixel_y)
