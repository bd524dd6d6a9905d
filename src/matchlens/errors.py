"""
Error taxonomy for MatchLens.

Every failure in a match run surfaces as a MatchLensError subclass. There is
no partial-result mode: a run either completes or raises.
"""

from __future__ import annotations

from typing import Any


class MatchLensError(Exception):
    """Base class for all MatchLens errors."""


class ConfigurationError(MatchLensError):
    """Invalid or missing configuration."""


class UnknownMapError(ConfigurationError):
    """No calibration exists for the requested map."""

    def __init__(self, map_name: str):
        super().__init__(f"No calibration for map: {map_name!r}")
        self.map_name = map_name


class CalibrationError(MatchLensError):
    """Geometry was referenced before a map calibration was resolved."""


class MalformedEventError(MatchLensError):
    """An event violates a precondition of the aggregation core."""

    def __init__(self, event: Any, field: str, reason: str):
        super().__init__(f"{type(event).__name__}.{field}: {reason}")
        self.event = event
        self.field = field
        self.reason = reason


class HeatmapError(MatchLensError):
    """Density surface could not be built from the given points."""


class EmptyPointSeriesError(HeatmapError):
    """A point series with no points was handed to the density builder."""


class AcquisitionError(MatchLensError):
    """Demo file could not be downloaded or decompressed."""


class DecodeError(MatchLensError):
    """Demo file could not be decoded into an event stream."""


class DeliveryError(MatchLensError):
    """Statistics or images could not be delivered."""
