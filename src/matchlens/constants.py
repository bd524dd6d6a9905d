"""
MatchLens - Constants

Fixed tuning values for statistics aggregation and heatmap rendering.
"""

from enum import Enum

# Flash Effectiveness: Only count flashes that blind for > this duration
EFFECTIVE_FLASH_DURATION = 2.0  # seconds

# Heatmap rendering
DOT_SIZE = 30  # pixels, diameter of a single density sample
OPACITY = 128  # 0-255, applied to the density overlay
JPEG_QUALITY = 90
HEATMAP_COLORMAP = "hot"

# Radar/overview images are 1024x1024 pixels
RADAR_IMAGE_SIZE = 1024

# Heatmap kinds, in the order they are rendered
HEATMAP_KINDS = ("deaths", "kills")


class Team(int, Enum):
    """CS team numbers."""

    UNASSIGNED = 0
    SPECTATOR = 1
    TERRORIST = 2
    CT = 3


# Teams that never take part in a round (observers, casters, GOTV)
OBSERVER_TEAMS = {int(Team.UNASSIGNED), int(Team.SPECTATOR)}
