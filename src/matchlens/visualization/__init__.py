"""
MatchLens Visualization - heatmap rendering.

This module contains:
- heatmaps: density surface of kill/death points composited over a map overview
"""

__all__: list[str] = []
