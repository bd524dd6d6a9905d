"""
MatchLens - CS2 Match Statistics and Heatmaps

Turns a recorded CS2 match into per-player statistics (kills, deaths,
assists, entry kills, plants, defusals, effective flashes) and kill/death
heatmaps of a tracked player rendered over the map overview.

Usage:
    from matchlens import decode_demo, StatAggregator, get_calibration

    demo = decode_demo("match.dem")
    aggregator = StatAggregator("match-1", calibration=get_calibration(demo.map_name))
    aggregator.apply_all(demo.events)
    result = aggregator.finalize()

    for player in result.players:
        print(f"{player.nickname}: {player.kill_count} kills")
"""

__version__ = "0.1.0"
__author__ = "MatchLens Contributors"


def __getattr__(name):
    """Lazy import for heavy dependencies."""
    if name == "StatAggregator":
        from matchlens.aggregator import StatAggregator
        return StatAggregator
    elif name == "SpatialPointCollector":
        from matchlens.spatial import SpatialPointCollector
        return SpatialPointCollector
    elif name == "MatchAggregateResult":
        from matchlens.models import MatchAggregateResult
        return MatchAggregateResult
    elif name == "get_calibration":
        from matchlens.map_data import get_calibration
        return get_calibration
    elif name == "map_to_pixel":
        from matchlens.map_data import map_to_pixel
        return map_to_pixel
    elif name == "decode_demo":
        from matchlens.parser import decode_demo
        return decode_demo
    elif name == "render_heatmap":
        from matchlens.visualization.heatmaps import render
        return render
    elif name == "MatchRunner":
        from matchlens.pipeline import MatchRunner
        return MatchRunner
    raise AttributeError(f"module 'matchlens' has no attribute '{name}'")


__all__ = [
    "__version__",
    "StatAggregator",
    "SpatialPointCollector",
    "MatchAggregateResult",
    "get_calibration",
    "map_to_pixel",
    "decode_demo",
    "render_heatmap",
    "MatchRunner",
]
