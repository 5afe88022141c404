"""Warm-introduction path finding.

Submodules:
- options: search limits and soft preferences
- snapshot: per-request graph snapshot loaded from the store
- search: synchronous breadth-first enumeration of candidate paths
- ranking: path scores and ordering
- explain: ranking factors, introducer and channel suggestions
- finder: PathFinder, which ties the above together
"""

from intro_graph.pathfinding.explain import (
    calculate_path_ranking_factors,
    generate_reasoning,
    recommend_introducer,
    suggest_channel,
)
from intro_graph.pathfinding.finder import PathFinder
from intro_graph.pathfinding.options import PathfindingOptions, PathPreferences, resolve_options
from intro_graph.pathfinding.ranking import describe_path, rank_paths, score_path

__all__ = [
    "PathFinder",
    "PathPreferences",
    "PathfindingOptions",
    "calculate_path_ranking_factors",
    "describe_path",
    "generate_reasoning",
    "rank_paths",
    "recommend_introducer",
    "resolve_options",
    "score_path",
    "suggest_channel",
]
