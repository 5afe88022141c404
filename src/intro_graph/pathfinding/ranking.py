"""Path scoring and ranking.

score = mean(edge strengths) * LENGTH_PENALTY ** (hops - 1)

A direct path keeps its edge strength; every extra hop costs 20%.
Sort order: score (desc), then preference boost (desc), then the final edge's
last_seen_at (most recent first), then fewer hops.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime, timezone

from intro_graph.pathfinding.options import PathPreferences
from intro_graph.pathfinding.search import CandidatePath
from intro_graph.types import Edge, Path, Person

LENGTH_PENALTY = 0.8

# Person.metadata keys consulted for preference tie-breaks
CATEGORY_KEYS = ("category", "categories", "tags")
GEOGRAPHY_KEYS = ("location", "country", "geography", "region")


def length_penalty(hop_count: int) -> float:
    return LENGTH_PENALTY ** max(0, hop_count - 1)


def score_path(edges: Sequence[Edge]) -> float:
    """Average edge strength times the length penalty, in [0, 1]."""
    if not edges:
        return 0.0
    average = sum(edge.strength for edge in edges) / len(edges)
    return max(0.0, min(1.0, average * length_penalty(len(edges))))


def _metadata_terms(person: Person, keys: Sequence[str]) -> set[str]:
    terms: set[str] = set()
    for key in keys:
        value = person.metadata.get(key)
        if isinstance(value, str):
            terms.add(value.strip().lower())
        elif isinstance(value, list):
            terms.update(str(item).strip().lower() for item in value if isinstance(item, str))
    return terms


def preference_boost(
    nodes: Sequence[Person],
    edges: Sequence[Edge],
    preferences: PathPreferences,
) -> int:
    """Net count of preferred features minus avoided ones along a path."""
    avoid = {c.strip().lower() for c in preferences.avoid_categories}
    geography = {g.strip().lower() for g in preferences.prefer_geography}
    channels = {c.strip().lower() for c in preferences.prefer_channels}

    boost = 0
    for edge in edges:
        if channels and channels & {c.lower() for c in edge.channels}:
            boost += 1

    for person in nodes[1:-1]:
        if geography and geography & _metadata_terms(person, GEOGRAPHY_KEYS):
            boost += 1
        if avoid and avoid & _metadata_terms(person, CATEGORY_KEYS):
            boost -= 1
    return boost


def describe_path(nodes: Sequence[Person], score: float) -> str:
    """One-line summary, e.g. "2-hop path via Alice (strength: 60%)"."""
    hops = len(nodes) - 1
    if hops <= 0:
        return "Already connected"
    if hops == 1:
        return f"Direct connection (strength: {score * 100:.0f}%)"

    intermediaries = " → ".join(node.display_name for node in nodes[1:-1])
    return f"{hops}-hop path via {intermediaries} (strength: {score * 100:.0f}%)"


def _timestamp(value: datetime) -> float:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.timestamp()


def rank_paths(
    candidates: Sequence[CandidatePath],
    people: dict[str, Person],
    *,
    max_results: int,
    preferences: PathPreferences | None = None,
) -> list[Path]:
    """Score, sort and truncate candidate paths."""
    preferences = preferences or PathPreferences()

    ranked: list[tuple[tuple[float, int, float, int], Path]] = []
    for candidate in candidates:
        nodes = [people[node_id] for node_id in candidate.node_ids]
        edges = list(candidate.edges)
        score = score_path(edges)
        key = (
            -score,
            -preference_boost(nodes, edges, preferences),
            -_timestamp(edges[-1].last_seen_at),
            len(edges),
        )
        path = Path(nodes=nodes, edges=edges, score=score, explanation=describe_path(nodes, score))
        ranked.append((key, path))

    # sort() is stable, so discovery order settles any remaining ties
    ranked.sort(key=lambda item: item[0])
    return [path for _, path in ranked[:max_results]]
