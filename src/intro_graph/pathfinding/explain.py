"""Explanations for ranked paths.

Everything here is recomputed from the path itself; nothing is read from the
store. ``now`` is injected so explanations are reproducible.
"""

from __future__ import annotations

from collections import Counter
from datetime import datetime

from intro_graph.pathfinding.ranking import length_penalty
from intro_graph.scoring.factors import calculate_recency_factor
from intro_graph.types import Path, PathRankingFactors, RecommendedIntroducer

INTERACTION_SOURCE = "interaction"
CHANNEL_PRIORITY = ("email", "linkedin", "message", "call", "meeting")
DEFAULT_CHANNEL = "email"


def calculate_path_ranking_factors(path: Path, *, now: datetime | None = None) -> PathRankingFactors:
    """Recompute the per-path ranking factors.

    - introducer strength: the first edge
    - downstream strength: mean of the remaining edges (1.0 when there are none)
    - recency: mean recency factor of every edge's last_seen_at
    - evidence quality: 1.0 per edge backed by interactions, 0.5 otherwise
    """
    edges = path.edges
    if not edges:
        return PathRankingFactors(
            introducer_relationship_strength=0.0,
            downstream_relationship_strength=0.0,
            path_length_penalty=1.0,
            recency_score=0.0,
            evidence_quality=0.0,
        )

    downstream = edges[1:]
    downstream_avg = (
        sum(edge.strength for edge in downstream) / len(downstream) if downstream else 1.0
    )
    recency = sum(calculate_recency_factor(edge.last_seen_at, now=now) for edge in edges)
    evidence = sum(1.0 if INTERACTION_SOURCE in edge.sources else 0.5 for edge in edges)

    return PathRankingFactors(
        introducer_relationship_strength=edges[0].strength,
        downstream_relationship_strength=downstream_avg,
        path_length_penalty=length_penalty(len(edges)),
        recency_score=recency / len(edges),
        evidence_quality=evidence / len(edges),
    )


def recommend_introducer(path: Path) -> RecommendedIntroducer:
    """Pick the intermediary whose outgoing path edge is weakest.

    That relationship is the bottleneck of the path, so it is the one worth
    warming up first. A direct path names the target itself.
    """
    if path.hop_count == 1:
        target = path.nodes[-1]
        return RecommendedIntroducer(
            person_id=target.id,
            name=target.display_name,
            rationale=(
                f"Direct connection ({path.edges[0].strength * 100:.0f}% strength), "
                "no introduction needed"
            ),
        )

    # nodes[i] -> nodes[i + 1] via edges[i]; intermediaries are nodes[1:-1]
    weakest = min(range(1, len(path.nodes) - 1), key=lambda i: path.edges[i].strength)
    introducer = path.nodes[weakest]
    onward = path.nodes[weakest + 1]
    strength = path.edges[weakest].strength
    return RecommendedIntroducer(
        person_id=introducer.id,
        name=introducer.display_name,
        rationale=(
            f"Weakest link on the path: {strength * 100:.0f}% strength "
            f"to {onward.display_name}"
        ),
    )


def _channel_rank(channel: str) -> int:
    try:
        return CHANNEL_PRIORITY.index(channel)
    except ValueError:
        return len(CHANNEL_PRIORITY)


def suggest_channel(path: Path) -> str:
    """Most frequent channel across the path's edges."""
    counts = Counter(
        channel.strip().lower() for edge in path.edges for channel in edge.channels if channel.strip()
    )
    if not counts:
        return DEFAULT_CHANNEL
    return min(counts, key=lambda channel: (-counts[channel], _channel_rank(channel), channel))


def generate_reasoning(path: Path, factors: PathRankingFactors) -> str:
    reasons: list[str] = []

    if factors.introducer_relationship_strength >= 0.8:
        reasons.append("Very strong relationship with introducer")
    elif factors.introducer_relationship_strength >= 0.6:
        reasons.append("Good relationship with introducer")

    if factors.recency_score >= 0.8:
        reasons.append("Recent interactions on path")

    if path.hop_count == 1:
        reasons.append("Direct connection")
    elif path.hop_count == 2:
        reasons.append("Short 2-hop path")

    if factors.evidence_quality >= 0.8:
        reasons.append("Strong evidence from interactions")

    if not reasons:
        reasons.append(f"{path.hop_count}-hop path with moderate relationship strength")

    return ". ".join(reasons) + "."
