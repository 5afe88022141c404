"""Advisory merge plans for duplicate people.

Nothing here writes to storage. A MergePlan describes the surviving person
record and the edges it should end up with; the caller applies it (deleting
the absorbed person and its edges, upserting the rest) in one transaction.

Edge merging follows the duplicate-cleanup rules: edges that end up with the
same (from, to) pair are collapsed by summing interaction counts, unioning
sources and channels, and widening the first/last-seen window. The stronger
edge's strength and factors are kept so strength stays derivable from its
factors. Edges between the two merged people become self-loops and are
dropped.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field, replace

from intro_graph.enums import MatchMethod
from intro_graph.types import Edge, EntityResolutionMatch, Person

METHOD_DESCRIPTIONS: dict[MatchMethod, str] = {
    MatchMethod.EMAIL: "Exact email address match",
    MatchMethod.PHONE: "Exact phone number match",
    MatchMethod.SOCIAL_HANDLE: "Social media profile match",
    MatchMethod.NAME_COMPANY: "Name and organization similarity",
}


def generate_merge_explanation(match: EntityResolutionMatch) -> str:
    """Audit-trail sentence for a match.

    Example: "Exact email address match. Confidence: 100%. Evidence: email: 100%"
    """
    evidence = ", ".join(f"{e.field}: {e.similarity * 100:.0f}%" for e in match.evidence)
    return (
        f"{METHOD_DESCRIPTIONS[match.match_method]}. "
        f"Confidence: {match.match_score * 100:.0f}%. "
        f"Evidence: {evidence}"
    )


@dataclass
class MergePlan:
    """What the graph should look like after merging ``absorbed_id`` into the survivor."""

    survivor: Person
    absorbed_id: str
    edges: list[Edge]
    """Final edges touching the survivor (re-pointed and deduplicated)."""

    dropped_edge_ids: list[str] = field(default_factory=list)  # pyright: ignore[reportUnknownVariableType]
    """Edge ids that no longer exist after the merge."""

    explanation: str | None = None


def _union(*lists: Iterable[str]) -> list[str]:
    """Order-preserving union."""
    result: list[str] = []
    seen: set[str] = set()
    for values in lists:
        for value in values:
            if value not in seen:
                seen.add(value)
                result.append(value)
    return result


def merge_people(survivor: Person, absorbed: Person, *, explanation: str | None = None) -> Person:
    """Combine two person records; the survivor's values come first."""
    social_handles = dict(absorbed.social_handles)
    social_handles.update(survivor.social_handles)

    metadata = dict(absorbed.metadata)
    metadata.update(survivor.metadata)
    if explanation:
        metadata["merge_explanation"] = explanation

    return replace(
        survivor,
        names=_union(survivor.names, absorbed.names),
        emails=_union(survivor.emails, absorbed.emails),
        phones=_union(survivor.phones, absorbed.phones),
        social_handles=social_handles,
        title=survivor.title or absorbed.title,
        organization_id=survivor.organization_id or absorbed.organization_id,
        previous_ids=_union(survivor.previous_ids, [absorbed.id], absorbed.previous_ids),
        metadata=metadata,
    )


def merge_edges(edges: list[Edge]) -> Edge:
    """Collapse edges sharing a (from, to) pair into the first one."""
    keep = edges[0]
    strongest = max(edges, key=lambda e: e.strength)
    return replace(
        keep,
        strength=strongest.strength,
        strength_factors=strongest.strength_factors,
        interaction_count=sum(e.interaction_count for e in edges),
        sources=_union(*(e.sources for e in edges)),
        channels=_union(*(e.channels for e in edges)),
        first_seen_at=min(e.first_seen_at for e in edges),
        last_seen_at=max(e.last_seen_at for e in edges),
    )


def plan_merge(
    survivor: Person,
    absorbed: Person,
    survivor_edges: Iterable[Edge],
    absorbed_edges: Iterable[Edge],
    *,
    match: EntityResolutionMatch | None = None,
) -> MergePlan:
    """Plan the merge of ``absorbed`` into ``survivor``.

    Args:
        survivor: The record that keeps its id.
        absorbed: The record that disappears; its id joins previous_ids.
        survivor_edges: Incoming and outgoing edges of the survivor.
        absorbed_edges: Incoming and outgoing edges of the absorbed person.
        match: The resolution match that motivated the merge, if any.
    """
    explanation = generate_merge_explanation(match) if match is not None else None
    merged = merge_people(survivor, absorbed, explanation=explanation)

    def repoint(edge: Edge) -> Edge:
        from_id = survivor.id if edge.from_id == absorbed.id else edge.from_id
        to_id = survivor.id if edge.to_id == absorbed.id else edge.to_id
        return replace(edge, from_id=from_id, to_id=to_id)

    groups: dict[tuple[str, str], list[Edge]] = {}
    all_ids: list[str] = []
    seen_ids: set[str] = set()
    for edge in [*survivor_edges, *absorbed_edges]:
        if edge.id in seen_ids:
            continue
        seen_ids.add(edge.id)
        all_ids.append(edge.id)

        moved = repoint(edge)
        if moved.from_id == moved.to_id:
            continue
        groups.setdefault((moved.from_id, moved.to_id), []).append(moved)

    edges = [merge_edges(group) for group in groups.values()]
    kept_ids = {edge.id for edge in edges}

    return MergePlan(
        survivor=merged,
        absorbed_id=absorbed.id,
        edges=edges,
        dropped_edge_ids=[edge_id for edge_id in all_ids if edge_id not in kept_ids],
        explanation=explanation,
    )
