"""Domain types shared by the scorer, path finder, resolver and graph service.

These are the canonical, source-agnostic records the core consumes. They are
plain dataclasses: the storage layer maps its rows onto them, and the core
never persists them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import TypeAlias

from intro_graph.enums import (
    InteractionChannel,
    InteractionDirection,
    MatchMethod,
    MatchRecommendation,
    RelationshipType,
)

MetadataValue: TypeAlias = (
    "str | int | float | bool | None | list[MetadataValue] | dict[str, MetadataValue]"
)
Metadata: TypeAlias = "dict[str, MetadataValue]"

# Metadata key ingestion adapters use for a denormalized organization name
ORGANIZATION_NAME_KEY = "organization_name"


@dataclass
class Person:
    """A person node in the relationship graph."""

    id: str
    names: list[str] = field(default_factory=list)  # pyright: ignore[reportUnknownVariableType]
    emails: list[str] = field(default_factory=list)  # pyright: ignore[reportUnknownVariableType]
    phones: list[str] = field(default_factory=list)  # pyright: ignore[reportUnknownVariableType]
    social_handles: dict[str, str] = field(default_factory=dict)  # pyright: ignore[reportUnknownVariableType]
    """Platform name -> handle (e.g. {"linkedin": "jane-doe"})."""

    title: str | None = None
    organization_id: str | None = None

    previous_ids: list[str] = field(default_factory=list)  # pyright: ignore[reportUnknownVariableType]
    """Ids of records merged into this one. Append-only."""

    metadata: Metadata = field(default_factory=dict)  # pyright: ignore[reportUnknownVariableType]
    created_at: datetime | None = None
    updated_at: datetime | None = None
    deleted_at: datetime | None = None

    @property
    def display_name(self) -> str:
        return self.names[0] if self.names else self.id

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None


@dataclass
class Organization:
    """An organization people can belong to."""

    id: str
    name: str
    domain: str | None = None
    metadata: Metadata = field(default_factory=dict)  # pyright: ignore[reportUnknownVariableType]
    deleted_at: datetime | None = None


@dataclass(frozen=True)
class StrengthFactors:
    """The four [0, 1] factors an edge strength is derived from."""

    recency: float
    frequency: float
    mutuality: float
    channels: float


@dataclass
class Edge:
    """A directed relationship between two people."""

    id: str
    from_id: str
    to_id: str
    strength: float
    first_seen_at: datetime
    last_seen_at: datetime
    relationship_type: RelationshipType = RelationshipType.KNOWS
    strength_factors: StrengthFactors | None = None
    sources: list[str] = field(default_factory=list)  # pyright: ignore[reportUnknownVariableType]
    channels: list[str] = field(default_factory=list)  # pyright: ignore[reportUnknownVariableType]
    interaction_count: int = 1

    def reversed(self) -> Edge:
        """Return the same relationship seen from the other endpoint."""
        return Edge(
            id=self.id,
            from_id=self.to_id,
            to_id=self.from_id,
            strength=self.strength,
            first_seen_at=self.first_seen_at,
            last_seen_at=self.last_seen_at,
            relationship_type=self.relationship_type,
            strength_factors=self.strength_factors,
            sources=list(self.sources),
            channels=list(self.channels),
            interaction_count=self.interaction_count,
        )


@dataclass(frozen=True)
class Interaction:
    """A canonical interaction between the graph owner and a contact."""

    timestamp: datetime
    channel: InteractionChannel | str
    direction: InteractionDirection | None = None
    source: str | None = None


@dataclass
class Path:
    """An introduction path: nodes[i] -> nodes[i + 1] via edges[i]."""

    nodes: list[Person]
    edges: list[Edge]
    score: float
    explanation: str = ""

    @property
    def hop_count(self) -> int:
        return len(self.edges)

    @property
    def node_ids(self) -> list[str]:
        return [node.id for node in self.nodes]


@dataclass
class SearchMetadata:
    """Observability counters for a single path search."""

    nodes_explored: int
    edges_evaluated: int
    duration_ms: float


@dataclass
class PathfindingResult:
    """Result of GraphService.find_paths."""

    paths: list[Path]
    target_person: Person
    search_metadata: SearchMetadata
    explanation: str | None = None
    """Set when no ranking applies (already connected, nothing found)."""


@dataclass(frozen=True)
class MatchEvidence:
    """One compared field backing a duplicate match."""

    field: str
    target_value: str
    candidate_value: str
    similarity: float


@dataclass
class EntityResolutionMatch:
    """A candidate duplicate of a target person."""

    target_person_id: str
    candidate_person_id: str
    match_score: float
    match_method: MatchMethod
    evidence: list[MatchEvidence]
    recommendation: MatchRecommendation


@dataclass
class PathRankingFactors:
    """Per-path factors recomputed for explanations."""

    introducer_relationship_strength: float
    downstream_relationship_strength: float
    path_length_penalty: float
    recency_score: float
    evidence_quality: float


@dataclass
class RecommendedIntroducer:
    person_id: str
    name: str
    rationale: str


@dataclass
class PathExplanation:
    """Natural-language explanation of why a path is worth using."""

    path: Path
    factors: PathRankingFactors
    reasoning: str
    recommended_introducer: RecommendedIntroducer
    suggested_channel: str


@dataclass
class SourceCounts:
    """Raw per-source counts reported by the graph store."""

    name: str
    contact_count: int
    interaction_count: int
    last_sync: datetime | None = None


@dataclass
class GraphCounts:
    """Raw graph-wide numbers reported by the graph store.

    The graph service aggregates these into GraphStats.
    """

    total_people: int
    total_organizations: int
    total_edges: int
    edge_strengths: list[float] = field(default_factory=list)  # pyright: ignore[reportUnknownVariableType]
    interaction_timestamps: list[datetime] = field(default_factory=list)  # pyright: ignore[reportUnknownVariableType]
    sources: list[SourceCounts] = field(default_factory=list)  # pyright: ignore[reportUnknownVariableType]


@dataclass
class GraphStats:
    """Aggregated graph statistics."""

    total_people: int
    total_organizations: int
    total_edges: int
    average_connections: float
    strong_connections: int
    recent_interactions: int
    data_sources: list[SourceCounts]
