"""GraphService: the orchestrating entry point of IntroGraph.

Ties path finding, strength scoring and entity resolution to a GraphStore.
The service only reads from the store. Store failures propagate as the same
exception object, annotated with the operation and ids via ``add_note``.

Usage:
    async with async_session_factory() as session:
        service = GraphService(SqlAlchemyGraphStore(session))
        result = await service.find_paths("me", "target")
        explanation = service.explain_path(result.paths[0])
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator, Mapping
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from typing import Any

from intro_graph.config import Settings
from intro_graph.config import settings as default_settings
from intro_graph.errors import InvalidInputError, NotFoundError, SearchCancelledError
from intro_graph.pathfinding.explain import (
    calculate_path_ranking_factors,
    generate_reasoning,
    recommend_introducer,
    suggest_channel,
)
from intro_graph.pathfinding.finder import PathFinder
from intro_graph.pathfinding.options import PathfindingOptions
from intro_graph.resolution.matcher import EntityResolver
from intro_graph.resolution.merge import MergePlan, plan_merge
from intro_graph.scoring.strength import DEFAULT_WEIGHTS, ScoringWeights, calculate_strength
from intro_graph.storage.ports import GraphStore
from intro_graph.types import (
    EntityResolutionMatch,
    GraphStats,
    Path,
    PathExplanation,
    PathfindingResult,
    Person,
)

logger = logging.getLogger(__name__)


def _utc(value: datetime) -> datetime:
    return value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)


@contextmanager
def _annotate_failures(operation: str, **ids: str) -> Iterator[None]:
    """Attach the operation and ids to collaborator failures, then re-raise them as is.

    Errors raised by the core itself (NotFoundError, InvalidInputError, ...)
    already describe themselves and pass through untouched.
    """
    try:
        yield
    except (NotFoundError, InvalidInputError, SearchCancelledError):
        raise
    except Exception as exc:
        exc.add_note(_describe(operation, ids))
        raise


def _describe(operation: str, ids: Mapping[str, str]) -> str:
    details = ", ".join(f"{key}={value}" for key, value in ids.items())
    return f"GraphService.{operation}({details})" if details else f"GraphService.{operation}()"


class GraphService:
    """Orchestrates path finding, scoring, explanations and duplicate detection."""

    def __init__(
        self,
        store: GraphStore,
        *,
        settings: Settings | None = None,
        resolver: EntityResolver | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        """Initialize the service.

        Args:
            store: Graph store the service reads from.
            settings: Overrides the module-level settings (thresholds, stats windows).
            resolver: Entity resolver; built from ``settings`` when omitted.
            clock: Returns "now"; injected for deterministic recency and stats.
        """
        self._store = store
        self._settings = settings or default_settings
        self._resolver = resolver or EntityResolver(
            review_threshold=self._settings.entity_resolution_review_threshold,
            auto_merge_threshold=self._settings.entity_resolution_auto_merge_threshold,
            name_min=self._settings.entity_resolution_name_min,
            org_min=self._settings.entity_resolution_org_min,
        )
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._path_finder = PathFinder(store)

    def _now(self) -> datetime:
        return _utc(self._clock())

    async def _require_person(self, person_id: str, operation: str) -> Person:
        person = await self._store.get_person(person_id)
        if person is None or person.is_deleted:
            raise NotFoundError("Person", person_id, operation=operation)
        return person

    async def find_paths(
        self,
        source_id: str,
        target_id: str,
        options: PathfindingOptions | Mapping[str, Any] | None = None,
        *,
        should_cancel: Callable[[], bool] | None = None,
    ) -> PathfindingResult:
        """Find ranked warm-introduction paths from ``source_id`` to ``target_id``."""
        with _annotate_failures("find_paths", source_id=source_id, target_id=target_id):
            result = await self._path_finder.find_paths(
                source_id, target_id, options, should_cancel=should_cancel
            )

        logger.info(
            "Found %d path(s) %s -> %s (%d nodes explored)",
            len(result.paths),
            source_id,
            target_id,
            result.search_metadata.nodes_explored,
        )
        return result

    async def calculate_strength(
        self,
        from_id: str,
        to_id: str,
        weights: ScoringWeights | None = None,
    ) -> float:
        """Recompute the strength of the edge ``from_id`` -> ``to_id``.

        Custom weights are validated first. Returns 0.0 when there is no such
        edge or the edge carries no factors.

        Raises:
            InvalidInputError: Negative weights or weights not summing to 1.0.
            NotFoundError: Either person is missing or deleted.
        """
        if weights is not None:
            weights.validate()

        with _annotate_failures("calculate_strength", from_id=from_id, to_id=to_id):
            await self._require_person(from_id, "calculate_strength")
            await self._require_person(to_id, "calculate_strength")
            edges = await self._store.get_outgoing_edges(from_id)

        edge = next((e for e in edges if e.to_id == to_id), None)
        if edge is None or edge.strength_factors is None:
            return 0.0
        return calculate_strength(edge.strength_factors, weights or DEFAULT_WEIGHTS)

    def explain_path(self, path: Path) -> PathExplanation:
        """Explain a path: ranking factors, reasoning, who to ask and how.

        Raises:
            InvalidInputError: The path has no edges or its nodes and edges disagree.
        """
        if not path.edges:
            msg = "Cannot explain a path without edges"
            raise InvalidInputError(msg)
        if len(path.nodes) != len(path.edges) + 1:
            msg = f"Path has {len(path.nodes)} nodes but {len(path.edges)} edges"
            raise InvalidInputError(msg)

        factors = calculate_path_ranking_factors(path, now=self._now())
        return PathExplanation(
            path=path,
            factors=factors,
            reasoning=generate_reasoning(path, factors),
            recommended_introducer=recommend_introducer(path),
            suggested_channel=suggest_channel(path),
        )

    async def find_duplicates(self, person_id: str) -> list[EntityResolutionMatch]:
        """Find likely duplicates of ``person_id`` among all people in the store."""
        with _annotate_failures("find_duplicates", person_id=person_id):
            target = await self._require_person(person_id, "find_duplicates")
            candidates = await self._store.get_all_people()

        matches = self._resolver.find_matches(target, candidates)
        logger.info("Found %d duplicate candidate(s) for %s", len(matches), person_id)
        return matches

    async def plan_merge(self, survivor_id: str, absorbed_id: str) -> MergePlan:
        """Plan merging ``absorbed_id`` into ``survivor_id``. Nothing is written.

        Raises:
            InvalidInputError: Both ids are the same.
            NotFoundError: Either person is missing or deleted.
        """
        if survivor_id == absorbed_id:
            msg = f"Cannot merge {survivor_id} into itself"
            raise InvalidInputError(msg)

        with _annotate_failures("plan_merge", survivor_id=survivor_id, absorbed_id=absorbed_id):
            survivor = await self._require_person(survivor_id, "plan_merge")
            absorbed = await self._require_person(absorbed_id, "plan_merge")
            survivor_edges = [
                *await self._store.get_outgoing_edges(survivor_id),
                *await self._store.get_incoming_edges(survivor_id),
            ]
            absorbed_edges = [
                *await self._store.get_outgoing_edges(absorbed_id),
                *await self._store.get_incoming_edges(absorbed_id),
            ]

        match = self._resolver.match(survivor, absorbed)
        return plan_merge(survivor, absorbed, survivor_edges, absorbed_edges, match=match)

    async def get_stats(self) -> GraphStats:
        """Aggregate graph-wide statistics from the store's raw counts."""
        with _annotate_failures("get_stats"):
            counts = await self._store.get_stats()

        cutoff = self._now() - timedelta(days=self._settings.recent_interaction_days)
        average = counts.total_edges / counts.total_people if counts.total_people else 0.0

        return GraphStats(
            total_people=counts.total_people,
            total_organizations=counts.total_organizations,
            total_edges=counts.total_edges,
            average_connections=average,
            strong_connections=sum(
                1 for s in counts.edge_strengths if s >= self._settings.strong_edge_threshold
            ),
            recent_interactions=sum(
                1 for ts in counts.interaction_timestamps if _utc(ts) >= cutoff
            ),
            data_sources=sorted(counts.sources, key=lambda s: (-s.contact_count, s.name)),
        )
