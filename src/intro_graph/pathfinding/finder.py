"""PathFinder: warm-introduction path discovery.

Flow for one request:
1. Validate options (InvalidInputError before any I/O).
2. Fetch source and target (NotFoundError when missing or soft-deleted).
3. Load a GraphSnapshot level by level from the store.
4. Run the synchronous BFS over the snapshot.
5. Score, rank and truncate the candidates.

Usage:
    finder = PathFinder(store)
    result = await finder.find_paths("me", "target", {"max_hops": 2})
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Mapping
from typing import Any

from intro_graph.errors import NotFoundError
from intro_graph.pathfinding.options import PathfindingOptions, resolve_options
from intro_graph.pathfinding.ranking import rank_paths
from intro_graph.pathfinding.search import breadth_first_paths
from intro_graph.pathfinding.snapshot import load_snapshot
from intro_graph.storage.ports import GraphStore
from intro_graph.types import Person, PathfindingResult, SearchMetadata

logger = logging.getLogger(__name__)

ALREADY_CONNECTED = "Already connected: source and target are the same person"
NO_PATH_FOUND = "No path found within {max_hops} hops at minimum strength {min_strength:.2f}"


class PathFinder:
    """Find and rank introduction paths over a GraphStore."""

    def __init__(self, store: GraphStore) -> None:
        self._store = store

    async def _require_person(self, person_id: str, role: str) -> Person:
        person = await self._store.get_person(person_id)
        if person is None or person.is_deleted:
            raise NotFoundError("Person", person_id, operation=f"find_paths ({role})")
        return person

    async def find_paths(
        self,
        source_id: str,
        target_id: str,
        options: PathfindingOptions | Mapping[str, Any] | None = None,
        *,
        should_cancel: Callable[[], bool] | None = None,
    ) -> PathfindingResult:
        """Find up to ``max_results`` ranked paths from source to target.

        Args:
            source_id: Person the introduction starts from (usually the user).
            target_id: Person to reach.
            options: PathfindingOptions or a mapping of its fields.
            should_cancel: Polled between BFS levels.

        Returns:
            PathfindingResult. ``paths`` is empty when source == target or
            nothing is reachable; ``explanation`` says which.

        Raises:
            InvalidInputError: Malformed options.
            NotFoundError: Source or target missing or deleted.
            SearchCancelledError: ``should_cancel`` returned True.
        """
        resolved = resolve_options(options)
        started = time.perf_counter()

        source = await self._require_person(source_id, "source")
        target = source if target_id == source_id else await self._require_person(target_id, "target")

        if source.id == target.id:
            return PathfindingResult(
                paths=[],
                target_person=target,
                search_metadata=SearchMetadata(
                    nodes_explored=0,
                    edges_evaluated=0,
                    duration_ms=(time.perf_counter() - started) * 1000,
                ),
                explanation=ALREADY_CONNECTED,
            )

        snapshot = await load_snapshot(self._store, source, target, resolved)
        outcome = breadth_first_paths(
            snapshot, source.id, target.id, resolved, should_cancel=should_cancel
        )
        paths = rank_paths(
            outcome.candidates,
            snapshot.people,
            max_results=resolved.max_results,
            preferences=resolved.preferences,
        )
        duration_ms = (time.perf_counter() - started) * 1000

        logger.debug(
            "find_paths %s -> %s: %d candidates, %d returned, %d nodes, %d edges, %.1fms",
            source.id,
            target.id,
            len(outcome.candidates),
            len(paths),
            outcome.nodes_explored,
            outcome.edges_evaluated,
            duration_ms,
        )

        explanation = None
        if not paths:
            explanation = NO_PATH_FOUND.format(
                max_hops=resolved.max_hops, min_strength=resolved.min_strength
            )

        return PathfindingResult(
            paths=paths,
            target_person=target,
            search_metadata=SearchMetadata(
                nodes_explored=outcome.nodes_explored,
                edges_evaluated=outcome.edges_evaluated,
                duration_ms=duration_ms,
            ),
            explanation=explanation,
        )
