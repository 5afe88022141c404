"""Breadth-first search for introduction paths.

The search is synchronous and runs over a GraphSnapshot:

- Start at the source, expand one level per hop, up to max_hops levels.
- Only edges with strength >= min_strength are traversed.
- Every node is enqueued at most once per search (a fresh visited set per
  call), so paths are simple and the frontier stays bounded.
- The target is never enqueued; each time an edge reaches it the edge
  sequence is recorded as a candidate path.
- ``should_cancel`` is polled between levels.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field

from intro_graph.errors import SearchCancelledError
from intro_graph.pathfinding.options import PathfindingOptions
from intro_graph.pathfinding.snapshot import GraphSnapshot
from intro_graph.types import Edge


@dataclass(frozen=True)
class CandidatePath:
    """An unranked path: node_ids[i] -> node_ids[i + 1] via edges[i]."""

    node_ids: tuple[str, ...]
    edges: tuple[Edge, ...]

    @property
    def hop_count(self) -> int:
        return len(self.edges)

    def extend(self, edge: Edge) -> CandidatePath:
        return CandidatePath(
            node_ids=(*self.node_ids, edge.to_id),
            edges=(*self.edges, edge),
        )


@dataclass
class SearchOutcome:
    """Candidate paths plus traversal counters."""

    candidates: list[CandidatePath] = field(default_factory=list)  # pyright: ignore[reportUnknownVariableType]
    nodes_explored: int = 0
    edges_evaluated: int = 0


def breadth_first_paths(
    snapshot: GraphSnapshot,
    source_id: str,
    target_id: str,
    options: PathfindingOptions,
    *,
    should_cancel: Callable[[], bool] | None = None,
) -> SearchOutcome:
    """Enumerate candidate paths from ``source_id`` to ``target_id``.

    Raises:
        SearchCancelledError: If ``should_cancel`` returns True between levels.
    """
    outcome = SearchOutcome()
    if source_id == target_id:
        return outcome

    visited: set[str] = {source_id}
    frontier: list[CandidatePath] = [CandidatePath(node_ids=(source_id,), edges=())]

    for depth in range(options.max_hops):
        if not frontier:
            break
        if depth > 0 and should_cancel is not None and should_cancel():
            raise SearchCancelledError(depth)

        next_frontier: list[CandidatePath] = []
        for path in frontier:
            outcome.nodes_explored += 1

            for edge in snapshot.edges_from(path.node_ids[-1]):
                outcome.edges_evaluated += 1

                if edge.strength < options.min_strength:
                    continue
                neighbor_id = edge.to_id
                if neighbor_id in path.node_ids or not snapshot.has_person(neighbor_id):
                    continue

                if neighbor_id == target_id:
                    outcome.candidates.append(path.extend(edge))
                    continue

                if neighbor_id in visited:
                    continue
                visited.add(neighbor_id)
                next_frontier.append(path.extend(edge))

        frontier = next_frontier

    return outcome
