"""Per-request graph snapshot for path finding.

The snapshot is fetched level by level from the graph store before any
traversal runs, so the search itself never awaits. Each call builds its own
snapshot and person cache; nothing is shared between requests.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

from intro_graph.pathfinding.options import PathfindingOptions
from intro_graph.storage.ports import BatchGraphStore, GraphStore
from intro_graph.types import Edge, Person

logger = logging.getLogger(__name__)


@dataclass
class GraphSnapshot:
    """People and adjacency reachable from the source within max_hops."""

    people: dict[str, Person] = field(default_factory=dict)  # pyright: ignore[reportUnknownVariableType]
    """Live (non-deleted) people by id."""

    adjacency: dict[str, list[Edge]] = field(default_factory=dict)  # pyright: ignore[reportUnknownVariableType]
    """Edges leaving each expanded node, strongest edge per neighbor."""

    def edges_from(self, person_id: str) -> list[Edge]:
        return self.adjacency.get(person_id, [])

    def has_person(self, person_id: str) -> bool:
        return person_id in self.people


def _strongest_per_neighbor(edges: list[Edge], node_id: str) -> list[Edge]:
    """Drop self-loops and keep one edge per neighbor, strongest first.

    The search claims each intermediary for the first path that reaches it,
    so adjacency is ordered by strength (then neighbor id) whatever order
    the store returned.
    """
    best: dict[str, Edge] = {}
    for edge in edges:
        if edge.to_id == node_id:
            continue
        current = best.get(edge.to_id)
        if current is None or edge.strength > current.strength:
            best[edge.to_id] = edge
    return sorted(best.values(), key=lambda edge: (-edge.strength, edge.to_id))


async def _fetch_edges(
    store: GraphStore,
    node_ids: Sequence[str],
    *,
    include_incoming: bool,
) -> dict[str, list[Edge]]:
    if isinstance(store, BatchGraphStore):
        edges_by_node = await store.get_outgoing_edges_for_many(node_ids)
    else:
        edges_by_node = {node_id: await store.get_outgoing_edges(node_id) for node_id in node_ids}

    if include_incoming:
        for node_id in node_ids:
            incoming = await store.get_incoming_edges(node_id)
            edges_by_node[node_id] = [
                *edges_by_node.get(node_id, []),
                *(edge.reversed() for edge in incoming),
            ]
    return edges_by_node


async def _fetch_people(store: GraphStore, person_ids: Sequence[str]) -> list[Person]:
    if not person_ids:
        return []
    if isinstance(store, BatchGraphStore):
        return await store.get_people(person_ids)

    people: list[Person] = []
    for person_id in person_ids:
        person = await store.get_person(person_id)
        if person is not None:
            people.append(person)
    return people


async def load_snapshot(
    store: GraphStore,
    source: Person,
    target: Person,
    options: PathfindingOptions,
) -> GraphSnapshot:
    """Fetch everything a search from ``source`` can reach within max_hops.

    Only edges at or above min_strength pull new people into the snapshot.
    The target is never expanded: a search stops at it.
    """
    snapshot = GraphSnapshot(people={source.id: source, target.id: target})
    fetched: set[str] = {source.id, target.id}
    frontier = [source.id]

    for depth in range(options.max_hops):
        if not frontier:
            break

        edges_by_node = await _fetch_edges(
            store, frontier, include_incoming=options.include_incoming
        )

        new_ids: list[str] = []
        for node_id in frontier:
            edges = _strongest_per_neighbor(edges_by_node.get(node_id, []), node_id)
            snapshot.adjacency[node_id] = edges
            for edge in edges:
                if edge.strength >= options.min_strength and edge.to_id not in fetched:
                    fetched.add(edge.to_id)
                    new_ids.append(edge.to_id)

        # People past the last level are never expanded; the target is cached
        if depth == options.max_hops - 1:
            break

        for person in await _fetch_people(store, new_ids):
            if not person.is_deleted:
                snapshot.people[person.id] = person

        frontier = [
            person_id
            for person_id in new_ids
            if person_id in snapshot.people and person_id != target.id
        ]
        logger.debug(
            "Snapshot level %d: %d new people, next frontier %d",
            depth + 1,
            len(new_ids),
            len(frontier),
        )

    return snapshot
