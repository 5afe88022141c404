"""Ports the core uses to read the relationship graph.

The core only reads. Implementations map their own failures onto
``intro_graph.errors.StorageError``; the core propagates those unchanged.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol, runtime_checkable

from intro_graph.types import Edge, GraphCounts, Person


@runtime_checkable
class GraphStore(Protocol):
    """Minimal read contract for a graph-capable datastore."""

    async def get_person(self, person_id: str) -> Person | None: ...

    async def get_outgoing_edges(self, person_id: str) -> list[Edge]: ...

    async def get_incoming_edges(self, person_id: str) -> list[Edge]: ...

    async def get_all_people(self) -> list[Person]: ...

    async def get_stats(self) -> GraphCounts: ...


@runtime_checkable
class BatchGraphStore(GraphStore, Protocol):
    """Optional batch reads; the path finder uses them when available."""

    async def get_people(self, person_ids: Sequence[str]) -> list[Person]: ...

    async def get_outgoing_edges_for_many(
        self,
        person_ids: Sequence[str],
    ) -> dict[str, list[Edge]]: ...
