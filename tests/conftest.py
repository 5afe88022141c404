"""Shared pytest fixtures for IntroGraph tests."""

from __future__ import annotations

from collections.abc import AsyncGenerator, Callable, Sequence
from datetime import datetime, timedelta, timezone
from itertools import count
from typing import TYPE_CHECKING, Any

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from intro_graph.storage.tables import Base
from intro_graph.types import Edge, GraphCounts, Person, StrengthFactors

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine


NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


# ─────────────────────────────────────────────────────────────────────────────
# In-memory graph stores
# ─────────────────────────────────────────────────────────────────────────────


class InMemoryGraphStore:
    """GraphStore over plain dicts. Records every call for assertions."""

    def __init__(
        self,
        people: Sequence[Person] = (),
        edges: Sequence[Edge] = (),
        counts: GraphCounts | None = None,
    ) -> None:
        self.people = {person.id: person for person in people}
        self.edges = list(edges)
        self.counts = counts or GraphCounts(total_people=0, total_organizations=0, total_edges=0)
        self.calls: list[tuple[str, Any]] = []

    def add(self, *items: Person | Edge) -> None:
        for item in items:
            if isinstance(item, Person):
                self.people[item.id] = item
            else:
                self.edges.append(item)

    async def get_person(self, person_id: str) -> Person | None:
        self.calls.append(("get_person", person_id))
        return self.people.get(person_id)

    async def get_outgoing_edges(self, person_id: str) -> list[Edge]:
        self.calls.append(("get_outgoing_edges", person_id))
        return [edge for edge in self.edges if edge.from_id == person_id]

    async def get_incoming_edges(self, person_id: str) -> list[Edge]:
        self.calls.append(("get_incoming_edges", person_id))
        return [edge for edge in self.edges if edge.to_id == person_id]

    async def get_all_people(self) -> list[Person]:
        self.calls.append(("get_all_people", None))
        return [person for person in self.people.values() if not person.is_deleted]

    async def get_stats(self) -> GraphCounts:
        self.calls.append(("get_stats", None))
        return self.counts


class BatchInMemoryGraphStore(InMemoryGraphStore):
    """Adds the optional batch reads."""

    async def get_people(self, person_ids: Sequence[str]) -> list[Person]:
        self.calls.append(("get_people", tuple(person_ids)))
        return [
            self.people[person_id]
            for person_id in person_ids
            if person_id in self.people and not self.people[person_id].is_deleted
        ]

    async def get_outgoing_edges_for_many(
        self,
        person_ids: Sequence[str],
    ) -> dict[str, list[Edge]]:
        self.calls.append(("get_outgoing_edges_for_many", tuple(person_ids)))
        return {
            person_id: [edge for edge in self.edges if edge.from_id == person_id]
            for person_id in person_ids
        }


# Type aliases for factory fixtures
MakePerson = Callable[..., Person]
MakeEdge = Callable[..., Edge]


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def make_person() -> MakePerson:
    """Factory fixture for creating Person instances."""

    def _make(
        person_id: str,
        *names: str,
        emails: list[str] | None = None,
        phones: list[str] | None = None,
        social_handles: dict[str, str] | None = None,
        organization_id: str | None = None,
        metadata: dict[str, Any] | None = None,
        deleted: bool = False,
    ) -> Person:
        return Person(
            id=person_id,
            names=list(names) or [person_id.title()],
            emails=emails or [],
            phones=phones or [],
            social_handles=social_handles or {},
            organization_id=organization_id,
            metadata=metadata or {},
            deleted_at=NOW if deleted else None,
        )

    return _make


@pytest.fixture
def make_edge() -> MakeEdge:
    """Factory fixture for creating Edge instances."""
    ids = count(1)

    def _make(
        from_id: str,
        to_id: str,
        strength: float,
        *,
        edge_id: str | None = None,
        days_ago: float = 10,
        channels: list[str] | None = None,
        sources: list[str] | None = None,
        factors: StrengthFactors | None = None,
        interaction_count: int = 1,
    ) -> Edge:
        last_seen = NOW - timedelta(days=days_ago)
        return Edge(
            id=edge_id or f"e{next(ids)}",
            from_id=from_id,
            to_id=to_id,
            strength=strength,
            first_seen_at=last_seen - timedelta(days=30),
            last_seen_at=last_seen,
            strength_factors=factors,
            sources=sources if sources is not None else ["gmail"],
            channels=channels if channels is not None else ["email"],
            interaction_count=interaction_count,
        )

    return _make


@pytest.fixture
def store() -> InMemoryGraphStore:
    return InMemoryGraphStore()


@pytest.fixture
def batch_store() -> BatchInMemoryGraphStore:
    return BatchInMemoryGraphStore()


# ─────────────────────────────────────────────────────────────────────────────
# SQLite-backed session for the SQLAlchemy store
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
async def sqlite_engine() -> AsyncGenerator[AsyncEngine, None]:
    """In-memory SQLite engine with all tables created."""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(sqlite_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(sqlite_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session
