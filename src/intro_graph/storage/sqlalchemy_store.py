"""GraphStore backed by an async SQLAlchemy session.

Implements both GraphStore and BatchGraphStore. Every SQLAlchemyError is
re-raised as StorageError, chained to the original.

Usage:
    async with async_session_factory() as session:
        store = SqlAlchemyGraphStore(session)
        service = GraphService(store)
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence
from contextlib import contextmanager

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from intro_graph.errors import StorageError
from intro_graph.storage.tables import (
    DataSourceRow,
    EdgeRow,
    InteractionRow,
    OrganizationRow,
    PersonRow,
)
from intro_graph.types import Edge, GraphCounts, Person, SourceCounts

logger = logging.getLogger(__name__)


@contextmanager
def _storage_errors(operation: str) -> Iterator[None]:
    try:
        yield
    except SQLAlchemyError as exc:
        logger.warning("Storage failure during %s: %s", operation, exc)
        msg = f"Graph store failed during {operation}: {exc}"
        raise StorageError(msg) from exc


class SqlAlchemyGraphStore:
    """Read-side graph store over the people/edges/interactions tables."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_person(self, person_id: str) -> Person | None:
        """Return the person, including soft-deleted ones, or None."""
        with _storage_errors("get_person"):
            row = await self._session.get(PersonRow, person_id)
        return row.to_domain() if row is not None else None

    async def get_people(self, person_ids: Sequence[str]) -> list[Person]:
        """Return the non-deleted people among ``person_ids``."""
        if not person_ids:
            return []
        stmt = (
            select(PersonRow)
            .where(PersonRow.id.in_(list(person_ids)), PersonRow.deleted_at.is_(None))
            .order_by(PersonRow.id)
        )
        with _storage_errors("get_people"):
            result = await self._session.execute(stmt)
        return [row.to_domain() for row in result.scalars()]

    async def get_all_people(self) -> list[Person]:
        stmt = select(PersonRow).where(PersonRow.deleted_at.is_(None)).order_by(PersonRow.id)
        with _storage_errors("get_all_people"):
            result = await self._session.execute(stmt)
        return [row.to_domain() for row in result.scalars()]

    async def get_outgoing_edges(self, person_id: str) -> list[Edge]:
        stmt = (
            select(EdgeRow)
            .where(EdgeRow.from_id == person_id)
            .order_by(EdgeRow.strength.desc(), EdgeRow.id)
        )
        with _storage_errors("get_outgoing_edges"):
            result = await self._session.execute(stmt)
        return [row.to_domain() for row in result.scalars()]

    async def get_incoming_edges(self, person_id: str) -> list[Edge]:
        stmt = (
            select(EdgeRow)
            .where(EdgeRow.to_id == person_id)
            .order_by(EdgeRow.strength.desc(), EdgeRow.id)
        )
        with _storage_errors("get_incoming_edges"):
            result = await self._session.execute(stmt)
        return [row.to_domain() for row in result.scalars()]

    async def get_outgoing_edges_for_many(
        self,
        person_ids: Sequence[str],
    ) -> dict[str, list[Edge]]:
        """Outgoing edges for several people in one query, keyed by from_id."""
        edges: dict[str, list[Edge]] = {person_id: [] for person_id in person_ids}
        if not person_ids:
            return edges

        stmt = (
            select(EdgeRow)
            .where(EdgeRow.from_id.in_(list(person_ids)))
            .order_by(EdgeRow.from_id, EdgeRow.strength.desc(), EdgeRow.id)
        )
        with _storage_errors("get_outgoing_edges_for_many"):
            result = await self._session.execute(stmt)
        for row in result.scalars():
            edges[row.from_id].append(row.to_domain())
        return edges

    async def get_stats(self) -> GraphCounts:
        """Raw counts for GraphService.get_stats to aggregate."""
        with _storage_errors("get_stats"):
            total_people = await self._session.scalar(
                select(func.count()).select_from(PersonRow).where(PersonRow.deleted_at.is_(None))
            )
            total_organizations = await self._session.scalar(
                select(func.count())
                .select_from(OrganizationRow)
                .where(OrganizationRow.deleted_at.is_(None))
            )
            strengths = (await self._session.scalars(select(EdgeRow.strength))).all()
            timestamps = (await self._session.scalars(select(InteractionRow.timestamp))).all()

            per_source = await self._session.execute(
                select(
                    InteractionRow.source,
                    func.count(func.distinct(InteractionRow.person_id)),
                    func.count(InteractionRow.id),
                ).group_by(InteractionRow.source)
            )
            synced = await self._session.execute(
                select(DataSourceRow.name, DataSourceRow.last_sync_at)
            )
            last_syncs = dict(synced.tuples().all())

        sources: dict[str, SourceCounts] = {
            name: SourceCounts(name=name, contact_count=0, interaction_count=0, last_sync=last_sync)
            for name, last_sync in last_syncs.items()
        }
        for name, contact_count, interaction_count in per_source.tuples():
            entry = sources.setdefault(
                name, SourceCounts(name=name, contact_count=0, interaction_count=0)
            )
            entry.contact_count = contact_count
            entry.interaction_count = interaction_count

        return GraphCounts(
            total_people=total_people or 0,
            total_organizations=total_organizations or 0,
            total_edges=len(strengths),
            edge_strengths=list(strengths),
            interaction_timestamps=list(timestamps),
            sources=list(sources.values()),
        )
