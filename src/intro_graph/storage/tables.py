"""SQLAlchemy tables backing the reference graph store.

JSON columns use JSONB on PostgreSQL and plain JSON elsewhere, so the same
tables run against SQLite in tests.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, Float, ForeignKey, Integer, String, UniqueConstraint, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from intro_graph.enums import RelationshipType
from intro_graph.types import ORGANIZATION_NAME_KEY, Edge, Organization, Person, StrengthFactors

JSONType = JSON().with_variant(JSONB(), "postgresql")


class Base(DeclarativeBase):
    """Declarative base for IntroGraph tables."""


class OrganizationRow(Base):
    __tablename__ = "organizations"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(512))
    domain: Mapped[str | None] = mapped_column(String(255), index=True)
    # "metadata" is reserved on declarative classes
    extra: Mapped[dict[str, Any]] = mapped_column("metadata", JSONType, default=dict)
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    def to_domain(self) -> Organization:
        return Organization(
            id=self.id,
            name=self.name,
            domain=self.domain,
            metadata=dict(self.extra or {}),
            deleted_at=self.deleted_at,
        )


class PersonRow(Base):
    __tablename__ = "people"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    names: Mapped[list[str]] = mapped_column(JSONType, default=list)
    emails: Mapped[list[str]] = mapped_column(JSONType, default=list)
    phones: Mapped[list[str]] = mapped_column(JSONType, default=list)
    social_handles: Mapped[dict[str, str]] = mapped_column(JSONType, default=dict)
    title: Mapped[str | None] = mapped_column(String(512))
    organization_id: Mapped[str | None] = mapped_column(
        ForeignKey("organizations.id"), index=True
    )
    previous_ids: Mapped[list[str]] = mapped_column(JSONType, default=list)
    extra: Mapped[dict[str, Any]] = mapped_column("metadata", JSONType, default=dict)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), index=True)

    organization: Mapped[OrganizationRow | None] = relationship(lazy="selectin")

    @classmethod
    def from_domain(cls, person: Person) -> PersonRow:
        return cls(
            id=person.id,
            names=list(person.names),
            emails=list(person.emails),
            phones=list(person.phones),
            social_handles=dict(person.social_handles),
            title=person.title,
            organization_id=person.organization_id,
            previous_ids=list(person.previous_ids),
            extra=dict(person.metadata),
            deleted_at=person.deleted_at,
        )

    def to_domain(self) -> Person:
        """Map to a Person, copying the employer name into metadata for matching."""
        metadata = dict(self.extra or {})
        organization = self.organization
        if organization is not None and organization.deleted_at is None:
            metadata.setdefault(ORGANIZATION_NAME_KEY, organization.name)

        return Person(
            id=self.id,
            names=list(self.names or []),
            emails=list(self.emails or []),
            phones=list(self.phones or []),
            social_handles=dict(self.social_handles or {}),
            title=self.title,
            organization_id=self.organization_id,
            previous_ids=list(self.previous_ids or []),
            metadata=metadata,
            created_at=self.created_at,
            updated_at=self.updated_at,
            deleted_at=self.deleted_at,
        )


class EdgeRow(Base):
    __tablename__ = "edges"
    __table_args__ = (UniqueConstraint("from_id", "to_id", "relationship_type"),)

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    from_id: Mapped[str] = mapped_column(ForeignKey("people.id"), index=True)
    to_id: Mapped[str] = mapped_column(ForeignKey("people.id"), index=True)
    relationship_type: Mapped[RelationshipType] = mapped_column(default=RelationshipType.KNOWS)
    strength: Mapped[float] = mapped_column(Float, default=0.0, index=True)
    strength_factors: Mapped[dict[str, float] | None] = mapped_column(JSONType)
    sources: Mapped[list[str]] = mapped_column(JSONType, default=list)
    channels: Mapped[list[str]] = mapped_column(JSONType, default=list)
    first_seen_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    last_seen_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    interaction_count: Mapped[int] = mapped_column(Integer, default=1)

    @classmethod
    def from_domain(cls, edge: Edge) -> EdgeRow:
        factors = edge.strength_factors
        return cls(
            id=edge.id,
            from_id=edge.from_id,
            to_id=edge.to_id,
            relationship_type=edge.relationship_type,
            strength=edge.strength,
            strength_factors=(
                None
                if factors is None
                else {
                    "recency": factors.recency,
                    "frequency": factors.frequency,
                    "mutuality": factors.mutuality,
                    "channels": factors.channels,
                }
            ),
            sources=list(edge.sources),
            channels=list(edge.channels),
            first_seen_at=edge.first_seen_at,
            last_seen_at=edge.last_seen_at,
            interaction_count=edge.interaction_count,
        )

    def to_domain(self) -> Edge:
        factors = self.strength_factors
        return Edge(
            id=self.id,
            from_id=self.from_id,
            to_id=self.to_id,
            relationship_type=self.relationship_type,
            strength=self.strength,
            strength_factors=(
                None
                if not factors
                else StrengthFactors(
                    recency=float(factors.get("recency", 0.0)),
                    frequency=float(factors.get("frequency", 0.0)),
                    mutuality=float(factors.get("mutuality", 0.0)),
                    channels=float(factors.get("channels", 0.0)),
                )
            ),
            sources=list(self.sources or []),
            channels=list(self.channels or []),
            first_seen_at=self.first_seen_at,
            last_seen_at=self.last_seen_at,
            interaction_count=self.interaction_count,
        )


class InteractionRow(Base):
    """One canonical interaction between the graph owner and a person."""

    __tablename__ = "interactions"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    person_id: Mapped[str] = mapped_column(ForeignKey("people.id"), index=True)
    source: Mapped[str] = mapped_column(String(64), index=True)
    channel: Mapped[str] = mapped_column(String(32))
    direction: Mapped[str | None] = mapped_column(String(16))
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), index=True)


class DataSourceRow(Base):
    """Sync bookkeeping per ingestion source."""

    __tablename__ = "data_sources"

    name: Mapped[str] = mapped_column(String(64), primary_key=True)
    last_sync_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
