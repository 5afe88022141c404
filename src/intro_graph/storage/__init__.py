"""Graph storage: the read port and its SQLAlchemy implementation."""

from intro_graph.storage.ports import BatchGraphStore, GraphStore
from intro_graph.storage.sqlalchemy_store import SqlAlchemyGraphStore
from intro_graph.storage.tables import (
    Base,
    DataSourceRow,
    EdgeRow,
    InteractionRow,
    OrganizationRow,
    PersonRow,
)

__all__ = [
    "Base",
    "BatchGraphStore",
    "DataSourceRow",
    "EdgeRow",
    "GraphStore",
    "InteractionRow",
    "OrganizationRow",
    "PersonRow",
    "SqlAlchemyGraphStore",
]
