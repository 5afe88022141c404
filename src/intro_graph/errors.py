"""Error taxonomy for IntroGraph."""

from __future__ import annotations


class IntroGraphError(Exception):
    """Base class for all IntroGraph errors."""


class NotFoundError(IntroGraphError, LookupError):
    """Raised when an id does not resolve to an existing, non-deleted record."""

    def __init__(self, entity: str, entity_id: str, *, operation: str | None = None) -> None:
        self.entity = entity
        self.entity_id = entity_id
        self.operation = operation
        message = f"{entity} not found: {entity_id}"
        if operation:
            message = f"{message} (during {operation})"
        super().__init__(message)


class InvalidInputError(IntroGraphError, ValueError):
    """Raised for malformed options or weights, before any work starts."""


class CollaboratorFailure(IntroGraphError):
    """Raised by a collaborator (e.g. the graph store) the core depends on."""


class StorageError(CollaboratorFailure):
    """The graph store failed (timeout, lost connection, bad query)."""


class SearchCancelledError(IntroGraphError):
    """A path search was cancelled between BFS levels."""

    def __init__(self, depth: int) -> None:
        self.depth = depth
        super().__init__(f"Path search cancelled after {depth} level(s)")
