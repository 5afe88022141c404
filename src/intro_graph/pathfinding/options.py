"""Options for a path search."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from intro_graph.config import settings
from intro_graph.errors import InvalidInputError


class PathPreferences(BaseModel):
    """Soft preferences. They only break ties between equally scored paths."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    avoid_categories: list[str] = Field(
        default_factory=list,
        description="Intermediary categories to avoid (e.g. 'investors', 'competitors')",
    )
    prefer_geography: list[str] = Field(
        default_factory=list,
        description="Preferred intermediary locations (e.g. 'Israel', 'US')",
    )
    prefer_channels: list[str] = Field(
        default_factory=list,
        description="Preferred communication channels (e.g. 'email', 'linkedin')",
    )


class PathfindingOptions(BaseModel):
    """Search limits for GraphService.find_paths."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    max_hops: int = Field(default_factory=lambda: settings.pathfinding_max_hops, ge=1)
    min_strength: float = Field(
        default_factory=lambda: settings.pathfinding_min_strength, ge=0.0, le=1.0
    )
    max_results: int = Field(default_factory=lambda: settings.pathfinding_max_results, ge=1)
    include_incoming: bool = Field(
        default=False,
        description="Also traverse incoming edges as if they pointed the other way",
    )
    preferences: PathPreferences = Field(default_factory=PathPreferences)


def resolve_options(
    options: PathfindingOptions | Mapping[str, Any] | None,
) -> PathfindingOptions:
    """Coerce caller options, raising InvalidInputError for malformed values."""
    if options is None:
        return PathfindingOptions()
    if isinstance(options, PathfindingOptions):
        return options
    try:
        raw = dict(options)
    except (TypeError, ValueError) as exc:
        msg = f"Invalid path finding options: expected a mapping, got {type(options).__name__}"
        raise InvalidInputError(msg) from exc

    try:
        return PathfindingOptions.model_validate(raw)
    except ValidationError as exc:
        msg = f"Invalid path finding options: {exc.errors(include_url=False)}"
        raise InvalidInputError(msg) from exc
