"""Combining strength factors into a single relationship strength.

Weights are an explicit value passed at call time. ``DEFAULT_WEIGHTS`` is a
frozen instance, so callers and tests can override it without touching
shared state.
"""

from __future__ import annotations

import math
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime, timezone

from intro_graph.enums import InteractionChannel, InteractionDirection
from intro_graph.errors import InvalidInputError
from intro_graph.scoring.factors import (
    InteractionHistory,
    calculate_strength_factors,
    days_between,
)
from intro_graph.types import Interaction, StrengthFactors

WEIGHT_SUM_TOLERANCE = 0.001

# Confidence: a last interaction older than this no longer counts as "recent"
CONFIDENCE_RECENT_DAYS = 365
CONFIDENCE_MAX_VOLUME_BOOST = 0.2


@dataclass(frozen=True)
class ScoringWeights:
    """Weight of each factor in the combined strength (should sum to 1.0)."""

    recency: float = 0.35
    frequency: float = 0.30
    mutuality: float = 0.20
    channels: float = 0.15

    @property
    def total(self) -> float:
        return self.recency + self.frequency + self.mutuality + self.channels

    def validate(self) -> ScoringWeights:
        """Reject negative weights or weights that do not sum to 1.0.

        Returns self so it can be chained.
        """
        values = {
            "recency": self.recency,
            "frequency": self.frequency,
            "mutuality": self.mutuality,
            "channels": self.channels,
        }
        for name, value in values.items():
            if not math.isfinite(value) or value < 0:
                msg = f"Weight '{name}' must be a non-negative number, got {value}"
                raise InvalidInputError(msg)

        if abs(self.total - 1.0) > WEIGHT_SUM_TOLERANCE:
            msg = f"Weights must sum to 1.0, got {self.total:.4f}"
            raise InvalidInputError(msg)
        return self


DEFAULT_WEIGHTS = ScoringWeights()


def calculate_strength(
    factors: StrengthFactors,
    weights: ScoringWeights = DEFAULT_WEIGHTS,
) -> float:
    """Weighted sum of the factors, clamped to [0, 1].

    Weights are used as given. Out-of-range factors or weights are clamped in
    the result, never normalized away and never an error.
    """
    score = (
        factors.recency * weights.recency
        + factors.frequency * weights.frequency
        + factors.mutuality * weights.mutuality
        + factors.channels * weights.channels
    )
    if math.isnan(score):
        return 0.0
    return max(0.0, min(1.0, score))


@dataclass(frozen=True)
class RelationshipScore:
    """A strength score with its factor breakdown and a confidence estimate."""

    strength: float
    factors: StrengthFactors
    confidence: float
    """How complete the underlying data is (0-1), not how strong the tie is."""


def score_relationship(
    history: InteractionHistory,
    weights: ScoringWeights = DEFAULT_WEIGHTS,
    *,
    now: datetime | None = None,
) -> RelationshipScore:
    """Score an interaction history and estimate confidence in the score."""
    now = now or datetime.now(timezone.utc)
    factors = calculate_strength_factors(history, now=now)
    return RelationshipScore(
        strength=calculate_strength(factors, weights),
        factors=factors,
        confidence=_confidence(history, now=now),
    )


def _confidence(history: InteractionHistory, *, now: datetime) -> float:
    present = 0
    if history.interaction_count > 0:
        present += 1
    if history.sent_count > 0 or history.received_count > 0:
        present += 1
    if history.channels:
        present += 1
    if history.interaction_count > 0 and days_between(history.last_seen_at, now) < CONFIDENCE_RECENT_DAYS:
        present += 1

    volume_boost = min(CONFIDENCE_MAX_VOLUME_BOOST, max(0, history.interaction_count) / 100)
    return min(1.0, present / 4 + volume_boost)


def history_from_interactions(interactions: Iterable[Interaction]) -> InteractionHistory | None:
    """Fold canonical interactions into an InteractionHistory.

    Outbound interactions count as sent, inbound as received, bidirectional
    as both. Returns None when there are no interactions.
    """
    items = sorted(interactions, key=lambda i: i.timestamp)
    if not items:
        return None

    sent = 0
    received = 0
    channels: set[str] = set()
    for interaction in items:
        channel = interaction.channel
        channels.add(channel.value if isinstance(channel, InteractionChannel) else str(channel))
        if interaction.direction in (InteractionDirection.OUTBOUND, InteractionDirection.BIDIRECTIONAL):
            sent += 1
        if interaction.direction in (InteractionDirection.INBOUND, InteractionDirection.BIDIRECTIONAL):
            received += 1

    return InteractionHistory(
        first_seen_at=items[0].timestamp,
        last_seen_at=items[-1].timestamp,
        interaction_count=len(items),
        sent_count=sent,
        received_count=received,
        channels=frozenset(channels),
    )
