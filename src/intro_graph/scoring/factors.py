"""Relationship strength factors.

Each factor maps one aspect of an interaction history onto [0, 1]:

- recency:   exponential decay since the last interaction (half-life 90 days)
- frequency: interactions per month over the observed span, log-scaled
- mutuality: balance between sent and received interactions
- channels:  diversity of communication channels

All functions are pure. Bad inputs (negative counts, empty channel lists,
timestamps in the future) are clamped rather than rejected.
"""

from __future__ import annotations

import math
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime, timezone

from intro_graph.types import StrengthFactors

SECONDS_PER_DAY = 86_400.0

# Recency halves every 90 days
RECENCY_HALF_LIFE_DAYS = 90.0

# Frequency breakpoints (empirical, keep as-is):
# histories shorter than a day score 0.5, cadence saturates at 10 interactions/month
SAME_DAY_FREQUENCY = 0.5
FREQUENCY_WINDOW_DAYS = 30.0
FREQUENCY_SATURATION_PER_MONTH = 10.0

ONE_WAY_MUTUALITY = 0.3

# Distinct channel count -> factor (3+ saturates at 1.0)
CHANNEL_SCORES: dict[int, float] = {0: 0.0, 1: 0.4, 2: 0.7}


@dataclass(frozen=True)
class InteractionHistory:
    """Aggregated interaction signals between two people."""

    first_seen_at: datetime
    last_seen_at: datetime
    interaction_count: int
    sent_count: int = 0
    received_count: int = 0
    channels: frozenset[str] = field(default_factory=frozenset)  # pyright: ignore[reportUnknownVariableType]


def _utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC so they compare with aware ones."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def days_between(earlier: datetime, later: datetime) -> float:
    return (_utc(later) - _utc(earlier)).total_seconds() / SECONDS_PER_DAY


def calculate_recency_factor(last_seen_at: datetime, *, now: datetime | None = None) -> float:
    """Exponential decay of the days elapsed since ``last_seen_at``.

    90 days -> 0.5, 180 days -> 0.25. Future timestamps count as "now".
    """
    now = now or datetime.now(timezone.utc)
    days_since = max(0.0, days_between(last_seen_at, now))
    return math.exp(-math.log(2) * days_since / RECENCY_HALF_LIFE_DAYS)


def calculate_frequency_factor(
    interaction_count: int,
    first_seen_at: datetime,
    last_seen_at: datetime,
) -> float:
    """Interaction cadence over the observed span.

    Zero interactions score 0. A history spanning less than one day is
    treated as maximally dense and scores 0.5. Otherwise the score is
    ``log10(per_month + 1) / log10(11)``: 1/month ~ 0.29, 4/month ~ 0.67,
    10+/month saturates at 1.0.
    """
    if interaction_count <= 0:
        return 0.0

    span_days = days_between(first_seen_at, last_seen_at)
    if span_days < 1:
        return SAME_DAY_FREQUENCY

    per_month = interaction_count / span_days * FREQUENCY_WINDOW_DAYS
    score = math.log10(per_month + 1) / math.log10(FREQUENCY_SATURATION_PER_MONTH + 1)
    return min(1.0, score)


def calculate_mutuality_factor(sent_count: int, received_count: int) -> float:
    """How balanced the communication is.

    0 with no communication, 0.3 when one-way, otherwise
    ``2 * min / (sent + received)`` which reaches 1.0 only when balanced.
    """
    sent = max(0, sent_count)
    received = max(0, received_count)

    if sent == 0 and received == 0:
        return 0.0
    if sent == 0 or received == 0:
        return ONE_WAY_MUTUALITY

    return 2 * min(sent, received) / (sent + received)


def calculate_channels_factor(channels: Iterable[str] | None) -> float:
    """Channel diversity: 0, 0.4, 0.7, 1.0 for 0, 1, 2, 3+ distinct channels."""
    if not channels:
        return 0.0

    distinct = {str(channel).strip().lower() for channel in channels}
    distinct.discard("")
    return CHANNEL_SCORES.get(len(distinct), 1.0)


def calculate_strength_factors(
    history: InteractionHistory,
    *,
    now: datetime | None = None,
) -> StrengthFactors:
    """Compute all four strength factors for an interaction history."""
    return StrengthFactors(
        recency=calculate_recency_factor(history.last_seen_at, now=now),
        frequency=calculate_frequency_factor(
            history.interaction_count,
            history.first_seen_at,
            history.last_seen_at,
        ),
        mutuality=calculate_mutuality_factor(history.sent_count, history.received_count),
        channels=calculate_channels_factor(history.channels),
    )
