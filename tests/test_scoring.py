"""Tests for relationship strength scoring."""

from __future__ import annotations

import math
from datetime import datetime, timedelta, timezone

import pytest

from intro_graph.enums import InteractionChannel, InteractionDirection
from intro_graph.errors import InvalidInputError
from intro_graph.scoring import (
    DEFAULT_WEIGHTS,
    InteractionHistory,
    ScoringWeights,
    calculate_channels_factor,
    calculate_frequency_factor,
    calculate_mutuality_factor,
    calculate_recency_factor,
    calculate_strength,
    calculate_strength_factors,
    history_from_interactions,
    score_relationship,
)
from intro_graph.types import Interaction, StrengthFactors

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


def days_ago(days: float) -> datetime:
    return NOW - timedelta(days=days)


class TestRecencyFactor:
    def test_today_is_one(self) -> None:
        assert calculate_recency_factor(NOW, now=NOW) == pytest.approx(1.0)

    def test_half_life_is_ninety_days(self) -> None:
        assert calculate_recency_factor(days_ago(90), now=NOW) == pytest.approx(0.5)
        assert calculate_recency_factor(days_ago(180), now=NOW) == pytest.approx(0.25)

    def test_future_timestamp_clamps_to_one(self) -> None:
        assert calculate_recency_factor(NOW + timedelta(days=5), now=NOW) == pytest.approx(1.0)

    def test_naive_datetime_is_treated_as_utc(self) -> None:
        naive = days_ago(90).replace(tzinfo=None)
        assert calculate_recency_factor(naive, now=NOW) == pytest.approx(0.5)

    def test_decreases_with_age(self) -> None:
        values = [calculate_recency_factor(days_ago(d), now=NOW) for d in (0, 10, 100, 1000)]
        assert values == sorted(values, reverse=True)
        assert all(0 < v <= 1 for v in values)


class TestFrequencyFactor:
    def test_zero_interactions(self) -> None:
        assert calculate_frequency_factor(0, days_ago(30), NOW) == 0.0

    def test_same_day_is_half(self) -> None:
        assert calculate_frequency_factor(3, NOW, NOW) == 0.5
        assert calculate_frequency_factor(3, NOW.replace(hour=1), NOW.replace(hour=23)) == 0.5

    def test_span_under_a_day_across_midnight_is_half(self) -> None:
        late = NOW.replace(hour=23)
        assert calculate_frequency_factor(2, late, late + timedelta(hours=2)) == 0.5

    def test_full_day_span_uses_cadence(self) -> None:
        assert calculate_frequency_factor(2, days_ago(1), NOW) == pytest.approx(1.0)

    def test_one_per_month(self) -> None:
        expected = math.log10(2) / math.log10(11)
        assert calculate_frequency_factor(1, days_ago(30), NOW) == pytest.approx(expected)

    def test_saturates_at_ten_per_month(self) -> None:
        assert calculate_frequency_factor(10, days_ago(30), NOW) == pytest.approx(1.0)
        assert calculate_frequency_factor(100, days_ago(30), NOW) == 1.0

    def test_monotonic_in_count(self) -> None:
        first = days_ago(60)
        values = [calculate_frequency_factor(n, first, NOW) for n in range(0, 60)]
        assert all(a <= b for a, b in zip(values, values[1:]))


class TestMutualityFactor:
    def test_no_communication(self) -> None:
        assert calculate_mutuality_factor(0, 0) == 0.0

    def test_one_way(self) -> None:
        assert calculate_mutuality_factor(5, 0) == 0.3
        assert calculate_mutuality_factor(0, 5) == 0.3

    def test_balanced_is_one(self) -> None:
        assert calculate_mutuality_factor(7, 7) == 1.0

    def test_unbalanced(self) -> None:
        assert calculate_mutuality_factor(3, 1) == pytest.approx(0.5)

    @pytest.mark.parametrize(("sent", "received"), [(1, 2), (10, 3), (0, 4), (6, 6)])
    def test_symmetric(self, sent: int, received: int) -> None:
        assert calculate_mutuality_factor(sent, received) == calculate_mutuality_factor(
            received, sent
        )


class TestChannelsFactor:
    @pytest.mark.parametrize(
        ("channels", "expected"),
        [
            ([], 0.0),
            (["email"], 0.4),
            (["email", "call"], 0.7),
            (["email", "call", "meeting"], 1.0),
            (["email", "call", "meeting", "message"], 1.0),
        ],
    )
    def test_distinct_channel_counts(self, channels: list[str], expected: float) -> None:
        assert calculate_channels_factor(channels) == expected

    def test_duplicates_and_order_do_not_matter(self) -> None:
        assert calculate_channels_factor(["email", "Email ", "email"]) == 0.4
        assert calculate_channels_factor(["call", "email"]) == calculate_channels_factor(
            ["email", "call", "call"]
        )

    def test_none_is_zero(self) -> None:
        assert calculate_channels_factor(None) == 0.0


class TestCalculateStrength:
    def test_default_weights_sum_to_one(self) -> None:
        assert DEFAULT_WEIGHTS.total == pytest.approx(1.0)
        assert calculate_strength(StrengthFactors(1.0, 1.0, 1.0, 1.0)) == pytest.approx(1.0)

    def test_weighted_sum(self) -> None:
        factors = StrengthFactors(recency=1.0, frequency=0.5, mutuality=0.0, channels=0.4)
        expected = 0.35 * 1.0 + 0.30 * 0.5 + 0.20 * 0.0 + 0.15 * 0.4
        assert calculate_strength(factors) == pytest.approx(expected)

    def test_custom_weights_used_as_given(self) -> None:
        weights = ScoringWeights(recency=1.0, frequency=1.0, mutuality=0.0, channels=0.0)
        factors = StrengthFactors(recency=0.3, frequency=0.3, mutuality=0.0, channels=0.0)
        assert calculate_strength(factors, weights) == pytest.approx(0.6)

    def test_all_zero_factors_score_zero(self) -> None:
        assert calculate_strength(StrengthFactors(0.0, 0.0, 0.0, 0.0)) == 0.0

    def test_clamps_out_of_range(self) -> None:
        assert calculate_strength(StrengthFactors(5.0, 5.0, 5.0, 5.0)) == 1.0
        assert calculate_strength(StrengthFactors(-1.0, -1.0, -1.0, -1.0)) == 0.0

    def test_nan_scores_zero(self) -> None:
        assert calculate_strength(StrengthFactors(float("nan"), 0.0, 0.0, 0.0)) == 0.0


class TestScoringWeights:
    def test_default_validates(self) -> None:
        assert DEFAULT_WEIGHTS.validate() is DEFAULT_WEIGHTS

    def test_within_tolerance(self) -> None:
        ScoringWeights(recency=0.3505, frequency=0.30, mutuality=0.20, channels=0.15).validate()

    def test_sum_not_one_rejected(self) -> None:
        with pytest.raises(InvalidInputError, match="sum to 1.0"):
            ScoringWeights(recency=0.5, frequency=0.5, mutuality=0.5, channels=0.5).validate()

    def test_negative_rejected(self) -> None:
        with pytest.raises(InvalidInputError, match="non-negative"):
            ScoringWeights(recency=1.2, frequency=-0.2, mutuality=0.0, channels=0.0).validate()


class TestStrengthFactors:
    def test_from_history(self) -> None:
        history = InteractionHistory(
            first_seen_at=days_ago(120),
            last_seen_at=days_ago(90),
            interaction_count=10,
            sent_count=5,
            received_count=5,
            channels=frozenset({"email", "meeting"}),
        )

        factors = calculate_strength_factors(history, now=NOW)

        assert factors.recency == pytest.approx(0.5)
        assert factors.frequency == pytest.approx(1.0)
        assert factors.mutuality == 1.0
        assert factors.channels == 0.7


class TestScoreRelationship:
    def test_complete_history_has_full_confidence(self) -> None:
        history = InteractionHistory(
            first_seen_at=days_ago(60),
            last_seen_at=days_ago(1),
            interaction_count=20,
            sent_count=10,
            received_count=10,
            channels=frozenset({"email", "call"}),
        )

        score = score_relationship(history, now=NOW)

        assert score.confidence == 1.0
        assert score.strength == pytest.approx(calculate_strength(score.factors))

    def test_sparse_history_has_low_confidence(self) -> None:
        history = InteractionHistory(
            first_seen_at=days_ago(500),
            last_seen_at=days_ago(400),
            interaction_count=5,
        )

        score = score_relationship(history, now=NOW)

        # only "has interactions" is present, plus 5/100 volume boost
        assert score.confidence == pytest.approx(0.3)

    def test_custom_weights(self) -> None:
        history = InteractionHistory(
            first_seen_at=NOW,
            last_seen_at=NOW,
            interaction_count=1,
        )
        weights = ScoringWeights(recency=1.0, frequency=0.0, mutuality=0.0, channels=0.0)

        assert score_relationship(history, weights, now=NOW).strength == pytest.approx(1.0)


class TestHistoryFromInteractions:
    def test_empty(self) -> None:
        assert history_from_interactions([]) is None

    def test_folds_interactions(self) -> None:
        interactions = [
            Interaction(days_ago(1), InteractionChannel.EMAIL, InteractionDirection.OUTBOUND),
            Interaction(days_ago(20), InteractionChannel.MEETING, InteractionDirection.BIDIRECTIONAL),
            Interaction(days_ago(5), "linkedin", InteractionDirection.INBOUND),
            Interaction(days_ago(3), InteractionChannel.EMAIL),
        ]

        history = history_from_interactions(interactions)

        assert history is not None
        assert history.first_seen_at == days_ago(20)
        assert history.last_seen_at == days_ago(1)
        assert history.interaction_count == 4
        assert history.sent_count == 2
        assert history.received_count == 2
        assert history.channels == frozenset({"email", "meeting", "linkedin"})
