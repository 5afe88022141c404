"""Relationship strength scoring.

Submodules:
- factors: the four per-relationship factors (recency, frequency, mutuality, channels)
- strength: weighted combination, confidence, and interaction folding
"""

from intro_graph.scoring.factors import (
    InteractionHistory,
    calculate_channels_factor,
    calculate_frequency_factor,
    calculate_mutuality_factor,
    calculate_recency_factor,
    calculate_strength_factors,
)
from intro_graph.scoring.strength import (
    DEFAULT_WEIGHTS,
    RelationshipScore,
    ScoringWeights,
    calculate_strength,
    history_from_interactions,
    score_relationship,
)

__all__ = [
    "DEFAULT_WEIGHTS",
    "InteractionHistory",
    "RelationshipScore",
    "ScoringWeights",
    "calculate_channels_factor",
    "calculate_frequency_factor",
    "calculate_mutuality_factor",
    "calculate_recency_factor",
    "calculate_strength",
    "calculate_strength_factors",
    "history_from_interactions",
    "score_relationship",
]
