"""Entity resolution for IntroGraph.

Detects duplicate person records ingested from different sources.

Submodules:
- similarity: normalized Levenshtein similarity and identifier normalization
- matcher: layered matching (email, phone, social handle, fuzzy name + org)
- merge: merge explanations and advisory merge plans
"""

from intro_graph.resolution.matcher import EntityResolver, find_matches
from intro_graph.resolution.merge import MergePlan, generate_merge_explanation, plan_merge
from intro_graph.resolution.similarity import string_similarity

__all__ = [
    "EntityResolver",
    "MergePlan",
    "find_matches",
    "generate_merge_explanation",
    "plan_merge",
    "string_similarity",
]
