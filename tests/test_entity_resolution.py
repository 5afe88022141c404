"""Tests for duplicate-contact entity resolution.

Covers the four layers (email, phone, social handle, fuzzy name +
organization), their ordering, threshold boundaries and result ordering.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from intro_graph.enums import MatchMethod, MatchRecommendation
from intro_graph.resolution import EntityResolver, find_matches, string_similarity
from intro_graph.resolution.similarity import (
    best_pair_similarity,
    normalize_handle,
    normalize_phone,
)
from intro_graph.types import Organization

if TYPE_CHECKING:
    from conftest import MakePerson


class TestStringSimilarity:
    def test_identical(self) -> None:
        assert string_similarity("Jane Doe", "Jane Doe") == 1.0

    def test_case_and_whitespace_insensitive(self) -> None:
        assert string_similarity("  JANE doe ", "jane DOE") == 1.0

    def test_normalized_levenshtein(self) -> None:
        assert string_similarity("kitten", "sitting") == pytest.approx(1 - 3 / 7)
        assert string_similarity("Jon Smith", "John Smith") == pytest.approx(0.9)

    def test_empty_is_zero(self) -> None:
        assert string_similarity("", "Jane") == 0.0
        assert string_similarity("   ", "   ") == 0.0

    def test_best_pair(self) -> None:
        similarity, left, right = best_pair_similarity(
            ["J. Doe", "Jane Doe"], ["Janet Smith", "jane doe"]
        )
        assert similarity == 1.0
        assert (left, right) == ("Jane Doe", "jane doe")

    def test_normalizers(self) -> None:
        assert normalize_phone("+1 (555) 010-0000") == "15550100000"
        assert normalize_handle(" @JaneDoe ") == "janedoe"


class TestExactLayers:
    def test_shared_email_auto_merges(self, make_person: MakePerson) -> None:
        target = make_person("t", "Jane Doe", emails=["Jane@Example.com"])
        candidate = make_person("c", "J. Doe", emails=["other@x.io", "jane@example.com"])

        matches = find_matches(target, [candidate])

        assert len(matches) == 1
        match = matches[0]
        assert match.match_score == 1.0
        assert match.match_method == MatchMethod.EMAIL
        assert match.recommendation == MatchRecommendation.AUTO_MERGE
        assert match.evidence[0].field == "email"
        assert match.evidence[0].target_value == "Jane@Example.com"
        assert match.evidence[0].candidate_value == "jane@example.com"

    def test_shared_phone_ignores_formatting(self, make_person: MakePerson) -> None:
        target = make_person("t", "Jane Doe", phones=["+1 (555) 010-0000"])
        candidate = make_person("c", "Someone Else", phones=["15550100000"])

        [match] = find_matches(target, [candidate])

        assert match.match_method == MatchMethod.PHONE
        assert match.match_score == 1.0
        assert match.recommendation == MatchRecommendation.AUTO_MERGE

    def test_social_handle_same_platform(self, make_person: MakePerson) -> None:
        target = make_person("t", "Jane Doe", social_handles={"linkedin": "@JaneDoe"})
        candidate = make_person("c", "Jay", social_handles={"LinkedIn": "janedoe"})

        [match] = find_matches(target, [candidate])

        assert match.match_method == MatchMethod.SOCIAL_HANDLE
        assert match.match_score == 0.95
        assert match.recommendation == MatchRecommendation.AUTO_MERGE
        assert match.evidence[0].field == "social_handle.linkedin"

    def test_social_handle_different_platform_no_match(self, make_person: MakePerson) -> None:
        target = make_person("t", "Jane Doe", social_handles={"twitter": "janedoe"})
        candidate = make_person("c", "Jay", social_handles={"github": "janedoe"})

        assert find_matches(target, [candidate]) == []

    def test_first_auto_merge_layer_wins(self, make_person: MakePerson) -> None:
        target = make_person("t", "Jane Doe", emails=["jane@x.io"], phones=["555"])
        candidate = make_person("c", "Jane Doe", emails=["jane@x.io"], phones=["555"])

        matches = find_matches(target, [candidate])

        assert len(matches) == 1
        assert matches[0].match_method == MatchMethod.EMAIL


class TestFuzzyLayer:
    def test_name_below_minimum_no_match(self, make_person: MakePerson) -> None:
        target = make_person("t", "Alice Johnson", metadata={"organization_name": "Acme"})
        candidate = make_person("c", "Bob Johnson", metadata={"organization_name": "Acme"})

        assert find_matches(target, [candidate]) == []

    def test_same_name_same_org_auto_merges(self, make_person: MakePerson) -> None:
        target = make_person("t", "Jane Doe", metadata={"organization_name": "Acme"})
        candidate = make_person("c", "jane doe", metadata={"organization_name": "ACME"})

        [match] = find_matches(target, [candidate])

        assert match.match_method == MatchMethod.NAME_COMPANY
        assert match.match_score == 1.0
        assert match.recommendation == MatchRecommendation.AUTO_MERGE
        assert [e.field for e in match.evidence] == ["name", "organization"]

    def test_close_name_close_org_goes_to_review(self, make_person: MakePerson) -> None:
        target = make_person("t", "Jon Smith", metadata={"organization_name": "Acme Labs"})
        candidate = make_person("c", "John Smith", metadata={"organization_name": "Acme Lab"})

        [match] = find_matches(target, [candidate])

        # (0.9 + 8/9) / 2
        assert match.match_score == pytest.approx((0.9 + 8 / 9) / 2)
        assert match.recommendation == MatchRecommendation.REVIEW_QUEUE

    def test_different_org_is_rejected_and_omitted(self, make_person: MakePerson) -> None:
        target = make_person("t", "Jon Smith", metadata={"organization_name": "Acme"})
        candidate = make_person("c", "John Smith", metadata={"organization_name": "Globex"})

        assert find_matches(target, [candidate]) == []

    def test_missing_org_requires_near_identical_name(self, make_person: MakePerson) -> None:
        target = make_person("t", "Jane Doe")
        identical = make_person("c1", "Jane Doe")
        close = make_person("c2", "Jane Dot")

        matches = find_matches(target, [identical, close])

        assert [m.candidate_person_id for m in matches] == ["c1"]
        assert matches[0].recommendation == MatchRecommendation.REVIEW_QUEUE
        assert matches[0].match_score == 1.0

    def test_organization_lookup_preferred_over_metadata(self, make_person: MakePerson) -> None:
        organizations = {
            "o1": Organization(id="o1", name="Initech"),
            "o2": Organization(id="o2", name="Initech"),
        }
        target = make_person(
            "t", "Peter Gibbons", organization_id="o1", metadata={"organization_name": "Other"}
        )
        candidate = make_person("c", "Peter Gibbons", organization_id="o2")

        [match] = EntityResolver(organizations=organizations).find_matches(target, [candidate])

        assert match.recommendation == MatchRecommendation.AUTO_MERGE
        assert match.evidence[1].target_value == "Initech"

    def test_thresholds_can_be_overridden(self, make_person: MakePerson) -> None:
        target = make_person("t", "Jon Smith", metadata={"organization_name": "Acme Labs"})
        candidate = make_person("c", "John Smith", metadata={"organization_name": "Acme Lab"})
        strict = EntityResolver(review_threshold=0.9, auto_merge_threshold=0.99)

        assert strict.find_matches(target, [candidate]) == []


class TestFindMatches:
    def test_skips_self_and_deleted(self, make_person: MakePerson) -> None:
        target = make_person("t", "Jane Doe", emails=["jane@x.io"])
        deleted = make_person("d", "Jane Doe", emails=["jane@x.io"], deleted=True)

        assert find_matches(target, [target, deleted]) == []

    def test_sorted_by_score_then_candidate_id(self, make_person: MakePerson) -> None:
        target = make_person(
            "t",
            "Jane Doe",
            emails=["jane@x.io"],
            social_handles={"github": "janed"},
        )
        candidates = [
            make_person("c3", "Jane Doe"),  # name only -> review, 1.0
            make_person("c2", "Zed", social_handles={"github": "JaneD"}),  # 0.95
            make_person("c1", "Other", emails=["JANE@x.io"]),  # 1.0
            make_person("c0", "Nobody"),
        ]

        matches = find_matches(target, candidates)

        assert [(m.candidate_person_id, m.match_score) for m in matches] == [
            ("c1", 1.0),
            ("c3", 1.0),
            ("c2", 0.95),
        ]

    def test_no_shared_identifiers_and_different_names(self, make_person: MakePerson) -> None:
        target = make_person("t", "Jane Doe", emails=["jane@x.io"])
        candidate = make_person("c", "Richard Roe", emails=["rick@y.io"])

        assert find_matches(target, [candidate]) == []
