"""Layered duplicate detection for person records.

Algorithm, per candidate (the target itself and soft-deleted candidates are
skipped):

1. Exact email match            -> score 1.0,  auto_merge
2. Exact phone match            -> score 1.0,  auto_merge
3. Same platform + same handle  -> score 0.95, auto_merge
4. Fuzzy name + organization    -> review_queue / auto_merge / reject

Layers run in order and stop at the first auto_merge, so a candidate yields
at most one match. Rejected matches are never returned.

Matching is deterministic: no randomness, no clock, and results are sorted
by score then candidate id.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping

from intro_graph.config import settings
from intro_graph.enums import MatchMethod, MatchRecommendation
from intro_graph.resolution.similarity import (
    best_pair_similarity,
    normalize_email,
    normalize_handle,
    normalize_phone,
    string_similarity,
)
from intro_graph.types import (
    ORGANIZATION_NAME_KEY,
    EntityResolutionMatch,
    MatchEvidence,
    Organization,
    Person,
)

logger = logging.getLogger(__name__)

EXACT_MATCH_SCORE = 1.0
SOCIAL_HANDLE_SCORE = 0.95


def _shared_values(
    target_values: list[str],
    candidate_values: list[str],
    normalize: Callable[[str], str],
) -> list[tuple[str, str]]:
    """Pairs of raw values that are equal after normalization, in target order."""
    by_key: dict[str, str] = {}
    for value in candidate_values:
        key = normalize(value)
        if key and key not in by_key:
            by_key[key] = value

    pairs: list[tuple[str, str]] = []
    seen: set[str] = set()
    for value in target_values:
        key = normalize(value)
        if key and key in by_key and key not in seen:
            seen.add(key)
            pairs.append((value, by_key[key]))
    return pairs


class EntityResolver:
    """Finds likely duplicates of a person in a candidate pool.

    Usage:
        resolver = EntityResolver(organizations={org.id: org for org in orgs})
        matches = resolver.find_matches(target, candidates)
    """

    def __init__(
        self,
        *,
        organizations: Mapping[str, Organization] | None = None,
        review_threshold: float | None = None,
        auto_merge_threshold: float | None = None,
        name_min: float | None = None,
        org_min: float | None = None,
    ) -> None:
        """Initialize the resolver.

        Args:
            organizations: Organization lookup used to compare employers.
            review_threshold: Combined name+org score for review_queue.
            auto_merge_threshold: Combined name+org score for auto_merge.
            name_min: Minimum name similarity for any fuzzy match.
            org_min: Minimum organization similarity for a fuzzy auto_merge.
        """
        self._organizations = organizations or {}
        self._review_threshold = (
            review_threshold
            if review_threshold is not None
            else settings.entity_resolution_review_threshold
        )
        self._auto_merge_threshold = (
            auto_merge_threshold
            if auto_merge_threshold is not None
            else settings.entity_resolution_auto_merge_threshold
        )
        self._name_min = name_min if name_min is not None else settings.entity_resolution_name_min
        self._org_min = org_min if org_min is not None else settings.entity_resolution_org_min

    def find_matches(
        self,
        target: Person,
        candidates: Iterable[Person],
    ) -> list[EntityResolutionMatch]:
        """Return duplicate matches for ``target``, best first."""
        matches: list[EntityResolutionMatch] = []

        for candidate in candidates:
            if candidate.id == target.id or candidate.is_deleted:
                continue

            match = self.match(target, candidate)
            if match is not None:
                matches.append(match)

        matches.sort(key=lambda m: (-m.match_score, m.candidate_person_id))
        logger.debug(
            "Entity resolution for %s: %d match(es)",
            target.id,
            len(matches),
        )
        return matches

    def match(self, target: Person, candidate: Person) -> EntityResolutionMatch | None:
        """Run the layers for a single pair; None if they are not duplicates."""
        for layer in (self.match_by_email, self.match_by_phone, self.match_by_social_handle):
            result = layer(target, candidate)
            if result is not None:
                return result

        result = self.match_by_name_and_company(target, candidate)
        if result is None or result.recommendation == MatchRecommendation.REJECT:
            return None
        return result

    def match_by_email(self, target: Person, candidate: Person) -> EntityResolutionMatch | None:
        shared = _shared_values(target.emails, candidate.emails, normalize_email)
        if not shared:
            return None
        return self._exact_match(target, candidate, MatchMethod.EMAIL, "email", shared)

    def match_by_phone(self, target: Person, candidate: Person) -> EntityResolutionMatch | None:
        shared = _shared_values(target.phones, candidate.phones, normalize_phone)
        if not shared:
            return None
        return self._exact_match(target, candidate, MatchMethod.PHONE, "phone", shared)

    def match_by_social_handle(
        self,
        target: Person,
        candidate: Person,
    ) -> EntityResolutionMatch | None:
        if not target.social_handles or not candidate.social_handles:
            return None

        candidate_handles = {
            platform.strip().lower(): handle
            for platform, handle in candidate.social_handles.items()
        }
        evidence: list[MatchEvidence] = []
        for platform, handle in sorted(target.social_handles.items()):
            other = candidate_handles.get(platform.strip().lower())
            if other is None or not normalize_handle(handle):
                continue
            if normalize_handle(handle) == normalize_handle(other):
                evidence.append(
                    MatchEvidence(
                        field=f"social_handle.{platform}",
                        target_value=handle,
                        candidate_value=other,
                        similarity=1.0,
                    )
                )

        if not evidence:
            return None

        return EntityResolutionMatch(
            target_person_id=target.id,
            candidate_person_id=candidate.id,
            match_score=SOCIAL_HANDLE_SCORE,
            match_method=MatchMethod.SOCIAL_HANDLE,
            evidence=evidence,
            recommendation=MatchRecommendation.AUTO_MERGE,
        )

    def match_by_name_and_company(
        self,
        target: Person,
        candidate: Person,
    ) -> EntityResolutionMatch | None:
        """Fuzzy name + organization layer.

        Both organizations known:
            combined = mean(name_sim, org_sim)
            auto_merge   if combined >= auto threshold and both field minimums hold
            review_queue if combined >= review threshold
            reject       otherwise
        An organization missing: name alone must reach the auto threshold to
        be queued for review; it never auto-merges.
        """
        name_similarity, target_name, candidate_name = best_pair_similarity(
            target.names, candidate.names
        )
        if name_similarity < self._name_min:
            return None

        evidence = [
            MatchEvidence(
                field="name",
                target_value=target_name,
                candidate_value=candidate_name,
                similarity=name_similarity,
            )
        ]

        target_org = self.organization_name(target)
        candidate_org = self.organization_name(candidate)

        if not target_org or not candidate_org:
            if name_similarity < self._auto_merge_threshold:
                return None
            return EntityResolutionMatch(
                target_person_id=target.id,
                candidate_person_id=candidate.id,
                match_score=name_similarity,
                match_method=MatchMethod.NAME_COMPANY,
                evidence=evidence,
                recommendation=MatchRecommendation.REVIEW_QUEUE,
            )

        org_similarity = string_similarity(target_org, candidate_org)
        evidence.append(
            MatchEvidence(
                field="organization",
                target_value=target_org,
                candidate_value=candidate_org,
                similarity=org_similarity,
            )
        )

        combined = (name_similarity + org_similarity) / 2
        if (
            combined >= self._auto_merge_threshold
            and name_similarity >= self._name_min
            and org_similarity >= self._org_min
        ):
            recommendation = MatchRecommendation.AUTO_MERGE
        elif combined >= self._review_threshold:
            recommendation = MatchRecommendation.REVIEW_QUEUE
        else:
            recommendation = MatchRecommendation.REJECT

        return EntityResolutionMatch(
            target_person_id=target.id,
            candidate_person_id=candidate.id,
            match_score=combined,
            match_method=MatchMethod.NAME_COMPANY,
            evidence=evidence,
            recommendation=recommendation,
        )

    def organization_name(self, person: Person) -> str | None:
        """Employer name from the organization lookup, else from metadata."""
        if person.organization_id:
            organization = self._organizations.get(person.organization_id)
            if organization is not None and organization.deleted_at is None:
                return organization.name

        name = person.metadata.get(ORGANIZATION_NAME_KEY)
        return name if isinstance(name, str) and name.strip() else None

    def _exact_match(
        self,
        target: Person,
        candidate: Person,
        method: MatchMethod,
        field_name: str,
        shared: list[tuple[str, str]],
    ) -> EntityResolutionMatch:
        return EntityResolutionMatch(
            target_person_id=target.id,
            candidate_person_id=candidate.id,
            match_score=EXACT_MATCH_SCORE,
            match_method=method,
            evidence=[
                MatchEvidence(
                    field=field_name,
                    target_value=target_value,
                    candidate_value=candidate_value,
                    similarity=1.0,
                )
                for target_value, candidate_value in shared
            ],
            recommendation=MatchRecommendation.AUTO_MERGE,
        )


def find_matches(target: Person, candidates: Iterable[Person]) -> list[EntityResolutionMatch]:
    """Module-level shortcut using default thresholds and no organization lookup."""
    return EntityResolver().find_matches(target, candidates)
