"""Enumerations for the IntroGraph data model."""

from enum import Enum


class RelationshipType(str, Enum):
    """What kind of relationship a directed edge records."""

    KNOWS = "knows"
    CONNECTED_TO = "connected_to"
    INTERACTED_WITH = "interacted_with"
    WORKED_AT = "worked_at"
    ADVISED = "advised"
    INVESTED_IN = "invested_in"


class InteractionChannel(str, Enum):
    """How an interaction happened."""

    EMAIL = "email"
    MESSAGE = "message"
    MEETING = "meeting"
    CALL = "call"
    OTHER = "other"


class InteractionDirection(str, Enum):
    """Direction of an interaction relative to the graph owner."""

    INBOUND = "inbound"
    OUTBOUND = "outbound"
    BIDIRECTIONAL = "bidirectional"


class MatchMethod(str, Enum):
    """Which resolution layer produced a duplicate match."""

    EMAIL = "email"
    PHONE = "phone"
    SOCIAL_HANDLE = "social_handle"
    NAME_COMPANY = "name_company"


class MatchRecommendation(str, Enum):
    """What to do with a duplicate match."""

    AUTO_MERGE = "auto_merge"  # Safe to merge without review
    REVIEW_QUEUE = "review_queue"  # Needs human confirmation
    REJECT = "reject"  # Not a duplicate (never returned to callers)
