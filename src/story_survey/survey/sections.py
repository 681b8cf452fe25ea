"""
Section rules for the five-stage survey.

Validation here is a pure gate on forward navigation: an incomplete section is
never an error, it simply reports the fields still missing.
"""

from __future__ import annotations

from enum import IntEnum
from typing import List

from story_survey.schemas.response_draft import OTHER, ResponseDraft


class Section(IntEnum):
    CONTACT = 1
    JOURNEY = 2
    EMOTIONAL_LANDSCAPE = 3
    COPING_AND_COMMUNITY = 4
    OPEN_SHARING = 5

    @property
    def title(self) -> str:
        return _TITLES[self]


FIRST_SECTION = Section.CONTACT
LAST_SECTION = Section.OPEN_SHARING

_TITLES = {
    Section.CONTACT: "Contact Information",
    Section.JOURNEY: "Your Caregiving Journey",
    Section.EMOTIONAL_LANDSCAPE: "The Emotional Landscape",
    Section.COPING_AND_COMMUNITY: "Coping & Community",
    Section.OPEN_SHARING: "Open Sharing",
}

_REQUIRED_TEXT = {
    Section.CONTACT: ("name", "email"),
    Section.JOURNEY: ("relationship", "duration", "typical_day", "difficulty_reason"),
    Section.EMOTIONAL_LANDSCAPE: (
        "emotional_challenge",
        "isolation_feeling",
        "relationship_learning",
        "connection_moment",
        "love_memory",
    ),
    Section.COPING_AND_COMMUNITY: (
        "coping_methods",
        "talk_to_whom",
        "missing_support",
        "extra_hour",
        "lost_activity",
    ),
    Section.OPEN_SHARING: (),
}


def is_filled(value: object) -> bool:
    """Whitespace-only text counts as empty."""
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    return True


def missing_fields(section: int, draft: ResponseDraft) -> List[str]:
    """
    Return the draft fields that keep `section` from validating, in form order.

    Conditional companions are reported only when their parent choice is
    "Other" (e.g. `relationship_other`).
    """
    sec = Section(section)
    missing = [key for key in _REQUIRED_TEXT[sec] if not is_filled(getattr(draft, key))]

    if sec is Section.JOURNEY:
        if draft.difficulty_rating is None:
            missing.append("difficulty_rating")
        if draft.relationship == OTHER and not is_filled(draft.relationship_other):
            missing.append("relationship_other")
    elif sec is Section.COPING_AND_COMMUNITY:
        if not draft.support_systems:
            missing.append("support_systems")
        elif OTHER in draft.support_systems and not is_filled(draft.support_systems_other):
            missing.append("support_systems_other")
    return missing


def is_valid(section: int, draft: ResponseDraft) -> bool:
    return not missing_fields(section, draft)
