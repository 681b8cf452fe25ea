"""
Survey draft schema.

`ResponseDraft` is the single in-progress answer set of one survey session.
Every field starts empty; required-ness is decided per section by
`story_survey.survey.sections`, never here.
"""

from __future__ import annotations

from typing import List, Literal, Optional, Tuple, get_args

from pydantic import BaseModel, ConfigDict, Field, field_validator

OTHER = "Other"

Relationship = Literal["Spouse/Partner", "Adult Child", "Parent", "Sibling", "Other"]
Duration = Literal["Less than 6 months", "6-12 months", "1-3 years", "3-5 years", "More than 5 years"]
SupportSystem = Literal[
    "Online support groups",
    "In-person therapy",
    "Friends/Family",
    "Respite care",
    "Nothing",
    "Other",
]

RELATIONSHIP_OPTIONS: Tuple[str, ...] = get_args(Relationship)
DURATION_OPTIONS: Tuple[str, ...] = get_args(Duration)
SUPPORT_SYSTEM_OPTIONS: Tuple[str, ...] = get_args(SupportSystem)

# Free-text answers in the order they appear in the survey, with their labels
# in the submitted comment blob.
NARRATIVE_FIELDS: Tuple[Tuple[str, str], ...] = (
    ("typical_day", "Typical Day"),
    ("difficulty_reason", "Difficulty Reason"),
    ("emotional_challenge", "Emotional Challenge"),
    ("isolation_feeling", "Isolation Feeling"),
    ("relationship_learning", "Relationship Learning"),
    ("connection_moment", "Connection Moment"),
    ("love_memory", "Love Memory"),
    ("coping_methods", "Coping Methods"),
    ("talk_to_whom", "Talk To Whom"),
    ("missing_support", "Missing Support"),
    ("extra_hour", "Extra Hour"),
    ("lost_activity", "Lost Activity"),
)


class ResponseDraft(BaseModel):
    """In-progress survey response for one session."""

    model_config = ConfigDict(extra="forbid")

    # Contact
    name: str = ""
    email: str = ""
    age: Optional[int] = Field(default=None, description="Optional; the form hints 18-120 but does not enforce it")

    # Caregiving journey
    relationship: Literal["", Relationship] = ""
    relationship_other: str = ""
    duration: Literal["", Duration] = ""
    typical_day: str = ""
    difficulty_rating: int = Field(default=5, ge=1, le=10)
    difficulty_reason: str = ""

    # Emotional landscape
    emotional_challenge: str = ""
    isolation_feeling: str = ""
    relationship_learning: str = ""
    connection_moment: str = ""
    love_memory: str = ""

    # Coping & community
    coping_methods: str = ""
    talk_to_whom: str = ""
    support_systems: List[SupportSystem] = Field(default_factory=list)
    support_systems_other: str = ""
    missing_support: str = ""
    extra_hour: str = ""
    lost_activity: str = ""

    # Open sharing
    additional_sharing: str = ""

    @field_validator("support_systems")
    @classmethod
    def _dedupe_support_systems(cls, value: List[str]) -> List[str]:
        # Selection order is kept; it drives the delimited submission text.
        seen: List[str] = []
        for item in value:
            if item not in seen:
                seen.append(item)
        return seen
