from __future__ import annotations

from typing import Any, Dict, List

from story_survey.schemas.response_draft import NARRATIVE_FIELDS, ResponseDraft

GENDER_PLACEHOLDER = "not-specified"
SUPPORT_SYSTEMS_DELIMITER = ", "
PARAGRAPH_SEPARATOR = "\n\n"


def _or_none(text: str) -> Any:
    return text if text else None


def build_additional_comments(draft: ResponseDraft) -> str:
    """
    Fold the narrative answers into one labelled, multi-paragraph text blob.

    The age line always leads; narrative answers left empty are omitted and
    the open-sharing answer closes the blob when present.
    """
    paragraphs: List[str] = [f"Age: {draft.age if draft.age is not None else 'Not provided'}"]
    for key, label in NARRATIVE_FIELDS:
        answer = getattr(draft, key)
        if answer and answer.strip():
            paragraphs.append(f"{label}: {answer}")
    if draft.additional_sharing and draft.additional_sharing.strip():
        paragraphs.append(f"Additional Sharing: {draft.additional_sharing}")
    return PARAGRAPH_SEPARATOR.join(paragraphs)


def to_survey_record(draft: ResponseDraft) -> Dict[str, Any]:
    """Map a draft onto one `survey_responses` row. Reads the draft only."""
    return {
        "name": draft.name,
        "email": draft.email,
        "age_range": draft.duration,
        "gender": GENDER_PLACEHOLDER,
        "relationship_status": draft.relationship,
        "relationship_other": _or_none(draft.relationship_other),
        "support_systems": SUPPORT_SYSTEMS_DELIMITER.join(draft.support_systems),
        "support_other": _or_none(draft.support_systems_other),
        "stress_level": draft.difficulty_rating,
        "additional_comments": build_additional_comments(draft),
    }
