from .response_draft import (
    DURATION_OPTIONS,
    NARRATIVE_FIELDS,
    OTHER,
    RELATIONSHIP_OPTIONS,
    SUPPORT_SYSTEM_OPTIONS,
    ResponseDraft,
)

__all__ = [
    "DURATION_OPTIONS",
    "NARRATIVE_FIELDS",
    "OTHER",
    "RELATIONSHIP_OPTIONS",
    "SUPPORT_SYSTEM_OPTIONS",
    "ResponseDraft",
]
