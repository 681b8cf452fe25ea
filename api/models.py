from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class FieldUpdate(BaseModel):
    """Single draft field write."""
    model_config = ConfigDict(populate_by_name=True)

    field: str = Field(..., description="Draft field name (e.g. 'name', 'relationship', 'difficulty_rating')")
    value: Any = Field(default=None, description="New value; shape depends on the field")


class SupportSystemToggle(BaseModel):
    """Check or uncheck one support-system option."""
    model_config = ConfigDict(populate_by_name=True)

    value: str = Field(..., description="Support-system option label (e.g. 'Friends/Family')")
    included: bool = Field(..., description="True to select the option, false to deselect it")


class CalendarClickEvent(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    session_id: Optional[str] = Field(default=None, alias="sessionId")


class NoticeInfo(BaseModel):
    title: str
    description: str


class ThankYouInfo(BaseModel):
    """Content of the terminal thank-you view."""
    model_config = ConfigDict(populate_by_name=True)

    title: str = "Thank You For Sharing Your Heart"
    schedule_prompt: str = Field(
        default="If you're open, I'd love to hear your story directly",
        alias="schedulePrompt",
    )
    schedule_url: Optional[str] = Field(default=None, alias="scheduleUrl")


class SessionState(BaseModel):
    """Serialised controller state; the client renders the current section from it."""
    model_config = ConfigDict(populate_by_name=True)

    ok: bool = True
    session_id: str = Field(..., alias="sessionId")
    section: int = Field(..., ge=1, le=5)
    section_title: str = Field(..., alias="sectionTitle")
    can_advance: bool = Field(..., alias="canAdvance", description="Whether the forward control should be enabled")
    missing_fields: List[str] = Field(default_factory=list, alias="missingFields")
    submitting: bool = False
    completed: bool = False
    draft: Dict[str, Any] = Field(default_factory=dict)
    error: Optional[NoticeInfo] = None

    @classmethod
    def from_snapshot(cls, session_id: str, snapshot: Dict[str, Any]) -> "SessionState":
        return cls.model_validate({"session_id": session_id, **snapshot})


class SubmitResult(SessionState):
    outcome: str
    toast: Optional[NoticeInfo] = None
    thank_you: Optional[ThankYouInfo] = Field(default=None, alias="thankYou")
    celebration: Optional[List[Dict[str, Any]]] = None
