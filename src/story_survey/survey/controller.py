"""
Form state controller for one survey session.

Owns the draft, the current section and the submission flags. Sections move
forward only through `advance()` (gated by the section rules) and backward
freely through `retreat()`. The last section's forward action is `submit()`,
which persists the mapped draft and, on success, fires the post-submit
effects exactly once.

Only one persistence insert may be in flight: `submitting` doubles as the
mutex. Field edits and `retreat()` stay allowed while a submission is pending;
forward navigation does not. A completed survey accepts no further writes.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Dict, Optional, Protocol

from pydantic import ValidationError

from story_survey.schemas.response_draft import OTHER, ResponseDraft
from story_survey.survey.effects import EffectDispatcher
from story_survey.survey.errors import InvalidFieldError
from story_survey.survey.mapper import to_survey_record
from story_survey.survey.sections import FIRST_SECTION, LAST_SECTION, Section, is_valid, missing_fields

logger = logging.getLogger(__name__)


class ResponseSink(Protocol):
    """Persists one mapped row. Any exception it raises counts as a failed submit."""

    async def insert(self, row: Dict[str, Any]) -> None: ...


class SubmitOutcome(str, Enum):
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    FAILED = "failed"


@dataclass(frozen=True)
class Notice:
    title: str
    description: str


SUBMIT_SUCCEEDED = Notice(
    title="Thank you for sharing your story!",
    description="Your voice matters and will help us build a supportive community.",
)
SUBMIT_FAILED = Notice(
    title="Something went wrong",
    description="Please try again or contact us directly.",
)


class SurveyController:
    def __init__(self, sink: ResponseSink, dispatcher: Optional[EffectDispatcher] = None) -> None:
        self._sink = sink
        self._dispatcher = dispatcher or EffectDispatcher()
        self._reset()

    def _reset(self) -> None:
        self._draft = ResponseDraft()
        self._section = FIRST_SECTION
        self._submitting = False
        self._completed = False
        self._last_error: Optional[Notice] = None

    @property
    def draft(self) -> ResponseDraft:
        return self._draft

    @property
    def section(self) -> Section:
        return self._section

    @property
    def submitting(self) -> bool:
        return self._submitting

    @property
    def completed(self) -> bool:
        return self._completed

    @property
    def last_error(self) -> Optional[Notice]:
        return self._last_error

    def can_advance(self) -> bool:
        if self._completed or self._submitting:
            return False
        return is_valid(self._section, self._draft)

    # -- draft edits -------------------------------------------------------

    def set_field(self, key: str, value: Any) -> bool:
        """
        Write one draft field. Returns False once the survey is completed.

        Raises `InvalidFieldError` for unknown keys or values of the wrong
        shape; the draft is left untouched in that case. Deselecting an
        "Other" choice clears its free-text companion.
        """
        if self._completed:
            return False
        if key not in ResponseDraft.model_fields:
            raise InvalidFieldError(key, "unknown field")
        data = self._draft.model_dump()
        data[key] = value
        try:
            draft = ResponseDraft.model_validate(data)
        except ValidationError as e:
            errors = e.errors()
            raise InvalidFieldError(key, errors[0]["msg"] if errors else str(e)) from e
        self._draft = _clear_orphaned_companions(draft)
        return True

    def set_support_system(self, value: str, included: bool) -> bool:
        if self._completed:
            return False
        current = list(self._draft.support_systems)
        if included:
            if value in current:
                return True
            current.append(value)
        else:
            current = [s for s in current if s != value]
        return self.set_field("support_systems", current)

    # -- navigation --------------------------------------------------------

    def advance(self) -> bool:
        if not self.can_advance() or self._section == LAST_SECTION:
            return False
        self._section = Section(self._section + 1)
        return True

    def retreat(self) -> bool:
        if self._completed or self._section == FIRST_SECTION:
            return False
        self._section = Section(self._section - 1)
        return True

    def restart(self) -> bool:
        """Discard the draft and start over. Refused while a submission is pending."""
        if self._submitting:
            return False
        self._reset()
        return True

    # -- submission --------------------------------------------------------

    async def submit(self) -> SubmitOutcome:
        if self._submitting or self._completed or self._section != LAST_SECTION:
            logger.info(
                "survey.submit.rejected section=%s submitting=%s completed=%s",
                int(self._section),
                self._submitting,
                self._completed,
            )
            return SubmitOutcome.REJECTED

        self._submitting = True
        self._last_error = None
        # Edits may land while the insert is pending; the stored draft wins.
        submitted = self._draft
        try:
            await self._sink.insert(to_survey_record(submitted))
        except Exception:
            logger.exception("survey.submit.failed")
            self._last_error = SUBMIT_FAILED
            return SubmitOutcome.FAILED
        finally:
            self._submitting = False

        self._draft = submitted
        self._completed = True
        self._dispatcher.survey_completed(submitted)
        return SubmitOutcome.ACCEPTED

    def snapshot(self) -> Dict[str, Any]:
        return {
            "section": int(self._section),
            "section_title": self._section.title,
            "can_advance": self.can_advance(),
            "missing_fields": missing_fields(self._section, self._draft),
            "submitting": self._submitting,
            "completed": self._completed,
            "draft": self._draft.model_dump(),
            "error": asdict(self._last_error) if self._last_error else None,
        }


def _clear_orphaned_companions(draft: ResponseDraft) -> ResponseDraft:
    updates: Dict[str, str] = {}
    if draft.relationship != OTHER and draft.relationship_other:
        updates["relationship_other"] = ""
    if OTHER not in draft.support_systems and draft.support_systems_other:
        updates["support_systems_other"] = ""
    return draft.model_copy(update=updates) if updates else draft
