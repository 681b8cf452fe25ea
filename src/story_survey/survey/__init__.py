from .controller import SUBMIT_FAILED, SUBMIT_SUCCEEDED, Notice, ResponseSink, SubmitOutcome, SurveyController
from .effects import AnalyticsSink, CelebrationSink, EffectDispatcher, celebration_plan
from .errors import InvalidFieldError, PersistenceError
from .mapper import to_survey_record
from .sections import Section, is_valid, missing_fields

__all__ = [
    "AnalyticsSink",
    "CelebrationSink",
    "EffectDispatcher",
    "InvalidFieldError",
    "Notice",
    "PersistenceError",
    "ResponseSink",
    "SUBMIT_FAILED",
    "SUBMIT_SUCCEEDED",
    "Section",
    "SubmitOutcome",
    "SurveyController",
    "celebration_plan",
    "is_valid",
    "missing_fields",
    "to_survey_record",
]
