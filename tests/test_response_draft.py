import pytest
from pydantic import ValidationError

from story_survey.schemas.response_draft import (
    DURATION_OPTIONS,
    RELATIONSHIP_OPTIONS,
    SUPPORT_SYSTEM_OPTIONS,
    ResponseDraft,
)


def test_defaults_are_empty_with_rating_five():
    draft = ResponseDraft()
    assert draft.name == ""
    assert draft.age is None
    assert draft.relationship == ""
    assert draft.support_systems == []
    assert draft.difficulty_rating == 5


def test_enumerations_match_form_options():
    assert RELATIONSHIP_OPTIONS == ("Spouse/Partner", "Adult Child", "Parent", "Sibling", "Other")
    assert len(DURATION_OPTIONS) == 5
    assert SUPPORT_SYSTEM_OPTIONS[-1] == "Other"
    assert len(SUPPORT_SYSTEM_OPTIONS) == 6


def test_support_systems_dedupe_keeps_selection_order():
    draft = ResponseDraft(support_systems=["Respite care", "Friends/Family", "Respite care"])
    assert draft.support_systems == ["Respite care", "Friends/Family"]


@pytest.mark.parametrize("rating", [0, 11, -3])
def test_rating_outside_one_to_ten_rejected(rating):
    with pytest.raises(ValidationError):
        ResponseDraft(difficulty_rating=rating)


def test_unknown_options_and_fields_rejected():
    with pytest.raises(ValidationError):
        ResponseDraft(relationship="Cousin")
    with pytest.raises(ValidationError):
        ResponseDraft(support_systems=["Yoga"])
    with pytest.raises(ValidationError):
        ResponseDraft.model_validate({"favourite_colour": "blue"})
