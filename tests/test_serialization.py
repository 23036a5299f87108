"""
Tests for serialization and deserialization of form definitions.

These tests ensure lossless JSON/YAML round-trip using the explicit
serialization functions in `formflow.serialization`, and that malformed
definitions are rejected at load time.
"""

import pytest
from formflow.errors import FormDefinitionError
from formflow.examples import build_example_team_survey
from formflow.operators import ConditionLogic, LogicOperator, QuestionType, RuleAction
from formflow.piping import render_piped_text
from formflow.serialization import (
    form_from_dict,
    form_from_json,
    form_from_yaml,
    form_to_dict,
    form_to_json,
    form_to_yaml,
)
from formflow.validation import validate_answer

BUILDER_PAYLOAD = {
    "id": "f1",
    "title": "Feedback",
    "questions": [
        {
            "id": "q1",
            "type": "dropdown",
            "title": "Pick one",
            "required": True,
            "properties": {
                "options": [{"id": "o1", "label": "Apple", "value": "a"}],
                "coverImage": "https://example.com/x.png",
            },
        },
        {
            "id": "q2",
            "type": "calculator",
            "title": "Total",
            "required": False,
            "properties": {"formula": "{{q1}} * 2", "decimalPlaces": 1, "prefix": "$"},
            "logic": {
                "id": "r1",
                "conditions": [{"id": "c1", "questionId": "q1", "operator": "is_not_empty"}],
                "conditionLogic": "or",
                "action": "skip",
                "jumpToQuestionId": "q3",
            },
        },
        {"id": "q3", "type": "thank_you", "title": "Bye"},
    ],
}


def test_json_roundtrip():
    form = build_example_team_survey()
    before = form_to_dict(form)
    restored = form_from_json(form_to_json(form))
    assert form_to_dict(restored) == before


def test_yaml_roundtrip():
    form = build_example_team_survey()
    before = form_to_dict(form)
    restored = form_from_yaml(form_to_yaml(form))
    assert form_to_dict(restored) == before


def test_roundtrip_preserves_equality():
    form = build_example_team_survey()
    assert form_from_json(form_to_json(form)) == form


def test_builder_payload_loads():
    form = form_from_dict(BUILDER_PAYLOAD)
    q1, q2, q3 = form.questions
    assert q1.type is QuestionType.DROPDOWN
    assert q1.properties.options[0].label == "Apple"
    assert q1.properties.extra == {"coverImage": "https://example.com/x.png"}
    assert q2.properties.formula == "{{q1}} * 2"
    assert q2.properties.decimal_places == 1
    assert q2.logic.condition_logic is ConditionLogic.OR
    assert q2.logic.action is RuleAction.SKIP
    assert q2.logic.jump_to_question_id == "q3"
    assert q2.logic.conditions[0].operator is LogicOperator.IS_NOT_EMPTY
    assert q3.logic is None


def test_builder_payload_roundtrip_keeps_extra_properties():
    out = form_to_dict(form_from_dict(BUILDER_PAYLOAD))
    assert out["questions"][0]["properties"]["coverImage"] == "https://example.com/x.png"
    assert out["questions"][1]["logic"]["jumpToQuestionId"] == "q3"
    assert "value" not in out["questions"][1]["logic"]["conditions"][0]


class TestLoadErrors:
    """Structurally invalid definitions raise FormDefinitionError."""

    def test_unknown_question_type(self):
        with pytest.raises(FormDefinitionError, match="Unknown question type"):
            form_from_dict({"questions": [{"id": "q1", "type": "hologram"}]})

    def test_unknown_operator(self):
        payload = {"questions": [{
            "id": "q1", "type": "number",
            "logic": {"conditions": [{"questionId": "q0", "operator": "matches"}]},
        }]}
        with pytest.raises(FormDefinitionError, match="operator"):
            form_from_dict(payload)

    def test_invalid_action(self):
        payload = {"questions": [{"id": "q1", "type": "number", "logic": {"action": "hide"}}]}
        with pytest.raises(FormDefinitionError):
            form_from_dict(payload)

    def test_missing_id(self):
        with pytest.raises(FormDefinitionError, match="'id'"):
            form_from_dict({"questions": [{"type": "number"}]})

    def test_not_an_object(self):
        with pytest.raises(FormDefinitionError):
            form_from_dict(["not", "a", "form"])

    def test_invalid_json(self):
        with pytest.raises(FormDefinitionError):
            form_from_json("{not json")

    def test_invalid_yaml(self):
        with pytest.raises(FormDefinitionError):
            form_from_yaml("questions: [unclosed")

    def test_error_is_value_error(self):
        with pytest.raises(ValueError):
            form_from_dict({"questions": [{"id": "q1", "type": "hologram"}]})


class TestNumericProperties:
    """Numeric question properties are coerced at load time."""

    def test_numeric_strings_coerced(self):
        payload = {"questions": [{
            "id": "r", "type": "rating",
            "properties": {"min": "1", "max": "10", "step": "0.5", "maxLength": "20", "decimalPlaces": "2"},
        }]}
        props = form_from_dict(payload).questions[0].properties
        assert props.min == 1 and isinstance(props.min, int)
        assert props.max == 10
        assert props.step == 0.5
        assert props.max_length == 20
        assert props.decimal_places == 2

    def test_coerced_max_is_usable(self):
        question = form_from_dict(
            {"questions": [{"id": "r", "type": "rating", "properties": {"max": "10"}}]}
        ).questions[0]
        assert validate_answer(question, 3).is_valid
        assert not validate_answer(question, 11).is_valid
        assert render_piped_text("{{r}}", [question], {"r": 7}) == "7/10"

    def test_blank_is_unset(self):
        payload = {"questions": [{"id": "n", "type": "number", "properties": {"min": "", "max": None}}]}
        props = form_from_dict(payload).questions[0].properties
        assert props.min is None and props.max is None

    @pytest.mark.parametrize("properties", [
        {"max": "ten"},
        {"min": True},
        {"decimalPlaces": 1.5},
        {"maxLength": -1},
    ])
    def test_invalid_numbers_rejected(self, properties):
        payload = {"questions": [{"id": "n", "type": "number", "properties": properties}]}
        with pytest.raises(FormDefinitionError, match="Question property"):
            form_from_dict(payload)
