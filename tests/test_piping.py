"""
Tests for answer piping.

Tests verify the per-type rendering contract, handling of unknown and
unanswered references, and the reference extraction helpers.
"""

import pytest
from formflow.config import EngineSettings
from formflow.model import FormDefinition, GridItem, Option, Question, QuestionProperties
from formflow.operators import QuestionType
from formflow.piping import (
    extract_field_references,
    has_piping_references,
    render_piped_text,
)

FRUIT = QuestionProperties(options=(
    Option(id="1", label="Apple", value="a"),
    Option(id="2", label="Banana", value="b"),
))


def q(qid, qtype, **props):
    return Question(id=qid, type=qtype, properties=QuestionProperties(**props))


class TestReferences:
    """Unknown / unanswered / malformed references."""

    def test_unknown_question_left_verbatim(self):
        text = "Hello {{nobody}}!"
        assert render_piped_text(text, [q("q1", QuestionType.SHORT_TEXT)], {}) == text

    def test_unanswered_renders_empty(self):
        assert render_piped_text("Hi {{q1}}.", [q("q1", QuestionType.SHORT_TEXT)], {}) == "Hi ."

    def test_whitespace_inside_braces(self):
        qs = [q("q1", QuestionType.SHORT_TEXT)]
        assert render_piped_text("{{ q1 }}", qs, {"q1": "Ada"}) == "Ada"

    def test_unclosed_token_kept(self):
        qs = [q("q1", QuestionType.SHORT_TEXT)]
        assert render_piped_text("{{q1", qs, {"q1": "Ada"}) == "{{q1"

    def test_empty_text(self):
        assert render_piped_text("", [], {}) == ""

    def test_accepts_form_definition(self):
        form = FormDefinition(questions=(q("q1", QuestionType.SHORT_TEXT),))
        assert render_piped_text("{{q1}}", form, {"q1": "Ada"}) == "Ada"


class TestTypeRendering:
    """Per-type rendering contract."""

    def test_yes_no(self):
        qs = [q("q1", QuestionType.YES_NO)]
        assert render_piped_text("{{q1}}", qs, {"q1": True}) == "Yes"
        assert render_piped_text("{{q1}}", qs, {"q1": False}) == "No"

    def test_checkbox_labels(self):
        qs = [Question(id="q1", type=QuestionType.CHECKBOX, properties=FRUIT)]
        assert render_piped_text("{{q1}}", qs, {"q1": ["a", "b"]}) == "Apple, Banana"

    def test_choice_label_with_fallback(self):
        qs = [Question(id="q1", type=QuestionType.DROPDOWN, properties=FRUIT)]
        assert render_piped_text("{{q1}}", qs, {"q1": "b"}) == "Banana"
        assert render_piped_text("{{q1}}", qs, {"q1": "kiwi"}) == "kiwi"

    def test_ranking(self):
        qs = [q("q1", QuestionType.RANKING)]
        assert render_piped_text("{{q1}}", qs, {"q1": ["x", "y"]}) == "1. x, 2. y"

    def test_matrix_cell_and_full(self):
        qs = [q("q1", QuestionType.MATRIX, rows=(GridItem("r1", "Row 1"),))]
        answers = {"q1": {"r1": "good"}}
        assert render_piped_text("{{q1.r1}}", qs, answers) == "good"
        assert render_piped_text("{{q1.r2}}", qs, answers) == ""
        assert render_piped_text("{{q1}}", qs, answers) == '{"r1": "good"}'

    def test_address(self):
        qs = [q("q1", QuestionType.ADDRESS)]
        answers = {"q1": {"street": "1 Main St", "city": "Springfield", "state": "", "zip": "12345"}}
        assert render_piped_text("{{q1}}", qs, answers) == "1 Main St, Springfield, 12345"
        assert render_piped_text("{{q1.city}}", qs, answers) == "Springfield"
        assert render_piped_text("{{q1.country}}", qs, answers) == ""

    def test_rating_uses_configured_max(self):
        assert render_piped_text("{{q1}}", [q("q1", QuestionType.RATING, max=10)], {"q1": 7}) == "7/10"

    def test_rating_default_max(self):
        assert render_piped_text("{{q1}}", [q("q1", QuestionType.RATING)], {"q1": 4}) == "4/5"

    @pytest.mark.parametrize("qtype", [
        QuestionType.NUMBER, QuestionType.SLIDER, QuestionType.SCALE, QuestionType.NPS,
    ])
    def test_numeric_types(self, qtype):
        assert render_piped_text("{{q1}}", [q("q1", qtype)], {"q1": 9.0}) == "9"
        assert render_piped_text("{{q1}}", [q("q1", qtype)], {"q1": 2.5}) == "2.5"

    def test_date_formatting(self):
        qs = [q("q1", QuestionType.DATE)]
        assert render_piped_text("{{q1}}", qs, {"q1": "2024-01-15"}) == "01/15/2024"

    def test_date_custom_format(self):
        qs = [q("q1", QuestionType.DATE)]
        settings = EngineSettings(date_format="%Y/%m/%d")
        assert render_piped_text("{{q1}}", qs, {"q1": "2024-01-15"}, settings) == "2024/01/15"

    def test_unparsable_date_falls_back(self):
        qs = [q("q1", QuestionType.DATE)]
        assert render_piped_text("{{q1}}", qs, {"q1": "next tuesday"}) == "next tuesday"

    def test_default_plain_string(self):
        qs = [q("q1", QuestionType.EMAIL)]
        assert render_piped_text("Mail: {{q1}}", qs, {"q1": "a@b.co"}) == "Mail: a@b.co"

    def test_list_answer_joined_without_brackets(self):
        qs = [q("q1", QuestionType.FILE_UPLOAD)]
        assert render_piped_text("Files: {{q1}}", qs, {"q1": ["a.pdf", "b.pdf"]}) == "Files: a.pdf,b.pdf"

    def test_list_matrix_cell(self):
        qs = [q("q1", QuestionType.MATRIX)]
        assert render_piped_text("{{q1.r1}}", qs, {"q1": {"r1": ["x", 2.0]}}) == "x,2"

    def test_multiple_references(self):
        qs = [q("a", QuestionType.SHORT_TEXT), q("b", QuestionType.NUMBER)]
        out = render_piped_text("{{a}} is {{b}} ({{c}})", qs, {"a": "Ada", "b": 36})
        assert out == "Ada is 36 ({{c}})"


class TestReferenceHelpers:
    """Test extract_field_references / has_piping_references."""

    def test_extract_unique_in_order(self):
        text = "{{b}} and {{a.city}} and {{ b }}"
        assert extract_field_references(text) == ["b", "a"]

    def test_extract_none(self):
        assert extract_field_references(None) == []
        assert extract_field_references("no refs") == []

    def test_has_piping_references(self):
        assert has_piping_references(Question(id="x", type=QuestionType.SHORT_TEXT, title="Hi {{q1}}"))
        assert has_piping_references(
            Question(id="x", type=QuestionType.SHORT_TEXT, title="Hi", description="{{q1}}")
        )
        assert not has_piping_references(Question(id="x", type=QuestionType.SHORT_TEXT, title="Hi"))
