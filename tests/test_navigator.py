"""
Tests for the Navigator.

Tests verify:
    - Forward traversal halts at the first visible question
    - Hidden questions fall through or follow valid jumps
    - Invalid jumps are ignored and reported, never followed
    - Traversal terminates within n transitions with a strictly increasing cursor
    - Backward navigation replays the recorded session path
    - Revalidation after an edited answer cuts the path and discards stale answers
"""

import random

from formflow.model import FormDefinition, LogicCondition, LogicRule, Question
from formflow.navigator import (
    NavigationResult,
    SessionPath,
    compute_next_question,
    compute_previous_question,
    progress,
    visible_questions,
)
from formflow.operators import ConditionLogic, LogicOperator, QuestionType, RuleAction


def cond(question_id, operator, value=None, cid="c"):
    return LogicCondition(id=cid, question_id=question_id, operator=operator, value=value)


def build_branching_form() -> FormDefinition:
    """
    q1 number
    q2 shown only if q1 > 10
    q3 skipped if q1 == 0, and then jump to q5
    q4
    q5
    """
    return FormDefinition(id="branching", questions=(
        Question(id="q1", type=QuestionType.NUMBER),
        Question(id="q2", type=QuestionType.SHORT_TEXT, logic=LogicRule(
            id="r2", conditions=(cond("q1", "greater_than", 10),), action=RuleAction.SHOW,
        )),
        Question(id="q3", type=QuestionType.YES_NO, logic=LogicRule(
            id="r3", conditions=(cond("q1", "equals", 0),), action=RuleAction.SKIP,
            jump_to_question_id="q5",
        )),
        Question(id="q4", type=QuestionType.SHORT_TEXT),
        Question(id="q5", type=QuestionType.EMAIL),
    ))


class TestForwardTraversal:
    """Test compute_next_question."""

    def test_session_start(self):
        result = compute_next_question(build_branching_form(), {}, None)
        assert result == NavigationResult(question_id="q1", cursor=0, steps=0)

    def test_negative_cursor_means_start(self):
        result = compute_next_question(build_branching_form(), {}, -1)
        assert result.cursor == 0

    def test_hidden_question_falls_through(self):
        result = compute_next_question(build_branching_form(), {"q1": 5}, 0)
        assert result.question_id == "q3"
        assert result.cursor == 2
        assert result.steps == 1

    def test_visible_question_halts(self):
        result = compute_next_question(build_branching_form(), {"q1": 20}, 0)
        assert result.question_id == "q2"
        assert result.steps == 0

    def test_hidden_question_follows_jump(self):
        result = compute_next_question(build_branching_form(), {"q1": 0}, 0)
        assert result.question_id == "q5"
        assert result.cursor == 4
        assert result.steps == 2
        assert result.ignored_jumps == ()

    def test_end_of_form(self):
        result = compute_next_question(build_branching_form(), {"q1": 5}, 4)
        assert result.end is True
        assert result.question_id is None
        assert result.cursor is None

    def test_cursor_past_end(self):
        assert compute_next_question(build_branching_form(), {}, 99).end is True

    def test_empty_form(self):
        assert compute_next_question(FormDefinition(), {}, None).end is True

    def test_does_not_mutate_answers(self):
        answers = {"q1": 0}
        compute_next_question(build_branching_form(), answers, 0)
        assert answers == {"q1": 0}


class TestJumpFromAnsweredQuestion:
    """A visible question whose rule holds transfers control to its jump target."""

    def _form(self):
        return FormDefinition(questions=(
            Question(id="a", type=QuestionType.YES_NO),
            Question(id="b", type=QuestionType.SHORT_TEXT, logic=LogicRule(
                id="rb", conditions=(cond("a", "equals", "yes"),),
                action=RuleAction.SHOW, jump_to_question_id="d",
            )),
            Question(id="c", type=QuestionType.SHORT_TEXT),
            Question(id="d", type=QuestionType.SHORT_TEXT),
        ))

    def test_jump_after_answering(self):
        result = compute_next_question(self._form(), {"a": True, "b": "x"}, 1)
        assert result.question_id == "d"

    def test_no_jump_when_rule_false(self):
        result = compute_next_question(self._form(), {"a": False}, 0)
        assert result.question_id == "c"


class TestInvalidJumps:
    """Jumps to unknown or not-later questions are ignored."""

    def _form(self):
        always = (cond("a", "is_not_empty"),)
        return FormDefinition(questions=(
            Question(id="a", type=QuestionType.NUMBER),
            Question(id="b", type=QuestionType.NUMBER, logic=LogicRule(
                id="rb", conditions=always, action=RuleAction.SKIP, jump_to_question_id="a",
            )),
            Question(id="c", type=QuestionType.NUMBER, logic=LogicRule(
                id="rc", conditions=always, action=RuleAction.SKIP, jump_to_question_id="c",
            )),
            Question(id="d", type=QuestionType.NUMBER, logic=LogicRule(
                id="rd", conditions=always, action=RuleAction.SKIP, jump_to_question_id="ghost",
            )),
            Question(id="e", type=QuestionType.NUMBER),
        ))

    def test_invalid_jumps_fall_through(self):
        result = compute_next_question(self._form(), {"a": 1}, 0)
        assert result.question_id == "e"
        assert result.steps == 3

    def test_invalid_jumps_reported(self):
        result = compute_next_question(self._form(), {"a": 1}, 0)
        reasons = [(j.question_id, j.target_id, j.reason) for j in result.ignored_jumps]
        assert reasons == [
            ("b", "a", "not_forward"),
            ("c", "c", "not_forward"),
            ("d", "ghost", "unknown_target"),
        ]


def _random_form(rng: random.Random, n: int) -> FormDefinition:
    ids = [f"q{i}" for i in range(n)]
    questions = []
    for i, qid in enumerate(ids):
        logic = None
        if rng.random() < 0.8:
            conditions = []
            for k in range(rng.randint(0, 2)):
                ref = rng.choice(ids + ["ghost"])
                op = rng.choice(list(LogicOperator))
                conditions.append(LogicCondition(id=f"c{k}", question_id=ref, operator=op, value=rng.randint(0, 3)))
            logic = LogicRule(
                id=f"r{i}",
                conditions=tuple(conditions),
                condition_logic=rng.choice(list(ConditionLogic)),
                action=rng.choice(list(RuleAction)),
                jump_to_question_id=rng.choice(ids + ["ghost", None]),
            )
        questions.append(Question(id=qid, type=QuestionType.NUMBER, logic=logic))
    return FormDefinition(questions=tuple(questions))


def test_traversal_terminates_with_increasing_cursor():
    """Adversarial jump configurations never loop."""
    rng = random.Random(1234)
    for _ in range(200):
        n = rng.randint(1, 12)
        form = _random_form(rng, n)
        answers = {f"q{i}": rng.randint(0, 3) for i in range(n) if rng.random() < 0.7}

        cursor = None
        visits = 0
        while True:
            result = compute_next_question(form, answers, cursor)
            assert result.steps <= n
            if result.end:
                break
            if cursor is not None:
                assert result.cursor > cursor
            cursor = result.cursor
            visits += 1
            assert visits <= n
        for jump in result.ignored_jumps:
            assert jump.reason in ("not_forward", "unknown_target")


class TestVisibleQuestions:
    """Test visible_questions and progress."""

    def test_visible_questions(self):
        form = build_branching_form()
        ids = [q.id for q in visible_questions(form, {"q1": 5})]
        assert ids == ["q1", "q3", "q4", "q5"]

    def test_progress(self):
        form = build_branching_form()
        assert progress(form, {"q1": 5}, None) == 0.0
        assert progress(form, {"q1": 5}, 2) == 0.5
        assert progress(form, {"q1": 5}, 4) == 1.0


class TestSessionPath:
    """Test backward navigation over the recorded path."""

    def _walk(self, form, answers):
        path = SessionPath()
        cursor = None
        while True:
            result = compute_next_question(form, answers, cursor)
            if result.end:
                return path
            path = path.advance(result)
            cursor = result.cursor

    def test_advance_records_cursors(self):
        path = self._walk(build_branching_form(), {"q1": 0})
        assert path.cursors == (0, 4)
        assert path.current == 4

    def test_advance_ignores_end(self):
        path = SessionPath((0,))
        assert path.advance(NavigationResult.end_of_form()) is path

    def test_back(self):
        path, previous = SessionPath((0, 2, 3)).back()
        assert previous == 2
        assert path.cursors == (0, 2)
        empty, none = SessionPath().back()
        assert none is None and empty.cursors == ()

    def test_previous_replays_path(self):
        """Going back from q5 after a jump returns to q1, not to the skipped q4."""
        path = self._walk(build_branching_form(), {"q1": 0})
        assert compute_previous_question(path, 4) == 0
        assert compute_previous_question(path, 0) is None

    def test_previous_skips_unanswered(self):
        form = build_branching_form()
        path = SessionPath((0, 2, 3))
        answers = {"q1": 5, "q4": "x"}
        assert compute_previous_question(path, 4, form=form, answers=answers) == 3
        assert compute_previous_question(path, 3, form=form, answers=answers) == 0


class TestRevalidation:
    """Replay-with-revalidation after an earlier answer is edited."""

    def test_unchanged_path_kept(self):
        form = build_branching_form()
        answers = {"q1": 20, "q2": "a", "q3": True, "q4": "b"}
        path = SessionPath((0, 1, 2, 3))
        outcome = path.revalidate(form, dict(answers, q2="edited"))
        assert outcome.path.cursors == (0, 1, 2, 3)
        assert outcome.discarded == ()
        assert outcome.changed_at is None

    def test_divergence_discards_later_answers(self):
        form = build_branching_form()
        answers = {"q1": 5, "q2": "a", "q3": True, "q4": "b"}
        path = SessionPath((0, 1, 2, 3))
        outcome = path.revalidate(form, answers)
        assert outcome.path.cursors == (0,)
        assert outcome.discarded == ("q2", "q3", "q4")
        assert outcome.changed_at == "q2"
        assert outcome.answers == {"q1": 5}
        # Input left untouched
        assert answers["q2"] == "a"
