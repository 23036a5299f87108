"""
Navigator: walks the ordered question sequence of a response session.

States:
    - an integer cursor into FormDefinition.questions
    - END (cursor past the last question)

Forward transition from cursor i:
    1. i past the last question -> END
    2. question i visible -> halt, this is the question to render
    3. otherwise advance: to the rule's jump target when the rule's
       conditions hold and the target lies strictly after i, else to i + 1

Jump targets that are unknown or not strictly forward are ignored and
reported in NavigationResult.ignored_jumps. Because the cursor strictly
increases, a traversal over n questions takes at most n transitions.

Backward navigation replays the path recorded in a SessionPath instead of
re-deriving historical visibility.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from .model import Answers, FormDefinition, Question
from .operators import DISPLAY_ONLY_TYPES
from .rules import evaluate_rule, is_visible

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IgnoredJump:
    """A jump edge the navigator refused to follow."""

    question_id: str
    target_id: str
    reason: str


@dataclass(frozen=True)
class NavigationResult:
    """
    Outcome of one forward traversal.

    Properties:
        question_id: Question to render, None at END
        cursor: Its position, None at END
        end: True when the form is exhausted
        steps: Transitions taken past hidden questions
        ignored_jumps: Invalid jump edges met on the way, for diagnostics
    """

    question_id: Optional[str]
    cursor: Optional[int]
    end: bool = False
    steps: int = 0
    ignored_jumps: Tuple[IgnoredJump, ...] = ()

    @classmethod
    def end_of_form(cls, steps: int = 0, ignored_jumps: Tuple[IgnoredJump, ...] = ()) -> "NavigationResult":
        return cls(question_id=None, cursor=None, end=True, steps=steps, ignored_jumps=ignored_jumps)


def _jump_target(
    form: FormDefinition,
    positions: Dict[str, int],
    index: int,
    answers: Answers,
    ignored: List[IgnoredJump],
) -> Optional[int]:
    """Index to jump to from `index`, or None to fall through."""
    question = form.questions[index]
    rule = question.logic
    if rule is None or not rule.jump_to_question_id:
        return None
    if not evaluate_rule(rule, answers, form=form, owner_id=question.id):
        return None

    target_id = rule.jump_to_question_id
    target = positions.get(target_id)
    if target is None:
        reason = "unknown_target"
    elif target <= index:
        reason = "not_forward"
    else:
        return target

    logger.warning(
        "Ignoring jump from %s to %s (%s)", question.id, target_id, reason,
    )
    ignored.append(IgnoredJump(question_id=question.id, target_id=target_id, reason=reason))
    return None


def compute_next_question(
    form: FormDefinition,
    answers: Answers,
    current_cursor: Optional[int] = None,
) -> NavigationResult:
    """
    Compute the next question to render.

    Args:
        form: The form being filled in
        answers: Answers known at the time of the call
        current_cursor: Position of the question just answered, or None
            (or a negative number) when the session is starting

    Returns:
        NavigationResult naming the next visible question, or END
    """
    n = len(form.questions)
    positions = form.positions()
    ignored: List[IgnoredJump] = []

    if current_cursor is None or current_cursor < 0:
        i = 0
    else:
        i = current_cursor + 1
        if current_cursor < n:
            target = _jump_target(form, positions, current_cursor, answers, ignored)
            if target is not None:
                i = target

    steps = 0
    while i < n:
        question = form.questions[i]
        if is_visible(question, answers, form=form):
            return NavigationResult(
                question_id=question.id,
                cursor=i,
                steps=steps,
                ignored_jumps=tuple(ignored),
            )
        target = _jump_target(form, positions, i, answers, ignored)
        i = target if target is not None else i + 1
        steps += 1

    return NavigationResult.end_of_form(steps=steps, ignored_jumps=tuple(ignored))


def visible_questions(form: FormDefinition, answers: Answers) -> List[Question]:
    """All questions visible under the given answers, in form order."""
    return [q for q in form.questions if is_visible(q, answers, form=form)]


def progress(form: FormDefinition, answers: Answers, cursor: Optional[int]) -> float:
    """
    Fraction of visible questions reached, counting the one at `cursor`.

    Returns 0.0 before the session starts and 1.0 for a form with nothing visible.
    """
    if cursor is None or cursor < 0:
        return 0.0
    visible = [i for i, q in enumerate(form.questions) if is_visible(q, answers, form=form)]
    if not visible:
        return 1.0
    reached = sum(1 for i in visible if i <= cursor)
    return reached / len(visible)


# =========================================================================
# SESSION PATH (BACKWARD NAVIGATION)
# =========================================================================


@dataclass(frozen=True)
class SessionPath:
    """
    Cursors of the questions actually shown in a session, in order.

    Immutable: every operation returns a new path.
    """

    cursors: Tuple[int, ...] = ()

    @property
    def current(self) -> Optional[int]:
        return self.cursors[-1] if self.cursors else None

    def advance(self, result: NavigationResult) -> "SessionPath":
        """Record the question a forward traversal landed on. END records nothing."""
        if result.end or result.cursor is None:
            return self
        return SessionPath(self.cursors + (result.cursor,))

    def back(self) -> Tuple["SessionPath", Optional[int]]:
        """Drop the current question and return the one shown before it."""
        if not self.cursors:
            return self, None
        remaining = SessionPath(self.cursors[:-1])
        return remaining, remaining.current

    def revalidate(self, form: FormDefinition, answers: Answers) -> "Revalidation":
        """
        Replay the recorded path against the current answers.

        Each recorded step is recomputed with compute_next_question. At the
        first step whose outcome differs (an edited answer changed which
        question comes next), the path is cut and every answer collected
        for the dropped questions is discarded. `answers` is not modified.
        """
        kept: List[int] = []
        previous: Optional[int] = None
        for cursor in self.cursors:
            expected = compute_next_question(form, answers, previous)
            if expected.end or expected.cursor != cursor:
                break
            kept.append(cursor)
            previous = cursor

        dropped = self.cursors[len(kept):]
        discarded_ids = tuple(
            form.questions[c].id for c in dropped if 0 <= c < len(form.questions)
        )
        pruned: Dict[str, Any] = {k: v for k, v in answers.items() if k not in discarded_ids}
        changed_at = discarded_ids[0] if discarded_ids else None
        if changed_at is not None:
            logger.info(
                "Session path diverged at %s; discarding answers for %s",
                changed_at, ", ".join(discarded_ids),
            )
        return Revalidation(
            path=SessionPath(tuple(kept)),
            answers=pruned,
            discarded=discarded_ids,
            changed_at=changed_at,
        )


@dataclass(frozen=True)
class Revalidation:
    """Result of SessionPath.revalidate."""

    path: SessionPath
    answers: Dict[str, Any] = field(default_factory=dict)
    discarded: Tuple[str, ...] = ()
    changed_at: Optional[str] = None


def compute_previous_question(
    path: SessionPath,
    current_cursor: Optional[int],
    form: Optional[FormDefinition] = None,
    answers: Optional[Answers] = None,
) -> Optional[int]:
    """
    Find the question to return to when the respondent presses "previous".

    Scans the recorded path downward from `current_cursor`. When `form` and
    `answers` are both given, questions without a recorded answer are passed
    over (welcome / thank-you screens never carry an answer and are kept).

    Returns:
        The cursor to go back to, or None at the start of the session
    """
    for cursor in reversed(path.cursors):
        if current_cursor is not None and cursor >= current_cursor:
            continue
        if form is not None and answers is not None and 0 <= cursor < len(form.questions):
            question = form.questions[cursor]
            if question.type not in DISPLAY_ONLY_TYPES and answers.get(question.id) is None:
                continue
        return cursor
    return None


__all__ = [
    "IgnoredJump",
    "NavigationResult",
    "compute_next_question",
    "compute_previous_question",
    "visible_questions",
    "progress",
    "SessionPath",
    "Revalidation",
]
