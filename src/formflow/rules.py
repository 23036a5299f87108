"""
Rule Resolver: turns a question's LogicRule into a visibility decision.

A rule's condition set is evaluated exactly once. SHOW uses the result,
SKIP uses its negation. Operators are never flipped to implement SKIP.
"""
from __future__ import annotations

import logging
from typing import List, Optional

from .conditions import evaluate_condition
from .model import Answers, FormDefinition, LogicRule, Question
from .operators import ConditionLogic, RuleAction

logger = logging.getLogger(__name__)


def _condition_results(
    rule: LogicRule,
    answers: Answers,
    form: Optional[FormDefinition],
    owner_id: Optional[str],
) -> List[bool]:
    if form is None:
        return [evaluate_condition(c, answers) for c in rule.conditions]

    positions = form.positions()
    owner_index = positions.get(owner_id, len(form.questions)) if owner_id is not None else len(form.questions)
    results: List[bool] = []
    for condition in rule.conditions:
        ref_index = positions.get(condition.question_id)
        if ref_index is None or ref_index >= owner_index:
            # Unknown or forward reference: condition not satisfied
            logger.warning(
                "Condition %s on %s references %s which is not an earlier question",
                condition.id, owner_id, condition.question_id,
            )
            results.append(False)
            continue
        ref_type = form.questions[ref_index].type
        results.append(evaluate_condition(condition, answers, question_type=ref_type))
    return results


def evaluate_rule(
    rule: LogicRule,
    answers: Answers,
    form: Optional[FormDefinition] = None,
    owner_id: Optional[str] = None,
) -> bool:
    """
    Combine a rule's conditions with its condition logic.

    AND over no conditions is True, OR over no conditions is False.

    When `form` is given, references are resolved against it: a condition
    pointing at an unknown question, or at one not positioned before
    `owner_id`, is not satisfied.
    """
    results = _condition_results(rule, answers, form, owner_id)
    if ConditionLogic(rule.condition_logic) == ConditionLogic.OR:
        return any(results)
    return all(results)


def is_visible(question: Question, answers: Answers, form: Optional[FormDefinition] = None) -> bool:
    """
    Decide whether a question is shown for the given answers.

    - No logic: always visible
    - SHOW: visible iff the rule's conditions hold
    - SKIP: visible iff they do not hold

    Pass `form` to resolve references: only then is a condition on an
    unknown or not-earlier question treated as not satisfied. Without it
    conditions see the answer map alone, so is_empty on a question that
    does not exist holds.
    """
    rule = question.logic
    if rule is None:
        return True
    matched = evaluate_rule(rule, answers, form=form, owner_id=question.id)
    if RuleAction(rule.action) == RuleAction.SKIP:
        return not matched
    return matched


# Public name used by the builder's logic preview
is_question_visible = is_visible


__all__ = ["evaluate_rule", "is_visible", "is_question_visible"]
