"""
Condition Evaluator: evaluates one LogicCondition against an answer map.

Semantics are data-driven: the operator decides the comparison, the
referenced question's type (when known) decides which operators are
allowed and how boolean-like operands are read.

This module never raises on malformed answers or operands. Anything that
cannot be compared evaluates to False.
"""
from __future__ import annotations

import json
import logging
import math
from typing import Any, List, Mapping, Optional

from .model import Answers, LogicCondition
from .operators import LogicOperator, QuestionType, operators_for

logger = logging.getLogger(__name__)

_TRUE_TOKENS = {"true", "yes", "1"}
_FALSE_TOKENS = {"false", "no", "0"}


def is_empty_answer(answer: Any) -> bool:
    """None, blank strings, empty lists and empty mappings count as empty."""
    if answer is None:
        return True
    if isinstance(answer, str):
        return answer.strip() == ""
    if isinstance(answer, (list, tuple, set, frozenset, Mapping)):
        return len(answer) == 0
    return False


def to_number(value: Any) -> Optional[float]:
    """
    Coerce an answer or operand to a finite float.

    Returns None for booleans, containers, blank or unparsable strings,
    non-finite numbers and integers too large for a float.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            num = float(value)
        except OverflowError:
            # int beyond float range
            return None
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            num = float(text)
        except ValueError:
            return None
    else:
        return None
    if not math.isfinite(num):
        return None
    return num


def normalize_scalar(value: Any, question_type: Optional[QuestionType] = None) -> str:
    """
    Render a scalar as the string used for equality comparison.

    - booleans become 'true' / 'false'
    - integral floats drop their fractional part (3.0 -> '3')
    - for yes/no questions, yes/no/1/0 tokens become 'true' / 'false'
    """
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and math.isfinite(value) and value.is_integer():
        return str(int(value))
    text = "" if value is None else str(value)
    if question_type == QuestionType.YES_NO:
        token = text.strip().lower()
        if token in _TRUE_TOKENS:
            return "true"
        if token in _FALSE_TOKENS:
            return "false"
    return text


def _is_sequence(value: Any) -> bool:
    return isinstance(value, (list, tuple))


def _serialize(answer: Any, question_type: Optional[QuestionType]) -> str:
    if _is_sequence(answer):
        return ",".join(normalize_scalar(v, question_type) for v in answer)
    if isinstance(answer, Mapping):
        return json.dumps(answer, sort_keys=True, separators=(",", ":"), default=str)
    return normalize_scalar(answer, question_type)


def _equals(answer: Any, operand: Any, question_type: Optional[QuestionType]) -> bool:
    return _serialize(answer, question_type) == normalize_scalar(operand, question_type)


def _contains(answer: Any, operand: Any, question_type: Optional[QuestionType]) -> bool:
    needle = normalize_scalar(operand, question_type)
    if _is_sequence(answer):
        members: List[str] = [normalize_scalar(v, question_type) for v in answer]
        return needle in members
    if isinstance(answer, Mapping):
        return needle in [normalize_scalar(v, question_type) for v in answer.values()]
    return needle.lower() in normalize_scalar(answer, question_type).lower()


def _compare(answer: Any, operand: Any, greater: bool) -> bool:
    left = to_number(answer)
    right = to_number(operand)
    if left is None or right is None:
        return False
    return left > right if greater else left < right


def evaluate_condition(
    condition: LogicCondition,
    answers: Answers,
    question_type: Optional[QuestionType] = None,
) -> bool:
    """
    Evaluate a single condition.

    Args:
        condition: The condition to evaluate
        answers: Answer map keyed by question id
        question_type: Type of the referenced question, when known. Enables
            operator validation and yes/no operand normalization.

    Returns:
        True if the condition is satisfied. An unanswered question satisfies
        only is_empty.
    """
    try:
        operator = LogicOperator(condition.operator)
    except ValueError:
        logger.debug("Unknown operator %r in condition %s", condition.operator, condition.id)
        return False

    if question_type is not None:
        try:
            question_type = QuestionType(question_type)
        except ValueError:
            question_type = None
    if question_type is not None and operator not in operators_for(question_type):
        logger.debug(
            "Operator %s not valid for %s question %s (condition %s)",
            operator.value, question_type.value, condition.question_id, condition.id,
        )
        return False

    answer = answers.get(condition.question_id)

    if operator == LogicOperator.IS_EMPTY:
        return is_empty_answer(answer)
    if operator == LogicOperator.IS_NOT_EMPTY:
        return not is_empty_answer(answer)

    # An unanswered question never satisfies a value comparison
    if answer is None:
        return False

    operand = condition.value
    # A containment test without an operand is never satisfied
    if operand is None and operator in (LogicOperator.CONTAINS, LogicOperator.NOT_CONTAINS):
        return False
    if operator == LogicOperator.EQUALS:
        return _equals(answer, operand, question_type)
    if operator == LogicOperator.NOT_EQUALS:
        return not _equals(answer, operand, question_type)
    if operator == LogicOperator.CONTAINS:
        return _contains(answer, operand, question_type)
    if operator == LogicOperator.NOT_CONTAINS:
        return not _contains(answer, operand, question_type)
    if operator == LogicOperator.GREATER_THAN:
        return _compare(answer, operand, greater=True)
    if operator == LogicOperator.LESS_THAN:
        return _compare(answer, operand, greater=False)

    raise AssertionError(f"Unhandled operator: {operator}")


__all__ = [
    "evaluate_condition",
    "is_empty_answer",
    "normalize_scalar",
    "to_number",
]
