"""
Operator Catalog for formflow

Closed vocabularies used by conditional logic, and the lookup tables that
say which comparison operators make sense for which question type.

Everything here is pure data. Nothing in this module looks at answers.

ARCHITECTURAL RULE:
    Adding a question type is a single-point change: add the enum member
    and place it in exactly one of the type groups below. Every other
    component dispatches on these groups.
"""

from __future__ import annotations

from enum import Enum
from typing import Dict, FrozenSet, Tuple


class QuestionType(str, Enum):
    """
    The closed set of question types a form can contain.

    Values are the storage tokens written by the form builder.
    """

    SHORT_TEXT = "short_text"
    LONG_TEXT = "long_text"
    EMAIL = "email"
    NUMBER = "number"
    PHONE = "phone"
    URL = "url"
    ADDRESS = "address"
    MULTIPLE_CHOICE = "multiple_choice"
    CHECKBOX = "checkbox"
    DROPDOWN = "dropdown"
    YES_NO = "yes_no"
    RANKING = "ranking"
    MATRIX = "matrix"
    RATING = "rating"
    SCALE = "scale"
    SLIDER = "slider"
    NPS = "nps"
    DATE = "date"
    FILE_UPLOAD = "file_upload"
    SIGNATURE = "signature"
    PAYMENT = "payment"
    CALCULATOR = "calculator"
    WELCOME = "welcome"
    THANK_YOU = "thank_you"


class LogicOperator(str, Enum):
    """
    Comparison operators available to a logic condition.

    Declaration order is the canonical order used by the catalog.
    """

    EQUALS = "equals"
    NOT_EQUALS = "not_equals"
    CONTAINS = "contains"
    NOT_CONTAINS = "not_contains"
    GREATER_THAN = "greater_than"
    LESS_THAN = "less_than"
    IS_EMPTY = "is_empty"
    IS_NOT_EMPTY = "is_not_empty"


class ConditionLogic(str, Enum):
    """How the conditions of one rule are combined."""

    AND = "and"
    OR = "or"


class RuleAction(str, Enum):
    """What a rule does to its owning question when its conditions hold."""

    SHOW = "show"
    SKIP = "skip"


# =========================================================================
# TYPE GROUPS
# =========================================================================

FREE_TEXT_TYPES: FrozenSet[QuestionType] = frozenset({
    QuestionType.SHORT_TEXT,
    QuestionType.LONG_TEXT,
    QuestionType.EMAIL,
    QuestionType.PHONE,
    QuestionType.URL,
})

NUMERIC_TYPES: FrozenSet[QuestionType] = frozenset({
    QuestionType.NUMBER,
    QuestionType.RATING,
    QuestionType.SCALE,
    QuestionType.SLIDER,
    QuestionType.NPS,
})

SINGLE_CHOICE_TYPES: FrozenSet[QuestionType] = frozenset({
    QuestionType.MULTIPLE_CHOICE,
    QuestionType.DROPDOWN,
})

MULTI_SELECT_TYPES: FrozenSet[QuestionType] = frozenset({
    QuestionType.CHECKBOX,
})

# Single-value types that support equality comparison
EQUALITY_TYPES: FrozenSet[QuestionType] = (
    FREE_TEXT_TYPES
    | NUMERIC_TYPES
    | SINGLE_CHOICE_TYPES
    | MULTI_SELECT_TYPES
    | frozenset({QuestionType.YES_NO, QuestionType.DATE})
)

CONTAINMENT_TYPES: FrozenSet[QuestionType] = FREE_TEXT_TYPES | MULTI_SELECT_TYPES

# Screens that never collect an answer
DISPLAY_ONLY_TYPES: FrozenSet[QuestionType] = frozenset({
    QuestionType.WELCOME,
    QuestionType.THANK_YOU,
})

EMPTINESS_OPERATORS: FrozenSet[LogicOperator] = frozenset({
    LogicOperator.IS_EMPTY,
    LogicOperator.IS_NOT_EMPTY,
})


def _build_catalog() -> Dict[QuestionType, Tuple[LogicOperator, ...]]:
    catalog: Dict[QuestionType, Tuple[LogicOperator, ...]] = {}
    for qtype in QuestionType:
        allowed = set(EMPTINESS_OPERATORS)
        if qtype in EQUALITY_TYPES:
            allowed.update({LogicOperator.EQUALS, LogicOperator.NOT_EQUALS})
        if qtype in CONTAINMENT_TYPES:
            allowed.update({LogicOperator.CONTAINS, LogicOperator.NOT_CONTAINS})
        if qtype in NUMERIC_TYPES:
            allowed.update({LogicOperator.GREATER_THAN, LogicOperator.LESS_THAN})
        catalog[qtype] = tuple(op for op in LogicOperator if op in allowed)
    return catalog


_CATALOG = _build_catalog()


def operators_for(question_type: QuestionType) -> Tuple[LogicOperator, ...]:
    """
    Return the operators valid for a question type, in canonical order.

    Emptiness operators are valid for every type.
    """
    return _CATALOG[QuestionType(question_type)]


def operator_requires_operand(operator: LogicOperator) -> bool:
    """False only for is_empty / is_not_empty."""
    return LogicOperator(operator) not in EMPTINESS_OPERATORS


_DEFAULT_LABELS: Dict[LogicOperator, str] = {
    LogicOperator.EQUALS: "equals",
    LogicOperator.NOT_EQUALS: "does not equal",
    LogicOperator.CONTAINS: "contains",
    LogicOperator.NOT_CONTAINS: "does not contain",
    LogicOperator.GREATER_THAN: "is greater than",
    LogicOperator.LESS_THAN: "is less than",
    LogicOperator.IS_EMPTY: "is empty",
    LogicOperator.IS_NOT_EMPTY: "is not empty",
}

# Choice-like questions read better as "is" / "is answered"
_CHOICE_LABELS: Dict[LogicOperator, str] = {
    LogicOperator.EQUALS: "is",
    LogicOperator.NOT_EQUALS: "is not",
    LogicOperator.IS_NOT_EMPTY: "is answered",
}

_CHOICE_LABEL_TYPES = SINGLE_CHOICE_TYPES | MULTI_SELECT_TYPES | frozenset({
    QuestionType.YES_NO,
    QuestionType.DATE,
})


def operator_label(operator: LogicOperator, question_type: QuestionType | None = None) -> str:
    """Human-readable label for an operator, as shown in the logic editor."""
    operator = LogicOperator(operator)
    if question_type is not None and QuestionType(question_type) in _CHOICE_LABEL_TYPES:
        if operator in _CHOICE_LABELS:
            return _CHOICE_LABELS[operator]
    return _DEFAULT_LABELS[operator]


__all__ = [
    "QuestionType",
    "LogicOperator",
    "ConditionLogic",
    "RuleAction",
    "FREE_TEXT_TYPES",
    "NUMERIC_TYPES",
    "SINGLE_CHOICE_TYPES",
    "MULTI_SELECT_TYPES",
    "DISPLAY_ONLY_TYPES",
    "EMPTINESS_OPERATORS",
    "operators_for",
    "operator_requires_operand",
    "operator_label",
]
