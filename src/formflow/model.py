"""
Core Form Model Objects

Defines the data structures a response session is evaluated against:
    - Options (choices of a choice question)
    - Questions (ordered nodes of a form)
    - Logic conditions and rules (show / skip / jump)
    - Form definitions (root container)

ARCHITECTURAL RULE:
    These objects:
        - Are immutable (frozen dataclasses holding tuples)
        - Know nothing about storage, transport or rendering
        - Represent configuration, not behavior

    They are authored by the form builder before a session starts and are
    never mutated by any evaluation component.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from .operators import ConditionLogic, LogicOperator, QuestionType, RuleAction

# Operand of a logic condition
Scalar = Union[str, int, float, bool]

# Answers are keyed by question id; values are type-dependent
Answers = Mapping[str, Any]


@dataclass(frozen=True)
class Option:
    """
    One selectable choice of a multiple choice, checkbox, dropdown or ranking question.

    Properties:
        id: Stable option identifier
        label: Text shown to the respondent
        value: Token stored in the answer map when selected
    """

    id: str
    label: str
    value: str


@dataclass(frozen=True)
class GridItem:
    """A row or column of a matrix question."""

    id: str
    label: str


@dataclass(frozen=True)
class QuestionProperties:
    """
    Type-specific settings of a question.

    Only the settings the evaluation core reads are modelled as fields.
    Everything else the builder stores (images, payment links, ...) is kept
    in `extra` so a load/save round-trip is lossless.
    """

    placeholder: Optional[str] = None
    options: Tuple[Option, ...] = ()
    min: Optional[float] = None
    max: Optional[float] = None
    step: Optional[float] = None
    max_length: Optional[int] = None
    rows: Tuple[GridItem, ...] = ()
    columns: Tuple[GridItem, ...] = ()
    address_fields: Tuple[str, ...] = ()
    formula: Optional[str] = None
    decimal_places: Optional[int] = None
    prefix: Optional[str] = None
    suffix: Optional[str] = None
    extra: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "options", tuple(self.options))
        object.__setattr__(self, "rows", tuple(self.rows))
        object.__setattr__(self, "columns", tuple(self.columns))
        object.__setattr__(self, "address_fields", tuple(self.address_fields))

    def option_for_value(self, value: Any) -> Optional[Option]:
        """Return the option whose stored value equals `value`, if any."""
        for option in self.options:
            if option.value == value:
                return option
        return None


@dataclass(frozen=True)
class LogicCondition:
    """
    One comparison inside a logic rule.

    Properties:
        id: Condition identifier
        question_id: The question whose answer is tested. Must be positioned
            before the question that owns the rule.
        operator: LogicOperator
        value: Operand. Ignored for is_empty / is_not_empty.

    Example:
        "q1 equals 'yes'"

        LogicCondition(
            id="c1",
            question_id="q1",
            operator=LogicOperator.EQUALS,
            value="yes",
        )
    """

    id: str
    question_id: str
    operator: LogicOperator
    value: Optional[Scalar] = None

    def __post_init__(self):
        object.__setattr__(self, "operator", LogicOperator(self.operator))


@dataclass(frozen=True)
class LogicRule:
    """
    Conditional logic attached to exactly one question.

    Properties:
        id: Rule identifier
        conditions: Ordered conditions
        condition_logic: AND / OR, applied across all conditions
        action: SHOW (visible when conditions hold) or SKIP (hidden when they hold)
        jump_to_question_id: Optional question strictly later in the form to
            transfer control to when the conditions hold

    IMPORTANT:
        SHOW and SKIP are duals over a single evaluation of the conditions.
    """

    id: str
    conditions: Tuple[LogicCondition, ...] = ()
    condition_logic: ConditionLogic = ConditionLogic.AND
    action: RuleAction = RuleAction.SHOW
    jump_to_question_id: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "conditions", tuple(self.conditions))
        object.__setattr__(self, "condition_logic", ConditionLogic(self.condition_logic))
        object.__setattr__(self, "action", RuleAction(self.action))


@dataclass(frozen=True)
class Question:
    """
    A single question (or display screen) of a form.

    Properties:
        id: Unique identifier within the form
        type: QuestionType
        title: Question text, may contain {{questionId}} piping references
        description: Optional help text, may also contain references
        required: Whether an answer must be given
        properties: QuestionProperties
        logic: Optional LogicRule
    """

    id: str
    type: QuestionType
    title: str = ""
    description: Optional[str] = None
    required: bool = False
    properties: QuestionProperties = field(default_factory=QuestionProperties)
    logic: Optional[LogicRule] = None

    def __post_init__(self):
        object.__setattr__(self, "type", QuestionType(self.type))


@dataclass(frozen=True)
class FormDefinition:
    """
    Root container: the ordered questions of one form.

    Position in `questions` is the default traversal order and is
    significant. It does not change during a response session.

    INVARIANTS (checked by the analyzer, tolerated by the evaluators):
        - Question ids are unique
        - Conditions reference questions positioned before their owner
        - Jump targets are positioned after their owner
    """

    id: str = ""
    title: str = ""
    questions: Tuple[Question, ...] = ()
    metadata: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "questions", tuple(self.questions))

    def __len__(self) -> int:
        return len(self.questions)

    def get_question(self, question_id: str) -> Optional[Question]:
        """
        Retrieve a question by ID.

        Returns:
            Question object or None if not found
        """
        for question in self.questions:
            if question.id == question_id:
                return question
        return None

    def index_of(self, question_id: str) -> int:
        """
        Position of a question in the sequence.

        Returns:
            Zero-based index, or -1 if the id is unknown
        """
        for i, question in enumerate(self.questions):
            if question.id == question_id:
                return i
        return -1

    def positions(self) -> Dict[str, int]:
        """Map of question id to position. First occurrence wins on duplicates."""
        out: Dict[str, int] = {}
        for i, question in enumerate(self.questions):
            out.setdefault(question.id, i)
        return out


__all__ = [
    "Scalar",
    "Answers",
    "Option",
    "GridItem",
    "QuestionProperties",
    "LogicCondition",
    "LogicRule",
    "Question",
    "FormDefinition",
]
