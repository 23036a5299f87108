"""
formflow — response-flow evaluation core for a form builder.

Given a form definition (ordered questions with optional logic rules) and
the answers collected so far, this package decides:
    - which question to show next (show / skip / jump logic)
    - how {{questionId}} references render inside question text
    - what a calculator question's formula evaluates to

ARCHITECTURAL GUARANTEE:
------------------------
This package contains ZERO knowledge of:
    - Storage of forms or responses
    - Authentication
    - UI rendering or transport formats

Every evaluation function is pure and total: configuration and input
problems degrade to False / None / literal text rather than raising.
"""

from formflow.calculator import evaluate_calculator, format_calculated_value
from formflow.model import FormDefinition, LogicCondition, LogicRule, Option, Question
from formflow.navigator import NavigationResult, SessionPath, compute_next_question
from formflow.operators import ConditionLogic, LogicOperator, QuestionType, RuleAction
from formflow.piping import render_piped_text
from formflow.rules import is_question_visible

__version__ = "0.1.0"

__all__ = [
    "FormDefinition",
    "Question",
    "Option",
    "LogicCondition",
    "LogicRule",
    "QuestionType",
    "LogicOperator",
    "ConditionLogic",
    "RuleAction",
    "NavigationResult",
    "SessionPath",
    "compute_next_question",
    "is_question_visible",
    "render_piped_text",
    "evaluate_calculator",
    "format_calculated_value",
]
