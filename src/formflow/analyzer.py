"""
Form Analyzer — load-time diagnostics of a FormDefinition's logic.

This module provides lightweight analysis of form definitions:
    - Reference integrity (conditions, jumps, piping, formulas)
    - Operator / question-type compatibility
    - Questions that can never be shown
    - Logic inventory and coverage counts

IMPORTANT: This does NOT modify the form. It only produces read-only
reports. The evaluators tolerate every issue reported here by ignoring
the broken edge; callers that prefer to reject a broken form up front
use ensure_valid().
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Set

from formflow.errors import InvalidFormDefinition
from formflow.model import FormDefinition, Question
from formflow.operators import (
    ConditionLogic,
    QuestionType,
    RuleAction,
    operator_requires_operand,
    operators_for,
)
from formflow.piping import extract_field_references

ERROR = "error"
WARNING = "warning"


@dataclass(frozen=True)
class FormIssue:
    """A single diagnostic."""

    code: str
    question_id: str
    message: str
    severity: str = ERROR


@dataclass
class FormReport:
    """Analysis report for a form definition."""

    form_id: str
    total_questions: int = 0
    questions_with_logic: int = 0
    total_conditions: int = 0
    total_jumps: int = 0
    piped_questions: int = 0
    calculator_questions: int = 0

    # question id -> number of conditions referencing it
    reference_usage: Dict[str, int] = field(default_factory=dict)
    never_shown: Set[str] = field(default_factory=set)

    issues: List[FormIssue] = field(default_factory=list)

    def add_issue(self, code: str, question_id: str, message: str, severity: str = ERROR) -> None:
        """Add an issue to the report, ignoring exact duplicates."""
        issue = FormIssue(code=code, question_id=question_id, message=message, severity=severity)
        if issue not in self.issues:
            self.issues.append(issue)

    @property
    def errors(self) -> List[FormIssue]:
        return [i for i in self.issues if i.severity == ERROR]

    @property
    def warnings(self) -> List[FormIssue]:
        return [i for i in self.issues if i.severity == WARNING]

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def issues_for(self, question_id: str) -> List[FormIssue]:
        return [i for i in self.issues if i.question_id == question_id]


def _check_rule(report: FormReport, question: Question, index: int,
                positions: Dict[str, int], by_id: Dict[str, Question]) -> None:
    rule = question.logic
    if rule is None:
        return

    report.questions_with_logic += 1
    report.total_conditions += len(rule.conditions)

    for condition in rule.conditions:
        ref = condition.question_id
        report.reference_usage[ref] = report.reference_usage.get(ref, 0) + 1

        if ref not in positions:
            report.add_issue(
                "unknown_condition_reference", question.id,
                f"Condition {condition.id} on {question.id} references unknown question {ref}",
            )
            continue
        if positions[ref] >= index:
            report.add_issue(
                "forward_condition_reference", question.id,
                f"Condition {condition.id} on {question.id} references {ref}, which is not before it",
            )
            continue

        ref_type = by_id[ref].type
        if condition.operator not in operators_for(ref_type):
            report.add_issue(
                "incompatible_operator", question.id,
                f"Operator {condition.operator.value} is not valid for {ref_type.value} question {ref}",
            )
        if operator_requires_operand(condition.operator) and condition.value in (None, ""):
            report.add_issue(
                "missing_operand", question.id,
                f"Condition {condition.id} on {question.id} needs a value for {condition.operator.value}",
                severity=WARNING,
            )

    if rule.jump_to_question_id:
        report.total_jumps += 1
        target = positions.get(rule.jump_to_question_id)
        if target is None:
            report.add_issue(
                "unknown_jump_target", question.id,
                f"{question.id} jumps to unknown question {rule.jump_to_question_id}",
            )
        elif target <= index:
            report.add_issue(
                "backward_jump", question.id,
                f"{question.id} jumps to {rule.jump_to_question_id}, which is not after it",
            )

    # SHOW with an empty OR can never hold
    if (rule.action == RuleAction.SHOW and not rule.conditions
            and rule.condition_logic == ConditionLogic.OR):
        report.never_shown.add(question.id)


def analyze_form(form: FormDefinition) -> FormReport:
    """
    Perform analysis of a FormDefinition.

    Checks for:
    - Duplicate question ids
    - Conditions referencing unknown or not-earlier questions
    - Operators invalid for the referenced question type
    - Jumps to unknown or not-later questions
    - Piping / formula references to unknown questions
    - Calculator questions without a formula
    - Questions that can never be shown

    Returns a FormReport with counts and issues.
    """
    report = FormReport(form_id=form.id)
    report.total_questions = len(form.questions)

    positions = form.positions()
    by_id = {q.id: q for q in reversed(form.questions)}

    seen: Set[str] = set()
    for question in form.questions:
        if question.id in seen:
            report.add_issue(
                "duplicate_question_id", question.id,
                f"Question id {question.id} is used more than once",
            )
        seen.add(question.id)

    for index, question in enumerate(form.questions):
        _check_rule(report, question, index, positions, by_id)

        piped = extract_field_references(question.title) + extract_field_references(question.description)
        if piped:
            report.piped_questions += 1
        for ref in piped:
            if ref not in positions:
                report.add_issue(
                    "unknown_piping_reference", question.id,
                    f"{question.id} pipes unknown question {ref}",
                    severity=WARNING,
                )

        if question.type == QuestionType.CALCULATOR:
            report.calculator_questions += 1
            formula = question.properties.formula
            if not formula:
                report.add_issue(
                    "missing_formula", question.id,
                    f"Calculator {question.id} has no formula",
                    severity=WARNING,
                )
            for ref in extract_field_references(formula):
                if ref not in positions:
                    report.add_issue(
                        "unknown_formula_reference", question.id,
                        f"Calculator {question.id} references unknown question {ref}",
                    )

    for question_id in sorted(report.never_shown):
        report.add_issue(
            "never_shown", question_id,
            f"{question_id} can never be shown (show rule with no conditions under OR)",
            severity=WARNING,
        )

    return report


def ensure_valid(form: FormDefinition) -> FormReport:
    """Analyze `form` and raise InvalidFormDefinition if it has errors."""
    report = analyze_form(form)
    if not report.is_valid:
        raise InvalidFormDefinition(report.errors)
    return report


__all__ = ["FormIssue", "FormReport", "analyze_form", "ensure_valid", "ERROR", "WARNING"]
