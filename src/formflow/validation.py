"""
Answer validation per question type.

Checks a single answer (required-ness, format, range, option membership)
and whole answer maps. Results are plain values; nothing raises.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterable, Optional

from .conditions import is_empty_answer, to_number
from .model import Answers, FormDefinition, Question
from .operators import DISPLAY_ONLY_TYPES, QuestionType
from .rules import is_visible

EMAIL_RE = re.compile(
    r"^[a-zA-Z0-9.!#$%&'*+/=?^_`{|}~-]+@[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?"
    r"(?:\.[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?)*$"
)
PHONE_RE = re.compile(
    r"^[+]?[(]?[0-9]{1,4}[)]?[-\s.]?[(]?[0-9]{1,4}[)]?[-\s.]?[0-9]{1,4}[-\s.]?[0-9]{1,9}$"
)
URL_RE = re.compile(
    r"^(https?://)?(www\.)?[-a-zA-Z0-9@:%._+~#=]{1,256}\.[a-zA-Z0-9()]{1,6}\b"
    r"([-a-zA-Z0-9()@:%_+.~#?&/=]*)$"
)


@dataclass(frozen=True)
class ValidationResult:
    is_valid: bool
    error: Optional[str] = None


@dataclass(frozen=True)
class FormValidation:
    is_valid: bool
    errors: Dict[str, str] = field(default_factory=dict)


VALID = ValidationResult(True)


def _invalid(message: str) -> ValidationResult:
    return ValidationResult(False, message)


def _number_error(num: Optional[float], lo: Optional[float], hi: Optional[float]) -> Optional[str]:
    if num is not None and (lo is None or num >= lo) and (hi is None or num <= hi):
        return None
    if lo is not None and hi is not None:
        return f"Please enter a number between {lo:g} and {hi:g}"
    if lo is not None:
        return f"Please enter a number greater than or equal to {lo:g}"
    if hi is not None:
        return f"Please enter a number less than or equal to {hi:g}"
    return "Please enter a valid number"


def validate_answer(question: Question, answer: Any) -> ValidationResult:
    """
    Validate a single answer against its question.

    Empty answers are valid for optional questions and invalid for required
    ones. Non-empty answers are checked according to the question type.
    """
    qtype = question.type
    if qtype in DISPLAY_ONLY_TYPES or qtype == QuestionType.CALCULATOR:
        return VALID

    if is_empty_answer(answer):
        return _invalid("This field is required") if question.required else VALID

    props = question.properties
    value = str(answer)

    if qtype == QuestionType.EMAIL:
        if not EMAIL_RE.match(value):
            return _invalid("Please enter a valid email address")

    elif qtype == QuestionType.PHONE:
        digits = re.sub(r"\D", "", value)
        if len(digits) < 7 or not PHONE_RE.match(re.sub(r"\s", "", value)):
            return _invalid("Please enter a valid phone number")

    elif qtype == QuestionType.URL:
        if not URL_RE.match(value):
            return _invalid("Please enter a valid URL (e.g., https://example.com)")

    elif qtype == QuestionType.NUMBER:
        error = _number_error(to_number(answer), props.min, props.max)
        if error:
            return _invalid(error)

    elif qtype in (QuestionType.SHORT_TEXT, QuestionType.LONG_TEXT):
        if props.max_length is not None and len(value) > props.max_length:
            return _invalid(f"Please enter no more than {props.max_length} characters")

    elif qtype in (QuestionType.MULTIPLE_CHOICE, QuestionType.DROPDOWN):
        if props.option_for_value(value) is None:
            return _invalid("Please select a valid option")

    elif qtype == QuestionType.DATE:
        try:
            datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            return _invalid("Please enter a valid date")

    elif qtype == QuestionType.RATING:
        rating = to_number(answer)
        max_rating = props.max or 5
        if rating is None or rating < 1 or rating > max_rating:
            return _invalid("Please select a rating")

    elif qtype == QuestionType.SCALE:
        scale = to_number(answer)
        lo = props.min if props.min is not None else 1
        hi = props.max if props.max is not None else 10
        if scale is None or scale < lo or scale > hi:
            return _invalid(f"Please select a value between {lo:g} and {hi:g}")

    elif qtype in (QuestionType.CHECKBOX, QuestionType.FILE_UPLOAD, QuestionType.RANKING):
        if not isinstance(answer, (list, tuple)):
            return _invalid("Please select at least one option")

    return VALID


def validate_form(
    questions: Iterable[Question] | FormDefinition,
    answers: Answers,
    only_visible: bool = False,
) -> FormValidation:
    """
    Validate every answer of a form.

    With only_visible=True (requires a FormDefinition), questions hidden by
    logic under the given answers are not validated.
    """
    form = questions if isinstance(questions, FormDefinition) else None
    pool = form.questions if form is not None else list(questions)

    errors: Dict[str, str] = {}
    for question in pool:
        if question.type in DISPLAY_ONLY_TYPES:
            continue
        if only_visible and form is not None and not is_visible(question, answers, form=form):
            continue
        result = validate_answer(question, answers.get(question.id))
        if not result.is_valid and result.error:
            errors[question.id] = result.error
    return FormValidation(is_valid=not errors, errors=errors)


__all__ = ["ValidationResult", "FormValidation", "validate_answer", "validate_form"]
