"""
Prefill: turn URL query parameters into initial answers.

Parameters are matched to questions by an explicit mapping, then by
question id, then by a sanitized version of the question title. Values
are coerced to the answer shape the question type expects.
"""
from __future__ import annotations

import json
import re
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional

from .model import FormDefinition, Question
from .operators import NUMERIC_TYPES, QuestionType, SINGLE_CHOICE_TYPES

_NOT_PREFILLABLE = {
    QuestionType.WELCOME,
    QuestionType.THANK_YOU,
    QuestionType.CALCULATOR,
    QuestionType.SIGNATURE,
}

_EXAMPLES = {
    QuestionType.SHORT_TEXT: "John Doe",
    QuestionType.LONG_TEXT: "John Doe",
    QuestionType.EMAIL: "john@example.com",
    QuestionType.NUMBER: "42",
    QuestionType.PHONE: "+1234567890",
    QuestionType.URL: "https://example.com",
    QuestionType.DATE: "2024-01-15",
    QuestionType.YES_NO: "yes",
    QuestionType.RATING: "5",
    QuestionType.SCALE: "5",
    QuestionType.NPS: "9",
    QuestionType.SLIDER: "50",
}


def _sanitize(text: str) -> str:
    return re.sub(r"[^a-z0-9]", "", text.lower())


def parse_prefill_value(value: str, question: Question) -> Any:
    """Coerce a raw query-string value for `question`."""
    qtype = question.type

    if qtype in NUMERIC_TYPES:
        try:
            return float(value) if "." in value else int(value)
        except ValueError:
            return value

    if qtype == QuestionType.YES_NO:
        return value.lower() in ("yes", "1", "true")

    if qtype in (QuestionType.CHECKBOX, QuestionType.RANKING):
        return [v.strip() for v in value.split(",")]

    if qtype in SINGLE_CHOICE_TYPES:
        for option in question.properties.options:
            if option.value == value or option.label.lower() == value.lower():
                return option.value
        return value

    if qtype == QuestionType.DATE:
        try:
            return datetime.fromisoformat(value.strip()).date().isoformat()
        except ValueError:
            return value

    if qtype == QuestionType.ADDRESS:
        try:
            parsed = json.loads(value)
        except ValueError:
            return {"street": value}
        return parsed if isinstance(parsed, dict) else value

    return value


def _match_question(form: FormDefinition, key: str, mapping: Mapping[str, str]) -> Optional[Question]:
    if key in mapping:
        return form.get_question(mapping[key])
    question = form.get_question(key)
    if question is not None:
        return question
    wanted = _sanitize(key)
    for candidate in form.questions:
        if _sanitize(candidate.title) == wanted:
            return candidate
    return None


def prefill_answers(
    form: FormDefinition,
    params: Mapping[str, str],
    mapping: Optional[Mapping[str, str]] = None,
) -> Dict[str, Any]:
    """
    Build an initial answer map from query parameters.

    Args:
        form: The form being prefilled
        params: Query parameters (name -> raw value)
        mapping: Optional explicit parameter name -> question id mapping
    """
    mapping = mapping or {}
    prefilled: Dict[str, Any] = {}
    for key, value in params.items():
        question = _match_question(form, key, mapping)
        if question is None or question.type in _NOT_PREFILLABLE:
            continue
        prefilled[question.id] = parse_prefill_value(str(value), question)
    return prefilled


def prefill_documentation(form: FormDefinition) -> List[Dict[str, str]]:
    """Example prefill value for every prefillable question, for share panels."""
    docs: List[Dict[str, str]] = []
    for q in form.questions:
        if q.type in _NOT_PREFILLABLE:
            continue
        if q.type in SINGLE_CHOICE_TYPES:
            example = q.properties.options[0].value if q.properties.options else "option_1"
        elif q.type == QuestionType.CHECKBOX:
            values = [o.value for o in q.properties.options[:2]]
            example = ",".join(values) if values else "option_1,option_2"
        else:
            example = _EXAMPLES.get(q.type, "value")
        docs.append({"id": q.id, "title": q.title or "Untitled", "type": q.type.value, "example": example})
    return docs


__all__ = ["parse_prefill_value", "prefill_answers", "prefill_documentation"]
