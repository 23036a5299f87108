"""
Answer piping: replace {{questionId}} / {{questionId.property}} references
in text with a rendering of the referenced answer.

Rendering is type-aware (option labels instead of stored values, "Yes"/"No"
for yes/no questions, formatted addresses, ...). Unknown references are left
untouched so authoring mistakes stay visible.
"""
from __future__ import annotations

import json
import logging
import re
from datetime import date, datetime
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Union

from .config import DEFAULT_SETTINGS, EngineSettings
from .conditions import normalize_scalar
from .model import Answers, FormDefinition, Question
from .operators import NUMERIC_TYPES, QuestionType, SINGLE_CHOICE_TYPES

logger = logging.getLogger(__name__)

REFERENCE_RE = re.compile(r"\{\{([^{}]+)\}\}")
_REFERENCE_ID_RE = re.compile(r"\{\{\s*([^{}.]+?)\s*(?:\.[^{}]*)?\}\}")

ADDRESS_PARTS = ("street", "city", "state", "zip", "country")

QuestionSource = Union[FormDefinition, Sequence[Question]]


def _questions_of(source: QuestionSource) -> Sequence[Question]:
    if isinstance(source, FormDefinition):
        return source.questions
    return source


def _find(questions: Iterable[Question], question_id: str) -> Optional[Question]:
    for question in questions:
        if question.id == question_id:
            return question
    return None


def _plain(value: Any) -> str:
    if isinstance(value, (list, tuple)):
        return ",".join(_plain(v) for v in value)
    if isinstance(value, Mapping):
        return json.dumps(value, default=str)
    # Numbers print without a trailing ".0"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _label_for(question: Question, value: Any) -> str:
    option = question.properties.option_for_value(value)
    if option is not None and option.label:
        return option.label
    return _plain(value)


def _format_date(answer: Any, settings: EngineSettings) -> str:
    if isinstance(answer, (date, datetime)):
        return answer.strftime(settings.date_format)
    if not isinstance(answer, str):
        return _plain(answer)
    text = answer.strip()
    try:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        logger.debug("Unparsable date answer %r, piping raw value", answer)
        return answer
    return parsed.strftime(settings.date_format)


def render_answer(
    question: Question,
    answer: Any,
    prop: Optional[str] = None,
    settings: EngineSettings = DEFAULT_SETTINGS,
) -> str:
    """
    Render one answer for inclusion in text.

    Args:
        question: The referenced question
        answer: Its answer (None renders as empty string)
        prop: Optional sub-key (matrix row, address part)
        settings: Rendering settings
    """
    if answer is None:
        return ""
    sep = settings.list_separator
    qtype = question.type

    if qtype in SINGLE_CHOICE_TYPES:
        if isinstance(answer, (list, tuple, Mapping)):
            return _plain(answer)
        return _label_for(question, answer)

    if qtype == QuestionType.CHECKBOX:
        if isinstance(answer, (list, tuple)):
            return sep.join(_label_for(question, v) for v in answer)
        return _plain(answer)

    if qtype == QuestionType.RANKING:
        if isinstance(answer, (list, tuple)):
            return sep.join(f"{i}. {_plain(v)}" for i, v in enumerate(answer, start=1))
        return _plain(answer)

    if qtype == QuestionType.MATRIX:
        if isinstance(answer, Mapping) and prop:
            cell = answer.get(prop)
            return _plain(cell) if cell not in (None, "") else ""
        return json.dumps(answer, default=str)

    if qtype == QuestionType.ADDRESS:
        if isinstance(answer, Mapping):
            if prop:
                part = answer.get(prop)
                return _plain(part) if part not in (None, "") else ""
            parts = [answer.get(k) for k in ADDRESS_PARTS]
            return sep.join(_plain(p) for p in parts if p not in (None, ""))
        return _plain(answer)

    if qtype == QuestionType.YES_NO:
        if isinstance(answer, str):
            return "Yes" if normalize_scalar(answer, qtype) == "true" else "No"
        return "Yes" if answer else "No"

    if qtype == QuestionType.RATING:
        max_value = question.properties.max or settings.default_rating_max
        return f"{_plain(answer)}/{_plain(max_value)}"

    if qtype in NUMERIC_TYPES:
        return _plain(answer)

    if qtype == QuestionType.DATE:
        return _format_date(answer, settings)

    return _plain(answer)


def render_piped_text(
    text: str,
    questions: QuestionSource,
    answers: Answers,
    settings: Optional[EngineSettings] = None,
) -> str:
    """
    Substitute every {{ref}} token in `text`.

    - unknown question id: token kept verbatim
    - known question without an answer: empty string
    - otherwise: render_answer()
    """
    if not text:
        return text
    settings = settings or DEFAULT_SETTINGS
    pool = _questions_of(questions)

    def _substitute(match: "re.Match[str]") -> str:
        ref = match.group(1).strip()
        question_id, _, prop = ref.partition(".")
        question = _find(pool, question_id.strip())
        if question is None:
            return match.group(0)
        return render_answer(question, answers.get(question.id), prop.strip() or None, settings)

    return REFERENCE_RE.sub(_substitute, text)


def extract_field_references(text: Optional[str]) -> List[str]:
    """Unique question ids referenced in `text`, in order of first appearance."""
    if not text:
        return []
    seen: List[str] = []
    for match in _REFERENCE_ID_RE.finditer(text):
        ref = match.group(1).strip()
        if ref and ref not in seen:
            seen.append(ref)
    return seen


def has_piping_references(question: Question) -> bool:
    """True if the title or description contains a {{...}} reference."""
    return bool(REFERENCE_RE.search(question.title or "")) or bool(
        REFERENCE_RE.search(question.description or "")
    )


__all__ = [
    "render_piped_text",
    "render_answer",
    "extract_field_references",
    "has_piping_references",
]
