"""
Serialization helpers for form definitions (FormDefinition, Question, LogicRule, ...).

Provides lossless JSON/YAML round-trip via an intermediate dict
representation. Keys use the camelCase names the form builder stores
(questionId, conditionLogic, jumpToQuestionId, decimalPlaces, ...).

This is the load boundary: structurally invalid input raises
FormDefinitionError here, so evaluation code never sees it.
"""
from __future__ import annotations

import json
from typing import Any, Dict, List

import yaml

from formflow.conditions import to_number
from formflow.errors import FormDefinitionError
from formflow.model import (
    FormDefinition,
    GridItem,
    LogicCondition,
    LogicRule,
    Option,
    Question,
    QuestionProperties,
)

# camelCase storage key -> QuestionProperties field
_PROPERTY_KEYS = {
    "placeholder": "placeholder",
    "min": "min",
    "max": "max",
    "step": "step",
    "maxLength": "max_length",
    "formula": "formula",
    "decimalPlaces": "decimal_places",
    "prefix": "prefix",
    "suffix": "suffix",
}
_STRUCTURED_KEYS = {"options", "rows", "columns", "addressFields"}
_NUMERIC_KEYS = {"min", "max", "step"}
_INTEGER_KEYS = {"maxLength", "decimalPlaces"}


def _require(d: Any, key: str, what: str) -> Any:
    if not isinstance(d, dict):
        raise FormDefinitionError(f"{what} must be an object, got {type(d).__name__}")
    if key not in d or d[key] is None:
        raise FormDefinitionError(f"{what} is missing required field '{key}'")
    return d[key]


def _coerce_number(value: Any, key: str) -> Any:
    """Numeric property as int or float. Numeric strings are accepted."""
    if value is None or value == "":
        return None
    num = to_number(value)
    if num is None:
        raise FormDefinitionError(f"Question property '{key}' must be a number, got {value!r}")
    if key in _INTEGER_KEYS:
        if not num.is_integer() or num < 0:
            raise FormDefinitionError(f"Question property '{key}' must be a non-negative integer, got {value!r}")
        return int(num)
    if isinstance(value, (int, float)):
        return value
    return int(num) if num.is_integer() else num


def option_to_dict(o: Option) -> Dict[str, Any]:
    return {"id": o.id, "label": o.label, "value": o.value}


def option_from_dict(d: Dict[str, Any]) -> Option:
    value = _require(d, "value", "Option")
    return Option(id=str(d.get("id", value)), label=str(d.get("label", value)), value=str(value))


def grid_item_to_dict(g: GridItem) -> Dict[str, Any]:
    return {"id": g.id, "label": g.label}


def grid_item_from_dict(d: Dict[str, Any]) -> GridItem:
    item_id = _require(d, "id", "Matrix row/column")
    return GridItem(id=str(item_id), label=str(d.get("label", item_id)))


def properties_to_dict(p: QuestionProperties) -> Dict[str, Any]:
    out: Dict[str, Any] = dict(p.extra)
    for key, attr in _PROPERTY_KEYS.items():
        value = getattr(p, attr)
        if value is not None:
            out[key] = value
    if p.options:
        out["options"] = [option_to_dict(o) for o in p.options]
    if p.rows:
        out["rows"] = [grid_item_to_dict(r) for r in p.rows]
    if p.columns:
        out["columns"] = [grid_item_to_dict(c) for c in p.columns]
    if p.address_fields:
        out["addressFields"] = list(p.address_fields)
    return out


def properties_from_dict(d: Dict[str, Any] | None) -> QuestionProperties:
    if d is None:
        return QuestionProperties()
    if not isinstance(d, dict):
        raise FormDefinitionError("Question properties must be an object")
    kwargs: Dict[str, Any] = {attr: d.get(key) for key, attr in _PROPERTY_KEYS.items()}
    for key in _NUMERIC_KEYS | _INTEGER_KEYS:
        kwargs[_PROPERTY_KEYS[key]] = _coerce_number(d.get(key), key)
    extra = {k: v for k, v in d.items() if k not in _PROPERTY_KEYS and k not in _STRUCTURED_KEYS}
    return QuestionProperties(
        options=tuple(option_from_dict(o) for o in d.get("options") or []),
        rows=tuple(grid_item_from_dict(r) for r in d.get("rows") or []),
        columns=tuple(grid_item_from_dict(c) for c in d.get("columns") or []),
        address_fields=tuple(d.get("addressFields") or []),
        extra=extra,
        **kwargs,
    )


def condition_to_dict(c: LogicCondition) -> Dict[str, Any]:
    out: Dict[str, Any] = {"id": c.id, "questionId": c.question_id, "operator": c.operator.value}
    if c.value is not None:
        out["value"] = c.value
    return out


def condition_from_dict(d: Dict[str, Any]) -> LogicCondition:
    operator = _require(d, "operator", "Logic condition")
    try:
        return LogicCondition(
            id=str(d.get("id", "")),
            question_id=str(_require(d, "questionId", "Logic condition")),
            operator=operator,
            value=d.get("value"),
        )
    except ValueError:
        raise FormDefinitionError(f"Unknown logic operator: {operator!r}")


def rule_to_dict(r: LogicRule) -> Dict[str, Any]:
    out: Dict[str, Any] = {
        "id": r.id,
        "conditions": [condition_to_dict(c) for c in r.conditions],
        "conditionLogic": r.condition_logic.value,
        "action": r.action.value,
    }
    if r.jump_to_question_id:
        out["jumpToQuestionId"] = r.jump_to_question_id
    return out


def rule_from_dict(d: Dict[str, Any] | None) -> LogicRule | None:
    if d is None:
        return None
    if not isinstance(d, dict):
        raise FormDefinitionError("Logic rule must be an object")
    conditions = [condition_from_dict(c) for c in d.get("conditions") or []]
    try:
        return LogicRule(
            id=str(d.get("id", "")),
            conditions=tuple(conditions),
            condition_logic=d.get("conditionLogic", "and"),
            action=d.get("action", "show"),
            jump_to_question_id=d.get("jumpToQuestionId") or None,
        )
    except ValueError as e:
        raise FormDefinitionError(f"Invalid logic rule: {e}")


def question_to_dict(q: Question) -> Dict[str, Any]:
    out: Dict[str, Any] = {
        "id": q.id,
        "type": q.type.value,
        "title": q.title,
        "required": q.required,
        "properties": properties_to_dict(q.properties),
    }
    if q.description is not None:
        out["description"] = q.description
    if q.logic is not None:
        out["logic"] = rule_to_dict(q.logic)
    return out


def question_from_dict(d: Dict[str, Any]) -> Question:
    qtype = _require(d, "type", "Question")
    try:
        return Question(
            id=str(_require(d, "id", "Question")),
            type=qtype,
            title=d.get("title", ""),
            description=d.get("description"),
            required=bool(d.get("required", False)),
            properties=properties_from_dict(d.get("properties")),
            logic=rule_from_dict(d.get("logic")),
        )
    except ValueError as e:
        if isinstance(e, FormDefinitionError):
            raise
        raise FormDefinitionError(f"Unknown question type: {qtype!r}")


def form_to_dict(f: FormDefinition) -> Dict[str, Any]:
    return {
        "id": f.id,
        "title": f.title,
        "questions": [question_to_dict(q) for q in f.questions],
        "metadata": dict(f.metadata),
    }


def form_from_dict(d: Dict[str, Any]) -> FormDefinition:
    if not isinstance(d, dict):
        raise FormDefinitionError("Form definition must be an object")
    questions: List[Question] = [question_from_dict(q) for q in d.get("questions") or []]
    return FormDefinition(
        id=str(d.get("id", "")),
        title=d.get("title", ""),
        questions=tuple(questions),
        metadata=d.get("metadata") or {},
    )


def form_to_json(f: FormDefinition) -> str:
    return json.dumps(form_to_dict(f), sort_keys=True)


def form_from_json(s: str) -> FormDefinition:
    try:
        d = json.loads(s)
    except json.JSONDecodeError as e:
        raise FormDefinitionError(f"Invalid JSON: {e}")
    return form_from_dict(d)


def form_to_yaml(f: FormDefinition) -> str:
    return yaml.safe_dump(form_to_dict(f), allow_unicode=True)


def form_from_yaml(s: str) -> FormDefinition:
    try:
        d = yaml.safe_load(s)
    except yaml.YAMLError as e:
        raise FormDefinitionError(f"Invalid YAML: {e}")
    return form_from_dict(d)
