"""
Graphviz DOT diagram generator for form logic flow.

Converts a FormDefinition into Graphviz DOT format, the offline
counterpart of the builder's logic-flow panel.

Supports multiple modes:
    - SIMPLE: Sequence edges and jump edges
    - DETAILED: Adds condition summaries to nodes and jump edges
    - LOGIC_ONLY: Only questions that carry logic, plus their jump targets
"""

from enum import Enum
from typing import List, Set

from formflow.model import FormDefinition, LogicCondition, LogicRule, Question
from formflow.operators import QuestionType, operator_label


class DotMode(Enum):
    """Visualization modes for DOT output."""
    SIMPLE = "simple"          # Sequence + jumps
    DETAILED = "detailed"      # Include conditions
    LOGIC_ONLY = "logic_only"  # Only questions with logic


_NODE_COLORS = {
    QuestionType.WELCOME: "lightgreen",
    QuestionType.THANK_YOU: "lightgreen",
    QuestionType.CALCULATOR: "khaki",
}


def _escape_dot_string(s: str) -> str:
    """Escape special characters for DOT labels."""
    if not s:
        return '""'
    # Escape backslashes first, then quotes, then turn newlines into \n
    s = s.replace('\\', '\\\\')
    s = s.replace('"', '\\"')
    s = s.replace('\n', '\\n')
    return f'"{s}"'


def _escape_dot_id(identifier: str) -> str:
    """Escape/quote an identifier for DOT."""
    if not identifier or identifier[0].isdigit() or not identifier.replace('_', '').isalnum():
        return _escape_dot_string(identifier)
    return identifier


def _condition_label(condition: LogicCondition, form: FormDefinition) -> str:
    ref = form.get_question(condition.question_id)
    label = operator_label(condition.operator, ref.type if ref else None)
    if condition.value is None:
        return f"{condition.question_id} {label}"
    return f"{condition.question_id} {label} {condition.value}"


def _rule_label(rule: LogicRule, form: FormDefinition) -> str:
    joiner = f" {rule.condition_logic.value.upper()} "
    conditions = joiner.join(_condition_label(c, form) for c in rule.conditions)
    return f"{rule.action.value.upper()} if {conditions or '(no conditions)'}"


def _node_line(question: Question, index: int, form: FormDefinition, mode: DotMode) -> str:
    label = f"{index + 1}. {question.title or question.id}"
    if mode == DotMode.DETAILED and question.logic is not None:
        label = f"{label}\n{_rule_label(question.logic, form)}"
    color = _NODE_COLORS.get(question.type, "lightblue")
    if question.logic is not None and question.type not in _NODE_COLORS:
        color = "lightyellow"
    return f'  {_escape_dot_id(question.id)} [label={_escape_dot_string(label)}, fillcolor={color}];'


def generate_dot(form: FormDefinition, mode: DotMode = DotMode.SIMPLE) -> str:
    """
    Generate Graphviz DOT format for a form's logic flow.

    Sequence edges are solid, jump edges are dashed. Jumps that the
    navigator would ignore (unknown or not-forward target) are drawn red.

    Args:
        form: FormDefinition to visualize
        mode: Visualization mode (SIMPLE, DETAILED, LOGIC_ONLY)

    Returns:
        String containing DOT graph definition
    """
    lines: List[str] = []

    lines.append("digraph form {")
    lines.append("  rankdir=TB;")
    lines.append("  node [shape=box, style=filled, fillcolor=lightblue];")

    positions = form.positions()

    if mode == DotMode.LOGIC_ONLY:
        included: Set[str] = set()
        for q in form.questions:
            if q.logic is not None:
                included.add(q.id)
                included.update(c.question_id for c in q.logic.conditions if c.question_id in positions)
                if q.logic.jump_to_question_id in positions:
                    included.add(q.logic.jump_to_question_id)
    else:
        included = {q.id for q in form.questions}

    # =========================================================================
    # NODES
    # =========================================================================

    lines.append('  START [shape=ellipse, fillcolor=lightgreen, label="START"];')
    lines.append('  END [shape=ellipse, fillcolor=lightgrey, label="END"];')

    for index, question in enumerate(form.questions):
        if question.id in included:
            lines.append(_node_line(question, index, form, mode))

    # =========================================================================
    # SEQUENCE EDGES
    # =========================================================================

    ordered = [q.id for q in form.questions if q.id in included]
    chain = ["START"] + ordered + ["END"]
    for a, b in zip(chain, chain[1:]):
        lines.append(f"  {_escape_dot_id(a)} -> {_escape_dot_id(b)};")

    # =========================================================================
    # JUMP EDGES
    # =========================================================================

    for index, question in enumerate(form.questions):
        rule = question.logic
        if rule is None or not rule.jump_to_question_id or question.id not in included:
            continue
        target = rule.jump_to_question_id
        target_index = positions.get(target)
        attrs = ["style=dashed"]
        if target_index is None or target_index <= index:
            attrs.append("color=red")
            attrs.append('label="ignored jump"')
            if target_index is None:
                lines.append(f'  {_escape_dot_id(target)} [shape=octagon, fillcolor=pink];')
        elif mode == DotMode.DETAILED:
            jump_label = _rule_label(rule, form)
            # Shorten for readability
            if len(jump_label) > 40:
                jump_label = jump_label[:37] + "..."
            attrs.append(f"label={_escape_dot_string(jump_label)}")
        lines.append(f"  {_escape_dot_id(question.id)} -> {_escape_dot_id(target)} [{', '.join(attrs)}];")

    lines.append("}")

    return "\n".join(lines)


def save_dot_file(form: FormDefinition, filename: str, mode: DotMode = DotMode.SIMPLE) -> None:
    """
    Generate DOT and save to file.

    Args:
        form: Form to visualize
        filename: Output file path (.dot extension recommended)
        mode: Visualization mode
    """
    dot = generate_dot(form, mode=mode)
    with open(filename, 'w') as f:
        f.write(dot)


__all__ = ["DotMode", "generate_dot", "save_dot_file"]
