"""
Calculator: evaluates arithmetic formulas over prior answers.

Formula syntax:
    {{questionId}} references, numbers, + - * / and parentheses.
    Example: "{{q1}} * {{q2}} + 10"

Pipeline:
    1. Substitute every reference with a numeric string
    2. Sanitize: reject anything but digits, whitespace, '.', + - * / ( )
    3. Tokenize and evaluate with a small recursive-descent parser

Nothing here raises to the caller. Every failure returns None.
"""
from __future__ import annotations

import logging
import math
import re
from typing import Any, List, Optional, Tuple, Union

from .config import DEFAULT_SETTINGS, EngineSettings
from .conditions import to_number
from .model import Answers, Question

logger = logging.getLogger(__name__)

Number = Union[int, float]

_REFERENCE_RE = re.compile(r"\{\{([^{}]+)\}\}")
_SAFE_RE = re.compile(r"^[\d\s+\-*/().]+$")
_TOKEN_RE = re.compile(r"\s*(?:(\d+(?:\.\d*)?|\.\d+)|(.))")

# Deepest parenthesis / unary-sign nesting the parser accepts
MAX_NESTING = 100


class FormulaError(Exception):
    """Internal: raised while parsing a sanitized expression."""
    pass


def _numeric_string(num: float) -> str:
    if num.is_integer():
        return str(int(num))
    text = repr(num)
    if "e" in text:
        # No exponent notation: it would not survive sanitization
        text = format(num, ".20f").rstrip("0").rstrip(".")
    return text


def answer_to_number(answer: Any) -> float:
    """
    Coerce an answer for use in a formula.

    - numbers and numeric strings: their value
    - lists: sum of the numeric elements, or the element count if none are numeric
    - integers too large for a float: infinity, so the formula fails
    - anything else (missing, text, booleans): 0
    """
    if isinstance(answer, (list, tuple)):
        numbers = [to_number(v) for v in answer]
        numeric = [n for n in numbers if n is not None]
        if numeric:
            return float(sum(numeric))
        return float(len(answer))
    num = to_number(answer)
    if num is None and isinstance(answer, int) and not isinstance(answer, bool):
        return math.inf if answer > 0 else -math.inf
    return 0.0 if num is None else num


def substitute_references(formula: str, answers: Answers) -> str:
    """Replace each {{questionId}} with the numeric value of its answer."""

    def _replace(match: "re.Match[str]") -> str:
        question_id = match.group(1).strip()
        value = answer_to_number(answers.get(question_id))
        # Parenthesize negatives so "5 - {{q}}" stays well-formed
        text = _numeric_string(value)
        return f"({text})" if value < 0 else text

    return _REFERENCE_RE.sub(_replace, formula)


# =========================================================================
# PARSER
# =========================================================================


def _check_nesting(tokens: List[str]) -> None:
    """Reject expressions nested deeper than MAX_NESTING."""
    # Unary signs seen since the last operand, per enclosing parenthesis
    open_signs: List[int] = []
    signs = 0
    previous: Optional[str] = None
    for token in tokens:
        if token == "(":
            open_signs.append(signs)
            signs = 0
        elif token == ")":
            if open_signs:
                open_signs.pop()
            signs = 0
        elif token in "+-" and (previous is None or previous in "+-*/("):
            signs += 1
        elif token not in "+-*/":
            signs = 0
        if len(open_signs) + sum(open_signs) + signs > MAX_NESTING:
            raise FormulaError("Expression nested too deeply")
        previous = token


def _tokenize(expression: str) -> List[str]:
    tokens: List[str] = []
    for match in _TOKEN_RE.finditer(expression):
        number, symbol = match.groups()
        if number is not None:
            tokens.append(number)
        elif symbol is not None and not symbol.isspace():
            if symbol not in "+-*/()":
                raise FormulaError(f"Unexpected character: {symbol!r}")
            tokens.append(symbol)
    _check_nesting(tokens)
    if not tokens:
        raise FormulaError("Empty expression")
    return tokens


def _parse_additive(tokens: List[str], pos: int) -> Tuple[float, int]:
    """Parse + and - (lowest precedence, left-associative)."""
    left, pos = _parse_multiplicative(tokens, pos)
    while pos < len(tokens) and tokens[pos] in ("+", "-"):
        op = tokens[pos]
        right, pos = _parse_multiplicative(tokens, pos + 1)
        left = left + right if op == "+" else left - right
    return left, pos


def _parse_multiplicative(tokens: List[str], pos: int) -> Tuple[float, int]:
    """Parse * and /."""
    left, pos = _parse_unary(tokens, pos)
    while pos < len(tokens) and tokens[pos] in ("*", "/"):
        op = tokens[pos]
        right, pos = _parse_unary(tokens, pos + 1)
        if op == "*":
            left = left * right
        else:
            if right == 0:
                raise FormulaError("Division by zero")
            left = left / right
    return left, pos


def _parse_unary(tokens: List[str], pos: int) -> Tuple[float, int]:
    """Parse unary + / -."""
    if pos < len(tokens) and tokens[pos] in ("+", "-"):
        op = tokens[pos]
        value, pos = _parse_unary(tokens, pos + 1)
        return (-value if op == "-" else value), pos
    return _parse_primary(tokens, pos)


def _parse_primary(tokens: List[str], pos: int) -> Tuple[float, int]:
    """Parse a number or a parenthesized expression."""
    if pos >= len(tokens):
        raise FormulaError("Unexpected end of expression")

    token = tokens[pos]
    if token == "(":
        value, pos = _parse_additive(tokens, pos + 1)
        if pos >= len(tokens) or tokens[pos] != ")":
            raise FormulaError("Missing closing parenthesis")
        return value, pos + 1

    if token in "+-*/)":
        raise FormulaError(f"Unexpected token: {token}")

    return float(token), pos + 1


def evaluate_expression(expression: str) -> Optional[Number]:
    """
    Evaluate an already-substituted arithmetic expression.

    Returns None if it contains disallowed characters, is malformed, divides
    by zero or produces a non-finite result.
    """
    if not expression or not _SAFE_RE.match(expression):
        logger.debug("Rejected calculator expression %r", expression)
        return None
    try:
        tokens = _tokenize(expression)
        value, pos = _parse_additive(tokens, 0)
        if pos < len(tokens):
            raise FormulaError(f"Unexpected tokens after expression: {tokens[pos:]}")
    except (FormulaError, OverflowError, ValueError) as e:
        logger.debug("Calculator evaluation failed for %r: %s", expression, e)
        return None
    if not math.isfinite(value):
        return None
    if value.is_integer():
        return int(value)
    return value


def evaluate_calculator(formula: Optional[str], answers: Answers) -> Optional[Number]:
    """
    Evaluate a calculator formula against the answer map.

    Example:
        evaluate_calculator("{{q1}} * {{q2}} + 10", {"q1": 3, "q2": 4}) -> 22
    """
    if not formula:
        return None
    return evaluate_expression(substitute_references(formula, answers))


def format_calculated_value(
    value: Optional[Number],
    decimal_places: Optional[int] = None,
    prefix: Optional[str] = None,
    suffix: Optional[str] = None,
    settings: Optional[EngineSettings] = None,
) -> str:
    """
    Render a calculated value, e.g. format_calculated_value(3.5, prefix="$") -> "$3.50".

    None renders as the settings' empty-value placeholder.
    """
    settings = settings or DEFAULT_SETTINGS
    if value is None:
        return settings.empty_value_placeholder
    if decimal_places is None:
        decimal_places = settings.default_decimal_places
    decimal_places = max(0, int(decimal_places))
    return f"{prefix or ''}{value:.{decimal_places}f}{suffix or ''}"


def calculate_question(
    question: Question,
    answers: Answers,
    settings: Optional[EngineSettings] = None,
) -> str:
    """Evaluate and format a calculator question using its own properties."""
    props = question.properties
    value = evaluate_calculator(props.formula, answers)
    return format_calculated_value(
        value,
        decimal_places=props.decimal_places,
        prefix=props.prefix,
        suffix=props.suffix,
        settings=settings,
    )


__all__ = [
    "answer_to_number",
    "substitute_references",
    "evaluate_expression",
    "evaluate_calculator",
    "format_calculated_value",
    "calculate_question",
]
