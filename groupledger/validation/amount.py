"""
Amount entry helper.

The amount field accepts either a plain number or a single binary
expression such as "120 + 35" or "90 ÷ 3".
"""

import re
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

TWO_PLACES = Decimal("0.01")

_OPERATORS = {
    "+": "+",
    "-": "-",
    "−": "-",
    "×": "*",
    "*": "*",
    "x": "*",
    "÷": "/",
    "/": "/",
}

_EXPRESSION = re.compile(
    r"^\s*(\d+(?:\.\d+)?)\s*([+\-−×*x÷/])\s*(\d+(?:\.\d+)?)\s*$"
)
_NUMBER = re.compile(r"^\s*\d+(?:\.\d+)?\s*$")


def _quantize(value: Decimal) -> Decimal:
    # Fails once the cents no longer fit the context precision
    try:
        return value.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)
    except InvalidOperation as e:
        raise ValueError(f"Amount out of range: {value}") from e


def evaluate_amount_expression(text: str) -> Decimal:
    """
    Evaluate "a op b" to a two-decimal amount.

    Division by zero yields 0. A plain number is returned rounded.
    Raises ValueError for anything else.
    """
    if _NUMBER.match(text):
        return _quantize(Decimal(text.strip()))

    match = _EXPRESSION.match(text)
    if match is None:
        raise ValueError(f"Not a valid amount: {text!r}")

    try:
        left = Decimal(match.group(1))
        right = Decimal(match.group(3))
    except InvalidOperation as e:
        raise ValueError(f"Not a valid amount: {text!r}") from e

    op = _OPERATORS[match.group(2)]
    if op == "+":
        result = left + right
    elif op == "-":
        result = left - right
    elif op == "*":
        result = left * right
    elif right == 0:
        result = Decimal("0")
    else:
        result = left / right

    return _quantize(result)
