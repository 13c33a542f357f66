"""Formula preview evaluator.

Computes a formula locally so the template editor and order forms can show
an indicative result. The step chain is folded strictly left to right (no
precedence; construction order is the evaluation order), then modifiers
are applied in list order. The authoritative figure is computed by the
backend from the stored formula string.
"""

import math
from collections.abc import Callable, Mapping
from typing import Any

from pytemplate.core.config import settings
from pytemplate.formula.constants import ModifierType, Operator
from pytemplate.formula.model import FormulaData, FormulaModifier
from pytemplate.formula.parser import parse_formula

OperatorFunc = Callable[[float, float], float]
ModifierFunc = Callable[[float, FormulaModifier], float]


def _divide(left: float, right: float) -> float:
    return left / right if right != 0 else 0.0


def _modulo(left: float, right: float) -> float:
    # Sign follows the dividend
    return math.fmod(left, right) if right != 0 else 0.0


def _power(left: float, right: float) -> float:
    try:
        result = left**right
    except (OverflowError, ZeroDivisionError):
        return math.nan
    return result if isinstance(result, float) else math.nan


OPERATOR_FUNCTIONS: dict[Operator, OperatorFunc] = {
    Operator.ADD: lambda left, right: left + right,
    Operator.SUBTRACT: lambda left, right: left - right,
    Operator.MULTIPLY: lambda left, right: left * right,
    Operator.DIVIDE: _divide,
    Operator.MODULO: _modulo,
    Operator.POWER: _power,
}


MODIFIER_FUNCTIONS: dict[ModifierType, ModifierFunc] = {}


def register_modifier(modifier_type: ModifierType) -> Callable[[ModifierFunc], ModifierFunc]:
    """Decorator to register how a modifier type transforms a result."""

    def decorator(func: ModifierFunc) -> ModifierFunc:
        MODIFIER_FUNCTIONS[modifier_type] = func
        return func

    return decorator


def _signed(modifier: FormulaModifier, amount: float) -> float:
    return -amount if modifier.operator == Operator.SUBTRACT else amount


@register_modifier(ModifierType.PERCENTAGE)
def apply_percentage(result: float, modifier: FormulaModifier) -> float:
    """Add or subtract a percentage of the result."""
    return result + _signed(modifier, result * float(modifier.value) / 100)


@register_modifier(ModifierType.FIXED)
def apply_fixed(result: float, modifier: FormulaModifier) -> float:
    """Add or subtract a fixed amount."""
    return result + _signed(modifier, float(modifier.value))


@register_modifier(ModifierType.ROUND)
def apply_round(result: float, modifier: FormulaModifier) -> float:
    """Round to N decimal places."""
    return round(result, int(modifier.value))


@register_modifier(ModifierType.ABS)
def apply_abs(result: float, modifier: FormulaModifier) -> float:
    return abs(result)


@register_modifier(ModifierType.CEIL)
def apply_ceil(result: float, modifier: FormulaModifier) -> float:
    return float(math.ceil(result))


@register_modifier(ModifierType.FLOOR)
def apply_floor(result: float, modifier: FormulaModifier) -> float:
    return float(math.floor(result))


@register_modifier(ModifierType.MIN)
def apply_min_cap(result: float, modifier: FormulaModifier) -> float:
    """Result cannot go below the cap."""
    return max(result, float(modifier.value))


@register_modifier(ModifierType.MAX)
def apply_max_cap(result: float, modifier: FormulaModifier) -> float:
    """Result cannot exceed the cap."""
    return min(result, float(modifier.value))


def evaluate_formula(data: FormulaData, values: Mapping[str, Any]) -> float:
    """
    Evaluate a formula against column values.

    Args:
        data: Formula to evaluate
        values: Mapping of column key to value; missing or non-numeric
            values count as 0

    Returns:
        The computed result (NaN if the arithmetic is undefined)

    Raises:
        ValueError: If the formula has no steps or holds an unknown operator
            or modifier type
        TypeError: If a modifier value is not numeric
    """
    if not data.steps:
        raise ValueError("Cannot evaluate a formula without steps")

    result = _value_of(values, data.steps[0].column_key)
    for index, step in enumerate(data.steps[1:]):
        op = Operator(data.operators[index]) if index < len(data.operators) else None
        if op is None:
            raise ValueError(f"Missing operator before step {index + 2}")
        result = OPERATOR_FUNCTIONS[op](result, _value_of(values, step.column_key))

    for modifier in data.modifiers:
        func = MODIFIER_FUNCTIONS[ModifierType(modifier.type)]
        if math.isfinite(result):
            result = func(result, modifier)

    return result


def _value_of(values: Mapping[str, Any], key: str) -> float:
    raw = values.get(key)
    if raw is None or raw == "":
        return 0.0
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return 0.0
    return value if math.isfinite(value) else 0.0


def format_result(value: float, decimal_places: int | None = None) -> str:
    """Render a result: whole numbers without decimals, others at fixed precision."""
    if not math.isfinite(value):
        return "—"
    if float(value).is_integer():
        return str(int(value))
    places = settings.preview_decimal_places if decimal_places is None else decimal_places
    return f"{value:.{places}f}"


def evaluate_formula_string(formula: str | None, values: Mapping[str, Any]) -> str | None:
    """
    Parse and evaluate a stored formula for display.

    Returns:
        Formatted result, or None if the formula is missing, malformed or
        cannot be evaluated
    """
    data = parse_formula(formula)
    if data is None or not data.steps:
        return None
    try:
        return format_result(evaluate_formula(data, values))
    except (ValueError, TypeError):
        return None
