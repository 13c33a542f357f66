"""Formula serialization.

``stringify_formula`` produces the canonical, key-based string that is
stored and sent to the backend. ``get_formula_preview`` renders the same
structure with column labels for display; previews are never parsed back.
"""

import math
from collections.abc import Callable, Iterable
from typing import Any

from pytemplate.formula.constants import (
    MODIFIER_CONFIGS,
    ModifierType,
    Operator,
    get_operator_symbol,
)
from pytemplate.formula.model import FormulaData, FormulaModifier


def format_number(value: Any) -> str:
    """Render a modifier value the way it appears inside a formula string."""
    if isinstance(value, bool):
        return str(int(value))
    if isinstance(value, float) and math.isfinite(value) and value.is_integer():
        return str(int(value))
    return str(value)


def _render(data: FormulaData, name_for: Callable[[str], str]) -> str:
    if not data.steps:
        return ""

    parts = [name_for(data.steps[0].column_key)]
    for index, step in enumerate(data.steps[1:]):
        op = data.operators[index] if index < len(data.operators) else Operator.ADD
        parts.append(f"{get_operator_symbol(op)} {name_for(step.column_key)}")
    expression = " ".join(parts)

    if data.modifiers:
        expression = f"({expression})"

    for modifier in data.modifiers:
        expression = _apply_modifier(expression, modifier)

    return expression


def _apply_modifier(expression: str, modifier: FormulaModifier) -> str:
    """Append or wrap one modifier around the expression built so far."""
    try:
        modifier_type = ModifierType(modifier.type)
    except ValueError:
        # Unknown types render nothing; the validator reports them
        return expression

    value = format_number(modifier.value)

    if modifier_type in (ModifierType.PERCENTAGE, ModifierType.FIXED):
        sign = get_operator_symbol(
            Operator.SUBTRACT if modifier.operator == Operator.SUBTRACT else Operator.ADD
        )
        suffix = "%" if modifier_type == ModifierType.PERCENTAGE else ""
        return f"{expression} {sign} {value}{suffix}"

    function_name = MODIFIER_CONFIGS[modifier_type].function_name
    if MODIFIER_CONFIGS[modifier_type].has_value:
        return f"{function_name}({expression}, {value})"
    return f"{function_name}({expression})"


def stringify_formula(data: FormulaData) -> str:
    """
    Convert FormulaData to the canonical string sent to the API.

    Uses column keys and operator glyphs, e.g. ``qty_0 × rate_0`` or
    ``ROUND((qty_0 × rate_0) + 10%, 2)``. A formula without steps
    serializes to an empty string.
    """
    return _render(data, lambda key: key)


def get_formula_preview(data: FormulaData, columns: Iterable[Any]) -> str:
    """
    Create a human-readable preview using column labels.

    Columns that are missing (or have no label) render as ``[key]``.
    """
    labels = {column.key: column.label for column in columns}

    def label_for(key: str) -> str:
        return labels.get(key) or f"[{key}]"

    return _render(data, label_for)
