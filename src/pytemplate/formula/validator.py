"""Formula validation and column reconciliation.

``validate_formula`` reports the first problem found, checked in a fixed
order, so the message a user sees for a given formula never changes.
The reconciliation helpers bring a formula back in line after the set of
available columns changes.
"""

import math
import re
from collections.abc import Iterable
from dataclasses import replace
from numbers import Real
from typing import Any

from pytemplate.formula.constants import (
    MODIFIER_OPERATORS,
    ModifierType,
    Operator,
    get_modifier_config,
)
from pytemplate.formula.model import FormulaData, FormulaStep, remove_step_at
from pytemplate.formula.parser import parse_formula
from pytemplate.formula.serializer import stringify_formula

# Error messages
EMPTY_FORMULA = "Please add at least one column to the formula"
MISSING_OPERATORS = "Missing operators between columns"
PERCENTAGE_OUT_OF_RANGE = "Percentage must be between 0 and 1000"
ROUND_OUT_OF_RANGE = "Round decimals must be a whole number between 0 and 10"
MIN_NOT_BELOW_MAX = "Min cap value must be less than max cap value"


def _available_keys(columns: Iterable[Any]) -> set[str]:
    return {column.key for column in columns}


def _is_valid_number(value: Any) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool) and math.isfinite(value)


def _is_operator(value: Any) -> bool:
    try:
        Operator(value)
    except ValueError:
        return False
    return True


def validate_formula(data: FormulaData, available_columns: Iterable[Any]) -> str | None:
    """
    Validate a formula against the columns it may reference.

    Args:
        data: Formula to check
        available_columns: Columns eligible as operands (objects with ``key``)

    Returns:
        The first error message, or None if the formula is valid
    """
    if not data.steps:
        return EMPTY_FORMULA

    available_keys = _available_keys(available_columns)

    for index, step in enumerate(data.steps, start=1):
        if not step.column_key:
            return f"Please select a column for step {index}"
        if step.column_key not in available_keys:
            return (
                f'Column "{step.column_key}" in step {index} is not available. '
                "Please select a different column."
            )

    if len(data.operators) != max(0, len(data.steps) - 1):
        return MISSING_OPERATORS

    for index, op in enumerate(data.operators, start=1):
        if not _is_operator(op):
            return f'Invalid operator "{op}" between step {index} and {index + 1}'

    for modifier in data.modifiers:
        config = get_modifier_config(modifier.type)
        if config is None:
            return f'Invalid modifier type "{modifier.type}"'

        if config.has_value:
            if not _is_valid_number(modifier.value):
                return f"Please enter a valid number for the {config.label} modifier"
            if config.type == ModifierType.PERCENTAGE and not (
                config.value_min <= modifier.value <= config.value_max
            ):
                return PERCENTAGE_OUT_OF_RANGE
            if config.type == ModifierType.ROUND and (
                not config.value_min <= modifier.value <= config.value_max
                or not float(modifier.value).is_integer()
            ):
                return ROUND_OUT_OF_RANGE

        if config.has_operator and modifier.operator not in MODIFIER_OPERATORS:
            return f"Please select an operator for the {config.label} modifier"

    seen: set[ModifierType] = set()
    for modifier in data.modifiers:
        config = get_modifier_config(modifier.type)
        if config.single_instance and config.type in seen:
            return f"Only one {config.label} modifier is allowed"
        seen.add(config.type)

    min_cap = next((m for m in data.modifiers if m.type == ModifierType.MIN), None)
    max_cap = next((m for m in data.modifiers if m.type == ModifierType.MAX), None)
    if min_cap is not None and max_cap is not None and min_cap.value >= max_cap.value:
        return MIN_NOT_BELOW_MAX

    return None


# =============================================================================
# Reconciliation
# =============================================================================


def find_invalid_steps(data: FormulaData, available_columns: Iterable[Any]) -> list[FormulaStep]:
    """Steps whose (non-empty) column key is no longer available."""
    available_keys = _available_keys(available_columns)
    return [step for step in data.steps if step.column_key and step.column_key not in available_keys]


def has_invalid_columns(data: FormulaData, available_columns: Iterable[Any]) -> bool:
    """Check whether any step references a column that is not available."""
    return bool(find_invalid_steps(data, available_columns))


def _remove_matching_steps(data: FormulaData, should_remove) -> FormulaData:
    result = data
    index = 0
    while index < len(result.steps):
        if should_remove(result.steps[index]):
            result = remove_step_at(result, index)
        else:
            index += 1
    return result


def clean_formula_data(data: FormulaData, available_columns: Iterable[Any]) -> FormulaData:
    """
    Remove the steps that reference unavailable columns.

    Each removal also drops one adjoining operator (see ``remove_step_at``).
    Unset steps, the remaining operators and all modifiers are kept as-is.
    """
    available_keys = _available_keys(available_columns)
    return _remove_matching_steps(
        data,
        lambda step: bool(step.column_key) and step.column_key not in available_keys,
    )


def remove_column_references(data: FormulaData, column_key: str) -> FormulaData:
    """Remove every step that references ``column_key``."""
    return _remove_matching_steps(data, lambda step: step.column_key == column_key)


def _key_pattern(column_key: str) -> re.Pattern[str]:
    return re.compile(rf"\b{re.escape(column_key)}\b")


def references_column(formula: str | None, column_key: str) -> bool:
    """
    Check whether a stored formula references a column key.

    Parseable formulas are checked step by step, so a numeric offset or
    cap never counts as a reference to an all-digit key. Anything the
    parser rejects falls back to a whole-word text search.
    """
    if not formula:
        return False
    data = parse_formula(formula)
    if data is not None:
        return column_key in data.column_keys
    return _key_pattern(column_key).search(formula) is not None


def rename_column_references(formula: str, old_key: str, new_key: str) -> str:
    """
    Point every step referencing ``old_key`` at ``new_key``.

    Parseable formulas are rewritten through the model and come back in
    canonical form. Unparseable strings get whole-word text substitution.
    """
    data = parse_formula(formula)
    if data is None:
        return _key_pattern(old_key).sub(lambda _match: new_key, formula)

    result = data.copy()
    result.steps = [
        replace(step, column_key=new_key) if step.column_key == old_key else step
        for step in result.steps
    ]
    return stringify_formula(result)
