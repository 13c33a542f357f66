"""In-memory formula representation and the editing helpers.

A formula is an ordered chain of column references joined by operators,
followed by modifiers that wrap the chain's result one after another.

Every helper in this module is pure: it returns a new ``FormulaData`` and
leaves its argument untouched. Step and modifier ids exist only to keep UI
lists stable; they are excluded from equality and have no serialized form.
"""

from dataclasses import dataclass, field, replace
from typing import Any
from uuid import uuid4

from pytemplate.formula.constants import (
    MODIFIER_CONFIGS,
    ModifierType,
    Operator,
    get_modifier_config,
)


def generate_id() -> str:
    """Generate an opaque identity for a step or modifier."""
    return uuid4().hex[:8]


@dataclass
class FormulaStep:
    column_key: str
    id: str = field(default_factory=generate_id, compare=False)


@dataclass
class FormulaModifier:
    """
    A post-processing transform.

    ``type`` and ``operator`` normally hold enum members, but values read
    from legacy JSON are kept verbatim when unknown so the validator can
    report them.
    """

    type: ModifierType | str
    operator: Operator | str | None = Operator.ADD
    value: Any = 0
    id: str = field(default_factory=generate_id, compare=False)


@dataclass
class FormulaData:
    steps: list[FormulaStep] = field(default_factory=list)
    operators: list[Operator | str] = field(default_factory=list)
    modifiers: list[FormulaModifier] = field(default_factory=list)

    @property
    def column_keys(self) -> list[str]:
        """Keys referenced by the steps, in order."""
        return [step.column_key for step in self.steps]

    def copy(self) -> "FormulaData":
        """Shallow-copy the lists so helpers can rebuild them freely."""
        return FormulaData(
            steps=list(self.steps),
            operators=list(self.operators),
            modifiers=list(self.modifiers),
        )


def create_empty_formula() -> FormulaData:
    """Create a formula with no steps, operators or modifiers."""
    return FormulaData()


# =============================================================================
# Step helpers
# =============================================================================


def add_step(
    data: FormulaData,
    column_key: str = "",
    operator: Operator = Operator.ADD,
) -> FormulaData:
    """Append a step; every step after the first brings an operator with it."""
    result = data.copy()
    if result.steps:
        result.operators.append(operator)
    result.steps.append(FormulaStep(column_key=column_key))
    return result


def update_step(data: FormulaData, step_id: str, column_key: str) -> FormulaData:
    """Point an existing step at a different column."""
    result = data.copy()
    result.steps = [
        replace(step, column_key=column_key) if step.id == step_id else step
        for step in result.steps
    ]
    return result


def remove_step_at(data: FormulaData, index: int) -> FormulaData:
    """
    Remove the step at ``index`` together with one adjoining operator.

    The operator preceding the step goes with it; the first step has no
    preceding operator, so the one following it is dropped instead.
    """
    if index < 0 or index >= len(data.steps):
        return data

    result = data.copy()
    del result.steps[index]
    if index > 0:
        if index - 1 < len(result.operators):
            del result.operators[index - 1]
    elif result.operators:
        del result.operators[0]
    return result


def remove_step(data: FormulaData, step_id: str) -> FormulaData:
    """Remove a step by id."""
    for index, step in enumerate(data.steps):
        if step.id == step_id:
            return remove_step_at(data, index)
    return data


def update_operator(data: FormulaData, index: int, operator: Operator | str) -> FormulaData:
    """Replace the operator between step ``index`` and step ``index + 1``."""
    if index < 0 or index >= len(data.operators):
        return data
    result = data.copy()
    result.operators[index] = operator
    return result


# =============================================================================
# Modifier helpers
# =============================================================================


def add_modifier(data: FormulaData, modifier_type: ModifierType | str) -> FormulaData:
    """
    Append a modifier initialised with its type's default value.

    Unknown types are ignored, as is a second copy of a single-instance
    type (abs, ceil, floor, min, max).
    """
    try:
        modifier_type = ModifierType(modifier_type)
    except ValueError:
        return data

    config = MODIFIER_CONFIGS[modifier_type]
    if config.single_instance and any(m.type == modifier_type for m in data.modifiers):
        return data

    result = data.copy()
    result.modifiers.append(
        FormulaModifier(
            type=modifier_type,
            operator=Operator.ADD,
            value=config.default_value,
        )
    )
    return result


def update_modifier(data: FormulaData, modifier_id: str, **changes: Any) -> FormulaData:
    """
    Update ``type``, ``operator`` and/or ``value`` of one modifier.

    Changing to an unknown type, or to a single-instance type another
    modifier already has, is ignored like the same ``add_modifier`` call.
    Fields the resulting type does not use are reset: the operator to
    ``+`` and the value to the type's default, matching what the
    canonical string can carry.
    """
    unknown = set(changes) - {"type", "operator", "value"}
    if unknown:
        raise TypeError(f"Unexpected modifier fields: {', '.join(sorted(unknown))}")

    if "type" in changes:
        try:
            changes["type"] = ModifierType(changes["type"])
        except ValueError:
            return data

        config = MODIFIER_CONFIGS[changes["type"]]
        if config.single_instance and any(
            m.type == changes["type"] and m.id != modifier_id for m in data.modifiers
        ):
            return data

    result = data.copy()
    result.modifiers = [
        _normalize_modifier(replace(mod, **changes)) if mod.id == modifier_id else mod
        for mod in result.modifiers
    ]
    return result


def _normalize_modifier(modifier: FormulaModifier) -> FormulaModifier:
    config = get_modifier_config(modifier.type)
    if config is None:
        return modifier
    if not config.has_operator:
        modifier = replace(modifier, operator=Operator.ADD)
    if not config.has_value:
        modifier = replace(modifier, value=config.default_value)
    return modifier


def remove_modifier(data: FormulaData, modifier_id: str) -> FormulaData:
    """Remove a modifier by id."""
    result = data.copy()
    result.modifiers = [mod for mod in result.modifiers if mod.id != modifier_id]
    return result
