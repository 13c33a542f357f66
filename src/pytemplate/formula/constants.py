"""Operator and modifier vocabularies for template formulas.

The symbol column of ``OPERATOR_SYMBOLS`` is the only form ever written to
a canonical formula string. Subtraction uses U+2212 MINUS SIGN so it can
never be confused with an ASCII hyphen.
"""

from dataclasses import dataclass
from enum import Enum


class Operator(str, Enum):
    """Binary operator joining two steps of the core expression."""

    ADD = "+"
    SUBTRACT = "-"
    MULTIPLY = "*"
    DIVIDE = "/"
    MODULO = "%"
    POWER = "^"

    @property
    def symbol(self) -> str:
        return OPERATOR_SYMBOLS[self]


class ModifierType(str, Enum):
    """Post-processing transform applied to the core expression."""

    PERCENTAGE = "percentage"
    FIXED = "fixed"
    ROUND = "round"
    ABS = "abs"
    CEIL = "ceil"
    FLOOR = "floor"
    MIN = "min"
    MAX = "max"


OPERATOR_SYMBOLS: dict[Operator, str] = {
    Operator.ADD: "+",
    Operator.SUBTRACT: "−",
    Operator.MULTIPLY: "×",
    Operator.DIVIDE: "÷",
    Operator.MODULO: "%",
    Operator.POWER: "^",
}

OPERATOR_LABELS: dict[Operator, str] = {
    Operator.ADD: "Add",
    Operator.SUBTRACT: "Subtract",
    Operator.MULTIPLY: "Multiply",
    Operator.DIVIDE: "Divide",
    Operator.MODULO: "Modulo",
    Operator.POWER: "Power",
}

# Display symbols plus the ASCII spellings accepted when reading
SYMBOL_TO_OPERATOR: dict[str, Operator] = {
    **{symbol: op for op, symbol in OPERATOR_SYMBOLS.items()},
    "-": Operator.SUBTRACT,
    "*": Operator.MULTIPLY,
    "/": Operator.DIVIDE,
}

# Modifiers with an operator slot only ever add or subtract
MODIFIER_OPERATORS: tuple[Operator, ...] = (Operator.ADD, Operator.SUBTRACT)


@dataclass(frozen=True)
class ModifierConfig:
    """Static properties shared by every modifier of one type."""

    type: ModifierType
    label: str
    description: str
    has_operator: bool
    has_value: bool
    default_value: float
    value_min: float | None = None
    value_max: float | None = None
    value_step: float | None = None
    integer_only: bool = False
    single_instance: bool = False
    function_name: str | None = None


MODIFIER_CONFIGS: dict[ModifierType, ModifierConfig] = {
    ModifierType.PERCENTAGE: ModifierConfig(
        type=ModifierType.PERCENTAGE,
        label="% Percentage",
        description="Add/subtract a percentage of the result",
        has_operator=True,
        has_value=True,
        value_min=0,
        value_max=1000,
        value_step=1,
        default_value=10,
    ),
    ModifierType.FIXED: ModifierConfig(
        type=ModifierType.FIXED,
        label="# Fixed Number",
        description="Add/subtract a fixed number",
        has_operator=True,
        has_value=True,
        value_step=0.01,
        default_value=100,
    ),
    ModifierType.ROUND: ModifierConfig(
        type=ModifierType.ROUND,
        label="≈ Round",
        description="Round to N decimal places",
        has_operator=False,
        has_value=True,
        value_min=0,
        value_max=10,
        value_step=1,
        integer_only=True,
        default_value=2,
        function_name="ROUND",
    ),
    ModifierType.ABS: ModifierConfig(
        type=ModifierType.ABS,
        label="|x| Absolute",
        description="Convert result to absolute (positive) value",
        has_operator=False,
        has_value=False,
        default_value=0,
        single_instance=True,
        function_name="ABS",
    ),
    ModifierType.CEIL: ModifierConfig(
        type=ModifierType.CEIL,
        label="⌈x⌉ Ceil",
        description="Round up to nearest integer",
        has_operator=False,
        has_value=False,
        default_value=0,
        single_instance=True,
        function_name="CEIL",
    ),
    ModifierType.FLOOR: ModifierConfig(
        type=ModifierType.FLOOR,
        label="⌊x⌋ Floor",
        description="Round down to nearest integer",
        has_operator=False,
        has_value=False,
        default_value=0,
        single_instance=True,
        function_name="FLOOR",
    ),
    # A min cap keeps the result from dropping below the value, which is MAX()
    ModifierType.MIN: ModifierConfig(
        type=ModifierType.MIN,
        label="↓ Min Cap",
        description="Set minimum value (result cannot go below this)",
        has_operator=False,
        has_value=True,
        value_step=0.01,
        default_value=0,
        single_instance=True,
        function_name="MAX",
    ),
    ModifierType.MAX: ModifierConfig(
        type=ModifierType.MAX,
        label="↑ Max Cap",
        description="Set maximum value (result cannot exceed this)",
        has_operator=False,
        has_value=True,
        value_step=0.01,
        default_value=99999,
        single_instance=True,
        function_name="MIN",
    ),
}


def get_modifier_config(modifier_type: object) -> ModifierConfig | None:
    """Look up the config for a modifier type, tolerating unknown values."""
    try:
        return MODIFIER_CONFIGS[ModifierType(modifier_type)]
    except ValueError:
        return None


def get_operator_symbol(op: object) -> str:
    """Return the display glyph for an operator, or the raw value if unknown."""
    try:
        return OPERATOR_SYMBOLS[Operator(op)]
    except ValueError:
        return str(op)


def symbol_to_operator(symbol: str) -> Operator | None:
    """Map a glyph (or its ASCII fallback) back to an Operator."""
    return SYMBOL_TO_OPERATOR.get(symbol)
