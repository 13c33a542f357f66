"""Template formula engine for PyTemplate.

A formula chains NUMBER column references with arithmetic operators
(+, −, ×, ÷, %, ^) and post-processes the result with modifiers
(percentage, fixed offset, ROUND, ABS, CEIL, FLOOR, min/max caps).
This package provides:
- The formula model and its editing helpers
- A parser for the canonical string (and legacy JSON)
- Serialization to the canonical string and to a label-based preview
- Validation against the available columns, and reconciliation when
  columns disappear
- A preview evaluator and dependency tracking between formula columns
"""

from pytemplate.formula.constants import (
    MODIFIER_CONFIGS,
    OPERATOR_SYMBOLS,
    ModifierType,
    Operator,
)
from pytemplate.formula.dependencies import FormulaDependencyGraph
from pytemplate.formula.evaluator import evaluate_formula, evaluate_formula_string, format_result
from pytemplate.formula.model import (
    FormulaData,
    FormulaModifier,
    FormulaStep,
    add_modifier,
    add_step,
    create_empty_formula,
    remove_modifier,
    remove_step,
    update_modifier,
    update_operator,
    update_step,
)
from pytemplate.formula.parser import FormulaParser, parse_formula
from pytemplate.formula.serializer import get_formula_preview, stringify_formula
from pytemplate.formula.validator import (
    clean_formula_data,
    find_invalid_steps,
    has_invalid_columns,
    references_column,
    remove_column_references,
    rename_column_references,
    validate_formula,
)

__all__ = [
    "MODIFIER_CONFIGS",
    "OPERATOR_SYMBOLS",
    "ModifierType",
    "Operator",
    "FormulaData",
    "FormulaModifier",
    "FormulaStep",
    "FormulaParser",
    "FormulaDependencyGraph",
    "create_empty_formula",
    "parse_formula",
    "stringify_formula",
    "get_formula_preview",
    "validate_formula",
    "add_step",
    "update_step",
    "remove_step",
    "update_operator",
    "add_modifier",
    "update_modifier",
    "remove_modifier",
    "find_invalid_steps",
    "has_invalid_columns",
    "clean_formula_data",
    "remove_column_references",
    "rename_column_references",
    "references_column",
    "evaluate_formula",
    "evaluate_formula_string",
    "format_result",
]
