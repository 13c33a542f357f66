"""Unit tests for formula serialization and previews."""

import pytest

from pytemplate.formula.constants import ModifierType, Operator
from pytemplate.formula.model import (
    FormulaData,
    FormulaModifier,
    FormulaStep,
    add_modifier,
    create_empty_formula,
    update_modifier,
)
from pytemplate.formula.serializer import format_number, get_formula_preview, stringify_formula


def with_modifiers(data: FormulaData, *modifiers: FormulaModifier) -> FormulaData:
    result = data.copy()
    result.modifiers = list(modifiers)
    return result


class TestStringifyFormula:
    """Tests for the canonical string."""

    def test_empty_formula(self):
        """Test that a formula without steps serializes to an empty string."""
        assert stringify_formula(create_empty_formula()) == ""

    def test_simple_chain(self, qty_times_rate):
        """Test a chain without modifiers."""
        assert stringify_formula(qty_times_rate) == "qty_0 × rate_0"

    def test_subtraction_glyph(self):
        """Test that subtraction is written with the minus sign."""
        data = FormulaData(
            steps=[FormulaStep("qty_0"), FormulaStep("rate_0")],
            operators=[Operator.SUBTRACT],
        )
        assert stringify_formula(data) == "qty_0 − rate_0"

    def test_percentage(self, qty_times_rate):
        """Test a percentage modifier."""
        data = with_modifiers(
            qty_times_rate, FormulaModifier(ModifierType.PERCENTAGE, Operator.ADD, 10)
        )
        assert stringify_formula(data) == "(qty_0 × rate_0) + 10%"

    def test_round_wraps_percentage(self, qty_times_rate):
        """Test that ROUND wraps everything applied before it."""
        data = with_modifiers(
            qty_times_rate,
            FormulaModifier(ModifierType.PERCENTAGE, Operator.ADD, 10),
            FormulaModifier(ModifierType.ROUND, Operator.ADD, 2),
        )
        assert stringify_formula(data) == "ROUND((qty_0 × rate_0) + 10%, 2)"

    def test_fixed_subtraction(self, qty_times_rate):
        """Test a subtracted fixed amount."""
        data = with_modifiers(
            qty_times_rate, FormulaModifier(ModifierType.FIXED, Operator.SUBTRACT, 50)
        )
        assert stringify_formula(data) == "(qty_0 × rate_0) − 50"

    def test_nested_functions(self):
        """Test that later modifiers wrap earlier ones."""
        data = FormulaData(
            steps=[FormulaStep("qty_0"), FormulaStep("rate_0")],
            operators=[Operator.ADD],
            modifiers=[
                FormulaModifier(ModifierType.FIXED, Operator.SUBTRACT, 100),
                FormulaModifier(ModifierType.ROUND, Operator.ADD, 2),
                FormulaModifier(ModifierType.ABS, Operator.ADD, 0),
            ],
        )
        assert stringify_formula(data) == "ABS(ROUND((qty_0 + rate_0) − 100, 2))"

    def test_caps_use_inverted_function_names(self, qty_times_rate):
        """Test that a min cap is MAX() and a max cap is MIN()."""
        data = with_modifiers(
            qty_times_rate,
            FormulaModifier(ModifierType.MIN, Operator.ADD, 0),
            FormulaModifier(ModifierType.MAX, Operator.ADD, 99999),
        )
        assert stringify_formula(data) == "MIN(MAX((qty_0 × rate_0), 0), 99999)"

    def test_ceil_and_floor(self, qty_times_rate):
        """Test CEIL and FLOOR wrappers."""
        data = add_modifier(add_modifier(qty_times_rate, "ceil"), "floor")
        assert stringify_formula(data) == "FLOOR(CEIL((qty_0 × rate_0)))"

    def test_offset_after_function(self, qty_times_rate):
        """Test an offset applied after a function."""
        data = add_modifier(add_modifier(qty_times_rate, "round"), "percentage")
        assert stringify_formula(data) == "ROUND((qty_0 × rate_0), 2) + 10%"

    def test_integral_float_values(self, qty_times_rate):
        """Test that whole-number floats are written without decimals."""
        data = add_modifier(qty_times_rate, "fixed")
        data = update_modifier(data, data.modifiers[0].id, value=25.0)
        assert stringify_formula(data) == "(qty_0 × rate_0) + 25"

    @pytest.mark.parametrize(
        "value, expected",
        [(10, "10"), (10.0, "10"), (12.5, "12.5"), (-3, "-3"), (0.1, "0.1")],
    )
    def test_format_number(self, value, expected):
        """Test number formatting inside formula strings."""
        assert format_number(value) == expected


class TestFormulaPreview:
    """Tests for the label-based preview."""

    def test_preview_uses_labels(self, qty_times_rate, number_columns):
        """Test that keys are replaced by labels."""
        data = add_modifier(qty_times_rate, "percentage")
        assert get_formula_preview(data, number_columns) == "(Quantity × Rate) + 10%"

    def test_preview_unknown_column(self, number_columns):
        """Test that unknown keys render in brackets."""
        data = FormulaData(
            steps=[FormulaStep("qty_0"), FormulaStep("ghost_0")],
            operators=[Operator.DIVIDE],
        )
        assert get_formula_preview(data, number_columns) == "Quantity ÷ [ghost_0]"

    def test_preview_empty(self, number_columns):
        """Test the preview of an empty formula."""
        assert get_formula_preview(create_empty_formula(), number_columns) == ""

    def test_preview_without_columns(self, qty_times_rate):
        """Test the preview when no columns are known."""
        assert get_formula_preview(qty_times_rate, []) == "[qty_0] × [rate_0]"
