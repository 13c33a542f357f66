"""
Pytest configuration and fixtures for PyTemplate tests.
"""

import pytest

from pytemplate.formula.constants import Operator
from pytemplate.formula.model import FormulaData, FormulaStep
from pytemplate.schemas.column import ColumnDataType, TemplateColumn


def make_column(
    key: str,
    label: str | None = None,
    data_type: ColumnDataType = ColumnDataType.NUMBER,
    formula: str | None = None,
    order_no: int = 0,
    column_id: str | None = None,
) -> TemplateColumn:
    """Build a TemplateColumn with sensible defaults."""
    return TemplateColumn(
        id=column_id or f"id-{key}",
        key=key,
        label=label or key.replace("_0", "").replace("_", " ").title(),
        data_type=data_type,
        order_no=order_no,
        formula=formula,
    )


@pytest.fixture
def number_columns() -> list[TemplateColumn]:
    """NUMBER columns available to formulas."""
    return [
        make_column("qty_0", "Quantity", order_no=1),
        make_column("rate_0", "Rate", order_no=2),
        make_column("discount_0", "Discount", order_no=3),
    ]


@pytest.fixture
def template_columns(number_columns) -> list[TemplateColumn]:
    """A template with NUMBER, TEXT and FORMULA columns."""
    return [
        *number_columns,
        make_column("notes_0", "Notes", data_type=ColumnDataType.TEXT, order_no=4),
        make_column(
            "total_0",
            "Total",
            data_type=ColumnDataType.FORMULA,
            formula="qty_0 × rate_0",
            order_no=5,
        ),
        make_column(
            "net_0",
            "Net",
            data_type=ColumnDataType.FORMULA,
            formula="ROUND((qty_0 × rate_0) − 10%, 2)",
            order_no=6,
        ),
    ]


@pytest.fixture
def qty_times_rate() -> FormulaData:
    """qty_0 × rate_0 with no modifiers."""
    return FormulaData(
        steps=[FormulaStep("qty_0"), FormulaStep("rate_0")],
        operators=[Operator.MULTIPLY],
    )
