"""Pydantic schemas for PyTemplate."""

from pytemplate.schemas.column import (
    ColumnDataType,
    TemplateColumn,
    formula_candidates,
    generate_column_key,
)

__all__ = [
    "ColumnDataType",
    "TemplateColumn",
    "formula_candidates",
    "generate_column_key",
]
