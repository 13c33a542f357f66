"""Template column schemas."""

import re
from collections.abc import Iterable
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class ColumnDataType(str, Enum):
    """Data type of a template column."""

    NUMBER = "NUMBER"
    TEXT = "TEXT"
    FORMULA = "FORMULA"


class TemplateColumn(BaseModel):
    """Schema for a column defined on a template."""

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: str = Field(..., description="Column ID")
    key: str = Field(..., pattern=r"^[a-z0-9_]+$", description="Stable machine identifier")
    label: str = Field(..., min_length=1, max_length=255, description="Display name")
    data_type: ColumnDataType = Field(..., alias="dataType", description="Column data type")
    block_index: int = Field(default=0, alias="blockIndex", description="Grouping tag")
    order_no: int = Field(default=0, alias="orderNo", description="Display order")
    is_required: bool = Field(default=False, alias="isRequired")
    is_final_calculation: bool = Field(default=False, alias="isFinalCalculation")
    formula: Optional[str] = Field(None, description="Canonical formula string")

    @property
    def is_formula(self) -> bool:
        return self.data_type == ColumnDataType.FORMULA

    def to_payload(self, **overrides: Any) -> dict[str, Any]:
        """Build the create/update payload sent to the template API."""
        payload = self.model_dump(mode="json", by_alias=True, exclude={"id", "order_no"})
        payload.update(overrides)
        return payload


def generate_column_key(label: str) -> str:
    """
    Derive a column key from its label.

    Args:
        label: Display name, e.g. "Unit Price (₹)"

    Returns:
        Key such as "unit_price_0"
    """
    clean = re.sub(r"[^a-z0-9]+", "_", label.lower()).strip("_")
    return f"{clean}_0"


def formula_candidates(
    columns: Iterable[TemplateColumn],
    exclude_id: str | None = None,
) -> list[TemplateColumn]:
    """
    Columns a formula may reference.

    Only NUMBER columns qualify. The column being edited is excluded so a
    formula can never reference itself.
    """
    eligible = [
        column
        for column in columns
        if column.data_type == ColumnDataType.NUMBER and column.id != exclude_id
    ]
    return sorted(eligible, key=lambda column: column.order_no)
