"""Services for PyTemplate."""

from pytemplate.services.template_columns import (
    CascadeResult,
    ColumnRepository,
    TemplateColumnService,
)

__all__ = [
    "CascadeResult",
    "ColumnRepository",
    "TemplateColumnService",
]
