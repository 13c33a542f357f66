"""
PyTemplate - formula engine for template-based business dashboards.

Lets a template author build numeric FORMULA columns from NUMBER columns,
stores them as a canonical human-readable string, and keeps them consistent
as columns are renamed or deleted.
"""

__version__ = "0.1.0"
__author__ = "PyTemplate Team"
__license__ = "MIT"

from pytemplate.formula import (
    create_empty_formula,
    get_formula_preview,
    parse_formula,
    stringify_formula,
    validate_formula,
)

__all__ = [
    "__version__",
    "create_empty_formula",
    "parse_formula",
    "stringify_formula",
    "get_formula_preview",
    "validate_formula",
]
