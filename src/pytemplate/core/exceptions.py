"""
Custom exceptions for PyTemplate.

Parse and validation failures inside the formula engine are returned as
values. These exceptions belong to the template-editing service layer.
"""

from typing import Any


class PyTemplateException(Exception):
    """
    Base exception for all PyTemplate errors.

    All custom exceptions should inherit from this class.
    """

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize exception.

        Args:
            message: Human-readable error message
            code: Machine-readable error code
            details: Additional error details
        """
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to a dictionary for API responses."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "details": self.details,
            }
        }


class NotFoundError(PyTemplateException):
    """Requested column does not exist on the template."""

    def __init__(self, message: str = "Column not found", column_id: str | None = None) -> None:
        super().__init__(
            message=message,
            code="NOT_FOUND",
            details={"column_id": column_id} if column_id else {},
        )


class FormulaValidationError(PyTemplateException):
    """A FORMULA column was submitted with a formula that fails validation."""

    def __init__(self, message: str, column_key: str | None = None) -> None:
        super().__init__(
            message=message,
            code="INVALID_FORMULA",
            details={"column_key": column_key} if column_key else {},
        )


class ColumnUpdateError(PyTemplateException):
    """Writing an updated column back to the repository failed."""

    def __init__(self, column_id: str, reason: str) -> None:
        super().__init__(
            message=f"Failed to update column '{column_id}': {reason}",
            code="COLUMN_UPDATE_FAILED",
            details={"column_id": column_id, "reason": reason},
        )
