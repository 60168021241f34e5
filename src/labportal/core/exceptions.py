"""
Custom exceptions for the lab portal.

Provides a hierarchy of exceptions that map to HTTP status codes
and include structured error information. Formula engine errors are
raised per formula and caught by the highlighter; only
InvalidTableShapeError is allowed to abort an evaluation pass.
"""

from typing import Any, Iterable


class LabPortalException(Exception):
    """
    Base exception for all lab portal errors.

    All custom exceptions should inherit from this class.
    """

    # Default status code for base exception
    status_code = 500

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
        """Convert exception to dictionary for API response."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "details": self.details,
            }
        }


# =============================================================================
# HTTP 400 - Bad Request Errors
# =============================================================================


class BadRequestError(LabPortalException):
    """Invalid request parameters or payload."""

    status_code = 400


# =============================================================================
# Formula Engine Errors
# =============================================================================


class FormulaError(BadRequestError):
    """Base class for errors raised while parsing or evaluating a formula."""


class MalformedFormulaError(FormulaError):
    """Formula string cannot be split into one comparison."""

    def __init__(self, formula: str, reason: str) -> None:
        super().__init__(
            message=f"Malformed formula '{formula}': {reason}",
            code="MALFORMED_FORMULA",
            details={
                "formula": formula[:500],
                "reason": reason,
            },
        )
        self.formula = formula
        self.reason = reason


class UnresolvedVariableError(FormulaError):
    """Expression references variables with no value in the current column."""

    def __init__(self, names: Iterable[str]) -> None:
        self.names = list(dict.fromkeys(names))
        super().__init__(
            message=f"Unresolved variables: {', '.join(self.names)}",
            code="UNRESOLVED_VARIABLE",
            details={"variables": self.names},
        )


class NonNumericResultError(FormulaError):
    """Arithmetic did not produce a finite number."""

    def __init__(self, expression: str, result: Any = None) -> None:
        super().__init__(
            message=f"Expression '{expression}' did not evaluate to a finite number",
            code="NON_NUMERIC_RESULT",
            details={
                "expression": expression[:500],
                "result": str(result)[:100],
            },
        )
        self.expression = expression
        self.result = result


# =============================================================================
# HTTP 413 / 422 - Table Errors
# =============================================================================


class PayloadTooLargeError(LabPortalException):
    """Request exceeds configured table or formula limits."""

    status_code = 413

    def __init__(self, what: str, limit: int, received: int) -> None:
        super().__init__(
            message=f"Too many {what}: {received} (limit {limit})",
            code="PAYLOAD_TOO_LARGE",
            details={
                "what": what,
                "limit": limit,
                "received": received,
            },
        )


class InvalidTableShapeError(LabPortalException):
    """Data table cannot be evaluated at all."""

    status_code = 422

    def __init__(self, message: str, missing_column: str | None = None) -> None:
        super().__init__(
            message=message,
            code="INVALID_TABLE_SHAPE",
            details={"missing_column": missing_column} if missing_column else {},
        )
        self.missing_column = missing_column
