"""
Error taxonomy shared by the services and the HTTP layer.

FinancialValidationError  -> bad or missing input fields (HTTP 400)
DataAccessError           -> the storage backend failed (HTTP 500)
"""
from enum import Enum
from typing import Optional


class ValidationErrorKind(str, Enum):
    MISSING_REQUIRED_FIELD = "MissingRequiredField"
    INVALID_FIELD = "InvalidField"


class FinancialValidationError(ValueError):
    """Raised by the input gate when a financial record cannot be normalized."""

    def __init__(self, kind: ValidationErrorKind, field: Optional[str], message: str):
        super().__init__(message)
        self.kind = kind
        self.field = field
        self.message = message

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "field": self.field,
            "message": self.message,
        }


class DataAccessError(RuntimeError):
    """Raised by a repository backend; the underlying error is chained."""
