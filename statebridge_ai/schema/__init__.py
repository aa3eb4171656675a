"""Schema validation used by the capability registry and the response router."""

from .validator import (
    AnyValidator,
    CallableValidator,
    TypeValidator,
    ValidationResult,
    Validator,
    ensure_validator,
)

__all__ = [
    "AnyValidator",
    "CallableValidator",
    "TypeValidator",
    "ValidationResult",
    "Validator",
    "ensure_validator",
]
