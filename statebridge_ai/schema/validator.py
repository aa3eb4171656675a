"""Value validation for registered state and structured agent responses.

A ``Validator`` checks an arbitrary value against a declared shape and
returns a ``ValidationResult`` instead of raising, so callers at the
registry boundary can log and reject bad values without unwinding.

The default implementation is backed by ``pydantic.TypeAdapter``; any type
pydantic understands (builtins, ``list[Model]``, ``TypedDict``, models) can
serve as a schema.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Generic, Optional, Protocol, TypeVar, runtime_checkable

from pydantic import TypeAdapter, ValidationError

T = TypeVar("T")


@dataclass(frozen=True)
class ValidationResult(Generic[T]):
    """Outcome of a validation.

    Attributes:
        ok: Whether the value matched the schema.
        value: The (possibly coerced) value when ``ok`` is True.
        error: Human-readable reason when ``ok`` is False.
    """

    ok: bool
    value: Optional[T] = None
    error: Optional[str] = None

    @classmethod
    def success(cls, value: T) -> "ValidationResult[T]":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, error: str) -> "ValidationResult[T]":
        return cls(ok=False, error=error)


@runtime_checkable
class Validator(Protocol[T]):
    """Protocol for schema validators."""

    def validate(self, value: Any) -> ValidationResult[T]: ...


class AnyValidator:
    """Accepts every value unchanged."""

    def validate(self, value: Any) -> ValidationResult[Any]:
        return ValidationResult.success(value)

    def __repr__(self) -> str:
        return "AnyValidator()"


class TypeValidator(Generic[T]):
    """Validator backed by ``pydantic.TypeAdapter``.

    Args:
        tp: Any type pydantic can validate.
        strict: Disable pydantic's lax coercion (e.g. ``"1"`` to ``1``).
    """

    def __init__(self, tp: Any, *, strict: bool = False) -> None:
        self._type = tp
        self._adapter: TypeAdapter[T] = TypeAdapter(tp)
        self._strict = strict

    @property
    def type(self) -> Any:
        return self._type

    def validate(self, value: Any) -> ValidationResult[T]:
        try:
            return ValidationResult.success(self._adapter.validate_python(value, strict=self._strict))
        except ValidationError as e:
            return ValidationResult.failure(str(e))

    def json_schema(self) -> dict[str, Any]:
        """JSON schema for the wrapped type, used when describing state to an agent."""
        return self._adapter.json_schema()

    def __repr__(self) -> str:
        return f"TypeValidator({self._type!r})"


class CallableValidator:
    """Adapt a plain function into a ``Validator``.

    The function may either return a bool (predicate style) or raise
    ``ValueError``/``TypeError`` on invalid input; any other return value is
    treated as success and the original value is kept.
    """

    def __init__(self, fn: Callable[[Any], Any], *, name: Optional[str] = None) -> None:
        self._fn = fn
        self._name = name or getattr(fn, "__name__", "validator")

    def validate(self, value: Any) -> ValidationResult[Any]:
        try:
            outcome = self._fn(value)
        except (ValueError, TypeError) as e:
            return ValidationResult.failure(f"{self._name}: {e}")
        if outcome is False:
            return ValidationResult.failure(f"{self._name} rejected value")
        return ValidationResult.success(value)

    def __repr__(self) -> str:
        return f"CallableValidator({self._name})"


def ensure_validator(schema: Any) -> Validator[Any]:
    """Coerce a schema declaration into a ``Validator``.

    Accepts ``None`` (anything goes), an object that already implements
    ``validate``, a type or typing construct, or a plain callable.
    """
    if schema is None:
        return AnyValidator()
    # Types first: pydantic model classes also expose a ``validate`` attribute.
    if isinstance(schema, type) or getattr(schema, "__origin__", None) is not None:
        return TypeValidator(schema)
    if isinstance(schema, Validator):
        return schema
    if callable(schema):
        return CallableValidator(schema)
    raise TypeError(f"Unsupported schema declaration: {schema!r}")
