"""Registered state and setter data models.

A *registered state* mirrors one piece of host application state inside the
``StateRegistry``. It carries the current value, an optional schema, an
optional primary setter used to push writes back to the host, and a mapping
of named *custom setters* an agent may invoke.

Setters should:

- order remote side effects before updating local mirrors,
- be safe to re-invoke with the same arguments (a caller that cannot observe
  completion may retry),
- push their result back to the host through host-owned update functions;
  the registry never owns the underlying storage.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

from ..schema import AnyValidator, Validator

SetterFunction = Callable[..., Union[None, Awaitable[None]]]
PrimarySetter = Callable[[Any], None]


@dataclass(frozen=True)
class SetterParameter:
    """Declared parameter of a custom setter, published to the agent."""

    name: str
    type: str
    description: str = ""
    optional: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "type": self.type,
            "description": self.description,
            "optional": self.optional,
        }


@dataclass
class Setter:
    """A named mutation function over one registered state.

    Attributes
    ----------
    name:
        Human-readable name of the setter.
    description:
        What the setter does, written for the agent.
    execute:
        ``execute(current_value, *args)``; may be a coroutine function.
    parameters:
        Declared positional parameters. ``None`` means undeclared, in which
        case the registry performs no arity check.
    """

    name: str
    description: str
    execute: SetterFunction
    parameters: Optional[List[SetterParameter]] = None

    def accepts(self, arg_count: int) -> bool:
        """Whether ``arg_count`` positional arguments fit the declared parameters."""
        if self.parameters is None:
            return True
        required = sum(1 for p in self.parameters if not p.optional)
        return required <= arg_count <= len(self.parameters)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "parameters": [p.to_dict() for p in self.parameters or []],
        }


@dataclass
class RegisteredState:
    """One entry of the registry.

    ``placeholder`` is True while the entry exists only because setters were
    attached before the owning value was registered.
    """

    key: str
    value: Any = None
    schema: Validator[Any] = field(default_factory=AnyValidator)
    description: Optional[str] = None
    primary_setter: Optional[PrimarySetter] = None
    custom_setters: Dict[str, Setter] = field(default_factory=dict)
    placeholder: bool = False
