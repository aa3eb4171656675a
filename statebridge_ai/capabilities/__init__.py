"""State capability registry.

 A *capability* is a named custom setter over one registered piece of host
 application state.

 - The host registers state (``StateRegistry.register``) on every change.
 - Setters are attached at registration or later (``add_custom_setters``),
   even before the owning state exists.
 - The agent's structured actions are dispatched by key and setter name
   through ``StateRegistry.execute_custom_setter``.

 This package exports:

 - ``StateRegistry``: key → ``RegisteredState`` store and dispatch.
 - ``RegisteredState``/``Setter``/``SetterParameter``: data models.
 """

from .base import RegisteredState, Setter, SetterParameter
from .registry import StateRegistry

__all__ = [
    "RegisteredState",
    "Setter",
    "SetterParameter",
    "StateRegistry",
]
