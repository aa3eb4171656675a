from __future__ import annotations

"""State capability registry.

The registry maps a state key to a ``RegisteredState`` and exposes the named
custom setters of each state as the capability surface an agent may act on.

Two kinds of writers share it:

- the host application, calling ``register`` on every state change to keep
  the mirror current (hot path),
- the agent, whose structured actions arrive through ``execute_custom_setter``.

Agent-originated input is untrusted, so every lookup failure, schema
rejection or setter exception is logged and turned into a no-op instead of an
exception.
"""

import asyncio
import inspect
import logging
from collections import deque
from contextvars import ContextVar
from typing import Any, Deque, Dict, List, Mapping, Optional, Tuple

from ..schema import AnyValidator, ensure_validator
from .base import PrimarySetter, RegisteredState, Setter

logger = logging.getLogger(__name__)

_REGISTER = "register"
_WRITE = "write"

# ids of the registries whose setter is running in the current task
_active_setters: ContextVar[Tuple[int, ...]] = ContextVar("statebridge_active_setters", default=())


class StateRegistry:
    """
    Keyed store of host state plus the setters an agent may invoke.

    Notes:
        - Re-registering an existing key only replaces its value; setters,
          schema and description attached earlier are kept.
        - While a custom setter is executing, ``register``/``write`` calls for
          existing keys are queued and applied in arrival order once it
          finishes, so readers never see a setter's effects interleaved with
          a concurrent overwrite.
        - Unknown keys and setters never raise.
    """

    def __init__(self) -> None:
        """Initialize an empty registry."""
        self._states: Dict[str, RegisteredState] = {}
        self._setter_lock = asyncio.Lock()
        self._executing = 0
        self._pending: Deque[Tuple[str, str, Any]] = deque()

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register(
        self,
        key: str,
        value: Any,
        schema: Any = None,
        description: Optional[str] = None,
        custom_setters: Optional[Mapping[str, Setter]] = None,
        primary_setter: Optional[PrimarySetter] = None,
    ) -> None:
        """
        Register a state or refresh the value of an existing one.

        Args:
            key: Unique state key.
            value: Current value of the host state.
            schema: Optional schema (type, ``Validator`` or callable) checked on every write.
            description: Optional description published to the agent.
            custom_setters: Optional named setters for this state.
            primary_setter: Optional callback invoked by ``write``.
        """
        existing = self._states.get(key)
        if existing is not None and not existing.placeholder:
            if self._executing:
                self._pending.append((_REGISTER, key, value))
                return
            self._apply_value(existing, value)
            return

        validator = ensure_validator(schema)
        result = validator.validate(value)
        if not result.ok:
            logger.warning("Rejected registration of state '%s': %s", key, result.error)
            return

        setters: Dict[str, Setter] = {}
        if existing is not None:
            setters.update(existing.custom_setters)
        if custom_setters:
            setters.update(custom_setters)

        self._states[key] = RegisteredState(
            key=key,
            value=result.value,
            schema=validator,
            description=description,
            primary_setter=primary_setter,
            custom_setters=setters,
        )
        if existing is not None:
            logger.debug("Promoted placeholder state '%s' (%d setters kept)", key, len(existing.custom_setters))
        else:
            logger.debug("Registered state '%s'", key)

    def add_custom_setters(self, key: str, setters: Mapping[str, Setter]) -> bool:
        """
        Attach setters to a state, creating a placeholder if it is not registered yet.

        Args:
            key: The state key.
            setters: Setters to merge in; same-named setters are replaced.

        Returns:
            True once the setters are attached.
        """
        existing = self._states.get(key)
        if existing is None:
            logger.info("Creating placeholder state '%s' with custom setters", key)
            self._states[key] = RegisteredState(
                key=key,
                value=None,
                schema=AnyValidator(),
                description="",
                custom_setters=dict(setters),
                placeholder=True,
            )
            return True
        existing.custom_setters.update(setters)
        return True

    def unregister(self, key: str) -> bool:
        """Remove a state and its setters; returns whether it existed."""
        return self._states.pop(key, None) is not None

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def read(self, key: str) -> Any:
        """Return the stored value for ``key`` or ``None`` when unknown."""
        state = self._states.get(key)
        return state.value if state is not None else None

    def get_state(self, key: str) -> Optional[RegisteredState]:
        return self._states.get(key)

    def has(self, key: str) -> bool:
        return key in self._states

    def keys(self) -> List[str]:
        return list(self._states)

    def describe(self) -> List[Dict[str, Any]]:
        """
        Describe the capability surface for an agent prompt.

        Returns:
            One JSON-serializable dict per state with its description, schema
            (when the validator can produce one) and setters.
        """
        catalog: List[Dict[str, Any]] = []
        for state in self._states.values():
            entry: Dict[str, Any] = {
                "key": state.key,
                "description": state.description or "",
                "setters": {name: setter.to_dict() for name, setter in state.custom_setters.items()},
            }
            json_schema = getattr(state.schema, "json_schema", None)
            if callable(json_schema):
                entry["schema"] = json_schema()
            catalog.append(entry)
        return catalog

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def write(self, key: str, value: Any) -> None:
        """
        Set a state value and push it to the host through the primary setter.

        Unknown keys are logged and ignored.
        """
        state = self._states.get(key)
        if state is None:
            logger.warning("State with key '%s' not found.", key)
            return
        if self._executing:
            self._pending.append((_WRITE, key, value))
            return
        self._write(state, value)

    async def execute_custom_setter(self, key: str, setter_name: str, *args: Any) -> bool:
        """
        Execute a named custom setter against the current value of a state.

        Args:
            key: The state key.
            setter_name: Key of the setter in the state's ``custom_setters``.
            *args: Positional arguments forwarded after the current value.

        Returns:
            True if the setter ran to completion, False if the call was ignored or failed.
        """
        state = self._states.get(key)
        if state is None:
            logger.warning("State with key '%s' not found.", key)
            return False
        setter = state.custom_setters.get(setter_name)
        if setter is None:
            logger.warning("Custom setter '%s' not found for state '%s'.", setter_name, key)
            return False
        if not setter.accepts(len(args)):
            logger.warning(
                "Custom setter '%s' on state '%s' called with %d args; declared parameters: %s",
                setter_name,
                key,
                len(args),
                [p.name for p in setter.parameters or []],
            )
            return False

        if id(self) in _active_setters.get():
            # nested call from inside a running setter: the lock is already ours
            return await self._run_setter(state, setter_name, setter, args)
        async with self._setter_lock:
            return await self._run_setter(state, setter_name, setter, args)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _run_setter(
        self, state: RegisteredState, setter_name: str, setter: Setter, args: Tuple[Any, ...]
    ) -> bool:
        """Run one setter; queued writes are applied when the outermost setter finishes."""
        self._executing += 1
        token = _active_setters.set((*_active_setters.get(), id(self)))
        try:
            outcome = setter.execute(state.value, *args)
            if inspect.isawaitable(outcome):
                await outcome
        except Exception:
            logger.warning("Custom setter '%s' on state '%s' failed", setter_name, state.key, exc_info=True)
            return False
        finally:
            _active_setters.reset(token)
            self._executing -= 1
            if not self._executing:
                self._drain_pending()
        logger.debug("Executed custom setter '%s' on state '%s'", setter_name, state.key)
        return True

    def _apply_value(self, state: RegisteredState, value: Any) -> bool:
        result = state.schema.validate(value)
        if not result.ok:
            logger.warning("Rejected value for state '%s': %s", state.key, result.error)
            return False
        state.value = result.value
        return True

    def _write(self, state: RegisteredState, value: Any) -> None:
        if not self._apply_value(state, value):
            return
        if state.primary_setter is not None:
            try:
                state.primary_setter(state.value)
            except Exception:
                logger.warning("Error calling primary setter for '%s'", state.key, exc_info=True)

    def _drain_pending(self) -> None:
        while self._pending:
            op, key, value = self._pending.popleft()
            state = self._states.get(key)
            if state is None:
                continue
            if op == _WRITE:
                self._write(state, value)
            else:
                self._apply_value(state, value)
