"""
actor_dispatch.dispatcher — route (selector, params) to a handler.

    result = dispatch(table, selector, params)
    if result.ok:
        return result.value
    if isinstance(result.error, MethodNotFound):
        ...

Rules
-----
- Lookup is a single keyed read on an immutable MethodTable.
- Miss → `MethodNotFound(selector)`; nothing is invoked. A selector outside
  the u64 range can never be registered, so it is a miss as well.
- Parameters are type-checked only on a hit: a miss is reported as
  `MethodNotFound` whatever the parameters are.
- Hit → the handler is called exactly once with the raw parameter bytes and
  its outcome is returned verbatim:
    * a returned `DispatchResult`, `HandlerFailed` or `MethodNotFound` is
      passed through (the latter two as failures);
    * `HandlerError(payload)` becomes `HandlerFailed(payload)`;
    * any other return value is the success payload, untouched;
    * any other exception is a handler bug and propagates to the caller.
- No retries, no state between calls, no locking. Any number of threads may
  dispatch against the same table concurrently.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional, Union

from .errors import HandlerError, HandlerFailed, MethodNotFound
from .registry import MethodTable
from .reservation import is_valid_method_number

log = logging.getLogger(__name__)

DispatchError = Union[MethodNotFound, HandlerFailed]


@dataclass(frozen=True)
class DispatchRequest:
    selector: int
    parameters: bytes = b""


@dataclass(frozen=True)
class DispatchResult:
    """Success payload or a tagged dispatch error; exactly one is set."""

    value: Any = None
    error: Optional[DispatchError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: Any) -> "DispatchResult":
        return cls(value=value)

    @classmethod
    def failure(cls, error: DispatchError) -> "DispatchResult":
        return cls(error=error)


def _as_params(parameters: Any) -> bytes:
    if parameters is None:
        return b""
    if isinstance(parameters, bytes):
        return parameters
    if isinstance(parameters, (bytearray, memoryview)):
        return bytes(parameters)
    raise TypeError(f"parameters must be bytes-like (got {type(parameters).__name__})")


def dispatch(table: MethodTable, selector: int, parameters: Any = b"") -> DispatchResult:
    if isinstance(selector, bool) or not isinstance(selector, int):
        raise TypeError(f"selector must be an int (got {type(selector).__name__})")

    entry = table.lookup(selector) if is_valid_method_number(selector) else None
    if entry is None:
        log.debug("unknown selector", extra={"selector": selector, "actor": table.actor})
        return DispatchResult.failure(MethodNotFound(selector))

    data = _as_params(parameters)
    try:
        out = entry.handler(data)
    except HandlerError as e:
        log.debug("handler failed", extra={"method": entry.name, "selector": selector})
        return DispatchResult.failure(HandlerFailed(e.payload))

    if isinstance(out, DispatchResult):
        return out
    if isinstance(out, (HandlerFailed, MethodNotFound)):
        return DispatchResult.failure(out)
    return DispatchResult.success(out)


class Dispatcher:
    """A table bound to the dispatch function; holds no other state."""

    __slots__ = ("table",)

    def __init__(self, table: MethodTable) -> None:
        self.table = table

    def dispatch(self, selector: int, parameters: Any = b"") -> DispatchResult:
        return dispatch(self.table, selector, parameters)

    def invoke(self, request: DispatchRequest) -> DispatchResult:
        return dispatch(self.table, request.selector, request.parameters)

    __call__ = dispatch

    def __repr__(self) -> str:
        return f"Dispatcher({self.table!r})"


__all__ = [
    "DispatchError",
    "DispatchRequest",
    "DispatchResult",
    "dispatch",
    "Dispatcher",
]
