"""
actor_dispatch.errors
---------------------

Error taxonomy for selector derivation, table construction and dispatch.

Two families live here:

- **Build errors** are exceptions. Every one of them is fatal to deploying
  the actor: a selector collision found after deployment can only be fixed by
  redeploying with renamed methods, so the registry fails fast and carries
  full diagnostics (colliding names, attempted selector, ...).

- **Dispatch errors** are *values* (frozen dataclasses) returned inside a
  `DispatchResult`. An unknown selector is an ordinary outcome, not a crash.

Handlers report failure by raising `HandlerError(payload)`; the dispatcher
turns that into `HandlerFailed(payload)` without touching the payload.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Sequence, Tuple


class ErrorCode(str, Enum):
    # Build (fatal)
    EMPTY_METHOD_NAME = "BUILD/EMPTY_METHOD_NAME"
    ILLEGAL_METHOD_NAME = "BUILD/ILLEGAL_METHOD_NAME"
    RESERVED_NUMBER_MISUSE = "BUILD/RESERVED_NUMBER_MISUSE"
    DUPLICATE_SELECTOR = "BUILD/DUPLICATE_SELECTOR"
    DUPLICATE_METHOD_NAME = "BUILD/DUPLICATE_METHOD_NAME"
    TABLE_TOO_LARGE = "BUILD/TABLE_TOO_LARGE"
    TABLE_FROZEN = "BUILD/TABLE_FROZEN"
    MANIFEST_INVALID = "BUILD/MANIFEST_INVALID"

    # Dispatch (values)
    METHOD_NOT_FOUND = "DISPATCH/METHOD_NOT_FOUND"
    HANDLER_FAILED = "DISPATCH/HANDLER_FAILED"

    # Outbound calls
    MESSAGING = "MESSAGING/SEND_FAILED"


def _coerce_json(v: Any) -> Any:
    if v is None or isinstance(v, (bool, int, float, str)):
        return v
    if isinstance(v, (bytes, bytearray, memoryview)):
        return bytes(v).hex()
    if isinstance(v, (list, tuple, set, frozenset)):
        return [_coerce_json(x) for x in v]
    if isinstance(v, dict):
        return {str(k): _coerce_json(x) for k, x in v.items()}
    return str(v)


@dataclass(eq=False)
class ActorDispatchError(Exception):
    """
    Root error for this package.

    Attributes
    ----------
    code: str
        Machine-stable error code (see ErrorCode).
    message: str
        Human hint suitable for logs.
    data: dict
        Machine data (names, selectors). JSON-safe via `to_dict`.
    cause: Optional[BaseException]
        Wrapped original exception; not part of equality.
    """

    code: str
    message: str
    data: Dict[str, Any] = field(default_factory=dict)
    cause: Optional[BaseException] = field(default=None, compare=False, repr=False)

    def __post_init__(self) -> None:
        super().__init__(f"{self.code}: {self.message}")

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "code": str(getattr(self.code, "value", self.code)),
            "message": self.message,
            "data": _coerce_json(self.data),
        }
        if self.cause is not None:
            out["cause"] = {"type": type(self.cause).__name__, "message": str(self.cause)}
        return out

    def __str__(self) -> str:
        code = getattr(self.code, "value", self.code)
        return f"{code}: {self.message}"


# ---------------------------------------------------------------------------
# Build errors
# ---------------------------------------------------------------------------


class BuildError(ActorDispatchError):
    """Base for every error raised while a method table is being built."""


class EmptyMethodName(BuildError):
    def __init__(self) -> None:
        super().__init__(
            code=ErrorCode.EMPTY_METHOD_NAME,
            message="method name must not be empty",
        )


class IllegalMethodName(BuildError):
    def __init__(self, name: str, reason: str) -> None:
        super().__init__(
            code=ErrorCode.ILLEGAL_METHOD_NAME,
            message=f"illegal method name {name!r}: {reason}",
            data={"name": name, "reason": reason},
        )
        self.name = name
        self.reason = reason


class ReservedNumberMisuse(BuildError):
    def __init__(self, attempted: int, label: Optional[str] = None) -> None:
        msg = f"selector {attempted} is reserved and may not be registered explicitly"
        if label:
            msg += f" (entry {label!r})"
        super().__init__(
            code=ErrorCode.RESERVED_NUMBER_MISUSE,
            message=msg,
            data={"attempted": attempted, "label": label},
        )
        self.attempted = attempted


class DuplicateSelector(BuildError):
    def __init__(self, names: Sequence[str], selector: int) -> None:
        names_t: Tuple[str, ...] = tuple(names)
        super().__init__(
            code=ErrorCode.DUPLICATE_SELECTOR,
            message=(
                f"selector {selector} is shared by {', '.join(repr(n) for n in names_t)}; "
                "rename one of the methods"
            ),
            data={"names": list(names_t), "selector": selector},
        )
        self.names = names_t
        self.selector = selector


class DuplicateMethodName(BuildError):
    def __init__(self, name: str, selectors: Sequence[int]) -> None:
        sels: Tuple[int, ...] = tuple(selectors)
        super().__init__(
            code=ErrorCode.DUPLICATE_METHOD_NAME,
            message=(
                f"method name {name!r} is used for selectors {', '.join(str(s) for s in sels)}; "
                "labels must be unique within a table"
            ),
            data={"name": name, "selectors": list(sels)},
        )
        self.name = name
        self.selectors = sels


class TableTooLarge(BuildError):
    def __init__(self, count: int, limit: int) -> None:
        super().__init__(
            code=ErrorCode.TABLE_TOO_LARGE,
            message=f"{count} methods registered, limit is {limit}",
            data={"count": count, "limit": limit},
        )
        self.count = count
        self.limit = limit


class TableFrozen(BuildError):
    def __init__(self, actor: Optional[str] = None) -> None:
        super().__init__(
            code=ErrorCode.TABLE_FROZEN,
            message="registry has already been built; construct a new one instead",
            data={"actor": actor},
        )


class ManifestInvalid(BuildError):
    def __init__(self, message: str, **data: Any) -> None:
        super().__init__(
            code=ErrorCode.MANIFEST_INVALID,
            message=message,
            data={k: _coerce_json(v) for k, v in data.items()},
        )


# ---------------------------------------------------------------------------
# Handler failure signal
# ---------------------------------------------------------------------------


class HandlerError(Exception):
    """
    Raised by a handler to report failure. `payload` is opaque to the
    dispatcher and is forwarded as-is inside `HandlerFailed`.
    """

    def __init__(self, payload: Any = b"") -> None:
        super().__init__(payload)
        self.payload = payload


# ---------------------------------------------------------------------------
# Dispatch errors (values)
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class MethodNotFound:
    selector: int

    code = ErrorCode.METHOD_NOT_FOUND

    def __str__(self) -> str:
        return f"{self.code.value}: no method registered for selector {self.selector}"


@dataclass(frozen=True)
class HandlerFailed:
    payload: Any

    code = ErrorCode.HANDLER_FAILED

    def __str__(self) -> str:
        return f"{self.code.value}: handler reported failure"


# ---------------------------------------------------------------------------
# Messaging
# ---------------------------------------------------------------------------


class MessagingError(ActorDispatchError):
    def __init__(self, message: str, *, cause: Optional[BaseException] = None, **data: Any) -> None:
        super().__init__(
            code=ErrorCode.MESSAGING,
            message=message,
            data={k: _coerce_json(v) for k, v in data.items()},
            cause=cause,
        )


__all__ = [
    "ErrorCode",
    "ActorDispatchError",
    "BuildError",
    "EmptyMethodName",
    "IllegalMethodName",
    "ReservedNumberMisuse",
    "DuplicateSelector",
    "DuplicateMethodName",
    "TableTooLarge",
    "TableFrozen",
    "ManifestInvalid",
    "HandlerError",
    "MethodNotFound",
    "HandlerFailed",
    "MessagingError",
]
