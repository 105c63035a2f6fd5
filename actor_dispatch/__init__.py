"""
actor_dispatch — numeric method dispatch for actor standard libraries.

Actors expose methods by 64-bit selector rather than by name. This package
fixes how a name becomes a selector and how a selector reaches its handler:

- method_number(name) -> int
    BLAKE2b-512 of the name, first 4 bytes big-endian, shifted into
    [2**24, ...) when the value would land in the reserved range.
- build(entries, ...) -> MethodTable
    Assemble an immutable selector table; duplicate selectors and misuse of
    the reserved range fail the build.
- dispatch(table, selector, params) -> DispatchResult
    Route one call; unknown selectors yield MethodNotFound.

    from actor_dispatch import MethodRegistry, dispatch

    reg = MethodRegistry("token")

    @reg.method("Transfer")
    def transfer(params: bytes) -> bytes:
        ...

    table = reg.build()
    result = dispatch(table, table.selector_for("Transfer"), b"...")
"""

from __future__ import annotations

from .config import (FIRST_AVAILABLE, METHOD_CONSTRUCTOR, METHOD_SEND,
                     RESERVED_EXPLICIT)
from .dispatcher import (DispatchRequest, DispatchResult, Dispatcher,
                         dispatch)
from .errors import (ActorDispatchError, BuildError, DuplicateMethodName,
                     DuplicateSelector, EmptyMethodName, HandlerError, HandlerFailed,
                     IllegalMethodName, MessagingError, MethodNotFound,
                     ReservedNumberMisuse, TableFrozen, TableTooLarge)
from .hashing import Blake2bHasher, Hasher, candidate, digest, to_method_name
from .messaging import MethodMessenger
from .registry import Method, MethodEntry, MethodRegistry, MethodTable, build
from .reservation import (DEFAULT_POLICY, MethodResolver, ReservationPolicy,
                          method_number, normalize)
from .version import __version__


def version() -> str:
    """Return the actor_dispatch version string."""
    return __version__


__all__ = [
    "__version__",
    "version",
    # constants
    "FIRST_AVAILABLE",
    "METHOD_SEND",
    "METHOD_CONSTRUCTOR",
    "RESERVED_EXPLICIT",
    # hashing / policy
    "Hasher",
    "Blake2bHasher",
    "digest",
    "candidate",
    "to_method_name",
    "normalize",
    "ReservationPolicy",
    "DEFAULT_POLICY",
    "MethodResolver",
    "method_number",
    # registry
    "Method",
    "MethodEntry",
    "MethodTable",
    "MethodRegistry",
    "build",
    # dispatch
    "DispatchRequest",
    "DispatchResult",
    "Dispatcher",
    "dispatch",
    # messaging
    "MethodMessenger",
    # errors
    "ActorDispatchError",
    "BuildError",
    "EmptyMethodName",
    "IllegalMethodName",
    "ReservedNumberMisuse",
    "DuplicateSelector",
    "DuplicateMethodName",
    "TableTooLarge",
    "TableFrozen",
    "HandlerError",
    "MethodNotFound",
    "HandlerFailed",
    "MessagingError",
]
