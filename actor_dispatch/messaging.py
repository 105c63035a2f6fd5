"""
actor_dispatch.messaging — call standard methods on other actors by name.

The host runtime owns the actual message send. It is injected as a callable:

    send(to, method_number, params, value) -> Any

`MethodMessenger` resolves the method name with the same resolver used to
build tables, so the selector it sends is exactly the one the receiving
actor registered.
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Protocol

from .config import METHOD_SEND
from .errors import BuildError, MessagingError
from .reservation import DEFAULT_RESOLVER, MethodResolver, is_valid_method_number

log = logging.getLogger(__name__)


class SendHook(Protocol):
    def __call__(self, to: Any, method_number: int, params: bytes, value: int) -> Any: ...


class MethodMessenger:
    __slots__ = ("_send", "resolver")

    def __init__(self, send: SendHook, resolver: Optional[MethodResolver] = None) -> None:
        self._send = send
        self.resolver = resolver or DEFAULT_RESOLVER

    def call_method(self, to: Any, method: str, params: bytes = b"", value: int = 0) -> Any:
        """Resolve `method` and send it to `to`; host errors become MessagingError."""
        try:
            number = self.resolver.method_number(method)
        except BuildError as e:
            raise MessagingError(
                f"cannot compute selector for {method!r}", cause=e, method=method
            ) from e
        return self.call_number(to, number, params, value, method=method)

    def call_number(
        self,
        to: Any,
        number: int,
        params: bytes = b"",
        value: int = 0,
        *,
        method: Optional[str] = None,
    ) -> Any:
        if not is_valid_method_number(number):
            raise MessagingError(f"invalid selector {number!r}", selector=number)
        log.debug("sending message", extra={"to": to, "selector": number, "method": method})
        try:
            return self._send(to, number, bytes(params), value)
        except Exception as e:
            raise MessagingError(
                "error sending message", cause=e, to=to, selector=number, method=method
            ) from e

    def send_value(self, to: Any, value: int) -> Any:
        """Plain value transfer (selector 0, empty params)."""
        return self.call_number(to, METHOD_SEND, b"", value)


__all__ = ["SendHook", "MethodMessenger"]
