"""
actor_dispatch.reservation — selector space layout and name resolution.

Selector space (u64):

    0                    Send (no-op / plain value transfer)
    1                    Constructor
    [2, 2**24)           reserved for future standard methods
    [2**24, 2**64)       hash-derived

Hashed candidates below FIRST_AVAILABLE are shifted up by FIRST_AVAILABLE,
so a hashed selector can never land on a standard one. Explicit selectors
skip hashing; below FIRST_AVAILABLE only the values in `permitted` may be
registered.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Optional

from .config import FIRST_AVAILABLE, MAX_METHOD_NUMBER, RESERVED_EXPLICIT
from .errors import ReservedNumberMisuse
from .hashing import DEFAULT_HASHER, Hasher, candidate, check_method_name


def normalize(value: int) -> int:
    """Map a hash candidate into the hash-derived selector space."""
    if value < 0:
        raise ValueError(f"candidate must be non-negative (got {value})")
    if value >= FIRST_AVAILABLE:
        return value
    return value + FIRST_AVAILABLE


def is_valid_method_number(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and 0 <= value <= MAX_METHOD_NUMBER


@dataclass(frozen=True)
class ReservationPolicy:
    """
    Immutable selector policy.

    `permitted` lists the selectors below FIRST_AVAILABLE that may be
    registered explicitly. `strict_names` turns on the naming convention for
    hashed names; it never changes the value a name hashes to.
    """

    permitted: Mapping[int, str] = field(default_factory=lambda: RESERVED_EXPLICIT)
    strict_names: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "permitted", MappingProxyType(dict(self.permitted)))

    @property
    def first_available(self) -> int:
        return FIRST_AVAILABLE

    def normalize(self, value: int) -> int:
        return normalize(value)

    def is_permitted_explicit(self, number: int) -> bool:
        return number >= FIRST_AVAILABLE or number in self.permitted

    def check_explicit(self, number: int, *, label: Optional[str] = None) -> int:
        """Validate an explicit selector; returns it unchanged."""
        if not is_valid_method_number(number):
            raise ValueError(f"explicit selector must be a u64 integer (got {number!r})")
        if not self.is_permitted_explicit(number):
            raise ReservedNumberMisuse(number, label)
        return number

    def label_for(self, number: int) -> Optional[str]:
        return self.permitted.get(number)


DEFAULT_POLICY = ReservationPolicy()


class MethodResolver:
    """Full name → selector pipeline: validate, hash, normalize."""

    __slots__ = ("hasher", "policy")

    def __init__(
        self,
        hasher: Optional[Hasher] = None,
        policy: Optional[ReservationPolicy] = None,
    ) -> None:
        self.hasher: Hasher = hasher or DEFAULT_HASHER
        self.policy: ReservationPolicy = policy or DEFAULT_POLICY

    def method_number(self, name: str) -> int:
        check_method_name(name, strict=self.policy.strict_names)
        return self.policy.normalize(candidate(name, hasher=self.hasher))

    def __repr__(self) -> str:
        return f"MethodResolver(hasher={self.hasher!r}, policy={self.policy!r})"


DEFAULT_RESOLVER = MethodResolver()


def method_number(name: str) -> int:
    """Selector for `name` under the default hasher and policy."""
    return DEFAULT_RESOLVER.method_number(name)


__all__ = [
    "FIRST_AVAILABLE",
    "normalize",
    "is_valid_method_number",
    "ReservationPolicy",
    "DEFAULT_POLICY",
    "MethodResolver",
    "DEFAULT_RESOLVER",
    "method_number",
]
