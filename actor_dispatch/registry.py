"""
actor_dispatch.registry — build-time assembly of an actor's method table.

Input is an ordered registration list, normally produced by code generation
or a manifest (see `actor_dispatch.manifest`). Each item is one of

    Method(name="Transfer", handler=fn)          # hashed selector
    Method(number=1, handler=fn, name="Ctor")    # explicit selector (name is a label)
    ("Transfer", fn)                             # tuple shorthand
    (1, fn)

`build()` resolves every selector, checks explicit low-range selectors
against the reservation policy, and aborts on the first duplicate selector,
reporting every entry that shares it. The result is a `MethodTable`:
an immutable selector → `MethodEntry` mapping.

Lifecycle
---------
    Building  — MethodRegistry collecting entries; build can still fail
    Active    — MethodTable; read-only, dispatch only

There is no way back from Active. A different table means a new build.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import (Any, Callable, Dict, Iterable, Iterator, List, Mapping,
                    Optional, Sequence, Tuple, Union)

from .config import METHOD_CONSTRUCTOR, load_config
from .errors import (BuildError, DuplicateMethodName, DuplicateSelector,
                     TableFrozen, TableTooLarge)
from .hashing import to_method_name
from .reservation import DEFAULT_POLICY, MethodResolver, ReservationPolicy

log = logging.getLogger(__name__)

Handler = Callable[[bytes], Any]
Registration = Union["Method", Tuple[Union[str, int], Handler]]


# ------------------------------ Data Models ---------------------------------


@dataclass(frozen=True)
class Method:
    """
    One registration item.

    Fields:
        handler: Callable receiving the raw parameter bytes.
        name: Method name. Hashed unless `number` is given, in which case it
              is only used as a label in diagnostics.
        number: Explicit selector; skips hashing.
    """

    handler: Handler
    name: Optional[str] = None
    number: Optional[int] = None

    def __post_init__(self) -> None:
        if self.name is None and self.number is None:
            raise TypeError("Method needs a name or an explicit number")
        if not callable(self.handler):
            raise TypeError(f"handler for {self.name or self.number!r} is not callable")

    @property
    def explicit(self) -> bool:
        return self.number is not None


@dataclass(frozen=True)
class MethodEntry:
    selector: int
    handler: Handler
    name: str


class Phase(Enum):
    BUILDING = "building"
    ACTIVE = "active"


class MethodTable(Mapping[int, MethodEntry]):
    """
    Immutable selector → MethodEntry mapping for one actor.

    Normally produced by `build()`. Direct construction applies the same
    table invariants: unique selectors, unique names, and no selector below
    FIRST_AVAILABLE unless `policy` permits it explicitly.
    """

    __slots__ = ("_entries", "_by_name", "actor")

    def __init__(
        self,
        entries: Iterable[MethodEntry],
        *,
        actor: Optional[str] = None,
        policy: Optional[ReservationPolicy] = None,
    ) -> None:
        policy = policy or DEFAULT_POLICY
        by_sel: Dict[int, MethodEntry] = {}
        by_name: Dict[str, int] = {}
        for e in entries:
            policy.check_explicit(e.selector, label=e.name)
            if e.selector in by_sel:
                raise DuplicateSelector([by_sel[e.selector].name, e.name], e.selector)
            if e.name in by_name:
                raise DuplicateMethodName(e.name, [by_name[e.name], e.selector])
            by_sel[e.selector] = e
            by_name[e.name] = e.selector
        self._entries: Mapping[int, MethodEntry] = MappingProxyType(by_sel)
        self._by_name: Mapping[str, int] = MappingProxyType(by_name)
        self.actor = actor

    def __getitem__(self, selector: int) -> MethodEntry:
        return self._entries[selector]

    def __iter__(self) -> Iterator[int]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, selector: object) -> bool:
        return selector in self._entries

    @property
    def phase(self) -> Phase:
        return Phase.ACTIVE

    def lookup(self, selector: int) -> Optional[MethodEntry]:
        return self._entries.get(selector)

    def selector_for(self, name: str) -> int:
        """Selector registered under `name` (hashed name or explicit label)."""
        return self._by_name[name]

    def names(self) -> Mapping[str, int]:
        return self._by_name

    def as_dict(self) -> Dict[str, Any]:
        return {
            "actor": self.actor,
            "methods": [
                {"name": e.name, "selector": sel} for sel, e in sorted(self._entries.items())
            ],
        }

    def __repr__(self) -> str:
        return f"MethodTable(actor={self.actor!r}, methods={len(self)})"


# ------------------------------ Build ---------------------------------------


def _coerce(item: Registration) -> Method:
    if isinstance(item, Method):
        return item
    if isinstance(item, tuple) and len(item) == 2:
        key, handler = item
        if isinstance(key, bool):
            raise TypeError(f"registration key must be str or int (got {key!r})")
        if isinstance(key, int):
            return Method(handler=handler, number=key)
        if isinstance(key, str):
            return Method(handler=handler, name=key)
        raise TypeError(f"registration key must be str or int (got {type(key).__name__})")
    raise TypeError(f"unsupported registration item: {item!r}")


def default_resolver() -> MethodResolver:
    """Resolver honoring ACTOR_DISPATCH_STRICT_NAMES."""
    return MethodResolver(policy=ReservationPolicy(strict_names=load_config().strict_names))


def _resolve(m: Method, resolver: MethodResolver) -> Tuple[str, int]:
    """Return (label, selector) for one item."""
    policy = resolver.policy
    if m.number is not None:
        label = m.name or policy.label_for(m.number) or f"#{m.number}"
        return label, policy.check_explicit(m.number, label=label)
    if m.name is None:
        raise TypeError("Method needs a name or an explicit number")
    return m.name, resolver.method_number(m.name)


def _sharing(selector: int, rest: Sequence[Method], resolver: MethodResolver) -> List[str]:
    """Labels of the remaining items that also resolve to `selector`."""
    out: List[str] = []
    for m in rest:
        try:
            label, sel = _resolve(m, resolver)
        except BuildError:
            continue
        if sel == selector:
            out.append(label)
    return out


def build(
    entries: Iterable[Registration],
    *,
    resolver: Optional[MethodResolver] = None,
    max_methods: Optional[int] = None,
    actor: Optional[str] = None,
) -> MethodTable:
    """
    Assemble a MethodTable from an ordered registration list.

    Raises
    ------
    EmptyMethodName, IllegalMethodName
        A hashed entry has an unusable name.
    ReservedNumberMisuse
        An explicit selector below FIRST_AVAILABLE is not permitted.
    DuplicateSelector
        Two or more entries resolve to the same selector. Nothing is built.
    DuplicateMethodName
        Two entries share a name or label but not a selector.
    TableTooLarge
        More entries than `max_methods` (default: ACTOR_DISPATCH_MAX_METHODS).
    """
    items = [_coerce(e) for e in entries]
    resolver = resolver or default_resolver()
    limit = max_methods if max_methods is not None else load_config().max_methods

    try:
        if len(items) > limit:
            raise TableTooLarge(len(items), limit)

        accepted: Dict[int, MethodEntry] = {}
        by_name: Dict[str, int] = {}
        for idx, m in enumerate(items):
            label, selector = _resolve(m, resolver)
            prior = accepted.get(selector)
            if prior is not None:
                names = [prior.name, label] + _sharing(selector, items[idx + 1:], resolver)
                raise DuplicateSelector(names, selector)
            if label in by_name:
                raise DuplicateMethodName(label, [by_name[label], selector])
            by_name[label] = selector
            accepted[selector] = MethodEntry(selector=selector, handler=m.handler, name=label)
            log.debug(
                "method resolved",
                extra={"method": label, "selector": selector, "explicit": m.explicit},
            )
    except BuildError as e:
        log.error("method table build failed", extra={"actor": actor, "error": e.to_dict()})
        raise

    table = MethodTable(accepted.values(), actor=actor, policy=resolver.policy)
    log.info("method table built", extra={"actor": actor, "methods": len(table)})
    return table


# ------------------------------ Registry ------------------------------------


class MethodRegistry:
    """
    Building-phase collector with decorator sugar.

        reg = MethodRegistry("token")

        @reg.constructor
        def construct(params: bytes) -> bytes: ...

        @reg.method()                  # hashed as "TransferFrom"
        def transfer_from(params: bytes) -> bytes: ...

        @reg.method("Mint")
        def do_mint(params: bytes) -> bytes: ...

        table = reg.build()            # registry is frozen from here on
    """

    def __init__(
        self,
        actor: Optional[str] = None,
        *,
        resolver: Optional[MethodResolver] = None,
        max_methods: Optional[int] = None,
    ) -> None:
        self.actor = actor
        self._resolver = resolver
        self._max_methods = max_methods
        self._items: List[Method] = []
        self._table: Optional[MethodTable] = None

    @property
    def phase(self) -> Phase:
        return Phase.BUILDING if self._table is None else Phase.ACTIVE

    @property
    def entries(self) -> Tuple[Method, ...]:
        return tuple(self._items)

    def add(self, method: Union[str, int], handler: Handler, *, name: Optional[str] = None) -> "MethodRegistry":
        if self._table is not None:
            raise TableFrozen(self.actor)
        if isinstance(method, int) and not isinstance(method, bool):
            self._items.append(Method(handler=handler, number=method, name=name))
        elif isinstance(method, str):
            if name is not None:
                raise TypeError(f"name= only labels explicit selectors; {method!r} is already a name")
            self._items.append(Method(handler=handler, name=method))
        else:
            raise TypeError(f"method must be a name or selector (got {method!r})")
        return self

    def method(self, method: Union[str, int, None] = None, *, name: Optional[str] = None) -> Callable[[Handler], Handler]:
        def deco(fn: Handler) -> Handler:
            key = method if method is not None else to_method_name(fn.__name__)
            self.add(key, fn, name=name)
            return fn

        return deco

    def constructor(self, fn: Handler) -> Handler:
        self.add(METHOD_CONSTRUCTOR, fn, name="Constructor")
        return fn

    def build(self) -> MethodTable:
        """Build once; later calls return the same table."""
        if self._table is None:
            self._table = build(
                self._items,
                resolver=self._resolver,
                max_methods=self._max_methods,
                actor=self.actor,
            )
        return self._table


__all__ = [
    "Handler",
    "Registration",
    "Method",
    "MethodEntry",
    "MethodTable",
    "Phase",
    "MethodRegistry",
    "build",
    "default_resolver",
]
