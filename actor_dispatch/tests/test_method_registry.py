from __future__ import annotations

import logging

import pytest

from actor_dispatch.config import FIRST_AVAILABLE, METHOD_CONSTRUCTOR, METHOD_SEND
from actor_dispatch.errors import (BuildError, DuplicateMethodName, DuplicateSelector,
                                   EmptyMethodName, IllegalMethodName, ReservedNumberMisuse,
                                   TableFrozen, TableTooLarge)
from actor_dispatch.registry import (Method, MethodEntry, MethodRegistry,
                                     MethodTable, Phase, build)
from actor_dispatch.reservation import (MethodResolver, ReservationPolicy,
                                        method_number)

SAME_PREFIX = b"\x12\x34\x56\x78" + bytes(60)


def _noop(params: bytes) -> bytes:
    return params


# ---------------------------------------------------------------------------
# Happy path
# ---------------------------------------------------------------------------


def test_build_hashes_names_and_keeps_explicit_numbers() -> None:
    table = build([("Transfer", _noop), ("Mint", _noop), (METHOD_CONSTRUCTOR, _noop)])

    assert isinstance(table, MethodTable)
    assert len(table) == 3
    assert method_number("Transfer") in table
    assert method_number("Mint") in table
    assert METHOD_CONSTRUCTOR in table
    assert table[METHOD_CONSTRUCTOR].name == "Constructor"
    assert table.selector_for("Transfer") == method_number("Transfer")


def test_method_objects_and_tuples_are_interchangeable() -> None:
    a = build([Method(handler=_noop, name="Burn"), Method(handler=_noop, number=0, name="Send")])
    b = build([("Burn", _noop), (0, _noop)])
    assert set(a) == set(b)
    assert b[METHOD_SEND].name == "Send"


def test_explicit_label_is_used_for_explicit_entries() -> None:
    table = build([Method(handler=_noop, number=1, name="Init")])
    assert table[1].name == "Init"
    assert table.selector_for("Init") == 1


@pytest.mark.parametrize("number", [0, 1])
def test_permitted_reserved_numbers_register(number: int) -> None:
    table = build([(number, _noop)])
    assert number in table


def test_explicit_number_in_hash_space_is_allowed() -> None:
    table = build([(FIRST_AVAILABLE + 7, _noop)])
    assert table[FIRST_AVAILABLE + 7].name == f"#{FIRST_AVAILABLE + 7}"


def test_empty_registration_builds_empty_table() -> None:
    table = build([])
    assert len(table) == 0
    assert table.lookup(1) is None


def test_table_as_dict_lists_methods_sorted_by_selector() -> None:
    table = build([("Transfer", _noop), (1, _noop)], actor="token")
    doc = table.as_dict()
    assert doc["actor"] == "token"
    selectors = [m["selector"] for m in doc["methods"]]
    assert selectors == sorted(selectors)
    assert {"name": "Constructor", "selector": 1} in doc["methods"]


# ---------------------------------------------------------------------------
# Failures
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("number", [2, 5, 1000, FIRST_AVAILABLE - 1])
def test_unpermitted_reserved_numbers_fail(number: int) -> None:
    with pytest.raises(ReservedNumberMisuse) as excinfo:
        build([("Transfer", _noop), (number, _noop)])
    assert excinfo.value.attempted == number
    assert excinfo.value.to_dict()["data"]["attempted"] == number


def test_custom_policy_can_permit_more_reserved_numbers() -> None:
    policy = ReservationPolicy(permitted={0: "Send", 1: "Constructor", 5: "Upgrade"})
    table = build([(5, _noop)], resolver=MethodResolver(policy=policy))
    assert table[5].name == "Upgrade"


def test_empty_name_fails_build() -> None:
    with pytest.raises(EmptyMethodName):
        build([("Transfer", _noop), ("", _noop)])


def test_unencodable_name_fails_build() -> None:
    """A lone surrogate has no UTF-8 encoding and so no selector."""
    with pytest.raises(IllegalMethodName) as excinfo:
        build([("Transfer", _noop), ("\ud800", _noop)])
    assert isinstance(excinfo.value, BuildError)
    assert excinfo.value.reason == "not valid UTF-8"


@pytest.mark.parametrize("bad", [-1, 1 << 64])
def test_out_of_range_explicit_numbers_are_rejected(bad: int) -> None:
    with pytest.raises(ValueError):
        build([(bad, _noop)])


def test_bad_registration_items_are_type_errors() -> None:
    with pytest.raises(TypeError):
        build([("Transfer",)])  # type: ignore[list-item]
    with pytest.raises(TypeError):
        build([(True, _noop)])  # type: ignore[list-item]
    with pytest.raises(TypeError):
        build([(1.5, _noop)])  # type: ignore[list-item]
    with pytest.raises(TypeError):
        build([("Transfer", "not callable")])  # type: ignore[list-item]
    with pytest.raises(TypeError):
        Method(handler=_noop)

    # a Method whose name was cleared after validation is still rejected
    nameless = Method(handler=_noop, name="Transfer")
    object.__setattr__(nameless, "name", None)
    with pytest.raises(TypeError):
        build([nameless])


def test_duplicate_names_collide() -> None:
    with pytest.raises(DuplicateSelector) as excinfo:
        build([("Transfer", _noop), ("Mint", _noop), ("Transfer", _noop)])
    err = excinfo.value
    assert err.names == ("Transfer", "Transfer")
    assert err.selector == method_number("Transfer")


def test_stub_collision_names_both_entries(stub_hasher, counting) -> None:
    hasher = stub_hasher({"Alpha": SAME_PREFIX, "Beta": SAME_PREFIX})
    resolver = MethodResolver(hasher=hasher)
    h = counting()

    with pytest.raises(DuplicateSelector) as excinfo:
        build([("Alpha", h), ("Beta", h)], resolver=resolver)

    err = excinfo.value
    assert set(err.names) == {"Alpha", "Beta"}
    assert err.selector == 0x12345678
    assert "Alpha" in str(err) and "Beta" in str(err)
    assert err.to_dict()["data"] == {"names": ["Alpha", "Beta"], "selector": 0x12345678}
    assert h.count == 0


def test_collision_report_lists_every_sharing_entry_in_order(stub_hasher) -> None:
    hasher = stub_hasher({"A": SAME_PREFIX, "B": SAME_PREFIX, "C": SAME_PREFIX})
    resolver = MethodResolver(hasher=hasher)

    with pytest.raises(DuplicateSelector) as excinfo:
        build([("A", _noop), ("Other", _noop), ("B", _noop), ("C", _noop)], resolver=resolver)
    assert excinfo.value.names == ("A", "B", "C")


def test_collision_with_explicit_entry_is_detected(stub_hasher) -> None:
    hasher = stub_hasher({"Shadow": (FIRST_AVAILABLE + 3).to_bytes(4, "big") + bytes(60)})
    resolver = MethodResolver(hasher=hasher)

    with pytest.raises(DuplicateSelector) as excinfo:
        build([(FIRST_AVAILABLE + 3, _noop), ("Shadow", _noop)], resolver=resolver)
    assert excinfo.value.names == (f"#{FIRST_AVAILABLE + 3}", "Shadow")


def test_collision_report_is_deterministic_for_the_same_order(stub_hasher) -> None:
    resolver = MethodResolver(hasher=stub_hasher({"X": SAME_PREFIX, "Y": SAME_PREFIX}))
    reports = []
    for _ in range(3):
        with pytest.raises(DuplicateSelector) as excinfo:
            build([("Y", _noop), ("X", _noop)], resolver=resolver)
        reports.append(excinfo.value.names)
    assert reports == [("Y", "X")] * 3


def test_name_reused_for_a_different_selector_fails() -> None:
    """An explicit label may not shadow a hashed name in the same table."""
    with pytest.raises(DuplicateMethodName) as excinfo:
        build([("Transfer", _noop), Method(handler=_noop, number=1, name="Transfer")])
    err = excinfo.value
    assert isinstance(err, BuildError)
    assert err.name == "Transfer"
    assert err.selectors == (method_number("Transfer"), 1)
    assert err.to_dict()["data"] == {"name": "Transfer", "selectors": [method_number("Transfer"), 1]}


def test_table_constructor_enforces_reserved_range() -> None:
    with pytest.raises(ReservedNumberMisuse) as excinfo:
        MethodTable([MethodEntry(selector=5, handler=_noop, name="Sneaky")])
    assert excinfo.value.attempted == 5

    table = MethodTable(
        [
            MethodEntry(selector=METHOD_SEND, handler=_noop, name="Send"),
            MethodEntry(selector=METHOD_CONSTRUCTOR, handler=_noop, name="Constructor"),
            MethodEntry(selector=FIRST_AVAILABLE, handler=_noop, name="Low"),
        ]
    )
    assert sorted(table) == [0, 1, FIRST_AVAILABLE]

    policy = ReservationPolicy(permitted={5: "Upgrade"})
    assert 5 in MethodTable([MethodEntry(selector=5, handler=_noop, name="Upgrade")], policy=policy)


def test_table_constructor_rejects_reused_names() -> None:
    with pytest.raises(DuplicateMethodName):
        MethodTable(
            [
                MethodEntry(selector=FIRST_AVAILABLE, handler=_noop, name="Transfer"),
                MethodEntry(selector=FIRST_AVAILABLE + 1, handler=_noop, name="Transfer"),
            ]
        )
    with pytest.raises(DuplicateSelector):
        MethodTable(
            [
                MethodEntry(selector=FIRST_AVAILABLE, handler=_noop, name="A"),
                MethodEntry(selector=FIRST_AVAILABLE, handler=_noop, name="B"),
            ]
        )


def test_too_many_methods_fail_build() -> None:
    entries = [(f"Method{i}", _noop) for i in range(5)]
    with pytest.raises(TableTooLarge) as excinfo:
        build(entries, max_methods=4)
    assert (excinfo.value.count, excinfo.value.limit) == (5, 4)


def test_max_methods_defaults_to_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    from actor_dispatch.config import load_config

    monkeypatch.setenv("ACTOR_DISPATCH_MAX_METHODS", "2")
    load_config.cache_clear()
    with pytest.raises(TableTooLarge):
        build([("A", _noop), ("B", _noop), ("C", _noop)])


def test_strict_names_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    from actor_dispatch.config import load_config

    monkeypatch.setenv("ACTOR_DISPATCH_STRICT_NAMES", "yes")
    load_config.cache_clear()
    with pytest.raises(IllegalMethodName):
        build([("transfer", _noop)])


def test_all_build_errors_share_a_base() -> None:
    for cls in (EmptyMethodName, IllegalMethodName, ReservedNumberMisuse, DuplicateSelector, TableTooLarge, TableFrozen):
        assert issubclass(cls, BuildError)


def test_failed_build_is_logged(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.ERROR, logger="actor_dispatch.registry"):
        with pytest.raises(ReservedNumberMisuse):
            build([(9, _noop)], actor="token")
    records = [r for r in caplog.records if r.name == "actor_dispatch.registry"]
    assert records and records[-1].levelno == logging.ERROR
    assert records[-1].error["code"] == "BUILD/RESERVED_NUMBER_MISUSE"


# ---------------------------------------------------------------------------
# Immutability & lifecycle
# ---------------------------------------------------------------------------


def test_table_cannot_be_mutated() -> None:
    table = build([("Transfer", _noop)])
    sel = method_number("Transfer")
    with pytest.raises(TypeError):
        table[sel] = table[sel]  # type: ignore[index]
    with pytest.raises(TypeError):
        del table[sel]  # type: ignore[attr-defined]
    with pytest.raises(TypeError):
        table.names()["Mint"] = 1  # type: ignore[index]
    with pytest.raises(AttributeError):
        table[sel].selector = 1  # type: ignore[misc]


def test_source_list_changes_do_not_leak_into_table() -> None:
    entries = [("Transfer", _noop)]
    table = build(entries)
    entries.append(("Mint", _noop))
    assert len(table) == 1


def test_registry_decorators_and_phases() -> None:
    reg = MethodRegistry("token")
    assert reg.phase is Phase.BUILDING

    @reg.constructor
    def construct(params: bytes) -> bytes:
        return b"constructed"

    @reg.method()
    def transfer_from(params: bytes) -> bytes:
        return b"moved"

    @reg.method("Mint")
    def do_mint(params: bytes) -> bytes:
        return b"minted"

    @reg.method(0, name="Receive")
    def receive(params: bytes) -> bytes:
        return b""

    table = reg.build()
    assert reg.phase is Phase.ACTIVE
    assert table.phase is Phase.ACTIVE
    assert table.actor == "token"
    assert table[1].handler is construct
    assert table[method_number("TransferFrom")].handler is transfer_from
    assert table[method_number("Mint")].handler is do_mint
    assert table[0].name == "Receive"
    assert [m.name for m in reg.entries] == ["Constructor", "TransferFrom", "Mint", "Receive"]

    # decorated functions are returned untouched
    assert transfer_from(b"") == b"moved"


def test_registry_is_frozen_after_build() -> None:
    reg = MethodRegistry("token").add("Transfer", _noop)
    table = reg.build()
    assert reg.build() is table
    with pytest.raises(TableFrozen):
        reg.add("Mint", _noop)
    with pytest.raises(TableFrozen):
        reg.method("Burn")(_noop)


def test_failed_registry_build_can_be_retried_after_fix() -> None:
    reg = MethodRegistry().add(5, _noop)
    with pytest.raises(ReservedNumberMisuse):
        reg.build()
    assert reg.phase is Phase.BUILDING


def test_registry_add_rejects_other_keys() -> None:
    reg = MethodRegistry()
    with pytest.raises(TypeError):
        reg.add(None, _noop)  # type: ignore[arg-type]
    with pytest.raises(TypeError):
        reg.add(False, _noop)


def test_registry_add_rejects_a_label_for_hashed_names() -> None:
    reg = MethodRegistry()
    with pytest.raises(TypeError):
        reg.add("Mint", _noop, name="X")
    with pytest.raises(TypeError):
        reg.method("Mint", name="X")(_noop)
    assert reg.entries == ()

    reg.add(0, _noop, name="Receive")
    assert reg.build()[0].name == "Receive"
