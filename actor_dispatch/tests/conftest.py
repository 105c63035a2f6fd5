from __future__ import annotations

import hashlib
from typing import Any, Callable, Dict, List, Optional

import pytest

from actor_dispatch.config import load_config


class CountingHandler:
    """Handler double that records every call and returns a canned value."""

    def __init__(self, result: Any = b"ok", *, raises: Optional[BaseException] = None) -> None:
        self.result = result
        self.raises = raises
        self.calls: List[bytes] = []

    @property
    def count(self) -> int:
        return len(self.calls)

    def __call__(self, params: bytes) -> Any:
        self.calls.append(params)
        if self.raises is not None:
            raise self.raises
        return self.result


class StubHasher:
    """
    Returns a fixed digest for selected names and real BLAKE2b-512 otherwise,
    so tests can force two names onto the same selector.
    """

    def __init__(self, fixed: Dict[str, bytes]) -> None:
        self.fixed = dict(fixed)

    def hash(self, data: bytes) -> bytes:
        name = data.decode("utf-8")
        if name in self.fixed:
            return self.fixed[name]
        return hashlib.blake2b(data, digest_size=64).digest()


def blake_selector(name: str) -> int:
    """Independent re-derivation of a hashed selector."""
    value = int.from_bytes(hashlib.blake2b(name.encode("utf-8"), digest_size=64).digest()[:4], "big")
    return value if value >= 1 << 24 else value + (1 << 24)


@pytest.fixture
def counting() -> Callable[..., CountingHandler]:
    return CountingHandler


@pytest.fixture
def stub_hasher() -> Callable[[Dict[str, bytes]], StubHasher]:
    return StubHasher


@pytest.fixture(autouse=True)
def _fresh_config(monkeypatch: pytest.MonkeyPatch):
    """Keep ACTOR_DISPATCH_* from the outer environment out of the tests."""
    for key in (
        "ACTOR_DISPATCH_STRICT_NAMES",
        "ACTOR_DISPATCH_MAX_METHODS",
        "ACTOR_DISPATCH_LOG_LEVEL",
        "ACTOR_DISPATCH_LOG_FORMAT",
    ):
        monkeypatch.delenv(key, raising=False)
    load_config.cache_clear()
    yield
    load_config.cache_clear()


@pytest.fixture
def expected_selector() -> Callable[[str], int]:
    return blake_selector
