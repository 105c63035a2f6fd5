"""
actor_dispatch.hashing — method name → candidate selector.

Derivation
----------
    digest    = BLAKE2b-512(utf8(name))                  # 64 bytes
    candidate = uint32_be(digest[0:4])                   # in [0, 2**32)

The candidate is then normalized into the selector space by
`actor_dispatch.reservation`. The hash function, digest width and prefix
width are part of the wire contract: changing any of them changes every
selector.

The hasher is pluggable (any object with `hash(bytes) -> bytes`) so tests can
force collisions with a stub.

Naming convention
-----------------
Conventional method names start with an ASCII uppercase letter or `_` and
contain only ASCII letters, digits and `_`. `check_method_name(strict=True)`
enforces it; without `strict` only empty names and names with no UTF-8
encoding are rejected. Python identifiers are turned into method names with
`to_method_name` (`transfer_from` → `TransferFrom`, `mint_NFT` → `MintNft`).
"""

from __future__ import annotations

import hashlib
import re
from typing import Optional, Protocol, runtime_checkable

from .errors import EmptyMethodName, IllegalMethodName

DIGEST_SIZE = 64
CANDIDATE_BYTES = 4

_LEGAL_CHARS = re.compile(r"^[A-Za-z0-9_]+$")

# acronym before a capitalized word, capitalized word, upper run, digits, other letters
_WORD = re.compile(r"[A-Z]+(?=[A-Z][a-z])|[A-Z]?[a-z]+|[A-Z]+|[0-9]+|[^\W\d_]+")


@runtime_checkable
class Hasher(Protocol):
    def hash(self, data: bytes) -> bytes: ...


class Blake2bHasher:
    """BLAKE2b with a 64-byte digest, unkeyed, no salt or personalization."""

    __slots__ = ()

    def hash(self, data: bytes) -> bytes:
        return hashlib.blake2b(data, digest_size=DIGEST_SIZE).digest()

    def __repr__(self) -> str:
        return "Blake2bHasher()"


DEFAULT_HASHER: Hasher = Blake2bHasher()


# ------------------------------- names ---------------------------------------


def check_method_name(name: str, *, strict: bool = False) -> None:
    """Raise EmptyMethodName / IllegalMethodName for unusable names."""
    if not isinstance(name, str):
        raise TypeError(f"method name must be str (got {type(name).__name__})")
    if name == "":
        raise EmptyMethodName()
    try:
        name.encode("utf-8")
    except UnicodeEncodeError:
        raise IllegalMethodName(name, "not valid UTF-8") from None
    if not strict:
        return
    first = name[0]
    if not (first == "_" or ("A" <= first <= "Z")):
        raise IllegalMethodName(name, "must start with an uppercase ASCII letter or '_'")
    if not _LEGAL_CHARS.match(name):
        raise IllegalMethodName(name, "only ASCII letters, digits and '_' are allowed")


def to_method_name(identifier: str) -> str:
    """
    Convert a Python identifier to a PascalCase method name.

    Words are split on '_' and on case/digit boundaries, then each word is
    capitalized with the rest lowercased:

        "transfer"        -> "Transfer"
        "transfer_from"   -> "TransferFrom"
        "balance_of2"     -> "BalanceOf2"
        "TotalSupply"     -> "TotalSupply"
        "TOTAL_SUPPLY"    -> "TotalSupply"
        "mint_NFT"        -> "MintNft"
        "HTTPServer"      -> "HttpServer"
    """
    words = []
    for chunk in re.split(r"[_\-\s]+", identifier):
        words.extend(_WORD.findall(chunk))
    return "".join(w[0].upper() + w[1:].lower() for w in words)


# ------------------------------- hashing -------------------------------------


def digest(name: str, *, hasher: Optional[Hasher] = None) -> bytes:
    """Hash the UTF-8 bytes of a non-empty method name."""
    check_method_name(name)
    h = hasher or DEFAULT_HASHER
    out = h.hash(name.encode("utf-8"))
    if not isinstance(out, (bytes, bytearray)) or len(out) < CANDIDATE_BYTES:
        raise ValueError(
            f"hasher must return at least {CANDIDATE_BYTES} bytes (got {out!r})"
        )
    return bytes(out)


def candidate(name: str, *, hasher: Optional[Hasher] = None) -> int:
    """Big-endian integer value of the digest prefix."""
    return int.from_bytes(digest(name, hasher=hasher)[:CANDIDATE_BYTES], "big")


__all__ = [
    "DIGEST_SIZE",
    "CANDIDATE_BYTES",
    "Hasher",
    "Blake2bHasher",
    "DEFAULT_HASHER",
    "check_method_name",
    "to_method_name",
    "digest",
    "candidate",
]
