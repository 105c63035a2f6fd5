"""
actor_dispatch.config — wire constants and process-level tunables.

Two kinds of settings live here:

Wire constants (module-level, NEVER read from the environment)
  - FIRST_AVAILABLE            2**24, lowest hash-derived selector
  - METHOD_SEND                0, the no-op / plain value transfer
  - METHOD_CONSTRUCTOR         1, actor construction
  - RESERVED_EXPLICIT          {0: "Send", 1: "Constructor"}
  - MAX_METHOD_NUMBER          2**64 - 1

  Two independent implementations must agree on every selector, so these
  are part of the contract between them and are not tunable.

Tunables (environment, with safe defaults)
  - ACTOR_DISPATCH_STRICT_NAMES  (bool)  default: false
  - ACTOR_DISPATCH_MAX_METHODS   (int)   default: 4096
  - ACTOR_DISPATCH_LOG_LEVEL     (str)   default: INFO
  - ACTOR_DISPATCH_LOG_FORMAT    (str)   json | text, default: auto

Usage:
    from actor_dispatch.config import load_config
    CFG = load_config()
    if CFG.strict_names: ...
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional

# ------------------------------ wire constants --------------------------------

FIRST_AVAILABLE: int = 1 << 24
METHOD_SEND: int = 0
METHOD_CONSTRUCTOR: int = 1
MAX_METHOD_NUMBER: int = (1 << 64) - 1

RESERVED_EXPLICIT: Mapping[int, str] = MappingProxyType(
    {
        METHOD_SEND: "Send",
        METHOD_CONSTRUCTOR: "Constructor",
    }
)

# ----------------------------- helpers ---------------------------------------


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    val = raw.strip().lower()
    return val in ("1", "true", "t", "yes", "y", "on")


def _env_int(name: str, default: int, *, min_v: int, max_v: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        v = int(raw, 0)
    except ValueError:
        return default
    if v < min_v:
        return min_v
    if v > max_v:
        return max_v
    return v


def _env_choice(name: str, choices: tuple, default: Optional[str]) -> Optional[str]:
    raw = os.getenv(name)
    if raw is None:
        return default
    val = raw.strip().lower()
    return val if val in choices else default


# ------------------------------- config --------------------------------------


@dataclass(frozen=True)
class DispatchConfig:
    # Enforce the method naming convention on hashed names
    strict_names: bool

    # Upper bound on entries per table
    max_methods: int

    # Logging
    log_level: str
    log_format: Optional[str]

    def as_dict(self) -> Dict[str, Any]:
        return {
            "strict_names": self.strict_names,
            "max_methods": self.max_methods,
            "log_level": self.log_level,
            "log_format": self.log_format,
            "first_available": FIRST_AVAILABLE,
            "reserved_explicit": dict(RESERVED_EXPLICIT),
        }


@lru_cache(maxsize=1)
def load_config() -> DispatchConfig:
    """
    Build and cache a DispatchConfig from environment + safe defaults.
    """
    return DispatchConfig(
        strict_names=_env_bool("ACTOR_DISPATCH_STRICT_NAMES", False),
        max_methods=_env_int("ACTOR_DISPATCH_MAX_METHODS", 4096, min_v=1, max_v=1_000_000),
        log_level=(os.getenv("ACTOR_DISPATCH_LOG_LEVEL") or "INFO").strip().upper(),
        log_format=_env_choice("ACTOR_DISPATCH_LOG_FORMAT", ("json", "text"), None),
    )


CFG: DispatchConfig = load_config()

__all__ = [
    "FIRST_AVAILABLE",
    "METHOD_SEND",
    "METHOD_CONSTRUCTOR",
    "MAX_METHOD_NUMBER",
    "RESERVED_EXPLICIT",
    "DispatchConfig",
    "load_config",
    "CFG",
]
