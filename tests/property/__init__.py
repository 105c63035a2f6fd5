# -*- coding: utf-8 -*-
"""
tests.property package bootstrap.

Hypothesis profiles for the selector/registry property tests:

- dev     100 examples, random
- ci      500 examples, derandomized (picked automatically when CI is set)
- fast    25 examples
- stress  5000 examples, derandomized

Select with HYPOTHESIS_PROFILE=dev|ci|fast|stress. Per-test overrides use
@settings(...) as usual.
"""
from __future__ import annotations

import os
from typing import Final, Tuple

from hypothesis import HealthCheck, Verbosity, given, settings
from hypothesis import strategies as st


def _hc(*items: HealthCheck) -> Tuple[HealthCheck, ...]:
    return items


settings.register_profile(
    "dev",
    settings(
        max_examples=100,
        deadline=None,
        suppress_health_check=_hc(HealthCheck.too_slow),
        verbosity=Verbosity.normal,
        derandomize=False,
    ),
)

settings.register_profile(
    "ci",
    settings(
        max_examples=500,
        deadline=None,
        suppress_health_check=_hc(HealthCheck.too_slow),
        verbosity=Verbosity.normal,
        derandomize=True,
    ),
)

settings.register_profile(
    "fast",
    settings(
        max_examples=25,
        deadline=None,
        suppress_health_check=_hc(HealthCheck.too_slow),
        derandomize=False,
    ),
)

settings.register_profile(
    "stress",
    settings(
        max_examples=5000,
        deadline=None,
        suppress_health_check=_hc(HealthCheck.too_slow, HealthCheck.filter_too_much),
        derandomize=True,
    ),
)


def _env_truthy(name: str) -> bool:
    v = os.getenv(name)
    return (v or "").lower() not in ("", "0", "false", "no", "off")


_active: Final[str] = os.getenv("HYPOTHESIS_PROFILE") or ("ci" if _env_truthy("CI") else "dev")
settings.load_profile(_active)


def active_profile() -> str:
    """Return the name of the active Hypothesis profile."""
    return _active


def method_names(max_size: int = 64):
    """Non-empty method names, including non-ASCII text."""
    return st.text(min_size=1, max_size=max_size)


def conventional_names(max_size: int = 32):
    """Names that satisfy the strict naming convention."""
    return st.from_regex(r"\A[A-Z_][A-Za-z0-9_]{0,%d}\Z" % (max_size - 1))


__all__ = [
    "st",
    "given",
    "active_profile",
    "method_names",
    "conventional_names",
]
