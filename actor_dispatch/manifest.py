"""
actor_dispatch.manifest — registration lists from JSON manifests.

Code generation can emit a manifest instead of Python source:

    {
      "actor": "basic-token",
      "methods": [
        {"number": 1, "name": "Constructor", "handler": "my_actor.handlers:construct"},
        {"name": "Transfer", "handler": "my_actor.handlers:transfer"},
        {"name": "Mint", "handler": "my_actor.handlers:mint"}
      ]
    }

The document is validated against the packaged
`schemas/registration.schema.json` (JSON Schema 2020-12). Handlers are
"module:attribute" import paths, or keys into a caller-supplied mapping.
Entry order is preserved, so collision reports stay deterministic.
"""

from __future__ import annotations

import importlib
import json
from functools import lru_cache
from importlib.resources import files
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

import jsonschema

from .errors import ManifestInvalid
from .registry import Handler, Method, MethodTable, build
from .reservation import MethodResolver

SCHEMA_NAME = "registration.schema.json"


@lru_cache(maxsize=1)
def load_schema() -> Dict[str, Any]:
    data = (files(__package__) / "schemas" / SCHEMA_NAME).read_text(encoding="utf-8")
    return json.loads(data)


def iter_manifest_errors(doc: Any):
    """Yield human-readable schema violations, in document order."""
    validator = jsonschema.Draft202012Validator(load_schema())
    for err in sorted(validator.iter_errors(doc), key=lambda e: [str(p) for p in e.absolute_path]):
        where = "/".join(str(p) for p in err.absolute_path) or "<root>"
        yield f"{where}: {err.message}"


def validate_manifest(doc: Any) -> None:
    errors = list(iter_manifest_errors(doc))
    if errors:
        raise ManifestInvalid("registration manifest failed schema validation", errors=errors)


def resolve_handler(path: str) -> Handler:
    """Import "pkg.module:attr.sub" and return the callable."""
    module_name, _, attr_path = path.partition(":")
    try:
        obj: Any = importlib.import_module(module_name)
    except ImportError as e:
        raise ManifestInvalid(f"cannot import handler module {module_name!r}", handler=path) from e
    for part in attr_path.split("."):
        try:
            obj = getattr(obj, part)
        except AttributeError as e:
            raise ManifestInvalid(f"handler {path!r} not found", handler=path) from e
    if not callable(obj):
        raise ManifestInvalid(f"handler {path!r} is not callable", handler=path)
    return obj


def registrations_from_manifest(
    doc: Mapping[str, Any],
    *,
    handlers: Optional[Mapping[str, Handler]] = None,
) -> Tuple[Optional[str], List[Method]]:
    """Validate `doc` and return (actor, ordered registration list)."""
    validate_manifest(doc)
    out: List[Method] = []
    for item in doc["methods"]:
        ref = item["handler"]
        fn = handlers[ref] if handlers is not None and ref in handlers else resolve_handler(ref)
        out.append(Method(handler=fn, name=item.get("name"), number=item.get("number")))
    return doc.get("actor"), out


def load_manifest(path: Union[str, Path]) -> Dict[str, Any]:
    p = Path(path)
    try:
        return json.loads(p.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ManifestInvalid(f"manifest {str(p)!r} is not valid JSON: {e.msg}", path=str(p)) from e


def build_from_manifest(
    source: Union[str, Path, Mapping[str, Any]],
    *,
    handlers: Optional[Mapping[str, Handler]] = None,
    resolver: Optional[MethodResolver] = None,
    max_methods: Optional[int] = None,
) -> MethodTable:
    doc = source if isinstance(source, Mapping) else load_manifest(source)
    actor, items = registrations_from_manifest(doc, handlers=handlers)
    return build(items, resolver=resolver, max_methods=max_methods, actor=actor)


__all__ = [
    "SCHEMA_NAME",
    "load_schema",
    "iter_manifest_errors",
    "validate_manifest",
    "resolve_handler",
    "registrations_from_manifest",
    "load_manifest",
    "build_from_manifest",
]
