"""Helpers for schema fragments: dialect conversion, nullability and refs."""

from __future__ import annotations

import copy
import json
import re
from collections.abc import Collection
from typing import Any

REF_PREFIX = "#/components/schemas/"

_SCHEMA_MAP_KEYS = ("properties", "patternProperties", "$defs", "definitions", "dependentSchemas")
_SCHEMA_KEYS = ("items", "additionalProperties", "not", "contains", "propertyNames")
_SCHEMA_LIST_KEYS = ("anyOf", "oneOf", "allOf", "prefixItems")

# Keys that describe a schema without constraining it.
NON_CONSTRAINING_KEYS = ("title", "description", "$comment", "$id", "examples", "example")


def definition_name(name: str) -> str:
    """Normalize a type name into a components key."""
    return re.sub(r"[^a-zA-Z0-9.\-_]", "_", name).replace(".", "__")


def _is_null(schema: Any) -> bool:
    # Children are converted first, so a null branch may already read as nullable.
    return schema == {"type": "null"} or schema == {"nullable": True}


def _merge_single(target: dict[str, Any], only: dict[str, Any]) -> None:
    if "$ref" in only:
        target.setdefault("allOf", []).append(only)
        return
    for key, value in only.items():
        target.setdefault(key, value)


def to_openapi_schema(schema: Any) -> Any:
    """Convert a JSON Schema (2020-12, as pydantic emits it) to an OpenAPI 3.0 schema."""
    if isinstance(schema, list):
        return [to_openapi_schema(item) for item in schema]
    if not isinstance(schema, dict):
        return schema

    out: dict[str, Any] = {}
    for key, value in schema.items():
        if key in _SCHEMA_MAP_KEYS and isinstance(value, dict):
            out[key] = {name: to_openapi_schema(sub) for name, sub in value.items()}
        elif key in _SCHEMA_KEYS or key in _SCHEMA_LIST_KEYS:
            out[key] = to_openapi_schema(value)
        else:
            out[key] = value

    for combinator in ("anyOf", "oneOf"):
        options = out.get(combinator)
        if not isinstance(options, list) or not any(_is_null(option) for option in options):
            continue
        rest = [option for option in options if not _is_null(option)]
        del out[combinator]
        out["nullable"] = True
        if len(rest) == 1:
            _merge_single(out, rest[0])
        elif rest:
            out[combinator] = rest

    types = out.get("type")
    if isinstance(types, list):
        if "null" in types:
            out["nullable"] = True
        types = [t for t in types if t != "null"]
        if len(types) == 1:
            out["type"] = types[0]
        else:
            del out["type"]
            if types:
                out["anyOf"] = [{"type": t} for t in types]
    elif types == "null":
        del out["type"]
        out["nullable"] = True

    if "const" in out:
        out["enum"] = [out.pop("const")]

    examples = out.get("examples")
    if isinstance(examples, list):
        del out["examples"]
        if examples:
            out.setdefault("example", examples[0])

    for bound, plain in (("exclusiveMinimum", "minimum"), ("exclusiveMaximum", "maximum")):
        value = out.get(bound)
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            out[plain] = value
            out[bound] = True

    prefix_items = out.pop("prefixItems", None)
    if prefix_items:
        unique: list[Any] = []
        for item in prefix_items:
            if item not in unique:
                unique.append(item)
        if "items" not in out:
            out["items"] = unique[0] if len(unique) == 1 else {"anyOf": unique}

    return out


def strip_nullable(schema: dict[str, Any] | None) -> dict[str, Any] | None:
    """Return a copy of ``schema`` without its nullability marker."""
    if schema is None:
        return None
    out = dict(schema)
    out.pop("nullable", None)

    any_of = out.get("anyOf")
    if isinstance(any_of, list) and any(_is_null(option) for option in any_of):
        rest = [option for option in any_of if not _is_null(option)]
        del out["anyOf"]
        if len(rest) == 1:
            _merge_single(out, rest[0])
        elif rest:
            out["anyOf"] = rest

    all_of = out.get("allOf")
    if isinstance(all_of, list) and len(all_of) == 1 and len(out) == 1:
        return dict(all_of[0])
    return out


def _ref_name(ref: str, prefix: str) -> str | None:
    if ref.startswith(prefix):
        return ref[len(prefix):]
    return None


def inline_refs(
    schema: Any,
    definitions: dict[str, Any],
    prefix: str = REF_PREFIX,
    _seen: frozenset[str] = frozenset(),
) -> Any:
    """Recursively replace ``$ref`` entries that resolve in ``definitions``.

    Self-referencing definitions stay as references.
    """
    if isinstance(schema, dict):
        ref = schema.get("$ref")
        if isinstance(ref, str):
            name = _ref_name(ref, prefix)
            if name is not None and name in definitions and name not in _seen:
                resolved = inline_refs(definitions[name], definitions, prefix, _seen | {name})
                siblings = {k: v for k, v in schema.items() if k != "$ref"}
                return {**resolved, **inline_refs(siblings, definitions, prefix, _seen)}
        return {k: inline_refs(v, definitions, prefix, _seen) for k, v in schema.items() if k != "$defs"}

    if isinstance(schema, list):
        return [inline_refs(item, definitions, prefix, _seen) for item in schema]

    return schema


def _schema_types(schema: dict[str, Any]) -> set[str]:
    types = schema.get("type")
    if isinstance(types, str):
        return {types}
    if isinstance(types, list):
        return set(types)
    return set()


def is_object_schema(schema: dict[str, Any] | None, definitions: dict[str, Any], prefix: str = REF_PREFIX) -> bool:
    """True when ``schema`` (after resolving refs) describes an object."""
    if not schema:
        return False
    resolved = strip_nullable(inline_refs(schema, definitions, prefix)) or {}
    if "object" in _schema_types(resolved):
        return True
    all_of = resolved.get("allOf")
    if isinstance(all_of, list) and len(all_of) == 1 and isinstance(all_of[0], dict):
        return "object" in _schema_types(all_of[0])
    return False


def strip_descriptive(schema: dict[str, Any]) -> dict[str, Any]:
    """Drop non-constraining metadata from the root of ``schema``."""
    out = copy.deepcopy(schema)
    for key in NON_CONSTRAINING_KEYS:
        out.pop(key, None)
    for key in [k for k in out if k.startswith("x-")]:
        del out[key]
    for key in ("properties", "required"):
        if key in out and not out[key]:
            del out[key]
    return out


def canonical_json(value: Any) -> str:
    return json.dumps(value, sort_keys=True, separators=(",", ":"), default=str)


def drop_properties(schema: dict[str, Any], names: Collection[str]) -> dict[str, Any]:
    """Return a copy of an object schema without the properties in ``names``."""
    if not names:
        return schema
    out = dict(schema)
    properties = out.get("properties")
    if isinstance(properties, dict):
        out["properties"] = {key: value for key, value in properties.items() if key not in names}
    required = out.get("required")
    if isinstance(required, list):
        kept = [key for key in required if key not in names]
        if kept:
            out["required"] = kept
        else:
            del out["required"]
    return out
