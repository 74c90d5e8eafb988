"""
JSON-schema transforms used when mapping tools to vendor formats.

Every transform returns a new schema and leaves its input untouched.
"""

from __future__ import annotations

import copy
from typing import Any, Callable

import jsonschema

from llmwire.errors import SchemaConversionError

# Keywords whose value is a map of name -> subschema.
_SCHEMA_MAPS = ("properties", "patternProperties", "$defs", "definitions")
# Keywords whose value is a list of subschemas.
_SCHEMA_LISTS = ("anyOf", "oneOf", "allOf", "prefixItems")
# Keywords whose value is a single subschema.
_SCHEMA_SINGLES = ("not", "if", "then", "else", "contains", "additionalItems")

# Keywords Google's function-declaration dialect rejects.
GOOGLE_UNSUPPORTED_KEYWORDS = frozenset(
    {"additionalProperties", "$schema", "exclusiveMinimum", "exclusiveMaximum"}
)


def _is_object_schema(schema: dict) -> bool:
    declared = schema.get("type")
    if isinstance(declared, list):
        return "object" in declared
    return declared == "object" or (declared is None and "properties" in schema)


def _walk(schema: Any, visit: Callable[[dict], dict]) -> Any:
    """
    Rebuild *schema* bottom-up, calling *visit* on every subschema.

    Only subschema positions are visited; property names and enum values are
    never treated as keywords.
    """
    if not isinstance(schema, dict):
        return copy.deepcopy(schema)

    out: dict = {}
    for key, value in schema.items():
        if key in _SCHEMA_MAPS and isinstance(value, dict):
            out[key] = {name: _walk(sub, visit) for name, sub in value.items()}
        elif key in _SCHEMA_LISTS and isinstance(value, list):
            out[key] = [_walk(sub, visit) for sub in value]
        elif key == "items":
            if isinstance(value, list):
                out[key] = [_walk(sub, visit) for sub in value]
            else:
                out[key] = _walk(value, visit)
        elif key in _SCHEMA_SINGLES or (key == "additionalProperties" and isinstance(value, dict)):
            out[key] = _walk(value, visit)
        else:
            out[key] = copy.deepcopy(value)
    return visit(out)


def to_strict_schema(schema: dict) -> dict:
    """
    Return the OpenAI strict-mode form of *schema*.

    Every object level lists all of its properties in ``required`` (in
    declaration order) and sets ``additionalProperties: false``.
    """

    def visit(node: dict) -> dict:
        if _is_object_schema(node):
            node["required"] = list(node.get("properties", {}).keys())
            node["additionalProperties"] = False
        return node

    return _walk(schema, visit)


def strip_keywords(schema: dict, keywords: frozenset[str] | set[str]) -> dict:
    """Return a copy of *schema* with *keywords* removed at every level."""

    def visit(node: dict) -> dict:
        for key in keywords:
            node.pop(key, None)
        return node

    return _walk(schema, visit)


def is_strict_schema(schema: Any) -> bool:
    """True when every object level of *schema* satisfies strict mode."""
    ok = True

    def visit(node: dict) -> dict:
        nonlocal ok
        if _is_object_schema(node):
            props = list(node.get("properties", {}).keys())
            if node.get("additionalProperties") is not False:
                ok = False
            if sorted(node.get("required", [])) != sorted(props):
                ok = False
        return node

    _walk(schema, visit)
    return ok


def contains_keywords(schema: Any, keywords: frozenset[str] | set[str]) -> bool:
    found = False

    def visit(node: dict) -> dict:
        nonlocal found
        if any(key in node for key in keywords):
            found = True
        return node

    _walk(schema, visit)
    return found


def schema_depth(schema: Any) -> int:
    """Nesting depth of subschemas; a flat schema has depth 1."""
    if not isinstance(schema, dict):
        return 0
    children: list[Any] = []
    for key, value in schema.items():
        if key in _SCHEMA_MAPS and isinstance(value, dict):
            children.extend(value.values())
        elif key in _SCHEMA_LISTS and isinstance(value, list):
            children.extend(value)
        elif key == "items":
            children.extend(value if isinstance(value, list) else [value])
        elif key in _SCHEMA_SINGLES or key == "additionalProperties":
            children.append(value)
    return 1 + max((schema_depth(c) for c in children), default=0)


def count_properties(schema: Any) -> int:
    """Total number of declared properties across all object levels."""
    total = 0

    def visit(node: dict) -> dict:
        nonlocal total
        props = node.get("properties")
        if isinstance(props, dict):
            total += len(props)
        return node

    _walk(schema, visit)
    return total


def check_tool_schema(
    schema: Any,
    *,
    max_depth: int,
    max_properties: int,
    tool_id: str | None = None,
    vendor: str | None = None,
    require_object: bool = True,
    subject: str = "Tool parameters",
) -> None:
    """
    Reject schemas no vendor will accept.

    Raises ``SchemaConversionError`` if *schema* is not a schema mapping (an
    object schema unless *require_object* is false), fails meta-schema
    validation, or exceeds the depth or property limits.
    """
    if not isinstance(schema, dict):
        raise SchemaConversionError(
            f"{subject} must be a JSON schema", tool_id=tool_id, vendor=vendor
        )
    if require_object and not _is_object_schema(schema):
        raise SchemaConversionError(
            f"{subject} must be a JSON object schema",
            tool_id=tool_id,
            vendor=vendor,
        )
    try:
        jsonschema.validators.validator_for(schema).check_schema(schema)
    except jsonschema.SchemaError as exc:
        raise SchemaConversionError(
            f"Invalid JSON schema: {exc.message}", tool_id=tool_id, vendor=vendor
        ) from exc

    depth = schema_depth(schema)
    if depth > max_depth:
        raise SchemaConversionError(
            f"Schema nesting depth {depth} exceeds limit {max_depth}",
            tool_id=tool_id,
            vendor=vendor,
        )
    props = count_properties(schema)
    if props > max_properties:
        raise SchemaConversionError(
            f"Schema declares {props} properties, limit is {max_properties}",
            tool_id=tool_id,
            vendor=vendor,
        )
