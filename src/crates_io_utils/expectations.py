"""
Named predicates over parsed JSON documents.

The API call picks one of these according to the HTTP status: the caller's
expectation for 200, ERRORS_ENVELOPE for 404.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Callable, List, Union

import jsonschema
from jsonschema.exceptions import best_match

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class Expectation:
    name: str  # shown in diagnostics, e.g. ".crate"
    predicate: Callable[[Any], bool]

    def check(self, document: Any) -> bool:
        return bool(self.predicate(document))

    def __str__(self) -> str:
        return self.name


# -----------------------------
# jq-style key paths
# -----------------------------

_SEGMENT = re.compile(
    r"""
      \.(?P<name>[A-Za-z_][A-Za-z0-9_]*)
    | \.?\[\s*(?P<index>-?\d+)\s*\]
    | \.?\[\s*"(?P<qkey>(?:[^"\\]|\\.)*)"\s*\]
    | \."(?P<dkey>(?:[^"\\]|\\.)*)"
    """,
    re.VERBOSE,
)


class _PathTypeError(Exception):
    """Path step does not apply to the value (jq: "Cannot index ...")."""


def parse_path(expr: str) -> List[Union[str, int]]:
    """
    Split a jq path like `.crate.versions[0]."odd key"` into steps.
    `.` alone is the identity path. Anything else raises ValueError.
    """
    text = expr.strip()
    if text == ".":
        return []
    steps: List[Union[str, int]] = []
    pos = 0
    while pos < len(text):
        m = _SEGMENT.match(text, pos)
        if m is None:
            raise ValueError(f"unsupported path expression {expr!r} (at offset {pos})")
        if m.group("name") is not None:
            steps.append(m.group("name"))
        elif m.group("index") is not None:
            steps.append(int(m.group("index")))
        else:
            quoted = m.group("qkey") if m.group("qkey") is not None else m.group("dkey")
            steps.append(json.loads(f'"{quoted}"'))
        pos = m.end()
    if not steps:
        raise ValueError(f"empty path expression {expr!r}")
    return steps


def _resolve(document: Any, steps: List[Union[str, int]]) -> Any:
    value = document
    for step in steps:
        if value is None:
            continue  # null.foo is null
        if isinstance(step, str):
            if not isinstance(value, dict):
                raise _PathTypeError(f"cannot index {type(value).__name__} with {step!r}")
            value = value.get(step)
        else:
            if not isinstance(value, list):
                raise _PathTypeError(f"cannot index {type(value).__name__} with {step}")
            value = value[step] if -len(value) <= step < len(value) else None
    return value


def key_path(expr: str) -> Expectation:
    """Holds when `expr` resolves to something other than null or false (`jq -e`)."""
    steps = parse_path(expr)

    def predicate(document: Any) -> bool:
        try:
            value = _resolve(document, steps)
        except _PathTypeError as e:
            log.debug("path %s: %s", expr, e)
            return False
        return value is not None and value is not False

    return Expectation(name=expr.strip(), predicate=predicate)


# -----------------------------
# JSON Schema
# -----------------------------


def matches_schema(schema: dict[str, Any], name: str | None = None) -> Expectation:
    """Holds when the document validates against `schema`."""
    validator_cls = jsonschema.validators.validator_for(schema)
    validator_cls.check_schema(schema)
    validator = validator_cls(schema)

    def predicate(document: Any) -> bool:
        error = best_match(validator.iter_errors(document))
        if error is not None:
            log.debug("schema %s: %s", name or "<schema>", error.message)
            return False
        return True

    return Expectation(name=name or json.dumps(schema, sort_keys=True), predicate=predicate)


# crates.io answers unknown resources with {"errors": [{"detail": "Not Found"}]}
ERRORS_ENVELOPE = matches_schema(
    {
        "type": "object",
        "required": ["errors"],
        "properties": {"errors": {"type": "array", "minItems": 1}},
    },
    name=".errors",
)


def as_expectation(value: Union[str, Expectation]) -> Expectation:
    if isinstance(value, Expectation):
        return value
    if isinstance(value, str):
        return key_path(value)
    raise TypeError(f"expected a path string or Expectation, got {type(value).__name__}")
