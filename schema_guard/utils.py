"""
utils.py – shared, low-level utilities for the schema_guard package.

This module consolidates common helpers for:
- Primitive kinds (the closed table of scalar/opaque type checks)
- Key canonicalisation (text / bytes / enum keys treated as one key)
- Display helpers (compact ``inspect``-style rendering of values)
- JSON projection (deterministic, JSON-safe copies of error content)
"""

from __future__ import annotations

import datetime as _dt
import enum
import json
import multiprocessing.process
import re
import subprocess
from collections.abc import Mapping
from typing import Any, Callable, Dict

import pandas as pd
from pandas.api import types as pdt

# --------------------------------------------------------------------------- #
# Primitive kinds                                                             #
# --------------------------------------------------------------------------- #

def _is_integer(v: Any) -> bool:
    # pandas rejects bool here, and accepts numpy integer scalars
    return pdt.is_integer(v)


def _is_float(v: Any) -> bool:
    return pdt.is_float(v)


def _is_date(v: Any) -> bool:
    return isinstance(v, _dt.date) and not isinstance(v, _dt.datetime)


def _is_aware(v: Any) -> bool:
    return isinstance(v, _dt.datetime) and v.utcoffset() is not None


def _is_naive(v: Any) -> bool:
    return isinstance(v, _dt.datetime) and v.utcoffset() is None


_TYPE_MAP: Dict[str, Callable[[Any], bool]] = {
    "any":            lambda v: True,
    "string":         lambda v: isinstance(v, str),
    "integer":        _is_integer,
    "float":          _is_float,
    "number":         lambda v: _is_integer(v) or _is_float(v),
    "boolean":        pdt.is_bool,
    "symbol":         lambda v: isinstance(v, enum.Enum),
    "process":        lambda v: isinstance(
        v, (subprocess.Popen, multiprocessing.process.BaseProcess)
    ),
    "date":           _is_date,
    "time":           lambda v: isinstance(v, _dt.time),
    "datetime":       _is_aware,
    "naive_datetime": _is_naive,
    "duration":       lambda v: isinstance(v, _dt.timedelta),
    "map":            lambda v: isinstance(v, Mapping),
    "list":           lambda v: isinstance(v, list),
    "dataframe":      lambda v: isinstance(v, pd.DataFrame),
}

KINDS = frozenset(_TYPE_MAP)

NUMERIC_KINDS = frozenset({"integer", "float", "number"})


def is_kind(value: Any, kind: str) -> bool:
    """Return True iff *value* belongs to the primitive *kind*."""
    return _TYPE_MAP[kind](value)


def is_numeric(value: Any) -> bool:
    return _is_integer(value) or _is_float(value)


def is_pattern(value: Any) -> bool:
    """True for a compiled pattern or a string that compiles as one."""
    return isinstance(value, re.Pattern) or (
        isinstance(value, str) and pdt.is_re_compilable(value)
    )


# --------------------------------------------------------------------------- #
# Keys                                                                        #
# --------------------------------------------------------------------------- #

def key_text(key: Any) -> str | None:
    """Canonical text form of a mapping key, or None for non-textual keys.

    ``"name"``, ``b"name"`` and an enum member whose value (or, for non-text
    values, whose name) is ``"name"`` all share the text ``"name"``.
    """
    if isinstance(key, enum.Enum):
        return key.value if isinstance(key.value, str) else key.name
    if isinstance(key, str):
        return key
    if isinstance(key, bytes):
        try:
            return key.decode("utf-8")
        except UnicodeDecodeError:
            return None
    return None


def lookup(data: Mapping, key: Any) -> tuple[Any, Any]:
    """Find *key* in *data*, falling back to an equivalent key representation.

    Returns ``(raw_key, value)`` or ``(None, MISSING)`` when absent.
    """
    if key in data:
        return key, data[key]
    text = key_text(key)
    if text is not None:
        for raw in data:
            if raw is not key and key_text(raw) == text:
                return raw, data[raw]
    return None, MISSING


class _Missing:
    """Marker for a field that is not present in the data at all."""

    __slots__ = ()

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING = _Missing()


def is_absent(value: Any) -> bool:
    return value is MISSING or value is None


# --------------------------------------------------------------------------- #
# Display helpers                                                             #
# --------------------------------------------------------------------------- #

def _inspect(value: Any) -> str:
    """Render *value* for an error message (strings are left verbatim)."""
    if isinstance(value, str):
        return value
    describe = getattr(value, "describe", None)
    if callable(describe):
        return describe()
    if isinstance(value, re.Pattern):
        return f"/{value.pattern}/"
    if isinstance(value, enum.Enum):
        return f":{key_text(value)}"
    if isinstance(value, (list, tuple)):
        inner = ", ".join(repr(v) if isinstance(v, str) else _inspect(v) for v in value)
        return f"[{inner}]" if isinstance(value, list) else f"({inner})"
    return repr(value)


# --------------------------------------------------------------------------- #
# JSON projection                                                             #
# --------------------------------------------------------------------------- #

def _json_safe(x: Any, _seen: frozenset = frozenset()) -> Any:
    """Recursively prepare an object for deterministic JSON encoding.

    A container met again inside itself (a self-referencing schema) is
    rendered as ``"..."``.
    """
    if isinstance(x, (Mapping, list, tuple)):
        if id(x) in _seen:
            return "..."
        _seen = _seen | {id(x)}
    if isinstance(x, Mapping):
        return {_json_key(k): _json_safe(v, _seen) for k, v in x.items()}
    if isinstance(x, (list, tuple)):
        return [_json_safe(v, _seen) for v in x]
    if isinstance(x, pd.DataFrame):
        return json.loads(x.to_json(orient="split", date_unit="ns"))
    if isinstance(x, enum.Enum):
        return key_text(x)
    if isinstance(x, re.Pattern):
        return x.pattern
    if isinstance(x, (_dt.date, _dt.time)):
        return x.isoformat()
    if isinstance(x, _dt.timedelta):
        return x.total_seconds()
    if x is None or isinstance(x, (str, bool, int, float)):
        return x
    return _inspect(x)


def _json_key(key: Any) -> Any:
    text = key_text(key)
    if text is not None:
        return text
    if isinstance(key, (int, float, bool)) or key is None:
        return key
    return _inspect(key)
