"""
meta.py - validation of schema definitions themselves
=====================================================

Schemas are plain in-memory values, and some are only produced while data is
being validated (see :class:`~schema_guard.nodes.Dependent`). Before the
engine interprets a fragment it is walked here so that the dispatcher is
never handed something it cannot interpret.

Public API
----------
validate_schema(candidate) -> Result
    ``Result(candidate, None)`` when well-formed, otherwise
    ``Result(None, errors)`` with one error per invalid field of every
    mapping, each addressed by its location inside *candidate*.

validate_schema_or_raise(candidate)
    Same check, raising :class:`~schema_guard.errors.InvalidSchema`.
"""

from __future__ import annotations

import enum
import logging
from collections.abc import Mapping
from typing import Any, Callable, Iterable

from . import nodes
from . import utils
from .errors import Error, InvalidSchema, Result

__all__ = ["validate_schema", "validate_schema_or_raise"]

log = logging.getLogger(__name__)

_STRING_OPS = {"eq", "min", "max", "regex"}
_NUMERIC_OPS = {"eq", "neq", "lt", "lte", "gt", "gte", "range"}


# --------------------------------------------------------------------------- #
# Public entry points                                                         #
# --------------------------------------------------------------------------- #

def validate_schema(candidate: Any) -> Result:
    errors = _Walker().errors_for(candidate)
    if errors:
        log.debug("schema rejected with %d error(s)", len(errors))
        return Result(None, errors)
    return Result(candidate, None)


def validate_schema_or_raise(candidate: Any) -> Any:
    result = validate_schema(candidate)
    if not result.ok:
        raise InvalidSchema(result.errors)
    return candidate


# --------------------------------------------------------------------------- #
# Walker                                                                      #
# --------------------------------------------------------------------------- #
#
# ``_check`` returns None (valid), a ``(template, bindings)`` leaf failure, or
# a list of already-addressed errors from a nested mapping.

def _invalid(fragment: Any):
    return "invalid schema definition: %{invalid}", {"invalid": fragment}


def _is_field_key(key: Any) -> bool:
    return isinstance(key, (str, enum.Enum))


class _Walker:
    def __init__(self):
        # ids of mappings/nodes currently being walked; a repeat is a cycle
        self._active: set[int] = set()

    def errors_for(self, candidate: Any) -> list[Error]:
        outcome = self._check(candidate, ())
        if outcome is None:
            return []
        if isinstance(outcome, list):
            return outcome
        template, bindings = outcome
        return [Error.single(template, bindings)]

    # -------------------------------------------------------------- fields --
    def _fields(self, fields: Iterable, enclosing: Any, path: tuple) -> list[Error]:
        errors: list[Error] = []
        for key, fragment in fields:
            if not _is_field_key(key):
                errors.append(Error.child(
                    path, key, "invalid field key %{key}, expected text or enum member",
                    {"key": key, "schema": enclosing},
                ))
                continue
            outcome = self._check(fragment, path + (key,))
            if outcome is None:
                continue
            if isinstance(outcome, list):
                errors.append(Error.parent(path, key, outcome))
            else:
                template, bindings = outcome
                errors.append(Error.child(path, key, template, {"schema": enclosing, **bindings}))
        return errors

    # --------------------------------------------------------------- check --
    def _check(self, fragment: Any, path: tuple):
        if fragment is None:
            return None
        if isinstance(fragment, (str, type)):
            if nodes.shorthand_kind(fragment) in utils.KINDS:
                return None
            return _invalid(fragment)
        if id(fragment) in self._active:
            return None
        rule = _RULES.get(type(fragment))
        if rule is None and isinstance(fragment, Mapping):
            rule = _check_mapping
        if rule is None:
            return _invalid(fragment)
        self._active.add(id(fragment))
        try:
            return rule(self, fragment, path)
        finally:
            self._active.discard(id(fragment))

    def _first(self, fragments: Iterable, path: tuple):
        for fragment in fragments:
            outcome = self._check(fragment, path)
            if outcome is not None:
                return outcome
        return None


# --------------------------------------------------------------------------- #
# Rules, one per node class                                                   #
# --------------------------------------------------------------------------- #

def _check_mapping(w: _Walker, f: Mapping, path: tuple):
    return w._fields(f.items(), f, path) or None


def _check_nested(w: _Walker, f: nodes.Nested, path: tuple):
    return w._fields(f.fields, f, path) or None


def _check_constraint(kind: str, op: str, arg: Any) -> bool:
    if kind == "string" and op in _STRING_OPS:
        if op == "eq":
            return isinstance(arg, str)
        if op == "regex":
            return utils.is_pattern(arg)
        return utils._is_integer(arg) and arg >= 0
    if kind in utils.NUMERIC_KINDS and op in _NUMERIC_OPS:
        if op == "range":
            return (
                isinstance(arg, (tuple, list))
                and len(arg) == 2
                and all(utils.is_numeric(x) for x in arg)
                and arg[0] <= arg[1]
            )
        return utils.is_numeric(arg)
    return False


def _check_primitive(w: _Walker, f: nodes.Primitive, path: tuple):
    if f.kind not in utils.KINDS:
        return _invalid(f)
    for pair in f.constraints:
        if not (isinstance(pair, tuple) and len(pair) == 2 and _check_constraint(f.kind, *pair)):
            return "invalid constraint %{constraint} for type %{type}", {
                "constraint": pair,
                "type": f.kind,
            }
    return None


def _check_required(w: _Walker, f: nodes.Required, path: tuple):
    if isinstance(f.inner, nodes.WithDefault):
        template = "cannot set default value of %{value} for required field of type %{type}"
        return template, {"value": f.inner.preview(), "type": f.inner.inner}
    return w._check(f.inner, path)


def _non_empty(message: str, items: tuple):
    return None if items else (message, {})


def _callable(label: str, fn: Any):
    if not callable(fn):
        return "expected a callable for %{label}, got: %{actual}", {"label": label, "actual": fn}
    return None


def _check_default(w: _Walker, f: nodes.WithDefault, path: tuple):
    if isinstance(f.inner, nodes.Required):
        template = "cannot set default value of %{value} for required field of type %{type}"
        return template, {"value": f.preview(), "type": f.inner.inner}
    if f.factory is not None:
        failure = _callable("default factory", f.factory)
        if failure:
            return failure
    elif f.value is utils.MISSING:
        return "default requires a value or a factory", {}
    return w._check(f.inner, path)


def _chain(*steps: Callable[[], Any]):
    for step in steps:
        outcome = step()
        if outcome is not None:
            return outcome
    return None


_RULES: dict[type, Callable] = {
    nodes.Primitive: _check_primitive,
    nodes.Nested: _check_nested,
    nodes.Required: _check_required,
    nodes.ListOf: lambda w, f, p: w._check(f.inner, p),
    nodes.TupleOf: lambda w, f, p: _non_empty("tuple requires at least one element", f.items)
    or w._first(f.items, p),
    nodes.MapOf: lambda w, f, p: w._first((f.keys, f.values), p),
    nodes.Choice: lambda w, f, p: _non_empty("enum requires at least one choice", f.values),
    nodes.Literal: lambda w, f, p: None,
    nodes.Either: lambda w, f, p: w._first((f.first, f.second), p),
    nodes.OneOf: lambda w, f, p: _non_empty("oneof requires at least one alternative", f.alternatives)
    or w._first(f.alternatives, p),
    nodes.Custom: lambda w, f, p: _callable("custom", f.callback),
    nodes.Cond: lambda w, f, p: _chain(
        lambda: _callable("cond", f.predicate),
        lambda: w._first((f.then, f.otherwise), p),
    ),
    nodes.Dependent: lambda w, f, p: _callable("dependent", f.callback),
    nodes.DependsOn: lambda w, f, p: _chain(
        lambda: None if _is_field_key(f.field) else _invalid(f.field),
        lambda: _callable("dependent", f.check),
        lambda: w._check(f.inner, p),
    ),
    nodes.WithDefault: _check_default,
    nodes.Transform: lambda w, f, p: _callable("transform", f.mapper)
    or w._check(f.inner, p),
}
