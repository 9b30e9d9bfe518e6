"""
validator.py - schema-driven traversal & dispatch engine
========================================================

This file is the interpreter behind every schema in the package: it walks a
piece of data alongside a schema (node instances or shorthand, see
:mod:`schema_guard.nodes`) and produces either a normalised copy of the data
or a tree of path-addressed :class:`~schema_guard.errors.Error` values.

Public API
----------
validate(schema, data, *, mode="strict") -> Result
    ``Result(value, None)`` on success, ``Result(None, errors)`` otherwise.
    Validation failures are returned, never raised.

validate_or_raise(schema, data, *, mode="strict")
    Return the normalised value or raise :class:`ValidationError` whose
    message renders the whole error tree.

conforms(schema, data, *, mode="strict") -> bool

Modes
-----
``strict``      only declared fields survive in the output (default)
``permissive``  every input field survives; declared ones are replaced by
                their validated/transformed value

Error propagation
-----------------
Sibling fields of a mapping are all validated and every failure is kept.
Elements of a list stop at the first failing element, which is reported
alone under the list field. The asymmetry is long-standing behaviour and is
kept on purpose; callers that need every element error should validate
elements individually.
"""

from __future__ import annotations

import dataclasses
import logging
import operator
import re
from collections.abc import Mapping
from typing import Any, Callable

from . import nodes
from . import utils
from .context import Context
from .errors import Error, Invalid, InvalidSchema, Result, SchemaError, ValidationError
from .meta import validate_schema

__all__ = [
    "SchemaError",
    "ValidationError",
    "validate",
    "validate_or_raise",
    "conforms",
]

log = logging.getLogger(__name__)

MISSING = utils.MISSING

# --------------------------------------------------------------------------- #
# Public entry points                                                         #
# --------------------------------------------------------------------------- #

def validate(schema: Any, data: Any, *, mode: Any = "strict") -> Result:
    """Validate *data* against *schema*.

    Raises ``ValueError`` for an unknown *mode* and :class:`InvalidSchema` when
    *schema* itself is malformed; both are caller errors, not data errors.
    """
    ctx = Context.new(data, mode=mode)
    checked = validate_schema(schema)
    if not checked.ok:
        raise InvalidSchema(checked.errors)

    value, failure = _validate_field(data, schema, ctx)
    if failure is None:
        return Result(value, None)

    errors = failure if isinstance(failure, list) else [failure]
    log.debug("%s validation failed with %d error(s)", ctx.mode.value, len(errors))
    return Result(None, errors)


def validate_or_raise(schema: Any, data: Any, *, mode: Any = "strict") -> Any:
    return validate(schema, data, mode=mode).unwrap()


def conforms(schema: Any, data: Any, *, mode: Any = "strict") -> bool:
    return validate(schema, data, mode=mode).ok


# --------------------------------------------------------------------------- #
# Dispatch                                                                    #
# --------------------------------------------------------------------------- #
#
# Every handler returns ``(value, None)`` on success or ``(None, failure)``,
# where *failure* is either an unaddressed leaf ``Error`` (the enclosing
# mapping attaches path and key) or a list of fully addressed errors coming
# out of a nested mapping.

def _validate_field(value: Any, fragment: Any, ctx: Context):
    node = nodes.as_node(fragment)
    if node is None:
        return value, None
    return _handler_for(type(node))(value, node, ctx)


def _handler_for(cls: type) -> Callable:
    for klass in cls.__mro__:
        handler = _HANDLERS.get(klass)
        if handler is not None:
            return handler
    raise TypeError(f"no handler for schema node {cls.__name__}")


def _fail(template: str, bindings: Any = None):
    return None, Error.single(template, bindings)


def _mismatch(value: Any, node: nodes.Node):
    return _fail(
        "expected type of %{expected} received %{actual} value",
        {"expected": node.describe(), "actual": value},
    )


def _address(leaf: Error, path: tuple, key: Any) -> Error:
    return dataclasses.replace(leaf, path=[*path, key], key=key)


# --------------------------------------------------------------------------- #
# Primitives & refinements                                                    #
# --------------------------------------------------------------------------- #

_COMPARISONS: dict[str, tuple[Callable, str]] = {
    "eq":  (operator.eq, "should be equal to %{value}"),
    "neq": (operator.ne, "should be not equal to %{value}"),
    "lt":  (operator.lt, "should be less than %{value}"),
    "lte": (operator.le, "should be less than or equal to %{value}"),
    "gt":  (operator.gt, "should be greater than %{value}"),
    "gte": (operator.ge, "should be greater than or equal to %{value}"),
}


def _refine_string(value: str, op: str, arg: Any) -> Error | None:
    if op == "eq":
        if value == arg:
            return None
        return Error.single("should be equal to literal %{literal}", {"literal": arg})
    if op == "min":
        if len(value) >= arg:
            return None
        return Error.single("should have the minimum length of %{length}", {"length": arg})
    if op == "max":
        if len(value) <= arg:
            return None
        return Error.single("should have the maximum length of %{length}", {"length": arg})
    # regex
    pattern = arg if isinstance(arg, re.Pattern) else re.compile(arg)
    if pattern.search(value):
        return None
    return Error.single("should match the %{regex} pattern", {"regex": arg})


def _refine_number(value: Any, op: str, arg: Any) -> Error | None:
    if op == "range":
        low, high = arg
        if low <= value <= high:
            return None
        return Error.single(
            "should be in the range of %{min}..%{max} (inclusive)", {"min": low, "max": high}
        )
    compare, template = _COMPARISONS[op]
    if compare(value, arg):
        return None
    return Error.single(template, {"value": arg})


def _check_primitive(value: Any, node: nodes.Primitive, ctx: Context):
    if utils.is_absent(value):
        return value, None
    if not utils.is_kind(value, node.kind):
        return _mismatch(value, node)
    refine = _refine_string if node.kind == "string" else _refine_number
    for op, arg in node.constraints:
        failure = refine(value, op, arg)
        if failure is not None:
            return None, failure
    return value, None


def _canonical(value: Any) -> Any:
    # enum members and their text compare equal; bools never equal numbers
    if isinstance(value, bool):
        return (bool, value)
    text = utils.key_text(value) if not isinstance(value, bytes) else None
    return (str, text) if text is not None else value


def _check_choice(value: Any, node: nodes.Choice, ctx: Context):
    if utils.is_absent(value):
        return value, None
    wanted = _canonical(value)
    if any(_canonical(choice) == wanted for choice in node.values):
        return value, None
    return _fail(
        "expected one of %{choices} received %{actual}",
        {"choices": list(node.values), "actual": value},
    )


def _check_literal(value: Any, node: nodes.Literal, ctx: Context):
    # a missing field reads as None, so Literal(None) accepts it
    actual = None if value is MISSING else value
    if type(actual) is type(node.value) and actual == node.value:
        return value, None
    return _fail(
        "expected literal value %{expected} but got %{actual}",
        {"expected": node.value, "actual": actual},
    )


# --------------------------------------------------------------------------- #
# Wrappers                                                                    #
# --------------------------------------------------------------------------- #

def _is_empty_collection(value: Any, inner: Any) -> bool:
    if isinstance(inner, nodes.ListOf):
        return isinstance(value, list) and not value
    opaque_map = isinstance(inner, nodes.Primitive) and inner.kind == "map"
    if isinstance(inner, nodes.Nested) or opaque_map:
        return isinstance(value, Mapping) and not value
    return False


def _check_required(value: Any, node: nodes.Required, ctx: Context):
    if utils.is_absent(value):
        return _fail(
            "is required, expected type of %{expected}", {"expected": nodes.describe(node.inner)}
        )
    inner = nodes.as_node(node.inner)
    if _is_empty_collection(value, inner):
        return _fail("cannot be empty")
    return _validate_field(value, inner, ctx)


def _check_default(value: Any, node: nodes.WithDefault, ctx: Context):
    if utils.is_absent(value):
        value = node.produce()
    result, failure = _validate_field(value, node.inner, ctx)
    if failure is not None:
        return None, failure
    return (value if result is MISSING else result), None


def _check_transform(value: Any, node: nodes.Transform, ctx: Context):
    result, failure = _validate_field(value, node.inner, ctx)
    if failure is not None:
        return None, failure
    if utils.is_absent(result):
        return result, None
    if node.contextual:
        return node.mapper(result, ctx.current), None
    return node.mapper(result), None


# --------------------------------------------------------------------------- #
# Collections                                                                 #
# --------------------------------------------------------------------------- #

def _check_list(value: Any, node: nodes.ListOf, ctx: Context):
    if utils.is_absent(value):
        return value, None
    if not isinstance(value, list):
        return _mismatch(value, node)
    inner = nodes.as_node(node.inner)
    out = []
    for element in value:
        # callbacks inside an element see the element, not the parent object
        result, failure = _validate_field(element, inner, ctx.enter(element))
        if failure is not None:
            return None, failure
        out.append(element if result is MISSING else result)
    return out, None


def _check_tuple(value: Any, node: nodes.TupleOf, ctx: Context):
    if utils.is_absent(value):
        return value, None
    if not isinstance(value, tuple):
        return _mismatch(value, node)
    if len(value) != len(node.items):
        return _fail(
            "expected tuple of size %{length} received tuple with %{actual} length",
            {"length": len(node.items), "actual": len(value)},
        )
    out = []
    for index, (element, fragment) in enumerate(zip(value, node.items)):
        result, failure = _validate_field(element, fragment, ctx)
        if isinstance(failure, Error):
            content = {"index": index, **(failure.content or {})}
            leaf = dataclasses.replace(
                failure, message=f"tuple element {index}: {failure.message}", content=content
            )
            return None, leaf
        if failure is not None:
            # a nested object failed; keep its errors under one indexed entry
            wrapper = Error.single("tuple element %{index}", {"index": index})
            wrapper.errors = failure
            return None, wrapper
        out.append(element if result is MISSING else result)
    if hasattr(value, "_make"):
        return value._make(out), None
    return tuple(out), None


def _check_map(value: Any, node: nodes.MapOf, ctx: Context):
    if utils.is_absent(value):
        return value, None
    if not isinstance(value, Mapping):
        return _mismatch(value, node)
    out = {}
    for key, item in value.items():
        if node.keys is not None:
            _, failure = _validate_field(key, node.keys, ctx)
            if failure is not None:
                return None, failure
        result, failure = _validate_field(item, node.values, ctx)
        if failure is not None:
            return None, failure
        out[key] = item if result is MISSING else result
    return out, None


def _traverse(node: nodes.Nested, data: Mapping, ctx: Context):
    """Validate every declared field of *data*, accumulating sibling errors."""
    working = dict(data)
    scope = ctx.enter(working)
    declared: dict = {}
    errors: list[Error] = []

    for key, fragment in node.fields:
        raw_key, raw = utils.lookup(data, key)
        result, failure = _validate_field(raw, fragment, scope.descend(key))

        if failure is None:
            if result is MISSING:
                continue
            if raw_key is not None:
                working.pop(raw_key, None)
            working[key] = result
            declared[key] = result
        elif isinstance(failure, list):
            errors.append(Error.parent(ctx.path, key, failure))
        else:
            errors.append(_address(failure, ctx.path, key))

    if errors:
        return None, errors
    if ctx.permissive:
        return working, None
    return declared, None


def _check_nested(value: Any, node: nodes.Nested, ctx: Context):
    if utils.is_absent(value):
        # an absent object still reports its required fields; it only
        # materialises when defaults produced something
        signature = tuple((key, id(fragment)) for key, fragment in node.fields)
        if signature in ctx.expanding:
            return value, None
        result, failure = _traverse(node, {}, ctx.expand(signature))
        if failure is not None or result:
            return result, failure
        return value, None
    if not isinstance(value, Mapping):
        return _mismatch(value, node)
    return _traverse(node, value, ctx)


# --------------------------------------------------------------------------- #
# Unions                                                                      #
# --------------------------------------------------------------------------- #

def _check_either(value: Any, node: nodes.Either, ctx: Context):
    if utils.is_absent(value):
        return value, None
    for branch in (node.first, node.second):
        result, failure = _validate_field(value, branch, ctx)
        if failure is None:
            return result, None
    return _fail(
        "expected either %{first_type} or %{second_type}, got: %{actual}",
        {
            "first_type": nodes.describe(node.first),
            "second_type": nodes.describe(node.second),
            "actual": value,
        },
    )


def _check_oneof(value: Any, node: nodes.OneOf, ctx: Context):
    if utils.is_absent(value):
        return value, None
    for branch in node.alternatives:
        result, failure = _validate_field(value, branch, ctx)
        if failure is None:
            return result, None
    expected = " or ".join(nodes.describe(b) for b in node.alternatives)
    return _fail("expected one of %{oneof}, got: %{actual}", {"oneof": expected, "actual": value})


# --------------------------------------------------------------------------- #
# Callbacks                                                                   #
# --------------------------------------------------------------------------- #
#
# Success:  None, True, or (True, payload) - the payload is ignored.
# Failure:  False, an Invalid, or a (template, bindings) pair.

def _as_failure(outcome: Any) -> Error | None:
    if outcome is False:
        return Error.single("is invalid")
    if isinstance(outcome, Invalid):
        return Error.single(outcome.template, outcome.bindings)
    if isinstance(outcome, tuple) and len(outcome) == 2 and isinstance(outcome[0], str):
        return Error.single(outcome[0], outcome[1])
    return None


def _callback_failure(outcome: Any) -> Error | None:
    if outcome is None or outcome is True:
        return None
    if isinstance(outcome, tuple) and len(outcome) == 2 and outcome[0] is True:
        return None
    failure = _as_failure(outcome)
    if failure is None:
        raise TypeError(f"unrecognised callback outcome: {outcome!r}")
    return failure


def _scope_args(contextual: bool, ctx: Context) -> tuple:
    return (ctx.current, ctx.root) if contextual else (ctx.root,)


def _check_custom(value: Any, node: nodes.Custom, ctx: Context):
    if utils.is_absent(value):
        return value, None
    outcome = node.callback(value, ctx.root) if node.contextual else node.callback(value)
    failure = _callback_failure(outcome)
    if failure is not None:
        return None, failure
    return value, None


def _implicitly_required(branch: Any) -> Any:
    node = nodes.as_node(branch)
    if node is None or isinstance(node, (nodes.Required, nodes.WithDefault)):
        return node
    return nodes.Required(node)


def _check_cond(value: Any, node: nodes.Cond, ctx: Context):
    chosen = node.then if node.predicate(*_scope_args(node.contextual, ctx)) else node.otherwise
    return _validate_field(value, _implicitly_required(chosen), ctx)


def _check_dependent(value: Any, node: nodes.Dependent, ctx: Context):
    outcome = node.callback(*_scope_args(node.contextual, ctx))
    if outcome is None:
        return value, None
    failure = _as_failure(outcome)
    if failure is not None:
        return None, failure

    checked = validate_schema(outcome)
    if not checked.ok:
        log.debug("dependent schema rejected at %s", list(ctx.path))
        invalid = Error.single("invalid schema %{schema}", {"schema": outcome})
        invalid.errors = [e.rebase(ctx.path) for e in checked.errors]
        return None, invalid
    return _validate_field(value, outcome, ctx)


def _check_depends_on(value: Any, node: nodes.DependsOn, ctx: Context):
    other = MISSING
    if isinstance(ctx.current, Mapping):
        _, other = utils.lookup(ctx.current, node.field)
    outcome = node.check(
        None if value is MISSING else value,
        None if other is MISSING else other,
    )
    failure = _callback_failure(outcome)
    if failure is not None:
        return None, failure
    return _validate_field(value, node.inner, ctx)


_HANDLERS: dict[type, Callable] = {
    nodes.Primitive: _check_primitive,
    nodes.Required: _check_required,
    nodes.ListOf: _check_list,
    nodes.TupleOf: _check_tuple,
    nodes.MapOf: _check_map,
    nodes.Nested: _check_nested,
    nodes.Choice: _check_choice,
    nodes.Literal: _check_literal,
    nodes.Either: _check_either,
    nodes.OneOf: _check_oneof,
    nodes.Custom: _check_custom,
    nodes.Cond: _check_cond,
    nodes.Dependent: _check_dependent,
    nodes.DependsOn: _check_depends_on,
    nodes.WithDefault: _check_default,
    nodes.Transform: _check_transform,
}
