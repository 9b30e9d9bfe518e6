"""
nodes.py - the closed set of schema node types
==============================================

A schema is either a node instance from this module or one of the shorthand
fragments below, which are resolved lazily by :func:`as_node`:

* a primitive kind name (``"string"``, ``"integer"``, ``"datetime"`` …)
* a builtin type (``str``, ``int``, ``float``, ``bool``, ``dict``, ``list``)
* a mapping of field key -> fragment, meaning :class:`Nested`
* ``None``, meaning "no constraint"

Every node is a frozen dataclass; validation never mutates a schema.

Example
-------
>>> schema = {
...     "id":    Required("string"),
...     "tags":  ListOf("string"),
...     "price": WithDefault(refine("integer", gte=0), value=0),
... }
"""

from __future__ import annotations

import copy
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Callable, Optional

from . import utils
from .errors import SchemaDefinitionError

__all__ = [
    "Node", "Primitive", "Required", "ListOf", "TupleOf", "MapOf", "Nested",
    "Choice", "Literal", "Either", "OneOf", "Custom", "Cond", "Dependent",
    "DependsOn", "WithDefault", "Transform", "refine", "as_node", "describe",
]

_BUILTIN_KINDS = {
    str: "string",
    int: "integer",
    float: "float",
    bool: "boolean",
    dict: "map",
    list: "list",
}

_NO_DEFAULT = utils.MISSING

_MAX_DEPTH = 6


class Node:
    """Base class of every schema node."""

    __slots__ = ()

    def describe(self, depth: int = 0) -> str:
        raise NotImplementedError

    def __str__(self) -> str:
        return self.describe()


# --------------------------------------------------------------------------- #
# Leaves                                                                      #
# --------------------------------------------------------------------------- #

@dataclass(frozen=True)
class Primitive(Node):
    """A primitive kind plus ordered ``(op, arg)`` refinements."""

    kind: str
    constraints: tuple = ()

    def describe(self, depth: int = 0) -> str:
        if not self.constraints:
            return self.kind
        refined = ", ".join(f"{op}: {utils._inspect(arg)}" for op, arg in self.constraints)
        return f"{self.kind}({refined})"


def refine(kind: str, **constraints: Any) -> Primitive:
    """Build a refined primitive, e.g. ``refine("integer", gte=0, lt=10)``."""
    return Primitive(kind, tuple(constraints.items()))


@dataclass(frozen=True)
class Choice(Node):
    """Value must equal one of *values* (enum members compare by text)."""

    values: tuple

    def __post_init__(self):
        object.__setattr__(self, "values", tuple(self.values))

    def describe(self, depth: int = 0) -> str:
        return f"enum({', '.join(utils._inspect(v) for v in self.values)})"


@dataclass(frozen=True)
class Literal(Node):
    value: Any

    def describe(self, depth: int = 0) -> str:
        return f"literal({self.value!r})"


# --------------------------------------------------------------------------- #
# Wrappers & composites                                                       #
# --------------------------------------------------------------------------- #

@dataclass(frozen=True)
class Required(Node):
    """Absence (missing or ``None``) of the wrapped value is an error."""

    inner: Any

    def __post_init__(self):
        if isinstance(self.inner, WithDefault):
            raise SchemaDefinitionError(
                f"cannot set default value of {self.inner.preview()} "
                f"for required field of type {describe(self.inner.inner)}"
            )

    def describe(self, depth: int = 0) -> str:
        return f"required({describe(self.inner, depth + 1)})"


@dataclass(frozen=True)
class ListOf(Node):
    inner: Any

    def describe(self, depth: int = 0) -> str:
        return f"list({describe(self.inner, depth + 1)})"


@dataclass(frozen=True)
class TupleOf(Node):
    items: tuple

    def __post_init__(self):
        object.__setattr__(self, "items", tuple(self.items))

    def describe(self, depth: int = 0) -> str:
        return f"tuple({', '.join(describe(t, depth + 1) for t in self.items)})"


@dataclass(frozen=True)
class MapOf(Node):
    """Mapping whose values (and optionally keys) share one schema."""

    values: Any
    keys: Any = None

    def describe(self, depth: int = 0) -> str:
        if self.keys is None:
            return f"map({describe(self.values, depth + 1)})"
        return f"map({describe(self.keys, depth + 1)}, {describe(self.values, depth + 1)})"


@dataclass(frozen=True)
class Nested(Node):
    """A keyed collection whose declared fields are validated independently.

    *fields* may be given as a mapping or as ``(key, fragment)`` pairs; it is
    stored as an ordered tuple of pairs.
    """

    fields: tuple

    def __post_init__(self):
        fields = self.fields
        if isinstance(fields, Mapping):
            fields = fields.items()
        object.__setattr__(self, "fields", tuple((k, v) for k, v in fields))

    def describe(self, depth: int = 0) -> str:
        body = ", ".join(f"{utils._json_key(k)}: {describe(v, depth + 1)}" for k, v in self.fields)
        return "{" + body + "}"


@dataclass(frozen=True)
class Either(Node):
    first: Any
    second: Any

    def describe(self, depth: int = 0) -> str:
        return f"either({describe(self.first, depth + 1)}, {describe(self.second, depth + 1)})"


@dataclass(frozen=True)
class OneOf(Node):
    alternatives: tuple

    def __post_init__(self):
        object.__setattr__(self, "alternatives", tuple(self.alternatives))

    def describe(self, depth: int = 0) -> str:
        return " or ".join(describe(a, depth + 1) for a in self.alternatives)


# --------------------------------------------------------------------------- #
# Callback-driven nodes                                                       #
# --------------------------------------------------------------------------- #
#
# ``contextual=False`` callbacks receive the root data (or, for Custom, the
# value); ``contextual=True`` callbacks also receive the enclosing object.
# See validator.py for the exact argument lists.

@dataclass(frozen=True)
class Custom(Node):
    callback: Callable
    contextual: bool = False

    def describe(self, depth: int = 0) -> str:
        return f"custom({_callable_name(self.callback)})"


@dataclass(frozen=True)
class Cond(Node):
    """Pick *then* or *otherwise* from a predicate over the data in scope."""

    predicate: Callable
    then: Any
    otherwise: Any = None
    contextual: bool = False

    def describe(self, depth: int = 0) -> str:
        return f"cond({describe(self.then, depth + 1)}, {describe(self.otherwise, depth + 1)})"


@dataclass(frozen=True)
class Dependent(Node):
    """Schema computed at validation time by *callback*."""

    callback: Callable
    contextual: bool = False

    def describe(self, depth: int = 0) -> str:
        return f"dependent({_callable_name(self.callback)})"


@dataclass(frozen=True)
class DependsOn(Node):
    """Compare this field against sibling *field* with ``check(value, other)``."""

    field: Any
    check: Callable
    inner: Any

    def describe(self, depth: int = 0) -> str:
        return f"dependent({utils._json_key(self.field)}, {describe(self.inner, depth + 1)})"


@dataclass(frozen=True)
class WithDefault(Node):
    """Supply *value* (or ``factory()``) when the field is absent."""

    inner: Any
    value: Any = _NO_DEFAULT
    factory: Optional[Callable[[], Any]] = None

    def __post_init__(self):
        if isinstance(self.inner, Required):
            raise SchemaDefinitionError(
                f"cannot set default value of {self.preview()} "
                f"for required field of type {describe(self.inner.inner)}"
            )

    def produce(self) -> Any:
        """Fresh default for one validation; a stored value is deep-copied."""
        if self.factory is not None:
            return self.factory()
        return copy.deepcopy(self.value)

    def preview(self) -> str:
        if self.factory is not None:
            return f"{_callable_name(self.factory)}()"
        return repr(self.value)

    def describe(self, depth: int = 0) -> str:
        return f"{describe(self.inner, depth + 1)} = {self.preview()}"


@dataclass(frozen=True)
class Transform(Node):
    """Map the validated value through *mapper* before storing it."""

    inner: Any
    mapper: Callable
    contextual: bool = False

    def describe(self, depth: int = 0) -> str:
        return f"{describe(self.inner, depth + 1)} -> {_callable_name(self.mapper)}"


# --------------------------------------------------------------------------- #
# Shorthand resolution                                                        #
# --------------------------------------------------------------------------- #

def as_node(fragment: Any) -> Node | None:
    """Resolve a (meta-validated) fragment to a node; ``None`` stays ``None``."""
    if fragment is None or isinstance(fragment, Node):
        return fragment
    if isinstance(fragment, str):
        return Primitive(fragment)
    if isinstance(fragment, type) and fragment in _BUILTIN_KINDS:
        return Primitive(_BUILTIN_KINDS[fragment])
    if isinstance(fragment, Mapping):
        return Nested(fragment)
    raise TypeError(f"not a schema fragment: {fragment!r}")


def shorthand_kind(fragment: Any) -> str | None:
    """Kind named by a string/builtin-type shorthand, if any."""
    if isinstance(fragment, str):
        return fragment
    if isinstance(fragment, type):
        return _BUILTIN_KINDS.get(fragment)
    return None


def describe(fragment: Any, depth: int = 0) -> str:
    """Compact text form of a fragment; cyclic schemas are cut at a fixed depth."""
    if fragment is None:
        return "nil"
    if depth > _MAX_DEPTH:
        return "..."
    if isinstance(fragment, Node):
        return fragment.describe(depth)
    kind = shorthand_kind(fragment)
    if kind is not None:
        return kind
    if isinstance(fragment, Mapping):
        return Nested(fragment).describe(depth)
    return repr(fragment)


def _callable_name(fn: Any) -> str:
    return getattr(fn, "__qualname__", None) or getattr(fn, "__name__", None) or repr(fn)
