"""
errors.py - path-addressed validation errors
============================================

Public API
----------
Error
    One node of an error tree. A *leaf* carries ``message``/``content``; a
    *parent* wraps a failing field and carries ``errors``.

Invalid
    Value a user callback returns to signal a templated failure.

SchemaError, ValidationError, InvalidSchema, SchemaDefinitionError
    Exceptions. Ordinary validation failures are *returned*, never raised;
    these are reserved for the raising entry points and contract violations.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass, replace
from typing import Any, Iterable, NamedTuple, Optional

from . import utils

__all__ = [
    "Error",
    "Invalid",
    "Result",
    "SchemaError",
    "ValidationError",
    "InvalidSchema",
    "SchemaDefinitionError",
    "format_message",
]

# --------------------------------------------------------------------------- #
# Exceptions                                                                  #
# --------------------------------------------------------------------------- #

class SchemaError(ValueError):
    """Base class of every exception raised by schema_guard."""


class ValidationError(SchemaError):
    """Raised by the *or_raise* entry points when data does not conform."""

    def __init__(self, errors: list[Error]):
        from .render import format_errors

        self.errors = errors
        super().__init__(format_errors(errors))


class InvalidSchema(SchemaError):
    """Raised when a schema definition itself is malformed."""

    def __init__(self, errors: list[Error]):
        from .render import format_errors

        self.errors = errors
        super().__init__(format_errors(errors))


class SchemaDefinitionError(SchemaError, TypeError):
    """Raised while *constructing* a node that breaks a schema contract."""


# --------------------------------------------------------------------------- #
# Message templating                                                          #
# --------------------------------------------------------------------------- #

def _bindings(bindings: Mapping | Iterable | None) -> dict[str, Any]:
    if bindings is None:
        return {}
    return dict(bindings)


def format_message(template: str, bindings: Mapping | Iterable | None = None) -> str:
    """Replace every ``%{name}`` token in *template* with its binding."""
    msg = template
    for name, value in _bindings(bindings).items():
        token = f"%{{{name}}}"
        if token in msg:
            msg = msg.replace(token, utils._inspect(value))
    return msg


class Invalid:
    """Failure outcome for Custom/DependsOn/Dependent callbacks.

    >>> Invalid("must be at most %{max}", max=3)
    """

    __slots__ = ("template", "bindings")

    def __init__(self, template: str, bindings: Mapping | Iterable | None = None, **kw: Any):
        self.template = template
        self.bindings = {**_bindings(bindings), **kw}

    def __repr__(self) -> str:
        return f"Invalid({self.template!r}, {self.bindings!r})"


# --------------------------------------------------------------------------- #
# Error tree                                                                  #
# --------------------------------------------------------------------------- #

@dataclass
class Error:
    path: list
    key: Any = None
    message: Optional[str] = None
    content: Optional[dict] = None
    errors: Optional[list] = None

    # ----------------------------------------------------------- builders --
    @classmethod
    def single(cls, template: str, bindings: Mapping | Iterable | None = None) -> "Error":
        content = _bindings(bindings)
        return cls(path=[], message=format_message(template, content), content=content)

    @classmethod
    def child(cls, path: Iterable, key: Any, template: str,
              bindings: Mapping | Iterable | None = None) -> "Error":
        content = _bindings(bindings)
        return cls(
            path=[*path, key],
            key=key,
            message=format_message(template, content),
            content=content,
        )

    @classmethod
    def parent(cls, path: Iterable, key: Any, errors: list["Error"]) -> "Error":
        if not errors:
            raise ValueError("a parent error needs at least one child")
        return cls(path=[*path, key], key=key, errors=list(errors))

    # --------------------------------------------------------- operations --
    @property
    def is_leaf(self) -> bool:
        return self.errors is None

    def rebase(self, prefix: Iterable) -> "Error":
        """Copy of this tree with *prefix* prepended to every path."""
        prefix = list(prefix)
        children = None
        if self.errors is not None:
            children = [e.rebase(prefix) for e in self.errors]
        return replace(self, path=prefix + list(self.path), errors=children)

    def leaves(self) -> Iterable["Error"]:
        """Yield every leaf error of the tree, depth first."""
        if self.errors is None:
            yield self
            return
        for err in self.errors:
            yield from err.leaves()

    def to_dict(self) -> dict[str, Any]:
        """Plain nested dict/list projection of the tree."""
        return {
            "path": [utils._json_key(k) for k in self.path],
            "key": utils._json_key(self.key),
            "content": None if self.content is None else utils._json_safe(self.content),
            "message": self.message,
            "errors": None if self.errors is None else [e.to_dict() for e in self.errors],
        }

    def to_json(self, **dumps_kwargs: Any) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False, **dumps_kwargs)

    def __str__(self) -> str:
        from .render import format_error

        return format_error(self)


class Result(NamedTuple):
    """Outcome of a validation call: ``(value, None)`` or ``(None, errors)``."""

    value: Any
    errors: Optional[list] = None

    @property
    def ok(self) -> bool:
        return self.errors is None

    def unwrap(self) -> Any:
        """Return the value, or raise :class:`ValidationError`."""
        if self.errors is not None:
            raise ValidationError(self.errors)
        return self.value
