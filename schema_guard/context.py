"""
context.py - state threaded through one validation call.

Public API
----------
Mode
    ``strict`` (undeclared fields are dropped) or ``permissive`` (they survive).
Context
    Immutable ``(root, current, path, mode)`` record passed down every
    recursive call; each step derives a new one instead of mutating.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, replace
from typing import Any

__all__ = ["Mode", "Context"]


class Mode(str, enum.Enum):
    STRICT = "strict"
    PERMISSIVE = "permissive"

    @classmethod
    def coerce(cls, value: Any) -> "Mode":
        """Accept a Mode or its string value; raise ValueError otherwise."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            choices = ", ".join(repr(m.value) for m in cls)
            raise ValueError(f"Invalid mode {value!r}; expected one of {choices}") from None


@dataclass(frozen=True)
class Context:
    root: Any
    current: Any
    path: tuple = ()
    mode: Mode = Mode.STRICT
    # signatures of objects being expanded from absence; stops recursive schemas
    expanding: frozenset = frozenset()

    @classmethod
    def new(cls, data: Any, *, mode: Any = Mode.STRICT) -> "Context":
        return cls(root=data, current=data, mode=Mode.coerce(mode))

    @property
    def permissive(self) -> bool:
        return self.mode is Mode.PERMISSIVE

    def descend(self, key: Any) -> "Context":
        """Context for the value stored under *key* of the current object."""
        return replace(self, path=self.path + (key,))

    def enter(self, current: Any) -> "Context":
        """Context whose callbacks see *current* as the enclosing object."""
        return replace(self, current=current)

    def expand(self, signature: Any) -> "Context":
        return replace(self, current={}, expanding=self.expanding | {signature})
