# schema_guard/render.py
from __future__ import annotations
from typing import Any, Mapping, Sequence

from . import utils

__all__ = ["format_error", "format_errors"]

def _format_scalar(v: Any) -> str:
    """Return a display-safe scalar string."""
    if v is True:   return "true"
    if v is False:  return "false"
    if v is None:   return "null"
    return utils._inspect(v)

def _format_path(path: Sequence[Any]) -> str:
    """Join a key path as ``a -> b -> c``."""
    return " -> ".join(_format_scalar(utils._json_key(k)) for k in path)

def _format_content(content: Mapping[str, Any] | None) -> str:
    if not content:
        return ""
    # one level only; nested tuples are flattened the same way as to_dict()
    pairs = ", ".join(f"{k!r}: {utils._json_safe(v)!r}" for k, v in content.items())
    return "Content: {" + pairs + "}"

def format_error(error, *, indent: int = 0) -> str:
    """
    Render one error tree as indented text.

    Parameters
    ----------
    error : Error
        A leaf or parent error.
    indent : int, default 0
        Number of leading spaces for the first line; children are indented
        two further spaces per level.

    Returns
    -------
    str
        Multi-line text, e.g.::

            Error in user -> age:
              Key: age
              Message: is required, expected type of integer
    """
    pad = " " * indent
    lines: list[str] = [f"{pad}Error in {_format_path(error.path) or '<root>'}:"]
    if error.key is not None:
        lines.append(f"{pad}  Key: {_format_scalar(utils._json_key(error.key))}")
    if error.message is not None:
        lines.append(f"{pad}  Message: {error.message}")
    content = _format_content(error.content)
    if content:
        lines.append(f"{pad}  {content}")
    for child in error.errors or ():
        lines.append(format_error(child, indent=indent + 2))
    return "\n".join(lines)

def format_errors(errors: Sequence[Any]) -> str:
    """Render a list of error trees, one block per top-level error."""
    return "\n".join(format_error(e) for e in errors)
