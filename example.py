"""
example.py – End-to-end walkthrough of schema_guard.

Demonstrates:
1. **Schema Definition**: shorthand mappings mixed with node constructors
2. **Strict vs Permissive**: what happens to undeclared fields
3. **Defaults & Transforms**: normalising values while validating
4. **Cross-field Rules**: Cond, DependsOn and Dependent schemas
5. **Error Reporting**: path-addressed error trees as text and JSON
"""
from __future__ import annotations

import logging

import pandas as pd

from schema_guard import (
    Choice,
    Cond,
    Custom,
    Dependent,
    DependsOn,
    Invalid,
    ListOf,
    Required,
    Transform,
    ValidationError,
    WithDefault,
    refine,
    validate,
    validate_or_raise,
)

# --------------------------------------------------------------------------- #
# Logging Configuration                                                       #
# --------------------------------------------------------------------------- #
logging.basicConfig(
    level="INFO",
    format="%(asctime)s %(levelname)s %(message)s",
)
log = logging.getLogger("schema_guard.examples")

# --------------------------------------------------------------------------- #
# Step 1: Define a schema                                                     #
# --------------------------------------------------------------------------- #
# Plain dicts are nested objects; strings and builtin types name primitives.

def _matches_password(value, other):
    if value == other:
        return None
    return Invalid("does not match %{field}", field="password")


def _contact_schema(root):
    if root.get("channel") == "email":
        return {"address": Required(refine("string", regex=r"^[^@]+@[^@]+$"))}
    return {"address": Required(refine("string", min=7))}


ORDER = {
    "id":       Required(str),
    "status":   Choice(["open", "shipped", "closed"]),
    "tags":     ListOf(Transform("string", str.lower)),
    "quantity": WithDefault(refine("integer", gte=1), value=1),
    "express":  "boolean",
    "tracking": Cond(lambda root: root.get("express") is True, refine("string", min=10)),
    "channel":  Choice(["email", "sms"]),
    "contact":  Dependent(_contact_schema),
    "password": "string",
    "confirm":  DependsOn("password", _matches_password, "string"),
    "metrics":  Custom(lambda df: isinstance(df, pd.DataFrame) and not df.empty),
}

# --------------------------------------------------------------------------- #
# Step 2: Validate good data                                                  #
# --------------------------------------------------------------------------- #
log.info("Validating a well-formed order...")
order = {
    "id": "A-1001",
    "status": "open",
    "tags": ["Gift", "RUSH"],
    "express": True,
    "tracking": "1Z999AA10123456784",
    "channel": "email",
    "contact": {"address": "ops@example.com"},
    "password": "s3cret",
    "confirm": "s3cret",
    "metrics": pd.DataFrame({"weight": [1.2, 0.4]}),
    "notes": "leave at the door",
}

strict = validate_or_raise(ORDER, order)
log.info("Strict result keys: %s", sorted(strict))
log.info("Default quantity: %s, normalised tags: %s", strict["quantity"], strict["tags"])

loose = validate_or_raise(ORDER, order, mode="permissive")
log.info("Permissive keeps undeclared 'notes': %s", loose["notes"])

# --------------------------------------------------------------------------- #
# Step 3: Inspect failures                                                    #
# --------------------------------------------------------------------------- #
log.info("Validating a broken order...")
broken = {
    "status": "lost",
    "quantity": 0,
    "express": True,
    "channel": "sms",
    "contact": {"address": "123"},
    "password": "s3cret",
    "confirm": "secret",
}

result = validate(ORDER, broken)
for error in result.errors:
    log.info("%s", error)

log.info("As JSON: %s", result.errors[0].to_json())

try:
    validate_or_raise(ORDER, broken)
except ValidationError as exc:
    log.info("Raised %s with %d top-level error(s)", type(exc).__name__, len(exc.errors))
