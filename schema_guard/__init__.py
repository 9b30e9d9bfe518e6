"""
schema_guard – Schema-driven validation and normalisation of nested data.
"""
from .context import Mode
from .errors import (
    Error,
    Invalid,
    InvalidSchema,
    Result,
    SchemaDefinitionError,
    SchemaError,
    ValidationError,
)
from .meta import validate_schema, validate_schema_or_raise
from .nodes import (
    Choice,
    Cond,
    Custom,
    Dependent,
    DependsOn,
    Either,
    ListOf,
    Literal,
    MapOf,
    Nested,
    OneOf,
    Primitive,
    Required,
    Transform,
    TupleOf,
    WithDefault,
    refine,
)
from .validator import conforms, validate, validate_or_raise

__all__ = [
    "validate",
    "validate_or_raise",
    "conforms",
    "validate_schema",
    "validate_schema_or_raise",
    "Mode",
    "Result",
    "Error",
    "Invalid",
    "SchemaError",
    "ValidationError",
    "InvalidSchema",
    "SchemaDefinitionError",
    "Primitive",
    "refine",
    "Required",
    "ListOf",
    "TupleOf",
    "MapOf",
    "Nested",
    "Choice",
    "Literal",
    "Either",
    "OneOf",
    "Custom",
    "Cond",
    "Dependent",
    "DependsOn",
    "WithDefault",
    "Transform",
]
