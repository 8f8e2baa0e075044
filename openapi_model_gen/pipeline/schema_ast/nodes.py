"""
AST (Abstract Syntax Tree) node definitions for schema documents.

These nodes represent the parsed structure of a schema before any
reference resolution. They are frozen: the loader builds them once and
every later stage only reads them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar


@dataclass(frozen=True)
class SchemaNode:
    """Base class for all AST nodes."""

    kind: ClassVar[str] = ""

    # Original source location in the document (for error messages)
    source_path: str = ""

    description: str | None = None

    # Explicit null allowed (nullable: true, type: [T, "null"], null in enum)
    nullable: bool = False

    default: Any = None
    has_default: bool = False


@dataclass(frozen=True)
class PrimitiveNode(SchemaNode):
    """Represents a primitive type (string, integer, number, boolean, null, any)."""

    kind: ClassVar[str] = "primitive"

    type_name: str = "any"
    format: str | None = None


@dataclass(frozen=True)
class PropertyDef:
    """Represents a property in an object, in declaration order."""

    name: str = ""
    node: SchemaNode | None = None
    is_required: bool = False


@dataclass(frozen=True)
class ObjectNode(SchemaNode):
    """Represents an object type with properties."""

    kind: ClassVar[str] = "object"

    properties: tuple[PropertyDef, ...] = ()
    required: tuple[str, ...] = ()

    # Schema of extra keys: a node, True (any value), or None (not declared)
    additional_properties: SchemaNode | bool | None = None

    # Set when this object is the root of a polymorphic family
    discriminator: DiscriminatorDef | None = None


@dataclass(frozen=True)
class ArrayNode(SchemaNode):
    """Represents an array type."""

    kind: ClassVar[str] = "array"

    items: SchemaNode | None = None


@dataclass(frozen=True)
class EnumNode(SchemaNode):
    """Represents an enumeration (const is parsed as a single-value enum)."""

    kind: ClassVar[str] = "enum"

    values: tuple[Any, ...] = ()
    inferred_type: str = "string"


@dataclass(frozen=True)
class DiscriminatorDef:
    """The discriminator object of a composite or of a polymorphism root."""

    property_name: str = ""

    # (discriminator value, target schema name), in declaration order
    mapping: tuple[tuple[str, str], ...] = ()


@dataclass(frozen=True)
class CompositeNode(SchemaNode):
    """Represents allOf, oneOf or anyOf."""

    kind: ClassVar[str] = "composite"

    mode: str = "oneOf"  # "allOf", "oneOf" or "anyOf"
    variants: tuple[SchemaNode, ...] = ()
    discriminator: DiscriminatorDef | None = None


@dataclass(frozen=True)
class RefNode(SchemaNode):
    """Represents a $ref to a named schema (not yet resolved)."""

    kind: ClassVar[str] = "reference"

    ref_path: str = ""  # e.g. "#/components/schemas/Pet"
    target: str = ""  # e.g. "Pet"


@dataclass(frozen=True)
class SchemaGraph:
    """Root of the parsed schema: every named schema in declaration order."""

    root_name: str = ""
    definitions: dict[str, SchemaNode] = field(default_factory=dict)

    # Where the named schemas live, e.g. "#/components/schemas"
    container_path: str = ""

    # Document name for error messages
    source: str = "<document>"
