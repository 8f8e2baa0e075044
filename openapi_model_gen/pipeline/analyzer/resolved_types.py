"""
Resolved type descriptors.

Produced by the TypeResolver from schema nodes. References to models are
never expanded: they become ModelRef handles keyed by name, which is what
lets self-referential and mutually recursive models exist without cyclic
ownership.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class ResolvedType:
    """Base class of every resolved type."""


@dataclass(frozen=True)
class PrimitiveType(ResolvedType):
    kind: str = "any"  # "string", "integer", "number", "boolean", "null", "any"
    format: str | None = None


@dataclass(frozen=True)
class OptionalType(ResolvedType):
    """May be absent from the encoded form."""

    inner: ResolvedType = PrimitiveType()


@dataclass(frozen=True)
class NullableType(ResolvedType):
    """May be present with an explicit null."""

    inner: ResolvedType = PrimitiveType()


@dataclass(frozen=True)
class SequenceType(ResolvedType):
    element: ResolvedType = PrimitiveType()


@dataclass(frozen=True)
class MappingType(ResolvedType):
    key: ResolvedType = PrimitiveType("string")
    value: ResolvedType = PrimitiveType()


@dataclass(frozen=True)
class EnumType(ResolvedType):
    name: str | None = None
    values: tuple[Any, ...] = ()
    value_kind: str = "string"


@dataclass(frozen=True)
class ModelRef(ResolvedType):
    """Non-owning, name-keyed handle into the model table."""

    name: str = ""


@dataclass(frozen=True)
class Discriminator:
    property_name: str = ""

    # (discriminator value, model name), in declaration order
    mapping: tuple[tuple[str, str], ...] = ()


@dataclass(frozen=True)
class CompositeType(ResolvedType):
    """Tagged (discriminator) or duck-typed (first match) alternation."""

    name: str | None = None
    mode: str = "oneOf"  # "oneOf" or "anyOf"
    discriminator: Discriminator | None = None
    variants: tuple[ResolvedType, ...] = ()


@dataclass(frozen=True)
class ResolvedField:
    name: str = ""  # wire name

    # Wrapped in OptionalType when the field may be absent and in
    # NullableType when it may be an explicit null
    type: ResolvedType = PrimitiveType()

    default: Any = None
    has_default: bool = False
    description: str | None = None

    @property
    def required(self) -> bool:
        return not unwrap(self.type)[1]

    @property
    def nullable(self) -> bool:
        return unwrap(self.type)[2]


@dataclass(frozen=True)
class ObjectType(ResolvedType):
    """An object-kind named schema with its (merged) field list."""

    name: str = ""
    fields: tuple[ResolvedField, ...] = ()

    # Schemas merged through allOf $ref members, in merge order
    parents: tuple[str, ...] = ()

    # Set when this object is the root of a polymorphic family
    discriminator: Discriminator | None = None

    description: str | None = None


def unwrap(type_: ResolvedType) -> tuple[ResolvedType, bool, bool]:
    """Strip Optional/Nullable wrappers; return (inner, optional, nullable)."""
    optional = nullable = False
    while isinstance(type_, (OptionalType, NullableType)):
        if isinstance(type_, OptionalType):
            optional = True
        else:
            nullable = True
        type_ = type_.inner
    return type_, optional, nullable


def model_refs(type_: ResolvedType) -> list[str]:
    """Every ModelRef name reachable from a type, without following refs."""
    if isinstance(type_, ModelRef):
        return [type_.name]
    if isinstance(type_, (OptionalType, NullableType)):
        return model_refs(type_.inner)
    if isinstance(type_, SequenceType):
        return model_refs(type_.element)
    if isinstance(type_, MappingType):
        return model_refs(type_.value)
    if isinstance(type_, CompositeType):
        names = [name for variant in type_.variants for name in model_refs(variant)]
        if type_.discriminator:
            names.extend(target for _, target in type_.discriminator.mapping)
        return names
    if isinstance(type_, ObjectType):
        names = [name for f in type_.fields for name in model_refs(f.type)]
        if type_.discriminator:
            names.extend(target for _, target in type_.discriminator.mapping)
        return names
    return []
