"""
IR (Intermediate Representation) node definitions.

These nodes represent the analyzed and resolved schema, ready for
contract derivation and code generation. All references are checked:
every ModelRef reachable from a ModelIR names a model of the same table.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Any

from .resolved_types import (
    CompositeType,
    EnumType,
    MappingType,
    ModelRef,
    NullableType,
    OptionalType,
    PrimitiveType,
    ResolvedType,
    SequenceType,
)


class ModelKind(str, Enum):
    """Kind of model in the IR."""

    OBJECT = "object"  # A record with named fields
    COMPOSITE = "composite"  # A oneOf/anyOf alternation


@dataclass(frozen=True)
class FieldIR:
    """A field of an object model."""

    name: str = ""  # Python attribute name (snake_case, keyword-escaped)
    wire_name: str = ""  # Key in the encoded form

    # Unwrapped: optional/nullable live in the flags below
    type: ResolvedType = PrimitiveType()

    required: bool = False
    nullable: bool = False
    default: Any = None
    has_default: bool = False
    description: str | None = None


@dataclass(frozen=True)
class DiscriminatorIR:
    """Property name plus discriminator value -> model name, in declaration order."""

    property_name: str = ""
    mapping: tuple[tuple[str, str], ...] = ()

    def target(self, value: str) -> str | None:
        for candidate, model in self.mapping:
            if candidate == value:
                return model
        return None

    def values_for(self, model: str) -> list[str]:
        return [value for value, target in self.mapping if target == model]


@dataclass(frozen=True)
class ModelIR:
    """A generated model: an object record or a composite alternation."""

    name: str = ""
    kind: ModelKind = ModelKind.OBJECT

    # Object models: declaration (merge) order
    fields: tuple[FieldIR, ...] = ()

    # Object models: polymorphism root; composites: tagged alternation
    discriminator: DiscriminatorIR | None = None

    # allOf parents, in merge order (informational: fields are flattened)
    parents: tuple[str, ...] = ()

    # Composite models only
    variants: tuple[ResolvedType, ...] = ()
    composite_mode: str | None = None

    description: str | None = None

    @property
    def is_object(self) -> bool:
        return self.kind == ModelKind.OBJECT

    @property
    def required_fields(self) -> tuple[FieldIR, ...]:
        return tuple(f for f in self.fields if f.required)

    def field_by_wire_name(self, wire_name: str) -> FieldIR | None:
        for f in self.fields:
            if f.wire_name == wire_name:
                return f
        return None


class ModelTable(Mapping[str, ModelIR]):
    """
    Read-only, name-keyed table of models in generation order.

    Built once by the ModelIRBuilder; lookups through ModelRef names never
    mutate it, so a table can be shared freely.
    """

    def __init__(self, models: Mapping[str, ModelIR], enums: Mapping[str, EnumType] | None = None):
        self._models = MappingProxyType(dict(models))
        self._enums = MappingProxyType(dict(enums or {}))

    def __getitem__(self, name: str) -> ModelIR:
        return self._models[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._models)

    def __len__(self) -> int:
        return len(self._models)

    def __repr__(self) -> str:
        return f"ModelTable({list(self._models)!r})"

    @property
    def enums(self) -> Mapping[str, EnumType]:
        """Named enums, in declaration order (rendered as aliases by emitters)."""
        return self._enums

    def resolve(self, ref: ModelRef) -> ModelIR:
        return self._models[ref.name]


def type_to_dict(type_: ResolvedType) -> dict[str, Any]:
    """Convert a resolved type to a JSON-compatible dictionary."""
    if isinstance(type_, PrimitiveType):
        result: dict[str, Any] = {"kind": "primitive", "type": type_.kind}
        if type_.format:
            result["format"] = type_.format
        return result
    if isinstance(type_, OptionalType):
        return {"kind": "optional", "inner": type_to_dict(type_.inner)}
    if isinstance(type_, NullableType):
        return {"kind": "nullable", "inner": type_to_dict(type_.inner)}
    if isinstance(type_, SequenceType):
        return {"kind": "sequence", "element": type_to_dict(type_.element)}
    if isinstance(type_, MappingType):
        return {"kind": "mapping", "key": type_to_dict(type_.key), "value": type_to_dict(type_.value)}
    if isinstance(type_, EnumType):
        return {"kind": "enum", "name": type_.name, "value_kind": type_.value_kind, "values": list(type_.values)}
    if isinstance(type_, ModelRef):
        return {"kind": "model", "name": type_.name}
    if isinstance(type_, CompositeType):
        result = {
            "kind": "composite",
            "mode": type_.mode,
            "variants": [type_to_dict(v) for v in type_.variants],
        }
        if type_.name:
            result["name"] = type_.name
        if type_.discriminator is not None:
            result["discriminator"] = {
                "property_name": type_.discriminator.property_name,
                "mapping": dict(type_.discriminator.mapping),
            }
        return result
    raise TypeError(f"Cannot serialize type {type_!r}")


def model_to_dict(model: ModelIR) -> dict[str, Any]:
    """Convert a ModelIR to a JSON-compatible dictionary."""
    result: dict[str, Any] = {"name": model.name, "kind": model.kind.value}
    if model.description:
        result["description"] = model.description
    if model.is_object:
        result["fields"] = [
            {
                "name": f.name,
                "wire_name": f.wire_name,
                "type": type_to_dict(f.type),
                "required": f.required,
                "nullable": f.nullable,
                **({"default": f.default} if f.has_default else {}),
            }
            for f in model.fields
        ]
        if model.parents:
            result["parents"] = list(model.parents)
    else:
        result["mode"] = model.composite_mode
        result["variants"] = [type_to_dict(v) for v in model.variants]
    if model.discriminator is not None:
        result["discriminator"] = {
            "property_name": model.discriminator.property_name,
            "mapping": dict(model.discriminator.mapping),
        }
    return result
