"""
Analyzer module.

Contains type resolution and the model IR build.
"""

from __future__ import annotations

from .ir_builder import ModelIRBuilder
from .ir_nodes import DiscriminatorIR, FieldIR, ModelIR, ModelKind, ModelTable, model_to_dict, type_to_dict
from .resolved_types import (
    CompositeType,
    Discriminator,
    EnumType,
    MappingType,
    ModelRef,
    NullableType,
    ObjectType,
    OptionalType,
    PrimitiveType,
    ResolvedField,
    ResolvedType,
    SequenceType,
)
from .type_resolver import TypeResolver

__all__ = [
    "ResolvedType",
    "PrimitiveType",
    "OptionalType",
    "NullableType",
    "SequenceType",
    "MappingType",
    "EnumType",
    "ModelRef",
    "Discriminator",
    "CompositeType",
    "ResolvedField",
    "ObjectType",
    "TypeResolver",
    "FieldIR",
    "DiscriminatorIR",
    "ModelIR",
    "ModelKind",
    "ModelTable",
    "ModelIRBuilder",
    "model_to_dict",
    "type_to_dict",
]
