"""
Serialization contracts.

Phase 4 of the pipeline: derive, for every model of the table, the
abstract call graph that decodes it from and encodes it to its untyped
wire form. Contracts contain no code; ModelCodec interprets them at
runtime and emitters render them into source.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from ..analyzer.ir_nodes import DiscriminatorIR, FieldIR, ModelIR, ModelKind, ModelTable
from ..analyzer.resolved_types import (
    CompositeType,
    Discriminator,
    EnumType,
    MappingType,
    ModelRef,
    NullableType,
    OptionalType,
    PrimitiveType,
    ResolvedType,
    SequenceType,
)
from .plans import (
    CallModel,
    CheckEnum,
    Dispatch,
    EachElement,
    EachValue,
    FirstMatch,
    IsEnumMember,
    IsInstanceOf,
    IsMapping,
    IsPrimitive,
    IsSequence,
    MatchesAny,
    NullablePlan,
    PassThrough,
    Predicate,
    ValuePlan,
    plan_to_dict,
)

logger = logging.getLogger(__name__)

ON_ABSENT_UNDEFINED = "undefined"
ON_ABSENT_ERROR = "error"
ON_NULL_NULL = "null"
ON_NULL_ERROR = "error"


@dataclass(frozen=True)
class FieldContract:
    """How one field is read from and written to the wire form."""

    name: str = ""
    wire_name: str = ""
    plan: ValuePlan = PassThrough()

    # "undefined" (optional field) or "error" (required field)
    on_absent: str = ON_ABSENT_UNDEFINED

    # "null" (nullable field) or "error"
    on_null: str = ON_NULL_ERROR

    default: Any = None
    has_default: bool = False

    @property
    def required(self) -> bool:
        return self.on_absent == ON_ABSENT_ERROR

    @property
    def nullable(self) -> bool:
        return self.on_null == ON_NULL_NULL


@dataclass(frozen=True)
class ModelContract:
    """Decode/encode contract of one model."""

    name: str = ""
    kind: ModelKind = ModelKind.OBJECT

    # Object models
    fields: tuple[FieldContract, ...] = ()
    required: tuple[str, ...] = ()  # wire names checked by is_instance_of

    # Object models that are polymorphism roots; a case naming the model
    # itself decodes the fields of this contract
    discriminator: Dispatch | None = None

    # Composite models: Dispatch or FirstMatch
    body: ValuePlan | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert the contract to a JSON-compatible dictionary."""
        result: dict[str, Any] = {"name": self.name, "kind": self.kind.value}
        if self.kind == ModelKind.OBJECT:
            result["required"] = list(self.required)
            result["fields"] = [
                {
                    "name": f.name,
                    "wire_name": f.wire_name,
                    "plan": plan_to_dict(f.plan),
                    "on_absent": f.on_absent,
                    "on_null": f.on_null,
                }
                for f in self.fields
            ]
            if self.discriminator is not None:
                result["discriminator"] = plan_to_dict(self.discriminator)
        elif self.body is not None:
            result["body"] = plan_to_dict(self.body)
        return result


def _shadows(earlier: Predicate, later: Predicate) -> bool:
    """Whether every value accepted by ``later`` is also accepted by ``earlier``."""
    if earlier == later:
        return True
    if isinstance(earlier, IsPrimitive):
        if earlier.kind == "any":
            return True
        if isinstance(later, IsPrimitive):
            return earlier.kind == "number" and later.kind == "integer"
        if isinstance(later, IsEnumMember):
            return bool(later.values) and all(_primitive_kind(v) == earlier.kind for v in later.values)
        return False
    if isinstance(earlier, IsInstanceOf) and isinstance(later, IsInstanceOf):
        return set(earlier.required) <= set(later.required)
    if isinstance(earlier, IsMapping) and isinstance(later, IsInstanceOf):
        return True
    return False


def _primitive_kind(value: Any) -> str | None:
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, int):
        return "integer"
    if isinstance(value, float):
        return "number"
    if isinstance(value, str):
        return "string"
    return None


class ContractDeriver:
    """Derives ModelContracts from a ModelTable."""

    def __init__(self, table: ModelTable):
        self.table = table

    def derive(self) -> dict[str, ModelContract]:
        contracts = {name: self.contract(model) for name, model in self.table.items()}
        logger.debug("Derived %d model contracts", len(contracts))
        return contracts

    def contract(self, model: ModelIR) -> ModelContract:
        if model.is_object:
            return ModelContract(
                name=model.name,
                kind=ModelKind.OBJECT,
                fields=tuple(self._field_contract(model, f) for f in model.fields),
                required=tuple(f.wire_name for f in model.required_fields),
                discriminator=self._dispatch(model.discriminator) if model.discriminator else None,
            )
        return ModelContract(
            name=model.name,
            kind=ModelKind.COMPOSITE,
            body=self._alternation(model.discriminator, model.variants, model.name),
        )

    def _field_contract(self, model: ModelIR, field_ir: FieldIR) -> FieldContract:
        return FieldContract(
            name=field_ir.name,
            wire_name=field_ir.wire_name,
            plan=self.plan_for(field_ir.type, f"{model.name}.{field_ir.wire_name}"),
            on_absent=ON_ABSENT_ERROR if field_ir.required else ON_ABSENT_UNDEFINED,
            on_null=ON_NULL_NULL if field_ir.nullable else ON_NULL_ERROR,
            default=field_ir.default,
            has_default=field_ir.has_default,
        )

    def plan_for(self, type_: ResolvedType, context: str) -> ValuePlan:
        """Build the value plan of a (field, element or variant) type."""
        if isinstance(type_, PrimitiveType):
            return PassThrough(kind=type_.kind)
        if isinstance(type_, EnumType):
            return CheckEnum(values=type_.values, name=type_.name)
        if isinstance(type_, NullableType):
            return NullablePlan(inner=self.plan_for(type_.inner, context))
        if isinstance(type_, OptionalType):
            return self.plan_for(type_.inner, context)
        if isinstance(type_, SequenceType):
            return EachElement(element=self.plan_for(type_.element, f"{context}[]"))
        if isinstance(type_, MappingType):
            return EachValue(value=self.plan_for(type_.value, f"{context}{{}}"))
        if isinstance(type_, ModelRef):
            return CallModel(model=type_.name)
        if isinstance(type_, CompositeType):
            return self._alternation(type_.discriminator, type_.variants, type_.name or context)
        raise TypeError(f"Cannot derive a plan for {type_!r}")

    def _dispatch(self, discriminator: DiscriminatorIR | Discriminator) -> Dispatch:
        return Dispatch(property_name=discriminator.property_name, cases=tuple(discriminator.mapping))

    def _alternation(self, discriminator: DiscriminatorIR | Discriminator | None, variants: tuple[ResolvedType, ...], context: str) -> ValuePlan:
        if discriminator is not None:
            return self._dispatch(discriminator)

        options = tuple((self.predicate_for(v), self.plan_for(v, context)) for v in variants)
        self._warn_overlaps(options, context)
        return FirstMatch(options=options, description=context)

    def predicate_for(self, type_: ResolvedType, seen: frozenset[str] = frozenset()) -> Predicate:
        """Shallow predicate selecting a variant of an undiscriminated union."""
        if isinstance(type_, (NullableType, OptionalType)):
            return self.predicate_for(type_.inner, seen)
        if isinstance(type_, PrimitiveType):
            return IsPrimitive(kind=type_.kind)
        if isinstance(type_, EnumType):
            return IsEnumMember(values=type_.values)
        if isinstance(type_, SequenceType):
            return IsSequence()
        if isinstance(type_, MappingType):
            return IsMapping()
        if isinstance(type_, ModelRef):
            model = self.table[type_.name]
            if model.is_object:
                return IsInstanceOf(model=model.name, required=tuple(f.wire_name for f in model.required_fields))
            if model.name in seen:
                return MatchesAny()
            return MatchesAny(tuple(self.predicate_for(v, seen | {model.name}) for v in model.variants))
        if isinstance(type_, CompositeType):
            return MatchesAny(tuple(self.predicate_for(v, seen) for v in type_.variants))
        raise TypeError(f"Cannot derive a predicate for {type_!r}")

    def _warn_overlaps(self, options: tuple[tuple[Predicate, ValuePlan], ...], context: str) -> None:
        for i, (earlier, _) in enumerate(options):
            for j in range(i + 1, len(options)):
                if _shadows(earlier, options[j][0]):
                    logger.warning(
                        "%s: variant %d overlaps variant %d without a discriminator; variant %d always wins",
                        context,
                        i + 1,
                        j + 1,
                        i + 1,
                    )


def derive_contracts(table: ModelTable) -> dict[str, ModelContract]:
    """
    Derive the decode/encode contract of every model.

    Args:
        table: The model table

    Returns:
        Contracts keyed by model name, in table order
    """
    return ContractDeriver(table).derive()


def contracts_to_dict(contracts: Mapping[str, ModelContract]) -> dict[str, Any]:
    """Convert contracts to a JSON-compatible dictionary."""
    return {name: contract.to_dict() for name, contract in contracts.items()}

