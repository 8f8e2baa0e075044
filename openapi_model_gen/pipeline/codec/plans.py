"""
Value plans and predicates.

A value plan is an abstract description of how one value is decoded from
(and encoded back to) its wire form. Plans reference models by name only,
so a plan graph over a self-referential model is finite. Emitters walk the
plans to produce code; ModelCodec walks them to build runtime callables.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class Predicate:
    """Shallow check used to pick an alternative of an undiscriminated union."""


@dataclass(frozen=True)
class IsInstanceOf(Predicate):
    """Decode side: a mapping with every required wire name. Encode side: an instance of the model."""

    model: str = ""
    required: tuple[str, ...] = ()


@dataclass(frozen=True)
class IsPrimitive(Predicate):
    kind: str = "any"


@dataclass(frozen=True)
class IsSequence(Predicate):
    pass


@dataclass(frozen=True)
class IsMapping(Predicate):
    pass


@dataclass(frozen=True)
class IsEnumMember(Predicate):
    values: tuple[Any, ...] = ()


@dataclass(frozen=True)
class MatchesAny(Predicate):
    """Holds when any of the nested predicates holds (references to union models)."""

    predicates: tuple[Predicate, ...] = ()


@dataclass(frozen=True)
class ValuePlan:
    """Base class of every value plan."""


@dataclass(frozen=True)
class PassThrough(ValuePlan):
    """Primitive value, unchanged in both directions."""

    kind: str = "any"


@dataclass(frozen=True)
class CheckEnum(ValuePlan):
    """Value must be one of the enumeration values."""

    values: tuple[Any, ...] = ()
    name: str | None = None


@dataclass(frozen=True)
class NullablePlan(ValuePlan):
    """Explicit null passes through, anything else goes to ``inner``."""

    inner: ValuePlan = PassThrough()


@dataclass(frozen=True)
class EachElement(ValuePlan):
    element: ValuePlan = PassThrough()


@dataclass(frozen=True)
class EachValue(ValuePlan):
    """String-keyed mapping; keys pass through."""

    value: ValuePlan = PassThrough()


@dataclass(frozen=True)
class CallModel(ValuePlan):
    """Delegate to the decoder/encoder of a named model."""

    model: str = ""


@dataclass(frozen=True)
class Dispatch(ValuePlan):
    """Tagged alternation: the discriminator value selects the model."""

    property_name: str = ""

    # (discriminator value, model name), in declaration order
    cases: tuple[tuple[str, str], ...] = ()


@dataclass(frozen=True)
class FirstMatch(ValuePlan):
    """Duck-typed alternation: the first option whose predicate holds wins."""

    options: tuple[tuple[Predicate, ValuePlan], ...] = ()
    description: str = "union"


def predicate_to_dict(predicate: Predicate) -> dict[str, Any]:
    """Convert a predicate to a JSON-compatible dictionary."""
    if isinstance(predicate, IsInstanceOf):
        return {"predicate": "is_instance_of", "model": predicate.model, "required": list(predicate.required)}
    if isinstance(predicate, IsPrimitive):
        return {"predicate": "is_primitive", "type": predicate.kind}
    if isinstance(predicate, IsSequence):
        return {"predicate": "is_sequence"}
    if isinstance(predicate, IsMapping):
        return {"predicate": "is_mapping"}
    if isinstance(predicate, IsEnumMember):
        return {"predicate": "is_enum_member", "values": list(predicate.values)}
    if isinstance(predicate, MatchesAny):
        return {"predicate": "matches_any", "predicates": [predicate_to_dict(p) for p in predicate.predicates]}
    raise TypeError(f"Cannot serialize predicate {predicate!r}")


def plan_to_dict(plan: ValuePlan) -> dict[str, Any]:
    """Convert a value plan to a JSON-compatible dictionary."""
    if isinstance(plan, PassThrough):
        return {"plan": "pass_through", "type": plan.kind}
    if isinstance(plan, CheckEnum):
        result: dict[str, Any] = {"plan": "check_enum", "values": list(plan.values)}
        if plan.name:
            result["name"] = plan.name
        return result
    if isinstance(plan, NullablePlan):
        return {"plan": "nullable", "inner": plan_to_dict(plan.inner)}
    if isinstance(plan, EachElement):
        return {"plan": "each_element", "element": plan_to_dict(plan.element)}
    if isinstance(plan, EachValue):
        return {"plan": "each_value", "value": plan_to_dict(plan.value)}
    if isinstance(plan, CallModel):
        return {"plan": "call_model", "model": plan.model}
    if isinstance(plan, Dispatch):
        return {
            "plan": "dispatch",
            "property_name": plan.property_name,
            "cases": [{"value": value, "model": model} for value, model in plan.cases],
        }
    if isinstance(plan, FirstMatch):
        return {
            "plan": "first_match",
            "options": [{"when": predicate_to_dict(p), "then": plan_to_dict(o)} for p, o in plan.options],
        }
    raise TypeError(f"Cannot serialize plan {plan!r}")
