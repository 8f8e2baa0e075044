"""
Codec module.

Contains the value plans, the contract derivation and the runtime executor.
"""

from __future__ import annotations

from .contracts import ContractDeriver, FieldContract, ModelContract, contracts_to_dict, derive_contracts
from .model_codec import ModelCodec
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
    predicate_to_dict,
)

__all__ = [
    "ValuePlan",
    "PassThrough",
    "CheckEnum",
    "NullablePlan",
    "EachElement",
    "EachValue",
    "CallModel",
    "Dispatch",
    "FirstMatch",
    "Predicate",
    "IsInstanceOf",
    "IsPrimitive",
    "IsSequence",
    "IsMapping",
    "IsEnumMember",
    "MatchesAny",
    "plan_to_dict",
    "predicate_to_dict",
    "FieldContract",
    "ModelContract",
    "ContractDeriver",
    "derive_contracts",
    "contracts_to_dict",
    "ModelCodec",
]
