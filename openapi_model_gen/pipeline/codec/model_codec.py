"""
Runtime executor for model contracts.

ModelCodec interprets the contracts of a model table directly, without
generating source: one dataclass is built per object model and every value
plan becomes a composition of the combinators in openapi_model_gen.runtime,
exactly as in generated modules.
"""

from __future__ import annotations

import copy
from collections.abc import Callable, Mapping
from dataclasses import field, make_dataclass
from typing import Any

from ...errors import NoMatchingVariantError, TypeMismatchError
from ...runtime import (
    UNSET,
    Codec,
    Predicate,
    any_of,
    decode_field,
    dict_of,
    dispatch_on,
    encode_field,
    enum_of,
    first_match,
    has_required,
    identity,
    is_enum_member,
    is_mapping,
    is_model,
    is_primitive,
    is_sequence,
    list_of,
    nullable,
    require_mapping,
    select_variant,
)
from ...utils import to_class_name
from ..analyzer.ir_nodes import ModelKind, ModelTable
from .contracts import FieldContract, ModelContract, derive_contracts
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
    ValuePlan,
)
from .plans import Predicate as PredicatePlan


class ModelCodec:
    """
    Decodes untyped mappings into model instances and encodes them back.

    Absent fields decode to ``UNSET`` and are omitted on encode; explicit
    nulls decode to ``None`` and are re-emitted as null, so
    ``encode(decode(d)) == d`` for every valid ``d``.
    """

    def __init__(self, table: ModelTable, contracts: Mapping[str, ModelContract] | None = None):
        """
        Initialize the codec.

        Args:
            table: The model table
            contracts: Precomputed contracts (derived from the table if omitted)
        """
        self.table = table
        self.contracts = dict(contracts) if contracts is not None else derive_contracts(table)

        self._classes: dict[str, type] = {}
        self._models_by_class: dict[type, str] = {}
        for name, contract in self.contracts.items():
            if contract.kind == ModelKind.OBJECT:
                cls = self._make_class(contract)
                self._classes[name] = cls
                self._models_by_class[cls] = name

        # model name -> [(field contract, decoder, encoder)], built on first use
        self._field_codecs: dict[str, list[tuple[FieldContract, Codec, Codec]]] = {}

    # -- public API --------------------------------------------------------

    def model_class(self, name: str) -> type:
        """The dataclass generated for an object model."""
        return self._classes[name]

    def decode(self, name: str, data: Any, ignore_discriminator: bool = False) -> Any:
        """
        Decode an untyped value into an instance of model ``name``.

        Absent (UNSET) and null top-level values pass through unchanged.

        Raises:
            DecodeError: With the path of the offending value
        """
        if data is None or data is UNSET:
            return data
        return self._decode_model(name, data, name, ignore_discriminator)

    def encode(self, name: str, value: Any, ignore_discriminator: bool = False) -> Any:
        """Encode an instance of model ``name`` into its untyped form."""
        if value is None or value is UNSET:
            return value
        return self._encode_model(name, value, name, ignore_discriminator)

    def is_instance(self, name: str, value: Any) -> bool:
        """Shallow check: a mapping carrying every required wire name of the model."""
        contract = self.contracts[name]
        if contract.kind == ModelKind.OBJECT:
            return has_required(value, contract.required)
        body = contract.body
        if isinstance(body, Dispatch):
            if not is_mapping(value):
                return False
            tag = value.get(body.property_name, UNSET)
            return any(tag == case for case, _ in body.cases)
        return any(self._decode_predicate(p)(value) for p, _ in body.options)

    # -- classes -----------------------------------------------------------

    def _make_class(self, contract: ModelContract) -> type:
        specs = []
        for f in contract.fields:
            if f.has_default and isinstance(f.default, (list, dict)):
                spec = field(default_factory=lambda default=f.default: copy.deepcopy(default))
            elif f.has_default:
                spec = field(default=f.default)
            else:
                spec = field(default=UNSET)
            specs.append((f.name, Any, spec))
        return make_dataclass(to_class_name(contract.name), specs)

    def _codecs_of(self, name: str) -> list[tuple[FieldContract, Codec, Codec]]:
        if name not in self._field_codecs:
            self._field_codecs[name] = [(f, self._decoder(f.plan), self._encoder(f.plan)) for f in self.contracts[name].fields]
        return self._field_codecs[name]

    # -- decode ------------------------------------------------------------

    def _decode_model(self, name: str, data: Any, path: str, ignore_discriminator: bool) -> Any:
        contract = self.contracts[name]
        if contract.kind == ModelKind.COMPOSITE:
            return self._decoder(contract.body)(data, path=path)

        data = require_mapping(data, name, path)
        dispatch = contract.discriminator
        if dispatch is not None and not ignore_discriminator and dispatch.property_name in data:
            cases = {value: None if model == name else self._model_decoder(model, True) for value, model in dispatch.cases}
            target = select_variant(data, dispatch.property_name, cases, path)
            if target is not None:
                return target(data, path=path)

        values = {
            f.name: decode_field(
                data,
                f.wire_name,
                decoder,
                model=name,
                required=f.required,
                nullable=f.nullable,
                path=path,
            )
            for f, decoder, _ in self._codecs_of(name)
        }
        return self._classes[name](**values)

    def _model_decoder(self, name: str, ignore_discriminator: bool = False) -> Codec:
        def decode(value: Any, path: str = "") -> Any:
            return self._decode_model(name, value, path, ignore_discriminator)

        return decode

    def _decoder(self, plan: ValuePlan) -> Codec:
        if isinstance(plan, PassThrough):
            return identity
        if isinstance(plan, CheckEnum):
            return enum_of(plan.values)
        if isinstance(plan, NullablePlan):
            return nullable(self._decoder(plan.inner))
        if isinstance(plan, EachElement):
            return list_of(self._decoder(plan.element))
        if isinstance(plan, EachValue):
            return dict_of(self._decoder(plan.value))
        if isinstance(plan, CallModel):
            return self._model_decoder(plan.model)
        if isinstance(plan, Dispatch):
            return dispatch_on(plan.property_name, {value: self._model_decoder(model) for value, model in plan.cases})
        if isinstance(plan, FirstMatch):
            return first_match(
                [(self._decode_predicate(p), self._decoder(option)) for p, option in plan.options],
                plan.description,
            )
        raise TypeError(f"Cannot decode with plan {plan!r}")

    def _decode_predicate(self, predicate: PredicatePlan) -> Predicate:
        if isinstance(predicate, IsInstanceOf):
            required = predicate.required
            return lambda value: has_required(value, required)
        return self._shared_predicate(predicate, self._decode_predicate)

    # -- encode ------------------------------------------------------------

    def _encode_model(self, name: str, value: Any, path: str, ignore_discriminator: bool) -> Any:
        contract = self.contracts[name]
        if contract.kind == ModelKind.COMPOSITE:
            return self._encoder(contract.body)(value, path=path)

        actual = self._models_by_class.get(type(value))
        if actual != name:
            family = {model for _, model in contract.discriminator.cases} if contract.discriminator else set()
            if actual is not None and actual in family and not ignore_discriminator:
                return self._encode_model(actual, value, path, True)
            raise TypeMismatchError(f"expected an instance of {name}, got {type(value).__name__}", path)

        result: dict[str, Any] = {}
        for f, _, encoder in self._codecs_of(name):
            encode_field(
                result,
                f.wire_name,
                getattr(value, f.name),
                encoder,
                model=name,
                required=f.required,
                nullable=f.nullable,
                path=path,
            )
        return result

    def _model_encoder(self, name: str) -> Codec:
        def encode(value: Any, path: str = "") -> Any:
            return self._encode_model(name, value, path, False)

        return encode

    def _encoder(self, plan: ValuePlan) -> Codec:
        if isinstance(plan, PassThrough):
            return identity
        if isinstance(plan, CheckEnum):
            return enum_of(plan.values)
        if isinstance(plan, NullablePlan):
            return nullable(self._encoder(plan.inner))
        if isinstance(plan, EachElement):
            return list_of(self._encoder(plan.element))
        if isinstance(plan, EachValue):
            return dict_of(self._encoder(plan.value))
        if isinstance(plan, CallModel):
            return self._model_encoder(plan.model)
        if isinstance(plan, Dispatch):
            return self._dispatch_encoder(plan)
        if isinstance(plan, FirstMatch):
            return first_match(
                [(self._encode_predicate(p), self._encoder(option)) for p, option in plan.options],
                plan.description,
            )
        raise TypeError(f"Cannot encode with plan {plan!r}")

    def _dispatch_encoder(self, plan: Dispatch) -> Codec:
        models = [model for _, model in plan.cases]

        def dispatch(value: Any, path: str = "") -> Any:
            actual = self._models_by_class.get(type(value))
            if actual not in models:
                raise NoMatchingVariantError(f"{type(value).__name__} is not a variant of this union", path)
            return self._encode_model(actual, value, path, True)

        return dispatch

    def _encode_predicate(self, predicate: PredicatePlan) -> Predicate:
        if isinstance(predicate, IsInstanceOf):
            return is_model(self._classes[predicate.model])
        return self._shared_predicate(predicate, self._encode_predicate)

    def _shared_predicate(self, predicate: PredicatePlan, recurse: Callable[[PredicatePlan], Predicate]) -> Predicate:
        if isinstance(predicate, IsPrimitive):
            return is_primitive(predicate.kind)
        if isinstance(predicate, IsSequence):
            return is_sequence
        if isinstance(predicate, IsMapping):
            return is_mapping
        if isinstance(predicate, IsEnumMember):
            return is_enum_member(predicate.values)
        if isinstance(predicate, MatchesAny):
            return any_of(recurse(p) for p in predicate.predicates)
        raise TypeError(f"Cannot evaluate predicate {predicate!r}")
