"""
Model IR builder.

Phase 3 of the pipeline: turn the resolved types into the model table.
Two passes make cyclic graphs safe: pass 1 registers a placeholder for
every object/composite name, pass 2 fills each model in, and only then
are all ModelRef handles checked against the table.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping

from ...errors import (
    DiscriminatorError,
    DuplicateFieldError,
    RequiredDefaultConflictError,
    UnresolvedReferenceError,
)
from ...utils import to_snake_case
from ..config import CodeGeneratorConfig
from .ir_nodes import DiscriminatorIR, FieldIR, ModelIR, ModelKind, ModelTable
from .resolved_types import (
    CompositeType,
    Discriminator,
    EnumType,
    ObjectType,
    ResolvedType,
    model_refs,
    unwrap,
)

logger = logging.getLogger(__name__)


def _discriminator_ir(discriminator: Discriminator | None) -> DiscriminatorIR | None:
    if discriminator is None:
        return None
    return DiscriminatorIR(property_name=discriminator.property_name, mapping=discriminator.mapping)


class ModelIRBuilder:
    """Builds the ModelTable from resolved types."""

    def __init__(self, config: CodeGeneratorConfig | None = None):
        """
        Initialize the builder.

        Args:
            config: Code generation configuration (ignore/order lists and
                the required-with-default policy)
        """
        self.config = config or CodeGeneratorConfig()

    def build(self, resolved: Mapping[str, ResolvedType]) -> ModelTable:
        """
        Build the model table.

        Args:
            resolved: Output of the TypeResolver

        Returns:
            Read-only table of models, ordered by config.order_classes then
            declaration order

        Raises:
            UnresolvedReferenceError: If any ModelRef names a missing model
            DuplicateFieldError: If two fields share a wire or attribute name
            DiscriminatorError: If a discriminator target lacks the property
            RequiredDefaultConflictError: If a required field has a default
                and the policy is "error"
        """
        ignored = set(self.config.ignore_classes)

        # Pass 1: placeholders for every model name
        placeholders: dict[str, ResolvedType] = {}
        enums: dict[str, EnumType] = {}
        for name, type_ in resolved.items():
            if name in ignored:
                logger.debug("Ignoring model '%s'", name)
                continue
            if isinstance(type_, (ObjectType, CompositeType)):
                placeholders[name] = type_
            else:
                inner, _, _ = unwrap(type_)
                if isinstance(inner, EnumType) and inner.name == name:
                    enums[name] = inner

        # Pass 2: fill models in
        models: dict[str, ModelIR] = {}
        for name, type_ in placeholders.items():
            if isinstance(type_, ObjectType):
                models[name] = self._build_object(name, type_)
            else:
                models[name] = self._build_composite(name, type_)

        self._check_references(models)
        self._check_discriminators(models)

        table = ModelTable(self._order(models), enums)
        logger.debug("Built model table with %d models and %d named enums", len(table), len(enums))
        return table

    def _build_object(self, name: str, type_: ObjectType) -> ModelIR:
        fields: list[FieldIR] = []
        wire_names: set[str] = set()
        attribute_names: set[str] = set()

        for resolved_field in type_.fields:
            if resolved_field.name in self.config.global_ignore_fields:
                continue

            field_type, optional, nullable = unwrap(resolved_field.type)
            required = not optional
            if required and resolved_field.has_default:
                if self.config.required_with_default != "optional":
                    raise RequiredDefaultConflictError(name, resolved_field.name)
                logger.debug("Field '%s' of '%s' has a default: treated as optional", resolved_field.name, name)
                required = False

            attribute = to_snake_case(resolved_field.name)
            if resolved_field.name in wire_names or attribute in attribute_names:
                raise DuplicateFieldError(name, resolved_field.name)
            wire_names.add(resolved_field.name)
            attribute_names.add(attribute)

            fields.append(
                FieldIR(
                    name=attribute,
                    wire_name=resolved_field.name,
                    type=field_type,
                    required=required,
                    nullable=nullable,
                    default=resolved_field.default,
                    has_default=resolved_field.has_default,
                    description=resolved_field.description,
                )
            )

        return ModelIR(
            name=name,
            kind=ModelKind.OBJECT,
            fields=tuple(fields),
            discriminator=_discriminator_ir(type_.discriminator),
            parents=type_.parents,
            description=type_.description,
        )

    def _build_composite(self, name: str, type_: CompositeType) -> ModelIR:
        return ModelIR(
            name=name,
            kind=ModelKind.COMPOSITE,
            discriminator=_discriminator_ir(type_.discriminator),
            variants=type_.variants,
            composite_mode=type_.mode,
        )

    def _check_references(self, models: dict[str, ModelIR]) -> None:
        """Every ModelRef must name a model of the table; report all missing names."""
        missing: set[str] = set()
        for model in models.values():
            names: list[str] = []
            for f in model.fields:
                names.extend(model_refs(f.type))
            for variant in model.variants:
                names.extend(model_refs(variant))
            if model.discriminator is not None:
                names.extend(target for _, target in model.discriminator.mapping)
            missing.update(n for n in names if n not in models)
        if missing:
            raise UnresolvedReferenceError(missing)

    def _check_discriminators(self, models: dict[str, ModelIR]) -> None:
        """The discriminator property must be a field of every mapped model."""
        for model in models.values():
            discriminator = model.discriminator
            if discriminator is None:
                continue
            for _, target in discriminator.mapping:
                target_model = models[target]
                if not target_model.is_object:
                    raise DiscriminatorError(f"discriminator of '{model.name}' maps to '{target}', which is not an object model")
                if target_model.field_by_wire_name(discriminator.property_name) is None:
                    raise DiscriminatorError(f"discriminator property '{discriminator.property_name}' of '{model.name}' is missing from '{target}'")

    def _order(self, models: dict[str, ModelIR]) -> dict[str, ModelIR]:
        """Models named in config.order_classes first, then declaration order."""
        ordered: dict[str, ModelIR] = {}
        for name in self.config.order_classes:
            if name in models:
                ordered[name] = models[name]
        for name, model in models.items():
            if name not in ordered:
                ordered[name] = model
        return ordered
