"""
Type resolver that maps schema nodes to resolved types.

Phase 2 of the pipeline: walk the named schemas in declaration order.
References to model-like schemas (objects and composites) always become
ModelRef handles and are never followed, so self-referential and mutually
recursive models terminate and the outcome does not depend on declaration
order. Aliases (named primitives, arrays, enums) and allOf parents are
resolved on demand; the active stack only detects cycles through them.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from ...errors import DiscriminatorError, EmptyEnumError, ResolutionError
from ...utils import snake_to_pascal_case, unique_name
from ..schema_ast.nodes import (
    ArrayNode,
    CompositeNode,
    DiscriminatorDef,
    EnumNode,
    ObjectNode,
    PrimitiveNode,
    RefNode,
    SchemaGraph,
    SchemaNode,
)
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
    unwrap,
)

logger = logging.getLogger(__name__)


def _is_null(node: SchemaNode) -> bool:
    return isinstance(node, PrimitiveNode) and node.type_name == "null"


def _nullable(type_: ResolvedType) -> ResolvedType:
    return type_ if isinstance(type_, NullableType) else NullableType(type_)


class TypeResolver:
    """Resolves every named schema of a SchemaGraph."""

    def __init__(self) -> None:
        self.graph: SchemaGraph | None = None
        self._resolved: dict[str, ResolvedType] = {}
        self._synthesized: dict[str, ResolvedType] = {}
        self._stack: list[str] = []
        self._taken: set[str] = set()

        # allOf inheritance edges between named schemas
        self._parents_of: dict[str, list[str]] = {}
        self._children_of: dict[str, list[str]] = {}

    def resolve(self, graph: SchemaGraph) -> dict[str, ResolvedType]:
        """
        Resolve every named schema.

        Args:
            graph: The schema graph produced by the loader

        Returns:
            Mapping of model/alias name to resolved type: named schemas in
            declaration order, then synthesized inline models in creation order

        Raises:
            ResolutionError: On dangling references, empty enums, malformed
                composites or cycles that cannot be broken by a ModelRef
        """
        self.graph = graph
        self._resolved = {}
        self._synthesized = {}
        self._stack = []
        self._taken = set(graph.definitions)
        self._build_inheritance_graph()

        for name in graph.definitions:
            self._resolve_named(name)

        result = {name: self._resolved[name] for name in graph.definitions}
        result.update(self._synthesized)
        logger.debug(
            "Resolved %d named schemas (%d synthesized inline models)",
            len(graph.definitions),
            len(self._synthesized),
        )
        return result

    # -- inheritance -------------------------------------------------------

    def _build_inheritance_graph(self) -> None:
        """Record allOf $ref edges between named schemas, in declaration order."""
        self._parents_of = {}
        self._children_of = {}
        for name, node in self.graph.definitions.items():
            if not isinstance(node, CompositeNode) or node.mode != "allOf":
                continue
            for member in node.variants:
                if isinstance(member, RefNode) and member.target in self.graph.definitions:
                    self._parents_of.setdefault(name, []).append(member.target)
                    self._children_of.setdefault(member.target, []).append(name)

    def _descendants(self, name: str) -> list[str]:
        """Transitive allOf children of a schema, breadth first."""
        result: list[str] = []
        queue = list(self._children_of.get(name, []))
        while queue:
            child = queue.pop(0)
            if child == name or child in result:
                continue
            result.append(child)
            queue.extend(self._children_of.get(child, []))
        return result

    def _declared_discriminator(self, name: str) -> DiscriminatorDef | None:
        node = self.graph.definitions.get(name)
        if isinstance(node, (ObjectNode, CompositeNode)):
            if isinstance(node, CompositeNode) and node.mode == "allOf" and node.discriminator is None:
                # The discriminator may sit on an inline member of the merge
                for member in node.variants:
                    if isinstance(member, ObjectNode) and member.discriminator is not None:
                        return member.discriminator
            return node.discriminator
        return None

    def _discriminator_for(self, name: str) -> Discriminator | None:
        """Discriminator of a polymorphism root, declared or inherited through allOf."""
        own = self._declared_discriminator(name)
        source = own
        if source is None:
            seen: set[str] = set()
            queue = list(self._parents_of.get(name, []))
            while queue and source is None:
                parent = queue.pop(0)
                if parent in seen:
                    continue
                seen.add(parent)
                source = self._declared_discriminator(parent)
                queue.extend(self._parents_of.get(parent, []))
        if source is None:
            return None

        descendants = self._descendants(name)
        if own is None and not descendants:
            # Leaf of the family: decoded directly, no dispatch
            return None

        family = [name, *descendants]
        if own is not None:
            entries = list(own.mapping)
        else:
            entries = [(value, target) for value, target in source.mapping if target in family]
        mapped = {target for _, target in entries}
        entries.extend((member, member) for member in family if member not in mapped)
        return Discriminator(property_name=source.property_name, mapping=tuple(entries))

    # -- named schemas -----------------------------------------------------

    def _is_model_like(self, node: SchemaNode) -> bool:
        if isinstance(node, ObjectNode):
            return bool(node.properties) or node.discriminator is not None or node.additional_properties in (None, False)
        if isinstance(node, CompositeNode):
            if node.mode == "allOf":
                return True
            return sum(1 for v in node.variants if not _is_null(v)) > 1
        return False

    def _declares_null(self, node: SchemaNode) -> bool:
        if node.nullable:
            return True
        return isinstance(node, CompositeNode) and node.mode != "allOf" and any(_is_null(v) for v in node.variants)

    def _resolve_named(self, name: str) -> ResolvedType:
        if name in self._resolved:
            return self._resolved[name]

        node = self.graph.definitions[name]
        self._stack.append(name)
        try:
            result = self._resolve_definition(name, node)
        finally:
            self._stack.pop()

        self._resolved[name] = result
        return result

    def _resolve_definition(self, name: str, node: SchemaNode) -> ResolvedType:
        """Resolve the body of a named schema."""
        if self._is_model_like(node):
            if isinstance(node, ObjectNode):
                return self._resolve_object(name, node)
            if node.mode == "allOf":
                return self._resolve_all_of(name, node)
            # Nullability of a named union is carried by the references to it
            return self._resolve_alternation(node, name, "", name=name, keep_null=False)

        if isinstance(node, EnumNode):
            if not node.values:
                raise EmptyEnumError(name, node.source_path)
            result: ResolvedType = EnumType(name=name, values=node.values, value_kind=node.inferred_type)
            return _nullable(result) if node.nullable else result

        return self._resolve_type(node, name, "")

    def _resolve_ref(self, node: RefNode) -> ResolvedType:
        target = node.target
        definitions = self.graph.definitions
        if target not in definitions:
            raise ResolutionError(f"unknown reference '{node.ref_path}'", node.source_path)

        target_node = definitions[target]
        if self._is_model_like(target_node):
            result: ResolvedType = ModelRef(target)
            if self._declares_null(target_node):
                result = NullableType(result)
        else:
            if target in self._stack:
                raise ResolutionError(
                    f"circular reference through non-model schema '{target}'",
                    node.source_path,
                )
            result = self._resolve_named(target)

        if node.nullable:
            result = _nullable(result)
        return result

    # -- inline types ------------------------------------------------------

    def _resolve_type(self, node: SchemaNode | None, owner: str, hint: str) -> ResolvedType:
        """
        Resolve an inline schema node.

        Args:
            node: The node (None means "any value")
            owner: Name of the enclosing model, used to name hoisted inline models
            hint: PascalCase suffix naming this position (field, item, option)
        """
        if node is None:
            return PrimitiveType("any")

        result: ResolvedType
        if isinstance(node, RefNode):
            return self._resolve_ref(node)

        if isinstance(node, PrimitiveNode):
            result = PrimitiveType(kind=node.type_name, format=node.format)

        elif isinstance(node, EnumNode):
            if not node.values:
                raise EmptyEnumError(f"{owner}{hint}", node.source_path)
            result = EnumType(name=None, values=node.values, value_kind=node.inferred_type)

        elif isinstance(node, ArrayNode):
            result = SequenceType(element=self._resolve_type(node.items, owner, f"{hint}Item"))

        elif isinstance(node, ObjectNode):
            if node.properties or node.discriminator is not None:
                result = ModelRef(self._hoist(node, owner, hint))
            else:
                value = node.additional_properties
                value_type = self._resolve_type(value, owner, f"{hint}Value") if isinstance(value, SchemaNode) else PrimitiveType("any")
                result = MappingType(key=PrimitiveType("string"), value=value_type)

        elif isinstance(node, CompositeNode):
            if node.mode == "allOf":
                if len(node.variants) == 1 and isinstance(node.variants[0], RefNode):
                    # allOf with a single $ref only decorates the reference
                    result = self._resolve_ref(node.variants[0])
                else:
                    result = ModelRef(self._hoist(node, owner, hint))
            else:
                return self._resolve_alternation(node, owner, hint, name=None, keep_null=True)

        else:
            raise ResolutionError(f"unsupported schema node {type(node).__name__}", node.source_path)

        return _nullable(result) if node.nullable else result

    def _hoist(self, node: ObjectNode | CompositeNode, owner: str, hint: str) -> str:
        """Turn an inline object into a synthesized named model."""
        name = unique_name(f"{owner}{hint}" or "InlineModel", self._taken)
        self._taken.add(name)

        self._stack.append(name)
        try:
            if isinstance(node, ObjectNode):
                resolved = self._resolve_object(name, node)
            else:
                resolved = self._resolve_all_of(name, node)
        finally:
            self._stack.pop()

        self._resolved[name] = resolved
        self._synthesized[name] = resolved
        logger.debug("Hoisted inline object at %s as model '%s'", node.source_path, name)
        return name

    # -- objects -----------------------------------------------------------

    def _resolve_field(self, prop_name: str, node: SchemaNode, required: bool, owner: str) -> ResolvedField:
        field_type = self._resolve_type(node, owner, snake_to_pascal_case(prop_name))
        if not required:
            field_type = OptionalType(field_type)
        return ResolvedField(
            name=prop_name,
            type=field_type,
            default=node.default,
            has_default=node.has_default,
            description=node.description,
        )

    def _resolve_object(self, name: str, node: ObjectNode) -> ObjectType:
        """Resolve an object schema into an ObjectType in declaration order."""
        fields = tuple(self._resolve_field(prop.name, prop.node, prop.is_required, name) for prop in node.properties)
        if isinstance(node.additional_properties, SchemaNode) and node.properties:
            logger.warning("%s: additionalProperties next to properties is ignored", node.source_path)
        return ObjectType(
            name=name,
            fields=fields,
            discriminator=self._discriminator_for(name),
            description=node.description,
        )

    def _resolve_all_of(self, name: str, node: CompositeNode) -> ObjectType:
        """Structural merge: union of fields, later wins on a collision, merge order kept."""
        merged: dict[str, ResolvedField] = {}
        parents: list[str] = []
        required: set[str] = set()
        description = node.description

        for member in node.variants:
            member_type = self._all_of_member(name, member)
            for resolved_field in member_type.fields:
                merged[resolved_field.name] = resolved_field
            if isinstance(member, RefNode):
                parents.append(member.target)
            if isinstance(member, ObjectNode):
                required.update(member.required)
            if description is None:
                description = member_type.description

        # A member may mark fields of an earlier member as required
        for field_name in required:
            existing = merged.get(field_name)
            if existing is not None and isinstance(existing.type, OptionalType):
                merged[field_name] = ResolvedField(
                    name=existing.name,
                    type=existing.type.inner,
                    default=existing.default,
                    has_default=existing.has_default,
                    description=existing.description,
                )

        return ObjectType(
            name=name,
            fields=tuple(merged.values()),
            parents=tuple(parents),
            discriminator=self._discriminator_for(name) if name in self.graph.definitions else None,
            description=description,
        )

    def _all_of_member(self, name: str, member: SchemaNode) -> ObjectType:
        if isinstance(member, RefNode):
            target = member.target
            if target not in self.graph.definitions:
                raise ResolutionError(f"unknown reference '{member.ref_path}'", member.source_path)
            if target in self._stack:
                raise ResolutionError(f"circular allOf through '{target}'", member.source_path)
            resolved = self._resolve_named(target)
            if not isinstance(resolved, ObjectType):
                raise ResolutionError(f"allOf member '{target}' is not an object schema", member.source_path)
            return resolved
        if isinstance(member, ObjectNode):
            fields = tuple(self._resolve_field(p.name, p.node, p.is_required, name) for p in member.properties)
            return ObjectType(name=name, fields=fields, description=member.description)
        if isinstance(member, CompositeNode) and member.mode == "allOf":
            return self._resolve_all_of(name, member)
        raise ResolutionError("allOf members must be object schemas or references to them", member.source_path)

    # -- alternations ------------------------------------------------------

    def _resolve_alternation(
        self,
        node: CompositeNode,
        owner: str,
        hint: str,
        name: str | None,
        keep_null: bool,
    ) -> ResolvedType:
        """Resolve oneOf/anyOf; null variants turn into nullability."""
        variants: list[ResolvedType] = []
        nullable = node.nullable
        for index, member in enumerate(node.variants):
            if _is_null(member):
                nullable = True
                continue
            variant, _, variant_nullable = unwrap(self._resolve_type(member, owner, f"{hint}Option{index + 1}"))
            nullable = nullable or variant_nullable
            variants.append(variant)

        if not variants:
            raise ResolutionError(f"'{node.mode}' has no non-null variant", node.source_path)

        if len(variants) == 1:
            result: ResolvedType = variants[0]
        else:
            discriminator = None
            if node.discriminator is not None:
                discriminator = self._alternation_discriminator(node.discriminator, variants, node.source_path)
            result = CompositeType(
                name=name,
                mode=node.mode,
                discriminator=discriminator,
                variants=tuple(variants),
            )

        if nullable and keep_null:
            result = _nullable(result)
        return result

    def _alternation_discriminator(
        self,
        declared: DiscriminatorDef,
        variants: Iterable[ResolvedType],
        location: str,
    ) -> Discriminator:
        """Explicit mapping first, then the implicit variant-name mapping."""
        variant_names = []
        for variant in variants:
            if not isinstance(variant, ModelRef):
                raise DiscriminatorError("every variant of a discriminated union must reference a model", location)
            variant_names.append(variant.name)

        entries = list(declared.mapping)
        mapped = {target for _, target in entries}
        entries.extend((variant, variant) for variant in variant_names if variant not in mapped)
        return Discriminator(property_name=declared.property_name, mapping=tuple(entries))
