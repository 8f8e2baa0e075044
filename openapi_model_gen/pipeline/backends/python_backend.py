"""
Python code generation backend.

Generates a Python module from the model table: one dataclass per object
model, a TypeAlias per named enum and per composite, and for every model
the ``is_<model>``, ``<model>_from_dict`` and ``<model>_to_dict`` functions.
The functions are call graphs over openapi_model_gen.runtime, rendered
from the serialization contracts.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any

from ... import runtime
from ...utils import to_class_name, to_snake_case, unique_name
from ..analyzer.ir_nodes import FieldIR, ModelIR, ModelTable
from ..analyzer.resolved_types import (
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
from ..codec.contracts import FieldContract, ModelContract
from ..codec.plans import (
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
)
from ..config import CodeGeneratorConfig
from .base import CodeBackend

# Names the generated module imports; models and functions must not shadow them
RESERVED_NAMES = frozenset(runtime.__all__) | {"Any", "Literal", "TypeAlias", "dataclass", "field", "annotations"}


def python_literal(value: Any) -> str:
    """Render a JSON value as a Python literal (double-quoted strings)."""
    if value is None or isinstance(value, (bool, int, float)):
        return repr(value)
    if isinstance(value, str):
        return json.dumps(value)
    if isinstance(value, (list, tuple)):
        return "[" + ", ".join(python_literal(v) for v in value) + "]"
    if isinstance(value, Mapping):
        return "{" + ", ".join(f"{python_literal(k)}: {python_literal(v)}" for k, v in value.items()) + "}"
    raise TypeError(f"Cannot render {value!r} as a Python literal")


def python_tuple(values: Any) -> str:
    items = [python_literal(v) for v in values]
    if len(items) == 1:
        return f"({items[0]},)"
    return "(" + ", ".join(items) + ")"


def _escape_docstring(text: str) -> str:
    return text.strip().replace("\\", "\\\\").replace('"', '\\"')


class PythonBackend(CodeBackend):
    """Python code generation backend."""

    TEMPLATE_LANG = "python"
    FILE_EXTENSION = "py"
    TEMPLATES = ("prefix", "model", "union", "suffix")

    RUNTIME_MODULE = "openapi_model_gen.runtime"

    TYPE_MAP = {
        "integer": "int",
        "string": "str",
        "boolean": "bool",
        "number": "float",
        "null": "None",
        "any": "Any",
    }

    def __init__(self, config: CodeGeneratorConfig):
        super().__init__(config)
        self.runtime_imports: set[str] = set()
        self.typing_imports: set[str] = set()
        self.dataclass_imports: set[str] = set()
        self.class_names: dict[str, str] = {}
        self.function_names: dict[str, str] = {}

    def generate(
        self,
        table: ModelTable,
        contracts: Mapping[str, ModelContract],
        generation_comment: str = "",
    ) -> str:
        """Generate a Python module from the model table."""
        # Reset import tracking
        self.runtime_imports = {"UNSET"}
        self.typing_imports = {"Any"}
        self.dataclass_imports = set()
        self._assign_names(table)

        exports: list[str] = []

        enum_aliases = []
        for name, enum in table.enums.items():
            self.typing_imports.update(("Literal", "TypeAlias"))
            alias = self.class_names[name]
            enum_aliases.append({"name": alias, "value": f"Literal[{', '.join(python_literal(v) for v in enum.values)}]"})
            exports.append(alias)

        blocks = []
        for name, model in table.items():
            if model.is_object:
                context = self._model_context(model, contracts[name])
                blocks.append(self.templates["model"].render(context))
                exports.append(context["class_name"])
                exports.extend(self._function_exports(name))

        for name, model in table.items():
            if not model.is_object:
                context = self._union_context(model, contracts[name])
                blocks.append(self.templates["union"].render(context))
                exports.append(context["alias"])
                exports.extend(self._function_exports(name))

        prefix = self.templates["prefix"].render(
            generation_comment_lines=generation_comment.splitlines(),
            future_annotations=self.config.use_future_annotations,
            dataclass_imports=sorted(self.dataclass_imports),
            typing_imports=sorted(self.typing_imports),
            runtime_module=self.RUNTIME_MODULE,
            runtime_imports=sorted(self.runtime_imports, key=lambda n: (not n.isupper(), n.lower())),
            enum_aliases=enum_aliases,
        )
        suffix = self.templates["suffix"].render(exports=exports)

        return "\n\n\n".join(block.strip("\n") for block in [prefix, *blocks, suffix]) + "\n"

    # -- naming ------------------------------------------------------------

    def _assign_names(self, table: ModelTable) -> None:
        """Map model and enum names to unique class and function names."""
        self.class_names = {}
        self.function_names = {}
        taken = set(RESERVED_NAMES)
        for name in [*table.enums, *table]:
            class_name = unique_name(to_class_name(name), taken)
            taken.add(class_name)
            self.class_names[name] = class_name

        for name in table:
            base = to_snake_case(self.class_names[name]).rstrip("_") or "model"
            candidate = base
            index = 2
            while any(n in taken for n in self._function_names_for(candidate)):
                candidate = f"{base}{index}"
                index += 1
            taken.update(self._function_names_for(candidate))
            self.function_names[name] = candidate

    @staticmethod
    def _function_names_for(base: str) -> tuple[str, str, str]:
        return f"is_{base}", f"{base}_from_dict", f"{base}_to_dict"

    def _function_exports(self, name: str) -> tuple[str, str, str]:
        return self._function_names_for(self.function_names[name])

    def _use(self, name: str) -> str:
        """Reference a runtime helper, recording the import."""
        self.runtime_imports.add(name)
        return name

    def _quote(self, annotation: str) -> str:
        return annotation if self.config.use_future_annotations else json.dumps(annotation)

    # -- types -------------------------------------------------------------

    def translate_type(self, type_: ResolvedType) -> str:
        """Translate a resolved type to a Python annotation."""
        if isinstance(type_, PrimitiveType):
            return self.TYPE_MAP.get(type_.kind, "Any")
        if isinstance(type_, EnumType):
            if type_.name is not None and type_.name in self.class_names:
                return self.class_names[type_.name]
            self.typing_imports.add("Literal")
            return f"Literal[{', '.join(python_literal(v) for v in type_.values)}]"
        if isinstance(type_, SequenceType):
            return f"list[{self.translate_type(type_.element)}]"
        if isinstance(type_, MappingType):
            return f"dict[str, {self.translate_type(type_.value)}]"
        if isinstance(type_, ModelRef):
            return self.class_names[type_.name]
        if isinstance(type_, CompositeType):
            parts: list[str] = []
            for variant in type_.variants:
                part = self.translate_type(variant)
                if part not in parts:
                    parts.append(part)
            return " | ".join(parts)
        if isinstance(type_, NullableType):
            inner = self.translate_type(type_.inner)
            return inner if inner.endswith("None") else f"{inner} | None"
        if isinstance(type_, OptionalType):
            return self.translate_type(type_.inner)
        return "Any"

    def format_default_value(self, value: Any) -> str:
        """Format a schema default; mutable values get a default_factory."""
        if isinstance(value, (list, dict)):
            self.dataclass_imports.add("field")
            return f"field(default_factory=lambda: {python_literal(value)})"
        return python_literal(value)

    # -- plans -------------------------------------------------------------

    def decoder_expression(self, plan: ValuePlan) -> str:
        """Python expression evaluating to the decoder of a value plan."""
        if isinstance(plan, PassThrough):
            return self._use("identity")
        if isinstance(plan, CheckEnum):
            return f"{self._use('enum_of')}({python_tuple(plan.values)})"
        if isinstance(plan, NullablePlan):
            return f"{self._use('nullable')}({self.decoder_expression(plan.inner)})"
        if isinstance(plan, EachElement):
            return f"{self._use('list_of')}({self.decoder_expression(plan.element)})"
        if isinstance(plan, EachValue):
            return f"{self._use('dict_of')}({self.decoder_expression(plan.value)})"
        if isinstance(plan, CallModel):
            return f"{self.function_names[plan.model]}_from_dict"
        if isinstance(plan, Dispatch):
            cases = ", ".join(f"{python_literal(value)}: {self.function_names[model]}_from_dict" for value, model in plan.cases)
            return f"{self._use('dispatch_on')}({python_literal(plan.property_name)}, {{{cases}}})"
        if isinstance(plan, FirstMatch):
            options = ", ".join(f"({self.predicate_expression(p, decode=True)}, {self.decoder_expression(o)})" for p, o in plan.options)
            return f"{self._use('first_match')}([{options}], {python_literal(plan.description)})"
        raise TypeError(f"Cannot render plan {plan!r}")

    def encoder_expression(self, plan: ValuePlan) -> str:
        """Python expression evaluating to the encoder of a value plan."""
        if isinstance(plan, PassThrough):
            return self._use("identity")
        if isinstance(plan, CheckEnum):
            return f"{self._use('enum_of')}({python_tuple(plan.values)})"
        if isinstance(plan, NullablePlan):
            return f"{self._use('nullable')}({self.encoder_expression(plan.inner)})"
        if isinstance(plan, EachElement):
            return f"{self._use('list_of')}({self.encoder_expression(plan.element)})"
        if isinstance(plan, EachValue):
            return f"{self._use('dict_of')}({self.encoder_expression(plan.value)})"
        if isinstance(plan, CallModel):
            return f"{self.function_names[plan.model]}_to_dict"
        if isinstance(plan, Dispatch):
            # Encoding dispatches on the class of the value
            models = list(dict.fromkeys(model for _, model in plan.cases))
            options = ", ".join(f"({self._use('is_model')}({self.class_names[m]}), {self.function_names[m]}_to_dict)" for m in models)
            return f"{self._use('first_match')}([{options}], {python_literal(plan.property_name)})"
        if isinstance(plan, FirstMatch):
            options = ", ".join(f"({self.predicate_expression(p, decode=False)}, {self.encoder_expression(o)})" for p, o in plan.options)
            return f"{self._use('first_match')}([{options}], {python_literal(plan.description)})"
        raise TypeError(f"Cannot render plan {plan!r}")

    def predicate_expression(self, predicate: Predicate, decode: bool) -> str:
        """Python expression evaluating to a predicate callable."""
        if isinstance(predicate, IsInstanceOf):
            if decode:
                return f"is_{self.function_names[predicate.model]}"
            return f"{self._use('is_model')}({self.class_names[predicate.model]})"
        if isinstance(predicate, IsPrimitive):
            return f"{self._use('is_primitive')}({python_literal(predicate.kind)})"
        if isinstance(predicate, IsSequence):
            return self._use("is_sequence")
        if isinstance(predicate, IsMapping):
            return self._use("is_mapping")
        if isinstance(predicate, IsEnumMember):
            return f"{self._use('is_enum_member')}({python_tuple(predicate.values)})"
        if isinstance(predicate, MatchesAny):
            nested = ", ".join(self.predicate_expression(p, decode) for p in predicate.predicates)
            return f"{self._use('any_of')}([{nested}])"
        raise TypeError(f"Cannot render predicate {predicate!r}")

    # -- template contexts -------------------------------------------------

    def _field_context(self, field_ir: FieldIR, field_contract: FieldContract) -> dict[str, Any]:
        annotation = self.translate_type(field_ir.type)
        if field_contract.nullable and not annotation.endswith("None"):
            annotation = f"{annotation} | None"
        if not field_contract.required:
            annotation = f"{annotation} | {self._use('Unset')}"

        declaration = f"{field_contract.name}: {self._quote(annotation)}"
        if field_contract.has_default:
            declaration += f" = {self.format_default_value(field_contract.default)}"
        elif not field_contract.required:
            declaration += " = UNSET"

        comments = field_ir.description.strip().splitlines() if field_ir.description else []
        return {
            "attribute": field_contract.name,
            "wire_name": python_literal(field_contract.wire_name),
            "declaration": declaration,
            "comments": comments,
            "decoder": self.decoder_expression(field_contract.plan),
            "encoder": self.encoder_expression(field_contract.plan),
            "required": field_contract.required,
            "nullable": field_contract.nullable,
        }

    def _model_context(self, model: ModelIR, contract: ModelContract) -> dict[str, Any]:
        self.dataclass_imports.add("dataclass")
        for helper in ("require_mapping", "decode_field", "encode_field", "has_required", "TypeMismatchError"):
            self._use(helper)

        fields_by_wire_name = {f.wire_name: f for f in model.fields}
        fields = [self._field_context(fields_by_wire_name[f.wire_name], f) for f in self._order_fields(contract.fields)]

        class_name = self.class_names[model.name]
        family = [class_name]
        dispatch = None
        if contract.discriminator is not None:
            self._use("select_variant")
            cases = contract.discriminator.cases
            decode_cases = ", ".join(
                f"{python_literal(value)}: {'None' if target == model.name else self.function_names[target] + '_from_dict'}" for value, target in cases
            )
            targets = [t for t in dict.fromkeys(target for _, target in cases) if t != model.name]
            encode_cases = ", ".join(f"{self.class_names[t]}: {self.function_names[t]}_to_dict" for t in targets)
            family.extend(self.class_names[t] for t in targets)
            dispatch = {
                "property_name": python_literal(contract.discriminator.property_name),
                "decode_cases": f"{{{decode_cases}}}",
                "encode_cases": f"{{{encode_cases}}}",
            }

        return {
            "class_name": class_name,
            "model_literal": python_literal(model.name),
            "function": self.function_names[model.name],
            "docstring": _escape_docstring(model.description).replace("\n", "\n    ") if model.description else "",
            "fields": fields,
            "required": python_tuple(contract.required),
            "dispatch": dispatch,
            "result_annotation": self._quote(" | ".join([*family, "None"])),
            "value_annotation": self._quote(f"{class_name} | None"),
        }

    def _union_context(self, model: ModelIR, contract: ModelContract) -> dict[str, Any]:
        self.typing_imports.add("TypeAlias")
        body = contract.body
        if isinstance(body, Dispatch):
            self._use("is_mapping")
            tags = python_tuple([value for value, _ in body.cases])
            is_expression = f"is_mapping(value) and value.get({python_literal(body.property_name)}, UNSET) in {tags}"
        else:
            options = ", ".join(self.predicate_expression(p, decode=True) for p, _ in body.options)
            is_expression = f"{self._use('any_of')}([{options}])(value)"

        alias = self.class_names[model.name]
        variants = self.translate_type(CompositeType(variants=model.variants))
        return {
            "alias": alias,
            "alias_value": json.dumps(variants),
            "model_literal": python_literal(model.name),
            "function": self.function_names[model.name],
            "is_expression": is_expression,
            "decoder": self.decoder_expression(body),
            "encoder": self.encoder_expression(body),
            "value_annotation": self._quote(f"{alias} | None"),
        }
