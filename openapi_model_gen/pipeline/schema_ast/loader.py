"""
Schema loader that builds the schema graph.

Phase 1 of the pipeline: parse a schema document (OpenAPI 3, Swagger 2 or
JSON Schema, as JSON or YAML text) into frozen AST nodes without resolving
references. Named schemas keep their declaration order, which later fixes
the order of generated fields and classes.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any
from urllib.parse import unquote

import yaml

from ...errors import ParseError
from ...utils import to_class_name
from .nodes import (
    ArrayNode,
    CompositeNode,
    DiscriminatorDef,
    EnumNode,
    ObjectNode,
    PrimitiveNode,
    PropertyDef,
    RefNode,
    SchemaGraph,
    SchemaNode,
)

logger = logging.getLogger(__name__)

# Locations of named schemas, most specific first
DEFINITION_CONTAINERS: tuple[tuple[str, ...], ...] = (
    ("components", "schemas"),
    ("definitions",),
    ("$defs",),
)

COMPOSITE_KEYWORDS = ("allOf", "oneOf", "anyOf")


def escape_pointer_token(token: str) -> str:
    return token.replace("~", "~0").replace("/", "~1")


def unescape_pointer_token(token: str) -> str:
    return token.replace("~1", "/").replace("~0", "~")


class SchemaLoader:
    """Parses schema documents into a SchemaGraph."""

    PRIMITIVE_TYPES = {"string", "integer", "number", "boolean", "null"}
    KNOWN_TYPES = PRIMITIVE_TYPES | {"object", "array"}

    def __init__(self) -> None:
        self._root_name: str | None = None

    def load_file(self, path: str | Path, root_name: str | None = None) -> SchemaGraph:
        """Load a JSON or YAML schema file."""
        path = Path(path)
        try:
            data = path.read_bytes()
        except OSError as e:
            raise ParseError(str(path), f"cannot read schema file: {e}") from e
        text = self._decode_bytes(data, str(path))
        fmt = "yaml" if path.suffix.lower() in (".yaml", ".yml") else "json"
        return self.load_text(text, root_name=root_name, source=str(path), fmt=fmt)

    def load_text(
        self,
        text: str,
        root_name: str | None = None,
        source: str = "<document>",
        fmt: str | None = None,
    ) -> SchemaGraph:
        """
        Load a schema from JSON or YAML text.

        Args:
            text: The document text
            root_name: Name for the root model (if the document has properties)
            source: Document name used in error messages
            fmt: "json", "yaml", or None to try JSON first and fall back to YAML
        """
        return self.load(self._decode_text(text, source, fmt), root_name=root_name, source=source)

    def load(self, document: Any, root_name: str | None = None, source: str = "<document>") -> SchemaGraph:
        """
        Parse a schema document into a SchemaGraph.

        Args:
            document: Parsed document (mapping) or raw JSON/YAML text
            root_name: Name for the root model (if the document has properties)
            source: Document name used in error messages

        Returns:
            SchemaGraph with every named schema in declaration order

        Raises:
            ParseError: If the document is malformed
        """
        if isinstance(document, (str, bytes)):
            text = self._decode_bytes(document, source) if isinstance(document, bytes) else document
            document = self._decode_text(text, source, None)

        if not isinstance(document, Mapping):
            raise ParseError(source, "schema document must be an object")

        container_path, schemas = self._find_definitions(document)
        self._root_name = self._root_model_name(document, root_name)

        definitions: dict[str, SchemaNode] = {}
        for name, raw in schemas.items():
            # Skip comment entries
            if isinstance(raw, str) or str(name).startswith("_comment"):
                continue
            if not isinstance(name, str) or not name:
                raise ParseError(container_path, f"schema name {name!r} must be a non-empty string")
            path = f"{container_path}/{escape_pointer_token(name)}"
            definitions[name] = self._parse_node(raw, path)

        if self._root_name is not None:
            if self._root_name in definitions:
                raise ParseError("#", f"root schema name '{self._root_name}' collides with a named schema")
            definitions = {self._root_name: self._parse_node(document, "#"), **definitions}

        logger.debug("Loaded %d named schemas from %s", len(definitions), source)
        return SchemaGraph(
            root_name=self._root_name or "",
            definitions=definitions,
            container_path=container_path,
            source=source,
        )

    def _decode_text(self, text: str, source: str, fmt: str | None) -> Any:
        if fmt in (None, "json"):
            try:
                return json.loads(text)
            except json.JSONDecodeError as e:
                if fmt == "json":
                    raise ParseError(f"{source}:{e.lineno}:{e.colno}", f"invalid JSON: {e.msg}") from e
        try:
            return yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise ParseError(source, f"invalid YAML: {e}") from e

    def _find_definitions(self, document: Mapping[str, Any]) -> tuple[str, Mapping[str, Any]]:
        """Locate the named schema container of the document."""
        for container in DEFINITION_CONTAINERS:
            node: Any = document
            for key in container:
                node = node.get(key) if isinstance(node, Mapping) else None
            if node is None:
                continue
            path = "#/" + "/".join(container)
            if not isinstance(node, Mapping):
                raise ParseError(path, "named schemas must be an object")
            return path, node
        return "#/components/schemas", {}

    def _root_model_name(self, document: Mapping[str, Any], root_name: str | None) -> str | None:
        """Name of the root model, or None when the document root is not a model."""
        if "openapi" in document or "swagger" in document:
            return None
        if "properties" not in document and not any(k in document for k in COMPOSITE_KEYWORDS):
            return None
        title = document.get("title")
        name = root_name or (title if isinstance(title, str) and title else "Root")
        return to_class_name(name)

    def _parse_node(self, raw: Any, path: str) -> SchemaNode:
        """
        Parse a schema node recursively.

        Args:
            raw: The schema value
            path: JSON pointer of the value (for error messages)

        Returns:
            Appropriate SchemaNode subclass
        """
        if raw is True:
            return PrimitiveNode(type_name="any", source_path=path)
        if not isinstance(raw, Mapping):
            raise ParseError(path, "schema must be an object")

        common = self._common_attributes(raw, path)

        if "$ref" in raw:
            ref_path = raw["$ref"]
            return RefNode(ref_path=ref_path, target=self._parse_ref(ref_path, path), **common)

        if "const" in raw:
            value = raw["const"]
            if value is None:
                return PrimitiveNode(type_name="null", **{**common, "nullable": True})
            return EnumNode(values=(value,), inferred_type=self._infer_type(value), **common)

        if any(k in raw for k in COMPOSITE_KEYWORDS):
            return self._parse_composite_node(raw, path, common)

        if "enum" in raw:
            return self._parse_enum_node(raw, path, common)

        if "type" in raw:
            return self._parse_type_node(raw, path, common)

        if "properties" in raw or "additionalProperties" in raw:
            return self._parse_object_node(raw, path, common)

        if "items" in raw:
            return self._parse_array_node(raw, path, common)

        # Fallback: schema without any type information accepts anything
        return PrimitiveNode(type_name="any", **common)

    @staticmethod
    def _decode_bytes(data: bytes, source: str) -> str:
        try:
            return data.decode("utf-8")
        except UnicodeDecodeError as e:
            raise ParseError(source, f"document is not valid UTF-8: {e}") from e

    def _common_attributes(self, raw: Mapping[str, Any], path: str) -> dict[str, Any]:
        """Extract the attributes shared by every node kind."""
        description = raw.get("description")
        nullable = raw.get("nullable") is True or raw.get("x-nullable") is True
        return {
            "source_path": path,
            "description": description if isinstance(description, str) else None,
            "nullable": nullable,
            "default": raw.get("default"),
            "has_default": "default" in raw,
        }

    def _parse_ref(self, ref: Any, path: str) -> str:
        """Parse a local JSON pointer reference into a schema name."""
        if not isinstance(ref, str) or not ref:
            raise ParseError(path, "$ref must be a non-empty string")
        if not ref.startswith("#"):
            raise ParseError(path, f"external reference '{ref}' is not supported")
        if ref == "#":
            if self._root_name is None:
                raise ParseError(path, "reference to the document root, which is not a model")
            return self._root_name
        if not ref.startswith("#/"):
            raise ParseError(path, f"reference '{ref}' is not a JSON pointer")

        segments = [unescape_pointer_token(unquote(s)) for s in ref[2:].split("/")]
        for container in DEFINITION_CONTAINERS:
            size = len(container)
            if len(segments) == size + 1 and tuple(segments[:size]) == container and segments[-1]:
                return segments[-1]
        raise ParseError(path, f"reference '{ref}' does not point to a named schema")

    def _parse_composite_node(self, raw: Mapping[str, Any], path: str, common: dict[str, Any]) -> CompositeNode:
        """Parse an allOf, oneOf or anyOf node."""
        present = [k for k in COMPOSITE_KEYWORDS if k in raw]
        mode = present[0]
        if len(present) > 1:
            logger.warning("%s: only '%s' is used, ignoring %s", path, mode, ", ".join(present[1:]))

        members = raw[mode]
        if not isinstance(members, list) or not members:
            raise ParseError(f"{path}/{mode}", f"'{mode}' must be a non-empty array of schemas")

        variants = [self._parse_node(member, f"{path}/{mode}/{i}") for i, member in enumerate(members)]

        siblings = {k: v for k, v in raw.items() if k in ("properties", "required", "additionalProperties")}
        if siblings:
            if mode == "allOf":
                # Sibling properties extend the merge as its last member
                variants.append(self._parse_object_node(siblings, path, {"source_path": path}))
            else:
                logger.warning("%s: properties next to '%s' are ignored", path, mode)

        discriminator = self._parse_discriminator(raw, path) if "discriminator" in raw else None

        return CompositeNode(mode=mode, variants=tuple(variants), discriminator=discriminator, **common)

    def _parse_discriminator(self, raw: Mapping[str, Any], path: str) -> DiscriminatorDef:
        """Parse an OpenAPI 3 discriminator object or a Swagger 2 discriminator name."""
        value = raw["discriminator"]
        disc_path = f"{path}/discriminator"

        # Swagger 2: the discriminator is the property name
        if isinstance(value, str) and value:
            return DiscriminatorDef(property_name=value)

        if not isinstance(value, Mapping):
            raise ParseError(disc_path, "discriminator must be an object")
        property_name = value.get("propertyName")
        if not isinstance(property_name, str) or not property_name:
            raise ParseError(disc_path, "discriminator.propertyName must be a non-empty string")

        mapping = value.get("mapping") or {}
        if not isinstance(mapping, Mapping):
            raise ParseError(f"{disc_path}/mapping", "discriminator mapping must be an object")

        entries = []
        for disc_value, target in mapping.items():
            if not isinstance(target, str) or not target:
                raise ParseError(f"{disc_path}/mapping", f"mapping target for {disc_value!r} must be a string")
            name = self._parse_ref(target, f"{disc_path}/mapping") if target.startswith("#") else target
            entries.append((str(disc_value), name))

        return DiscriminatorDef(property_name=property_name, mapping=tuple(entries))

    def _parse_enum_node(self, raw: Mapping[str, Any], path: str, common: dict[str, Any]) -> SchemaNode:
        """Parse an enum node; null members turn into nullability."""
        values = raw["enum"]
        if not isinstance(values, list):
            raise ParseError(f"{path}/enum", "enum must be an array")

        non_null = tuple(v for v in values if v is not None)
        if len(non_null) < len(values):
            common = {**common, "nullable": True}
            if not non_null:
                return PrimitiveNode(type_name="null", **common)

        declared = raw.get("type")
        if isinstance(declared, list):
            declared = next((t for t in declared if t != "null"), None)
        if isinstance(declared, str) and declared in self.PRIMITIVE_TYPES:
            inferred_type = declared
        else:
            inferred_type = self._infer_type(non_null[0]) if non_null else "string"

        return EnumNode(values=non_null, inferred_type=inferred_type, **common)

    def _parse_type_node(self, raw: Mapping[str, Any], path: str, common: dict[str, Any]) -> SchemaNode:
        """Parse a type-based node."""
        type_value = raw["type"]

        # Handle array of types (OpenAPI 3.1 / JSON Schema nullability and unions)
        if isinstance(type_value, list):
            if not type_value or not all(isinstance(t, str) for t in type_value):
                raise ParseError(f"{path}/type", "type must be a string or a non-empty array of strings")
            non_null = [t for t in type_value if t != "null"]
            if len(non_null) < len(type_value):
                common = {**common, "nullable": True}
            if not non_null:
                return PrimitiveNode(type_name="null", **common)
            if len(non_null) > 1:
                return self._parse_type_union(raw, non_null, path, common)
            type_value = non_null[0]

        if not isinstance(type_value, str) or type_value not in self.KNOWN_TYPES:
            raise ParseError(f"{path}/type", f"unknown type {type_value!r}")

        if type_value == "array":
            return self._parse_array_node(raw, path, common)

        if type_value == "object":
            return self._parse_object_node(raw, path, common)

        fmt = raw.get("format")
        return PrimitiveNode(type_name=type_value, format=fmt if isinstance(fmt, str) else None, **common)

    def _parse_type_union(self, raw: Mapping[str, Any], types: list[str], path: str, common: dict[str, Any]) -> CompositeNode:
        """Parse a union of types (e.g. ["string", "integer"]) as a oneOf."""
        shared = {k: v for k, v in raw.items() if k not in ("type", "nullable", "default", "description")}
        variants = tuple(self._parse_node({**shared, "type": t}, f"{path}/type/{i}") for i, t in enumerate(types))
        return CompositeNode(mode="oneOf", variants=variants, **common)

    def _parse_array_node(self, raw: Mapping[str, Any], path: str, common: dict[str, Any]) -> ArrayNode:
        """Parse an array type node."""
        items_schema = raw.get("items")
        items: SchemaNode | None = None

        if isinstance(items_schema, list):
            # Tuple-style items become a sequence of the union of item schemas
            if not items_schema:
                raise ParseError(f"{path}/items", "items must not be an empty array")
            variants = tuple(self._parse_node(item, f"{path}/items/{i}") for i, item in enumerate(items_schema))
            items = CompositeNode(mode="anyOf", variants=variants, source_path=f"{path}/items")
        elif items_schema is not None:
            items = self._parse_node(items_schema, f"{path}/items")

        return ArrayNode(items=items, **common)

    def _parse_object_node(self, raw: Mapping[str, Any], path: str, common: dict[str, Any]) -> ObjectNode:
        """Parse an object type node."""
        raw_properties = raw.get("properties") or {}
        if not isinstance(raw_properties, Mapping):
            raise ParseError(f"{path}/properties", "properties must be an object")

        required = raw.get("required") or []
        if not isinstance(required, list) or not all(isinstance(r, str) for r in required):
            raise ParseError(f"{path}/required", "required must be an array of strings")

        properties = []
        for prop_name, prop_schema in raw_properties.items():
            prop_path = f"{path}/properties/{escape_pointer_token(str(prop_name))}"
            properties.append(
                PropertyDef(
                    name=str(prop_name),
                    node=self._parse_node(prop_schema, prop_path),
                    is_required=prop_name in required,
                )
            )

        additional: SchemaNode | bool | None = None
        if "additionalProperties" in raw:
            value = raw["additionalProperties"]
            if isinstance(value, bool):
                additional = value
            else:
                additional = self._parse_node(value, f"{path}/additionalProperties")

        discriminator = self._parse_discriminator(raw, path) if "discriminator" in raw else None

        return ObjectNode(
            properties=tuple(properties),
            required=tuple(required),
            additional_properties=additional,
            discriminator=discriminator,
            **common,
        )

    def _infer_type(self, value: Any) -> str:
        """Infer the schema type from a Python value."""
        if isinstance(value, bool):
            return "boolean"
        if isinstance(value, int):
            return "integer"
        if isinstance(value, float):
            return "number"
        if isinstance(value, str):
            return "string"
        if value is None:
            return "null"
        return "any"
