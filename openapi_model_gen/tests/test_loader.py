import json
from pathlib import Path

import pytest

from openapi_model_gen.errors import ParseError
from openapi_model_gen.pipeline.schema_ast import (
    ArrayNode,
    CompositeNode,
    EnumNode,
    ObjectNode,
    PrimitiveNode,
    RefNode,
    SchemaLoader,
)

TEST_DATA = Path(__file__).parent / "test_data"


def load(document, root_name=None):
    return SchemaLoader().load(document, root_name=root_name)


class TestSchemaLoader:
    """Test parsing of schema documents into the schema graph"""

    def test_openapi_components_in_declaration_order(self):
        graph = SchemaLoader().load_file(TEST_DATA / "petstore.yaml")
        assert list(graph.definitions) == ["Category", "Tag", "Pet", "PetStatus", "Cat", "Dog", "Owner"]
        assert graph.container_path == "#/components/schemas"
        assert graph.root_name == ""

    def test_json_and_yaml_text(self):
        document = {"definitions": {"A": {"type": "string"}}}
        from_json = SchemaLoader().load_text(json.dumps(document))
        from_yaml = SchemaLoader().load_text("definitions:\n  A:\n    type: string\n")
        assert from_json.definitions == from_yaml.definitions

    def test_root_schema_becomes_a_named_model(self):
        document = {"title": "order item", "type": "object", "properties": {"id": {"type": "integer"}}}
        assert list(load(document).definitions) == ["OrderItem"]
        assert list(load(document, root_name="Order").definitions) == ["Order"]
        del document["title"]
        assert load(document).root_name == "Root"

    def test_root_name_collision(self):
        document = {"properties": {"a": {"type": "string"}}, "definitions": {"Root": {"type": "string"}}}
        with pytest.raises(ParseError):
            load(document)

    def test_ref_targets_are_unescaped(self):
        document = {
            "definitions": {
                "a/b": {"type": "string"},
                "C": {"type": "object", "properties": {"x": {"$ref": "#/definitions/a~1b"}}},
            }
        }
        prop = load(document).definitions["C"].properties[0]
        assert isinstance(prop.node, RefNode)
        assert prop.node.target == "a/b"

    def test_root_ref(self):
        document = {"title": "Node", "properties": {"next": {"$ref": "#"}}}
        prop = load(document).definitions["Node"].properties[0]
        assert prop.node.target == "Node"

    def test_normalizations(self):
        document = {
            "definitions": {
                "M": {
                    "type": "object",
                    "required": ["a"],
                    "properties": {
                        "a": {"type": ["string", "null"]},
                        "b": {"type": "integer", "nullable": True},
                        "c": {"const": "fixed"},
                        "d": {"enum": ["x", None]},
                        "e": {"type": ["string", "integer"]},
                        "f": {},
                        "g": {"type": "array", "items": {"type": "number"}},
                    },
                }
            }
        }
        node = load(document).definitions["M"]
        assert isinstance(node, ObjectNode)
        props = {p.name: p for p in node.properties}
        assert props["a"].is_required and not props["b"].is_required
        assert isinstance(props["a"].node, PrimitiveNode) and props["a"].node.nullable
        assert props["b"].node.nullable
        assert isinstance(props["c"].node, EnumNode) and props["c"].node.values == ("fixed",)
        assert props["d"].node.values == ("x",) and props["d"].node.nullable
        assert isinstance(props["e"].node, CompositeNode) and props["e"].node.mode == "oneOf"
        assert [v.type_name for v in props["e"].node.variants] == ["string", "integer"]
        assert isinstance(props["f"].node, PrimitiveNode) and props["f"].node.type_name == "any"
        assert isinstance(props["g"].node, ArrayNode) and props["g"].node.items.type_name == "number"

    def test_all_of_siblings_become_a_trailing_member(self):
        document = {
            "definitions": {
                "Base": {"type": "object", "properties": {"id": {"type": "integer"}}},
                "Child": {
                    "allOf": [{"$ref": "#/definitions/Base"}],
                    "properties": {"name": {"type": "string"}},
                },
            }
        }
        node = load(document).definitions["Child"]
        assert isinstance(node, CompositeNode)
        assert len(node.variants) == 2
        assert isinstance(node.variants[1], ObjectNode)
        assert node.variants[1].properties[0].name == "name"

    def test_discriminators(self):
        document = {
            "components": {
                "schemas": {
                    "Pet": {
                        "type": "object",
                        "discriminator": {"propertyName": "kind", "mapping": {"cat": "#/components/schemas/Cat", "dog": "Dog"}},
                        "properties": {"kind": {"type": "string"}},
                    },
                    "Legacy": {"type": "object", "discriminator": "kind", "properties": {"kind": {"type": "string"}}},
                }
            }
        }
        definitions = load(document).definitions
        assert definitions["Pet"].discriminator.mapping == (("cat", "Cat"), ("dog", "Dog"))
        assert definitions["Legacy"].discriminator.property_name == "kind"

    def test_defaults_and_description(self):
        document = {"definitions": {"A": {"type": "integer", "default": 0, "x-unit": "ms", "description": "delay"}}}
        node = load(document).definitions["A"]
        assert node.has_default and node.default == 0
        assert node.description == "delay"

    def test_comment_entries_are_skipped(self):
        document = {"definitions": {"_comment": "generated", "A": {"type": "string"}}}
        assert list(load(document).definitions) == ["A"]


@pytest.mark.parametrize(
    "document,location",
    [
        ([1, 2], "<document>"),
        ({"definitions": {"A": {"type": "strung"}}}, "#/definitions/A/type"),
        ({"definitions": {"A": {"$ref": "other.json#/definitions/B"}}}, "#/definitions/A"),
        ({"definitions": {"A": {"$ref": "#/paths/x"}}}, "#/definitions/A"),
        ({"definitions": {"A": {"type": "object", "properties": ["a"]}}}, "#/definitions/A/properties"),
        ({"definitions": {"A": {"type": "object", "required": "a"}}}, "#/definitions/A/required"),
        ({"definitions": {"A": {"enum": "a"}}}, "#/definitions/A/enum"),
        ({"definitions": {"A": {"oneOf": []}}}, "#/definitions/A/oneOf"),
        ({"definitions": {"A": {"type": "object", "discriminator": {}}}}, "#/definitions/A/discriminator"),
        ({"definitions": {"A": 3}}, "#/definitions/A"),
        ({"definitions": []}, "#/definitions"),
    ],
)
def test_parse_errors(document, location):
    with pytest.raises(ParseError) as exc_info:
        load(document)
    assert exc_info.value.location == location


def test_invalid_json_text():
    with pytest.raises(ParseError) as exc_info:
        SchemaLoader().load_text('{"definitions": ', source="broken.json", fmt="json")
    assert exc_info.value.location.startswith("broken.json:")


def test_missing_file():
    with pytest.raises(ParseError):
        SchemaLoader().load_file(TEST_DATA / "does_not_exist.json")


def test_bytes_that_are_not_utf8():
    with pytest.raises(ParseError) as exc_info:
        SchemaLoader().load(b'{"definitions": {"A": {"type": "string"}}}\xff', source="bad.json")
    assert exc_info.value.location == "bad.json"
    assert "not valid UTF-8" in exc_info.value.reason


def test_file_that_is_not_utf8(tmp_path):
    schema = tmp_path / "latin1.json"
    schema.write_bytes('{"definitions": {"A": {"description": "café"}}}'.encode("latin-1"))
    with pytest.raises(ParseError) as exc_info:
        SchemaLoader().load_file(schema)
    assert exc_info.value.location == str(schema)
    assert "not valid UTF-8" in exc_info.value.reason


if __name__ == "__main__":
    pytest.main([__file__])
