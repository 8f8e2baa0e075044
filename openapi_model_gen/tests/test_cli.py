#!/usr/bin/env python3

import json
from pathlib import Path

import click
import pytest
from click.testing import CliRunner

from openapi_model_gen.cli_utils import load_document, reconstruct_command_line
from openapi_model_gen.openapi_model_gen import openapi_model_gen

TEST_DATA = Path(__file__).parent / "test_data"


class TestCommand:
    """Test the openapi_model_gen command"""

    def test_generate_python(self, tmp_path):
        output = tmp_path / "models.py"
        result = CliRunner().invoke(openapi_model_gen, [str(TEST_DATA / "petstore.yaml"), str(output)])
        assert result.exit_code == 0, result.output
        assert "Generated 7 models" in result.output
        code = output.read_text()
        assert code.startswith("# Generated by openapi_model_gen v")
        assert "openapi_model_gen petstore.yaml" in code.splitlines()[0]
        assert "class Pet:" in code

    def test_generate_ir(self, tmp_path):
        output = tmp_path / "models.json"
        result = CliRunner().invoke(openapi_model_gen, [str(TEST_DATA / "tree.json"), str(output), "--format", "ir"])
        assert result.exit_code == 0, result.output
        document = json.loads(output.read_text())
        assert [m["name"] for m in document["models"]] == ["Tree", "Forest"]
        assert "--format ir" in document["generated_by"][0]

    def test_existing_output_requires_force(self, tmp_path):
        output = tmp_path / "models.py"
        output.write_text("# hand written\n")
        args = [str(TEST_DATA / "class_model.json"), str(output)]

        result = CliRunner().invoke(openapi_model_gen, args)
        assert result.exit_code == 1
        assert "already exists" in result.output
        assert output.read_text() == "# hand written\n"

        result = CliRunner().invoke(openapi_model_gen, [*args, "--force"])
        assert result.exit_code == 0, result.output
        assert "class ClassModel:" in output.read_text()

    def test_yaml_config(self, tmp_path):
        config = tmp_path / "config.yaml"
        config.write_text("output:\n  mode: regenerate\nglobal_ignore_fields:\n  - id\n")
        output = tmp_path / "models.py"
        args = [str(TEST_DATA / "petstore.yaml"), str(output), "--config", str(config)]

        assert CliRunner().invoke(openapi_model_gen, args).exit_code == 0
        result = CliRunner().invoke(openapi_model_gen, args)
        assert result.exit_code == 0, result.output
        assert "    id:" not in output.read_text()

    def test_invalid_config(self, tmp_path):
        config = tmp_path / "config.json"
        config.write_text(json.dumps({"required_with_default": "sometimes"}))
        result = CliRunner().invoke(openapi_model_gen, [str(TEST_DATA / "tree.json"), str(tmp_path / "m.py"), "-c", str(config)])
        assert result.exit_code == 1
        assert "Invalid configuration" in result.output

    def test_generation_error(self, tmp_path):
        schema = tmp_path / "broken.json"
        schema.write_text(json.dumps({"definitions": {"A": {"$ref": "#/definitions/Missing"}}}))
        result = CliRunner().invoke(openapi_model_gen, [str(schema), str(tmp_path / "m.py")])
        assert result.exit_code == 1
        assert "Missing" in result.output
        assert not (tmp_path / "m.py").exists()

    def test_schema_that_is_not_utf8(self, tmp_path):
        schema = tmp_path / "latin1.json"
        schema.write_bytes(b'{"definitions": {"A": {"description": "caf\xe9"}}}')
        result = CliRunner().invoke(openapi_model_gen, [str(schema), str(tmp_path / "m.py")])
        assert result.exit_code == 1
        assert "not valid UTF-8" in result.output
        assert not (tmp_path / "m.py").exists()

    def test_root_name_option(self, tmp_path):
        schema = tmp_path / "order.json"
        schema.write_text(json.dumps({"type": "object", "properties": {"id": {"type": "integer"}}}))
        output = tmp_path / "m.py"
        result = CliRunner().invoke(openapi_model_gen, [str(schema), str(output), "--name", "Order"])
        assert result.exit_code == 0, result.output
        assert "class Order:" in output.read_text()


class TestCliUtils:
    """Test cases for CLI utilities"""

    def test_reconstruct_command_line_without_context(self):
        assert reconstruct_command_line(openapi_model_gen) == "openapi_model_gen"

    def test_reconstruct_command_line_with_context(self, tmp_path):
        schema = tmp_path / "petstore.yaml"
        schema.write_text("{}")
        ctx = click.Context(openapi_model_gen)
        ctx.params = {
            "name": None,
            "config": None,
            "language": "ir",
            "force": True,
            "verbose": False,
            "path": str(schema),
            "output": "models.json",
        }
        with ctx:
            result = reconstruct_command_line(openapi_model_gen)
        assert result == "openapi_model_gen petstore.yaml models.json --format ir --force"

    def test_load_document(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("a: 1\nb: [x, y]\n")
        assert load_document(path) == {"a": 1, "b": ["x", "y"]}
        path.write_text("a: [1, 2\n")
        with pytest.raises(click.ClickException):
            load_document(path)


if __name__ == "__main__":
    pytest.main([__file__])
