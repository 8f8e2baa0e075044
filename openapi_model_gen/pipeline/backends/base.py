"""
Base class for code generation backends.

Defines the interface that all emitters must implement: render a model
table and its serialization contracts into text.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from pathlib import Path

import jinja2

from ..analyzer.ir_nodes import ModelTable
from ..codec.contracts import FieldContract, ModelContract
from ..config import CodeGeneratorConfig


class CodeBackend(ABC):
    """Abstract base class for code generation backends."""

    # Template directory name (empty = the backend does not use templates)
    TEMPLATE_LANG: str = ""

    # File extension
    FILE_EXTENSION: str = ""

    # Template names, loaded as "<name>.<FILE_EXTENSION>.jinja2"
    TEMPLATES: tuple[str, ...] = ()

    def __init__(self, config: CodeGeneratorConfig):
        """
        Initialize the backend.

        Args:
            config: Code generation configuration
        """
        self.config = config
        self.templates: dict[str, jinja2.Template] = {}
        if self.TEMPLATE_LANG:
            self._setup_templates()

    def _setup_templates(self) -> None:
        """Set up Jinja2 templates."""
        template_dir = Path(__file__).parent.parent.parent / "templates" / self.TEMPLATE_LANG
        self.jinja_env = jinja2.Environment(
            loader=jinja2.FileSystemLoader(str(template_dir)),
            lstrip_blocks=True,
            trim_blocks=True,
            keep_trailing_newline=True,
        )
        for name in self.TEMPLATES:
            self.templates[name] = self.jinja_env.get_template(f"{name}.{self.FILE_EXTENSION}.jinja2")

    @abstractmethod
    def generate(
        self,
        table: ModelTable,
        contracts: Mapping[str, ModelContract],
        generation_comment: str = "",
    ) -> str:
        """
        Generate code from the model table.

        Args:
            table: The model table
            contracts: Serialization contracts keyed by model name
            generation_comment: Header lines, without comment prefix

        Returns:
            Generated code as a string
        """

    def _order_fields(self, fields: tuple[FieldContract, ...]) -> list[FieldContract]:
        """
        Order fields for dataclass compatibility.

        Required fields without a default must come before fields that have
        one (optional fields default to UNSET).
        """
        required_fields = []
        optional_fields = []

        for f in fields:
            if f.required and not f.has_default:
                required_fields.append(f)
            else:
                optional_fields.append(f)

        return required_fields + optional_fields
