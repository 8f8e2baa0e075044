"""
Pipeline generator that wires the stages together.

Every run is pure and synchronous: each stage produces a new immutable
structure from the previous one, and nothing is written until the whole
pipeline has succeeded.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .. import __version__
from .analyzer.ir_builder import ModelIRBuilder
from .analyzer.ir_nodes import ModelTable
from .analyzer.resolved_types import ResolvedType
from .analyzer.type_resolver import TypeResolver
from .backends.base import CodeBackend
from .backends.ir_exporter import IrExporter
from .backends.python_backend import PythonBackend
from .codec.contracts import ModelContract, derive_contracts
from .config import CodeGeneratorConfig
from .output.atomic_writer import GENERATED_MARKER, AtomicWriter
from .schema_ast.loader import SchemaLoader
from .schema_ast.nodes import SchemaGraph

logger = logging.getLogger(__name__)

BACKENDS: dict[str, type[CodeBackend]] = {
    "python": PythonBackend,
    "ir": IrExporter,
}


@dataclass
class GenerationResult:
    """Everything one pipeline run produced."""

    graph: SchemaGraph
    resolved: dict[str, ResolvedType] = field(default_factory=dict)
    table: ModelTable = field(default_factory=lambda: ModelTable({}))
    contracts: dict[str, ModelContract] = field(default_factory=dict)
    code: str = ""


class PipelineGenerator:
    """Runs loader, resolver, IR builder, contract derivation and a backend."""

    def __init__(
        self,
        name: str | None,
        schema: Mapping[str, Any] | str | bytes,
        config: CodeGeneratorConfig | None = None,
        language: str = "python",
        source: str = "<document>",
        command_line: str | None = None,
    ):
        """
        Initialize the generator.

        Args:
            name: Name of the root model (documents whose root has properties)
            schema: Parsed schema document, or its JSON/YAML text (str or UTF-8 bytes)
            config: Code generation configuration
            language: Backend name ("python" or "ir")
            source: Document name used in error messages
            command_line: Regeneration command embedded in the header
        """
        if language not in BACKENDS:
            raise ValueError(f"Unknown language {language!r}, expected one of {', '.join(BACKENDS)}")
        self.name = name
        self.schema = schema
        self.config = config or CodeGeneratorConfig()
        self.language = language
        self.source = source
        self.command_line = command_line or "openapi_model_gen"

    def run(self) -> GenerationResult:
        """
        Run every stage.

        Returns:
            The intermediate structures and the generated text

        Raises:
            GenerationError: On the first failing stage (no partial output)
        """
        graph = SchemaLoader().load(self.schema, root_name=self.name, source=self.source)
        logger.debug("Phase 1 (loader): %d named schemas", len(graph.definitions))

        resolved = TypeResolver().resolve(graph)
        logger.debug("Phase 2 (resolver): %d resolved types", len(resolved))

        table = ModelIRBuilder(self.config).build(resolved)
        logger.debug("Phase 3 (IR builder): %d models", len(table))

        contracts = derive_contracts(table)
        logger.debug("Phase 4 (contracts): %d contracts", len(contracts))

        backend = BACKENDS[self.language](self.config)
        code = backend.generate(table, contracts, self.generation_comment())
        logger.debug("Phase 5 (%s backend): %d characters", self.language, len(code))

        return GenerationResult(graph=graph, resolved=resolved, table=table, contracts=contracts, code=code)

    def generate(self) -> str:
        """Run the pipeline and return the generated text."""
        return self.run().code

    def write(self, output: str | Path) -> GenerationResult:
        """
        Run the pipeline and write the result according to config.output.

        Raises:
            GenerationError: If a stage fails
            OutputError: If the output mode forbids overwriting the target
        """
        result = self.run()
        output_config = self.config.output
        AtomicWriter().write_generated(
            Path(output),
            result.code,
            self.language,
            mode=output_config.mode,
            validate=output_config.validate_before_write,
            atomic=output_config.atomic_write,
        )
        logger.info("Generated %d models into %s", len(result.table), output)
        return result

    def generation_comment(self) -> str:
        """Header lines (without comment prefix) marking the output as generated."""
        if not self.config.add_generation_comment:
            return ""
        return f"{GENERATED_MARKER} v{__version__} : {self.command_line}\nDO NOT EDIT: changes are lost on regeneration."
