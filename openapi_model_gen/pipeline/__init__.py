"""
Pipeline - OpenAPI / JSON Schema to typed models with codecs.

This module provides a multi-phase architecture, each phase producing a new
immutable structure from the previous one:

1. Phase 1 (Loader): Parse the schema document into a SchemaGraph
2. Phase 2 (Resolver): Map schema nodes to resolved types, hoisting inline objects
3. Phase 3 (IR Builder): Build the read-only model table and check references
4. Phase 4 (Contracts): Derive per-model decode/encode contracts
5. Phase 5 (Backend): Render Python source or a JSON IR document
6. Phase 6 (Output): Write the result atomically, honoring the output mode
"""

from __future__ import annotations

from .config import CodeGeneratorConfig, OutputConfig, OutputMode
from .generator import BACKENDS, GenerationResult, PipelineGenerator
from .output import GENERATED_MARKER, AtomicWriter

__all__ = [
    "PipelineGenerator",
    "GenerationResult",
    "BACKENDS",
    "CodeGeneratorConfig",
    "OutputConfig",
    "OutputMode",
    "AtomicWriter",
    "GENERATED_MARKER",
]
