"""OpenAPI Model Generator

A Python package for generating typed data models from OpenAPI 3 /
JSON Schema documents, together with decoders and encoders that convert
between those models and their JSON wire form.
"""

__version__ = "1.0.1"
__author__ = "François Lagunas"

from .errors import DecodeError, GenerationError
from .pipeline import (
    AtomicWriter,
    CodeGeneratorConfig,
    GenerationResult,
    OutputConfig,
    OutputMode,
    PipelineGenerator,
)
from .pipeline.codec import ModelCodec

__all__ = [
    "PipelineGenerator",
    "GenerationResult",
    "CodeGeneratorConfig",
    "OutputConfig",
    "OutputMode",
    "AtomicWriter",
    "ModelCodec",
    "GenerationError",
    "DecodeError",
]
