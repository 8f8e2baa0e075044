"""
Configuration for the code generator pipeline.

Plain dataclasses, loaded from the JSON/YAML file given to the CLI with
``CodeGeneratorConfig.from_dict``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

REQUIRED_WITH_DEFAULT_POLICIES = ("error", "optional")


class OutputMode(str, Enum):
    """Output mode for file generation.

    Controls behavior when the output file already exists.
    """

    ERROR_IF_EXISTS = "error"  # Default: raise error if file exists
    FORCE = "force"  # Overwrite whatever is there
    REGENERATE = "regenerate"  # Overwrite only files carrying the generated marker


@dataclass
class OutputConfig:
    """Configuration for output file handling.

    Attributes:
        mode: How to handle existing output files
        validate_before_write: Whether to validate Python code before writing
        atomic_write: Whether to use atomic file writes
    """

    mode: OutputMode = OutputMode.ERROR_IF_EXISTS
    validate_before_write: bool = True
    atomic_write: bool = True


@dataclass
class CodeGeneratorConfig:
    """Configuration options for code generation."""

    # Models to ignore during generation (references to them fail the build)
    ignore_classes: list[str] = field(default_factory=list)

    # Wire names of fields to drop from every model
    global_ignore_fields: list[str] = field(default_factory=list)

    # Order in which to generate models (empty = declaration order)
    order_classes: list[str] = field(default_factory=list)

    # Add generation comment at top of file
    add_generation_comment: bool = True

    # Use from __future__ import annotations
    use_future_annotations: bool = True

    # What a required field with a default means: "error" or "optional"
    required_with_default: str = "error"

    # Output configuration
    output: OutputConfig = field(default_factory=OutputConfig)

    @staticmethod
    def from_dict(d: dict) -> CodeGeneratorConfig:
        """Create a config from a dictionary.

        Raises:
            ValueError: If an output mode or required_with_default policy is unknown
        """
        config = CodeGeneratorConfig()
        for k, v in d.items():
            if k == "output" and isinstance(v, dict):
                mode = v.get("mode", OutputMode.ERROR_IF_EXISTS)
                if isinstance(mode, str):
                    mode = OutputMode(mode)
                config.output = OutputConfig(
                    mode=mode,
                    validate_before_write=v.get("validate_before_write", True),
                    atomic_write=v.get("atomic_write", True),
                )
            elif hasattr(config, k):
                setattr(config, k, v)
        if config.required_with_default not in REQUIRED_WITH_DEFAULT_POLICIES:
            raise ValueError(
                f"required_with_default must be one of {', '.join(REQUIRED_WITH_DEFAULT_POLICIES)}, "
                f"got {config.required_with_default!r}"
            )
        return config

    def to_dict(self) -> dict:
        """Convert config to a dictionary."""
        return {
            "ignore_classes": self.ignore_classes,
            "global_ignore_fields": self.global_ignore_fields,
            "order_classes": self.order_classes,
            "add_generation_comment": self.add_generation_comment,
            "use_future_annotations": self.use_future_annotations,
            "required_with_default": self.required_with_default,
            "output": {
                "mode": self.output.mode.value,
                "validate_before_write": self.output.validate_before_write,
                "atomic_write": self.output.atomic_write,
            },
        }
