"""
Atomic file writer for safe code generation.

Ensures that file writes are atomic to prevent data corruption from
interrupted operations, and that generated files are the only ones a
regeneration may overwrite.
"""

from __future__ import annotations

import ast
import json
import logging
import tempfile
from collections.abc import Callable
from pathlib import Path

from ...errors import OutputError
from ..config import OutputMode

logger = logging.getLogger(__name__)

# First line of every generated file; regenerate mode only overwrites files carrying it
GENERATED_MARKER = "Generated by openapi_model_gen"

# Only the head of an existing file is searched for the marker
_MARKER_SEARCH_LINES = 5


class AtomicWriter:
    """Handles atomic file writes with validation.

    Uses a two-phase commit approach:
    1. Write to a temporary file in the same directory
    2. Validate the content
    3. Atomically replace the target file

    This ensures that an interrupted write operation never leaves
    the target file in an incomplete state.
    """

    def __init__(
        self,
        validate_python: Callable[[str], None] | None = None,
        validate_json: Callable[[str], None] | None = None,
    ):
        """Initialize the atomic writer.

        Args:
            validate_python: Optional validation function for Python code
            validate_json: Optional validation function for JSON documents
        """
        self._validate_python = validate_python or self._default_validate_python
        self._validate_json = validate_json or self._default_validate_json

    def write(
        self,
        path: Path,
        content: str,
        language: str,
        validate: bool = True,
    ) -> None:
        """Write content to file atomically.

        Args:
            path: Target file path
            content: Content to write
            language: Language for validation ("python" or "ir")
            validate: Whether to validate before finalizing

        Raises:
            OutputError: If validation fails
            OSError: If file operations fail
        """
        # Ensure parent directory exists
        path.parent.mkdir(parents=True, exist_ok=True)

        # Same directory ensures atomic rename on the same filesystem
        temp_fd, temp_path_str = tempfile.mkstemp(
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            text=True,
        )

        temp_path = Path(temp_path_str)

        try:
            with open(temp_fd, "w", encoding="utf-8") as f:
                f.write(content)

            if validate:
                self._validate_content(content, language)

            temp_path.replace(path)

        except Exception:
            # Clean up temp file on any error
            temp_path.unlink(missing_ok=True)
            raise

        logger.debug("Wrote %s", path)

    def write_generated(
        self,
        path: Path,
        content: str,
        language: str,
        mode: OutputMode = OutputMode.ERROR_IF_EXISTS,
        validate: bool = True,
        atomic: bool = True,
    ) -> None:
        """Write a generated file, honoring the output mode.

        Args:
            path: Target file path
            content: Content to write
            language: Language for validation ("python" or "ir")
            mode: What to do when the target already exists
            validate: Whether to validate before finalizing
            atomic: Whether to go through a temporary file

        Raises:
            OutputError: If the target exists and the mode forbids
                overwriting it, or if validation fails
        """
        if path.exists():
            if mode == OutputMode.ERROR_IF_EXISTS:
                raise OutputError(f"Output file already exists: {path}. Use force or regenerate mode to overwrite it.")
            if mode == OutputMode.REGENERATE and not self.is_generated(path):
                raise OutputError(f"Refusing to overwrite {path}: it does not carry the '{GENERATED_MARKER}' marker")

        if atomic:
            self.write(path, content, language, validate)
            return

        if validate:
            self._validate_content(content, language)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")

    @staticmethod
    def is_generated(path: Path) -> bool:
        """Whether an existing file carries the generated marker near its top."""
        try:
            with open(path, encoding="utf-8") as f:
                head = [f.readline() for _ in range(_MARKER_SEARCH_LINES)]
        except (OSError, UnicodeDecodeError):
            return False
        return any(GENERATED_MARKER in line for line in head)

    def _validate_content(self, content: str, language: str) -> None:
        if language == "python":
            self._validate_python(content)
        elif language == "ir":
            self._validate_json(content)

    def _default_validate_python(self, content: str) -> None:
        """Default Python validation.

        Raises:
            OutputError: If the code does not parse
        """
        try:
            ast.parse(content)
        except SyntaxError as e:
            raise OutputError(f"Generated Python code is not valid: {e}") from e

    def _default_validate_json(self, content: str) -> None:
        try:
            json.loads(content)
        except json.JSONDecodeError as e:
            raise OutputError(f"Generated JSON is not valid: {e}") from e
