"""
Error taxonomy for the generator and for generated decode/encode code.

Generation-time errors derive from GenerationError and abort the whole run.
Decode-time errors derive from DecodeError and are raised to the caller of
a decode or encode entry point.
"""

from __future__ import annotations

from collections.abc import Iterable


class GenerationError(Exception):
    """Base class for every fatal generation-time error."""


class ParseError(GenerationError):
    """Raised when a schema document is malformed.

    Attributes:
        location: JSON pointer (or document name) where the problem was found
        reason: Human readable description of the problem
    """

    def __init__(self, location: str, reason: str):
        self.location = location
        self.reason = reason
        super().__init__(f"{location or '#'}: {reason}")


class ResolutionError(GenerationError):
    """Raised when schema nodes cannot be mapped to types."""

    def __init__(self, message: str, location: str = ""):
        self.location = location
        super().__init__(f"{location}: {message}" if location else message)


class EmptyEnumError(ResolutionError):
    """Raised for an enumeration without any value."""

    def __init__(self, name: str, location: str = ""):
        self.name = name
        super().__init__(f"enum '{name}' has no values", location)


class DuplicateFieldError(ResolutionError):
    """Raised when two fields of a model map to the same name."""

    def __init__(self, model: str, field_name: str):
        self.model = model
        self.field_name = field_name
        super().__init__(f"model '{model}' declares field '{field_name}' more than once")


class DiscriminatorError(ResolutionError):
    """Raised when a discriminator property is missing from a variant."""


class RequiredDefaultConflictError(ResolutionError):
    """Raised when a field is both required and carries a default."""

    def __init__(self, model: str, field_name: str):
        self.model = model
        self.field_name = field_name
        super().__init__(f"field '{field_name}' of model '{model}' is required and has a default value")


class UnresolvedReferenceError(GenerationError):
    """Raised after the IR build when model references are still dangling.

    Reports every offending name, not only the first one.
    """

    def __init__(self, names: Iterable[str]):
        self.names = sorted(set(names))
        super().__init__("unresolved model references: " + ", ".join(self.names))


class OutputError(GenerationError):
    """Raised when generated output cannot be written."""


class DecodeError(ValueError):
    """Base class for errors raised while decoding or encoding values.

    Attributes:
        path: Location of the offending value, e.g. ``Tree.children[2].value``
    """

    def __init__(self, message: str, path: str = ""):
        self.path = path
        super().__init__(f"{path}: {message}" if path else message)


class MissingRequiredFieldError(DecodeError):
    """A required field is absent."""

    def __init__(self, model: str, field_name: str, path: str = ""):
        self.model = model
        self.field_name = field_name
        super().__init__(f"missing required field '{field_name}' of {model}", path)


class UnexpectedNullError(DecodeError):
    """An explicit null was found where the schema does not allow one."""

    def __init__(self, model: str, field_name: str, path: str = ""):
        self.model = model
        self.field_name = field_name
        if field_name:
            super().__init__(f"field '{field_name}' of {model} is not nullable", path)
        else:
            super().__init__("null is not allowed here", path)


class UnknownDiscriminatorValueError(DecodeError):
    """The discriminator value does not select any variant."""

    def __init__(self, property_name: str, value: object, path: str = ""):
        self.property_name = property_name
        self.value = value
        super().__init__(f"unknown value {value!r} for discriminator '{property_name}'", path)


class NoMatchingVariantError(DecodeError):
    """No alternative of an undiscriminated union accepts the value."""


class UnknownEnumValueError(DecodeError):
    """A value is not a member of its enumeration."""


class TypeMismatchError(DecodeError):
    """A value does not have the shape its type requires."""
