"""
Naming helpers shared by the resolver, the IR builder and the backends.
"""

import keyword
import re

# Regex pattern to split text into words, handling camelCase boundaries
_WORD_PATTERN = re.compile(r"[a-z]+|[A-Z][a-z]*|[0-9]+")
_ACRONYM_BOUNDARY = re.compile(r"([A-Z]+)([A-Z][a-z])")
_CAMEL_BOUNDARY = re.compile(r"([a-z0-9])([A-Z])")
_NON_WORD = re.compile(r"[^0-9A-Za-z]+")


def _normalize_separators(text: str) -> str:
    """Normalize separators (underscores, hyphens, dots) to spaces."""
    return text.replace("_", " ").replace("-", " ").replace(".", " ")


def _split_into_words(text: str) -> list[str]:
    """Split text into words, handling camelCase boundaries."""
    return _WORD_PATTERN.findall(text)


def _capitalize_and_join(words: list[str]) -> str:
    """Capitalize each word and join them together."""
    return "".join(word.capitalize() for word in words if word)


def snake_to_pascal_case(text: str) -> str:
    """Convert snake_case, camelCase, or space-separated text to PascalCase.

    Examples:
        "first_name" -> "FirstName"
        "actionTemplate" -> "ActionTemplate"
        "first 3 rows" -> "First3Rows"

    Args:
        text: The text to convert

    Returns:
        PascalCase string
    """
    if not text:
        return ""
    normalized = _normalize_separators(text)
    words = _split_into_words(normalized)
    return _capitalize_and_join(words)


def to_snake_case(text: str) -> str:
    """Convert a wire name to a Python attribute name.

    Leading underscores are kept, keywords get a trailing underscore:
        "petType" -> "pet_type"
        "HTTPCode" -> "http_code"
        "_class" -> "_class"
        "class" -> "class_"
    """
    body = text.lstrip("_")
    leading = "_" * (len(text) - len(body))
    body = _ACRONYM_BOUNDARY.sub(r"\1_\2", body)
    body = _CAMEL_BOUNDARY.sub(r"\1_\2", body)
    body = _NON_WORD.sub("_", body).strip("_").lower()
    if not body:
        body = "field"
    if body[0].isdigit():
        body = f"n{body}"
    name = leading + body
    if keyword.iskeyword(name):
        name += "_"
    return name


def to_class_name(text: str) -> str:
    """Turn a schema name into a class name, keeping valid identifiers as is."""
    if text.isidentifier() and not keyword.iskeyword(text):
        return text
    name = snake_to_pascal_case(text) or "Model"
    if name[0].isdigit():
        name = f"Model{name}"
    return name


def unique_name(candidate: str, taken: set[str]) -> str:
    """Return ``candidate`` or ``candidate2``, ``candidate3``... not in ``taken``."""
    if candidate not in taken:
        return candidate
    index = 2
    while f"{candidate}{index}" in taken:
        index += 1
    return f"{candidate}{index}"
