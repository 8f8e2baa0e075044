"""
Schema AST module.

Contains the AST node definitions and the loader for schema documents.
"""

from __future__ import annotations

from .loader import SchemaLoader
from .nodes import (
    ArrayNode,
    CompositeNode,
    DiscriminatorDef,
    EnumNode,
    ObjectNode,
    PrimitiveNode,
    PropertyDef,
    RefNode,
    SchemaGraph,
    SchemaNode,
)

__all__ = [
    "SchemaNode",
    "PrimitiveNode",
    "ObjectNode",
    "PropertyDef",
    "ArrayNode",
    "EnumNode",
    "CompositeNode",
    "DiscriminatorDef",
    "RefNode",
    "SchemaGraph",
    "SchemaLoader",
]
