"""
Output module.

Writes generated files atomically and protects hand-written files.
"""

from __future__ import annotations

from .atomic_writer import GENERATED_MARKER, AtomicWriter

__all__ = [
    "AtomicWriter",
    "GENERATED_MARKER",
]
