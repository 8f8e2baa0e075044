"""
Backends module.

Contains the emitters that render a model table and its contracts.
"""

from __future__ import annotations

from .base import CodeBackend
from .ir_exporter import IrExporter
from .python_backend import PythonBackend

__all__ = [
    "CodeBackend",
    "PythonBackend",
    "IrExporter",
]
