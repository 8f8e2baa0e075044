"""
IR export backend.

Renders the model table and the serialization contracts as JSON, for
emitters that live outside this package.
"""

from __future__ import annotations

import json
from collections.abc import Mapping

from ..analyzer.ir_nodes import ModelTable, model_to_dict, type_to_dict
from ..codec.contracts import ModelContract, contracts_to_dict
from .base import CodeBackend


class IrExporter(CodeBackend):
    """JSON export of the model table and contracts."""

    FILE_EXTENSION = "json"

    def generate(
        self,
        table: ModelTable,
        contracts: Mapping[str, ModelContract],
        generation_comment: str = "",
    ) -> str:
        document = {
            "generated_by": generation_comment.splitlines() if generation_comment else [],
            "enums": {name: type_to_dict(enum) for name, enum in table.enums.items()},
            "models": [model_to_dict(model) for model in table.values()],
            "contracts": contracts_to_dict(contracts),
        }
        return json.dumps(document, indent=2) + "\n"
