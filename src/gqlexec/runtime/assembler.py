"""
Response assembler - turns the result tree into the response envelope.

Handles:
- Walking ScalarResult / ListResult / ObjectResult / NULL nodes
- Keeping response keys in selection order
- Omitting "errors" when there are none
- JSON serialization of the envelope
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Optional, Union

from pydantic import BaseModel, Field

from ..core.query_types import ErrorObject


# =============================================================================
# Result tree
# =============================================================================


@dataclass
class ScalarResult:
    """Serialized leaf value."""
    value: Any


@dataclass
class ListResult:
    """Completed list, one node per item."""
    items: list["ResultNode"] = field(default_factory=list)


@dataclass
class ObjectResult:
    """Completed object, keyed by response key in selection order."""
    fields: dict[str, "ResultNode"] = field(default_factory=dict)


class NullResult:
    """Null cell (legitimate or caused by an error; both serialize to null)."""

    _instance: Optional["NullResult"] = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "NULL"


NULL = NullResult()

ResultNode = Union[ScalarResult, ListResult, ObjectResult, NullResult]


# =============================================================================
# Envelope
# =============================================================================


class ExecutionResult(BaseModel):
    """
    Outcome of one operation.

    formatted -> {"data": ..., "errors": [...]}  ("errors" only when non-empty)
    """
    data: Optional[dict[str, Any]] = None
    errors: list[ErrorObject] = Field(default_factory=list)

    @property
    def formatted(self) -> dict[str, Any]:
        envelope: dict[str, Any] = {"data": self.data}
        if self.errors:
            envelope["errors"] = [error.to_dict() for error in self.errors]
        return envelope

    def to_json(self, **kwargs: Any) -> str:
        return json.dumps(self.formatted, ensure_ascii=False, **kwargs)


class ResponseAssembler:
    """
    Assembles the final response from the completed result tree.

    Usage:
        assembler = ResponseAssembler()
        result = assembler.assemble(root, errors)
        result.formatted  # {"data": {...}, "errors": [...]}
    """

    def assemble(
        self,
        root: Optional[ResultNode],
        errors: list[ErrorObject],
    ) -> ExecutionResult:
        """
        Build the envelope.

        Args:
            root: Root ObjectResult, or None/NULL when the whole tree collapsed
            errors: Errors collected during execution, in report order

        Returns:
            ExecutionResult with plain Python data
        """
        data = None if root is None else self.to_data(root)
        return ExecutionResult.model_construct(data=data, errors=list(errors))

    def to_data(self, node: ResultNode) -> Any:
        """Plain Python value of a result node."""
        if isinstance(node, ObjectResult):
            return {key: self.to_data(child) for key, child in node.fields.items()}
        if isinstance(node, ListResult):
            return [self.to_data(item) for item in node.items]
        if isinstance(node, ScalarResult):
            return node.value
        return None
