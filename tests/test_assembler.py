"""Tests for ResponseAssembler and the response envelope."""

from __future__ import annotations

import json

import pytest

from gqlexec.core.query_types import ErrorObject, SourceLocation
from gqlexec.runtime.assembler import (
    NULL,
    ExecutionResult,
    ListResult,
    NullResult,
    ObjectResult,
    ResponseAssembler,
    ScalarResult,
)

from helpers import doc, field, query


class TestResponseAssembler:
    def test_walks_result_tree(self):
        root = ObjectResult({
            "b": ScalarResult(1),
            "a": ListResult([ScalarResult("x"), NULL, ObjectResult({"z": NULL})]),
        })
        result = ResponseAssembler().assemble(root, [])

        assert result.data == {"b": 1, "a": ["x", None, {"z": None}]}
        assert list(result.data) == ["b", "a"]
        assert result.formatted == {"data": result.data}

    def test_collapsed_root(self):
        error = ErrorObject(message="boom", path=["a"])
        result = ResponseAssembler().assemble(None, [error])
        assert result.formatted == {"data": None, "errors": [{"message": "boom", "path": ["a"]}]}

    def test_null_is_a_singleton(self):
        assert NullResult() is NULL


class TestEnvelope:
    def test_error_key_order_and_omission(self):
        error = ErrorObject(
            message="bad",
            path=["books", 0, "author"],
            locations=[SourceLocation(line=1, column=9)],
        )
        assert list(error.to_dict()) == ["message", "locations", "path"]
        assert ErrorObject(message="bare").to_dict() == {"message": "bare"}

    def test_json_round_trip(self):
        result = ExecutionResult.model_construct(
            data={"title": "Ünïcode", "n": [1, None]},
            errors=[ErrorObject(message="x", path=["n", 1])],
        )
        encoded = result.to_json()
        assert "Ünïcode" in encoded
        assert json.loads(encoded) == result.formatted

    @pytest.mark.asyncio
    async def test_executed_result_round_trip(self, library_executor):
        result = await library_executor.execute(
            doc(query(field("books", field("id"), field("genre"), field("author", field("name")))))
        )
        assert json.loads(result.to_json()) == result.formatted
