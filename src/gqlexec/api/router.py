"""
FastAPI router exposing an Executor over HTTP.

Endpoints:
- POST {path} - Execute one operation

Request body (the document is the JSON form of the AST, see core.query_types):

    {
        "document": {"operations": [...], "fragments": [...]},
        "variables": {"id": 1},
        "operationName": "GetBook"
    }

The response is always HTTP 200 with the {"data", "errors"} envelope; request
problems are reported in "errors".
"""

from __future__ import annotations

import inspect
import logging
from typing import Any, Callable, Optional

from fastapi import APIRouter, Request
from pydantic import BaseModel, ConfigDict, Field

from ..core.query_types import Document
from ..runtime.executor import Executor

logger = logging.getLogger(__name__)

ContextGetter = Callable[[Request], Any]


class GraphQLRequest(BaseModel):
    """Body of a POST to the GraphQL endpoint."""
    model_config = ConfigDict(populate_by_name=True)

    document: Document
    variables: Optional[dict[str, Any]] = None
    operation_name: Optional[str] = Field(default=None, alias="operationName")


def create_graphql_router(
    executor: Executor,
    path: str = "/graphql",
    context_getter: Optional[ContextGetter] = None,
) -> APIRouter:
    """
    Create a router serving one executor.

    Args:
        executor: Executor bound to the schema to serve
        path: Endpoint path
        context_getter: Builds the per-request context from the HTTP request
            (sync or async); defaults to {"request": request}

    Returns:
        Configured FastAPI router
    """
    router = APIRouter()

    async def get_context(request: Request) -> Any:
        if context_getter is None:
            return {"request": request}
        context = context_getter(request)
        if inspect.isawaitable(context):
            context = await context
        return context

    @router.post(path)
    async def execute_request(request: Request) -> dict[str, Any]:
        """Execute the operation in the request body."""
        try:
            body = await request.json()
            payload = GraphQLRequest.model_validate(body)
        except ValueError as e:
            logger.debug(f"Rejected GraphQL request body: {e}")
            return {"data": None, "errors": [{"message": "Invalid GraphQL request body."}]}

        result = await executor.execute(
            payload.document,
            variables=payload.variables,
            context=await get_context(request),
            operation_name=payload.operation_name,
        )
        return result.formatted

    return router
