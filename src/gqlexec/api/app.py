"""
ASGI application serving one executor.

create_app() mounts the GraphQL router, a /health check for orchestrators,
and keeps health-check requests out of the uvicorn access log.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Iterable, Optional, Sequence

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ..runtime.executor import Executor
from .router import ContextGetter, create_graphql_router

logger = logging.getLogger(__name__)

HEALTH_PATH = "/health"
ACCESS_LOGGER = "uvicorn.access"


class QuietPathsFilter(logging.Filter):
    """
    Drops uvicorn access records for the given request paths.

    uvicorn logs access lines with args
    (client_addr, method, full_path, http_version, status_code).
    """

    def __init__(self, paths: Iterable[str]):
        super().__init__()
        self.paths = frozenset(paths)

    def filter(self, record: logging.LogRecord) -> bool:
        args = record.args
        if isinstance(args, tuple) and len(args) >= 3:
            request_path = str(args[2]).split("?", 1)[0]
            return request_path not in self.paths
        return True


def create_app(
    executor: Executor,
    *,
    path: str = "/graphql",
    context_getter: Optional[ContextGetter] = None,
    title: str = "gqlexec",
    cors_origins: Sequence[str] = ("*",),
) -> FastAPI:
    """
    Create a FastAPI app serving one executor.

    Args:
        executor: Executor bound to the schema to serve
        path: GraphQL endpoint path
        context_getter: Builds the per-request context from the HTTP request
        title: Application title
        cors_origins: Allowed CORS origins (empty disables the middleware)
    """
    access_filter = QuietPathsFilter([HEALTH_PATH])

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        access_logger = logging.getLogger(ACCESS_LOGGER)
        access_logger.addFilter(access_filter)
        logger.info(f"Serving {len(executor.schema.types)} types at {path}")
        try:
            yield
        finally:
            access_logger.removeFilter(access_filter)

    app = FastAPI(title=title, version="0.1.0", lifespan=lifespan)

    if cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=list(cors_origins),
            allow_methods=["GET", "POST"],
            allow_headers=["*"],
        )

    app.include_router(create_graphql_router(executor, path=path, context_getter=context_getter))

    @app.get(HEALTH_PATH)
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    return app
