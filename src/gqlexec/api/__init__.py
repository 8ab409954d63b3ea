"""
API module - FastAPI endpoints.
"""

from __future__ import annotations

from .app import create_app
from .router import GraphQLRequest, create_graphql_router

__all__ = [
    "GraphQLRequest",
    "create_graphql_router",
    "create_app",
]
