"""
Runtime module - operation execution pipeline.
"""

from __future__ import annotations

from .assembler import (
    NULL,
    ExecutionResult,
    ListResult,
    ObjectResult,
    ResponseAssembler,
    ScalarResult,
)
from .context import ExecutionContext, ResolveInfo
from .executor import Executor, execute_operation
from .loader import BatchLoader, LoaderRegistry
from .path import ResponsePath
from .planner import SelectionPlanner
from .service_client import ServiceClient, batch_fn
from .subscription import SubscriptionExecutor

__all__ = [
    "ExecutionContext",
    "ResolveInfo",
    "ResponsePath",
    "SelectionPlanner",
    "BatchLoader",
    "LoaderRegistry",
    "Executor",
    "execute_operation",
    "SubscriptionExecutor",
    "ResponseAssembler",
    "ExecutionResult",
    "ScalarResult",
    "ListResult",
    "ObjectResult",
    "NULL",
    "ServiceClient",
    "batch_fn",
]
