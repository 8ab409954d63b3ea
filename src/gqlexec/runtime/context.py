"""
Execution context for one operation.

Contains all per-request state needed while executing: variables, the opaque
user context, the root value, the error list and the batch loaders.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Awaitable, Optional

from ..config import ExecutorConfig
from ..core.errors import ExecutionTimeoutError, FieldError
from ..core.query_types import (
    ErrorObject,
    FieldNode,
    FragmentDefinition,
    OperationDefinition,
    SourceLocation,
)
from ..core.registry import SchemaRegistry
from .loader import BatchLoader, LoaderRegistry
from .path import ResponsePath

logger = logging.getLogger(__name__)


@dataclass
class ExecutionContext:
    """
    Context passed through the execution of one operation.

    Contains:
    - schema: The registry (shared, read-only)
    - operation / fragments / variables: The request
    - context_value: Opaque caller object, never mutated by the engine
    - errors: Append-only list of reported errors
    - loaders: Batch loaders scoped to this operation
    """
    schema: SchemaRegistry
    operation: OperationDefinition
    fragments: dict[str, FragmentDefinition] = field(default_factory=dict)
    variables: dict[str, Any] = field(default_factory=dict)
    context_value: Any = None
    root_value: Any = None
    config: ExecutorConfig = field(default_factory=ExecutorConfig)
    loaders: LoaderRegistry = field(default_factory=LoaderRegistry)
    deadline: Optional[float] = None  # event loop time
    errors: list[ErrorObject] = field(default_factory=list)
    background_tasks: set[asyncio.Task] = field(default_factory=set)  # shared with the Executor
    planner: Any = None  # SelectionPlanner, set by the executor
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def add_error(
        self,
        raw_error: Exception,
        field_nodes: Optional[list[Any]] = None,
        path: Optional[ResponsePath] = None,
    ) -> ErrorObject:
        """
        Append one error entry.

        FieldError messages are reported verbatim; any other exception is
        logged and replaced by the configured internal error message.
        """
        if isinstance(raw_error, FieldError):
            message = raw_error.message
            extensions = raw_error.extensions
        else:
            logger.error(
                f"Unhandled resolver error at {path.as_list() if path else '<root>'}: {raw_error!r}",
                exc_info=raw_error,
            )
            message = self.config.internal_error_message
            extensions = None

        locations = [node.loc for node in field_nodes or [] if node.loc is not None]
        error = ErrorObject(
            message=message,
            locations=locations or None,
            path=path.as_list() if path else None,
            extensions=extensions,
        )
        with self._lock:
            self.errors.append(error)
        return error

    def loader(self, name: str) -> BatchLoader:
        return self.loaders.get(name)

    def remaining(self) -> Optional[float]:
        """Seconds until the deadline (None without a timeout)."""
        if self.deadline is None:
            return None
        return self.deadline - asyncio.get_running_loop().time()

    def check_deadline(self):
        """Refuse to start new work after the deadline."""
        remaining = self.remaining()
        if remaining is not None and remaining <= 0:
            raise ExecutionTimeoutError(
                f"Operation timed out after {self.config.timeout}s before the field was resolved."
            )

    async def await_resolver(self, awaitable: Awaitable[Any]) -> Any:
        """
        Await a resolver result, bounded by the deadline plus grace period.

        A resolver that misses the bound keeps running in the background; its
        outcome is discarded.
        """
        remaining = self.remaining()
        if remaining is None:
            return await awaitable

        task = asyncio.ensure_future(awaitable)
        try:
            return await asyncio.wait_for(
                asyncio.shield(task),
                timeout=max(remaining, 0) + self.config.grace_period,
            )
        except asyncio.TimeoutError:
            self.background_tasks.add(task)
            task.add_done_callback(self._discard_background)
            logger.warning(
                f"Resolver exceeded operation timeout of {self.config.timeout}s;"
                f" its result will be discarded"
            )
            raise ExecutionTimeoutError(
                f"Operation timed out after {self.config.timeout}s while resolving the field."
            )

    def _discard_background(self, task: asyncio.Task):
        self.background_tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.debug(f"Discarded error from timed out resolver: {error!r}")
        else:
            logger.debug("Discarded result from timed out resolver")


@dataclass
class ResolveInfo:
    """
    Information passed to every resolver as its second argument.

    resolver(parent, info, **args)
    """
    field_name: str
    field_nodes: list[FieldNode]
    return_type: Any
    parent_type: Any
    path: ResponsePath
    execution: ExecutionContext

    @property
    def context(self) -> Any:
        """The opaque per-request context supplied by the caller."""
        return self.execution.context_value

    @property
    def schema(self) -> SchemaRegistry:
        return self.execution.schema

    @property
    def root_value(self) -> Any:
        return self.execution.root_value

    @property
    def variables(self) -> dict[str, Any]:
        return self.execution.variables

    @property
    def operation(self) -> OperationDefinition:
        return self.execution.operation

    @property
    def fragments(self) -> dict[str, FragmentDefinition]:
        return self.execution.fragments

    @property
    def locations(self) -> list[SourceLocation]:
        return [node.loc for node in self.field_nodes if node.loc is not None]

    def loader(self, name: str) -> BatchLoader:
        """Batch loader registered on the executor under ``name``."""
        return self.execution.loader(name)
