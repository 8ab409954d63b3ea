"""
Subscription executor - maps a source event stream to execution results.

The subscriber of the single root field returns an async iterable of events;
every event is executed as a fresh operation with the event as root value.
"""

from __future__ import annotations

import inspect
import logging
from typing import Any, AsyncIterator, Mapping, Optional

from ..core.errors import ArgumentCoercionError, FieldError, OperationError
from ..core.query_types import Document, ErrorObject
from ..core.values import coerce_argument_values
from .assembler import ExecutionResult
from .context import ResolveInfo
from .path import root_path
from .planner import SelectionPlanner

logger = logging.getLogger(__name__)


class SubscriptionExecutor:
    """
    Runs subscription operations on top of an Executor.

    Usage:
        async for result in SubscriptionExecutor(executor).subscribe(document):
            send(result.formatted)
    """

    def __init__(self, executor):
        self.executor = executor

    async def subscribe(
        self,
        document: Document,
        *,
        variables: Optional[Mapping[str, Any]] = None,
        root_value: Any = None,
        context: Any = None,
        operation_name: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> AsyncIterator[ExecutionResult]:
        """
        Yield one result per source event.

        Request errors and subscriber failures yield a single error result
        and end the stream.
        """
        executor = self.executor
        try:
            ctx = executor.build_context(
                document,
                variables=variables,
                root_value=root_value,
                context=context,
                operation_name=operation_name,
                timeout=timeout,
            )
        except (OperationError, ArgumentCoercionError) as e:
            yield executor.request_error(e)
            return

        if ctx.operation.operation != "subscription":
            yield executor.request_error(OperationError("Operation is not a subscription."))
            return

        try:
            stream = await self.create_source_stream(ctx)
        except ArgumentCoercionError as e:
            yield executor.request_error(e)
            return
        except Exception as e:
            yield self.stream_error(ctx, e)
            return

        try:
            async for event in stream:
                ctx = executor.build_context(
                    document,
                    variables=variables,
                    root_value=event,
                    context=context,
                    operation_name=operation_name,
                    timeout=timeout,
                )
                yield await executor.execute_context(ctx)
        finally:
            aclose = getattr(stream, "aclose", None)
            if aclose is not None:
                await aclose()

    async def create_source_stream(self, ctx) -> Any:
        """Call the subscriber of the single root field."""
        schema = ctx.schema
        root_type = schema.subscription_type
        planner = SelectionPlanner(schema, ctx.fragments, ctx.variables)
        groups = planner.collect_fields(root_type, ctx.operation.selection_set)
        if len(groups) != 1:
            raise OperationError("Subscription operations must select exactly one root field.")

        response_key, field_nodes = next(iter(groups.items()))
        field_def = schema.field_definition(root_type.name, field_nodes[0].name)
        if field_def.subscriber is None:
            raise OperationError(f"Subscription field '{field_def.name}' has no subscriber.")

        args = coerce_argument_values(field_def, field_nodes[0], ctx.variables)
        info = ResolveInfo(
            field_name=field_def.name,
            field_nodes=field_nodes,
            return_type=field_def.type,
            parent_type=root_type,
            path=root_path(response_key, root_type.name),
            execution=ctx,
        )
        stream = field_def.subscriber(ctx.root_value, info, **args)
        if inspect.isawaitable(stream):
            stream = await stream
        if not hasattr(stream, "__aiter__"):
            raise OperationError(
                f"Subscription field '{field_def.name}' must return an async iterable."
            )
        logger.debug(f"Subscription stream opened for '{field_def.name}'")
        return stream

    def stream_error(self, ctx, error: Exception) -> ExecutionResult:
        if isinstance(error, (FieldError, OperationError)):
            message = getattr(error, "message", None) or str(error)
        else:
            logger.error(f"Subscriber failed: {error!r}", exc_info=error)
            message = ctx.config.internal_error_message
        return ExecutionResult.model_construct(data=None, errors=[ErrorObject(message=message)])
