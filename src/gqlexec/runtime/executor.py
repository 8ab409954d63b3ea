"""
Executor - runs one operation against the schema registry.

Handles:
- Operation selection and variable coercion
- Concurrent execution of sibling fields (serial for mutation roots)
- Value completion: non-null, lists, leaves, objects, unions/interfaces
- Error containment and null propagation
- Operation timeout
"""

from __future__ import annotations

import asyncio
import dataclasses
import inspect
import logging
from collections.abc import Iterable, Mapping
from typing import Any, Optional

from ..config import ExecutorConfig
from ..core.defs import (
    ABSTRACT_TYPES,
    LEAF_TYPES,
    GraphType,
    ListType,
    NonNullType,
    ObjectType,
)
from ..core.errors import (
    ArgumentCoercionError,
    DepthLimitError,
    ListCoercionError,
    NonNullSafetyError,
    OperationError,
    ScalarSerializationError,
    UnknownFieldError,
)
from ..core.query_types import Document, ErrorObject, FieldNode
from ..core.registry import SchemaRegistry
from ..core.values import coerce_argument_values, coerce_variable_values
from .assembler import (
    NULL,
    ExecutionResult,
    ListResult,
    ObjectResult,
    ResponseAssembler,
    ResultNode,
    ScalarResult,
)
from .context import ExecutionContext, ResolveInfo
from .loader import BatchFn, LoaderRegistry
from .path import ResponsePath, root_path
from .planner import FieldGroups, SelectionPlanner
from .subscription import SubscriptionExecutor

logger = logging.getLogger(__name__)

TYPENAME_FIELD = "__typename"


class Executor:
    """
    Executes operations against a schema registry.

    Usage:
        executor = Executor(schema, loaders={"authors": load_authors})
        result = await executor.execute(document, variables={"id": 1}, context=request_ctx)
        result.formatted  # {"data": {...}, "errors": [...]}
    """

    def __init__(
        self,
        schema: SchemaRegistry,
        *,
        config: Optional[ExecutorConfig] = None,
        loaders: Optional[dict[str, BatchFn]] = None,
    ):
        """
        Initialize executor.

        Args:
            schema: Built schema registry (shared read-only)
            config: Limits and error reporting (defaults: no timeout, no depth limit)
            loaders: Batch functions by name; every operation gets fresh
                BatchLoader instances for them (see ResolveInfo.loader)
        """
        self.schema = schema
        self.config = config or ExecutorConfig()
        self.loaders = dict(loaders or {})
        self.assembler = ResponseAssembler()
        # Timed-out resolvers left to finish; outlives each ExecutionContext
        self.background_tasks: set[asyncio.Task] = set()

    # -------------------------------------------------------------------------
    # Entry points
    # -------------------------------------------------------------------------

    async def execute(
        self,
        document: Document,
        *,
        variables: Optional[Mapping[str, Any]] = None,
        root_value: Any = None,
        context: Any = None,
        operation_name: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> ExecutionResult:
        """
        Execute one operation of the document.

        Request errors (unknown operation, missing root type, invalid
        variables) produce data=None and a single error; no resolver runs.
        """
        try:
            ctx = self.build_context(
                document,
                variables=variables,
                root_value=root_value,
                context=context,
                operation_name=operation_name,
                timeout=timeout,
            )
        except (OperationError, ArgumentCoercionError) as e:
            return self.request_error(e)
        return await self.execute_context(ctx)

    async def subscribe(self, document: Document, **kwargs: Any):
        """Async iterator of results, one per subscription event."""
        async for result in SubscriptionExecutor(self).subscribe(document, **kwargs):
            yield result

    def build_context(
        self,
        document: Document,
        *,
        variables: Optional[Mapping[str, Any]] = None,
        root_value: Any = None,
        context: Any = None,
        operation_name: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> ExecutionContext:
        """
        Select the operation and coerce variables.

        Raises:
            OperationError: if the operation cannot be selected or has no root type
            ArgumentCoercionError: if a variable does not fit its definition
        """
        operation = document.get_operation(operation_name)
        if operation is None:
            if operation_name:
                raise OperationError(f"Unknown operation named '{operation_name}'.")
            if not document.operations:
                raise OperationError("Document does not contain an operation.")
            raise OperationError("Must provide operation name if document contains multiple operations.")

        if self.schema.root_type(operation.operation) is None:
            raise OperationError(f"Schema is not configured to execute {operation.operation} operation.")

        coerced = coerce_variable_values(self.schema, operation.variable_definitions, variables)

        timeout = timeout if timeout is not None else self.config.timeout
        deadline = None
        if timeout is not None:
            deadline = asyncio.get_running_loop().time() + timeout

        config = self.config
        if timeout != config.timeout:
            config = dataclasses.replace(config, timeout=timeout)

        return ExecutionContext(
            schema=self.schema,
            operation=operation,
            fragments=document.fragment_map(),
            variables=coerced,
            context_value=context,
            root_value=root_value,
            config=config,
            loaders=LoaderRegistry(self.loaders, max_batch_size=config.max_batch_size),
            deadline=deadline,
            background_tasks=self.background_tasks,
        )

    def request_error(self, error: Exception) -> ExecutionResult:
        message = getattr(error, "message", None) or str(error)
        node = getattr(error, "node", None)
        loc = getattr(node, "loc", None)
        return ExecutionResult.model_construct(
            data=None,
            errors=[ErrorObject(message=message, locations=[loc] if loc else None)],
        )

    async def execute_context(self, ctx: ExecutionContext) -> ExecutionResult:
        """Execute the prepared operation and assemble the envelope."""
        operation = ctx.operation
        root_type = self.schema.root_type(operation.operation)
        planner = SelectionPlanner(self.schema, ctx.fragments, ctx.variables)
        ctx.planner = planner

        logger.debug(f"Executing {operation.operation} {operation.name or '<anonymous>'}")
        try:
            groups = planner.collect_fields(root_type, operation.selection_set)
        except ArgumentCoercionError as e:
            # @skip/@include on root selections: nothing has run yet
            return self.request_error(e)

        try:
            if operation.operation == "mutation":
                root = await self.execute_fields_serially(ctx, root_type, ctx.root_value, groups, None)
            else:
                root = await self.execute_fields(ctx, root_type, ctx.root_value, groups, None)
        except NonNullSafetyError:
            # Nothing nullable above the failure: the whole data collapses
            root = None

        result = self.assembler.assemble(root, ctx.errors)
        logger.debug(
            f"Finished {operation.operation} {operation.name or '<anonymous>'}"
            f" with {len(ctx.errors)} error(s)"
        )
        return result

    # -------------------------------------------------------------------------
    # Fields
    # -------------------------------------------------------------------------

    async def execute_fields(
        self,
        ctx: ExecutionContext,
        parent_type: ObjectType,
        source: Any,
        groups: FieldGroups,
        path: Optional[ResponsePath],
    ) -> ObjectResult:
        """
        Execute sibling fields concurrently and join them.

        Raises:
            NonNullSafetyError: if a non-null field nulled out (after all
                siblings have settled)
        """
        keys = list(groups)
        results = await asyncio.gather(
            *(
                self.execute_field(ctx, parent_type, source, groups[key], self._child_path(path, key, parent_type))
                for key in keys
            ),
            return_exceptions=True,
        )
        for result in results:
            if isinstance(result, BaseException):
                raise result
        return ObjectResult(dict(zip(keys, results)))

    async def execute_fields_serially(
        self,
        ctx: ExecutionContext,
        parent_type: ObjectType,
        source: Any,
        groups: FieldGroups,
        path: Optional[ResponsePath],
    ) -> ObjectResult:
        """Execute fields one after another, each settling before the next starts."""
        fields: dict[str, ResultNode] = {}
        for key, field_nodes in groups.items():
            fields[key] = await self.execute_field(
                ctx, parent_type, source, field_nodes, self._child_path(path, key, parent_type)
            )
        return ObjectResult(fields)

    @staticmethod
    def _child_path(path: Optional[ResponsePath], key: str, parent_type: ObjectType) -> ResponsePath:
        if path is None:
            return root_path(key, parent_type.name)
        return path.add(key, parent_type.name)

    async def execute_field(
        self,
        ctx: ExecutionContext,
        parent_type: ObjectType,
        source: Any,
        field_nodes: list[FieldNode],
        path: ResponsePath,
    ) -> ResultNode:
        """
        Resolve one field and complete its value.

        Any failure is caught here, reported once, and turned into null
        (re-raised as NonNullSafetyError when the field is non-null).
        """
        field_node = field_nodes[0]
        field_name = field_node.name

        if field_name == TYPENAME_FIELD:
            return ScalarResult(parent_type.name)

        try:
            field_def = self.schema.field_definition(parent_type.name, field_name)
        except UnknownFieldError as e:
            ctx.add_error(e, field_nodes, path)
            return NULL

        return_type = field_def.type
        try:
            ctx.check_deadline()
            self._check_depth(ctx, path)
            args = coerce_argument_values(field_def, field_node, ctx.variables)
            info = ResolveInfo(
                field_name=field_name,
                field_nodes=field_nodes,
                return_type=return_type,
                parent_type=parent_type,
                path=path,
                execution=ctx,
            )
            result = field_def.resolver(source, info, **args)
            if inspect.isawaitable(result):
                result = await ctx.await_resolver(result)
            return await self.complete_value(ctx, return_type, field_nodes, info, path, result)
        except Exception as raw_error:
            return self.handle_field_error(ctx, raw_error, return_type, field_nodes, path)

    def _check_depth(self, ctx: ExecutionContext, path: ResponsePath):
        max_depth = ctx.config.max_depth
        if max_depth is not None and path.field_depth > max_depth:
            raise DepthLimitError(f"Field exceeds the maximum query depth of {max_depth}.")

    def handle_field_error(
        self,
        ctx: ExecutionContext,
        raw_error: Exception,
        return_type: GraphType,
        field_nodes: list[FieldNode],
        path: ResponsePath,
    ) -> ResultNode:
        """
        Report an error (once) and apply null propagation.

        Errors bubbling up from a non-null descendant were reported where they
        happened; they only continue to bubble.
        """
        if isinstance(raw_error, NonNullSafetyError) and raw_error.reported:
            bubble = raw_error
        else:
            ctx.add_error(raw_error, field_nodes, path)
            if isinstance(raw_error, NonNullSafetyError):
                bubble = raw_error
            else:
                bubble = NonNullSafetyError(str(raw_error), path=path.as_list())
            bubble.reported = True

        if isinstance(return_type, NonNullType):
            raise bubble
        return NULL

    # -------------------------------------------------------------------------
    # Value completion
    # -------------------------------------------------------------------------

    async def complete_value(
        self,
        ctx: ExecutionContext,
        return_type: GraphType,
        field_nodes: list[FieldNode],
        info: ResolveInfo,
        path: ResponsePath,
        result: Any,
    ) -> ResultNode:
        """
        Complete a resolved value against its declared type.

        - NonNull: complete the inner type; null is a NonNullSafetyError
        - List: complete every item, preserving order
        - Scalar/Enum: serialize
        - Interface/Union: discriminate, then complete as the concrete object
        - Object: execute the merged sub-selection
        """
        if isinstance(result, Exception):
            raise result

        if isinstance(return_type, NonNullType):
            completed = await self.complete_value(
                ctx, return_type.of_type, field_nodes, info, path, result
            )
            if completed is NULL:
                raise NonNullSafetyError(
                    f"Cannot return null for non-nullable field"
                    f" {info.parent_type.name}.{info.field_name}.",
                    path=path.as_list(),
                )
            return completed

        if result is None:
            return NULL

        if isinstance(return_type, ListType):
            return await self.complete_list_value(ctx, return_type, field_nodes, info, path, result)

        if isinstance(return_type, LEAF_TYPES):
            return self.complete_leaf_value(return_type, result)

        if isinstance(return_type, ABSTRACT_TYPES):
            runtime_type = self.schema.resolve_type(result, return_type)
            return await self.complete_object_value(ctx, runtime_type, field_nodes, path, result)

        if isinstance(return_type, ObjectType):
            return await self.complete_object_value(ctx, return_type, field_nodes, path, result)

        raise TypeError(f"Cannot complete value of unexpected output type: '{return_type}'.")

    async def complete_list_value(
        self,
        ctx: ExecutionContext,
        return_type: ListType,
        field_nodes: list[FieldNode],
        info: ResolveInfo,
        path: ResponsePath,
        result: Any,
    ) -> ListResult:
        """
        Complete every item concurrently.

        Item errors are contained at the item; a non-null item that nulls out
        collapses the whole list.
        """
        if not isinstance(result, Iterable) or isinstance(result, (str, bytes, Mapping)):
            raise ListCoercionError(
                f"Expected Iterable, but did not find one for field"
                f" '{info.parent_type.name}.{info.field_name}'."
            )

        item_type = return_type.of_type

        async def complete_item(index: int, item: Any) -> ResultNode:
            item_path = path.add(index)
            try:
                if inspect.isawaitable(item):
                    item = await ctx.await_resolver(item)
                return await self.complete_value(ctx, item_type, field_nodes, info, item_path, item)
            except Exception as raw_error:
                return self.handle_field_error(ctx, raw_error, item_type, field_nodes, item_path)

        items = await asyncio.gather(
            *(complete_item(index, item) for index, item in enumerate(result)),
            return_exceptions=True,
        )
        for item in items:
            if isinstance(item, BaseException):
                raise item
        return ListResult(list(items))

    def complete_leaf_value(self, return_type: GraphType, result: Any) -> ScalarResult:
        try:
            serialized = return_type.serialize(result)
        except ScalarSerializationError:
            raise
        except Exception as error:
            raise ScalarSerializationError(
                f"Expected a value of type '{return_type}' but received: {result!r}"
            ) from error
        if serialized is None:
            raise ScalarSerializationError(
                f"Expected a value of type '{return_type}' but received: {result!r}"
            )
        return ScalarResult(serialized)

    async def complete_object_value(
        self,
        ctx: ExecutionContext,
        runtime_type: ObjectType,
        field_nodes: list[FieldNode],
        path: ResponsePath,
        result: Any,
    ) -> ObjectResult:
        groups = ctx.planner.collect_subfields(runtime_type, field_nodes)
        return await self.execute_fields(ctx, runtime_type, result, groups, path)


async def execute_operation(
    schema: SchemaRegistry,
    document: Document,
    root_value: Any = None,
    variables: Optional[Mapping[str, Any]] = None,
    context: Any = None,
    *,
    operation_name: Optional[str] = None,
    timeout: Optional[float] = None,
    config: Optional[ExecutorConfig] = None,
    loaders: Optional[dict[str, BatchFn]] = None,
) -> ExecutionResult:
    """
    One-shot execution without keeping an Executor around.

    Usage:
        result = await execute_operation(schema, document, variables={"id": 1})
    """
    executor = Executor(schema, config=config, loaders=loaders)
    return await executor.execute(
        document,
        variables=variables,
        root_value=root_value,
        context=context,
        operation_name=operation_name,
        timeout=timeout,
    )
