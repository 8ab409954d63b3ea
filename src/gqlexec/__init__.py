"""
gqlexec - GraphQL query execution engine.

Executes a validated operation AST against a schema registry:
- Concurrent resolution of sibling fields, serial mutation roots
- Null propagation with one error per failure
- Union/interface resolution through explicit discriminators
- Per-operation batch loaders (N+1 avoidance)

Usage:
    from gqlexec import Executor, ObjectType, SchemaBuilder

    builder = SchemaBuilder()
    builder.add_type(ObjectType("Query", fields={"hello": "String!"}))
    builder.set_resolver("Query", "hello", lambda parent, info: "world")
    schema = builder.build()

    result = await Executor(schema).execute(document)
    result.formatted  # {"data": {"hello": "world"}}
"""

from __future__ import annotations

from .config import ExecutorConfig, load_config
from .core import (
    UNSET,
    AmbiguousTypeError,
    ArgumentCoercionError,
    ArgumentDefinition,
    BatchSizeMismatchError,
    DepthLimitError,
    Document,
    EnumType,
    ErrorObject,
    ExecutionTimeoutError,
    FieldDefinition,
    FieldError,
    GraphExecError,
    GraphQLBoolean,
    GraphQLFloat,
    GraphQLID,
    GraphQLInt,
    GraphQLString,
    InputField,
    InputObjectType,
    InterfaceType,
    ListCoercionError,
    ListType,
    NonNullSafetyError,
    NonNullType,
    ObjectType,
    OperationError,
    ResolverError,
    ScalarSerializationError,
    ScalarType,
    SchemaBuilder,
    SchemaError,
    SchemaRegistry,
    ServiceError,
    UnionType,
    UnknownFieldError,
    compile_schema,
    load_schema_file,
    typename_discriminator,
)
from .runtime import (
    BatchLoader,
    ExecutionResult,
    Executor,
    ResolveInfo,
    ServiceClient,
    SubscriptionExecutor,
    execute_operation,
)

__version__ = "0.1.0"

__all__ = [
    # Config
    "ExecutorConfig",
    "load_config",
    # Type system
    "UNSET",
    "ScalarType",
    "EnumType",
    "ObjectType",
    "InterfaceType",
    "UnionType",
    "InputObjectType",
    "ListType",
    "NonNullType",
    "FieldDefinition",
    "ArgumentDefinition",
    "InputField",
    "GraphQLInt",
    "GraphQLFloat",
    "GraphQLString",
    "GraphQLBoolean",
    "GraphQLID",
    # Registry
    "SchemaBuilder",
    "SchemaRegistry",
    "typename_discriminator",
    "compile_schema",
    "load_schema_file",
    # AST / results
    "Document",
    "ErrorObject",
    "ExecutionResult",
    # Errors
    "GraphExecError",
    "SchemaError",
    "OperationError",
    "ServiceError",
    "FieldError",
    "ResolverError",
    "ArgumentCoercionError",
    "ScalarSerializationError",
    "ListCoercionError",
    "AmbiguousTypeError",
    "UnknownFieldError",
    "BatchSizeMismatchError",
    "ExecutionTimeoutError",
    "DepthLimitError",
    "NonNullSafetyError",
    # Runtime
    "Executor",
    "execute_operation",
    "SubscriptionExecutor",
    "ResolveInfo",
    "BatchLoader",
    "ServiceClient",
]
