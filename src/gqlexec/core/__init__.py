"""
Core module - type system, schema registry, AST types and value coercion.
"""

from __future__ import annotations

from .compiler import (
    CompilationError,
    CompilationResult,
    SchemaCompiler,
    compile_schema,
    load_schema_file,
)
from .defs import (
    UNSET,
    ArgumentDefinition,
    EnumType,
    FieldDefinition,
    InputField,
    InputObjectType,
    InterfaceType,
    ListType,
    NamedTypeRef,
    NonNullType,
    ObjectType,
    ScalarType,
    UnionType,
    get_named_type,
    get_nullable_type,
    parse_type_ref,
)
from .errors import (
    AmbiguousTypeError,
    ArgumentCoercionError,
    BatchSizeMismatchError,
    DepthLimitError,
    ExecutionTimeoutError,
    FieldError,
    GraphExecError,
    ListCoercionError,
    NonNullSafetyError,
    OperationError,
    ResolverError,
    ScalarSerializationError,
    SchemaError,
    ServiceError,
    UnknownFieldError,
)
from .query_types import (
    ArgumentNode,
    BooleanValueNode,
    DirectiveNode,
    Document,
    EnumValueNode,
    ErrorObject,
    FieldNode,
    FloatValueNode,
    FragmentDefinition,
    FragmentSpreadNode,
    InlineFragmentNode,
    IntValueNode,
    InternalQueryRequest,
    InternalQueryResponse,
    ListValueNode,
    NormalizedFilter,
    NullValueNode,
    ObjectFieldNode,
    ObjectValueNode,
    OperationDefinition,
    SourceLocation,
    StringValueNode,
    VariableDefinition,
    VariableNode,
)
from .registry import SchemaBuilder, SchemaRegistry, default_resolver, typename_discriminator
from .scalars import GraphQLBoolean, GraphQLFloat, GraphQLID, GraphQLInt, GraphQLString

__all__ = [
    # Definitions
    "UNSET",
    "ScalarType",
    "EnumType",
    "ObjectType",
    "InterfaceType",
    "UnionType",
    "InputObjectType",
    "ListType",
    "NonNullType",
    "NamedTypeRef",
    "FieldDefinition",
    "ArgumentDefinition",
    "InputField",
    "parse_type_ref",
    "get_named_type",
    "get_nullable_type",
    # Scalars
    "GraphQLInt",
    "GraphQLFloat",
    "GraphQLString",
    "GraphQLBoolean",
    "GraphQLID",
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
    # AST
    "SourceLocation",
    "VariableNode",
    "IntValueNode",
    "FloatValueNode",
    "StringValueNode",
    "BooleanValueNode",
    "NullValueNode",
    "EnumValueNode",
    "ListValueNode",
    "ObjectFieldNode",
    "ObjectValueNode",
    "ArgumentNode",
    "DirectiveNode",
    "FieldNode",
    "InlineFragmentNode",
    "FragmentSpreadNode",
    "FragmentDefinition",
    "VariableDefinition",
    "OperationDefinition",
    "Document",
    "ErrorObject",
    # Service wire types
    "NormalizedFilter",
    "InternalQueryRequest",
    "InternalQueryResponse",
    # Registry
    "SchemaBuilder",
    "SchemaRegistry",
    "default_resolver",
    "typename_discriminator",
    # Compiler
    "SchemaCompiler",
    "CompilationResult",
    "CompilationError",
    "compile_schema",
    "load_schema_file",
]
