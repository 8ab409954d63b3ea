"""
Schema registry - the validated type system plus bound resolvers.

Two-phase construction:
1. Register types, resolvers and discriminators on a SchemaBuilder
2. build() checks the type system once and returns an immutable SchemaRegistry

Usage:
    from gqlexec.core.registry import SchemaBuilder

    builder = SchemaBuilder()
    builder.add_type(ObjectType("Book", fields={"title": "String!", "author": "Author"}))
    builder.add_type(ObjectType("Author", fields={"name": "String!"}))
    builder.add_type(ObjectType("Query", fields={"books": "[Book!]!"}))

    @builder.resolver("Query", "books")
    async def resolve_books(root, info):
        return await info.context.db.books()

    schema = builder.build(query="Query")
"""

from __future__ import annotations

import dataclasses
from types import MappingProxyType
from typing import Any, Callable, Literal, Mapping, Optional

from .defs import (
    ABSTRACT_TYPES,
    INPUT_TYPES,
    OUTPUT_TYPES,
    ArgumentDefinition,
    FieldDefinition,
    GraphType,
    InputField,
    InputObjectType,
    InterfaceType,
    ListType,
    NamedTypeRef,
    NonNullType,
    ObjectType,
    TypeDiscriminator,
    UnionType,
    get_named_type,
)
from .errors import AmbiguousTypeError, SchemaError, UnknownFieldError
from .scalars import SPECIFIED_SCALARS

OperationKind = Literal["query", "mutation", "subscription"]

# Introspection entry points are reserved but not served
RESERVED_ROOT_FIELDS = frozenset({"__schema", "__type"})

# Resolvers receive the field arguments as keywords next to positional `info`
RESERVED_ARGUMENT_NAMES = frozenset({"info"})


def default_resolver(parent: Any, info: Any, /, **args: Any) -> Any:
    """
    Resolve a field by mapping key or attribute of the same name.

    Callables found this way are called with the field arguments.
    """
    field_name = info.field_name
    if isinstance(parent, Mapping):
        value = parent.get(field_name)
    else:
        value = getattr(parent, field_name, None)
    if callable(value):
        return value(info, **args)
    return value


def typename_discriminator(default: Optional[str] = None) -> TypeDiscriminator:
    """
    Discriminator reading ``__typename`` from a mapping or attribute.

    Usage:
        UnionType("Resource", types=["Book", "Movie"], discriminator=typename_discriminator())
    """

    def discriminate(value: Any) -> Optional[str]:
        if isinstance(value, Mapping):
            return value.get("__typename", default)
        return getattr(value, "__typename", default)

    return discriminate


def is_subtype(registry: "SchemaRegistry", maybe_subtype: GraphType, super_type: GraphType) -> bool:
    """Covariance check used for interface field return types."""
    if maybe_subtype is super_type:
        return True
    if isinstance(super_type, NonNullType):
        if isinstance(maybe_subtype, NonNullType):
            return is_subtype(registry, maybe_subtype.of_type, super_type.of_type)
        return False
    if isinstance(maybe_subtype, NonNullType):
        return is_subtype(registry, maybe_subtype.of_type, super_type)
    if isinstance(super_type, ListType):
        if isinstance(maybe_subtype, ListType):
            return is_subtype(registry, maybe_subtype.of_type, super_type.of_type)
        return False
    if isinstance(maybe_subtype, ListType):
        return False
    if isinstance(super_type, ABSTRACT_TYPES) and isinstance(maybe_subtype, ObjectType):
        return registry.is_possible_type(super_type, maybe_subtype)
    return False


def same_type(a: GraphType, b: GraphType) -> bool:
    if isinstance(a, (ListType, NonNullType)) or isinstance(b, (ListType, NonNullType)):
        return type(a) is type(b) and same_type(a.of_type, b.of_type)
    return a is b


class SchemaRegistry:
    """
    Immutable, validated type system.

    Built once by SchemaBuilder.build() and shared read-only by every
    concurrent execution.
    """

    def __init__(
        self,
        types: dict[str, GraphType],
        query: ObjectType,
        mutation: Optional[ObjectType] = None,
        subscription: Optional[ObjectType] = None,
    ):
        self._types = MappingProxyType(dict(types))
        self._query = query
        self._mutation = mutation
        self._subscription = subscription

    @property
    def types(self) -> Mapping[str, GraphType]:
        return self._types

    @property
    def query_type(self) -> ObjectType:
        return self._query

    @property
    def mutation_type(self) -> Optional[ObjectType]:
        return self._mutation

    @property
    def subscription_type(self) -> Optional[ObjectType]:
        return self._subscription

    def get_type(self, name: str) -> Optional[GraphType]:
        return self._types.get(name)

    def root_type(self, operation: OperationKind) -> Optional[ObjectType]:
        """Root object type for an operation kind (None if not configured)."""
        if operation == "query":
            return self._query
        if operation == "mutation":
            return self._mutation
        if operation == "subscription":
            return self._subscription
        return None

    def field_definition(self, type_name: str, field_name: str) -> FieldDefinition:
        """
        Look up a field definition.

        Raises:
            UnknownFieldError: if the type has no such field
        """
        if field_name in RESERVED_ROOT_FIELDS:
            raise UnknownFieldError(f"Introspection field '{field_name}' is not supported.")
        type_ = self._types.get(type_name)
        fields = getattr(type_, "fields", None)
        if not isinstance(type_, (ObjectType, InterfaceType)) or field_name not in fields:
            raise UnknownFieldError(f"Cannot query field '{field_name}' on type '{type_name}'.")
        return fields[field_name]

    def possible_types(self, abstract_type: GraphType) -> frozenset[str]:
        if isinstance(abstract_type, ABSTRACT_TYPES):
            return abstract_type.possible_types
        if isinstance(abstract_type, ObjectType):
            return frozenset({abstract_type.name})
        return frozenset()

    def is_possible_type(self, abstract_type: GraphType, object_type: ObjectType) -> bool:
        return object_type.name in self.possible_types(abstract_type)

    def resolve_type(self, value: Any, abstract_type: GraphType) -> ObjectType:
        """
        Determine the concrete object type of a union/interface value.

        Raises:
            AmbiguousTypeError: if the discriminator returns a type that is
                not a member/implementer of the abstract type
        """
        discriminator = getattr(abstract_type, "discriminator", None)
        if discriminator is None:
            raise AmbiguousTypeError(
                f"Abstract type '{abstract_type}' has no discriminator."
            )
        type_name = discriminator(value)
        if isinstance(type_name, ObjectType):
            type_name = type_name.name
        if not isinstance(type_name, str):
            raise AmbiguousTypeError(
                f"Abstract type '{abstract_type}' must resolve to an object type at runtime."
                f" Discriminator returned {type_name!r}."
            )
        runtime_type = self._types.get(type_name)
        if not isinstance(runtime_type, ObjectType) or not self.is_possible_type(
            abstract_type, runtime_type
        ):
            raise AmbiguousTypeError(
                f"Runtime object type '{type_name}' is not a possible type for '{abstract_type}'."
            )
        return runtime_type

    def __repr__(self) -> str:
        return f"<SchemaRegistry types={len(self._types)} query={self._query.name}>"


class SchemaBuilder:
    """
    Collects type definitions and resolvers, then validates them into a
    SchemaRegistry.

    Resolvers are keyed by (type name, field name) and bound directly onto the
    built field definitions, so no name dispatch happens during execution.
    """

    def __init__(self):
        self._types: dict[str, GraphType] = dict(SPECIFIED_SCALARS)
        self._resolvers: dict[tuple[str, str], Callable[..., Any]] = {}
        self._subscribers: dict[tuple[str, str], Callable[..., Any]] = {}
        self._discriminators: dict[str, TypeDiscriminator] = {}
        self._built = False

    def _check_open(self):
        if self._built:
            raise SchemaError("Schema already built; the registry is immutable")

    def add_type(self, type_: GraphType) -> GraphType:
        """Register a named type."""
        self._check_open()
        if isinstance(type_, (ListType, NonNullType, NamedTypeRef)):
            raise SchemaError(f"Only named types can be registered, got {type_}")
        name = type_.name
        if name.startswith("__"):
            raise SchemaError(f"Type name '{name}' is reserved")
        existing = self._types.get(name)
        if existing is not None and existing is not type_:
            if name in SPECIFIED_SCALARS and existing is SPECIFIED_SCALARS[name]:
                # Overriding a built-in scalar is allowed
                pass
            else:
                raise SchemaError(f"Type '{name}' is already registered")
        self._types[name] = type_
        return type_

    def add_types(self, *types: GraphType):
        for type_ in types:
            self.add_type(type_)

    def set_resolver(self, type_name: str, field_name: str, resolver: Callable[..., Any]):
        self._check_open()
        self._resolvers[(type_name, field_name)] = resolver

    def resolver(self, type_name: str, field_name: str):
        """Decorator form of set_resolver."""

        def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
            self.set_resolver(type_name, field_name, func)
            return func

        return decorator

    def set_subscriber(self, type_name: str, field_name: str, subscriber: Callable[..., Any]):
        self._check_open()
        self._subscribers[(type_name, field_name)] = subscriber

    def set_discriminator(self, type_name: str, discriminator: TypeDiscriminator):
        self._check_open()
        self._discriminators[type_name] = discriminator

    def build(
        self,
        query: str = "Query",
        mutation: Optional[str] = None,
        subscription: Optional[str] = None,
    ) -> SchemaRegistry:
        """
        Validate the registered types and return the registry.

        Raises:
            SchemaError: if the type system is invalid
        """
        self._check_open()

        # Phase 1: copy named types so the registry owns its definitions
        types: dict[str, GraphType] = {
            name: dataclasses.replace(type_) if dataclasses.is_dataclass(type_) else type_
            for name, type_ in self._types.items()
        }

        # Phase 2: resolve references inside fields, arguments and input fields
        for type_ in types.values():
            if isinstance(type_, (ObjectType, InterfaceType)):
                type_.fields = {
                    name: self._build_field(types, type_, field_def)
                    for name, field_def in type_.fields.items()
                }
                if not type_.fields:
                    raise SchemaError(f"Type '{type_.name}' must define one or more fields")
            elif isinstance(type_, InputObjectType):
                type_.fields = {
                    name: self._build_input_field(types, type_, input_field)
                    for name, input_field in type_.fields.items()
                }
                if not type_.fields:
                    raise SchemaError(f"Input type '{type_.name}' must define one or more fields")

        for type_name, field_name in {**self._resolvers, **self._subscribers}:
            target = types.get(type_name)
            if not isinstance(target, (ObjectType, InterfaceType)) or field_name not in target.fields:
                raise SchemaError(f"Resolver bound to unknown field '{type_name}.{field_name}'")

        # Phase 3: abstract types
        implementers: dict[str, set[str]] = {}
        for type_ in types.values():
            if isinstance(type_, ObjectType):
                for iface_name in type_.interfaces:
                    iface = types.get(iface_name)
                    if not isinstance(iface, InterfaceType):
                        raise SchemaError(
                            f"Type '{type_.name}' implements unknown interface '{iface_name}'"
                        )
                    implementers.setdefault(iface_name, set()).add(type_.name)

        for type_ in types.values():
            if isinstance(type_, InterfaceType):
                type_.possible_types = frozenset(implementers.get(type_.name, ()))
            if isinstance(type_, UnionType):
                if not type_.types:
                    raise SchemaError(f"Union '{type_.name}' must include one or more member types")
                for member in type_.types:
                    if not isinstance(types.get(member), ObjectType):
                        raise SchemaError(
                            f"Union '{type_.name}' can only include object types, got '{member}'"
                        )
            if isinstance(type_, ABSTRACT_TYPES):
                discriminator = self._discriminators.get(type_.name, type_.discriminator)
                if discriminator is None:
                    raise SchemaError(f"Abstract type '{type_.name}' requires a discriminator")
                type_.discriminator = discriminator

        registry = SchemaRegistry(
            types,
            query=self._root(types, query, "query"),
            mutation=self._root(types, mutation, "mutation") if mutation else None,
            subscription=self._root(types, subscription, "subscription") if subscription else None,
        )

        for type_ in types.values():
            if isinstance(type_, ObjectType):
                self._check_implementations(registry, type_)

        self._check_input_cycles(types)

        self._built = True
        return registry

    def _root(self, types: dict[str, GraphType], name: str, kind: str) -> ObjectType:
        root = types.get(name)
        if not isinstance(root, ObjectType):
            raise SchemaError(f"{kind.capitalize()} root type '{name}' must be an object type")
        return root

    def _resolve_ref(self, types: dict[str, GraphType], type_ref: GraphType, where: str) -> GraphType:
        if isinstance(type_ref, NonNullType):
            return NonNullType(self._resolve_ref(types, type_ref.of_type, where))
        if isinstance(type_ref, ListType):
            return ListType(self._resolve_ref(types, type_ref.of_type, where))
        name = type_ref.name
        resolved = types.get(name)
        if resolved is None:
            raise SchemaError(f"{where} references unknown type '{name}'")
        return resolved

    def _build_field(
        self,
        types: dict[str, GraphType],
        parent: GraphType,
        field_def: FieldDefinition,
    ) -> FieldDefinition:
        where = f"Field '{parent.name}.{field_def.name}'"
        if field_def.name.startswith("__"):
            raise SchemaError(f"{where}: names starting with '__' are reserved")
        return_type = self._resolve_ref(types, field_def.type, where)

        if not isinstance(get_named_type(return_type), OUTPUT_TYPES):
            raise SchemaError(f"{where} must have an output type, got '{return_type}'")

        args = {}
        for arg_name, arg in field_def.args.items():
            arg_where = f"Argument '{parent.name}.{field_def.name}({arg_name}:)'"
            if arg_name.startswith("__"):
                raise SchemaError(f"{arg_where}: names starting with '__' are reserved")
            if arg_name in RESERVED_ARGUMENT_NAMES:
                raise SchemaError(f"{arg_where}: '{arg_name}' is reserved for the resolve info")
            arg_type = self._resolve_ref(types, arg.type, arg_where)
            if not isinstance(get_named_type(arg_type), INPUT_TYPES):
                raise SchemaError(f"{arg_where} must have an input type, got '{arg_type}'")
            args[arg_name] = ArgumentDefinition(
                name=arg_name,
                type=arg_type,
                default_value=arg.default_value,
                description=arg.description,
            )

        key = (parent.name, field_def.name)
        return FieldDefinition(
            name=field_def.name,
            type=return_type,
            args=args,
            resolver=self._resolvers.get(key) or field_def.resolver or default_resolver,
            subscriber=self._subscribers.get(key) or field_def.subscriber,
            description=field_def.description,
            deprecation_reason=field_def.deprecation_reason,
        )

    def _build_input_field(
        self,
        types: dict[str, GraphType],
        parent: InputObjectType,
        input_field: InputField,
    ) -> InputField:
        where = f"Input field '{parent.name}.{input_field.name}'"
        field_type = self._resolve_ref(types, input_field.type, where)

        if not isinstance(get_named_type(field_type), INPUT_TYPES):
            raise SchemaError(f"{where} must have an input type, got '{field_type}'")
        return InputField(
            name=input_field.name,
            type=field_type,
            default_value=input_field.default_value,
            description=input_field.description,
        )

    def _check_implementations(self, registry: SchemaRegistry, object_type: ObjectType):
        """Every interface field must be declared with a covariant type and the same arguments."""
        for iface_name in object_type.interfaces:
            iface = registry.get_type(iface_name)
            for field_name, iface_field in iface.fields.items():
                obj_field = object_type.fields.get(field_name)
                where = f"'{object_type.name}.{field_name}'"
                if obj_field is None:
                    raise SchemaError(
                        f"Interface field '{iface_name}.{field_name}' expected but"
                        f" '{object_type.name}' does not provide it"
                    )
                if not is_subtype(registry, obj_field.type, iface_field.type):
                    raise SchemaError(
                        f"Interface field '{iface_name}.{field_name}' expects type"
                        f" '{iface_field.type}' but {where} is type '{obj_field.type}'"
                    )
                for arg_name, iface_arg in iface_field.args.items():
                    obj_arg = obj_field.args.get(arg_name)
                    if obj_arg is None or not same_type(obj_arg.type, iface_arg.type):
                        raise SchemaError(
                            f"Interface field argument '{iface_name}.{field_name}({arg_name}:)'"
                            f" expected but {where} does not provide it with type '{iface_arg.type}'"
                        )
                for arg_name, obj_arg in obj_field.args.items():
                    if arg_name not in iface_field.args and isinstance(obj_arg.type, NonNullType):
                        raise SchemaError(
                            f"Object field {where} includes required argument '{arg_name}'"
                            f" that is missing from the interface field '{iface_name}.{field_name}'"
                        )

    def _check_input_cycles(self, types: dict[str, GraphType]):
        """
        Reject input objects that reference themselves through non-null,
        non-list fields only; no finite value could satisfy them.
        """
        visited: set[str] = set()
        path: list[str] = []
        on_path: dict[str, int] = {}

        def visit(input_type: InputObjectType):
            if input_type.name in visited:
                return
            visited.add(input_type.name)
            on_path[input_type.name] = len(path)
            for input_field in input_type.fields.values():
                field_type = input_field.type
                if not (
                    isinstance(field_type, NonNullType)
                    and isinstance(field_type.of_type, InputObjectType)
                ):
                    continue
                inner = field_type.of_type
                path.append(f"{input_type.name}.{input_field.name}")
                cycle_start = on_path.get(inner.name)
                if cycle_start is not None:
                    raise SchemaError(
                        f"Cannot reference input type '{inner.name}' within itself through"
                        f" a series of non-null fields: {', '.join(path[cycle_start:])}"
                    )
                visit(inner)
                path.pop()
            del on_path[input_type.name]

        for type_ in types.values():
            if isinstance(type_, InputObjectType):
                visit(type_)
