"""
Schema compiler - turns a schema description (dict / YAML) into a registry.

Validates the description structure, collects every problem it finds, then
hands the type definitions to SchemaBuilder for the type system checks.

Usage:
    from gqlexec.core.compiler import load_schema_file

    schema = load_schema_file(
        "schema.yaml",
        resolvers={"Query.book": get_book},
        discriminators={"SearchResult": lambda value: value["kind"]},
    )

Example schema.yaml:

    query: Query
    types:
      Query:
        kind: object
        fields:
          book:
            type: Book
            args:
              id: ID!
      Book:
        kind: object
        interfaces: [Node]
        fields:
          id: ID!
          title: String
          genre: Genre
      Node:
        kind: interface
        discriminator: typename
        fields:
          id: ID!
      Genre:
        kind: enum
        values: [FICTION, POETRY]
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Optional

import yaml

from .defs import (
    UNSET,
    ArgumentDefinition,
    EnumType,
    FieldDefinition,
    GraphType,
    InputField,
    InputObjectType,
    InterfaceType,
    ObjectType,
    ScalarType,
    TypeDiscriminator,
    UnionType,
)
from .errors import SchemaError
from .registry import SchemaBuilder, SchemaRegistry, typename_discriminator

TYPE_KINDS = ("object", "interface", "union", "enum", "input", "scalar")
TYPENAME_DISCRIMINATOR = "typename"


@dataclass
class CompilationError:
    """Single compilation error."""
    type_name: Optional[str]
    field: Optional[str]
    message: str

    def __str__(self) -> str:
        parts = []
        if self.type_name:
            parts.append(self.type_name)
        if self.field:
            parts.append(self.field)
        location = ".".join(parts) if parts else "schema"
        return f"[{location}] {self.message}"


@dataclass
class CompilationResult:
    """Result of compilation."""
    success: bool
    schema: Optional[SchemaRegistry] = None
    errors: list[CompilationError] = field(default_factory=list)

    def error_messages(self) -> list[str]:
        """Get all error messages as strings."""
        return [str(e) for e in self.errors]


class SchemaCompiler:
    """
    Compiles a schema description into a SchemaRegistry.

    Performs validation:
    - Every type has a known kind
    - Fields, arguments and input fields have a type reference
    - Unions list their members
    - Resolvers, subscribers and discriminators are callables keyed by
      "Type.field" / "Type"
    Type system rules (references, interfaces, cycles) are left to SchemaBuilder.
    """

    def __init__(
        self,
        resolvers: Optional[dict[str, Callable[..., Any]]] = None,
        discriminators: Optional[dict[str, Any]] = None,
        subscribers: Optional[dict[str, Callable[..., Any]]] = None,
        scalars: Optional[dict[str, ScalarType]] = None,
    ):
        """
        Args:
            resolvers: "Type.field" -> resolver(parent, info, **args)
            discriminators: abstract type name -> callable, or "typename"
            subscribers: "Subscription.field" -> subscriber(root, info, **args)
            scalars: Implementations for custom scalars declared with kind "scalar"
        """
        self.resolvers = dict(resolvers or {})
        self.discriminators = dict(discriminators or {})
        self.subscribers = dict(subscribers or {})
        self.scalars = dict(scalars or {})
        self.errors: list[CompilationError] = []

    def compile(self, data: dict[str, Any]) -> CompilationResult:
        """
        Compile a schema description.

        Returns:
            CompilationResult with either the registry or errors
        """
        self.errors = []

        if not isinstance(data, dict):
            self._add_error("Schema description must be a mapping")
            return CompilationResult(success=False, errors=self.errors)

        types_data = data.get("types") or {}
        if not isinstance(types_data, dict):
            self._add_error("'types' must be a mapping of type name to definition")
            return CompilationResult(success=False, errors=self.errors)

        builder = SchemaBuilder()
        for type_name, type_data in types_data.items():
            type_ = self._compile_type(type_name, type_data)
            if type_ is not None:
                try:
                    builder.add_type(type_)
                except SchemaError as e:
                    self._add_error(str(e), type_name)

        self._bind_callables(builder)

        if self.errors:
            return CompilationResult(success=False, errors=self.errors)

        try:
            schema = builder.build(
                query=data.get("query", "Query"),
                mutation=data.get("mutation"),
                subscription=data.get("subscription"),
            )
        except SchemaError as e:
            self._add_error(str(e))
            return CompilationResult(success=False, errors=self.errors)

        return CompilationResult(success=True, schema=schema)

    def _add_error(
        self,
        message: str,
        type_name: Optional[str] = None,
        field: Optional[str] = None,
    ):
        """Add a compilation error."""
        self.errors.append(CompilationError(
            type_name=type_name,
            field=field,
            message=message,
        ))

    # -------------------------------------------------------------------------
    # Types
    # -------------------------------------------------------------------------

    def _compile_type(self, type_name: str, type_data: Any) -> Optional[GraphType]:
        if not isinstance(type_data, dict):
            self._add_error("Type definition must be a mapping", type_name)
            return None

        kind = type_data.get("kind", "object")
        description = type_data.get("description")

        if kind not in TYPE_KINDS:
            self._add_error(f"Unknown kind '{kind}', expected one of {', '.join(TYPE_KINDS)}", type_name)
            return None

        if kind == "scalar":
            scalar = self.scalars.get(type_name)
            if scalar is not None:
                return scalar
            return ScalarType(name=type_name, description=description)

        if kind == "enum":
            values = type_data.get("values")
            if not values:
                self._add_error("Enum must define values", type_name)
                return None
            return EnumType(name=type_name, values=values, description=description)

        if kind == "union":
            members = type_data.get("types")
            if not members:
                self._add_error("Union must list its member types", type_name)
                return None
            return UnionType(name=type_name, types=list(members), description=description)

        if kind == "input":
            return InputObjectType(
                name=type_name,
                fields=self._compile_input_fields(type_name, type_data.get("fields") or {}),
                description=description,
            )

        fields = self._compile_fields(type_name, type_data.get("fields") or {})
        if kind == "interface":
            return InterfaceType(name=type_name, fields=fields, description=description)
        return ObjectType(
            name=type_name,
            fields=fields,
            interfaces=list(type_data.get("interfaces") or []),
            description=description,
        )

    def _compile_fields(self, type_name: str, fields_data: dict[str, Any]) -> dict[str, FieldDefinition]:
        fields = {}
        for field_name, field_data in fields_data.items():
            if isinstance(field_data, str):
                field_data = {"type": field_data}
            if not isinstance(field_data, dict) or not field_data.get("type"):
                self._add_error("Field must declare a type", type_name, field_name)
                continue
            try:
                fields[field_name] = FieldDefinition(
                    name=field_name,
                    type=field_data["type"],
                    args=self._compile_args(type_name, field_name, field_data.get("args") or {}),
                    description=field_data.get("description"),
                    deprecation_reason=field_data.get("deprecation_reason"),
                )
            except SchemaError as e:
                self._add_error(str(e), type_name, field_name)
        return fields

    def _compile_args(
        self,
        type_name: str,
        field_name: str,
        args_data: dict[str, Any],
    ) -> dict[str, ArgumentDefinition]:
        args = {}
        for arg_name, arg_data in args_data.items():
            if isinstance(arg_data, str):
                arg_data = {"type": arg_data}
            if not isinstance(arg_data, dict) or not arg_data.get("type"):
                self._add_error(f"Argument '{arg_name}' must declare a type", type_name, field_name)
                continue
            args[arg_name] = ArgumentDefinition(
                name=arg_name,
                type=arg_data["type"],
                default_value=arg_data.get("default", UNSET),
                description=arg_data.get("description"),
            )
        return args

    def _compile_input_fields(self, type_name: str, fields_data: dict[str, Any]) -> dict[str, InputField]:
        fields = {}
        for field_name, field_data in fields_data.items():
            if isinstance(field_data, str):
                field_data = {"type": field_data}
            if not isinstance(field_data, dict) or not field_data.get("type"):
                self._add_error("Input field must declare a type", type_name, field_name)
                continue
            try:
                fields[field_name] = InputField(
                    name=field_name,
                    type=field_data["type"],
                    default_value=field_data.get("default", UNSET),
                    description=field_data.get("description"),
                )
            except SchemaError as e:
                self._add_error(str(e), type_name, field_name)
        return fields

    # -------------------------------------------------------------------------
    # Resolvers, subscribers, discriminators
    # -------------------------------------------------------------------------

    def _bind_callables(self, builder: SchemaBuilder):
        for key, resolver in self.resolvers.items():
            target = self._split_key(key, "Resolver")
            if target:
                builder.set_resolver(*target, resolver)

        for key, subscriber in self.subscribers.items():
            target = self._split_key(key, "Subscriber")
            if target:
                builder.set_subscriber(*target, subscriber)

        for type_name, discriminator in self.discriminators.items():
            resolved = self._discriminator(type_name, discriminator)
            if resolved is not None:
                builder.set_discriminator(type_name, resolved)

    def _split_key(self, key: str, what: str) -> Optional[tuple[str, str]]:
        type_name, _, field_name = key.partition(".")
        if not type_name or not field_name:
            self._add_error(f"{what} key '{key}' must look like 'Type.field'")
            return None
        return type_name, field_name

    def _discriminator(self, type_name: str, discriminator: Any) -> Optional[TypeDiscriminator]:
        if discriminator == TYPENAME_DISCRIMINATOR:
            return typename_discriminator()
        if not callable(discriminator):
            self._add_error(
                f"Discriminator must be callable or '{TYPENAME_DISCRIMINATOR}'", type_name
            )
            return None
        return discriminator


def compile_schema(
    data: dict[str, Any],
    resolvers: Optional[dict[str, Callable[..., Any]]] = None,
    discriminators: Optional[dict[str, Any]] = None,
    subscribers: Optional[dict[str, Callable[..., Any]]] = None,
    scalars: Optional[dict[str, ScalarType]] = None,
) -> SchemaRegistry:
    """
    Compile a schema description into a registry.

    Discriminators may also be declared in the description itself
    (``discriminator: typename`` on a union or interface).

    Raises:
        SchemaError: listing every problem found
    """
    discriminators = dict(discriminators or {})
    if isinstance(data, dict):
        for type_name, type_data in (data.get("types") or {}).items():
            if isinstance(type_data, dict) and "discriminator" in type_data:
                discriminators.setdefault(type_name, type_data["discriminator"])

    compiler = SchemaCompiler(
        resolvers=resolvers,
        discriminators=discriminators,
        subscribers=subscribers,
        scalars=scalars,
    )
    result = compiler.compile(data)
    if not result.success:
        raise SchemaError("Invalid schema:\n" + "\n".join(result.error_messages()))
    return result.schema


def load_schema_file(path: Path | str, **kwargs: Any) -> SchemaRegistry:
    """Load a YAML schema description and compile it (see compile_schema)."""
    path = Path(path)
    if not path.exists():
        raise SchemaError(f"Schema file not found: {path}")
    data = yaml.safe_load(path.read_text()) or {}
    return compile_schema(data, **kwargs)
