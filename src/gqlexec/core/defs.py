"""
Core dataclass definitions for the gqlexec type system.

Named types (scalars, objects, interfaces, unions, enums, input objects) are
registered with a SchemaBuilder. Wrapping types (ListType, NonNullType) and
type references such as ``"[Book!]!"`` may point at named types by name; the
builder resolves them once, at build time.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Union

from .errors import ScalarSerializationError, SchemaError


class _Unset:
    """Sentinel for "no default value" (None is a valid default)."""

    _instance: Optional["_Unset"] = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET: Any = _Unset()


class GraphType:
    """Base class for every type in the type system."""

    name: str

    def __str__(self) -> str:
        return self.name


# =============================================================================
# Wrapping types
# =============================================================================


@dataclass(eq=False)
class NamedTypeRef(GraphType):
    """Unresolved reference to a named type."""
    name: str

    def __str__(self) -> str:
        return self.name


@dataclass(eq=False)
class ListType(GraphType):
    """List of exactly one inner type."""
    of_type: Any

    def __post_init__(self):
        if self.of_type is None:
            raise SchemaError("List must wrap a type")
        self.of_type = as_type_ref(self.of_type)

    @property
    def name(self) -> str:  # type: ignore[override]
        return f"[{self.of_type}]"

    def __str__(self) -> str:
        return self.name


@dataclass(eq=False)
class NonNullType(GraphType):
    """Non-null wrapper; never wraps another NonNullType."""
    of_type: Any

    def __post_init__(self):
        if self.of_type is None:
            raise SchemaError("NonNull must wrap a type")
        self.of_type = as_type_ref(self.of_type)
        if isinstance(self.of_type, NonNullType):
            raise SchemaError(f"NonNull cannot wrap NonNull type {self.of_type}")

    @property
    def name(self) -> str:  # type: ignore[override]
        return f"{self.of_type}!"

    def __str__(self) -> str:
        return self.name


_TYPE_REF_TOKEN = re.compile(r"\s*(\[|\]|!|[_A-Za-z][_0-9A-Za-z]*)")


def parse_type_ref(source: str) -> GraphType:
    """
    Parse a type reference string.

    "Book" -> NamedTypeRef("Book")
    "[Book!]!" -> NonNullType(ListType(NonNullType(NamedTypeRef("Book"))))
    """
    tokens = []
    pos = 0
    text = source.rstrip()
    while pos < len(text):
        match = _TYPE_REF_TOKEN.match(text, pos)
        if not match:
            raise SchemaError(f"Invalid type reference: {source!r}")
        tokens.append(match.group(1))
        pos = match.end()

    def parse(index: int) -> tuple[GraphType, int]:
        if index >= len(tokens):
            raise SchemaError(f"Invalid type reference: {source!r}")
        token = tokens[index]
        if token == "[":
            inner, index = parse(index + 1)
            if index >= len(tokens) or tokens[index] != "]":
                raise SchemaError(f"Unclosed list in type reference: {source!r}")
            type_ref: GraphType = ListType(inner)
            index += 1
        elif token in ("]", "!"):
            raise SchemaError(f"Invalid type reference: {source!r}")
        else:
            type_ref = NamedTypeRef(token)
            index += 1
        if index < len(tokens) and tokens[index] == "!":
            type_ref = NonNullType(type_ref)
            index += 1
        return type_ref, index

    type_ref, end = parse(0)
    if end != len(tokens):
        raise SchemaError(f"Invalid type reference: {source!r}")
    return type_ref


def as_type_ref(value: Any) -> GraphType:
    """Accept a type object or a type reference string."""
    if isinstance(value, str):
        return parse_type_ref(value)
    if isinstance(value, GraphType):
        return value
    raise SchemaError(f"Expected a type or type reference, got {value!r}")


def get_named_type(type_: GraphType) -> GraphType:
    """Unwrap List/NonNull wrappers."""
    while isinstance(type_, (ListType, NonNullType)):
        type_ = type_.of_type
    return type_


def get_nullable_type(type_: GraphType) -> GraphType:
    if isinstance(type_, NonNullType):
        return type_.of_type
    return type_


# =============================================================================
# Named types
# =============================================================================


@dataclass(eq=False)
class ScalarType(GraphType):
    """
    Leaf type with custom serialization.

    serialize: internal value -> output value (raise or return None on failure)
    parse_value: variable value -> internal value
    parse_literal: AST value node -> internal value (defaults to parse_value
        applied to the plain literal)
    """
    name: str
    serialize: Callable[[Any], Any] = field(default=lambda value: value)
    parse_value: Callable[[Any], Any] = field(default=lambda value: value)
    parse_literal: Optional[Callable[[Any], Any]] = None
    description: Optional[str] = None

    def __str__(self) -> str:
        return self.name


@dataclass(eq=False)
class EnumType(GraphType):
    """
    Enum type. ``values`` maps enum names to internal values; a list of names
    maps every name to itself.
    """
    name: str
    values: dict[str, Any] = field(default_factory=dict)
    description: Optional[str] = None

    def __post_init__(self):
        if isinstance(self.values, (list, tuple)):
            self.values = {value: value for value in self.values}
        else:
            self.values = dict(self.values)

    def serialize(self, value: Any) -> str:
        for enum_name, internal in self.values.items():
            if internal == value:
                return enum_name
        if isinstance(value, str) and value in self.values:
            return value
        raise ScalarSerializationError(
            f"Enum '{self.name}' cannot represent value: {value!r}"
        )

    def parse_name(self, enum_name: Any) -> Any:
        if not isinstance(enum_name, str) or enum_name not in self.values:
            raise ValueError(f"Value '{enum_name}' does not exist in '{self.name}' enum.")
        return self.values[enum_name]

    def __str__(self) -> str:
        return self.name


@dataclass(eq=False)
class ArgumentDefinition:
    """Argument of a field or directive."""
    name: str
    type: Any
    default_value: Any = UNSET
    description: Optional[str] = None

    def __post_init__(self):
        self.type = as_type_ref(self.type)

    @property
    def has_default(self) -> bool:
        return self.default_value is not UNSET


@dataclass(eq=False)
class FieldDefinition:
    """
    Output field of an object or interface.

    ``resolver(parent, info, **args)`` produces the value (may return an
    awaitable). ``subscriber(root, info, **args)`` produces an async iterable
    of events for subscription root fields.
    """
    name: str
    type: Any
    args: dict[str, ArgumentDefinition] = field(default_factory=dict)
    resolver: Optional[Callable[..., Any]] = None
    subscriber: Optional[Callable[..., Any]] = None
    description: Optional[str] = None
    deprecation_reason: Optional[str] = None

    def __post_init__(self):
        self.type = as_type_ref(self.type)
        self.args = _by_name(self.args, ArgumentDefinition, "argument")


@dataclass(eq=False)
class InputField:
    """Field of an input object."""
    name: str
    type: Any
    default_value: Any = UNSET
    description: Optional[str] = None

    def __post_init__(self):
        self.type = as_type_ref(self.type)

    @property
    def has_default(self) -> bool:
        return self.default_value is not UNSET


# Discriminator: runtime value -> concrete object type name
TypeDiscriminator = Callable[[Any], Optional[str]]


@dataclass(eq=False)
class ObjectType(GraphType):
    """Object type with an ordered mapping of fields."""
    name: str
    fields: dict[str, FieldDefinition] = field(default_factory=dict)
    interfaces: list[str] = field(default_factory=list)
    description: Optional[str] = None

    def __post_init__(self):
        self.fields = _by_name(self.fields, FieldDefinition, "field")
        self.interfaces = [str(i) for i in self.interfaces]

    def __str__(self) -> str:
        return self.name


@dataclass(eq=False)
class InterfaceType(GraphType):
    """
    Interface type. ``possible_types`` is filled in by the registry with the
    names of every implementing object type.
    """
    name: str
    fields: dict[str, FieldDefinition] = field(default_factory=dict)
    discriminator: Optional[TypeDiscriminator] = None
    description: Optional[str] = None
    possible_types: frozenset[str] = frozenset()

    def __post_init__(self):
        self.fields = _by_name(self.fields, FieldDefinition, "field")

    def __str__(self) -> str:
        return self.name


@dataclass(eq=False)
class UnionType(GraphType):
    """Union of object types."""
    name: str
    types: list[str] = field(default_factory=list)
    discriminator: Optional[TypeDiscriminator] = None
    description: Optional[str] = None

    def __post_init__(self):
        self.types = [str(t) for t in self.types]

    @property
    def possible_types(self) -> frozenset[str]:
        return frozenset(self.types)

    def __str__(self) -> str:
        return self.name


@dataclass(eq=False)
class InputObjectType(GraphType):
    """Input object type."""
    name: str
    fields: dict[str, InputField] = field(default_factory=dict)
    description: Optional[str] = None

    def __post_init__(self):
        self.fields = _by_name(self.fields, InputField, "input field")

    def __str__(self) -> str:
        return self.name


NamedType = Union[ScalarType, EnumType, ObjectType, InterfaceType, UnionType, InputObjectType]
AbstractType = Union[InterfaceType, UnionType]
LEAF_TYPES = (ScalarType, EnumType)
ABSTRACT_TYPES = (InterfaceType, UnionType)
INPUT_TYPES = (ScalarType, EnumType, InputObjectType)
OUTPUT_TYPES = (ScalarType, EnumType, ObjectType, InterfaceType, UnionType)


def _by_name(items: Any, item_cls: type, what: str) -> dict[str, Any]:
    """Normalize a list of definitions into an ordered name -> definition dict."""
    if isinstance(items, dict):
        result = {}
        for name, item in items.items():
            if not isinstance(item, item_cls):
                # Shorthand: {"title": "String!"}
                item = item_cls(name=name, type=item)
            elif item.name != name:
                raise SchemaError(f"{what.capitalize()} '{item.name}' registered as '{name}'")
            result[name] = item
        return result

    result = {}
    for item in items or []:
        if item.name in result:
            raise SchemaError(f"Duplicate {what} '{item.name}'")
        result[item.name] = item
    return result
