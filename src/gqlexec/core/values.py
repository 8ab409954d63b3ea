"""
Input value coercion.

- coerce_variable_values: raw request variables -> internal values
- coerce_argument_values: field arguments (literals or $variables) -> kwargs
- get_directive_values: @skip / @include arguments
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Mapping
from typing import Any, Optional

from .defs import (
    UNSET,
    ArgumentDefinition,
    EnumType,
    GraphType,
    InputObjectType,
    ListType,
    NonNullType,
    ScalarType,
    parse_type_ref,
)
from .errors import ArgumentCoercionError, SchemaError
from .scalars import GraphQLBoolean
from .query_types import (
    ArgumentNode,
    DirectiveNode,
    FieldNode,
    VariableDefinition,
)

__all__ = [
    "coerce_input_value",
    "coerce_argument_values",
    "coerce_variable_values",
    "get_directive_values",
    "value_from_ast",
    "value_from_ast_untyped",
]


def coerce_input_value(value: Any, type_: GraphType, where: str = "value") -> Any:
    """
    Coerce a JSON-like input value (from variables) against an input type.

    Raises:
        ArgumentCoercionError: if the value does not fit the type
    """
    if isinstance(type_, NonNullType):
        if value is None:
            raise ArgumentCoercionError(f"Expected non-nullable type '{type_}' not to be null at {where}.")
        return coerce_input_value(value, type_.of_type, where)

    if value is None:
        return None

    if isinstance(type_, ListType):
        item_type = type_.of_type
        if isinstance(value, Iterable) and not isinstance(value, (str, bytes, Mapping)):
            return [
                coerce_input_value(item, item_type, f"{where}[{index}]")
                for index, item in enumerate(value)
            ]
        # A single item is accepted as a list of one
        return [coerce_input_value(value, item_type, where)]

    if isinstance(type_, InputObjectType):
        if not isinstance(value, Mapping):
            raise ArgumentCoercionError(f"Expected type '{type_}' to be an object at {where}.")
        coerced = {}
        for field_name, input_field in type_.fields.items():
            if field_name in value:
                coerced[field_name] = coerce_input_value(
                    value[field_name], input_field.type, f"{where}.{field_name}"
                )
            elif input_field.has_default:
                coerced[field_name] = input_field.default_value
            elif isinstance(input_field.type, NonNullType):
                raise ArgumentCoercionError(
                    f"Field '{field_name}' of required type '{input_field.type}' was not provided at {where}."
                )
        for field_name in value:
            if field_name not in type_.fields:
                raise ArgumentCoercionError(
                    f"Field '{field_name}' is not defined by type '{type_}' at {where}."
                )
        return coerced

    if isinstance(type_, EnumType):
        try:
            return type_.parse_name(value)
        except ValueError as error:
            raise ArgumentCoercionError(f"{error} At {where}.") from error

    if isinstance(type_, ScalarType):
        try:
            parsed = type_.parse_value(value)
        except (ValueError, TypeError) as error:
            raise ArgumentCoercionError(f"Expected type '{type_}' at {where}. {error}") from error
        if parsed is None or (isinstance(parsed, float) and math.isnan(parsed)):
            raise ArgumentCoercionError(f"Expected type '{type_}' at {where}.")
        return parsed

    raise SchemaError(f"Type '{type_}' is not an input type")


def value_from_ast_untyped(node: Any, variables: Optional[Mapping[str, Any]] = None) -> Any:
    """Plain Python value of a literal, without a type to guide it."""
    kind = node.kind
    if kind == "null":
        return None
    if kind == "int":
        return int(node.value)
    if kind == "float":
        return float(node.value)
    if kind in ("string", "enum", "boolean"):
        return node.value
    if kind == "list":
        return [value_from_ast_untyped(item, variables) for item in node.values]
    if kind == "object":
        return {field.name: value_from_ast_untyped(field.value, variables) for field in node.fields}
    if kind == "variable":
        return (variables or {}).get(node.name)
    raise ArgumentCoercionError(f"Unexpected value node: {kind}")


def _is_missing_variable(node: Any, variables: Mapping[str, Any]) -> bool:
    return node.kind == "variable" and node.name not in variables


def value_from_ast(node: Any, type_: GraphType, variables: Mapping[str, Any]) -> Any:
    """
    Coerce a literal (or variable reference) against an input type.

    Returns UNSET when the value is a reference to a variable that was not
    provided, so callers can fall back to defaults.

    Raises:
        ArgumentCoercionError: if the literal does not fit the type
    """
    if node is None:
        return UNSET

    if node.kind == "variable":
        if node.name not in variables:
            return UNSET
        value = variables[node.name]
        if value is None and isinstance(type_, NonNullType):
            raise ArgumentCoercionError(
                f"Variable '${node.name}' of non-null type '{type_}' must not be null.", node
            )
        # Variables are coerced once at operation start
        return value

    if isinstance(type_, NonNullType):
        if node.kind == "null":
            raise ArgumentCoercionError(f"Expected value of type '{type_}', found null.", node)
        return value_from_ast(node, type_.of_type, variables)

    if node.kind == "null":
        return None

    if isinstance(type_, ListType):
        item_type = type_.of_type
        if node.kind == "list":
            items = []
            for item_node in node.values:
                if _is_missing_variable(item_node, variables):
                    if isinstance(item_type, NonNullType):
                        raise ArgumentCoercionError(
                            f"Expected value of type '{item_type}', found missing variable.", item_node
                        )
                    items.append(None)
                    continue
                items.append(value_from_ast(item_node, item_type, variables))
            return items
        value = value_from_ast(node, item_type, variables)
        return UNSET if value is UNSET else [value]

    if isinstance(type_, InputObjectType):
        if node.kind != "object":
            raise ArgumentCoercionError(f"Expected value of type '{type_}', found {node.kind}.", node)
        field_nodes = {field.name: field for field in node.fields}
        for field_name in field_nodes:
            if field_name not in type_.fields:
                raise ArgumentCoercionError(
                    f"Field '{field_name}' is not defined by type '{type_}'.", node
                )
        coerced = {}
        for field_name, input_field in type_.fields.items():
            field_node = field_nodes.get(field_name)
            if field_node is None or _is_missing_variable(field_node.value, variables):
                if input_field.has_default:
                    coerced[field_name] = input_field.default_value
                elif isinstance(input_field.type, NonNullType):
                    raise ArgumentCoercionError(
                        f"Field '{type_}.{field_name}' of required type '{input_field.type}' was not provided.",
                        node,
                    )
                continue
            coerced[field_name] = value_from_ast(field_node.value, input_field.type, variables)
        return coerced

    if isinstance(type_, EnumType):
        if node.kind != "enum":
            raise ArgumentCoercionError(
                f"Enum '{type_}' cannot represent non-enum value: {value_from_ast_untyped(node)!r}.", node
            )
        try:
            return type_.parse_name(node.value)
        except ValueError as error:
            raise ArgumentCoercionError(str(error), node) from error

    if isinstance(type_, ScalarType):
        try:
            if type_.parse_literal is not None:
                result = type_.parse_literal(node)
            else:
                result = type_.parse_value(value_from_ast_untyped(node, variables))
        except (ValueError, TypeError) as error:
            raise ArgumentCoercionError(f"Expected value of type '{type_}'. {error}", node) from error
        if result is None:
            raise ArgumentCoercionError(f"Expected value of type '{type_}'.", node)
        return result

    raise SchemaError(f"Type '{type_}' is not an input type")


def _coerce_arguments(
    arg_defs: Mapping[str, ArgumentDefinition],
    arg_nodes: list[ArgumentNode],
    variables: Mapping[str, Any],
    owner: str,
) -> dict[str, Any]:
    nodes = {arg.name: arg for arg in arg_nodes}
    coerced: dict[str, Any] = {}

    for arg_name, arg_def in arg_defs.items():
        arg_type = arg_def.type
        arg_node = nodes.get(arg_name)

        if arg_node is None or _is_missing_variable(arg_node.value, variables):
            if arg_def.has_default:
                coerced[arg_name] = arg_def.default_value
            elif isinstance(arg_type, NonNullType):
                raise ArgumentCoercionError(
                    f"Argument '{arg_name}' of required type '{arg_type}' was not provided.",
                    arg_node,
                )
            continue

        try:
            value = value_from_ast(arg_node.value, arg_type, variables)
        except ArgumentCoercionError as error:
            raise ArgumentCoercionError(
                f"Argument '{arg_name}' of {owner} has invalid value: {error.message}", arg_node
            ) from error
        coerced[arg_name] = value

    return coerced


def coerce_argument_values(
    field_def: Any,
    field_node: FieldNode,
    variables: Mapping[str, Any],
) -> dict[str, Any]:
    """
    Build the keyword arguments for a resolver call.

    Absent arguments take their declared default; absent arguments without a
    default are omitted (or rejected when non-null).
    """
    return _coerce_arguments(
        field_def.args, field_node.arguments, variables, f"field '{field_def.name}'"
    )


def get_directive_values(
    directive_name: str,
    directives: list[DirectiveNode],
    variables: Mapping[str, Any],
) -> Optional[dict[str, Any]]:
    """Arguments of the first directive with the given name (only @skip/@include are known)."""
    directive = next((d for d in directives if d.name == directive_name), None)
    if directive is None:
        return None
    arg_defs = {"if": ArgumentDefinition(name="if", type=NonNullType(GraphQLBoolean))}
    return _coerce_arguments(arg_defs, directive.arguments, variables, f"directive '@{directive_name}'")


def coerce_variable_values(
    schema: Any,
    definitions: list[VariableDefinition],
    inputs: Optional[Mapping[str, Any]],
) -> dict[str, Any]:
    """
    Coerce request variables against the operation's variable definitions.

    Raises:
        ArgumentCoercionError: for the first variable that does not fit
    """
    inputs = inputs or {}
    coerced: dict[str, Any] = {}

    for definition in definitions:
        name = definition.variable
        try:
            var_type = _resolve_input_type(schema, parse_type_ref(definition.type))
        except SchemaError as error:
            raise ArgumentCoercionError(f"Variable '${name}' has invalid type: {error}", definition) from error

        if name not in inputs:
            if definition.default_value is not None:
                coerced[name] = value_from_ast(definition.default_value, var_type, {})
            elif isinstance(var_type, NonNullType):
                raise ArgumentCoercionError(
                    f"Variable '${name}' of required type '{var_type}' was not provided.", definition
                )
            continue

        try:
            coerced[name] = coerce_input_value(inputs[name], var_type, f"'${name}'")
        except ArgumentCoercionError as error:
            raise ArgumentCoercionError(
                f"Variable '${name}' got invalid value {inputs[name]!r}; {error.message}", definition
            ) from error

    return coerced


def _resolve_input_type(schema: Any, type_ref: GraphType) -> GraphType:
    if isinstance(type_ref, NonNullType):
        return NonNullType(_resolve_input_type(schema, type_ref.of_type))
    if isinstance(type_ref, ListType):
        return ListType(_resolve_input_type(schema, type_ref.of_type))
    named = schema.get_type(type_ref.name)
    if not isinstance(named, (ScalarType, EnumType, InputObjectType)):
        raise SchemaError(f"'{type_ref.name}' is not an input type")
    return named
