"""
Built-in scalar types: Int, Float, String, Boolean, ID.
"""

from __future__ import annotations

import math
from typing import Any

from .defs import ScalarType
from .errors import ScalarSerializationError

# 32-bit signed range
MAX_INT = 2_147_483_647
MIN_INT = -2_147_483_648


def _is_finite(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def serialize_int(value: Any) -> int:
    if isinstance(value, bool):
        return 1 if value else 0
    try:
        if isinstance(value, int):
            num = value
        elif isinstance(value, float):
            num = int(value)
            if num != value:
                raise ValueError
        elif not value and isinstance(value, str):
            raise ScalarSerializationError("Int cannot represent non-integer value: \"\"")
        else:
            num = int(value)
            if num != float(value):
                raise ValueError
    except (OverflowError, ValueError, TypeError) as error:
        raise ScalarSerializationError(f"Int cannot represent non-integer value: {value!r}") from error
    if not MIN_INT <= num <= MAX_INT:
        raise ScalarSerializationError(
            f"Int cannot represent non 32-bit signed integer value: {value!r}"
        )
    return num


def coerce_int(value: Any) -> int:
    if not (isinstance(value, int) and not isinstance(value, bool)):
        if isinstance(value, float) and value.is_integer():
            value = int(value)
        else:
            raise ValueError(f"Int cannot represent non-integer value: {value!r}")
    if not MIN_INT <= value <= MAX_INT:
        raise ValueError(f"Int cannot represent non 32-bit signed integer value: {value!r}")
    return value


def parse_int_literal(node: Any) -> int:
    if node.kind != "int":
        raise ValueError("Int cannot represent non-integer value")
    return coerce_int(int(node.value))


def serialize_float(value: Any) -> float:
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    try:
        num = value if isinstance(value, float) else float(value)
        if not math.isfinite(num):
            raise ValueError
    except (ValueError, TypeError) as error:
        raise ScalarSerializationError(f"Float cannot represent non numeric value: {value!r}") from error
    return num


def coerce_float(value: Any) -> float:
    if not _is_finite(value):
        raise ValueError(f"Float cannot represent non numeric value: {value!r}")
    return float(value)


def parse_float_literal(node: Any) -> float:
    if node.kind not in ("int", "float"):
        raise ValueError("Float cannot represent non numeric value")
    return coerce_float(float(node.value))


def serialize_string(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if _is_finite(value):
        return str(value)
    raise ScalarSerializationError(f"String cannot represent value: {value!r}")


def coerce_string(value: Any) -> str:
    if not isinstance(value, str):
        raise ValueError(f"String cannot represent a non string value: {value!r}")
    return value


def parse_string_literal(node: Any) -> str:
    if node.kind != "string":
        raise ValueError("String cannot represent a non string value")
    return node.value


def serialize_boolean(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if _is_finite(value):
        return value != 0
    raise ScalarSerializationError(f"Boolean cannot represent a non boolean value: {value!r}")


def coerce_boolean(value: Any) -> bool:
    if not isinstance(value, bool):
        raise ValueError(f"Boolean cannot represent a non boolean value: {value!r}")
    return value


def parse_boolean_literal(node: Any) -> bool:
    if node.kind != "boolean":
        raise ValueError("Boolean cannot represent a non boolean value")
    return node.value


def serialize_id(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    raise ScalarSerializationError(f"ID cannot represent value: {value!r}")


def coerce_id(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    raise ValueError(f"ID cannot represent value: {value!r}")


def parse_id_literal(node: Any) -> str:
    if node.kind not in ("string", "int"):
        raise ValueError("ID cannot represent a non-string and non-integer value")
    return node.value


GraphQLInt = ScalarType(
    name="Int",
    serialize=serialize_int,
    parse_value=coerce_int,
    parse_literal=parse_int_literal,
    description="32-bit signed integer.",
)

GraphQLFloat = ScalarType(
    name="Float",
    serialize=serialize_float,
    parse_value=coerce_float,
    parse_literal=parse_float_literal,
    description="Double-precision floating point value.",
)

GraphQLString = ScalarType(
    name="String",
    serialize=serialize_string,
    parse_value=coerce_string,
    parse_literal=parse_string_literal,
    description="UTF-8 character sequence.",
)

GraphQLBoolean = ScalarType(
    name="Boolean",
    serialize=serialize_boolean,
    parse_value=coerce_boolean,
    parse_literal=parse_boolean_literal,
    description="true or false.",
)

GraphQLID = ScalarType(
    name="ID",
    serialize=serialize_id,
    parse_value=coerce_id,
    parse_literal=parse_id_literal,
    description="Unique identifier, serialized as a string.",
)

SPECIFIED_SCALARS: dict[str, ScalarType] = {
    scalar.name: scalar
    for scalar in (GraphQLInt, GraphQLFloat, GraphQLString, GraphQLBoolean, GraphQLID)
}
