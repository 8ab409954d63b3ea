"""
AST builders for tests.

The engine consumes an already parsed and validated AST; these helpers build
it the way a parser would, without going through query text.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel

from gqlexec.core.query_types import (
    ArgumentNode,
    BooleanValueNode,
    DirectiveNode,
    Document,
    EnumValueNode,
    FieldNode,
    FloatValueNode,
    FragmentDefinition,
    FragmentSpreadNode,
    InlineFragmentNode,
    IntValueNode,
    ListValueNode,
    NullValueNode,
    ObjectFieldNode,
    ObjectValueNode,
    OperationDefinition,
    SourceLocation,
    StringValueNode,
    VariableDefinition,
    VariableNode,
)


def var(name: str) -> VariableNode:
    return VariableNode(name=name)


def enum(value: str) -> EnumValueNode:
    return EnumValueNode(value=value)


def lit(value: Any):
    """Value node for a plain Python value (nodes pass through)."""
    if isinstance(value, BaseModel):
        return value
    if value is None:
        return NullValueNode()
    if isinstance(value, bool):
        return BooleanValueNode(value=value)
    if isinstance(value, int):
        return IntValueNode(value=str(value))
    if isinstance(value, float):
        return FloatValueNode(value=repr(value))
    if isinstance(value, str):
        return StringValueNode(value=value)
    if isinstance(value, (list, tuple)):
        return ListValueNode(values=[lit(item) for item in value])
    if isinstance(value, dict):
        return ObjectValueNode(
            fields=[ObjectFieldNode(name=key, value=lit(item)) for key, item in value.items()]
        )
    raise TypeError(f"No literal for {value!r}")


def directive(name: str, **args: Any) -> DirectiveNode:
    return DirectiveNode(
        name=name,
        arguments=[ArgumentNode(name=key, value=lit(value)) for key, value in args.items()],
    )


def skip(condition: Any) -> DirectiveNode:
    return directive("skip", **{"if": condition})


def include(condition: Any) -> DirectiveNode:
    return directive("include", **{"if": condition})


def field(
    name: str,
    *selections: Any,
    alias: Optional[str] = None,
    args: Optional[dict[str, Any]] = None,
    directives: Optional[list[DirectiveNode]] = None,
    loc: Optional[tuple[int, int]] = None,
) -> FieldNode:
    return FieldNode(
        name=name,
        alias=alias,
        arguments=[ArgumentNode(name=key, value=lit(value)) for key, value in (args or {}).items()],
        directives=directives or [],
        selection_set=list(selections),
        loc=SourceLocation(line=loc[0], column=loc[1]) if loc else None,
    )


def inline(type_condition: Optional[str], *selections: Any, directives=None) -> InlineFragmentNode:
    return InlineFragmentNode(
        type_condition=type_condition,
        selection_set=list(selections),
        directives=directives or [],
    )


def spread(name: str, directives=None) -> FragmentSpreadNode:
    return FragmentSpreadNode(name=name, directives=directives or [])


def fragment(name: str, type_condition: str, *selections: Any) -> FragmentDefinition:
    return FragmentDefinition(name=name, type_condition=type_condition, selection_set=list(selections))


def vardef(name: str, type_: str, default: Any = None) -> VariableDefinition:
    return VariableDefinition(
        variable=name,
        type=type_,
        default_value=None if default is None else lit(default),
    )


def operation(
    kind: str,
    *selections: Any,
    name: Optional[str] = None,
    variables: Optional[list[VariableDefinition]] = None,
) -> OperationDefinition:
    return OperationDefinition(
        operation=kind,
        name=name,
        variable_definitions=variables or [],
        selection_set=list(selections),
    )


def query(*selections: Any, **kwargs: Any) -> OperationDefinition:
    return operation("query", *selections, **kwargs)


def mutation(*selections: Any, **kwargs: Any) -> OperationDefinition:
    return operation("mutation", *selections, **kwargs)


def subscription(*selections: Any, **kwargs: Any) -> OperationDefinition:
    return operation("subscription", *selections, **kwargs)


def doc(*definitions: Any) -> Document:
    """Document from operations and fragment definitions (any order)."""
    return Document(
        operations=[d for d in definitions if isinstance(d, OperationDefinition)],
        fragments=[d for d in definitions if isinstance(d, FragmentDefinition)],
    )
