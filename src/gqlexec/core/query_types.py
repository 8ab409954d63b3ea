"""
Pydantic models for the operation AST and the response wire format.

The AST is produced by an external parser/validator. It can be built from
these models directly or validated from its JSON form:

    document = Document.model_validate({
        "operations": [{
            "operation": "query",
            "selection_set": [
                {"kind": "field", "name": "books", "selection_set": [
                    {"kind": "field", "name": "title"},
                ]},
            ],
        }],
    })
"""

from __future__ import annotations

from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class SourceLocation(BaseModel):
    """Line/column of a node in the original query text (1-based)."""
    model_config = ConfigDict(frozen=True)

    line: int
    column: int


# --- Value nodes ---

class VariableNode(BaseModel):
    """Reference to an operation variable: $name."""
    kind: Literal["variable"] = "variable"
    name: str
    loc: Optional[SourceLocation] = None


class IntValueNode(BaseModel):
    kind: Literal["int"] = "int"
    value: str
    loc: Optional[SourceLocation] = None


class FloatValueNode(BaseModel):
    kind: Literal["float"] = "float"
    value: str
    loc: Optional[SourceLocation] = None


class StringValueNode(BaseModel):
    kind: Literal["string"] = "string"
    value: str
    loc: Optional[SourceLocation] = None


class BooleanValueNode(BaseModel):
    kind: Literal["boolean"] = "boolean"
    value: bool
    loc: Optional[SourceLocation] = None


class NullValueNode(BaseModel):
    kind: Literal["null"] = "null"
    loc: Optional[SourceLocation] = None


class EnumValueNode(BaseModel):
    kind: Literal["enum"] = "enum"
    value: str
    loc: Optional[SourceLocation] = None


class ListValueNode(BaseModel):
    kind: Literal["list"] = "list"
    values: list[ValueNode] = Field(default_factory=list)
    loc: Optional[SourceLocation] = None


class ObjectFieldNode(BaseModel):
    name: str
    value: ValueNode
    loc: Optional[SourceLocation] = None


class ObjectValueNode(BaseModel):
    kind: Literal["object"] = "object"
    fields: list[ObjectFieldNode] = Field(default_factory=list)
    loc: Optional[SourceLocation] = None


ValueNode = Annotated[
    Union[
        VariableNode,
        IntValueNode,
        FloatValueNode,
        StringValueNode,
        BooleanValueNode,
        NullValueNode,
        EnumValueNode,
        ListValueNode,
        ObjectValueNode,
    ],
    Field(discriminator="kind"),
]


# --- Selection nodes ---

class ArgumentNode(BaseModel):
    name: str
    value: ValueNode
    loc: Optional[SourceLocation] = None


class DirectiveNode(BaseModel):
    """Directive usage, e.g. @include(if: $withAuthor)."""
    name: str
    arguments: list[ArgumentNode] = Field(default_factory=list)
    loc: Optional[SourceLocation] = None


class FieldNode(BaseModel):
    """
    Field selection.

    The response key is the alias when present, otherwise the name.
    """
    kind: Literal["field"] = "field"
    name: str
    alias: Optional[str] = None
    arguments: list[ArgumentNode] = Field(default_factory=list)
    directives: list[DirectiveNode] = Field(default_factory=list)
    selection_set: list[SelectionNode] = Field(default_factory=list)
    loc: Optional[SourceLocation] = None

    @property
    def response_key(self) -> str:
        return self.alias or self.name


class InlineFragmentNode(BaseModel):
    """Inline fragment: ... on Book { title }"""
    kind: Literal["inline_fragment"] = "inline_fragment"
    type_condition: Optional[str] = None
    directives: list[DirectiveNode] = Field(default_factory=list)
    selection_set: list[SelectionNode] = Field(default_factory=list)
    loc: Optional[SourceLocation] = None


class FragmentSpreadNode(BaseModel):
    """Named fragment spread: ...BookFields"""
    kind: Literal["fragment_spread"] = "fragment_spread"
    name: str
    directives: list[DirectiveNode] = Field(default_factory=list)
    loc: Optional[SourceLocation] = None


SelectionNode = Annotated[
    Union[FieldNode, InlineFragmentNode, FragmentSpreadNode],
    Field(discriminator="kind"),
]


# --- Definitions ---

class FragmentDefinition(BaseModel):
    name: str
    type_condition: str
    selection_set: list[SelectionNode] = Field(default_factory=list)
    loc: Optional[SourceLocation] = None


class VariableDefinition(BaseModel):
    """Variable declaration: ($id: ID! = 1)"""
    variable: str
    type: str
    default_value: Optional[ValueNode] = None
    loc: Optional[SourceLocation] = None


class OperationDefinition(BaseModel):
    operation: Literal["query", "mutation", "subscription"] = "query"
    name: Optional[str] = None
    variable_definitions: list[VariableDefinition] = Field(default_factory=list)
    directives: list[DirectiveNode] = Field(default_factory=list)
    selection_set: list[SelectionNode] = Field(default_factory=list)
    loc: Optional[SourceLocation] = None


class Document(BaseModel):
    """Validated document: operations plus fragment definitions."""
    operations: list[OperationDefinition] = Field(default_factory=list)
    fragments: list[FragmentDefinition] = Field(default_factory=list)

    def get_operation(self, operation_name: Optional[str] = None) -> OperationDefinition | None:
        """
        Select the operation to execute.

        Without a name the document must contain exactly one operation.
        """
        if operation_name is None:
            if len(self.operations) == 1:
                return self.operations[0]
            return None
        return next((op for op in self.operations if op.name == operation_name), None)

    def fragment_map(self) -> dict[str, FragmentDefinition]:
        return {fragment.name: fragment for fragment in self.fragments}


# --- Response types ---

class ErrorObject(BaseModel):
    """
    Error entry of the response envelope.

    {"message": "...", "locations": [{"line": 1, "column": 3}], "path": ["books", 0]}
    """
    message: str
    locations: Optional[list[SourceLocation]] = None
    path: Optional[list[Union[int, str]]] = None
    extensions: Optional[dict[str, Any]] = None

    def to_dict(self) -> dict[str, Any]:
        """Envelope form; absent parts are omitted."""
        error: dict[str, Any] = {"message": self.message}
        if self.locations:
            error["locations"] = [loc.model_dump() for loc in self.locations]
        if self.path is not None:
            error["path"] = list(self.path)
        if self.extensions:
            error["extensions"] = dict(self.extensions)
        return error


# --- Service request/response types (remote batch sources) ---

class NormalizedFilter(BaseModel):
    """
    Normalized filter representation.

    NormalizedFilter(field="id", op="in", value=[1, 2, 3])
    """
    field: str
    op: str  # eq, in
    value: Any


class InternalQueryRequest(BaseModel):
    """
    Request format for internal service calls.

    POST /internal/query
    """
    entity: Optional[str] = None
    filters: list[NormalizedFilter]
    fields: list[str] = Field(default_factory=list)
    limit: Optional[int] = None
    offset: int = 0


class InternalQueryResponse(BaseModel):
    """Response format from internal service calls."""
    items: list[dict[str, Any]]
    total: int = 0
    limit: Optional[int] = None
    offset: int = 0


for _model in (
    ListValueNode,
    ObjectFieldNode,
    ObjectValueNode,
    ArgumentNode,
    DirectiveNode,
    FieldNode,
    InlineFragmentNode,
    FragmentDefinition,
    VariableDefinition,
    OperationDefinition,
    Document,
):
    _model.model_rebuild()
