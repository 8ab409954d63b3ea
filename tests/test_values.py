"""Tests for variable, argument and directive value coercion."""

from __future__ import annotations

import pytest

from gqlexec import (
    ArgumentCoercionError,
    EnumType,
    FieldDefinition,
    InputField,
    InputObjectType,
    ObjectType,
    SchemaBuilder,
)
from gqlexec.core.defs import UNSET
from gqlexec.core.values import (
    coerce_argument_values,
    coerce_input_value,
    coerce_variable_values,
    get_directive_values,
    value_from_ast,
)

from helpers import enum, field, include, lit, skip, var, vardef


@pytest.fixture
def schema():
    builder = SchemaBuilder()
    builder.add_types(
        EnumType("Order", values={"ASC": 1, "DESC": -1}),
        InputObjectType("Page", fields=[
            InputField("limit", "Int", default_value=10),
            InputField("after", "ID"),
        ]),
        InputObjectType("BookInput", fields={"title": "String!", "tags": "[String!]"}),
        ObjectType("Query", fields=[
            FieldDefinition("books", "[String]", args={
                "page": "Page",
                "order": "Order",
                "first": "Int!",
                "ids": "[ID!]",
            }),
            FieldDefinition("add", "String", args={"input": "BookInput!"}),
        ]),
    )
    return builder.build()


def _arg_type(schema, field_name, arg_name):
    return schema.field_definition("Query", field_name).args[arg_name].type


class TestInputValues:
    def test_scalars(self, schema):
        assert coerce_input_value(3, schema.get_type("Int")) == 3
        assert coerce_input_value(7, schema.get_type("ID")) == "7"
        with pytest.raises(ArgumentCoercionError, match="Expected type 'Int'"):
            coerce_input_value("3", schema.get_type("Int"))

    def test_single_value_becomes_list(self, schema):
        assert coerce_input_value("a", _arg_type(schema, "books", "ids")) == ["a"]
        assert coerce_input_value(["a", 2], _arg_type(schema, "books", "ids")) == ["a", "2"]

    def test_non_null_list_item(self, schema):
        with pytest.raises(ArgumentCoercionError, match="not to be null"):
            coerce_input_value(["a", None], _arg_type(schema, "books", "ids"))

    def test_input_object_defaults_and_unknown_fields(self, schema):
        page = schema.get_type("Page")
        assert coerce_input_value({"after": 5}, page) == {"limit": 10, "after": "5"}
        with pytest.raises(ArgumentCoercionError, match="'size' is not defined"):
            coerce_input_value({"size": 5}, page)

    def test_required_input_field(self, schema):
        with pytest.raises(ArgumentCoercionError, match="'title' of required type 'String!'"):
            coerce_input_value({"tags": []}, schema.get_type("BookInput"))

    def test_enum_by_name(self, schema):
        assert coerce_input_value("DESC", schema.get_type("Order")) == -1
        with pytest.raises(ArgumentCoercionError, match="does not exist"):
            coerce_input_value("SIDEWAYS", schema.get_type("Order"))


class TestLiterals:
    def test_missing_variable_is_unset(self, schema):
        assert value_from_ast(var("x"), schema.get_type("Int"), {}) is UNSET

    def test_enum_literal_required(self, schema):
        order = schema.get_type("Order")
        assert value_from_ast(enum("ASC"), order, {}) == 1
        with pytest.raises(ArgumentCoercionError, match="non-enum value"):
            value_from_ast(lit("ASC"), order, {})

    def test_null_for_non_null(self, schema):
        with pytest.raises(ArgumentCoercionError, match="found null"):
            value_from_ast(lit(None), _arg_type(schema, "books", "first"), {})

    def test_nested_object_literal(self, schema):
        node = lit({"title": "Dune", "tags": ["scifi", var("tag")]})
        value = value_from_ast(node, _arg_type(schema, "add", "input"), {"tag": "classic"})
        assert value == {"title": "Dune", "tags": ["scifi", "classic"]}


class TestArguments:
    def test_defaults_and_omitted(self, schema):
        field_def = schema.field_definition("Query", "books")
        args = coerce_argument_values(field_def, field("books", args={"first": 2}), {})
        assert args == {"first": 2}

    def test_variables_and_literals(self, schema):
        field_def = schema.field_definition("Query", "books")
        node = field("books", args={"first": var("n"), "order": enum("DESC"), "page": {"limit": 5}})
        args = coerce_argument_values(field_def, node, {"n": 3})
        assert args == {"first": 3, "order": -1, "page": {"limit": 5}}

    def test_missing_required(self, schema):
        field_def = schema.field_definition("Query", "books")
        with pytest.raises(ArgumentCoercionError, match="'first' of required type 'Int!' was not provided"):
            coerce_argument_values(field_def, field("books"), {})

    def test_invalid_value_names_argument(self, schema):
        field_def = schema.field_definition("Query", "books")
        with pytest.raises(ArgumentCoercionError, match="Argument 'first' of field 'books' has invalid value"):
            coerce_argument_values(field_def, field("books", args={"first": "many"}), {})


class TestVariables:
    def test_defaults(self, schema):
        values = coerce_variable_values(schema, [vardef("n", "Int", default=4)], {})
        assert values == {"n": 4}

    def test_provided_values_are_coerced(self, schema):
        values = coerce_variable_values(
            schema,
            [vardef("ids", "[ID!]"), vardef("page", "Page")],
            {"ids": [1, 2], "page": {}},
        )
        assert values == {"ids": ["1", "2"], "page": {"limit": 10}}

    def test_missing_required(self, schema):
        with pytest.raises(ArgumentCoercionError, match=r"Variable '\$n' of required type 'Int!'"):
            coerce_variable_values(schema, [vardef("n", "Int!")], {})

    def test_invalid_value(self, schema):
        with pytest.raises(ArgumentCoercionError, match=r"Variable '\$n' got invalid value 'x'"):
            coerce_variable_values(schema, [vardef("n", "Int")], {"n": "x"})

    def test_output_type_rejected(self, schema):
        with pytest.raises(ArgumentCoercionError, match="not an input type"):
            coerce_variable_values(schema, [vardef("q", "Query")], {})

    def test_absent_optional_variable_is_omitted(self, schema):
        assert coerce_variable_values(schema, [vardef("n", "Int")], {}) == {}


class TestDirectives:
    def test_skip_and_include(self):
        assert get_directive_values("skip", [skip(True)], {}) == {"if": True}
        assert get_directive_values("include", [include(var("x"))], {"x": False}) == {"if": False}
        assert get_directive_values("skip", [include(True)], {}) is None

    def test_if_is_required(self):
        with pytest.raises(ArgumentCoercionError):
            get_directive_values("skip", [skip(var("missing"))], {})
