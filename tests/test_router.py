"""Tests for the HTTP surface: GraphQL router and app factory."""

from __future__ import annotations

import logging

from fastapi.testclient import TestClient

from gqlexec import Executor, ObjectType, SchemaBuilder
from gqlexec.api import create_app
from gqlexec.api.app import QuietPathsFilter

from helpers import doc, field, query, var, vardef

BOOK_QUERY = {
    "document": {
        "operations": [{
            "operation": "query",
            "name": "GetBook",
            "variable_definitions": [{"variable": "id", "type": "ID!"}],
            "selection_set": [
                {
                    "kind": "field",
                    "name": "book",
                    "arguments": [{"name": "id", "value": {"kind": "variable", "name": "id"}}],
                    "selection_set": [
                        {"kind": "field", "name": "title"},
                        {"kind": "field", "name": "author", "selection_set": [
                            {"kind": "field", "name": "name"},
                        ]},
                    ],
                },
            ],
        }],
    },
    "variables": {"id": "2"},
    "operationName": "GetBook",
}


def test_executes_json_document(library_executor):
    client = TestClient(create_app(library_executor))

    resp = client.post("/graphql", json=BOOK_QUERY)

    assert resp.status_code == 200, resp.text
    assert resp.json() == {"data": {"book": {"title": "Emma", "author": {"name": "Jane Austen"}}}}


def test_model_dump_of_built_document_is_accepted(library_executor):
    document = doc(query(
        field("book", field("title"), args={"id": var("id")}),
        variables=[vardef("id", "ID!")],
    ))
    client = TestClient(create_app(library_executor))

    resp = client.post("/graphql", json={"document": document.model_dump(mode="json"), "variables": {"id": 1}})

    assert resp.json() == {"data": {"book": {"title": "Dune"}}}


def test_field_errors_keep_http_200(library_executor):
    body = {**BOOK_QUERY, "variables": {}}
    client = TestClient(create_app(library_executor))

    resp = client.post("/graphql", json=body)

    assert resp.status_code == 200
    data = resp.json()
    assert data["data"] is None
    assert data["errors"][0]["message"].startswith("Variable '$id'")


def test_invalid_body(library_executor):
    client = TestClient(create_app(library_executor))

    for resp in (
        client.post("/graphql", json={"document": {"operations": [{"selection_set": [{"kind": "table"}]}]}}),
        client.post("/graphql", content=b"{not json", headers={"content-type": "application/json"}),
    ):
        assert resp.status_code == 200
        assert resp.json() == {"data": None, "errors": [{"message": "Invalid GraphQL request body."}]}


def test_context_getter_and_custom_path():
    builder = SchemaBuilder()
    builder.add_type(ObjectType("Query", fields={"whoami": "String"}))
    builder.set_resolver("Query", "whoami", lambda root, info: info.context["user"])
    executor = Executor(builder.build())

    async def context_getter(request):
        return {"user": request.headers.get("x-user")}

    client = TestClient(create_app(executor, path="/api/graphql", context_getter=context_getter))
    document = doc(query(field("whoami")))

    resp = client.post(
        "/api/graphql",
        json={"document": document.model_dump(mode="json")},
        headers={"x-user": "ada"},
    )

    assert resp.json() == {"data": {"whoami": "ada"}}


def test_health(library_executor):
    with TestClient(create_app(library_executor)) as client:
        resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


def test_quiet_paths_filter():
    access_filter = QuietPathsFilter(["/health"])

    def record(path):
        return logging.LogRecord(
            "uvicorn.access", logging.INFO, __file__, 1,
            '%s - "%s %s HTTP/%s" %d', ("127.0.0.1:5000", "GET", path, "1.1", 200), None,
        )

    assert not access_filter.filter(record("/health"))
    assert not access_filter.filter(record("/health?check=1"))
    assert access_filter.filter(record("/graphql"))
