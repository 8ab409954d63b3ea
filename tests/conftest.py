"""Shared fixtures: a small library schema with books, authors and a search union."""

from __future__ import annotations

import asyncio

import pytest

from gqlexec import (
    EnumType,
    Executor,
    FieldDefinition,
    InterfaceType,
    ObjectType,
    SchemaBuilder,
    UnionType,
    typename_discriminator,
)

AUTHORS = {
    10: {"__typename": "Author", "id": 10, "name": "Frank Herbert"},
    11: {"__typename": "Author", "id": 11, "name": "Jane Austen"},
}

BOOKS = {
    1: {"__typename": "Book", "id": 1, "title": "Dune", "author_id": 10, "genre": "SCIFI"},
    2: {"__typename": "Book", "id": 2, "title": "Emma", "author_id": 11, "genre": "CLASSIC"},
    3: {"__typename": "Book", "id": 3, "title": "Persuasion", "author_id": 11, "genre": None},
}


def build_library_schema():
    builder = SchemaBuilder()
    builder.add_types(
        InterfaceType("Node", fields={"id": "ID!"}, discriminator=typename_discriminator()),
        EnumType("Genre", values=["SCIFI", "CLASSIC"]),
        ObjectType(
            "Book",
            interfaces=["Node"],
            fields={
                "id": "ID!",
                "title": "String!",
                "genre": "Genre",
                "author": "Author!",
            },
        ),
        ObjectType(
            "Author",
            interfaces=["Node"],
            fields={"id": "ID!", "name": "String!", "books": "[Book!]!"},
        ),
        UnionType("SearchResult", types=["Book", "Author"], discriminator=typename_discriminator()),
        ObjectType(
            "Query",
            fields=[
                FieldDefinition("book", "Book", args={"id": "ID!"}),
                FieldDefinition("books", "[Book!]!"),
                FieldDefinition("authors", "[Author!]!"),
                FieldDefinition("search", "[SearchResult!]!", args={"term": "String!"}),
                FieldDefinition("node", "Node", args={"id": "ID!"}),
            ],
        ),
        ObjectType(
            "Mutation",
            fields=[FieldDefinition("addBook", "Book!", args={"title": "String!"})],
        ),
    )

    @builder.resolver("Query", "book")
    def resolve_book(root, info, id):
        return BOOKS.get(int(id))

    @builder.resolver("Query", "books")
    async def resolve_books(root, info):
        await asyncio.sleep(0)
        return list(BOOKS.values())

    @builder.resolver("Query", "authors")
    def resolve_authors(root, info):
        return list(AUTHORS.values())

    @builder.resolver("Query", "search")
    def resolve_search(root, info, term):
        items = list(BOOKS.values()) + list(AUTHORS.values())
        return [
            item for item in items
            if term.lower() in (item.get("title") or item.get("name")).lower()
        ]

    @builder.resolver("Query", "node")
    def resolve_node(root, info, id):
        return BOOKS.get(int(id)) or AUTHORS.get(int(id))

    @builder.resolver("Book", "author")
    def resolve_author(book, info):
        return info.loader("authors").load(book["author_id"])

    @builder.resolver("Author", "books")
    def resolve_author_books(author, info):
        return [book for book in BOOKS.values() if book["author_id"] == author["id"]]

    @builder.resolver("Mutation", "addBook")
    def resolve_add_book(root, info, title):
        book = {"__typename": "Book", "id": 99, "title": title, "author_id": 10, "genre": None}
        return book

    return builder.build(query="Query", mutation="Mutation")


@pytest.fixture
def library_schema():
    return build_library_schema()


@pytest.fixture
def author_batches():
    """Keys of every call to the authors batch function."""
    return []


@pytest.fixture
def library_executor(library_schema, author_batches):
    async def load_authors(ids):
        author_batches.append(list(ids))
        return [AUTHORS.get(author_id) for author_id in ids]

    return Executor(library_schema, loaders={"authors": load_authors})
