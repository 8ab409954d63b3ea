"""Tests for per-event subscription execution."""

from __future__ import annotations

import pytest

from gqlexec import Executor, FieldDefinition, ObjectType, SchemaBuilder

from helpers import doc, field, include, query, subscription, var, vardef


def build_ticker_schema(subscriber):
    builder = SchemaBuilder()
    builder.add_types(
        ObjectType("Tick", fields={"n": "Int!", "label": "String!"}),
        ObjectType("Query", fields={"now": "Int"}),
        ObjectType("Subscription", fields=[
            FieldDefinition("ticks", "Tick", args={"upTo": "Int!"}),
        ]),
    )
    builder.set_resolver("Subscription", "ticks", lambda event, info, **args: event)
    builder.set_subscriber("Subscription", "ticks", subscriber)
    return builder.build(subscription="Subscription")


async def count_up(root, info, upTo):
    for n in range(1, upTo + 1):
        yield {"n": n, "label": f"tick {n}" if n != 2 else None}


async def _collect(stream):
    return [result.formatted async for result in stream]


class TestSubscriptions:
    @pytest.mark.asyncio
    async def test_one_result_per_event(self):
        executor = Executor(build_ticker_schema(count_up))
        document = doc(subscription(field("ticks", field("n"), field("label"), args={"upTo": 3})))

        results = await _collect(executor.subscribe(document))

        assert results == [
            {"data": {"ticks": {"n": 1, "label": "tick 1"}}},
            {
                "data": {"ticks": None},
                "errors": [
                    {
                        "message": "Cannot return null for non-nullable field Tick.label.",
                        "path": ["ticks", "label"],
                    }
                ],
            },
            {"data": {"ticks": {"n": 3, "label": "tick 3"}}},
        ]

    @pytest.mark.asyncio
    async def test_failing_subscriber_yields_single_error(self):
        async def broken(root, info, upTo):
            raise RuntimeError("broker unreachable")

        executor = Executor(build_ticker_schema(broken))
        document = doc(subscription(field("ticks", field("n"), args={"upTo": 1})))

        results = await _collect(executor.subscribe(document))
        assert results == [{"data": None, "errors": [{"message": "Internal server error"}]}]

    @pytest.mark.asyncio
    async def test_non_iterable_stream(self):
        executor = Executor(build_ticker_schema(lambda root, info, upTo: 42))
        document = doc(subscription(field("ticks", field("n"), args={"upTo": 1})))

        results = await _collect(executor.subscribe(document))
        assert results == [
            {"data": None, "errors": [{"message": "Subscription field 'ticks' must return an async iterable."}]}
        ]

    @pytest.mark.asyncio
    async def test_query_document_is_rejected(self):
        executor = Executor(build_ticker_schema(count_up))
        results = await _collect(executor.subscribe(doc(query(field("now")))))
        assert results == [{"data": None, "errors": [{"message": "Operation is not a subscription."}]}]

    @pytest.mark.asyncio
    async def test_missing_argument_is_reported(self):
        executor = Executor(build_ticker_schema(count_up))
        results = await _collect(executor.subscribe(doc(subscription(field("ticks", field("n"))))))
        assert results == [
            {"data": None, "errors": [{"message": "Argument 'upTo' of required type 'Int!' was not provided."}]}
        ]

    @pytest.mark.asyncio
    async def test_null_root_directive_argument(self):
        executor = Executor(build_ticker_schema(count_up))
        document = doc(subscription(
            field("ticks", field("n"), args={"upTo": 1}, directives=[include(var("on"))]),
            variables=[vardef("on", "Boolean", True)],
        ))

        results = await _collect(executor.subscribe(document, variables={"on": None}))

        assert results == [
            {
                "data": None,
                "errors": [
                    {
                        "message": "Argument 'if' of directive '@include' has invalid value:"
                        " Variable '$on' of non-null type 'Boolean!' must not be null."
                    }
                ],
            }
        ]
