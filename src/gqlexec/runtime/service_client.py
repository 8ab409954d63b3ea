"""
Remote batch sources over HTTP.

A backend service exposes ``POST /internal/query`` taking an
InternalQueryRequest and answering with an InternalQueryResponse.
ServiceClient turns that endpoint into BatchLoader batch functions: one
request per batch with an "in" filter on the key field, results put back in
key order.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx
from pydantic import ValidationError

from ..core.errors import ServiceError
from ..core.query_types import (
    InternalQueryRequest,
    InternalQueryResponse,
    NormalizedFilter,
)
from .loader import BatchFn

logger = logging.getLogger(__name__)

QUERY_ENDPOINT = "/internal/query"


class ServiceClient:
    """
    One pooled httpx client shared by every batch source.

        async with ServiceClient(timeout=5.0) as client:
            executor = Executor(schema, loaders={
                "people": client.batch_fn("http://person:8002"),
                "orders": client.batch_fn("http://orders:8003", key_field="person_id"),
            })
            result = await executor.execute(document)
    """

    def __init__(
        self,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.timeout = timeout
        self.transport = transport
        self._http: httpx.AsyncClient | None = None

    def _client(self) -> httpx.AsyncClient:
        if self._http is None or self._http.is_closed:
            self._http = httpx.AsyncClient(timeout=self.timeout, transport=self.transport)
        return self._http

    async def close(self):
        if self._http is not None:
            await self._http.aclose()
            self._http = None

    async def __aenter__(self) -> "ServiceClient":
        return self

    async def __aexit__(self, *exc_info):
        await self.close()

    async def query(self, service_url: str, request: InternalQueryRequest) -> InternalQueryResponse:
        """
        Run one internal query against a service.

        Raises:
            ServiceError: transport failure (status 0), non-200 answer,
                or a body that is not an InternalQueryResponse
        """
        endpoint = service_url.rstrip("/") + QUERY_ENDPOINT
        payload = request.model_dump(exclude_none=True)

        try:
            response = await self._client().post(endpoint, json=payload)
        except httpx.RequestError as e:
            raise ServiceError(service_url, 0, str(e)) from e

        if response.status_code != 200:
            raise ServiceError(service_url, response.status_code, response.text)

        try:
            return InternalQueryResponse.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            raise ServiceError(service_url, response.status_code, f"malformed response: {e}") from e

    async def fetch_by_keys(
        self,
        service_url: str,
        keys: list[Any],
        key_field: str = "id",
        fields: Optional[list[str]] = None,
        entity: Optional[str] = None,
    ) -> list[Optional[dict[str, Any]]]:
        """Items for ``keys`` in the same order; keys the service lacks map to None."""
        if not keys:
            return []

        selected = list(fields or [])
        if selected and key_field not in selected:
            selected.insert(0, key_field)

        response = await self.query(
            service_url,
            InternalQueryRequest(
                entity=entity,
                filters=[NormalizedFilter(field=key_field, op="in", value=list(keys))],
                fields=selected,
            ),
        )
        found = {item.get(key_field): item for item in response.items}
        logger.debug(f"{service_url} returned {len(found)}/{len(keys)} keys on '{key_field}'")
        return [found.get(key) for key in keys]

    def batch_fn(
        self,
        service_url: str,
        key_field: str = "id",
        fields: Optional[list[str]] = None,
        entity: Optional[str] = None,
    ) -> BatchFn:
        """Batch function loading items of one service by ``key_field``."""

        async def load_by_key(keys: list[Any]) -> list[Optional[dict[str, Any]]]:
            return await self.fetch_by_keys(
                service_url, keys, key_field=key_field, fields=fields, entity=entity
            )

        load_by_key.__name__ = f"{entity or service_url}.{key_field}"
        return load_by_key


def batch_fn(
    service_url: str,
    key_field: str = "id",
    fields: Optional[list[str]] = None,
    *,
    client: ServiceClient,
) -> BatchFn:
    """
    Shorthand for ``client.batch_fn(...)``.

    The caller owns ``client`` and closes it when done serving:

        client = ServiceClient()
        executor = Executor(schema, loaders={"people": batch_fn("http://person:8002", client=client)})
        ...
        await client.close()
    """
    return client.batch_fn(service_url, key_field, fields)
