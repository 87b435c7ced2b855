"""Hosted record store client speaking the PostgREST dialect over httpx."""

import logging
import os
from collections.abc import Mapping
from typing import Any

import httpx

from citycast.store.base import Filters, Order, RecordStore, Row
from citycast.store.errors import RecordNotFoundError, StoreError

logger = logging.getLogger(__name__)

API_KEY_ENV = "CITYCAST_STORE_KEY"
REST_PREFIX = "/rest/v1"
SINGLE_OBJECT = "application/vnd.pgrst.object+json"
NO_ROWS_CODE = "PGRST116"


class PostgrestStore(RecordStore):
    """Thin async wrapper around a PostgREST endpoint.

    Authentication is a static API key sent both as ``apikey`` and as a
    bearer token; session handling belongs to the caller.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str | None = None,
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ):
        self.api_key = api_key or os.environ.get(API_KEY_ENV, "")
        if not self.api_key:
            raise StoreError(f"{API_KEY_ENV} not set")
        if not base_url:
            raise StoreError("Record store URL not set")
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = client or httpx.AsyncClient(timeout=timeout)

    def _headers(self, extra: dict[str, str] | None = None) -> dict[str, str]:
        headers = {
            "apikey": self.api_key,
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        if extra:
            headers.update(extra)
        return headers

    async def _request(
        self,
        method: str,
        table: str,
        params: list[tuple[str, str]] | None = None,
        json: Any = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        url = f"{self.base_url}{REST_PREFIX}/{table}"
        try:
            resp = await self._client.request(
                method, url, params=params, json=json,
                headers=self._headers(headers),
            )
        except httpx.RequestError as e:
            logger.error("Store request failed: %s %s -> %s", method, table, e)
            raise StoreError(f"Request failed: {e}") from e

        if resp.status_code >= 400:
            code, message = _error_details(resp)
            if code == NO_ROWS_CODE:
                raise RecordNotFoundError(message, resp.status_code, code)
            logger.error(
                "Store API %d: %s %s -> %s", resp.status_code, method, table, message
            )
            raise StoreError(f"HTTP {resp.status_code}: {message}", resp.status_code, code)
        if not resp.content:
            return None
        return resp.json()

    async def select(
        self,
        table: str,
        filters: Filters | None = None,
        order: Order | None = None,
        limit: int | None = None,
        columns: str = "*",
    ) -> list[Row]:
        params = [("select", columns), *_filter_params(filters)]
        if order is not None:
            direction = "desc" if order.descending else "asc"
            params.append(("order", f"{order.column}.{direction}"))
        if limit is not None:
            params.append(("limit", str(limit)))
        data = await self._request("GET", table, params=params)
        return list(data or [])

    async def select_single(
        self, table: str, filters: Filters, columns: str = "*"
    ) -> Row:
        params = [("select", columns), *_filter_params(filters)]
        return await self._request(
            "GET", table, params=params, headers={"Accept": SINGLE_OBJECT}
        )

    async def insert(self, table: str, values: Mapping[str, Any]) -> Row:
        data = await self._request(
            "POST", table, json=dict(values),
            headers={"Prefer": "return=representation"},
        )
        if isinstance(data, list):
            if not data:
                raise StoreError(f"Insert into {table} returned no row")
            return data[0]
        return data

    async def delete(self, table: str, filters: Filters) -> int:
        if not filters:
            raise StoreError(f"Refusing unfiltered delete on {table}")
        data = await self._request(
            "DELETE", table, params=_filter_params(filters),
            headers={"Prefer": "return=representation"},
        )
        return len(data or [])

    async def update(
        self, table: str, filters: Filters, values: Mapping[str, Any]
    ) -> list[Row]:
        if not filters:
            raise StoreError(f"Refusing unfiltered update on {table}")
        data = await self._request(
            "PATCH", table, params=_filter_params(filters), json=dict(values),
            headers={"Prefer": "return=representation"},
        )
        return list(data or [])

    async def aclose(self) -> None:
        await self._client.aclose()


def _filter_params(filters: Filters | None) -> list[tuple[str, str]]:
    """Encode equality predicates as PostgREST ``col=eq.value`` pairs."""
    params = []
    for column, value in (filters or {}).items():
        if isinstance(value, bool):
            value = "true" if value else "false"
        params.append((column, f"eq.{value}"))
    return params


def _error_details(resp: httpx.Response) -> tuple[str | None, str]:
    try:
        body = resp.json()
    except ValueError:
        return None, resp.text
    if isinstance(body, dict):
        return body.get("code"), body.get("message") or resp.text
    return None, resp.text
