"""Supabase row source client over the PostgREST HTTP API via aiohttp.

Tables and views are read with GET /rest/v1/<table>, database functions are
called with POST /rest/v1/rpc/<function>. Authentication uses the project's
anon key as both the ``apikey`` header and the bearer token.
"""

import json as json_lib
from typing import Any, Self

import aiohttp

from screener.config import DataSourceSettings
from screener.data.client import OrderBy, RowSourceClient
from screener.exceptions import DataSourceError
from screener.logging import get_logger

logger = get_logger(__name__)


class SupabaseClient(RowSourceClient):
    """Concrete PostgREST client.

    Usage:
        async with SupabaseClient(settings.data_source) as client:
            rows = await client.select("exchange_columns", OrderBy("column_key", True))
    """

    def __init__(self, settings: DataSourceSettings) -> None:
        self._settings = settings
        self._base_url = settings.url.rstrip("/") + "/rest/v1"
        self._session: aiohttp.ClientSession | None = None

    @property
    def session(self) -> aiohttp.ClientSession:
        """Access the open aiohttp session. Raises RuntimeError if not connected."""
        if self._session is None or self._session.closed:
            raise RuntimeError("Row source not connected. Call connect() first.")
        return self._session

    async def connect(self) -> None:
        """Create the HTTP session with auth headers."""
        if self._session is not None and not self._session.closed:
            return
        key = self._settings.anon_key.get_secret_value()
        if not key:
            logger.warning("supabase_anon_key_missing", url=self._settings.url)
        self._session = aiohttp.ClientSession(
            headers={
                "apikey": key,
                "Authorization": f"Bearer {key}",
                "Accept": "application/json",
            },
        )
        logger.info("supabase_connected", url=self._settings.url)

    async def close(self) -> None:
        """Close the HTTP session if open."""
        if self._session is not None:
            await self._session.close()
            self._session = None
            logger.info("supabase_connection_closed")

    @staticmethod
    def build_select_params(
        order: OrderBy | None = None,
        filters: dict[str, Any] | None = None,
        offset: int = 0,
        limit: int | None = None,
    ) -> dict[str, str]:
        """Translate a read into PostgREST query parameters."""
        params: dict[str, str] = {"select": "*"}
        if order is not None:
            direction = "asc" if order.ascending else "desc"
            params["order"] = f"{order.column}.{direction}.nullslast"
        for column, value in (filters or {}).items():
            params[column] = f"eq.{value}"
        if offset:
            params["offset"] = str(offset)
        if limit is not None:
            params["limit"] = str(limit)
        return params

    async def select(
        self,
        table: str,
        order: OrderBy | None = None,
        filters: dict[str, Any] | None = None,
        offset: int = 0,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        params = self.build_select_params(order, filters, offset, limit)
        data = await self._request("GET", f"/{table}", params=params)
        return data or []

    async def rpc(self, function: str, params: dict[str, Any] | None = None) -> Any:
        return await self._request("POST", f"/rpc/{function}", json=params or {})

    async def _request(
        self,
        method: str,
        path: str,
        params: dict[str, str] | None = None,
        json: dict[str, Any] | None = None,
    ) -> Any:
        url = self._base_url + path
        async with self.session.request(method, url, params=params, json=json) as resp:
            if resp.status >= 400:
                message = self.error_message(resp.status, await resp.text())
                logger.warning("supabase_request_failed", path=path, status=resp.status, message=message)
                raise DataSourceError(message, status=resp.status)
            try:
                return await resp.json(content_type=None)
            except ValueError as e:
                logger.warning("supabase_invalid_json", path=path, status=resp.status)
                raise DataSourceError("Invalid JSON in response", status=resp.status) from e

    @staticmethod
    def error_message(status: int, body: str) -> str:
        """PostgREST error ``message`` from a response body, else "HTTP <status>".

        Gateways in front of PostgREST may answer with HTML or plain text.
        """
        try:
            payload = json_lib.loads(body) if body else None
        except ValueError:
            payload = None
        message = payload.get("message") if isinstance(payload, dict) else None
        return str(message) if message else f"HTTP {status}"

    async def __aenter__(self) -> Self:
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # type: ignore[no-untyped-def]
        await self.close()
