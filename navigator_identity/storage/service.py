"""
TableServiceStore — AttributeStore backed by a remote REST table service.

Wire protocol (``base_url`` is e.g. ``http://host/example.org/sys/table``):
- ``PUT {base}/{table}`` with the table schema declares a table
- ``PUT {base}/{table}/`` with ``{table, attributes}`` upserts a row
- ``GET {base}/{table}/`` with ``{table, attributes, proj, limit}`` queries
  rows and answers ``{"items": [...]}``
- ``DELETE {base}/{table}/`` with ``{table, attributes}`` removes a row

A 404 answer to a lookup is the "not found" sentinel; every other failure,
404 on writes and undecodable answers included, raises ``StoreUnavailable``.
No retries.
"""
import asyncio
import logging
from typing import Any, Optional

import aiohttp

from ..conf import TableSchema
from ..exceptions import StoreUnavailable
from .base import AttributeStore, Row
from .codec import encode_attributes, decode_attributes, dumps, loads

logger = logging.getLogger("navigator.identity.storage")

_JSON_HEADERS = {"content-type": "application/json"}


class TableServiceStore(AttributeStore):
    """aiohttp client of the table service."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._session = session
        self._own_session = session is None

    async def open(self) -> None:
        if self._session is None:
            self._session = aiohttp.ClientSession(timeout=self._timeout)
            self._own_session = True

    async def close(self) -> None:
        if self._session is not None and self._own_session:
            await self._session.close()
        self._session = None

    def _url(self, table: TableSchema, rows: bool = True) -> str:
        url = f"{self._base_url}/{table.table}"
        return f"{url}/" if rows else url

    async def _request(
        self,
        method: str,
        url: str,
        body: Any,
        absent_ok: bool = False,
        decode: bool = False,
    ) -> Optional[Any]:
        """Send one request.

        Args:
            absent_ok: answer None on 404 instead of raising (lookups only).
            decode: decode the JSON answer; write acks are not decoded.

        Raises:
            StoreUnavailable: transport failure, error status, or an
                answer that cannot be decoded.
        """
        if self._session is None:
            await self.open()
        try:
            async with self._session.request(
                method, url, data=dumps(body), headers=_JSON_HEADERS
            ) as response:
                if response.status == 404 and absent_ok:
                    return None
                payload = await response.read()
                if response.status >= 400:
                    logger.warning(
                        "Table service %s %s failed with status %s",
                        method, url, response.status,
                    )
                    raise StoreUnavailable(
                        f"Table service answered {response.status} "
                        f"to {method} {url}"
                    )
        except (aiohttp.ClientError, asyncio.TimeoutError) as err:
            logger.error("Table service %s %s unreachable: %s", method, url, err)
            raise StoreUnavailable(
                f"Table service unreachable: {err}"
            ) from err
        if not decode:
            return None
        try:
            return loads(payload)
        except ValueError as err:
            logger.error("Table service %s %s sent an invalid body", method, url)
            raise StoreUnavailable(
                f"Invalid answer from table service: {err}"
            ) from err

    async def create_table(self, schema: TableSchema) -> None:
        await self._request(
            "PUT", self._url(schema, rows=False), schema.model_dump(mode="json")
        )
        logger.debug("Table declared: %s v%d", schema.table, schema.version)

    async def get(
        self,
        table: TableSchema,
        key_attributes: Row,
        projection: Optional[list[str]] = None,
        limit: Optional[int] = None,
    ) -> Optional[list[Row]]:
        body: dict[str, Any] = {
            "table": table.table,
            "attributes": encode_attributes(key_attributes),
        }
        if projection:
            body["proj"] = projection
        if limit is not None:
            body["limit"] = limit
        result = await self._request(
            "GET", self._url(table), body, absent_ok=True, decode=True,
        )
        if not result:
            return None
        try:
            items = result.get("items") or []
            rows = [decode_attributes(item) for item in items]
        except (AttributeError, ValueError) as err:
            raise StoreUnavailable(
                f"Malformed rows from table service: {err}"
            ) from err
        return rows or None

    async def put(self, table: TableSchema, attributes: Row) -> None:
        await self._request(
            "PUT",
            self._url(table),
            {"table": table.table, "attributes": encode_attributes(attributes)},
        )

    async def delete(self, table: TableSchema, key_attributes: Row) -> None:
        await self._request(
            "DELETE",
            self._url(table),
            {"table": table.table, "attributes": encode_attributes(key_attributes)},
        )
