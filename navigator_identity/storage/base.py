"""
AttributeStore — abstract async client of a keyed attribute table store.

Every call is an independent round trip. A lookup that finds nothing
returns ``None`` instead of raising, so callers treat "no record" as a
normal branch; any other failure raises ``StoreUnavailable``.
"""
from abc import ABC, abstractmethod
from typing import Any, Optional

from ..conf import TableSchema


Row = dict[str, Any]


class AttributeStore(ABC):
    """Keyed attribute store interface."""

    async def open(self) -> None:
        """Acquire connections. No-op by default."""

    async def close(self) -> None:
        """Release connections. No-op by default."""

    async def __aenter__(self) -> "AttributeStore":
        await self.open()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    @abstractmethod
    async def create_table(self, schema: TableSchema) -> None:
        """Declare a table, idempotently."""

    @abstractmethod
    async def get(
        self,
        table: TableSchema,
        key_attributes: Row,
        projection: Optional[list[str]] = None,
        limit: Optional[int] = None,
    ) -> Optional[list[Row]]:
        """Fetch the rows matching ``key_attributes``.

        Rows come back ordered by the table's range key (if any).

        Args:
            table: table schema.
            key_attributes: hash key, and optionally range key, values.
            projection: attribute names to return; all when omitted.
            limit: maximum number of rows.

        Returns:
            List of rows, or None when no row matches.
        """

    @abstractmethod
    async def put(self, table: TableSchema, attributes: Row) -> None:
        """Upsert a row.

        Creates the row identified by the table's index key or merges
        ``attributes`` into it; attributes not supplied keep their
        previous value.
        """

    @abstractmethod
    async def delete(self, table: TableSchema, key_attributes: Row) -> None:
        """Physically remove the row identified by ``key_attributes``."""

    async def ensure_tables(self, tables: list[TableSchema]) -> None:
        for schema in tables:
            await self.create_table(schema)
