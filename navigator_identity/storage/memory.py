"""
MemoryStore — in-process AttributeStore.

Honours the table index (rows are identified by hash + range key),
upsert-merge writes and ttl retention: a row expires ``ttl`` seconds after
its last write. Used by tests and local development.
"""
import copy
import time
import logging
from typing import Callable, Optional

from ..conf import TableSchema
from ..exceptions import StoreUnavailable
from .base import AttributeStore, Row

logger = logging.getLogger("navigator.identity.storage")


class MemoryStore(AttributeStore):
    """Dictionary backed attribute store."""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._schemas: dict[str, TableSchema] = {}
        # table -> row key -> (written_at, attributes)
        self._tables: dict[str, dict[tuple, tuple[float, Row]]] = {}

    def _rows(self, table: TableSchema) -> dict[tuple, tuple[float, Row]]:
        try:
            return self._tables[table.table]
        except KeyError:
            raise StoreUnavailable(
                f"Table {table.table} does not exist"
            ) from None

    def _expired(self, table: TableSchema, written_at: float) -> bool:
        ttl = table.ttl
        return ttl is not None and self._clock() - written_at >= ttl

    def _validate(self, table: TableSchema, attributes: Row) -> None:
        unknown = set(attributes) - set(table.attributes)
        if unknown:
            raise ValueError(
                f"Attributes {sorted(unknown)} are not declared in table "
                f"{table.table}"
            )

    async def create_table(self, schema: TableSchema) -> None:
        current = self._schemas.get(schema.table)
        if current is not None and current.version == schema.version:
            return
        self._schemas[schema.table] = schema
        self._tables.setdefault(schema.table, {})
        logger.debug("Table created: %s v%d", schema.table, schema.version)

    async def get(
        self,
        table: TableSchema,
        key_attributes: Row,
        projection: Optional[list[str]] = None,
        limit: Optional[int] = None,
    ) -> Optional[list[Row]]:
        rows = self._rows(table)
        matches = []
        for row_key, (written_at, attributes) in list(rows.items()):
            if self._expired(table, written_at):
                # reaped by retention policy
                del rows[row_key]
                continue
            if all(attributes.get(k) == v for k, v in key_attributes.items()):
                matches.append(attributes)
        if not matches:
            return None
        for entry in reversed(table.index):
            if entry.type == 'range':
                matches.sort(
                    key=lambda r, name=entry.attribute: r.get(name),
                    reverse=entry.order == 'desc',
                )
        if limit is not None:
            matches = matches[:limit]
        if projection:
            matches = [
                {name: row[name] for name in projection if name in row}
                for row in matches
            ]
        return copy.deepcopy(matches)

    async def put(self, table: TableSchema, attributes: Row) -> None:
        rows = self._rows(table)
        self._validate(table, attributes)
        try:
            row_key = table.row_key(attributes)
        except KeyError as err:
            raise ValueError(
                f"Missing index attribute {err} for table {table.table}"
            ) from None
        merged = {}
        current = rows.get(row_key)
        if current is not None and not self._expired(table, current[0]):
            merged.update(current[1])
        merged.update(copy.deepcopy(attributes))
        rows[row_key] = (self._clock(), merged)

    async def delete(self, table: TableSchema, key_attributes: Row) -> None:
        rows = self._rows(table)
        try:
            row_key = table.row_key(key_attributes)
        except KeyError as err:
            raise ValueError(
                f"Missing index attribute {err} for table {table.table}"
            ) from None
        rows.pop(row_key, None)
