"""
SessionStore — opaque session blobs with ttl expiry and tombstone deletion.

- ``put(key, blob)`` — upsert the blob and clear the deleted flag
- ``get(key)`` — return the blob, NotFound when absent or tombstoned
- ``delete(key)`` — tombstone write; the row stays until the ttl reaps it

Every read and write pins the configured revision marker (``tid``) so the
store keeps exactly one logical row per session key.

Security Note:
    Never log session blobs. Only log session keys and operations.
"""
import logging
from typing import Optional

from .conf import SessionsConfig
from .exceptions import NotFound
from .storage import AttributeStore

logger = logging.getLogger("navigator.identity.sessions")


class SessionStore:
    """Key-value store of opaque session blobs."""

    def __init__(
        self,
        store: AttributeStore,
        config: Optional[SessionsConfig] = None,
    ):
        self._store = store
        self._config = config or SessionsConfig()
        self._table = self._config.table
        self._pinned = 'tid' in self._table.attributes

    @property
    def table(self):
        return self._table

    @property
    def ttl(self) -> Optional[int]:
        return self._table.ttl

    def _row_key(self, key: str) -> dict:
        row = {'key': key}
        if self._pinned:
            row['tid'] = self._config.revision_marker
        return row

    async def put(self, key: str, blob: bytes) -> None:
        """Store ``blob`` under ``key``, reviving a tombstoned key."""
        attributes = self._row_key(key)
        attributes.update({'value': bytes(blob), 'deleted': False})
        await self._store.put(self._table, attributes)
        logger.debug("Session put: key=%s size=%d", key, len(attributes['value']))

    async def get(self, key: str) -> bytes:
        """Return the blob stored under ``key``.

        Raises:
            NotFound: no row for ``key``, or the row is tombstoned.
        """
        rows = await self._store.get(
            self._table,
            self._row_key(key),
            projection=['value', 'deleted'],
            limit=1,
        )
        if not rows:
            raise NotFound(f"Session {key} not found")
        row = rows[0]
        if row.get('deleted'):
            raise NotFound(f"Session {key} was deleted")
        value = row.get('value')
        if value is None:
            raise NotFound(f"Session {key} has no value")
        return bytes(value)

    async def delete(self, key: str) -> None:
        """Tombstone ``key``; the stale value stays unreadable."""
        attributes = self._row_key(key)
        attributes['deleted'] = True
        await self._store.put(self._table, attributes)
        logger.debug("Session deleted: key=%s", key)
