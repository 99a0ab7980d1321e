"""Attribute Store clients.

A keyed attribute store reached through ``get``/``put``/``delete`` round
trips. ``MemoryStore`` keeps rows in-process, ``TableServiceStore`` talks to
a remote REST table service.
"""
from .base import AttributeStore
from .memory import MemoryStore
from .service import TableServiceStore
from .codec import encode_attributes, decode_attributes

__all__ = [
    "AttributeStore",
    "MemoryStore",
    "TableServiceStore",
    "encode_attributes",
    "decode_attributes",
    "get_store",
]


def get_store(url=None, timeout: float = 10.0) -> AttributeStore:
    """Return a remote store for ``url``, or a memory store when empty."""
    if url:
        return TableServiceStore(url, timeout=timeout)
    return MemoryStore()
