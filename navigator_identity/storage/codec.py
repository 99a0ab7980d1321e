"""
Wire encoding of row attributes for the table service.

bytes values are wrapped as {"__blob_b64__": "<base64>"} for a safe JSON
round-trip; sets are sent as sorted lists.
"""
import base64
from typing import Any

import orjson

_BLOB_WRAPPER_KEY = "__blob_b64__"


def _encode_value(value: Any) -> Any:
    if isinstance(value, (bytes, bytearray, memoryview)):
        return {_BLOB_WRAPPER_KEY: base64.b64encode(bytes(value)).decode("ascii")}
    if isinstance(value, (set, frozenset)):
        return sorted(value)
    return value


def _decode_value(value: Any) -> Any:
    if isinstance(value, dict) and _BLOB_WRAPPER_KEY in value and len(value) == 1:
        return base64.b64decode(value[_BLOB_WRAPPER_KEY])
    return value


def encode_attributes(attributes: dict[str, Any]) -> dict[str, Any]:
    return {name: _encode_value(value) for name, value in attributes.items()}


def decode_attributes(attributes: dict[str, Any]) -> dict[str, Any]:
    return {name: _decode_value(value) for name, value in attributes.items()}


def dumps(body: Any) -> bytes:
    """Serialize a request body to JSON bytes.

    Raises:
        RuntimeError: Error converting data to json.
    """
    try:
        return orjson.dumps(body)
    except TypeError as err:
        raise RuntimeError(err) from err


def loads(data: bytes) -> Any:
    if not data:
        return {}
    return orjson.loads(data)
