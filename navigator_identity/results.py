"""
Operation results.

Each HTTP operation resolves to one of these variants; ``to_response``
turns it into the wire response in a single place.
"""
from dataclasses import dataclass
from typing import Any, Optional

import orjson
from aiohttp import web

from .exceptions import IdentityError, BadRequest


@dataclass(frozen=True)
class Result:
    status: int = 200
    body: Any = None

    def to_response(self) -> web.Response:
        if self.body is None:
            return web.Response(status=self.status)
        return web.Response(
            status=self.status,
            body=orjson.dumps(self.body),
            content_type='application/json',
        )


@dataclass(frozen=True)
class Ok(Result):
    status: int = 200


@dataclass(frozen=True)
class Created(Result):
    status: int = 201


@dataclass(frozen=True)
class NoContent(Result):
    status: int = 204


@dataclass(frozen=True)
class Blob(Result):
    """Opaque binary payload, returned verbatim."""
    status: int = 200
    body: bytes = b''

    def to_response(self) -> web.Response:
        return web.Response(
            status=self.status,
            body=self.body,
            content_type='application/binary',
        )


@dataclass(frozen=True)
class Failure(Result):
    status: int = 500
    title: str = 'internal_error'
    detail: Optional[str] = None

    def to_response(self) -> web.Response:
        body = {'title': self.title}
        if self.detail:
            body['detail'] = self.detail
        return web.Response(
            status=self.status,
            body=orjson.dumps(body),
            content_type='application/json',
        )

    @classmethod
    def from_error(cls, err: IdentityError) -> "Failure":
        # only input errors describe themselves to the caller
        detail = err.message if isinstance(err, BadRequest) else None
        return cls(status=err.status, title=err.title, detail=detail)
