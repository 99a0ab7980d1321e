"""
aiohttp routes for the Credential Manager and the Session Store.

Handlers call one operation, turn its outcome (return value or
IdentityError) into a result variant and resolve it to a response.
"""
import logging
from typing import Optional

import orjson
from aiohttp import web
from pydantic import BaseModel, ValidationError

from .exceptions import IdentityError, BadRequest
from .results import Result, Ok, Created, NoContent, Blob, Failure
from .service import IDENTITY_SERVICE, IdentityService

logger = logging.getLogger("navigator.identity")

routes = web.RouteTableDef()


class PasswordBody(BaseModel):
    password: str


class CreatePasswordBody(BaseModel):
    new_password: str
    old_password: Optional[str] = None
    token: Optional[str] = None


class TokenBody(BaseModel):
    token: str


def _service(request: web.Request) -> IdentityService:
    return request.app[IDENTITY_SERVICE]


async def _parse(request: web.Request, model: type[BaseModel]) -> BaseModel:
    """Decode and validate a JSON request body.

    Raises:
        BadRequest: the body is not JSON or does not fit ``model``.
    """
    raw = await request.read()
    try:
        data = orjson.loads(raw or b'{}')
    except orjson.JSONDecodeError as err:
        raise BadRequest(f"Invalid JSON body: {err}") from err
    if not isinstance(data, dict):
        raise BadRequest("JSON body must be an object")
    try:
        return model.model_validate(data)
    except ValidationError as err:
        fields = ', '.join(
            '.'.join(str(p) for p in e['loc']) for e in err.errors()
        )
        raise BadRequest(f"Invalid fields: {fields}") from err


async def _resolve(operation) -> web.Response:
    """Await an operation coroutine returning a Result; map errors once."""
    try:
        result: Result = await operation
    except IdentityError as err:
        result = Failure.from_error(err)
    return result.to_response()


# ----------------------------------------------------------------------
# Credentials
# ----------------------------------------------------------------------

@routes.post('/user/{userid}/password/verify')
async def verify_password(request: web.Request) -> web.Response:
    async def operation():
        body = await _parse(request, PasswordBody)
        await _service(request).credentials.verify_password(
            request.match_info['userid'], body.password,
        )
        return Ok()
    return await _resolve(operation())


@routes.post('/user/{userid}/password/reset')
async def reset_password(request: web.Request) -> web.Response:
    async def operation():
        token = await _service(request).credentials.reset_password(
            request.match_info['userid'],
        )
        return Created(body={'token': token})
    return await _resolve(operation())


@routes.post('/user/{userid}/password')
async def create_password(request: web.Request) -> web.Response:
    async def operation():
        body = await _parse(request, CreatePasswordBody)
        await _service(request).credentials.create_password(
            request.match_info['userid'],
            body.new_password,
            old_password=body.old_password,
            token=body.token,
        )
        return Created()
    return await _resolve(operation())


@routes.post('/user/{userid}/2fa/verify')
async def verify_token(request: web.Request) -> web.Response:
    async def operation():
        body = await _parse(request, TokenBody)
        await _service(request).credentials.verify_token(
            request.match_info['userid'], body.token,
        )
        return Ok()
    return await _resolve(operation())


@routes.post('/user/{userid}/2fa')
async def create_token(request: web.Request) -> web.Response:
    async def operation():
        enrollment = await _service(request).credentials.create_token(
            request.match_info['userid'],
        )
        return Created(body=enrollment.to_dict())
    return await _resolve(operation())


# ----------------------------------------------------------------------
# Sessions
# ----------------------------------------------------------------------

@routes.get('/session/{key}')
async def get_session(request: web.Request) -> web.Response:
    async def operation():
        blob = await _service(request).sessions.get(request.match_info['key'])
        return Blob(body=blob)
    return await _resolve(operation())


@routes.put('/session/{key}')
async def put_session(request: web.Request) -> web.Response:
    async def operation():
        blob = await request.read()
        await _service(request).sessions.put(request.match_info['key'], blob)
        return Created()
    return await _resolve(operation())


@routes.delete('/session/{key}')
async def delete_session(request: web.Request) -> web.Response:
    async def operation():
        await _service(request).sessions.delete(request.match_info['key'])
        return NoContent()
    return await _resolve(operation())
