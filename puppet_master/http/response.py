"""Sending requests and mapping responses onto the error taxonomy."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from puppet_master.core.errors import (
    MalformedResponse,
    NotFound,
    TransientReadError,
    TransportError,
    UnexpectedResponse,
    ValidationFailed,
)
from puppet_master.http.debug import dump_request, dump_response
from puppet_master.schemas.job import ValidationErrorEnvelope

logger = logging.getLogger(__name__)

SchemaT = TypeVar("SchemaT", bound=BaseModel)

# Connection dropped after the request went out: EOF, short read, stalled body.
_TRANSIENT_READ_ERRORS = (httpx.ReadError, httpx.RemoteProtocolError, httpx.ReadTimeout)


def _translate_transport_error(exc: httpx.TransportError) -> TransportError:
    if isinstance(exc, _TRANSIENT_READ_ERRORS):
        return TransientReadError(f"transient read failure: {exc}")
    return TransportError(f"transport failure: {exc}")


@contextmanager
def open_response(http: httpx.Client, request: httpx.Request, *, debug: bool = False) -> Iterator[httpx.Response]:
    """Send ``request`` and yield the response with its body fully read.

    The response is closed on every exit path.
    """
    if debug:
        dump_request(request)

    try:
        response = http.send(request, stream=True)
    except httpx.TransportError as exc:
        raise _translate_transport_error(exc) from exc

    try:
        try:
            response.read()
        except httpx.TransportError as exc:
            raise _translate_transport_error(exc) from exc
        except httpx.DecodingError as exc:
            raise MalformedResponse(response.status_code, "", str(exc)) from exc

        if debug:
            dump_response(response)

        yield response
    finally:
        response.close()


def _body_text(response: httpx.Response) -> str:
    return response.content.decode(response.encoding or "utf-8", errors="replace")


def _decode(response: httpx.Response, schema: type[SchemaT]) -> SchemaT:
    try:
        return schema.model_validate_json(response.content)
    except ValidationError as exc:
        raise MalformedResponse(response.status_code, _body_text(response), str(exc)) from exc


def interpret_response(
    response: httpx.Response,
    expected_status: int,
    schema: type[SchemaT] | None = None,
    *,
    accepts_validation_errors: bool = False,
) -> SchemaT | None:
    """Return the decoded body for the expected status, raise otherwise."""
    status = response.status_code

    if status == expected_status:
        if schema is None:
            return None
        return _decode(response, schema)

    if status == 404:
        raise NotFound()

    if status == 422 and accepts_validation_errors:
        envelope = _decode(response, ValidationErrorEnvelope)
        raise ValidationFailed(envelope.errors)

    logger.debug("Unexpected status %s (expected %s)", status, expected_status)
    raise UnexpectedResponse(status, _body_text(response))
