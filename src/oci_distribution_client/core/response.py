"""Interpretation of registry responses."""

import json
import logging
from typing import Any

import aiohttp
from yarl import URL

from ..exceptions import DecodeError, ErrorDetail, MissingLocation, RegistryError

logger = logging.getLogger(__name__)


def is_success(status: int) -> bool:
    """Check if status is in the 2xx class."""
    return 200 <= status < 300


def decode_error_body(status: int, body: bytes) -> RegistryError:
    """Decode an OCI distribution error document.

    Expected shape: ``{"errors": [{"code": ..., "message": ..., "detail": ...}]}``

    Returns:
        RegistryError carrying every entry of the document

    Raises:
        DecodeError: If the body does not have the expected shape
    """
    try:
        document: Any = json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise DecodeError(
            f"Registry returned {status} with a non-JSON error body", status
        ) from e

    if not isinstance(document, dict) or not isinstance(document.get("errors"), list):
        raise DecodeError(
            f"Registry returned {status} without an 'errors' array", status
        )

    errors = []
    for entry in document["errors"]:
        if not isinstance(entry, dict):
            raise DecodeError(f"Malformed error entry: {entry!r}", status)
        code = entry.get("code")
        if not isinstance(code, str):
            raise DecodeError(f"Error entry has no code: {entry!r}", status)
        message = entry.get("message", "")
        if not isinstance(message, str):
            raise DecodeError(f"Error entry message must be a string: {entry!r}", status)
        errors.append(ErrorDetail(code=code, message=message, detail=entry.get("detail")))

    return RegistryError(status, errors)


async def raise_for_registry_error(resp: aiohttp.ClientResponse) -> None:
    """Raise RegistryError (or DecodeError) if the response is not 2xx.

    Raises:
        RegistryError: If the body is a well-formed error document
        DecodeError: If the body cannot be decoded as one
    """
    if is_success(resp.status):
        return

    body = await resp.read()
    error = decode_error_body(resp.status, body)
    logger.debug(
        "%s %s failed with %s (%s)",
        resp.method,
        resp.url,
        resp.status,
        error.code,
    )
    raise error


def parse_location(value: str | None, request_url: URL, status: int) -> URL:
    """Resolve a Location header value into an absolute URL.

    Raises:
        MissingLocation: If the value is absent or not a usable URL
    """
    if not value:
        raise MissingLocation("Location not included in response", status)

    try:
        location = URL(value)
    except (ValueError, TypeError) as e:
        raise MissingLocation(f"Unparseable Location header: {value!r}", status) from e

    # Registries commonly answer with a path-only Location
    if not location.is_absolute():
        location = request_url.join(location)
    if location.scheme not in ("http", "https") or not location.host:
        raise MissingLocation(f"Unusable Location header: {value!r}", status)
    return location


async def location_from_response(resp: aiohttp.ClientResponse) -> URL:
    """Classify a response that must carry a Location header.

    The success path never reads the body; only the status class decides
    which path is taken.

    Returns:
        Absolute URL from the Location header

    Raises:
        MissingLocation: If a 2xx response has no usable Location
        RegistryError: If the response is a registry error
        DecodeError: If the error body is malformed
    """
    await raise_for_registry_error(resp)
    return parse_location(resp.headers.get("Location"), resp.url, resp.status)
