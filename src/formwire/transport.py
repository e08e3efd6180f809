# pyright: standard

"""Hand encoded entities to HTTP client libraries without sending them."""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping
from typing import Optional
from urllib.parse import urlsplit

import httpx
import requests

from .entity import Entity

__all__ = [
    "build_headers",
    "redact_url_for_logs",
    "to_httpx_request",
    "to_requests_request",
]

logger = logging.getLogger(__name__)


class _SizedBody:
    """Iterable body that advertises its length so Requests skips chunked encoding."""

    def __init__(self, entity: Entity) -> None:
        self._entity = entity

    def __iter__(self) -> Iterator[bytes]:
        return self._entity.iter_bytes()

    def __len__(self) -> int:
        assert self._entity.content_length is not None
        return self._entity.content_length


def build_headers(entity: Entity, headers: Optional[Mapping[str, str]] = None) -> dict[str, str]:
    """
    Merge entity metadata into *headers*.

    Explicit ``Content-Type``/``Content-Length`` values from the caller win;
    a multipart boundary is only meaningful when the entity's own content
    type is used, so callers overriding it for multipart bodies are warned.
    """

    merged = {str(key): str(value) for key, value in (headers or {}).items()}
    lowered = {key.lower() for key in merged}
    if entity.content_type and "content-type" not in lowered:
        merged["Content-Type"] = entity.content_type
    elif entity.content_type and "boundary=" in entity.content_type:
        logger.warning("Caller Content-Type overrides the multipart boundary; the server may reject the body")
    if entity.content_length is not None and "content-length" not in lowered:
        if entity.content_length or entity.content_type:
            merged["Content-Length"] = str(entity.content_length)
    return merged


def to_httpx_request(
    method: str,
    url: str,
    entity: Entity,
    headers: Optional[Mapping[str, str]] = None,
) -> httpx.Request:
    """Build an :class:`httpx.Request`; unknown lengths are sent chunked by httpx."""

    merged = build_headers(entity, headers)
    content: bytes | Iterator[bytes]
    if entity.is_streaming:
        content = entity.iter_bytes()
    else:
        content = entity.read()
    logger.debug(
        "Prepared httpx %s request for %s (%s, length=%s)",
        method.upper(),
        redact_url_for_logs(url),
        entity.route.value,
        entity.content_length,
    )
    return httpx.Request(method.upper(), url, headers=merged, content=content)


def to_requests_request(
    method: str,
    url: str,
    entity: Entity,
    headers: Optional[Mapping[str, str]] = None,
) -> requests.PreparedRequest:
    """Build a :class:`requests.PreparedRequest` ready for ``Session.send``."""

    merged = build_headers(entity, headers)
    data: bytes | _SizedBody | Iterator[bytes] | None
    if not entity.is_streaming:
        data = entity.read() or None
    elif entity.content_length is not None:
        data = _SizedBody(entity)
    else:
        merged.pop("Content-Length", None)
        data = entity.iter_bytes()
    logger.debug(
        "Prepared requests %s request for %s (%s, length=%s)",
        method.upper(),
        redact_url_for_logs(url),
        entity.route.value,
        entity.content_length,
    )
    return requests.Request(method.upper(), url, headers=merged, data=data).prepare()


def redact_url_for_logs(url: str) -> str:
    """Return a safe identifier for URLs when logging sensitive endpoints."""

    try:
        parsed = urlsplit(url)
    except ValueError:
        return "url"
    if parsed.netloc:
        return parsed.hostname or parsed.netloc
    return parsed.path or "url"
