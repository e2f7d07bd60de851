"""Core client logic for aumai-llmrun."""

from __future__ import annotations

import logging
from typing import Any, Callable, Iterator, TypeVar, cast

import httpx
from pydantic import BaseModel, ValidationError

from .config import DEFAULT_HOST, DEFAULT_PORT
from .errors import DecodeError, TransportError, raise_for_error
from .models import (
    CreateRequest,
    CreateResponse,
    GenerateRequest,
    GenerateResponse,
    ListResponse,
    ProgressResponse,
    PullRequest,
    PushRequest,
)

__all__ = [
    "LlmrunClient",
    "decode_event",
]

logger = logging.getLogger(__name__)

EventT = TypeVar("EventT", bound=BaseModel)
ResultT = TypeVar("ResultT", bound=BaseModel)

_HEADERS = {
    "Content-Type": "application/json",
    "Accept": "application/json",
}


def decode_event(model: type[EventT], line: bytes | str) -> EventT:
    """Decode one JSON document into *model*, raising ``DecodeError`` on mismatch."""
    try:
        return model.model_validate_json(line)
    except ValidationError as exc:
        raise DecodeError(f"decode {model.__name__}: {exc}") from exc


def _base_url(host: str | None) -> str:
    if not host:
        return f"http://{DEFAULT_HOST}:{DEFAULT_PORT}"
    if "://" in host:
        return host.rstrip("/")
    return f"http://{host}"


class LlmrunClient:
    """
    Client for a model-serving endpoint speaking JSON and NDJSON streams.

    Every call blocks until the response is fully consumed. No retries are
    attempted and no timeout is imposed on top of the transport.

    Args:
        host: ``"host:port"`` or a full base URL. Defaults to
            ``127.0.0.1:11434``.
        transport: Optional ``httpx`` transport, mainly for tests.
    """

    def __init__(
        self,
        host: str | None = None,
        *,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._base_url = _base_url(host)
        self._client = httpx.Client(
            base_url=self._base_url,
            headers=_HEADERS,
            timeout=None,
            transport=transport,
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def generate(
        self,
        request: GenerateRequest,
        fn: Callable[[GenerateResponse], Any],
    ) -> None:
        """Stream a generation, handing each chunk to *fn* in arrival order."""
        self._stream("POST", "/api/generate", request, GenerateResponse, fn)

    def pull(
        self,
        request: PullRequest,
        fn: Callable[[ProgressResponse], Any],
    ) -> None:
        """Pull a model from a registry, reporting transfer progress to *fn*."""
        self._stream("POST", "/api/pull", request, ProgressResponse, fn)

    def push(
        self,
        request: PushRequest,
        fn: Callable[[ProgressResponse], Any],
    ) -> None:
        """Push a model to a registry, reporting transfer progress to *fn*."""
        self._stream("POST", "/api/push", request, ProgressResponse, fn)

    def create(
        self,
        request: CreateRequest,
        fn: Callable[[CreateResponse], Any],
    ) -> None:
        """Create a model from a Modelfile, reporting status lines to *fn*."""
        self._stream("POST", "/api/create", request, CreateResponse, fn)

    def list(self) -> ListResponse:
        """Return the models known to the server."""
        return cast(ListResponse, self._do("GET", "/api/tags", result_type=ListResponse))

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def _do(
        self,
        method: str,
        path: str,
        request: BaseModel | None = None,
        result_type: type[ResultT] | None = None,
    ) -> ResultT | None:
        """
        Issue a single-shot call and decode the complete body.

        A zero-length body with a declared *result_type* yields the
        zero-valued ``result_type()`` rather than a decode error.
        """
        logger.debug("%s %s", method, path)
        try:
            response = self._client.request(
                method, path, content=_encode(request)
            )
        except httpx.TransportError as exc:
            raise TransportError(f"{method} {path}: {exc}") from exc

        body = response.content
        logger.debug(
            "%s %s -> %d (%d bytes)", method, path, response.status_code, len(body)
        )
        raise_for_error(body, response.status_code)

        if result_type is None:
            return None
        if not body:
            return result_type()
        return decode_event(result_type, body)

    def _stream(
        self,
        method: str,
        path: str,
        request: BaseModel | None,
        event_type: type[EventT],
        sink: Callable[[EventT], Any],
    ) -> None:
        """
        Issue a streaming call and feed one decoded event per line to *sink*.

        A decode failure or an exception raised by *sink* stops reading;
        events already delivered stay delivered. The response body is
        closed on every exit path.
        """
        logger.debug("%s %s (stream)", method, path)
        try:
            with self._client.stream(
                method, path, content=_encode(request)
            ) as response:
                logger.debug("%s %s -> %d", method, path, response.status_code)
                delivered = False
                for line in _iter_lines(response):
                    if not line.strip():
                        continue
                    raise_for_error(line, response.status_code)
                    sink(decode_event(event_type, line))
                    delivered = True
                if not delivered:
                    # a failing status with an empty body still fails
                    raise_for_error(b"", response.status_code)
        except httpx.TransportError as exc:
            raise TransportError(f"{method} {path}: {exc}") from exc

    # ------------------------------------------------------------------
    # Context manager
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Close the underlying HTTP connection pool."""
        self._client.close()

    def __enter__(self) -> LlmrunClient:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()


def _encode(request: BaseModel | None) -> bytes | None:
    if request is None:
        return None
    return request.model_dump_json(exclude_none=True).encode("utf-8")


def _iter_lines(response: httpx.Response) -> Iterator[bytes]:
    """Split an NDJSON body on ``\\n`` only; other Unicode line breaks are content."""
    pending = b""
    for chunk in response.iter_bytes():
        pending += chunk
        *lines, pending = pending.split(b"\n")
        for line in lines:
            yield line.removesuffix(b"\r")
    if pending:
        yield pending.removesuffix(b"\r")
