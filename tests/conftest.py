"""Shared test fixtures for aumai-llmrun."""

from __future__ import annotations

import json
from typing import Any, Callable, Iterable

import httpx
import pytest

from aumai_llmrun.core import LlmrunClient
from aumai_llmrun.models import ProgressResponse

Handler = Callable[[httpx.Request], httpx.Response]


def ndjson(*documents: dict[str, Any]) -> bytes:
    """Encode *documents* as newline-delimited JSON."""
    return b"".join(json.dumps(doc).encode("utf-8") + b"\n" for doc in documents)


class FakeServer:
    """Routes requests to canned responses and records what it received."""

    def __init__(self) -> None:
        self.routes: dict[tuple[str, str], Handler] = {}
        self.requests: list[httpx.Request] = []

    def add(self, method: str, path: str, handler: Handler) -> None:
        self.routes[(method, path)] = handler

    def reply(
        self,
        method: str,
        path: str,
        content: bytes | Iterable[bytes] = b"",
        status_code: int = 200,
    ) -> None:
        self.add(
            method, path, lambda request: httpx.Response(status_code, content=content)
        )

    def bodies(self, path: str) -> list[dict[str, Any]]:
        return [
            json.loads(request.content)
            for request in self.requests
            if request.url.path == path
        ]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        request.read()
        self.requests.append(request)
        handler = self.routes.get((request.method, request.url.path))
        if handler is None:
            return httpx.Response(404, json={"error": "no route"})
        return handler(request)


# ---------------------------------------------------------------------------
# Client fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def server() -> FakeServer:
    return FakeServer()


@pytest.fixture()
def client(server: FakeServer) -> LlmrunClient:
    return LlmrunClient(transport=httpx.MockTransport(server))


# ---------------------------------------------------------------------------
# Transfer event fixtures
# ---------------------------------------------------------------------------

DIGEST_A = "sha256:" + "a1" * 32
DIGEST_B = "sha256:" + "b2" * 32


@pytest.fixture()
def transfer_events() -> list[ProgressResponse]:
    """Two layers followed by a plain verification status."""
    return [
        ProgressResponse(status="downloading", digest=DIGEST_A, total=100, completed=0),
        ProgressResponse(status="downloading", digest=DIGEST_A, total=100, completed=50),
        ProgressResponse(status="downloading", digest=DIGEST_A, total=100, completed=100),
        ProgressResponse(status="downloading", digest=DIGEST_B, total=10, completed=10),
        ProgressResponse(status="verifying"),
    ]
