"""
aumai-llmrun quickstart — working demo of list, pull, and a two-turn chat.

Run directly:

    python examples/quickstart.py

The demos talk to an in-process fake server (``httpx.MockTransport``), so
no model-serving backend is needed. Point ``LlmrunClient(host=...)`` at a
real endpoint to use them for real.
"""

from __future__ import annotations

import json

import httpx


def _ndjson(*docs: dict) -> bytes:
    return b"".join(json.dumps(d).encode() + b"\n" for d in docs)


def _fake_server(request: httpx.Request) -> httpx.Response:
    """Answer the handful of endpoints the demos use."""
    path = request.url.path
    if path == "/api/tags":
        return httpx.Response(
            200,
            json={
                "models": [
                    {"name": "llama2:latest", "size": 3825819519,
                     "modified_at": "2023-07-01T12:30:00Z"},
                ]
            },
        )
    if path == "/api/pull":
        digest = "sha256:8daa9615cce30c259a9555b1cc250d461d1bc69980a274b44d7eda0be78076d8"
        return httpx.Response(
            200,
            content=_ndjson(
                {"status": "pulling manifest"},
                {"status": "downloading", "digest": digest, "total": 4096, "completed": 0},
                {"status": "downloading", "digest": digest, "total": 4096, "completed": 2048},
                {"status": "downloading", "digest": digest, "total": 4096, "completed": 4096},
                {"status": "verifying sha256 digest"},
                {"status": "success"},
            ),
        )
    if path == "/api/generate":
        body = json.loads(request.content)
        turn = len(body.get("context", []))
        return httpx.Response(
            200,
            content=_ndjson(
                {"response": f"(turn with {turn} context tokens) ", "done": False},
                {"response": "Hello!", "done": False},
                {"response": "", "done": True, "context": body.get("context", []) + [turn + 1]},
            ),
        )
    return httpx.Response(404, json={"error": f"no route for {path}"})


def _client():
    from aumai_llmrun.core import LlmrunClient

    return LlmrunClient(transport=httpx.MockTransport(_fake_server))


# ---------------------------------------------------------------------------
# Demo 1: List models
# ---------------------------------------------------------------------------

def demo_list() -> None:
    """List the models the server knows about."""
    print("\n=== Demo 1: List models ===")

    with _client() as client:
        listing = client.list()
    for model in listing.models:
        print(f"  {model.name:<20} {model.size:>12} bytes  {model.modified_at}")


# ---------------------------------------------------------------------------
# Demo 2: Pull with progress bars
# ---------------------------------------------------------------------------

def demo_pull() -> None:
    """Pull a model, rendering one progress bar per layer."""
    print("\n=== Demo 2: Pull a model ===")

    from aumai_llmrun.models import PullRequest
    from aumai_llmrun.progress import TransferProgressTracker

    with _client() as client, TransferProgressTracker("pulling") as tracker:
        client.pull(PullRequest(name="llama2"), tracker)


# ---------------------------------------------------------------------------
# Demo 3: Two-turn chat sharing context
# ---------------------------------------------------------------------------

def demo_chat() -> None:
    """Run two turns in one session; the second carries the first's context."""
    print("\n=== Demo 3: Chat session ===")

    from aumai_llmrun.session import ChatSession

    with _client() as client:
        session = ChatSession(client, "llama2")
        for prompt in ("Hi there", "And again"):
            print(f"  >>> {prompt}")
            print("  ", end="")
            session.generate(prompt, lambda chunk: print(chunk.response, end=""))
            print(f"\n  context now: {session.state.context}")


def main() -> None:
    demo_list()
    demo_pull()
    demo_chat()
    print("\nAll demos complete.")


if __name__ == "__main__":
    main()
