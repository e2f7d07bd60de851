"""Conversation state carried across generation turns."""

from __future__ import annotations

import threading
from typing import Any, Callable

from pydantic import BaseModel, ConfigDict, Field

from .core import LlmrunClient
from .errors import SessionBusyError
from .models import GenerateRequest, GenerateResponse, Options

__all__ = [
    "ConversationState",
    "ChatSession",
]


class ConversationState(BaseModel):
    """Opaque continuation returned by one generation and sent with the next."""

    model_config = ConfigDict(frozen=True)

    context: list[int] = Field(default_factory=list)
    session_id: int | None = None

    @classmethod
    def from_response(cls, response: GenerateResponse) -> ConversationState:
        return cls(context=list(response.context), session_id=response.session_id)


class ChatSession:
    """
    One interactive run of generation turns against a single model.

    Each successful :meth:`generate` replaces the held state with the
    ``context`` and ``session_id`` of its final response; a failed turn
    leaves the previous state untouched. Sessions share nothing with each
    other and allow only one turn in flight at a time.
    """

    def __init__(
        self,
        client: LlmrunClient,
        model: str,
        options: Options | None = None,
    ) -> None:
        self.client = client
        self.model = model
        self.options = options
        self.state = ConversationState()
        self._busy = threading.Lock()

    def request_for(self, prompt: str) -> GenerateRequest:
        """Build the next request, carrying the current state unmodified."""
        return GenerateRequest(
            model=self.model,
            prompt=prompt,
            context=list(self.state.context),
            session_id=self.state.session_id,
            options=self.options,
        )

    def generate(
        self,
        prompt: str,
        fn: Callable[[GenerateResponse], Any],
    ) -> GenerateResponse | None:
        """
        Run one turn, forwarding every chunk to *fn*.

        Returns the last chunk received, or ``None`` when the server sent
        nothing.
        """
        if not self._busy.acquire(blocking=False):
            raise SessionBusyError(
                f"a generation is already running for session on {self.model!r}"
            )
        try:
            latest: GenerateResponse | None = None

            def sink(response: GenerateResponse) -> None:
                nonlocal latest
                latest = response
                fn(response)

            self.client.generate(self.request_for(prompt), sink)
            if latest is not None:
                self.state = ConversationState.from_response(latest)
            return latest
        finally:
            self._busy.release()

    def reset(self) -> None:
        """Forget the conversation so the next turn starts fresh."""
        self.state = ConversationState()
