"""Pydantic models for aumai-llmrun."""

from __future__ import annotations

import os
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

__all__ = [
    "ErrorResponse",
    "Options",
    "GenerateRequest",
    "GenerateResponse",
    "PullRequest",
    "PushRequest",
    "ProgressResponse",
    "CreateRequest",
    "CreateResponse",
    "ListModel",
    "ListResponse",
]

_NANOSECONDS = 1_000_000_000


class ErrorResponse(BaseModel):
    """Error envelope embedded in a response body or stream line."""

    model_config = ConfigDict(populate_by_name=True)

    code: int = 0
    message: str = Field(default="", alias="error")


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


class Options(BaseModel):
    """
    Inference hyperparameters.

    The client never interprets these; they are forwarded to the server
    as the ``options`` object of a generate request.
    """

    model_config = ConfigDict(frozen=True)

    seed: int = -1

    # Backend options
    numa: bool = False

    # Model options
    num_ctx: int = 2048
    num_batch: int = 512
    num_gpu: int = 1
    main_gpu: int = 0
    low_vram: bool = False
    f16_kv: bool = True
    logits_all: bool = False
    vocab_only: bool = False
    use_mmap: bool = True
    use_mlock: bool = False
    embedding_only: bool = False

    # Predict options
    repeat_last_n: int = 512
    repeat_penalty: float = 1.1
    frequency_penalty: float = 0.0
    presence_penalty: float = 0.0
    temperature: float = 0.8
    top_k: int = 40
    top_p: float = 0.9
    tfs_z: float = 1.0
    typical_p: float = 1.0
    mirostat: int = 0
    mirostat_tau: float = 5.0
    mirostat_eta: float = 0.1

    num_thread: int = Field(default_factory=lambda: os.cpu_count() or 1)


class GenerateRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    model: str
    prompt: str
    context: list[int] = Field(default_factory=list)
    session_id: int | None = None
    options: Options | None = None


class PullRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    username: str = ""
    password: str = ""


class PushRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    username: str = ""
    password: str = ""


class CreateRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    path: str      # Modelfile location as seen by the server


# ---------------------------------------------------------------------------
# Stream events and responses
# ---------------------------------------------------------------------------


class GenerateResponse(BaseModel):
    """One chunk of a generation stream; the final chunk has ``done`` set."""

    model: str = ""
    created_at: datetime | None = None
    response: str = ""

    done: bool = False
    context: list[int] = Field(default_factory=list)
    session_id: int | None = None

    # Durations are nanoseconds
    total_duration: int = 0
    prompt_eval_count: int = 0
    prompt_eval_duration: int = 0
    eval_count: int = 0
    eval_duration: int = 0

    def summary_lines(self) -> list[str]:
        """Return human-readable timing lines for the non-zero counters."""
        lines: list[str] = []
        if self.total_duration > 0:
            lines.append(
                f"total duration:       {_seconds(self.total_duration)}"
            )
        if self.prompt_eval_count > 0:
            lines.append(
                f"prompt eval count:    {self.prompt_eval_count} token(s)"
            )
        if self.prompt_eval_duration > 0:
            lines.append(
                f"prompt eval duration: {_seconds(self.prompt_eval_duration)}"
            )
            rate = self.prompt_eval_count / (self.prompt_eval_duration / _NANOSECONDS)
            lines.append(f"prompt eval rate:     {rate:.2f} tokens/s")
        if self.eval_count > 0:
            lines.append(f"eval count:           {self.eval_count} token(s)")
        if self.eval_duration > 0:
            lines.append(f"eval duration:        {_seconds(self.eval_duration)}")
            rate = self.eval_count / (self.eval_duration / _NANOSECONDS)
            lines.append(f"eval rate:            {rate:.2f} tokens/s")
        return lines


class ProgressResponse(BaseModel):
    """Transfer progress record emitted by pull and push."""

    status: str = ""
    digest: str = ""       # empty for non-transfer phases
    total: int = 0         # bytes
    completed: int = 0     # bytes
    percent: float = 0.0


class CreateResponse(BaseModel):
    status: str = ""


class ListModel(BaseModel):
    name: str
    size: int = 0
    modified_at: datetime | None = None


class ListResponse(BaseModel):
    models: list[ListModel] = Field(default_factory=list)


def _seconds(nanoseconds: int) -> str:
    return f"{nanoseconds / _NANOSECONDS:.6g}s"
