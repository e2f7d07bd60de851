"""Error classes and response error discrimination for aumai-llmrun."""

from __future__ import annotations

import logging
from http import HTTPStatus

from pydantic import ValidationError

from .models import ErrorResponse

__all__ = [
    "LlmrunError",
    "TransportError",
    "StatusError",
    "DecodeError",
    "SessionBusyError",
    "raise_for_error",
]

logger = logging.getLogger(__name__)


class LlmrunError(Exception):
    """Base exception for aumai-llmrun. All client errors inherit from it."""


class TransportError(LlmrunError):
    """
    The connection to the server could not be established or was cut.

    The originating ``httpx`` exception is chained as ``__cause__``.
    """


class StatusError(LlmrunError):
    """
    The server reported a failure.

    Raised both for an error envelope embedded in a body or stream line and
    for a failing HTTP status without one.

    Attributes:
        code: Status code, always >= 400.
        message: Server supplied text, possibly empty.
    """

    def __init__(self, code: int, message: str = "") -> None:
        self.code = code
        self.message = message
        super().__init__(code, message)

    def __str__(self) -> str:
        try:
            phrase = HTTPStatus(self.code).phrase
        except ValueError:
            phrase = ""
        status = f"{self.code} {phrase}".rstrip()
        if self.message:
            return f"{status}: {self.message}"
        return status

    def __repr__(self) -> str:
        return f"StatusError(code={self.code!r}, message={self.message!r})"


class DecodeError(LlmrunError):
    """A body or stream line is not well-formed for its expected shape."""


class SessionBusyError(LlmrunError):
    """A generation call is already in flight for this session."""


def raise_for_error(body: bytes | str, status_code: int) -> None:
    """
    Raise if *body* (a full response or one stream line) signals failure.

    An embedded envelope with ``code >= 400`` wins over the transport
    status, so a 200 response carrying ``{"code": 404, ...}`` still fails.
    Otherwise a transport status >= 400 fails with whatever message the
    body carried. A body that is not JSON is a ``DecodeError`` unless the
    status already marks the response as failed, in which case its raw
    text becomes the message.
    """
    text = body.decode("utf-8", errors="replace") if isinstance(body, bytes) else body
    if not text.strip():
        envelope = ErrorResponse()
    else:
        try:
            envelope = ErrorResponse.model_validate_json(text)
        except ValidationError as exc:
            if status_code >= 400:
                logger.debug("HTTP %d with unparseable body", status_code)
                raise StatusError(status_code, text.strip()) from exc
            raise DecodeError(f"unmarshal: {_first_error(exc)}") from exc

    if envelope.code >= 400:
        logger.debug("embedded error %d: %s", envelope.code, envelope.message)
        raise StatusError(envelope.code, envelope.message)
    if status_code >= 400:
        logger.debug("HTTP %d: %s", status_code, envelope.message)
        raise StatusError(status_code, envelope.message)


def _first_error(exc: ValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return str(exc)
    return errors[0].get("msg", str(exc))
