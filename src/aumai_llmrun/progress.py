"""Transfer progress tracking and spinner rendering for aumai-llmrun."""

from __future__ import annotations

import sys
import threading
from typing import Any, Callable, Protocol

import click
from tqdm import tqdm

from .models import ProgressResponse

__all__ = [
    "DigestLabel",
    "TransferProgressTracker",
    "Spinner",
]

_SPINNER_FRAMES = "⠋⠙⠹⠸⠼⠴⠦⠧⠇⠏"
_SPINNER_INTERVAL = 0.06  # seconds


class ProgressBar(Protocol):
    n: float

    def update(self, n: float = 1) -> Any: ...

    def refresh(self) -> Any: ...

    def close(self) -> Any: ...


class DigestLabel:
    """
    Derive a short display label from a content digest.

    Digests look like ``<algorithm>:<hex>`` (``sha256:9f86d0...``). The
    algorithm prefix is dropped by splitting on the first ``:`` and the
    first *length* characters of the remainder are kept, followed by
    *ellipsis*. A digest without a prefix is shortened as-is.
    """

    def __init__(self, length: int = 16, ellipsis: str = "...") -> None:
        if length <= 0:
            raise ValueError(f"label length must be positive, got {length}")
        self.length = length
        self.ellipsis = ellipsis

    def __call__(self, digest: str) -> str:
        if not digest:
            raise ValueError("cannot label an empty digest")
        _, sep, encoded = digest.partition(":")
        if not sep or not encoded:
            encoded = digest
        if len(encoded) <= self.length:
            return encoded
        return encoded[: self.length] + self.ellipsis


def _byte_bar(total: int, description: str) -> ProgressBar:
    return tqdm(
        total=total or None,
        desc=description,
        unit="B",
        unit_scale=True,
        unit_divisor=1024,
        file=sys.stderr,
        dynamic_ncols=True,
    )


def _echo_status(status: str) -> None:
    click.echo(status)


class TransferProgressTracker:
    """
    Render pull/push progress events keyed by layer digest.

    Create one tracker per transfer and feed it every event in order:

    * a new non-empty digest closes the open bar and opens one sized to
      ``event.total``;
    * a repeated digest moves the open bar to ``event.completed``;
    * an empty digest closes the open bar and prints ``event.status``.

    Digests are assumed not to interleave.
    """

    def __init__(
        self,
        verb: str = "pulling",
        *,
        label: Callable[[str], str] | None = None,
        bar_factory: Callable[[int, str], ProgressBar] = _byte_bar,
        echo: Callable[[str], Any] = _echo_status,
    ) -> None:
        self.verb = verb
        self.current_digest = ""
        self._label = label or DigestLabel()
        self._bar_factory = bar_factory
        self._echo = echo
        self._bar: ProgressBar | None = None

    def __call__(self, event: ProgressResponse) -> None:
        self.handle(event)

    def handle(self, event: ProgressResponse) -> None:
        """Advance the state machine with one progress event."""
        if event.digest and event.digest != self.current_digest:
            self._close_bar()
            self._bar = self._bar_factory(
                event.total, f"{self.verb} {self._label(event.digest)}"
            )
            self.current_digest = event.digest
            if event.completed:
                self._set_position(event.completed)
        elif event.digest:
            self._set_position(event.completed)
        else:
            self._close_bar()
            self.current_digest = ""
            self._echo(event.status)

    def close(self) -> None:
        """Finalise the open bar, if any."""
        self._close_bar()
        self.current_digest = ""

    def __enter__(self) -> TransferProgressTracker:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def _set_position(self, completed: int) -> None:
        bar = self._bar
        if bar is None:
            return
        if completed >= bar.n:
            bar.update(completed - bar.n)
        else:
            bar.n = completed
            bar.refresh()

    def _close_bar(self) -> None:
        if self._bar is not None:
            self._bar.close()
            self._bar = None


class Spinner:
    """
    Animate a one-line spinner on stderr from a background thread.

    The thread redraws every ``interval`` seconds until :meth:`stop` is
    called; stopping clears the line. The spinner holds no data shared
    with the caller beyond its stop event.
    """

    def __init__(self, interval: float = _SPINNER_INTERVAL, file: Any = None) -> None:
        self.interval = interval
        self._file = file
        self._stopped = threading.Event()
        self._thread: threading.Thread | None = None
        self._bar: tqdm[Any] | None = None

    @property
    def finished(self) -> bool:
        return self._stopped.is_set()

    def start(self) -> Spinner:
        if self._thread is not None:
            return self
        self._bar = tqdm(
            total=None,
            bar_format="{desc}",
            file=self._file or sys.stderr,
            leave=False,
        )
        self._thread = threading.Thread(
            target=self._run, args=(self._bar,), name="llmrun-spinner", daemon=True
        )
        self._thread.start()
        return self

    def stop(self) -> None:
        """Stop animating and clear the line. Safe to call more than once."""
        if self._stopped.is_set():
            return
        self._stopped.set()
        if self._thread is not None:
            self._thread.join()
        if self._bar is not None:
            self._bar.close()

    def __enter__(self) -> Spinner:
        return self.start()

    def __exit__(self, *args: object) -> None:
        self.stop()

    def _run(self, bar: tqdm[Any]) -> None:
        frame = 0
        while not self._stopped.wait(self.interval):
            bar.set_description_str(_SPINNER_FRAMES[frame % len(_SPINNER_FRAMES)])
            frame += 1
