"""CLI entry point for aumai-llmrun."""

from __future__ import annotations

import os
import subprocess
import sys
from pathlib import Path
from typing import Callable, TypeVar

import click
from pydantic import ValidationError

from .config import HOST_ENV, PORT_ENV, ClientSettings, configure_logging
from .core import LlmrunClient
from .errors import LlmrunError, StatusError
from .models import (
    CreateRequest,
    CreateResponse,
    GenerateResponse,
    PullRequest,
    PushRequest,
)
from .progress import Spinner, TransferProgressTracker
from .session import ChatSession

T = TypeVar("T")

_BACKEND_ENV = "LLMRUN_BACKEND"
_DEFAULT_BACKEND = "llmrun-server"
_PROMPT = ">>> "


def _settings() -> ClientSettings:
    """Read endpoint settings, exiting with status 1 when they are malformed."""
    try:
        return ClientSettings.from_env()
    except ValidationError:
        click.echo(
            f"Error: invalid {PORT_ENV} {os.getenv(PORT_ENV)!r}: expected an integer port",
            err=True,
        )
        sys.exit(1)


def _client(ctx: click.Context) -> LlmrunClient:
    """Return the client injected into ``ctx.obj`` or one built from the environment."""
    obj = ctx.ensure_object(dict)
    client = obj.get("client")
    if client is None:
        client = LlmrunClient(_settings().address)
        obj["client"] = client
        ctx.call_on_close(client.close)
    return client


def _run_action(action: Callable[[], T]) -> T:
    """Run *action*, turning client and output failures into exit status 1."""
    try:
        return action()
    except (LlmrunError, OSError) as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)


def _format_bytes(size: int) -> str:
    value = float(size)
    for unit in ("B", "KB", "MB", "GB", "TB"):
        if value < 1000 or unit == "TB":
            if unit == "B":
                return f"{int(value)} B"
            return f"{value:.1f} {unit}"
        value /= 1000
    return f"{size} B"


@click.group()
@click.version_option(package_name="aumai-llmrun")
@click.option(
    "--log-level",
    default=None,
    help="Log level for client diagnostics (default: $LLMRUN_LOG_LEVEL or WARNING).",
)
@click.pass_context
def main(ctx: click.Context, log_level: str | None) -> None:
    """AumAI LLMRun — run and manage models on a model-serving endpoint."""
    ctx.ensure_object(dict)
    configure_logging(log_level)


@main.command("serve")
@click.option(
    "--backend",
    envvar=_BACKEND_ENV,
    default=_DEFAULT_BACKEND,
    show_default=True,
    help="Serving backend executable.",
)
def serve_command(backend: str) -> None:
    """Start the model-serving backend on $LLMRUN_HOST:$LLMRUN_PORT."""
    settings = _settings()
    env = dict(os.environ)
    env[HOST_ENV] = settings.host
    env[PORT_ENV] = str(settings.port)
    click.echo(f"Serving on {settings.address}", err=True)
    try:
        completed = subprocess.run([backend, "serve"], env=env, check=False)
    except FileNotFoundError:
        click.echo(f"Error: backend executable not found: {backend}", err=True)
        sys.exit(1)
    sys.exit(completed.returncode)


main.add_command(serve_command, "start")


@main.command("create")
@click.option(
    "-f",
    "--file",
    "filename",
    default="Modelfile",
    show_default=True,
    help="Name of the Modelfile.",
)
@click.argument("model")
@click.pass_context
def create_command(ctx: click.Context, filename: str, model: str) -> None:
    """Create a model from a Modelfile."""
    client = _client(ctx)
    request = CreateRequest(name=model, path=str(Path(filename).resolve()))

    def show(response: CreateResponse) -> None:
        click.echo(response.status)

    _run_action(lambda: client.create(request, show))


def _pull(client: LlmrunClient, model: str, username: str = "", password: str = "") -> None:
    request = PullRequest(name=model, username=username, password=password)
    with TransferProgressTracker("pulling") as tracker:
        client.pull(request, tracker)


@main.command("pull")
@click.argument("model")
@click.option("--username", default="", help="Registry username.")
@click.option("--password", default="", help="Registry password.")
@click.pass_context
def pull_command(ctx: click.Context, model: str, username: str, password: str) -> None:
    """Pull a model from a registry."""
    client = _client(ctx)
    _run_action(lambda: _pull(client, model, username, password))


@main.command("push")
@click.argument("model")
@click.option("--username", default="", help="Registry username.")
@click.option("--password", default="", help="Registry password.")
@click.pass_context
def push_command(ctx: click.Context, model: str, username: str, password: str) -> None:
    """Push a model to a registry."""
    client = _client(ctx)
    request = PushRequest(name=model, username=username, password=password)

    def push() -> None:
        with TransferProgressTracker("pushing") as tracker:
            client.push(request, tracker)

    _run_action(push)


@main.command("list")
@click.pass_context
def list_command(ctx: click.Context) -> None:
    """List models available on the server."""
    client = _client(ctx)
    listing = _run_action(client.list)

    click.echo(f"{'NAME':<40}  {'SIZE':>10}  MODIFIED")
    for entry in listing.models:
        modified = (
            entry.modified_at.strftime("%Y-%m-%d %H:%M") if entry.modified_at else "-"
        )
        click.echo(f"{entry.name:<40}  {_format_bytes(entry.size):>10}  {modified}")


# ---------------------------------------------------------------------------
# run
# ---------------------------------------------------------------------------


def _generate(session: ChatSession, prompt: str, verbose: bool) -> None:
    """Run one turn, printing tokens as they arrive."""
    if not prompt.strip():
        return

    with Spinner() as spinner:

        def show(response: GenerateResponse) -> None:
            spinner.stop()
            click.echo(response.response, nl=False)

        latest = session.generate(prompt, show)

    click.echo()
    click.echo()
    if verbose and latest is not None:
        for line in latest.summary_lines():
            click.echo(line, err=True)


def _generate_interactive(session: ChatSession, verbose: bool) -> None:
    click.echo(_PROMPT, nl=False)
    for line in sys.stdin:
        _generate(session, line.rstrip("\n"), verbose)
        click.echo(_PROMPT, nl=False)


def _generate_batch(session: ChatSession, verbose: bool) -> None:
    for line in sys.stdin:
        prompt = line.rstrip("\n")
        click.echo(f"{_PROMPT}{prompt}")
        _generate(session, prompt, verbose)


def _pull_if_missing(client: LlmrunClient, model: str) -> None:
    if Path(model).exists():
        return
    try:
        _pull(client, model)
    except StatusError as exc:
        # registry unreachable; the server may already hold the model
        if exc.code != 502:
            raise


@main.command("run")
@click.argument("model")
@click.argument("prompt", nargs=-1)
@click.option("--verbose", is_flag=True, help="Show timings for response.")
@click.pass_context
def run_command(
    ctx: click.Context, model: str, prompt: tuple[str, ...], verbose: bool
) -> None:
    """Run a model, with PROMPT or interactively from stdin."""
    client = _client(ctx)
    session = ChatSession(client, model)

    def run() -> None:
        _pull_if_missing(client, model)
        if prompt:
            _generate(session, " ".join(prompt), verbose)
        elif sys.stdin.isatty():
            _generate_interactive(session, verbose)
        else:
            _generate_batch(session, verbose)

    _run_action(run)


if __name__ == "__main__":
    main()
