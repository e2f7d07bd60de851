"""Endpoint settings and logging setup for aumai-llmrun."""

from __future__ import annotations

import logging.config
import os

from pydantic import BaseModel

__all__ = [
    "DEFAULT_HOST",
    "DEFAULT_PORT",
    "ClientSettings",
    "configure_logging",
]

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 11434

HOST_ENV = "LLMRUN_HOST"
PORT_ENV = "LLMRUN_PORT"
LOG_LEVEL_ENV = "LLMRUN_LOG_LEVEL"


class ClientSettings(BaseModel):
    """Where the serving endpoint lives."""

    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT

    @classmethod
    def from_env(cls) -> ClientSettings:
        """Read ``LLMRUN_HOST`` / ``LLMRUN_PORT``, falling back to defaults."""
        return cls(
            host=os.getenv(HOST_ENV) or DEFAULT_HOST,
            port=os.getenv(PORT_ENV) or DEFAULT_PORT,
        )

    @property
    def address(self) -> str:
        return f"{self.host}:{self.port}"


def configure_logging(level: str | None = None) -> None:
    """Send library logs to stderr at *level* (default ``LLMRUN_LOG_LEVEL`` or WARNING)."""
    level = (level or os.getenv(LOG_LEVEL_ENV) or "WARNING").upper()
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "standard": {
                    "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
                },
            },
            "handlers": {
                "stderr": {
                    "class": "logging.StreamHandler",
                    "formatter": "standard",
                    "stream": "ext://sys.stderr",
                },
            },
            "loggers": {
                "aumai_llmrun": {
                    "handlers": ["stderr"],
                    "level": level,
                    "propagate": False,
                },
            },
        }
    )
