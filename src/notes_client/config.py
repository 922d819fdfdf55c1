"""Centralised client configuration.

Values come from the process environment, optionally seeded from a
``.env`` file in the working directory.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from notes_client.exceptions import ConfigError

DEFAULT_API_URL = "http://localhost:5000/api"
DEFAULT_TIMEOUT_SECONDS = 30.0
DEFAULT_TOKEN_PATH = Path.home() / ".notes_client" / "token"
DEFAULT_NOTIFICATION_MS = 5000
DEFAULT_RETRY_ATTEMPTS = 3


@dataclass(frozen=True, slots=True)
class ClientConfig:
    """Settings needed to talk to the identity API and keep a session."""

    api_url: str = DEFAULT_API_URL
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    token_path: Path = DEFAULT_TOKEN_PATH
    notification_duration_ms: int = DEFAULT_NOTIFICATION_MS
    retry_attempts: int = DEFAULT_RETRY_ATTEMPTS


def _positive_number(name: str, raw: str, cast: type[int] | type[float]) -> int | float:
    try:
        value = cast(raw)
    except ValueError as exc:
        raise ConfigError(f"{name} must be a number, got {raw!r}.") from exc
    if value <= 0:
        raise ConfigError(f"{name} must be positive, got {raw!r}.")
    return value


def load_config() -> ClientConfig:
    """Load the client configuration from the environment.

    Raises
    ------
    ConfigError
        If a numeric setting is not a positive number or the API URL is
        not http(s).
    """
    load_dotenv()

    api_url = os.getenv("NOTES_API_URL", DEFAULT_API_URL).strip().rstrip("/")
    if not api_url.startswith(("http://", "https://")):
        raise ConfigError(
            f"Invalid NOTES_API_URL: {api_url!r}",
            hint="The API URL must start with http:// or https://",
        )

    timeout = _positive_number(
        "NOTES_API_TIMEOUT", os.getenv("NOTES_API_TIMEOUT", str(DEFAULT_TIMEOUT_SECONDS)), float,
    )
    duration = _positive_number(
        "NOTES_NOTIFICATION_MS", os.getenv("NOTES_NOTIFICATION_MS", str(DEFAULT_NOTIFICATION_MS)), int,
    )
    retries = _positive_number(
        "NOTES_API_RETRIES", os.getenv("NOTES_API_RETRIES", str(DEFAULT_RETRY_ATTEMPTS)), int,
    )
    token_path = Path(os.getenv("NOTES_TOKEN_PATH", str(DEFAULT_TOKEN_PATH))).expanduser()

    return ClientConfig(
        api_url=api_url,
        timeout_seconds=float(timeout),
        token_path=token_path,
        notification_duration_ms=int(duration),
        retry_attempts=int(retries),
    )
