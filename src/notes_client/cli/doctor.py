"""``notes-client doctor``: configuration and connectivity diagnostics.

Gathers the effective configuration, pings the API's health endpoint
and inspects the stored token, then renders a Rich table summarising
whether a session can be established.

This module lives in the CLI layer.  It may import from ``infra`` and
``core`` and it renders via Rich; it only collects and displays data.
"""

from __future__ import annotations

import asyncio
import platform
import sys
import time
from datetime import datetime

from notes_client.cli import exit_codes
from notes_client.cli.console import console
from notes_client.config import ClientConfig, load_config
from notes_client.core.token_codec import decode_expiry
from notes_client.exceptions import NotesClientError
from notes_client.infra.http_identity_service import HttpIdentityService
from notes_client.infra.token_storage import FileTokenStorage
from notes_client.version import __version__

_OK = "[green]OK[/green]"
_WARN = "[yellow]WARN[/yellow]"
_FAIL = "[red]FAIL[/red]"


# ---------------------------------------------------------------------------
# Diagnostic collectors
# ---------------------------------------------------------------------------

def _version_check() -> tuple[str, str, str]:
    return "notes-client", __version__, _OK


def _python_version_check() -> tuple[str, str, str]:
    """Return (label, value, status) for the Python version row."""
    version = platform.python_version()
    ok = sys.version_info[:2] >= (3, 10)
    status = _OK if ok else "[red]FAIL (>=3.10 required)[/red]"
    return "Python", version, status


def _api_url_check(config: ClientConfig) -> tuple[str, str, str]:
    return "API URL", config.api_url, _OK


async def _ping_health(config: ClientConfig) -> None:
    async with HttpIdentityService.from_config(config) as identity:
        await identity.check_health()


def _health_check(config: ClientConfig) -> tuple[str, str, str]:
    """Return (label, value, status) for the ``/health`` row."""
    try:
        asyncio.run(_ping_health(config))
    except NotesClientError as exc:
        return "API health", str(exc), _FAIL
    return "API health", "reachable", _OK


def _token_check(config: ClientConfig, now_ms: float | None = None) -> tuple[str, str, str]:
    """Return (label, value, status) for the stored-token row.

    A missing or expired token is a warning, not a failure: the user can
    still log in.
    """
    now_ms = time.time() * 1000.0 if now_ms is None else now_ms
    try:
        token = FileTokenStorage(config.token_path).load()
    except NotesClientError as exc:
        return "Stored token", str(exc), _FAIL
    if token is None:
        return "Stored token", "none", _WARN
    try:
        expiry_ms = decode_expiry(token)
    except NotesClientError:
        return "Stored token", "malformed", _WARN
    if expiry_ms <= now_ms:
        return "Stored token", "expired", _WARN
    expires = datetime.fromtimestamp(expiry_ms / 1000.0)
    return "Stored token", f"valid until {expires:%Y-%m-%d %H:%M:%S}", _OK


# ---------------------------------------------------------------------------
# Public entry point
# ---------------------------------------------------------------------------

def run_doctor(config: ClientConfig | None = None) -> int:
    """Execute all diagnostic checks and render a Rich summary table.

    Parameters
    ----------
    config:
        Configuration to diagnose.  Loaded from the environment when
        omitted; a :class:`~notes_client.exceptions.ConfigError` from
        loading propagates to the CLI error boundary.

    Returns
    -------
    int
        :data:`exit_codes.SUCCESS` when no check failed,
        :data:`exit_codes.GENERAL_ERROR` otherwise.
    """
    from rich.table import Table

    config = config or load_config()
    checks = [
        _version_check(),
        _python_version_check(),
        _api_url_check(config),
        _health_check(config),
        _token_check(config),
    ]
    has_failure = any("FAIL" in status for _, _, status in checks)

    table = Table(
        title="notes-client doctor",
        show_header=True,
        header_style="bold cyan",
        border_style="dim",
    )
    table.add_column("Component", style="bold", min_width=12)
    table.add_column("Value", min_width=20)
    table.add_column("Status", justify="center", min_width=8)
    for label, value, status in checks:
        table.add_row(label, value, status)

    console.print()
    console.print(table)
    console.print()

    if has_failure:
        console.print("[bold red]Some checks failed.[/bold red]")
        return exit_codes.GENERAL_ERROR
    console.print("[bold green]All checks passed.[/bold green]")
    return exit_codes.SUCCESS
