"""CLI application entry point and command routing for notes-client.

This module is the **sole error boundary** for the entire application.
It catches :class:`~notes_client.exceptions.NotesClientError`,
``KeyboardInterrupt``, and any unexpected ``Exception``, rendering
user-friendly messages via Rich and returning well-defined exit codes.

Architecture notes
------------------
* No business logic lives here; all work is delegated to the session
  store and notification queue built by :mod:`notes_client.cli.runtime`.
* Session failures come back as structured results; this layer routes
  their messages into the notification queue and renders it.
* This module is the only place that translates between the domain world
  and the OS process exit code.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from datetime import datetime

from notes_client.cli import exit_codes
from notes_client.cli.console import configure_logging, console
from notes_client.exceptions import NotesClientError, ValidationError
from notes_client.version import __version__


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------

def _build_parser() -> argparse.ArgumentParser:
    """Construct the top-level argument parser."""
    parser = argparse.ArgumentParser(
        prog="notes-client",
        description="Sign in to the notes service and manage the local session.",
    )
    parser.add_argument(
        "-V",
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show debug logging.",
    )
    commands = parser.add_subparsers(dest="command", metavar="<command>")

    login = commands.add_parser("login", help="Sign in and store the session token.")
    login.add_argument("--email", required=True)
    login.add_argument("--password", help="Prompted for when omitted.")

    register = commands.add_parser("register", help="Create an account and sign in.")
    register.add_argument("--name", required=True)
    register.add_argument("--email", required=True)
    register.add_argument("--password", help="Prompted for (twice) when omitted.")

    commands.add_parser("logout", help="Sign out and forget the stored token.")
    commands.add_parser("whoami", help="Show the signed-in user.")
    commands.add_parser("refresh", help="Exchange the stored token for a fresh one.")
    commands.add_parser("doctor", help="Check configuration and API reachability.")
    return parser


# ---------------------------------------------------------------------------
# Prompts
# ---------------------------------------------------------------------------

def _prompt_password(label: str = "Password") -> str:
    from rich.prompt import Prompt

    return Prompt.ask(label, password=True)


# ---------------------------------------------------------------------------
# Command flows
# ---------------------------------------------------------------------------

async def _login_flow(email: str, password: str) -> int:
    from notes_client.cli.notifications import render_notifications
    from notes_client.cli.runtime import build_runtime

    runtime = build_runtime()
    async with runtime.identity:
        result = await runtime.session.login(email, password)
        await runtime.session.settle()
    if result.success and result.user is not None:
        runtime.notifications.success(f"Welcome back, {result.user.name or result.user.email}!")
    else:
        runtime.notifications.error(result.error or "Login failed")
    render_notifications(runtime.notifications)
    return exit_codes.SUCCESS if result.success else exit_codes.GENERAL_ERROR


async def _register_flow(name: str, email: str, password: str) -> int:
    from notes_client.cli.notifications import render_notifications
    from notes_client.cli.runtime import build_runtime

    runtime = build_runtime()
    async with runtime.identity:
        result = await runtime.session.register(name, email, password)
        await runtime.session.settle()
    if result.success:
        runtime.notifications.success("Registration successful!")
    else:
        runtime.notifications.error(result.error or "Registration failed")
    render_notifications(runtime.notifications)
    return exit_codes.SUCCESS if result.success else exit_codes.GENERAL_ERROR


async def _logout_flow() -> int:
    from notes_client.cli.notifications import render_notifications
    from notes_client.cli.runtime import build_runtime

    runtime = build_runtime()
    async with runtime.identity:
        await runtime.session.bootstrap()
        await runtime.session.logout()
        await runtime.session.settle()
    runtime.notifications.info("Signed out")
    render_notifications(runtime.notifications)
    return exit_codes.SUCCESS


async def _whoami_flow() -> int:
    from rich.markup import escape

    from notes_client.cli.notifications import render_notifications
    from notes_client.cli.runtime import build_runtime
    from notes_client.core.token_codec import decode_expiry

    runtime = build_runtime()
    async with runtime.identity:
        state = await runtime.session.bootstrap()
        await runtime.session.settle()

    if not state.is_authenticated or state.user is None or state.token is None:
        runtime.notifications.error(state.error or "Not signed in")
        render_notifications(runtime.notifications)
        return exit_codes.GENERAL_ERROR

    expires = datetime.fromtimestamp(decode_expiry(state.token) / 1000.0)
    user = state.user
    console.print(f"[bold]{escape(user.name)}[/bold] <{escape(user.email)}>  (id {escape(user.id)})")
    console.print(f"[dim]Session valid until {expires:%Y-%m-%d %H:%M:%S}[/dim]")
    render_notifications(runtime.notifications)
    return exit_codes.SUCCESS


async def _refresh_flow() -> int:
    from notes_client.cli.notifications import render_notifications
    from notes_client.cli.runtime import build_runtime

    runtime = build_runtime()
    async with runtime.identity:
        state = await runtime.session.bootstrap()
        if not state.is_authenticated:
            await runtime.session.settle()
            runtime.notifications.error(state.error or "Not signed in")
            render_notifications(runtime.notifications)
            return exit_codes.GENERAL_ERROR
        result = await runtime.session.refresh()
        await runtime.session.settle()

    if result.success:
        runtime.notifications.success("Session refreshed")
    else:
        runtime.notifications.error(result.error or "Failed to refresh session")
    render_notifications(runtime.notifications)
    return exit_codes.SUCCESS if result.success else exit_codes.GENERAL_ERROR


# ---------------------------------------------------------------------------
# Command dispatch
# ---------------------------------------------------------------------------

def _handle_login(args: argparse.Namespace) -> int:
    from notes_client.core.validation import validate_login

    password: str = args.password if args.password is not None else _prompt_password()
    validate_login(args.email, password)
    return asyncio.run(_login_flow(args.email, password))


def _handle_register(args: argparse.Namespace) -> int:
    from notes_client.core.validation import validate_registration

    if args.password is not None:
        password = confirm = args.password
    else:
        password = _prompt_password()
        confirm = _prompt_password("Confirm password")
    validate_registration(args.name, args.email, password, confirm)
    return asyncio.run(_register_flow(args.name, args.email, password))


def _handle_doctor() -> int:
    """Dispatch the ``doctor`` diagnostics command."""
    from notes_client.cli.doctor import run_doctor

    return run_doctor()


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------

def main(argv: list[str] | None = None) -> int:
    """Run the notes-client CLI.

    Parameters
    ----------
    argv:
        Explicit argument list.  When ``None`` (default), ``sys.argv[1:]``
        is used.  Accepting *argv* enables deterministic testing without
        monkeypatching.

    Returns
    -------
    int
        OS process exit code.
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return exit_codes.SUCCESS

    configure_logging(verbose=args.verbose)

    if args.command == "login":
        return _handle_login(args)
    if args.command == "register":
        return _handle_register(args)
    if args.command == "logout":
        return asyncio.run(_logout_flow())
    if args.command == "whoami":
        return asyncio.run(_whoami_flow())
    if args.command == "refresh":
        return asyncio.run(_refresh_flow())
    return _handle_doctor()


# ---------------------------------------------------------------------------
# Script-level error boundary
# ---------------------------------------------------------------------------

def cli() -> None:
    """Top-level error boundary invoked by the console-script entry point.

    This function wraps :func:`main` and guarantees the process never
    exits with a raw stack trace during normal usage.
    """
    try:
        code = main()
        sys.exit(code)
    except ValidationError as exc:
        if not exc.field_errors:
            console.print(f"[bold red]Error:[/bold red] {exc}")
        for field, problem in exc.field_errors.items():
            console.print(f"[bold red]{field}:[/bold red] {problem}")
        sys.exit(exit_codes.GENERAL_ERROR)
    except NotesClientError as exc:
        console.print(f"[bold red]Error:[/bold red] {exc}")
        if exc.hint:
            console.print(f"[yellow]Hint:[/yellow] {exc.hint}")
        sys.exit(exit_codes.GENERAL_ERROR)
    except KeyboardInterrupt:
        console.print("\n[yellow]Aborted by user.[/yellow]")
        sys.exit(exit_codes.KEYBOARD_INTERRUPT)
    except Exception as exc:  # noqa: BLE001
        console.print(
            "[bold red]Unexpected error.[/bold red] "
            "Please report this issue.\n"
            f"  {type(exc).__name__}: {exc}"
        )
        sys.exit(exit_codes.UNEXPECTED_ERROR)
