"""Allow ``python -m notes_client`` invocation.

This module simply delegates to the CLI error-boundary entry point so
that ``python -m notes_client`` behaves identically to the
``notes-client`` console script.
"""

from __future__ import annotations

from notes_client.cli.app import cli

if __name__ == "__main__":
    cli()
