"""
Shared plumbing for CLI commands: logging, store client, confirmations.
"""

import logging
import sys
from collections.abc import Callable

import typer

from agendakit.cli.errors import ExitCode, print_not_configured_error
from agendakit.core.config import AgendaConfig, load_config
from agendakit.core.store.client import AgendaStoreClient


def setup_logging(debug: bool = False) -> None:
    """
    Configure logging for all commands.

    Args:
        debug: If True, enable DEBUG level logging
    """
    level = logging.DEBUG if debug else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )
    # Request lines from httpx are noise unless debugging
    logging.getLogger("httpx").setLevel(logging.DEBUG if debug else logging.WARNING)


def open_client(config: AgendaConfig | None = None) -> AgendaStoreClient:
    """
    Build a store client from configuration.

    Raises:
        typer.Exit: If no endpoint URL is configured
    """
    config = config or load_config()
    if not config.api.url:
        print_not_configured_error()
        raise typer.Exit(ExitCode.USER_ERROR)
    return AgendaStoreClient(config.api.url, timeout=config.api.timeout)


def confirmer(yes: bool) -> Callable[[str], bool] | None:
    """Return an interactive confirmation callback, or None when --yes was given."""
    if yes:
        return None
    return lambda prompt: typer.confirm(prompt, default=False)
