"""quiverlink CLI — main entry point and shared utilities."""

from __future__ import annotations

import logging
from pathlib import Path

import click
from rich.console import Console

console = Console()


def setup_logging(verbose: int) -> None:
    """Configure stdlib logging based on verbosity."""
    level = {0: logging.WARNING, 1: logging.INFO}.get(verbose, logging.DEBUG)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
        datefmt="%H:%M:%S",
        force=True,
    )


def root_option(fn):
    """Shared --root option: the workspace root holding images/ and the cache."""
    return click.option(
        "--root",
        "root",
        type=click.Path(file_okay=False, path_type=Path),
        default=None,
        help="Workspace root (default: current directory)",
    )(fn)


@click.group()
@click.version_option(package_name="quiverlink")
def main():
    """quiverlink — render diagram URLs in markdown into linked images."""
    pass


def cli():
    """Entrypoint that loads .env before running the CLI."""
    from dotenv import load_dotenv

    load_dotenv()
    main()


# Import subcommand modules to register commands
from quiverlink.cli.cache_commands import cache  # noqa: E402, F401
from quiverlink.cli.inspect_commands import decode, scan  # noqa: E402, F401
from quiverlink.cli.render_commands import render  # noqa: E402, F401

# Register commands
main.add_command(render)
main.add_command(scan)
main.add_command(decode)
main.add_command(cache)
