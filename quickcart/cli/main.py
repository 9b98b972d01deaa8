#!/usr/bin/env python3
"""Main CLI entry point for quickcart."""
from __future__ import annotations

import logging
import sys

import click
from dotenv import load_dotenv
from rich.console import Console

from quickcart.exceptions import LIFECYCLE_ERRORS, QuickCartError

from .commands import add, sites

console = Console()


@click.group()
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="INFO",
    show_default=True,
)
@click.version_option(version="0.1.0", prog_name="quickcart")
def cli(log_level: str):
    """
    quickcart - add items to quick-commerce carts by describing them.

    Reads QUICKCART_MODEL_NAME and QUICKCART_MODEL_API_KEY from the
    environment or a .env file.
    """
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


cli.add_command(add.add_command)
cli.add_command(sites.sites_command)


def main():
    """Entry point for the CLI."""
    load_dotenv()
    try:
        cli()
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted by user[/yellow]")
        sys.exit(130)
    except LIFECYCLE_ERRORS as e:
        console.print(f"[red]Setup error:[/red] {e}")
        sys.exit(2)
    except QuickCartError as e:
        console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
