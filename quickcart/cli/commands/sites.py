"""List supported sites."""
from __future__ import annotations

import click
from rich.console import Console
from rich.table import Table

from quickcart.sites import list_profiles

console = Console()


@click.command(name="sites")
def sites_command():
    """Show the supported sites and their entry points."""
    table = Table(title="Supported Sites", border_style="green")
    table.add_column("Key", style="cyan")
    table.add_column("Name")
    table.add_column("Home URL", style="yellow")
    table.add_column("Search URL")
    table.add_column("Listings", justify="right")
    table.add_column("Steps", style="magenta")

    for profile in list_profiles():
        steps = type(profile.steps).__name__ if profile.steps else "generic"
        table.add_row(
            profile.key,
            profile.name,
            profile.home_url,
            profile.search_url or "-",
            str(profile.item_count),
            steps,
        )
    console.print(table)
