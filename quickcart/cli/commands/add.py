"""Add an item to a site's cart."""
from __future__ import annotations

import asyncio
import json
import random
from typing import Optional

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from quickcart.automation import ShoppingSession
from quickcart.config import get_settings
from quickcart.sites import SITE_PROFILES, get_profile
from quickcart.workflow import CartRequest, CartRunResult, CartWorkflow

console = Console()


@click.command(name="add")
@click.argument("query")
@click.option("--site", "site_key", type=click.Choice(sorted(SITE_PROFILES)), default="zepto", show_default=True, help="Site to shop on")
@click.option("--pick", "item_name", help="Pick the listing whose name contains this text (default: random)")
@click.option("--count", type=int, help="Number of listings to extract (default: per site)")
@click.option("--empty-cart/--keep-cart", default=False, help="Remove existing cart items first")
@click.option("--seed", type=int, help="Seed for random listing selection")
@click.option("--json", "as_json", is_flag=True, help="Print the result as JSON")
def add_command(
    query: str,
    site_key: str,
    item_name: Optional[str],
    count: Optional[int],
    empty_cart: bool,
    seed: Optional[int],
    as_json: bool,
):
    """
    Search a site for QUERY and add one of the results to the cart.

    Examples:

      quickcart add milk --site zepto --empty-cart

      quickcart add icecream --site blinkit --pick "vanilla"
    """
    request = CartRequest(query=query, item_name=item_name, count=count, empty_cart=empty_cart)
    result = asyncio.run(_run_add(site_key, request, seed))

    if as_json:
        console.print_json(json.dumps(result.to_dict()))
    else:
        _print_result(result)
    if not result.success:
        raise SystemExit(1)


async def _run_add(site_key: str, request: CartRequest, seed: Optional[int]) -> CartRunResult:
    profile = get_profile(site_key)
    console.print(Panel(
        f"[bold cyan]Adding to cart[/bold cyan]\n\n"
        f"Site: [yellow]{profile.name}[/yellow]\n"
        f"Query: [yellow]{request.query}[/yellow]\n"
        f"Empty cart first: [yellow]{request.empty_cart}[/yellow]",
        border_style="cyan"
    ))

    rng = random.Random(seed) if seed is not None else None
    async with ShoppingSession(get_settings()) as session:
        workflow = CartWorkflow(session.automation(profile), rng=rng)
        return await workflow.run(request, close=True)


def _print_result(result: CartRunResult) -> None:
    if result.items:
        table = Table(title=f"Listings for '{result.query}'", border_style="blue")
        table.add_column("#", style="dim")
        table.add_column("Name", style="cyan")
        table.add_column("Price", style="yellow")
        table.add_column("Quantity")
        for index, item in enumerate(result.items):
            marker = "→ " if item == result.selected else ""
            table.add_row(str(index), f"{marker}{item.name}", item.price, item.qty)
        console.print(table)

    states = " → ".join(state.value for state in result.history)
    if result.success:
        verified = "[green]verified[/green]" if result.verified else "[yellow]not verified[/yellow]"
        console.print(f"[green]✓[/green] Added [bold]{result.selected.name}[/bold] ({verified})")
    else:
        console.print(f"[red]✗ Failed:[/red] {result.error}")
    console.print(f"[dim]{states}[/dim]")
