"""Items Commands - Content management and browsing"""

import typer
from rich.console import Console
from rich.panel import Panel
from rich.prompt import Confirm

from ..client.endpoints import SynapseClient, SynapseError
from ..utils.config_manager import config
from ..utils.formatting import (
    create_items_table,
    display_item_detail,
    print_error,
    print_info,
    print_success,
    print_warning,
)

console = Console()
app = typer.Typer(name="items", help="Item management and browsing commands")


@app.command("list")
def list_items(
    limit: int = typer.Option(20, "--limit", "-l", help="Number of items to show"),
    content_type: str | None = typer.Option(None, "--type", "-t", help="Filter by type"),
    tags: list[str] | None = typer.Option(None, "--tag", help="Filter by tag (repeatable)"),
    favorite: bool | None = typer.Option(
        None, "--favorite/--not-favorite", help="Filter on the favorite flag"
    ),
    offset: int = typer.Option(0, "--offset", "-o", help="Skip first N items"),
):
    """📋 List saved items"""
    base_url = config.get("api.base_url")

    try:
        with SynapseClient(base_url) as client:
            print_info(f"Fetching items (limit: {limit}, type: {content_type or 'all'})")

            items_data = client.list_items(
                content_type=content_type,
                tags=tags,
                is_favorite=favorite,
                limit=limit,
                offset=offset,
            )
    except SynapseError as e:
        print_error(f"Failed to list items: {e}")
        raise typer.Exit(1) from None

    items = items_data.get("items", [])
    total = items_data.get("total", len(items))

    if not items:
        console.print(Panel(
            "📭 [yellow]No items found![/yellow]\n\n"
            f"Filters applied:\n"
            f"• Type: {content_type or 'any'}\n"
            f"• Tags: {', '.join(tags) if tags else 'any'}\n\n"
            "Save something with [cyan]synapse items add[/cyan]",
            title="Empty Results",
            border_style="yellow"
        ))
        return

    console.print(create_items_table(items))
    console.print(f"\n📊 Showing [cyan]{len(items)}[/cyan] of [yellow]{total}[/yellow] items")

    if items_data.get("has_more"):
        console.print(f"💡 Use [cyan]--offset {offset + limit}[/cyan] to see more")


@app.command("add")
def add_item(
    content_type: str = typer.Option("note", "--type", "-t", help="Content type"),
    title: str | None = typer.Option(None, "--title", help="Item title"),
    description: str | None = typer.Option(None, "--description", "-d", help="Summary"),
    content: str | None = typer.Option(None, "--content", "-c", help="Free-text content"),
    url: str | None = typer.Option(None, "--url", help="Source URL"),
    tags: list[str] | None = typer.Option(None, "--tag", help="Tag (repeatable)"),
    favorite: bool = typer.Option(False, "--favorite", help="Mark as favorite"),
):
    """➕ Save a new item"""
    if not any([title, description, content, url]):
        print_error("Provide at least one of --title, --description, --content or --url")
        raise typer.Exit(1)

    payload = {
        "content_type": content_type,
        "title": title,
        "description": description,
        "content": content,
        "url": url,
        "tags": tags or [],
        "is_favorite": favorite,
    }

    try:
        with SynapseClient(config.get("api.base_url")) as client:
            item = client.create_item(payload)
    except SynapseError as e:
        print_error(f"Failed to save item: {e}")
        raise typer.Exit(1) from None

    print_success(f"Saved {item.get('content_type')} [cyan]{item.get('id')}[/cyan]")


@app.command("show")
def show_item(
    item_id: str = typer.Argument(..., help="Item ID to show"),
):
    """🔍 Show detailed information about a specific item"""
    try:
        with SynapseClient(config.get("api.base_url")) as client:
            item = client.get_item(item_id)
    except SynapseError as e:
        print_error(f"Failed to get item: {e}")
        raise typer.Exit(1) from None

    display_item_detail(item)


@app.command("favorite")
def toggle_favorite(
    item_id: str = typer.Argument(..., help="Item ID"),
    off: bool = typer.Option(False, "--off", help="Remove the favorite flag"),
):
    """⭐ Mark or unmark an item as favorite"""
    try:
        with SynapseClient(config.get("api.base_url")) as client:
            client.update_item(item_id, {"is_favorite": not off})
    except SynapseError as e:
        print_error(f"Failed to update item: {e}")
        raise typer.Exit(1) from None

    print_success("Removed from favorites" if off else "Added to favorites")


@app.command("delete")
def delete_item(
    item_id: str = typer.Argument(..., help="Item ID to delete"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
):
    """🗑️ Delete an item"""
    if not yes and not Confirm.ask(f"Delete item {item_id}?"):
        console.print("Deletion cancelled.")
        return

    try:
        with SynapseClient(config.get("api.base_url")) as client:
            client.delete_item(item_id)
    except SynapseError as e:
        print_error(f"Failed to delete item: {e}")
        raise typer.Exit(1) from None

    print_success(f"Deleted item {item_id}")


@app.command("stats")
def embedding_stats():
    """📈 Show embedding coverage"""
    try:
        with SynapseClient(config.get("api.base_url")) as client:
            stats = client.embedding_stats()
    except SynapseError as e:
        print_error(f"Failed to get embedding stats: {e}")
        raise typer.Exit(1) from None

    console.print(Panel(
        f"• Total items: [blue]{stats.get('total_items', 0)}[/blue]\n"
        f"• With embeddings: [green]{stats.get('items_with_embeddings', 0)}[/green]\n"
        f"• Coverage: [cyan]{stats.get('coverage_rate', 0):.1%}[/cyan]\n"
        f"• Model: [yellow]{stats.get('current_model_version', 'unknown')}[/yellow]",
        title="Embedding Coverage",
        border_style="green"
    ))

    if stats.get("missing_embeddings"):
        print_warning(
            "Some items have no embedding; run scripts/regenerate_embeddings.py to backfill"
        )
