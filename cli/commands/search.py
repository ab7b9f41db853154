"""Search Commands - Semantic search, suggestions and chat context

Registered as top-level commands by cli.main.
"""

import typer
from rich.console import Console
from rich.panel import Panel

from ..client.endpoints import SynapseClient, SynapseError
from ..utils.config_manager import config
from ..utils.formatting import (
    create_analysis_panel,
    create_results_table,
    display_recommendations,
    print_error,
    print_info,
)

console = Console()


def search(
    query: str = typer.Argument(..., help="Natural-language query"),
    content_type: str | None = typer.Option(
        None, "--type", "-t", help="Only this content type"
    ),
    tags: list[str] | None = typer.Option(
        None, "--tag", help="Only items with this tag (repeatable)"
    ),
    favorite: bool | None = typer.Option(
        None, "--favorite/--not-favorite", help="Filter on the favorite flag"
    ),
    limit: int | None = typer.Option(None, "--limit", "-l", help="Maximum results"),
    explain: bool = typer.Option(False, "--explain", help="Show query analysis"),
):
    """🔎 Search your knowledge base"""
    base_url = config.get("api.base_url")
    limit = limit or config.get("display.results_per_page")

    try:
        with SynapseClient(base_url) as client:
            response = client.search(
                query,
                content_type=content_type,
                tags=tags,
                is_favorite=favorite,
                limit=limit,
            )
    except SynapseError as e:
        print_error(f"Search failed: {e}")
        raise typer.Exit(1) from None

    results = response.get("results", [])

    if explain:
        console.print(
            create_analysis_panel(
                response.get("semantic_analysis", {}), response.get("filters", {})
            )
        )

    if not results:
        console.print(Panel(
            f"📭 [yellow]{response.get('message') or 'No results found'}[/yellow]",
            title="Empty Results",
            border_style="yellow"
        ))
        display_recommendations(response.get("recommendations") or {})
        return

    console.print(
        create_results_table(results, show_scores=config.get("display.show_scores", True))
    )

    performance = response.get("performance", {})
    console.print(
        f"\n📊 [cyan]{performance.get('reranked_results', len(results))}[/cyan] results "
        f"from [yellow]{performance.get('initial_results', len(results))}[/yellow] candidates"
    )


def suggest(
    query: str = typer.Argument("", help="Partial query (empty for starters)"),
):
    """💡 Show suggestions for a partial query"""
    base_url = config.get("api.base_url")

    try:
        with SynapseClient(base_url) as client:
            response = client.suggestions(query)
    except SynapseError as e:
        print_error(f"Failed to get suggestions: {e}")
        raise typer.Exit(1) from None

    empty_state = response.get("empty_state")
    if empty_state:
        console.print(Panel(
            "👋 [bold]Your knowledge base is empty[/bold]\n\n"
            + "\n".join(f"• {a['text']}" for a in empty_state.get("quick_actions", []))
            + "\n\n"
            + "\n".join(f"• {q['text']}" for q in empty_state.get("example_queries", [])),
            title="Get Started",
            border_style="cyan"
        ))
        return

    display_recommendations(response.get("recommendations") or {})

    popular = response.get("popular_tags", [])
    if popular:
        tags = ", ".join(f"{t['tag']} ({t['count']})" for t in popular)
        console.print(f"\n🏷️ [bold]Popular tags:[/bold] [green]{tags}[/green]")


def similar(
    item_id: str = typer.Argument(..., help="Item ID to match"),
    limit: int = typer.Option(5, "--limit", "-l", help="Maximum results"),
):
    """🧭 Find items similar to a saved item"""
    base_url = config.get("api.base_url")

    try:
        with SynapseClient(base_url) as client:
            response = client.similar(item_id, limit=limit)
    except SynapseError as e:
        print_error(f"Failed to find similar items: {e}")
        raise typer.Exit(1) from None

    items = response.get("similar_items", [])
    if not items:
        print_info("No similar items found")
        return

    console.print(create_results_table(items))


def context(
    message: str = typer.Argument(..., help="Chat message to ground"),
    limit: int = typer.Option(5, "--limit", "-l", help="Items to include"),
):
    """💬 Build the retrieval context for a chat message"""
    base_url = config.get("api.base_url")

    try:
        with SynapseClient(base_url) as client:
            response = client.chat_context(message, limit=limit)
    except SynapseError as e:
        print_error(f"Failed to build context: {e}")
        raise typer.Exit(1) from None

    console.print(Panel(response.get("context", ""), title="Context", border_style="green"))
    sources = response.get("sources", [])
    console.print(
        f"\n📚 [cyan]{len(sources)}[/cyan] sources of "
        f"[yellow]{response.get('total_items', 0)}[/yellow] saved items"
    )
