"""Rich Formatting Utilities for CLI Output"""

from typing import Any

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

console = Console()

TYPE_ICONS = {
    "article": "📰",
    "product": "🛍️",
    "image": "🖼️",
    "video": "🎬",
    "note": "📝",
    "bookmark": "🔖",
    "todo-list": "✅",
    "receipt": "🧾",
    "screenshot": "📸",
    "document": "📄",
}


def print_success(message: str):
    """Print success message with green styling"""
    console.print(f"[green]✓ {message}[/green]")


def print_error(message: str):
    """Print error message with red styling"""
    console.print(f"[red]✗ {message}[/red]")


def print_warning(message: str):
    """Print warning message with yellow styling"""
    console.print(f"[yellow]⚠ {message}[/yellow]")


def print_info(message: str):
    """Print info message with blue styling"""
    console.print(f"[blue]ℹ {message}[/blue]")


def preview(item: dict[str, Any], max_chars: int = 60) -> str:
    """Short one-line preview of an item's text"""
    text = item.get("description") or item.get("content") or item.get("url") or ""
    text = " ".join(text.split())
    return text[:max_chars] + "..." if len(text) > max_chars else text or "—"


def type_label(content_type: str) -> str:
    return f"{TYPE_ICONS.get(content_type, '•')} {content_type}"


def create_items_table(items: list[dict[str, Any]]) -> Table:
    """Create a formatted table for items list"""
    table = Table(title="Items", box=box.ROUNDED)

    table.add_column("ID", justify="left", style="cyan", no_wrap=True)
    table.add_column("Type", justify="left", style="magenta")
    table.add_column("Title", justify="left", style="bold")
    table.add_column("Tags", justify="left", style="green")
    table.add_column("Preview", justify="left", style="white")

    for item in items:
        tags_str = ", ".join(item.get("tags", []))
        table.add_row(
            str(item.get("id", ""))[:8],  # Short ID
            type_label(item.get("content_type", "")),
            item.get("title") or "—",
            tags_str if tags_str else "—",
            preview(item),
        )

    return table


def create_results_table(results: list[dict[str, Any]], show_scores: bool = True) -> Table:
    """Create a formatted table for ranked search results"""
    table = Table(title="Results", box=box.ROUNDED)

    table.add_column("#", justify="right", style="dim")
    table.add_column("ID", justify="left", style="cyan", no_wrap=True)
    table.add_column("Type", justify="left", style="magenta")
    table.add_column("Title", justify="left", style="bold")
    if show_scores:
        table.add_column("Score", justify="right", style="yellow")
        table.add_column("Relevance", justify="center", style="green")

    for idx, result in enumerate(results, start=1):
        row = [
            str(idx),
            str(result.get("id", ""))[:8],
            type_label(result.get("content_type", "")),
            result.get("title") or preview(result, 40),
        ]
        if show_scores:
            score = result.get("similarity_score")
            row.append(f"{score:.3f}" if score is not None else "—")
            row.append(result.get("relevance_label") or "—")
        table.add_row(*row)

    return table


def create_analysis_panel(analysis: dict[str, Any], filters: dict[str, Any]) -> Panel:
    """Create a panel summarizing how the query was understood"""
    keywords = ", ".join(analysis.get("keywords", [])) or "—"
    lines = [
        f"• Intent: [cyan]{analysis.get('intent', 'unknown')}[/cyan]",
        f"• Looking for: [magenta]{analysis.get('query_type', 'general')}[/magenta]",
        f"• Keywords: [green]{keywords}[/green]",
    ]
    if filters:
        applied = ", ".join(f"{key}={value}" for key, value in filters.items())
        lines.append(f"• Filters: [blue]{applied}[/blue]")

    return Panel("\n".join(lines), title="Query Analysis", border_style="blue")


def display_recommendations(recommendations: dict[str, Any]):
    """Display grouped recommendations"""
    groups = [
        ("suggestions", "💡 Suggestions"),
        ("related_searches", "🔗 Related searches"),
        ("trending", "📈 Trending"),
        ("content_based", "🧭 From your content"),
    ]
    for key, title in groups:
        entries = recommendations.get(key) or []
        if not entries:
            continue
        console.print(f"\n[bold]{title}[/bold]")
        for entry in entries:
            console.print(
                f"  • {entry.get('text')} [dim]({entry.get('confidence', 0):.2f})[/dim]"
            )


def display_item_detail(item: dict[str, Any]):
    """Display a single item with its metadata"""
    header = f"""
🆔 [bold]ID:[/bold] [cyan]{item.get('id', 'unknown')}[/cyan]
📂 [bold]Type:[/bold] [magenta]{type_label(item.get('content_type', 'unknown'))}[/magenta]
🏷️ [bold]Tags:[/bold] [green]{', '.join(item.get('tags', [])) or '—'}[/green]
⭐ [bold]Favorite:[/bold] {'yes' if item.get('is_favorite') else 'no'}
📅 [bold]Created:[/bold] [blue]{item.get('created_at', 'unknown')}[/blue]
    """
    console.print(Panel(header.strip(), title=item.get("title") or "Item", border_style="blue"))

    if item.get("url"):
        console.print(f"🔗 [blue]{item['url']}[/blue]")
    if item.get("description"):
        console.print(Panel(item["description"], title="Description", border_style="cyan"))
    if item.get("content"):
        console.print(Panel(item["content"], title="Content", border_style="white"))

    metadata = item.get("metadata") or {}
    if metadata:
        console.print(f"\n⚙️ [bold]Metadata:[/bold] {metadata}")
