"""Synapse CLI - Main Entry Point"""

import typer
from rich.console import Console
from rich.panel import Panel

from . import __version__
from .client.endpoints import SynapseClient, SynapseError
from .commands import config, items, search
from .utils.config_manager import config as config_manager
from .utils.formatting import print_error, print_info

console = Console()

app = typer.Typer(
    name="synapse",
    help="🧠 Synapse - semantic search over your saved knowledge",
    rich_markup_mode="rich",
)

app.command("search")(search.search)
app.command("suggest")(search.suggest)
app.command("similar")(search.similar)
app.command("context")(search.context)
app.add_typer(items.app, name="items")
app.add_typer(config.app, name="config")


@app.command()
def status():
    """📊 Check system status and connectivity"""
    base_url = config_manager.get("api.base_url")
    print_info(f"Checking connection to: {base_url}")

    try:
        with SynapseClient(base_url) as client:
            health = client.health_check()
    except SynapseError as e:
        print_error(f"Failed to connect: {e}")
        console.print(Panel(
            f"🚫 [red]Connection Failed[/red]\n\n"
            f"Make sure the Synapse API is running at:\n"
            f"[blue]{base_url}[/blue]\n\n"
            f"You can update the API URL with:\n"
            f"[cyan]synapse config set api.base_url <url>[/cyan]",
            title="Connection Error",
            border_style="red"
        ))
        raise typer.Exit(1) from None

    model = health.get("embedding_model", {})
    database = health.get("database", {})
    console.print(Panel(
        f"🚀 [green]Connected Successfully![/green]\n\n"
        f"• Version: [cyan]{health.get('version', 'unknown')}[/cyan]\n"
        f"• Environment: [yellow]{health.get('environment', 'unknown')}[/yellow]\n"
        f"• Database: {'[green]up[/green]' if database.get('connected') else '[red]down[/red]'}\n"
        f"• Embedding model: [magenta]{model.get('model_version', 'unknown')}[/magenta]\n"
        f"• API URL: [blue]{base_url}[/blue]",
        title="System Status",
        border_style="green"
    ))


@app.command()
def version():
    """📎 Show CLI version information"""
    console.print(Panel(
        f"🧠 [bold cyan]Synapse CLI[/bold cyan]\n\n"
        f"• Version: [green]{__version__}[/green]",
        title="Version Info",
        border_style="cyan"
    ))


@app.command()
def quickstart():
    """🚀 Quick start guide and setup"""
    console.print(Panel(
        "🧠 [bold cyan]Synapse Quick Start[/bold cyan]\n\n"
        "[bold]1. Check Status[/bold]\n"
        "   [dim]synapse status[/dim]\n\n"
        "[bold]2. Save Something[/bold]\n"
        "   [dim]synapse items add --type article --title \"...\" --url https://...[/dim]\n\n"
        "[bold]3. Search[/bold]\n"
        "   [dim]synapse search \"articles about transformers\"[/dim]\n\n"
        "[bold]4. Get Suggestions[/bold]\n"
        "   [dim]synapse suggest \"what\"[/dim]\n\n"
        "[bold yellow]Tip:[/bold yellow] Use [cyan]--help[/cyan] with any command for more options!",
        title="Quick Start Guide",
        border_style="green"
    ))


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    show_version: bool = typer.Option(
        False, "--version", "-v", help="Show version and exit"
    ),
):
    """
    🧠 Synapse CLI

    Save articles, products, images and notes, then find them again by
    describing what you remember.
    """
    if show_version:
        console.print(f"Synapse CLI v{__version__}")
        raise typer.Exit()
    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())


if __name__ == "__main__":
    app()
