"""
Navvra CLI - analyse a page and show what the toolbar would show.

Usage:
    navvra --help
    navvra analyze page.html
    navvra analyze --url https://example.com --json
    navvra actions page.html
"""

import asyncio
import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .analysis.strategies import classification_strategy_from_env, strategy_from_env
from .config import NavvraConfig
from .document.base import Document
from .document.html import HtmlDocument
from .exceptions import NavvraError
from .models import PageSnapshot
from .sync.bus import MessageBus
from .sync.context import DocumentContext
from .sync.presentation import ToolbarContext, ToolbarView

logger = logging.getLogger(__name__)

console = Console()


@asynccontextmanager
async def _open_document(path: Optional[str], url: Optional[str]) -> AsyncIterator[Document]:
    if path:
        yield HtmlDocument.from_file(path)
        return

    from playwright.async_api import async_playwright

    from .document.playwright import PlaywrightDocument

    async with async_playwright() as p:
        browser = await p.chromium.launch(headless=True)
        try:
            page = await browser.new_page()
            await page.goto(url, wait_until="domcontentloaded")
            document = PlaywrightDocument(page)
            try:
                yield document
            finally:
                await document.disconnect()
        finally:
            await browser.close()


async def _scan(path: Optional[str], url: Optional[str], config: NavvraConfig, use_external: bool):
    bus = MessageBus(
        max_listener_errors=config.sync.max_listener_errors,
        history_limit=config.sync.message_history_limit,
    )
    toolbar = ToolbarContext(bus)
    strategy = strategy_from_env(config.summarizer) if use_external else None
    classification_strategy = (
        classification_strategy_from_env(config.summarizer, config.classifier) if use_external else None
    )

    async with _open_document(path, url) as document:
        context = DocumentContext(
            document, bus, config=config, strategy=strategy, classification_strategy=classification_strategy
        )
        await context.start(observe_mutations=False)
        toolbar.connect()
        try:
            await toolbar.request_scan()
            await context.flush()
        finally:
            await context.stop()
            toolbar.disconnect()

    return toolbar.snapshot or PageSnapshot.failed("No snapshot received"), toolbar.view


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def _run(source: Optional[str], url: Optional[str], strict: bool, external: bool):
    if bool(source) == bool(url):
        click.echo("Error: give exactly one of FILE or --url.", err=True)
        sys.exit(2)

    try:
        config = NavvraConfig.from_env()
        config.strict_sanitize = strict or config.strict_sanitize
        return asyncio.run(_scan(source, url, config, external))
    except NavvraError as e:
        click.echo(f"Error: {e.user_message or e.message}", err=True)
        if e.suggestion:
            click.echo(e.suggestion, err=True)
        sys.exit(1)


def _render_toolbar(view: ToolbarView, snapshot: PageSnapshot) -> None:
    if view.status:
        console.print(f"[bold red]{view.status}[/bold red]")

    navigation = Table(title="Navigation", show_header=False, box=None)
    for item in view.navigation:
        navigation.add_row(item.display, f"[dim]{item.element_id}[/dim]")
    if view.navigation_placeholder:
        navigation.add_row(f"[dim]{view.navigation_placeholder}[/dim]")
    console.print(navigation)

    actions = Table(title="Actions", show_header=False, box=None)
    for item in view.actions:
        actions.add_row(item.display, f"[dim]{item.tooltip}[/dim]", f"[dim]{item.element_id}[/dim]")
    if view.actions_placeholder:
        actions.add_row(f"[dim]{view.actions_placeholder}[/dim]")
    console.print(actions)

    footer = "🤖 AI-Powered Analysis" if view.ai_powered else f"{snapshot.summary_tier} summary"
    console.print(Panel(view.summary or "-", title="Summary", subtitle=footer))
    console.print(
        f"[dim]{snapshot.form_count} forms, {snapshot.input_count} inputs, "
        f"{snapshot.image_count} images (generation {snapshot.generation})[/dim]"
    )


@click.group()
@click.version_option(package_name="navvra")
def main():
    """Navvra - page analysis and sync pipeline.

    Extracts headings and actions from a page, ranks them, and summarizes
    what the page is for.
    """
    pass


@main.command()
@click.argument("source", required=False, type=click.Path(exists=True, dir_okay=False))
@click.option("--url", default=None, help="Analyse a live page with a headless browser")
@click.option("--json", "as_json", is_flag=True, help="Print the snapshot as JSON")
@click.option("--strict", is_flag=True, help="Fail on values that cannot be sanitized")
@click.option("--external/--no-external", default=True, help="Use OPENROUTER_API_KEY when set")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def analyze(source: Optional[str], url: Optional[str], as_json: bool, strict: bool,
            external: bool, verbose: bool):
    """Scan a page and show the toolbar view.

    \b
    Examples:
        navvra analyze page.html
        navvra analyze --url https://example.com --json
    """
    _configure_logging(verbose)
    snapshot, view = _run(source, url, strict, external)

    if as_json:
        click.echo(snapshot.model_dump_json(indent=2))
    else:
        _render_toolbar(view, snapshot)

    if snapshot.error:
        sys.exit(1)


@main.command()
@click.argument("source", required=False, type=click.Path(exists=True, dir_okay=False))
@click.option("--url", default=None, help="Analyse a live page with a headless browser")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def actions(source: Optional[str], url: Optional[str], verbose: bool):
    """List ranked actions with their category, priority and confidence."""
    _configure_logging(verbose)
    snapshot, _ = _run(source, url, strict=False, external=False)

    table = Table(title="Ranked actions")
    table.add_column("Id", style="dim")
    table.add_column("Type")
    table.add_column("Text")
    table.add_column("Category")
    table.add_column("Priority", justify="right")
    table.add_column("Confidence", justify="right")
    for action in snapshot.actions:
        table.add_row(
            action.get("id", ""),
            action.get("element_type", ""),
            action.get("text", ""),
            action.get("category", ""),
            str(action.get("priority", "")),
            f"{action.get('confidence', 0):.2f}",
        )
    console.print(table)


if __name__ == "__main__":
    main()
