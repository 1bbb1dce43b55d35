"""
CLI: ``content-spine`` - run and inspect catalog indexations by hand.

Credentials come from ``CONTENT_SPINE_*`` environment variables (or ``.env``);
options override them per run.
"""

from __future__ import annotations

import json
from enum import Enum
from typing import Any

import typer
from rich.console import Console
from rich.table import Table

from content_spine import __version__
from content_spine.config import get_settings, resolve_credentials
from content_spine.errors import ContentSpineError, MissingConfigError
from content_spine.handler import build_catalog_client, build_source
from content_spine.logging import configure_logging
from content_spine.models import Locale
from content_spine.orchestrator import run_indexation
from content_spine.registry import INDEXERS, aliases_for, normalize_content_type_key, resolve

app = typer.Typer(
    name="content-spine",
    help="content-spine - reindex CMS content into the search catalog.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

console = Console()
err_console = Console(stderr=True)


class FormatChoice(str, Enum):
    """Upload file formats accepted by ``index --format``."""

    JSONL = "jsonl"
    CSV = "csv"


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"content-spine {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """content-spine CLI - index content types and follow catalog tasks."""


# ── Output helpers ───────────────────────────────────────────────────────


def _print_json(data: Any) -> None:
    console.print_json(json.dumps(data, ensure_ascii=False, default=str))


def _fail(error: ContentSpineError) -> None:
    err_console.print(f"[bold red]{error.__class__.__name__}:[/bold red] {error.message}")
    raise typer.Exit(code=1)


# ── Commands ─────────────────────────────────────────────────────────────


@app.command("index")
def index(
    content_type: str = typer.Argument(..., help="Content type id, e.g. techTip"),
    section: str | None = typer.Option(None, "--section", "-s", help="Catalog section"),
    key_en: str | None = typer.Option(None, "--key-en", help="EN catalog index key"),
    key_fr: str | None = typer.Option(None, "--key-fr", help="FR catalog index key"),
    page_size: int | None = typer.Option(None, "--page-size", "-n"),
    upload_format: FormatChoice | None = typer.Option(None, "--format", "-f", help="Upload file format"),
    concept: list[str] | None = typer.Option(None, "--concept", help="Only entries tagged with this concept id"),
    strict: bool | None = typer.Option(None, "--strict/--fallback", help="Reject unknown content types"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Replace both locale catalogs with every entry of CONTENT_TYPE."""
    settings = get_settings()
    configure_logging(level=settings.log_level, format=settings.log_format)

    overrides = {"section": section, "constructorKeyEn": key_en, "constructorKeyFr": key_fr}
    try:
        credentials = resolve_credentials(settings, overrides)
        with build_source(settings, credentials.delivery_token) as source, build_catalog_client(settings) as catalog:
            result = run_indexation(
                content_type,
                credentials=credentials,
                source=source,
                catalog=catalog,
                page_size=page_size or settings.page_size,
                strict=settings.strict_content_types if strict is None else strict,
                upload_format=upload_format.value if upload_format else settings.upload_format,
                concept_ids=concept or None,
            )
    except ContentSpineError as e:
        _fail(e)

    if json_out:
        _print_json(result.to_dict())
    elif result.ok:
        console.print(f"[green]✓[/green] {result.message}")
    else:
        err_console.print(f"[bold red]✗[/bold red] {result.message}")

    if not result.ok:
        raise typer.Exit(code=1)


@app.command("types")
def types(json_out: bool = typer.Option(False, "--json")) -> None:
    """List supported content types and their accepted aliases."""
    rows = [
        {
            "contentType": indexer.id,
            "collection": indexer.query.collection,
            "aliases": aliases_for(content_type),
        }
        for content_type, indexer in INDEXERS.items()
    ]
    if json_out:
        _print_json(rows)
        return

    table = Table(title="Content Types")
    table.add_column("Content type", style="cyan")
    table.add_column("Collection")
    table.add_column("Aliases", style="dim")
    for row in rows:
        table.add_row(row["contentType"], row["collection"], ", ".join(row["aliases"]))
    console.print(table)


@app.command("resolve")
def resolve_cmd(
    key: str = typer.Argument(..., help="Content type id or alias"),
    strict: bool = typer.Option(False, "--strict", help="Fail instead of falling back"),
) -> None:
    """Show which indexer a content type id resolves to."""
    try:
        indexer = resolve(key, strict=strict)
    except ContentSpineError as e:
        _fail(e)
    console.print(f"{key} -> [cyan]{indexer.id}[/cyan] (normalized: {normalize_content_type_key(key)!r})")


@app.command("task")
def task(
    task_id: str = typer.Argument(..., help="Task id returned by a catalog upload"),
    token: str | None = typer.Option(None, "--token", help="Catalog API token"),
    wait: bool = typer.Option(False, "--wait", "-w", help="Poll until the task finishes"),
    interval: float | None = typer.Option(None, "--interval", help="Seconds between polls"),
    timeout: float | None = typer.Option(None, "--timeout", help="Give up after this many seconds"),
) -> None:
    """Show the status of a catalog ingest task."""
    settings = get_settings()
    configure_logging(level=settings.log_level, format=settings.log_format)

    token = token or settings.constructor_api_token
    try:
        if not token:
            raise MissingConfigError("constructor.token", "Constructor token missing (option/env).")
        with build_catalog_client(settings) as catalog:
            if wait:
                result = catalog.poll_task(
                    task_id,
                    token,
                    interval=interval or settings.task_poll_interval,
                    timeout=timeout,
                )
            else:
                result = catalog.get_task(task_id, token)
    except ContentSpineError as e:
        _fail(e)

    _print_json(result)


@app.command("preview")
def preview(
    content_type: str = typer.Argument(..., help="Content type id or alias"),
    locale: Locale | None = typer.Option(None, "--locale", "-l", help="Only this locale (default: both)"),
) -> None:
    """Map the most recently published entry without uploading it."""
    settings = get_settings()
    configure_logging(level=settings.log_level, format=settings.log_format)

    locales = [locale] if locale else list(Locale)
    try:
        indexer = resolve(content_type, strict=True)
        delivery_token = settings.contentful_delivery_token
        if not delivery_token:
            raise MissingConfigError("contentful.deliveryToken", "Contentful GraphQL token missing (delivery).")
        with build_source(settings, delivery_token) as source:
            entry = source.fetch_latest(indexer.query)
        if entry is None:
            console.print(f"No {indexer.id} entries found.")
            return
        items = {loc.value: indexer.map(indexer.normalize_for_locale(entry, loc)).to_dict() for loc in locales}
    except ContentSpineError as e:
        _fail(e)

    _print_json(items)


if __name__ == "__main__":
    app()
