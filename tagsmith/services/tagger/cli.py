"""CLI for structured tagging."""

import asyncio
import uuid
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.table import Table

from tagsmith.lib.config_manager import config as env_config
from tagsmith.lib.logging_config import setup_logging
from tagsmith.services.library import (
    DocumentNotFoundError,
    DocumentStore,
    create_json_store,
    create_zotero_store,
)
from tagsmith.services.llm import create_chat_client

from .annotation import read_annotation
from .batch import create_pipeline
from .config import TaggerConfig
from .errors import ConfigurationError
from .models import OutcomeStatus
from .prompts import order_fields, render_vocabulary_guide
from .vocabulary import build_field_frequencies, load_corpus_tags


app = typer.Typer(help="Structured key:value tagging with corpus-consistent vocabulary")
console = Console()

STATUS_STYLES = {
    OutcomeStatus.SUCCEEDED: "green",
    OutcomeStatus.SKIPPED: "yellow",
    OutcomeStatus.FAILED: "red",
}


def _open_store(library: Optional[Path], zotero: bool) -> DocumentStore:
    if zotero:
        library_id = env_config.get("ZOTERO_LIBRARY_ID")
        api_key = env_config.get("ZOTERO_API_KEY")
        if not library_id or not api_key:
            console.print("[bold red]ZOTERO_LIBRARY_ID and ZOTERO_API_KEY must be set[/bold red]")
            raise typer.Exit(1)
        return create_zotero_store(
            library_id=library_id,
            api_key=api_key,
            library_type=env_config.get("ZOTERO_LIBRARY_TYPE"),
            api_url=env_config.get("ZOTERO_API_URL"),
        )

    path = library or Path(env_config.get("LIBRARY_PATH"))
    if not path.exists():
        console.print(f"[bold red]Library file not found: {path}[/bold red]")
        raise typer.Exit(1)
    return create_json_store(path)


async def _close(obj) -> None:
    close = getattr(obj, "close", None)
    if close is not None:
        await close()


@app.command()
def tag(
    document_ids: List[str] = typer.Argument(..., help="Document IDs to tag"),
    library: Optional[Path] = typer.Option(None, "--library", "-l", help="JSON library file"),
    zotero: bool = typer.Option(False, "--zotero", help="Use the Zotero Web API"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Extract but do not write back"),
):
    """Extract metadata for documents and write tags + annotation block."""
    run = setup_logging("tagger", env_config.get("LOG_LEVEL"))
    run.set_run_id(uuid.uuid4().hex[:8])
    asyncio.run(_tag(document_ids, library, zotero, dry_run))


async def _tag(document_ids: List[str], library: Optional[Path], zotero: bool, dry_run: bool):
    tagger_config = TaggerConfig.from_env()
    store = _open_store(library, zotero)
    client = create_chat_client(
        api_key=tagger_config.api_key,
        model=tagger_config.model,
        base_url=tagger_config.base_url,
        timeout=tagger_config.timeout,
    )
    pipeline = create_pipeline(store, client, tagger_config, dry_run=dry_run)

    try:
        with console.status("[bold yellow]Tagging documents..."):
            summary = await pipeline.run(document_ids)
    except ConfigurationError as e:
        console.print(f"[bold red]Cannot start:[/bold red] {e}")
        raise typer.Exit(1)
    finally:
        await _close(client)
        await _close(store)

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Document", style="cyan")
    table.add_column("Status")
    table.add_column("Tags added", justify="right")
    table.add_column("Detail", style="dim")
    for outcome in summary.outcomes:
        style = STATUS_STYLES[outcome.status]
        table.add_row(
            outcome.document_id,
            f"[{style}]{outcome.status.value}[/{style}]",
            str(len(outcome.tags_added)),
            outcome.reason or "",
        )
    console.print(table)

    counts = summary.as_dict()
    console.print(
        f"\n[bold]Done:[/bold] {counts['succeeded']} succeeded, "
        f"{counts['skipped']} skipped, {counts['failed']} failed"
        + (" [dim](dry run)[/dim]" if dry_run else "")
    )


@app.command()
def vocab(
    library: Optional[Path] = typer.Option(None, "--library", "-l", help="JSON library file"),
    zotero: bool = typer.Option(False, "--zotero", help="Use the Zotero Web API"),
    top: int = typer.Option(10, "--top", "-n", help="Values shown per field"),
    show_guide: bool = typer.Option(False, "--guide", help="Print the full prompt guide"),
):
    """Show the structured-tag vocabulary of the library."""
    asyncio.run(_vocab(library, zotero, top, show_guide))


async def _vocab(library: Optional[Path], zotero: bool, top: int, show_guide: bool):
    store = _open_store(library, zotero)
    try:
        tags = await load_corpus_tags(store)
    finally:
        await _close(store)

    frequencies = build_field_frequencies(tags)
    if frequencies.is_empty():
        console.print("[dim]No structured key:value tags in this library[/dim]")
        return

    stats = frequencies.get_stats()
    console.print(
        f"\n[bold blue]{stats['total_structured_tags']} structured tags, "
        f"{stats['distinct_values']} distinct values, {stats['fields']} fields[/bold blue]\n"
    )

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Field", style="cyan")
    table.add_column("Top values", style="white")
    for key in order_fields(frequencies.keys()):
        ranked = frequencies.ranked(key)[:top]
        table.add_row(key, ", ".join(f"{value} ({count})" for value, count in ranked))
    console.print(table)

    if show_guide:
        console.print("\n[bold blue]Prompt guide[/bold blue]\n")
        console.print(render_vocabulary_guide(frequencies, TaggerConfig.from_env()), markup=False)


@app.command()
def show(
    document_id: str = typer.Argument(..., help="Document ID"),
    library: Optional[Path] = typer.Option(None, "--library", "-l", help="JSON library file"),
    zotero: bool = typer.Option(False, "--zotero", help="Use the Zotero Web API"),
):
    """Show a document's structured tags and annotation block."""
    asyncio.run(_show(document_id, library, zotero))


async def _show(document_id: str, library: Optional[Path], zotero: bool):
    tagger_config = TaggerConfig.from_env()
    store = _open_store(library, zotero)
    try:
        document = await store.get_document(document_id)
    except DocumentNotFoundError:
        console.print(f"[bold red]Document not found: {document_id}[/bold red]")
        raise typer.Exit(1)
    finally:
        await _close(store)

    console.print(f"[bold cyan]{document.title or document.id}[/bold cyan]\n")
    console.print("[bold]Tags:[/bold]")
    for name in document.tags:
        console.print(f"  - {name}", markup=False)

    block = read_annotation(document.extra, tagger_config.yaml_delimiter, tagger_config.yaml_mark)
    if block is None:
        console.print("\n[dim]No annotation block[/dim]")
        return

    console.print("\n[bold]Annotation:[/bold]")
    for key, value in block.items():
        if isinstance(value, list):
            console.print(f"  {key}: {', '.join(value)}", markup=False)
        else:
            console.print(f"  {key}: {value}", markup=False)


@app.command("config")
def show_config():
    """Show resolved settings (API keys masked)."""
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Setting", style="cyan")
    table.add_column("Value")
    for key, value in env_config.get_all().items():
        table.add_row(key, env_config.display_value(key, value))
    console.print(table)
    console.print(f"[dim].env: {env_config.env_file or 'not found'}[/dim]")


if __name__ == "__main__":
    app()
