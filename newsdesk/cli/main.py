"""Command-line interface for newsdesk using Typer and Rich."""

import asyncio
import json
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.table import Table

from newsdesk.config.logging import get_logger
from newsdesk.config.settings import settings
from newsdesk.data_management.content_store import ContentStore
from newsdesk.data_management.schemas import ContentCategory, ContentStatus
from newsdesk.errors import ConfigurationError, DuplicateSourceUrlError, PersistenceError
from newsdesk.pipeline.coordinator import IngestionCoordinator, IngestionItem, RunConfig
from newsdesk.pipeline.orchestrator import PipelineOrchestrator
from newsdesk.pipeline.reverify import Reverifier
from newsdesk.pipeline.schemas import PipelineConfig
from newsdesk.verification.hard_check import perform_hard_check
from newsdesk.verification.schemas import SeverityPolicy

app = typer.Typer(
    help="newsdesk - fetch, rewrite and fact-check AI news articles",
    add_completion=False,
)

# Progress JSON goes to stdout via typer.echo; tables and errors to the console
console = Console()
err_console = Console(stderr=True)

logger = get_logger("cli")


def _open_store(path: Optional[Path]) -> ContentStore:
    target = path or (Path(settings.content_store_path) if settings.content_store_path else None)
    try:
        return ContentStore(str(target) if target else None)
    except PersistenceError as e:
        err_console.print(f"[red]✗[/red] {e}")
        raise typer.Exit(1)


def read_url_file(path: Path, default_category: Optional[str]) -> List[IngestionItem]:
    """
    Read ingestion items from a text file.

    One URL per line, optionally followed by whitespace and a category.
    Blank lines and lines starting with # are ignored.
    """
    items = []
    for line in path.read_text(encoding="utf-8").splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        parts = line.split()
        category = parts[1] if len(parts) > 1 else default_category
        items.append(IngestionItem(url=parts[0], category=category))
    return items


@app.command()
def status(
    store: Optional[Path] = typer.Option(None, help="JSON content store file"),
) -> None:
    """Display configuration and stored record counts."""
    logger.info("Displaying system status")

    table = Table(title="newsdesk status", show_header=True, header_style="bold magenta")
    table.add_column("Component", style="cyan", width=20)
    table.add_column("Status", style="green", width=15)
    table.add_column("Details", style="yellow")

    api_status = "✓ Configured" if settings.gemini_api_key else "⚠ Not Configured"
    api_details = f"{settings.gemini_model} (RPM: {settings.max_rpm}, TPM: {settings.max_tpm:,})"
    table.add_row("Gemini API", api_status, api_details)

    gate = (
        f"min score {settings.min_fact_check_score}, retries {settings.max_retries}, "
        f"hard check ≥ {settings.hard_check_pass_threshold}"
    )
    table.add_row("Quality gate", "✓ Active", gate)
    table.add_row("Logging", "✓ Active", f"Level: {settings.log_level}, Format: {settings.log_format}")

    content_store = _open_store(store)
    counts = asyncio.run(content_store.count_by_status())
    where = str(content_store.persistence_path) if content_store.persistence_path else "memory"
    table.add_row(
        "Content store",
        where,
        ", ".join(f"{name}: {count}" for name, count in counts.items()),
    )

    console.print(table)


@app.command()
def ingest(
    urls: Optional[List[str]] = typer.Argument(None, help="Article URLs"),
    category: Optional[ContentCategory] = typer.Option(None, help="Category for all URLs"),
    file: Optional[Path] = typer.Option(
        None, "--file", "-f", exists=True, dir_okay=False, help="File with one URL per line"
    ),
    delay_ms: int = typer.Option(settings.delay_ms, help="Pause between items (ms)"),
    delay_jitter_ms: int = typer.Option(0, help="Random extra pause up to this many ms"),
    auto_publish: bool = typer.Option(False, "--auto-publish/--no-auto-publish"),
    max_items: Optional[int] = typer.Option(None, min=1, help="Stop after this many saved"),
    force: bool = typer.Option(False, help="Re-ingest URLs that already exist"),
    min_score: int = typer.Option(settings.min_fact_check_score, min=0, max=100),
    max_retries: int = typer.Option(settings.max_retries, min=0),
    skip_fact_check: bool = typer.Option(False, help="Skip the deterministic hard check"),
    store: Optional[Path] = typer.Option(None, help="JSON content store file"),
) -> None:
    """
    Ingest articles, printing one JSON progress event per line.

    Exits with status 1 when configuration is missing or any item failed.
    """
    default_category = category.value if category else None
    items = [IngestionItem(url=url, category=default_category) for url in urls or []]
    if file:
        items.extend(read_url_file(file, default_category))

    if not items:
        err_console.print("[red]✗[/red] No URLs given")
        raise typer.Exit(2)

    config = RunConfig(
        delay_ms=delay_ms,
        delay_jitter_ms=delay_jitter_ms,
        auto_publish=auto_publish,
        max_items_to_collect=max_items,
        force=force,
        pipeline=PipelineConfig(
            min_fact_check_score=min_score,
            max_retries=max_retries,
            skip_fact_check=skip_fact_check,
        ),
    )
    coordinator = IngestionCoordinator(PipelineOrchestrator(), _open_store(store))
    logger.info(f"Ingesting {len(items)} URL(s)")

    async def _run() -> int:
        failed = 0
        try:
            async for event in coordinator.run(items, config):
                typer.echo(event.to_json())
                if event.type == "complete" and event.stats:
                    failed = event.stats.failed
        finally:
            await coordinator.close()
        return failed

    try:
        failed = asyncio.run(_run())
    except ConfigurationError as e:
        err_console.print(f"[red]✗[/red] {e}")
        raise typer.Exit(1)

    if failed:
        raise typer.Exit(1)


@app.command("hard-check")
def hard_check(
    original: Path = typer.Argument(..., exists=True, dir_okay=False, help="Original text or HTML"),
    rewritten: Path = typer.Argument(..., exists=True, dir_okay=False, help="Rewritten text or HTML"),
    as_json: bool = typer.Option(False, "--json", help="Print the full result as JSON"),
    threshold: int = typer.Option(settings.hard_check_pass_threshold, min=0, max=100),
) -> None:
    """
    Compare dates and numbers of two files.

    Exits with status 1 when the check fails.
    """
    result = perform_hard_check(
        original.read_text(encoding="utf-8"),
        rewritten.read_text(encoding="utf-8"),
        SeverityPolicy(pass_threshold=threshold),
    )

    if as_json:
        typer.echo(result.model_dump_json(indent=2))
    else:
        verdict = "[green]✓ PASSED[/green]" if result.passed else "[red]✗ FAILED[/red]"
        console.print(f"{verdict}  score {result.score}/100")

        if result.mismatches:
            table = Table(show_header=True, header_style="bold magenta")
            table.add_column("Severity", width=10)
            table.add_column("Kind", style="cyan", width=18)
            table.add_column("Issue")
            for mismatch in result.mismatches:
                table.add_row(mismatch.severity.value, mismatch.kind.value, mismatch.issue)
            console.print(table)

    if not result.passed:
        raise typer.Exit(1)


@app.command()
def reverify(
    status_filter: ContentStatus = typer.Option(ContentStatus.PUBLISHED, "--status"),
    limit: int = typer.Option(100, min=1),
    apply: bool = typer.Option(False, help="Move failing records to needs_review"),
    store: Optional[Path] = typer.Option(None, help="JSON content store file"),
    as_json: bool = typer.Option(False, "--json", help="Print the report as JSON"),
) -> None:
    """Re-run the hard check over stored records (dry run unless --apply)."""
    reverifier = Reverifier(
        _open_store(store),
        SeverityPolicy(pass_threshold=settings.hard_check_pass_threshold),
    )
    try:
        report = asyncio.run(reverifier.reverify(status_filter, limit, dry_run=not apply))
    except (ValueError, DuplicateSourceUrlError, PersistenceError) as e:
        err_console.print(f"[red]✗[/red] {e}")
        raise typer.Exit(1)

    if as_json:
        typer.echo(json.dumps(report.model_dump(mode="json"), indent=2, ensure_ascii=False))
        return

    console.print(
        f"Checked {report.checked} {status_filter.value} record(s), "
        f"{len(report.issues)} with issues, {report.updated} updated"
        + (" [dim](dry run)[/dim]" if report.dry_run else "")
    )
    if report.issues:
        table = Table(show_header=True, header_style="bold magenta")
        table.add_column("Id", style="cyan", width=10)
        table.add_column("Score", width=6)
        table.add_column("Dates", width=6)
        table.add_column("Numbers", width=8)
        table.add_column("Title")
        for issue in report.issues:
            table.add_row(
                issue.id[:8],
                str(issue.score),
                str(issue.date_mismatches),
                str(issue.number_mismatches),
                issue.title or issue.source_url,
            )
        console.print(table)


if __name__ == "__main__":
    app()
