import asyncio
import json
import logging
from typing import Optional

import typer
from rich.console import Console
from rich.json import JSON
from rich.logging import RichHandler
from rich.table import Table

from .cache import PageCache
from .config import EngineSettings
from .core import DynamicCollector, analyze_and_classify
from .fetchers import NOISE_SELECTOR
from .loader import load_page
from .models import ConfigOverride, FetcherKind, PageConfig, PageRole, ParserKind
from .remote import ZeroShotClassifier
from .structured import extract_structured_content, format_structured_content
from . import dom


app = typer.Typer(help="Adaptive page understanding and collection engine")
console = Console()


def _setup_logging(settings: EngineSettings, verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else settings.log_level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )


def _parse_enum(enum_cls, value: Optional[str], option: str):
    if value is None:
        return None
    try:
        return enum_cls(value.upper())
    except ValueError:
        choices = ", ".join(member.value.lower() for member in enum_cls)
        console.print(f"[red]Error: invalid {option} '{value}' (choose from {choices})[/red]")
        raise typer.Exit(1)


@app.command()
def analyze(
    url: str = typer.Argument(..., help="URL of the page to analyze"),
    as_json: bool = typer.Option(False, "--json", help="Print the full analysis as JSON"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
):
    """Analyze a page and show how it would be collected."""
    settings = EngineSettings.from_env()
    _setup_logging(settings, verbose)

    understanding = asyncio.run(analyze_and_classify(
        url,
        settings=settings,
        classifier=ZeroShotClassifier.from_settings(settings),
    ))

    if not understanding.loaded_page.ok:
        console.print(f"[yellow]Page did not load cleanly (status {understanding.loaded_page.status_code})[/yellow]")

    if as_json:
        console.print(JSON(understanding.model_dump_json(exclude={"loaded_page": {"raw_markup"}})))
        return

    analysis = understanding.analysis
    profile = understanding.profile
    strategy = understanding.strategy

    table = Table(title=f"Analysis of {url}")
    table.add_column("Signal", style="cyan")
    table.add_column("Value")
    table.add_row("script count", str(analysis.html_signals.script_count))
    table.add_row("content length", str(analysis.html_signals.content_length))
    table.add_row("inline data", str(analysis.html_signals.inline_data_presence))
    table.add_row("JS dependency score", f"{analysis.js_dependency_score:.2f}")
    table.add_row("rendering", profile.rendering_type.value)
    table.add_row("data access", profile.data_access_type.value)
    table.add_row("page role", profile.page_role.value)
    table.add_row("fetcher", strategy.fetcher.value)
    table.add_row("parser", strategy.parser.value)
    table.add_row("readability", str(strategy.use_readability))
    table.add_row("endpoints", str(len(analysis.detected_endpoints)))
    console.print(table)

    console.print(f"\n[green]Detected {len(understanding.blocks)} blocks[/green]")
    for block in understanding.blocks:
        names = ", ".join(f"{f.name}({f.confidence:.1f})" for f in block.fields)
        console.print(f"  {block.block_type.value} {block.semantic_type.value} [dim]{block.selector}[/dim]: {names}")

    items = understanding.model.items
    console.print(f"\n[green]Extracted {len(items)} items[/green]")
    for i, item in enumerate(items[:3], 1):
        console.print(f"\n{i}. {JSON(json.dumps(item.fields, ensure_ascii=False))}")
    if len(items) > 3:
        console.print(f"\n... and {len(items) - 3} more items")


@app.command()
def collect(
    url: str = typer.Argument(..., help="URL of the page to collect"),
    source: str = typer.Option("dynamic", "--source", "-s", help="Source name stamped on each record"),
    fetcher: Optional[str] = typer.Option(None, "--fetcher", help="Force a fetcher: static or headless"),
    parser: Optional[str] = typer.Option(None, "--parser", help="Force a parser: list, detail, api or mixed"),
    role: Optional[str] = typer.Option(None, "--role", help="Force a page role, e.g. LIST_NOTICE"),
    readability: Optional[bool] = typer.Option(
        None,
        "--readability/--no-readability",
        help="Force main-content extraction on or off",
    ),
    output: Optional[str] = typer.Option(None, "--output", "-o", help="Output JSON file path"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
):
    """Collect records from a page with the automatically selected strategy."""
    settings = EngineSettings.from_env()
    _setup_logging(settings, verbose)

    override = ConfigOverride(
        page_role=_parse_enum(PageRole, role, "role"),
        fetcher=_parse_enum(FetcherKind, fetcher, "fetcher"),
        parser=_parse_enum(ParserKind, parser, "parser"),
        use_readability=readability,
    )
    config = PageConfig(source_name=source, url=url, override=override if override.is_set() else None)

    collector = DynamicCollector(
        config,
        settings=settings,
        cache=PageCache(settings.cache_ttl_seconds, settings.cache_max_entries),
        classifier=ZeroShotClassifier.from_settings(settings),
    )
    records = asyncio.run(collector.collect())
    as_dicts = [record.model_dump() for record in records]

    console.print(f"\n[green]Collected {len(records)} records[/green]")

    if output:
        with open(output, "w", encoding="utf-8") as f:
            json.dump(as_dicts, f, indent=2, ensure_ascii=False)
        console.print(f"[green]Saved to {output}[/green]")
    else:
        console.print("\n[cyan]Sample records:[/cyan]")
        for i, record in enumerate(as_dicts[:3], 1):
            console.print(f"\n{i}. {JSON(json.dumps(record, indent=2, ensure_ascii=False))}")

        if len(records) > 3:
            console.print(f"\n... and {len(records) - 3} more records")


@app.command()
def structure(
    url: str = typer.Argument(..., help="URL of the page"),
    text: bool = typer.Option(False, "--text", "-t", help="Print as readable text instead of JSON"),
):
    """Break a page down into navigation, header, main content, sidebar and footer."""
    settings = EngineSettings.from_env()
    _setup_logging(settings)

    page = asyncio.run(load_page(url, settings=settings))
    if not page.ok:
        console.print(f"[red]Error: could not load {url} (status {page.status_code})[/red]")
        raise typer.Exit(1)

    cleaned = dom.strip_noise(dom.parse(page.raw_markup), NOISE_SELECTOR).html or ""
    structured = extract_structured_content(cleaned)

    if structured.is_empty():
        console.print("[yellow]No structured content found[/yellow]")
        return

    if text:
        console.print(format_structured_content(structured))
    else:
        console.print(JSON(json.dumps(structured.to_dict(), ensure_ascii=False)))


if __name__ == "__main__":
    app()
