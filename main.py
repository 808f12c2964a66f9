#!/usr/bin/env python3
"""
FeedLens - Feed Quality Analysis
================================

Main application entry point with CLI interface.

Usage:
    python main.py --help                          # Show all commands
    python main.py check-config                    # Show effective configuration
    python main.py analyze URL [URL ...]           # Fetch and analyze feeds
    python main.py inspect FILE --url URL          # Analyze a saved document
    python main.py analyze URL --json              # Emit the JSON report
"""

import sys
import json
import asyncio
from pathlib import Path
from typing import Any, Dict

import click
from rich.console import Console
from rich.table import Table

from feedlens.config.settings import get_settings
from feedlens.analysis.models import AnalysisReport
from feedlens.services.analysis_service import AnalysisService
from feedlens.utils.logging import configure_application_logging
from feedlens.utils.exceptions import FeedLensError, ValidationError

console = Console()


@click.group(invoke_without_command=True)
@click.option('--debug', is_flag=True, help='Enable debug logging')
@click.pass_context
def cli(ctx, debug):
    """FeedLens - RSS and Atom feed validation and quality analysis."""
    ctx.ensure_object(dict)
    ctx.obj['debug'] = debug

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())
        return

    try:
        settings = get_settings()
    except FeedLensError as e:
        console.print(f"[bold red]❌ Configuration error: {e.user_message}[/bold red]")
        sys.exit(1)

    configure_application_logging(
        log_level="DEBUG" if debug else settings.get_effective_log_level(),
        log_file=settings.logging.file_path,
        enable_console=settings.logging.console_logging,
        structured_logging=settings.logging.structured_logging,
        max_file_size_mb=settings.logging.max_file_size_mb,
        backup_count=settings.logging.backup_count,
    )


@cli.command()
def check_config():
    """Show the effective configuration."""
    console.print("[bold blue]🔧 FeedLens Configuration[/bold blue]")

    try:
        settings = get_settings()
        settings.validate_configuration()
    except FeedLensError as e:
        console.print(f"[bold red]❌ Configuration error: {e}[/bold red]")
        sys.exit(1)

    table = Table(title="Configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Request timeout", f"{settings.fetch.request_timeout}s")
    table.add_row("Max redirects", str(settings.fetch.max_redirects))
    table.add_row("Max concurrent fetches", str(settings.fetch.max_concurrent))
    table.add_row("User agent", settings.fetch.user_agent)
    table.add_row("Full content threshold", f"{settings.analysis.full_content_threshold} chars")
    table.add_row("Sample images", str(settings.analysis.sample_image_limit))
    table.add_row("Date format", settings.analysis.date_format)
    table.add_row("Log level", settings.get_effective_log_level())
    table.add_row("Log file", settings.logging.file_path or "None")

    console.print(table)
    console.print("[bold green]✅ Configuration is valid[/bold green]")


@cli.command()
@click.argument('urls', nargs=-1, required=True)
@click.option('--json', 'as_json', is_flag=True, help='Print the JSON report instead of a table')
def analyze(urls, as_json):
    """Fetch and analyze one or more feeds."""
    service = AnalysisService()

    try:
        if len(urls) == 1:
            reports = {urls[0]: service.analyze_url(urls[0])}
        else:
            reports = asyncio.run(service.analyze_urls(list(urls)))
    except ValidationError as e:
        console.print(f"[bold red]❌ {e.user_message}[/bold red]")
        sys.exit(2)
    finally:
        service.fetcher.close()

    if as_json:
        if len(urls) == 1:
            payload: Any = reports[urls[0]].to_dict()
        else:
            payload = {url: report.to_dict() for url, report in reports.items()}
        click.echo(json.dumps(payload, indent=2, ensure_ascii=False))
    else:
        for url, report in reports.items():
            _print_report(url, report)

    if not all(report.is_valid for report in reports.values()):
        sys.exit(1)


@cli.command()
@click.argument('path', type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option('--url', 'source_url', default='', help='URL the document was retrieved from')
@click.option('--json', 'as_json', is_flag=True, help='Print the JSON report instead of a table')
def inspect(path, source_url, as_json):
    """Analyze a feed document saved on disk."""
    text = path.read_text(encoding='utf-8', errors='replace')
    report = AnalysisService().analyze_document(text, source_url=source_url)

    if as_json:
        click.echo(json.dumps(report.to_dict(), indent=2, ensure_ascii=False))
    else:
        _print_report(source_url or str(path), report)

    if not report.is_valid:
        sys.exit(1)


def _print_report(source: str, report: AnalysisReport) -> None:
    """Render a report as rich tables."""
    data: Dict[str, Any] = report.to_dict()

    if report.is_valid:
        console.print(f"\n[bold green]✅ {data['title']}[/bold green] [dim]{source}[/dim]")
    else:
        console.print(f"\n[bold red]❌ Invalid feed[/bold red] [dim]{source}[/dim]")
        console.print(f"[red]{data['error']}[/red]")

    table = Table(title="Feed Analysis")
    table.add_column("Property", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Feed type", data['feedType'])
    table.add_row("Items", str(data['itemCount']))
    table.add_row("Content", data['contentType'])
    table.add_row("Featured image", "Yes" if data['hasFeaturedImage'] else "No")
    table.add_row("Last update", data['lastUpdate'] or "Unknown")
    table.add_row("Post frequency", data['postFrequency'] or "Unknown")
    table.add_row("Fields", ", ".join(data['availableFields']) or "None")

    if 'missingFields' in data:
        table.add_row("Missing fields", ", ".join(data['missingFields']))
    if 'duplicateGuids' in data:
        table.add_row("Duplicate GUIDs", str(len(data['duplicateGuids'])))

    console.print(table)

    if report.is_valid:
        sources = Table(title="Image Sources")
        sources.add_column("Source", style="cyan")
        sources.add_column("Items", style="yellow")
        for name, count in data['imageSources'].items():
            sources.add_row(name, str(count))
        console.print(sources)

        for image in data.get('imageResolutions', []):
            console.print(f"   🖼️ {image['url']}")

    for message in data.get('validationErrors', []):
        console.print(f"   • {message}")


if __name__ == "__main__":
    try:
        cli()
    except KeyboardInterrupt:
        console.print("\n[yellow]👋 FeedLens interrupted by user[/yellow]")
        sys.exit(130)
    except Exception as e:
        console.print(f"\n[bold red]❌ Unexpected error: {e}[/bold red]")
        sys.exit(1)
