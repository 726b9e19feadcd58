"""CLI interface for llm-search-audit."""

import json
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import Callable, Iterator, Optional

import click
from rich import box
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from . import __version__
from .config import Settings
from .crawler import parse_uploaded_zip
from .exceptions import AuditError
from .models import AiMode, AuditResult, CrawlResult, FindingType, ProgressEvent, ProgressStatus
from .service import AuditService, validate_archive, validate_url


console = Console()
err_console = Console(stderr=True)

COMMANDS = ("scan", "upload", "fix", "--help", "--version")


def finding_style(finding_type: FindingType) -> str:
    """Get Rich style for a finding type."""
    return {
        FindingType.PASS: "green",
        FindingType.INFO: "blue",
        FindingType.WARNING: "yellow",
        FindingType.FAIL: "red",
    }.get(finding_type, "white")


def finding_icon(finding_type: FindingType) -> str:
    """Get icon for a finding type."""
    return {
        FindingType.PASS: "✓",
        FindingType.INFO: "ℹ",
        FindingType.WARNING: "⚠",
        FindingType.FAIL: "✗",
    }.get(finding_type, "•")


def score_color(score: int) -> str:
    """Get color for a score value."""
    if score >= 80:
        return "green"
    elif score >= 60:
        return "yellow"
    elif score >= 40:
        return "orange1"
    else:
        return "red"


def print_score_bar(score: int, width: int = 20) -> Text:
    """Create a visual score bar."""
    filled = int((score / 100) * width)
    empty = width - filled
    color = score_color(score)

    bar = Text()
    bar.append("█" * filled, style=color)
    bar.append("░" * empty, style="dim")
    bar.append(f" {score}/100", style=f"bold {color}")
    return bar


AI_MODE_TEXT = {
    AiMode.ENHANCED: "[green]AI-enhanced[/green]",
    AiMode.BASIC: "[dim]basic (no AI provider configured)[/dim]",
    AiMode.FAILED: "[yellow]AI failed, deterministic results only[/yellow]",
}


def print_result(result: AuditResult, verbose: bool = False) -> None:
    """Print audit result to console."""
    console.print()
    console.print(Panel(
        f"[bold]{result.url}[/bold]\n"
        f"[dim]{result.site_type} • {result.pages_audited} of {result.total_pages} pages audited[/dim]",
        title="🔍 AI Search Visibility Audit",
        border_style="blue"
    ))

    console.print()
    console.print(f"  Overall ({result.grade}): ", end="")
    console.print(print_score_bar(result.overall_score, width=25))
    console.print()

    table = Table(box=box.SIMPLE, show_header=True, header_style="bold")
    table.add_column("Dimension", style="cyan")
    table.add_column("Weight", justify="right")
    table.add_column("Score", justify="right")
    table.add_column("Grade", justify="center")
    table.add_column("Status")

    for dim in result.dimensions:
        fails = sum(1 for f in dim.findings if f.type == FindingType.FAIL)
        warnings = sum(1 for f in dim.findings if f.type == FindingType.WARNING)
        status_parts = []
        if fails:
            status_parts.append(f"[red]{fails} fail{'s' if fails > 1 else ''}[/red]")
        if warnings:
            status_parts.append(f"[yellow]{warnings} warning{'s' if warnings > 1 else ''}[/yellow]")
        if not status_parts:
            status_parts.append("[green]OK[/green]")

        table.add_row(
            dim.name,
            f"{dim.weight:.0%}",
            f"[{score_color(dim.score)}]{dim.score}/100[/]",
            dim.grade,
            ", ".join(status_parts),
        )

    console.print(table)

    # Verbose shows every finding, otherwise just fails and warnings
    console.print(f"\n[bold]{'All Findings' if verbose else 'Issues Found'}:[/bold]\n")
    for dim in result.dimensions:
        shown = [f for f in dim.findings if verbose or f.is_issue]
        if not shown:
            continue
        console.print(f"  [bold]{dim.name}[/bold]")
        for finding in shown:
            style = finding_style(finding.type)
            page = f" [dim]({finding.page})[/dim]" if finding.page else ""
            console.print(f"    [{style}]{finding_icon(finding.type)}[/] {finding.message}{page}")
            if finding.detail and verbose:
                console.print(f"      [dim]{finding.detail}[/dim]")

    if result.priorities:
        console.print("\n[bold]🎯 Priority Actions:[/bold]\n")
        for i, priority in enumerate(result.priorities, 1):
            console.print(f"  {i}. {priority}")

    console.print(f"\n  AI analysis: {AI_MODE_TEXT[result.ai_mode]}")
    for diagnostic in result.ai_diagnostics:
        mark = "[green]✓[/green]" if diagnostic.success else "[red]✗[/red]"
        error = f" [dim]{diagnostic.error}[/dim]" if diagnostic.error else ""
        console.print(f"    {mark} {diagnostic.step} ({diagnostic.duration_ms}ms){error}")

    console.print()
    console.print("[dim]─" * 50 + "[/dim]")
    console.print(f"[dim]llm-search-audit v{__version__}[/dim]")
    console.print()


def write_files(files: dict[str, str], output_dir: Path) -> list[Path]:
    """Write a filename to content map below output_dir."""
    written = []
    for filename, content in files.items():
        path = output_dir / filename
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        written.append(path)
    return written


def make_service(no_ai: bool) -> AuditService:
    settings = Settings.from_env()
    if no_ai:
        settings = replace(settings, ai_provider="none")
    return AuditService.from_settings(settings, rate_limited=False)


def run_with_status(service: AuditService, label: str, load: Callable[[], CrawlResult]) -> AuditResult:
    """Run load() then the audit under a live status line."""
    with err_console.status(f"[bold blue]{label}...[/bold blue]") as status:
        crawl = load()
        err_console.print(
            f"[dim]{crawl.site_type} site, {len(crawl.pages)} pages found at {crawl.base_url}[/dim]"
        )

        def on_progress(event: ProgressEvent) -> None:
            if event.status == ProgressStatus.RUNNING:
                status.update(f"[bold blue]{event.detail or event.dimension}...[/bold blue]")

        return service.audit(crawl, on_progress=on_progress)


def echo_stream(lines: Iterator[str]) -> None:
    """Print NDJSON lines as they arrive; exit 1 if the run ends in error."""
    failed = False
    for line in lines:
        click.echo(line, nl=False)
        failed = json.loads(line).get("type") == "error"
    if failed:
        sys.exit(1)


def report(result: AuditResult, json_output: bool, verbose: bool, output: Optional[str]) -> None:
    if json_output:
        click.echo(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
    else:
        print_result(result, verbose=verbose)

    if output:
        output_dir = Path(output)
        write_files(result.generated_files, output_dir)
        err_console.print(f"[green]✓[/green] Wrote {len(result.generated_files)} files to {output_dir.absolute()}")


@click.group(invoke_without_command=True)
@click.option("--log-level", default=None, help="Logging level (default: AUDIT_LOG_LEVEL or WARNING)")
@click.pass_context
@click.version_option(version=__version__)
def cli(ctx, log_level: Optional[str]):
    """LLM Search Audit - how visible is a site to AI search engines?

    \b
    Quick start:
        llm-search-audit scan example.com
        llm-search-audit upload site.zip
        llm-search-audit fix example.com -o ./fixes

    \b
    Commands:
        scan    Crawl a URL and score it on eight dimensions
        upload  Audit a zipped static site
        fix     Audit a URL and write remediation files and fixed pages
    """
    logging.basicConfig(
        level=(log_level or Settings.from_env().log_level).upper(),
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
    )
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


@cli.command()
@click.argument("url")
@click.option("-v", "--verbose", is_flag=True, help="Show all findings, not just issues")
@click.option("--json", "json_output", is_flag=True, help="Output the result as JSON")
@click.option("--ndjson", "ndjson_output", is_flag=True, help="Stream progress and result as NDJSON")
@click.option("--no-ai", is_flag=True, help="Skip AI enhancement even if a provider is configured")
@click.option("-o", "--output", type=click.Path(file_okay=False), help="Write generated files to this directory")
def scan(url: str, verbose: bool, json_output: bool, ndjson_output: bool, no_ai: bool, output: Optional[str]):
    """Audit a URL for AI search visibility.

    \b
    Examples:
        llm-search-audit scan stripe.com
        llm-search-audit scan example.com --verbose
        llm-search-audit scan example.com --json -o ./fixes
    """
    service = make_service(no_ai)
    try:
        if ndjson_output:
            echo_stream(service.stream_url_audit(url))
            return
        normalized = validate_url(url)
        result = run_with_status(service, f"Crawling {normalized}", lambda: service.crawl(normalized))
    except AuditError as e:
        raise click.ClickException(str(e))

    report(result, json_output, verbose, output)


@cli.command()
@click.argument("archive", type=click.Path(exists=True, dir_okay=False))
@click.option("-v", "--verbose", is_flag=True, help="Show all findings, not just issues")
@click.option("--json", "json_output", is_flag=True, help="Output the result as JSON")
@click.option("--ndjson", "ndjson_output", is_flag=True, help="Stream progress and result as NDJSON")
@click.option("--no-ai", is_flag=True, help="Skip AI enhancement even if a provider is configured")
@click.option("-o", "--output", type=click.Path(file_okay=False), help="Write generated files to this directory")
def upload(archive: str, verbose: bool, json_output: bool, ndjson_output: bool, no_ai: bool, output: Optional[str]):
    """Audit a zipped static site.

    \b
    Examples:
        llm-search-audit upload site.zip
        llm-search-audit upload dist.zip -o ./fixes
    """
    data = Path(archive).read_bytes()
    service = make_service(no_ai)
    try:
        if ndjson_output:
            echo_stream(service.stream_archive_audit(data))
            return
        validate_archive(data)
        result = run_with_status(service, f"Extracting {archive}", lambda: parse_uploaded_zip(data))
    except AuditError as e:
        raise click.ClickException(str(e))

    report(result, json_output, verbose, output)


@cli.command()
@click.argument("url")
@click.option("-o", "--output", type=click.Path(file_okay=False), help="Output directory (default: current dir)")
@click.option("--no-ai", is_flag=True, help="Skip AI enhancement even if a provider is configured")
def fix(url: str, output: Optional[str], no_ai: bool):
    """Generate remediation files and fixed HTML pages for a URL.

    \b
    Examples:
        llm-search-audit fix example.com
        llm-search-audit fix example.com -o ./output
    """
    service = make_service(no_ai)
    try:
        normalized = validate_url(url)
        result = run_with_status(service, f"Crawling {normalized}", lambda: service.crawl(normalized))
        fixed = service.fix_pages(result.fix_pages_id)
    except AuditError as e:
        raise click.ClickException(str(e))

    output_dir = Path(output) if output else Path.cwd()
    output_dir.mkdir(parents=True, exist_ok=True)

    console.print()
    console.print(Panel(
        f"[bold]{result.url}[/bold]\n[dim]Score {result.overall_score}/100 ({result.grade})[/dim]",
        title="🔧 LLM Search Fix",
        border_style="green"
    ))
    console.print()

    for path in write_files(result.generated_files, output_dir):
        console.print(f"[green]✓[/green] Generated [cyan]{path.relative_to(output_dir)}[/cyan]")

    page_files = fixed.get("files", {})
    for path in write_files(page_files, output_dir):
        console.print(f"[green]✓[/green] Fixed [cyan]{path.relative_to(output_dir)}[/cyan]")
    if not page_files:
        console.print(f"[dim]{fixed.get('message', 'No pages needed fixing.')}[/dim]")

    console.print(f"\n[bold]Files saved to:[/bold] {output_dir.absolute()}")
    console.print()

    console.print("[bold]📋 Next Steps:[/bold]\n")
    console.print("  1. Review and customize the generated files")
    console.print("  2. Upload [cyan]robots.txt[/cyan], [cyan]sitemap.xml[/cyan] and [cyan]llms.txt[/cyan] to your site root")
    console.print("  3. Replace pages with the versions in [cyan]pages/[/cyan] or copy the added tags into your templates")
    console.print("  4. Re-run [cyan]llm-search-audit scan[/cyan] to verify your score improved")
    console.print()


# Convenience: allow `llm-search-audit URL` as shortcut for `llm-search-audit scan URL`
def main():
    """Entry point that handles both `llm-search-audit URL` and `llm-search-audit scan URL`."""
    args = sys.argv[1:]

    # A zip archive means 'upload'; anything else dotted that is not a local
    # file is taken as a domain and means 'scan'
    if args and not args[0].startswith('-') and args[0] not in COMMANDS:
        first = args[0]
        if first.lower().endswith('.zip'):
            sys.argv.insert(1, 'upload')
        elif '.' in first and not Path(first).exists():
            sys.argv.insert(1, 'scan')

    cli()


if __name__ == "__main__":
    main()
