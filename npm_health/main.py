"""
Main CLI application
"""

import asyncio
import logging
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel

from . import __version__
from .config import configure_logging, get_settings
from .errors import PackageHealthError, UpstreamError
from .health import check_health, format_date, format_number, format_relative_date
from .models import HealthReport

app = typer.Typer(
    name="npm-health",
    help="npm-health - Check whether an npm package is still maintained",
    add_completion=False
)

logger = logging.getLogger(__name__)

console = Console()

STATUS_STYLES = {
    "alive": ("💚", "Alive & Kicking", "This package is actively maintained", "green"),
    "slowing": ("💛", "On Life Support", "Activity has slowed down - proceed with caution", "yellow"),
    "dead": ("💀", "Dead", "This package appears to be abandoned", "red"),
}


def format_health_report(report: HealthReport) -> Panel:
    """
    Format a health report as a rich Panel status card

    Args:
        report: HealthReport to format

    Returns:
        Rich Panel with formatted output
    """
    emoji, label, verdict, color = STATUS_STYLES[report.status]
    title = escape(f"{emoji} {report.name} ({report.version or 'unknown version'})")

    lines = []
    lines.append(f"[bold {color}]{label}[/bold {color}]")
    lines.append(f"[dim]{verdict}[/dim]")
    lines.append("")

    if report.description:
        lines.append(escape(report.description))
        lines.append("")

    # npm stats
    lines.append("📦 npm Stats")
    if report.last_publish:
        publish_date_str = format_date(report.last_publish)
        lines.append(
            f"├── Last Publish: {publish_date_str} ({format_relative_date(report.last_publish)})"
        )
    else:
        lines.append("├── Last Publish: unknown")
    lines.append(f"├── Weekly Downloads: {format_number(report.weekly_downloads)}")
    issues = f"{report.open_issues:,}" if report.open_issues >= 0 else "N/A"
    lines.append(f"└── Open Issues: {issues}")
    lines.append("")

    # GitHub stats (if available)
    if report.repo_url:
        lines.append("💻 GitHub Stats")
        if report.last_commit:
            commit_date_str = format_date(report.last_commit)
            lines.append(
                f"└── Last Commit: {commit_date_str} ({format_relative_date(report.last_commit)})"
            )
        else:
            lines.append("└── Last Commit: unknown")
        lines.append("")

    if report.maintainers:
        lines.append(f"👥 Maintainers: {escape(', '.join(report.maintainers))}")
    lines.append(f"🔗 {report.npm_url}")
    if report.repo_url:
        lines.append(f"🔗 {report.repo_url}")

    return Panel(
        "\n".join(lines),
        title=title,
        title_align="left",
        border_style=color,
        padding=(1, 2)
    )


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging")
):
    """Check whether npm packages are still actively maintained"""
    configure_logging("DEBUG" if verbose else get_settings().log_level)


@app.command()
def check(
    package_name: str = typer.Argument(..., help="Name of the npm package to check"),
    as_json: bool = typer.Option(False, "--json", help="Print the raw JSON report")
):
    """
    Check the health of an npm package

    Fetches information from the npm registry and GitHub to decide whether
    the package is alive, slowing down, or dead.
    """
    try:
        with console.status(
            f"[bold blue]Checking health of '{package_name}'...",
            spinner="dots"
        ):
            report = asyncio.run(check_health(package_name))

    except PackageHealthError as e:
        console.print()
        console.print(f"[bold red]❌ {escape(e.message)}[/bold red]")
        console.print()
        raise typer.Exit(code=1)

    except Exception:
        logger.exception(f"Error checking package {package_name!r}")
        console.print()
        console.print(f"[bold red]❌ {UpstreamError.message}[/bold red]")
        console.print()
        raise typer.Exit(code=1)

    if as_json:
        console.print_json(report.model_dump_json(by_alias=True))
        return

    console.print()
    console.print(format_health_report(report))
    console.print()


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, "--host", help="Interface to bind (default NPM_HEALTH_HOST)"),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Port to listen on (default NPM_HEALTH_PORT)")
):
    """Serve the HTTP API with uvicorn"""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "npm_health.api:app",
        host=host or settings.host,
        port=port or settings.port,
        log_level=settings.log_level.lower()
    )


@app.command()
def version():
    """Show the version of npm-health"""
    console.print(f"npm-health version {__version__}")


if __name__ == "__main__":
    app()
