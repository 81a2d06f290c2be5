"""
Generate Command - Write NUnit/Moq test skeletons for C# sources
"""

import asyncio
from pathlib import Path
from typing import List, Optional

import typer
from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from testforge.pipeline.generation_pipeline import GenerationPipeline
from testforge.pipeline.models import PipelineReport
from testforge.shared.domain.exceptions import ConfigurationError, GenerationIOError, PipelineRunError
from testforge.shared.infrastructure.config import CollisionPolicy, EligibilityPolicy, load_settings
from testforge.shared.infrastructure.logging import configure_logging, get_logger

console = Console()
logger = get_logger(__name__)

DEFAULT_EXCLUDES = ["bin", "obj", ".git", ".vs", "node_modules", "packages", "TestResults"]


def discover_sources(paths: List[Path], extension: str = ".cs", exclude_dirs: Optional[List[str]] = None) -> List[Path]:
    """
    Expand input paths into source files.

    Files are taken as given; directories are searched recursively for
    `*<extension>`, skipping build output and tooling directories.

    Raises:
        FileNotFoundError: If an input path does not exist
    """
    if exclude_dirs is None:
        exclude_dirs = DEFAULT_EXCLUDES

    files: List[Path] = []
    for path in paths:
        if path.is_file():
            files.append(path)
        elif path.is_dir():
            found = [
                f
                for f in path.rglob(f"*{extension}")
                if f.is_file() and not any(part in exclude_dirs for part in f.relative_to(path).parts)
            ]
            files.extend(sorted(found))
        else:
            raise FileNotFoundError(str(path))

    # Same file named twice (file and its directory) is read once
    return list(dict.fromkeys(files))


def create_written_table(report: PipelineReport) -> Table:
    table = Table(title="Generated Test Files", box=box.ROUNDED)
    table.add_column("File", style="cyan")
    for path in sorted(report.written):
        table.add_row(path.name)
    return table


def create_failure_table(report: PipelineReport) -> Table:
    table = Table(title="Failures", box=box.ROUNDED)
    table.add_column("Stage", style="yellow")
    table.add_column("Input", style="cyan")
    table.add_column("Reason", style="red")
    for failure in report.failures:
        table.add_row(failure.stage.value, failure.path, failure.reason)
    return table


def generate(
    paths: List[Path] = typer.Argument(..., help="C# files or directories to generate tests for"),
    output: Path = typer.Option(..., "--output", "-o", help="Directory receiving the generated test files"),
    parallelism: Optional[int] = typer.Option(
        None, "--parallelism", "-p", min=1,
        help="Concurrent workers per stage (default: MAX_PARALLELISM or 4)"
    ),
    collision_policy: Optional[CollisionPolicy] = typer.Option(
        None, "--collision-policy",
        help="What to do when two classes map to the same file name"
    ),
    eligibility: Optional[EligibilityPolicy] = typer.Option(
        None, "--eligibility",
        help="Which classes get a test class"
    ),
    fail_fast: bool = typer.Option(False, "--fail-fast", help="Stop admitting files after the first failure"),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="YAML configuration file"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
):
    """
    Generate test skeletons for every eligible class

    Example:
        testforge generate src/ -o tests/Generated
        testforge generate Orders.cs Billing.cs -o out -p 8
        testforge generate src/ -o out --collision-policy qualify
    """
    try:
        settings = load_settings(
            config,
            max_parallelism=parallelism,
            collision_policy=collision_policy,
            eligibility_policy=eligibility,
            fail_fast=True if fail_fast else None,
            log_level="DEBUG" if verbose else None,
        )
    except ConfigurationError as e:
        console.print(f"[red]Configuration error:[/red] {e}")
        raise typer.Exit(code=2)

    configure_logging(settings=settings)

    try:
        files = discover_sources(paths)
    except FileNotFoundError as e:
        console.print(f"[red]Error:[/red] Path not found: {e}")
        raise typer.Exit(code=1)

    if not files:
        console.print("[yellow]No C# source files found[/yellow]")
        raise typer.Exit(code=0)

    console.print(Panel.fit(
        f"[bold cyan]testforge[/bold cyan]\n"
        f"[dim]Sources:[/dim] {len(files)} file(s)\n"
        f"[dim]Output:[/dim] {output}\n"
        f"[dim]Parallelism:[/dim] {settings.max_parallelism}",
        title="Generation",
        border_style="cyan"
    ))

    pipeline = GenerationPipeline(settings=settings)
    try:
        report = asyncio.run(pipeline.run_all(settings.max_parallelism, output, files))
    except PipelineRunError as e:
        report = e.report
        if report.written:
            console.print(create_written_table(report))
        console.print(create_failure_table(report))
        console.print(f"[red]{len(report.failed_inputs)} input(s) failed[/red]")
        raise typer.Exit(code=1)
    except GenerationIOError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=1)

    console.print(create_written_table(report))
    console.print(f"[green]{len(report.written)} test file(s) written[/green]")
