"""
testforge CLI - Test skeleton generator for C#
Main entry point for the command-line interface

Usage:
    testforge generate <paths> -o <dir>   # Generate test files
    testforge version                     # Show version
"""

import typer
from rich.console import Console
from rich.panel import Panel

from testforge import __version__
from testforge.cli.commands.generate import generate

app = typer.Typer(
    name="testforge",
    help="testforge - NUnit/Moq test skeleton generator for C# code",
    add_completion=False,
    no_args_is_help=True,
)
console = Console()

app.command(name="generate")(generate)


@app.command()
def version():
    """Show testforge version information"""
    console.print(Panel.fit(
        f"[bold cyan]testforge[/bold cyan]\n"
        f"[dim]Version:[/dim] {__version__}\n",
        title="About testforge",
        border_style="cyan"
    ))


def main():
    """Main entry point"""
    app()


if __name__ == "__main__":
    main()
