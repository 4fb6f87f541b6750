import json
from typing import Any

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table

console = Console()
err_console = Console(stderr=True)


def print_start_panel(command: str, sources: dict[str, Any]) -> None:
    """Print the panel describing the inputs of a run."""
    lines = [f"[bold]Command:[/bold] {command}"]
    for label, path in sources.items():
        lines.append(f"[bold]{label}:[/bold] {path if path else '[dim]none[/dim]'}")
    console.print()
    console.print(
        Panel(
            "\n".join(lines),
            title="[bold cyan]patch-transform[/bold cyan]",
            border_style="cyan",
        )
    )
    console.print()


def create_errors_table(errors: list[dict[str, Any]]) -> Table:
    """Build a table with one row per failed patch."""
    table = Table(
        title="[bold red]Failed patches[/bold red]",
        box=box.ROUNDED,
        show_header=True,
        header_style="bold",
        expand=True,
    )
    table.add_column("Resource", style="cyan", no_wrap=True)
    table.add_column("Patch", justify="right", style="yellow")
    table.add_column("Error", style="magenta", no_wrap=True)
    table.add_column("Message", style="red")

    for err in errors:
        index = err.get("index")
        table.add_row(
            err.get("resource") or "[dim]-[/dim]",
            str(index) if index is not None else "[dim]-[/dim]",
            err.get("kind", ""),
            err.get("message", ""),
        )
    return table


def print_result_panel(resources: int, errors: int) -> None:
    """Print the summary panel at the end of a render."""
    ok = errors == 0
    color = "green" if ok else "red"
    headline = (
        "[bold green]Render completed successfully![/bold green]"
        if ok
        else "[bold red]Render completed with errors[/bold red]"
    )
    console.print(
        Panel(
            f"{headline}\n\n"
            f"[bold]Resources rendered:[/bold] {resources}\n"
            f"[bold]Failed patches:[/bold] {errors}",
            title=f"[bold {color}]Result[/bold {color}]",
            border_style=color,
        )
    )
    console.print()


def print_error_panel(message: str) -> None:
    """Print the error panel."""
    console.print(
        Panel(
            f"[red]{message}[/red]",
            title="[bold red]Error[/bold red]",
            border_style="red",
        )
    )
    console.print()


def print_json_panel(document: Any, title: str = "Result") -> None:
    """Print a JSON document in a panel with syntax highlighting."""
    syntax = Syntax(
        json.dumps(document, indent=2, ensure_ascii=False),
        "json",
        theme="monokai",
        line_numbers=True,
    )
    console.print(
        Panel(syntax, title=f"[bold]{title}[/bold]", border_style="blue")
    )
