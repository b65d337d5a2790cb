"""Display formatting and rendering utilities for the CLI."""

import json
from datetime import datetime, timezone
from typing import Any, Callable, Iterable, Sequence

import httpx
from rich.markup import escape
from rich.table import Table

from lenses_cli.api.errors import LensesError, ResourceError
from lenses_cli.core import console, err_console

# (header, extractor)
Column = tuple[str, Callable[[Any], Any]]

LEVEL_STYLES = {
    "ERROR": "red",
    "WARN": "yellow",
    "WARNING": "yellow",
    "INFO": "cyan",
    "DEBUG": "dim",
    "HIGH": "red",
    "MEDIUM": "yellow",
    "LOW": "cyan",
    "CRITICAL": "bold red",
    "": "white",
}

MAX_CELL_LENGTH = 80


def format_timestamp(milliseconds: int) -> str:
    """Format a millisecond epoch as ``YYYY-mm-dd HH:MM`` (UTC); empty for 0."""
    if not milliseconds:
        return ""
    moment = datetime.fromtimestamp(milliseconds / 1000, tz=timezone.utc)
    return moment.strftime("%Y-%m-%d %H:%M")


def format_cell(value: Any) -> str:
    """Render a single table cell, truncating long values."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "yes" if value else "no"
    if isinstance(value, (list, tuple)):
        text = ", ".join(str(item) for item in value)
    elif isinstance(value, dict):
        text = ", ".join(f"{key}={item}" for key, item in value.items())
    else:
        text = str(value)
    if len(text) > MAX_CELL_LENGTH:
        return text[:MAX_CELL_LENGTH] + "..."
    return text


def to_data(item: Any) -> Any:
    """JSON-ready form of a model, a list of models or a plain value."""
    if hasattr(item, "to_dict"):
        return item.to_dict()
    if isinstance(item, (list, tuple)):
        return [to_data(element) for element in item]
    return item


def render_json(data: Any) -> None:
    console.print_json(json.dumps(to_data(data)))


def render_table(items: Iterable[Any], columns: Sequence[Column], *, title: str | None = None) -> None:
    """Render items as a table.

    Args:
        items: Rows to render
        columns: Header and value extractor for each column
        title: Optional table title
    """
    table = Table(title=title, show_header=True, header_style="bold")
    for header, _ in columns:
        table.add_column(header)

    for item in items:
        table.add_row(*(escape(format_cell(extract(item))) for _, extract in columns))

    console.print(table)


def render(items: Any, columns: Sequence[Column], output: str, *, title: str | None = None) -> None:
    """Render as JSON when asked to or when stdout is not a terminal, otherwise as a table."""
    if output == "json" or not console.is_terminal:
        render_json(items)
        return

    rows = items if isinstance(items, (list, tuple)) else [items]
    render_table(rows, columns, title=title)


def render_message(message: str) -> None:
    console.print(f"[green]{escape(message)}[/green]")


def level_style(level: str) -> str:
    return LEVEL_STYLES.get(level.upper(), "white")


def render_log_line(level: str, text: str) -> None:
    """Print a processor log line, colored by level when one is known."""
    if level:
        console.print(f"[{level_style(level)}]{escape(level.upper())}[/] {escape(text)}")
    else:
        console.print(escape(text))


def format_error(error: BaseException, *, debug: bool = False) -> str:
    """User-facing text for an error; resource errors show full detail in debug mode."""
    if isinstance(error, ResourceError) and debug:
        return error.detail()
    if isinstance(error, httpx.TimeoutException):
        return f"request timed out: {error}"
    if isinstance(error, httpx.TransportError):
        return f"unable to reach Lenses: {error}"
    return str(error)


def render_error(error: BaseException, *, debug: bool = False, output: str = "table") -> None:
    """Print an error to stderr, as JSON when JSON output was requested."""
    if output == "json" and isinstance(error, LensesError):
        err_console.print_json(json.dumps(error.to_dict()))
        return
    err_console.print(f"[red]Error: {escape(format_error(error, debug=debug))}[/red]")
