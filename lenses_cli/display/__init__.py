"""Display formatting and rendering utilities for the CLI."""

from lenses_cli.display.rendering import (
    format_cell,
    format_error,
    format_timestamp,
    render,
    render_error,
    render_json,
    render_log_line,
    render_message,
    render_table,
)

__all__ = [
    "format_cell",
    "format_error",
    "format_timestamp",
    "render",
    "render_error",
    "render_json",
    "render_log_line",
    "render_message",
    "render_table",
]
