"""Command handlers for live streams.

Each handler blocks until the server ends the stream or the user presses
Ctrl-C; events are printed as they arrive.
"""

from __future__ import annotations

import argparse

from rich.markup import escape

from lenses_cli.api import LensesClient
from lenses_cli.api.models import Alert, AuditEntry
from lenses_cli.core import console, err_console
from lenses_cli.display import format_timestamp, render_json, render_log_line
from lenses_cli.display.rendering import level_style


def _print_alert(alert: Alert, output: str) -> None:
    if output == "json":
        render_json(alert)
        return
    severity = alert.labels.severity or "INFO"
    console.print(
        f"[{level_style(severity)}]{escape(severity)}[/] "
        f"[dim]{escape(alert.starts_at)}[/dim] "
        f"{escape(alert.labels.instance)} {escape(alert.annotations.summary)}"
    )


def _print_audit_entry(entry: AuditEntry, output: str) -> None:
    if output == "json":
        render_json(entry)
        return
    console.print(
        f"[dim]{format_timestamp(entry.timestamp)}[/dim] "
        f"[bold]{escape(entry.user_id)}[/bold] {escape(entry.change)} {escape(entry.type)}"
    )


def watch_alerts(client: LensesClient, args: argparse.Namespace) -> None:
    err_console.print("[dim]Waiting for alerts (Ctrl+C to stop)...[/dim]")
    client.get_alerts_live(lambda alert: _print_alert(alert, args.output))


def watch_audit_entries(client: LensesClient, args: argparse.Namespace) -> None:
    err_console.print("[dim]Waiting for audit entries (Ctrl+C to stop)...[/dim]")
    client.get_audit_entries_live(lambda entry: _print_audit_entry(entry, args.output))


def tail_processor_logs(client: LensesClient, args: argparse.Namespace) -> None:
    """Print the logs of a SQL processor pod running on Kubernetes."""
    client.get_processors_logs(
        args.cluster,
        args.namespace,
        args.pod,
        args.follow,
        args.lines,
        render_log_line,
    )
