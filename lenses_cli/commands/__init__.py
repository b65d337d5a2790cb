"""Command handlers for lenses-cli."""

from __future__ import annotations

import argparse
from typing import Callable

from lenses_cli.api import LensesClient
from lenses_cli.commands import live, resources

Handler = Callable[[LensesClient, argparse.Namespace], None]

# (command, action) -> handler; commands without actions use None.
COMMANDS: dict[tuple[str, str | None], Handler] = {
    ("license", None): resources.show_license,
    ("logout", None): resources.logout,
    ("alerts", "list"): resources.list_alerts,
    ("alerts", "live"): live.watch_alerts,
    ("audit", "list"): resources.list_audit_entries,
    ("audit", "live"): live.watch_audit_entries,
    ("logs", "info"): resources.show_logs_info,
    ("logs", "metrics"): resources.show_logs_metrics,
    ("logs", "processor"): live.tail_processor_logs,
    ("topics", "list"): resources.list_topics,
    ("topics", "create"): resources.create_topic,
    ("topics", "delete"): resources.delete_topic,
    ("connectors", "list"): resources.list_connectors,
    ("connectors", "pause"): resources.pause_connector,
    ("connectors", "resume"): resources.resume_connector,
    ("connectors", "restart"): resources.restart_connector,
    ("connectors", "delete"): resources.delete_connector,
    ("schemas", "list"): resources.list_subjects,
    ("schemas", "get"): resources.get_schema,
    ("sql", "validate"): resources.validate_sql,
    ("sql", "queries"): resources.list_running_queries,
    ("sql", "cancel"): resources.cancel_query,
    ("policies", "list"): resources.list_policies,
}


def handle_command(client: LensesClient, args: argparse.Namespace) -> None:
    """Run the handler for the parsed command.

    Args:
        client: Connected client
        args: Parsed arguments with ``command`` and, for grouped commands, ``action``

    Raises:
        KeyError: If no handler is registered for the command
    """
    handler = COMMANDS[(args.command, getattr(args, "action", None))]
    handler(client, args)


__all__ = ["COMMANDS", "handle_command"]
