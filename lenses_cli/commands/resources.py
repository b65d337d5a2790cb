"""Command handlers for one-shot resource commands."""

from __future__ import annotations

import argparse

from lenses_cli.api import LensesClient, LensesError
from lenses_cli.display import format_timestamp, render, render_message

TOPIC_COLUMNS = [
    ("Name", lambda t: t.topic_name),
    ("Partitions", lambda t: t.partitions),
    ("Replication", lambda t: t.replication),
    ("Key", lambda t: t.key_type),
    ("Value", lambda t: t.value_type),
    ("Messages", lambda t: t.total_messages),
]

ALERT_COLUMNS = [
    ("Setting", lambda a: a.alert_id),
    ("Severity", lambda a: a.labels.severity),
    ("Instance", lambda a: a.labels.instance),
    ("Summary", lambda a: a.annotations.summary),
    ("Starts At", lambda a: a.starts_at),
]

AUDIT_COLUMNS = [
    ("Time", lambda e: format_timestamp(e.timestamp)),
    ("User", lambda e: e.user_id),
    ("Type", lambda e: e.type),
    ("Change", lambda e: e.change),
    ("Content", lambda e: e.content),
]

LOG_COLUMNS = [
    ("Time", lambda line: line.time),
    ("Level", lambda line: line.level),
    ("Logger", lambda line: line.logger),
    ("Message", lambda line: line.message),
]

POLICY_COLUMNS = [
    ("ID", lambda p: p.id),
    ("Name", lambda p: p.name),
    ("Category", lambda p: p.category),
    ("Impact", lambda p: p.impact_type),
    ("Obfuscation", lambda p: p.obfuscation),
    ("Fields", lambda p: p.fields),
]

QUERY_COLUMNS = [
    ("ID", lambda q: q.id),
    ("User", lambda q: q.user),
    ("Started", lambda q: format_timestamp(q.timestamp)),
    ("SQL", lambda q: q.sql),
]

LICENSE_COLUMNS = [
    ("Client", lambda info: info.client_id),
    ("Valid", lambda info: info.is_respected),
    ("Max Brokers", lambda info: info.max_brokers),
    ("Expires", lambda info: info.expires_at.strftime("%Y-%m-%d")),
    ("Time Left", lambda info: _time_left(info)),
]

SCHEMA_COLUMNS = [
    ("ID", lambda s: s.id),
    ("Subject", lambda s: s.name),
    ("Version", lambda s: s.version),
    ("Schema", lambda s: s.avro_schema),
]

NAME_COLUMNS = [("Name", lambda name: name)]


def _time_left(info) -> str:
    if info.years_to_expire:
        return f"{info.years_to_expire} year(s)"
    if info.months_to_expire:
        return f"{info.months_to_expire} month(s)"
    return f"{info.days_to_expire} day(s)"


# =============================================================================
# Session and License
# =============================================================================


def show_license(client: LensesClient, args: argparse.Namespace) -> None:
    render(client.get_license_info(), LICENSE_COLUMNS, args.output, title="License")


def logout(client: LensesClient, args: argparse.Namespace) -> None:
    client.logout()
    render_message("Logged out")


# =============================================================================
# Alerts, Audit and Logs
# =============================================================================


def list_alerts(client: LensesClient, args: argparse.Namespace) -> None:
    render(client.get_alerts(), ALERT_COLUMNS, args.output, title="Alerts")


def list_audit_entries(client: LensesClient, args: argparse.Namespace) -> None:
    render(client.get_audit_entries(), AUDIT_COLUMNS, args.output, title="Audit")


def show_logs_info(client: LensesClient, args: argparse.Namespace) -> None:
    render(client.get_logs_info(), LOG_COLUMNS, args.output, title="Logs")


def show_logs_metrics(client: LensesClient, args: argparse.Namespace) -> None:
    render(client.get_logs_metrics(), LOG_COLUMNS, args.output, title="Metrics Logs")


# =============================================================================
# Topics
# =============================================================================


def list_topics(client: LensesClient, args: argparse.Namespace) -> None:
    if args.names:
        render(client.get_topics_names(), NAME_COLUMNS, args.output, title="Topics")
        return
    render(client.get_topics(), TOPIC_COLUMNS, args.output, title="Topics")


def _parse_configs(pairs: list[str] | None) -> dict[str, str]:
    """Turn ``key=value`` arguments into a dict.

    Raises:
        LensesError: If an argument has no ``=``
    """
    configs: dict[str, str] = {}
    for pair in pairs or []:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise LensesError(f"invalid config [{pair}], expected key=value")
        configs[key] = value
    return configs


def create_topic(client: LensesClient, args: argparse.Namespace) -> None:
    client.create_topic(args.name, args.replication, args.partitions, _parse_configs(args.config))
    render_message(f"Topic [{args.name}] created")


def delete_topic(client: LensesClient, args: argparse.Namespace) -> None:
    client.delete_topic(args.name)
    render_message(f"Topic [{args.name}] marked for deletion")


# =============================================================================
# Connectors
# =============================================================================


def list_connectors(client: LensesClient, args: argparse.Namespace) -> None:
    render(client.get_connectors(args.cluster), NAME_COLUMNS, args.output, title="Connectors")


def pause_connector(client: LensesClient, args: argparse.Namespace) -> None:
    client.pause_connector(args.cluster, args.name)
    render_message(f"Connector [{args.name}] paused")


def resume_connector(client: LensesClient, args: argparse.Namespace) -> None:
    client.resume_connector(args.cluster, args.name)
    render_message(f"Connector [{args.name}] resumed")


def restart_connector(client: LensesClient, args: argparse.Namespace) -> None:
    client.restart_connector(args.cluster, args.name)
    render_message(f"Connector [{args.name}] restarted")


def delete_connector(client: LensesClient, args: argparse.Namespace) -> None:
    client.delete_connector(args.cluster, args.name)
    render_message(f"Connector [{args.name}] deleted")


# =============================================================================
# Schemas
# =============================================================================


def list_subjects(client: LensesClient, args: argparse.Namespace) -> None:
    render(client.get_subjects(), NAME_COLUMNS, args.output, title="Subjects")


def get_schema(client: LensesClient, args: argparse.Namespace) -> None:
    """Show the latest schema of a subject, or a given version."""
    if args.version is None:
        schema = client.get_latest_schema(args.subject)
    else:
        schema = client.get_schema_at_version(args.subject, args.version)
    render(schema, SCHEMA_COLUMNS, args.output, title="Schema")


# =============================================================================
# SQL
# =============================================================================


def validate_sql(client: LensesClient, args: argparse.Namespace) -> None:
    validation = client.validate_lsql(args.sql)
    if args.output == "json":
        render(validation, [], args.output)
        return
    if validation.is_valid:
        render_message("SQL is valid")
        return
    raise LensesError(
        f"invalid SQL at line {validation.line}, column {validation.column}: {validation.message}"
    )


def list_running_queries(client: LensesClient, args: argparse.Namespace) -> None:
    render(client.get_running_queries(), QUERY_COLUMNS, args.output, title="Running Queries")


def cancel_query(client: LensesClient, args: argparse.Namespace) -> None:
    if not client.cancel_query(args.id):
        raise LensesError(f"query [{args.id}] was not cancelled")
    render_message(f"Query [{args.id}] cancelled")


# =============================================================================
# Data Policies
# =============================================================================


def list_policies(client: LensesClient, args: argparse.Namespace) -> None:
    render(client.get_policies(), POLICY_COLUMNS, args.output, title="Data Policies")
