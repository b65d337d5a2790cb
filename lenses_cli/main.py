"""Main entry point for lenses-cli.

This module provides the command-line interface for a Lenses box, including:
- Command-line argument parsing
- Settings resolution and connection
- Dependency checking and logging setup
"""

import argparse
import importlib.util
import json
import logging
import os
import sys
import time
from pathlib import Path
from typing import Optional, Sequence

import structlog

logger = structlog.get_logger(__name__)

OUTPUT_FORMATS = ("table", "json")

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def _cleanup_old_logs(log_dir: Path, *, keep_days: int = 7) -> None:
    """Remove log files older than keep_days."""
    cutoff = time.time() - (keep_days * 24 * 60 * 60)
    try:
        for path in log_dir.glob("*.log"):
            try:
                if path.stat().st_mtime < cutoff:
                    path.unlink(missing_ok=True)
            except OSError as e:
                logger.debug("cli_log_cleanup_file_failed", path=str(path), error=str(e))
                continue
    except OSError as e:
        logger.debug("cli_log_cleanup_failed", log_dir=str(log_dir), error=str(e))


def setup_logging(*, debug: bool = False) -> Path:
    """Send logging to a per-run log file, and to stderr as well in debug mode.

    Returns:
        Path to the run's log file.
    """
    log_dir = Path.home() / ".lenses" / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)
    _cleanup_old_logs(log_dir, keep_days=7)

    timestamp = time.strftime("%Y%m%d-%H%M%S")
    log_file = log_dir / f"lenses-cli-{timestamp}-{os.getpid()}.log"

    file_handler = logging.FileHandler(log_file)
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT))

    root = logging.getLogger()
    for handler in root.handlers[:]:
        root.removeHandler(handler)

    root.addHandler(file_handler)
    root.setLevel(logging.INFO)

    if debug:
        enable_debug_logging()

    # Request tracing goes through the client logger, not the transport's.
    for logger_name in ["httpx", "httpcore"]:
        logging.getLogger(logger_name).setLevel(logging.WARNING)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.KeyValueRenderer(key_order=["event"]),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    return log_file


def enable_debug_logging() -> None:
    """Lower the root logger to DEBUG and echo records to stderr."""
    root = logging.getLogger()
    root.setLevel(logging.DEBUG)

    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(stderr_handler)


def check_cli_dependencies() -> None:
    """Check if CLI dependencies are installed."""
    missing = []

    for module, package in [
        ("httpx", "httpx"),
        ("rich", "rich"),
        ("yaml", "pyyaml"),
        ("pydantic", "pydantic"),
        ("dotenv", "python-dotenv"),
    ]:
        if importlib.util.find_spec(module) is None:
            missing.append(package)

    if missing:
        print("\nMissing required CLI dependencies!")
        print("\nThe following packages are required:")
        for pkg in missing:
            print(f"  - {pkg}")
        print("\nPlease install them with:")
        print("  pip install lenses-cli")
        sys.exit(1)


def _add_cluster_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--cluster", required=True, help="Kafka Connect cluster name")


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="lenses-cli",
        description="Lenses CLI - Manage a Lenses box from the command line",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Settings are read from flags, then LENSES_* environment variables,\n"
            "then the current context of lenses-cli.yml."
        ),
    )

    # Connection
    parser.add_argument("--host", help="Lenses base URL, e.g. https://lenses.example.com")
    parser.add_argument("--token", help="Existing session token (skips login)")
    parser.add_argument("--user", help="User name for basic authentication")
    parser.add_argument("--pass", dest="password", help="Password for basic authentication")
    parser.add_argument("--timeout", help='Request timeout, e.g. "15s" or "1m" (default: none)')
    parser.add_argument(
        "--insecure",
        action="store_true",
        default=None,
        help="Skip TLS certificate verification",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        default=None,
        help="Trace requests and responses to stderr",
    )
    parser.add_argument("--context", help="Config file context to use")
    parser.add_argument("--config", dest="config_file", help="Path to lenses-cli.yml")
    parser.add_argument(
        "--output",
        "-o",
        choices=OUTPUT_FORMATS,
        default="table",
        help="Output format (default: table; JSON when piped)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    subparsers.add_parser("license", help="Show license information")
    subparsers.add_parser("logout", help="End the current session")

    # Alerts
    alerts = subparsers.add_parser("alerts", help="Alerts raised by the box")
    alerts_actions = alerts.add_subparsers(dest="action", required=True)
    alerts_actions.add_parser("list", help="List raised alerts")
    alerts_actions.add_parser("live", help="Watch alerts as they are raised")

    # Audit
    audit = subparsers.add_parser("audit", help="Audit entries")
    audit_actions = audit.add_subparsers(dest="action", required=True)
    audit_actions.add_parser("list", help="List audit entries")
    audit_actions.add_parser("live", help="Watch audit entries as they are recorded")

    # Logs
    logs = subparsers.add_parser("logs", help="Box and processor logs")
    logs_actions = logs.add_subparsers(dest="action", required=True)
    logs_actions.add_parser("info", help="Show the box info log")
    logs_actions.add_parser("metrics", help="Show the box metrics log")
    processor = logs_actions.add_parser("processor", help="Show the logs of a SQL processor pod")
    processor.add_argument("--cluster", required=True, help="Kubernetes cluster name")
    processor.add_argument("--namespace", required=True, help="Kubernetes namespace")
    processor.add_argument("--pod", required=True, help="Processor pod name")
    processor.add_argument("--follow", "-f", action="store_true", help="Keep following new lines")
    processor.add_argument(
        "--lines", type=int, default=100, help="Lines of history when following (default: 100)"
    )

    # Topics
    topics = subparsers.add_parser("topics", help="Kafka topics")
    topics_actions = topics.add_subparsers(dest="action", required=True)
    topics_list = topics_actions.add_parser("list", help="List topics")
    topics_list.add_argument("--names", action="store_true", help="Only print topic names")
    topics_create = topics_actions.add_parser("create", help="Create a topic")
    topics_create.add_argument("name", help="Topic name")
    topics_create.add_argument("--partitions", type=int, default=1, help="Partitions (default: 1)")
    topics_create.add_argument(
        "--replication", type=int, default=1, help="Replication factor (default: 1)"
    )
    topics_create.add_argument(
        "--config",
        action="append",
        metavar="KEY=VALUE",
        help="Topic config entry, repeatable",
    )
    topics_delete = topics_actions.add_parser("delete", help="Delete a topic")
    topics_delete.add_argument("name", help="Topic name")

    # Connectors
    connectors = subparsers.add_parser("connectors", help="Kafka Connect connectors")
    connectors_actions = connectors.add_subparsers(dest="action", required=True)
    _add_cluster_argument(connectors_actions.add_parser("list", help="List connector names"))
    for action, help_text in [
        ("pause", "Pause a connector"),
        ("resume", "Resume a paused connector"),
        ("restart", "Restart a connector"),
        ("delete", "Delete a connector"),
    ]:
        action_parser = connectors_actions.add_parser(action, help=help_text)
        _add_cluster_argument(action_parser)
        action_parser.add_argument("name", help="Connector name")

    # Schemas
    schemas = subparsers.add_parser("schemas", help="Schema registry subjects")
    schemas_actions = schemas.add_subparsers(dest="action", required=True)
    schemas_actions.add_parser("list", help="List subjects")
    schemas_get = schemas_actions.add_parser("get", help="Show a subject's schema")
    schemas_get.add_argument("subject", help="Subject name")
    schemas_get.add_argument("--version", type=int, help="Schema version (default: latest)")

    # SQL
    sql = subparsers.add_parser("sql", help="SQL validation and running queries")
    sql_actions = sql.add_subparsers(dest="action", required=True)
    sql_validate = sql_actions.add_parser("validate", help="Validate a SQL statement")
    sql_validate.add_argument("sql", help="SQL statement")
    sql_actions.add_parser("queries", help="List running queries")
    sql_cancel = sql_actions.add_parser("cancel", help="Cancel a running query")
    sql_cancel.add_argument("id", type=int, help="Query id")

    # Data policies
    policies = subparsers.add_parser("policies", help="Data policies")
    policies_actions = policies.add_subparsers(dest="action", required=True)
    policies_actions.add_parser("list", help="List data policies")

    args = parser.parse_args(argv)
    if args.command is None:
        parser.print_help()
        sys.exit(2)
    return args


def run_cli(argv: Optional[Sequence[str]] = None) -> None:
    """Entry point for console script."""
    # Check dependencies first
    check_cli_dependencies()

    args = parse_args(argv)

    # Import after dependency check
    import httpx

    from lenses_cli.api import LensesError, open_connection
    from lenses_cli.commands import handle_command
    from lenses_cli.core import Settings, console, err_console, resolve_client_config
    from lenses_cli.display import render_error

    settings = Settings(
        host=args.host,
        token=args.token,
        user=args.user,
        password=args.password,
        timeout=args.timeout,
        insecure=args.insecure,
        debug=args.debug,
        config_file=args.config_file,
        context=args.context,
    ).merged_over(Settings.from_environment())
    debug = bool(settings.debug)

    log_path = setup_logging(debug=debug)
    logger.info("cli_start", command=args.command, action=getattr(args, "action", None))

    try:
        client_config = resolve_client_config(settings)
        if client_config.debug and not debug:
            # Debug set by the config file context only.
            enable_debug_logging()
        debug = client_config.debug
        with open_connection(client_config) as client:
            handle_command(client, args)
    except KeyboardInterrupt:
        console.print("\n\n[yellow]Interrupted[/yellow]")
        sys.exit(0)
    except (LensesError, httpx.HTTPError, json.JSONDecodeError) as e:
        logger.info("cli_command_failed", error=str(e), error_type=type(e).__name__)
        render_error(e, debug=debug, output=args.output)
        if debug:
            err_console.print(f"[dim]Log file: {log_path}[/dim]")
        sys.exit(1)

    logger.info("cli_done", command=args.command)


if __name__ == "__main__":
    run_cli()
