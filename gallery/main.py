"""Composition root for gallery account management.

This module is the ONLY location that imports both core domain logic
and concrete adapter implementations. All wiring of dependencies
happens here, creating a clear entry point for the application.

Module Structure:
- Configuration loading via config module
- Adapter instantiation
- Core service initialization
- Dependency injection
- Entry point selection (one-shot command or interactive CLI)
"""

import argparse
import asyncio
import json
import logging
import sys
from dataclasses import dataclass
from typing import Any

from gallery.adapters.audit.sqlite import SQLiteAuditStore
from gallery.adapters.audit.stdout import StdoutAuditingAdapter
from gallery.adapters.cli.commands import CLICommandHandler
from gallery.adapters.services.namespaces import GalleryReservedNamespaceService
from gallery.adapters.services.packages import (
    GalleryPackageOwnershipService,
    GalleryPackageService,
)
from gallery.adapters.services.security import (
    GalleryAuthenticationService,
    GallerySecurityPolicyService,
)
from gallery.adapters.services.support import GallerySupportRequestService
from gallery.adapters.store.memory import (
    InMemoryAccountDeleteRepository,
    InMemoryGalleryStore,
    InMemoryScopeRepository,
    InMemoryUserRepository,
)
from gallery.adapters.telemetry.http import HttpTelemetryAdapter
from gallery.adapters.telemetry.logging_telemetry import LoggingTelemetryAdapter
from gallery.config import Settings, load_settings
from gallery.core.delete_account_service import DeleteAccountService
from gallery.core.models import OrphanPackagePolicy
from gallery.core.ports import AuditingPort, TelemetryPort


@dataclass
class Application:
    """Wired application components."""

    settings: Settings
    store: InMemoryGalleryStore
    service: DeleteAccountService
    cli_handler: CLICommandHandler
    audit: AuditingPort
    telemetry: TelemetryPort

    async def close(self) -> None:
        """Release adapter resources."""
        if isinstance(self.audit, SQLiteAuditStore):
            await self.audit.close_pool()
        if isinstance(self.telemetry, HttpTelemetryAdapter):
            await self.telemetry.close()


def configure_logging(log_level: str, log_format: str) -> None:
    """Configure application logging.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_format: Log format (json, text).
    """
    level = getattr(logging, log_level, logging.INFO)

    if log_format == "json":
        format_str = '{"time": "%(asctime)s", "level": "%(levelname)s", "message": "%(message)s"}'
    else:
        format_str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    # Logs go to stderr so command output on stdout stays valid JSON
    logging.basicConfig(
        level=level,
        format=format_str,
        handlers=[
            logging.StreamHandler(sys.stderr),
        ],
    )


async def build_application(settings: Settings) -> Application:
    """Instantiate adapters and core services from settings.

    Raises:
        ValueError: If the configuration is inconsistent.
    """
    logger = logging.getLogger(__name__)

    store = await InMemoryGalleryStore.from_file(settings.data_path)

    if settings.audit_backend == "sqlite":
        audit: AuditingPort = SQLiteAuditStore(db_path=settings.audit_sqlite_path)
        logger.info(f"Audit store initialized: {settings.audit_sqlite_path}")
    else:
        audit = StdoutAuditingAdapter(verbose=settings.debug)
        logger.info("Audit adapter: Stdout")

    if settings.telemetry_backend == "http":
        if not settings.telemetry_endpoint:
            raise ValueError("http telemetry backend selected but TELEMETRY_ENDPOINT not set")
        telemetry: TelemetryPort = HttpTelemetryAdapter(
            endpoint=settings.telemetry_endpoint,
            api_key=settings.telemetry_api_key,
            timeout_seconds=settings.telemetry_timeout_seconds,
        )
        logger.info("Telemetry adapter: HTTP")
    else:
        telemetry = LoggingTelemetryAdapter()
        logger.info("Telemetry adapter: Logging")

    users = InMemoryUserRepository(store)
    package_service = GalleryPackageService(store)

    service = DeleteAccountService(
        account_delete_repository=InMemoryAccountDeleteRepository(store),
        user_repository=users,
        scope_repository=InMemoryScopeRepository(store),
        entities_context=store,
        package_service=package_service,
        package_ownership_service=GalleryPackageOwnershipService(store),
        reserved_namespace_service=GalleryReservedNamespaceService(store),
        security_policy_service=GallerySecurityPolicyService(store),
        authentication_service=GalleryAuthenticationService(store),
        support_request_service=GallerySupportRequestService(store),
        auditing_service=audit,
        telemetry_service=telemetry,
    )

    cli_handler = CLICommandHandler(
        deletion=service,
        users=users,
        packages=package_service,
        audit_store=audit if isinstance(audit, SQLiteAuditStore) else None,
    )

    return Application(
        settings=settings,
        store=store,
        service=service,
        cli_handler=cli_handler,
        audit=audit,
        telemetry=telemetry,
    )


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for one-shot commands."""
    parser = argparse.ArgumentParser(
        prog="gallery",
        description="Gallery account management",
    )
    parser.add_argument("--env-file", help="Path to a .env file")
    subparsers = parser.add_subparsers(dest="command")

    delete = subparsers.add_parser("delete", help="Delete a user or organization")
    delete.add_argument("username")
    delete.add_argument("--admin", required=True, help="Account executing the delete")
    delete.add_argument(
        "--orphans",
        choices=[p.value for p in OrphanPackagePolicy],
        default=None,
        help="Orphan package policy (defaults to DEFAULT_ORPHAN_POLICY)",
    )
    delete.add_argument(
        "--no-transaction",
        action="store_true",
        help="Commit each step separately instead of in one transaction",
    )

    show = subparsers.add_parser("show", help="Summarize an account")
    show.add_argument("username")

    audit = subparsers.add_parser("audit", help="List audit records")
    audit.add_argument("username", nargs="?")
    audit.add_argument("--limit", type=int, default=20)

    return parser


async def _execute_cli_command(
    app: Application,
    command: str,
    args: dict[str, Any],
) -> dict[str, Any]:
    """Execute a CLI command.

    Args:
        app: Wired application.
        command: Command name.
        args: Command arguments.

    Returns:
        Command result dictionary.

    Raises:
        ValueError: If command is not recognized or arguments are missing.
    """
    handler = app.cli_handler

    if command == "delete":
        for required in ("username", "admin"):
            if required not in args:
                raise ValueError(f"Missing required parameter: {required}")
        return await handler.delete_account(
            username=args["username"],
            admin_username=args["admin"],
            commit_as_transaction=args.get(
                "transaction", app.settings.commit_as_transaction
            ),
            orphan_policy=args.get("orphans") or app.settings.default_orphan_policy,
            verbose=args.get("verbose", app.settings.debug),
        )

    elif command == "show":
        if "username" not in args:
            raise ValueError("Missing required parameter: username")
        return await handler.show_account(args["username"])

    elif command == "audit":
        return await handler.get_audit_records(
            username=args.get("username"),
            limit=args.get("limit", 20),
        )

    else:
        raise ValueError(f"Unknown command: {command}. Use 'help' for available commands.")


def _print_cli_help() -> None:
    """Print CLI help message."""
    help_text = """
Available Commands (JSON format):

  delete
    Delete a user or organization account.
    Required: username, admin
    Optional: orphans (do_not_allow_orphans, unlist_orphans, keep_orphans),
              transaction (true/false), verbose

    Example: delete {"username": "alice", "admin": "root", "orphans": "unlist_orphans"}

  show
    Summarize an account.
    Required: username

    Example: show {"username": "alice"}

  audit
    List audit records (sqlite audit backend only).
    Optional: username, limit

    Example: audit {"username": "alice"}

  help
    Show this help message.

  exit
    Exit the CLI.

Note: All commands accept arguments as a single JSON object.
Provide the JSON after the command name on the same line.
    """
    print(help_text)


async def _run_cli_interactive(app: Application) -> None:
    """Run interactive CLI loop.

    Provides a REPL-like interface for management commands.
    """
    logger = logging.getLogger(__name__)
    logger.info("Starting interactive CLI. Type 'help' for available commands or 'exit' to quit.")

    loop = asyncio.get_running_loop()

    while True:
        try:
            command_line = await loop.run_in_executor(None, input, "gallery> ")
            command_line = command_line.strip()

            if not command_line:
                continue

            if command_line.lower() == "exit":
                logger.info("Exiting CLI")
                break

            if command_line.lower() == "help":
                _print_cli_help()
                continue

            parts = command_line.split(maxsplit=1)
            command = parts[0].lower()
            args_str = parts[1] if len(parts) > 1 else ""

            try:
                args = json.loads(args_str) if args_str else {}
            except json.JSONDecodeError:
                logger.error("Invalid JSON arguments. Use 'help' for command syntax.")
                continue

            try:
                result = await _execute_cli_command(app, command, args)
                print(json.dumps(result, indent=2, default=str))
            except Exception as e:
                logger.error(f"Command execution error: {e}", exc_info=True)
                print(json.dumps({"status": "error", "message": str(e)}, indent=2))

        except EOFError:
            logger.info("EOF received, exiting CLI")
            break
        except KeyboardInterrupt:
            logger.info("Interrupted by user")
            continue


def _namespace_to_args(namespace: argparse.Namespace) -> dict[str, Any]:
    """Convert parsed one-shot arguments to the interactive argument format."""
    if namespace.command == "delete":
        return {
            "username": namespace.username,
            "admin": namespace.admin,
            "orphans": namespace.orphans,
            "transaction": not namespace.no_transaction,
        }
    if namespace.command == "show":
        return {"username": namespace.username}
    return {"username": namespace.username, "limit": namespace.limit}


async def bootstrap(argv: list[str] | None = None) -> int:
    """Load configuration, wire adapters, and run the requested command.

    Steps:
    1. Parse arguments and load configuration
    2. Configure logging
    3. Wire adapters and core services
    4. Run a one-shot command, or the interactive CLI when none is given

    Returns:
        Process exit code: 0 on success, 1 if the command reported an error.
    """
    namespace = build_parser().parse_args(argv)

    settings = load_settings(namespace.env_file)
    configure_logging(settings.log_level, settings.log_format)
    logger = logging.getLogger(__name__)
    logger.info("Loading gallery account management...")

    app = await build_application(settings)
    try:
        if namespace.command is None:
            await _run_cli_interactive(app)
            return 0

        result = await _execute_cli_command(
            app, namespace.command, _namespace_to_args(namespace)
        )
        print(json.dumps(result, indent=2, default=str))
        return 0 if result.get("status") == "success" else 1
    finally:
        await app.close()


def main() -> None:
    """Application entry point.

    Exit codes:
        0: Successful command or shutdown
        1: Command error or fatal bootstrap error
        130: Interrupted by user (SIGINT/KeyboardInterrupt)
    """
    logger = logging.getLogger(__name__)
    try:
        sys.exit(asyncio.run(bootstrap()))
    except KeyboardInterrupt:
        logger.warning("Shutdown requested by user (SIGINT)")
        sys.exit(130)
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
