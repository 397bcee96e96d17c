from __future__ import annotations
import argparse
import logging
import sys
from dotenv import load_dotenv

from sqlcompat.errors import CompatError
from sqlcompat.server.base import Credential

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_BLOCKED = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sqlcompat",
        description="SQL Server migration compatibility checks"
    )
    parser.add_argument("--verbose", "-v", action="store_true",
                        help="Log diagnostics to stderr")
    parser.add_argument("--enable-exception", action="store_true",
                        help="Raise errors instead of printing a friendly message")
    sub = parser.add_subparsers(dest="cmd", required=True)

    # Check command
    check = sub.add_parser("check", help="Check whether databases can be migrated")
    check.add_argument("--source", required=True, help="Source instance")
    check.add_argument("--destination", required=True, help="Destination instance")
    check.add_argument("--source-user", help="SQL login for the source (default: integrated)")
    check.add_argument("--source-password", help="Password for --source-user")
    check.add_argument("--destination-user", help="SQL login for the destination")
    check.add_argument("--destination-password", help="Password for --destination-user")
    check.add_argument("--database", "-d", nargs="+", default=None,
                       help="Only check these databases")
    check.add_argument("--exclude-database", "-x", nargs="+", default=None,
                       help="Skip these databases")
    check.add_argument("--format", choices=["table", "json", "markdown"], default="table",
                       help="Output format (default: table)")
    check.add_argument("--ruleset", help="Path to a custom edition ruleset YAML")

    # Ping command
    ping = sub.add_parser("ping", help="Test connection to an instance")
    ping.add_argument("--instance", required=True, help="Instance to connect to")
    ping.add_argument("--user", help="SQL login (default: integrated)")
    ping.add_argument("--password", help="Password for --user")

    # Rules command
    rules = sub.add_parser("rules", help="Show the edition ruleset")
    rules.add_argument("--ruleset", help="Path to a custom edition ruleset YAML")

    return parser


def run(argv: list[str] | None = None) -> None:
    """Main CLI entry point."""
    # Load environment variables first
    load_dotenv()

    # Import settings after load_dotenv to ensure env vars are loaded
    from sqlcompat.config import settings

    args = build_parser().parse_args(argv)

    level = logging.DEBUG if args.verbose else getattr(logging, settings.log_level, logging.WARNING)
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s",
        handlers=[logging.StreamHandler(sys.stderr)]
    )

    try:
        if args.cmd == "check":
            code = check_migration(args, settings)
        elif args.cmd == "ping":
            code = ping_instance(
                args.instance,
                _credential(args.user, args.password, settings.source_user, settings.source_password),
                settings
            )
        else:
            code = show_rules(args.ruleset or settings.ruleset_path)
    except KeyboardInterrupt:
        print("\nInterrupted by user", file=sys.stderr)
        sys.exit(130)
    except CompatError as e:
        if args.enable_exception:
            raise
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(EXIT_ERROR)

    sys.exit(code)


def _credential(user: str | None, password: str | None,
                env_user: str, env_password: str) -> Credential | None:
    """Prefer command-line credentials, fall back to environment."""
    if user:
        return Credential(user=user, password=password or "")
    if env_user:
        return Credential(user=env_user, password=env_password)
    return None


def check_migration(args: argparse.Namespace, settings) -> int:
    """Run the compatibility check and print the report.

    Returns:
        Exit code: 0 when all checked databases can migrate, 2 when any is
        blocked, 1 when any database could not be checked
    """
    from sqlcompat.compat.assembler import validate_migration
    from sqlcompat.compat.ruleset import load_edition_rules
    from sqlcompat.reports.formatter import render_report

    ruleset = load_edition_rules(args.ruleset or settings.ruleset_path)
    report = validate_migration(
        args.source,
        args.destination,
        source_credential=_credential(
            args.source_user, args.source_password,
            settings.source_user, settings.source_password
        ),
        destination_credential=_credential(
            args.destination_user, args.destination_password,
            settings.destination_user, settings.destination_password
        ),
        databases=args.database,
        exclude_databases=args.exclude_database,
        ruleset=ruleset,
        config=settings
    )

    print(render_report(report, args.format))
    if report.errors:
        return EXIT_ERROR
    return EXIT_OK if report.all_migratable else EXIT_BLOCKED


def ping_instance(instance: str, credential: Credential | None, settings) -> int:
    """Connect to an instance and print its metadata."""
    from sqlcompat.server.connection import open_instance

    with open_instance(instance, credential, settings) as server:
        info = server.info
        databases = server.list_databases()

    print("✓ Connection successful")
    print(f"  Server:    {info.name}")
    print(f"  Version:   {info.version_label}")
    print(f"  Collation: {info.collation}")
    print(f"  User databases: {len(databases)}")
    return EXIT_OK


def show_rules(ruleset_path: str | None) -> int:
    """Print the edition weight table and thresholds."""
    from sqlcompat.compat.ruleset import load_edition_rules

    ruleset = load_edition_rules(ruleset_path)
    print(f"Ruleset version {ruleset.version} ({ruleset.content_hash})")
    print("Edition weights:")
    for edition, weight in sorted(ruleset.edition_weights.items(), key=lambda x: -x[1]):
        print(f"  {edition.value:<12} {weight}")
    print(f"Feature parity from build: {ruleset.feature_parity_version}")
    print(f"Blocked on Express: {', '.join(ruleset.express_blocked_features)}")
    print(f"System databases: {', '.join(sorted(ruleset.system_databases))}")
    print(f"Minimum source major version: {ruleset.min_source_major}")
    return EXIT_OK
