"""CLI entrypoint for gcp-secret-cleaner."""
import sys
import argparse
import logging

from .validators import validate_keep_count, validate_project_id

VERSION = "0.1.0"

# Configure logging to stderr
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(message)s",
    stream=sys.stderr
)
logger = logging.getLogger(__name__)


def _token_version_path(config) -> str:
    """Resolve the log shipping token setting to a version resource name."""
    from gcp_secret_cleaner.cleaner.domains.gcp_client import secret_version_path

    if "/" in config.log_token_secret:
        return config.log_token_secret
    return secret_version_path(config.project_id, config.log_token_secret)


def _attach_log_shipping(store, config) -> None:
    """Ship package logs to the configured HTTP endpoint."""
    from gcp_secret_cleaner.cleaner.domains.event_sink import build_http_shipping_handler

    token = store.access_version_payload(_token_version_path(config)).decode("UTF-8").strip()
    handler = build_http_shipping_handler(config.log_shipping_url, token)
    logging.getLogger("gcp_secret_cleaner").addHandler(handler)
    logger.debug(f"Log shipping enabled to {config.log_shipping_url}")


def _print_summary(reports, dry_run: bool) -> None:
    disabled = sum(len(r.to_disable) for r in reports)
    destroyed = sum(len(r.to_destroy) for r in reports)
    if dry_run:
        print(f"Dry run: {len(reports)} secrets analyzed, "
              f"{disabled} versions would be disabled, {destroyed} would be destroyed")
    else:
        print(f"{len(reports)} secrets swept, "
              f"{disabled} versions disabled, {destroyed} destroyed")


def cmd_run(args, run_parser):
    """Disable old secret versions and destroy surplus disabled ones."""
    from gcp_secret_cleaner.cleaner.domains.config_loader import build_config
    from gcp_secret_cleaner.cleaner.domains.event_sink import LoggingEventSink
    from gcp_secret_cleaner.cleaner.domains.gcp_client import GCPSecretVersionStore, StoreError
    from gcp_secret_cleaner.cleaner.domains.models import EventKind, SweepEvent
    from gcp_secret_cleaner.cleaner.workflows.sweep import SweepIncompleteError, run_project

    if args.keep is not None:
        validate_keep_count(args.keep)

    config = build_config(
        project_id=args.project,
        keep=args.keep,
        dry_run=args.dry_run,
        debug=args.debug,
        continue_on_error=args.continue_on_error,
        config_path=args.config,
    )
    if config is None:
        print("Error: No project specified.\n", file=sys.stderr)
        run_parser.print_help(sys.stderr)
        sys.exit(2)

    validate_project_id(config.project_id)

    if config.debug:
        logging.getLogger().setLevel(logging.DEBUG)

    store = GCPSecretVersionStore(service_account_path=config.service_account_path)
    sink = LoggingEventSink()

    try:
        if config.log_shipping_url:
            _attach_log_shipping(store, config)
        reports = run_project(store, config, sink)
    except (StoreError, SweepIncompleteError) as e:
        sink.emit(SweepEvent(
            kind=EventKind.FATAL,
            project_id=config.project_id,
            message=str(e),
        ))
        sys.exit(1)
    except Exception as e:
        sink.emit(SweepEvent(
            kind=EventKind.FATAL,
            project_id=config.project_id,
            message=f"Unexpected error: {e}",
        ))
        raise

    _print_summary(reports, config.dry_run)


def cmd_version(args):
    """Show version information."""
    print(f"gcp-secret-cleaner {VERSION}")


def cmd_config_show(args):
    """Show the resolved configuration and where it came from."""
    from gcp_secret_cleaner.cleaner.domains.config_loader import build_config, resolve_config_path

    path, source = resolve_config_path(args.config)
    if path:
        print(f"Config path: {path}")
        print(f"Source: {source}")
    else:
        print("Config path: none (no config file found)")

    config = build_config(config_path=args.config)
    if config is None:
        print("Project: (not set)")
        return

    print(f"Project: {config.project_id}")
    print(f"Keep disabled versions: {config.retention.keep_disabled_count}")
    print(f"Mode: {config.mode.value}")
    print(f"Continue on error: {config.continue_on_error}")
    if config.service_account_path:
        print(f"Service account: {config.service_account_path}")
    if config.log_shipping_url:
        print(f"Log shipping: {config.log_shipping_url}")


def main():
    """Main CLI entrypoint.

    Exit codes:
        0 - Success
        1 - Runtime errors (authentication, API failures, invalid config, etc.)
        2 - Usage errors (missing project, invalid arguments, etc.)
    """
    parser = argparse.ArgumentParser(
        prog="secret-cleaner",
        description="Clean up GCP Secret Manager versions: keep the latest enabled version, "
                    "disable the rest and destroy old disabled versions",
        epilog="""
Exit codes:
  0 - Success
  1 - Runtime error (authentication, API failure, invalid config, etc.)
  2 - Usage error (missing project, invalid arguments, etc.)

Environment variables:
  GCP_PROJECT - GCP project ID (overrides config file)
  SECRET_CLEANER_CONFIG - Path to config file

Configuration:
  Default location: ~/.config/gcp-secret-cleaner/config.yml
  View current: Run 'secret-cleaner config show'
        """
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # version command
    _version_parser = subparsers.add_parser(
        "version",
        help="Show version information",
        description="Display the current version of gcp-secret-cleaner"
    )

    # run command
    run_parser = subparsers.add_parser(
        "run",
        help="Clean up secret versions in a project",
        description="""
For every secret in the project:
  1. Disable all enabled versions except the newest one
  2. Destroy disabled versions beyond the newest --keep ones

Destroyed versions cannot be recovered. Use --dry-run to see what would change.
        """,
        formatter_class=argparse.RawDescriptionHelpFormatter
    )
    run_parser.add_argument(
        "--project",
        help="GCP project ID (falls back to GCP_PROJECT env var or config file)"
    )
    run_parser.add_argument(
        "--keep",
        type=int,
        help="Number of most recent disabled versions to keep (default: 2)"
    )
    run_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Only analyze secrets and report the proposed changes"
    )
    run_parser.add_argument(
        "--debug",
        action="store_true",
        help="Add additional debugging output"
    )
    run_parser.add_argument(
        "--continue-on-error",
        action="store_true",
        help="Skip secrets that fail instead of stopping the run"
    )
    run_parser.add_argument(
        "--config",
        help="Path to config file"
    )

    # config command
    config_parser = subparsers.add_parser(
        "config",
        help="Configuration management",
        description="Inspect gcp-secret-cleaner configuration"
    )
    config_subparsers = config_parser.add_subparsers(dest="config_command")

    # config show command
    config_show_parser = config_subparsers.add_parser(
        "show",
        help="Show resolved configuration",
        description="""
Display the configuration file in use and the resolved settings.

Sources:
  - flag: Path passed with --config
  - env: Path from SECRET_CLEANER_CONFIG
  - default: Default XDG location (~/.config/gcp-secret-cleaner/config.yml)
        """
    )
    config_show_parser.add_argument(
        "--config",
        help="Path to config file"
    )

    args = parser.parse_args()

    # If no command provided, show help and exit with usage error code
    if not args.command:
        parser.print_help()
        sys.exit(2)

    # Route to command handlers
    try:
        if args.command == "version":
            cmd_version(args)
        elif args.command == "run":
            cmd_run(args, run_parser)
        elif args.command == "config":
            if args.config_command == "show":
                cmd_config_show(args)
            else:
                config_parser.print_help()
                sys.exit(2)
        else:
            parser.print_help()
            sys.exit(2)
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        sys.exit(1)
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
