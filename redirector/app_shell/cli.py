import argparse
import csv
import json
import logging
import sys
from pathlib import Path

from redirector.adapters.clock import SystemClock
from redirector.adapters.sqlite.migrator import SQLiteMigrator
from redirector.adapters.sqlite.stores import SQLiteHostStore, SQLiteRuleStore, SQLiteVersionStore
from redirector.components.ingest import (
    ImportCsvInput,
    ImporterConfig,
    ImportJsonInput,
    ImportOutput,
    parse_csv,
    run_import_csv,
    run_import_json,
)
from redirector.components.redirects import ResolveRedirectInput, ResolverConfig, run_resolve
from redirector.config.loader import load_config_or_default
from redirector.config.models import RedirectorConfig
from redirector.core.entities import HostConfig, VersionConfig
from redirector.core.ports.store import StoreError

logger = logging.getLogger("cli")

CONFIG_PATH = "config.yaml"


def get_db_path(config: RedirectorConfig, args: argparse.Namespace) -> str:
    return args.db or config.store.db_path


def print_import_summary(output: ImportOutput) -> None:
    print(output.message)
    for skipped in output.skipped:
        print(f"  skipped ({skipped.reason}): {skipped.item.get('path', '')}")


def handle_migrate(db_path: str) -> None:
    applied = SQLiteMigrator(db_path).run_migrations()
    if applied:
        print(f"Applied {len(applied)} migration(s): {', '.join(applied)}")
    else:
        print("Database is up to date.")


def handle_load(config: RedirectorConfig, db_path: str, args: argparse.Namespace) -> None:
    source = Path(args.file)
    if not source.exists():
        logger.error("File %s not found.", source)
        sys.exit(1)

    importer_config = ImporterConfig(
        default_version=config.resolution.default_version,
        default_status_code=config.resolution.default_status_code,
    )
    rules = SQLiteRuleStore(db_path)
    versions = SQLiteVersionStore(db_path)
    text = source.read_text(encoding="utf-8")

    if source.suffix.lower() == ".csv":
        output = run_import_csv(
            ImportCsvInput(text=text), rules=rules, versions=versions, config=importer_config
        )
    else:
        output = run_import_json(
            ImportJsonInput(payload=text), rules=rules, versions=versions, config=importer_config
        )

    if output.errors:
        for error in output.errors:
            logger.error(error)
        sys.exit(1)

    print_import_summary(output)


def handle_clear(db_path: str) -> None:
    deleted = SQLiteRuleStore(db_path).delete_all()
    print(f"Deleted {deleted} rules.")


def handle_csv2json(args: argparse.Namespace) -> None:
    source = Path(args.source)
    if not source.exists():
        logger.error("File %s not found.", source)
        sys.exit(1)

    try:
        rows = parse_csv(source.read_text(encoding="utf-8"))
    except csv.Error as e:
        logger.error("Could not parse %s: %s", source, e)
        sys.exit(1)

    Path(args.target).write_text(json.dumps({"data": rows}, indent=2), encoding="utf-8")
    print(f"Wrote {len(rows)} rows to {args.target}")


def handle_set_version(db_path: str, args: argparse.Namespace) -> None:
    versions = SQLiteVersionStore(db_path)
    versions.delete_all()
    versions.insert(VersionConfig(active_version=args.version))
    print(f"Active version set to {args.version}.")


def handle_add_host(db_path: str, args: argparse.Namespace) -> None:
    SQLiteHostStore(db_path).insert(HostConfig(host=args.host, host_only=args.host_only))
    print(f"Host {args.host} saved (hostOnly={args.host_only}).")


def handle_check(config: RedirectorConfig, db_path: str, args: argparse.Namespace) -> None:
    resolution = config.resolution
    output = run_resolve(
        ResolveRedirectInput(
            path=args.path,
            host=args.host,
            version=args.version,
            host_only=True if args.host_only else None,
            t=args.time,
            match_query=args.match_query,
            ignore_slash=args.ignore_slash,
        ),
        rules=SQLiteRuleStore(db_path),
        hosts=SQLiteHostStore(db_path),
        versions=SQLiteVersionStore(db_path),
        clock=SystemClock(),
        config=ResolverConfig(
            default_version=resolution.default_version,
            default_host_only=resolution.default_host_only,
            last_accessed_interval_seconds=resolution.last_accessed_interval_seconds,
        ),
    )

    if output.rule is None:
        print("Not found")
        sys.exit(2)

    print(json.dumps(output.rule.to_public(), indent=2))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Redirector CLI")
    parser.add_argument("--config", default=CONFIG_PATH, help="Path to config.yaml")
    parser.add_argument("--db", help="SQLite database path (overrides config)")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # migrate
    subparsers.add_parser("migrate", help="Apply database migrations")

    # load
    load_parser = subparsers.add_parser("load", help="Import redirects from a CSV or JSON file")
    load_parser.add_argument("file", help="Path to a .csv or .json file")

    # clear
    subparsers.add_parser("clear", help="Delete all redirect rules")

    # csv2json
    convert_parser = subparsers.add_parser("csv2json", help="Convert a CSV file to import JSON")
    convert_parser.add_argument("source", help="CSV file to read")
    convert_parser.add_argument("target", help="JSON file to write")

    # set-version
    version_parser = subparsers.add_parser("set-version", help="Set the active rule-set version")
    version_parser.add_argument("version", type=int)

    # add-host
    host_parser = subparsers.add_parser("add-host", help="Create or replace a host policy")
    host_parser.add_argument("host")
    host_parser.add_argument("--host-only", action="store_true", help="Only match host-bound rules")

    # check
    check_parser = subparsers.add_parser("check", help="Resolve a path against the stored rules")
    check_parser.add_argument("path")
    check_parser.add_argument("--host")
    check_parser.add_argument("--version", type=int)
    check_parser.add_argument("--host-only", action="store_true")
    check_parser.add_argument("--time", type=int, help="Evaluation time (epoch seconds)")
    check_parser.add_argument("--ignore-slash", action="store_true")
    check_parser.add_argument("--match-query", action="store_true")

    return parser


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)

    try:
        config = load_config_or_default(Path(args.config))
    except ValueError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        sys.exit(1)

    logging.basicConfig(level=config.logging.level)
    db_path = get_db_path(config, args)

    if args.command == "csv2json":
        handle_csv2json(args)
        return

    try:
        if args.command == "migrate":
            handle_migrate(db_path)
        elif args.command == "load":
            handle_load(config, db_path, args)
        elif args.command == "clear":
            handle_clear(db_path)
        elif args.command == "set-version":
            handle_set_version(db_path, args)
        elif args.command == "add-host":
            handle_add_host(db_path, args)
        elif args.command == "check":
            handle_check(config, db_path, args)
    except StoreError as e:
        logger.error("Store error: %s (did you run 'redirector migrate'?)", e)
        sys.exit(1)


if __name__ == "__main__":
    main()
