"""Command-line entrypoint: scan, dump and prune."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from filecrc.config import CliOverrides, ConfigError, load_effective_config
from filecrc.report import describe_record, format_summary, select_records, summarize
from filecrc.retention import RetentionError, prune
from filecrc.runner import RunOptions, RunReport, SnapshotRunner
from filecrc.snapshot import load_snapshot

EXIT_OK = 0
EXIT_ERROR = 2


def build_arg_parser() -> argparse.ArgumentParser:
    """Build the argument parser for all subcommands."""
    parser = argparse.ArgumentParser(prog="filecrc")
    commands = parser.add_subparsers(dest="command", required=True)

    scan = commands.add_parser("scan", help="Scan the configured trees and record a snapshot.")
    scan.add_argument("-c", "--config", required=True)
    scan.add_argument("--base", default=None, help="Compare against this archive instead.")
    scan.add_argument("--analyze-only", action="store_true")
    scan.add_argument("--no-hash", action="store_true", help="Skip content hashing.")
    scan.add_argument("--log", default=None, help="Write the run log to this path.")
    scan.add_argument("--no-email", action="store_true")
    scan.add_argument("--verify-config", action="store_true")
    scan.add_argument("--verify-excludes", action="store_true")

    dump = commands.add_parser("dump", help="Summarize or list records of a snapshot archive.")
    dump.add_argument("archive")
    dump.add_argument("-s", "--suspicious", action="store_true")
    dump.add_argument("-a", "--added", action="store_true")
    dump.add_argument("-m", "--modified", action="store_true")
    dump.add_argument("-n", "--name", default=None, help="Regex matched per path component.")
    dump.add_argument("-p", "--password", default=None)
    dump.add_argument("-f", "--file", default=None, help="Entry name inside the archive.")

    cleanup = commands.add_parser("prune", help="Delete old numbered archive generations.")
    cleanup.add_argument("basename")
    cleanup.add_argument("-r", "--retain", type=int, required=True)
    cleanup.add_argument("-f", "--force", action="store_true")
    return parser


def _error(message: object) -> int:
    sys.stderr.write(f"{message}\n")
    return EXIT_ERROR


def _print_report(report: RunReport) -> None:
    counters = report.counters
    lines = [
        f"Files scanned:      {counters['total_files']:,}",
        f"Bytes scanned:      {counters['total_bytes']:,}",
        f"Largest file:       {counters['max_file_size']:,}",
        f"Prior records:      {report.prior_size:,}",
        f"Added:              {counters['added']:,}",
        f"Unchanged:          {counters['unchanged']:,}",
        f"Modified:           {counters['mismatched']:,}",
        f"Suspicious:         {counters['suspicious']:,}",
        f"Deleted:            {report.deleted:,}",
    ]
    if report.output_path is not None:
        lines.append(f"Snapshot written to {report.output_path}")
    else:
        lines.append("Analysis only, no snapshot written")
    sys.stdout.write("\n".join(lines) + "\n")


def run_scan(args: argparse.Namespace) -> int:
    overrides = CliOverrides(
        hash_content=False if args.no_hash else None,
        log_path=Path(args.log).resolve() if args.log is not None else None,
        email_enabled=False if args.no_email or args.verify_excludes else None,
    )
    try:
        config = load_effective_config(Path(args.config), overrides)
    except ConfigError as error:
        return _error(error)
    if args.verify_config:
        sys.stdout.write(json.dumps(config.to_public_dict(), indent=2, sort_keys=True) + "\n")
        return EXIT_OK

    options = RunOptions(
        base_name=Path(args.base).resolve() if args.base is not None else None,
        analyze_only=args.analyze_only,
    )
    runner = SnapshotRunner(config, options)
    if args.verify_excludes:
        try:
            listings = runner.verify_excludes()
        except ConfigError as error:
            return _error(error)
        for listing in listings:
            verdict = "excluded" if listing.excluded else "included"
            kind = "dir " if listing.entry.is_dir else "file"
            sys.stdout.write(f"{verdict} {kind} {listing.entry.path}\n")
        return EXIT_OK

    try:
        report = runner.run()
    except (OSError, ValueError) as error:
        return _error(error)
    _print_report(report)
    return EXIT_OK


def run_dump(args: argparse.Namespace) -> int:
    try:
        snapshot = load_snapshot(Path(args.archive), entry_name=args.file, password=args.password)
        records = list(snapshot.values())
        selected = select_records(
            records,
            suspicious=args.suspicious,
            added=args.added,
            modified=args.modified,
            name_pattern=args.name,
        )
    except (OSError, ValueError) as error:
        return _error(error)
    for record in selected:
        sys.stdout.write(describe_record(record))
    if selected:
        sys.stdout.write("\n")
    sys.stdout.write(format_summary(summarize(records), len(selected)))
    return EXIT_OK


def run_prune(args: argparse.Namespace) -> int:
    try:
        result = prune(Path(args.basename), args.retain, force=args.force)
    except ConfigError as error:
        return _error(error)
    except RetentionError as error:
        for path in error.remaining:
            sys.stderr.write(f"Not deleted: {path}\n")
        return _error(error)
    except OSError as error:
        return _error(error)
    if not result.deleted and not result.retained:
        return _error("There are no files found to cleanup.")
    for path in result.deleted:
        sys.stdout.write(f"Deleted {path}\n")
    return EXIT_OK


def main(argv: list[str] | None = None) -> int:
    """Entrypoint for the filecrc command."""
    parser = build_arg_parser()
    args = parser.parse_args(argv)
    if args.command == "scan":
        return run_scan(args)
    if args.command == "dump":
        return run_dump(args)
    return run_prune(args)


if __name__ == "__main__":
    raise SystemExit(main())
