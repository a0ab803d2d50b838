"""Command line interface: ``timelog append|report|export|summary|sources``."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Optional

from .config import load_config
from .engine import ExportStatus, TimelogEngine
from .errors import TimelogError
from .logging import setup_logging
from .models import format_timestamp
from .period import period_from_args


def _parse_property(value: str) -> tuple[str, str]:
    key, sep, val = value.partition("=")
    if not sep or not key.strip():
        raise argparse.ArgumentTypeError(f"Expected KEY=VALUE, got {value!r}")
    return key.strip(), val


def _add_period_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--from", dest="date_from", help="First day (YYYY-MM-DD)")
    parser.add_argument("--to", dest="date_to", help="Last day (YYYY-MM-DD), inclusive")
    parser.add_argument(
        "--group-by",
        "-g",
        action="append",
        default=None,
        help="Group key (day, week, month, tag, or a property name); repeatable",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="timelog",
        description="Append-only activity log with reports rebuilt from every source document",
    )
    parser.add_argument(
        "--project-root",
        "-p",
        type=Path,
        default=Path.cwd(),
        help="Project root directory (default: current directory)",
    )
    parser.add_argument("--config", "-c", type=Path, help="Path to config file")
    parser.add_argument("--log-level", default=None, help="Log level (default: from config)")

    sub = parser.add_subparsers(dest="command", required=True)

    append = sub.add_parser("append", help="Append a new entry")
    append.add_argument("title", nargs="?", help="Entry title")
    append.add_argument("--tags", "-t", help="Tags, e.g. :work:meeting:")
    append.add_argument("--body", "-b", help="Free text body")
    append.add_argument(
        "--property",
        "-P",
        dest="properties",
        action="append",
        type=_parse_property,
        default=[],
        help="Extra property as KEY=VALUE; repeatable",
    )

    report = sub.add_parser("report", help="Print a report to stdout")
    report.add_argument("--format", "-f", choices=["csv", "document"], default="csv")
    report.add_argument("--fields", help="Comma-separated CSV fields")
    _add_period_args(report)

    export = sub.add_parser("export", help="Write a report to a file")
    export.add_argument("--format", "-f", choices=["csv", "document"], default="csv")
    export.add_argument("--fields", help="Comma-separated CSV fields")
    export.add_argument("--output", "-o", type=Path, help="Destination file")
    _add_period_args(export)

    summary = sub.add_parser("summary", help="Totals per group")
    summary.add_argument("--json", action="store_true", help="Print JSON")
    _add_period_args(summary)

    sub.add_parser("sources", help="List source documents")

    return parser


def _fields(value: Optional[str]) -> Optional[list[str]]:
    if not value:
        return None
    return [f.strip() for f in value.split(",") if f.strip()]


def run(args: argparse.Namespace, engine: TimelogEngine) -> int:
    """Execute a parsed command. Returns the process exit code."""
    if args.command == "append":
        entry = engine.append(
            title=args.title,
            tags=args.tags,
            body=args.body,
            properties=dict(args.properties),
        )
        print(f"{entry.entry_id} {format_timestamp(entry.timestamp)}")
        return 0

    if args.command == "sources":
        for path in engine.sources():
            print(path)
        return 0

    period = period_from_args(args.date_from, args.date_to)

    if args.command == "report":
        report = engine.report(args.format, fields=_fields(args.fields), period=period, group_by=args.group_by)
        print(report.text)
        return 0

    if args.command == "export":
        result = engine.export(
            args.format,
            destination=args.output,
            fields=_fields(args.fields),
            period=period,
            group_by=args.group_by,
        )
        if result.status is ExportStatus.EMPTY:
            print(f"No entries in period; wrote empty report to {result.destination}")
        else:
            print(f"Wrote {result.report.row_count} rows ({result.report.line_count} lines) to {result.destination}")
        return 0

    if args.command == "summary":
        summaries = engine.summary(period=period, group_by=args.group_by)
        if args.json:
            print(json.dumps([s.to_dict() for s in summaries], indent=2))
        else:
            for s in summaries:
                print(f"{s.name}\t{s.count}\t{s.total}")
        return 0

    raise ValueError(f"Unknown command: {args.command}")


def main(argv: Optional[list[str]] = None) -> None:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = load_config(args.project_root.resolve(), args.config)
    except Exception as e:
        print(f"Error loading config: {e}", file=sys.stderr)
        sys.exit(1)

    setup_logging(args.log_level or config.log_level)

    try:
        code = run(args, TimelogEngine(config))
    except (TimelogError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    sys.exit(code)


if __name__ == "__main__":  # pragma: no cover
    main()
