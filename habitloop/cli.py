#!/usr/bin/env python3
"""
HabitLoop CLI — spreadsheet import, offline conversion, seeding and reports.

USAGE:
  habitloop import habits.csv --user <uuid>            # CSV export → daily_logs
  habitloop import habits.csv --batch-size 50
  habitloop convert habits.csv --output habits.json    # CSV → {date, day, month, habits} JSON
  habitloop seed --days 30 --email me@x.com --password ...
  habitloop monthly --field coffee --months 3          # monthly series from the database
  habitloop monthly --field dabs_count --input habits.json
  habitloop summary --user <uuid>                      # per-habit totals and streaks
  habitloop serve --port 8000
"""
from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from datetime import date
from pathlib import Path

from habitloop import config
from habitloop.errors import HabitLoopError

logger = logging.getLogger(__name__)


def _service():
    """Hosted database when configured, else a local SQL session."""
    from habitloop.services.daily_log_service import SqlDailyLogService, SupabaseDailyLogService
    from habitloop.supabase_client import is_supabase_configured

    if is_supabase_configured():
        return SupabaseDailyLogService()

    from habitloop.database import SessionLocal, init_db
    init_db()
    return SqlDailyLogService(SessionLocal())


def _user_id(args) -> str:
    if getattr(args, "email", None):
        from habitloop.supabase_client import sign_in_user
        return sign_in_user(args.email, args.password or "")
    user_id = getattr(args, "user", None) or config.DEFAULT_USER_ID
    if not user_id:
        raise HabitLoopError("Pass --user or set DEFAULT_USER_ID")
    return user_id


def _load_logs(args) -> list[dict]:
    if getattr(args, "input", None):
        from habitloop.services.csv_import import documents_to_logs
        documents = json.loads(Path(args.input).read_text(encoding="utf-8"))
        return documents_to_logs(documents)
    return _service().get_all(_user_id(args))


def cmd_import(args):
    """Import a spreadsheet export for one user."""
    from habitloop.services.csv_import import import_csv

    user_id = _user_id(args)
    result = import_csv(args.csv, user_id, _service(), batch_size=args.batch_size)

    print("\n" + "=" * 60)
    print("  IMPORT SUMMARY")
    print("=" * 60)
    print(f"  Total rows:    {result.total_rows}")
    print(f"  Valid rows:    {result.valid_rows}")
    print(f"  Imported:      {result.imported}")
    print(f"  Skipped:       {result.skipped}")
    if result.date_range:
        print(f"  Date range:    {result.date_range['earliest']} → {result.date_range['latest']}")
    if result.unmapped_headers:
        print(f"  Unmapped:      {', '.join(result.unmapped_headers)}")
    if result.errors:
        print(f"\n  Errors ({len(result.errors)}):")
        for message in result.errors[:10]:
            print(f"    - {message}")
        if len(result.errors) > 10:
            print(f"    ... and {len(result.errors) - 10} more")
    print()
    return 0 if result.success else 1


def cmd_convert(args):
    """Convert a spreadsheet export to JSON documents."""
    from habitloop.services.csv_import import convert_csv

    documents = convert_csv(args.csv)
    output = Path(args.output) if args.output else Path(args.csv).with_suffix(".json")
    output.write_text(json.dumps(documents, indent=2), encoding="utf-8")
    print(f"Converted {len(documents)} rows → {output}")
    return 0


def cmd_seed(args):
    """Replace a user's history with generated logs."""
    from habitloop.services.seed_service import generate_seed_logs

    user_id = _user_id(args)
    service = _service()
    if not args.keep:
        deleted = service.clear(user_id)
        print(f"Cleared {deleted} existing logs")
    logs = generate_seed_logs(days=args.days)
    written = service.upsert_many(user_id, logs)
    print(f"Seeded {written} daily logs for user {user_id}")
    return 0


def cmd_monthly(args):
    """Print dense monthly series for one field."""
    from habitloop.services.field_normalizer import field_kind
    from habitloop.services.monthly_chart import compute_monthly_chart_data

    kind = field_kind(args.field)
    if kind not in ("boolean", "number"):
        print(f"  '{args.field}' cannot be charted")
        return 1

    reference = date.fromisoformat(args.reference) if args.reference else None
    charts = compute_monthly_chart_data(_load_logs(args), args.field, kind == "number", args.months, reference)
    for chart in charts:
        print(f"\n{chart.month_range.label}: total {chart.total_value:g}, {chart.days_with_data} days with data")
        print("  " + " ".join(f"{point.value:g}" for point in chart.daily_data))
    print()
    return 0


def cmd_summary(args):
    """Print per-habit totals, streaks and today's status."""
    from habitloop.services.habit_summary import summarize_habits

    for category, habits in summarize_habits(_load_logs(args)).items():
        print(f"\n{category.upper()}")
        for habit in habits:
            print(f"  {habit['habit_name'][:30]:<32}{habit['total']:>8g}  streak {habit['streak']:<4}{habit['status']}")
    print()
    return 0


def cmd_serve(args):
    """Start the API server."""
    import uvicorn
    print(f"\nStarting {config.APP_NAME} API on port {args.port}...")
    uvicorn.run("habitloop.main:app", host="0.0.0.0", port=args.port, reload=args.reload)
    return 0


def _add_user_args(parser):
    parser.add_argument("--user", help="User id (default: DEFAULT_USER_ID)")
    parser.add_argument("--email", help="Sign in with this email to find the user id")
    parser.add_argument("--password", help="Password for --email")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="habitloop",
        description="HabitLoop — daily habit log import and analytics",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--log-level", default=config.LOG_LEVEL, help="Logging level")
    subparsers = parser.add_subparsers(dest="command", help="Command")

    # import subcommand
    import_parser = subparsers.add_parser("import", help="Import a CSV export")
    import_parser.add_argument("csv", help="Path to the CSV file")
    import_parser.add_argument("--batch-size", type=int, default=None, help="Rows per upsert batch")
    _add_user_args(import_parser)
    import_parser.set_defaults(func=cmd_import)

    # convert subcommand
    convert_parser = subparsers.add_parser("convert", help="Convert a CSV export to JSON")
    convert_parser.add_argument("csv", help="Path to the CSV file")
    convert_parser.add_argument("--output", help="Output path (default: <csv>.json)")
    convert_parser.set_defaults(func=cmd_convert)

    # seed subcommand
    seed_parser = subparsers.add_parser("seed", help="Generate sample logs")
    seed_parser.add_argument("--days", type=int, default=30, help="Days of history (default 30)")
    seed_parser.add_argument("--keep", action="store_true", help="Keep existing logs")
    _add_user_args(seed_parser)
    seed_parser.set_defaults(func=cmd_seed)

    # monthly subcommand
    monthly_parser = subparsers.add_parser("monthly", help="Monthly series for one field")
    monthly_parser.add_argument("--field", required=True, help="Column, e.g. coffee or dabs_count")
    monthly_parser.add_argument("--months", type=int, default=3, help="Number of months (default 3)")
    monthly_parser.add_argument("--reference", help="Reference date YYYY-MM-DD (default today)")
    monthly_parser.add_argument("--input", help="Read converted JSON instead of the database")
    _add_user_args(monthly_parser)
    monthly_parser.set_defaults(func=cmd_monthly)

    # summary subcommand
    summary_parser = subparsers.add_parser("summary", help="Habit totals and streaks")
    summary_parser.add_argument("--input", help="Read converted JSON instead of the database")
    _add_user_args(summary_parser)
    summary_parser.set_defaults(func=cmd_summary)

    # serve subcommand
    serve_parser = subparsers.add_parser("serve", help="Start API server")
    serve_parser.add_argument("--port", type=int, default=int(os.environ.get("PORT", "8000")), help="Port (default 8000)")
    serve_parser.add_argument("--reload", action="store_true", help="Enable auto-reload")
    serve_parser.set_defaults(func=cmd_serve)

    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=args.log_level.upper(), format="%(levelname)s %(name)s: %(message)s")

    if not args.command:
        parser.print_help()
        return 0

    try:
        return args.func(args)
    except HabitLoopError as e:
        logger.debug("Command %s failed", args.command, exc_info=True)
        print(f"Error: {e.message}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
