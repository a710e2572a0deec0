import argparse
import logging
import sys
import time
from datetime import UTC, datetime
from pathlib import Path

from temporal_cache.adapters.interval_runner import IntervalTaskRunner
from temporal_cache.adapters.sqlite.migrator import SQLiteMigrator
from temporal_cache.adapters.sqlite.repos import SQLiteSchemaInspector
from temporal_cache.context import TemporalCacheContext
from temporal_cache.core.services.harmonization import SECONDS_PER_DAY
from temporal_cache.core.services.verification import verify_installation
from temporal_cache.rules.loader import default_rules, load_rules
from temporal_cache.rules.models import TemporalCacheRules

logger = logging.getLogger("cli")

DB_PATH = "temporal_cache.db"
CONFIG_PATH = "temporal_cache.yaml"


def _format_ts(timestamp: int | None) -> str:
    if timestamp is None:
        return "none"
    return datetime.fromtimestamp(timestamp, UTC).strftime("%Y-%m-%d %H:%M:%S UTC")


def get_rules(config_path: Path) -> TemporalCacheRules:
    if not config_path.exists():
        logger.info("Config file %s not found, using defaults.", config_path)
        return default_rules()
    return load_rules(config_path)


def get_context(args: argparse.Namespace) -> TemporalCacheContext:
    rules = get_rules(Path(args.config))
    return TemporalCacheContext.create(args.db, rules)


def handle_init_db(args: argparse.Namespace) -> int:
    applied = SQLiteMigrator(args.db).run_migrations()
    if applied:
        print(f"Applied {len(applied)} migration(s): {', '.join(applied)}")
    else:
        print("Database is up to date.")
    return 0


def handle_run_scheduler(ctx: TemporalCacheContext, args: argparse.Namespace) -> int:
    runner = IntervalTaskRunner(ctx.new_scheduler_task, ctx.rules.timing.scheduler_interval)

    if not args.loop:
        result = runner.run_once()
        print(
            f"Window ({result.window_from}, {result.window_to}]: "
            f"{result.transitions_found} transitions, {result.processed} processed, "
            f"{result.errors} errors"
        )
        if result.error_message:
            print(f"Error: {result.error_message}")
        return 0 if result.success else 1

    runner.start()
    try:
        while runner.is_running:
            time.sleep(1.0)
    except KeyboardInterrupt:
        pass
    finally:
        runner.stop()
    return 0


def handle_next_transition(ctx: TemporalCacheContext, args: argparse.Namespace) -> int:
    now = ctx.clock.timestamp()
    next_transition = ctx.repository.get_next_transition(now, args.workspace, args.language)
    lifetime = ctx.timing.get_cache_lifetime(args.workspace, args.language)

    print(f"Now:             {_format_ts(now)}")
    print(f"Next transition: {_format_ts(next_transition)}")
    if next_transition is not None:
        print(f"Seconds until:   {next_transition - now}")
    print(f"Timing strategy: {ctx.timing.name}")
    print(f"Cache lifetime:  {lifetime if lifetime is not None else 'unchanged'}")
    return 0


def handle_list(ctx: TemporalCacheContext, args: argparse.Namespace) -> int:
    now = ctx.clock.timestamp()
    items = ctx.repository.find_all_with_temporal_fields(args.workspace, args.language)
    if not items:
        print("No temporal content found.")
        return 0

    for item in items:
        status = "visible" if item.is_visible(now) else "hidden"
        print(
            f"{item.table_name:<8} #{item.uid:<6} {item.title[:40]:<40} "
            f"start={_format_ts(item.starttime)} end={_format_ts(item.endtime)} [{status}]"
        )
    print(f"{len(items)} record(s).")
    return 0


def handle_analyze(ctx: TemporalCacheContext, args: argparse.Namespace) -> int:
    now = ctx.clock.timestamp()
    stats = ctx.repository.get_statistics(args.workspace)

    print("Temporal content:")
    print(f"  total:      {stats.total}")
    print(f"  pages:      {stats.pages}")
    print(f"  content:    {stats.content}")
    print(f"  start only: {stats.with_start}")
    print(f"  end only:   {stats.with_end}")
    print(f"  both:       {stats.with_both}")

    until = now + args.days * SECONDS_PER_DAY
    per_day = ctx.repository.count_transitions_per_day(now, until)
    print(f"Transitions in the next {args.days} day(s):")
    for day, count in sorted(per_day.items()):
        print(f"  {day}: {count}")

    events = ctx.repository.find_transitions_in_range(now, until)
    harmonization = ctx.harmonization
    impact = harmonization.calculate_harmonization_impact([e.timestamp for e in events])
    print(
        "Harmonization "
        f"({'enabled' if ctx.rules.harmonization.enabled else 'disabled'}, "
        f"auto_round {'on' if ctx.rules.harmonization.auto_round else 'off'}, "
        f"slots {', '.join(harmonization.get_formatted_slots()) or 'none'}): "
        f"{impact['original']} -> {impact['harmonized']} distinct transitions "
        f"({impact['reduction']}% fewer)"
    )
    return 0


def handle_verify(ctx: TemporalCacheContext, args: argparse.Namespace) -> int:
    results = verify_installation(
        SQLiteSchemaInspector(args.db), ctx.registry.get_all_tables(), ctx.rules
    )

    section: str | None = None
    for result in results:
        if result.section != section:
            section = result.section
            print(f"[{section}]")
        print(f"  {result.subject:<20} {result.value:<30} {result.status}")

    failed = [result for result in results if not result.ok]
    if failed:
        print(f"{len(failed)} check(s) failed.")
        return 1
    print("All checks passed.")
    return 0


def handle_harmonize(ctx: TemporalCacheContext, args: argparse.Namespace) -> int:
    if not args.dry_run:
        print("Stored times are never rewritten; run with --dry-run for a report.")
        return 1
    if not ctx.rules.harmonization.enabled:
        print("Harmonization is not enabled in the configuration.")
        return 1
    if args.table and not ctx.registry.is_registered(args.table):
        print(f"Table {args.table!r} is not monitored.")
        return 1

    records = ctx.repository.find_all_with_temporal_fields(args.workspace, args.language)
    if args.table:
        records = [record for record in records if record.table_name == args.table]

    harmonization = ctx.harmonization
    changes = harmonization.plan_changes(records)
    if not changes:
        print(f"No records need harmonization ({len(records)} checked).")
        return 0

    per_table: dict[str, int] = {}
    for change in changes:
        per_table[change.table_name] = per_table.get(change.table_name, 0) + 1
        print(
            f"{change.table_name:<8} #{change.uid:<6} {change.field:<9} "
            f"{harmonization.describe(change.old)} -> {harmonization.describe(change.new)} "
            f"({int(change.shift / 60):+d} min)"
        )
    for table_name, count in per_table.items():
        print(f"  {table_name}: {count}")
    print(f"{len(changes)} change(s) in {len(records)} record(s). Dry run, nothing written.")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Temporal cache CLI")
    parser.add_argument("--config", default=CONFIG_PATH, help="Path to the YAML config file")
    parser.add_argument("--db", default=DB_PATH, help="Path to the SQLite database")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("init-db", help="Create or upgrade the database schema")

    # run-scheduler
    scheduler_parser = subparsers.add_parser("run-scheduler", help="Flush due transitions")
    scheduler_parser.add_argument(
        "--loop", action="store_true", help="Keep running every scheduler_interval seconds"
    )

    # next-transition / list
    for name, help_text, default_language in (
        ("next-transition", "Show the next transition and cache lifetime", 0),
        ("list", "List content with start/end times", -1),
    ):
        scoped = subparsers.add_parser(name, help=help_text)
        scoped.add_argument("--workspace", type=int, default=0, help="Workspace id")
        scoped.add_argument(
            "--language", type=int, default=default_language, help="Language id (-1 for all)"
        )

    # analyze
    analyze_parser = subparsers.add_parser("analyze", help="Statistics and upcoming transitions")
    analyze_parser.add_argument("--workspace", type=int, default=0, help="Workspace id")
    analyze_parser.add_argument("--days", type=int, default=30, help="Days to look ahead")

    subparsers.add_parser("verify", help="Check indexes, schema and configuration")

    # harmonize
    harmonize_parser = subparsers.add_parser(
        "harmonize", help="Report stored times that harmonization would move"
    )
    harmonize_parser.add_argument(
        "--dry-run", action="store_true", help="Report only (required)"
    )
    harmonize_parser.add_argument("--workspace", type=int, default=0, help="Workspace id")
    harmonize_parser.add_argument(
        "--language", type=int, default=-1, help="Language id (-1 for all)"
    )
    harmonize_parser.add_argument("--table", help="Limit to one monitored table")

    return parser


def main(argv: list[str] | None = None) -> int:
    logging.basicConfig(level=logging.INFO)
    args = build_parser().parse_args(argv)

    if args.command == "init-db":
        return handle_init_db(args)

    try:
        ctx = get_context(args)
    except (FileNotFoundError, ValueError) as e:
        logger.error("Invalid configuration: %s", e)
        return 1

    with ctx:
        if args.command == "run-scheduler":
            return handle_run_scheduler(ctx, args)
        elif args.command == "next-transition":
            return handle_next_transition(ctx, args)
        elif args.command == "list":
            return handle_list(ctx, args)
        elif args.command == "analyze":
            return handle_analyze(ctx, args)
        elif args.command == "verify":
            return handle_verify(ctx, args)
        elif args.command == "harmonize":
            return handle_harmonize(ctx, args)

    return 1


if __name__ == "__main__":
    sys.exit(main())
