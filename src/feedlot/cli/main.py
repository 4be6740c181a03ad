"""Feedlot command-line interface.

Reports run against a fresh snapshot from the record store, or against the
local snapshot cache with --offline. The only command that writes to the
store is recalc-stock.
"""

import argparse
import asyncio
import json
import sys
from dataclasses import asdict, is_dataclass
from datetime import date

from feedlot.core import (
    RecordStoreError,
    RetryableError,
    format_money,
    format_rate,
    format_weight,
    settings,
)
from feedlot.core.logging import setup_logging
from feedlot.data import FarmSnapshot, RecordStore, load_snapshot, save_snapshot
from feedlot.engine import (
    GcaaSource,
    OverheadMode,
    ProjectionSettings,
    TargetMode,
    Valuation,
    allocate_costs,
    animal_profile,
    calculate_farm_growth,
    daily_veterinary_report,
    farm_cost_totals,
    feed_stock_report,
    find_animal,
    group_costs,
    inventory_report,
    project_farm,
    recalculate_and_persist,
    summarize_projections,
    veterinary_report,
    weighing_day_report,
    weight_tracking,
)
from feedlot.engine.projection import (
    DEFAULT_CARCASS_PRICE,
    DEFAULT_CUSTOM_GCAA,
    DEFAULT_TARGET_WEIGHT_KG,
    DEFAULT_YIELD_PERCENT,
)
from feedlot.engine.reports import (
    DEFAULT_LIVE_PRICE,
    DEFAULT_PROFILE_CARCASS_PRICE,
    DEFAULT_PROFILE_YIELD_PERCENT,
)

# =============================================================================
# Helpers
# =============================================================================


def _to_jsonable(value):
    if is_dataclass(value):
        return asdict(value)
    return value


def print_json(data) -> None:
    if isinstance(data, list):
        data = [_to_jsonable(d) for d in data]
    else:
        data = _to_jsonable(data)
    print(json.dumps(data, indent=2, default=str))


def resolve_farm_id(args: argparse.Namespace) -> str:
    farm_id = getattr(args, "farm_id", None) or settings.farm_id
    if not farm_id:
        raise SystemExit("Error: no farm id. Pass --farm-id or set FEEDLOT_FARM_ID.")
    return farm_id


async def load_farm(args: argparse.Namespace) -> FarmSnapshot:
    """Load the snapshot the command should run against."""
    as_of = getattr(args, "as_of", None)
    if getattr(args, "offline", False):
        try:
            return load_snapshot(as_of=as_of)
        except FileNotFoundError as e:
            raise SystemExit(f"Error: no cached snapshot ({e.filename}). Run `feedlot cache` first.") from e
    store = RecordStore()
    return await store.fetch_snapshot(resolve_farm_id(args), as_of=as_of)


def _header(title: str) -> None:
    print("=" * 78)
    print(title)
    print("=" * 78)


# =============================================================================
# Commands
# =============================================================================


async def cmd_cache(args: argparse.Namespace) -> None:
    """Fetch a snapshot from the record store and save it locally."""
    farm_id = resolve_farm_id(args)
    print(f"Fetching farm {farm_id} from {settings.store_url}...")
    snapshot = await RecordStore().fetch_snapshot(farm_id, as_of=args.as_of)
    path = save_snapshot(snapshot)
    print(f"  {len(snapshot.animals)} animals, {len(snapshot.weighings)} weighings")
    print(f"  {len(snapshot.feeds)} feeds, {len(snapshot.rations)} rations")
    print(f"  {len(snapshot.veterinary_records)} veterinary records, {len(snapshot.general_expenses)} expenses")
    print(f"Snapshot saved to: {path}")


async def cmd_costs(args: argparse.Namespace) -> None:
    """Per-animal (or per-group) cost breakdown."""
    snapshot = await load_farm(args)
    breakdowns = allocate_costs(snapshot)

    if args.groups:
        summaries = group_costs(breakdowns)
        if args.json:
            print_json([{**asdict(s), "average_total": s.average_total} for s in summaries])
            return
        _header(f"Group costs - farm {snapshot.farm_id} as of {snapshot.as_of}")
        print(f"{'Group':<14} {'Head':>5} {'Feed':>14} {'Vet':>12} {'Overhead':>12} {'Total':>16} {'Avg':>14}")
        for s in summaries:
            print(
                f"{s.label:<14} {s.animal_count:>5} {format_money(s.feed):>14} {format_money(s.veterinary):>12} "
                f"{format_money(s.overhead):>12} {format_money(s.total):>16} {format_money(s.average_total):>14}"
            )
        return

    if args.json:
        print_json([{**asdict(b), "total": b.total} for b in breakdowns])
        return

    _header(f"Animal costs - farm {snapshot.farm_id} as of {snapshot.as_of}")
    print(f"{'Tag':<12} {'Group':<10} {'Purchase':>14} {'Feed':>12} {'Vet':>10} {'Overhead':>10} {'Total':>14}")
    for b in breakdowns:
        print(
            f"{b.tag_number:<12} {b.group_label:<10} {format_money(b.purchase):>14} {format_money(b.feed):>12} "
            f"{format_money(b.veterinary):>10} {format_money(b.overhead):>10} {format_money(b.total):>14}"
        )
    totals = farm_cost_totals(breakdowns)
    print("-" * 78)
    print(
        f"{totals.animal_count} animals, total {format_money(totals.total)}, "
        f"average {format_money(totals.average_total)}"
    )


async def cmd_growth(args: argparse.Namespace) -> None:
    """Inventory with lifetime and last-interval GCAA."""
    snapshot = await load_farm(args)
    if args.json:
        print_json(inventory_report(snapshot))
        return

    metrics = calculate_farm_growth(snapshot)
    _header(f"Growth (GCAA) - farm {snapshot.farm_id} as of {snapshot.as_of}")
    print(f"{'Tag':<12} {'Group':<10} {'Last weighed':<13} {'Weight':>12} {'Lifetime':>16} {'Last interval':>16}")
    for animal in snapshot.animals:
        m = metrics[animal.id]
        print(
            f"{animal.tag_number:<12} {animal.group_id or '-':<10} {str(m.last_weigh_date or '-'):<13} "
            f"{format_weight(m.last_weight):>12} {format_rate(m.lifetime_rate):>16} "
            f"{format_rate(m.last_interval_rate):>16}"
        )


async def cmd_weighing(args: argparse.Namespace) -> None:
    """Weighing-day report."""
    snapshot = await load_farm(args)
    report = weighing_day_report(snapshot, args.date)
    if args.json:
        print_json(report.rows)
        return

    _header(f"Weighing day {report.day} - {report.count} animals")
    print(
        f"{'Tag':<12} {'Weight':>12} {'Previous':>12} {'Days':>5} {'Gain':>10} "
        f"{'Period GCAA':>16} {'Total GCAA':>16}"
    )
    for r in report.rows:
        days = str(r.days_since_previous) if r.days_since_previous is not None else "-"
        gain = f"{r.gain_kg:.1f}" if r.gain_kg is not None else "-"
        print(
            f"{r.tag_number:<12} {format_weight(r.weight_kg):>12} {format_weight(r.previous_weight):>12} "
            f"{days:>5} {gain:>10} {format_rate(r.period_gcaa):>16} {format_rate(r.total_gcaa):>16}"
        )
    print("-" * 78)
    print(
        f"Average weight {format_weight(report.average_weight)}, "
        f"average gain {report.average_gain:.2f} kg, average GCAA {format_rate(report.average_period_gcaa)}"
    )


async def cmd_stock(args: argparse.Namespace) -> None:
    """Feed stock report."""
    snapshot = await load_farm(args)
    rows = feed_stock_report(snapshot)
    if args.json:
        print_json(rows)
        return

    _header(f"Feed stock - farm {snapshot.farm_id} as of {snapshot.as_of}")
    print(f"{'Feed':<20} {'Stock':>14} {'Daily use':>12} {'Days left':>10} {'Bags':>6} {'Left %':>7} {'Value':>14}")
    for r in rows:
        days = str(r["days_remaining"]) if r["days_remaining"] is not None else "enough"
        bags = str(r["bags_remaining"]) if r["bags_remaining"] is not None else "-"
        pct = f"{r['percent_remaining']:.0f}%" if r["percent_remaining"] is not None else "-"
        print(
            f"{r['name'][:20]:<20} {format_weight(r['current_stock_kg']):>14} "
            f"{format_weight(r['daily_consumption_kg']):>12} {days:>10} {bags:>6} {pct:>7} "
            f"{format_money(r['stock_value']):>14}"
        )


async def cmd_recalc_stock(args: argparse.Namespace) -> None:
    """Recalculate feed stock from the full ration history and write it back."""
    farm_id = resolve_farm_id(args)
    result, report = await recalculate_and_persist(
        RecordStore(), farm_id, as_of=args.as_of, dry_run=args.dry_run, force=args.force
    )

    if args.json:
        print_json(
            {
                "farm_id": farm_id,
                "as_of": result.as_of,
                "dry_run": args.dry_run,
                "changes": [{**asdict(c), "changed": c.changed, "clamped": c.clamped} for c in result.changes],
                "orphaned_consumption": result.orphaned_consumption,
                "report": asdict(report) if report is not None else None,
            }
        )
        return

    _header(f"Stock recalculation - farm {farm_id} as of {result.as_of}" + (" (dry run)" if args.dry_run else ""))
    for c in result.changes:
        flag = "  (clamped at 0)" if c.clamped else ""
        print(
            f"{c.feed_name[:20]:<20} {c.initial_stock_kg:>12.2f} - {c.consumed_kg:>12.2f} = {c.new_stock_kg:>12.2f} kg"
            f"  (was {c.previous_stock_kg:.2f}){flag}"
        )
    for feed_id, kg in result.orphaned_consumption.items():
        print(f"Warning: {kg:.2f} kg consumed from missing feed {feed_id}")

    if report is None:
        print("\nDry run - nothing written")
        return
    print(f"\nWritten: {len(report.written)}, unchanged: {len(report.unchanged)}")


async def cmd_vet(args: argparse.Namespace) -> None:
    """Veterinary costs grouped by day, or a single day with --date/--latest."""
    snapshot = await load_farm(args)
    if args.date or args.latest:
        day = daily_veterinary_report(snapshot, args.date)
        if args.json:
            print_json({**asdict(day), "total": day.total})
            return
        _header(f"Veterinary procedures on {day.day or '-'} - {len(day.records)} records")
        _print_vet_lines(day)
        return

    report = veterinary_report(snapshot)
    if args.json:
        days = [{**asdict(d), "total": d.total} for d in report.days]
        print_json({"days": days, "count": report.count, "total": report.total})
        return

    _header(f"Veterinary costs - farm {snapshot.farm_id}")
    for day in report.days:
        print(f"\n{day.day or 'undated'}  ({len(day.records)} records, {format_money(day.total)})")
        _print_vet_lines(day)
    print("-" * 78)
    print(f"{report.count} records, total {format_money(report.total)}")


def _print_vet_lines(day) -> None:
    for r in day.records:
        print(f"  {r.tag_number:<12} {r.procedure_name[:24]:<24} {r.notes[:22]:<22} {format_money(r.cost):>14}")


async def cmd_weights(args: argparse.Namespace) -> None:
    """Weight tracking table: one row per animal, one column per weighing date."""
    snapshot = await load_farm(args)
    table = weight_tracking(snapshot)
    if args.json:
        print_json(table)
        return

    _header(f"Weight tracking - farm {snapshot.farm_id}")
    print(f"{'Tag':<12}" + "".join(f" {d:>10}" for d in table.dates))
    for row in table.rows:
        cells = "".join(f" {row['weights'][d]:>10.1f}" if d in row["weights"] else f" {'-':>10}" for d in table.dates)
        print(f"{row['tag_number']:<12}{cells}")


async def cmd_profile(args: argparse.Namespace) -> None:
    """History, growth, value and cost of one animal."""
    snapshot = await load_farm(args)
    animal = find_animal(snapshot, args.animal)
    if animal is None:
        raise SystemExit(f"Error: no animal with id or tag {args.animal!r}")
    profile = animal_profile(
        snapshot,
        animal.id,
        live_price=args.live_price,
        carcass_price=args.carcass_price,
        yield_percent=args.yield_percent,
    )
    if args.json:
        print_json({**asdict(profile), "animal": animal.to_row(), "veterinary_total": profile.veterinary_total})
        return

    _header(f"Animal {animal.tag_number} ({animal.id}) - group {animal.group_id or '-'}, {animal.status.value}")
    print(f"Registered:      {animal.registration_date or '-'} at {format_weight(animal.registration_weight)}")
    print(f"Last weight:     {format_weight(profile.last_weight)}")
    print(f"Average GCAA:    {format_rate(profile.average_gcaa)}")
    print(f"Last GCAA:       {format_rate(profile.last_gcaa)}")
    print(f"Live value:      {format_money(profile.live_value)}")
    print(f"Carcass value:   {format_money(profile.carcass_value)}")
    print(f"Total cost:      {format_money(profile.total_cost)}")

    print("\nWeighings")
    for w in profile.weighings:
        print(
            f"  {w.weigh_date!s:<12} {format_weight(w.weight_kg):>12} "
            f"{w.gain_kg:>8.1f} kg {w.days:>4} d {format_rate(w.gcaa):>16}"
        )
    print("\nVeterinary")
    for r in profile.veterinary:
        print(f"  {str(r.procedure_date or '-'):<12} {r.procedure_name[:24]:<24} {format_money(r.cost):>14}")
    print(f"  Total {format_money(profile.veterinary_total)}")


async def cmd_project(args: argparse.Namespace) -> None:
    """Projection of weight, cost and profit to a target weight or date."""
    snapshot = await load_farm(args)
    proj_settings = ProjectionSettings(
        mode=TargetMode.DATE if args.target_date else TargetMode.WEIGHT,
        target_weight_kg=args.target_weight,
        target_date=args.target_date,
        gcaa_source=GcaaSource(args.gcaa_source),
        custom_gcaa=args.custom_gcaa,
        valuation=Valuation.LIVE if args.live_price is not None else Valuation.CARCASS,
        yield_percent=args.yield_percent,
        carcass_price_per_kg=args.carcass_price,
        live_price_per_kg=args.live_price or 0.0,
        overhead_mode=OverheadMode.CUSTOM if args.monthly_overhead is not None else OverheadMode.LAST_MONTH,
        custom_monthly_overhead=args.monthly_overhead or 0.0,
    )
    group_ids = (args.group or []) + ([None] if args.ungrouped else [])
    projections = project_farm(snapshot, proj_settings, group_ids=group_ids or None)
    summary = summarize_projections(projections)

    if args.json:
        print_json({"projections": [asdict(p) for p in projections], "summary": asdict(summary)})
        return

    _header(f"Projection - farm {snapshot.farm_id} from {snapshot.as_of}")
    print(
        f"{'Tag':<12} {'Now':>10} {'GCAA':>8} {'Days':>6} {'Final':>10} "
        f"{'Extra cost':>14} {'Value':>14} {'Profit':>14}"
    )
    for p in projections:
        print(
            f"{p.tag_number:<12} {format_weight(p.current_weight, 0):>10} {p.gcaa:>8.3f} {round(p.days_needed):>6} "
            f"{format_weight(p.projected_weight, 0):>10} {format_money(p.incremental_cost):>14} "
            f"{format_money(p.sale_value):>14} {format_money(p.profit):>14}"
        )
    print("-" * 78)
    print(
        f"{summary.count} animals, total profit {format_money(summary.total_profit)}, "
        f"average {format_money(summary.average_profit)}"
    )


# =============================================================================
# CLI Entry Point
# =============================================================================


def _add_common(parser: argparse.ArgumentParser, offline: bool = True) -> None:
    parser.add_argument("--farm-id", help="Farm id (default: FEEDLOT_FARM_ID)")
    parser.add_argument("--as-of", type=date.fromisoformat, help="Treat this day as today (YYYY-MM-DD)")
    parser.add_argument("--json", action="store_true", help="Output as JSON")
    if offline:
        parser.add_argument("--offline", action="store_true", help="Use the cached snapshot instead of the store")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="feedlot",
        description="Feedlot cost, growth and feed stock accounting",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  feedlot cache                           Save a snapshot of the farm locally
  feedlot costs --groups                  Cost per group
  feedlot growth --offline                GCAA per animal from the cached snapshot
  feedlot weighing --date 2026-03-01      Weighing-day report
  feedlot stock                           Feed stock and days of cover
  feedlot recalc-stock --dry-run          Preview the stock recalculation
  feedlot project --target-weight 700     Profit projection to 700 kg
  feedlot vet --latest                    Veterinary procedures of the latest day
  feedlot weights --offline               Weight tracking table
  feedlot profile TR001                   One animal: history, growth, value and cost
""",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    cache_parser = subparsers.add_parser("cache", help="Fetch a snapshot from the record store and cache it")
    _add_common(cache_parser, offline=False)

    costs_parser = subparsers.add_parser("costs", help="Cost breakdown per animal")
    _add_common(costs_parser)
    costs_parser.add_argument("--groups", action="store_true", help="Aggregate per group")

    growth_parser = subparsers.add_parser("growth", help="GCAA per animal")
    _add_common(growth_parser)

    weighing_parser = subparsers.add_parser("weighing", help="Weighing-day report")
    _add_common(weighing_parser)
    weighing_parser.add_argument("--date", type=date.fromisoformat, required=True, help="Weighing day (YYYY-MM-DD)")

    stock_parser = subparsers.add_parser("stock", help="Feed stock report")
    _add_common(stock_parser)

    recalc_parser = subparsers.add_parser("recalc-stock", help="Recalculate feed stock from ration history")
    _add_common(recalc_parser, offline=False)
    recalc_parser.add_argument("--dry-run", action="store_true", help="Show the result without writing")
    recalc_parser.add_argument("--force", action="store_true", help="Write every feed, even if unchanged")

    project_parser = subparsers.add_parser("project", help="Weight, cost and profit projection")
    _add_common(project_parser)
    target = project_parser.add_mutually_exclusive_group()
    target.add_argument("--target-weight", type=float, default=DEFAULT_TARGET_WEIGHT_KG, help="Target weight (kg)")
    target.add_argument("--target-date", type=date.fromisoformat, help="Target date (YYYY-MM-DD)")
    project_parser.add_argument("--gcaa-source", choices=["last", "custom"], default="custom")
    project_parser.add_argument(
        "--custom-gcaa", type=float, default=DEFAULT_CUSTOM_GCAA, help="Farm-wide GCAA (kg/day)"
    )
    project_parser.add_argument("--yield-percent", type=float, default=DEFAULT_YIELD_PERCENT)
    project_parser.add_argument("--carcass-price", type=float, default=DEFAULT_CARCASS_PRICE, help="Per kg carcass")
    project_parser.add_argument("--live-price", type=float, help="Value live weight at this price per kg instead")
    project_parser.add_argument("--monthly-overhead", type=float, help="Monthly overhead (default: last month's)")
    project_parser.add_argument("--group", action="append", help="Only this group (repeatable)")
    project_parser.add_argument("--ungrouped", action="store_true", help="Also include animals with no group")

    vet_parser = subparsers.add_parser("vet", help="Veterinary costs by day")
    _add_common(vet_parser)
    vet_day = vet_parser.add_mutually_exclusive_group()
    vet_day.add_argument("--date", type=date.fromisoformat, help="Only this day (YYYY-MM-DD)")
    vet_day.add_argument("--latest", action="store_true", help="Only the most recent day with records")

    weights_parser = subparsers.add_parser("weights", help="Weight tracking table")
    _add_common(weights_parser)

    profile_parser = subparsers.add_parser("profile", help="Profile of one animal")
    _add_common(profile_parser)
    profile_parser.add_argument("animal", help="Animal id or tag number")
    profile_parser.add_argument("--live-price", type=float, default=DEFAULT_LIVE_PRICE, help="Per kg live weight")
    profile_parser.add_argument(
        "--carcass-price", type=float, default=DEFAULT_PROFILE_CARCASS_PRICE, help="Per kg carcass"
    )
    profile_parser.add_argument("--yield-percent", type=float, default=DEFAULT_PROFILE_YIELD_PERCENT)

    return parser


COMMANDS = {
    "cache": cmd_cache,
    "costs": cmd_costs,
    "growth": cmd_growth,
    "weighing": cmd_weighing,
    "stock": cmd_stock,
    "recalc-stock": cmd_recalc_stock,
    "project": cmd_project,
    "vet": cmd_vet,
    "weights": cmd_weights,
    "profile": cmd_profile,
}


async def cli_main(argv: list[str] | None = None) -> int:
    """Main CLI entry point. Returns the process exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging("DEBUG" if args.verbose else None)

    command = COMMANDS.get(args.command)
    if command is None:
        parser.print_help()
        return 0

    try:
        await command(args)
    except (RecordStoreError, RetryableError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


def cli() -> None:
    """CLI entry point."""
    sys.exit(asyncio.run(cli_main()))


if __name__ == "__main__":
    cli()
