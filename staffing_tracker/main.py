from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import replace
from datetime import date
from pathlib import Path
from typing import List, Optional, Sequence

import pandas as pd

from . import engine
from .io_utils import MONTH_FMT, ensure_directory, load_config, parse_day, parse_month, write_csv
from .models import DashboardConfig, Person
from .normalize import InvalidAssignment
from .rollup import assignments_by_person, filter_personnel, rollup_by_contract, rollup_frame
from .sources import source_from_config


def _parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Staffing utilization report (charge-code assignments in, CSV out)."
    )
    parser.add_argument("--data-dir", help="Directory holding personnel.json and charge_codes.json")
    parser.add_argument("--api-base", help="Base URL of the staffing API (overrides config api_base)")
    parser.add_argument("--config", help="Path to configuration JSON file (default: <data-dir>/config.json if present)")
    parser.add_argument("--month", help="First month to report, YYYY-MM (default: current month)")
    parser.add_argument("--months", type=int, default=1, help="Number of consecutive months to report")
    parser.add_argument("--as-of", help="Reference date for the contract rollup, YYYY-MM-DD (default: today)")
    parser.add_argument("--contract", default="", help="Only report people charging to this contract")
    parser.add_argument("--search", default="", help="Only report people whose name contains this text")
    parser.add_argument(
        "--outdir",
        default=None,
        help="Output directory for generated files (default: <data-dir>/output or ./out)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print the summary without writing output files",
    )
    return parser.parse_args(argv)


def _resolve_config(args: argparse.Namespace) -> DashboardConfig:
    config_path: Optional[Path] = Path(args.config) if args.config else None
    if config_path is None and args.data_dir:
        candidate = Path(args.data_dir) / "config.json"
        if candidate.is_file():
            config_path = candidate
    if config_path is not None and not config_path.is_file():
        raise ValueError(f"config file not found at {config_path}")
    cfg = load_config(config_path) if config_path else DashboardConfig()
    if args.api_base:
        cfg = replace(cfg, api_base=args.api_base.rstrip("/"))
    return cfg


def _resolve_outdir(args: argparse.Namespace) -> Path:
    if args.outdir:
        return Path(args.outdir)
    if args.data_dir:
        return Path(args.data_dir) / "output"
    return Path("out")


def _configure_logging(level_name: str) -> None:
    level = getattr(logging, level_name.upper(), logging.INFO)
    logging.basicConfig(level=level, format="%(levelname)s %(message)s")


def _print_dry_run_summary(utilization: pd.DataFrame, rollup: pd.DataFrame) -> None:
    if utilization.empty:
        print("No personnel matched.")
    else:
        print("Utilization:")
        for row in utilization.itertuples(index=False):
            flag = " OVERALLOCATED" if row.overallocated else ""
            print(
                f"- {row.person} {row.month_label}: avg {row.average_pct:.1f}% "
                f"peak {row.peak_pct}%{flag}"
            )
    if rollup.empty:
        print("\nContract headcount: none")
    else:
        print(f"\nContract headcount as of {rollup['as_of'].iloc[0]}:")
        for row in rollup.itertuples(index=False):
            print(f"- {row.contract}: {row.headcount}")


def _write_overallocation_markdown(
    people: Sequence[Person],
    months: Sequence[engine.Month],
    capacity_pct: int,
    outdir: Path,
) -> None:
    path = outdir / "overallocation.md"
    lines: List[str] = ["# Overallocated Personnel", ""]
    for person in people:
        for year, month in months:
            series = engine.compute_daily_series(person.assignments, year, month)
            days = engine.overallocated_days(series, capacity_pct)
            if not days:
                continue
            lines.append(f"- **{person.name} – {engine.month_label(year, month)}**")
            lines.append(f"  - Peak: {engine.max_daily_allocation(series)}%")
            lines.append(f"  - Days over {capacity_pct}%: {', '.join(str(day) for day in days)}")
            first, last = engine.month_bounds(year, month)
            active = sorted(
                (item for item in person.assignments if item.overlaps(first, last)),
                key=lambda item: (item.start, item.name),
            )
            for item in active:
                label = item.name or item.charge_code_id or item.assignment_id
                lines.append(
                    f"  - {label} ({item.contract or 'no contract'}): {item.percentage}% "
                    f"{item.start.isoformat()} → {item.end.isoformat()}"
                )
            lines.append("")
    if len(lines) == 2:
        lines.append("No personnel exceed capacity.")
    path.write_text("\n".join(lines).strip() + "\n")


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = _parse_args(argv)
    try:
        cfg = _resolve_config(args)
        source = source_from_config(cfg, args.data_dir)
        today = date.today()
        year, month = parse_month(args.month or today.strftime(MONTH_FMT))
        months = engine.month_sequence(year, month, args.months)
        as_of = parse_day(args.as_of) if args.as_of else today
    except ValueError as exc:
        print(str(exc), file=sys.stderr)
        sys.exit(2)
    _configure_logging(cfg.logging_level)

    try:
        result = source.fetch_personnel()
    except InvalidAssignment as exc:
        print(str(exc), file=sys.stderr)
        sys.exit(1)
    if not result.ok:
        print(f"could not load personnel: {result.error}", file=sys.stderr)
        sys.exit(1)

    people = filter_personnel(
        result.items,
        search=args.search,
        contract=args.contract,
        min_search_chars=cfg.search_min_chars,
    )
    logging.info("reporting %d of %d personnel", len(people), len(result.items))
    utilization_df = engine.utilization_frame(people, months, cfg.capacity_pct)
    rollup_df = rollup_frame(rollup_by_contract(assignments_by_person(result.items), as_of), as_of)

    if args.dry_run:
        _print_dry_run_summary(utilization_df, rollup_df)
        return

    outdir_path = ensure_directory(_resolve_outdir(args))
    utilization_path = outdir_path / "utilization.csv"
    rollup_path = outdir_path / "contract_rollup.csv"
    write_csv(utilization_df, utilization_path)
    write_csv(rollup_df, rollup_path)
    _write_overallocation_markdown(people, months, cfg.capacity_pct, outdir_path)
    print(f"Wrote {utilization_path}")
    print(f"Wrote {rollup_path}")
    print(f"Wrote {outdir_path / 'overallocation.md'}")
    if utilization_df.empty:
        return
    overallocated = utilization_df[utilization_df["overallocated"].astype(bool)]
    if not overallocated.empty:
        print("Overallocated:")
        for row in overallocated.itertuples(index=False):
            print(f"- {row.person} {row.month_label}: peak {row.peak_pct}%")


if __name__ == "__main__":
    main()
