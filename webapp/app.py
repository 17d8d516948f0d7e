from __future__ import annotations

import os
from dataclasses import replace
from datetime import date
from pathlib import Path
from typing import Dict, Optional, Tuple

from flask import Flask, jsonify, request

from staffing_tracker import engine
from staffing_tracker.io_utils import MONTH_FMT, load_config, parse_day, parse_month
from staffing_tracker.models import DashboardConfig, Person
from staffing_tracker.normalize import InvalidAssignment
from staffing_tracker.rollup import (
    assignments_by_person,
    filter_personnel,
    list_available_contracts,
    rollup_by_contract,
)
from staffing_tracker.sources import FetchResult, source_from_config


class SourceUnavailable(RuntimeError):
    pass


def _resolve_config() -> DashboardConfig:
    config_path = os.getenv("STAFFING_CONFIG")
    cfg = load_config(Path(config_path).expanduser()) if config_path else DashboardConfig()
    api_base = os.getenv("STAFFING_API_BASE")
    if api_base:
        cfg = replace(cfg, api_base=api_base.rstrip("/"))
    return cfg


def _resolve_data_dir() -> Optional[Path]:
    env_value = os.getenv("STAFFING_DATA_DIR")
    if env_value:
        return Path(env_value).expanduser().resolve()
    return None


def _month_arg() -> Tuple[int, int]:
    return parse_month(request.args.get("month") or date.today().strftime(MONTH_FMT))


def _unwrap(result: FetchResult) -> tuple:
    if not result.ok:
        raise SourceUnavailable(result.error)
    return result.items


def _person_payload(person: Person, year: int, month: int, capacity_pct: int) -> Dict[str, object]:
    summary = engine.summarize_person(person, year, month, capacity_pct)
    return {
        "id": person.id,
        "name": person.name,
        "email": person.email,
        "position": person.position,
        "location": person.location,
        "coverage_percentage": person.coverage_percentage,
        "contracts": list(person.contracts()),
        "monthly_total_pct": engine.monthly_total(person.assignments, year, month),
        **summary.to_dict(),
    }


def create_app(source=None, config: Optional[DashboardConfig] = None) -> Flask:
    app = Flask(__name__)
    cfg = config or _resolve_config()
    if source is None:
        source = source_from_config(cfg, _resolve_data_dir())
    app.config["STAFFING_CONFIG"] = cfg
    app.config["STAFFING_SOURCE"] = source

    @app.errorhandler(SourceUnavailable)
    def source_unavailable(exc: SourceUnavailable):
        return jsonify({"error": str(exc)}), 502

    @app.errorhandler(InvalidAssignment)
    def invalid_assignment(exc: InvalidAssignment):
        return jsonify({"error": str(exc), "field": exc.field}), 422

    @app.get("/api/contracts")
    def contracts():
        charge_codes = _unwrap(source.fetch_charge_codes())
        return jsonify(list_available_contracts(charge_codes))

    @app.get("/api/utilization")
    def utilization():
        try:
            year, month = _month_arg()
        except ValueError as exc:
            return jsonify({"error": str(exc)}), 400
        people = filter_personnel(
            _unwrap(source.fetch_personnel()),
            search=request.args.get("search", ""),
            contract=request.args.get("contract", ""),
            min_search_chars=cfg.search_min_chars,
        )
        return jsonify(
            {
                "month": f"{year:04d}-{month:02d}",
                "label": engine.month_label(year, month),
                "personnel": [_person_payload(person, year, month, cfg.capacity_pct) for person in people],
            }
        )

    @app.get("/api/personnel/<person_id>/daily")
    def daily(person_id: str):
        try:
            year, month = _month_arg()
        except ValueError as exc:
            return jsonify({"error": str(exc)}), 400
        people = _unwrap(source.fetch_personnel())
        person = next((item for item in people if item.id == person_id), None)
        if person is None:
            return jsonify({"error": "person not found"}), 404
        series = engine.compute_daily_series(person.assignments, year, month)
        summary = engine.summarize_month(series, cfg.capacity_pct)
        return jsonify(
            {
                "id": person.id,
                "name": person.name,
                "month": f"{year:04d}-{month:02d}",
                "days": [
                    {"date": day.isoformat(), "percentage": value}
                    for day, value in zip(engine.series_dates(series), series)
                ],
                "overallocated_days": engine.overallocated_days(series, cfg.capacity_pct),
                **summary.to_dict(),
            }
        )

    @app.get("/api/rollup")
    def rollup():
        try:
            as_of = parse_day(request.args["as_of"]) if request.args.get("as_of") else date.today()
        except ValueError as exc:
            return jsonify({"error": str(exc)}), 400
        people = _unwrap(source.fetch_personnel())
        return jsonify(
            {
                "as_of": as_of.isoformat(),
                "contracts": rollup_by_contract(assignments_by_person(people), as_of),
            }
        )

    return app


if __name__ == "__main__":
    create_app().run(debug=True)
