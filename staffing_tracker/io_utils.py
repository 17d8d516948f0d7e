from __future__ import annotations

import json
from datetime import MAXYEAR, MINYEAR, date
from pathlib import Path
from typing import Tuple

import pandas as pd
from dateutil import parser as dateparser

from .models import CAPACITY_PCT, DashboardConfig

MONTH_FMT = "%Y-%m"
VALID_LOGGING_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


def parse_month(value: str) -> Tuple[int, int]:
    parts = str(value).strip().split("-")
    if len(parts) != 2 or not all(part.isdigit() for part in parts):
        raise ValueError(f"month must look like YYYY-MM: {value!r}")
    year, month = int(parts[0]), int(parts[1])
    if not MINYEAR <= year <= MAXYEAR:
        raise ValueError(f"year must be in {MINYEAR}-{MAXYEAR}: {value!r}")
    if not 1 <= month <= 12:
        raise ValueError(f"month must be in 1-12: {value!r}")
    return year, month


def parse_day(value: str) -> date:
    try:
        return dateparser.isoparse(str(value).strip()).date()
    except (ValueError, TypeError, OverflowError) as exc:
        raise ValueError(f"invalid date: {value!r}") from exc


def load_config(path: str | Path) -> DashboardConfig:
    try:
        data = json.loads(Path(path).read_text())
    except json.JSONDecodeError as exc:
        raise ValueError(f"config file is not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise ValueError("config must be a JSON object")

    api_base = data.get("api_base")
    if api_base is not None and (not isinstance(api_base, str) or not api_base.strip()):
        raise ValueError("api_base must be null or a non-empty string")

    timeout = data.get("timeout_seconds", 10.0)
    if isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout <= 0:
        raise ValueError("timeout_seconds must be a positive number")

    capacity_pct = data.get("capacity_pct", CAPACITY_PCT)
    if isinstance(capacity_pct, bool) or not isinstance(capacity_pct, int) or capacity_pct <= 0:
        raise ValueError("capacity_pct must be a positive integer")

    search_min_chars = data.get("search_min_chars", 3)
    if isinstance(search_min_chars, bool) or not isinstance(search_min_chars, int) or search_min_chars < 0:
        raise ValueError("search_min_chars must be a non-negative integer")

    logging_level = str(data.get("logging_level", "INFO")).upper()
    if logging_level not in VALID_LOGGING_LEVELS:
        raise ValueError(f"unsupported logging_level '{logging_level}'")

    return DashboardConfig(
        api_base=api_base.strip().rstrip("/") if api_base else None,
        timeout_seconds=float(timeout),
        capacity_pct=capacity_pct,
        search_min_chars=search_min_chars,
        logging_level=logging_level,
    )


def ensure_directory(path: str | Path) -> Path:
    target = Path(path)
    target.mkdir(parents=True, exist_ok=True)
    return target


def write_csv(df: pd.DataFrame, path: str | Path) -> None:
    Path(path).parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(path, index=False)
