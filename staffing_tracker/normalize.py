from __future__ import annotations

from datetime import date, datetime
from typing import Iterable, List, Mapping, Optional, Sequence

from dateutil import parser as dateparser

from .models import ChargeCode, Interval, Person

MIN_PERCENTAGE = 1
MAX_PERCENTAGE = 100


class InvalidAssignment(ValueError):
    def __init__(self, field: str, value: object, reason: str) -> None:
        super().__init__(f"invalid assignment {field}={value!r}: {reason}")
        self.field = field
        self.value = value
        self.reason = reason


def _first_present(raw: Mapping[str, object], *keys: str) -> object:
    for key in keys:
        value = raw.get(key)
        if value is not None and value != "":
            return value
    return None


def _text(value: object) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _parse_day(value: object, field_name: str) -> date:
    if value is None or (isinstance(value, str) and value.strip() == ""):
        raise InvalidAssignment(field_name, value, "date is required")
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return dateparser.isoparse(str(value).strip()).date()
    except (ValueError, TypeError, OverflowError) as exc:
        raise InvalidAssignment(field_name, value, "not an ISO date") from exc


def _parse_optional_day(value: object) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return dateparser.isoparse(str(value).strip()).date()
    except (ValueError, TypeError, OverflowError) as exc:
        raise ValueError(f"invalid date: {value}") from exc


def _parse_percentage(value: object) -> int:
    if value is None or isinstance(value, bool):
        raise InvalidAssignment("percentage", value, "an integer is required")
    if isinstance(value, int):
        number = value
    elif isinstance(value, float):
        if not value.is_integer():
            raise InvalidAssignment("percentage", value, "must be a whole number")
        number = int(value)
    elif isinstance(value, str):
        stripped = value.strip()
        try:
            number = int(stripped)
        except ValueError:
            try:
                as_float = float(stripped)
            except ValueError as exc:
                raise InvalidAssignment("percentage", value, "not a number") from exc
            if not as_float.is_integer():
                raise InvalidAssignment("percentage", value, "must be a whole number")
            number = int(as_float)
    else:
        raise InvalidAssignment("percentage", value, "an integer is required")
    if not MIN_PERCENTAGE <= number <= MAX_PERCENTAGE:
        raise InvalidAssignment(
            "percentage", value, f"must be between {MIN_PERCENTAGE} and {MAX_PERCENTAGE}"
        )
    return number


def _charge_code_label(raw: Mapping[str, object]) -> str:
    name = _text(_first_present(raw, "name", "charge_code_name"))
    if name:
        return name
    task = _text(raw.get("task_ti"))
    project = _text(raw.get("project_name"))
    if task or project:
        return f"{task} - {project}"
    return ""


def normalize_assignment(raw: Mapping[str, object]) -> Interval:
    """Validate a raw assignment record and turn it into an :class:`Interval`.

    Both the dashboard's camelCase keys and the REST API's snake_case keys
    are understood. Percentage is checked first so that a record carrying
    only a bad percentage reports that field.
    """
    if not isinstance(raw, Mapping):
        raise InvalidAssignment("record", raw, "assignment must be an object")
    percentage = _parse_percentage(raw.get("percentage"))
    start = _parse_day(_first_present(raw, "startDate", "start_date"), "startDate")
    end = _parse_day(_first_present(raw, "endDate", "end_date"), "endDate")
    if start > end:
        raise InvalidAssignment("endDate", end.isoformat(), f"ends before start {start.isoformat()}")
    return Interval(
        start=start,
        end=end,
        percentage=percentage,
        contract=_text(_first_present(raw, "contract", "contract_number")),
        assignment_id=_text(raw.get("id")),
        charge_code_id=_text(_first_present(raw, "chargeCodeId", "line_item_id", "charge_code_id")),
        name=_charge_code_label(raw),
    )


def normalize_assignments(raws: Iterable[Mapping[str, object]]) -> List[Interval]:
    return [normalize_assignment(raw) for raw in raws]


def _parse_coverage(value: object) -> Optional[float]:
    if value is None or (isinstance(value, str) and value.strip() == ""):
        return None
    if isinstance(value, bool):
        raise ValueError(f"invalid coverage_percentage: {value!r}")
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"invalid coverage_percentage: {value!r}") from exc


def normalize_person(raw: Mapping[str, object], assignments: Sequence[Interval] = ()) -> Person:
    if not isinstance(raw, Mapping):
        raise ValueError("personnel entries must be objects")
    person_id = _text(raw.get("id"))
    if not person_id:
        raise ValueError("personnel id is required")
    name = _text(raw.get("name"))
    if not name:
        name = " ".join(
            part for part in (_text(raw.get("first_name")), _text(raw.get("last_name"))) if part
        )
    if not name:
        raise ValueError(f"personnel name is required for id {person_id}")
    return Person(
        id=person_id,
        name=name,
        assignments=tuple(assignments),
        email=_text(_first_present(raw, "email", "email_address")),
        position=_text(raw.get("position")),
        location=_text(_first_present(raw, "location", "location_name")),
        coverage_percentage=_parse_coverage(raw.get("coverage_percentage")),
    )


def normalize_charge_code(raw: Mapping[str, object]) -> ChargeCode:
    if not isinstance(raw, Mapping):
        raise ValueError("charge code entries must be objects")
    code_id = _text(raw.get("id"))
    if not code_id:
        raise ValueError("charge code id is required")
    return ChargeCode(
        id=code_id,
        name=_charge_code_label(raw),
        contract=_text(_first_present(raw, "contract", "contract_number")),
        program=_text(_first_present(raw, "program", "program_name")),
        start_date=_parse_optional_day(_first_present(raw, "startDate", "start_date")),
        end_date=_parse_optional_day(_first_present(raw, "endDate", "end_date")),
    )
