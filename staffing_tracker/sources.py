"""
Adapters that fetch personnel, assignments and charge codes.

Each fetch returns a :class:`FetchResult` so callers can tell a failed fetch
from a legitimately empty one. Invalid assignment records are not a fetch
failure: :class:`~staffing_tracker.normalize.InvalidAssignment` propagates.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Iterable, List, Optional, Tuple

import httpx

from .models import ChargeCode, DashboardConfig, Person
from .normalize import normalize_assignments, normalize_charge_code, normalize_person

LOGGER = logging.getLogger(__name__)

PERSONNEL_FILE = "personnel.json"
CHARGE_CODES_FILE = "charge_codes.json"


class MalformedRecord(RuntimeError):
    """A personnel or charge-code payload did not have the expected shape."""


@dataclass(frozen=True)
class FetchResult:
    items: Tuple[Any, ...] = ()
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, items: Iterable[Any]) -> "FetchResult":
        return cls(items=tuple(items))

    @classmethod
    def failure(cls, message: str) -> "FetchResult":
        return cls(items=(), error=message)


def _expect_list(value: Any, what: str) -> list:
    if not isinstance(value, list):
        raise MalformedRecord(f"expected a JSON array of {what}")
    return value


def _person_from_record(record: Any, assignment_records: Any) -> Person:
    if not isinstance(record, dict):
        raise MalformedRecord("personnel entries must be objects")
    assignments = normalize_assignments(_expect_list(assignment_records, f"charge codes for {record.get('id')}"))
    try:
        return normalize_person(record, assignments)
    except ValueError as exc:
        raise MalformedRecord(str(exc)) from exc


def _charge_codes_from_records(records: Any) -> List[ChargeCode]:
    codes: List[ChargeCode] = []
    for record in _expect_list(records, "charge codes"):
        try:
            codes.append(normalize_charge_code(record))
        except ValueError as exc:
            raise MalformedRecord(str(exc)) from exc
    return codes


class ApiAssignmentSource:
    """Reads from the staffing CRUD API."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = client

    def _open_client(self) -> httpx.Client:
        if self._client is not None:
            return self._client
        return httpx.Client(
            base_url=self.base_url,
            headers={"Accept": "application/json"},
            timeout=self.timeout,
        )

    @staticmethod
    def _get_json(client: httpx.Client, path: str) -> Any:
        response = client.get(path)
        response.raise_for_status()
        return response.json()

    def _fetch(self, loader: Callable[[httpx.Client], List[Any]]) -> FetchResult:
        client: Optional[httpx.Client] = None
        try:
            client = self._open_client()
            return FetchResult.success(loader(client))
        except (httpx.HTTPError, httpx.InvalidURL, json.JSONDecodeError, MalformedRecord) as exc:
            LOGGER.warning("fetch from %s failed: %s", self.base_url, exc)
            return FetchResult.failure(f"fetch from {self.base_url} failed: {exc}")
        finally:
            if client is not None and client is not self._client:
                client.close()

    def _load_personnel(self, client: httpx.Client) -> List[Person]:
        people: List[Person] = []
        for record in _expect_list(self._get_json(client, "/api/personnel"), "personnel"):
            if not isinstance(record, dict):
                raise MalformedRecord("personnel entries must be objects")
            person_id = record.get("id")
            if person_id is None or str(person_id).strip() == "":
                raise MalformedRecord("personnel id is required")
            charge_codes = self._get_json(client, f"/api/personnel/{str(person_id).strip()}/charge-codes")
            people.append(_person_from_record(record, charge_codes))
        LOGGER.debug("fetched %d personnel records from %s", len(people), self.base_url)
        return people

    def _load_charge_codes(self, client: httpx.Client) -> List[ChargeCode]:
        return _charge_codes_from_records(self._get_json(client, "/api/charge-codes"))

    def fetch_personnel(self) -> FetchResult:
        return self._fetch(self._load_personnel)

    def fetch_charge_codes(self) -> FetchResult:
        return self._fetch(self._load_charge_codes)


class FileAssignmentSource:
    """Reads JSON exports of the API from a directory."""

    def __init__(self, input_dir: str | Path) -> None:
        self.input_dir = Path(input_dir)

    def _read(self, name: str, required: bool) -> Any:
        path = self.input_dir / name
        if not path.is_file():
            if required:
                raise MalformedRecord(f"{name} not found in {self.input_dir}")
            return []
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise MalformedRecord(f"could not read {path}: {exc}") from exc

    def _fetch(self, loader: Callable[[], List[Any]]) -> FetchResult:
        try:
            return FetchResult.success(loader())
        except MalformedRecord as exc:
            LOGGER.warning("fetch from %s failed: %s", self.input_dir, exc)
            return FetchResult.failure(str(exc))

    def _load_personnel(self) -> List[Person]:
        records = _expect_list(self._read(PERSONNEL_FILE, required=True), "personnel")
        return [
            _person_from_record(record, record.get("charge_codes", []) if isinstance(record, dict) else [])
            for record in records
        ]

    def _load_charge_codes(self) -> List[ChargeCode]:
        return _charge_codes_from_records(self._read(CHARGE_CODES_FILE, required=False))

    def fetch_personnel(self) -> FetchResult:
        return self._fetch(self._load_personnel)

    def fetch_charge_codes(self) -> FetchResult:
        return self._fetch(self._load_charge_codes)


def source_from_config(config: DashboardConfig, data_dir: Optional[str | Path] = None):
    if data_dir is not None:
        return FileAssignmentSource(data_dir)
    if config.api_base:
        return ApiAssignmentSource(config.api_base, timeout=config.timeout_seconds)
    raise ValueError("either a data directory or api_base is required")
