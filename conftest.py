from __future__ import annotations

import json
from pathlib import Path
from typing import Dict, List

import pytest


def _assignment(
    assignment_id: int,
    line_item_id: int,
    percentage: int,
    start: str,
    end: str,
    contract: str,
) -> Dict[str, object]:
    return {
        "id": assignment_id,
        "line_item_id": line_item_id,
        "charge_code_name": f"Charge Code {line_item_id - 100}",
        "percentage": percentage,
        "start_date": start,
        "end_date": end,
        "contract_number": contract,
    }


PERSONNEL_RECORDS: List[Dict[str, object]] = [
    {
        "id": 1,
        "first_name": "Sean",
        "last_name": "Watson",
        "email_address": "sean.watson@example.com",
        "position": "Developer",
        "location_name": "Remote",
        "coverage_percentage": 80,
        "charge_codes": [
            _assignment(1, 101, 50, "2025-01-01", "2026-12-31", "Contract A"),
            _assignment(2, 102, 30, "2025-03-01", "2025-07-31", "Contract B"),
            _assignment(3, 103, 20, "2025-01-01", "2025-05-31", "Contract A"),
        ],
    },
    {
        "id": 2,
        "first_name": "Al",
        "last_name": "Almanza",
        "email_address": "al.almanza@example.com",
        "position": "Project Manager",
        "location_name": "Office A",
        "charge_codes": [
            _assignment(4, 101, 40, "2025-01-01", "2025-12-31", "Contract A"),
            _assignment(5, 104, 60, "2025-01-01", "2025-10-31", "Contract C"),
        ],
    },
    {
        "id": 3,
        "first_name": "DeShawn",
        "last_name": "Baldwin",
        "email_address": "deshawn.baldwin@example.com",
        "position": "Designer",
        "location_name": "Office B",
        "charge_codes": [
            _assignment(6, 102, 70, "2025-01-01", "2025-12-31", "Contract B"),
            _assignment(7, 105, 30, "2025-04-01", "2025-09-30", "Contract B"),
        ],
    },
    {
        "id": 4,
        "first_name": "Jeff",
        "last_name": "Vaught",
        "email_address": "jeff.vaught@example.com",
        "position": "Engineer",
        "location_name": "Office A",
        "charge_codes": [
            _assignment(8, 103, 80, "2025-02-01", "2025-10-31", "Contract A"),
            _assignment(9, 105, 20, "2025-01-01", "2025-12-31", "Contract B"),
        ],
    },
    {
        "id": 5,
        "first_name": "Morgan",
        "last_name": "Lee",
        "email_address": "morgan.lee@example.com",
        "position": "Analyst",
        "location_name": "Remote",
        "charge_codes": [
            _assignment(10, 104, 60, "2025-03-01", "2025-03-15", "Contract C"),
            _assignment(11, 101, 50, "2025-03-10", "2025-03-31", "Contract A"),
        ],
    },
]

CHARGE_CODE_RECORDS: List[Dict[str, object]] = [
    {"id": 101, "charge_code_name": "Charge Code 1", "contract_number": "Contract A", "program_name": "Apollo"},
    {"id": 102, "charge_code_name": "Charge Code 2", "contract_number": "Contract B", "program_name": ""},
    {"id": 103, "task_ti": "T3", "project_name": "Apollo Ops", "contract_number": "Contract A", "program_name": "Apollo"},
    {"id": 104, "charge_code_name": "Charge Code 4", "contract_number": "Contract C", "program_name": "Gemini"},
    {"id": 105, "charge_code_name": "Charge Code 5", "contract_number": "Contract B", "program_name": None},
]


@pytest.fixture
def personnel_records() -> List[Dict[str, object]]:
    return json.loads(json.dumps(PERSONNEL_RECORDS))


@pytest.fixture
def charge_code_records() -> List[Dict[str, object]]:
    return json.loads(json.dumps(CHARGE_CODE_RECORDS))


@pytest.fixture
def data_dir(tmp_path: Path, personnel_records, charge_code_records) -> Path:
    target = tmp_path / "staffing"
    target.mkdir()
    (target / "personnel.json").write_text(json.dumps(personnel_records, indent=2))
    (target / "charge_codes.json").write_text(json.dumps(charge_code_records, indent=2))
    return target
