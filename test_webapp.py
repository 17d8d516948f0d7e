import json

import pytest

from staffing_tracker.models import DashboardConfig
from staffing_tracker.sources import FetchResult, FileAssignmentSource
from webapp.app import create_app


class DownSource:
    def fetch_personnel(self) -> FetchResult:
        return FetchResult.failure("fetch from http://localhost:3000 failed: connection refused")

    def fetch_charge_codes(self) -> FetchResult:
        return FetchResult.failure("fetch from http://localhost:3000 failed: connection refused")


@pytest.fixture
def client(data_dir):
    app = create_app(source=FileAssignmentSource(data_dir), config=DashboardConfig())
    app.testing = True
    return app.test_client()


def test_contracts(client):
    response = client.get("/api/contracts")
    assert response.status_code == 200
    assert response.get_json() == [
        {"value": "", "label": "All Contracts"},
        {"value": "Contract A", "label": "Contract A - Apollo"},
        {"value": "Contract B", "label": "Contract B"},
        {"value": "Contract C", "label": "Contract C - Gemini"},
    ]


def test_utilization_for_month(client):
    response = client.get("/api/utilization?month=2025-03")
    assert response.status_code == 200
    payload = response.get_json()
    assert payload["label"] == "Mar 2025"
    by_name = {entry["name"]: entry for entry in payload["personnel"]}
    assert by_name["Morgan Lee"]["average_percentage"] == 64.5
    assert by_name["Morgan Lee"]["peak_percentage"] == 110
    assert by_name["Morgan Lee"]["is_overallocated"] is True
    assert by_name["Sean Watson"]["is_overallocated"] is False
    assert by_name["Sean Watson"]["monthly_total_pct"] == 100
    assert by_name["Sean Watson"]["coverage_percentage"] == 80
    assert by_name["Morgan Lee"]["coverage_percentage"] is None


def test_utilization_filters(client):
    payload = client.get("/api/utilization?month=2025-03&contract=Contract%20C&search=morg").get_json()
    assert [entry["name"] for entry in payload["personnel"]] == ["Morgan Lee"]


def test_utilization_bad_month(client):
    response = client.get("/api/utilization?month=March")
    assert response.status_code == 400
    assert "error" in response.get_json()


def test_out_of_range_year_is_bad_request(client):
    for path in ("/api/utilization?month=0000-01", "/api/personnel/5/daily?month=99999-01"):
        response = client.get(path)
        assert response.status_code == 400
        assert "year" in response.get_json()["error"]


def test_daily_series(client):
    response = client.get("/api/personnel/5/daily?month=2025-03")
    assert response.status_code == 200
    payload = response.get_json()
    assert len(payload["days"]) == 31
    assert payload["days"][9] == {"date": "2025-03-10", "percentage": 110}
    assert payload["overallocated_days"] == [10, 11, 12, 13, 14, 15]
    assert payload["average_percentage"] == 64.5


def test_daily_series_unknown_person(client):
    assert client.get("/api/personnel/99/daily?month=2025-03").status_code == 404


def test_rollup(client):
    payload = client.get("/api/rollup?as_of=2025-03-10").get_json()
    assert payload == {
        "as_of": "2025-03-10",
        "contracts": {"Contract A": 4, "Contract B": 3, "Contract C": 2},
    }


def test_rollup_bad_date(client):
    assert client.get("/api/rollup?as_of=someday").status_code == 400


def test_source_failure_is_not_masked():
    app = create_app(source=DownSource(), config=DashboardConfig())
    client = app.test_client()
    response = client.get("/api/utilization?month=2025-03")
    assert response.status_code == 502
    assert "connection refused" in response.get_json()["error"]
    assert client.get("/api/contracts").status_code == 502


def test_invalid_assignment_is_unprocessable(data_dir, personnel_records):
    personnel_records[1]["charge_codes"][0]["percentage"] = 0
    (data_dir / "personnel.json").write_text(json.dumps(personnel_records))
    client = create_app(source=FileAssignmentSource(data_dir), config=DashboardConfig()).test_client()
    response = client.get("/api/rollup?as_of=2025-03-10")
    assert response.status_code == 422
    assert response.get_json()["field"] == "percentage"
