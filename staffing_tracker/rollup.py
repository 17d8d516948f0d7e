from __future__ import annotations

from collections import defaultdict
from datetime import date
from typing import Dict, Iterable, List, Mapping, Set

import pandas as pd

from .models import ChargeCode, Interval, Person

ALL_CONTRACTS = {"value": "", "label": "All Contracts"}


def rollup_by_contract(
    assignments_by_person: Mapping[str, Iterable[Interval]], as_of: date
) -> Dict[str, int]:
    """Count distinct people charging to each contract on ``as_of``."""
    people_by_contract: Dict[str, Set[str]] = defaultdict(set)
    for person_id, assignments in assignments_by_person.items():
        for assignment in assignments:
            if not assignment.contract:
                continue
            if assignment.is_active_on(as_of):
                people_by_contract[assignment.contract].add(person_id)
    return {contract: len(people_by_contract[contract]) for contract in sorted(people_by_contract)}


def assignments_by_person(people: Iterable[Person]) -> Dict[str, List[Interval]]:
    grouped: Dict[str, List[Interval]] = defaultdict(list)
    for person in people:
        grouped[person.id].extend(person.assignments)
    return dict(grouped)


def list_available_contracts(charge_codes: Iterable[ChargeCode]) -> List[Dict[str, str]]:
    labels: Dict[str, str] = {}
    for code in charge_codes:
        if not code.contract:
            continue
        labels[code.contract] = f"{code.contract} - {code.program}" if code.program else code.contract
    return [dict(ALL_CONTRACTS)] + [{"value": value, "label": label} for value, label in labels.items()]


def filter_personnel(
    people: Iterable[Person],
    search: str = "",
    contract: str = "",
    min_search_chars: int = 3,
) -> List[Person]:
    result = list(people)
    query = (search or "").strip().lower()
    if query and len(query) >= min_search_chars:
        result = [person for person in result if query in person.name.lower()]
    if contract:
        result = [
            person
            for person in result
            if any(assignment.contract == contract for assignment in person.assignments)
        ]
    return result


def rollup_frame(rollup: Mapping[str, int], as_of: date) -> pd.DataFrame:
    rows = [
        {"as_of": as_of.isoformat(), "contract": contract, "headcount": count}
        for contract, count in rollup.items()
    ]
    return pd.DataFrame(rows, columns=["as_of", "contract", "headcount"])
