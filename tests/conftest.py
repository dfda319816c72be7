from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest

from config import LibraryConfig
from tests.factories import make_branch


@pytest.fixture
def branch_records() -> List[Dict[str, Any]]:
    return [
        make_branch(1, "AB", "Albion", "43.739826", "-79.584096", KidsStop=1, YouthHub=1),
        make_branch(2, "ACD", "Agincourt", "43.785353", "-79.293265", CLC=1, NBHDName="Tam O'Shanter-Sullivan"),
        make_branch(3, "CHB", "City Hall", "43.652847", "-79.384889"),
        make_branch(4, "TRL", "Toronto Reference Library", "43.671840", "-79.386783", DIH=1),
    ]


@pytest.fixture
def visit_records() -> List[Dict[str, Any]]:
    return [
        {"_id": 1, "Year": 2022, "BranchCode": "AB", "Visits": "112409"},
        {"_id": 2, "Year": 2023, "BranchCode": "AB", "Visits": "158236"},
        {"_id": 3, "Year": 2023, "BranchCode": "XY", "Visits": "1"},
        {"_id": 4, "Year": 2023, "BranchCode": "CHB", "Visits": "92318"},
    ]


@pytest.fixture
def event_records() -> List[Dict[str, Any]]:
    return [
        {
            "_id": 101,
            "title": "Tea & Entertainment",
            "startdate": "2025-09-05",
            "enddate": "2025-12-19",
            "starttime": "14:00:00",
            "endtime": "None",
            "library": "Albion",
            "location": "None",
            "description": "Tea and live music.",
        },
        {
            "_id": 102,
            "title": "Resume Clinic",
            "startdate": "2025-08-02",
            "enddate": "2025-08-02",
            "library": "City Hall",
            "description": "Resume reviews.",
        },
    ]


@pytest.fixture
def write_datasets(tmp_path: Path):
    """Write JSON documents into tmp_path and return a config pointing at them."""

    def _write(
        branches: Optional[Any] = None,
        visits: Optional[Any] = None,
        events: Optional[Any] = None,
        *,
        strict: bool = True,
    ) -> LibraryConfig:
        cfg = LibraryConfig(
            data_dir=tmp_path,
            branches_resource="branches.json",
            visits_resource="visits.json",
            events_resource="events.json",
            max_workers=3,
            strict_decoding=strict,
            log_level="INFO",
            geocoder_user_agent="tests",
        )
        for name, document in (
            (cfg.branches_resource, branches),
            (cfg.visits_resource, visits),
            (cfg.events_resource, events),
        ):
            if document is not None:
                (tmp_path / name).write_text(json.dumps(document), encoding="utf-8")
        return cfg

    return _write
