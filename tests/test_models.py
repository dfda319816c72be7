"""Decoding rules for the branch, visit and event records."""

from __future__ import annotations

from datetime import date
from urllib.parse import parse_qs, urlparse

import pytest

from models import COORDINATE_SENTINEL, Branch, Coordinate, Event, RecordError, VisitRecord
from tests.factories import make_branch


def test_branch_from_record_maps_capitalized_keys() -> None:
    raw = make_branch(
        7, "AB", "Albion", "43.739826", "-79.584096",
        KidsStop=1, TeenCouncil=0, NBHDNo=2, NBHDName="Mount Olive", PresentSiteYear=2017,
    )
    branch = Branch.from_record(raw)

    assert branch.id == 7
    assert branch.branch_code == "AB"
    assert branch.branch_name == "Albion"
    assert branch.kids_stop == 1
    assert branch.teen_council == 0
    assert branch.youth_hub is None
    assert branch.nbhd_name == "Mount Olive"
    assert branch.present_site_year == 2017
    assert branch.coordinate == Coordinate(43.739826, -79.584096)


@pytest.mark.parametrize(
    "lat, lon, expected",
    [
        ("43.7", "-79.4", Coordinate(43.7, -79.4)),
        ("", "-79.4", Coordinate(COORDINATE_SENTINEL, -79.4)),
        ("n/a", "abc", Coordinate(COORDINATE_SENTINEL, COORDINATE_SENTINEL)),
        ("nan", "inf", Coordinate(COORDINATE_SENTINEL, COORDINATE_SENTINEL)),
        (None, " -79.4 ", Coordinate(COORDINATE_SENTINEL, -79.4)),
    ],
)
def test_coordinate_parse_uses_sentinel_for_bad_text(lat, lon, expected) -> None:
    assert Coordinate.parse(lat, lon) == expected


def test_unparseable_coordinate_does_not_fail_the_record() -> None:
    branch = Branch.from_record(make_branch(1, "AB", "Albion", "unknown", ""))
    assert branch.coordinate == Coordinate(0.0, 0.0)


def test_null_or_missing_coordinates_load_with_sentinel() -> None:
    raw = make_branch(1, "AB", "Albion", None, "-79.5")
    del raw["Long"]
    numeric = make_branch(2, "ACD", "Agincourt", 43.785353, -79.293265)

    branch = Branch.from_record(raw)

    assert branch.lat is None
    assert branch.long is None
    assert branch.coordinate == Coordinate(COORDINATE_SENTINEL, COORDINATE_SENTINEL)
    assert Branch.from_record(numeric).coordinate == Coordinate(43.785353, -79.293265)


def test_directions_url_targets_branch_coordinate() -> None:
    branch = Branch.from_record(make_branch(1, "AB", "Albion", "43.739826", "-79.584096"))

    url = urlparse(branch.directions_url())
    query = parse_qs(url.query)

    assert url.netloc == "www.openstreetmap.org"
    assert url.path == "/directions"
    assert query["engine"] == ["fossgis_osrm_car"]
    assert query["route"] == [";43.739826,-79.584096"]


def test_directions_url_starts_from_origin_when_known() -> None:
    branch = Branch.from_record(make_branch(1, "AB", "Albion", "43.739826", "-79.584096"))

    query = parse_qs(urlparse(branch.directions_url(Coordinate(43.6534, -79.3841))).query)

    assert query["route"] == ["43.6534,-79.3841;43.739826,-79.584096"]


def test_offered_services_only_lists_flags_set_to_one() -> None:
    branch = Branch.from_record(
        make_branch(1, "LHS", "Lillian H. Smith", "43.65", "-79.39",
                    KidsStop=1, CLC=0, DIH=None, AdultLiteracyProgram=1, TeenCouncil=1)
    )
    assert branch.offered_services() == ["KidsStop", "Teen Council", "Adult Literacy"]


def test_website_url_requires_http_scheme() -> None:
    good = Branch.from_record(make_branch(1, "AB", "Albion", "0", "0"))
    bad = Branch.from_record(make_branch(2, "AC", "Acme", "0", "0", Website="not a url"))
    assert good.website_url.startswith("https://")
    assert bad.website_url is None


def test_malformed_website_host_has_no_url() -> None:
    branch = Branch.from_record(make_branch(1, "AB", "Albion", "0", "0", Website="http://[tpl"))
    assert branch.website_url is None


def test_branch_missing_required_field_raises() -> None:
    raw = make_branch(1, "AB", "Albion", "43.7", "-79.4")
    del raw["BranchName"]
    with pytest.raises(RecordError, match="BranchName"):
        Branch.from_record(raw)


def test_branch_wrong_type_raises() -> None:
    raw = make_branch(1, "AB", "Albion", "43.7", "-79.4", KidsStop="yes")
    with pytest.raises(RecordError, match="KidsStop"):
        Branch.from_record(raw)


def test_branch_id_must_be_integer() -> None:
    raw = make_branch(1, "AB", "Albion", "43.7", "-79.4")
    raw["_id"] = "1"
    with pytest.raises(RecordError, match="_id"):
        Branch.from_record(raw)


def test_visit_count_tolerates_non_numeric_text() -> None:
    numeric = VisitRecord.from_record({"_id": 1, "Year": 2023, "BranchCode": "AB", "Visits": "158236"})
    closed = VisitRecord.from_record({"_id": 2, "Year": 2021, "BranchCode": "AB", "Visits": "closed"})
    huge = VisitRecord.from_record({"_id": 3, "Year": 2023, "BranchCode": "AB", "Visits": "99999999999999999999999"})

    assert numeric.visit_count == 158236
    assert closed.visits == "closed"
    assert closed.visit_count is None
    assert huge.visit_count == 99999999999999999999999


def test_numeric_visits_are_kept_as_text() -> None:
    visit = VisitRecord.from_record({"_id": 1, "Year": 2023, "BranchCode": "AB", "Visits": 50000})
    assert visit.visits == "50000"


def test_event_none_literal_means_absent() -> None:
    event = Event.from_record(
        {
            "_id": 1,
            "title": "Book Club",
            "startdate": "2025-09-05",
            "enddate": "2025-09-05",
            "starttime": "None",
            "endtime": "15:00:00",
            "library": "Albion",
            "location": "None",
            "description": "Monthly meeting.",
        }
    )
    assert event.starttime is None
    assert event.endtime == "15:00:00"
    assert event.location is None
    assert event.start_date == date(2025, 9, 5)


def test_event_optional_fields_may_be_missing() -> None:
    event = Event.from_record(
        {"_id": 2, "title": "Exhibit", "startdate": "TBD", "enddate": "TBD",
         "library": "Albion", "description": "Ongoing."}
    )
    assert event.starttime is None
    assert event.location is None
    assert event.start_date is None
