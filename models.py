"""
models.py
---------
Value objects for the three library datasets.

Field names follow the bundled JSON documents:
- Branches use capitalized keys ("BranchCode", "Lat", "Long", ...)
- Visits use "Year", "BranchCode", "Visits"
- Events use lower-case keys ("startdate", "library", ...)

Every dataset carries its identity under "_id".

Each record type exposes ``from_record(raw)`` which raises :class:`RecordError`
when a required field is missing or has the wrong type. The loader decides
whether that fails the whole collection or just the record.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, List, Mapping, Optional, Tuple
from urllib.parse import urlencode, urlparse

# Optional text fields in the events feed use this literal for "no value"
NONE_SENTINEL = "None"

# Invalid or missing coordinate components parse to this value
COORDINATE_SENTINEL = 0.0

DIRECTIONS_URL = "https://www.openstreetmap.org/directions"


class RecordError(ValueError):
    """A single JSON record does not match the expected shape."""


# -------------------------
# Field helpers
# -------------------------

def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    # JSON encoders sometimes emit 2023.0 for integer columns
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return None


def _required_int(raw: Mapping[str, Any], key: str) -> int:
    value = raw.get(key)
    if value is None:
        raise RecordError(f"missing required field '{key}'")
    result = _as_int(value)
    if result is None:
        raise RecordError(f"field '{key}' expected an integer, got {type(value).__name__}")
    return result


def _optional_int(raw: Mapping[str, Any], key: str) -> Optional[int]:
    value = raw.get(key)
    if value is None:
        return None
    result = _as_int(value)
    if result is None:
        raise RecordError(f"field '{key}' expected an integer or null, got {type(value).__name__}")
    return result


def _required_str(raw: Mapping[str, Any], key: str) -> str:
    value = raw.get(key)
    if value is None:
        raise RecordError(f"missing required field '{key}'")
    if not isinstance(value, str):
        raise RecordError(f"field '{key}' expected a string, got {type(value).__name__}")
    return value


def _optional_str(raw: Mapping[str, Any], key: str) -> Optional[str]:
    value = raw.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise RecordError(f"field '{key}' expected a string or null, got {type(value).__name__}")
    return value


def _optional_text(raw: Mapping[str, Any], key: str) -> Optional[str]:
    """Like _optional_str but the literal "None" also means absent."""
    value = _optional_str(raw, key)
    if value is None or value.strip() == NONE_SENTINEL:
        return None
    return value


def _coordinate_text(raw: Mapping[str, Any], key: str) -> Optional[str]:
    """Lat/Long never fail a record: numbers become text, anything unusable becomes None."""
    value = raw.get(key)
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return repr(value)
    return None


def _parse_degrees(text: Optional[str]) -> float:
    if text is None:
        return COORDINATE_SENTINEL
    try:
        value = float(text)
    except (TypeError, ValueError):
        return COORDINATE_SENTINEL
    return value if math.isfinite(value) else COORDINATE_SENTINEL


def _parse_date(text: str) -> Optional[date]:
    try:
        return datetime.strptime(text.strip(), "%Y-%m-%d").date()
    except ValueError:
        return None


# -------------------------
# Records
# -------------------------

@dataclass(frozen=True)
class Coordinate:
    """A latitude/longitude pair in decimal degrees."""

    latitude: float
    longitude: float

    @classmethod
    def parse(cls, lat: Optional[str], lon: Optional[str]) -> "Coordinate":
        return cls(_parse_degrees(lat), _parse_degrees(lon))


# (attribute, badge label) in display order
SERVICE_LABELS: Tuple[Tuple[str, str], ...] = (
    ("kids_stop", "KidsStop"),
    ("leading_reading", "Leading Reading"),
    ("clc", "CLC"),
    ("dih", "DIH"),
    ("teen_council", "Teen Council"),
    ("youth_hub", "Youth Hub"),
    ("adult_literacy_program", "Adult Literacy"),
)


@dataclass(frozen=True)
class Branch:
    id: int
    branch_code: str
    branch_name: str
    address: str
    postal_code: str
    website: str
    telephone: str
    square_footage: str
    public_parking: str
    service_tier: str
    lat: Optional[str]
    long: Optional[str]
    ward_name: str
    kids_stop: Optional[int] = None
    leading_reading: Optional[int] = None
    clc: Optional[int] = None
    dih: Optional[int] = None
    teen_council: Optional[int] = None
    youth_hub: Optional[int] = None
    adult_literacy_program: Optional[int] = None
    workstations: Optional[int] = None
    nbhd_no: Optional[int] = None
    nbhd_name: Optional[str] = None
    tplnia: Optional[int] = None
    ward_no: Optional[int] = None
    present_site_year: Optional[int] = None

    @property
    def coordinate(self) -> Coordinate:
        return Coordinate.parse(self.lat, self.long)

    @property
    def website_url(self) -> Optional[str]:
        text = self.website.strip()
        try:
            parsed = urlparse(text)
        except ValueError:
            # e.g. "http://[tpl" is rejected as a malformed IPv6 host
            return None
        if parsed.scheme in ("http", "https") and parsed.netloc:
            return text
        return None

    def directions_url(self, origin: Optional[Coordinate] = None) -> str:
        """OpenStreetMap driving directions to this branch, from ``origin`` when known."""
        target = self.coordinate
        start = f"{origin.latitude},{origin.longitude}" if origin is not None else ""
        query = urlencode({
            "engine": "fossgis_osrm_car",
            "route": f"{start};{target.latitude},{target.longitude}",
        })
        return f"{DIRECTIONS_URL}?{query}"

    def offered_services(self) -> List[str]:
        return [label for attr, label in SERVICE_LABELS if getattr(self, attr) == 1]

    @classmethod
    def from_record(cls, raw: Mapping[str, Any]) -> "Branch":
        return cls(
            id=_required_int(raw, "_id"),
            branch_code=_required_str(raw, "BranchCode"),
            branch_name=_required_str(raw, "BranchName"),
            address=_required_str(raw, "Address"),
            postal_code=_required_str(raw, "PostalCode"),
            website=_required_str(raw, "Website"),
            telephone=_required_str(raw, "Telephone"),
            square_footage=_required_str(raw, "SquareFootage"),
            public_parking=_required_str(raw, "PublicParking"),
            service_tier=_required_str(raw, "ServiceTier"),
            lat=_coordinate_text(raw, "Lat"),
            long=_coordinate_text(raw, "Long"),
            ward_name=_required_str(raw, "WardName"),
            kids_stop=_optional_int(raw, "KidsStop"),
            leading_reading=_optional_int(raw, "LeadingReading"),
            clc=_optional_int(raw, "CLC"),
            dih=_optional_int(raw, "DIH"),
            teen_council=_optional_int(raw, "TeenCouncil"),
            youth_hub=_optional_int(raw, "YouthHub"),
            adult_literacy_program=_optional_int(raw, "AdultLiteracyProgram"),
            workstations=_optional_int(raw, "Workstations"),
            nbhd_no=_optional_int(raw, "NBHDNo"),
            nbhd_name=_optional_str(raw, "NBHDName"),
            tplnia=_optional_int(raw, "TPLNIA"),
            ward_no=_optional_int(raw, "WardNo"),
            present_site_year=_optional_int(raw, "PresentSiteYear"),
        )


@dataclass(frozen=True)
class VisitRecord:
    id: int
    year: int
    branch_code: str
    visits: str  # display text, may be non-numeric

    @property
    def visit_count(self) -> Optional[int]:
        text = self.visits.replace(",", "").strip()
        try:
            return int(text)
        except ValueError:
            return None

    @classmethod
    def from_record(cls, raw: Mapping[str, Any]) -> "VisitRecord":
        record = dict(raw)
        # Some exports carry the count as a JSON number
        count = record.get("Visits")
        if isinstance(count, int) and not isinstance(count, bool):
            record["Visits"] = str(count)
        return cls(
            id=_required_int(record, "_id"),
            year=_required_int(record, "Year"),
            branch_code=_required_str(record, "BranchCode"),
            visits=_required_str(record, "Visits"),
        )


@dataclass(frozen=True)
class Event:
    id: int
    title: str
    startdate: str
    enddate: str
    library: str
    description: str
    starttime: Optional[str] = None
    endtime: Optional[str] = None
    location: Optional[str] = None

    @property
    def start_date(self) -> Optional[date]:
        return _parse_date(self.startdate)

    @property
    def end_date(self) -> Optional[date]:
        return _parse_date(self.enddate)

    @classmethod
    def from_record(cls, raw: Mapping[str, Any]) -> "Event":
        return cls(
            id=_required_int(raw, "_id"),
            title=_required_str(raw, "title"),
            startdate=_required_str(raw, "startdate"),
            enddate=_required_str(raw, "enddate"),
            library=_required_str(raw, "library"),
            description=_required_str(raw, "description"),
            starttime=_optional_text(raw, "starttime"),
            endtime=_optional_text(raw, "endtime"),
            location=_optional_text(raw, "location"),
        )
