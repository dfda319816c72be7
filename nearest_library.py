"""
nearest_library.py
------------------
Distance ranking for library branches.

Data assumptions
- Each Branch exposes a Coordinate parsed from its "Lat"/"Long" text fields.
- Branches whose coordinate failed to parse sit at (0.0, 0.0); they are ranked
  like any other point (far away from any real Toronto location).

Usage
-----
from nearest_library import nearest, sort_by_distance, format_distance
from models import Coordinate

here = Coordinate(43.6532, -79.3832)
found = nearest(branches, here)
if found:
    print(found.branch.branch_name, format_distance(found.distance_m), "away")

sort_by_distance(branches, None) returns the input unchanged, which is what
the list view shows while the user's location is still unknown.
"""

import math
from dataclasses import dataclass
from typing import List, NamedTuple, Optional, Sequence, Tuple

import numpy as np

from models import Branch, Coordinate

__all__ = [
    "EARTH_RADIUS_M",
    "DEFAULT_REGION",
    "MapRegion",
    "NearestBranch",
    "distance_meters",
    "distances_from",
    "sort_by_distance",
    "nearest",
    "bounding_region",
    "region_around",
    "format_distance",
]

EARTH_RADIUS_M = 6371008.8  # Mean Earth radius in meters

# Extra room around the tightest box so edge pins are not clipped
REGION_MARGIN = 0.2
USER_SPAN = 0.02


class NearestBranch(NamedTuple):
    branch: Branch
    distance_m: float


@dataclass(frozen=True)
class MapRegion:
    center: Coordinate
    lat_delta: float
    lon_delta: float

    def bounds(self) -> Tuple[Tuple[float, float], Tuple[float, float]]:
        """South-west and north-east corners, as [[lat, lon], [lat, lon]] map APIs expect."""
        half_lat = self.lat_delta / 2.0
        half_lon = self.lon_delta / 2.0
        return (
            (self.center.latitude - half_lat, self.center.longitude - half_lon),
            (self.center.latitude + half_lat, self.center.longitude + half_lon),
        )


# Downtown Toronto, used when there is nothing to frame
DEFAULT_REGION = MapRegion(center=Coordinate(43.7, -79.4), lat_delta=0.1, lon_delta=0.1)


def distance_meters(a: Coordinate, b: Coordinate) -> float:
    """
    Great-circle distance in meters between two points (Haversine formula).
    """
    phi1 = math.radians(a.latitude)
    phi2 = math.radians(b.latitude)
    dphi = phi2 - phi1
    dlambda = math.radians(b.longitude - a.longitude)

    h = math.sin(dphi / 2.0) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2.0) ** 2
    # Rounding can push h a hair past 1 for antipodal points
    h = min(1.0, h)
    return 2 * EARTH_RADIUS_M * math.atan2(math.sqrt(h), math.sqrt(1 - h))


def distances_from(branches: Sequence[Branch], origin: Coordinate) -> np.ndarray:
    """Distance in meters from ``origin`` to every branch, in input order."""
    return np.array(
        [distance_meters(branch.coordinate, origin) for branch in branches],
        dtype=float,
    )


def sort_by_distance(branches: Sequence[Branch], origin: Optional[Coordinate]) -> List[Branch]:
    """
    Order branches by ascending distance to ``origin``.

    Ties keep their input order. With no origin the input order is returned.
    """
    if origin is None or not branches:
        return list(branches)
    order = np.argsort(distances_from(branches, origin), kind="stable")
    return [branches[int(i)] for i in order]


def nearest(branches: Sequence[Branch], origin: Coordinate) -> Optional[NearestBranch]:
    """
    Return the closest branch and its distance, or None for an empty collection.

    When several branches are equally close the first one in input order wins.
    """
    if not branches:
        return None
    distances = distances_from(branches, origin)
    idx = int(np.argmin(distances))
    return NearestBranch(branch=branches[idx], distance_m=float(distances[idx]))


def bounding_region(branches: Sequence[Branch], margin: float = REGION_MARGIN) -> MapRegion:
    """
    Smallest lat/lon box around every branch, grown by ``margin`` on each axis.
    """
    if not branches:
        return DEFAULT_REGION

    coords = [branch.coordinate for branch in branches]
    lats = np.array([c.latitude for c in coords], dtype=float)
    lons = np.array([c.longitude for c in coords], dtype=float)
    min_lat, max_lat = float(lats.min()), float(lats.max())
    min_lon, max_lon = float(lons.min()), float(lons.max())

    return MapRegion(
        center=Coordinate((min_lat + max_lat) / 2, (min_lon + max_lon) / 2),
        lat_delta=(max_lat - min_lat) * (1 + margin),
        lon_delta=(max_lon - min_lon) * (1 + margin),
    )


def region_around(origin: Coordinate, span: float = USER_SPAN) -> MapRegion:
    return MapRegion(center=origin, lat_delta=span, lon_delta=span)


def format_distance(meters: float) -> str:
    return f"{meters / 1000:.2f} km"


if __name__ == "__main__":
    # Simple smoke test near Toronto City Hall
    import logging

    from data_service import BundledDataService

    logging.basicConfig(level=logging.INFO)
    result = BundledDataService().load_branches()
    if not result.ok:
        print("Error:", result.error)
    else:
        found = nearest(result.value, Coordinate(43.6534, -79.3841))
        if found:
            print(found.branch.branch_name, format_distance(found.distance_m))
        print(bounding_region(result.value))
