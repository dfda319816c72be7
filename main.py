import logging

from async_loader import AsyncDatasetLoader
from branch_queries import events_for, search_branches, visits_for
from config import configure_logging, get_config
from data_service import BundledDataService
from geocoding import StaticLocationProvider, reference_coordinate
from map_visualization import create_branch_map, save_and_open_map
from models import Coordinate
from nearest_library import distance_meters, format_distance, nearest

logger = logging.getLogger(__name__)


def print_detail(branch, visits, events, origin=None):
    print(f"\n{branch.branch_name}")
    print(f"Address: {branch.address}")
    if branch.website_url:
        print(f"Website: {branch.website_url}")
    print(f"Directions: {branch.directions_url(origin)}")
    print(f"Phone: {branch.telephone}")
    if branch.nbhd_name:
        print(f"Neighborhood: {branch.nbhd_name}")
    print("Services:", ", ".join(branch.offered_services()) or "none listed")

    print("Annual Visits")
    rows = visits_for(branch, visits)
    if not rows:
        print("  No visit data available for this branch.")
    for visit in rows:
        print(f"  {visit.year}: {visit.visits} visits")

    print("Upcoming Events")
    upcoming = events_for(branch, events)
    if not upcoming:
        print("  No upcoming events for this branch.")
    for event in upcoming:
        print(f"  {event.title} ({event.startdate} to {event.enddate})")
        if event.starttime:
            print(f"    Time: {event.starttime}")
        if event.location:
            print(f"    Location: {event.location}")


def main():
    cfg = get_config()
    configure_logging(cfg)

    print("TPL Branches")
    print("============")

    # Example: user standing at Toronto City Hall
    location = StaticLocationProvider(Coordinate(43.6534, -79.3841))
    location.request_permission()

    with AsyncDatasetLoader(BundledDataService(cfg), max_workers=cfg.max_workers) as loader:
        datasets = loader.load_all().wait(timeout=30)

    for error in datasets.errors:
        print(f"Loading Error: {error}")
    if not datasets.branches.ok:
        return

    branches = datasets.branches.value
    here = reference_coordinate(location)

    for branch in search_branches(branches, "", here)[:10]:
        distance = ""
        if here is not None:
            distance = format_distance(distance_meters(branch.coordinate, here))
        print(f"{branch.branch_name:<40} {distance}")

    if here is not None:
        found = nearest(branches, here)
        if found:
            print(f"\nNearest Library: {found.branch.branch_name} ({format_distance(found.distance_m)})")
            print_detail(found.branch, datasets.visits.value or [], datasets.events.value or [], here)

    save_and_open_map(create_branch_map(branches, here))


if __name__ == "__main__":
    main()
