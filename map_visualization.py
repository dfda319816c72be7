import logging
import os
import webbrowser
from html import escape
from typing import Optional, Sequence

import folium

from models import Branch, Coordinate
from nearest_library import bounding_region, format_distance, nearest

logger = logging.getLogger(__name__)


def _popup_html(branch: Branch) -> str:
    services = ", ".join(branch.offered_services()) or "None listed"
    return f"""
        <div style="width: 250px;">
            <h4>{escape(branch.branch_name)}</h4>
            <p><b>Address:</b> {escape(branch.address)}<br>
            {escape(branch.postal_code)}</p>
            <p><b>Phone:</b> {escape(branch.telephone)}</p>
            <p><b>Services:</b> {escape(services)}</p>
        </div>
        """


def create_branch_map(branches: Sequence[Branch], origin: Optional[Coordinate] = None) -> folium.Map:
    """
    Create a Folium map with every branch marked, framed to fit them all.

    With a known ``origin`` the user's position and the nearest branch are
    highlighted too.
    """
    region = bounding_region(branches)
    m = folium.Map(
        location=[region.center.latitude, region.center.longitude],
        tiles="OpenStreetMap",
    )
    south_west, north_east = region.bounds()
    m.fit_bounds([list(south_west), list(north_east)])

    for branch in branches:
        coord = branch.coordinate
        folium.Marker(
            [coord.latitude, coord.longitude],
            popup=folium.Popup(_popup_html(branch), max_width=300),
            tooltip=branch.branch_name,
            icon=folium.Icon(color="red", icon="book", prefix="fa"),
        ).add_to(m)

    if origin is not None:
        folium.Marker(
            [origin.latitude, origin.longitude],
            tooltip="You are here",
            icon=folium.Icon(color="blue", icon="user", prefix="fa"),
        ).add_to(m)

        found = nearest(branches, origin)
        if found is not None:
            label = f"Nearest Library: {found.branch.branch_name} ({format_distance(found.distance_m)})"
            target = found.branch.coordinate
            folium.PolyLine(
                [[origin.latitude, origin.longitude], [target.latitude, target.longitude]],
                tooltip=label,
                color="blue",
                weight=3,
            ).add_to(m)
            logger.info(label)

    return m


def save_and_open_map(map_obj: folium.Map, filename: str = "library_map.html", open_browser: bool = True) -> str:
    """
    Save the map to an HTML file and open it in the default browser.
    """
    map_obj.save(filename)
    path = os.path.realpath(filename)
    logger.info("Map saved as %s", path)
    if open_browser:
        webbrowser.open(f"file://{path}")
    return path


if __name__ == "__main__":
    from data_service import BundledDataService

    logging.basicConfig(level=logging.INFO)
    libraries = BundledDataService().load_branches()
    if libraries.ok:
        save_and_open_map(create_branch_map(libraries.value))
    else:
        print("Error:", libraries.error)
