"""The folium map framing every branch."""

from __future__ import annotations

from pathlib import Path

import folium

from map_visualization import create_branch_map, save_and_open_map
from models import Branch, Coordinate


def test_map_has_a_marker_per_branch(branch_records) -> None:
    branches = [Branch.from_record(r) for r in branch_records]

    m = create_branch_map(branches)
    html = m.get_root().render()

    assert isinstance(m, folium.Map)
    markers = [c for c in m._children.values() if isinstance(c, folium.Marker)]
    assert len(markers) == len(branches)
    assert "Toronto Reference Library" in html


def test_map_highlights_nearest_branch(branch_records) -> None:
    branches = [Branch.from_record(r) for r in branch_records]

    m = create_branch_map(branches, Coordinate(43.6534, -79.3841))
    html = m.get_root().render()

    assert "You are here" in html
    assert "Nearest Library: City Hall" in html


def test_empty_map_uses_default_region() -> None:
    m = create_branch_map([])
    assert m.location == [43.7, -79.4]


def test_save_writes_html(branch_records, tmp_path: Path) -> None:
    branches = [Branch.from_record(r) for r in branch_records]
    target = tmp_path / "map.html"

    path = save_and_open_map(create_branch_map(branches), str(target), open_browser=False)

    assert Path(path) == target.resolve()
    assert "Albion" in target.read_text(encoding="utf-8")
