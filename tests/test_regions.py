from shapely.geometry import Point

from forestwatch.config import MAP_HEIGHT, MAP_WIDTH
from forestwatch.geo.projector import project
from forestwatch.geo.regions import (
    KENYA_BOUNDS,
    KENYA_CENTER,
    kenya_boundary_points,
    kenya_outline,
)


def test_centre_lies_inside_outline():
    outline = kenya_outline()
    assert outline.is_valid
    assert outline.contains(Point(KENYA_CENTER.lng, KENYA_CENTER.lat))


def test_nairobi_inside_and_indian_ocean_outside():
    outline = kenya_outline()
    assert outline.contains(Point(36.82, -1.28))
    assert not outline.contains(Point(41.5, -4.0))


def test_boundary_is_closed_and_projects_onto_surface():
    pts = kenya_boundary_points()
    assert pts[0] == pts[-1]
    for p in pts:
        x, y = project(p.lat, p.lng, KENYA_BOUNDS)
        assert 0 <= x <= MAP_WIDTH
        assert 0 <= y <= MAP_HEIGHT
