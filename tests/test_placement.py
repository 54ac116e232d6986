import math

import pytest

from territory.geo import to_lat_lon
from territory.models import ConfirmedTerritory, GeoPoint
from territory.placement import PlacementRejection, PlacementValidator

ORIGIN = (48.5, 32.25)


def _pt(x, y):
    lat, lon = to_lat_lon(x, y, ORIGIN)
    return GeoPoint(lat=lat, lon=lon)


@pytest.fixture
def territory():
    path = [{"lat": p.lat, "lon": p.lon} for p in (_pt(0, 0), _pt(100, 0), _pt(100, 100), _pt(0, 100))]
    return ConfirmedTerritory.from_path_json(path)


def test_centre_is_legal(territory):
    validator = PlacementValidator()
    verdict = validator.check_site(_pt(50, 50), territory)
    assert verdict.legal
    assert verdict.reason is None
    assert math.isclose(verdict.boundary_distance_m, 50.0, rel_tol=1e-2)
    assert validator.is_legal_site(_pt(50, 50), territory)


def test_site_near_edge_is_too_close(territory):
    validator = PlacementValidator()
    site = _pt(50, 3)
    assert validator.is_inside(site, territory)
    assert validator.is_near_boundary(site, territory, 8.0)
    verdict = validator.check_site(site, territory)
    assert not verdict.legal
    assert verdict.reason is PlacementRejection.TOO_CLOSE_TO_BOUNDARY


def test_site_outside_is_rejected(territory):
    verdict = PlacementValidator().check_site(_pt(150, 50), territory)
    assert not verdict.legal
    assert verdict.reason is PlacementRejection.OUTSIDE_TERRITORY
    assert math.isclose(verdict.boundary_distance_m, 50.0, rel_tol=1e-2)


def test_custom_clearance(territory):
    validator = PlacementValidator()
    assert validator.is_legal_site(_pt(50, 3), territory, clearance_m=2.0)
    assert not validator.is_near_boundary(_pt(50, 3), territory, 2.0)


def test_vertex_is_not_inside(territory):
    assert not PlacementValidator().is_inside(_pt(0, 0), territory)


def test_territory_area_from_path(territory):
    assert math.isclose(territory.area_m2, 10000.0, rel_tol=1e-2)
    assert territory.formatted_area == f"{territory.area_m2:.0f} m²"
    min_lat, max_lat, min_lon, max_lon = territory.bounding_box()
    assert min_lat == ORIGIN[0] and min_lon == ORIGIN[1]
    assert max_lat > min_lat and max_lon > min_lon
    verdict = PlacementValidator().check_site(_pt(50, 50), territory)
    assert verdict.to_dict()["reason"] is None
