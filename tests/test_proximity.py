import math

import pytest

from territory.geo import to_lat_lon
from territory.models import ConfirmedTerritory, GeoPoint
from territory.proximity import CollisionType, ProximityChecker, WarningLevel, warning_level_for_distance

ORIGIN = (48.5, 32.25)


def _pt(x, y):
    lat, lon = to_lat_lon(x, y, ORIGIN)
    return GeoPoint(lat=lat, lon=lon)


@pytest.fixture
def checker():
    path = [{"lat": p.lat, "lon": p.lon} for p in (_pt(0, 0), _pt(100, 0), _pt(100, 100), _pt(0, 100))]
    return ProximityChecker([ConfirmedTerritory.from_path_json(path)])


@pytest.mark.parametrize(
    "distance, level",
    [
        (150.0, WarningLevel.SAFE),
        (100.0, WarningLevel.CAUTION),
        (60.0, WarningLevel.CAUTION),
        (50.0, WarningLevel.WARNING),
        (30.0, WarningLevel.WARNING),
        (25.0, WarningLevel.DANGER),
        (0.0, WarningLevel.DANGER),
    ],
)
def test_warning_levels(distance, level):
    assert warning_level_for_distance(distance) is level


def test_point_inside_is_violation(checker):
    result = checker.check_point(_pt(50, 50))
    assert result.has_collision
    assert result.warning_level is WarningLevel.VIOLATION
    assert result.collision_type is CollisionType.POINT_IN_TERRITORY


def test_path_crossing_is_violation(checker):
    result = checker.check_path([_pt(-50, 50), _pt(150, 50)])
    assert result.has_collision
    assert result.collision_type is CollisionType.PATH_CROSSES_TERRITORY
    assert result.to_dict()["warning_level"] == "violation"


def test_approaching_path_escalates(checker):
    assert checker.check_path([_pt(-300, 50), _pt(-200, 50)]).warning_level is WarningLevel.SAFE
    assert checker.check_path([_pt(-300, 50), _pt(-70, 50)]).warning_level is WarningLevel.CAUTION
    assert checker.check_path([_pt(-300, 50), _pt(-40, 50)]).warning_level is WarningLevel.WARNING
    near = checker.check_path([_pt(-300, 50), _pt(-10, 50)])
    assert near.warning_level is WarningLevel.DANGER
    assert not near.has_collision
    assert math.isclose(near.closest_distance_m, 10.0, rel_tol=2e-2)


def test_no_territories_is_safe():
    checker = ProximityChecker()
    assert checker.check_path([_pt(0, 0), _pt(10, 0)]).warning_level is WarningLevel.SAFE
    assert checker.min_distance_m(_pt(0, 0)) == math.inf
    assert checker.check_path([_pt(0, 0)]).to_dict()["closest_distance_m"] is None
