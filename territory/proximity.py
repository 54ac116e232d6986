"""Advisory collision checks of a claim path against other known territories."""

import logging
import math
from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Iterable, List, Sequence

from territory.geo import geo_segments_intersect, min_distance_to_polygon_boundary, point_in_polygon
from territory.models import ConfirmedTerritory, GeoPoint

logger = logging.getLogger(__name__)

CAUTION_DISTANCE_M = 100.0
WARNING_DISTANCE_M = 50.0
DANGER_DISTANCE_M = 25.0


class WarningLevel(IntEnum):
    SAFE = 0
    CAUTION = 1
    WARNING = 2
    DANGER = 3
    VIOLATION = 4


class CollisionType(str, Enum):
    POINT_IN_TERRITORY = "point_in_territory"
    PATH_CROSSES_TERRITORY = "path_crosses_territory"


@dataclass(frozen=True)
class CollisionResult:
    has_collision: bool
    warning_level: WarningLevel
    collision_type: CollisionType | None = None
    closest_distance_m: float | None = None
    message: str | None = None

    @classmethod
    def safe(cls, closest_distance_m: float | None = None) -> "CollisionResult":
        return cls(has_collision=False, warning_level=WarningLevel.SAFE, closest_distance_m=closest_distance_m)

    def to_dict(self):
        return {
            "has_collision": self.has_collision,
            "warning_level": self.warning_level.name.lower(),
            "collision_type": self.collision_type.value if self.collision_type else None,
            "closest_distance_m": None if self.closest_distance_m is None or math.isinf(self.closest_distance_m) else self.closest_distance_m,
            "message": self.message,
        }


def warning_level_for_distance(distance_m: float) -> WarningLevel:
    if distance_m > CAUTION_DISTANCE_M:
        return WarningLevel.SAFE
    if distance_m > WARNING_DISTANCE_M:
        return WarningLevel.CAUTION
    if distance_m > DANGER_DISTANCE_M:
        return WarningLevel.WARNING
    return WarningLevel.DANGER


class ProximityChecker:
    """Checks against territories owned by other players. Holds no mutable state."""

    def __init__(self, territories: Iterable[ConfirmedTerritory] = ()):
        self.territories: List[ConfirmedTerritory] = list(territories)

    def check_point(self, point: GeoPoint) -> CollisionResult:
        for territory in self.territories:
            if point_in_polygon(point, territory.vertices):
                return CollisionResult(
                    has_collision=True,
                    warning_level=WarningLevel.VIOLATION,
                    collision_type=CollisionType.POINT_IN_TERRITORY,
                    closest_distance_m=0.0,
                    message="Cannot claim inside another player's territory",
                )
        return CollisionResult.safe()

    def min_distance_m(self, point: GeoPoint) -> float:
        if not self.territories:
            return math.inf
        return min(min_distance_to_polygon_boundary(point, t.vertices) for t in self.territories)

    def check_path(self, path: Sequence[GeoPoint]) -> CollisionResult:
        if not path or not self.territories:
            return CollisionResult.safe()

        for i in range(len(path) - 1):
            start, end = path[i], path[i + 1]
            for territory in self.territories:
                ring = territory.vertices
                for j in range(len(ring)):
                    if geo_segments_intersect(start, end, ring[j], ring[(j + 1) % len(ring)]):
                        logger.warning("Path segment %s-%s crosses another territory", i, i + 1)
                        return CollisionResult(
                            has_collision=True,
                            warning_level=WarningLevel.VIOLATION,
                            collision_type=CollisionType.PATH_CROSSES_TERRITORY,
                            closest_distance_m=0.0,
                            message="Path cannot cross another player's territory",
                        )

        inside = self.check_point(path[-1])
        if inside.has_collision:
            return inside

        distance = self.min_distance_m(path[-1])
        level = warning_level_for_distance(distance)
        if level is WarningLevel.SAFE:
            return CollisionResult.safe(distance)
        logger.info("Near another territory: %s at %.0f m", level.name.lower(), distance)
        return CollisionResult(
            has_collision=False,
            warning_level=level,
            closest_distance_m=distance,
            message=f"Another territory is {distance:.0f} m away",
        )
