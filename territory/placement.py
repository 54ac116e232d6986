from dataclasses import dataclass
from enum import Enum

from territory.config import ClaimSettings, get_settings
from territory.geo import min_distance_to_polygon_boundary, point_in_polygon
from territory.models import ConfirmedTerritory, GeoPoint


class PlacementRejection(str, Enum):
    OUTSIDE_TERRITORY = "outside_territory"
    TOO_CLOSE_TO_BOUNDARY = "too_close_to_boundary"


@dataclass(frozen=True)
class PlacementVerdict:
    legal: bool
    boundary_distance_m: float
    reason: PlacementRejection | None = None

    def to_dict(self):
        return {
            "legal": self.legal,
            "boundary_distance_m": self.boundary_distance_m,
            "reason": self.reason.value if self.reason else None,
        }


class PlacementValidator:
    """
    Checks building sites against a confirmed territory. Stateless apart from the
    default clearance, safe to share between concurrent checks.
    """

    def __init__(self, settings: ClaimSettings | None = None):
        self.default_clearance_m = (settings or get_settings()).placement_clearance_m

    def is_inside(self, point: GeoPoint, territory: ConfirmedTerritory) -> bool:
        return point_in_polygon(point, territory.vertices)

    def is_near_boundary(self, point: GeoPoint, territory: ConfirmedTerritory, min_distance_m: float) -> bool:
        return min_distance_to_polygon_boundary(point, territory.vertices) < min_distance_m

    def check_site(
        self, point: GeoPoint, territory: ConfirmedTerritory, clearance_m: float | None = None
    ) -> PlacementVerdict:
        clearance = self.default_clearance_m if clearance_m is None else clearance_m
        distance = min_distance_to_polygon_boundary(point, territory.vertices)
        if not self.is_inside(point, territory):
            return PlacementVerdict(False, distance, PlacementRejection.OUTSIDE_TERRITORY)
        if distance < clearance:
            return PlacementVerdict(False, distance, PlacementRejection.TOO_CLOSE_TO_BOUNDARY)
        return PlacementVerdict(True, distance)

    def is_legal_site(self, point: GeoPoint, territory: ConfirmedTerritory, clearance_m: float | None = None) -> bool:
        return self.check_site(point, territory, clearance_m).legal
