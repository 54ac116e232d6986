import math
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Dict, List, Sequence, Tuple

from territory.errors import InvalidPolygonError

if TYPE_CHECKING:
    from territory.proximity import CollisionResult


@dataclass(frozen=True)
class GeoPoint:
    """A recorded location fix. timestamp is epoch seconds, speed_mps is the device-reported speed."""

    lat: float
    lon: float
    accuracy_m: float | None = None
    timestamp: float | None = None
    speed_mps: float | None = None


class SampleVerdict(str, Enum):
    ACCEPTED = "accepted"
    SKIPPED = "skipped"
    REJECTED_ACCURACY = "rejected_accuracy"
    REJECTED_SPEED = "rejected_speed"


@dataclass(frozen=True)
class SpeedWarning:
    """Transient warning for the presentation layer; it decides when to hide it."""

    verdict: SampleVerdict
    message: str
    speed_mps: float | None
    display_seconds: float

    @property
    def speed_kmh(self) -> float | None:
        return None if self.speed_mps is None else self.speed_mps * 3.6


@dataclass(frozen=True)
class PathSample:
    point: GeoPoint
    verdict: SampleVerdict
    index: int
    speed_mps: float | None = None
    distance_from_last_m: float | None = None
    warning: SpeedWarning | None = None

    @property
    def accepted(self) -> bool:
        return self.verdict is SampleVerdict.ACCEPTED


class SessionState(str, Enum):
    IDLE = "idle"
    TRACKING = "tracking"
    CLOSED = "closed"
    VALIDATED = "validated"
    FAILED = "failed"


def _check_coordinates(points: Sequence[GeoPoint]):
    for p in points:
        if not (math.isfinite(p.lat) and math.isfinite(p.lon)):
            raise InvalidPolygonError(f"Non-finite coordinate ({p.lat}, {p.lon})")
        if not (-90.0 <= p.lat <= 90.0 and -180.0 <= p.lon <= 180.0):
            raise InvalidPolygonError(f"Coordinate out of range ({p.lat}, {p.lon})")


def _same_place(a: GeoPoint, b: GeoPoint) -> bool:
    return a.lat == b.lat and a.lon == b.lon


def ring_vertices(points: Sequence[GeoPoint]) -> Tuple[GeoPoint, ...]:
    """Vertices of a ring with repeated consecutive points collapsed and no closing duplicate."""
    pts: List[GeoPoint] = []
    for p in points:
        if not pts or not _same_place(pts[-1], p):
            pts.append(p)
    while len(pts) > 1 and _same_place(pts[0], pts[-1]):
        pts.pop()
    return tuple(pts)


@dataclass(frozen=True)
class CandidatePolygon:
    """Closed path frozen at loop closure. The closing edge back to the first vertex is implicit."""

    vertices: Tuple[GeoPoint, ...]

    @classmethod
    def from_points(cls, points: Sequence[GeoPoint]) -> "CandidatePolygon":
        pts = ring_vertices(points)
        _check_coordinates(pts)
        return cls(vertices=pts)

    def __len__(self) -> int:
        return len(self.vertices)

    def __iter__(self):
        return iter(self.vertices)

    def __getitem__(self, idx):
        return self.vertices[idx]


@dataclass(frozen=True)
class Polygon:
    """Immutable ring of at least three GeoPoints."""

    vertices: Tuple[GeoPoint, ...]

    def __post_init__(self) -> None:
        # stored as a tuple, repeats and closing duplicate dropped
        object.__setattr__(self, "vertices", ring_vertices(self.vertices))
        if len(self.vertices) < 3:
            raise InvalidPolygonError("A polygon requires at least three vertices.")
        _check_coordinates(self.vertices)

    def __len__(self) -> int:
        return len(self.vertices)

    def __iter__(self):
        return iter(self.vertices)

    def __getitem__(self, idx):
        return self.vertices[idx]


class FailureReason(str, Enum):
    INSUFFICIENT_POINTS = "insufficient_points"
    SELF_INTERSECTING = "self_intersecting"
    AREA_TOO_SMALL = "area_too_small"
    BOUNDARY_TOO_CLOSE = "boundary_too_close"


@dataclass(frozen=True)
class ValidationResult:
    passed: bool
    area_m2: float | None = None
    perimeter_m: float | None = None
    reason: FailureReason | None = None
    detail: str | None = None

    @classmethod
    def success(cls, area_m2: float, perimeter_m: float) -> "ValidationResult":
        return cls(passed=True, area_m2=area_m2, perimeter_m=perimeter_m)

    @classmethod
    def failure(cls, reason: FailureReason, detail: str | None = None) -> "ValidationResult":
        return cls(passed=False, reason=reason, detail=detail)

    def to_dict(self) -> Dict:
        if self.passed:
            return {"passed": True, "area_m2": self.area_m2, "perimeter_m": self.perimeter_m}
        return {"passed": False, "reason": self.reason.value, "detail": self.detail}


def format_area(area_m2: float) -> str:
    if area_m2 >= 1_000_000:
        return f"{area_m2 / 1_000_000:.2f} km²"
    return f"{area_m2:.0f} m²"


@dataclass(frozen=True)
class ConfirmedTerritory:
    polygon: Polygon
    area_m2: float
    perimeter_m: float
    started_at: float | None = None
    completed_at: float | None = None
    distance_walked_m: float = 0.0

    @property
    def vertices(self) -> Tuple[GeoPoint, ...]:
        return self.polygon.vertices

    @property
    def point_count(self) -> int:
        return len(self.polygon)

    @property
    def formatted_area(self) -> str:
        return format_area(self.area_m2)

    def to_path_json(self) -> List[Dict[str, float]]:
        return [{"lat": p.lat, "lon": p.lon} for p in self.vertices]

    def to_wkt(self) -> str:
        # WKT is lon-first and needs an explicitly closed ring.
        ring = list(self.vertices) + [self.vertices[0]]
        coords = ", ".join(f"{p.lon} {p.lat}" for p in ring)
        return f"SRID=4326;POLYGON(({coords}))"

    def bounding_box(self) -> Tuple[float, float, float, float]:
        from territory.geo import bounding_box

        return bounding_box(self.vertices)

    def to_dict(self) -> Dict:
        min_lat, max_lat, min_lon, max_lon = self.bounding_box()
        return {
            "path": self.to_path_json(),
            "wkt": self.to_wkt(),
            "area_m2": self.area_m2,
            "formatted_area": self.formatted_area,
            "perimeter_m": self.perimeter_m,
            "point_count": self.point_count,
            "bbox": {"min_lat": min_lat, "max_lat": max_lat, "min_lon": min_lon, "max_lon": max_lon},
            "started_at": self.started_at,
            "completed_at": self.completed_at,
            "distance_walked_m": self.distance_walked_m,
        }

    @classmethod
    def from_path_json(
        cls,
        path: Sequence[Dict[str, float]],
        area_m2: float | None = None,
        perimeter_m: float | None = None,
        started_at: float | None = None,
        completed_at: float | None = None,
    ) -> "ConfirmedTerritory":
        from territory.geo import perimeter_m as ring_perimeter, polygon_area_m2

        polygon = Polygon(tuple(GeoPoint(lat=float(p["lat"]), lon=float(p["lon"])) for p in path))
        return cls(
            polygon=polygon,
            area_m2=polygon_area_m2(polygon) if area_m2 is None else area_m2,
            perimeter_m=ring_perimeter(polygon) if perimeter_m is None else perimeter_m,
            started_at=started_at,
            completed_at=completed_at,
        )


@dataclass
class ClaimUpdate:
    """What one submitted fix did to the claim, for the presentation layer."""

    sample: PathSample
    state: SessionState
    result: ValidationResult | None = None
    warning: SpeedWarning | None = None
    proximity: "CollisionResult | None" = None
