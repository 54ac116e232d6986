import logging
from typing import Sequence, Tuple

from territory.config import ClaimSettings, get_settings
from territory.geo import (
    distance_m,
    distance_point_to_segment,
    perimeter_m,
    polygon_area_m2,
    self_intersecting_edges,
)
from territory.models import FailureReason, GeoPoint, ValidationResult, ring_vertices

logger = logging.getLogger(__name__)


def _ring_gap(i: int, j: int, n: int) -> int:
    d = abs(i - j) % n
    return min(d, n - d)


def find_close_boundary(vertices: Sequence[GeoPoint], min_spacing_m: float) -> Tuple[str, float] | None:
    """
    Look for a sliver: a non-adjacent vertex pair, or a vertex and an edge outside its
    immediate neighbourhood, closer than min_spacing_m. Returns (description, distance).
    """
    n = len(vertices)
    if min_spacing_m <= 0 or n < 4:
        return None
    for i in range(n):
        for j in range(i + 1, n):
            if _ring_gap(i, j, n) <= 1:
                continue
            d = distance_m(vertices[i], vertices[j])
            if d < min_spacing_m:
                return f"vertices {i} and {j}", d
    for i in range(n):
        for j in range(n):
            k = (j + 1) % n
            # skip edges touching the vertex or one of its neighbours
            if _ring_gap(i, j, n) <= 1 or _ring_gap(i, k, n) <= 1:
                continue
            d = distance_point_to_segment(vertices[i], vertices[j], vertices[k])
            if d < min_spacing_m:
                return f"vertex {i} and edge {j}-{k}", d
    return None


class PolygonValidator:
    def __init__(self, settings: ClaimSettings | None = None):
        self.settings = settings or get_settings()

    def validate(self, candidate: Sequence[GeoPoint]) -> ValidationResult:
        cfg = self.settings
        vertices = list(ring_vertices(candidate))
        n = len(vertices)
        if n < 3:
            return self._fail(FailureReason.INSUFFICIENT_POINTS, f"Polygon must contain at least 3 points, got {n}")

        crossing = self_intersecting_edges(vertices)
        if crossing is not None:
            i, j = crossing
            return self._fail(FailureReason.SELF_INTERSECTING, f"Polygon edges {i} and {j} intersect")

        area = polygon_area_m2(vertices, geodesic=cfg.geodesic_area)
        if area < cfg.min_area_m2:
            return self._fail(
                FailureReason.AREA_TOO_SMALL,
                f"Polygon area too small ({area:.2f} m^2, need {cfg.min_area_m2:.0f})",
            )

        close = find_close_boundary(vertices, cfg.min_vertex_spacing_m)
        if close is not None:
            where, d = close
            return self._fail(
                FailureReason.BOUNDARY_TOO_CLOSE,
                f"Boundary too close: {where} are {d:.2f} m apart (min {cfg.min_vertex_spacing_m:.1f} m)",
            )

        perimeter = perimeter_m(vertices)
        logger.info("Validation passed: area %.1f m^2, perimeter %.1f m, %s vertices", area, perimeter, n)
        return ValidationResult.success(area_m2=area, perimeter_m=perimeter)

    def _fail(self, reason: FailureReason, detail: str) -> ValidationResult:
        logger.warning("Validation failed (%s): %s", reason.value, detail)
        return ValidationResult.failure(reason, detail)
