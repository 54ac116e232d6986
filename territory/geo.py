import math
from typing import Iterable, List, Sequence, Tuple

from territory.models import GeoPoint

EARTH_RADIUS_M = 6371000.0
# Below this (in local metres) a point counts as lying on an edge.
BOUNDARY_EPS_M = 1e-6
ORIENT_EPS = 1e-9


def meters_per_degree(lat_deg: float) -> tuple[float, float]:
    lat_rad = math.radians(lat_deg)
    m_per_lat = 111132.954 - 559.822 * math.cos(2 * lat_rad) + 1.175 * math.cos(4 * lat_rad)
    m_per_lon = (math.pi / 180) * 6367449 * math.cos(lat_rad)
    return m_per_lat, m_per_lon


def to_local_xy(lat: float, lon: float, origin: tuple[float, float]) -> tuple[float, float]:
    m_per_lat, m_per_lon = meters_per_degree(origin[0])
    dx = (lon - origin[1]) * m_per_lon
    dy = (lat - origin[0]) * m_per_lat
    return dx, dy


def to_lat_lon(x: float, y: float, origin: tuple[float, float]) -> tuple[float, float]:
    m_per_lat, m_per_lon = meters_per_degree(origin[0])
    lat = origin[0] + y / m_per_lat
    lon = origin[1] + x / m_per_lon
    return lat, lon


def offset_point(point: GeoPoint, dx_m: float, dy_m: float) -> GeoPoint:
    """Move a point dx metres east and dy metres north."""
    lat, lon = to_lat_lon(dx_m, dy_m, (point.lat, point.lon))
    return GeoPoint(lat=lat, lon=lon)


def haversine_m(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    dphi = math.radians(lat2 - lat1)
    dlambda = math.radians(lon2 - lon1)
    a = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_M * c


def distance_m(a: GeoPoint, b: GeoPoint) -> float:
    return haversine_m(a.lat, a.lon, b.lat, b.lon)


def _local(points: Sequence[GeoPoint], origin: tuple[float, float]) -> List[Tuple[float, float]]:
    return [to_local_xy(p.lat, p.lon, origin) for p in points]


def _on_segment_xy(p, a, b) -> bool:
    ax, ay = a
    bx, by = b
    px, py = p
    abx, aby = bx - ax, by - ay
    length_sq = abx * abx + aby * aby
    if length_sq == 0.0:
        return math.hypot(px - ax, py - ay) <= BOUNDARY_EPS_M
    t = max(0.0, min(1.0, ((px - ax) * abx + (py - ay) * aby) / length_sq))
    return math.hypot(px - (ax + t * abx), py - (ay + t * aby)) <= BOUNDARY_EPS_M


def point_in_polygon(point: GeoPoint, polygon: Sequence[GeoPoint]) -> bool:
    """Even-odd ray casting along the point's latitude; polygon is a ring of GeoPoints.

    Points lying on an edge (within BOUNDARY_EPS_M) are treated as outside.
    """
    n = len(polygon)
    if n < 3:
        return False
    origin = (point.lat, point.lon)
    local = _local(polygon, origin)
    for i in range(n):
        if _on_segment_xy((0.0, 0.0), local[i], local[(i + 1) % n]):
            return False

    lat, lon = point.lat, point.lon
    inside = False
    for i in range(n):
        j = (i + 1) % n
        lat1, lon1 = polygon[i].lat, polygon[i].lon
        lat2, lon2 = polygon[j].lat, polygon[j].lon
        if (lat1 > lat) != (lat2 > lat):
            cross_lon = (lon2 - lon1) * (lat - lat1) / (lat2 - lat1) + lon1
            if cross_lon > lon:
                inside = not inside
    return inside


def distance_point_to_segment(point: GeoPoint, a: GeoPoint, b: GeoPoint) -> float:
    """Distance in metres from point to segment a-b.

    The projection is done in a local planar frame centred on the point, the
    returned distance is the haversine distance to the projected point.
    """
    if a.lat == b.lat and a.lon == b.lon:
        return distance_m(point, a)
    origin = (point.lat, point.lon)
    ax, ay = to_local_xy(a.lat, a.lon, origin)
    bx, by = to_local_xy(b.lat, b.lon, origin)
    abx, aby = bx - ax, by - ay
    dot = -ax * abx - ay * aby
    t = max(0.0, min(1.0, dot / (abx * abx + aby * aby)))
    proj_lat, proj_lon = to_lat_lon(ax + t * abx, ay + t * aby, origin)
    return haversine_m(point.lat, point.lon, proj_lat, proj_lon)


def min_distance_to_polygon_boundary(point: GeoPoint, polygon: Sequence[GeoPoint]) -> float:
    n = len(polygon)
    if n == 0:
        return math.inf
    if n == 1:
        return distance_m(point, polygon[0])
    edges = n if n >= 3 else 1
    return min(distance_point_to_segment(point, polygon[i], polygon[(i + 1) % n]) for i in range(edges))


def polygon_area_m2(polygon: Sequence[GeoPoint], geodesic: bool = False) -> float:
    if len(polygon) < 3:
        return 0.0
    if geodesic:
        return spherical_area_m2(polygon)
    # Convert to local meters relative to first point for a reasonable approximation
    origin = (polygon[0].lat, polygon[0].lon)
    local = _local(polygon, origin)
    area = 0.0
    for i in range(len(local)):
        x1, y1 = local[i]
        x2, y2 = local[(i + 1) % len(local)]
        area += x1 * y2 - x2 * y1
    return abs(area) / 2.0


def spherical_area_m2(polygon: Sequence[GeoPoint]) -> float:
    if len(polygon) < 3:
        return 0.0
    area = 0.0
    n = len(polygon)
    for i in range(n):
        cur, nxt = polygon[i], polygon[(i + 1) % n]
        lat1, lon1 = math.radians(cur.lat), math.radians(cur.lon)
        lat2, lon2 = math.radians(nxt.lat), math.radians(nxt.lon)
        area += (lon2 - lon1) * (2 + math.sin(lat1) + math.sin(lat2))
    return abs(area * EARTH_RADIUS_M * EARTH_RADIUS_M / 2.0)


def path_length_m(points: Iterable[GeoPoint]) -> float:
    pts = list(points)
    return sum(distance_m(pts[i], pts[i + 1]) for i in range(len(pts) - 1))


def perimeter_m(polygon: Sequence[GeoPoint]) -> float:
    if len(polygon) < 2:
        return 0.0
    return path_length_m(polygon) + distance_m(polygon[-1], polygon[0])


def segments_intersect(p1, p2, p3, p4):
    """Segments p1-p2 and p3-p4 in local metres; touching counts as intersecting."""

    def orient(a, b, c):
        o = (b[1] - a[1]) * (c[0] - b[0]) - (b[0] - a[0]) * (c[1] - b[1])
        # snap float noise on collinear points
        return 0.0 if abs(o) < ORIENT_EPS else o

    def on_segment(a, b, c):
        return min(a[0], c[0]) - 1e-12 <= b[0] <= max(a[0], c[0]) + 1e-12 and min(a[1], c[1]) - 1e-12 <= b[1] <= max(a[1], c[1]) + 1e-12

    o1 = orient(p1, p2, p3)
    o2 = orient(p1, p2, p4)
    o3 = orient(p3, p4, p1)
    o4 = orient(p3, p4, p2)

    if o1 == 0 and on_segment(p1, p3, p2):
        return True
    if o2 == 0 and on_segment(p1, p4, p2):
        return True
    if o3 == 0 and on_segment(p3, p1, p4):
        return True
    if o4 == 0 and on_segment(p3, p2, p4):
        return True

    return (o1 > 0) != (o2 > 0) and (o3 > 0) != (o4 > 0)


def geo_segments_intersect(a1: GeoPoint, a2: GeoPoint, b1: GeoPoint, b2: GeoPoint) -> bool:
    origin = (a1.lat, a1.lon)
    return segments_intersect(*_local([a1, a2, b1, b2], origin))


def self_intersecting_edges(polygon: Sequence[GeoPoint]) -> Tuple[int, int] | None:
    """Return the first pair of non-adjacent edge indices that cross, or None."""
    n = len(polygon)
    if n < 4:
        return None
    local = _local(polygon, (polygon[0].lat, polygon[0].lon))
    for i in range(n):
        a1 = local[i]
        a2 = local[(i + 1) % n]
        for j in range(i + 1, n):
            if abs(i - j) <= 1 or (i == 0 and j == n - 1):
                continue
            b1 = local[j]
            b2 = local[(j + 1) % n]
            if segments_intersect(a1, a2, b1, b2):
                return i, j
    return None


def self_intersects(polygon: Sequence[GeoPoint]) -> bool:
    return self_intersecting_edges(polygon) is not None


def bounding_box(points: Sequence[GeoPoint]) -> Tuple[float, float, float, float] | None:
    """(min_lat, max_lat, min_lon, max_lon) or None for an empty sequence."""
    if not points:
        return None
    lats = [p.lat for p in points]
    lons = [p.lon for p in points]
    return min(lats), max(lats), min(lons), max(lons)


def centroid(points: Sequence[GeoPoint]) -> GeoPoint:
    return GeoPoint(
        lat=sum(p.lat for p in points) / len(points),
        lon=sum(p.lon for p in points) / len(points),
    )
