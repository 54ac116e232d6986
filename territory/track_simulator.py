import math
from dataclasses import replace
from typing import List, Sequence, Tuple

import numpy as np

from territory.geo import offset_point, to_lat_lon
from territory.models import GeoPoint


def walk_outline(
    origin: Tuple[float, float],
    corners_m: Sequence[Tuple[float, float]],
    step_m: float = 12.0,
    speed_mps: float = 1.4,
    start_time: float = 0.0,
    accuracy_m: float = 5.0,
    jitter_m: float = 0.0,
    close_loop: bool = True,
    seed: int | None = None,
) -> List[GeoPoint]:
    """
    Fixes for a walk along a polygon given as metre offsets (east, north) from origin,
    one fix every step_m. With close_loop the walk returns to the first corner.
    """
    if step_m <= 0 or speed_mps <= 0:
        return []
    rng = np.random.default_rng(seed)
    corners = list(corners_m)
    if close_loop and corners:
        corners.append(corners[0])

    xy: List[Tuple[float, float]] = [corners[0]] if corners else []
    for (x1, y1), (x2, y2) in zip(corners, corners[1:]):
        length = math.hypot(x2 - x1, y2 - y1)
        steps = max(1, int(round(length / step_m)))
        for k in range(1, steps + 1):
            t = k / steps
            xy.append((x1 + (x2 - x1) * t, y1 + (y2 - y1) * t))

    fixes: List[GeoPoint] = []
    timestamp = start_time
    prev = None
    for x, y in xy:
        if prev is not None:
            timestamp += math.hypot(x - prev[0], y - prev[1]) / speed_mps
        prev = (x, y)
        if jitter_m > 0:
            dx, dy = rng.normal(0.0, jitter_m, size=2)
        else:
            dx, dy = 0.0, 0.0
        lat, lon = to_lat_lon(x + dx, y + dy, origin)
        fixes.append(GeoPoint(lat=lat, lon=lon, accuracy_m=accuracy_m, timestamp=timestamp))
    return fixes


def square_loop(origin: Tuple[float, float], side_m: float, **kwargs) -> List[GeoPoint]:
    corners = [(0.0, 0.0), (side_m, 0.0), (side_m, side_m), (0.0, side_m)]
    return walk_outline(origin, corners, **kwargs)


def inject_teleport(fixes: Sequence[GeoPoint], index: int, dx_m: float, dy_m: float = 0.0) -> List[GeoPoint]:
    """Insert a spoofed fix after fixes[index], displaced by (dx, dy) metres, 1 s later."""
    out = list(fixes)
    base = out[index]
    moved = offset_point(base, dx_m, dy_m)
    ts = None if base.timestamp is None else base.timestamp + 1.0
    out.insert(index + 1, replace(base, lat=moved.lat, lon=moved.lon, timestamp=ts))
    return out
