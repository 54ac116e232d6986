import os
import sys
import time
import json
import csv
import math

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
sys.path.append(PROJECT_ROOT)

from territory.geo import to_lat_lon
from territory.models import CandidatePolygon, GeoPoint
from territory.validator import PolygonValidator


def circle_polygon(n, radius_m=200.0, origin=(48.5, 32.25)):
    pts = []
    for k in range(n):
        a = 2 * math.pi * k / n
        lat, lon = to_lat_lon(radius_m * math.cos(a), radius_m * math.sin(a), origin)
        pts.append(GeoPoint(lat=lat, lon=lon))
    return CandidatePolygon.from_points(pts)


def measure_speed(validator, n, repeats=5):
    """
    Average validate() time for an n-vertex ring.
    """
    candidate = circle_polygon(n)
    start = time.time()
    for _ in range(repeats):
        result = validator.validate(candidate)
    end = time.time()
    return {
        "vertices": n,
        "passed": result.passed,
        "avg_time_sec": (end - start) / repeats,
    }


def main():
    out_dir = "data/results/speed"
    os.makedirs(out_dir, exist_ok=True)

    validator = PolygonValidator()
    results = []
    for n in [10, 25, 50, 100, 200]:
        print(f"Validating {n} vertices...")
        results.append(measure_speed(validator, n))

    with open(os.path.join(out_dir, "validation_speed.json"), "w") as f:
        json.dump(results, f, indent=4)

    with open(os.path.join(out_dir, "validation_speed.csv"), "w", newline="") as f:
        w = csv.writer(f)
        w.writerow(["vertices", "passed", "avg_time_sec"])
        for r in results:
            w.writerow([r["vertices"], r["passed"], r["avg_time_sec"]])

    print("\n=== VALIDATION SPEED COMPLETE ===")
    print(json.dumps(results, indent=4))


if __name__ == "__main__":
    main()
