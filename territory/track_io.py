"""CSV loading of recorded location fixes."""

import csv
import logging
from pathlib import Path
from typing import List, Sequence

from territory.models import GeoPoint

logger = logging.getLogger(__name__)

FIELDNAMES = ("latitude", "longitude", "accuracy", "timestamp", "speed")


def _optional_float(value: str | None) -> float | None:
    if value is None or value.strip() == "":
        return None
    return float(value)


def load_fixes(csv_path: str | Path) -> List[GeoPoint]:
    """Rows need latitude and longitude; accuracy, timestamp (epoch seconds) and speed may be blank."""
    fixes: List[GeoPoint] = []
    rows_total = 0
    with Path(csv_path).open("r", encoding="utf-8", newline="") as f:
        reader = csv.DictReader(f)
        for row in reader:
            rows_total += 1
            try:
                fixes.append(
                    GeoPoint(
                        lat=float(row["latitude"]),
                        lon=float(row["longitude"]),
                        accuracy_m=_optional_float(row.get("accuracy")),
                        timestamp=_optional_float(row.get("timestamp")),
                        speed_mps=_optional_float(row.get("speed")),
                    )
                )
            except (KeyError, ValueError, TypeError):
                continue
    skipped = rows_total - len(fixes)
    if skipped > 0:
        logger.warning("Skipped %s unparsable rows in %s", skipped, csv_path)
    return fixes


def write_fixes(fixes: Sequence[GeoPoint], csv_path: str | Path):
    with Path(csv_path).open("w", encoding="utf-8", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=FIELDNAMES)
        writer.writeheader()
        for fix in fixes:
            writer.writerow(
                {
                    "latitude": fix.lat,
                    "longitude": fix.lon,
                    "accuracy": "" if fix.accuracy_m is None else fix.accuracy_m,
                    "timestamp": "" if fix.timestamp is None else fix.timestamp,
                    "speed": "" if fix.speed_mps is None else fix.speed_mps,
                }
            )
