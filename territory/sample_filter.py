import logging
from typing import List

from territory.config import ClaimSettings, get_settings
from territory.geo import distance_m
from territory.models import GeoPoint, PathSample, SampleVerdict, SpeedWarning

logger = logging.getLogger(__name__)


class SampleFilter:
    """
    Anti-cheat filter for incoming fixes. Holds the last accepted fix; rejected or
    skipped fixes never replace it, so one bad fix cannot poison later speed checks.
    """

    def __init__(self, settings: ClaimSettings | None = None):
        self.settings = settings or get_settings()
        self.last_accepted: GeoPoint | None = None
        self.rejected: List[PathSample] = []
        self.skipped_count = 0
        self._next_index = 0

    def reset(self):
        self.last_accepted = None
        self.rejected = []
        self.skipped_count = 0
        self._next_index = 0

    def _warning(self, verdict: SampleVerdict, message: str, speed_mps: float | None) -> SpeedWarning:
        return SpeedWarning(
            verdict=verdict,
            message=message,
            speed_mps=speed_mps,
            display_seconds=self.settings.warning_display_seconds,
        )

    def _clock_anomaly(self, fix: GeoPoint, index: int, dist: float | None) -> PathSample:
        return PathSample(
            point=fix,
            verdict=SampleVerdict.REJECTED_SPEED,
            index=index,
            distance_from_last_m=dist,
            warning=self._warning(SampleVerdict.REJECTED_SPEED, "Clock anomaly, point ignored", None),
        )

    def check(self, fix: GeoPoint, last_accepted: GeoPoint | None, index: int = 0) -> PathSample:
        """Classify a fix against the previous accepted one without touching filter state."""
        cfg = self.settings

        if fix.accuracy_m is not None and (fix.accuracy_m < 0 or fix.accuracy_m > cfg.max_accuracy_m):
            return PathSample(
                point=fix,
                verdict=SampleVerdict.REJECTED_ACCURACY,
                index=index,
                warning=self._warning(
                    SampleVerdict.REJECTED_ACCURACY,
                    f"GPS accuracy too low ({fix.accuracy_m:.0f} m), point ignored",
                    None,
                ),
            )

        # an accepted fix becomes the speed reference, so it must carry a time
        if fix.timestamp is None:
            return self._clock_anomaly(fix, index, None)

        if last_accepted is None:
            return PathSample(point=fix, verdict=SampleVerdict.ACCEPTED, index=index)

        dist = distance_m(last_accepted, fix)
        if last_accepted.timestamp is None or fix.timestamp - last_accepted.timestamp <= 0:
            return self._clock_anomaly(fix, index, dist)
        elapsed = fix.timestamp - last_accepted.timestamp

        if dist < cfg.min_sample_spacing_m:
            return PathSample(point=fix, verdict=SampleVerdict.SKIPPED, index=index, distance_from_last_m=dist)

        speed = dist / elapsed
        if fix.speed_mps is not None and fix.speed_mps >= 0:
            speed = max(speed, fix.speed_mps)

        if speed > cfg.max_speed_mps:
            return PathSample(
                point=fix,
                verdict=SampleVerdict.REJECTED_SPEED,
                index=index,
                speed_mps=speed,
                distance_from_last_m=dist,
                warning=self._warning(
                    SampleVerdict.REJECTED_SPEED,
                    f"Moving too fast ({speed * 3.6:.1f} km/h), point ignored",
                    speed,
                ),
            )

        warning = None
        if speed >= cfg.speed_warning_mps:
            warning = self._warning(
                SampleVerdict.ACCEPTED,
                f"Moving fast ({speed * 3.6:.1f} km/h), slow down",
                speed,
            )
        return PathSample(
            point=fix,
            verdict=SampleVerdict.ACCEPTED,
            index=index,
            speed_mps=speed,
            distance_from_last_m=dist,
            warning=warning,
        )

    def accept(self, fix: GeoPoint) -> PathSample:
        sample = self.check(fix, self.last_accepted, index=self._next_index)
        self._next_index += 1
        if sample.verdict is SampleVerdict.ACCEPTED:
            self.last_accepted = fix
        elif sample.verdict is SampleVerdict.SKIPPED:
            self.skipped_count += 1
        else:
            self.rejected.append(sample)
            logger.warning("Fix #%s %s: %s", sample.index, sample.verdict.value, sample.warning.message)
        return sample
