import logging
import time
from typing import Callable, Dict, Iterable

from territory.config import ClaimSettings, get_settings
from territory.errors import InvalidStateError
from territory.models import ClaimUpdate, ConfirmedTerritory, GeoPoint, Polygon, SessionState
from territory.path_tracker import PathTracker
from territory.proximity import ProximityChecker
from territory.validator import PolygonValidator

logger = logging.getLogger(__name__)


class TerritoryClaimSession:
    """
    One claim attempt, from begin_claim() to confirm_and_extract().

    Owned by whoever drives the claim flow; not shared between threads. Fixes have to
    be submitted one at a time.
    """

    def __init__(
        self,
        settings: ClaimSettings | None = None,
        neighbours: Iterable[ConfirmedTerritory] = (),
        clock: Callable[[], float] = time.time,
    ):
        self.settings = settings or get_settings()
        self.clock = clock
        self.tracker = PathTracker(self.settings, clock=clock)
        self.validator = PolygonValidator(self.settings)
        self.proximity = ProximityChecker(neighbours)

    @property
    def state(self) -> SessionState:
        return self.tracker.state

    @property
    def result(self):
        return self.tracker.result

    def begin_claim(self):
        self.tracker.start()

    def submit_sample(self, fix: GeoPoint) -> ClaimUpdate:
        sample = self.tracker.ingest(fix)
        update = ClaimUpdate(sample=sample, state=self.tracker.state, warning=sample.warning)
        if sample.accepted and self.proximity.territories:
            update.proximity = self.proximity.check_path(self.tracker.points)

        if self.tracker.state is SessionState.CLOSED:
            result = self.validator.validate(self.tracker.candidate)
            self.tracker.record_result(result)
            update.result = result
            update.state = self.tracker.state
        return update

    def resume(self):
        self.tracker.resume()

    def confirm_and_extract(self) -> ConfirmedTerritory:
        if self.tracker.state is not SessionState.VALIDATED:
            raise InvalidStateError("confirm the territory", self.tracker.state, (SessionState.VALIDATED,))
        result = self.tracker.result
        territory = ConfirmedTerritory(
            polygon=Polygon(self.tracker.candidate.vertices),
            area_m2=result.area_m2,
            perimeter_m=result.perimeter_m,
            started_at=self.tracker.started_at,
            completed_at=self.tracker.closed_at,
            distance_walked_m=self.tracker.path_length_m,
        )
        logger.info("Territory confirmed: %s, %s points", territory.formatted_area, territory.point_count)
        self.tracker.reset()
        return territory

    def cancel(self):
        self.tracker.cancel()

    def snapshot(self) -> Dict:
        tracker = self.tracker
        to_start = tracker.distance_to_start_m()
        return {
            "state": tracker.state.value,
            "points": [{"lat": p.lat, "lon": p.lon} for p in tracker.points],
            "point_count": len(tracker.samples),
            "path_length_m": tracker.path_length_m,
            "distance_to_start_m": to_start,
            "rejected_count": len(tracker.sample_filter.rejected),
            "skipped_count": tracker.sample_filter.skipped_count,
            "started_at": tracker.started_at,
            "result": tracker.result.to_dict() if tracker.result else None,
        }
