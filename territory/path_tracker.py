import logging
import threading
import time
from typing import Callable, List

from territory.config import ClaimSettings, get_settings
from territory.errors import InvalidStateError
from territory.geo import distance_m
from territory.models import CandidatePolygon, GeoPoint, PathSample, SessionState, ValidationResult
from territory.sample_filter import SampleFilter

logger = logging.getLogger(__name__)


class PathTracker:
    """
    Owns the accepted sample sequence of one claim attempt and detects loop closure.

    Idle -> Tracking -> Closed -> (Validated | Failed) -> Idle
    """

    def __init__(
        self,
        settings: ClaimSettings | None = None,
        sample_filter: SampleFilter | None = None,
        clock: Callable[[], float] = time.time,
    ):
        self.settings = settings or get_settings()
        self.sample_filter = sample_filter or SampleFilter(self.settings)
        self.clock = clock
        self._ingest_lock = threading.Lock()
        self._clear()

    def _clear(self):
        self.state = SessionState.IDLE
        self.samples: List[PathSample] = []
        self.started_at: float | None = None
        self.closed_at: float | None = None
        self.path_length_m = 0.0
        self.candidate: CandidatePolygon | None = None
        self.result: ValidationResult | None = None
        self._armed = False
        self.sample_filter.reset()

    @property
    def points(self) -> List[GeoPoint]:
        return [s.point for s in self.samples]

    def distance_to_start_m(self) -> float | None:
        if not self.samples:
            return None
        return distance_m(self.samples[-1].point, self.samples[0].point)

    def _require(self, operation: str, *states: SessionState):
        if self.state not in states:
            raise InvalidStateError(operation, self.state, states)

    def start(self):
        self._require("start tracking", SessionState.IDLE)
        self._clear()
        self.state = SessionState.TRACKING
        self.started_at = self.clock()
        logger.info("Tracking started")

    def resume(self):
        """Failed -> Tracking, keeping the samples walked so far."""
        self._require("resume tracking", SessionState.FAILED)
        self.state = SessionState.TRACKING
        self.candidate = None
        self.result = None
        self.closed_at = None
        self._armed = False
        logger.info("Tracking resumed with %s points", len(self.samples))

    def cancel(self):
        if self.state is not SessionState.IDLE:
            logger.info("Tracking cancelled in state %s with %s points", self.state.value, len(self.samples))
        self._clear()

    def ingest(self, fix: GeoPoint) -> PathSample:
        if not self._ingest_lock.acquire(blocking=False):
            raise InvalidStateError("ingest concurrently", self.state)
        try:
            self._require("ingest a fix", SessionState.TRACKING)
            sample = self.sample_filter.accept(fix)
            if not sample.accepted:
                return sample
            if self.samples:
                self.path_length_m += distance_m(self.samples[-1].point, fix)
            self.samples.append(sample)
            logger.info(
                "Recorded point #%s (%.6f, %.6f), path %.1f m",
                len(self.samples),
                fix.lat,
                fix.lon,
                self.path_length_m,
            )
            self._check_closure()
            return sample
        finally:
            self._ingest_lock.release()

    def _check_closure(self):
        cfg = self.settings
        to_start = self.distance_to_start_m()
        if to_start > cfg.closure_distance_m:
            self._armed = True
            return
        if not self._armed:
            return
        if len(self.samples) < cfg.min_closure_points:
            logger.debug("Closure skipped, %s/%s points", len(self.samples), cfg.min_closure_points)
            return
        if self.path_length_m < cfg.min_path_length_m:
            logger.debug("Closure skipped, path %.1f/%.1f m", self.path_length_m, cfg.min_path_length_m)
            return

        self.candidate = CandidatePolygon.from_points(self.points)
        self.state = SessionState.CLOSED
        self.closed_at = self.clock()
        logger.info("Loop closed %.1f m from start with %s points", to_start, len(self.samples))

    def record_result(self, result: ValidationResult):
        """Closed -> Validated or Failed."""
        self._require("record a validation result", SessionState.CLOSED)
        self.result = result
        self.state = SessionState.VALIDATED if result.passed else SessionState.FAILED

    def reset(self):
        self._clear()
