from dataclasses import replace

import pytest

from territory.config import ClaimSettings
from territory.errors import InvalidStateError
from territory.models import FailureReason, SampleVerdict, SessionState, ValidationResult
from territory.path_tracker import PathTracker
from territory.sample_filter import SampleFilter
from territory.track_simulator import inject_teleport, square_loop
from territory.validator import PolygonValidator

ORIGIN = (48.5, 32.25)


def _feed_until_closed(tracker, fixes):
    fed = 0
    for fix in fixes:
        if tracker.state is not SessionState.TRACKING:
            break
        tracker.ingest(fix)
        fed += 1
    return fed


def test_ingest_requires_tracking():
    tracker = PathTracker()
    with pytest.raises(InvalidStateError):
        tracker.ingest(square_loop(ORIGIN, 50)[0])


def test_start_twice_is_an_error():
    tracker = PathTracker()
    tracker.start()
    with pytest.raises(InvalidStateError):
        tracker.start()


def test_square_walk_closes_loop():
    fixes = square_loop(ORIGIN, 50, step_m=12.5)
    tracker = PathTracker(clock=lambda: 1000.0)
    tracker.start()
    fed = _feed_until_closed(tracker, fixes)

    assert tracker.state is SessionState.CLOSED
    assert fed < len(fixes)
    assert tracker.distance_to_start_m() <= tracker.settings.closure_distance_m
    assert tracker.path_length_m >= tracker.settings.min_path_length_m
    candidate = tracker.candidate
    assert len(candidate) == len(tracker.samples)
    assert candidate[0] == fixes[0]
    assert tracker.started_at == 1000.0

    with pytest.raises(InvalidStateError):
        tracker.ingest(fixes[fed])


def test_loop_that_never_leaves_start_area_stays_open():
    tracker = PathTracker()
    tracker.start()
    for fix in square_loop(ORIGIN, 20, step_m=10.0):
        tracker.ingest(fix)
    assert tracker.state is SessionState.TRACKING
    assert tracker.candidate is None


def test_rejected_samples_are_not_appended():
    fixes = inject_teleport(square_loop(ORIGIN, 50, step_m=12.5), 3, dx_m=400.0)
    tracker = PathTracker()
    tracker.start()
    verdicts = [tracker.ingest(f).verdict for f in fixes[:6]]
    assert verdicts[4] is SampleVerdict.REJECTED_SPEED
    assert len(tracker.samples) == 5
    assert fixes[4] not in tracker.points


def test_cancel_discards_everything():
    tracker = PathTracker()
    tracker.start()
    for fix in square_loop(ORIGIN, 50)[:5]:
        tracker.ingest(fix)
    tracker.cancel()
    assert tracker.state is SessionState.IDLE
    assert tracker.samples == []
    assert tracker.sample_filter.last_accepted is None


def test_resume_after_failure_keeps_samples_and_rearms():
    fixes = square_loop(ORIGIN, 50, step_m=12.5)
    tracker = PathTracker()
    tracker.start()
    fed = _feed_until_closed(tracker, fixes)
    tracker.record_result(ValidationResult.failure(FailureReason.AREA_TOO_SMALL))
    assert tracker.state is SessionState.FAILED

    kept = len(tracker.samples)
    tracker.resume()
    assert tracker.state is SessionState.TRACKING
    assert len(tracker.samples) == kept

    # still inside the closure radius, so no immediate re-close
    for fix in fixes[fed:]:
        tracker.ingest(fix)
    assert tracker.state is SessionState.TRACKING
    assert len(tracker.samples) > kept


def test_resume_only_from_failed():
    tracker = PathTracker()
    with pytest.raises(InvalidStateError):
        tracker.resume()


class _ReentrantFilter(SampleFilter):
    """Feeds the fix back into the tracker from inside ingest."""

    tracker = None

    def accept(self, fix):
        self.tracker.ingest(fix)
        return super().accept(fix)


def test_reentrant_ingest_is_a_usage_error():
    sample_filter = _ReentrantFilter()
    tracker = PathTracker(sample_filter=sample_filter)
    sample_filter.tracker = tracker
    tracker.start()
    with pytest.raises(InvalidStateError, match="concurrently"):
        tracker.ingest(square_loop(ORIGIN, 50)[0])
    assert tracker.samples == []
    assert not tracker._ingest_lock.locked()


def test_ingest_while_lock_is_held_is_rejected():
    tracker = PathTracker()
    tracker.start()
    fix = square_loop(ORIGIN, 50)[0]
    with tracker._ingest_lock:
        with pytest.raises(InvalidStateError):
            tracker.ingest(fix)
    assert tracker.ingest(fix).verdict is SampleVerdict.ACCEPTED


def test_stationary_fix_does_not_repeat_a_vertex():
    fixes = square_loop(ORIGIN, 50, step_m=12.5)
    stationary = replace(fixes[4], timestamp=fixes[4].timestamp + 5.0)
    later = [replace(f, timestamp=f.timestamp + 5.0) for f in fixes[5:]]
    tracker = PathTracker(ClaimSettings(min_sample_spacing_m=0.0))
    tracker.start()
    _feed_until_closed(tracker, fixes[:5] + [stationary] + later)

    assert tracker.state is SessionState.CLOSED
    assert len(tracker.candidate) == len(tracker.samples) - 1
    assert PolygonValidator().validate(tracker.candidate).passed
