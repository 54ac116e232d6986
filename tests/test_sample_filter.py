from dataclasses import replace

from territory.geo import to_lat_lon
from territory.models import GeoPoint, SampleVerdict
from territory.sample_filter import SampleFilter

ORIGIN = (48.5, 32.25)


def _fix(x, y, t, accuracy=5.0, speed=None):
    lat, lon = to_lat_lon(x, y, ORIGIN)
    return GeoPoint(lat=lat, lon=lon, accuracy_m=accuracy, timestamp=t, speed_mps=speed)


def test_speed_rejection_and_slow_acceptance():
    f = SampleFilter()
    assert f.accept(_fix(0, 0, 0.0)).verdict is SampleVerdict.ACCEPTED

    fast = f.accept(_fix(100, 0, 1.0))
    assert fast.verdict is SampleVerdict.REJECTED_SPEED
    assert fast.speed_mps > 90
    assert fast.warning is not None
    assert fast.warning.display_seconds == 3.0

    slow = f.accept(_fix(100, 0, 120.0))
    assert slow.verdict is SampleVerdict.ACCEPTED
    assert slow.warning is None


def test_rejected_fix_does_not_replace_last_accepted():
    f = SampleFilter()
    start = _fix(0, 0, 0.0)
    f.accept(start)
    assert f.accept(_fix(500, 0, 1.0)).verdict is SampleVerdict.REJECTED_SPEED
    assert f.last_accepted == start
    assert f.accept(_fix(20, 0, 20.0)).verdict is SampleVerdict.ACCEPTED
    assert len(f.rejected) == 1


def test_accuracy_rejection():
    f = SampleFilter()
    assert f.accept(_fix(0, 0, 0.0, accuracy=80.0)).verdict is SampleVerdict.REJECTED_ACCURACY
    assert f.accept(_fix(0, 0, 0.0, accuracy=-1.0)).verdict is SampleVerdict.REJECTED_ACCURACY
    assert f.last_accepted is None


def test_clock_anomaly_is_rejected():
    f = SampleFilter()
    f.accept(_fix(0, 0, 10.0))
    assert f.accept(_fix(20, 0, 10.0)).verdict is SampleVerdict.REJECTED_SPEED
    assert f.accept(_fix(20, 0, 5.0)).verdict is SampleVerdict.REJECTED_SPEED
    no_time = replace(_fix(20, 0, 0.0), timestamp=None)
    assert f.accept(no_time).verdict is SampleVerdict.REJECTED_SPEED


def test_close_fixes_are_skipped():
    f = SampleFilter()
    f.accept(_fix(0, 0, 0.0))
    sample = f.accept(_fix(3, 0, 10.0))
    assert sample.verdict is SampleVerdict.SKIPPED
    assert sample.warning is None
    assert f.skipped_count == 1
    assert f.rejected == []


def test_fast_but_allowed_speed_warns():
    f = SampleFilter()
    f.accept(_fix(0, 0, 0.0))
    sample = f.accept(_fix(50, 0, 10.0))  # 5 m/s, 18 km/h
    assert sample.verdict is SampleVerdict.ACCEPTED
    assert sample.warning is not None
    assert sample.warning.verdict is SampleVerdict.ACCEPTED


def test_reported_speed_counts():
    f = SampleFilter()
    f.accept(_fix(0, 0, 0.0))
    assert f.accept(_fix(20, 0, 10.0, speed=12.0)).verdict is SampleVerdict.REJECTED_SPEED


def test_check_does_not_touch_state():
    f = SampleFilter()
    a, b = _fix(0, 0, 0.0), _fix(100, 0, 1.0)
    assert f.check(b, a).verdict is SampleVerdict.REJECTED_SPEED
    assert f.check(_fix(100, 0, 120.0), a).verdict is SampleVerdict.ACCEPTED
    assert f.last_accepted is None
    assert f.rejected == []


def test_untimed_first_fix_does_not_become_reference():
    f = SampleFilter()
    untimed = replace(_fix(0, 0, 0.0), timestamp=None)
    sample = f.accept(untimed)
    assert sample.verdict is SampleVerdict.REJECTED_SPEED
    assert sample.warning.message.startswith("Clock anomaly")
    assert f.last_accepted is None

    assert f.accept(_fix(0, 0, 5.0)).verdict is SampleVerdict.ACCEPTED
    assert f.accept(_fix(20, 0, 20.0)).verdict is SampleVerdict.ACCEPTED
