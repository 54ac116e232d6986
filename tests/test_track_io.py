from territory.models import GeoPoint
from territory.track_io import load_fixes, write_fixes
from territory.track_simulator import square_loop


def test_written_track_loads_back(tmp_path):
    fixes = square_loop((48.5, 32.25), 50, step_m=12.5, start_time=100.0)
    path = tmp_path / "track.csv"
    write_fixes(fixes, path)
    loaded = load_fixes(path)
    assert len(loaded) == len(fixes)
    assert loaded[3].timestamp == fixes[3].timestamp
    assert loaded[0].accuracy_m == 5.0
    assert loaded[0].speed_mps is None


def test_bad_rows_are_skipped(tmp_path):
    path = tmp_path / "track.csv"
    path.write_text(
        "latitude,longitude,accuracy,timestamp,speed\n"
        "48.5,32.25,4,1000,\n"
        "not-a-number,32.25,4,1001,\n"
        "48.5001,,4,1002,\n"
        "48.5002,32.2501,,,1.2\n",
        encoding="utf-8",
    )
    loaded = load_fixes(path)
    assert loaded == [
        GeoPoint(lat=48.5, lon=32.25, accuracy_m=4.0, timestamp=1000.0),
        GeoPoint(lat=48.5002, lon=32.2501, speed_mps=1.2),
    ]
