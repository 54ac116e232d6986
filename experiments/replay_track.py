import os
import sys
import json
import argparse

import matplotlib.pyplot as plt

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
sys.path.append(PROJECT_ROOT)

from territory.claim_session import TerritoryClaimSession
from territory.config import ClaimSettings
from territory.geo import to_local_xy
from territory.models import SessionState
from territory.track_io import load_fixes, write_fixes
from territory.track_simulator import inject_teleport, square_loop


RESULTS_DIR = os.path.join("data", "results", "claims")


def replay(fixes, settings):
    """
    Feeds recorded fixes into a fresh claim session until it stops tracking.
    Returns the session and the per-verdict counts.
    """
    session = TerritoryClaimSession(settings)
    session.begin_claim()
    counts = {}
    for fix in fixes:
        if session.state is not SessionState.TRACKING:
            break
        update = session.submit_sample(fix)
        verdict = update.sample.verdict.value
        counts[verdict] = counts.get(verdict, 0) + 1
        if update.warning is not None:
            print(f"  ! {update.warning.message}")
    return session, counts


def plot_track(fixes, session, out_path):
    origin = (fixes[0].lat, fixes[0].lon)
    raw = [to_local_xy(f.lat, f.lon, origin) for f in fixes]
    kept = [to_local_xy(p.lat, p.lon, origin) for p in session.tracker.points]

    plt.figure(figsize=(6, 6))
    plt.plot([p[0] for p in raw], [p[1] for p in raw], "x", color="grey", label="fixes")
    if kept:
        ring = kept + [kept[0]] if session.state is not SessionState.TRACKING else kept
        plt.plot([p[0] for p in ring], [p[1] for p in ring], "-o", label="claim path")
    plt.axis("equal")
    plt.xlabel("east, m")
    plt.ylabel("north, m")
    plt.title(f"Claim replay: {session.state.value}")
    plt.legend()
    plt.grid(True)
    plt.tight_layout()
    plt.savefig(out_path)
    plt.close()


def main():
    parser = argparse.ArgumentParser(description="Replay a recorded track through the claim engine")
    parser.add_argument("csv", nargs="?", help="track CSV (latitude,longitude,accuracy,timestamp,speed)")
    parser.add_argument("--plot", action="store_true")
    args = parser.parse_args()

    os.makedirs(RESULTS_DIR, exist_ok=True)

    if args.csv:
        fixes = load_fixes(args.csv)
    else:
        # demo walk with one spoofed jump
        fixes = inject_teleport(square_loop((48.5, 32.25), 60, jitter_m=1.0, seed=7), 3, dx_m=250.0)
        write_fixes(fixes, os.path.join(RESULTS_DIR, "demo_track.csv"))

    settings = ClaimSettings.from_env()
    session, counts = replay(fixes, settings)

    report = {"state": session.state.value, "verdicts": counts, "snapshot": session.snapshot()}
    if session.state is SessionState.VALIDATED:
        territory = session.confirm_and_extract()
        report["territory"] = territory.to_dict()
        print(f"Claimed {territory.formatted_area} with {territory.point_count} points")
    elif session.result is not None:
        print(f"Claim failed: {session.result.detail}")
    else:
        print("Track ended without closing the loop")

    with open(os.path.join(RESULTS_DIR, "replay.json"), "w") as f:
        json.dump(report, f, indent=4)

    if args.plot:
        plot_track(fixes, session, os.path.join(RESULTS_DIR, "replay.png"))

    print("\n=== REPLAY COMPLETE ===")
    print(json.dumps(report["verdicts"], indent=4))


if __name__ == "__main__":
    main()
