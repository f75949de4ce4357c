#!/usr/bin/env python3
"""
GPSlife command line.

  gpslife timeline SAMPLES [--places places.json] [--json]
      Segment a day's samples into movements and place visits.

  gpslife replay SAMPLES [--export gpx|csv|json] [--out DIR]
      Feed recorded samples through the live session tracker, using the
      samples' own timestamps as the clock, and report the session.

  gpslife stats SAMPLES [SAMPLES ...]
      Replay each file as one session and report totals across them.

SAMPLES is a .gpx or .csv file (CSV in the export layout).
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Optional, Sequence

from gpslife.analyze.timeline import compute_timeline, summarize_day
from gpslife.analyze.track import aggregate_statistics, analyze_session, format_duration
from gpslife.config import GPSlifeConfig, load_config
from gpslife.errors import GPSlifeError
from gpslife.formats.export import EXPORT_FORMATS, export_session, load_samples
from gpslife.formats.json_io import read_places_json
from gpslife.models import MovementEvent, TimelineGroup
from gpslife.tracking.tracker import SampleOutcome, SessionTracker
from gpslife.util.logging import configure_logging, log
from gpslife.util.timeutils import iso_utc_from_ms


# ---------------------------
# timeline
# ---------------------------
def _event_line(event) -> str:
    if isinstance(event, MovementEvent):
        return (
            f"  {iso_utc_from_ms(event.start_time)}  {event.transport_mode.value:<14} "
            f"{event.distance / 1000:.2f} km  {format_duration(event.duration)}  "
            f"{event.average_speed_kmh:.1f} km/h avg"
        )
    return (
        f"  {iso_utc_from_ms(event.arrival_time)}  {event.place.name}  "
        f"({event.place.category})  {format_duration(event.duration)}  "
        f"{event.location_count} points"
    )


def _group_to_dict(group: TimelineGroup) -> dict:
    events = []
    for e in group.events:
        if isinstance(e, MovementEvent):
            events.append({
                "type": e.kind,
                "startTime": e.start_time,
                "endTime": e.end_time,
                "distance": e.distance,
                "duration": e.duration,
                "averageSpeed": e.average_speed_kmh,
                "transportMode": e.transport_mode.value,
            })
        else:
            events.append({
                "type": e.kind,
                "placeId": e.place.id,
                "placeName": e.place.name,
                "arrivalTime": e.arrival_time,
                "departureTime": e.departure_time,
                "duration": e.duration,
                "locationCount": e.location_count,
            })
    return {"startTime": group.start_time, "endTime": group.end_time, "events": events}


def cmd_timeline(args: argparse.Namespace, cfg: GPSlifeConfig) -> int:
    samples = load_samples(Path(args.samples).expanduser())
    places = read_places_json(Path(args.places).expanduser()) if args.places else []

    groups = compute_timeline(samples, places, cfg.timeline)
    summary = summarize_day(groups)

    if args.json:
        print(json.dumps({
            "summary": {
                "totalDistance": summary.total_distance_m,
                "totalMovementTime": summary.total_movement_ms,
                "placesVisited": summary.places_visited,
            },
            "groups": [_group_to_dict(g) for g in groups],
        }, indent=2))
        return 0

    if not groups:
        print("No timeline events.")
        return 0

    print(
        f"{summary.total_distance_m / 1000:.1f} km  "
        f"{format_duration(summary.total_movement_ms)} moving  "
        f"{summary.places_visited} places"
    )
    for g in groups:
        print(f"\n{iso_utc_from_ms(g.start_time)} - {iso_utc_from_ms(g.end_time)}")
        for e in g.events:
            print(_event_line(e))
    return 0


# ---------------------------
# replay / stats
# ---------------------------
def _replay(path: Path, cfg: GPSlifeConfig, minimum_distance: Optional[float]):
    """
    Feed one samples file through a fresh tracker, using the samples' own
    timestamps as the clock. Returns (session, outcome counts).
    """
    samples = sorted(load_samples(path), key=lambda s: s.timestamp)
    if not samples:
        raise SystemExit(f"No samples found in {path}")

    clock_state = {"now": samples[0].timestamp}
    tracker = SessionTracker(cfg.tracker, clock=lambda: clock_state["now"])
    if minimum_distance is not None:
        tracker.update_settings(minimum_distance=minimum_distance)

    counts: dict[SampleOutcome, int] = {}
    tracker.start()
    for s in samples:
        clock_state["now"] = s.timestamp
        outcome = tracker.accept_sample(s)
        counts[outcome] = counts.get(outcome, 0) + 1
    return tracker.stop(), counts


def cmd_replay(args: argparse.Namespace, cfg: GPSlifeConfig) -> int:
    session, counts = _replay(Path(args.samples).expanduser(), cfg, args.minimum_distance)

    stats = analyze_session(session)
    print(f"\n{args.samples}")
    print(f"  points        : {stats['points']}")
    print(f"  segments      : {stats['segments']}")
    print(f"  distance (m)  : {stats['distance_m']:.2f}")
    print(f"  duration (s)  : {stats['duration_s']:.1f}")
    print(f"  avg speed km/h: {stats['avg_speed_kmh']:.2f}")
    print(f"  max speed km/h: {stats['max_speed_kmh']:.2f}")
    for outcome, n in sorted(counts.items(), key=lambda kv: kv[0].value):
        print(f"  {outcome.value:<14}: {n}")

    if args.export:
        out_dir = Path(args.out).expanduser() if args.out else cfg.paths.export_root
        path = export_session(session, args.export, out_dir)
        log(f"Exported {path}")

    return 0


def cmd_stats(args: argparse.Namespace, cfg: GPSlifeConfig) -> int:
    sessions = []
    for name in args.samples:
        session, _ = _replay(Path(name).expanduser(), cfg, args.minimum_distance)
        sessions.append(session)

    totals = aggregate_statistics(sessions)
    print(f"  sessions      : {totals.total_sessions}")
    print(f"  points        : {totals.total_points}")
    print(f"  tracking days : {totals.tracking_days}")
    print(f"  distance (km) : {totals.total_distance_km:.2f}")
    print(f"  duration (h)  : {totals.total_duration_hours:.2f}")
    print(f"  top speed km/h: {totals.top_speed_kmh:.2f}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="gpslife", description="GPSlife: tracking sessions and daily timelines.")
    ap.add_argument("--verbose", action="store_true", help="More logging.")
    sub = ap.add_subparsers(dest="command", required=True)

    tl = sub.add_parser("timeline", help="Segment samples into a grouped timeline.")
    tl.add_argument("samples", help="Samples file (.gpx or .csv).")
    tl.add_argument("--places", default=None, help="JSON list of known places.")
    tl.add_argument("--json", action="store_true", help="Print the timeline as JSON.")
    tl.set_defaults(func=cmd_timeline)

    rp = sub.add_parser("replay", help="Replay samples through the session tracker.")
    rp.add_argument("samples", help="Samples file (.gpx or .csv).")
    rp.add_argument("--minimum-distance", type=float, default=None,
                    help="Override tracker minimum distance (m).")
    rp.add_argument("--export", choices=EXPORT_FORMATS, default=None,
                    help="Export the session in this format.")
    rp.add_argument("--out", default=None,
                    help="Export directory (default: from GPSlife config or ~/GPS/_exports).")
    rp.set_defaults(func=cmd_replay)

    st = sub.add_parser("stats", help="Replay several sample files and report totals.")
    st.add_argument("samples", nargs="+", help="Samples files (.gpx or .csv), one session each.")
    st.add_argument("--minimum-distance", type=float, default=None,
                    help="Override tracker minimum distance (m).")
    st.set_defaults(func=cmd_stats)

    return ap


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.verbose)

    try:
        cfg = load_config()
        return args.func(args, cfg)
    except (GPSlifeError, OSError) as e:
        print(f"gpslife: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
