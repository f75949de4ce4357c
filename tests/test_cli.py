import json
from pathlib import Path

import pytest

import gpslife.cli as cli
from gpslife.config import load_config
from conftest import MINUTE, NYC, T0, north_of


@pytest.fixture(autouse=True)
def isolated_config(tmp_path: Path, monkeypatch):
    monkeypatch.setattr(
        cli,
        "load_config",
        lambda: load_config(repo_root=tmp_path, user_config_path=tmp_path / "none.toml"),
    )


@pytest.fixture
def samples_csv(tmp_path: Path) -> Path:
    rows = ["timestamp,latitude,longitude,altitude,accuracy,speed,heading"]
    for m in range(0, 31, 5):
        rows.append(f"{T0 + m * MINUTE},{NYC[0]},{NYC[1]},,10,,")
    lat = NYC[0]
    for i in range(1, 4):
        lat = north_of(lat, 200.0)
        rows.append(f"{T0 + (30 + 2 * i) * MINUTE},{lat!r},{NYC[1]},,10,,")
    for m in (41, 46, 51, 56):
        rows.append(f"{T0 + m * MINUTE},{lat!r},{NYC[1]},,10,,")
    path = tmp_path / "day.csv"
    path.write_text("\n".join(rows) + "\n", encoding="utf-8")
    return path


def test_timeline_json(samples_csv: Path, tmp_path: Path, capsys):
    places = tmp_path / "places.json"
    places.write_text(json.dumps([
        {"id": "home", "name": "Home", "latitude": NYC[0], "longitude": NYC[1], "category": "home"}
    ]), encoding="utf-8")

    rc = cli.main(["timeline", str(samples_csv), "--places", str(places), "--json"])
    assert rc == 0

    doc = json.loads(capsys.readouterr().out)
    events = doc["groups"][0]["events"]
    assert [e["type"] for e in events] == ["place-visit", "movement", "place-visit"]
    assert events[0]["placeName"] == "Home"
    assert events[1]["transportMode"] == "cycling"
    assert doc["summary"]["placesVisited"] == 2


def test_timeline_text(samples_csv: Path, capsys):
    assert cli.main(["timeline", str(samples_csv)]) == 0
    out = capsys.readouterr().out
    assert "0.6 km" in out
    assert "cycling" in out
    assert "Place at 40.7128, -74.0060" in out


def test_replay_exports_session(samples_csv: Path, tmp_path: Path, capsys):
    out_dir = tmp_path / "exports"
    rc = cli.main(["replay", str(samples_csv), "--export", "gpx", "--out", str(out_dir)])
    assert rc == 0

    out = capsys.readouterr().out
    # stationary samples at home and at the destination collapse to one point each
    assert "points        : 4" in out
    assert "distance (m)  : 600.00" in out
    assert "stationary    : 10" in out
    assert (out_dir / "gps_track_2023-11-14.gpx").is_file()


def test_missing_file_reports_error(tmp_path: Path, capsys):
    assert cli.main(["timeline", str(tmp_path / "nope.csv")]) == 1
    assert "gpslife:" in capsys.readouterr().err


def test_stats_totals_across_files(samples_csv: Path, tmp_path: Path, capsys):
    day = 24 * 60 * MINUTE
    ride = tmp_path / "ride.csv"
    ride.write_text(
        "timestamp,latitude,longitude,altitude,accuracy,speed,heading\n"
        f"{T0 + day},{NYC[0]},{NYC[1]},,10,2.5,\n"
        f"{T0 + day + MINUTE},{north_of(NYC[0], 100.0)!r},{NYC[1]},,10,2.5,\n",
        encoding="utf-8",
    )

    assert cli.main(["stats", str(samples_csv), str(ride)]) == 0

    out = capsys.readouterr().out
    assert "sessions      : 2" in out
    assert "points        : 6" in out
    assert "tracking days : 2" in out
    assert "distance (km) : 0.70" in out
    assert "duration (h)  : 0.95" in out
    assert "top speed km/h: 9.00" in out
