from pathlib import Path

import pytest

import gpslife.config as config
from gpslife.config import TrackerSettings, load_config
from gpslife.errors import ConfigError


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for var in list(config.ENV_MAP) + ["GPSLIFE_EXPORT_ROOT"]:
        monkeypatch.delenv(var, raising=False)


def _write(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def test_defaults_when_no_config(tmp_path: Path):
    cfg = load_config(repo_root=tmp_path, user_config_path=tmp_path / "missing.toml")

    assert cfg.tracker == TrackerSettings()
    assert cfg.tracker.minimum_distance == 5.0
    assert cfg.tracker.update_interval == 10_000
    assert cfg.timeline.visit_min_duration_ms == 300_000
    assert cfg.timeline.group_gap_ms == 7_200_000
    assert cfg.paths.export_root == Path.home() / "GPS" / "_exports"
    assert cfg.source["tracker.minimum_distance"] == "default"


def test_user_config_overrides_repo(tmp_path: Path):
    _write(tmp_path / "config" / "config.toml", "[tracker]\nminimum_distance = 8\nmax_age = 1000\n")
    user = _write(tmp_path / "user.toml", "[tracker]\nminimum_distance = 12.5\n"
                                          "[timeline]\ngroup_gap_ms = 3600000\n"
                                          "[paths]\nexport_root = \"~/tracks\"\n")

    cfg = load_config(repo_root=tmp_path, user_config_path=user)

    assert cfg.tracker.minimum_distance == 12.5
    assert cfg.tracker.max_age == 1000
    assert cfg.timeline.group_gap_ms == 3_600_000
    assert cfg.paths.export_root == Path("~/tracks").expanduser()
    assert cfg.source["tracker.minimum_distance"].startswith("user:")
    assert cfg.source["tracker.max_age"].startswith("repo:")


def test_env_overrides_user(tmp_path: Path, monkeypatch):
    user = _write(tmp_path / "user.toml", "[tracker]\nminimum_distance = 12.5\nhigh_accuracy = true\n")
    monkeypatch.setenv("GPSLIFE_MINIMUM_DISTANCE", "3")
    monkeypatch.setenv("GPSLIFE_HIGH_ACCURACY", "off")
    monkeypatch.setenv("GPSLIFE_EXPORT_ROOT", str(tmp_path / "out"))

    cfg = load_config(repo_root=tmp_path, user_config_path=user)

    assert cfg.tracker.minimum_distance == 3.0
    assert cfg.tracker.high_accuracy is False
    assert cfg.paths.export_root == tmp_path / "out"
    assert cfg.source["tracker.minimum_distance"] == "env:GPSLIFE_MINIMUM_DISTANCE"


def test_malformed_toml_raises(tmp_path: Path):
    user = _write(tmp_path / "user.toml", "[tracker\nminimum_distance = ")
    with pytest.raises(ConfigError):
        load_config(repo_root=tmp_path, user_config_path=user)


def test_unknown_key_raises(tmp_path: Path):
    user = _write(tmp_path / "user.toml", "[tracker]\nspeed_of_light = 1\n")
    with pytest.raises(ConfigError):
        load_config(repo_root=tmp_path, user_config_path=user)


def test_bad_value_raises(tmp_path: Path):
    user = _write(tmp_path / "user.toml", "[timeline]\ngroup_gap_ms = \"soon\"\n")
    with pytest.raises(ConfigError):
        load_config(repo_root=tmp_path, user_config_path=user)


def test_tracker_settings_merged():
    s = TrackerSettings().merged(minimum_distance="7.5", high_accuracy="no")
    assert s.minimum_distance == 7.5
    assert s.high_accuracy is False
    assert TrackerSettings().minimum_distance == 5.0


def test_unrecognized_bool_env_raises(tmp_path: Path, monkeypatch):
    monkeypatch.setenv("GPSLIFE_HIGH_ACCURACY", "maybe")
    with pytest.raises(ConfigError, match="high_accuracy"):
        load_config(repo_root=tmp_path, user_config_path=tmp_path / "missing.toml")


@pytest.mark.parametrize("value", [0.5, "0.5", "1e3x", float("inf")])
def test_fractional_int_setting_raises(value):
    with pytest.raises(ConfigError, match="max_age"):
        TrackerSettings().merged(max_age=value)


@pytest.mark.parametrize("value, expected", [(1500, 1500), (1500.0, 1500), ("1500", 1500), (" 2000.0 ", 2000)])
def test_integral_int_setting_accepted(value, expected):
    s = TrackerSettings().merged(max_age=value)
    assert s.max_age == expected
    assert isinstance(s.max_age, int)
