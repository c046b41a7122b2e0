"""Unit tests for the engine config module.

Covers: defaults, YAML overrides, CLI overrides, override precedence,
frozen mutation guard, validation, run_id generation and serialization.
"""

from __future__ import annotations

import dataclasses
from pathlib import Path

import pytest
import yaml

from larvatrack.engine.config import (
    AnalysisConfig,
    SessionConfig,
    TrackerConfig,
    load_config,
    serialize_config,
)

# ---------------------------------------------------------------------------
# 1. Default values
# ---------------------------------------------------------------------------


def test_load_config_defaults() -> None:
    """load_config() with no args produces the session defaults."""
    config = load_config()

    assert config.analysis.n_harmonics == 7
    assert config.analysis.resolution == 200
    assert config.analysis.curvature_distance is None
    assert config.analysis.skeleton_points == 500
    assert config.analysis.neck_percentage == 0.5
    assert config.analysis.bearing_filter_window == 30
    assert config.kinematics.head_velocity_step == 1
    assert config.calibration.um_per_pixel == 7.62
    assert config.calibration.ticks_per_mm_x == 2007.0
    assert config.calibration.ticks_per_mm_y == 2032.0
    assert config.session.history_capacity == 2000
    assert config.session.frame_interval_ms is None


def test_run_id_and_output_dir_generated() -> None:
    config = load_config()
    assert config.run_id.startswith("run_")
    assert config.run_id in config.output_dir


def test_explicit_run_id() -> None:
    assert load_config(run_id="trial_7").run_id == "trial_7"


# ---------------------------------------------------------------------------
# 2. YAML and CLI overrides
# ---------------------------------------------------------------------------


def _write_yaml(path: Path, content: dict) -> Path:
    path.write_text(yaml.dump(content))
    return path


def test_load_config_yaml_override(tmp_path: Path) -> None:
    """YAML overrides apply; non-overridden fields retain defaults."""
    path = _write_yaml(
        tmp_path / "session.yaml",
        {
            "analysis": {"n_harmonics": 9, "curvature_distance": 20},
            "session": {"history_capacity": 500},
            "output_dir": str(tmp_path / "out"),
        },
    )
    config = load_config(yaml_path=path)
    assert config.analysis.n_harmonics == 9
    assert config.analysis.curvature_distance == 20
    assert config.analysis.resolution == 200
    assert config.session.history_capacity == 500
    assert config.output_dir == str(tmp_path / "out")


def test_cli_overrides_are_coerced() -> None:
    """String values from the command line take the type of the field."""
    config = load_config(
        cli_overrides={
            "analysis.resolution": "120",
            "analysis.neck_percentage": "0.4",
            "analysis.suppression_window": "none",
            "calibration.um_per_pixel": "5",
        }
    )
    assert config.analysis.resolution == 120
    assert config.analysis.neck_percentage == 0.4
    assert config.analysis.suppression_window is None
    assert config.calibration.um_per_pixel == 5.0
    assert isinstance(config.calibration.um_per_pixel, float)


def test_optional_float_override_is_parsed_as_float() -> None:
    config = load_config(
        cli_overrides={"session.frame_interval_ms": "33.3", "analysis.curvature_distance": "20"}
    )
    assert config.session.frame_interval_ms == pytest.approx(33.3)
    assert config.analysis.curvature_distance == 20
    assert isinstance(config.analysis.curvature_distance, int)


def test_non_positive_frame_interval_raises() -> None:
    with pytest.raises(ValueError, match="frame_interval_ms"):
        SessionConfig(frame_interval_ms=0.0)


def test_cli_overrides_beat_yaml(tmp_path: Path) -> None:
    path = _write_yaml(tmp_path / "s.yaml", {"analysis": {"n_harmonics": 9}})
    config = load_config(yaml_path=path, cli_overrides={"analysis.n_harmonics": "11"})
    assert config.analysis.n_harmonics == 11


def test_nested_cli_overrides() -> None:
    config = load_config(cli_overrides={"kinematics": {"tail_velocity_step": 4}})
    assert config.kinematics.tail_velocity_step == 4


def test_unknown_section_raises() -> None:
    with pytest.raises(ValueError, match="Unknown config section"):
        load_config(cli_overrides={"detection.kind": "x"})


def test_unknown_field_raises() -> None:
    with pytest.raises(ValueError, match="Unknown field"):
        load_config(cli_overrides={"analysis.harmonics": "3"})


def test_unknown_top_level_key_raises(tmp_path: Path) -> None:
    path = _write_yaml(tmp_path / "s.yaml", {"mode": "fast"})
    with pytest.raises(ValueError, match="top-level"):
        load_config(yaml_path=path)


def test_empty_yaml_file_uses_defaults(tmp_path: Path) -> None:
    path = tmp_path / "empty.yaml"
    path.write_text("")
    assert load_config(yaml_path=path).analysis == AnalysisConfig()


# ---------------------------------------------------------------------------
# 3. Frozen guard and validation
# ---------------------------------------------------------------------------


def test_config_is_frozen() -> None:
    config = load_config()
    with pytest.raises(dataclasses.FrozenInstanceError):
        config.analysis.n_harmonics = 3  # type: ignore[misc]
    with pytest.raises(dataclasses.FrozenInstanceError):
        config.run_id = "other"  # type: ignore[misc]


@pytest.mark.parametrize(
    "kwargs",
    [
        {"n_harmonics": 0},
        {"resolution": 8},
        {"curvature_distance": 100},
        {"suppression_window": 0},
        {"neck_percentage": 0.0},
        {"skeleton_points": 50},
        {"bearing_filter_window": 0},
    ],
)
def test_invalid_analysis_values_raise(kwargs: dict) -> None:
    with pytest.raises(ValueError):
        AnalysisConfig(**kwargs)


def test_history_must_exceed_lookback() -> None:
    with pytest.raises(ValueError, match="lookback"):
        TrackerConfig(session=SessionConfig(history_capacity=30))


# ---------------------------------------------------------------------------
# 4. Serialization
# ---------------------------------------------------------------------------


def test_serialize_roundtrip(tmp_path: Path) -> None:
    """A serialized config loads back to an equal config."""
    original = load_config(
        cli_overrides={"analysis.n_harmonics": "5", "session.track_sample_interval": "10"},
        run_id="rt",
    )
    path = tmp_path / "config.yaml"
    path.write_text(serialize_config(original))
    reloaded = load_config(yaml_path=path)
    assert reloaded == original
