"""Frozen dataclass config hierarchy for a tracking session.

Loading precedence: defaults -> YAML file -> CLI overrides -> freeze.

The frozen guarantee keeps analysis constants (harmonic count, contour
resolution, skeleton size) fixed for the whole session.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any

import yaml

# ---------------------------------------------------------------------------
# Section config dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AnalysisConfig:
    """Per-frame analysis constants.

    Attributes:
        n_harmonics: Spectral harmonics N, including the centroid term.
        resolution: Reconstructed contour points M.
        curvature_distance: Chord distance for curvature (None = M // 8).
        suppression_window: Half-width masked around the first extremity
            (None = M // 8).
        skeleton_points: Midline points K.
        neck_percentage: Neck position as a fraction of midline length.
        bearing_fit_start_offset: Tail-side secant point is ``K - offset``.
        bearing_fit_span: Index distance between the two secant points.
        bearing_filter_window: Samples in the bearing-derivative filter.
        bearing_derivative_scale: Factor applied to the filtered derivative.
    """

    n_harmonics: int = 7
    resolution: int = 200
    curvature_distance: int | None = None
    suppression_window: int | None = None
    skeleton_points: int = 500
    neck_percentage: float = 0.5
    bearing_fit_start_offset: int = 25
    bearing_fit_span: int = 75
    bearing_filter_window: int = 30
    bearing_derivative_scale: float = 0.5

    def __post_init__(self) -> None:
        if self.n_harmonics < 1:
            raise ValueError(f"n_harmonics must be >= 1, got {self.n_harmonics}")
        if self.resolution < 16:
            raise ValueError(f"resolution must be >= 16, got {self.resolution}")
        for name in ("curvature_distance", "suppression_window"):
            value = getattr(self, name)
            if value is not None and not 1 <= value < self.resolution // 2:
                raise ValueError(
                    f"{name} must be in [1, {self.resolution // 2}), got {value}"
                )
        if not 0.0 < self.neck_percentage <= 1.0:
            raise ValueError(
                f"neck_percentage must be in (0, 1], got {self.neck_percentage}"
            )
        if self.bearing_fit_start_offset < 1 or self.bearing_fit_span < 1:
            raise ValueError("bearing fit offset and span must be >= 1")
        if self.bearing_fit_start_offset + self.bearing_fit_span > self.skeleton_points:
            raise ValueError(
                "bearing secant does not fit inside "
                f"{self.skeleton_points} skeleton points"
            )
        if self.bearing_filter_window < 1:
            raise ValueError("bearing_filter_window must be >= 1")


@dataclass(frozen=True)
class KinematicsConfig:
    """Frame lags used for velocity estimation.

    Attributes:
        head_velocity_step: Frames back in history for head velocity.
        tail_velocity_step: Frames back in history for tail velocity.
    """

    head_velocity_step: int = 1
    tail_velocity_step: int = 1

    def __post_init__(self) -> None:
        if self.head_velocity_step < 1 or self.tail_velocity_step < 1:
            raise ValueError("velocity steps must be >= 1")


@dataclass(frozen=True)
class CalibrationConfig:
    """Camera and stage calibration.

    Attributes:
        um_per_pixel: Camera micrometres per pixel.
        ticks_per_mm_x: Stage ticks per millimetre along x.
        ticks_per_mm_y: Stage ticks per millimetre along y.
    """

    um_per_pixel: float = 7.62
    ticks_per_mm_x: float = 2007.0
    ticks_per_mm_y: float = 2032.0

    def __post_init__(self) -> None:
        if min(self.um_per_pixel, self.ticks_per_mm_x, self.ticks_per_mm_y) <= 0:
            raise ValueError("calibration constants must be positive")


@dataclass(frozen=True)
class SessionConfig:
    """Session-level sizes and timing.

    Attributes:
        history_capacity: Slots in the circular history buffer.
        frame_interval_ms: Frame interval in milliseconds. None takes it from
            the video container rate.
        track_sample_interval: Analyzed frames between arena-track samples.
        track_capacity: Maximum arena-track samples kept.
    """

    history_capacity: int = 2000
    frame_interval_ms: float | None = None
    track_sample_interval: int = 30
    track_capacity: int = 36000

    def __post_init__(self) -> None:
        if self.history_capacity < 2:
            raise ValueError(f"history_capacity must be >= 2, got {self.history_capacity}")
        if self.frame_interval_ms is not None and self.frame_interval_ms <= 0:
            raise ValueError("frame_interval_ms must be positive")
        if self.track_sample_interval < 1 or self.track_capacity < 1:
            raise ValueError("track_sample_interval and track_capacity must be >= 1")


# ---------------------------------------------------------------------------
# Top-level config
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TrackerConfig:
    """Top-level frozen config for one tracking session.

    Attributes:
        run_id: Unique run identifier (timestamp-based by default).
        output_dir: Directory for run artifacts written by observers.
        analysis: Per-frame analysis constants.
        kinematics: Velocity lags.
        calibration: Camera and stage calibration.
        session: History, timing and arena-track sizes.
    """

    run_id: str = ""
    output_dir: str = ""
    analysis: AnalysisConfig = dataclasses.field(default_factory=AnalysisConfig)
    kinematics: KinematicsConfig = dataclasses.field(default_factory=KinematicsConfig)
    calibration: CalibrationConfig = dataclasses.field(
        default_factory=CalibrationConfig
    )
    session: SessionConfig = dataclasses.field(default_factory=SessionConfig)

    def __post_init__(self) -> None:
        lookback = max(
            self.kinematics.head_velocity_step,
            self.kinematics.tail_velocity_step,
            self.analysis.bearing_filter_window,
        )
        if lookback >= self.session.history_capacity:
            raise ValueError(
                f"history_capacity ({self.session.history_capacity}) must exceed "
                f"the longest lookback window ({lookback})"
            )


_SECTIONS: dict[str, type] = {
    "analysis": AnalysisConfig,
    "kinematics": KinematicsConfig,
    "calibration": CalibrationConfig,
    "session": SessionConfig,
}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _generate_run_id() -> str:
    """Return a run ID of the form "run_YYYYMMDD_HHMMSS"."""
    return f"run_{datetime.now():%Y%m%d_%H%M%S}"


def _default_output_dir(run_id: str) -> str:
    return str(Path(f"~/larvatrack/runs/{run_id}").expanduser())


def _flatten(nested: dict[str, Any]) -> dict[str, Any]:
    """Flatten one level of nesting to dot-notation keys.

    ``{"analysis": {"resolution": 100}}`` becomes ``{"analysis.resolution": 100}``;
    keys that are already dotted pass through.
    """
    result: dict[str, Any] = {}
    for key, value in nested.items():
        if isinstance(value, dict):
            for subkey, subvalue in value.items():
                result[f"{key}.{subkey}"] = subvalue
        else:
            result[key] = value
    return result


def _coerce(value: Any, default: Any, annotation: Any = None) -> Any:
    """Convert CLI strings to the type of the field default.

    Optional fields (default None) are parsed by their annotation.
    """
    if not isinstance(value, str):
        return value
    if value.lower() in ("none", "null"):
        return None
    if isinstance(default, bool):
        return value.lower() in ("1", "true", "yes", "on")
    if isinstance(default, int):
        return int(value)
    if isinstance(default, float):
        return float(value)
    if default is None:
        return float(value) if "float" in str(annotation) else int(value)
    return value


def _apply(buckets: dict[str, dict[str, Any]], flat: dict[str, Any]) -> None:
    """Merge dot-notation overrides into per-section kwargs buckets."""
    for key, value in flat.items():
        section, dot, field_name = key.partition(".")
        if not dot:
            buckets["__top__"][key] = value
            continue
        if section not in _SECTIONS:
            raise ValueError(
                f"Unknown config section {section!r}. Valid: {sorted(_SECTIONS)}"
            )
        fields = {f.name: f for f in dataclasses.fields(_SECTIONS[section])}
        if field_name not in fields:
            raise ValueError(f"Unknown field {field_name!r} in section {section!r}")
        field = fields[field_name]
        buckets[section][field_name] = _coerce(value, field.default, field.type)


# ---------------------------------------------------------------------------
# Public factory
# ---------------------------------------------------------------------------


def load_config(
    yaml_path: str | Path | None = None,
    *,
    cli_overrides: dict[str, Any] | None = None,
    run_id: str | None = None,
) -> TrackerConfig:
    """Construct a frozen :class:`TrackerConfig` using layered overrides.

    Loading precedence (lowest -> highest priority):

    1. Dataclass field defaults
    2. YAML file (*yaml_path*)
    3. CLI overrides (*cli_overrides*)
    4. Freeze

    CLI overrides may use dot-notation keys ("analysis.resolution") or nested
    dicts ({"analysis": {"resolution": 100}}).

    Args:
        yaml_path: Optional path to a YAML config file.
        cli_overrides: Optional dict of CLI overrides (highest precedence).
        run_id: Explicit run identifier. Auto-generated if not provided.

    Returns:
        Frozen :class:`TrackerConfig` with all overrides applied.

    Raises:
        ValueError: On unknown sections/fields or invalid values.
    """
    buckets: dict[str, dict[str, Any]] = {name: {} for name in _SECTIONS}
    buckets["__top__"] = {}

    if yaml_path is not None:
        with Path(yaml_path).open() as fh:
            raw: dict[str, Any] = yaml.safe_load(fh) or {}
        _apply(buckets, _flatten(raw))

    if cli_overrides is not None:
        _apply(buckets, _flatten(cli_overrides))

    top = buckets.pop("__top__")
    resolved_run_id = run_id or top.pop("run_id", None) or _generate_run_id()
    resolved_output_dir = top.pop("output_dir", None) or _default_output_dir(
        resolved_run_id
    )
    if top:
        raise ValueError(f"Unknown top-level config keys: {sorted(top)}")

    return TrackerConfig(
        run_id=resolved_run_id,
        output_dir=resolved_output_dir,
        **{name: _SECTIONS[name](**kwargs) for name, kwargs in buckets.items()},
    )


# ---------------------------------------------------------------------------
# Serialization
# ---------------------------------------------------------------------------


def serialize_config(config: TrackerConfig) -> str:
    """Serialize *config* to a YAML string."""
    return yaml.dump(
        dataclasses.asdict(config), default_flow_style=False, sort_keys=True
    )
