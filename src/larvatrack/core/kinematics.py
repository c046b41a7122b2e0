"""Head/tail velocity in world coordinates.

Image positions are converted to millimetres with the camera calibration and
shifted by the stage position sampled for the same frame, so motion of the
tracking stage does not show up as motion of the animal.

The tracker never reaches into stage or camera objects directly; it is handed
a :class:`WorldPositionResolver` that supplies the pixel scale and samples the
stage offset once per frame.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

import numpy as np

from larvatrack.core.types import Kinematics

__all__ = [
    "FixedStage",
    "StagePositionProvider",
    "StageWorldResolver",
    "WorldPositionResolver",
    "point_kinematics",
    "to_world",
]


@runtime_checkable
class StagePositionProvider(Protocol):
    """Anything that reports the current absolute stage position in ticks."""

    def position(self) -> tuple[float, float]: ...


@runtime_checkable
class WorldPositionResolver(Protocol):
    """Pixel-to-world conversion capability injected into the tracker.

    Attributes:
        mm_per_pixel: Camera calibration in millimetres per pixel.
    """

    mm_per_pixel: float

    def sample(self) -> tuple[tuple[float, float], np.ndarray]:
        """Return ``(stage_ticks, stage_offset_mm)`` for the current frame."""
        ...


class FixedStage:
    """Stage provider for recordings without a moving stage."""

    def __init__(self, x: float = 0.0, y: float = 0.0) -> None:
        self._pos = (float(x), float(y))

    def position(self) -> tuple[float, float]:
        return self._pos


class StageWorldResolver:
    """Resolve world positions from a stage provider and calibration constants.

    Args:
        stage: Stage position source, sampled once per analyzed frame.
        um_per_pixel: Camera calibration in micrometres per pixel.
        ticks_per_mm_x: Stage ticks per millimetre along x.
        ticks_per_mm_y: Stage ticks per millimetre along y.
    """

    def __init__(
        self,
        stage: StagePositionProvider | None = None,
        um_per_pixel: float = 7.62,
        ticks_per_mm_x: float = 2007.0,
        ticks_per_mm_y: float = 2032.0,
    ) -> None:
        if um_per_pixel <= 0 or ticks_per_mm_x <= 0 or ticks_per_mm_y <= 0:
            raise ValueError("calibration constants must be positive")
        self._stage = stage if stage is not None else FixedStage()
        self.mm_per_pixel = um_per_pixel / 1000.0
        self._ticks_per_mm = np.array([ticks_per_mm_x, ticks_per_mm_y], dtype=np.float64)

    def sample(self) -> tuple[tuple[float, float], np.ndarray]:
        x, y = self._stage.position()
        ticks = (float(x), float(y))
        return ticks, np.asarray(ticks, dtype=np.float64) / self._ticks_per_mm


def to_world(point_px: np.ndarray, offset_mm: np.ndarray, mm_per_pixel: float) -> np.ndarray:
    """Convert an image position to millimetres in the arena frame."""
    return np.asarray(point_px, dtype=np.float64) * mm_per_pixel + np.asarray(
        offset_mm, dtype=np.float64
    )


def point_kinematics(
    current_px: np.ndarray,
    current_offset_mm: np.ndarray,
    past_px: np.ndarray,
    past_offset_mm: np.ndarray,
    mm_per_pixel: float,
    elapsed_s: float,
) -> Kinematics:
    """Velocity and speed of one body point between two frames.

    Args:
        current_px: Position at frame t, image pixels.
        current_offset_mm: Stage offset sampled at frame t.
        past_px: Position at frame t - step, image pixels.
        past_offset_mm: Stage offset sampled at frame t - step.
        mm_per_pixel: Camera calibration.
        elapsed_s: ``step * interval_ms / 1000``.

    Returns:
        Velocity vector and speed in mm/s.
    """
    if elapsed_s <= 0:
        raise ValueError(f"elapsed time must be positive, got {elapsed_s}")
    now = to_world(current_px, current_offset_mm, mm_per_pixel)
    then = to_world(past_px, past_offset_mm, mm_per_pixel)
    velocity = (now - then) / elapsed_s
    return Kinematics(velocity=velocity, speed=float(np.hypot(velocity[0], velocity[1])))
