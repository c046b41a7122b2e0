"""Data contracts for the per-frame larva analysis pipeline.

All geometric arrays use (x, y) column order in full-frame pixel coordinates
and float64 precision unless noted otherwise. Spectral coefficient rows are
ordered ``(ax, bx, ay, by)`` to match :data:`COEFF_AX` .. :data:`COEFF_BY`.

The per-frame outcome is a tagged union: :class:`Detected` carries a complete
:class:`HistoryRecord`, :class:`NoDetection` carries nothing usable. Callers
dispatch on the variant instead of probing for partially-filled fields.
"""

from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np

__all__ = [
    "COEFF_AX",
    "COEFF_AY",
    "COEFF_BX",
    "COEFF_BY",
    "AnatomicalPoints",
    "BodyAngles",
    "BoundingBox",
    "Detected",
    "Frame",
    "FrameResult",
    "HistoryRecord",
    "Kinematics",
    "NoDetection",
    "Skeleton",
]

COEFF_AX = 0
COEFF_BX = 1
COEFF_AY = 2
COEFF_BY = 3


@dataclass(frozen=True)
class Frame:
    """One captured grayscale frame handed to the tracker.

    The pixel buffer is borrowed for the duration of a single
    :meth:`~larvatrack.core.tracker.Tracker.process` call; the tracker never
    keeps a reference to it.

    Attributes:
        pixels: 8-bit single-channel image, shape (height, width).
        frame_index: Monotonically increasing capture index.
        interval_ms: Nominal frame interval in milliseconds.
    """

    pixels: np.ndarray
    frame_index: int
    interval_ms: float = 40.0

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])


@dataclass(frozen=True)
class BoundingBox:
    """Axis-aligned integer bounding box of the raw contour (``cv2.boundingRect``)."""

    x: int
    y: int
    width: int
    height: int


@dataclass(frozen=True)
class AnatomicalPoints:
    """Publicly labelled head and tail positions for one frame.

    Attributes:
        head: Head position, shape (2,).
        tail: Tail position, shape (2,).
        head_index: Index of ``head`` in the reconstructed contour.
        tail_index: Index of ``tail`` in the reconstructed contour.
    """

    head: np.ndarray
    tail: np.ndarray
    head_index: int
    tail_index: int


@dataclass(frozen=True)
class Skeleton:
    """Midline sampled head to tail.

    Attributes:
        points: Midline points, shape (K, 2). ``points[0]`` is the head and
            ``points[-1]`` the tail.
        length: Sum of consecutive point distances (pixels).
        neck: Neck position, shape (2,).
        neck_index: Index of ``neck`` within ``points``.
        bearing: Two-point secant angle near the tail end (radians), used
            as the input of the smoothed bearing derivative.
    """

    points: np.ndarray
    length: float
    neck: np.ndarray
    neck_index: int
    bearing: float


@dataclass(frozen=True)
class BodyAngles:
    """Body orientation angles in radians.

    Attributes:
        tail_bearing: Angle of the neck-to-tail vector in image coordinates.
        head_to_body: Headcast angle; 0 when the head continues the body axis,
            approaching +/-pi as the head folds back over the body.
    """

    tail_bearing: float
    head_to_body: float


@dataclass(frozen=True)
class Kinematics:
    """Velocity (mm/s) and speed (mm/s) of a single body point."""

    velocity: np.ndarray = field(default_factory=lambda: np.zeros(2))
    speed: float = 0.0

    @classmethod
    def zero(cls) -> Kinematics:
        return cls(velocity=np.zeros(2), speed=0.0)


@dataclass(frozen=True)
class HistoryRecord:
    """Complete analysis output of one successfully analyzed frame.

    Attributes:
        sequence: Zero-based count of analyzed frames in this session. The
            history slot is ``sequence % capacity``.
        frame_index: Capture index of the source frame.
        time_ms: ``frame_index * interval_ms``.
        contour: Raw contour, shape (L, 2), int32, traversal order preserved.
        bounding_box: Bounding box of the raw contour.
        coefficients: Spectral model, shape (N, 4).
        centroid: ``(ax[0], ay[0])``, shape (2,).
        points: Head/tail labels and their contour indices.
        skeleton: Midline with neck and tail-end secant bearing.
        angles: Tail bearing and headcast angle.
        bearing_derivative: Smoothed derivative of ``skeleton.bearing``
            (rad/s), zero until enough history exists.
        head_kinematics: Head velocity and speed.
        tail_kinematics: Tail velocity and speed.
        stage_position: Stage position sampled for this frame (ticks).
        stage_offset_mm: Stage position converted to millimetres.
    """

    sequence: int
    frame_index: int
    time_ms: float
    contour: np.ndarray
    bounding_box: BoundingBox
    coefficients: np.ndarray
    centroid: np.ndarray
    points: AnatomicalPoints
    skeleton: Skeleton
    angles: BodyAngles
    bearing_derivative: float
    head_kinematics: Kinematics
    tail_kinematics: Kinematics
    stage_position: tuple[float, float] = (0.0, 0.0)
    stage_offset_mm: np.ndarray = field(default_factory=lambda: np.zeros(2))

    @property
    def head(self) -> np.ndarray:
        return self.points.head

    @property
    def tail(self) -> np.ndarray:
        return self.points.tail

    @property
    def neck(self) -> np.ndarray:
        return self.skeleton.neck


@dataclass(frozen=True)
class Detected:
    """A frame in which the organism was found and a history slot was written."""

    record: HistoryRecord


@dataclass(frozen=True)
class NoDetection:
    """A frame with no external contour; nothing was written or advanced."""

    frame_index: int
    reason: str = "no contour detected"


FrameResult = Detected | NoDetection
