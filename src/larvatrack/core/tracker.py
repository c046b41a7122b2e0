"""Tracker: per-session orchestrator of the frame-analysis pipeline.

One :class:`Tracker` holds all state that survives between frames of a
session: the frozen threshold, the head/tail master identity and its votes,
the circular history buffer and the sampled arena track. Each call to
:meth:`Tracker.process` runs the full pipeline synchronously:

1. threshold (first frame only) -> 2. contour -> 3. spectral decomposition ->
4. reconstruction -> 5. curvature -> 6. head/tail -> 7. skeleton ->
8. body angles -> 9. kinematics

and either writes exactly one history slot (:class:`Detected`) or leaves all
state untouched (:class:`NoDetection`).
"""

from __future__ import annotations

import logging
import time
from collections import deque

import numpy as np

from larvatrack.core.angles import body_angles
from larvatrack.core.contour import bounding_box, extract_contour
from larvatrack.core.curvature import perimeter_curvature
from larvatrack.core.head_tail import HeadTailClassifier
from larvatrack.core.history import HistoryBuffer
from larvatrack.core.kinematics import (
    StageWorldResolver,
    WorldPositionResolver,
    point_kinematics,
    to_world,
)
from larvatrack.core.skeleton import extract_skeleton, smoothed_bearing_derivative
from larvatrack.core.spectral import centroid, fourier_decompose, fourier_reconstruct
from larvatrack.core.threshold import otsu_threshold
from larvatrack.core.types import (
    Detected,
    Frame,
    FrameResult,
    HistoryRecord,
    Kinematics,
    NoDetection,
)

logger = logging.getLogger(__name__)

__all__ = ["STEP_NAMES", "Tracker"]

STEP_NAMES = (
    "threshold",
    "contour",
    "spectral",
    "reconstruct",
    "curvature",
    "head_tail",
    "skeleton",
    "angles",
    "kinematics",
)


class _StepClock:
    """Lap timer filling a ``{step: seconds}`` dict."""

    def __init__(self) -> None:
        self.laps: dict[str, float] = {}
        self._last = time.perf_counter()

    def lap(self, name: str) -> None:
        now = time.perf_counter()
        self.laps[name] = now - self._last
        self._last = now


class Tracker:
    """Session-scoped frame analyzer.

    Args:
        n_harmonics: Number of spectral harmonics N (including the centroid term).
        resolution: Reconstructed contour size M.
        curvature_distance: Chord look-ahead/behind distance; None = M // 8.
        suppression_window: Half-width masked around the first extremity;
            None = M // 8.
        skeleton_points: Number of midline points K.
        neck_percentage: Neck position as a fraction of midline length.
        bearing_fit_start_offset: Tail-side secant point is ``K - offset``.
        bearing_fit_span: Index distance between the two secant points.
        bearing_filter_window: Samples in the bearing derivative filter.
        bearing_derivative_scale: Factor applied to the filtered derivative.
        head_velocity_step: Frame lag for head velocity.
        tail_velocity_step: Frame lag for tail velocity.
        history_capacity: Number of slots in the circular history.
        track_sample_interval: Analyzed frames between arena-track samples.
        track_capacity: Maximum number of arena-track samples kept.
        resolver: Pixel-to-world capability; defaults to a fixed stage at
            the origin with default calibration.
    """

    def __init__(
        self,
        n_harmonics: int = 7,
        resolution: int = 200,
        curvature_distance: int | None = None,
        suppression_window: int | None = None,
        skeleton_points: int = 500,
        neck_percentage: float = 0.5,
        bearing_fit_start_offset: int = 25,
        bearing_fit_span: int = 75,
        bearing_filter_window: int = 30,
        bearing_derivative_scale: float = 0.5,
        head_velocity_step: int = 1,
        tail_velocity_step: int = 1,
        history_capacity: int = 2000,
        track_sample_interval: int = 30,
        track_capacity: int = 36000,
        resolver: WorldPositionResolver | None = None,
    ) -> None:
        if max(head_velocity_step, tail_velocity_step, bearing_filter_window) >= history_capacity:
            raise ValueError("history_capacity must exceed every lookback window")
        if head_velocity_step < 1 or tail_velocity_step < 1:
            raise ValueError("velocity steps must be >= 1")
        if resolution < 16:
            raise ValueError(f"resolution must be >= 16, got {resolution}")
        if bearing_fit_start_offset < 1 or bearing_fit_span < 1:
            raise ValueError("bearing fit offset and span must be >= 1")
        if bearing_fit_start_offset + bearing_fit_span > skeleton_points:
            raise ValueError(
                f"bearing secant does not fit inside {skeleton_points} skeleton points"
            )

        self.n_harmonics = n_harmonics
        self.resolution = resolution
        self.curvature_distance = (
            resolution // 8 if curvature_distance is None else curvature_distance
        )
        self.skeleton_points = skeleton_points
        self.neck_percentage = neck_percentage
        self.bearing_fit_start_offset = bearing_fit_start_offset
        self.bearing_fit_span = bearing_fit_span
        self.bearing_filter_window = bearing_filter_window
        self.bearing_derivative_scale = bearing_derivative_scale
        self.head_velocity_step = head_velocity_step
        self.tail_velocity_step = tail_velocity_step
        self.track_sample_interval = track_sample_interval

        self._resolver: WorldPositionResolver = (
            resolver if resolver is not None else StageWorldResolver()
        )
        self._classifier = HeadTailClassifier(
            suppression=resolution // 8 if suppression_window is None else suppression_window
        )
        self._history = HistoryBuffer(history_capacity)
        self._track: deque[np.ndarray] = deque(maxlen=track_capacity)
        self._threshold: int | None = None
        self._index = -1
        self.last_step_timings: dict[str, float] = {}

    # ------------------------------------------------------------------
    # Session state
    # ------------------------------------------------------------------

    @property
    def threshold(self) -> int | None:
        """Frozen session threshold, None before the first frame."""
        return self._threshold

    @property
    def index(self) -> int:
        """Sequence number of the latest analyzed frame, -1 before any."""
        return self._index

    @property
    def history(self) -> HistoryBuffer:
        return self._history

    @property
    def classifier(self) -> HeadTailClassifier:
        return self._classifier

    @property
    def votes(self) -> tuple[int, int]:
        return self._classifier.votes

    @property
    def arena_track(self) -> list[np.ndarray]:
        """Sampled world-space centroids (mm), oldest first."""
        return list(self._track)

    def reset_votes(self) -> None:
        """Zero the head/tail vote counters; history and identity are kept."""
        self._classifier.reset_votes()

    def reset_session(self) -> None:
        """Forget threshold, identity, votes, history and arena track."""
        self._threshold = None
        self._index = -1
        self._classifier.reset()
        self._history.clear()
        self._track.clear()
        self.last_step_timings = {}
        logger.info("Tracker session reset")

    # ------------------------------------------------------------------
    # Per-frame pipeline
    # ------------------------------------------------------------------

    def process(self, frame: Frame) -> FrameResult:
        """Analyze one frame.

        Args:
            frame: Grayscale frame with its capture index and interval.

        Returns:
            :class:`Detected` with the stored record, or :class:`NoDetection`
            when the binary mask has no external contour. In the latter case
            no history slot is written and the sequence does not advance.
        """
        clock = _StepClock()
        pixels = np.asarray(frame.pixels)

        if self._threshold is None:
            if pixels.min() == pixels.max():
                # no level separates a uniform frame; freeze on the next one
                self.last_step_timings = clock.laps
                logger.warning("Frame %d is uniform; threshold not set", frame.frame_index)
                return NoDetection(frame_index=frame.frame_index, reason="uniform frame")
            self._threshold = otsu_threshold(pixels, frame.width * frame.height)
            logger.info("Session threshold frozen at %d", self._threshold)
        clock.lap("threshold")

        contour = extract_contour(pixels, self._threshold)
        clock.lap("contour")
        if contour is None:
            self.last_step_timings = clock.laps
            logger.debug("Frame %d: no contour detected", frame.frame_index)
            return NoDetection(frame_index=frame.frame_index)

        sequence = self._index + 1

        coeffs = fourier_decompose(contour, self.n_harmonics)
        center = centroid(coeffs)
        clock.lap("spectral")

        fit = fourier_reconstruct(coeffs, self.resolution)
        clock.lap("reconstruct")

        curve = perimeter_curvature(fit, self.curvature_distance)
        clock.lap("curvature")

        points = self._classifier.classify(fit, curve)
        clock.lap("head_tail")

        skeleton = extract_skeleton(
            fit,
            points.head_index,
            points.tail_index,
            n_points=self.skeleton_points,
            neck_percentage=self.neck_percentage,
            bearing_fit_start_offset=self.bearing_fit_start_offset,
            bearing_fit_span=self.bearing_fit_span,
        )
        bearing_rate = self._bearing_derivative(sequence, skeleton.bearing, frame.interval_ms)
        clock.lap("skeleton")

        angles = body_angles(points.head, skeleton.neck, points.tail)
        clock.lap("angles")

        stage_ticks, offset_mm = self._resolver.sample()
        head_kin = self._kinematics(
            sequence, "head", points.head, offset_mm, self.head_velocity_step, frame.interval_ms
        )
        tail_kin = self._kinematics(
            sequence, "tail", points.tail, offset_mm, self.tail_velocity_step, frame.interval_ms
        )
        clock.lap("kinematics")

        record = HistoryRecord(
            sequence=sequence,
            frame_index=frame.frame_index,
            time_ms=frame.frame_index * frame.interval_ms,
            contour=contour,
            bounding_box=bounding_box(contour),
            coefficients=coeffs,
            centroid=center,
            points=points,
            skeleton=skeleton,
            angles=angles,
            bearing_derivative=bearing_rate,
            head_kinematics=head_kin,
            tail_kinematics=tail_kin,
            stage_position=stage_ticks,
            stage_offset_mm=offset_mm,
        )
        self._history.store(record)
        self._index = sequence

        if sequence % self.track_sample_interval == 0:
            self._track.append(to_world(center, offset_mm, self._resolver.mm_per_pixel))

        self.last_step_timings = clock.laps
        logger.debug(
            "Frame %d -> seq %d: length %.1f px, votes %s",
            frame.frame_index,
            sequence,
            skeleton.length,
            self.votes,
        )
        return Detected(record=record)

    def reconstruct(self, sequence: int | None = None, resolution: int | None = None) -> np.ndarray:
        """Rebuild the smoothed contour of a stored frame at any resolution.

        Args:
            sequence: Record to rebuild; defaults to the latest.
            resolution: Number of points; defaults to the session resolution.

        Raises:
            KeyError: If the record is not in the history.
        """
        seq = self._index if sequence is None else sequence
        record = self._history.get(seq)
        return fourier_reconstruct(
            record.coefficients, self.resolution if resolution is None else resolution
        )

    # ------------------------------------------------------------------
    # History-dependent quantities
    # ------------------------------------------------------------------

    def _bearing_derivative(self, sequence: int, bearing: float, interval_ms: float) -> float:
        window = self.bearing_filter_window
        if sequence <= window:
            return 0.0
        past = [
            self._history.get(seq).skeleton.bearing
            for seq in range(sequence - window, sequence)
        ]
        past.append(bearing)
        return smoothed_bearing_derivative(
            np.asarray(past), interval_ms / 1000.0, self.bearing_derivative_scale
        )

    def _kinematics(
        self,
        sequence: int,
        part: str,
        position: np.ndarray,
        offset_mm: np.ndarray,
        step: int,
        interval_ms: float,
    ) -> Kinematics:
        if sequence < step:
            return Kinematics.zero()
        past = self._history.get(sequence - step)
        past_position = past.head if part == "head" else past.tail
        return point_kinematics(
            position,
            offset_mm,
            past_position,
            past.stage_offset_mm,
            self._resolver.mm_per_pixel,
            step * interval_ms / 1000.0,
        )
