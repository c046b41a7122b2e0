"""Midline extraction by pairing the two contour sides between head and tail.

The reconstructed contour is walked from the head to the tail in both
directions. Each side is cut into K equal index steps and the midline point
k is the midpoint of the k-th sample on each side, so ``points[0]`` is the
head and ``points[K-1]`` the tail.
"""

from __future__ import annotations

import logging

import numpy as np

from larvatrack.core.types import Skeleton

logger = logging.getLogger(__name__)

__all__ = [
    "extract_skeleton",
    "neck_index",
    "secant_bearing",
    "smoothed_bearing_derivative",
    "unwrapped_difference",
]


def extract_skeleton(
    contour: np.ndarray,
    head_index: int,
    tail_index: int,
    n_points: int = 500,
    neck_percentage: float = 0.5,
    bearing_fit_start_offset: int = 25,
    bearing_fit_span: int = 75,
) -> Skeleton:
    """Compute the head-to-tail midline, its length, neck and tail-end bearing.

    Args:
        contour: Reconstructed contour, shape (M, 2).
        head_index: Contour index of the head.
        tail_index: Contour index of the tail.
        n_points: Number of midline points K.
        neck_percentage: Fraction of the midline length, measured from the
            head, at which the neck is placed.
        bearing_fit_start_offset: The secant's tail-side point is
            ``points[K - bearing_fit_start_offset]``.
        bearing_fit_span: The secant's head-side point lies this many
            indices before the tail-side point.

    Returns:
        Skeleton with length, neck and secant bearing.

    Raises:
        ValueError: If an index is outside the contour or head equals tail.
    """
    pts = np.asarray(contour, dtype=np.float64)
    m = pts.shape[0]
    if not (0 <= head_index < m and 0 <= tail_index < m):
        raise ValueError(f"head/tail index out of range for contour of {m} points")
    if head_index == tail_index:
        raise ValueError("head and tail share one contour index")

    steps_cw = (tail_index - head_index) % m
    steps_ccw = (head_index - tail_index) % m

    # floor of K evenly spaced positions from 0 to the tail, inclusive
    offsets_cw = np.linspace(0.0, steps_cw, n_points).astype(np.int64)
    offsets_ccw = np.linspace(0.0, steps_ccw, n_points).astype(np.int64)
    side_cw = pts[(head_index + offsets_cw) % m]
    side_ccw = pts[(head_index - offsets_ccw) % m]
    points = (side_cw + side_ccw) / 2.0

    seg = np.linalg.norm(np.diff(points, axis=0), axis=1)
    cumulative = np.concatenate([[0.0], np.cumsum(seg)])
    length = float(cumulative[-1])
    neck_idx = neck_index(cumulative, neck_percentage)

    return Skeleton(
        points=points,
        length=length,
        neck=points[neck_idx].copy(),
        neck_index=neck_idx,
        bearing=secant_bearing(points, bearing_fit_start_offset, bearing_fit_span),
    )


def neck_index(cumulative: np.ndarray, neck_percentage: float) -> int:
    """First index whose cumulative arc length reaches ``neck_percentage`` of the total.

    Args:
        cumulative: Cumulative arc length from the head, shape (K,),
            starting at 0.
        neck_percentage: Target fraction of the total length.

    Returns:
        Index ``i`` with ``cumulative[i] >= target > cumulative[i - 1]``.
    """
    target = neck_percentage * cumulative[-1]
    idx = int(np.searchsorted(cumulative, target, side="left"))
    return min(idx, len(cumulative) - 1)


def secant_bearing(points: np.ndarray, start_offset: int = 25, span: int = 75) -> float:
    """Angle of the two-point secant near the tail end of the midline.

    The secant runs from ``points[K - start_offset - span]`` towards
    ``points[K - start_offset]``.
    """
    k = len(points)
    far = points[k - start_offset]
    near = points[k - start_offset - span]
    return float(np.arctan2(far[1] - near[1], far[0] - near[0]))


def unwrapped_difference(current: float, previous: float) -> float:
    """``current - previous`` corrected for a crossing of the +/-pi boundary.

    A correction is applied only when one bearing lies above +pi/2 and the
    other below -pi/2.
    """
    half_pi = np.pi / 2.0
    if current > half_pi and previous < -half_pi:
        return current - previous - 2.0 * np.pi
    if current < -half_pi and previous > half_pi:
        return current - previous + 2.0 * np.pi
    return current - previous


def smoothed_bearing_derivative(
    bearings: np.ndarray,
    interval_s: float,
    scale: float = 0.5,
) -> float:
    """Backward triangular-weighted derivative of a bearing series.

    With a window W, the newest ``W + 1`` bearings yield W unwrapped
    differences. The difference ending at lag k (0 = newest) is weighted by
    ``(W - k) / (1 + 2 + ... + W)``, so the weights sum to one and the most
    recent change counts most. The weighted sum is multiplied by ``scale``.

    Args:
        bearings: Bearing history in radians, oldest first, shape (W + 1,).
        interval_s: Time between consecutive samples, in seconds.
        scale: Factor applied to the weighted sum.

    Returns:
        Smoothed angular rate in radians per second.
    """
    series = np.asarray(bearings, dtype=np.float64)
    window = len(series) - 1
    if window < 1:
        return 0.0
    norm = window * (window + 1) / 2.0
    total = 0.0
    for k in range(window):
        current = series[-1 - k]
        previous = series[-2 - k]
        rate = unwrapped_difference(current, previous) / interval_s
        total += rate * (window - k) / norm
    return total * scale
