"""Chord-angle curvature profile of a periodic reconstructed contour."""

from __future__ import annotations

import numpy as np

__all__ = ["perimeter_curvature"]


def perimeter_curvature(points: np.ndarray, distance: int | None = None) -> np.ndarray:
    """Compute the chord-angle curvature at every point of a closed contour.

    ``curve[i] = angle(p[i+d] - p[i]) - angle(p[i-d] - p[i])`` with circular
    indexing, wrapped into ``[0, 2*pi)``. On a clockwise contour (see
    :func:`~larvatrack.core.contour.find_external_contours`) sharp convex
    extremities give small values, straight flanks give values near pi and
    concavities give values above pi.

    Args:
        points: Reconstructed contour, shape (M, 2).
        distance: Look-ahead/behind distance d. Defaults to ``M // 8``.

    Returns:
        Curvature profile, shape (M,), float64, index-aligned with ``points``.

    Raises:
        ValueError: If ``distance`` is not in ``[1, M)``.
    """
    pts = np.asarray(points, dtype=np.float64)
    n_points = pts.shape[0]
    d = n_points // 8 if distance is None else int(distance)
    if d < 1 or d >= n_points:
        raise ValueError(f"curvature distance must be in [1, {n_points}), got {d}")

    ahead = np.roll(pts, -d, axis=0) - pts
    behind = np.roll(pts, d, axis=0) - pts
    curve = np.arctan2(ahead[:, 1], ahead[:, 0]) - np.arctan2(behind[:, 1], behind[:, 0])
    curve[curve < 0] += 2.0 * np.pi
    return curve
