"""Harmonic (elliptic Fourier style) decomposition and reconstruction of contours.

A closed contour of L points is treated as a periodic signal over parametric
time ``t_j = 2*pi*j / L``. Harmonic ``i`` contributes

    x(t) += ax[i] * cos(i t) + bx[i] * sin(i t)
    y(t) += ay[i] * cos(i t) + by[i] * sin(i t)

Coefficients are stored as an (N, 4) array with columns ``(ax, bx, ay, by)``.
The 0th row holds the centroid in ``(ax, ay)``.

Reconstruction samples ``theta`` over ``[-pi, pi)``, so reconstructed point 0
corresponds to contour parameter ``t = pi`` (half-way round the input).
"""

from __future__ import annotations

import numpy as np

from larvatrack.core.types import COEFF_AX, COEFF_AY, COEFF_BX, COEFF_BY

__all__ = ["centroid", "fourier_decompose", "fourier_reconstruct"]


def fourier_decompose(contour: np.ndarray, n_harmonics: int) -> np.ndarray:
    """Compute ``n_harmonics`` harmonic coefficient rows for a closed contour.

    Args:
        contour: Ordered contour points, shape (L, 2).
        n_harmonics: Number of harmonics N, including the 0th (centroid) term.

    Returns:
        Coefficients, shape (N, 4), float64, columns ``(ax, bx, ay, by)``.

    Raises:
        ValueError: If the contour is empty or ``n_harmonics < 1``.

    Note:
        Harmonics are only resolved for ``L >= 2N``. Below that, harmonic
        ``k`` aliases onto ``L - k`` and the coefficient rows repeat lower
        ones; a single-point contour gives ``2 * point`` in every row from
        1 on, so its reconstruction spans hundreds of pixels. Such contours
        are decomposed as-is, without padding or rejection.
    """
    pts = np.asarray(contour, dtype=np.float64).reshape(-1, 2)
    n_points = pts.shape[0]
    if n_points == 0:
        raise ValueError("cannot decompose an empty contour")
    if n_harmonics < 1:
        raise ValueError(f"n_harmonics must be >= 1, got {n_harmonics}")

    harmonics = np.arange(n_harmonics, dtype=np.float64)[:, None]
    t = 2.0 * np.pi * np.arange(n_points, dtype=np.float64) / n_points
    phase = harmonics * t[None, :]  # (N, L)
    cos_p = np.cos(phase)
    sin_p = np.sin(phase)

    coeffs = np.empty((n_harmonics, 4), dtype=np.float64)
    coeffs[:, COEFF_AX] = cos_p @ pts[:, 0]
    coeffs[:, COEFF_BX] = sin_p @ pts[:, 0]
    coeffs[:, COEFF_AY] = cos_p @ pts[:, 1]
    coeffs[:, COEFF_BY] = sin_p @ pts[:, 1]
    coeffs *= 2.0 / n_points
    coeffs[0, COEFF_AX] /= 2.0
    coeffs[0, COEFF_AY] /= 2.0
    return coeffs


def fourier_reconstruct(coefficients: np.ndarray, resolution: int) -> np.ndarray:
    """Synthesize ``resolution`` equally spaced points from stored coefficients.

    Pure function of its inputs: identical coefficients and resolution always
    give bit-identical output, so it can be used for replay and rendering
    without re-running the decomposition.

    Args:
        coefficients: Harmonic coefficients, shape (N, 4).
        resolution: Number of output points M.

    Returns:
        Reconstructed closed contour, shape (M, 2), float64.

    Raises:
        ValueError: If ``coefficients`` is not (N, 4) or ``resolution < 1``.
    """
    coeffs = np.asarray(coefficients, dtype=np.float64)
    if coeffs.ndim != 2 or coeffs.shape[1] != 4 or coeffs.shape[0] == 0:
        raise ValueError(f"coefficients must have shape (N, 4), got {coeffs.shape}")
    if resolution < 1:
        raise ValueError(f"resolution must be >= 1, got {resolution}")

    theta = -np.pi + 2.0 * np.pi * np.arange(resolution, dtype=np.float64) / resolution
    harmonics = np.arange(coeffs.shape[0], dtype=np.float64)[:, None]
    phase = harmonics * theta[None, :]  # (N, M)
    cos_p = np.cos(phase)
    sin_p = np.sin(phase)

    out = np.empty((resolution, 2), dtype=np.float64)
    out[:, 0] = coeffs[:, COEFF_AX] @ cos_p + coeffs[:, COEFF_BX] @ sin_p
    out[:, 1] = coeffs[:, COEFF_AY] @ cos_p + coeffs[:, COEFF_BY] @ sin_p
    return out


def centroid(coefficients: np.ndarray) -> np.ndarray:
    """Shape centroid ``(ax[0], ay[0])``, shape (2,)."""
    coeffs = np.asarray(coefficients, dtype=np.float64)
    return np.array([coeffs[0, COEFF_AX], coeffs[0, COEFF_AY]])
