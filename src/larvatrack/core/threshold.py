"""Otsu threshold estimation over an 8-bit intensity histogram."""

from __future__ import annotations

import numpy as np

__all__ = ["otsu_from_histogram", "otsu_threshold"]

_N_LEVELS = 256


def otsu_from_histogram(hist: np.ndarray) -> int:
    """Return the threshold minimising the weighted within-group variance.

    For each candidate ``t`` the low group holds levels ``[0, t)`` and the
    high group ``[t, 256)``. Candidates for which either group has zero
    probability mass are skipped. Ties resolve to the lowest threshold.

    Args:
        hist: Histogram of 256 non-negative bin counts (any scale).

    Returns:
        Threshold level in ``[1, 255]``.

    Raises:
        ValueError: If ``hist`` does not have 256 bins, is empty, or every
            candidate puts all mass in one group (a single-intensity image).
    """
    hist = np.asarray(hist, dtype=np.float64)
    if hist.shape != (_N_LEVELS,):
        raise ValueError(f"histogram must have {_N_LEVELS} bins, got {hist.shape}")
    total = hist.sum()
    if total <= 0:
        raise ValueError("histogram is empty")
    p = hist / total

    levels = np.arange(_N_LEVELS, dtype=np.float64)
    mass_low, m1_low, m2_low = _prefix_moments(p, levels)
    mass_high, m1_high, m2_high = _suffix_moments(p, levels)

    valid = (mass_low > 0) & (mass_high > 0)
    if not np.any(valid):
        raise ValueError("all pixels share one intensity; no threshold separates them")

    # q * sigma^2 == sum(l^2 p) - (sum(l p))^2 / q for each group
    with np.errstate(divide="ignore", invalid="ignore"):
        within = (m2_low - m1_low**2 / mass_low) + (m2_high - m1_high**2 / mass_high)
    within = np.where(valid, within, np.inf)
    return int(np.argmin(within))


def _prefix_moments(
    p: np.ndarray, levels: np.ndarray
) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Mass, first and second moment of levels ``[0, t)`` for every ``t``."""
    zero = np.zeros(1)
    mass = np.concatenate([zero, np.cumsum(p)[:-1]])
    m1 = np.concatenate([zero, np.cumsum(p * levels)[:-1]])
    m2 = np.concatenate([zero, np.cumsum(p * levels**2)[:-1]])
    return mass, m1, m2


def _suffix_moments(
    p: np.ndarray, levels: np.ndarray
) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Mass, first and second moment of levels ``[t, 256)`` for every ``t``."""
    mass = np.cumsum(p[::-1])[::-1]
    m1 = np.cumsum((p * levels)[::-1])[::-1]
    m2 = np.cumsum((p * levels**2)[::-1])[::-1]
    return mass, m1, m2


def otsu_threshold(pixels: np.ndarray, pixel_count: int | None = None) -> int:
    """Estimate the binarisation threshold of an 8-bit grayscale buffer.

    Args:
        pixels: uint8 image or flat buffer.
        pixel_count: Expected number of pixels. When given it must match the
            buffer size.

    Returns:
        Threshold level; pixels at or below it are treated as organism.
    """
    flat = np.asarray(pixels).ravel()
    if pixel_count is not None and flat.size != pixel_count:
        raise ValueError(
            f"pixel buffer holds {flat.size} values, expected {pixel_count}"
        )
    if flat.dtype != np.uint8:
        raise ValueError(f"expected uint8 pixels, got {flat.dtype}")
    hist = np.bincount(flat, minlength=_N_LEVELS)
    return otsu_from_histogram(hist)
