"""Silhouette extraction: inverted binary threshold and contour selection."""

from __future__ import annotations

import logging

import cv2
import numpy as np

from larvatrack.core.types import BoundingBox

logger = logging.getLogger(__name__)

__all__ = [
    "binarize",
    "bounding_box",
    "extract_contour",
    "find_external_contours",
    "signed_area",
]


def binarize(pixels: np.ndarray, threshold: int) -> np.ndarray:
    """Inverted binary threshold: pixels at or below ``threshold`` become 255.

    The organism is darker than the backlit background, so it ends up as
    foreground in the returned mask.

    Args:
        pixels: uint8 grayscale image, shape (H, W).
        threshold: Frozen session threshold.

    Returns:
        Binary mask, uint8 (0/255), shape (H, W).
    """
    _, mask = cv2.threshold(pixels, threshold, 255, cv2.THRESH_BINARY_INV)
    return mask


def signed_area(points: np.ndarray) -> float:
    """Shoelace area of a closed polyline; positive when x->y turns counter-clockwise."""
    pts = np.asarray(points, dtype=np.float64)
    x, y = pts[:, 0], pts[:, 1]
    return 0.5 * float(np.sum(x * np.roll(y, -1) - np.roll(x, -1) * y))


def find_external_contours(mask: np.ndarray) -> list[np.ndarray]:
    """Return all external contours of ``mask`` as (L, 2) int32 arrays.

    Every contour is normalised to non-positive signed area, i.e. it turns
    clockwise in (x, y) axes (counter-clockwise as drawn in image rows).
    Curvature analysis depends on this orientation: convex extremities then
    produce small chord angles.
    """
    raw, _ = cv2.findContours(mask, cv2.RETR_EXTERNAL, cv2.CHAIN_APPROX_NONE)
    contours: list[np.ndarray] = []
    for c in raw:
        pts = c.reshape(-1, 2).astype(np.int32)
        if signed_area(pts) > 0:
            pts = pts[::-1].copy()
        contours.append(pts)
    return contours


def extract_contour(pixels: np.ndarray, threshold: int) -> np.ndarray | None:
    """Binarize and select the contour with the largest perimeter.

    Perimeter rather than area is used so that the elongated organism wins
    over compact debris of similar area.

    Args:
        pixels: uint8 grayscale image, shape (H, W).
        threshold: Frozen session threshold.

    Returns:
        Selected contour, shape (L, 2), int32, or None if the mask contains
        no external contour.
    """
    contours = find_external_contours(binarize(pixels, threshold))
    if not contours:
        return None

    perimeters = [cv2.arcLength(c.reshape(-1, 1, 2), True) for c in contours]
    best = int(np.argmax(perimeters))
    logger.debug(
        "Selected contour %d of %d (perimeter %.1f px, %d points)",
        best,
        len(contours),
        perimeters[best],
        len(contours[best]),
    )
    return contours[best]


def bounding_box(contour: np.ndarray) -> BoundingBox:
    """Integer bounding box of a contour."""
    x, y, w, h = cv2.boundingRect(np.asarray(contour, dtype=np.int32).reshape(-1, 1, 2))
    return BoundingBox(x=int(x), y=int(y), width=int(w), height=int(h))
