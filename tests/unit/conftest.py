"""Shared synthetic-frame fixtures for larvatrack unit tests."""

from __future__ import annotations

from collections.abc import Callable

import cv2
import numpy as np
import pytest

from larvatrack.core.types import Frame

BACKGROUND = 220
BODY = 0


def draw_larva(
    center: tuple[int, int] = (200, 200),
    axes: tuple[int, int] = (100, 20),
    angle: float = 0.0,
    size: tuple[int, int] = (400, 400),
    body: int = BODY,
    background: int = BACKGROUND,
) -> np.ndarray:
    """Dark filled ellipse on a bright backlit background, uint8 (H, W)."""
    image = np.full(size, background, dtype=np.uint8)
    cv2.ellipse(image, center, axes, angle, 0, 360, body, -1)
    return image


def teardrop_outline(
    center: tuple[float, float] = (200.0, 200.0),
    length: float = 100.0,
    width: float = 40.0,
    angle: float = 0.0,
    n_points: int = 360,
) -> np.ndarray:
    """Teardrop outline (N, 2) with a sharp tip and a round blunt end.

    The sharp tip sits ``length`` from ``center`` along ``angle`` degrees,
    the blunt end ``length`` along the opposite direction.
    """
    t = 2.0 * np.pi * np.arange(n_points) / n_points
    local = np.column_stack([length * np.cos(t), width * np.sin(t) * np.sin(t / 2.0)])
    theta = np.deg2rad(angle)
    rotation = np.array([[np.cos(theta), -np.sin(theta)], [np.sin(theta), np.cos(theta)]])
    return local @ rotation.T + np.asarray(center, dtype=np.float64)


def teardrop_tips(
    center: tuple[float, float] = (200.0, 200.0), length: float = 100.0, angle: float = 0.0
) -> tuple[np.ndarray, np.ndarray]:
    """Analytic (sharp tip, blunt end) of :func:`teardrop_outline`."""
    theta = np.deg2rad(angle)
    axis = length * np.array([np.cos(theta), np.sin(theta)])
    c = np.asarray(center, dtype=np.float64)
    return c + axis, c - axis


def draw_teardrop(
    size: tuple[int, int] = (400, 400),
    body: int = BODY,
    background: int = BACKGROUND,
    **kwargs,
) -> np.ndarray:
    """Dark filled teardrop on a bright background, uint8 (H, W)."""
    image = np.full(size, background, dtype=np.uint8)
    polygon = np.round(teardrop_outline(**kwargs)).astype(np.int32)
    cv2.fillPoly(image, [polygon.reshape(-1, 1, 2)], body)
    return image


def clockwise_ellipse(a: float = 40.0, b: float = 10.0, n_points: int = 200) -> np.ndarray:
    """Ellipse traversed with negative signed area; tips at 0 and n_points // 2."""
    t = 2.0 * np.pi * np.arange(n_points) / n_points
    return np.column_stack([a * np.cos(t), -b * np.sin(t)])


@pytest.fixture
def larva_frame() -> Callable[..., Frame]:
    """Factory building a :class:`Frame` holding one synthetic larva."""

    def _make(frame_index: int = 0, interval_ms: float = 40.0, **kwargs) -> Frame:
        return Frame(
            pixels=draw_larva(**kwargs), frame_index=frame_index, interval_ms=interval_ms
        )

    return _make


@pytest.fixture
def teardrop_frame() -> Callable[..., Frame]:
    """Factory building a :class:`Frame` holding one teardrop-shaped larva."""

    def _make(frame_index: int = 0, interval_ms: float = 40.0, **kwargs) -> Frame:
        return Frame(
            pixels=draw_teardrop(**kwargs), frame_index=frame_index, interval_ms=interval_ms
        )

    return _make


@pytest.fixture
def teardrop_tip_positions() -> Callable[..., tuple[np.ndarray, np.ndarray]]:
    """Analytic tip positions matching :func:`teardrop_frame`."""
    return teardrop_tips


@pytest.fixture
def blank_frame() -> Callable[..., Frame]:
    """Factory building an empty backlit frame."""

    def _make(frame_index: int = 0, size: tuple[int, int] = (400, 400)) -> Frame:
        return Frame(
            pixels=np.full(size, BACKGROUND, dtype=np.uint8), frame_index=frame_index
        )

    return _make


@pytest.fixture
def cw_ellipse() -> Callable[..., np.ndarray]:
    """Factory for an analytic clockwise ellipse contour."""
    return clockwise_ellipse
