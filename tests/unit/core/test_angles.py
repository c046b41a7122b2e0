"""Unit tests for body bearing and headcast angle."""

from __future__ import annotations

import math

import numpy as np
import pytest

from larvatrack.core.angles import body_angles

NECK = np.array([0.0, 0.0])


def test_straight_body_reads_zero() -> None:
    angles = body_angles(np.array([10.0, 0.0]), NECK, np.array([-10.0, 0.0]))
    assert abs(angles.tail_bearing) == pytest.approx(math.pi)
    assert angles.head_to_body == pytest.approx(0.0, abs=1e-12)


def test_head_folded_onto_tail_reads_pi() -> None:
    angles = body_angles(np.array([-5.0, 0.0]), NECK, np.array([-10.0, 0.0]))
    assert abs(angles.head_to_body) == pytest.approx(math.pi)


def test_perpendicular_casts_have_opposite_signs() -> None:
    tail = np.array([0.0, 10.0])
    one_side = body_angles(np.array([10.0, 0.0]), NECK, tail)
    other_side = body_angles(np.array([-10.0, 0.0]), NECK, tail)
    assert one_side.tail_bearing == pytest.approx(math.pi / 2)
    assert one_side.head_to_body == pytest.approx(-math.pi / 2)
    assert other_side.head_to_body == pytest.approx(math.pi / 2)


def test_rotation_invariance() -> None:
    """Rotating the whole animal changes the bearing, not the headcast."""
    head = np.array([8.0, 3.0])
    tail = np.array([-12.0, 1.0])
    base = body_angles(head, NECK, tail)
    c, s = math.cos(0.7), math.sin(0.7)
    rot = np.array([[c, -s], [s, c]])
    turned = body_angles(rot @ head, NECK, rot @ tail)
    assert turned.head_to_body == pytest.approx(base.head_to_body)
    assert math.remainder(turned.tail_bearing - base.tail_bearing - 0.7, 2 * math.pi) == (
        pytest.approx(0.0, abs=1e-12)
    )
