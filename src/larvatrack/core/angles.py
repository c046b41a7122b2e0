"""Body bearing and headcast angle from head, neck and tail positions."""

from __future__ import annotations

import math

import numpy as np

from larvatrack.core.types import BodyAngles

__all__ = ["body_angles"]


def body_angles(head: np.ndarray, neck: np.ndarray, tail: np.ndarray) -> BodyAngles:
    """Compute the tail bearing and the head-to-body (headcast) angle.

    The tail bearing is the direction from the neck to the tail. The head
    vector (head - neck) is rotated into the tail-bearing frame and its angle
    remapped so that a head continuing the body axis reads 0 and a head
    pointing back along the body reads +/-pi.

    Args:
        head: Head position, shape (2,).
        neck: Neck position, shape (2,).
        tail: Tail position, shape (2,).

    Returns:
        Tail bearing and headcast angle in radians.
    """
    tail_bearing = math.atan2(tail[1] - neck[1], tail[0] - neck[0])
    dx = float(head[0] - neck[0])
    dy = float(head[1] - neck[1])
    c = math.cos(tail_bearing)
    s = math.sin(tail_bearing)
    raw = math.atan2(dy * c - dx * s, dy * s + dx * c)
    head_to_body = -(math.pi + raw) if raw < 0 else math.pi - raw
    return BodyAngles(tail_bearing=tail_bearing, head_to_body=head_to_body)
