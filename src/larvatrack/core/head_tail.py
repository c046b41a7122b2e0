"""Head/tail identity resolution from curvature minima with majority voting.

Two signals are kept apart:

1. Frame-to-frame tracking. The two sharpest contour points of the current
   frame are matched to the previous frame's pair (the master identity) by
   minimum total squared distance. The master pair is then replaced by the
   matched current points, so tracking follows the animal as it moves.
2. Long-term labelling. Each match credits a vote to "no flip" (candidate
   order agrees with the master order) or "flip" (it is swapped). Whichever
   master slot holds the larger cumulative vote count is reported as the head.

A single frame in which the tail momentarily looks sharper than the head
therefore moves one vote, not the public label.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np

from larvatrack.core.types import AnatomicalPoints

logger = logging.getLogger(__name__)

__all__ = ["HeadTailClassifier", "MasterIdentity", "find_extremities"]


def find_extremities(curvature: np.ndarray, suppression: int | None = None) -> tuple[int, int]:
    """Locate the two sharpest, well separated points of a curvature profile.

    The global minimum is taken first. A circular window of indices
    ``[i - s, i + s)`` around it is then masked on a working copy and the
    minimum of the remaining points is taken second. The input profile is
    never modified.

    Args:
        curvature: Curvature profile, shape (M,).
        suppression: Half-width s of the masked window. Defaults to ``M // 8``.

    Returns:
        ``(first_index, second_index)`` in discovery order.

    Raises:
        ValueError: If the window would mask the whole profile.
    """
    profile = np.asarray(curvature, dtype=np.float64)
    n_points = profile.shape[0]
    s = n_points // 8 if suppression is None else int(suppression)
    if s < 1 or 2 * s >= n_points:
        raise ValueError(
            f"suppression window must satisfy 1 <= s < {n_points} / 2, got {s}"
        )

    first = int(np.argmin(profile))
    working = profile.copy()
    working[np.arange(first - s, first + s) % n_points] = np.inf
    second = int(np.argmin(working))
    return first, second


@dataclass
class MasterIdentity:
    """Persistent, vote-stabilised head/tail pair.

    Attributes:
        points: Tracked pair, shape (2, 2). Row 0 is the slot that was first
            discovered as sharpest when the session started.
        indices: Contour indices of ``points`` in the most recent frame.
        no_flip_votes: Frames in which candidate order agreed with ``points``.
        flip_votes: Frames in which candidate order was swapped.
    """

    points: np.ndarray
    indices: tuple[int, int]
    no_flip_votes: int = 0
    flip_votes: int = 0

    @property
    def head_slot(self) -> int:
        """Slot reported as head; ties keep the discovery order."""
        return 0 if self.no_flip_votes >= self.flip_votes else 1


class HeadTailClassifier:
    """Stateful head/tail classifier owned by one tracking session.

    The classifier is updated at most once per analyzed frame. Vote counters
    can be cleared on operator demand with :meth:`reset_votes` without losing
    the tracked coordinates; :meth:`reset` forgets everything.

    Args:
        suppression: Half-width of the window masked around the first
            extremity. None selects ``M // 8`` for each profile.
    """

    def __init__(self, suppression: int | None = None) -> None:
        self._suppression = suppression
        self._identity: MasterIdentity | None = None

    @property
    def identity(self) -> MasterIdentity | None:
        return self._identity

    @property
    def votes(self) -> tuple[int, int]:
        """``(no_flip, flip)`` vote counters."""
        if self._identity is None:
            return 0, 0
        return self._identity.no_flip_votes, self._identity.flip_votes

    def classify(self, contour: np.ndarray, curvature: np.ndarray) -> AnatomicalPoints:
        """Find extremities on ``contour`` and return the public head/tail labels.

        Args:
            contour: Reconstructed contour, shape (M, 2).
            curvature: Curvature profile aligned with ``contour``, shape (M,).

        Returns:
            Head and tail labels with their contour indices.
        """
        pts = np.asarray(contour, dtype=np.float64)
        first, second = find_extremities(curvature, self._suppression)
        return self.update(pts[[first, second]], (first, second))

    def update(self, candidates: np.ndarray, indices: tuple[int, int]) -> AnatomicalPoints:
        """Match a candidate pair against the master identity and vote.

        Args:
            candidates: Current extremities in discovery order, shape (2, 2).
            indices: Contour indices of ``candidates``.

        Returns:
            Head and tail labels according to the cumulative votes.
        """
        cand = np.asarray(candidates, dtype=np.float64).reshape(2, 2)
        ident = self._identity

        if ident is None:
            ident = MasterIdentity(points=cand.copy(), indices=(indices[0], indices[1]))
            ident.no_flip_votes += 1
            self._identity = ident
        else:
            d = ((ident.points[:, None, :] - cand[None, :, :]) ** 2).sum(axis=2)
            keep_cost = d[0, 0] + d[1, 1]
            swap_cost = d[0, 1] + d[1, 0]
            if keep_cost <= swap_cost:
                ident.points = cand.copy()
                ident.indices = (indices[0], indices[1])
                ident.no_flip_votes += 1
            else:
                ident.points = cand[::-1].copy()
                ident.indices = (indices[1], indices[0])
                ident.flip_votes += 1

        head_slot = ident.head_slot
        tail_slot = 1 - head_slot
        return AnatomicalPoints(
            head=ident.points[head_slot].copy(),
            tail=ident.points[tail_slot].copy(),
            head_index=ident.indices[head_slot],
            tail_index=ident.indices[tail_slot],
        )

    def reset_votes(self) -> None:
        """Zero both vote counters; tracked coordinates are kept."""
        if self._identity is not None:
            self._identity.no_flip_votes = 0
            self._identity.flip_votes = 0
        logger.info("Head/tail votes reset")

    def reset(self) -> None:
        """Forget the master identity entirely (new session)."""
        self._identity = None
