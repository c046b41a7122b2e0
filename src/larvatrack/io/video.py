"""Offline frame source: replay a recorded video as grayscale frames."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import cv2
import numpy as np

from larvatrack.core.types import Frame

if TYPE_CHECKING:
    from collections.abc import Iterator


class VideoFrameSource:
    """Context-managed, iterable reader yielding :class:`Frame` objects.

    Colour video is converted to 8-bit grayscale. Frame indices start at 0
    and increase by one per decoded frame.

    Args:
        path: Video file readable by OpenCV.
        interval_ms: Nominal frame interval. Defaults to ``1000 / fps`` from
            the container, or 40 ms if the container reports no rate.
        stop_frame: If set, stop before this frame index.

    Raises:
        FileNotFoundError: If ``path`` does not exist.
    """

    def __init__(
        self,
        path: str | Path,
        interval_ms: float | None = None,
        stop_frame: int | None = None,
    ) -> None:
        self._path = Path(path)
        if not self._path.exists():
            raise FileNotFoundError(f"Video not found: {self._path}")
        self._interval_ms = interval_ms
        self._stop_frame = stop_frame
        self._capture: cv2.VideoCapture | None = None

    def __enter__(self) -> VideoFrameSource:
        self.open()
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def open(self) -> None:
        if self._capture is not None:
            return
        capture = cv2.VideoCapture(str(self._path))
        if not capture.isOpened():
            raise RuntimeError(f"Cannot open video: {self._path}")
        self._capture = capture
        if self._interval_ms is None:
            fps = capture.get(cv2.CAP_PROP_FPS)
            self._interval_ms = 1000.0 / fps if fps and fps > 0 else 40.0

    def close(self) -> None:
        if self._capture is not None:
            self._capture.release()
            self._capture = None

    @property
    def interval_ms(self) -> float:
        """Frame interval; resolved from the container once opened."""
        return 40.0 if self._interval_ms is None else self._interval_ms

    @property
    def frame_count(self) -> int:
        if self._capture is None:
            return 0
        return int(self._capture.get(cv2.CAP_PROP_FRAME_COUNT))

    def __iter__(self) -> Iterator[Frame]:
        self.open()
        assert self._capture is not None
        index = 0
        while self._stop_frame is None or index < self._stop_frame:
            ok, image = self._capture.read()
            if not ok:
                break
            yield Frame(pixels=_to_gray(image), frame_index=index, interval_ms=self.interval_ms)
            index += 1


def _to_gray(image: np.ndarray) -> np.ndarray:
    if image.ndim == 3:
        image = cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)
    return np.ascontiguousarray(image, dtype=np.uint8)
