"""Unit tests for the circular history buffer."""

from __future__ import annotations

import numpy as np
import pytest

from larvatrack.core.history import HistoryBuffer
from larvatrack.core.types import (
    AnatomicalPoints,
    BodyAngles,
    BoundingBox,
    HistoryRecord,
    Kinematics,
    Skeleton,
)


def _record(sequence: int) -> HistoryRecord:
    head = np.array([float(sequence), 0.0])
    tail = np.array([float(sequence) + 10.0, 0.0])
    return HistoryRecord(
        sequence=sequence,
        frame_index=sequence * 2,
        time_ms=sequence * 80.0,
        contour=np.zeros((4, 2), dtype=np.int32),
        bounding_box=BoundingBox(0, 0, 1, 1),
        coefficients=np.zeros((3, 4)),
        centroid=np.zeros(2),
        points=AnatomicalPoints(head=head, tail=tail, head_index=0, tail_index=5),
        skeleton=Skeleton(
            points=np.array([head, tail]),
            length=10.0,
            neck=(head + tail) / 2,
            neck_index=0,
            bearing=0.0,
        ),
        angles=BodyAngles(tail_bearing=0.0, head_to_body=0.0),
        bearing_derivative=0.0,
        head_kinematics=Kinematics.zero(),
        tail_kinematics=Kinematics.zero(),
    )


class TestHistoryBuffer:
    def test_empty_buffer(self) -> None:
        buf = HistoryBuffer(4)
        assert len(buf) == 0
        assert buf.latest() is None
        assert buf.latest_sequence == -1
        assert not buf.contains(0)
        assert not buf.contains(-1)

    def test_store_and_get(self) -> None:
        buf = HistoryBuffer(4)
        rec = _record(0)
        buf.store(rec)
        assert buf.get(0) is rec
        assert buf.latest() is rec
        assert len(buf) == 1

    def test_slot_is_sequence_modulo_capacity(self) -> None:
        buf = HistoryBuffer(4)
        assert buf.slot(0) == 0
        assert buf.slot(5) == 1
        assert buf.capacity == 4

    def test_old_records_are_overwritten(self) -> None:
        buf = HistoryBuffer(4)
        for seq in range(6):
            buf.store(_record(seq))
        assert len(buf) == 4
        assert buf.latest_sequence == 5
        with pytest.raises(KeyError):
            buf.get(1)
        assert buf.get(2).frame_index == 4
        assert [r.sequence for r in buf.recent(10)] == [2, 3, 4, 5]
        assert [r.sequence for r in buf.recent(2)] == [4, 5]

    def test_missing_record_raises(self) -> None:
        buf = HistoryBuffer(4)
        buf.store(_record(0))
        with pytest.raises(KeyError):
            buf.get(1)

    def test_clear(self) -> None:
        buf = HistoryBuffer(4)
        buf.store(_record(0))
        buf.clear()
        assert len(buf) == 0
        assert buf.latest() is None

    def test_record_accessors(self) -> None:
        rec = _record(3)
        np.testing.assert_array_equal(rec.head, [3.0, 0.0])
        np.testing.assert_array_equal(rec.tail, [13.0, 0.0])
        np.testing.assert_array_equal(rec.neck, [8.0, 0.0])

    def test_invalid_capacity_raises(self) -> None:
        with pytest.raises(ValueError):
            HistoryBuffer(0)
