"""Fixed-capacity circular history of analyzed frames."""

from __future__ import annotations

from larvatrack.core.types import HistoryRecord

__all__ = ["HistoryBuffer"]


class HistoryBuffer:
    """Ring buffer of :class:`HistoryRecord` keyed by analysis sequence number.

    Record ``n`` lives in slot ``n % capacity`` and is overwritten by record
    ``n + capacity``. Capacity is fixed at construction.

    Args:
        capacity: Number of slots.
    """

    def __init__(self, capacity: int = 2000) -> None:
        if capacity < 1:
            raise ValueError(f"capacity must be >= 1, got {capacity}")
        self._capacity = capacity
        self._slots: list[HistoryRecord | None] = [None] * capacity
        self._latest: int = -1

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def latest_sequence(self) -> int:
        """Sequence number of the newest record, -1 when empty."""
        return self._latest

    def __len__(self) -> int:
        return min(self._latest + 1, self._capacity)

    def slot(self, sequence: int) -> int:
        return sequence % self._capacity

    def store(self, record: HistoryRecord) -> None:
        """Write ``record`` into its slot, replacing whatever was there."""
        self._slots[self.slot(record.sequence)] = record
        self._latest = max(self._latest, record.sequence)

    def contains(self, sequence: int) -> bool:
        if sequence < 0:
            return False
        rec = self._slots[self.slot(sequence)]
        return rec is not None and rec.sequence == sequence

    def get(self, sequence: int) -> HistoryRecord:
        """Return the record with ``sequence``.

        Raises:
            KeyError: If the record was never written or has been overwritten.
        """
        if not self.contains(sequence):
            raise KeyError(f"sequence {sequence} is not in the history buffer")
        rec = self._slots[self.slot(sequence)]
        assert rec is not None
        return rec

    def latest(self) -> HistoryRecord | None:
        if self._latest < 0:
            return None
        return self._slots[self.slot(self._latest)]

    def recent(self, count: int) -> list[HistoryRecord]:
        """Up to ``count`` newest records that are still held, oldest first."""
        start = max(0, self._latest - count + 1, self._latest - self._capacity + 1)
        return [self.get(seq) for seq in range(start, self._latest + 1)]

    def clear(self) -> None:
        self._slots = [None] * self._capacity
        self._latest = -1
