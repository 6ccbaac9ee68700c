"""
Fixed-size history of world-frame accelerometer samples.
"""

from typing import List, Tuple

from gamepad_motion.vector import Vec3

GRAVITY_HISTORY_SIZE = 10


class GravitySampleHistory:
    """
    Ring buffer of the most recent world-frame acceleration samples.

    Storage is allocated once; push() overwrites the oldest slot. The
    count saturates at the capacity.
    """

    __slots__ = ("_samples", "_head", "_count", "legacy_min_z")

    def __init__(
        self, capacity: int = GRAVITY_HISTORY_SIZE, legacy_min_z: bool = False
    ) -> None:
        self._samples: List[Vec3] = [Vec3() for _ in range(capacity)]
        self._head = 0
        self._count = 0
        self.legacy_min_z = legacy_min_z

    def __len__(self) -> int:
        return self._count

    @property
    def capacity(self) -> int:
        return len(self._samples)

    def clear(self) -> None:
        self._head = 0
        self._count = 0

    def push(self, sample: Vec3) -> None:
        """Store a copy of sample as the newest entry."""
        slot = self._samples[self._head]
        slot.x, slot.y, slot.z = sample.x, sample.y, sample.z
        self._head = (self._head + 1) % len(self._samples)
        if self._count < len(self._samples):
            self._count += 1

    def newest(self) -> Vec3:
        idx = (self._head - 1) % len(self._samples)
        s = self._samples[idx]
        return Vec3(s.x, s.y, s.z)

    def bounds(self) -> Tuple[Vec3, Vec3]:
        """
        Per-axis (min, max) over the stored samples, newest first.

        With legacy_min_z the z minimum stays at the newest sample's z,
        matching the older scan that never lowered it.
        """
        if self._count == 0:
            return (Vec3(), Vec3())
        capacity = len(self._samples)
        first = self.newest()
        lo = Vec3(first.x, first.y, first.z)
        hi = Vec3(first.x, first.y, first.z)
        for offset in range(2, self._count + 1):
            s = self._samples[(self._head - offset) % capacity]
            if s.x > hi.x:
                hi.x = s.x
            if s.y > hi.y:
                hi.y = s.y
            if s.z > hi.z:
                hi.z = s.z
            if s.x < lo.x:
                lo.x = s.x
            if s.y < lo.y:
                lo.y = s.y
            if not self.legacy_min_z and s.z < lo.z:
                lo.z = s.z
        return (lo, hi)
