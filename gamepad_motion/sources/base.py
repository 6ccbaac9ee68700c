"""
Sample source interface and the JSON sample protocol shared by sources.

Protocol: one JSON object per line.
    {"gyro": [x, y, z], "accel": [x, y, z], "dt": seconds}
gyro in deg/s, accel in g. "dt" is optional.
"""

import math
from typing import Optional, Tuple

# (gyro_xyz deg/s, accel_xyz g, delta_time s or None)
MotionSample = Tuple[
    Tuple[float, float, float],
    Tuple[float, float, float],
    Optional[float],
]


def _finite_triple(value: object) -> Optional[Tuple[float, float, float]]:
    """Convert list of 3 finite numbers to tuple; else None."""
    if not isinstance(value, (list, tuple)) or len(value) < 3:
        return None
    try:
        triple = (float(value[0]), float(value[1]), float(value[2]))
    except (TypeError, ValueError):
        return None
    if not all(math.isfinite(v) for v in triple):
        return None
    return triple


def parse_sample(data: object) -> Optional[MotionSample]:
    """
    Validate one decoded protocol object.

    Returns None for anything the engine should not see: missing keys,
    short lists, non-numeric, NaN or infinite values, negative dt.
    """
    if not isinstance(data, dict):
        return None
    gyro = _finite_triple(data.get("gyro"))
    accel = _finite_triple(data.get("accel"))
    if gyro is None or accel is None:
        return None
    dt = data.get("dt")
    if dt is None:
        return (gyro, accel, None)
    try:
        delta_time = float(dt)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(delta_time) or delta_time < 0.0:
        return None
    return (gyro, accel, delta_time)


class MotionSource:
    """Source of gyroscope and accelerometer samples."""

    def read(self) -> Optional[MotionSample]:
        """
        Return the next (gyro_xyz, accel_xyz, delta_time) or None.

        None means no sample available (non-blocking).
        """
        raise NotImplementedError

    @property
    def exhausted(self) -> bool:
        """True when no further samples will ever arrive."""
        return False

    def stop(self) -> None:
        """Release any resources held by the source."""
