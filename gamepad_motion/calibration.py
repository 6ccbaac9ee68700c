"""
Gyro calibration state: summed gyro offset and accel magnitude with a count.

The offset is the mean of the accumulated samples:
    gyro_offset = (x, y, z) / num_samples
    accel_magnitude = accel_magnitude_sum / num_samples
Units: gyro deg/s, accel magnitude g. A count of zero means uncalibrated.
"""

import json
import logging
import math
from pathlib import Path
from typing import TYPE_CHECKING, Optional, Tuple

if TYPE_CHECKING:
    from gamepad_motion.auto_calibration import Recalibration

logger = logging.getLogger(__name__)


def _to_float(value: object, default: float) -> float:
    """Convert a number (or numeric string) to float; else return default."""
    try:
        return float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return default


def _to_triple(
    value: object, default: Tuple[float, float, float]
) -> Tuple[float, float, float]:
    """Convert list of 3 numbers to tuple; else return default."""
    if isinstance(value, (list, tuple)) and len(value) >= 3:
        try:
            return (float(value[0]), float(value[1]), float(value[2]))
        except (TypeError, ValueError):
            pass
    return default


class GyroCalibration:
    """
    Running sums for manual gyro calibration.

    Samples are pushed while the controller is held still; the offset is
    their mean. set_offset() stores an external offset with a weight, so
    samples pushed afterwards blend in proportion to it.
    """

    __slots__ = ("x", "y", "z", "accel_magnitude", "num_samples")

    def __init__(
        self,
        x: float = 0.0,
        y: float = 0.0,
        z: float = 0.0,
        accel_magnitude: float = 0.0,
        num_samples: int = 0,
    ) -> None:
        self.x = x
        self.y = y
        self.z = z
        self.accel_magnitude = accel_magnitude
        self.num_samples = num_samples

    def reset(self) -> None:
        self.x = 0.0
        self.y = 0.0
        self.z = 0.0
        self.accel_magnitude = 0.0
        self.num_samples = 0

    def push_sample(
        self, gyro_x: float, gyro_y: float, gyro_z: float, accel_magnitude: float
    ) -> None:
        """Accumulate one gyro sample (deg/s) and accel magnitude (g)."""
        self.num_samples += 1
        self.x += gyro_x
        self.y += gyro_y
        self.z += gyro_z
        self.accel_magnitude += accel_magnitude

    def get_offset(self) -> Tuple[float, float, float, float]:
        """Return (gyro_x, gyro_y, gyro_z, accel_magnitude); zeros when empty."""
        if self.num_samples <= 0:
            return (0.0, 0.0, 0.0, 0.0)
        inverse = 1.0 / self.num_samples
        return (
            self.x * inverse,
            self.y * inverse,
            self.z * inverse,
            self.accel_magnitude * inverse,
        )

    def set_offset(self, x: float, y: float, z: float, weight: int) -> None:
        """
        Replace the gyro offset, counting it as weight samples.

        The accel magnitude mean is kept when there is one to keep,
        otherwise it becomes 1 g.
        """
        if self.num_samples > 1:
            self.accel_magnitude *= weight / self.num_samples
        else:
            self.accel_magnitude = float(weight)
        self.num_samples = weight
        self.x = x * weight
        self.y = y * weight
        self.z = z * weight

    def apply_recalibration(self, recalibration: "Recalibration") -> None:
        """Overwrite with an automatic recalibration (one sample's weight)."""
        offset = recalibration.gyro_offset
        self.x = offset.x
        self.y = offset.y
        self.z = offset.z
        self.accel_magnitude = recalibration.accel_magnitude
        self.num_samples = 1

    def to_dict(self) -> dict:
        """Serialise the mean offset and its weight to a JSON-suitable dict."""
        x, y, z, accel_magnitude = self.get_offset()
        return {
            "gyro_offset": [x, y, z],
            "accel_magnitude": accel_magnitude,
            "num_samples": self.num_samples,
        }

    @classmethod
    def from_dict(cls, data: object) -> "GyroCalibration":
        """
        Build from dict (e.g. JSON load). Unknown keys ignored.

        A missing count or any non-finite value gives the default state.
        """
        if not isinstance(data, dict):
            return cls()
        x, y, z = _to_triple(data.get("gyro_offset"), (0.0, 0.0, 0.0))
        accel_magnitude = _to_float(data.get("accel_magnitude"), 0.0)
        count = _to_float(data.get("num_samples"), 0.0)
        if not math.isfinite(count) or count < 1:
            return cls()
        if not all(math.isfinite(v) for v in (x, y, z, accel_magnitude)):
            logger.warning("Calibration has non-finite values; ignoring it")
            return cls()
        num_samples = int(count)
        return cls(
            x=x * num_samples,
            y=y * num_samples,
            z=z * num_samples,
            accel_magnitude=accel_magnitude * num_samples,
            num_samples=num_samples,
        )


def load_calibration(path: Optional[Path]) -> GyroCalibration:
    """Load calibration from a JSON file. Missing/invalid file returns default."""
    if not path or not path.exists():
        return GyroCalibration()
    try:
        text = path.read_text()
        data = json.loads(text)
        return GyroCalibration.from_dict(data)
    except (OSError, json.JSONDecodeError) as e:
        logger.warning("Calibration load failed %s: %s", path, e)
        return GyroCalibration()


def save_calibration(path: Path, calibration: GyroCalibration) -> bool:
    """Write calibration to JSON file. Returns True on success."""
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(calibration.to_dict(), indent=2) + "\n")
        return True
    except OSError as e:
        logger.warning("Calibration save failed %s: %s", path, e)
        return False
