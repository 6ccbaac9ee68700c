"""
Per-device motion processing: calibration mode, bias removal, orientation.

Gyro units are degrees per second, accelerometer units are g. The
coordinate system is Y-up, following the PlayStation controller sensors.
"""

import enum
import math
from typing import Optional, Tuple

from gamepad_motion.auto_calibration import AutoCalibration
from gamepad_motion.calibration import GyroCalibration
from gamepad_motion.motion import Motion
from gamepad_motion.vector import Vec3


class CalibrationMode(enum.Enum):
    """How the gyro bias is estimated."""

    BASIC = "basic"
    AUTO = "auto"


class GamepadMotion:
    """
    Motion state for one controller.

    Call process_motion() once per sensor sample, then read the getters.
    BASIC mode accumulates samples while continuous calibration is running;
    AUTO mode lets AutoCalibration replace the bias whenever the controller
    is judged to be still.

    Not thread-safe: one instance per device, calls serialized by the owner.
    """

    def __init__(
        self,
        calibration: Optional[GyroCalibration] = None,
        calibration_mode: CalibrationMode = CalibrationMode.BASIC,
        symmetric_trigger: bool = False,
        legacy_gravity_min_z: bool = False,
    ) -> None:
        self._gyro = Vec3()
        self._raw_accel = Vec3()
        self._motion = Motion(legacy_gravity_min_z=legacy_gravity_min_z)
        self._calibration = calibration or GyroCalibration()
        self._auto_calibration = AutoCalibration(symmetric_trigger=symmetric_trigger)
        self._calibration_mode = calibration_mode
        self._is_calibrating = False

    def reset(self) -> None:
        """Zero calibration, gyro, raw accel and orientation."""
        self._calibration.reset()
        self._gyro = Vec3()
        self._raw_accel = Vec3()
        self._motion.reset()

    def reset_motion(self) -> None:
        """Reset orientation tracking only; calibration is kept."""
        self._motion.reset()

    def process_motion(
        self,
        gyro_x: float,
        gyro_y: float,
        gyro_z: float,
        accel_x: float,
        accel_y: float,
        accel_z: float,
        delta_time: float,
    ) -> bool:
        """
        Process one raw sample.

        Returns True if AUTO mode recalibrated the gyro on this sample.
        """
        recalibrated = False
        accel_magnitude = math.sqrt(
            accel_x * accel_x + accel_y * accel_y + accel_z * accel_z
        )

        if self._calibration_mode is CalibrationMode.BASIC:
            if self._is_calibrating:
                self._calibration.push_sample(gyro_x, gyro_y, gyro_z, accel_magnitude)
        elif self._calibration_mode is CalibrationMode.AUTO:
            result = self._auto_calibration.add_sample(
                Vec3(gyro_x, gyro_y, gyro_z),
                Vec3(accel_x, accel_y, accel_z),
                delta_time,
            )
            if result is not None:
                self._calibration.apply_recalibration(result)
                recalibrated = True

        offset_x, offset_y, offset_z, gravity_length = self._calibration.get_offset()
        gyro = Vec3(gyro_x - offset_x, gyro_y - offset_y, gyro_z - offset_z)
        accel = Vec3(accel_x, accel_y, accel_z)

        self._motion.update(gyro, accel, gravity_length, delta_time)

        self._gyro = gyro
        self._raw_accel = accel
        return recalibrated

    def get_calibrated_gyro(self) -> Tuple[float, float, float]:
        """Last gyro sample with the bias removed (deg/s)."""
        return self._gyro.as_tuple()

    def get_raw_acceleration(self) -> Tuple[float, float, float]:
        return self._raw_accel.as_tuple()

    def get_gravity(self) -> Tuple[float, float, float]:
        """Gravity in body frame, scaled by the calibrated accel magnitude."""
        return self._motion.grav.as_tuple()

    def get_processed_acceleration(self) -> Tuple[float, float, float]:
        """Acceleration with gravity removed (g, body frame)."""
        return self._motion.accel.as_tuple()

    def get_orientation(self) -> Tuple[float, float, float, float]:
        """Orientation quaternion (w, x, y, z), body to world."""
        return self._motion.quaternion.as_tuple()

    def start_continuous_calibration(self) -> None:
        self._is_calibrating = True

    def pause_continuous_calibration(self) -> None:
        self._is_calibrating = False

    def reset_continuous_calibration(self) -> None:
        self._calibration.reset()

    def get_calibration_offset(self) -> Tuple[float, float, float]:
        x, y, z, _ = self._calibration.get_offset()
        return (x, y, z)

    def set_calibration_offset(
        self, x_offset: float, y_offset: float, z_offset: float, weight: int
    ) -> None:
        """
        Set the gyro offset as if weight samples had produced it.

        Later BASIC samples blend with it in proportion to weight.
        """
        self._calibration.set_offset(x_offset, y_offset, z_offset, weight)

    @property
    def calibration(self) -> GyroCalibration:
        return self._calibration

    @property
    def calibration_mode(self) -> CalibrationMode:
        return self._calibration_mode

    @calibration_mode.setter
    def calibration_mode(self, mode: CalibrationMode) -> None:
        self._calibration_mode = mode

    @property
    def is_calibrating(self) -> bool:
        return self._is_calibrating

    @property
    def motion(self) -> Motion:
        return self._motion

    @property
    def auto_calibration(self) -> AutoCalibration:
        return self._auto_calibration
