"""
Automatic gyro bias estimation from two overlapping sample windows.

Each window collects min/max gyro and accel for about a second. When a full
window shows variation below the adaptive noise floor on every axis, the
device is taken to be still and the window's median gyro becomes the new
bias. The second window runs half a window behind the first, so a decision
is made about every half second.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from gamepad_motion.vector import Vec3

logger = logging.getLogger(__name__)

NUM_WINDOWS = 2
MIN_WINDOW_SAMPLES = 5
MIN_WINDOW_TIME = 1.0  # s

INITIAL_NOISE_FLOOR = 10.0
NOISE_FLOOR_CLIMB_RATE = 0.5  # per second

INITIAL_RECALIBRATE_THRESHOLD = 1.0
MIN_RECALIBRATE_THRESHOLD = 1.0
MAX_RECALIBRATE_THRESHOLD = 1.5
RECALIBRATE_CLIMB_RATE = 0.5  # per second
RECALIBRATE_DROP = 0.25


@dataclass
class Recalibration:
    """Result of an automatic recalibration."""

    gyro_offset: Vec3
    accel_magnitude: float


def _initial_floor() -> Vec3:
    return Vec3(INITIAL_NOISE_FLOOR, INITIAL_NOISE_FLOOR, INITIAL_NOISE_FLOOR)


@dataclass
class NoiseFloor:
    """Smallest recently seen window delta per axis, slowly climbing."""

    gyro: Vec3 = field(default_factory=_initial_floor)
    accel: Vec3 = field(default_factory=_initial_floor)

    def climb(self, amount: float) -> None:
        for v in (self.gyro, self.accel):
            v.x += amount
            v.y += amount
            v.z += amount

    def lower_to(self, gyro_delta: Vec3, accel_delta: Vec3) -> None:
        for floor, delta in ((self.gyro, gyro_delta), (self.accel, accel_delta)):
            if delta.x < floor.x:
                floor.x = delta.x
            if delta.y < floor.y:
                floor.y = delta.y
            if delta.z < floor.z:
                floor.z = delta.z


class SensorWindow:
    """Min/max of gyro and accel since the last reset."""

    def __init__(self, time_sampled: float = 0.0) -> None:
        self.min_gyro = Vec3()
        self.max_gyro = Vec3()
        self.min_accel = Vec3()
        self.max_accel = Vec3()
        self.num_samples = 0
        self.time_sampled = time_sampled

    def reset(self, remainder: float) -> None:
        self.num_samples = 0
        self.time_sampled = remainder

    def add_sample(self, gyro: Vec3, accel: Vec3, delta_time: float) -> None:
        self.time_sampled += delta_time
        if self.num_samples == 0:
            self.min_gyro = Vec3(gyro.x, gyro.y, gyro.z)
            self.max_gyro = Vec3(gyro.x, gyro.y, gyro.z)
            self.min_accel = Vec3(accel.x, accel.y, accel.z)
            self.max_accel = Vec3(accel.x, accel.y, accel.z)
            self.num_samples = 1
            return
        _widen(self.min_gyro, self.max_gyro, gyro)
        _widen(self.min_accel, self.max_accel, accel)
        self.num_samples += 1

    def is_complete(self) -> bool:
        return (
            self.num_samples >= MIN_WINDOW_SAMPLES
            and self.time_sampled >= MIN_WINDOW_TIME
        )

    def gyro_delta(self) -> Vec3:
        return self.max_gyro - self.min_gyro

    def accel_delta(self) -> Vec3:
        return self.max_accel - self.min_accel

    def median_gyro(self) -> Vec3:
        return (self.max_gyro + self.min_gyro) * 0.5

    def mean_accel_magnitude(self) -> float:
        return (self.max_accel + self.min_accel).length() * 0.5


def _widen(lo: Vec3, hi: Vec3, sample: Vec3) -> None:
    if sample.x > hi.x:
        hi.x = sample.x
    elif sample.x < lo.x:
        lo.x = sample.x
    if sample.y > hi.y:
        hi.y = sample.y
    elif sample.y < lo.y:
        lo.y = sample.y
    if sample.z > hi.z:
        hi.z = sample.z
    elif sample.z < lo.z:
        lo.z = sample.z


class AutoCalibration:
    """
    Adaptive gyro bias estimator.

    add_sample() returns a Recalibration when a window decides the device
    was still, otherwise None. The caller owns the bias estimate and
    decides how to apply it.

    symmetric_trigger: compare each axis delta against its own noise floor.
    By default the x deltas are compared against all three floors of their
    sensor, which is how the estimator has always behaved.
    """

    def __init__(self, symmetric_trigger: bool = False) -> None:
        self.symmetric_trigger = symmetric_trigger
        self.windows: List[SensorWindow] = [
            SensorWindow(time_sampled=-MIN_WINDOW_TIME * idx / NUM_WINDOWS)
            for idx in range(NUM_WINDOWS)
        ]
        self.noise_floor = NoiseFloor()
        self.recalibrate_threshold = INITIAL_RECALIBRATE_THRESHOLD

    def add_sample(
        self, gyro: Vec3, accel: Vec3, delta_time: float
    ) -> Optional[Recalibration]:
        """Feed one raw sample (gyro deg/s, accel g)."""
        result: Optional[Recalibration] = None
        self.noise_floor.climb(NOISE_FLOOR_CLIMB_RATE * delta_time)
        self.recalibrate_threshold = min(
            self.recalibrate_threshold + RECALIBRATE_CLIMB_RATE * delta_time,
            MAX_RECALIBRATE_THRESHOLD,
        )

        for idx, window in enumerate(self.windows):
            other = self.windows[(idx + NUM_WINDOWS - 1) % NUM_WINDOWS]
            window.add_sample(gyro, accel, delta_time)
            if not window.is_complete():
                continue

            gyro_delta = window.gyro_delta()
            accel_delta = window.accel_delta()
            self.noise_floor.lower_to(gyro_delta, accel_delta)

            if self._is_still(gyro_delta, accel_delta):
                logger.debug(
                    "Recalibrating with gyro deltas (%.2f, %.2f, %.2f) "
                    "and accel deltas (%.2f, %.2f, %.2f)",
                    gyro_delta.x,
                    gyro_delta.y,
                    gyro_delta.z,
                    accel_delta.x,
                    accel_delta.y,
                    accel_delta.z,
                )
                self.recalibrate_threshold = max(
                    self.recalibrate_threshold - RECALIBRATE_DROP,
                    MIN_RECALIBRATE_THRESHOLD,
                )
                result = Recalibration(
                    gyro_offset=window.median_gyro(),
                    accel_magnitude=window.mean_accel_magnitude(),
                )

            if other.time_sampled + delta_time >= MIN_WINDOW_TIME:
                window.reset(0.0)
            else:
                # stay half a window away from the other one
                window.reset(other.time_sampled - MIN_WINDOW_TIME / NUM_WINDOWS)

        return result

    def _is_still(self, gyro_delta: Vec3, accel_delta: Vec3) -> bool:
        t = self.recalibrate_threshold
        gyro_floor = self.noise_floor.gyro
        accel_floor = self.noise_floor.accel
        if self.symmetric_trigger:
            return (
                gyro_delta.x < gyro_floor.x * t
                and gyro_delta.y < gyro_floor.y * t
                and gyro_delta.z < gyro_floor.z * t
                and accel_delta.x < accel_floor.x * t
                and accel_delta.y < accel_floor.y * t
                and accel_delta.z < accel_floor.z * t
            )
        return (
            gyro_delta.x < gyro_floor.x * t
            and gyro_delta.x < gyro_floor.y * t
            and gyro_delta.x < gyro_floor.z * t
            and accel_delta.x < accel_floor.x * t
            and accel_delta.x < accel_floor.y * t
            and accel_delta.x < accel_floor.z * t
        )
