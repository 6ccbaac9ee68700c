"""
Gravity-corrected orientation tracking: gyro (deg/s) + accelerometer (g).

Orientation is integrated from the gyro every frame. When the recent
world-frame accelerometer samples agree closely enough to be gravity alone,
the orientation is eased toward agreeing with them. Y is up.
"""

import math

from gamepad_motion.history import GravitySampleHistory
from gamepad_motion.vector import Quaternion, Vec3, angle_axis

STEADY_GRAVITY_THRESHOLD = 0.05  # g, per axis
EASE_IN_TIME = 0.25  # s
CORRECTION_RATE = 4.0  # halvings of the error per second

WORLD_DOWN = Vec3(0.0, -1.0, 0.0)


class Motion:
    """
    Orientation state for one device.

    quaternion maps body frame to world frame. accel is the last
    acceleration with gravity removed and grav the last gravity estimate,
    both in body frame.
    """

    def __init__(self, legacy_gravity_min_z: bool = False) -> None:
        self.quaternion = Quaternion.identity()
        self.accel = Vec3()
        self.grav = Vec3()
        self.time_correcting = 0.0
        self._history = GravitySampleHistory(legacy_min_z=legacy_gravity_min_z)

    @property
    def history(self) -> GravitySampleHistory:
        return self._history

    def reset(self) -> None:
        self.quaternion = Quaternion.identity()
        self.accel = Vec3()
        self.grav = Vec3()
        self.time_correcting = 0.0
        self._history.clear()

    def update(
        self,
        gyro: Vec3,
        accel: Vec3,
        gravity_length: float,
        delta_time: float,
    ) -> None:
        """
        Advance one frame.

        gyro: calibrated angular velocity in deg/s (body frame)
        accel: accelerometer in g (body frame)
        gravity_length: magnitude used for the reported gravity vector
        delta_time: seconds since the previous update
        """
        angle = gyro.length() * math.pi / 180.0 * delta_time
        # local rotation: the gyro is measured in the current body frame
        self.quaternion = self.quaternion * angle_axis(angle, gyro)

        if accel.length() > 0.0:
            absolute_accel = accel.rotated(self.quaternion)
            self._history.push(absolute_accel)
            gravity_min, gravity_max = self._history.bounds()
            box = gravity_max - gravity_min
            if (
                box.x <= STEADY_GRAVITY_THRESHOLD
                and box.y <= STEADY_GRAVITY_THRESHOLD
                and box.z <= STEADY_GRAVITY_THRESHOLD
            ):
                self._correct(gravity_min + box * 0.5, delta_time)
            else:
                self.time_correcting = 0.0
            self.grav = Vec3(0.0, -gravity_length, 0.0).rotated(
                self.quaternion.inverse()
            )
            self.accel = accel + self.grav
        else:
            self.time_correcting = 0.0
            self.accel = Vec3()

        self.quaternion.normalize()

    def _correct(self, measured: Vec3, delta_time: float) -> None:
        """Ease the orientation toward the measured world-frame gravity."""
        gravity_direction = -measured.normalized()
        cos_error = max(-1.0, min(1.0, WORLD_DOWN.dot(gravity_direction)))
        error_angle = math.degrees(math.acos(cos_error))
        flattened = gravity_direction.cross(WORLD_DOWN).normalized()

        if error_angle > 0.0:
            self.time_correcting += delta_time
            correction = error_angle * (1.0 - 2.0 ** (-delta_time * CORRECTION_RATE))
            if self.time_correcting < EASE_IN_TIME:
                correction *= self.time_correcting / EASE_IN_TIME
            # global rotation, applied in world frame
            self.quaternion = (
                angle_axis(math.radians(correction), flattened) * self.quaternion
            )
        else:
            self.time_correcting = 0.0
