"""
Vector and quaternion value types used by the motion tracker.

Quaternions are Hamilton (w, x, y, z). A vector is rotated by a quaternion
with the sandwich product q * (0, v) * q^-1.
"""

import math
from dataclasses import dataclass
from typing import Tuple


@dataclass
class Vec3:
    """Three-component vector (body or world frame, by caller convention)."""

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    def __add__(self, other: "Vec3") -> "Vec3":
        return Vec3(self.x + other.x, self.y + other.y, self.z + other.z)

    def __sub__(self, other: "Vec3") -> "Vec3":
        return Vec3(self.x - other.x, self.y - other.y, self.z - other.z)

    def __mul__(self, scalar: float) -> "Vec3":
        return Vec3(self.x * scalar, self.y * scalar, self.z * scalar)

    def __truediv__(self, scalar: float) -> "Vec3":
        return Vec3(self.x / scalar, self.y / scalar, self.z / scalar)

    def __neg__(self) -> "Vec3":
        return Vec3(-self.x, -self.y, -self.z)

    def length(self) -> float:
        return math.sqrt(self.x * self.x + self.y * self.y + self.z * self.z)

    def normalize(self) -> None:
        """Scale to unit length in place. A zero vector is left unchanged."""
        length = self.length()
        if length == 0.0:
            return
        factor = 1.0 / length
        self.x *= factor
        self.y *= factor
        self.z *= factor

    def normalized(self) -> "Vec3":
        result = Vec3(self.x, self.y, self.z)
        result.normalize()
        return result

    def dot(self, other: "Vec3") -> float:
        return self.x * other.x + self.y * other.y + self.z * other.z

    def cross(self, other: "Vec3") -> "Vec3":
        return Vec3(
            self.y * other.z - self.z * other.y,
            self.z * other.x - self.x * other.z,
            self.x * other.y - self.y * other.x,
        )

    def rotated(self, rotation: "Quaternion") -> "Vec3":
        """Return this vector rotated by rotation (q * v * q^-1)."""
        return rotation.rotate(self)

    def as_tuple(self) -> Tuple[float, float, float]:
        return (self.x, self.y, self.z)


@dataclass
class Quaternion:
    """
    Rotation quaternion (w, x, y, z); identity by default.

    normalize() keeps w and rebuilds the vector part's length from
    sqrt(1 - w^2), so w is expected to stay within [-1, 1].
    """

    w: float = 1.0
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    @classmethod
    def identity(cls) -> "Quaternion":
        return cls(1.0, 0.0, 0.0, 0.0)

    def __mul__(self, rhs: "Quaternion") -> "Quaternion":
        return Quaternion(
            self.w * rhs.w - self.x * rhs.x - self.y * rhs.y - self.z * rhs.z,
            self.w * rhs.x + self.x * rhs.w + self.y * rhs.z - self.z * rhs.y,
            self.w * rhs.y - self.x * rhs.z + self.y * rhs.w + self.z * rhs.x,
            self.w * rhs.z + self.x * rhs.y - self.y * rhs.x + self.z * rhs.w,
        )

    def set(self, w: float, x: float, y: float, z: float) -> None:
        self.w = w
        self.x = x
        self.y = y
        self.z = z

    def length(self) -> float:
        return math.sqrt(
            self.w * self.w + self.x * self.x + self.y * self.y + self.z * self.z
        )

    def normalize(self) -> None:
        """Renormalize in place; collapse to identity when not recoverable."""
        length = math.sqrt(self.x * self.x + self.y * self.y + self.z * self.z)
        target_length = 1.0 - self.w * self.w
        if target_length <= 0.0 or length <= 0.0:
            self.set(1.0, 0.0, 0.0, 0.0)
            return
        factor = math.sqrt(target_length) / length
        self.x *= factor
        self.y *= factor
        self.z *= factor

    def normalized(self) -> "Quaternion":
        result = Quaternion(self.w, self.x, self.y, self.z)
        result.normalize()
        return result

    def invert(self) -> None:
        """Conjugate in place (the inverse of a unit quaternion)."""
        self.x = -self.x
        self.y = -self.y
        self.z = -self.z

    def inverse(self) -> "Quaternion":
        return Quaternion(self.w, -self.x, -self.y, -self.z)

    def rotate(self, v: Vec3) -> Vec3:
        temp = self * Quaternion(0.0, v.x, v.y, v.z) * self.inverse()
        return Vec3(temp.x, temp.y, temp.z)

    def as_tuple(self) -> Tuple[float, float, float, float]:
        return (self.w, self.x, self.y, self.z)


def angle_axis(angle: float, axis: Vec3) -> Quaternion:
    """
    Rotation of angle (radians) about axis.

    The axis does not need to be unit length; a zero axis or zero angle
    gives the identity.
    """
    return Quaternion(math.cos(angle * 0.5), axis.x, axis.y, axis.z).normalized()
