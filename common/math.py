"""
Vector and quaternion primitives shared by firmware, simulator and tests.
World frame is Y-up: gravity acts along -Y, the drone's arms lie in the X/Z plane.
"""

from __future__ import annotations

import math

import numpy as np

GRAVITY = 10.0
TWO_PI = 2.0 * math.pi


def wrap_angle(angle: float) -> float:
    """Wrap an angle into (-pi, pi] by adding or subtracting full turns."""
    angle = math.fmod(angle, TWO_PI)
    while angle > math.pi:
        angle -= TWO_PI
    while angle <= -math.pi:
        angle += TWO_PI
    return angle


def clamp(value: float, lo: float, hi: float) -> float:
    return float(np.clip(value, lo, hi))


class Vector3D:
    """Thin numpy wrapper for 3-vectors."""

    __slots__ = ("v",)

    def __init__(self, x=0.0, y=0.0, z=0.0):
        self.v = np.array([x, y, z], dtype=float)

    @classmethod
    def from_array(cls, arr) -> "Vector3D":
        x, y, z = (float(c) for c in arr)
        return cls(x, y, z)

    @property
    def x(self) -> float:
        return float(self.v[0])

    @property
    def y(self) -> float:
        return float(self.v[1])

    @property
    def z(self) -> float:
        return float(self.v[2])

    def __add__(self, other: "Vector3D") -> "Vector3D":
        return Vector3D.from_array(self.v + other.v)

    def __sub__(self, other: "Vector3D") -> "Vector3D":
        return Vector3D.from_array(self.v - other.v)

    def __mul__(self, scalar: float) -> "Vector3D":
        return Vector3D.from_array(self.v * scalar)

    __rmul__ = __mul__

    def __neg__(self) -> "Vector3D":
        return Vector3D.from_array(-self.v)

    def __iter__(self):
        return iter(self.v.tolist())

    def __repr__(self) -> str:
        return f"Vector3D({self.x:.4f}, {self.y:.4f}, {self.z:.4f})"

    def copy(self) -> "Vector3D":
        return Vector3D.from_array(self.v)

    def dot(self, other: "Vector3D") -> float:
        return float(np.dot(self.v, other.v))

    def cross(self, other: "Vector3D") -> "Vector3D":
        return Vector3D.from_array(np.cross(self.v, other.v))

    def norm_sq(self) -> float:
        return float(np.dot(self.v, self.v))

    def norm(self) -> float:
        return math.sqrt(self.norm_sq())

    def normalized(self) -> "Vector3D":
        n = self.norm()
        if n == 0.0:
            return Vector3D()
        return self * (1.0 / n)

    def angle_to(self, other: "Vector3D") -> float:
        """Unsigned angle in [0, pi]; zero-length inputs give 0."""
        if self.norm_sq() == 0.0 or other.norm_sq() == 0.0:
            return 0.0
        # atan2 keeps precision near 0 and pi where acos does not
        return math.atan2(self.cross(other).norm(), self.dot(other))

    def project_on_plane(self, normal: "Vector3D") -> "Vector3D":
        """Remove the component of this vector along ``normal``."""
        n_sq = normal.norm_sq()
        if n_sq == 0.0:
            return self.copy()
        return self - normal * (self.dot(normal) / n_sq)

    def distance_to(self, other: "Vector3D") -> float:
        return (self - other).norm()


class Quaternion:
    """Unit quaternion stored as (w, x, y, z)."""

    __slots__ = ("q",)

    def __init__(self, w=1.0, x=0.0, y=0.0, z=0.0):
        self.q = np.array([w, x, y, z], dtype=float)

    @classmethod
    def from_axis_angle(cls, axis, angle: float) -> "Quaternion":
        axis = np.asarray(axis, dtype=float)
        n = np.linalg.norm(axis)
        if n == 0.0:
            return cls()
        axis = axis / n
        half = 0.5 * angle
        s = math.sin(half)
        return cls(math.cos(half), *(axis * s))

    @classmethod
    def from_euler(cls, roll: float, pitch: float, yaw: float) -> "Quaternion":
        """Extrinsic x-y-z rotation: R = Rz(yaw) @ Ry(pitch) @ Rx(roll)."""
        qx = cls.from_axis_angle((1.0, 0.0, 0.0), roll)
        qy = cls.from_axis_angle((0.0, 1.0, 0.0), pitch)
        qz = cls.from_axis_angle((0.0, 0.0, 1.0), yaw)
        return qz * qy * qx

    def __mul__(self, other):
        if isinstance(other, Quaternion):
            w1, x1, y1, z1 = self.q
            w2, x2, y2, z2 = other.q
            return Quaternion(
                w1 * w2 - x1 * x2 - y1 * y2 - z1 * z2,
                w1 * x2 + x1 * w2 + y1 * z2 - z1 * y2,
                w1 * y2 - x1 * z2 + y1 * w2 + z1 * x2,
                w1 * z2 + x1 * y2 - y1 * x2 + z1 * w2,
            )
        return Quaternion(*(self.q * float(other)))

    def __repr__(self) -> str:
        w, x, y, z = self.q
        return f"Quaternion({w:.4f}, {x:.4f}, {y:.4f}, {z:.4f})"

    def copy(self) -> "Quaternion":
        return Quaternion(*self.q)

    def norm(self) -> float:
        return float(np.linalg.norm(self.q))

    def normalize(self) -> None:
        n = self.norm()
        if n == 0.0:
            self.q = np.array([1.0, 0.0, 0.0, 0.0])
        else:
            self.q = self.q / n

    def conjugate(self) -> "Quaternion":
        w, x, y, z = self.q
        return Quaternion(w, -x, -y, -z)

    def as_rotation_matrix(self) -> np.ndarray:
        w, x, y, z = self.q
        return np.array(
            [
                [1 - 2 * (y * y + z * z), 2 * (x * y - w * z), 2 * (x * z + w * y)],
                [2 * (x * y + w * z), 1 - 2 * (x * x + z * z), 2 * (y * z - w * x)],
                [2 * (x * z - w * y), 2 * (y * z + w * x), 1 - 2 * (x * x + y * y)],
            ]
        )

    def rotate(self, vec: Vector3D) -> Vector3D:
        """Rotate a vector from the body frame into the world frame."""
        return Vector3D.from_array(self.as_rotation_matrix() @ vec.v)

    def integrate(self, omega: Vector3D, dt: float) -> "Quaternion":
        """Advance by world-frame angular velocity ``omega`` over ``dt``: q' = q + 0.5 * (0, omega) * q * dt."""
        spin = Quaternion(0.0, *omega.v) * self
        out = Quaternion(*(self.q + 0.5 * dt * spin.q))
        out.normalize()
        return out
