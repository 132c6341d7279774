"""
Attitude decomposition: signed pitch/roll/yaw from the body's basis vectors.

Each angle is measured between a world reference direction, projected onto the
plane normal to one body axis, and another body axis, with the sign fixed by the
right-hand rule about that body axis. This sidesteps Euler-order singularities
inside the flight envelope.

Known boundary: when the projected reference collapses (about 90 degrees of tilt
on the relevant axis) the angle is undefined and 0 is reported. A stabilized quad
does not operate there.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from common.math import TWO_PI, Quaternion, Vector3D

BODY_X = Vector3D(1.0, 0.0, 0.0)
BODY_Y = Vector3D(0.0, 1.0, 0.0)
BODY_Z = Vector3D(0.0, 0.0, 1.0)
WORLD_UP = Vector3D(0.0, 1.0, 0.0)
WORLD_Z = Vector3D(0.0, 0.0, 1.0)

DEGENERATE_LENGTH_SQ = 1e-4


@dataclass(frozen=True)
class Attitude:
    pitch: float = 0.0
    roll: float = 0.0
    yaw: float = 0.0


def signed_angle(u: Vector3D, axis: Vector3D, w: Vector3D) -> float:
    """Angle from ``u`` to ``w``, positive for a right-handed turn about ``axis``."""
    angle = u.angle_to(w)
    if u.cross(w).dot(axis) > 0.0:
        return angle
    return -angle


def _projected_angle(reference: Vector3D, plane_axis: Vector3D, target: Vector3D) -> float:
    v = reference.project_on_plane(plane_axis)
    if v.norm_sq() < DEGENERATE_LENGTH_SQ:
        return 0.0
    return signed_angle(v, plane_axis, target)


def body_pitch(orientation: Quaternion) -> float:
    x_l = orientation.rotate(BODY_X)
    y_l = orientation.rotate(BODY_Y)
    return _projected_angle(WORLD_UP, x_l, y_l)


def body_roll(orientation: Quaternion) -> float:
    y_l = orientation.rotate(BODY_Y)
    z_l = orientation.rotate(BODY_Z)
    return _projected_angle(WORLD_UP, z_l, y_l)


def body_yaw(orientation: Quaternion) -> float:
    """Heading about world up, normalized into [0, 2pi)."""
    y_l = orientation.rotate(BODY_Y)
    z_l = orientation.rotate(BODY_Z)
    yaw = _projected_angle(WORLD_Z, y_l, z_l)
    if yaw < 0.0:
        yaw += TWO_PI
    if yaw >= TWO_PI:
        yaw = math.fmod(yaw, TWO_PI)
    return yaw


def decompose(orientation: Quaternion) -> Attitude:
    return Attitude(
        pitch=body_pitch(orientation),
        roll=body_roll(orientation),
        yaw=body_yaw(orientation),
    )
