"""
Quad-X motor mixing and the propeller force model.

Motor layout (body frame, Y up, nose towards -Z):

        1 (-X,-Z)     2 (+X,-Z)
                 \\   /
                  \\ /
                  / \\
                 /   \\
        0 (-X,+Z)     3 (+X,+Z)

Spin sense alternates so equal speeds cancel net reaction torque:
motors 0 and 2 turn one way, 1 and 3 the other.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Tuple

from common.interface import Actuator
from common.math import Vector3D, clamp
from common.types import ControlEffort, MotorCommand

MOTOR_LAYOUT: Tuple[Tuple[float, float], ...] = ((-1.0, 1.0), (-1.0, -1.0), (1.0, -1.0), (1.0, 1.0))
MOTOR_SPINS: Tuple[int, ...] = (-1, 1, -1, 1)


@dataclass
class AirframeConfig:
    mass: float = 5.0
    size: float = 1.0  # arm offset along X and Z (m)
    thrust_coeff: float = 0.1
    drag_coeff: float = 0.5
    linear_damping: float = 0.6
    angular_damping: float = 0.6
    # box approximation of the fuselage, arms and motor pods
    inertia: Tuple[float, float, float] = (2.3, 4.4, 2.3)
    collision_radius: float = 0.3

    def motor_positions(self) -> Tuple[Vector3D, ...]:
        return tuple(Vector3D(x * self.size, 0.0, z * self.size) for x, z in MOTOR_LAYOUT)


class QuadXMixer(Actuator):
    """Maps (collective, roll, pitch, yaw) efforts onto the four diagonal motors."""

    def __init__(self, airframe: AirframeConfig | None = None, motor_limit: float = 250.0):
        if motor_limit <= 0.0:
            raise ValueError("motor_limit must be positive")
        self.airframe = airframe or AirframeConfig()
        self.motor_limit = float(motor_limit)
        self._positions = self.airframe.motor_positions()

    def mix(self, effort: ControlEffort) -> MotorCommand:
        omega, roll, pitch, yaw = effort.collective, effort.roll, effort.pitch, effort.yaw
        raw = (
            omega - yaw - roll - pitch,
            omega + yaw - roll + pitch,
            omega - yaw + roll + pitch,
            omega + yaw + roll - pitch,
        )
        speeds = tuple(clamp(w, 0.0, self.motor_limit) if math.isfinite(w) else 0.0 for w in raw)
        return MotorCommand(speeds=speeds)

    def apply_to(self, body, command: MotorCommand) -> None:
        """Add each motor's thrust and reaction torque to the body's accumulators."""
        kt = self.airframe.thrust_coeff
        kq = self.airframe.drag_coeff
        for speed, position, spin in zip(command.speeds, self._positions, MOTOR_SPINS):
            w = max(0.0, speed)
            w_sq = w * w
            body.apply_local_force(Vector3D(0.0, kt * w_sq, 0.0), position)
            body.add_torque(body.vector_to_world_frame(Vector3D(0.0, spin * kq * w_sq, 0.0)))

    def hover_speed(self, gravity: float) -> float:
        """Per-motor speed whose combined thrust balances the airframe's weight."""
        return math.sqrt(self.airframe.mass * gravity / (4.0 * self.airframe.thrust_coeff))
