"""
Control module: generic PID and the four-loop stability controller.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from common.interface import Controller
from common.math import clamp, wrap_angle
from common.types import BodyState, ControlEffort, ControlReferences
from quadrace.attitude import Attitude, decompose


@dataclass
class PIDGains:
    kp: float
    ki: float = 0.0
    kd: float = 0.0
    integral_limit: Optional[float] = None


@dataclass
class ControlGains:
    """Tuned defaults for the 5 kg airframe at 60 Hz."""

    hover: PIDGains = field(default_factory=lambda: PIDGains(kp=15.0, ki=4.0, kd=16.0, integral_limit=50.0))
    pitch: PIDGains = field(default_factory=lambda: PIDGains(kp=12.0, ki=0.0, kd=18.0, integral_limit=10.0))
    roll: PIDGains = field(default_factory=lambda: PIDGains(kp=12.0, ki=0.0, kd=16.0, integral_limit=10.0))
    yaw: PIDGains = field(default_factory=lambda: PIDGains(kp=5.0, ki=0.0, kd=15.0, integral_limit=10.0))
    collective_limit: float = 100.0
    tilt_authority: float = 0.25  # roll/pitch effort as a fraction of omega
    yaw_authority: float = 1.0


class PIDController:
    """
    Generic PID controller: tracks error and computes control outputs.
    Accepts pre-computed error; setpoints and angle wrapping are the caller's concern.
    """

    def __init__(self, kp, ki=0.0, kd=0.0, integral_limit=None):
        self.kp = kp
        self.ki = ki
        self.kd = kd
        self.integral_limit = integral_limit
        self._integral = 0.0
        self._prev_error = 0.0

    @classmethod
    def from_gains(cls, gains: PIDGains) -> "PIDController":
        return cls(gains.kp, gains.ki, gains.kd, gains.integral_limit)

    @property
    def integral(self) -> float:
        return self._integral

    @property
    def last_error(self) -> float:
        return self._prev_error

    def reset(self):
        """Clear integral and derivative state."""
        self._integral = 0.0
        self._prev_error = 0.0

    def reset_integral(self):
        self._integral = 0.0

    def update(self, error, dt, derivative=None):
        """
        Compute PID output given an error and timestep dt.

        ``derivative`` replaces the finite-differenced error rate when the caller
        already measures it (e.g. vertical velocity for the altitude loop).
        """
        if dt <= 0.0:
            return self.kp * error
        self._integral += error * dt
        if self.integral_limit is not None:
            self._integral = clamp(self._integral, -self.integral_limit, self.integral_limit)
        if derivative is None:
            derivative = (error - self._prev_error) / dt
        self._prev_error = error
        return self.kp * error + self.ki * self._integral + self.kd * derivative


def yaw_error(reference: float, measured: float) -> float:
    """Shortest-path yaw error in (-pi, pi]."""
    return wrap_angle(reference - measured)


class StabilityController(Controller):
    """
    Four independent loops: hover (altitude), pitch, roll and yaw.

    Hover differentiates on measurement (vertical velocity); the attitude loops
    differentiate the error. Attitude authority scales with the collective so a
    loop never asks for more than the motors have to give.
    """

    def __init__(self, gains: ControlGains | None = None):
        self.gains = gains or ControlGains()
        self.hover_pid = PIDController.from_gains(self.gains.hover)
        self.pitch_pid = PIDController.from_gains(self.gains.pitch)
        self.roll_pid = PIDController.from_gains(self.gains.roll)
        self.yaw_pid = PIDController.from_gains(self.gains.yaw)

    @property
    def motor_limit(self) -> float:
        """Largest single-motor command the mixed efforts can produce."""
        g = self.gains
        return g.collective_limit * (1.0 + g.yaw_authority + 2.0 * g.tilt_authority)

    def reset(self):
        for pid in (self.hover_pid, self.pitch_pid, self.roll_pid, self.yaw_pid):
            pid.reset()

    def reset_hover_integral(self):
        self.hover_pid.reset_integral()

    def reset_attitude(self):
        """Clear integral and last error on the pitch, roll and yaw loops."""
        for pid in (self.pitch_pid, self.roll_pid, self.yaw_pid):
            pid.reset()

    def update(self, state: BodyState, references: ControlReferences, dt, attitude: Attitude | None = None) -> ControlEffort:
        attitude = attitude or decompose(state.orientation)
        g = self.gains

        h_error = references.target_altitude - state.position.y
        omega = self.hover_pid.update(h_error, dt, derivative=-state.velocity.y)
        omega = clamp(omega, 0.0, g.collective_limit)

        tilt_limit = omega * g.tilt_authority
        p_error = references.pitch_reference - attitude.pitch
        pitch = clamp(self.pitch_pid.update(p_error, dt), -tilt_limit, tilt_limit)

        r_error = references.roll_reference - attitude.roll
        roll = clamp(self.roll_pid.update(r_error, dt), -tilt_limit, tilt_limit)

        yaw_limit = omega * g.yaw_authority
        y_error = yaw_error(references.yaw_reference, attitude.yaw)
        yaw = clamp(self.yaw_pid.update(y_error, dt), -yaw_limit, yaw_limit)

        return ControlEffort(collective=omega, roll=roll, pitch=pitch, yaw=yaw)
