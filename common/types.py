"""
Shared data structures for firmware ↔ board ↔ simulator ↔ presentation boundaries.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Tuple

from common.math import Quaternion, Vector3D


@dataclass(frozen=True)
class BodyState:
    """Read view of the rigid body the firmware flies (world frame)."""

    position: Vector3D
    velocity: Vector3D
    orientation: Quaternion
    angular_velocity: Vector3D


@dataclass
class ControlReferences:
    """
    Setpoints tracked by the control bank, mutated once per tick by the input mapper.
    - target_altitude: metres, never negative
    - roll_reference, pitch_reference: radians, within +-max tilt
    - yaw_reference: radians, accumulates without wrapping
    """

    target_altitude: float = 0.0
    roll_reference: float = 0.0
    pitch_reference: float = 0.0
    yaw_reference: float = 0.0


@dataclass(frozen=True)
class PilotCommand:
    """
    Pilot input for one tick:
    - roll_target, pitch_target: level angle targets (rad)
    - yaw_rate: desired yaw rate (rad/s)
    - z_setpoint_delta: change to the altitude setpoint (m) for this tick
    - toggle_arm, start_race, reset: key-press edges, true for exactly one tick
    """

    roll_target: float = 0.0
    pitch_target: float = 0.0
    yaw_rate: float = 0.0
    z_setpoint_delta: float = 0.0
    toggle_arm: bool = False
    start_race: bool = False
    reset: bool = False


@dataclass(frozen=True)
class ControlEffort:
    """Per-axis loop outputs before mixing; ``collective`` is omega."""

    collective: float = 0.0
    roll: float = 0.0
    pitch: float = 0.0
    yaw: float = 0.0


@dataclass(frozen=True)
class MotorCommand:
    """Motor speed commands w0..w3 in diagonal arm order."""

    speeds: Tuple[float, float, float, float] = (0.0, 0.0, 0.0, 0.0)

    def __post_init__(self):
        if len(self.speeds) != 4:
            raise ValueError(f"expected 4 motor speeds, got {len(self.speeds)}")

    @classmethod
    def idle(cls) -> "MotorCommand":
        return cls()


@dataclass(frozen=True)
class Checkpoint:
    """Race gate: waypoint plus clearance radius. ``heading_deg`` only orients the gate visually."""

    position: Vector3D
    radius: float
    heading_deg: float = 0.0


@dataclass(frozen=True)
class RaceStatus:
    is_active: bool = False
    is_finished: bool = False
    current_checkpoint_index: int = 0
    total_checkpoints: int = 0
    elapsed: float = 0.0


@dataclass(frozen=True)
class TelemetrySnapshot:
    """Sampled view of the simulation handed to the presentation layer."""

    motor_speeds: Tuple[float, float, float, float]
    altitude: float
    target_altitude: float
    ground_speed: float
    pitch: float
    roll: float
    yaw: float
    heading: float
    armed: bool
    race: RaceStatus = field(default_factory=RaceStatus)
    time: float = 0.0
    frame: int = 0

    def to_dict(self) -> Dict[str, Any]:
        payload = asdict(self)
        payload["motor_speeds"] = [float(w) for w in self.motor_speeds]
        return payload
