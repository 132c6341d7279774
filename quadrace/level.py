"""Time-trial arena: gate route, static obstacles and spawn poses."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Tuple

from common.math import Vector3D
from common.types import Checkpoint

GATE_RADIUS = 2.0

# (x, y, z, gate yaw in degrees), in route order
GATES = (
    (0.0, 2.5, -15.0, 0.0),
    (-8.0, 4.0, -25.0, 30.0),
    (0.0, 3.0, -35.0, 0.0),
    (12.0, 2.0, -15.0, -45.0),
    (8.0, 5.0, 0.0, -90.0),
    (0.0, 2.0, 10.0, 0.0),
    (0.0, 1.5, 0.0, 0.0),  # landing target
)

# (width, height, depth, x, z); boxes stand on the ground
OBSTACLES = (
    (4.0, 5.0, 2.0, 8.0, -10.0),
    (4.0, 8.0, 2.0, -8.0, -10.0),
    (2.0, 4.0, 10.0, 15.0, 0.0),
    (2.0, 4.0, 10.0, -15.0, 0.0),
    (3.0, 3.0, 6.0, -10.0, 15.0),
    (3.0, 3.0, 6.0, 10.0, 20.0),
)


@dataclass(frozen=True)
class Obstacle:
    center: Vector3D
    half_extents: Tuple[float, float, float]


@dataclass(frozen=True)
class LevelLayout:
    checkpoints: Tuple[Checkpoint, ...]
    obstacles: Tuple[Obstacle, ...] = ()
    spawn_position: Vector3D = field(default_factory=lambda: Vector3D(0.0, 0.6, 0.0))
    reset_position: Vector3D = field(default_factory=lambda: Vector3D(0.0, 1.0, 0.0))


def build_checkpoints(gates=GATES, radius: float = GATE_RADIUS) -> Tuple[Checkpoint, ...]:
    return tuple(Checkpoint(Vector3D(x, y, z), radius, heading_deg=ry) for x, y, z, ry in gates)


def build_obstacles(boxes=OBSTACLES) -> Tuple[Obstacle, ...]:
    return tuple(
        Obstacle(Vector3D(x, h / 2.0, z), (w / 2.0, h / 2.0, d / 2.0))
        for w, h, d, x, z in boxes
    )


def default_level() -> LevelLayout:
    return LevelLayout(checkpoints=build_checkpoints(), obstacles=build_obstacles())
