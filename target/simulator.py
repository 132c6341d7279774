"""
Simulated board: glues the firmware-facing board interface to the physics engine
and the telemetry server.
"""

from __future__ import annotations

import os
from typing import Callable, FrozenSet, Iterable, Optional

from common.logger import get_logger
from common.math import Quaternion, Vector3D
from common.serve import SharedState, TelemetryServer
from common.types import BodyState, TelemetrySnapshot
from quadrace.board import Board
from quadrace.level import LevelLayout, default_level
from quadrace.mixer import AirframeConfig
from quadrace.telemetry import format_status
from sim import GroundCollision, RigidBody, StaticBox, World

logger = get_logger("simulator")


class SimWorld:
    """Encapsulates the physics world, the drone body and the level geometry."""

    def __init__(self, dt: float, airframe: AirframeConfig | None = None, level: LevelLayout | None = None):
        self.dt = dt
        self.airframe = airframe or AirframeConfig()
        self.level = level or default_level()

        self.world = World(dt=dt)
        self.world.add_collider(GroundCollision(ground_level=0.0))
        for obstacle in self.level.obstacles:
            self.world.add_collider(StaticBox(obstacle.center, obstacle.half_extents))

        self.drone = RigidBody(
            mass=self.airframe.mass,
            inertia=self.airframe.inertia,
            position=self.level.spawn_position,
            linear_damping=self.airframe.linear_damping,
            angular_damping=self.airframe.angular_damping,
            collision_radius=self.airframe.collision_radius,
        )
        self.world.add_body(self.drone)

    def state(self) -> BodyState:
        return BodyState(
            position=self.drone.position.copy(),
            velocity=self.drone.velocity.copy(),
            orientation=self.drone.orientation.copy(),
            angular_velocity=self.drone.angular_velocity.copy(),
        )


class SimBoard(Board):
    """
    Board implementation backed by the simulator world.

    Keys come from the telemetry server when ``serve`` is enabled, otherwise from
    ``set_keys`` (headless runs, scripted flights and tests).
    """

    def __init__(
        self,
        dt: float = 1.0 / 60.0,
        airframe: AirframeConfig | None = None,
        level: LevelLayout | None = None,
        serve: bool = False,
        host: str | None = None,
        port: int | None = None,
    ):
        self.dt = dt
        self._world = SimWorld(dt, airframe, level)
        self._keys: FrozenSet[str] = frozenset()
        self._shared: Optional[SharedState] = None
        self._server: Optional[TelemetryServer] = None
        if serve:
            host = host or os.getenv("QUADRACE_RENDER_HOST", "127.0.0.1")
            port = port or int(os.getenv("QUADRACE_RENDER_PORT", "8001"))
            self._shared = SharedState()
            self._server = TelemetryServer(self._shared, host, port)
            self._server.start()
            logger.info(f"Telemetry at http://{host}:{port}/state, POST held keys to /input")

    @property
    def world(self) -> SimWorld:
        return self._world

    @property
    def body(self) -> RigidBody:
        return self._world.drone

    def read_state(self) -> BodyState:
        return self._world.state()

    def step(self, dt: float) -> None:
        self._world.world.step(dt)

    def time(self) -> float:
        return self._world.world.time

    def add_post_step(self, callback: Callable[[], None]) -> None:
        self._world.world.add_post_step(callback)

    def remove_post_step(self, callback: Callable[[], None]) -> None:
        self._world.world.remove_post_step(callback)

    def reset_body(self, position: Vector3D, orientation: Optional[Quaternion] = None) -> None:
        self._world.drone.reset_pose(position, orientation)

    def set_keys(self, keys: Iterable[str]) -> None:
        self._keys = frozenset(str(k).lower() for k in keys)

    def key_state(self) -> FrozenSet[str]:
        if self._shared is not None:
            return self._shared.get_input_keys() | self._keys
        return self._keys

    def publish(self, snapshot: TelemetrySnapshot) -> None:
        if self._shared is not None:
            self._shared.set_snapshot(snapshot.to_dict(), format_status(snapshot))

    def close(self) -> None:
        if self._server is not None:
            self._server.shutdown()
            self._server = None


__all__ = ["SimBoard", "SimWorld"]
