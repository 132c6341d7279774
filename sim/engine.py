"""
Minimal rigid-body world: Newton-Euler integration with damping, gravity,
sphere-vs-ground and sphere-vs-box contacts, and post-step hooks.
"""

from __future__ import annotations

from typing import Callable, List, Optional, Sequence

import numpy as np

from common.math import GRAVITY, Quaternion, Vector3D


class RigidBody:
    """Single rigid body with diagonal body-frame inertia. Forces and torques accumulate in world frame."""

    def __init__(
        self,
        mass: float,
        inertia: Sequence[float],
        position: Optional[Vector3D] = None,
        orientation: Optional[Quaternion] = None,
        linear_damping: float = 0.0,
        angular_damping: float = 0.0,
        collision_radius: float = 0.0,
    ):
        if mass <= 0.0:
            raise ValueError("mass must be positive")
        if len(inertia) != 3 or min(inertia) <= 0.0:
            raise ValueError("inertia must be three positive values")
        self.mass = float(mass)
        self.inertia = np.array(inertia, dtype=float)
        self._inv_inertia = 1.0 / self.inertia
        self.linear_damping = float(linear_damping)
        self.angular_damping = float(angular_damping)
        self.collision_radius = float(collision_radius)
        self.position = position.copy() if position is not None else Vector3D()
        self.orientation = orientation.copy() if orientation is not None else Quaternion()
        self.velocity = Vector3D()
        self.angular_velocity = Vector3D()
        self.force = Vector3D()
        self.torque = Vector3D()

    def vector_to_world_frame(self, local: Vector3D) -> Vector3D:
        return self.orientation.rotate(local)

    def apply_force(self, force: Vector3D, relative_point: Optional[Vector3D] = None) -> None:
        """World-frame force at a world-frame offset from the centre of mass."""
        self.force = self.force + force
        if relative_point is not None:
            self.torque = self.torque + relative_point.cross(force)

    def apply_local_force(self, local_force: Vector3D, local_point: Vector3D) -> None:
        self.apply_force(
            self.vector_to_world_frame(local_force),
            self.vector_to_world_frame(local_point),
        )

    def add_torque(self, torque: Vector3D) -> None:
        self.torque = self.torque + torque

    def inverse_inertia_world(self) -> np.ndarray:
        rot = self.orientation.as_rotation_matrix()
        return rot @ np.diag(self._inv_inertia) @ rot.T

    def apply_damping(self, dt: float) -> None:
        self.velocity = self.velocity * (1.0 - self.linear_damping) ** dt
        self.angular_velocity = self.angular_velocity * (1.0 - self.angular_damping) ** dt

    def integrate(self, dt: float) -> None:
        # semi-implicit Euler: velocities first, pose from the new velocities
        self.velocity = self.velocity + self.force * (dt / self.mass)
        ang_acc = self.inverse_inertia_world() @ self.torque.v
        self.angular_velocity = Vector3D.from_array(self.angular_velocity.v + ang_acc * dt)
        self.position = self.position + self.velocity * dt
        self.orientation = self.orientation.integrate(self.angular_velocity, dt)

    def clear_accumulators(self) -> None:
        self.force = Vector3D()
        self.torque = Vector3D()

    def reset_pose(self, position: Vector3D, orientation: Optional[Quaternion] = None) -> None:
        self.position = position.copy()
        self.orientation = orientation.copy() if orientation is not None else Quaternion()
        self.velocity = Vector3D()
        self.angular_velocity = Vector3D()
        self.clear_accumulators()


class GroundCollision:
    """Horizontal ground plane at ``ground_level`` with friction on sliding contact."""

    def __init__(self, ground_level: float = 0.0, restitution: float = 0.0, friction: float = 0.3):
        self.ground_level = float(ground_level)
        self.restitution = float(restitution)
        self.friction = float(friction)

    def resolve(self, body: RigidBody) -> bool:
        penetration = self.ground_level + body.collision_radius - body.position.y
        if penetration <= 0.0:
            return False
        pos = body.position.v.copy()
        pos[1] += penetration
        body.position = Vector3D.from_array(pos)
        vel = body.velocity.v.copy()
        if vel[1] < 0.0:
            vel[1] = -vel[1] * self.restitution
        vel[0] *= 1.0 - self.friction
        vel[2] *= 1.0 - self.friction
        body.velocity = Vector3D.from_array(vel)
        body.angular_velocity = body.angular_velocity * (1.0 - self.friction)
        return True


class StaticBox:
    """Axis-aligned static obstacle; contacts push the body out along the nearest face."""

    def __init__(self, center: Vector3D, half_extents: Sequence[float]):
        self.center = center.copy()
        self.half_extents = np.array(half_extents, dtype=float)

    def resolve(self, body: RigidBody) -> bool:
        rel = body.position.v - self.center.v
        closest = np.clip(rel, -self.half_extents, self.half_extents)
        delta = rel - closest
        dist = float(np.linalg.norm(delta))
        radius = body.collision_radius
        if dist >= radius:
            return False
        if dist > 1e-9:
            normal = delta / dist
            depth = radius - dist
        else:
            # centre inside the box: leave through the shallowest face
            gaps = self.half_extents - np.abs(rel)
            axis = int(np.argmin(gaps))
            normal = np.zeros(3)
            normal[axis] = 1.0 if rel[axis] >= 0.0 else -1.0
            depth = gaps[axis] + radius
        body.position = Vector3D.from_array(body.position.v + normal * depth)
        vn = float(np.dot(body.velocity.v, normal))
        if vn < 0.0:
            body.velocity = Vector3D.from_array(body.velocity.v - normal * vn)
        return True


class World:
    """Steps every body once per call and then notifies post-step listeners."""

    def __init__(self, dt: float = 1.0 / 60.0, gravity: Optional[Vector3D] = None):
        if dt <= 0.0:
            raise ValueError("dt must be positive")
        self.dt = float(dt)
        self.gravity = gravity.copy() if gravity is not None else Vector3D(0.0, -GRAVITY, 0.0)
        self.bodies: List[RigidBody] = []
        self.colliders: list = []
        self.time = 0.0
        self.step_count = 0
        self._post_step: List[Callable[[], None]] = []

    def add_body(self, body: RigidBody) -> RigidBody:
        self.bodies.append(body)
        return body

    def add_collider(self, collider) -> None:
        self.colliders.append(collider)

    def add_post_step(self, callback: Callable[[], None]) -> None:
        if callback not in self._post_step:
            self._post_step.append(callback)

    def remove_post_step(self, callback: Callable[[], None]) -> None:
        if callback in self._post_step:
            self._post_step.remove(callback)

    @property
    def post_step_callbacks(self) -> tuple:
        return tuple(self._post_step)

    def step(self, dt: Optional[float] = None) -> None:
        dt = self.dt if dt is None else float(dt)
        for body in self.bodies:
            body.apply_force(self.gravity * body.mass)
            body.apply_damping(dt)
            body.integrate(dt)
            for collider in self.colliders:
                collider.resolve(body)
            body.clear_accumulators()
        self.time += dt
        self.step_count += 1
        # forces applied by listeners are integrated on the next step
        for callback in list(self._post_step):
            callback()
