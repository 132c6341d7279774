"""
Board interface defining the abstraction between firmware and the physics/presentation targets.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Callable, FrozenSet, Optional

from common.math import Quaternion, Vector3D
from common.types import BodyState, TelemetrySnapshot


class Board(ABC):
    """
    Abstract interface that every target must implement.
    The board owns the physics world and the presentation bridge; firmware talks only to this interface.
    """

    @property
    @abstractmethod
    def body(self):
        """Rigid body handle accepting ``apply_local_force`` and ``add_torque``."""

    @abstractmethod
    def read_state(self) -> BodyState:
        """Return position, velocity, orientation and angular velocity of the body."""

    @abstractmethod
    def step(self, dt: float) -> None:
        """Integrate one tick; post-step callbacks fire before this returns."""

    @abstractmethod
    def time(self) -> float:
        """Simulation clock in seconds."""

    @abstractmethod
    def add_post_step(self, callback: Callable[[], None]) -> None:
        ...

    @abstractmethod
    def remove_post_step(self, callback: Callable[[], None]) -> None:
        ...

    @abstractmethod
    def reset_body(self, position: Vector3D, orientation: Optional[Quaternion] = None) -> None:
        """Teleport the body and zero its velocities and accumulators."""

    def key_state(self) -> FrozenSet[str]:
        """Currently held keys from the presentation side."""
        return frozenset()

    def publish(self, snapshot: TelemetrySnapshot) -> None:
        """Hand a telemetry snapshot to the presentation side."""
        return None

    def close(self) -> None:
        """Optional cleanup hook."""
        return None
