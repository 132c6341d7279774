"""
Interface definitions for pilot input sources, controllers and actuators.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from common.types import ControlReferences, PilotCommand, BodyState


class Actuator(ABC):
    """Abstract base for actuator implementations."""

    @abstractmethod
    def apply_to(self, body: Any, command: Any) -> None:
        """Turn a command into forces on ``body``."""


class Controller(ABC):
    """Abstract base for control algorithms."""

    @abstractmethod
    def update(self, state: BodyState, references: ControlReferences, dt: float):
        """Compute control effort from the measured state and current references."""


class CommandSource(ABC):
    """Abstract base for pilot input devices."""

    @abstractmethod
    def read(self, dt: float) -> PilotCommand:
        """Return the pilot command for this tick."""

    def close(self) -> None:
        return None
