"""
Keyboard pilot input: held keys become level commands, arm/start/reset become edges.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, FrozenSet, Iterable, Mapping, Union

from common.interface import CommandSource
from common.math import clamp
from common.types import ControlReferences, PilotCommand

KeyState = Union[Iterable[str], Mapping[str, bool]]


@dataclass(frozen=True)
class KeyBindings:
    altitude_up: str = "arrowup"
    altitude_down: str = "arrowdown"
    roll_left: str = "a"
    roll_right: str = "d"
    pitch_forward: str = "w"
    pitch_back: str = "s"
    yaw_left: str = "arrowleft"
    yaw_right: str = "arrowright"
    arm: str = "m"
    start: str = "g"
    reset: str = "r"


@dataclass
class InputConfig:
    max_tilt: float = 0.6  # rad
    climb_rate: float = 3.0  # m/s of altitude setpoint change while held
    yaw_rate: float = 3.5  # rad/s of yaw reference change while held
    arm_min_altitude: float = 1.0
    race_start_altitude: float = 1.5


def held_keys(state: KeyState) -> FrozenSet[str]:
    """Normalize a key-state set or mapping into the set of held, lower-cased keys."""
    if isinstance(state, Mapping):
        return frozenset(str(k).lower() for k, down in state.items() if down)
    return frozenset(str(k).lower() for k in state)


class KeyboardCommandSource(CommandSource):
    """
    Produces PilotCommand from a key-state provider.

    Roll and pitch are bang-bang: holding a tilt key commands full tilt, releasing
    it commands level. Altitude and yaw keys are rates integrated by the caller.
    Edges are detected against the previous read, so every press is consumed once.
    """

    def __init__(
        self,
        get_keys: Callable[[], KeyState],
        config: InputConfig | None = None,
        bindings: KeyBindings | None = None,
    ):
        self._get_keys = get_keys
        self.config = config or InputConfig()
        self.bindings = bindings or KeyBindings()
        self._previous: FrozenSet[str] = frozenset()

    def read(self, dt: float) -> PilotCommand:
        keys = held_keys(self._get_keys() or ())
        pressed = keys - self._previous
        self._previous = keys
        b = self.bindings
        cfg = self.config

        z_delta = 0.0
        if b.altitude_up in keys:
            z_delta += cfg.climb_rate * dt
        if b.altitude_down in keys:
            z_delta -= cfg.climb_rate * dt

        roll_t = 0.0
        if b.roll_left in keys:
            roll_t = cfg.max_tilt
        if b.roll_right in keys:
            roll_t = -cfg.max_tilt

        pitch_t = 0.0
        if b.pitch_forward in keys:
            pitch_t = -cfg.max_tilt
        if b.pitch_back in keys:
            pitch_t = cfg.max_tilt

        yaw_rate = 0.0
        if b.yaw_left in keys:
            yaw_rate += cfg.yaw_rate
        if b.yaw_right in keys:
            yaw_rate -= cfg.yaw_rate

        return PilotCommand(
            roll_target=roll_t,
            pitch_target=pitch_t,
            yaw_rate=yaw_rate,
            z_setpoint_delta=z_delta,
            toggle_arm=b.arm in pressed,
            start_race=b.start in pressed,
            reset=b.reset in pressed,
        )


def apply_pilot_command(references: ControlReferences, cmd: PilotCommand, dt: float, max_tilt: float = 0.6) -> None:
    """Fold one tick of level pilot input into the control references."""
    references.target_altitude = max(0.0, references.target_altitude + cmd.z_setpoint_delta)
    references.roll_reference = clamp(cmd.roll_target, -max_tilt, max_tilt)
    references.pitch_reference = clamp(cmd.pitch_target, -max_tilt, max_tilt)
    # never wrapped; the yaw loop wraps the error
    references.yaw_reference += cmd.yaw_rate * dt
