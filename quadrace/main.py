#!/usr/bin/env python3
"""
Entry point: set up the board, then run the fixed-timestep control and race loop.
"""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Optional

from common.interface import CommandSource
from common.logger import get_logger
from common.math import GRAVITY
from common.realtime import RateKeeper
from common.types import ControlReferences, MotorCommand, PilotCommand, TelemetrySnapshot
from quadrace.attitude import Attitude, decompose
from quadrace.board import Board
from quadrace.control import ControlGains, StabilityController
from quadrace.input import InputConfig, KeyboardCommandSource, apply_pilot_command
from quadrace.level import LevelLayout, default_level
from quadrace.mixer import AirframeConfig, QuadXMixer
from quadrace.race import RaceStateMachine
from quadrace.telemetry import TelemetryProjection, format_status

logger = get_logger("controls")


def init_board(target_name: str | None, dt: float, airframe: AirframeConfig, level: LevelLayout) -> Board:
    """Instantiate the board for the requested target."""
    target = (target_name or "sim").lower()
    if target == "sim":
        from target.simulator import SimBoard

        serve = os.environ.get("RENDER", "1") != "0"
        return SimBoard(dt=dt, airframe=airframe, level=level, serve=serve)
    raise NotImplementedError(f"Unsupported target '{target}'")


@dataclass
class SimulationContext:
    """Everything the control loop mutates between ticks."""

    race: RaceStateMachine
    references: ControlReferences = field(default_factory=ControlReferences)
    armed: bool = False
    attitude: Attitude = field(default_factory=Attitude)
    motor_command: MotorCommand = field(default_factory=MotorCommand.idle)
    frame: int = 0


class Controls:
    """Controls-style loop: step() -> [post-step] state_control() -> race/telemetry -> publish()."""

    def __init__(
        self,
        target: str | None = None,
        rate_hz: float = 60.0,
        board: Board | None = None,
        command_source: CommandSource | None = None,
        level: LevelLayout | None = None,
        gains: ControlGains | None = None,
        airframe: AirframeConfig | None = None,
        input_config: InputConfig | None = None,
        telemetry_every: int = 6,
    ):
        if rate_hz <= 0.0:
            raise ValueError("rate_hz must be positive")
        self.rate_hz = float(rate_hz)
        self.dt = 1.0 / self.rate_hz
        self.level = level or default_level()
        self.airframe = airframe or AirframeConfig()
        self.input_config = input_config or InputConfig()

        self.board = board or init_board(target, self.dt, self.airframe, self.level)
        self.command_source = command_source or KeyboardCommandSource(self.board.key_state, self.input_config)

        self.controller = StabilityController(gains)
        self.mixer = QuadXMixer(self.airframe, motor_limit=self.controller.motor_limit)
        self.telemetry = TelemetryProjection(decimation=telemetry_every)
        self.context = SimulationContext(race=RaceStateMachine(self.level.checkpoints, clock=self.board.time))

        self.board.add_post_step(self.state_control)
        self._closed = False
        logger.info(
            f"Board initialized ({type(self.board).__name__}), "
            f"hover speed {self.mixer.hover_speed(GRAVITY):.2f}, {self.context.race.total_checkpoints} gates"
        )

    # -- Pipeline stages -----------------------------------------------------

    def state_control(self) -> None:
        """Post-step hook: input, attitude, PID bank, mixer, forces for the next integration."""
        ctx = self.context
        cmd = self._read_pilot_command()
        self._handle_edges(cmd)

        state = self.board.read_state()
        ctx.attitude = decompose(state.orientation)
        if not ctx.armed:
            self.controller.reset_hover_integral()
            ctx.motor_command = MotorCommand.idle()
            return

        apply_pilot_command(ctx.references, cmd, self.dt, self.input_config.max_tilt)
        effort = self.controller.update(state, ctx.references, self.dt, attitude=ctx.attitude)
        ctx.motor_command = self.mixer.mix(effort)
        self.mixer.apply_to(self.board.body, ctx.motor_command)

    def step(self) -> Optional[TelemetrySnapshot]:
        """Advance one fixed tick. Returns a telemetry snapshot on sampled frames."""
        ctx = self.context
        self.board.step(self.dt)
        state = self.board.read_state()
        ctx.race.update(state.position)

        ctx.frame += 1
        self.telemetry.observe(ctx.motor_command.speeds)
        snapshot = self.telemetry.sample(
            ctx.frame,
            state,
            ctx.attitude,
            ctx.references,
            ctx.armed,
            ctx.race.status(),
            time=self.board.time(),
        )
        if snapshot is not None:
            self.publish(snapshot)
        return snapshot

    def publish(self, snapshot: TelemetrySnapshot) -> None:
        self.board.publish(snapshot)
        if snapshot.frame % (self.telemetry.decimation * 10) == 0:
            logger.debug(format_status(snapshot))

    # -- Edges -----------------------------------------------------------------

    def arm(self) -> None:
        ctx = self.context
        state = self.board.read_state()
        ctx.armed = True
        ctx.references.yaw_reference = decompose(state.orientation).yaw
        self.controller.reset_attitude()
        ctx.references.target_altitude = max(self.input_config.arm_min_altitude, state.position.y)
        logger.info(f"Armed, target altitude {ctx.references.target_altitude:.2f} m")

    def disarm(self) -> None:
        self.context.armed = False
        self.controller.reset_hover_integral()
        logger.info("Disarmed")

    def start_race(self) -> None:
        ctx = self.context
        if not ctx.race.start():
            return
        if not ctx.armed:
            self.arm()
            ctx.references.target_altitude = self.input_config.race_start_altitude

    def reset(self) -> None:
        """Full reset: body back to the reset pose, disarmed, altitude target 0, race NOT_STARTED."""
        ctx = self.context
        self.board.reset_body(self.level.reset_position)
        ctx.references = ControlReferences()
        ctx.armed = False
        ctx.motor_command = MotorCommand.idle()
        self.controller.reset()
        ctx.race.reset()
        logger.info("Reset")

    def _handle_edges(self, cmd: PilotCommand) -> None:
        if cmd.reset:
            self.reset()
        if cmd.toggle_arm:
            if self.context.armed:
                self.disarm()
            else:
                self.arm()
        if cmd.start_race:
            self.start_race()

    # -- Helpers -------------------------------------------------------------

    def _read_pilot_command(self) -> PilotCommand:
        try:
            return self.command_source.read(self.dt)
        except Exception as exc:
            logger.warning(f"Command source read failed: {exc}")
            return PilotCommand()

    def run(self, max_steps: int | None = None, realtime: bool = True) -> None:
        logger.info("Starting controls loop")
        rk = RateKeeper(rate_hz=self.rate_hz, print_delay_threshold=None) if realtime else None
        steps = 0
        try:
            while max_steps is None or steps < max_steps:
                self.step()
                steps += 1
                if rk is not None:
                    rk.keep_time()
        except KeyboardInterrupt:
            logger.info("Interrupted")
        finally:
            self.close()

    def close(self) -> None:
        """Detach the post-step hook before tearing the board down."""
        if self._closed:
            return
        self._closed = True
        self.board.remove_post_step(self.state_control)
        self.command_source.close()
        self.board.close()


def main():
    target_env = os.environ.get("TARGET")
    target = target_env.lower() if target_env else None
    rate_hz = float(os.environ.get("QUADRACE_RATE_HZ", "60"))
    telemetry_every = int(os.environ.get("QUADRACE_TELEMETRY_EVERY", "6"))
    Controls(target, rate_hz=rate_hz, telemetry_every=telemetry_every).run()


if __name__ == "__main__":
    main()
