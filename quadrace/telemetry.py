"""Decimated telemetry snapshots with smoothed motor speeds for display."""

from __future__ import annotations

import math
from typing import Optional, Sequence

from common.types import BodyState, ControlReferences, RaceStatus, TelemetrySnapshot
from quadrace.attitude import Attitude


class TelemetryProjection:
    """
    Smooths motor speeds every tick and emits a snapshot every ``decimation`` frames.
    Sampling never feeds back into the simulation.
    """

    def __init__(self, decimation: int = 6, smoothing: float = 0.1):
        if decimation < 1:
            raise ValueError("decimation must be >= 1")
        if not 0.0 < smoothing <= 1.0:
            raise ValueError("smoothing must be in (0, 1]")
        self.decimation = int(decimation)
        self.smoothing = float(smoothing)
        self.motor_speeds = [0.0, 0.0, 0.0, 0.0]

    def observe(self, speeds: Sequence[float]) -> None:
        a = self.smoothing
        self.motor_speeds = [cur + (float(w) - cur) * a for cur, w in zip(self.motor_speeds, speeds)]

    def reset(self) -> None:
        self.motor_speeds = [0.0, 0.0, 0.0, 0.0]

    def due(self, frame: int) -> bool:
        return frame % self.decimation == 0

    def sample(
        self,
        frame: int,
        state: BodyState,
        attitude: Attitude,
        references: ControlReferences,
        armed: bool,
        race: RaceStatus,
        time: float = 0.0,
    ) -> Optional[TelemetrySnapshot]:
        if not self.due(frame):
            return None
        return TelemetrySnapshot(
            motor_speeds=tuple(self.motor_speeds),
            altitude=state.position.y,
            target_altitude=references.target_altitude,
            ground_speed=state.velocity.norm(),
            pitch=attitude.pitch,
            roll=attitude.roll,
            yaw=attitude.yaw,
            heading=math.degrees(attitude.yaw) % 360.0,
            armed=armed,
            race=race,
            time=time,
            frame=frame,
        )


def format_status(snapshot: TelemetrySnapshot) -> str:
    """One-line HUD for terminals and the /status endpoint."""
    race = snapshot.race
    if not race.is_active:
        mission = "race: press G to start"
    elif race.is_finished:
        mission = f"race: FINISHED {race.elapsed:.2f}s"
    else:
        mission = f"race: gate {race.current_checkpoint_index + 1}/{race.total_checkpoints} {race.elapsed:.1f}s"
    motors = " ".join(f"{w:5.1f}" for w in snapshot.motor_speeds)
    return (
        f"{'ACTIVE ' if snapshot.armed else 'STANDBY'} "
        f"alt {snapshot.altitude:5.2f}m (tgt {snapshot.target_altitude:4.1f}) "
        f"spd {snapshot.ground_speed:4.1f}m/s "
        f"hdg {snapshot.heading:5.1f} "
        f"p/r {math.degrees(snapshot.pitch):+5.1f}/{math.degrees(snapshot.roll):+5.1f} "
        f"motors [{motors}] | {mission}"
    )
