"""
Time-trial state machine: NOT_STARTED -> ACTIVE -> FINISHED, reset from anywhere.
"""

from __future__ import annotations

from enum import Enum
from typing import Callable, Optional, Sequence, Tuple

from common.logger import get_logger
from common.math import Vector3D
from common.realtime import monotonic_time
from common.types import Checkpoint, RaceStatus

logger = get_logger("race")


class RacePhase(Enum):
    NOT_STARTED = "not_started"
    ACTIVE = "active"
    FINISHED = "finished"


class RaceStateMachine:
    """
    Tracks checkpoint progress and the race timer.

    Checkpoints are cleared strictly in order by flying within their radius.
    Clearing the last one is the finish: the elapsed time is captured on that
    tick and stays frozen until ``reset``.
    """

    def __init__(self, checkpoints: Sequence[Checkpoint], clock: Callable[[], float] = monotonic_time):
        if not checkpoints:
            raise ValueError("a race needs at least one checkpoint")
        for i, cp in enumerate(checkpoints):
            if cp.radius <= 0.0:
                raise ValueError(f"checkpoint {i} has non-positive radius {cp.radius}")
        self.checkpoints: Tuple[Checkpoint, ...] = tuple(checkpoints)
        self._clock = clock
        self.phase = RacePhase.NOT_STARTED
        self.current_checkpoint_index = 0
        self._start_time = 0.0
        self._finish_elapsed: Optional[float] = None

    @property
    def total_checkpoints(self) -> int:
        return len(self.checkpoints)

    @property
    def is_active(self) -> bool:
        # a finished race still counts as active until reset
        return self.phase is not RacePhase.NOT_STARTED

    @property
    def is_finished(self) -> bool:
        return self.phase is RacePhase.FINISHED

    @property
    def active_checkpoint(self) -> Optional[Checkpoint]:
        if self.phase is not RacePhase.ACTIVE:
            return None
        return self.checkpoints[self.current_checkpoint_index]

    def start(self) -> bool:
        """Begin a race; a no-op unless NOT_STARTED."""
        if self.phase is not RacePhase.NOT_STARTED:
            return False
        self.phase = RacePhase.ACTIVE
        self.current_checkpoint_index = 0
        self._finish_elapsed = None
        self._start_time = self._clock()
        logger.info(f"Race started: {self.total_checkpoints} checkpoints")
        return True

    def update(self, position: Vector3D) -> bool:
        """Check the body position against the active checkpoint. Returns True when it is cleared."""
        target = self.active_checkpoint
        if target is None:
            return False
        if position.distance_to(target.position) >= target.radius:
            return False
        self.current_checkpoint_index += 1
        if self.current_checkpoint_index >= self.total_checkpoints:
            self._finish_elapsed = self._clock() - self._start_time
            self.phase = RacePhase.FINISHED
            logger.info(f"Race finished in {self._finish_elapsed:.2f} s")
        else:
            logger.info(f"Checkpoint {self.current_checkpoint_index}/{self.total_checkpoints} cleared")
        return True

    def elapsed(self) -> float:
        if self.phase is RacePhase.ACTIVE:
            return self._clock() - self._start_time
        if self.phase is RacePhase.FINISHED:
            return self._finish_elapsed
        return 0.0

    def reset(self) -> None:
        self.phase = RacePhase.NOT_STARTED
        self.current_checkpoint_index = 0
        self._finish_elapsed = None
        self._start_time = 0.0

    def status(self) -> RaceStatus:
        return RaceStatus(
            is_active=self.is_active,
            is_finished=self.is_finished,
            current_checkpoint_index=self.current_checkpoint_index,
            total_checkpoints=self.total_checkpoints,
            elapsed=self.elapsed(),
        )
