"""Headless flight: arm, climb, yaw a quarter turn and report the HUD line once a second."""

import math

from quadrace.main import Controls
from quadrace.telemetry import format_status
from target.simulator import SimBoard

RATE_HZ = 60.0

# (start second, held keys)
SCRIPT = [
    (0.0, {"m"}),
    (0.5, set()),
    (1.0, {"arrowup"}),
    (1.5, set()),
    (4.0, {"arrowleft"}),
    (4.0 + (math.pi / 2) / 3.5, set()),
]


def held_at(t):
    keys = set()
    for start, held in SCRIPT:
        if t >= start:
            keys = held
    return keys


if __name__ == '__main__':
    board = SimBoard(dt=1.0 / RATE_HZ)
    controls = Controls(rate_hz=RATE_HZ, board=board)
    try:
        for i in range(int(10 * RATE_HZ)):
            board.set_keys(held_at(i / RATE_HZ))
            snapshot = controls.step()
            if snapshot is not None and snapshot.frame % int(RATE_HZ) == 0:
                print(format_status(snapshot))
    finally:
        controls.close()
