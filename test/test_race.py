import unittest

from common.math import Vector3D
from common.types import Checkpoint
from quadrace.level import default_level
from quadrace.race import RacePhase, RaceStateMachine


class FakeClock:
    def __init__(self, t=100.0):
        self.t = t

    def __call__(self):
        return self.t


def course(n=5, radius=2.0):
    return [Checkpoint(Vector3D(10.0 * i, 2.0, 0.0), radius) for i in range(n)]


class TestRaceStateMachine(unittest.TestCase):
    def setUp(self):
        self.clock = FakeClock()
        self.checkpoints = course()
        self.race = RaceStateMachine(self.checkpoints, clock=self.clock)

    def test_initial_state(self):
        status = self.race.status()
        self.assertEqual(self.race.phase, RacePhase.NOT_STARTED)
        self.assertFalse(status.is_active)
        self.assertFalse(status.is_finished)
        self.assertEqual(status.current_checkpoint_index, 0)
        self.assertEqual(status.total_checkpoints, 5)
        self.assertEqual(status.elapsed, 0.0)

    def test_no_progress_before_start(self):
        self.assertFalse(self.race.update(self.checkpoints[0].position))
        self.assertEqual(self.race.current_checkpoint_index, 0)

    def test_start_only_from_not_started(self):
        self.assertTrue(self.race.start())
        self.race.update(self.checkpoints[0].position)
        self.clock.t += 3.0
        self.assertFalse(self.race.start())
        self.assertEqual(self.race.current_checkpoint_index, 1)
        self.assertAlmostEqual(self.race.elapsed(), 3.0)

    def test_clearance_is_strictly_sequential(self):
        self.race.start()
        self.race.update(self.checkpoints[0].position)
        self.assertEqual(self.race.current_checkpoint_index, 1)
        self.assertFalse(self.race.update(self.checkpoints[3].position))
        self.assertEqual(self.race.current_checkpoint_index, 1)
        # already cleared gate does not re-trigger
        self.assertFalse(self.race.update(self.checkpoints[0].position))
        self.assertEqual(self.race.current_checkpoint_index, 1)

    def test_radius_boundary_is_exclusive(self):
        self.race.start()
        cp = self.checkpoints[0]
        self.assertFalse(self.race.update(cp.position + Vector3D(cp.radius, 0.0, 0.0)))
        self.assertTrue(self.race.update(cp.position + Vector3D(cp.radius - 1e-6, 0.0, 0.0)))

    def test_full_lap_finishes_and_freezes_timer(self):
        self.assertTrue(self.race.start())
        status = self.race.status()
        self.assertTrue(status.is_active)
        self.assertFalse(status.is_finished)
        self.assertEqual(status.current_checkpoint_index, 0)
        self.assertEqual(status.elapsed, 0.0)

        for i, cp in enumerate(self.checkpoints):
            self.clock.t += 2.0
            self.assertTrue(self.race.update(cp.position + Vector3D(0.5, 0.0, 0.0)))
            self.assertEqual(self.race.current_checkpoint_index, i + 1)

        self.assertTrue(self.race.is_finished)
        self.assertEqual(self.race.phase, RacePhase.FINISHED)
        self.assertAlmostEqual(self.race.elapsed(), 10.0)
        self.clock.t += 30.0
        self.race.update(self.checkpoints[-1].position)
        status = self.race.status()
        self.assertAlmostEqual(status.elapsed, 10.0)
        self.assertTrue(status.is_active)
        self.assertTrue(status.is_finished)
        self.assertEqual(status.current_checkpoint_index, 5)
        self.assertFalse(self.race.start())

    def test_reset_from_finished(self):
        self.race.start()
        for cp in self.checkpoints:
            self.race.update(cp.position)
        self.assertTrue(self.race.is_finished)
        self.race.reset()
        status = self.race.status()
        self.assertFalse(status.is_active)
        self.assertFalse(status.is_finished)
        self.assertEqual(status.current_checkpoint_index, 0)
        self.assertEqual(status.elapsed, 0.0)
        self.assertTrue(self.race.start())

    def test_invalid_course_rejected(self):
        with self.assertRaises(ValueError):
            RaceStateMachine([])
        with self.assertRaises(ValueError):
            RaceStateMachine([Checkpoint(Vector3D(), 0.0)])

    def test_default_level_route(self):
        level = default_level()
        race = RaceStateMachine(level.checkpoints, clock=self.clock)
        self.assertEqual(race.total_checkpoints, 7)
        self.assertTrue(all(cp.radius == 2.0 for cp in level.checkpoints))
        # spawn must not clear the first gate on the first tick
        self.assertGreater(level.spawn_position.distance_to(level.checkpoints[0].position), 2.0)


if __name__ == '__main__':
    unittest.main()
