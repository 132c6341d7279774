import math
import unittest

from common.math import Quaternion, Vector3D
from common.types import MotorCommand
from quadrace.main import Controls
from quadrace.race import RacePhase
from target.simulator import SimBoard

RATE_HZ = 60.0


class BrokenSource:
    def read(self, dt):
        raise OSError("device unplugged")

    def close(self):
        return None


class TestControls(unittest.TestCase):
    def setUp(self):
        self.board = SimBoard(dt=1.0 / RATE_HZ)
        self.controls = Controls(rate_hz=RATE_HZ, board=self.board)

    def tearDown(self):
        self.controls.close()

    def press(self, *keys):
        """Hold keys for one tick, then release them for one tick."""
        self.board.set_keys(keys)
        self.controls.step()
        self.board.set_keys(())
        self.controls.step()

    def run_for(self, steps, keys=()):
        self.board.set_keys(keys)
        snapshot = None
        for _ in range(steps):
            snapshot = self.controls.step() or snapshot
        return snapshot

    def test_disarmed_motors_idle(self):
        self.run_for(30)
        ctx = self.controls.context
        self.assertFalse(ctx.armed)
        self.assertEqual(ctx.motor_command, MotorCommand.idle())
        self.assertAlmostEqual(self.board.read_state().position.y, 0.3)

    def test_arm_climbs_to_hover(self):
        self.press("m")
        ctx = self.controls.context
        self.assertTrue(ctx.armed)
        self.assertEqual(ctx.references.target_altitude, 1.0)
        snapshot = self.run_for(int(15 * RATE_HZ))
        state = self.board.read_state()
        self.assertLess(abs(state.position.y - 1.0), 0.2)
        self.assertLess(abs(ctx.attitude.pitch), 1e-6)
        self.assertLess(abs(ctx.attitude.roll), 1e-6)
        self.assertTrue(all(w > 0.0 for w in ctx.motor_command.speeds))
        self.assertTrue(snapshot.armed)
        self.assertAlmostEqual(snapshot.altitude, state.position.y, places=1)

    def test_arm_edge_resyncs_yaw_reference(self):
        self.board.reset_body(Vector3D(0.0, 0.3, 0.0), Quaternion.from_axis_angle((0.0, 1.0, 0.0), math.radians(120.0)))
        self.controls.context.references.yaw_reference = math.radians(45.0)
        self.board.set_keys({"m"})
        self.controls.step()
        self.assertTrue(self.controls.context.armed)
        self.assertAlmostEqual(self.controls.context.references.yaw_reference, math.radians(120.0), places=6)

    def test_arm_above_minimum_holds_current_altitude(self):
        self.board.reset_body(Vector3D(0.0, 2.5, 0.0))
        self.board.set_keys({"m"})
        self.controls.step()
        ctx = self.controls.context
        self.assertTrue(ctx.armed)
        altitude = self.board.read_state().position.y
        self.assertGreater(altitude, 2.4)
        self.assertEqual(ctx.references.target_altitude, altitude)

    def test_rearm_after_yawing_has_no_derivative_kick(self):
        self.press("m")
        self.run_for(int(8 * RATE_HZ))
        self.run_for(10, keys={"arrowleft"})
        self.assertGreater(abs(self.controls.controller.yaw_pid.last_error), 0.01)
        self.press("m")
        self.assertFalse(self.controls.context.armed)

        self.board.set_keys({"m"})
        self.controls.step()
        ctx = self.controls.context
        self.assertTrue(ctx.armed)
        speeds = ctx.motor_command.speeds
        self.assertGreater(min(speeds), 0.0)
        self.assertAlmostEqual(speeds[0], speeds[1], places=6)
        self.assertAlmostEqual(speeds[2], speeds[3], places=6)

    def test_disarm_resets_hover_integral(self):
        self.press("m")
        self.run_for(120)
        self.assertNotEqual(self.controls.controller.hover_pid.integral, 0.0)
        self.press("m")
        self.assertFalse(self.controls.context.armed)
        self.assertEqual(self.controls.controller.hover_pid.integral, 0.0)
        self.assertEqual(self.controls.context.motor_command, MotorCommand.idle())

    def test_altitude_keys_only_move_target_while_armed(self):
        self.run_for(10, keys={"arrowup"})
        self.assertEqual(self.controls.context.references.target_altitude, 0.0)
        self.press("m")
        self.run_for(20, keys={"arrowup"})
        self.assertAlmostEqual(self.controls.context.references.target_altitude, 1.0 + 20 * 0.05)

    def test_yaw_key_turns_the_drone(self):
        self.press("m")
        self.run_for(int(8 * RATE_HZ))
        self.run_for(30, keys={"arrowleft"})
        ref = self.controls.context.references.yaw_reference
        self.assertAlmostEqual(ref, 1.75, places=6)
        self.run_for(int(5 * RATE_HZ))
        yaw = self.controls.context.attitude.yaw
        self.assertGreater(yaw, 0.2)
        self.assertLess(yaw, ref + 0.2)

    def test_start_race_auto_arms(self):
        self.board.set_keys({"g"})
        self.controls.step()
        ctx = self.controls.context
        self.assertTrue(ctx.armed)
        self.assertEqual(ctx.references.target_altitude, 1.5)
        status = ctx.race.status()
        self.assertTrue(status.is_active)
        self.assertFalse(status.is_finished)
        self.assertEqual(status.current_checkpoint_index, 0)
        self.assertEqual(status.elapsed, 0.0)

    def test_full_course_then_reset(self):
        self.press("g")
        race = self.controls.context.race
        for i, cp in enumerate(self.controls.level.checkpoints):
            self.board.reset_body(cp.position)
            self.controls.step()
            self.assertEqual(race.current_checkpoint_index, i + 1)
        self.assertEqual(race.phase, RacePhase.FINISHED)
        frozen = race.elapsed()
        self.run_for(60)
        self.assertEqual(race.elapsed(), frozen)

        self.press("r")
        ctx = self.controls.context
        status = ctx.race.status()
        self.assertFalse(status.is_active)
        self.assertFalse(status.is_finished)
        self.assertEqual(status.current_checkpoint_index, 0)
        self.assertFalse(ctx.armed)
        self.assertEqual(ctx.references.target_altitude, 0.0)

    def test_reset_returns_body_to_reset_pose(self):
        self.press("m")
        self.run_for(120)
        self.board.set_keys({"r"})
        self.controls.step()
        state = self.board.read_state()
        self.assertEqual(state.position.y, 1.0)
        self.assertEqual(state.velocity.norm(), 0.0)

    def test_telemetry_is_decimated(self):
        snaps = [self.controls.step() for _ in range(12)]
        frames = [s.frame for s in snaps if s is not None]
        self.assertEqual(frames, [6, 12])

    def test_close_detaches_control_hook(self):
        world = self.board.world.world
        self.assertEqual(len(world.post_step_callbacks), 1)
        self.controls.close()
        self.assertEqual(world.post_step_callbacks, ())
        # closing twice is harmless
        self.controls.close()

    def test_failing_command_source_is_neutral(self):
        board = SimBoard(dt=1.0 / RATE_HZ)
        controls = Controls(rate_hz=RATE_HZ, board=board, command_source=BrokenSource())
        try:
            with self.assertLogs("quadrace.controls", level="WARNING"):
                controls.step()
            self.assertFalse(controls.context.armed)
        finally:
            controls.close()

    def test_invalid_rate(self):
        with self.assertRaises(ValueError):
            Controls(rate_hz=0.0, board=self.board)


if __name__ == '__main__':
    unittest.main()
