import math
import unittest

from common.math import Quaternion, Vector3D
from quadrace.attitude import body_pitch, body_roll, body_yaw, decompose, signed_angle

UP = (0.0, 1.0, 0.0)


class TestAttitude(unittest.TestCase):
    def test_level_body_reports_heading_only(self):
        for deg in (0.0, 30.0, 90.0, 135.0, 200.0, 359.0):
            with self.subTest(heading=deg):
                q = Quaternion.from_axis_angle(UP, math.radians(deg))
                att = decompose(q)
                self.assertAlmostEqual(att.pitch, 0.0, places=9)
                self.assertAlmostEqual(att.roll, 0.0, places=9)
                self.assertAlmostEqual(att.yaw, math.radians(deg), places=9)

    def test_pitch_about_body_x_is_signed(self):
        for angle in (0.3, -0.3, 0.55):
            with self.subTest(angle=angle):
                q = Quaternion.from_axis_angle((1.0, 0.0, 0.0), angle)
                self.assertAlmostEqual(body_pitch(q), angle, places=9)
                self.assertAlmostEqual(body_roll(q), 0.0, places=9)

    def test_roll_about_body_z_is_signed(self):
        for angle in (0.2, -0.45):
            with self.subTest(angle=angle):
                q = Quaternion.from_axis_angle((0.0, 0.0, 1.0), angle)
                self.assertAlmostEqual(body_roll(q), angle, places=9)
                self.assertAlmostEqual(body_pitch(q), 0.0, places=9)

    def test_pitch_measured_in_body_frame_after_yaw(self):
        heading = Quaternion.from_axis_angle(UP, math.radians(120.0))
        tilt = Quaternion.from_axis_angle((1.0, 0.0, 0.0), 0.25)
        q = heading * tilt
        self.assertAlmostEqual(body_pitch(q), 0.25, places=9)
        self.assertAlmostEqual(body_roll(q), 0.0, places=9)

    def test_yaw_normalized_to_positive_range(self):
        q = Quaternion.from_axis_angle(UP, -0.5)
        yaw = body_yaw(q)
        self.assertGreaterEqual(yaw, 0.0)
        self.assertLess(yaw, 2 * math.pi)
        self.assertAlmostEqual(yaw, 2 * math.pi - 0.5, places=9)

    def test_degenerate_projection_returns_zero(self):
        # pitched 90 degrees: world Z lies along body Y, yaw is undefined
        q = Quaternion.from_axis_angle((1.0, 0.0, 0.0), -math.pi / 2)
        self.assertEqual(body_yaw(q), 0.0)
        # rolled onto its side: world up lies along body X, pitch is undefined
        q = Quaternion.from_axis_angle((0.0, 0.0, 1.0), math.pi / 2)
        self.assertEqual(body_pitch(q), 0.0)

    def test_signed_angle_right_hand_rule(self):
        x = Vector3D(1.0, 0.0, 0.0)
        y = Vector3D(0.0, 1.0, 0.0)
        z = Vector3D(0.0, 0.0, 1.0)
        self.assertAlmostEqual(signed_angle(x, z, y), math.pi / 2)
        self.assertAlmostEqual(signed_angle(y, z, x), -math.pi / 2)


if __name__ == '__main__':
    unittest.main()
