"""Unittest-based tests for the frame point solver.

Reference bicycle (wheelbase 995, bb_drop 70, chainstay 410, stack 543,
reach 390, rake 45, HA 70, HT 140, ST 520, SA 74) around origin (0, 0):
  rear_wheel        = (-497.5, 0)
  front_wheel       = ( 497.5, 0)
  bottom_bracket    = (-497.5 + sqrt(410^2 + 70^2), 70)  ~ (-81.57, 70)
  steering_axis_top = (bb.x + 390, -(543 - 70))          ~ (308.43, -473)
Screen coordinates: y grows downwards.
"""
import copy
import math
import unittest

from bikevis import schemas
from bikevis.config import REFERENCE_BICYCLE, SolverSettings, SteeringAxisFormulation
from bikevis.solver import (
    DegenerateGeometryError,
    compute_frame_points,
    find_steering_axis_top,
    solve_frame_points,
)


def _params(**overrides):
    data = dict(REFERENCE_BICYCLE)
    data.update(overrides)
    return schemas.FrameParameters(**data)


class TestWorkedExample(unittest.TestCase):
    def setUp(self):
        result = compute_frame_points(dict(REFERENCE_BICYCLE))
        self.assertTrue(result.drawable)
        self.points = result.points

    def test_wheels(self):
        self.assertEqual(self.points.rear_wheel, schemas.Point(x=-497.5, y=0.0))
        self.assertEqual(self.points.front_wheel, schemas.Point(x=497.5, y=0.0))

    def test_bottom_bracket(self):
        bb = self.points.bottom_bracket
        self.assertAlmostEqual(bb.x, -497.5 + math.sqrt(410**2 + 70**2), places=9)
        self.assertAlmostEqual(bb.x, -81.5, delta=0.5)
        self.assertEqual(bb.y, 70.0)

    def test_steering_axis(self):
        sab = self.points.steering_axis_bottom
        self.assertAlmostEqual(sab.x, 497.5 - 45 / math.sin(math.radians(70)), places=9)
        self.assertEqual(sab.y, 0.0)
        top = self.points.steering_axis_top
        self.assertAlmostEqual(top.x, 308.43, delta=0.01)
        self.assertAlmostEqual(top.y, -473.0, places=9)

    def test_head_and_seat_tube(self):
        htb = self.points.head_tube_bottom
        self.assertAlmostEqual(htb.x, 356.32, delta=0.01)
        self.assertAlmostEqual(htb.y, -341.44, delta=0.01)
        stt = self.points.seat_tube_top
        self.assertAlmostEqual(stt.x, -224.90, delta=0.01)
        self.assertAlmostEqual(stt.y, -429.86, delta=0.01)

    def test_cockpit_points(self):
        stt = self.points.seat_tube_top
        spt = self.points.seat_post_top
        self.assertAlmostEqual(stt.x - spt.x, 140 * math.cos(math.radians(74)), places=9)
        self.assertAlmostEqual(stt.y - spt.y, 140 * math.sin(math.radians(74)), places=9)
        top = self.points.steering_axis_top
        hpt = self.points.handlebar_post_top
        self.assertAlmostEqual(top.distance_to(hpt), 100.0, places=9)
        # continues the steering axis upwards, away from the head tube bottom
        self.assertLess(hpt.x, top.x)
        self.assertLess(hpt.y, top.y)


class TestInvariants(unittest.TestCase):
    def test_deterministic(self):
        params = _params()
        first = solve_frame_points(params)
        second = solve_frame_points(params)
        self.assertEqual(first, second)
        for (_, a), (_, b) in zip(first.named_points(), second.named_points()):
            self.assertEqual((a.x, a.y), (b.x, b.y))

    def test_wheelbase_distance(self):
        for wb in (900.0, 995.0, 1234.5):
            points = solve_frame_points(_params(wheelbase=wb))
            self.assertAlmostEqual(points.rear_wheel.distance_to(points.front_wheel), wb, places=9)

    def test_stack_and_reach(self):
        params = _params(stack=600, reach=410, bb_drop=65)
        points = solve_frame_points(params)
        top = points.steering_axis_top
        self.assertAlmostEqual(points.steering_axis_bottom.y - top.y, 600 - 65, places=9)
        self.assertAlmostEqual(points.bottom_bracket.y - top.y, 600, places=9)
        self.assertAlmostEqual(top.x - points.bottom_bracket.x, 410, places=9)

    def test_chainstay_hypotenuse_setting(self):
        settings = SolverSettings(chainstay_as_hypotenuse=True)
        points = solve_frame_points(_params(), settings=settings)
        dx = points.bottom_bracket.x - points.rear_wheel.x
        dy = points.bottom_bracket.y - points.rear_wheel.y
        self.assertAlmostEqual(dx**2 + dy**2, 410**2, places=6)

    def test_head_tube_length_preserved(self):
        points = solve_frame_points(_params(head_tube=155))
        self.assertAlmostEqual(points.steering_axis_top.distance_to(points.head_tube_bottom), 155, places=9)

    def test_seat_tube_length_preserved(self):
        points = solve_frame_points(_params(seat_tube_length=560))
        self.assertAlmostEqual(points.bottom_bracket.distance_to(points.seat_tube_top), 560, places=9)

    def test_does_not_mutate_input(self):
        record = dict(REFERENCE_BICYCLE)
        before = copy.deepcopy(record)
        compute_frame_points(record)
        self.assertEqual(record, before)

    def test_origin_only_translates(self):
        base = solve_frame_points(_params())
        shifted = solve_frame_points(_params(), origin=(100.0, 50.0))
        for (name, a), (_, b) in zip(base.named_points(), shifted.named_points()):
            self.assertAlmostEqual(b.x - a.x, 100.0, places=9, msg=name)
            self.assertAlmostEqual(b.y - a.y, 50.0, places=9, msg=name)


class TestSteeringAxisFormulations(unittest.TestCase):
    def test_agree_when_reach_is_consistent(self):
        axis_settings = SolverSettings(steering_axis_formulation=SteeringAxisFormulation.AXIS_LENGTH)
        by_axis = solve_frame_points(_params(), settings=axis_settings)
        consistent_reach = by_axis.steering_axis_top.x - by_axis.bottom_bracket.x
        by_reach = solve_frame_points(_params(reach=consistent_reach))
        self.assertAlmostEqual(by_axis.steering_axis_top.x, by_reach.steering_axis_top.x, places=6)
        self.assertAlmostEqual(by_axis.steering_axis_top.y, by_reach.steering_axis_top.y, places=6)

    def test_differ_in_general(self):
        params = _params()
        base = solve_frame_points(params)
        by_axis = find_steering_axis_top(
            params, base.bottom_bracket, base.steering_axis_bottom, SteeringAxisFormulation.AXIS_LENGTH
        )
        by_reach = find_steering_axis_top(
            params, base.bottom_bracket, base.steering_axis_bottom, SteeringAxisFormulation.REACH_STACK
        )
        self.assertEqual(by_axis.y, by_reach.y)
        self.assertGreater(abs(by_axis.x - by_reach.x), 1.0)

    def test_axis_length_follows_head_angle(self):
        settings = SolverSettings(steering_axis_formulation=SteeringAxisFormulation.AXIS_LENGTH)
        points = solve_frame_points(_params(), settings=settings)
        sab, top = points.steering_axis_bottom, points.steering_axis_top
        angle = math.degrees(math.atan2(sab.y - top.y, sab.x - top.x))
        self.assertAlmostEqual(angle, 70.0, places=6)


class TestNotDrawable(unittest.TestCase):
    def test_missing_head_angle(self):
        record = dict(REFERENCE_BICYCLE)
        del record["head_angle"]
        result = compute_frame_points(record)
        self.assertFalse(result.drawable)
        self.assertIsNone(result.points)
        self.assertEqual(result.issues[0].field, "head_angle")
        self.assertEqual(result.issues[0].kind, schemas.IssueKind.MISSING_FIELD)

    def test_zero_and_right_angles(self):
        for field in ("head_angle", "seat_angle"):
            for angle in (0, 90):
                result = compute_frame_points(dict(REFERENCE_BICYCLE, **{field: angle}))
                self.assertFalse(result.drawable, msg=f"{field}={angle}")
                self.assertEqual(result.issues[0].kind, schemas.IssueKind.OUT_OF_RANGE)

    def test_negative_radicand_is_degenerate(self):
        settings = SolverSettings(chainstay_as_hypotenuse=True)
        record = dict(REFERENCE_BICYCLE, bb_drop=450)
        result = compute_frame_points(record, settings=settings)
        self.assertFalse(result.drawable)
        self.assertEqual(result.issues[0].kind, schemas.IssueKind.DEGENERATE_GEOMETRY)
        self.assertEqual(result.issues[0].field, "chainstay")

    def test_solve_raises_on_degenerate(self):
        settings = SolverSettings(chainstay_as_hypotenuse=True)
        with self.assertRaises(DegenerateGeometryError):
            solve_frame_points(_params(bb_drop=450), settings=settings)

    def test_huge_tube_length_is_degenerate(self):
        # squares overflow to inf, caught by the finite check on the derived points
        result = compute_frame_points(dict(REFERENCE_BICYCLE, head_tube=1e200))
        self.assertFalse(result.drawable)
        self.assertEqual(result.issues[0].kind, schemas.IssueKind.DEGENERATE_GEOMETRY)
        self.assertIsNone(result.issues[0].field)
        self.assertIn("not finite", result.issues[0].message)

    def test_huge_integer_is_out_of_range(self):
        result = compute_frame_points(dict(REFERENCE_BICYCLE, stack=10**400))
        self.assertFalse(result.drawable)
        self.assertEqual(result.issues[0].field, "stack")
        self.assertEqual(result.issues[0].kind, schemas.IssueKind.OUT_OF_RANGE)

    def test_wrong_shape_is_fatal(self):
        with self.assertRaises(TypeError):
            compute_frame_points([995, 70, 410])
        with self.assertRaises(TypeError):
            compute_frame_points(dict(REFERENCE_BICYCLE), settings={"include_cockpit": False})


class TestFramePoints(unittest.TestCase):
    def test_without_cockpit(self):
        points = solve_frame_points(_params(), settings=SolverSettings(include_cockpit=False))
        self.assertIsNone(points.seat_post_top)
        self.assertIsNone(points.handlebar_post_top)
        self.assertEqual(len(list(points.named_points())), 7)

    def test_centred_on_bottom_bracket(self):
        points = solve_frame_points(_params())
        target = schemas.Point(x=400.0, y=300.0)
        centred = points.centred_on_bottom_bracket(target)
        self.assertAlmostEqual(centred.bottom_bracket.x, 400.0, places=9)
        self.assertAlmostEqual(centred.bottom_bracket.y, 300.0, places=9)
        self.assertAlmostEqual(
            centred.rear_wheel.distance_to(centred.front_wheel),
            points.rear_wheel.distance_to(points.front_wheel),
            places=9,
        )

    def test_bounds_include_wheels(self):
        result = compute_frame_points(dict(REFERENCE_BICYCLE))
        b = result.bounds
        self.assertAlmostEqual(b.min_x, -497.5 - 340, places=9)
        self.assertAlmostEqual(b.max_x, 497.5 + 340, places=9)
        self.assertAlmostEqual(b.max_y, 340, places=9)
        self.assertLessEqual(b.min_y, result.points.handlebar_post_top.y)
        self.assertGreater(b.width, 995)

    def test_points_are_frozen(self):
        points = solve_frame_points(_params())
        with self.assertRaises(Exception):
            points.bottom_bracket = schemas.Point(x=0, y=0)


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
