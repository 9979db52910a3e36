import unittest

from epicitysim.utils.constants import SECONDS_PER_HOUR
from epicitysim.utils.mobility_planner import apply_movement
from tests.utils import HOME, WORK, add_family, get_empty_city, get_line_geometry, get_test_conf

TEST_CONF_NAME = "no_interventions.yaml"


def _ticks_to_arrive(human, hour, max_ticks=20):
    for n_ticks in range(1, max_ticks + 1):
        movement = human.mobility_planner.plan(hour)
        apply_movement(movement)
        if movement.target is None:
            return n_ticks
    return None


class CommuteTest(unittest.TestCase):
    def setUp(self):
        self.conf = get_test_conf(TEST_CONF_NAME)

    def _get_human(self, speed, geometry=None):
        city = get_empty_city(self.conf, geometry=geometry)
        human, = add_family(city, 1, speed=speed)
        city.initWorld()
        return city, human

    def test_everyone_starts_at_home(self):
        _, human = self._get_human(30.0)
        self.assertEqual(human.location, HOME)
        self.assertTrue(human.is_at_home)
        self.assertIsNone(human.target)

    def test_no_movement_outside_working_hours_at_home(self):
        _, human = self._get_human(30.0)
        self.assertIsNone(human.mobility_planner.plan(0))
        self.assertIsNone(human.mobility_planner.plan(20))

    def test_commute_to_work(self):
        _, human = self._get_human(30.0)

        movement = human.mobility_planner.plan(9)
        self.assertEqual(movement.target, WORK)
        self.assertFalse(movement.routing_failed)
        self.assertAlmostEqual(movement.location.x, 30.0)
        # planning does not move the human
        self.assertEqual(human.location, HOME)

        apply_movement(movement)
        self.assertAlmostEqual(human.location.x, 30.0)
        self.assertAlmostEqual(human.route.length, 70.0)

        self.assertEqual(_ticks_to_arrive(human, 9), 3)
        self.assertEqual(human.location, WORK)
        self.assertTrue(human.is_at_work)
        self.assertIsNone(human.route)

    def test_stays_at_work_then_returns_home(self):
        _, human = self._get_human(200.0)
        self.assertEqual(_ticks_to_arrive(human, 9), 1)
        self.assertIsNone(human.mobility_planner.plan(12))
        self.assertEqual(_ticks_to_arrive(human, 18), 1)
        self.assertEqual(human.location, HOME)

    def test_snap_to_target(self):
        _, fast = self._get_human(49.5)
        self.assertEqual(_ticks_to_arrive(fast, 9), 2)

        _, slow = self._get_human(49.0)
        self.assertEqual(_ticks_to_arrive(slow, 9), 3)

    def test_target_is_kept_across_hours(self):
        """
        A trip started during working hours ends at the workplace even if working hours are over
        """
        _, human = self._get_human(30.0)
        apply_movement(human.mobility_planner.plan(16))
        self.assertEqual(_ticks_to_arrive(human, 17), 3)
        self.assertEqual(human.location, WORK)

    def test_isolated_humans_do_not_move(self):
        city, human = self._get_human(30.0)
        apply_movement(human.mobility_planner.plan(9))
        location = human.location

        human.isolate(city.env.timestamp)
        self.assertIsNone(human.mobility_planner.plan(9))

        # the trip resumes once released
        human.release_from_isolation()
        self.assertEqual(human.mobility_planner.plan(9).target, WORK)
        self.assertEqual(human.location, location)

    def test_commute_in_simulation(self):
        city, human = self._get_human(30.0)
        env = city.env
        env.process(city.run(SECONDS_PER_HOUR))

        # working hours start at 8: the human leaves on tick 8 and arrives on tick 11
        env.run(until=env.ts_initial + 11 * SECONDS_PER_HOUR)
        self.assertFalse(human.is_at_work)
        env.run(until=env.ts_initial + 12 * SECONDS_PER_HOUR)
        self.assertTrue(human.is_at_work)

        # working hours end at 17
        env.run(until=env.ts_initial + 21 * SECONDS_PER_HOUR)
        self.assertTrue(human.is_at_home)


class RoutingFailureTest(unittest.TestCase):
    def test_unreachable_workplace(self):
        conf = get_test_conf(TEST_CONF_NAME)
        city = get_empty_city(conf, geometry=get_line_geometry(connected=False))
        human, = add_family(city, 1)
        city.initWorld()

        movement = human.mobility_planner.plan(9)
        self.assertTrue(movement.routing_failed)
        self.assertEqual(movement.location, HOME)

        env = city.env
        env.process(city.run(SECONDS_PER_HOUR))
        env.run(until=env.ts_initial + 10 * SECONDS_PER_HOUR)

        # ticks 8 and 9 fail, the human stays home and keeps trying
        self.assertEqual(city.tracker.routing_failures, 2)
        self.assertEqual(human.location, HOME)
        self.assertEqual(human.target, WORK)
        self.assertIsNone(human.route)
