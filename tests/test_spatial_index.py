import math
import unittest

import numpy as np

from epicitysim.locations.geometry import Point
from epicitysim.utils.spatial_index import SpatialIndex
from tests.utils import add_family, get_empty_city, get_test_conf


class SpatialIndexTest(unittest.TestCase):
    def setUp(self):
        conf = get_test_conf("no_interventions.yaml")
        self.city = get_empty_city(conf)
        rng = np.random.RandomState(42)
        for _ in range(30):
            add_family(self.city, 2, home=Point(*rng.uniform(0, 20, size=2)))
        self.city.initWorld()
        self.humans = self.city.humans
        # spread the members of a family around their home
        for human in self.humans:
            human.location = Point(*rng.uniform(0, 20, size=2))

    def _brute_force(self, point, radius, exclude=None):
        return [
            h.id for h in self.humans
            if not h.is_isolated and h is not exclude and math.hypot(h.location.x - point.x, h.location.y - point.y) <= radius
        ]

    def test_matches_brute_force(self):
        index = SpatialIndex()
        index.rebuild(self.humans)
        for radius in [0.5, 2.0, 5.0]:
            for human in self.humans:
                with self.subTest(radius=radius, human=human.id):
                    found = [h.id for h in index.query(human.location, radius, exclude=human)]
                    self.assertEqual(found, self._brute_force(human.location, radius, exclude=human))

    def test_sorted_by_id(self):
        index = SpatialIndex()
        index.rebuild(self.humans)
        found = [h.id for h in index.query(Point(10, 10), 50.0)]
        self.assertEqual(found, sorted(found))
        self.assertEqual(len(found), len(self.humans))

    def test_isolated_humans_are_not_indexed(self):
        isolated = self.humans[::3]
        for human in isolated:
            human.isolate(self.city.env.timestamp)

        index = SpatialIndex()
        index.rebuild(self.humans)
        self.assertEqual(len(index), len(self.humans) - len(isolated))

        found = {h.id for h in index.query(Point(10, 10), 50.0)}
        self.assertFalse(found & {h.id for h in isolated})

    def test_index_follows_rebuilds(self):
        index = SpatialIndex()
        index.rebuild(self.humans)
        human = self.humans[0]
        human.location = Point(1000.0, 1000.0)
        self.assertNotIn(human, index.query(Point(1000.0, 1000.0), 1.0))
        index.rebuild(self.humans)
        self.assertEqual(index.query(Point(1000.0, 1000.0), 1.0), [human])

    def test_empty_index(self):
        index = SpatialIndex()
        self.assertEqual(index.query(Point(0, 0), 10.0), [])
        index.rebuild([])
        self.assertEqual(len(index), 0)
        self.assertEqual(index.query(Point(0, 0), 10.0), [])
