import math
import unittest

import networkx as nx
import numpy as np

from epicitysim.exceptions import RoutingError
from epicitysim.locations.geometry import GridCityGeometry, Path, Point, RoadNetworkGeometry
from epicitysim.locations.location import Building
from tests.utils import HOME, WORK, get_line_geometry, get_test_conf


class PathTest(unittest.TestCase):
    def setUp(self):
        self.path = Path([Point(0, 0), Point(30, 0), Point(30, 40)])

    def test_length(self):
        self.assertAlmostEqual(self.path.length, 70.0)
        self.assertEqual(Path([Point(1, 1)]).length, 0.0)

    def test_point_at(self):
        self.assertEqual(self.path.point_at(10), Point(10, 0))
        self.assertEqual(self.path.point_at(30), Point(30, 0))
        self.assertEqual(self.path.point_at(50), Point(30, 20))

    def test_point_at_is_clamped(self):
        self.assertEqual(self.path.point_at(-5), self.path.start)
        self.assertEqual(self.path.point_at(1000), self.path.end)

    def test_remainder(self):
        rest = self.path.remainder(40)
        self.assertEqual(rest.start, Point(30, 10))
        self.assertEqual(rest.end, self.path.end)
        self.assertAlmostEqual(rest.length, 30.0)

        done = self.path.remainder(70)
        self.assertEqual(done.length, 0.0)
        self.assertEqual(done.end, self.path.end)

    def test_repeated_points(self):
        """
        Routes repeat their endpoints when a point coincides with a road node
        """
        path = Path([HOME, Point(0.0, 0.0), Point(100.0, 0.0), WORK])
        self.assertAlmostEqual(path.length, 100.0)
        self.assertEqual(path.point_at(30), Point(30.0, 0.0))
        self.assertAlmostEqual(path.remainder(30).length, 70.0)


class RoadNetworkGeometryTest(unittest.TestCase):
    def test_school_is_largest_building(self):
        geometry = get_line_geometry()
        school = geometry.school_building()
        self.assertEqual(school.id, 2)
        self.assertTrue(school.is_school)
        self.assertEqual(school.name, "SCHOOL:2")
        self.assertEqual([b.id for b in geometry.residential_buildings()], [0, 1])
        self.assertEqual([b.id for b in geometry.work_buildings()], [0, 1])

    def test_flagged_school_is_kept(self):
        buildings = [Building(0, 0, 0, 100, 100), Building(1, 200, 0, 210, 10, is_school=True)]
        geometry = RoadNetworkGeometry(buildings, nx.Graph())
        self.assertEqual(geometry.school_building().id, 1)
        self.assertEqual([b.id for b in geometry.residential_buildings()], [0])

    def test_random_point_in_building(self):
        geometry = get_line_geometry()
        rng = np.random.RandomState(0)
        for building in geometry.buildings:
            for _ in range(20):
                self.assertTrue(building.contains(geometry.random_point_in(building, rng)))

    def test_shortest_path(self):
        geometry = get_line_geometry()
        path = geometry.shortest_path(HOME, WORK)
        self.assertEqual(path.start, HOME)
        self.assertEqual(path.end, WORK)
        self.assertAlmostEqual(path.length, 100.0)

    def test_shortest_path_walks_to_the_road(self):
        geometry = get_line_geometry()
        origin, destination = Point(0.0, 3.0), Point(100.0, -4.0)
        path = geometry.shortest_path(origin, destination)
        self.assertEqual(path.start, origin)
        self.assertEqual(path.end, destination)
        self.assertAlmostEqual(path.length, 107.0)

    def test_disconnected_road_network(self):
        geometry = get_line_geometry(connected=False)
        with self.assertRaises(RoutingError):
            geometry.shortest_path(HOME, WORK)

    def test_empty_road_network(self):
        geometry = RoadNetworkGeometry([Building(0, 0, 0, 1, 1)], nx.Graph())
        with self.assertRaises(RoutingError):
            geometry.shortest_path(HOME, WORK)

    def test_edge_lengths_are_filled_in(self):
        geometry = get_line_geometry()
        self.assertAlmostEqual(geometry.graph.edges[(0.0, 0.0), (100.0, 0.0)]["length"], 100.0)


class GridCityGeometryTest(unittest.TestCase):
    def test_layout(self):
        geometry = GridCityGeometry(3, 2, 100.0, np.random.RandomState(0))
        self.assertEqual(len(geometry.buildings), 6)
        self.assertEqual(len(geometry.residential_buildings()), 5)
        self.assertIsNotNone(geometry.school_building())
        self.assertEqual(geometry.graph.number_of_nodes(), 4 * 3)

        for building in geometry.buildings:
            i, j = int(building.xmin // 100), int(building.ymin // 100)
            self.assertLess(building.xmax, (i + 1) * 100)
            self.assertLess(building.ymax, (j + 1) * 100)

    def test_every_building_is_reachable(self):
        geometry = GridCityGeometry(3, 3, 50.0, np.random.RandomState(1))
        rng = np.random.RandomState(2)
        points = [geometry.random_point_in(b, rng) for b in geometry.buildings]
        for origin in points:
            for destination in points:
                path = geometry.shortest_path(origin, destination)
                self.assertEqual(path.end, destination)
                straight_line = math.hypot(destination.x - origin.x, destination.y - origin.y)
                self.assertGreaterEqual(path.length + 1e-9, straight_line)

    def test_from_conf(self):
        conf = get_test_conf("base.yaml")
        geometry = GridCityGeometry.from_conf(conf, np.random.RandomState(0))
        self.assertEqual(len(geometry.buildings), conf["CITY_BLOCKS_X"] * conf["CITY_BLOCKS_Y"])

    def test_same_seed_same_city(self):
        a = GridCityGeometry(4, 4, 100.0, np.random.RandomState(7))
        b = GridCityGeometry(4, 4, 100.0, np.random.RandomState(7))
        self.assertEqual(
            [(x.xmin, x.ymin, x.xmax, x.ymax) for x in a.buildings],
            [(x.xmin, x.ymin, x.xmax, x.ymax) for x in b.buildings],
        )
