import unittest

import networkx as nx
import numpy as np

from epicitysim.exceptions import PopulationGenerationError
from epicitysim.locations.geometry import GridCityGeometry, RoadNetworkGeometry
from epicitysim.locations.location import Building
from epicitysim.utils.demographics import generate_population, get_n_families, seed_infections
from epicitysim.utils.env import Env
from tests.utils import START_TIME, get_line_geometry, get_test_conf

TEST_CONF_NAME = "base.yaml"


class DemographicsTest(unittest.TestCase):
    def setUp(self):
        self.conf = get_test_conf(TEST_CONF_NAME)
        self.env = Env(START_TIME)
        self.geometry = GridCityGeometry.from_conf(self.conf, np.random.RandomState(0))

    def _generate(self, n_families, seed=1, geometry=None):
        return generate_population(
            self.env, None, geometry or self.geometry, n_families, np.random.RandomState(seed), self.conf
        )

    def test_family_composition(self):
        humans, households = self._generate(10)

        self.assertEqual(len(households), 10)
        self.assertEqual(len(humans), sum(h.size for h in households))
        self.assertGreaterEqual(len(humans), 30)
        self.assertLessEqual(len(humans), 60)

        for household in households:
            self.assertIn(household.size, self.conf['FAMILY_SIZES'])
            self.assertGreaterEqual(household.n_adults, 2)
            self.assertLessEqual(household.n_children, self.conf['MAX_CHILDREN_PER_FAMILY'])
            self.assertEqual(len(household.residents), household.size)
            self.assertEqual(sum(h.is_adult for h in household), household.n_adults)
            self.assertTrue(household.building.contains(household.location))
            self.assertFalse(household.building.is_school)

    def test_initial_state(self):
        humans, _ = self._generate(10)

        self.assertEqual([h.id for h in humans], list(range(len(humans))))
        speed_min, speed_max = self.conf['SPEED_RANGE']
        for human in humans:
            self.assertEqual(human.location, human.home)
            self.assertEqual(human.home, human.household.location)
            self.assertTrue(human.is_susceptible)
            self.assertFalse(human.is_isolated)
            self.assertFalse(human.is_vaccinated)
            self.assertEqual(human.infection_history, set())
            self.assertTrue(speed_min <= human.speed <= speed_max)

    def test_workplaces(self):
        humans, _ = self._generate(10)
        school = self.geometry.school_building()
        work_buildings = self.geometry.work_buildings()

        for human in humans:
            if human.is_adult:
                self.assertTrue(any(b.contains(human.workplace) for b in work_buildings))
            else:
                self.assertTrue(school.contains(human.workplace))

    def test_same_seed_same_population(self):
        humans_a, _ = self._generate(10, seed=5)
        humans_b, _ = self._generate(10, seed=5)
        self.assertEqual([(h.age_category, h.home, h.workplace) for h in humans_a],
                         [(h.age_category, h.home, h.workplace) for h in humans_b])

    def test_generation_errors(self):
        with self.assertRaises(PopulationGenerationError):
            self._generate(0)

        with self.assertRaises(PopulationGenerationError):
            self._generate(5, geometry=RoadNetworkGeometry([], nx.Graph()))

        # a single building becomes the school, nobody can live anywhere
        with self.assertRaises(PopulationGenerationError):
            self._generate(5, geometry=RoadNetworkGeometry([Building(0, 0, 0, 10, 10)], nx.Graph()))

    def test_small_geometry(self):
        humans, households = self._generate(3, geometry=get_line_geometry())
        self.assertEqual(len(households), 3)
        self.assertTrue(all(h.household.building.id in (0, 1) for h in humans))


class PopulationSizeTest(unittest.TestCase):
    def test_n_families_takes_precedence(self):
        conf = {'n_families': 7, 'n_people': 1000, 'FAMILY_SIZES': [3, 4, 5, 6]}
        self.assertEqual(get_n_families(conf), 7)

    def test_from_n_people(self):
        conf = {'n_families': None, 'n_people': 45, 'FAMILY_SIZES': [3, 4, 5, 6]}
        self.assertEqual(get_n_families(conf), 10)

        conf['n_people'] = 2
        self.assertEqual(get_n_families(conf), 1)


class SeedInfectionsTest(unittest.TestCase):
    def setUp(self):
        conf = get_test_conf(TEST_CONF_NAME)
        geometry = GridCityGeometry.from_conf(conf, np.random.RandomState(0))
        self.humans, _ = generate_population(Env(START_TIME), None, geometry, 10, np.random.RandomState(1), conf)

    def test_seed_fraction(self):
        rng = np.random.RandomState(0)
        seeds = seed_infections(self.humans, 0.1, 0, START_TIME, rng, lambda r: r.uniform(2, 8))

        self.assertEqual(len(seeds), int(round(0.1 * len(self.humans))))
        self.assertEqual([h.id for h in seeds], sorted(h.id for h in seeds))
        for human in seeds:
            self.assertTrue(human.is_infected)
            self.assertEqual(human.current_variant, 0)
            self.assertEqual(human.infection_timestamp, START_TIME)
            self.assertTrue(2 <= human.infection_duration <= 8)
        self.assertEqual(sum(h.is_infected for h in self.humans), len(seeds))

    def test_at_least_one_seed(self):
        seeds = seed_infections(self.humans, 1e-6, 0, START_TIME, np.random.RandomState(0), lambda r: 5.0)
        self.assertEqual(len(seeds), 1)

    def test_no_seed(self):
        seeds = seed_infections(self.humans, 0.0, 0, START_TIME, np.random.RandomState(0), lambda r: 5.0)
        self.assertEqual(seeds, [])
        self.assertFalse(any(h.is_infected for h in self.humans))
