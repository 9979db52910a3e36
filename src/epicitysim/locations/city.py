"""
This module implements the `City` class which holds the population, the geometry and the state of the
epidemic. Its `run` loop advances the simulation by one tick (one simulated hour) at a time.

Every phase of a tick first computes its outcomes from the state of the population as it is when the
phase starts and only then commits them, so that the result does not depend on the order in which
humans are visited.
"""
import logging
import typing

import numpy as np

from epicitysim.epidemiology.transmission import TransmissionEngine
from epicitysim.epidemiology.variants import VariantRegistry, mutate, select_vaccine_target
from epicitysim.exceptions import DataInconsistencyError
from epicitysim.human import Human
from epicitysim.interventions.testing import TestingPolicy
from epicitysim.interventions.vaccination import VaccinationPolicy
from epicitysim.locations.location import Household
from epicitysim.log.track import Tracker
from epicitysim.utils.constants import SECONDS_PER_HOUR
from epicitysim.utils.demographics import generate_population, seed_infections
from epicitysim.utils.mobility_planner import MobilityPlanner, apply_movement
from epicitysim.utils.spatial_index import SpatialIndex
from epicitysim.utils.utils import log

if typing.TYPE_CHECKING:
    from epicitysim.locations.geometry import GeometryProvider
    from epicitysim.utils.env import Env


class City(object):
    """
    City agent/environment class. A single city object is instantiated at the start of a simulation.
    """

    def __init__(
            self,
            env: "Env",
            n_families: int,
            init_fraction_sick: float,
            rng: np.random.RandomState,
            geometry: "GeometryProvider",
            conf: typing.Dict,
            logfile: str = None,
    ):
        """
        Constructs a city object.

        Args:
            env (epicitysim.utils.env.Env): Keeps track of events and their schedule
            n_families (int): Number of households in the city
            init_fraction_sick (float): fraction of population to be infected on day 0
            rng (np.random.RandomState): Random number generator
            geometry (GeometryProvider): buildings and road network of the city
            conf (dict): yaml configuration of the experiment
            logfile (str): filepath where the console output and final tracked metrics will be logged. Prints to the console only if None.

        Raises:
            PopulationGenerationError: if the population cannot be generated
        """
        self._setup(env, rng, geometry, conf, logfile)
        self.n_families = n_families
        self.init_fraction_sick = init_fraction_sick

        log("Initializing humans ...", self.logfile)
        self.initialize_humans_and_locations()
        self._finalize()

    def _setup(self, env, rng, geometry, conf, logfile):
        self.conf = conf
        self.logfile = logfile
        self.env = env
        self.rng = np.random.RandomState(rng.randint(2 ** 16))
        self.geometry = geometry
        self.step_hours = 1.0

        self.humans: typing.List[Human] = []
        self.households: typing.List[Household] = []
        self.n_people = 0

        self.variants = VariantRegistry(conf['INFECTION_PROBABILITY'], discovery_tick=env.tick)
        self.vaccine_target = self.variants.founding_variant.id

        self.spatial_index = SpatialIndex()
        self.transmission = TransmissionEngine(self.variants, conf)
        self.testing_policy = TestingPolicy(conf)
        self.vaccination_policy = VaccinationPolicy(conf)
        self.tracker = Tracker(env, self, conf, logfile)

        self._history_sizes: typing.Dict[int, int] = {}
        self._n_variants = len(self.variants)

    @property
    def start_time(self):
        return self.env.initial_timestamp

    def initialize_humans_and_locations(self):
        """
        Samples the households and their residents, then seeds the initial infections.
        """
        self.humans, self.households = generate_population(
            self.env, self, self.geometry, self.n_families, self.rng, self.conf
        )
        seeds = seed_infections(
            self.humans,
            self.init_fraction_sick,
            self.variants.founding_variant.id,
            self.env.timestamp,
            self.rng,
            self.transmission.sample_infection_duration,
        )
        self.tracker.track_seed_infections(seeds)

    def _finalize(self):
        for human in self.humans:
            human.mobility_planner = MobilityPlanner(human, self.geometry, self.conf)
        self.n_people = len(self.humans)
        self._history_sizes = {human.id: len(human.infection_history) for human in self.humans}
        self.tracker.initialize()
        self.spatial_index.rebuild(self.humans)

    # -------------------------
    # -----  Step functions ----
    # -------------------------
    def move_humans(self):
        """
        Advances every non-isolated human towards their target.
        """
        hour = self.env.hour_of_day()
        movements = [human.mobility_planner.plan(hour, self.step_hours) for human in self.humans]
        for movement in movements:
            if movement is None:
                continue
            if movement.routing_failed:
                self.tracker.track_routing_failure(movement.human)
            apply_movement(movement)

    def update_spatial_index(self):
        self.spatial_index.rebuild(self.humans)

    def spread_disease(self):
        """
        Infections, recoveries and ends of isolation of this tick.
        """
        timestamp = self.env.timestamp
        infections = self.transmission.compute_infections(self.humans, self.spatial_index, self.rng)
        recoveries = self.transmission.compute_recoveries(self.humans, timestamp)
        releases = self.testing_policy.compute_releases(self.humans, timestamp)

        self.transmission.apply_recoveries(recoveries, timestamp)
        self.transmission.apply_infections(infections, timestamp, self.rng)
        self.testing_policy.apply_releases(releases)

        self.tracker.track_infections(infections)
        self.tracker.track_recoveries(recoveries)
        self.tracker.track_releases(releases)

    def test_and_isolate(self):
        """
        Daily testing. Positive cases are isolated along with their whole household.
        """
        results = self.testing_policy.administer_tests(self.humans, self.rng)
        to_isolate = self.testing_policy.compute_isolations(results)
        self.tracker.track_tests(results)
        self.tracker.track_isolations(to_isolate)
        self.testing_policy.apply_isolations(to_isolate, self.env.timestamp)

    def vaccinate(self):
        selected = self.vaccination_policy.select(self.humans, self.rng)
        self.vaccination_policy.apply(selected, self.env.timestamp, self.vaccine_target)
        self.tracker.track_vaccinations(selected)

    def mutate_variants(self):
        mutations = mutate(
            self.humans,
            self.variants,
            self.rng,
            self.conf['MUTATION_PROBABILITY'],
            self.env.tick,
            tuple(self.conf['MUTATION_RATE_FACTOR_RANGE']),
        )
        self.tracker.track_mutations(mutations)

    def update_vaccine_target(self):
        new_target = select_vaccine_target(self.humans, self.vaccine_target)
        if new_target != self.vaccine_target:
            logging.debug(f"vaccine target switched from variant {self.vaccine_target} to {new_target}")
        self.vaccine_target = new_target
        self.tracker.track_vaccine_target(self.vaccine_target)

    def run_daily_interventions(self):
        self.test_and_isolate()
        self.vaccinate()
        self.mutate_variants()
        self.update_vaccine_target()

    def step(self):
        """
        One tick: movement, spatial index rebuild, transmission, the daily policies on the last
        tick of a day, and a telemetry snapshot.
        """
        self.move_humans()
        self.update_spatial_index()
        self.spread_disease()
        if self.env.is_end_of_day():
            self.run_daily_interventions()
        self.tracker.snapshot()

        if __debug__ and self.conf.get('CHECK_INVARIANTS', True):
            self.check_invariants()

    def run(self, duration=SECONDS_PER_HOUR, outfile=None):
        """
        Run the City.

        Args:
            duration (int): duration of a step, in seconds.
            outfile (str): may be None, the run's output file to write to

        Yields:
            simpy.Timeout
        """
        self.step_hours = duration / SECONDS_PER_HOUR
        while True:
            self.step()
            yield self.env.timeout(duration)

    # ----------------------
    # -----  Invariants -----
    # ----------------------
    def check_invariants(self):
        """
        Verifies the consistency of the simulation state.

        Raises:
            DataInconsistencyError: if an invariant is violated
        """
        if len(self.humans) != self.n_people:
            raise DataInconsistencyError(f"population changed from {self.n_people} to {len(self.humans)}")

        if len(self.variants) < self._n_variants:
            raise DataInconsistencyError("a variant disappeared from the registry")
        self._n_variants = len(self.variants)

        for household in self.households:
            if len(household.residents) != household.size:
                raise DataInconsistencyError(
                    f"{household} has {len(household.residents)} residents instead of {household.size}"
                )

        for human in self.humans:
            if human.is_infected != (human.current_variant is not None):
                raise DataInconsistencyError(f"{human} infected:{human.is_infected} variant:{human.current_variant}")
            if human.is_infected and human.current_variant not in human.infection_history:
                raise DataInconsistencyError(f"{human} carries variant {human.current_variant} missing from their history")
            if not human.infection_history.issubset(self.variants.variants):
                raise DataInconsistencyError(f"{human} contracted unregistered variants {human.infection_history}")
            if len(human.infection_history) < self._history_sizes.get(human.id, 0):
                raise DataInconsistencyError(f"infection history of {human} shrank")
            if human.is_vaccinated and human.vaccination_time is None:
                raise DataInconsistencyError(f"{human} is vaccinated without a vaccination time")
            if human.is_isolated and human.isolation_start is None:
                raise DataInconsistencyError(f"{human} is isolated without an isolation start")
            self._history_sizes[human.id] = len(human.infection_history)


class EmptyCity(City):
    """
    An empty City environment (no humans or households) that the user can build with
    externally defined code. Useful for controlled scenarios and functional testing.
    """

    def __init__(self, env, rng, geometry, conf, logfile=None):
        """
        Args:
            env (epicitysim.utils.env.Env): Keeps track of events and their schedule
            rng (np.random.RandomState): Random number generator
            geometry (GeometryProvider): buildings and road network of the city
            conf (dict): yaml experiment configuration
            logfile (str): filepath where the console output will be logged
        """
        self._setup(env, rng, geometry, conf, logfile)
        self.n_families = 0
        self.init_fraction_sick = 0

    def create_household(self, building, location, n_adults, n_children):
        """
        Args:
            building (Building): building the family lives in
            location (Point): home location
            n_adults (int): number of adults
            n_children (int): number of children

        Returns:
            Household: the new, empty household
        """
        household = Household(len(self.households), building, location, n_adults, n_children)
        self.households.append(household)
        return household

    def add_human(self, household, age_category, workplace, speed):
        """
        Args:
            household (Household): family of the new human
            age_category (str): "adult" or "child"
            workplace (Point): where the human works
            speed (float): distance travelled in one hour

        Returns:
            Human: the new human, at home
        """
        human = Human(self.env, self, len(self.humans), age_category, household, workplace, speed, self.conf)
        household.add_resident(human)
        self.humans.append(human)
        return human

    def initWorld(self):
        """
        After adding humans and households to the city, execute this function to finalize the City
        object in preparation for simulation.
        """
        self.n_families = len(self.households)
        infected = [h for h in self.humans if h.is_infected]
        self.init_fraction_sick = len(infected) / max(1, len(self.humans))
        self.tracker.track_seed_infections(infected)
        self._finalize()
