"""
Contains the `Human` class that holds the state of a person of the city.
"""
import datetime
import typing

from epicitysim.epidemiology.disease import DiseaseState, Infected, Recovered, Susceptible
from epicitysim.utils.constants import ADULT, AGE_CATEGORIES

if typing.TYPE_CHECKING:
    from epicitysim.locations.geometry import Path, Point
    from epicitysim.locations.location import Household
    from epicitysim.utils.env import Env


class Human(object):
    """
    A person of the city. Humans are created once when the population is generated and are mutated
    in place by the city's step functions afterwards.
    """

    def __init__(self, env, city, id, age_category, household, workplace, speed, conf={}):
        """
        Args:
            env (epicitysim.utils.env.Env): Shared environment
            city (epicitysim.locations.city.City): City the human lives in
            id (int): unique identifier
            age_category (str): "adult" or "child"
            household (epicitysim.locations.location.Household): family of the human
            workplace (Point): where the human works (the school for children)
            speed (float): distance travelled in one hour
            conf (dict): yaml experiment configuration
        """
        assert age_category in AGE_CATEGORIES, f"unknown age category {age_category}"

        # Utility References
        self.conf = conf
        self.env: "Env" = env
        self.city = city

        # Human-related properties
        self.id = id
        self.name = f"human:{id}"
        self.age_category = age_category
        self.household: "Household" = household  # back-reference, membership is owned by the household

        # Mobility
        self.home: "Point" = household.location
        self.workplace: "Point" = workplace
        self.location: "Point" = household.location  # everyone starts at home
        self.target: typing.Optional["Point"] = None  # where the human is heading to, if anywhere
        self.route: typing.Optional["Path"] = None  # what remains of the road to `target`
        self.speed = speed
        self.mobility_planner = None  # set by the city once its geometry is known

        # Disease
        self.disease_state: DiseaseState = Susceptible()
        self.infection_history: typing.Set[int] = set()  # every variant ever contracted, only grows

        # Interventions
        self.is_isolated = False
        self.isolation_start: typing.Optional[datetime.datetime] = None
        self.is_vaccinated = False
        self.vaccination_time: typing.Optional[datetime.datetime] = None
        self.vaccine_variant: typing.Optional[int] = None

    def __repr__(self):
        return f"H:{self.id}"

    @property
    def is_adult(self):
        return self.age_category == ADULT

    @property
    def is_infected(self):
        return self.disease_state.is_infected

    @property
    def is_susceptible(self):
        return isinstance(self.disease_state, Susceptible)

    @property
    def is_recovered(self):
        return isinstance(self.disease_state, Recovered)

    @property
    def current_variant(self):
        return self.disease_state.variant

    @property
    def infection_timestamp(self):
        """
        Returns:
            datetime.datetime: time of the ongoing infection, None if not infected
        """
        if self.is_infected:
            return self.disease_state.since
        return None

    @property
    def infection_duration(self):
        """
        Returns:
            float: number of days the ongoing infection lasts, None if not infected
        """
        if self.is_infected:
            return self.disease_state.duration
        return None

    @property
    def household_members(self):
        """
        Returns:
            list: the other residents of the household
        """
        return [h for h in self.household.residents if h is not self]

    @property
    def is_at_home(self):
        return self.location == self.home

    @property
    def is_at_work(self):
        return self.location == self.workplace

    def infect(self, variant, timestamp, duration):
        """
        Starts a new infection.

        Args:
            variant (int): variant contracted
            timestamp (datetime.datetime): time of infection
            duration (float): number of days the infection lasts
        """
        assert not self.is_infected, f"{self} is already infected"
        self.disease_state = Infected(variant=variant, since=timestamp, duration=duration)
        self.infection_history.add(variant)

    def switch_variant(self, variant):
        """
        The strain carried by the human mutated into `variant`.

        Args:
            variant (int): the new variant
        """
        assert self.is_infected, f"{self} carries no variant to mutate"
        self.disease_state = self.disease_state.with_variant(variant)
        self.infection_history.add(variant)

    def recover(self, timestamp):
        """
        Args:
            timestamp (datetime.datetime): time of recovery
        """
        assert self.is_infected, f"{self} is not infected"
        self.disease_state = Recovered(since=timestamp)

    def has_recovered_by(self, timestamp):
        return self.is_infected and self.disease_state.has_recovered_by(timestamp)

    def isolate(self, timestamp):
        """
        Puts the human in isolation. An isolated human neither moves nor transmits; a trip in
        progress resumes from where it stopped once the isolation ends.
        Isolating someone already isolated keeps the original start.

        Args:
            timestamp (datetime.datetime): start of the isolation
        """
        if self.is_isolated:
            return
        self.is_isolated = True
        self.isolation_start = timestamp

    def release_from_isolation(self):
        self.is_isolated = False

    def should_be_released_by(self, timestamp, isolation_duration):
        """
        Args:
            timestamp (datetime.datetime): current time
            isolation_duration (float): number of days an isolation lasts

        Returns:
            bool: True once strictly more than `isolation_duration` days have elapsed in isolation
        """
        return self.is_isolated and timestamp - self.isolation_start > datetime.timedelta(days=isolation_duration)

    def vaccinate(self, timestamp, variant):
        """
        Args:
            timestamp (datetime.datetime): time of vaccination
            variant (int): variant the dose is formulated against
        """
        self.is_vaccinated = True
        self.vaccination_time = timestamp
        self.vaccine_variant = variant
