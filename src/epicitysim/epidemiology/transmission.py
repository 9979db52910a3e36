"""
Hourly transmission of the pathogen through family contacts and incidental spatial proximity,
and recovery of the infected.
"""
import typing
from collections import namedtuple

from epicitysim.epidemiology.p_infection import get_human_human_p_transmission
from epicitysim.utils.constants import FAMILY_CONTACT, PROXIMITY_CONTACT

if typing.TYPE_CHECKING:
    from epicitysim.epidemiology.variants import VariantRegistry
    from epicitysim.utils.spatial_index import SpatialIndex

Infection = namedtuple("Infection", ["infector", "infectee", "variant", "channel", "p_infection"])


class TransmissionEngine(object):
    """
    Computes new infections from the state of the population at the start of a tick and commits
    them afterwards, so that an infection never spreads further than one hop per tick.
    """

    def __init__(self, registry: "VariantRegistry", conf):
        """
        Args:
            registry (VariantRegistry): infection rates of the variants
            conf (dict): yaml configuration of the experiment
        """
        self.registry = registry
        self.conf = conf
        self.family_contact_multiplier = conf['FAMILY_CONTACT_MULTIPLIER']
        self.proximity_radius = conf['PROXIMITY_RADIUS']
        self.infection_duration_range = tuple(conf['INFECTION_DURATION_RANGE'])

    def _trial(self, infector, infectee, contact_multiplier, channel, rng, infections):
        variant = infector.current_variant
        p_infection = get_human_human_p_transmission(
            self.registry.rate(variant), infectee, variant, contact_multiplier, self.conf
        )
        if p_infection <= 0:
            return

        # every infector gets an independent trial, the first success decides the variant
        if rng.random_sample() < p_infection and infectee.id not in infections:
            infections[infectee.id] = Infection(infector, infectee, variant, channel, p_infection)

    def compute_infections(self, humans, spatial_index: "SpatialIndex", rng):
        """
        Every infected, non-isolated human tries to infect their susceptible family members and
        then the non-family humans within `PROXIMITY_RADIUS`. Infectors are processed in the order
        of `humans`, family members in household order and neighbors by id, so that a fixed random
        sequence always gives the same infections. No state is modified.

        Args:
            humans (list): population, sorted by id
            spatial_index (SpatialIndex): index rebuilt after this tick's movements
            rng (np.random.RandomState): Random number generator

        Returns:
            list: `Infection`s to commit, at most one per infectee
        """
        infections = {}
        for infector in humans:
            if not infector.is_infected or infector.is_isolated:
                continue

            for member in infector.household_members:
                if member.is_infected or member.is_isolated:
                    continue
                self._trial(infector, member, self.family_contact_multiplier, FAMILY_CONTACT, rng, infections)

            for neighbor in spatial_index.query(infector.location, self.proximity_radius, exclude=infector):
                if neighbor.household is infector.household or neighbor.is_infected or neighbor.is_isolated:
                    continue
                self._trial(infector, neighbor, 1.0, PROXIMITY_CONTACT, rng, infections)

        return list(infections.values())

    def sample_infection_duration(self, rng):
        """
        Args:
            rng (np.random.RandomState): Random number generator

        Returns:
            float: number of days a new infection lasts
        """
        return rng.uniform(*self.infection_duration_range)

    def apply_infections(self, infections, timestamp, rng):
        """
        Commits `infections`. Each infectee gets a fresh infection duration.

        Args:
            infections (list): output of `compute_infections`
            timestamp (datetime.datetime): time of infection
            rng (np.random.RandomState): Random number generator
        """
        for infection in infections:
            infection.infectee.infect(infection.variant, timestamp, self.sample_infection_duration(rng))

    @staticmethod
    def compute_recoveries(humans, timestamp):
        """
        Humans recover once their infection lasted longer than its duration, isolated or not.

        Args:
            humans (list): population
            timestamp (datetime.datetime): current time

        Returns:
            list: humans who recover now
        """
        return [human for human in humans if human.has_recovered_by(timestamp)]

    @staticmethod
    def apply_recoveries(recoveries, timestamp):
        for human in recoveries:
            human.recover(timestamp)
