"""
Variants of the pathogen: the registry allocating their identifiers, the daily mutation of circulating
strains and the choice of the variant newly administered vaccine doses are formulated against.
"""
import dataclasses
import logging
import threading
import typing
from collections import Counter

from epicitysim.utils.constants import FOUNDING_VARIANT_ID

if typing.TYPE_CHECKING:
    from epicitysim.human import Human


@dataclasses.dataclass(frozen=True)
class Variant:
    id: int
    parent_id: typing.Optional[int]
    infection_rate: float
    discovery_tick: int


class VariantRegistry(object):
    """
    Every variant ever observed, keyed by id. Variants are never removed, even when they die out.
    Identifiers come from a single counter guarded by a lock so that allocation stays collision-free
    if mutations are ever computed by several workers.
    """

    def __init__(self, founding_infection_rate, discovery_tick=0):
        """
        Args:
            founding_infection_rate (float): infection rate of the founding variant
            discovery_tick (int): tick at which the founding variant is introduced. Defaults to 0.
        """
        self._lock = threading.Lock()
        self._next_id = FOUNDING_VARIANT_ID
        self.variants: typing.Dict[int, Variant] = {}
        self.founding_variant = self._register(None, founding_infection_rate, discovery_tick)

    def _register(self, parent_id, infection_rate, discovery_tick):
        with self._lock:
            variant = Variant(
                id=self._next_id,
                parent_id=parent_id,
                infection_rate=infection_rate,
                discovery_tick=discovery_tick,
            )
            self.variants[variant.id] = variant
            self._next_id += 1
        return variant

    def spawn(self, parent_id, rng, discovery_tick, rate_factor_range=(0.5, 1.5)):
        """
        Registers a new variant descending from `parent_id`. Its infection rate is the parent's
        scaled by a factor drawn uniformly from `rate_factor_range`. The rate may exceed 1; the
        probability of transmission is clipped when it is computed.

        Args:
            parent_id (int): variant the new one mutated from
            rng (np.random.RandomState): Random number generator
            discovery_tick (int): current tick
            rate_factor_range (tuple): bounds of the rate scaling factor

        Returns:
            Variant: the new variant
        """
        parent = self.variants[parent_id]
        infection_rate = parent.infection_rate * rng.uniform(*rate_factor_range)
        variant = self._register(parent_id, infection_rate, discovery_tick)
        logging.debug(f"variant {variant.id} emerged from {parent_id} at tick {discovery_tick} "
                      f"with infection rate {infection_rate:.4f}")
        return variant

    def rate(self, variant_id):
        return self.variants[variant_id].infection_rate

    @property
    def ids(self):
        return list(self.variants.keys())

    def lineage(self, variant_id):
        """
        Args:
            variant_id (int): any registered variant

        Returns:
            list: ids from `variant_id` back to the founding variant
        """
        lineage = [variant_id]
        while self.variants[lineage[-1]].parent_id is not None:
            lineage.append(self.variants[lineage[-1]].parent_id)
        return lineage

    def __len__(self):
        return len(self.variants)

    def __contains__(self, variant_id):
        return variant_id in self.variants

    def __iter__(self):
        return iter(self.variants.values())


def mutate(humans, registry, rng, mutation_probability, tick, rate_factor_range=(0.5, 1.5)):
    """
    Each infected human, in the order of `humans`, mutates their strain with probability
    `mutation_probability`. The new variant is registered and the human switches to it right away;
    their infection timer and duration are unaffected.

    Args:
        humans (list): population
        registry (VariantRegistry): where new variants are registered
        rng (np.random.RandomState): Random number generator
        mutation_probability (float): daily probability that an infected human's strain mutates
        tick (int): current tick, recorded as the discovery tick of new variants
        rate_factor_range (tuple): bounds of the rate scaling factor

    Returns:
        list: `(human, variant)` pairs for every mutation that happened
    """
    if mutation_probability <= 0:
        return []

    infected = [human for human in humans if human.is_infected]
    draws = rng.random_sample(len(infected))
    mutations = []
    for human, draw in zip(infected, draws):
        if draw < mutation_probability:
            variant = registry.spawn(human.current_variant, rng, tick, rate_factor_range)
            mutations.append((human, variant))

    for human, variant in mutations:
        human.switch_variant(variant.id)

    return mutations


def count_active_infections(humans):
    """
    Args:
        humans (list): population

    Returns:
        Counter: number of currently infected humans per variant
    """
    return Counter(human.current_variant for human in humans if human.is_infected)


def select_vaccine_target(humans, current_target):
    """
    The vaccine target is the circulating variant with the most active infections,
    ties going to the lowest id. It does not change while nothing circulates.

    Args:
        humans (list): population
        current_target (int): current vaccine target

    Returns:
        int: vaccine target for the doses administered from now on
    """
    counts = count_active_infections(humans)
    if not counts:
        return current_target
    return min(counts, key=lambda variant_id: (-counts[variant_id], variant_id))
