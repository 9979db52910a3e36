"""
Functions to generate the population of the city: households living in residential buildings,
adults working in work buildings and children going to the school.
"""
import numpy as np

from epicitysim.exceptions import PopulationGenerationError
from epicitysim.human import Human
from epicitysim.locations.location import Household
from epicitysim.utils.constants import ADULT, CHILD
from epicitysim.utils.utils import log, sample_without_replacement


def get_n_families(conf):
    """
    Number of families to generate. `n_families` takes precedence; otherwise it is derived from
    `n_people` and the mean family size.

    Args:
        conf (dict): yaml configuration of the experiment

    Returns:
        int: number of families
    """
    if conf.get('n_families') is not None:
        return int(conf['n_families'])
    if not conf.get('n_people'):
        return 0
    return max(1, int(round(conf['n_people'] / np.mean(conf['FAMILY_SIZES']))))


def _sample_family_composition(rng, family_sizes, max_children):
    size = family_sizes[rng.randint(len(family_sizes))]
    n_children = rng.randint(0, min(max_children, size - 2) + 1)  # at least 2 adults
    return size - n_children, n_children


def generate_population(env, city, geometry, n_families, rng, conf):
    """
    Creates `n_families` households and their residents. Everyone starts at home, susceptible,
    not isolated and not vaccinated.

    Args:
        env (epicitysim.utils.env.Env): Shared environment
        city (epicitysim.locations.city.City): City the humans live in
        geometry (epicitysim.locations.geometry.GeometryProvider): buildings of the city
        n_families (int): number of households to create
        rng (np.random.RandomState): Random number generator
        conf (dict): yaml configuration of the experiment

    Returns:
        (list, list): humans sorted by id, households sorted by id

    Raises:
        PopulationGenerationError: if `n_families` is not positive, or there is no residential building or no school
    """
    if n_families <= 0:
        raise PopulationGenerationError(f"At least one family is required, got {n_families}")

    residential_buildings = geometry.residential_buildings()
    if not residential_buildings:
        raise PopulationGenerationError("There is no residential building to house the families")

    work_buildings = geometry.work_buildings()
    if not work_buildings:
        raise PopulationGenerationError("There is no work building for the adults")

    school = geometry.school_building()
    if school is None:
        raise PopulationGenerationError("There is no school for the children")

    family_sizes = list(conf['FAMILY_SIZES'])
    max_children = conf['MAX_CHILDREN_PER_FAMILY']
    speed_range = tuple(conf['SPEED_RANGE'])

    humans, households = [], []
    for family_id in range(n_families):
        n_adults, n_children = _sample_family_composition(rng, family_sizes, max_children)
        building = residential_buildings[rng.randint(len(residential_buildings))]
        household = Household(
            id=family_id,
            building=building,
            location=geometry.random_point_in(building, rng),
            n_adults=n_adults,
            n_children=n_children,
        )
        households.append(household)

        for age_category in [ADULT] * n_adults + [CHILD] * n_children:
            if age_category == ADULT:
                workplace = geometry.random_point_in(work_buildings[rng.randint(len(work_buildings))], rng)
            else:
                workplace = geometry.random_point_in(school, rng)

            human = Human(
                env=env,
                city=city,
                id=len(humans),
                age_category=age_category,
                household=household,
                workplace=workplace,
                speed=rng.uniform(*speed_range),
                conf=conf,
            )
            household.add_resident(human)
            humans.append(human)

    log(f"Generated {len(humans)} humans in {len(households)} households", city.logfile if city is not None else None)
    return humans, households


def seed_infections(humans, init_fraction_sick, variant, timestamp, rng, sample_duration):
    """
    Infects a fraction of the population with `variant`. At least one human is infected
    unless `init_fraction_sick` is 0.

    Args:
        humans (list): population
        init_fraction_sick (float): fraction of the population to infect
        variant (int): variant the initial cases carry
        timestamp (datetime.datetime): time of infection, usually the start of the simulation
        rng (np.random.RandomState): Random number generator
        sample_duration (callable): draws the number of days an infection lasts from `rng`

    Returns:
        list: the infected humans
    """
    if init_fraction_sick <= 0 or not humans:
        return []

    n_infected = min(len(humans), max(1, int(round(init_fraction_sick * len(humans)))))
    seeds = sorted(sample_without_replacement(humans, n_infected, rng), key=lambda h: h.id)
    for human in seeds:
        human.infect(variant, timestamp, sample_duration(rng))
    return seeds
