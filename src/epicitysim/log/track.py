"""
Contains a class to track several simulation metrics.
It is initialized as an attribute of the city and called from the city's step functions.
"""
import logging
import typing
from collections import Counter, defaultdict

import numpy as np

from epicitysim.utils.constants import FAMILY_CONTACT, INITIAL_SEEDING, POSITIVE_TEST_RESULT, PROXIMITY_CONTACT
from epicitysim.utils.utils import dump_json, log

if typing.TYPE_CHECKING:
    from epicitysim.human import Human


def print_dict(title, dic, logfile=None):
    ml = max([len(str(k)) for k in dic.keys()] + [0]) + 2
    aligned = "{:" + str(ml) + "}"
    log(
        "{}:\n    ".format(title) +
        "\n    ".join((aligned + ": {}").format(str(k), v) for k, v in dic.items()),
        logfile
    )


class Tracker(object):
    """
    Aggregate counters of the simulation. The counts are pulled from the city's population on demand and
    a snapshot of them is recorded every tick. Per-day totals of the daily policies are kept as well.
    """

    def __init__(self, env, city, conf, logfile=None):
        """
        Args:
            env (simpy.Environment): Keeps track of events and their schedule
            city (epicitysim.locations.city.City): City whose population is tracked
            conf (dict): yaml configuration of the experiment
            logfile (str): filepath where the console output and final tracked metrics will be logged.
        """
        self.env = env
        self.city = city
        self.conf = conf
        self.logfile = logfile

        # per tick
        self.timeseries = defaultdict(list)

        # per day
        self.infection_channels = Counter()
        self.new_infections_per_day = defaultdict(int)
        self.recoveries_per_day = defaultdict(int)
        self.tests_per_day = defaultdict(int)
        self.positive_tests_per_day = defaultdict(int)
        self.isolations_per_day = defaultdict(int)
        self.releases_per_day = defaultdict(int)
        self.vaccinations_per_day = defaultdict(int)
        self.new_variants_per_day = defaultdict(int)
        self.vaccine_target_per_day = {}
        self.routing_failures = 0

        self.n_people = 0
        self.n_households = 0
        self.n_infected_init = 0

        self._export_pending = False
        self._outfile = None

    def initialize(self):
        self.n_people = len(self.city.humans)
        self.n_households = len(self.city.households)

    # --------------------------
    # -----  Pull counters -----
    # --------------------------
    def infected_count(self):
        return sum(h.is_infected for h in self.city.humans)

    def isolated_count(self):
        return sum(h.is_isolated for h in self.city.humans)

    def vaccinated_count(self):
        return sum(h.is_vaccinated for h in self.city.humans)

    def susceptible_count(self):
        return sum(h.is_susceptible for h in self.city.humans)

    def recovered_count(self):
        return sum(h.is_recovered for h in self.city.humans)

    def variant_case_counts(self):
        """
        Returns:
            dict: number of active infections per registered variant, 0 for variants that died out
        """
        counts = Counter(h.current_variant for h in self.city.humans if h.is_infected)
        return {variant_id: counts.get(variant_id, 0) for variant_id in self.city.variants.ids}

    def vaccination_percentage(self):
        if not self.city.humans:
            return 0.0
        return 100.0 * self.vaccinated_count() / len(self.city.humans)

    # ---------------------------
    # -----  Event tracking -----
    # ---------------------------
    @property
    def today(self):
        return self.env.day

    def track_seed_infections(self, humans: typing.List["Human"]):
        self.n_infected_init = len(humans)
        self.infection_channels[INITIAL_SEEDING] += len(humans)
        log(f"Seeded {len(humans)} infections: {[h.name for h in humans][:10]}", self.logfile)

    def track_infections(self, infections):
        for infection in infections:
            self.infection_channels[infection.channel] += 1
        self.new_infections_per_day[self.today] += len(infections)

    def track_recoveries(self, humans):
        self.recoveries_per_day[self.today] += len(humans)

    def track_routing_failure(self, human):
        self.routing_failures += 1

    def track_tests(self, results):
        self.tests_per_day[self.today] += len(results)
        self.positive_tests_per_day[self.today] += sum(r.result == POSITIVE_TEST_RESULT for r in results)

    def track_isolations(self, humans):
        self.isolations_per_day[self.today] += sum(not h.is_isolated for h in humans)

    def track_releases(self, humans):
        self.releases_per_day[self.today] += len(humans)

    def track_vaccinations(self, humans):
        self.vaccinations_per_day[self.today] += len(humans)

    def track_mutations(self, mutations):
        self.new_variants_per_day[self.today] += len(mutations)
        for human, variant in mutations:
            logging.debug(f"{human} now carries variant {variant.id} (parent {variant.parent_id})")

    def track_vaccine_target(self, vaccine_target):
        self.vaccine_target_per_day[self.today] = vaccine_target

    # ------------------------
    # -----  Snapshotting -----
    # ------------------------
    def snapshot(self):
        """
        Records the counters for the current tick. A failed export is retried here.
        """
        self.timeseries['tick'].append(self.env.tick)
        self.timeseries['timestamp'].append(self.env.timestamp)
        self.timeseries['infected'].append(self.infected_count())
        self.timeseries['isolated'].append(self.isolated_count())
        self.timeseries['vaccinated'].append(self.vaccinated_count())
        self.timeseries['variant_case_counts'].append(self.variant_case_counts())
        self.timeseries['n_variants'].append(len(self.city.variants))
        self.timeseries['vaccine_target'].append(self.city.vaccine_target)

        if self._export_pending:
            self.export(self._outfile)

    def get_data(self):
        """
        Returns:
            dict: every tracked metric
        """
        return {
            "n_people": self.n_people,
            "n_households": self.n_households,
            "n_infected_init": self.n_infected_init,
            "timeseries": dict(self.timeseries),
            "infection_channels": dict(self.infection_channels),
            "new_infections_per_day": dict(self.new_infections_per_day),
            "recoveries_per_day": dict(self.recoveries_per_day),
            "tests_per_day": dict(self.tests_per_day),
            "positive_tests_per_day": dict(self.positive_tests_per_day),
            "isolations_per_day": dict(self.isolations_per_day),
            "releases_per_day": dict(self.releases_per_day),
            "vaccinations_per_day": dict(self.vaccinations_per_day),
            "new_variants_per_day": dict(self.new_variants_per_day),
            "vaccine_target_per_day": dict(self.vaccine_target_per_day),
            "routing_failures": self.routing_failures,
            "variants": [
                {"id": v.id, "parent_id": v.parent_id, "infection_rate": v.infection_rate, "discovery_tick": v.discovery_tick}
                for v in self.city.variants
            ],
        }

    def export(self, outfile):
        """
        Writes the tracked metrics to `outfile` as json. A failure is logged and the export is retried
        at the next tick; the simulation state is never affected.

        Args:
            outfile (str): destination file, nothing is written if None

        Returns:
            bool: True if the data was written
        """
        if outfile is None:
            return False

        self._outfile = outfile
        try:
            dump_json(self.get_data(), outfile)
        except OSError as e:
            logging.warning(f"Could not export tracker data to {outfile} ({e}). Retrying at the next tick.")
            self._export_pending = True
            return False

        self._export_pending = False
        return True

    def write_metrics(self):
        """
        Logs a summary of the run.
        """
        log("\n######## SIMULATION SUMMARY #########", self.logfile)
        total_infections = sum(self.infection_channels.values())
        log(f"Population: {self.n_people} humans in {self.n_households} households", self.logfile)
        log(f"Initial infections: {self.n_infected_init}", self.logfile)
        log(f"Total infections: {total_infections}", self.logfile)
        if total_infections:
            log(f"Family infections: {self.infection_channels[FAMILY_CONTACT] / total_infections:3.2%}  "
                f"Proximity infections: {self.infection_channels[PROXIMITY_CONTACT] / total_infections:3.2%}",
                self.logfile)

        n_tests = sum(self.tests_per_day.values())
        n_positive = sum(self.positive_tests_per_day.values())
        log(f"Tests: {n_tests} (positive: {n_positive})", self.logfile)
        log(f"Isolations: {sum(self.isolations_per_day.values())}", self.logfile)
        log(f"Vaccinated: {self.vaccinated_count()} ({self.vaccination_percentage():3.2f}%)", self.logfile)
        log(f"Routing failures: {self.routing_failures}", self.logfile)

        if self.timeseries['infected']:
            peak = int(np.argmax(self.timeseries['infected']))
            log(f"Peak infections: {self.timeseries['infected'][peak]} at {self.timeseries['timestamp'][peak]}", self.logfile)

        print_dict("Variants (active cases)", self.variant_case_counts(), self.logfile)
