"""
Daily vaccination of a fraction of the eligible population.
"""
import logging

from epicitysim.utils.utils import n_to_sample, sample_without_replacement


class VaccinationPolicy(object):
    """
    Every day, a fraction `VACCINATION_RATE` of the humans who are neither vaccinated, infected nor
    isolated receives a dose formulated against the current vaccine target.
    """

    def __init__(self, conf):
        """
        Args:
            conf (dict): yaml configuration of the experiment
        """
        self.vaccination_rate = conf['VACCINATION_RATE']

    @staticmethod
    def is_eligible(human):
        return not (human.is_vaccinated or human.is_infected or human.is_isolated)

    def select(self, humans, rng):
        """
        Args:
            humans (list): population
            rng (np.random.RandomState): Random number generator

        Returns:
            list: humans to vaccinate today
        """
        eligible = [human for human in humans if self.is_eligible(human)]
        selected = sample_without_replacement(eligible, n_to_sample(self.vaccination_rate, len(eligible)), rng)
        logging.debug(f"Vaccinating {len(selected)} out of {len(eligible)} eligible humans")
        return selected

    @staticmethod
    def apply(humans, timestamp, vaccine_target):
        """
        Args:
            humans (list): output of `select`
            timestamp (datetime.datetime): time of vaccination
            vaccine_target (int): variant the doses are formulated against
        """
        for human in humans:
            human.vaccinate(timestamp, vaccine_target)
