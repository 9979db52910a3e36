"""
Daily random testing of the population, isolation of positive cases along with their whole
household, and release from isolation once it has lasted long enough.
"""
import logging
from collections import namedtuple

from epicitysim.utils.constants import NEGATIVE_TEST_RESULT, POSITIVE_TEST_RESULT
from epicitysim.utils.utils import n_to_sample, sample_without_replacement

TestResult = namedtuple("TestResult", ["human", "result"])
TestResult.__test__ = False  # not a pytest test class


class TestingPolicy(object):
    """
    Every day, a fraction `TEST_PERCENTAGE` of the humans who are not isolated is tested.
    A positive test isolates the human and, unconditionally, every member of their household.
    """
    __test__ = False

    def __init__(self, conf):
        """
        Args:
            conf (dict): yaml configuration of the experiment
        """
        self.conf = conf
        self.test_percentage = conf['TEST_PERCENTAGE']
        self.false_negative_rate = conf['TEST_FALSE_NEGATIVE_RATE']
        self.isolation_duration = conf['ISOLATION_DURATION']

    def administer_tests(self, humans, rng):
        """
        Draws `max(1, round(TEST_PERCENTAGE * n))` of the `n` non-isolated humans without replacement
        and tests them. An infected human tests negative with probability `TEST_FALSE_NEGATIVE_RATE`.

        Args:
            humans (list): population
            rng (np.random.RandomState): Random number generator

        Returns:
            list: `TestResult` of every tested human
        """
        candidates = [human for human in humans if not human.is_isolated]
        tested = sample_without_replacement(candidates, n_to_sample(self.test_percentage, len(candidates)), rng)

        results = []
        for human in tested:
            result = NEGATIVE_TEST_RESULT
            if human.is_infected:
                result = POSITIVE_TEST_RESULT
                if self.false_negative_rate > 0 and rng.random_sample() < self.false_negative_rate:
                    result = NEGATIVE_TEST_RESULT
            results.append(TestResult(human, result))

        logging.debug(f"Tested {len(results)} out of {len(candidates)} humans. "
                      f"{sum(r.result == POSITIVE_TEST_RESULT for r in results)} were positive.")
        return results

    @staticmethod
    def compute_isolations(results):
        """
        Args:
            results (list): output of `administer_tests`

        Returns:
            list: humans to isolate, i.e. the positive cases and all their household members
        """
        to_isolate = {}
        for test in results:
            if test.result != POSITIVE_TEST_RESULT:
                continue
            for human in test.human.household.residents:
                to_isolate.setdefault(human.id, human)
        return list(to_isolate.values())

    @staticmethod
    def apply_isolations(humans, timestamp):
        for human in humans:
            human.isolate(timestamp)

    def compute_releases(self, humans, timestamp):
        """
        Isolation ends after `ISOLATION_DURATION` days whether or not the human is still infected.

        Args:
            humans (list): population
            timestamp (datetime.datetime): current time

        Returns:
            list: isolated humans to release now
        """
        return [human for human in humans if human.should_be_released_by(timestamp, self.isolation_duration)]

    @staticmethod
    def apply_releases(humans):
        for human in humans:
            human.release_from_isolation()
