import simpy
import datetime

from epicitysim.utils.constants import SECONDS_PER_HOUR, SECONDS_PER_DAY, HOURS_PER_DAY


class Env(simpy.Environment):
    """
    Custom simpy.Environment whose clock counts seconds since the epoch and
    which knows about hourly ticks and simulated days.
    """

    def __init__(self, initial_timestamp):
        """
        Args:
            initial_timestamp (datetime.datetime): The environment's initial timestamp.
                It is truncated to midnight so that tick 0 is hour 0 of day 0.
        """
        self.initial_timestamp = datetime.datetime.combine(initial_timestamp.date(),
                                                           datetime.time())
        self.ts_initial = int(self.initial_timestamp.timestamp())
        super().__init__(self.ts_initial)

    @property
    def timestamp(self):
        """
        Returns:
            datetime.datetime: Current date.
        """
        # timedelta ignores Daylight Saving Time, which is what we want here
        return self.initial_timestamp + datetime.timedelta(
            seconds=self.now-self.ts_initial)

    @property
    def tick(self):
        """
        Returns:
            int: number of whole simulated hours elapsed since the start
        """
        return int((self.now - self.ts_initial) // SECONDS_PER_HOUR)

    @property
    def day(self):
        """
        Returns:
            int: number of whole simulated days elapsed since the start
        """
        return int((self.now - self.ts_initial) // SECONDS_PER_DAY)

    def hour_of_day(self):
        """
        Returns:
            int: Current timestamp hour
        """
        return self.timestamp.hour

    def is_end_of_day(self):
        """
        The daily policies run on the last tick of every simulated day.

        Returns:
            bool: True if the current tick closes a 24-hour period
        """
        return (self.tick + 1) % HOURS_PER_DAY == 0

    def time_of_day(self):
        """
        Time of day in iso format
        datetime(2020, 2, 28, 0, 0) => '2020-02-28T00:00:00'

        Returns:
            str: iso string representing current timestamp
        """
        return self.timestamp.isoformat()
