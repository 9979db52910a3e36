"""
Contains classes for regularly saving relevant logs to the disk or printing output to the console at regular intervals.
"""
import time

from epicitysim.utils.constants import SECONDS_PER_DAY
from epicitysim.utils.utils import log


class SimulationMonitor(object):
    """
    Logs information at regular intervals to the console as well as to the disk.
    Exports the tracked data at regular intervals.

    Args:
        frequency (float): regular simulation-intervals at which the information needs to be printed. Defaults to 1 simulation day.
        logfile (str): filepath where the console output will be logged. Prints to the console only if None.
        outfile (str): filepath where the tracked data is exported. Nothing is exported if None.
        conf (dict): yaml configuration of the experiment
    """

    def __init__(self, frequency=SECONDS_PER_DAY, logfile=None, outfile=None, conf={}):
        self.frequency = frequency
        self.logfile = logfile
        self.outfile = outfile
        self.conf = conf
        self.legend = """
#################### SIMULATION PROGRESS ##################
Legend -
* [ S/I/R ]: Number of susceptible, infected and recovered people.
* [ Q ]: Number of people isolated.
* [ V ]: Percentage of the population vaccinated.
* [ Var ]: Number of variants ever observed / currently circulating.
* [ VT ]: Variant targeted by the doses administered today.
        """
        self.print_legend = True

    def run(self, env, city):
        """
        Infinite loop yields events at regular intervals. It logs and saves information to `self.logfile`.

        Args:
            env (epicitysim.utils.env.Env): Shared environment
            city (epicitysim.locations.city.City): City being monitored

        Yields:
            simpy.Environment.Timeout: Event that resumes after some specified duration.
        """
        process_start = time.time()
        while True:
            if self.print_legend:
                log(self.legend, self.logfile)
                self.print_legend = False

            tracker = city.tracker
            nd = str(len(str(len(city.humans))))
            day = "Day {:2}:".format(env.day)
            proc_time = "{:8}".format("({}s)".format(int(time.time() - process_start)))
            variant_counts = tracker.variant_case_counts()
            circulating = sum(1 for count in variant_counts.values() if count > 0)

            SIR = (f"| S:{tracker.susceptible_count():<{nd}} I:{tracker.infected_count():<{nd}} "
                   f"R:{tracker.recovered_count():<{nd}}")
            interventions = f"| Q:{tracker.isolated_count():<{nd}} V:{tracker.vaccination_percentage():5.2f}%"
            variants = f"| Var:{len(variant_counts)}/{circulating} VT:{city.vaccine_target}"
            log(f"{proc_time} {day} {env.timestamp.date()} {SIR} {interventions} {variants}", self.logfile)

            tracker.export(self.outfile)
            yield env.timeout(self.frequency)
