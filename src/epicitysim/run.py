"""
Main entrypoint for the execution of simulations.

The experimental settings of the simulations are managed via [Hydra](https://github.com/facebookresearch/hydra).
The root configuration file is located at `src/epicitysim/configs/simulation/config.yaml`. All settings
provided via commandline will override the ones loaded through the configuration files.
"""
import datetime
import logging
import os
import typing
from pathlib import Path

import hydra
import numpy as np
from omegaconf import DictConfig

from epicitysim.locations.city import City
from epicitysim.locations.geometry import GridCityGeometry
from epicitysim.log.monitors import SimulationMonitor
from epicitysim.utils.constants import SECONDS_PER_DAY, SECONDS_PER_HOUR
from epicitysim.utils.demographics import get_n_families
from epicitysim.utils.env import Env
from epicitysim.utils.utils import dump_conf, log, parse_configuration


@hydra.main(config_path="configs/simulation", config_name="config", version_base=None)
def main(conf: DictConfig):
    """
    Enables command line execution of the simulator.

    Args:
        conf (DictConfig): yaml configuration file
    """

    # -------------------------------------------------
    # -----  Load the experimental configuration  -----
    # -------------------------------------------------
    conf = parse_configuration(conf)

    # -------------------------------------
    # -----  Create Output Directory  -----
    # -------------------------------------
    if conf["outdir"] is None:
        conf["outdir"] = str(Path(__file__).parent / "output")

    timenow = datetime.datetime.now().strftime("%Y%m%d-%H%M%S")
    conf["outdir"] = "{}/sim_families-{}_days-{}_init-{}_seed-{}_{}".format(
        conf["outdir"],
        get_n_families(conf),
        conf["simulation_days"],
        conf["init_fraction_sick"],
        conf["seed"],
        timenow,
    )

    if Path(conf["outdir"]).exists():
        out_path = Path(conf["outdir"])
        out_idx = 1
        while (out_path.parent / (out_path.name + f"_{out_idx}")).exists():
            out_idx += 1
        conf["outdir"] = str(out_path.parent / (out_path.name + f"_{out_idx}"))

    os.makedirs(conf["outdir"])
    logfile = f"{conf['outdir']}/log_{timenow}.txt"
    outfile = os.path.join(conf["outdir"], "tracker_data.json")

    log(f"seed: {conf['seed']}", logfile)
    log(f"INFECTION_PROBABILITY = {conf['INFECTION_PROBABILITY']}", logfile)
    log(f"TEST_PERCENTAGE = {conf['TEST_PERCENTAGE']} | ISOLATION_DURATION = {conf['ISOLATION_DURATION']}", logfile)
    log(f"VACCINATION_RATE = {conf['VACCINATION_RATE']} | MUTATION_PROBABILITY = {conf['MUTATION_PROBABILITY']}", logfile)

    # ----------------------------
    # -----  Run Simulation  -----
    # ----------------------------
    city = simulate(
        n_families=get_n_families(conf),
        init_fraction_sick=conf["init_fraction_sick"],
        start_time=conf["start_time"],
        simulation_days=conf["simulation_days"],
        outfile=outfile,
        seed=conf["seed"],
        conf=conf,
        logfile=logfile,
    )

    # write the full configuration file along with git commit hash
    dump_conf(city.conf, "{}/full_configuration.yaml".format(city.conf["outdir"]))

    # log the simulation statistics
    city.tracker.write_metrics()
    city.tracker.export(outfile)
    return conf


def simulate(
    n_families: int = 100,
    init_fraction_sick: float = 0.005,
    start_time: datetime.datetime = datetime.datetime(2020, 2, 28, 0, 0),
    simulation_days: int = 30,
    outfile: typing.Optional[typing.AnyStr] = None,
    seed: int = 0,
    conf: typing.Optional[typing.Dict] = None,
    logfile: str = None,
    geometry=None,
):
    """
    Runs a simulation.

    Args:
        n_families (int, optional): number of households in the simulation. Defaults to 100.
        init_fraction_sick (float, optional): population fraction initially infected with the founding variant. Defaults to 0.005.
        start_time (datetime, optional): Initial calendar date. Defaults to February 28, 2020.
        simulation_days (int, optional): Number of days to run the simulation. Defaults to 30.
        outfile (str, optional): json file where the tracked data is exported every day. Defaults to None.
        seed (int, optional): seed of the random number generator. Defaults to 0.
        conf (dict): parsed yaml configuration of the experiment.
        logfile (str): filepath where the console output and final tracked metrics will be logged. Prints to the console only if None.
        geometry (GeometryProvider, optional): buildings and road network. A `GridCityGeometry` is built from `conf` if None.

    Returns:
        city (epicitysim.locations.city.City): The city object referencing people, households, and the tracker post-simulation.

    Raises:
        ConfigurationError: if `conf` holds invalid values
        PopulationGenerationError: if the population cannot be generated
    """
    if conf is None:
        conf = {}

    conf["n_families"] = n_families
    conf["init_fraction_sick"] = init_fraction_sick
    conf["start_time"] = start_time
    conf["simulation_days"] = simulation_days
    conf["seed"] = seed
    conf["logfile"] = logfile
    conf = parse_configuration(conf)

    logging.root.setLevel(getattr(logging, conf.get("LOGGING_LEVEL", "WARNING").upper()))

    rng = np.random.RandomState(seed)
    env = Env(start_time)
    if geometry is None:
        geometry = GridCityGeometry.from_conf(conf, np.random.RandomState(rng.randint(2 ** 16)))

    city = City(env, n_families, init_fraction_sick, rng, geometry, conf, logfile)
    monitor = SimulationMonitor(frequency=SECONDS_PER_DAY, logfile=logfile, outfile=outfile, conf=conf)

    # Initiate city process, which runs every hour
    env.process(city.run(SECONDS_PER_HOUR, outfile))
    env.process(monitor.run(env, city=city))

    # Run simulation until termination
    env.run(until=env.ts_initial + simulation_days * SECONDS_PER_DAY)

    return city


if __name__ == "__main__":
    main()
