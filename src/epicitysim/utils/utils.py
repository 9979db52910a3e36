"""
Utility functions perform generic operations.
"""
import copy
import datetime
import json
import subprocess
import typing
from pathlib import Path

import numpy as np
import yaml
from omegaconf import DictConfig, OmegaConf

from epicitysim.exceptions import ConfigurationError


def log(str, logfile=None, timestamp=False):
    """
    Prints `str` to the console and appends it to `logfile` if there is one.

    Args:
        str (str): message to log
        logfile (str, optional): filepath where the message is also written. Defaults to None.
        timestamp (bool, optional): prefix the message with the wall-clock time. Defaults to False.
    """
    if timestamp:
        str = f"[{datetime.datetime.now()}] {str}"

    print(str)
    if logfile is not None:
        with open(logfile, mode='a') as f:
            print(str, file=f)


def n_to_sample(rate, n_candidates):
    """
    Number of candidates a daily policy draws: `max(1, round(rate * n_candidates))`.
    A rate of exactly 0 disables the policy and there is nothing to draw from an empty pool.

    Args:
        rate (float): fraction of the candidates to draw
        n_candidates (int): size of the pool

    Returns:
        int: number of candidates to draw, never more than `n_candidates`
    """
    if rate <= 0 or n_candidates == 0:
        return 0
    return min(n_candidates, max(1, int(round(rate * n_candidates))))


def sample_without_replacement(a_list, k, rng):
    """
    Draws `k` elements of `a_list` without replacement with a partial Fisher-Yates shuffle.
    Exactly `min(k, len(a_list))` integers are drawn from `rng`, so the consumption of
    the random stream only depends on the sizes involved.

    Args:
        a_list (list): candidates. It is not modified.
        k (int): number of elements to draw
        rng (np.random.RandomState): Random number generator

    Returns:
        list: the `k` drawn elements in the order they were drawn
    """
    pool = list(a_list)
    n = len(pool)
    k = min(k, n)
    for i in range(k):
        j = rng.randint(i, n)
        pool[i], pool[j] = pool[j], pool[i]
    return pool[:k]


def _json_serialize(o):
    """
    Fallback serializer for `json.dump` used when exporting tracked data.

    Args:
        o (object): object `json` does not know about

    Returns:
        str | int | float | list: json encodable value
    """
    if isinstance(o, (datetime.datetime, datetime.date)):
        return o.__str__()
    if isinstance(o, np.integer):
        return int(o)
    if isinstance(o, np.floating):
        return float(o)
    if isinstance(o, np.ndarray):
        return o.tolist()
    raise TypeError(f"Object of type {type(o).__name__} is not JSON serializable")


def get_git_revision_hash():
    """Get current git hash the code is run from

    Returns:
        str: git hash
    """
    return subprocess.check_output(["git", "rev-parse", "HEAD"], stderr=subprocess.DEVNULL).decode().strip()


def _check_probability(conf, key):
    value = conf[key]
    if not 0 <= value <= 1:
        raise ConfigurationError(f"{key} must be a probability in [0, 1], got {value}")


def _check_positive(conf, key):
    value = conf[key]
    if not value > 0:
        raise ConfigurationError(f"{key} must be > 0, got {value}")


def _check_range(conf, key, lower=0, upper=None):
    value = conf[key]
    if len(value) != 2 or value[0] > value[1]:
        raise ConfigurationError(f"{key} must be an ordered pair [low, high], got {value}")
    if value[0] < lower or (upper is not None and value[1] > upper):
        raise ConfigurationError(f"{key} must lie within [{lower}, {upper}], got {value}")


PROBABILITY_KEYS = [
    "init_fraction_sick",
    "INFECTION_PROBABILITY",
    "TEST_PERCENTAGE",
    "TEST_FALSE_NEGATIVE_RATE",
    "VACCINATION_RATE",
    "MUTATION_PROBABILITY",
]

POSITIVE_KEYS = [
    "simulation_days",
    "ISOLATION_DURATION",
    "PROXIMITY_RADIUS",
    "SNAP_THRESHOLD",
    "FAMILY_CONTACT_MULTIPLIER",
]


def validate_configuration(conf):
    """
    Checks the bounds of every run parameter.

    Args:
        conf (dict): parsed configuration

    Raises:
        ConfigurationError: if a parameter is missing or out of its bounds
    """
    missing = [key for key in PROBABILITY_KEYS + POSITIVE_KEYS + ["BASE_VACCINE_PROTECTION"] if conf.get(key) is None]
    if missing:
        raise ConfigurationError(f"Missing configuration values: {', '.join(missing)}")

    for key in PROBABILITY_KEYS:
        _check_probability(conf, key)

    for key in POSITIVE_KEYS:
        _check_positive(conf, key)

    if not conf["BASE_VACCINE_PROTECTION"] > 1:
        raise ConfigurationError(f"BASE_VACCINE_PROTECTION must be > 1, got {conf['BASE_VACCINE_PROTECTION']}")

    n_families, n_people = conf.get("n_families"), conf.get("n_people")
    for key, value in (("n_families", n_families), ("n_people", n_people)):
        if value is not None and (int(value) != value or value < 0):
            raise ConfigurationError(f"{key} must be a non-negative integer, got {value}")
    if n_families is None and n_people is None:
        raise ConfigurationError("One of n_families or n_people must be given")

    _check_range(conf, "INFECTION_DURATION_RANGE")
    _check_range(conf, "SPEED_RANGE")
    _check_range(conf, "MUTATION_RATE_FACTOR_RANGE")

    if not 0 <= conf["WORK_START_HOUR"] < conf["WORK_END_HOUR"] <= 24:
        raise ConfigurationError(
            f"Working hours must satisfy 0 <= WORK_START_HOUR < WORK_END_HOUR <= 24, "
            f"got [{conf['WORK_START_HOUR']}, {conf['WORK_END_HOUR']})"
        )

    family_sizes = conf["FAMILY_SIZES"]
    if not family_sizes or min(family_sizes) < 2:
        raise ConfigurationError(f"FAMILY_SIZES must hold sizes >= 2, got {family_sizes}")
    if conf["MAX_CHILDREN_PER_FAMILY"] < 0:
        raise ConfigurationError("MAX_CHILDREN_PER_FAMILY must be >= 0")


def parse_configuration(conf):
    """
    Transforms an Omegaconf object to native python dict, parsing specific fields like
    `start_time` from string, and validates every bound.

    ANY key-specific parsing should have its inverse in epicitysim.utils.utils.dumps_conf()

    Args:
        conf (omegaconf.OmegaConf | dict): Hydra-loaded configuration

    Returns:
        dict: parsed configuration to use in experiment

    Raises:
        ConfigurationError: if the configuration is of an unknown type or holds invalid values
    """
    if isinstance(conf, (OmegaConf, DictConfig)):
        conf = OmegaConf.to_container(conf, resolve=True)
    elif not isinstance(conf, dict):
        raise ConfigurationError("Unknown configuration type {}".format(type(conf)))

    if isinstance(conf.get("start_time"), str):
        try:
            conf["start_time"] = datetime.datetime.strptime(
                conf["start_time"], "%Y-%m-%d %H:%M:%S"
            )
        except ValueError as e:
            raise ConfigurationError(f"start_time must be formatted as %Y-%m-%d %H:%M:%S: {e}") from e

    validate_configuration(conf)

    if "GIT_COMMIT_HASH" not in conf:
        try:
            conf["GIT_COMMIT_HASH"] = get_git_revision_hash()
        except (subprocess.CalledProcessError, OSError):
            conf["GIT_COMMIT_HASH"] = "NO_GIT"
    return conf


def dumps_conf(
        conf: dict,
):
    """
    Perform a deep copy of the configuration dictionary, preprocess the elements into strings
    to reverse the preprocessing performed by `parse_configuration`, returning the resulting dict.

    Args:
        conf (dict): configuration dictionary to be written in a file
    """
    copy_conf = copy.deepcopy(conf)

    if isinstance(copy_conf.get("start_time"), datetime.datetime):
        copy_conf["start_time"] = copy_conf["start_time"].strftime("%Y-%m-%d %H:%M:%S")

    return copy_conf


def dump_conf(
        conf: dict,
        path: typing.Union[str, Path],
):
    """
    Perform a deep copy of the configuration dictionary, preprocess the elements into strings
    to reverse the preprocessing performed by `parse_configuration` and then, dumps the content into a `.yaml` file.

    Args:
        conf (dict): configuration dictionary to be written in a file
        path (str | Path): `.yaml` file where the configuration is written
    """
    stringified_conf = dumps_conf(conf)
    path = Path(path).resolve()
    path.parent.mkdir(parents=True, exist_ok=True)
    if path.exists():
        print("WARNING configuration already exists in {}. Overwriting.".format(
            str(path.parent)
        ))
    with path.open("w") as f:
        yaml.safe_dump(stringified_conf, f)


def dump_json(data, path):
    """
    Writes `data` to `path` as json.

    Args:
        data (dict): data to write
        path (str | Path): destination file

    Raises:
        OSError: if the file cannot be written
    """
    with open(path, "w") as f:
        json.dump(data, f, default=_json_serialize)
