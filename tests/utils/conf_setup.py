from pathlib import Path

import yaml
from omegaconf import OmegaConf
from epicitysim.utils.utils import parse_configuration

HYDRA_SIM_PATH = (
    Path(__file__).parent.parent.parent / "src/epicitysim/configs/simulation"
).resolve()

TEST_CONFIGS_PATH = (Path(__file__).parent.parent / "test_configs").resolve()


def _load_defaults():
    with (HYDRA_SIM_PATH / "config.yaml").open("r") as f:
        root = yaml.safe_load(f)
    defaults = root.pop("defaults")

    default_confs = [
        OmegaConf.load(str(HYDRA_SIM_PATH / (d + ".yaml")))
        for d in defaults
    ]
    return OmegaConf.merge(*default_confs, OmegaConf.create(root))


def get_default_conf(overrides=()):
    """
    Loads the default configurations in configs the way hydra composes them and applies
    command line style overrides

    Args:
        overrides (list): `key=value` strings, as given on the command line

    Returns:
        dict: full config, using epicitysim.utils.utils.parse_configuration
    """
    conf = OmegaConf.merge(_load_defaults(), OmegaConf.from_dotlist(list(overrides)))
    return parse_configuration(conf)


def get_test_conf(conf_name):
    """
    Loads the default configurations in configs and overwrites it
    with values in test_configs/`conf_name`

    conf_name **must** be in `tests/test_configs/`

    Args:
        conf_name (str): name of the configuration to load in `tests/test_configs/`

    Returns:
        dict: full overwritten config, using epicitysim.utils.utils.parse_configuration
    """
    config_path = TEST_CONFIGS_PATH / conf_name

    assert config_path.suffix == ".yaml"
    assert config_path.exists()

    conf = OmegaConf.merge(_load_defaults(), OmegaConf.load(str(config_path)))

    return parse_configuration(conf)
