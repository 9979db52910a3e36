from tests.utils.conf_setup import HYDRA_SIM_PATH, TEST_CONFIGS_PATH, get_default_conf, get_test_conf
from tests.utils.city_setup import START_TIME, HOME, WORK, add_family, get_empty_city, get_line_geometry
