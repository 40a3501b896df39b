import os
import logging

from rewardbound.util import Configuration, check_python_api
from rewardbound.exceptions.configuration_error import ConfigurationError

LINEAR_METHODS = ["power", "elimination", "scipy"]
MINMAX_METHODS = ["value-iteration", "policy-iteration"]
VALUE_TYPES = ["double", "rational"]

DEFAULT_CONFIG_FILE = os.path.join(os.path.dirname(os.path.realpath(__file__)), "rewardbound.cfg")


class RewardboundConfig(Configuration):
    # section names
    SOLVER = "solver"
    NUMBERS = "numbers"
    DEPENDENCIES = "installed_deps"

    def __init__(self, config_file=DEFAULT_CONFIG_FILE):
        super().__init__(config_file)

    def is_module_available(self, module):
        """
        Check whether an optional python module can be used.
        If the configuration does not record the module, its availability is probed.
        :param module: Name of the module.
        :return: True iff the module is available.
        """
        if self.has_option(RewardboundConfig.DEPENDENCIES, module):
            return self.get_boolean(RewardboundConfig.DEPENDENCIES, module)
        return check_python_api(module)

    def has_pycarl(self):
        return self.is_module_available("pycarl")

    def has_scipy(self):
        return self.is_module_available("scipy")

    def get_linear_method(self):
        method = self.get(RewardboundConfig.SOLVER, "linear_method")
        if method not in LINEAR_METHODS:
            raise ConfigurationError("Linear equation solving method '{}' is not known. Choose from {}".format(
                method, ", ".join(LINEAR_METHODS)))
        return method

    def get_minmax_method(self):
        method = self.get(RewardboundConfig.SOLVER, "minmax_method")
        if method not in MINMAX_METHODS:
            raise ConfigurationError("Min-max equation solving method '{}' is not known. Choose from {}".format(
                method, ", ".join(MINMAX_METHODS)))
        return method

    def get_precision(self):
        precision = self.get_float(RewardboundConfig.SOLVER, "precision")
        if precision <= 0:
            raise ConfigurationError("Solver precision must be positive, got {}".format(precision))
        return precision

    def is_relative_precision(self):
        return self.get_boolean(RewardboundConfig.SOLVER, "relative")

    def get_max_iterations(self):
        return self.get_int(RewardboundConfig.SOLVER, "max_iterations")

    def is_sound(self):
        # Sound solving certifies the precision of iterative methods and thus needs bounds on the solution
        return self.get_boolean(RewardboundConfig.SOLVER, "sound")

    def get_value_type_name(self):
        name = self.get(RewardboundConfig.NUMBERS, "value_type")
        if name not in VALUE_TYPES:
            raise ConfigurationError("Value type '{}' is not known. Choose from {}".format(name, ", ".join(VALUE_TYPES)))
        return name


configuration = RewardboundConfig()


def load_configuration(config_file=None):
    """
    (Re)load the global configuration.
    :param config_file: Path of the configuration file. The shipped default is used if None.
    :return: The loaded configuration.
    """
    global configuration
    configuration = RewardboundConfig(config_file if config_file else DEFAULT_CONFIG_FILE)
    return configuration


logging.basicConfig(filename='rewardbound.log', format='%(asctime)s %(levelname)s:%(name)s:%(message)s',
                    level=logging.DEBUG)
ch = logging.StreamHandler()
ch.setLevel(logging.INFO)
logging.getLogger().addHandler(ch)
