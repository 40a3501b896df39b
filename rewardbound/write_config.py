#!/usr/bin/env python3

import configparser
import os
import logging

from rewardbound.util import check_python_api

thisfilepath = os.path.dirname(os.path.realpath(__file__))

logger = logging.getLogger(__name__)


def get_initial_config(config):
    # Setup solver defaults
    config_solver = {}
    config_solver["linear_method"] = "power"
    config_solver["minmax_method"] = "value-iteration"
    config_solver["precision"] = str(1e-06)
    config_solver["relative"] = str(True)
    config_solver["max_iterations"] = str(100000)
    config_solver["sound"] = str(False)
    config["solver"] = config_solver

    # Setup number representation
    config_numbers = {}
    config_numbers["value_type"] = "double"
    config["numbers"] = config_numbers

    # Setup optional dependencies
    config_deps = {}
    config_deps["pycarl"] = str(check_python_api("pycarl"))
    config_deps["scipy"] = str(check_python_api("scipy"))
    config["installed_deps"] = config_deps


def write_initial_config(path=None):
    """
    Write a configuration file with default solver settings and the detected optional dependencies.
    :param path: Target path. Defaults to the configuration file shipped with the package.
    :return: The path written to.
    """
    if path is None:
        path = os.path.join(thisfilepath, "rewardbound.cfg")
    config = configparser.ConfigParser()
    get_initial_config(config)
    logger.info("Writing config to " + path)
    with open(path, 'w') as configfile:
        config.write(configfile)
    return path


if __name__ == "__main__":
    write_initial_config()
