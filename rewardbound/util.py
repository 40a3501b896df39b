import os
import configparser
import importlib.util
import logging

from rewardbound.exceptions.configuration_error import ConfigurationError

logger = logging.getLogger(__name__)


class Configuration:
    """
    Configuration for rewardbound.
    """

    def __init__(self, config_file):
        """
        Constructor.
        :param config_file: Path to config file.
        """
        self._config = configparser.ConfigParser()
        self._import_from_file(config_file)
        self._file_path = config_file
        self.modified = False

    def _import_from_file(self, config_file):
        """
        Import configuration from file.
        :param config_file: Configuration file.
        """
        parsed_files = self._config.read(config_file)
        if len(parsed_files) == 0:
            raise ConfigurationError(
                "Unable to read configuration file '{}'".format(config_file))
        self._imported_from = config_file

    @property
    def file_path(self):
        return self._file_path

    def has_option(self, section, key):
        """
        Check if the given key exists in the configuration.
        :param section: Section.
        :param key: Key.
        :return: True iff the section contains the key.
        """
        return section in self._config and key in self._config[section]

    def check_existence(self, section, key):
        """
        Check if the given key exists in the configuration and raise a ConfigurationError if not.
        :param section: Section.
        :param key: Key.
        """
        if section not in self._config:
            raise ConfigurationError("Cannot find section {} in file {}".format(section, self._file_path))

        if key not in self._config[section]:
            raise ConfigurationError(
                "Cannot find key {} in section {} in file {}".format(key, section, self._file_path))

    def get(self, section, key):
        """
        Get config value for given key.
        :param section: Section.
        :param key: Key.
        :return: Config value.
        """
        self.check_existence(section, key)
        return self._config[section][key]

    def get_boolean(self, section, key):
        """
        Get config value as boolean.
        :param section: Section.
        :param key: Key.
        :return: Config value as boolean.
        """
        self.check_existence(section, key)
        try:
            return self._config.getboolean(section, key)
        except ValueError:
            raise ConfigurationError("Value of {} / {} is not a boolean".format(section, key))

    def get_float(self, section, key):
        """
        Get config value as float.
        :param section: Section.
        :param key: Key.
        :return: Config value as float.
        """
        self.check_existence(section, key)
        try:
            return self._config.getfloat(section, key)
        except ValueError:
            raise ConfigurationError("Value of {} / {} is not a number".format(section, key))

    def get_int(self, section, key):
        """
        Get config value as integer.
        :param section: Section.
        :param key: Key.
        :return: Config value as integer.
        """
        self.check_existence(section, key)
        try:
            return self._config.getint(section, key)
        except ValueError:
            raise ConfigurationError("Value of {} / {} is not an integer".format(section, key))

    def get_all(self):
        """
        Get all entries of the configuration.
        :return: Dict with all entries.
        """
        result = {}
        for section in self._config.sections():
            result[section] = dict(self._config.items(section))
        return result

    def set(self, section, key, value):
        """
        Set config entry. Missing sections are created.
        :param section: Section.
        :param key: Key.
        :param value: New value.
        """
        logger.debug("Update config: / %s / %s = %s", section, key, value)
        if section not in self._config:
            self._config.add_section(section)
        self._config.set(section, key, str(value))
        self.modified = True

    def update_configuration_file(self):
        """
        Write configuration file again.
        """
        logger.info("Update config file %s", self._imported_from)
        with open(self._imported_from, 'w') as f:
            self._config.write(f)
        self.modified = False


def check_filepath_for_reading(filepath, filedescription_string="file"):
    """
    Check if the given path can be read. Raises an IOError otherwise.
    :param filepath: Path.
    :param filedescription_string: Type of path (file/dir).
    """
    if not os.path.isfile(filepath):
        raise IOError(filedescription_string + " not found at " + filepath)
    if not os.access(filepath, os.R_OK):
        raise IOError("No read access on " + filedescription_string + ". Location: '" + filepath + "'.")


def check_python_api(name):
    """
    Check if the required python module is present.
    :param name: Name of the python api.
    :return: True iff the api is present.
    """
    return importlib.util.find_spec(name) is not None
