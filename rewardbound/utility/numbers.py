"""
Helpers to work with the number types an analysis can be carried out in.

Double precision floats are the default. Exact analyses use pycarl rationals, any other type providing
an additive identity via ``value_type(0)``, addition and a strict ordering works as well.
"""
import numbers

from rewardbound import config
from rewardbound.exceptions.configuration_error import ConfigurationError
from rewardbound.exceptions.module_error import ModuleError


def get_value_type(name):
    """
    Get the number type for the given name.
    :param name: Either 'double' or 'rational'.
    :return: The python type to use for values.
    """
    if name == "double":
        return float
    if name == "rational":
        if not config.configuration.has_pycarl():
            raise ModuleError("Module pycarl is needed for exact arithmetic. Maybe your config is outdated?")
        # Do not import at top, as pycarl might not be available.
        from rewardbound.adapter.pycarl import Rational
        return Rational
    raise ConfigurationError("Value type '{}' is not known.".format(name))


def zero(value_type):
    return value_type(0)


def one(value_type):
    return value_type(1)


def is_exact(value_type):
    """
    Check whether arithmetic in the given type is exact.
    :param value_type: Number type.
    :return: False for floating point types, True otherwise.
    """
    return not issubclass(value_type, (float, complex))


def convert_number(value, value_type):
    """
    Convert a number into the given type.
    :param value: An int, float, number of the target type, or a string such as "3", "0.25" or "1/4".
    :param value_type: Target type.
    :return: The converted value.
    """
    if isinstance(value, value_type):
        return value
    if isinstance(value, str):
        value = value.strip()
        if "/" in value:
            num, den = value.split("/", 1)
            return convert_number(num, value_type) / convert_number(den, value_type)
        if value_type is float:
            return float(value)
        try:
            return value_type(int(value))
        except ValueError:
            return value_type(value)
    if isinstance(value, bool) or not isinstance(value, numbers.Number):
        raise TypeError("Cannot convert {!r} into a number".format(value))
    return value_type(value)
