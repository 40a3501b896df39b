from fractions import Fraction

import pytest

from rewardbound.exceptions.configuration_error import ConfigurationError
from rewardbound.utility.numbers import get_value_type, convert_number, is_exact, zero, one
from rewardbound.utility.vector import filter_vector, max_difference, has_converged
from rewardbound.data.bitvector import BitVector

from requires import require_pycarl


def test_value_types():
    assert get_value_type("double") is float
    assert not is_exact(float)
    assert is_exact(Fraction)
    with pytest.raises(ConfigurationError):
        get_value_type("complex")


@require_pycarl()
def test_rational_value_type():
    value_type = get_value_type("rational")
    assert is_exact(value_type)
    assert convert_number("1/4", value_type) + convert_number("3/4", value_type) == one(value_type)


def test_convert_number():
    assert convert_number("1/4", float) == 0.25
    assert convert_number("0.5", float) == 0.5
    assert convert_number(2, float) == 2.0
    assert convert_number("1/3", Fraction) == Fraction(1, 3)
    assert convert_number("0.25", Fraction) == Fraction(1, 4)
    assert zero(Fraction) == 0
    with pytest.raises(TypeError):
        convert_number(None, float)
    with pytest.raises(TypeError):
        convert_number(True, float)


def test_vectors():
    assert filter_vector([1, 2, 3, 4], BitVector(4, [1, 3])) == [2, 4]
    assert max_difference([], []) is None
    assert max_difference([1.0, 3.0], [1.5, 2.0]) == 1.0
    assert max_difference([4.0], [2.0], relative=True) == 1.0
    assert has_converged([1.0], [1.0 + 1e-9], 1e-6)
    assert not has_converged([1.0], [2.0], 1e-6)
