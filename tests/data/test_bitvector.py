import pytest

from rewardbound.data.bitvector import BitVector


def test_iteration_is_ascending():
    bits = BitVector(6, [4, 0, 2])
    assert list(bits) == [0, 2, 4]
    assert bits.number_of_set_bits() == 3
    assert str(bits) == "{0,2,4}"


def test_get_and_set():
    bits = BitVector(3)
    assert bits.empty()
    bits.set(1)
    assert bits.get(1)
    assert not bits.get(0)
    assert 1 in bits
    assert 5 not in bits
    bits.set(1, False)
    assert bits.empty()


def test_out_of_range():
    bits = BitVector(2)
    with pytest.raises(IndexError):
        bits.set(2)
    with pytest.raises(IndexError):
        bits.get(-1)
    with pytest.raises(ValueError):
        BitVector(-1)


def test_from_mask():
    bits = BitVector.from_mask([True, False, True])
    assert bits.size == 3
    assert bits == BitVector.from_indices(3, [0, 2])
    assert bits != BitVector(4, [0, 2])
    assert hash(bits) == hash(BitVector(3, [2, 0]))
