import numpy as np


class BitVector:
    """
    A fixed-size set of indices, iterated in ascending order.
    """

    def __init__(self, size, set_bits=()):
        """
        :param size: Number of bits.
        :param set_bits: Indices that are initially set.
        """
        if size < 0:
            raise ValueError("Size of bit vector must be non-negative")
        self._bits = np.zeros(size, dtype=bool)
        for index in set_bits:
            self.set(index)

    @classmethod
    def from_indices(cls, size, indices):
        return cls(size, indices)

    @classmethod
    def from_mask(cls, mask):
        """
        Construct from a sequence of truth values.
        :param mask: Iterable of booleans, one per bit.
        """
        mask = np.asarray(mask, dtype=bool)
        result = cls(len(mask))
        result._bits = mask.copy()
        return result

    @property
    def size(self):
        return len(self._bits)

    def get(self, index):
        if not 0 <= index < len(self._bits):
            raise IndexError("Index {} out of range for bit vector of size {}".format(index, len(self._bits)))
        return bool(self._bits[index])

    def set(self, index, value=True):
        if not 0 <= index < len(self._bits):
            raise IndexError("Index {} out of range for bit vector of size {}".format(index, len(self._bits)))
        self._bits[index] = value

    def number_of_set_bits(self):
        return int(np.count_nonzero(self._bits))

    def empty(self):
        return not self._bits.any()

    def __contains__(self, index):
        return 0 <= index < len(self._bits) and bool(self._bits[index])

    def __iter__(self):
        return (int(i) for i in np.flatnonzero(self._bits))

    def __eq__(self, other):
        return isinstance(other, BitVector) and np.array_equal(self._bits, other._bits)

    def __hash__(self):
        return hash((len(self._bits), tuple(self)))

    def __str__(self):
        return "{" + ",".join(str(i) for i in self) + "}"

    def __repr__(self):
        return "BitVector({}, {})".format(self.size, list(self))
