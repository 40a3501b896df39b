def filter_vector(values, indices):
    """
    Restrict a dense vector to the given indices.
    :param values: Dense vector.
    :param indices: Ascending indices, e.g., a BitVector.
    :return: A list with the selected values in ascending index order.
    """
    return [values[i] for i in indices]


def max_difference(first, second, relative=False):
    """
    Compute the maximal (absolute or relative) difference between two vectors of equal length.
    For relative differences, positions where the second vector is zero contribute their absolute difference.
    :param first: Vector.
    :param second: Vector.
    :param relative: Whether to compute relative differences.
    :return: The maximal difference, or None for empty vectors.
    """
    assert len(first) == len(second)
    result = None
    for a, b in zip(first, second):
        diff = a - b
        if diff < 0:
            diff = -diff
        if relative and b != 0:
            diff = diff / (b if b > 0 else -b)
        if result is None or diff > result:
            result = diff
    return result


def has_converged(first, second, precision, relative=False):
    """
    Check whether two successive iterates are within the given precision.
    :param first: Vector.
    :param second: Vector.
    :param precision: Precision.
    :param relative: Whether the precision is relative.
    :return: True iff all differences are at most the precision.
    """
    diff = max_difference(first, second, relative)
    return diff is None or diff <= precision
