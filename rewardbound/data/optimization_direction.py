from enum import Enum


class OptimizationDirection(Enum):
    """
    Whether the value of a non-deterministic model is minimized or maximized over all schedulers.
    """
    minimize = 0
    maximize = 1

    def __str__(self):
        return "min" if self == OptimizationDirection.minimize else "max"

    def is_minimize(self):
        return self == OptimizationDirection.minimize

    def improves(self, value, best):
        """
        Check whether value is strictly better than best w.r.t. this direction.
        :param value: Candidate value.
        :param best: Best value so far.
        :return: True iff the candidate is a strict improvement.
        """
        if self == OptimizationDirection.minimize:
            return value < best
        return value > best

    @classmethod
    def from_string(cls, input):
        input = input.strip().lower()
        if input in ["min", "minimize"]:
            return cls.minimize
        if input in ["max", "maximize"]:
            return cls.maximize
        raise ValueError("Optimization direction '{}' is not known".format(input))
