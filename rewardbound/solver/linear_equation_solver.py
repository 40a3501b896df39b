import logging
from abc import ABCMeta, abstractmethod
from enum import Enum

import numpy as np

from rewardbound.solver.requirements import SolverRequirements
from rewardbound.utility.numbers import zero, one, convert_number, is_exact
from rewardbound.utility.vector import has_converged, max_difference

logger = logging.getLogger(__name__)


class EquationSolverProblemFormat(Enum):
    """
    Form in which an equation system is handed to a solver.
    """
    fixed_point_system = 0  #: The matrix is A and the system reads x = Ax + b.
    equation_system = 1  #: The matrix is (I-A) and the system reads (I-A)x = b.

    def __str__(self):
        return "x = Ax + b" if self == EquationSolverProblemFormat.fixed_point_system else "(I-A)x = b"


class LinearEquationSolver(metaclass=ABCMeta):
    """
    An abstraction of solvers for systems of linear equations over a fixed matrix.

    Instances are meant to be reused for several right-hand sides. With caching enabled, solvers may keep
    auxiliary data (e.g., factorisations) between calls and use the current content of x as initial guess.
    """

    def __init__(self, env, matrix):
        """
        :param env: SolverEnvironment.
        :param matrix: SparseMatrix in the problem format of the solver.
        """
        self._env = env
        self._matrix = matrix
        self._value_type = matrix.value_type
        self._caching_enabled = False
        self._lower_bound = None
        self._upper_bound = None
        self.nr_solves = 0

    @property
    def matrix(self):
        return self._matrix

    @abstractmethod
    def get_equation_problem_format(self):
        raise NotImplementedError("Abstract function called")

    def get_requirements(self):
        """
        :return: The requirements the caller has to discharge before solving.
        """
        return SolverRequirements()

    def set_caching_enabled(self, value):
        self._caching_enabled = value
        if not value:
            self.clear_cache()

    def is_caching_enabled(self):
        return self._caching_enabled

    def clear_cache(self):
        pass

    def set_lower_bound(self, value):
        self._lower_bound = convert_number(value, self._value_type)

    def set_upper_bound(self, value):
        self._upper_bound = convert_number(value, self._value_type)

    def has_lower_bound(self):
        return self._lower_bound is not None

    def has_upper_bound(self):
        return self._upper_bound is not None

    def _initial_guess(self, x):
        if self._caching_enabled:
            return list(x)
        if self._lower_bound is not None:
            return [self._lower_bound] * len(x)
        return [zero(self._value_type)] * len(x)

    def solve_equations(self, x, b):
        """
        Solve the equation system.
        :param x: Solution vector, overwritten in place. Used as initial guess if caching is enabled.
        :param b: Right-hand side.
        :return: True iff the solver reached the requested precision.
        """
        if len(x) != self._matrix.get_column_count():
            raise ValueError("Solution vector has size {}, expected {}".format(len(x), self._matrix.get_column_count()))
        if len(b) != self._matrix.get_row_count():
            raise ValueError("Right-hand side has size {}, expected {}".format(len(b), self._matrix.get_row_count()))
        self.nr_solves += 1
        return self._solve(x, b)

    @abstractmethod
    def _solve(self, x, b):
        raise NotImplementedError("Abstract function called")


class PowerLinearEquationSolver(LinearEquationSolver):
    """
    Solves x = Ax + b by fixed-point iteration.
    In sound mode, interval iteration from a lower and an upper bound certifies the precision.
    """

    def get_equation_problem_format(self):
        return EquationSolverProblemFormat.fixed_point_system

    def get_requirements(self):
        requirements = SolverRequirements()
        if self._env.sound:
            requirements.require_bounds(critical=True)
        return requirements

    def _step(self, current, b):
        return [self._matrix.multiply_row_with_vector(row, current) + b[row] for row in range(len(b))]

    def _solve(self, x, b):
        if self._env.sound:
            return self._solve_interval_iteration(x, b)

        precision = convert_number(self._env.precision, self._value_type)
        current = self._initial_guess(x)
        converged = False
        iterations = 0
        while not converged and iterations < self._env.max_iterations:
            iterations += 1
            new = self._step(current, b)
            converged = has_converged(new, current, precision, self._env.relative)
            current = new
        x[:] = current
        if converged:
            logger.debug("Power iteration converged after {} iterations".format(iterations))
        else:
            logger.warning("Power iteration did not converge within {} iterations".format(iterations))
        return converged

    def _solve_interval_iteration(self, x, b):
        if self._lower_bound is None or self._upper_bound is None:
            raise ValueError("Interval iteration requires a lower and an upper bound")
        precision = convert_number(self._env.precision, self._value_type)
        two = one(self._value_type) + one(self._value_type)
        lower = [self._lower_bound] * len(x)
        upper = [self._upper_bound] * len(x)
        converged = False
        iterations = 0
        while not converged and iterations < self._env.max_iterations:
            iterations += 1
            lower = self._step(lower, b)
            upper = self._step(upper, b)
            diff = max_difference(upper, lower, self._env.relative)
            converged = diff is None or diff <= two * precision
        x[:] = [(l + u) / two for l, u in zip(lower, upper)]
        if converged:
            logger.debug("Interval iteration converged after {} iterations".format(iterations))
        else:
            logger.warning("Interval iteration did not converge within {} iterations".format(iterations))
        return converged


class EliminationLinearEquationSolver(LinearEquationSolver):
    """
    Solves (I-A)x = b by Gaussian elimination.
    The computation is exact whenever the number type is, the LU factors are kept while caching is enabled.
    """

    def __init__(self, env, matrix):
        super().__init__(env, matrix)
        if matrix.get_row_count() != matrix.get_column_count():
            raise ValueError("Gaussian elimination requires a square matrix")
        self._factors = None

    def get_equation_problem_format(self):
        return EquationSolverProblemFormat.equation_system

    def clear_cache(self):
        self._factors = None

    def _magnitude(self, value):
        return -value if value < zero(self._value_type) else value

    def _factorize(self):
        n = self._matrix.get_row_count()
        value_zero = zero(self._value_type)
        lu = [[value_zero] * n for _ in range(n)]
        for row in range(n):
            for column, value in self._matrix.get_row(row):
                lu[row][column] = value
        permutation = list(range(n))
        exact = is_exact(self._value_type)
        for k in range(n):
            if exact:
                pivot = next((i for i in range(k, n) if lu[i][k] != value_zero), k)
            else:
                pivot = max(range(k, n), key=lambda i: self._magnitude(lu[i][k]))
            if lu[pivot][k] == value_zero:
                raise ArithmeticError("Equation system is singular")
            if pivot != k:
                lu[k], lu[pivot] = lu[pivot], lu[k]
                permutation[k], permutation[pivot] = permutation[pivot], permutation[k]
            for i in range(k + 1, n):
                if lu[i][k] != value_zero:
                    factor = lu[i][k] / lu[k][k]
                    lu[i][k] = factor
                    for j in range(k + 1, n):
                        if lu[k][j] != value_zero:
                            lu[i][j] = lu[i][j] - factor * lu[k][j]
        logger.debug("Computed LU factorisation of a {}x{} system".format(n, n))
        return lu, permutation

    def _solve(self, x, b):
        if self._factors is None:
            factors = self._factorize()
            if self._caching_enabled:
                self._factors = factors
        else:
            factors = self._factors
        lu, permutation = factors
        n = len(lu)

        y = []
        for i in range(n):
            value = b[permutation[i]]
            for j in range(i):
                value = value - lu[i][j] * y[j]
            y.append(value)
        result = [zero(self._value_type)] * n
        for i in reversed(range(n)):
            value = y[i]
            for j in range(i + 1, n):
                value = value - lu[i][j] * result[j]
            result[i] = value / lu[i][i]
        x[:] = result
        return True


class ScipyLinearEquationSolver(LinearEquationSolver):
    """
    Solves (I-A)x = b with the sparse direct solver of scipy. Only supports floating point numbers.
    """

    def __init__(self, env, matrix):
        super().__init__(env, matrix)
        if is_exact(self._value_type):
            raise TypeError("The scipy solver only supports floating point numbers")
        self._solve_function = None

    def get_equation_problem_format(self):
        return EquationSolverProblemFormat.equation_system

    def clear_cache(self):
        self._solve_function = None

    def _solve(self, x, b):
        # Do not import at top, as scipy is only needed for this solver.
        from scipy.sparse.linalg import factorized

        solve_function = self._solve_function
        if solve_function is None:
            solve_function = factorized(self._matrix.to_scipy().tocsc())
            if self._caching_enabled:
                self._solve_function = solve_function
        result = solve_function(np.asarray(b, dtype=float))
        if not np.all(np.isfinite(result)):
            raise ArithmeticError("Sparse direct solver produced non-finite values")
        x[:] = result.tolist()
        return True


class GeneralLinearEquationSolverFactory:
    """
    Creates linear equation solvers according to the solver environment.
    """

    def create(self, env, matrix):
        """
        :param env: SolverEnvironment.
        :param matrix: SparseMatrix in the format given by get_equation_problem_format.
        :return: LinearEquationSolver.
        """
        if env.linear_method == "power":
            return PowerLinearEquationSolver(env, matrix)
        if env.linear_method == "elimination":
            return EliminationLinearEquationSolver(env, matrix)
        if env.linear_method == "scipy":
            return ScipyLinearEquationSolver(env, matrix)
        raise ValueError("Linear equation solving method '{}' is not known".format(env.linear_method))

    def get_equation_problem_format(self, env):
        if env.linear_method == "power":
            return EquationSolverProblemFormat.fixed_point_system
        return EquationSolverProblemFormat.equation_system

    def get_requirements(self, env):
        """
        :return: The requirements of solvers created with the given environment.
        """
        requirements = SolverRequirements()
        if env.linear_method == "power" and env.sound:
            requirements.require_bounds(critical=True)
        return requirements
