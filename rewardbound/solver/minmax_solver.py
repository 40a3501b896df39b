import logging
from abc import ABCMeta, abstractmethod

from rewardbound.data.optimization_direction import OptimizationDirection
from rewardbound.solver.linear_equation_solver import GeneralLinearEquationSolverFactory, EquationSolverProblemFormat
from rewardbound.solver.requirements import SolverRequirements
from rewardbound.utility.numbers import zero, one, convert_number, is_exact
from rewardbound.utility.vector import has_converged, max_difference

logger = logging.getLogger(__name__)


class MinMaxLinearEquationSolver(metaclass=ABCMeta):
    """
    An abstraction of solvers for min-max equation systems x = min/max (Ax + b) over a row-grouped matrix.

    Row group i collects the choices of state i; the optimum over the rows of a group determines x[i].
    The matrix is always given as fixed-point system.
    """

    def __init__(self, env, matrix):
        """
        :param env: SolverEnvironment.
        :param matrix: Row-grouped SparseMatrix A.
        """
        self._env = env
        self._matrix = matrix
        self._value_type = matrix.value_type
        self._direction = None
        self._has_unique_solution = False
        self._caching_enabled = False
        self._track_scheduler = False
        self._scheduler_choices = None
        self._initial_scheduler = None
        self._requirements_checked = False
        self._lower_bound = None
        self._upper_bound = None
        self.nr_solves = 0

    @property
    def matrix(self):
        return self._matrix

    def set_optimization_direction(self, direction):
        assert isinstance(direction, OptimizationDirection)
        self._direction = direction

    def set_has_unique_solution(self, value=True):
        self._has_unique_solution = value

    def has_unique_solution(self):
        return self._has_unique_solution

    def set_caching_enabled(self, value):
        self._caching_enabled = value
        if not value:
            self.clear_cache()

    def is_caching_enabled(self):
        return self._caching_enabled

    def clear_cache(self):
        pass

    def set_track_scheduler(self, value=True):
        self._track_scheduler = value

    def get_scheduler_choices(self):
        """
        :return: For every state, the (group-local) index of the choice taken by the scheduler of the last solve.
        """
        if self._scheduler_choices is None:
            raise RuntimeError("Cannot retrieve scheduler choices, because they were not computed.")
        return self._scheduler_choices

    def set_initial_scheduler(self, choices):
        """
        Set the scheduler to start from. The list is taken over without copying.
        :param choices: Group-local choice index for every state.
        """
        if len(choices) != self._matrix.get_row_group_count():
            raise ValueError("Initial scheduler has {} choices, expected {}".format(
                len(choices), self._matrix.get_row_group_count()))
        for state, choice in enumerate(choices):
            if not 0 <= choice < self._matrix.get_row_group_size(state):
                raise ValueError("Initial scheduler selects invalid choice {} in state {}".format(choice, state))
        self._initial_scheduler = choices

    def has_initial_scheduler(self):
        return self._initial_scheduler is not None

    def set_requirements_checked(self, value=True):
        self._requirements_checked = value

    def is_requirements_checked(self):
        return self._requirements_checked

    def set_lower_bound(self, value):
        self._lower_bound = convert_number(value, self._value_type)

    def set_upper_bound(self, value):
        self._upper_bound = convert_number(value, self._value_type)

    @abstractmethod
    def get_requirements(self, direction=None):
        """
        :param direction: The direction the solver will be called with, if known.
        :return: The requirements the caller has to discharge before solving.
        """
        raise NotImplementedError("Abstract function called")

    def _initial_guess(self, x):
        if self._caching_enabled:
            return list(x)
        if self._lower_bound is not None:
            return [self._lower_bound] * len(x)
        return [zero(self._value_type)] * len(x)

    def _choice_value(self, row, x, b):
        return self._matrix.multiply_row_with_vector(row, x) + b[row]

    def _optimal_values(self, x, b, direction):
        row_group_indices = self._matrix.get_row_group_indices()
        result = []
        for state in range(self._matrix.get_row_group_count()):
            best = None
            for row in range(row_group_indices[state], row_group_indices[state + 1]):
                value = self._choice_value(row, x, b)
                if best is None or direction.improves(value, best):
                    best = value
            result.append(best if best is not None else zero(self._value_type))
        return result

    def _extract_scheduler(self, x, b, direction, preferred=None, tolerance=None):
        """
        Compute a scheduler that is optimal w.r.t. the given values.
        A choice replaces the current best one only if it is strictly better (by more than the tolerance).
        :param preferred: Scheduler whose choices are kept on ties.
        """
        row_group_indices = self._matrix.get_row_group_indices()
        choices = []
        for state in range(self._matrix.get_row_group_count()):
            first_row = row_group_indices[state]
            best_choice = preferred[state] if preferred is not None else 0
            if row_group_indices[state + 1] == first_row:
                choices.append(0)
                continue
            best = self._choice_value(first_row + best_choice, x, b)
            for row in range(first_row, row_group_indices[state + 1]):
                value = self._choice_value(row, x, b)
                if tolerance is not None:
                    improved = (value < best - tolerance) if direction.is_minimize() else (value > best + tolerance)
                else:
                    improved = direction.improves(value, best)
                if improved:
                    best = value
                    best_choice = row - first_row
            choices.append(best_choice)
        return choices

    def solve_equations(self, x, b, direction=None):
        """
        Solve the min-max equation system.
        :param x: Solution vector, overwritten in place. Used as initial guess if caching is enabled.
        :param b: Right-hand side.
        :param direction: Optimization direction; defaults to the one set before.
        :return: True iff the solver reached the requested precision.
        """
        if direction is None:
            direction = self._direction
        if direction is None:
            raise ValueError("Optimization direction not set")
        if len(x) != self._matrix.get_row_group_count():
            raise ValueError("Solution vector has size {}, expected {}".format(
                len(x), self._matrix.get_row_group_count()))
        if len(b) != self._matrix.get_row_count():
            raise ValueError("Right-hand side has size {}, expected {}".format(len(b), self._matrix.get_row_count()))
        if not self._requirements_checked:
            requirements = self.get_requirements(direction)
            if requirements.has_enabled_critical_requirement():
                logger.warning("Solving without checking the requirements {}".format(
                    requirements.enabled_requirements_as_string()))
        self.nr_solves += 1
        return self._solve(x, b, direction)

    @abstractmethod
    def _solve(self, x, b, direction):
        raise NotImplementedError("Abstract function called")


class ValueIterationMinMaxSolver(MinMaxLinearEquationSolver):
    """
    Solves min-max equation systems by value iteration, or interval iteration in sound mode.
    """

    def get_requirements(self, direction=None):
        requirements = SolverRequirements()
        if not self._has_unique_solution:
            requirements.require_unique_solution(critical=self._env.sound)
        if self._env.sound:
            requirements.require_bounds(critical=True)
        return requirements

    def _solve(self, x, b, direction):
        if self._env.sound:
            converged, iterations = self._solve_interval_iteration(x, b, direction)
        else:
            precision = convert_number(self._env.precision, self._value_type)
            current = self._initial_guess(x)
            converged = False
            iterations = 0
            while not converged and iterations < self._env.max_iterations:
                iterations += 1
                new = self._optimal_values(current, b, direction)
                converged = has_converged(new, current, precision, self._env.relative)
                current = new
            x[:] = current

        if converged:
            logger.debug("Value iteration ({}) converged after {} iterations".format(direction, iterations))
        else:
            logger.warning("Value iteration ({}) did not converge within {} iterations".format(direction, iterations))
        if self._track_scheduler:
            self._scheduler_choices = self._extract_scheduler(x, b, direction, self._initial_scheduler)
        return converged

    def _solve_interval_iteration(self, x, b, direction):
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
            lower = self._optimal_values(lower, b, direction)
            upper = self._optimal_values(upper, b, direction)
            diff = max_difference(upper, lower, self._env.relative)
            converged = diff is None or diff <= two * precision
        x[:] = [(l + u) / two for l, u in zip(lower, upper)]
        return converged, iterations


class PolicyIterationMinMaxSolver(MinMaxLinearEquationSolver):
    """
    Solves min-max equation systems by policy iteration.
    Every scheduler is evaluated by solving the induced linear equation system.
    """

    def __init__(self, env, matrix):
        super().__init__(env, matrix)
        self._linear_solver_factory = GeneralLinearEquationSolverFactory()

    def get_requirements(self, direction=None):
        requirements = SolverRequirements()
        requirements.merge(self._linear_solver_factory.get_requirements(self._env))
        if not self._has_unique_solution and (direction is None or not direction.is_minimize()):
            requirements.require_valid_initial_scheduler(critical=True)
        return requirements

    def _evaluate_scheduler(self, scheduler, x, b):
        row_group_indices = self._matrix.get_row_group_indices()
        rows = [row_group_indices[state] + choice for state, choice in enumerate(scheduler)]
        submatrix = self._matrix.select_rows(rows)
        if self._linear_solver_factory.get_equation_problem_format(self._env) == \
                EquationSolverProblemFormat.equation_system:
            submatrix = submatrix.convert_to_equation_system()
        solver = self._linear_solver_factory.create(self._env, submatrix)
        solver.set_caching_enabled(True)
        if self._lower_bound is not None:
            solver.set_lower_bound(self._lower_bound)
        if self._upper_bound is not None:
            solver.set_upper_bound(self._upper_bound)
        return solver.solve_equations(x, [b[row] for row in rows])

    def _solve(self, x, b, direction):
        if any(self._matrix.get_row_group_size(state) == 0 for state in range(self._matrix.get_row_group_count())):
            raise ValueError("Policy iteration requires at least one choice per state")
        scheduler = list(self._initial_scheduler) if self._initial_scheduler is not None \
            else [0] * self._matrix.get_row_group_count()
        tolerance = None if is_exact(self._value_type) else convert_number(self._env.precision, self._value_type)
        if not self._caching_enabled:
            x[:] = self._initial_guess(x)

        converged = False
        iterations = 0
        while not converged and iterations < self._env.max_iterations:
            iterations += 1
            self._evaluate_scheduler(scheduler, x, b)
            improved = self._extract_scheduler(x, b, direction, scheduler, tolerance)
            converged = improved == scheduler
            scheduler = improved

        if converged:
            logger.debug("Policy iteration ({}) converged after {} iterations".format(direction, iterations))
        else:
            logger.warning("Policy iteration ({}) did not converge within {} iterations".format(direction, iterations))
        if self._track_scheduler:
            self._scheduler_choices = scheduler
        return converged


class GeneralMinMaxLinearEquationSolverFactory:
    """
    Creates min-max equation solvers according to the solver environment.
    """

    def create(self, env, matrix):
        """
        :param env: SolverEnvironment.
        :param matrix: Row-grouped SparseMatrix in fixed-point form.
        :return: MinMaxLinearEquationSolver.
        """
        if env.minmax_method == "value-iteration":
            return ValueIterationMinMaxSolver(env, matrix)
        if env.minmax_method == "policy-iteration":
            return PolicyIterationMinMaxSolver(env, matrix)
        raise ValueError("Min-max equation solving method '{}' is not known".format(env.minmax_method))
