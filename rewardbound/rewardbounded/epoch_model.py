"""
Epoch models of reward-bounded properties and their analysis.

Unfolding a property with reward bounds yields a sequence of epochs, one for every combination of remaining
reward budgets. An epoch model describes the transitions that stay within the epoch (the epoch matrix), the
rewards collected within the epoch, and the contribution of choices leading into other epochs whose values are
already known (step choices and step solutions). Analysing an epoch model yields the value of every state
through which the epoch is entered.
"""
import logging
from enum import Enum

from rewardbound.data.bitvector import BitVector
from rewardbound.data.optimization_direction import OptimizationDirection
from rewardbound.exceptions.precondition_violation_error import PreconditionViolationError
from rewardbound.exceptions.unchecked_requirement_error import UncheckedRequirementError
from rewardbound.solver.linear_equation_solver import GeneralLinearEquationSolverFactory, LinearEquationSolver, \
    EquationSolverProblemFormat
from rewardbound.solver.minmax_solver import GeneralMinMaxLinearEquationSolverFactory, MinMaxLinearEquationSolver
from rewardbound.utility.numbers import zero
from rewardbound.utility.vector import filter_vector

logger = logging.getLogger(__name__)


class EpochModelKind(Enum):
    """
    The strategy with which an epoch model is analysed.
    """
    TrivialDtmc = 0  #: Deterministic, no equation system has to be solved.
    NonTrivialDtmc = 1  #: Deterministic, requires a linear equation solver.
    TrivialMdp = 2  #: Non-deterministic without transitions inside the epoch.
    NonTrivialMdp = 3  #: Non-deterministic, requires a min-max equation solver.

    def is_trivial(self):
        return self in [EpochModelKind.TrivialDtmc, EpochModelKind.TrivialMdp]


class EpochModel:
    """
    The model of a single epoch.
    """

    def __init__(self, epoch_matrix, epoch_in_states, objective_rewards, objective_reward_filter,
                 step_choices=(), step_solutions=(), epoch_matrix_changed=True,
                 equation_solver_problem_format=None, nondeterministic=False):
        """
        :param epoch_matrix: SparseMatrix with the transitions inside the epoch (rows are choices).
        :param epoch_in_states: BitVector over the row groups whose values are requested.
        :param objective_rewards: For every objective, a dense vector with the reward of every choice.
        :param objective_reward_filter: For every objective, a BitVector over the choices that receive the reward.
        :param step_choices: Strictly ascending choices that lead into other, already solved epochs.
        :param step_solutions: For every step choice, the value contributed by the other epoch.
        :param epoch_matrix_changed: False iff the epoch matrix equals the one of the previously analysed epoch.
        :param equation_solver_problem_format: EquationSolverProblemFormat of the epoch matrix.
        :param nondeterministic: Whether the epoch stems from a non-deterministic model.
        """
        self.epoch_matrix = epoch_matrix
        self.epoch_in_states = epoch_in_states
        self.objective_rewards = list(objective_rewards)
        self.objective_reward_filter = list(objective_reward_filter)
        self.step_choices = list(step_choices)
        self.step_solutions = list(step_solutions)
        self.epoch_matrix_changed = epoch_matrix_changed
        self.equation_solver_problem_format = equation_solver_problem_format
        self.nondeterministic = nondeterministic

    @property
    def value_type(self):
        return self.epoch_matrix.value_type

    def check_consistency(self):
        """
        Check the structural invariants of the epoch model. Raises a PreconditionViolationError on violation.
        """
        if len(self.step_choices) != len(self.step_solutions):
            raise PreconditionViolationError("Got {} step choices but {} step solutions.".format(
                len(self.step_choices), len(self.step_solutions)))
        for previous, choice in zip(self.step_choices, self.step_choices[1:]):
            if previous >= choice:
                raise PreconditionViolationError("Step choices are not strictly ascending ({} before {}).".format(
                    previous, choice))
        row_count = self.epoch_matrix.get_row_count()
        if self.step_choices and not (0 <= self.step_choices[0] and self.step_choices[-1] < row_count):
            raise PreconditionViolationError("Step choices exceed the {} choices of the epoch.".format(row_count))
        if len(self.objective_rewards) != len(self.objective_reward_filter):
            raise PreconditionViolationError("Got {} objective reward vectors but {} reward filters.".format(
                len(self.objective_rewards), len(self.objective_reward_filter)))
        if len(self.objective_rewards) == 0:
            raise PreconditionViolationError("Epoch model does not have an objective.")
        for rewards, reward_filter in zip(self.objective_rewards, self.objective_reward_filter):
            if len(rewards) != row_count or reward_filter.size != row_count:
                raise PreconditionViolationError("Objective rewards do not match the {} choices of the epoch.".format(
                    row_count))
        if not isinstance(self.epoch_in_states, BitVector) or \
                self.epoch_in_states.size != self.epoch_matrix.get_row_group_count():
            raise PreconditionViolationError("Epoch in-states do not match the {} states of the epoch.".format(
                self.epoch_matrix.get_row_group_count()))

    def get_kind(self):
        """
        Decide how the epoch model is analysed.
        For deterministic models, the epoch is trivial if the epoch matrix is the identity (equation system) or
        has no entries (fixed-point system). Non-deterministic epochs are only trivial without entries, as the
        choices of a state have to be compared with each other.
        :return: EpochModelKind.
        """
        if self.nondeterministic:
            if self.equation_solver_problem_format == EquationSolverProblemFormat.equation_system:
                raise PreconditionViolationError("Non-deterministic epoch models have to be fixed-point systems.")
            if self.epoch_matrix.get_entry_count() == 0:
                return EpochModelKind.TrivialMdp
            return EpochModelKind.NonTrivialMdp

        if not self.epoch_matrix.has_trivial_row_grouping():
            raise PreconditionViolationError("This operation is only allowed if no nondeterminism is present.")
        if self.equation_solver_problem_format is None:
            raise PreconditionViolationError("Unknown equation problem format.")
        if self.equation_solver_problem_format == EquationSolverProblemFormat.equation_system:
            trivial = self.epoch_matrix.is_identity_matrix()
        else:
            trivial = self.epoch_matrix.get_entry_count() == 0
        return EpochModelKind.TrivialDtmc if trivial else EpochModelKind.NonTrivialDtmc

    def analyze_single_objective(self, env, context, direction=None, lower_bound=None, upper_bound=None):
        """
        Compute the values of the epoch in-states for the first objective.
        :param env: SolverEnvironment.
        :param context: EpochSolverContext, kept between the epochs of one traversal.
        :param direction: OptimizationDirection, required for non-deterministic models.
        :param lower_bound: Optional lower bound on all values.
        :param upper_bound: Optional upper bound on all values.
        :return: List with the value of every in-state, in ascending order of the states.
        """
        self.check_consistency()
        kind = self.get_kind()
        if self.nondeterministic and not isinstance(direction, OptimizationDirection):
            raise PreconditionViolationError("Analysing a non-deterministic epoch model requires a direction.")
        logger.debug("Analyse epoch model with {} choices as {}".format(self.epoch_matrix.get_row_count(), kind.name))

        start_time = context.start_timer()
        if kind == EpochModelKind.TrivialDtmc:
            result = analyze_trivial_dtmc_epoch_model(self)
        elif kind == EpochModelKind.NonTrivialDtmc:
            result = analyze_non_trivial_dtmc_epoch_model(env, self, context, lower_bound, upper_bound)
        elif kind == EpochModelKind.TrivialMdp:
            result = analyze_trivial_mdp_epoch_model(direction, self)
        else:
            result = analyze_non_trivial_mdp_epoch_model(env, direction, self, context, lower_bound, upper_bound)
        context.stop_timer(start_time)

        if kind.is_trivial():
            context.nr_trivial_epochs += 1
        else:
            context.nr_non_trivial_epochs += 1
        return result


def analyze_trivial_dtmc_epoch_model(epoch_model):
    """
    Analyse a deterministic epoch without transitions inside the epoch.
    The value of a state is its reward plus the value of its step into another epoch.
    """
    value_type = epoch_model.value_type
    rewards = epoch_model.objective_rewards[0]
    reward_filter = epoch_model.objective_reward_filter[0]
    step_choices = epoch_model.step_choices
    step_solutions = epoch_model.step_solutions

    epoch_result = []
    step_index = 0
    for state in epoch_model.epoch_in_states:
        while step_index < len(step_choices) and step_choices[step_index] < state:
            step_index += 1
        has_step = step_index < len(step_choices) and step_choices[step_index] == state
        if reward_filter.get(state):
            if has_step:
                epoch_result.append(rewards[state] + step_solutions[step_index])
            else:
                epoch_result.append(rewards[state])
        else:
            if has_step:
                epoch_result.append(step_solutions[step_index])
            else:
                epoch_result.append(zero(value_type))
    return epoch_result


def _prepare_right_hand_side(epoch_model, context):
    value_type = epoch_model.value_type
    context.b[:] = [zero(value_type)] * epoch_model.epoch_matrix.get_row_count()
    objective_values = epoch_model.objective_rewards[0]
    for choice in epoch_model.objective_reward_filter[0]:
        context.b[choice] = objective_values[choice]
    # A choice can both collect a reward and lead into another epoch
    for choice, solution in zip(epoch_model.step_choices, epoch_model.step_solutions):
        context.b[choice] = context.b[choice] + solution
    return context.b


def _check_requirements(requirements):
    if requirements.has_enabled_critical_requirement():
        message = "Solver requirements " + requirements.enabled_requirements_as_string() + " not checked."
        logger.error(message)
        raise UncheckedRequirementError(message, requirements)


def analyze_non_trivial_dtmc_epoch_model(env, epoch_model, context, lower_bound=None, upper_bound=None):
    """
    Analyse a deterministic epoch by solving a linear equation system.
    The solver is rebuilt only if the epoch matrix changed; otherwise the previous solution is the initial guess.
    """
    value_type = epoch_model.value_type

    if epoch_model.epoch_matrix_changed:
        context.reset()
        context.x = [zero(value_type)] * epoch_model.epoch_matrix.get_row_group_count()
        linear_equation_solver_factory = GeneralLinearEquationSolverFactory()
        solver_matrix = epoch_model.epoch_matrix
        if linear_equation_solver_factory.get_equation_problem_format(env) != \
                epoch_model.equation_solver_problem_format:
            logger.debug("Convert epoch matrix from {} to {}".format(
                epoch_model.equation_solver_problem_format,
                linear_equation_solver_factory.get_equation_problem_format(env)))
            solver_matrix = solver_matrix.convert_to_equation_system()
        linear_equation_solver = linear_equation_solver_factory.create(env, solver_matrix)
        linear_equation_solver.set_caching_enabled(True)
        requirements = linear_equation_solver.get_requirements()
        if lower_bound is not None:
            linear_equation_solver.set_lower_bound(lower_bound)
            requirements.clear_lower_bounds()
        if upper_bound is not None:
            linear_equation_solver.set_upper_bound(upper_bound)
            requirements.clear_upper_bounds()
        _check_requirements(requirements)
        context.solver = linear_equation_solver
        context.nr_solver_builds += 1
        logger.debug("Built linear equation solver {}".format(type(linear_equation_solver).__name__))
    elif not isinstance(context.solver, LinearEquationSolver):
        raise PreconditionViolationError("Epoch matrix is marked unchanged, but no linear equation solver exists.")
    else:
        logger.debug("Reuse linear equation solver of the previous epoch")

    _prepare_right_hand_side(epoch_model, context)
    context.solver.solve_equations(context.x, context.b)
    return filter_vector(context.x, epoch_model.epoch_in_states)


def select_trivial_mdp_choices(direction, epoch_model):
    """
    For every in-state of a non-deterministic epoch without transitions inside the epoch, select the best choice.
    A later choice only replaces the best one if it is strictly better, i.e., ties keep the lowest choice.
    :return: List of (group-local choice, value) pairs, one per in-state in ascending order.
    """
    if epoch_model.epoch_matrix.get_entry_count() != 0:
        raise PreconditionViolationError("Trivial analysis requires an epoch matrix without entries.")
    value_type = epoch_model.value_type
    rewards = epoch_model.objective_rewards[0]
    reward_filter = epoch_model.objective_reward_filter[0]
    step_choices = epoch_model.step_choices
    step_solutions = epoch_model.step_solutions
    row_group_indices = epoch_model.epoch_matrix.get_row_group_indices()

    selection = []
    step_index = 0
    for state in epoch_model.epoch_in_states:
        first_choice = row_group_indices[state]
        last_choice = row_group_indices[state + 1]
        if first_choice == last_choice:
            raise PreconditionViolationError("State {} of the epoch has no choices.".format(state))
        best_choice = None
        best_value = None
        for choice in range(first_choice, last_choice):
            while step_index < len(step_choices) and step_choices[step_index] < choice:
                step_index += 1

            choice_value = zero(value_type)
            if reward_filter.get(choice):
                choice_value += rewards[choice]
            if step_index < len(step_choices) and step_choices[step_index] == choice:
                choice_value += step_solutions[step_index]

            if best_value is None or direction.improves(choice_value, best_value):
                best_choice = choice - first_choice
                best_value = choice_value
        selection.append((best_choice, best_value))
    return selection


def analyze_trivial_mdp_epoch_model(direction, epoch_model):
    """
    Analyse a non-deterministic epoch without transitions inside the epoch.
    """
    return [value for _, value in select_trivial_mdp_choices(direction, epoch_model)]


def analyze_non_trivial_mdp_epoch_model(env, direction, epoch_model, context, lower_bound=None, upper_bound=None):
    """
    Analyse a non-deterministic epoch by solving a min-max equation system.
    If the epoch matrix did not change, the scheduler of the previous epoch is handed back to the solver as
    initial scheduler.
    """
    value_type = epoch_model.value_type

    if epoch_model.epoch_matrix_changed:
        context.reset()
        context.x = [zero(value_type)] * epoch_model.epoch_matrix.get_row_group_count()
        minmax_solver = GeneralMinMaxLinearEquationSolverFactory().create(env, epoch_model.epoch_matrix)
        minmax_solver.set_has_unique_solution()
        minmax_solver.set_optimization_direction(direction)
        minmax_solver.set_caching_enabled(True)
        minmax_solver.set_track_scheduler(True)
        requirements = minmax_solver.get_requirements(direction)
        if lower_bound is not None:
            minmax_solver.set_lower_bound(lower_bound)
            requirements.clear_lower_bounds()
        if upper_bound is not None:
            minmax_solver.set_upper_bound(upper_bound)
            requirements.clear_upper_bounds()
        _check_requirements(requirements)
        minmax_solver.set_requirements_checked()
        context.solver = minmax_solver
        context.nr_solver_builds += 1
        logger.debug("Built min-max equation solver {}".format(type(minmax_solver).__name__))
    elif not isinstance(context.solver, MinMaxLinearEquationSolver):
        raise PreconditionViolationError("Epoch matrix is marked unchanged, but no min-max equation solver exists.")
    else:
        logger.debug("Reuse min-max equation solver and scheduler of the previous epoch")
        choices = context.solver.get_scheduler_choices()
        context.solver.set_initial_scheduler(choices)

    _prepare_right_hand_side(epoch_model, context)
    context.solver.solve_equations(context.x, context.b, direction)
    return filter_vector(context.x, epoch_model.epoch_in_states)
