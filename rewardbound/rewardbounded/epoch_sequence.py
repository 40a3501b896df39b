import bisect
import logging
from collections import OrderedDict

from rewardbound.exceptions.precondition_violation_error import PreconditionViolationError
from rewardbound.rewardbounded.epoch_solver_context import EpochSolverContext
from rewardbound.solver.environment import SolverEnvironment

logger = logging.getLogger(__name__)


class EpochSolution:
    """
    The values of the in-states of a solved epoch.
    """

    def __init__(self, in_states, values):
        """
        :param in_states: Ascending states (e.g., a BitVector).
        :param values: Value of every in-state.
        """
        self._states = list(in_states)
        self.values = list(values)
        if len(self._states) != len(self.values):
            raise ValueError("Got {} in-states but {} values".format(len(self._states), len(self.values)))

    @property
    def states(self):
        return self._states

    def get(self, state):
        """
        :param state: An in-state of the epoch.
        :return: Its value.
        """
        index = bisect.bisect_left(self._states, state)
        if index == len(self._states) or self._states[index] != state:
            raise KeyError("State {} is not an in-state of the epoch".format(state))
        return self.values[index]

    def items(self):
        return zip(self._states, self.values)

    def __len__(self):
        return len(self._states)

    def __str__(self):
        return "{" + ", ".join("{}: {}".format(s, v) for s, v in self.items()) + "}"


class EpochSequenceSolver:
    """
    Analyses epoch models one after another and keeps their solutions.

    Epochs have to be handed over in dependency order: whenever an epoch has a step into another epoch, that
    epoch has to be solved before. All epochs share one EpochSolverContext, so consecutive epochs with the same
    epoch matrix reuse the equation solver.
    """

    def __init__(self, env=None, direction=None, lower_bound=None, upper_bound=None):
        """
        :param env: SolverEnvironment, created from the configuration if None.
        :param direction: OptimizationDirection for non-deterministic models.
        :param lower_bound: Optional lower bound on all values.
        :param upper_bound: Optional upper bound on all values.
        """
        self._env = env if env is not None else SolverEnvironment.from_configuration()
        self._direction = direction
        self._lower_bound = lower_bound
        self._upper_bound = upper_bound
        self._context = EpochSolverContext()
        self._solutions = OrderedDict()

    @property
    def context(self):
        return self._context

    @property
    def environment(self):
        return self._env

    def solve_epoch(self, epoch, epoch_model):
        """
        Analyse the model of the given epoch and store the result.
        :param epoch: Hashable identifier of the epoch.
        :param epoch_model: EpochModel with all step solutions filled in.
        :return: The values of the in-states of the epoch.
        """
        if epoch in self._solutions:
            raise PreconditionViolationError("Epoch {} has already been solved.".format(epoch))
        values = epoch_model.analyze_single_objective(self._env, self._context, self._direction,
                                                      self._lower_bound, self._upper_bound)
        self._solutions[epoch] = EpochSolution(epoch_model.epoch_in_states, values)
        logger.debug("Solved epoch {}: {}".format(epoch, self._solutions[epoch]))
        return values

    def solve(self, epochs):
        """
        Solve a sequence of epochs.
        :param epochs: Iterable of (epoch, builder) pairs in dependency order. The builder is called with this
            solver (to obtain step solutions) and returns the EpochModel.
        :return: OrderedDict from epochs to their EpochSolution.
        """
        for epoch, builder in epochs:
            self.solve_epoch(epoch, builder(self))
        logger.info("Solved {} epochs".format(len(self._solutions)))
        return self._solutions

    def has_solution(self, epoch):
        return epoch in self._solutions

    def get_solution(self, epoch):
        if epoch not in self._solutions:
            raise PreconditionViolationError("Epoch {} has not been solved yet.".format(epoch))
        return self._solutions[epoch]

    def step_solution(self, weight, epoch, state):
        """
        Compute the contribution of a step into another epoch.
        :param weight: Probability of the step.
        :param epoch: The epoch the step leads into.
        :param state: The state of that epoch the step leads into.
        :return: weight times the value of the state.
        """
        return weight * self.get_solution(epoch).get(state)

    def usage_stats(self):
        return self._context.usage_stats()
