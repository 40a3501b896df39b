import json
import logging

from rewardbound import config
from rewardbound.data.bitvector import BitVector
from rewardbound.data.model_type import ModelType, model_is_nondeterministic
from rewardbound.data.optimization_direction import OptimizationDirection
from rewardbound.exceptions.epoch_file_error import EpochFileError
from rewardbound.rewardbounded.epoch_model import EpochModel
from rewardbound.rewardbounded.epoch_sequence import EpochSequenceSolver
from rewardbound.solver.environment import SolverEnvironment
from rewardbound.solver.linear_equation_solver import GeneralLinearEquationSolverFactory, EquationSolverProblemFormat
from rewardbound.storage.sparse_matrix import SparseMatrixBuilder
from rewardbound.util import check_filepath_for_reading
from rewardbound.utility.numbers import get_value_type, convert_number, zero

logger = logging.getLogger(__name__)


class EpochFile:
    """
    Wrapper for epoch sequence files.

    An epoch sequence file is a JSON document describing the epochs of an unfolded reward-bounded property
    in dependency order::

        {
          "model-type": "mdp",
          "direction": "max",
          "value-type": "double",
          "lower-bound": 0,
          "upper-bound": 10,
          "epochs": [
            {
              "name": "e0",
              "states": 2,
              "choices": [1, 2],
              "transitions": [[1, 0, 0.5]],
              "in-states": [0, 1],
              "rewards": [[0, 1.0], [2, "1/2"]],
              "steps": [[1, "e-1", 0, 0.5]]
            }
          ]
        }

    Transitions [choice, target state, probability] stay inside the epoch and form the fixed-point matrix A.
    Steps [choice, epoch, state, probability] lead into an earlier epoch of the file.
    "choices" (number of choices per state) is only allowed for MDPs; "direction", "value-type" and the bounds
    are optional.
    """

    def __init__(self, location):
        check_filepath_for_reading(location, "epoch file")
        self.location = location
        self.model_type = None
        self.direction = None
        self.value_type_name = None
        self.lower_bound = None
        self.upper_bound = None
        self.epochs = []
        self._parse()

    def _error(self, message):
        return EpochFileError(message, self.location)

    def _parse(self):
        with open(self.location, 'r') as f:
            try:
                content = json.load(f)
            except json.JSONDecodeError as e:
                raise self._error("Invalid JSON: {}".format(e))
        if not isinstance(content, dict):
            raise self._error("Expected a JSON object at top level")

        try:
            self.model_type = ModelType.from_string(self._get_string(content, "model-type", "dtmc"))
        except ValueError as e:
            raise self._error(str(e))
        if "direction" in content:
            try:
                self.direction = OptimizationDirection.from_string(self._get_string(content, "direction"))
            except ValueError as e:
                raise self._error(str(e))
        elif model_is_nondeterministic(self.model_type):
            raise self._error("An optimization direction is required for {}s".format(self.model_type))
        self.value_type_name = content.get("value-type", config.configuration.get_value_type_name())
        if self.value_type_name not in config.VALUE_TYPES:
            raise self._error("Value type '{}' is not known".format(self.value_type_name))
        self.lower_bound = content.get("lower-bound")
        self.upper_bound = content.get("upper-bound")

        epochs = content.get("epochs")
        if not isinstance(epochs, list) or len(epochs) == 0:
            raise self._error("Expected a non-empty list of epochs")
        names = set()
        for description in epochs:
            self._check_epoch(description, names)
            names.add(description["name"])
            self.epochs.append(description)
        logger.debug("Loaded {} epochs of a {} from {}".format(len(self.epochs), self.model_type, self.location))

    def _get_string(self, content, key, default=None):
        value = content.get(key, default)
        if not isinstance(value, str):
            raise self._error("Entry '{}' must be a string".format(key))
        return value

    def _get_list(self, description, key, default=()):
        entries = description.get(key, list(default))
        if not isinstance(entries, list):
            raise self._error("Entry '{}' of epoch {} must be a list".format(key, description["name"]))
        return entries

    def _check_entries(self, description, key, length, index_bounds):
        """
        Check a list of fixed-length entries whose leading fields are indices.
        :param key: Key of the list in the epoch description.
        :param length: Number of fields of every entry.
        :param index_bounds: Exclusive upper bound of every leading index field (None to skip the field).
        """
        entries = self._get_list(description, key)
        for entry in entries:
            if not isinstance(entry, list) or len(entry) != length or \
                    any(bound is not None and not _is_index(field, bound) for field, bound in zip(entry, index_bounds)):
                raise self._error("Invalid entry {} in '{}' of epoch {}".format(entry, key, description["name"]))
        return entries

    def _check_epoch(self, description, known_names):
        if not isinstance(description, dict) or "name" not in description:
            raise self._error("Every epoch needs a name")
        name = description["name"]
        if not isinstance(name, (str, int)) or isinstance(name, bool):
            raise self._error("Epoch name {!r} must be a string or an integer".format(name))
        if name in known_names:
            raise self._error("Epoch {} is defined twice".format(name))
        nr_states = description.get("states")
        if not _is_index(nr_states, float("inf")):
            raise self._error("Epoch {} needs a non-negative number of states".format(name))
        choices = self._get_list(description, "choices", [1] * nr_states)
        if len(choices) != nr_states or any(not _is_index(c, float("inf")) or c < 1 for c in choices):
            raise self._error("Epoch {} needs a positive number of choices for each of its {} states".format(
                name, nr_states))
        if not model_is_nondeterministic(self.model_type) and any(c != 1 for c in choices):
            raise self._error("Epoch {} has several choices per state, but the model is a {}".format(
                name, self.model_type))
        nr_choices = sum(choices)

        self._check_entries(description, "transitions", 3, [nr_choices, nr_states])
        for state in self._get_list(description, "in-states"):
            if not _is_index(state, nr_states):
                raise self._error("Invalid in-state {!r} in epoch {}".format(state, name))
        self._check_entries(description, "rewards", 2, [nr_choices])
        for step in self._check_entries(description, "steps", 4, [nr_choices, None, None]):
            if not isinstance(step[1], (str, int)) or step[1] not in known_names:
                raise self._error("Step of epoch {} leads into epoch {}, which is not defined before".format(
                    name, step[1]))
            if not _is_index(step[2], float("inf")):
                raise self._error("Invalid target state {!r} of a step in epoch {}".format(step[2], name))

    @property
    def value_type(self):
        return get_value_type(self.value_type_name)

    def get_nr_epochs(self):
        return len(self.epochs)

    def epoch_names(self):
        return [description["name"] for description in self.epochs]

    def _convert(self, value, value_type):
        try:
            return convert_number(value, value_type)
        except (TypeError, ValueError, ZeroDivisionError) as e:
            raise self._error("Invalid number {!r}: {}".format(value, e))

    def build_epoch_model(self, index, solver, previous_matrix=None):
        """
        Build the model of an epoch.
        :param index: Index of the epoch in the file.
        :param solver: EpochSequenceSolver that already solved all epochs the steps lead into.
        :param previous_matrix: Epoch matrix of the previously analysed epoch, if any.
        :return: EpochModel.
        """
        description = self.epochs[index]
        value_type = self.value_type
        nondeterministic = model_is_nondeterministic(self.model_type)
        nr_states = description["states"]
        choices = description.get("choices", [1] * nr_states)
        nr_choices = sum(choices)

        builder = SparseMatrixBuilder(has_custom_row_grouping=nondeterministic, value_type=value_type)
        if nondeterministic:
            row = 0
            for nr_state_choices in choices:
                builder.new_row_group(row)
                row += nr_state_choices
        transitions = sorted(((c, t, self._convert(p, value_type)) for c, t, p in description.get("transitions", [])),
                             key=lambda transition: transition[:2])
        for i, (choice, target, probability) in enumerate(transitions):
            if i > 0 and transitions[i - 1][:2] == (choice, target):
                raise self._error("Duplicate transition from choice {} to state {} in epoch {}".format(
                    choice, target, description["name"]))
            builder.add_next_value(choice, target, probability)
        matrix = builder.build(row_count=nr_choices, column_count=nr_states, row_group_count=nr_states)

        problem_format = EquationSolverProblemFormat.fixed_point_system
        if not nondeterministic:
            problem_format = GeneralLinearEquationSolverFactory().get_equation_problem_format(solver.environment)
            if problem_format == EquationSolverProblemFormat.equation_system:
                matrix = matrix.convert_to_equation_system()

        rewards = [zero(value_type)] * nr_choices
        reward_filter = BitVector(nr_choices)
        for choice, reward in description.get("rewards", []):
            rewards[choice] = self._convert(reward, value_type)
            reward_filter.set(choice)

        step_values = {}
        for choice, epoch, state, probability in description.get("steps", []):
            try:
                value = solver.step_solution(self._convert(probability, value_type), epoch, state)
            except KeyError:
                raise self._error("Step of epoch {} leads into state {}, which is no in-state of epoch {}".format(
                    description["name"], state, epoch))
            step_values[choice] = step_values[choice] + value if choice in step_values else value
        step_choices = sorted(step_values)

        return EpochModel(matrix,
                          BitVector(nr_states, description.get("in-states", [])),
                          [rewards], [reward_filter],
                          step_choices, [step_values[c] for c in step_choices],
                          epoch_matrix_changed=previous_matrix is None or matrix != previous_matrix,
                          equation_solver_problem_format=problem_format,
                          nondeterministic=nondeterministic)

    def solve(self, env=None):
        """
        Solve all epochs of the file in order.
        :param env: SolverEnvironment, created from the configuration if None.
        :return: The EpochSequenceSolver holding all solutions.
        """
        if env is None:
            env = SolverEnvironment.from_configuration()
        value_type = self.value_type
        lower_bound = None if self.lower_bound is None else self._convert(self.lower_bound, value_type)
        upper_bound = None if self.upper_bound is None else self._convert(self.upper_bound, value_type)
        solver = EpochSequenceSolver(env, self.direction, lower_bound, upper_bound)
        previous_matrix = None
        for index, description in enumerate(self.epochs):
            epoch_model = self.build_epoch_model(index, solver, previous_matrix)
            solver.solve_epoch(description["name"], epoch_model)
            previous_matrix = epoch_model.epoch_matrix
        return solver


def _is_index(value, bound):
    return isinstance(value, int) and not isinstance(value, bool) and 0 <= value < bound
