import json

import pytest

from rewardbound.data.model_type import ModelType
from rewardbound.data.optimization_direction import OptimizationDirection
from rewardbound.exceptions.epoch_file_error import EpochFileError
from rewardbound.input.epochfile import EpochFile
from rewardbound.solver.environment import SolverEnvironment
from rewardbound.solver.linear_equation_solver import EquationSolverProblemFormat
from rewardbound.rewardbounded.epoch_sequence import EpochSequenceSolver

from helpers.helper import get_example_path
from requires import require_pycarl


def write_epoch_file(tmp_path, content):
    path = tmp_path / "epochs.json"
    path.write_text(json.dumps(content))
    return str(path)


def selfloop_content(**kwargs):
    content = {
        "epochs": [
            {"name": "e1", "states": 1, "transitions": [[0, 0, 0.5]], "in-states": [0], "rewards": [[0, 1.0]]},
            {"name": "e0", "states": 1, "transitions": [[0, 0, 0.5]], "in-states": [0], "rewards": [[0, 1.0]],
             "steps": [[0, "e1", 0, 0.5]]},
        ]
    }
    content.update(kwargs)
    return content


def test_parse_dtmc():
    epoch_file = EpochFile(get_example_path("epochs", "selfloop_dtmc.json"))
    assert epoch_file.model_type == ModelType.DTMC
    assert epoch_file.direction is None
    assert epoch_file.value_type is float
    assert epoch_file.get_nr_epochs() == 2
    assert epoch_file.epoch_names() == ["e1", "e0"]


def test_parse_mdp():
    epoch_file = EpochFile(get_example_path("epochs", "two_choices_mdp.json"))
    assert epoch_file.model_type == ModelType.MDP
    assert epoch_file.direction == OptimizationDirection.minimize


@pytest.mark.parametrize("linear_method", ["power", "elimination"])
def test_solve_dtmc(linear_method):
    epoch_file = EpochFile(get_example_path("epochs", "selfloop_dtmc.json"))
    solver = epoch_file.solve(SolverEnvironment(linear_method))
    assert solver.get_solution("e1").get(0) == pytest.approx(2.0, rel=1e-05)
    assert solver.get_solution("e0").get(0) == pytest.approx(4.0, rel=1e-05)
    assert solver.context.nr_solver_builds == 1
    assert solver.context.nr_non_trivial_epochs == 2


def test_solve_chain():
    solver = EpochFile(get_example_path("epochs", "chain_dtmc.json")).solve(SolverEnvironment("power"))
    assert list(solver.get_solution("budget0").items()) == [(0, 1.0), (2, 3.0)]
    assert solver.get_solution("budget1").values == pytest.approx([3.0, 5.0, 3.0])
    assert solver.get_solution("budget2").values == pytest.approx([4.0, 3.0])
    assert solver.context.nr_trivial_epochs == 1
    assert solver.context.nr_solver_builds == 1


@pytest.mark.parametrize("env", [
    SolverEnvironment(minmax_method="value-iteration"),
    SolverEnvironment(linear_method="elimination", minmax_method="policy-iteration"),
])
def test_solve_mdp(env):
    solver = EpochFile(get_example_path("epochs", "two_choices_mdp.json")).solve(env)
    assert solver.get_solution("base").values == [2.0]
    assert solver.get_solution("top").values == pytest.approx([2.0], rel=1e-05)


@require_pycarl()
def test_solve_exact():
    from rewardbound.adapter.pycarl import Rational
    epoch_file = EpochFile(get_example_path("epochs", "selfloop_dtmc_rational.json"))
    assert epoch_file.value_type is Rational
    solver = epoch_file.solve(SolverEnvironment("elimination"))
    assert solver.get_solution("e0").get(0) == Rational(4)


def test_build_epoch_model():
    epoch_file = EpochFile(get_example_path("epochs", "selfloop_dtmc.json"))
    solver = EpochSequenceSolver(SolverEnvironment("elimination"))
    epoch_model = epoch_file.build_epoch_model(0, solver)
    assert epoch_model.epoch_matrix_changed
    assert epoch_model.equation_solver_problem_format == EquationSolverProblemFormat.equation_system
    assert epoch_model.epoch_matrix.get_row(0) == [(0, 0.5)]
    solver.solve_epoch("e1", epoch_model)

    next_model = epoch_file.build_epoch_model(1, solver, epoch_model.epoch_matrix)
    assert not next_model.epoch_matrix_changed
    assert next_model.step_choices == [0]
    assert next_model.step_solutions == [1.0]


def test_steps_of_a_choice_are_summed(tmp_path):
    content = selfloop_content()
    content["epochs"][1]["steps"].append([0, "e1", 0, 0.25])
    solver = EpochFile(write_epoch_file(tmp_path, content)).solve(SolverEnvironment("elimination"))
    # b = 1 + 0.75 * 2
    assert solver.get_solution("e0").get(0) == pytest.approx(5.0)


def test_bounds_are_passed_to_the_solver(tmp_path):
    env = SolverEnvironment("power", sound=True, relative=False, precision=1e-08)
    path = write_epoch_file(tmp_path, selfloop_content(**{"lower-bound": 0, "upper-bound": "10"}))
    solver = EpochFile(path).solve(env)
    assert solver.get_solution("e0").get(0) == pytest.approx(4.0, abs=1e-06)


@pytest.mark.parametrize("change", [
    {"model-type": "ctmc"},
    {"model-type": "mdp"},
    {"direction": "sup"},
    {"value-type": "complex"},
    {"epochs": []},
])
def test_invalid_header(tmp_path, change):
    with pytest.raises(EpochFileError):
        EpochFile(write_epoch_file(tmp_path, selfloop_content(**change)))


@pytest.mark.parametrize("key,value", [
    ("states", -1),
    ("choices", [2]),
    ("transitions", [[0, 1, 0.5]]),
    ("in-states", [1]),
    ("rewards", [[1, 1.0]]),
    ("steps", [[0, "e0", 0, 0.5]]),
    ("steps", [[0, "e2", 0, 0.5]]),
])
def test_invalid_epoch(tmp_path, key, value):
    content = selfloop_content()
    content["epochs"][1][key] = value
    with pytest.raises(EpochFileError) as excinfo:
        EpochFile(write_epoch_file(tmp_path, content))
    assert excinfo.value.location.endswith("epochs.json")


def test_duplicate_epoch(tmp_path):
    content = selfloop_content()
    content["epochs"][1]["name"] = "e1"
    with pytest.raises(EpochFileError):
        EpochFile(write_epoch_file(tmp_path, content))


def test_invalid_json(tmp_path):
    path = tmp_path / "broken.json"
    path.write_text("{ \"epochs\": [")
    with pytest.raises(EpochFileError):
        EpochFile(str(path))
    with pytest.raises(IOError):
        EpochFile(str(tmp_path / "missing.json"))


def test_errors_while_solving(tmp_path):
    content = selfloop_content()
    content["epochs"][0]["transitions"].append([0, 0, 0.25])
    with pytest.raises(EpochFileError):
        EpochFile(write_epoch_file(tmp_path, content)).solve(SolverEnvironment("elimination"))

    content = selfloop_content()
    content["epochs"][0]["in-states"] = []
    with pytest.raises(EpochFileError):
        EpochFile(write_epoch_file(tmp_path, content)).solve(SolverEnvironment("elimination"))

    content = selfloop_content()
    content["epochs"][0]["rewards"] = [[0, "one"]]
    with pytest.raises(EpochFileError):
        EpochFile(write_epoch_file(tmp_path, content)).solve(SolverEnvironment("elimination"))


@pytest.mark.parametrize("key,value", [
    ("name", ["e0"]),
    ("states", "1"),
    ("states", True),
    ("choices", 1),
    ("choices", ["1"]),
    ("transitions", [5]),
    ("transitions", [[0, "0", 0.5]]),
    ("transitions", {"0": [0, 0.5]}),
    ("in-states", ["0"]),
    ("in-states", 0),
    ("rewards", [7]),
    ("rewards", [[0.0, 1.0]]),
    ("steps", ["e1"]),
    ("steps", [[0, ["e1"], 0, 0.5]]),
    ("steps", [[0, "e1", "0", 0.5]]),
])
def test_badly_typed_epoch(tmp_path, key, value):
    content = selfloop_content()
    content["epochs"][1][key] = value
    with pytest.raises(EpochFileError):
        EpochFile(write_epoch_file(tmp_path, content))


@pytest.mark.parametrize("change", [
    {"model-type": 1},
    {"direction": ["min"]},
    {"value-type": ["double"]},
])
def test_badly_typed_header(tmp_path, change):
    with pytest.raises(EpochFileError):
        EpochFile(write_epoch_file(tmp_path, selfloop_content(**change)))
