from fractions import Fraction

import pytest

from rewardbound.solver.environment import SolverEnvironment
from rewardbound.solver.linear_equation_solver import GeneralLinearEquationSolverFactory, \
    EquationSolverProblemFormat, PowerLinearEquationSolver, EliminationLinearEquationSolver, \
    ScipyLinearEquationSolver
from rewardbound.storage.sparse_matrix import SparseMatrixBuilder

from requires import require_scipy


def build_matrix(entries, size, value_type=float):
    builder = SparseMatrixBuilder(value_type=value_type)
    for row, column, value in entries:
        builder.add_next_value(row, column, value)
    return builder.build(row_count=size, column_count=size)


def create_solver(env, entries, size, value_type=float):
    factory = GeneralLinearEquationSolverFactory()
    matrix = build_matrix(entries, size, value_type)
    if factory.get_equation_problem_format(env) == EquationSolverProblemFormat.equation_system:
        matrix = matrix.convert_to_equation_system()
    return factory.create(env, matrix)


def test_factory():
    factory = GeneralLinearEquationSolverFactory()
    matrix = build_matrix([], 1)
    assert isinstance(factory.create(SolverEnvironment("power"), matrix), PowerLinearEquationSolver)
    assert isinstance(factory.create(SolverEnvironment("elimination"), matrix), EliminationLinearEquationSolver)
    assert factory.get_equation_problem_format(SolverEnvironment("power")) == \
        EquationSolverProblemFormat.fixed_point_system
    assert factory.get_equation_problem_format(SolverEnvironment("scipy")) == \
        EquationSolverProblemFormat.equation_system
    assert not factory.get_requirements(SolverEnvironment("power")).has_enabled_requirement()
    assert factory.get_requirements(SolverEnvironment("power", sound=True)).has_enabled_critical_requirement()
    with pytest.raises(ValueError):
        SolverEnvironment("jacobi")


def test_power_iteration():
    solver = create_solver(SolverEnvironment("power"), [(0, 1, 0.5)], 2)
    x = [0.0, 0.0]
    assert solver.solve_equations(x, [1.0, 2.0])
    assert x == pytest.approx([2.0, 2.0])
    assert solver.nr_solves == 1


def test_power_iteration_without_convergence():
    solver = create_solver(SolverEnvironment("power", max_iterations=10), [(0, 0, 1.0)], 1)
    x = [0.0]
    assert not solver.solve_equations(x, [1.0])
    assert x == [10.0]


def test_sound_power_iteration():
    env = SolverEnvironment("power", precision=1e-08, relative=False, sound=True)
    solver = create_solver(env, [(0, 0, 0.5)], 1)
    requirements = solver.get_requirements()
    assert requirements.lower_bounds.critical and requirements.upper_bounds.critical
    solver.set_lower_bound(0)
    solver.set_upper_bound(10)
    x = [0.0]
    assert solver.solve_equations(x, [1.0])
    assert x[0] == pytest.approx(2.0, abs=1e-07)


def test_elimination_is_exact():
    env = SolverEnvironment("elimination")
    solver = create_solver(env, [(0, 0, "1/2"), (0, 1, "1/4"), (1, 0, "1/3")], 2, Fraction)
    x = [Fraction(0), Fraction(0)]
    assert solver.solve_equations(x, [Fraction(1), Fraction(1)])
    # x0 = 1/2 x0 + 1/4 x1 + 1, x1 = 1/3 x0 + 1
    assert x == [Fraction(3), Fraction(2)]


def test_elimination_with_caching():
    solver = create_solver(SolverEnvironment("elimination"), [(0, 1, 1.0)], 2)
    solver.set_caching_enabled(True)
    x = [0.0, 0.0]
    solver.solve_equations(x, [1.0, 2.0])
    assert x == pytest.approx([3.0, 2.0])
    solver.solve_equations(x, [0.0, 1.0])
    assert x == pytest.approx([1.0, 1.0])
    assert solver.nr_solves == 2


def test_elimination_singular_system():
    solver = create_solver(SolverEnvironment("elimination"), [(0, 0, 1.0)], 1)
    with pytest.raises(ArithmeticError):
        solver.solve_equations([0.0], [1.0])


def test_vector_sizes_are_checked():
    solver = create_solver(SolverEnvironment("elimination"), [], 2)
    with pytest.raises(ValueError):
        solver.solve_equations([0.0], [1.0, 1.0])
    with pytest.raises(ValueError):
        solver.solve_equations([0.0, 0.0], [1.0])


@require_scipy()
def test_scipy_solver():
    env = SolverEnvironment("scipy")
    solver = create_solver(env, [(0, 1, 0.5), (1, 1, 0.5)], 2)
    assert isinstance(solver, ScipyLinearEquationSolver)
    solver.set_caching_enabled(True)
    x = [0.0, 0.0]
    assert solver.solve_equations(x, [1.0, 1.0])
    assert x == pytest.approx([2.0, 2.0])
    with pytest.raises(TypeError):
        create_solver(env, [], 1, Fraction)
