import threading
from concurrent.futures import ThreadPoolExecutor

import numpy as np
import pytest

from simplex_tableau.exceptions import IterationLimitExceeded, TableauBusyError
from simplex_tableau.lp.simplex import SimplexDriver, SolverState, simplex_solve, solve
from simplex_tableau.lp.standard_form import build_standard_form
from simplex_tableau.problem import Problem, ProblemBuilder, make_variables
from simplex_tableau.schemas import Objective, Solution, SolveOptions


def make_production(sense: str = "max") -> Problem:
    x1, x2 = make_variables("x1 x2")
    objective = Objective.maximize(5 * x1 + 3 * x2) if sense == "max" else Objective.minimize(-5 * x1 - 3 * x2)
    return (
        ProblemBuilder("production")
        .set_objective(objective)
        .add_constraint(9 * x1 + 3 * x2 <= 27)
        .add_constraint(2 * x1 + x2 <= 7)
        .add_constraint(2 * x1 + 2 * x2 <= 12)
        .build()
    )


class CancelAfter:
    def __init__(self, checks: int) -> None:
        self.checks = checks

    def is_set(self) -> bool:
        self.checks -= 1
        return self.checks < 0


def test_driver_walks_vertices_with_non_decreasing_objective():
    driver = SimplexDriver(build_standard_form(make_production()))
    state = driver.run()

    assert state == SolverState.OPTIMAL
    assert driver.history == pytest.approx([15.0, 19.0, 20.0])
    assert all(later >= earlier for earlier, later in zip(driver.history, driver.history[1:]))
    assert driver.tableau.basis == [0, 1, 2]
    assert driver.tableau.is_feasible()


def test_every_pivot_leaves_an_identity_column():
    x, y, z = make_variables("x y z")
    problem = Problem.from_parts(
        [x + y + z <= 10, x - y >= 1, (y + z).equal(4)],
        Objective.maximize(2 * x + y + 3 * z),
    )
    driver = SimplexDriver(build_standard_form(problem))

    while driver.state not in (SolverState.OPTIMAL, SolverState.INFEASIBLE, SolverState.UNBOUNDED):
        before = driver.iterations
        driver.step()
        if driver.iterations > before:
            matrix = driver.tableau.get_matrix()
            for row, column in enumerate(driver.tableau.basis):
                expected = np.zeros(driver.tableau.row_count)
                expected[row] = 1.0
                np.testing.assert_array_equal(matrix[:, column], expected)

    assert driver.state == SolverState.OPTIMAL
    solution = driver.solution()
    # z = 4 - y and x <= 10 - y - z = 6 make x = 6, y = 0, z = 4 optimal
    assert solution.x == pytest.approx({"x": 6.0, "y": 0.0, "z": 4.0}, abs=1e-9)
    assert solution.objective_value == pytest.approx(24.0)


def test_minimize_matches_maximize_after_negation():
    maximised = solve(make_production("max"))
    minimised = solve(make_production("min"))

    assert minimised.status == "optimal"
    assert minimised.x == pytest.approx(maximised.x)
    assert minimised.objective_value == pytest.approx(-maximised.objective_value)


def test_infeasible_pair_of_constraints():
    x1, x2 = make_variables("x1 x2")
    problem = Problem.from_parts([x1 + x2 <= 2, x1 + x2 >= 5], Objective.minimize(x1 + x2))
    solution = simplex_solve(problem)

    assert solution.status == "infeasible"
    assert solution.x is None


def test_unbounded_direction_is_reported():
    x1, x2 = make_variables("x1 x2")
    solution = simplex_solve(Problem.from_parts([x1 - x2 <= 1], Objective.maximize(x1)))

    assert solution.status == "unbounded"
    # x1 - x2 <= 1 lets x1 grow only by raising x2, which is the column that enters on the ray
    assert solution.unbounded_variable == "x2"
    assert "entered on the unbounded ray" in Solution.model_fields["unbounded_variable"].description


def test_ray_with_positive_artificial_is_infeasible_not_unbounded():
    x1, x2, x3, x4 = make_variables("x1 x2 x3 x4")
    problem = Problem.from_parts(
        [x1 + x2 <= 2, x1 + x2 >= 5, x3 - x4 <= 1],
        Objective.maximize(x3),
    )

    assert simplex_solve(problem).status == "infeasible"


def test_ray_after_artificials_leave_is_unbounded():
    x1, x2 = make_variables("x1 x2")
    problem = Problem.from_parts([x1 - x2 <= 1, x2 >= 2], Objective.maximize(x1))

    assert simplex_solve(problem).status == "unbounded"


def test_problem_without_constraints():
    x = make_variables("x")[0]

    assert simplex_solve(Problem.from_parts([], Objective.maximize(x))).status == "unbounded"
    bounded = simplex_solve(Problem.from_parts([], Objective.minimize(x)))
    assert bounded.status == "optimal"
    assert bounded.x == {"x": 0.0}


def test_strict_inequalities_solve_like_non_strict():
    x, y = make_variables("x y")
    solution = simplex_solve(Problem.from_parts([x + y < 4, x > 1], Objective.maximize(x + 2 * y)))

    assert solution.status == "optimal"
    assert solution.x == pytest.approx({"x": 1.0, "y": 3.0})
    assert solution.objective_value == pytest.approx(7.0)


def make_beale() -> Problem:
    x4, x5, x6, x7 = make_variables("x4 x5 x6 x7")
    return Problem.from_parts(
        [
            0.25 * x4 - 8 * x5 - x6 + 9 * x7 <= 0,
            0.5 * x4 - 12 * x5 - 0.5 * x6 + 3 * x7 <= 0,
            x6 <= 1,
        ],
        Objective.maximize(0.75 * x4 - 20 * x5 + 0.5 * x6 - 6 * x7),
    )


def test_bland_rule_terminates_on_beale_cycling_example():
    solution = simplex_solve(make_beale(), SolveOptions(pivot_rule="bland"))

    assert solution.status == "optimal"
    assert solution.objective_value == pytest.approx(1.25)
    assert solution.x == pytest.approx({"x4": 1.0, "x5": 0.0, "x6": 1.0, "x7": 0.0}, abs=1e-9)


def test_default_rule_falls_back_to_bland_on_degenerate_cycle():
    solution = simplex_solve(make_beale())

    assert solution.status == "optimal"
    assert solution.objective_value == pytest.approx(1.25)
    assert solution.x == pytest.approx({"x4": 1.0, "x5": 0.0, "x6": 1.0, "x7": 0.0}, abs=1e-9)

    driver = SimplexDriver(build_standard_form(make_beale()))
    driver.run()
    # three degenerate Dantzig pivots, then Bland finishes in three more
    assert driver.rule == "bland"
    assert driver.iterations == 6
    assert driver.history[:4] == pytest.approx([0.0, 0.0, 0.0, 0.0])
    assert driver.history[-1] == pytest.approx(1.25)


def test_non_degenerate_solve_keeps_dantzig():
    driver = SimplexDriver(build_standard_form(make_production()))
    driver.run()

    assert driver.rule == "dantzig"
    assert driver.degenerate_streak == 0


def test_entering_and_leaving_rules_break_ties_by_lowest_index():
    x, y = make_variables("x y")
    # equal reduced costs and equal ratios: x enters, the row whose basic column comes first leaves
    problem = Problem.from_parts([x + y <= 4, x <= 4], Objective.maximize(x + y))
    driver = SimplexDriver(build_standard_form(problem))

    assert driver.entering_column() == 0
    assert driver.leaving_row(0) == 0


def test_cancellation_is_checked_between_pivots():
    already = threading.Event()
    already.set()
    cancelled = simplex_solve(make_production(), cancel=already)
    assert cancelled.status == "cancelled"
    assert cancelled.iterations == 0
    assert cancelled.x is None

    driver = SimplexDriver(build_standard_form(make_production()), cancel=CancelAfter(1))
    assert driver.run() == SolverState.CANCELLED
    assert driver.iterations == 1
    assert driver.solution().status == "cancelled"


def test_iteration_limit_is_fatal():
    driver = SimplexDriver(build_standard_form(make_production()))
    driver.limit = 1

    with pytest.raises(IterationLimitExceeded):
        driver.run()


def test_tableau_is_held_for_the_whole_solve():
    tableau = build_standard_form(make_production())
    with tableau.exclusive():
        with pytest.raises(TableauBusyError):
            SimplexDriver(tableau).run()


def test_independent_problems_solve_in_parallel():
    with ThreadPoolExecutor(max_workers=4) as pool:
        solutions = list(pool.map(lambda _: simplex_solve(make_production()), range(8)))

    assert all(sol.objective_value == pytest.approx(20.0) for sol in solutions)
