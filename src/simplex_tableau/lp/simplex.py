import logging
from enum import Enum
from typing import Dict, List, Optional, Protocol

import numpy as np

from ..exceptions import IterationLimitExceeded, SimplexError
from ..problem import Problem
from ..schemas import SolveOptions, Solution
from .standard_form import build_standard_form
from .tableau import Tableau

logger = logging.getLogger(__name__)


class SolverState(str, Enum):
    INITIALIZED = "initialized"
    ITERATING = "iterating"
    OPTIMAL = "optimal"
    UNBOUNDED = "unbounded"
    INFEASIBLE = "infeasible"
    CANCELLED = "cancelled"


TERMINAL_STATES = frozenset(
    {SolverState.OPTIMAL, SolverState.UNBOUNDED, SolverState.INFEASIBLE, SolverState.CANCELLED}
)


class CancelToken(Protocol):
    def is_set(self) -> bool: ...


def simplex_solve(
    problem: Problem,
    options: Optional[SolveOptions] = None,
    cancel: Optional[CancelToken] = None,
) -> Solution:
    """
    Solve ``problem`` with the Big-M tableau simplex method.

    Unbounded, infeasible and cancelled solves are reported through
    ``Solution.status``; exceptions are reserved for invalid input and broken
    internal invariants.
    """

    opts = options or SolveOptions()
    tableau = build_standard_form(problem, opts)
    driver = SimplexDriver(tableau, opts, cancel=cancel)
    driver.run()
    return driver.solution()


solve = simplex_solve


class SimplexDriver:
    """
    Drives one tableau from its initial basis to a terminal state.

    The driver owns the tableau for the duration of ``run``; pivots are applied
    in place and cancellation is only observed between pivots.
    """

    def __init__(
        self,
        tableau: Tableau,
        options: Optional[SolveOptions] = None,
        cancel: Optional[CancelToken] = None,
    ) -> None:
        self.tableau = tableau
        self.options = options or SolveOptions()
        self.cancel = cancel
        self.state = SolverState.INITIALIZED
        self.iterations = 0
        self.limit = tableau.row_count * tableau.column_count
        # objective-row RHS (maximisation form, Big-M penalty included) after each pivot
        self.history: List[float] = []
        self.unbounded_column: Optional[int] = None
        self.remaining_artificials: List[int] = []
        # Dantzig can cycle on degenerate vertices; Bland's rule cannot, so the
        # driver falls back to it for good after this many degenerate pivots in a row.
        self.rule = self.options.pivot_rule
        self.degenerate_limit = max(1, tableau.row_count - 1)
        self.degenerate_streak = 0

    def entering_column(self) -> Optional[int]:
        tol = self.options.tol
        costs = self.tableau.objective_coefficients()
        best: Optional[int] = None
        best_value = -tol
        for col, value in enumerate(costs):
            if value >= -tol:
                continue
            if self.rule == "bland":
                return col
            # strict comparison keeps the lowest index on ties
            if value < best_value:
                best, best_value = col, value
        return best

    def leaving_row(self, column: int) -> Optional[int]:
        tol = self.options.tol
        matrix = self.tableau.get_matrix()
        basis = self.tableau.basis
        best_row: Optional[int] = None
        best_ratio = np.inf
        for row in range(self.tableau.row_count - 1):
            entry = matrix[row, column]
            if entry <= tol:
                continue
            ratio = matrix[row, -1] / entry
            if best_row is None or ratio < best_ratio - tol:
                best_row, best_ratio = row, ratio
            elif abs(ratio - best_ratio) <= tol and basis[row] < basis[best_row]:
                best_row, best_ratio = row, min(ratio, best_ratio)
        return best_row

    def step(self) -> SolverState:
        """Perform at most one pivot and return the resulting state."""
        if self.state in TERMINAL_STATES:
            return self.state
        self.state = SolverState.ITERATING

        column = self.entering_column()
        if column is None:
            self.state = self._classify_optimum()
            return self.state

        row = self.leaving_row(column)
        if row is None:
            self.unbounded_column = column
            self.state = self._classify_ray()
            return self.state

        if self.iterations >= self.limit:
            raise IterationLimitExceeded(self.limit)

        leaving = self.tableau.basis_of(row)
        degenerate = self.tableau.get(row, self.tableau.column_count - 1) <= self.options.tol
        self.tableau.pivot(row, column)
        self.iterations += 1
        self._track_degeneracy(degenerate)
        self.history.append(self.tableau.get(self.tableau.row_count - 1, self.tableau.column_count - 1))
        if logger.isEnabledFor(logging.DEBUG):
            names = self.tableau.column_names()
            logger.debug(
                "pivot %d: %s enters, %s leaves at row %d, objective row rhs %.6g",
                self.iterations,
                names[column],
                names[leaving],
                row,
                self.history[-1],
            )
        return self.state

    def run(self) -> SolverState:
        with self.tableau.exclusive():
            while self.state not in TERMINAL_STATES:
                if self.cancel is not None and self.cancel.is_set():
                    self.state = SolverState.CANCELLED
                    break
                self.step()
        logger.info("Simplex finished: %s after %d pivots", self.state.value, self.iterations)
        return self.state

    def solution(self) -> Solution:
        names = self.tableau.column_names()

        if self.state == SolverState.OPTIMAL:
            kinds = self.tableau.column_kinds()
            x = {
                names[col]: _clean(self.tableau.value_of(col))
                for col, kind in enumerate(kinds)
                if kind == "original"
            }
            reduced_costs = duals = None
            if self.options.return_duals:
                reduced_costs = self._reduced_costs()
                duals = self._duals()
            return Solution(
                status="optimal",
                objective_value=_clean(self.tableau.objective_value()),
                x=x,
                reduced_costs=reduced_costs,
                duals=duals,
                iterations=self.iterations,
            )
        if self.state == SolverState.UNBOUNDED:
            variable = names[self.unbounded_column] if self.unbounded_column is not None else None
            return Solution(
                status="unbounded",
                objective_value=None,
                x=None,
                iterations=self.iterations,
                unbounded_variable=variable,
                message=f"Unbounded: objective grows without limit as '{variable}' increases.",
            )
        if self.state == SolverState.INFEASIBLE:
            stuck = ", ".join(names[col] for col in self.remaining_artificials)
            return Solution(
                status="infeasible",
                objective_value=None,
                x=None,
                iterations=self.iterations,
                message=f"Infeasible: artificial variables remain positive ({stuck}).",
            )
        if self.state == SolverState.CANCELLED:
            return Solution(
                status="cancelled",
                objective_value=None,
                x=None,
                iterations=self.iterations,
                message=f"Cancelled after {self.iterations} pivots.",
            )
        raise SimplexError(f"No solution available in state '{self.state.value}'.")

    def _track_degeneracy(self, degenerate: bool) -> None:
        self.degenerate_streak = self.degenerate_streak + 1 if degenerate else 0
        if self.rule != "bland" and self.degenerate_streak >= self.degenerate_limit:
            logger.info(
                "%d degenerate pivots in a row, switching to Bland's rule at pivot %d",
                self.degenerate_streak,
                self.iterations,
            )
            self.rule = "bland"

    def _positive_artificials(self, tableau: Tableau) -> List[int]:
        kinds = tableau.column_kinds()
        tol = self.options.tol
        return [
            col
            for row, col in enumerate(tableau.basis)
            if kinds[col] == "artificial" and tableau.get(row, tableau.column_count - 1) > tol
        ]

    def _classify_optimum(self) -> SolverState:
        self.remaining_artificials = self._positive_artificials(self.tableau)
        if self.remaining_artificials:
            return SolverState.INFEASIBLE
        return SolverState.OPTIMAL

    def _classify_ray(self) -> SolverState:
        """
        A ray was found. While artificials are still positive the problem may
        have no feasible point at all, so minimise their sum on a copy first.
        """
        if not self._positive_artificials(self.tableau):
            return SolverState.UNBOUNDED

        probe = self.tableau.copy()
        probe.sense = "max"
        probe.objective_constant = 0.0
        kinds = probe.column_kinds()
        matrix = probe.get_matrix()
        row = np.zeros(probe.column_count, dtype=float)
        for col, kind in enumerate(kinds):
            if kind == "artificial":
                row[col] = 1.0
        for r, col in enumerate(probe.basis):
            if kinds[col] == "artificial":
                row -= matrix[r]
        probe.set_objective_row(row)

        feasibility = SimplexDriver(probe, self.options.model_copy(update={"return_duals": False}))
        if feasibility.run() == SolverState.INFEASIBLE:
            self.remaining_artificials = feasibility.remaining_artificials
            return SolverState.INFEASIBLE
        return SolverState.UNBOUNDED

    def _reduced_costs(self) -> Dict[str, float]:
        costs = self.tableau.objective_coefficients()
        names = self.tableau.column_names()
        return {
            names[col]: _clean(-float(costs[col]))
            for col, kind in enumerate(self.tableau.column_kinds())
            if kind == "original"
        }

    def _duals(self) -> Dict[str, float]:
        """Shadow prices of the maximised problem, read from the starting basis columns."""
        costs = self.tableau.objective_coefficients()
        kinds = self.tableau.column_kinds()
        row_names = self.tableau.row_names()
        flipped = self.tableau.row_flipped()
        duals: Dict[str, float] = {}
        for row, col in enumerate(self.tableau.initial_basis):
            value = float(costs[col])
            if kinds[col] == "artificial":
                value -= self.tableau.big_m
            if flipped[row]:
                value = -value
            duals[row_names[row]] = _clean(value)
        return duals


def _clean(value: float) -> float:
    return 0.0 if abs(value) < 1e-12 else float(value)
