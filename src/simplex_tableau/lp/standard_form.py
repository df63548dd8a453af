import logging
from typing import Dict, List, Optional, Sequence

import numpy as np

from ..exceptions import DimensionMismatch, TransformError, UnknownVariableReference
from ..problem import Problem
from ..schemas import LinearTerm, Relation, SolveOptions
from .tableau import ColumnKind, Tableau

logger = logging.getLogger(__name__)

# Relation obtained after multiplying a row by -1.
_MIRRORED: Dict[Relation, Relation] = {
    "<=": ">=",
    "<": ">",
    ">=": "<=",
    ">": "<",
    "==": "==",
}


def build_standard_form(problem: Problem, options: Optional[SolveOptions] = None) -> Tableau:
    """
    Convert a problem into an initial simplex tableau with a feasible basis.

    Every constraint becomes an equality with non-negative right-hand side:
    ``<=``/``<`` rows get a slack, ``>=``/``>`` rows a surplus plus an artificial,
    ``==`` rows an artificial. Strict relations are treated like their non-strict
    counterparts. Minimisation is turned into maximisation of the negated
    objective, and artificials carry a Big-M penalty that is priced out of the
    objective row so the starting basis columns are identity columns.
    """

    opts = options or SolveOptions()
    index = problem.variable_index()
    n = len(problem.variables)

    col_names: List[str] = [var.name for var in problem.variables]
    col_kinds: List[ColumnKind] = ["original"] * n
    rows: List[List[float]] = []
    rhs_values: List[float] = []
    basis: List[int] = []
    row_names: List[str] = []
    row_flipped: List[bool] = []

    def add_column(name: str, kind: ColumnKind) -> int:
        col_names.append(name)
        col_kinds.append(kind)
        for row in rows:
            row.append(0.0)
        return len(col_names) - 1

    for cons in problem.constraints:
        coeffs = _coefficients(cons.lhs.terms, index, f"Constraint '{cons.name}'")
        rhs_value = cons.rhs - cons.lhs.constant
        cmp = cons.cmp
        flipped = rhs_value < 0
        if flipped:
            coeffs = [-value for value in coeffs]
            rhs_value = -rhs_value
            cmp = _MIRRORED[cmp]
        if rhs_value == 0:
            rhs_value = 0.0

        row = coeffs + [0.0] * (len(col_names) - n)
        rows.append(row)

        if cmp in ("<=", "<"):
            idx_slack = add_column(f"s_{cons.name}", "slack")
            row[idx_slack] = 1.0
            basis.append(idx_slack)
        elif cmp in (">=", ">"):
            idx_surplus = add_column(f"e_{cons.name}", "surplus")
            row[idx_surplus] = -1.0
            idx_art = add_column(f"a_{cons.name}", "artificial")
            row[idx_art] = 1.0
            basis.append(idx_art)
        elif cmp == "==":
            idx_art = add_column(f"a_{cons.name}", "artificial")
            row[idx_art] = 1.0
            basis.append(idx_art)
        else:
            raise TransformError(f"Constraint '{cons.name}' has unsupported relation {cmp!r}.")

        rhs_values.append(rhs_value)
        row_names.append(cons.name)
        row_flipped.append(flipped)

    m = len(rows)
    total = len(col_names)
    for row_idx, row in enumerate(rows):
        if len(row) != total:
            raise DimensionMismatch(f"columns in row {row_idx}", total, len(row))
    if len(basis) != m:
        raise DimensionMismatch("basis entries", m, len(basis))

    objective = _coefficients(problem.objective.expr.terms, index, "Objective")
    if problem.objective.sense == "min":
        objective = [-value for value in objective]

    big_m = _penalty(opts.big_m, rows, rhs_values, objective, n)

    matrix = np.zeros((m + 1, total + 1), dtype=float)
    if m:
        matrix[:m, :total] = np.array(rows, dtype=float)
        matrix[:m, -1] = rhs_values
    matrix[m, :n] = [-value for value in objective]
    artificial_rows = [r for r, col in enumerate(basis) if col_kinds[col] == "artificial"]
    for r in artificial_rows:
        matrix[m, basis[r]] = big_m
    for r in artificial_rows:
        matrix[m] -= big_m * matrix[r]

    logger.debug(
        "Standard form for %s: %d rows x %d columns (%d slack, %d surplus, %d artificial), big-M=%g",
        problem.name,
        m + 1,
        total + 1,
        col_kinds.count("slack"),
        col_kinds.count("surplus"),
        col_kinds.count("artificial"),
        big_m,
    )

    return Tableau(
        matrix,
        basis,
        row_names + ["z"],
        col_names + ["RHS"],
        column_kinds=col_kinds,
        sense=problem.objective.sense,
        objective_constant=problem.objective.expr.constant,
        row_flipped=row_flipped,
        big_m=big_m,
        tol=opts.tol,
    )


def _coefficients(terms: Sequence[LinearTerm], index: Dict[str, int], where: str) -> List[float]:
    coeffs = [0.0] * len(index)
    for term in terms:
        col = index.get(term.var)
        if col is None:
            raise UnknownVariableReference(term.var, where)
        coeffs[col] += term.coef
    return coeffs


def _penalty(
    requested: float,
    rows: List[List[float]],
    rhs_values: List[float],
    objective: List[float],
    n: int,
) -> float:
    """Big-M large enough to dominate every coefficient of the problem."""
    scale = max(
        [abs(value) for row in rows for value in row[:n]]
        + [abs(value) for value in rhs_values]
        + [abs(value) for value in objective]
        + [0.0]
    )
    return max(requested, 1e3 * scale)
