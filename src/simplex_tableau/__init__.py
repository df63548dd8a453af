"""Linear programming with the primal tableau simplex method."""

from .exceptions import (
    DimensionMismatch,
    IterationLimitExceeded,
    MissingObjectiveError,
    OutOfBoundsError,
    PivotError,
    SimplexError,
    TableauBusyError,
    TransformError,
    UnknownVariableReference,
)
from .lp import SimplexDriver, SolverState, Tableau, build_standard_form, simplex_solve, solve
from .problem import Problem, ProblemBuilder, make_variables
from .schemas import Constraint, LinearExpr, LinearTerm, Objective, Solution, SolveOptions, Variable

__all__ = [
    "Constraint",
    "DimensionMismatch",
    "IterationLimitExceeded",
    "LinearExpr",
    "LinearTerm",
    "MissingObjectiveError",
    "Objective",
    "OutOfBoundsError",
    "PivotError",
    "Problem",
    "ProblemBuilder",
    "SimplexDriver",
    "SimplexError",
    "Solution",
    "SolveOptions",
    "SolverState",
    "Tableau",
    "TableauBusyError",
    "TransformError",
    "UnknownVariableReference",
    "Variable",
    "build_standard_form",
    "make_variables",
    "simplex_solve",
    "solve",
]
