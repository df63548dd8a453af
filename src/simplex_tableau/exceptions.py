"""Error types raised by the tableau simplex solver.

Unbounded and infeasible problems are not errors: they come back as a
``Solution`` with the matching status. Everything here signals bad input
or a broken internal invariant.
"""

from __future__ import annotations


class SimplexError(RuntimeError):
    """Base class for all solver errors."""


class MissingObjectiveError(SimplexError):
    """Raised by ``ProblemBuilder.build`` when no objective was set."""

    def __init__(self) -> None:
        super().__init__("Problem has no objective; call set_objective() before build().")


class TransformError(SimplexError):
    """The standard-form transformation hit an inconsistent problem."""


class UnknownVariableReference(TransformError):
    def __init__(self, variable: str, where: str) -> None:
        self.variable = variable
        self.where = where
        super().__init__(f"{where} references unknown variable '{variable}'.")


class DimensionMismatch(TransformError):
    def __init__(self, what: str, expected: int, actual: int) -> None:
        self.what = what
        self.expected = expected
        self.actual = actual
        super().__init__(f"{what}: expected {expected}, got {actual}.")


class OutOfBoundsError(SimplexError, IndexError):
    """Tableau access outside the matrix; ``axis`` names the offending index."""

    def __init__(self, row: int, column: int, axis: str) -> None:
        self.row = row
        self.column = column
        self.axis = axis
        super().__init__(f"Tableau index out of bounds on {axis} axis: (row={row}, column={column}).")


class PivotError(SimplexError):
    """Pivot requested on a zero entry."""


class TableauBusyError(SimplexError):
    """Another solve already holds the tableau."""


class IterationLimitExceeded(SimplexError):
    """The pivot loop ran past its bound; indicates a pivoting-rule bug."""

    def __init__(self, limit: int) -> None:
        self.limit = limit
        super().__init__(f"Simplex did not terminate within {limit} pivots.")
