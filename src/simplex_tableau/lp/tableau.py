from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Iterator, List, Literal, Optional, Sequence

import numpy as np

from ..exceptions import DimensionMismatch, OutOfBoundsError, PivotError, TableauBusyError
from ..schemas import Sense
from .display import format_tableau

ColumnKind = Literal["original", "slack", "surplus", "artificial"]


class Tableau:
    """
    Dense simplex tableau.

    Rows are the constraints followed by the objective row; columns are all
    variables (original and auxiliary) followed by the right-hand side. Each
    constraint row owns one basis column, which is kept as an identity column
    by ``pivot``. The objective row stores negated coefficients of the
    maximisation problem, so the tableau is optimal once no entry is negative.
    """

    def __init__(
        self,
        matrix: np.ndarray,
        basis: Sequence[int],
        row_names: Sequence[str],
        column_names: Sequence[str],
        column_kinds: Optional[Sequence[ColumnKind]] = None,
        sense: Sense = "max",
        objective_constant: float = 0.0,
        row_flipped: Optional[Sequence[bool]] = None,
        big_m: float = 0.0,
        tol: float = 0.0,
    ) -> None:
        matrix = np.array(matrix, dtype=float)
        if matrix.ndim != 2:
            raise DimensionMismatch("tableau matrix rank", 2, matrix.ndim)
        rows, cols = matrix.shape
        if rows < 1 or cols < 1:
            raise DimensionMismatch("tableau needs an objective row and a RHS column", 1, min(rows, cols))
        if len(row_names) != rows:
            raise DimensionMismatch("row names", rows, len(row_names))
        if len(column_names) != cols:
            raise DimensionMismatch("column names", cols, len(column_names))
        if len(basis) != rows - 1:
            raise DimensionMismatch("basis entries", rows - 1, len(basis))
        kinds = list(column_kinds) if column_kinds is not None else ["original"] * (cols - 1)
        if len(kinds) != cols - 1:
            raise DimensionMismatch("column kinds", cols - 1, len(kinds))
        flipped = list(row_flipped) if row_flipped is not None else [False] * (rows - 1)
        if len(flipped) != rows - 1:
            raise DimensionMismatch("row flip flags", rows - 1, len(flipped))
        for col in basis:
            if not 0 <= col < cols - 1:
                raise OutOfBoundsError(-1, col, "column")

        self._matrix = matrix
        self._basis: List[int] = list(basis)
        self._row_names = list(row_names)
        self._column_names = list(column_names)
        self._column_kinds: List[ColumnKind] = kinds
        self._row_flipped = flipped
        self.sense: Sense = sense
        self.objective_constant = float(objective_constant)
        self.big_m = float(big_m)
        self.initial_basis: List[int] = list(basis)
        self.tol = float(tol)
        self._lock = threading.Lock()

    @property
    def row_count(self) -> int:
        return self._matrix.shape[0]

    @property
    def column_count(self) -> int:
        return self._matrix.shape[1]

    @property
    def basis(self) -> List[int]:
        return list(self._basis)

    def basis_of(self, row: int) -> int:
        self._check_bounds(row, 0)
        if row == self.row_count - 1:
            raise OutOfBoundsError(row, 0, "row")
        return self._basis[row]

    def column_kinds(self) -> List[ColumnKind]:
        return list(self._column_kinds)

    def row_flipped(self) -> List[bool]:
        return list(self._row_flipped)

    def columns_of_kind(self, kind: ColumnKind) -> List[int]:
        return [idx for idx, value in enumerate(self._column_kinds) if value == kind]

    def row_names(self) -> List[str]:
        return list(self._row_names)

    def column_names(self) -> List[str]:
        return list(self._column_names)

    def get_matrix(self) -> np.ndarray:
        """Read-only view of the underlying matrix."""
        view = self._matrix.view()
        view.flags.writeable = False
        return view

    def get(self, row: int, column: int) -> float:
        self._check_bounds(row, column)
        return float(self._matrix[row, column])

    def set(self, row: int, column: int, value: float) -> None:
        self._check_bounds(row, column)
        self._matrix[row, column] = float(value)

    def rhs_vector(self) -> np.ndarray:
        return self.get_matrix()[:-1, -1]

    def objective_coefficients(self) -> np.ndarray:
        return self.get_matrix()[-1, :-1]

    def set_objective_row(self, values: Sequence[float]) -> None:
        if len(values) != self.column_count:
            raise DimensionMismatch("objective row entries", self.column_count, len(values))
        self._matrix[-1] = np.asarray(values, dtype=float)

    def is_feasible(self, tol: Optional[float] = None) -> bool:
        tol = self.tol if tol is None else tol
        return bool(np.all(self._matrix[:-1, -1] >= -tol))

    def is_optimal(self, tol: Optional[float] = None) -> bool:
        tol = self.tol if tol is None else tol
        return bool(np.all(self._matrix[-1, :-1] >= -tol))

    def value_of(self, column: int) -> float:
        """Current value of a variable column: its row's RHS if basic, else 0."""
        self._check_bounds(0, column)
        for row, basic in enumerate(self._basis):
            if basic == column:
                return float(self._matrix[row, -1])
        return 0.0

    def objective_value(self) -> float:
        rhs = float(self._matrix[-1, -1])
        value = rhs if self.sense == "max" else -rhs
        return value + self.objective_constant

    def pivot(self, row: int, column: int) -> None:
        """
        Make ``column`` basic in ``row`` by Gaussian elimination, in place.

        The pivot row is normalised first and copied before the other rows are
        reduced against it, since each elimination reads the full pivot row.
        """
        self._check_bounds(row, column)
        if row == self.row_count - 1:
            raise PivotError("Cannot pivot on the objective row.")
        if column == self.column_count - 1:
            raise PivotError("Cannot pivot on the right-hand-side column.")
        pivot_value = self._matrix[row, column]
        if pivot_value == 0.0:
            raise PivotError(f"Pivot entry at (row={row}, column={column}) is zero.")

        self._matrix[row] /= pivot_value
        pivot_row = self._matrix[row].copy()
        for r in range(self.row_count):
            if r == row:
                continue
            factor = self._matrix[r, column]
            if factor == 0.0:
                continue
            update = factor * pivot_row
            scale = np.maximum(np.abs(self._matrix[r]), np.abs(update))
            self._matrix[r] -= update
            if self.tol > 0.0:
                # snap cancellation residue only: small in absolute terms and relative to the operands
                residue = (update != 0.0) & (np.abs(self._matrix[r]) <= self.tol * np.minimum(scale, 1.0))
                self._matrix[r, residue] = 0.0

        self._matrix[:, column] = 0.0
        self._matrix[row, column] = 1.0
        self._basis[row] = column

    @contextmanager
    def exclusive(self) -> Iterator["Tableau"]:
        """Hold the tableau for one solve; a second concurrent holder is refused."""
        if not self._lock.acquire(blocking=False):
            raise TableauBusyError("Tableau is already held by another solve.")
        try:
            yield self
        finally:
            self._lock.release()

    def copy(self) -> "Tableau":
        clone = Tableau(
            self._matrix.copy(),
            self._basis,
            self._row_names,
            self._column_names,
            column_kinds=self._column_kinds,
            sense=self.sense,
            objective_constant=self.objective_constant,
            row_flipped=self._row_flipped,
            big_m=self.big_m,
            tol=self.tol,
        )
        clone.initial_basis = list(self.initial_basis)
        return clone

    def _check_bounds(self, row: int, column: int) -> None:
        if not 0 <= row < self.row_count:
            raise OutOfBoundsError(row, column, "row")
        if not 0 <= column < self.column_count:
            raise OutOfBoundsError(row, column, "column")

    def __str__(self) -> str:
        return format_tableau(self)
