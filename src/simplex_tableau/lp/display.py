from __future__ import annotations

from typing import TYPE_CHECKING, List

if TYPE_CHECKING:
    from .tableau import Tableau


def format_tableau(tableau: "Tableau", precision: int = 4) -> str:
    """Render a tableau as a markdown table. Reads only; never mutates the tableau."""

    matrix = tableau.get_matrix()
    column_names = tableau.column_names()
    row_names = tableau.row_names()
    basis = tableau.basis

    labels: List[str] = []
    for idx, name in enumerate(row_names):
        if idx < len(basis):
            labels.append(f"{name} ({column_names[basis[idx]]})")
        else:
            labels.append(name)

    header = [""] + column_names
    body = [
        [labels[r]] + [_format_number(value, precision) for value in matrix[r]]
        for r in range(matrix.shape[0])
    ]

    widths = [len(cell) for cell in header]
    for row in body:
        widths = [max(width, len(cell)) for width, cell in zip(widths, row)]

    def line(cells: List[str]) -> str:
        return "| " + " | ".join(cell.ljust(width) for cell, width in zip(cells, widths)) + " |"

    out = [line(header), "|" + "|".join("-" * (width + 2) for width in widths) + "|"]
    out.extend(line(row) for row in body)
    return "\n".join(out)


def _format_number(value: float, precision: int) -> str:
    text = f"{value:.{precision}g}"
    return "0" if text == "-0" else text
