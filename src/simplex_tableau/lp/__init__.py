"""Tableau simplex engine: standard form, tableau, driver and helpers."""

from .simplex import SimplexDriver, SolverState, simplex_solve, solve
from .standard_form import build_standard_form
from .tableau import Tableau
from .parser import parse_natural_language_spec
from .diagnostics import analyze_infeasibility
from .display import format_tableau

__all__ = [
    "SimplexDriver",
    "SolverState",
    "simplex_solve",
    "solve",
    "build_standard_form",
    "Tableau",
    "parse_natural_language_spec",
    "analyze_infeasibility",
    "format_tableau",
]
