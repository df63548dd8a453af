from mcp.server.fastmcp import FastMCP

from .problem import Problem
from .schemas import SolveOptions
from .lp.simplex import simplex_solve
from .lp.parser import parse_natural_language_spec
from .lp.diagnostics import analyze_infeasibility as analyze_infeasibility_problem
from .lp.standard_form import build_standard_form
from .lp.display import format_tableau

mcp = FastMCP("Simplex Tableau")


@mcp.tool()
def solve_lp(problem: Problem, options: SolveOptions | None = None) -> dict:
    "Solve a linear program via the Big-M tableau simplex and return the solution dict."
    opts = options or SolveOptions()
    return simplex_solve(problem, opts).model_dump()


@mcp.tool()
def parse_nl_to_lp(spec: str) -> dict:
    "Parse a small natural-language spec into a structured Problem JSON."
    return parse_natural_language_spec(spec).model_dump()


@mcp.tool()
def analyze_infeasibility(problem: Problem) -> dict:
    "Return basic infeasibility diagnostics (drop-one-constraint heuristic)."
    return analyze_infeasibility_problem(problem)


@mcp.tool()
def render_tableau(problem: Problem, options: SolveOptions | None = None) -> str:
    "Render the initial standard-form tableau of a problem as a markdown table."
    return format_tableau(build_standard_form(problem, options or SolveOptions()))


if __name__ == "__main__":
    # Allow: `mcp dev src/simplex_tableau/server.py` or pack as stdio/http via CLI
    mcp.run()
