import logging
from typing import Any, Dict, List, Optional

from ..problem import Problem
from ..schemas import SolveOptions
from .simplex import simplex_solve

logger = logging.getLogger(__name__)


def analyze_infeasibility(problem: Problem, options: Optional[SolveOptions] = None) -> Dict[str, Any]:
    """Very small IIS-style heuristic: drop each constraint and re-solve."""

    opts = (options or SolveOptions()).model_copy(update={"return_duals": False})
    solution = simplex_solve(problem, opts)

    if solution.status != "infeasible":
        return {
            "status": solution.status,
            "message": solution.message or "Problem is not infeasible.",
            "conflicting_constraints": [],
            "suggestions": [],
        }

    conflicts: List[str] = []
    for idx, cons in enumerate(problem.constraints):
        relaxed = problem.model_copy(
            update={"constraints": problem.constraints[:idx] + problem.constraints[idx + 1 :]}
        )
        sub_solution = simplex_solve(relaxed, opts)
        logger.debug("Without constraint %s: %s", cons.name, sub_solution.status)
        if sub_solution.status != "infeasible":
            conflicts.append(cons.name)

    suggestions = []
    if conflicts:
        suggestions.append("Relax or inspect the conflicting constraints above.")
    else:
        suggestions.append("Several constraints conflict jointly; try relaxing them in groups.")

    return {
        "status": "infeasible",
        "message": "Detected infeasibility; listed constraints critical to infeasibility.",
        "conflicting_constraints": conflicts,
        "suggestions": suggestions,
    }
