from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from .exceptions import MissingObjectiveError
from .schemas import Constraint, Objective, Variable


def make_variables(names: str) -> Tuple[Variable, ...]:
    """Shorthand for declaring several variables: ``x, y = make_variables("x y")``."""
    return tuple(Variable(name=name) for name in names.replace(",", " ").split())


class Problem(BaseModel):
    """
    Validated, immutable linear program over non-negative variables.

    The order of ``variables`` fixes the column handle of every variable for the
    lifetime of the problem; see ``variable_index``.
    """

    model_config = ConfigDict(frozen=True)

    name: str = "problem"
    variables: Tuple[Variable, ...]
    constraints: Tuple[Constraint, ...] = ()
    objective: Objective

    @model_validator(mode="after")
    def _check_references(self) -> "Problem":
        seen = set()
        for var in self.variables:
            if var.name in seen:
                raise ValueError(f"Variable '{var.name}' is declared more than once.")
            seen.add(var.name)

        names = set()
        for cons in self.constraints:
            if cons.name in names:
                raise ValueError(f"Constraint name '{cons.name}' is used more than once.")
            names.add(cons.name)

        for term in self.objective.expr.terms:
            if term.var not in seen:
                raise ValueError(f"Objective references unknown variable '{term.var}'.")
        for idx, cons in enumerate(self.constraints):
            for term in cons.lhs.terms:
                if term.var not in seen:
                    label = cons.name or f"#{idx + 1}"
                    raise ValueError(f"Constraint '{label}' references unknown variable '{term.var}'.")
        return self

    @field_validator("constraints", mode="after")
    @classmethod
    def _name_constraints(cls, value: Tuple[Constraint, ...]) -> Tuple[Constraint, ...]:
        # unnamed rows become c<position>, moving past names the caller already chose
        taken = {cons.name for cons in value if cons.name}
        named: List[Constraint] = []
        for idx, cons in enumerate(value):
            if not cons.name:
                number = idx + 1
                while f"c{number}" in taken:
                    number += 1
                taken.add(f"c{number}")
                cons = cons.model_copy(update={"name": f"c{number}"})
            named.append(cons)
        return tuple(named)

    @classmethod
    def from_parts(
        cls,
        constraints: Iterable[Constraint],
        objective: Objective,
        name: str = "problem",
    ) -> "Problem":
        constraints = tuple(constraints)
        # dict keeps first-seen order, which fixes column indices deterministically
        discovered: Dict[str, None] = {}
        for cons in constraints:
            for term in cons.lhs.terms:
                discovered.setdefault(term.var, None)
        for term in objective.expr.terms:
            discovered.setdefault(term.var, None)

        return cls(
            name=name,
            variables=tuple(Variable(name=var) for var in discovered),
            constraints=constraints,
            objective=objective,
        )

    def variable_index(self) -> Dict[str, int]:
        return {var.name: idx for idx, var in enumerate(self.variables)}

    def __str__(self) -> str:
        lines = [str(cons) for cons in self.constraints]
        lines.append(f"Objective: {self.objective}")
        return "\n".join(lines)


class ProblemBuilder:
    """Collects constraints and an objective, then validates them once in ``build``."""

    def __init__(self, name: str = "problem") -> None:
        self._name = name
        self._constraints: List[Constraint] = []
        self._objective: Optional[Objective] = None

    def add_constraint(self, constraint: Constraint) -> "ProblemBuilder":
        self._constraints.append(constraint)
        return self

    def set_objective(self, objective: Objective) -> "ProblemBuilder":
        self._objective = objective
        return self

    def build(self) -> Problem:
        if self._objective is None:
            raise MissingObjectiveError()
        return Problem.from_parts(self._constraints, self._objective, name=self._name)
