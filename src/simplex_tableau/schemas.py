from __future__ import annotations

from numbers import Real
from typing import Dict, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

Sense = Literal["min", "max"]
Relation = Literal["<=", "<", ">=", ">", "=="]
PivotRule = Literal["dantzig", "bland"]
Status = Literal["optimal", "infeasible", "unbounded", "cancelled"]

ExprLike = Union["Variable", "LinearTerm", "LinearExpr", float, int]


def _coerce(value: object) -> Optional["LinearExpr"]:
    if isinstance(value, LinearExpr):
        return value
    if isinstance(value, (Variable, LinearTerm)):
        return value.as_expr()
    if isinstance(value, Real):
        return LinearExpr(constant=float(value))
    return None


class _ExprOps:
    """Arithmetic and relation builders shared by variables, terms and expressions."""

    def as_expr(self) -> "LinearExpr":
        raise NotImplementedError

    def __add__(self, other: ExprLike) -> "LinearExpr":
        rhs = _coerce(other)
        if rhs is None:
            return NotImplemented
        lhs = self.as_expr()
        return LinearExpr(terms=lhs.terms + rhs.terms, constant=lhs.constant + rhs.constant)

    def __radd__(self, other: ExprLike) -> "LinearExpr":
        return self.__add__(other)

    def __sub__(self, other: ExprLike) -> "LinearExpr":
        rhs = _coerce(other)
        if rhs is None:
            return NotImplemented
        return self.__add__(rhs * -1.0)

    def __rsub__(self, other: ExprLike) -> "LinearExpr":
        lhs = _coerce(other)
        if lhs is None:
            return NotImplemented
        return lhs + self.as_expr() * -1.0

    def __mul__(self, factor: float) -> "LinearExpr":
        if not isinstance(factor, Real):
            return NotImplemented
        expr = self.as_expr()
        return LinearExpr(
            terms=tuple(LinearTerm(var=t.var, coef=t.coef * float(factor)) for t in expr.terms),
            constant=expr.constant * float(factor),
        )

    def __rmul__(self, factor: float) -> "LinearExpr":
        return self.__mul__(factor)

    def __truediv__(self, divisor: float) -> "LinearExpr":
        if not isinstance(divisor, Real):
            return NotImplemented
        return self.__mul__(1.0 / float(divisor))

    def __neg__(self) -> "LinearExpr":
        return self.__mul__(-1.0)

    def _relate(self, cmp: Relation, rhs: ExprLike, name: str = "") -> "Constraint":
        if isinstance(rhs, Real):
            return Constraint(name=name, lhs=self.as_expr(), cmp=cmp, rhs=float(rhs))
        other = _coerce(rhs)
        if other is None:
            raise TypeError(f"Cannot build a constraint against {type(rhs).__name__}.")
        moved = self.as_expr() - other
        return Constraint(
            name=name,
            lhs=LinearExpr(terms=moved.terms),
            cmp=cmp,
            rhs=-moved.constant,
        )

    def less_or_equal(self, rhs: ExprLike, name: str = "") -> "Constraint":
        return self._relate("<=", rhs, name)

    def less_than(self, rhs: ExprLike, name: str = "") -> "Constraint":
        return self._relate("<", rhs, name)

    def greater_or_equal(self, rhs: ExprLike, name: str = "") -> "Constraint":
        return self._relate(">=", rhs, name)

    def greater_than(self, rhs: ExprLike, name: str = "") -> "Constraint":
        return self._relate(">", rhs, name)

    def equal(self, rhs: ExprLike, name: str = "") -> "Constraint":
        return self._relate("==", rhs, name)

    # Python reflects `3 <= expr` into `expr >= 3`, so these cover both sides.
    def __le__(self, rhs: ExprLike) -> "Constraint":
        return self.less_or_equal(rhs)

    def __lt__(self, rhs: ExprLike) -> "Constraint":
        return self.less_than(rhs)

    def __ge__(self, rhs: ExprLike) -> "Constraint":
        return self.greater_or_equal(rhs)

    def __gt__(self, rhs: ExprLike) -> "Constraint":
        return self.greater_than(rhs)


class Variable(_ExprOps, BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str

    def as_expr(self) -> "LinearExpr":
        return LinearExpr(terms=(LinearTerm(var=self.name, coef=1.0),))

    def __mul__(self, factor: float) -> "LinearTerm":
        if not isinstance(factor, Real):
            return NotImplemented
        return LinearTerm(var=self.name, coef=float(factor))

    def __rmul__(self, factor: float) -> "LinearTerm":
        return self.__mul__(factor)

    def __truediv__(self, divisor: float) -> "LinearTerm":
        if not isinstance(divisor, Real):
            return NotImplemented
        return LinearTerm(var=self.name, coef=1.0 / float(divisor))

    def __neg__(self) -> "LinearTerm":
        return LinearTerm(var=self.name, coef=-1.0)

    def __str__(self) -> str:
        return self.name


class LinearTerm(_ExprOps, BaseModel):
    model_config = ConfigDict(frozen=True)

    var: str
    coef: float

    def as_expr(self) -> "LinearExpr":
        return LinearExpr(terms=(self,))

    def __mul__(self, factor: float) -> "LinearTerm":
        if not isinstance(factor, Real):
            return NotImplemented
        return LinearTerm(var=self.var, coef=self.coef * float(factor))

    def __rmul__(self, factor: float) -> "LinearTerm":
        return self.__mul__(factor)

    def __truediv__(self, divisor: float) -> "LinearTerm":
        if not isinstance(divisor, Real):
            return NotImplemented
        return LinearTerm(var=self.var, coef=self.coef / float(divisor))

    def __neg__(self) -> "LinearTerm":
        return LinearTerm(var=self.var, coef=-self.coef)

    def __str__(self) -> str:
        return f"{self.coef:g}{self.var}"


class LinearExpr(_ExprOps, BaseModel):
    model_config = ConfigDict(frozen=True)

    terms: Tuple[LinearTerm, ...] = ()
    constant: float = 0.0

    def as_expr(self) -> "LinearExpr":
        return self

    def __str__(self) -> str:
        parts = [str(term) for term in self.terms]
        if self.constant or not parts:
            parts.append(f"{self.constant:g}")
        return " + ".join(parts)


class Constraint(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str = ""
    lhs: LinearExpr
    cmp: Relation
    rhs: float

    @field_validator("cmp", mode="before")
    @classmethod
    def _normalise_equality(cls, value: object) -> object:
        return "==" if value == "=" else value

    def __str__(self) -> str:
        return f"{self.lhs} {self.cmp} {self.rhs:g}"


class Objective(BaseModel):
    model_config = ConfigDict(frozen=True)

    sense: Sense
    expr: LinearExpr

    @classmethod
    def maximize(cls, expr: ExprLike) -> "Objective":
        return cls(sense="max", expr=_require_expr(expr))

    @classmethod
    def minimize(cls, expr: ExprLike) -> "Objective":
        return cls(sense="min", expr=_require_expr(expr))

    def __str__(self) -> str:
        word = "Maximize" if self.sense == "max" else "Minimize"
        return f"{word}: {self.expr}"


def _require_expr(value: ExprLike) -> LinearExpr:
    expr = _coerce(value)
    if expr is None:
        raise TypeError(f"Expected a linear expression, got {type(value).__name__}.")
    return expr


class SolveOptions(BaseModel):
    tol: float = 1e-9
    pivot_rule: PivotRule = "dantzig"
    big_m: float = 1e6
    return_duals: bool = True


class Solution(BaseModel):
    status: Status
    objective_value: Optional[float]
    x: Dict[str, float] | None
    reduced_costs: Dict[str, float] | None = None
    duals: Dict[str, float] | None = None
    iterations: int
    unbounded_variable: Optional[str] = Field(
        default=None,
        description="Column that entered on the unbounded ray; it may differ from the variable named in the objective, or be an auxiliary column.",
    )
    message: str = ""
