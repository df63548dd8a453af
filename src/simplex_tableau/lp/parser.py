import re
from collections import OrderedDict
from typing import List, Tuple

from ..problem import Problem
from ..schemas import Constraint, LinearExpr, LinearTerm, Objective, Variable

_TOKEN_SPLIT = re.compile(r",|;|\band\b", re.IGNORECASE)
_COMPARATOR = re.compile(r"(<=|>=|==|=|<|>)")
_NAME_LIST = re.compile(r"^[A-Za-z_][\w]*(?:\s*,\s*[A-Za-z_][\w]*)*$")
_MULTI_BOUND = re.compile(
    r"^([A-Za-z_][\w]*(?:\s*,\s*[A-Za-z_][\w]*)+)\s*(<=|>=|<|>)\s*(-?\d+(?:\.\d+)?)$"
)
_TERM_PATTERN = re.compile(r"([+-]?\s*\d*\.?\d*)\s*([A-Za-z_][\w]*)")
_NUMBER_PATTERN = re.compile(r"[+-]?\s*\d+(?:\.\d+)?")


def parse_natural_language_spec(spec: str) -> Problem:
    """
    Small rule-based parser for toy specs like:
      "maximize 5x1 + 3x2 subject to 9x1 + 3x2 <= 27, 2x1 + x2 <= 7, x1,x2 >= 0"
    Every variable is non-negative already, so ``x >= 0`` clauses only declare
    variables. Columns follow first appearance: objective, then constraints.
    """

    if not spec or not spec.strip():
        raise ValueError("Specification is empty.")

    normalized = " ".join(spec.replace("\n", " ").split())
    pieces = re.split(r"subject to|such that|s\.t\.", normalized, flags=re.IGNORECASE)
    objective_part = pieces[0].strip()
    constraints_part = pieces[1].strip() if len(pieces) > 1 else ""

    match = re.match(r"(maximize|minimize|maximise|minimise|max|min)\s*:?\s*(.*)", objective_part, flags=re.IGNORECASE)
    if not match:
        raise ValueError("Objective must start with 'maximize' or 'minimize'.")
    sense = "max" if match.group(1).lower().startswith("max") else "min"
    objective_expr_str = match.group(2).strip()
    if not objective_expr_str:
        raise ValueError("Objective expression is missing.")

    objective_expr = _parse_linear_expr(objective_expr_str)
    variable_names = OrderedDict((term.var, None) for term in objective_expr.terms)

    constraints: List[Constraint] = []
    if constraints_part:
        tokens = _merge_name_lists([tok.strip() for tok in _TOKEN_SPLIT.split(constraints_part) if tok.strip()])
    else:
        tokens = []

    for token in tokens:
        multi = _MULTI_BOUND.match(token)
        if multi:
            vars_chunk, cmp, rhs_text = multi.groups()
            rhs_value = float(rhs_text)
            for var_name in [v.strip() for v in vars_chunk.split(",") if v.strip()]:
                variable_names.setdefault(var_name, None)
                if not _is_sign_restriction(cmp, rhs_value):
                    constraints.append(
                        Constraint(
                            name=f"c{len(constraints) + 1}",
                            lhs=LinearExpr(terms=(LinearTerm(var=var_name, coef=1.0),)),
                            cmp=cmp,
                            rhs=rhs_value,
                        )
                    )
            continue

        comp_match = _COMPARATOR.search(token)
        if not comp_match:
            raise ValueError(f"Could not parse constraint segment '{token}'.")
        cmp = comp_match.group(1)
        lhs_str = token[: comp_match.start()].strip()
        rhs_str = token[comp_match.end() :].strip()
        if not lhs_str or not rhs_str:
            raise ValueError(f"Incomplete constraint expression '{token}'.")
        expr = _parse_linear_expr(lhs_str)
        try:
            rhs_value = float(rhs_str.replace(" ", ""))
        except ValueError as exc:
            raise ValueError(f"Right-hand side '{rhs_str}' is not numeric.") from exc
        for term in expr.terms:
            variable_names.setdefault(term.var, None)

        single = len(expr.terms) == 1 and expr.terms[0].coef == 1.0 and expr.constant == 0.0
        if single and _is_sign_restriction(cmp, rhs_value):
            continue
        constraints.append(
            Constraint(
                name=f"c{len(constraints) + 1}",
                lhs=expr,
                cmp=cmp,
                rhs=rhs_value,
            )
        )

    return Problem(
        name="parsed",
        variables=tuple(Variable(name=name) for name in variable_names),
        constraints=tuple(constraints),
        objective=Objective(sense=sense, expr=objective_expr),
    )


def _is_sign_restriction(cmp: str, rhs: float) -> bool:
    return cmp in (">=", ">") and rhs == 0.0


def _merge_name_lists(tokens: List[str]) -> List[str]:
    """Re-join ``x, y >= 0`` which the comma split tore apart."""
    merged: List[str] = []
    pending: List[str] = []
    for token in tokens:
        if _NAME_LIST.match(token):
            pending.append(token)
            continue
        if pending:
            token = ", ".join(pending + [token])
            pending = []
        merged.append(token)
    if pending:
        raise ValueError(f"Dangling variable list '{', '.join(pending)}' without a relation.")
    return merged


def _parse_linear_expr(expr_str: str) -> LinearExpr:
    expr_clean = expr_str.replace("*", "")
    coeffs: OrderedDict[str, float] = OrderedDict()
    spans: List[Tuple[int, int]] = []

    for match in _TERM_PATTERN.finditer(expr_clean):
        coef_text = match.group(1).replace(" ", "")
        var_name = match.group(2)
        if coef_text in ("", "+"):
            coef = 1.0
        elif coef_text == "-":
            coef = -1.0
        else:
            coef = float(coef_text)
        coeffs[var_name] = coeffs.get(var_name, 0.0) + coef
        spans.append(match.span())

    remaining = list(expr_clean)
    for start, end in spans:
        for idx in range(start, end):
            remaining[idx] = " "
    remaining_str = "".join(remaining)

    constant = 0.0
    for num_match in _NUMBER_PATTERN.finditer(remaining_str):
        text = num_match.group(0).replace(" ", "")
        if text:
            constant += float(text)

    terms = tuple(LinearTerm(var=name, coef=coef) for name, coef in coeffs.items() if abs(coef) > 1e-12)
    return LinearExpr(terms=terms, constant=constant)
