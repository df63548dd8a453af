import pytest
from pydantic import ValidationError

from simplex_tableau.exceptions import MissingObjectiveError
from simplex_tableau.problem import Problem, ProblemBuilder, make_variables
from simplex_tableau.schemas import Constraint, LinearExpr, LinearTerm, Objective, Variable


def test_dsl_builds_terms_and_expressions():
    x, y = make_variables("x y")

    assert 3 * x == LinearTerm(var="x", coef=3.0)
    assert x * 3 == LinearTerm(var="x", coef=3.0)
    assert (x / 4).coef == pytest.approx(0.25)
    assert -x == LinearTerm(var="x", coef=-1.0)

    expr = 3 * x + 2 * y - x
    assert isinstance(expr, LinearExpr)
    assert [(t.var, t.coef) for t in expr.terms] == [("x", 3.0), ("y", 2.0), ("x", -1.0)]

    scaled = (x + y + 1) * 2
    assert scaled.constant == pytest.approx(2.0)
    assert [t.coef for t in scaled.terms] == [2.0, 2.0]


def test_relations_from_operators_and_methods():
    x, y = make_variables("x, y")

    le = 3 * x + 2 * y <= 10
    assert le.cmp == "<=" and le.rhs == 10.0

    reflected = 10 >= 3 * x
    assert reflected.cmp == "<=" and reflected.rhs == 10.0

    assert (x + y > 1).cmp == ">"
    assert (x + y < 1).cmp == "<"
    assert (x + y).equal(4, name="total").name == "total"

    moved = (x + 5).greater_or_equal(y + 2)
    assert moved.cmp == ">="
    assert moved.rhs == pytest.approx(-3.0)
    assert [(t.var, t.coef) for t in moved.lhs.terms] == [("x", 1.0), ("y", -1.0)]


def test_equality_alias_is_normalised():
    cons = Constraint(lhs=LinearExpr(terms=(LinearTerm(var="x", coef=1.0),)), cmp="=", rhs=1.0)
    assert cons.cmp == "=="


def test_builder_discovers_variables_in_first_seen_order():
    a, b, c = make_variables("b a c")
    problem = (
        ProblemBuilder("ordering")
        .add_constraint(a + c <= 4)
        .add_constraint(b + a >= 1)
        .set_objective(Objective.maximize(c + b))
        .build()
    )

    assert [var.name for var in problem.variables] == ["b", "c", "a"]
    assert problem.variable_index() == {"b": 0, "c": 1, "a": 2}
    assert [cons.name for cons in problem.constraints] == ["c1", "c2"]


def test_builder_requires_objective():
    x = Variable(name="x")
    with pytest.raises(MissingObjectiveError):
        ProblemBuilder().add_constraint(x <= 1).build()


def test_problem_is_immutable():
    x = Variable(name="x")
    problem = ProblemBuilder().set_objective(Objective.maximize(x)).add_constraint(x <= 1).build()

    with pytest.raises(ValidationError):
        problem.name = "changed"


def test_problem_rejects_unknown_and_duplicate_variables():
    objective = Objective(sense="max", expr=LinearExpr(terms=(LinearTerm(var="x", coef=1.0),)))
    with pytest.raises(ValidationError, match="unknown variable 'x'"):
        Problem(variables=(Variable(name="y"),), objective=objective)

    with pytest.raises(ValidationError, match="more than once"):
        Problem(variables=(Variable(name="x"), Variable(name="x")), objective=objective)


def test_problem_round_trips_through_json():
    x, y = make_variables("x y")
    problem = Problem.from_parts([x + 2 * y <= 14, 3 * x - y >= 0], Objective.minimize(x + y), name="json")

    restored = Problem.model_validate_json(problem.model_dump_json())
    assert restored == problem
    assert "Minimize" in str(restored)


def test_auto_names_skip_names_already_chosen():
    x, y, z = make_variables("x y z")
    problem = Problem.from_parts(
        [x.less_or_equal(4, name="c2"), y <= 3, (z <= 2).model_copy(update={"name": "c3"})],
        Objective.maximize(x + y + z),
    )

    assert [cons.name for cons in problem.constraints] == ["c2", "c4", "c3"]


def test_problem_rejects_duplicate_constraint_names():
    x, y = make_variables("x y")

    with pytest.raises(ValidationError, match="used more than once"):
        Problem.from_parts(
            [x.less_or_equal(4, name="cap"), y.less_or_equal(3, name="cap")],
            Objective.maximize(x + y),
        )
