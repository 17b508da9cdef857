import pytest

from test_util import *


# Scripts
# ----------------------------------------------------------------------------------------------------------------------

SUMMATION_SCRIPT = """
range I = 1..3;
float cost[I] = [10, 20, 30];
dvar float+ x[I];
sum(i in I) cost[i] * x[i] <= 100;
"""

TWO_DIMENSIONAL_SCRIPT = """
range I = 1..2;
range J = 1..3;
float cap[I][J] = [[1, 2, 3], [4, 5, 6]];
dvar float x[I][J];
forall(i in I, j in J) x[i][j] <= cap[i][j];
flow[i in I, j in J]: x[i,j] >= cap[i,j] - 10;
"""

BUDGET_SCRIPT = """
range I = 1..2;
float a[I] = ...;
a = [2, 3];
var float x[I];
budget: sum(i in I) a[i] * x[i] == 5;
"""

UNDECLARED_SET_SCRIPT = """
dvar float x;
sum(i in UndeclaredSet) x == 1;
"""

SKIPPED_COMBINATION_SCRIPT = """
range I = 1..3;
float c[I] = [1, 2, 3];
dvar float x[I];
lim[i in I]: x[i] <= c[i + 1];
"""

FILTER_SCRIPT = """
range I = 1..3;
dvar float x[I];
forall(i in I: i != 2) x[i] <= 1;
low[i in I: i > 1]: x[i] >= 0;
forall(i in I) {
    x[i] <= 5;
    x[i] >= -5;
}
"""

DECISION_EXPRESSION_SCRIPT = """
range I = 1..3;
float c[I] = [10, 20, 30];
dvar float x[I];
dexpr float total = sum(i in I) x[i];
dexpr float slack[i in I] = x[i] - c[i];
total <= 10;
forall(i in I) slack[i] >= 0;
"""

OBJECTIVE_SCRIPT = SUMMATION_SCRIPT + """
minimize cost_obj: sum(i in I) cost[i] * x[i] + 4;
"""

LINEAR_FORM_SCRIPT = """
range I = 1..2;
dvar float x[I];
x[1] - x[1] + x[2] <= 3;
x[1] / 2 + 2 * (x[2] - 1) >= 1;
x[1] / 0 <= 1;
x[1] * x[2] <= 1;
"""

EXTERNAL_SCRIPT = """
range I = 1..2;
float a[I] = ...;
dvar float x[I];
c: x[1] <= a[1];
"""


# Tests
# ----------------------------------------------------------------------------------------------------------------------

def test_summation_expansion():

    manager, result = build_model(SUMMATION_SCRIPT)
    assert result.success, result.errors

    assert len(manager.equations) == 1
    equation = manager.equations[0]

    assert equation.operator == LESS_EQUAL_INEQUALITY_OPERATOR
    assert equation.label == "constraint1"

    coefficients, constant = evaluate_equation(manager, equation)
    assert check_coefficients(coefficients, {"x1": 10, "x2": 20, "x3": 30})
    assert check_num_result(constant, 100)


def test_two_dimensional_expansion_order():

    manager, result = build_model(TWO_DIMENSIONAL_SCRIPT)
    assert result.success, result.errors

    equations = manager.get_equations_by_base_name("constraint1")
    assert len(equations) == 6
    assert [(e.index, e.second_index) for e in equations] == [(1, 1), (1, 2), (1, 3), (2, 1), (2, 2), (2, 3)]
    assert equations[0].label == "constraint1[1,1]"

    coefficients, constant = evaluate_equation(manager, equations[5])
    assert check_coefficients(coefficients, {"x2_3": 1})
    assert check_num_result(constant, 6)

    equation = manager.get_indexed_equation("flow", 2, 1)
    assert equation is not None
    assert equation.operator == GREATER_EQUAL_INEQUALITY_OPERATOR
    assert check_num_result(equation.evaluate_constant(manager), -6)


def test_budget_scenario():

    manager, result = build_model(BUDGET_SCRIPT)
    assert result.success, result.errors

    assert len(manager.equations) == 1
    equation = manager.equations[0]

    assert equation.label == "budget"
    assert equation.operator == EQUALITY_OPERATOR

    coefficients, constant = evaluate_equation(manager, equation)
    assert check_coefficients(coefficients, {"x1": 2, "x2": 3})
    assert check_num_result(constant, 5)

    # coefficients keep their parameter references
    assert str(equation.get_coefficient("x1")) == "a[1]"
    manager.set_parameter_value("a", 7, (1,))
    assert check_num_result(equation.evaluate_coefficients(manager)["x1"], 7)


def test_undeclared_set():

    manager, result = build_model(UNDECLARED_SET_SCRIPT)

    assert not result.success
    assert len(manager.equations) == 0

    assert len(result.errors) == 1
    assert "UndeclaredSet" in result.errors[0]
    assert "not found" in result.errors[0]

    template = manager.templates[0]
    assert template.is_failed()
    assert isinstance(template.error, StructuralError)
    assert template in manager.get_unexpanded_templates()

    with pytest.raises(StructuralError):
        manager.check_exportable()


def test_skipped_combination():

    manager, result = build_model(SKIPPED_COMBINATION_SCRIPT)

    assert [e.label for e in manager.equations] == ["lim[1]", "lim[2]"]
    assert manager.templates[0].is_expanded()

    assert len(result.errors) == 1
    assert "Constraint 'lim[3]' skipped: Index 4 is out of range for parameter c" in result.errors[0]
    assert result.errors[0].startswith("Line 5:")

    coefficients, constant = evaluate_equation(manager, manager.get_equation_by_label("lim[2]"))
    assert check_coefficients(coefficients, {"x2": 1})
    assert check_num_result(constant, 3)


def test_filters_and_blocks():

    manager, result = build_model(FILTER_SCRIPT)
    assert result.success, result.errors

    assert [e.index for e in manager.get_equations_by_base_name("constraint1")] == [1, 3]
    assert [e.label for e in manager.get_equations_by_base_name("low")] == ["low[2]", "low[3]"]

    assert len(manager.get_equations_by_base_name("constraint2")) == 3
    assert len(manager.get_equations_by_base_name("constraint3")) == 3

    equation = manager.get_indexed_equation("constraint3", 1)
    assert check_num_result(equation.evaluate_constant(manager), -5)


def test_decision_expressions():

    manager, result = build_model(DECISION_EXPRESSION_SCRIPT)
    assert result.success, result.errors

    equation = manager.get_equation_by_label("constraint1")
    coefficients, constant = evaluate_equation(manager, equation)
    assert check_coefficients(coefficients, {"x1": 1, "x2": 1, "x3": 1})
    assert check_num_result(constant, 10)

    equation = manager.get_indexed_equation("constraint2", 2)
    coefficients, constant = evaluate_equation(manager, equation)
    assert check_coefficients(coefficients, {"x2": 1})
    assert check_num_result(constant, 20)

    expander = EquationExpander(manager)
    terms = expander.expand_decision_expression(manager.get_decision_expression("slack"), 3)
    assert terms.get_variable_names() == ["x3"]
    assert check_num_result(terms.constant.evaluate(manager), -30)

    with pytest.raises(IndexOutOfRangeError):
        expander.expand_decision_expression(manager.get_decision_expression("slack"), 4)


def test_objective_expansion():

    manager, result = build_model(OBJECTIVE_SCRIPT)
    assert result.success, result.errors

    objective = manager.objective
    assert objective.name == "cost_obj"
    assert objective.is_minimization()
    assert objective.is_expanded

    assert check_coefficients(objective.evaluate_coefficients(manager), {"x1": 10, "x2": 20, "x3": 30})
    assert check_num_result(objective.evaluate_constant(manager), 4)

    manager.check_exportable()


def test_linear_forms():

    manager, result = build_model(LINEAR_FORM_SCRIPT)

    # coefficients that cancel out are dropped
    coefficients, constant = evaluate_equation(manager, manager.get_equation_by_label("constraint1"))
    assert check_coefficients(coefficients, {"x2": 1})
    assert check_num_result(constant, 3)

    coefficients, constant = evaluate_equation(manager, manager.get_equation_by_label("constraint2"))
    assert check_coefficients(coefficients, {"x1": 0.5, "x2": 2})
    assert check_num_result(constant, 3)

    assert manager.get_equation_by_label("constraint3") is None
    assert manager.templates[3].is_failed()
    assert isinstance(manager.templates[3].error, NonLinearExpressionError)

    assert len(result.errors) == 2
    assert "Division by zero" in result.errors[0]
    assert "Constraint 'constraint4' failed to expand" in result.errors[1]


def test_template_is_expanded_once():

    manager, result = build_model(SUMMATION_SCRIPT)
    assert result.success, result.errors

    expander = EquationExpander(manager)
    with pytest.raises(StructuralError):
        expander.expand_template(manager.templates[0])

    expander.expand_all()
    assert len(manager.equations) == 1


def test_expansion_requires_external_data():

    parser = build_parser(EXTERNAL_SCRIPT)
    expander = EquationExpander(parser.manager)

    with pytest.raises(MissingValueError) as e:
        expander.expand_all()
    assert "'a'" in str(e.value)

    assert len(parser.manager.equations) == 0
    assert parser.manager.templates[0].is_pending()
