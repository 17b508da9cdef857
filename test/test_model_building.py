import pytest

from test_util import *


# Scripts
# ----------------------------------------------------------------------------------------------------------------------

DATA_MODEL_SCRIPT = """
range I = 1..3;
range J = 1..2;
int n = ...;
float cost[I] = ...;
float cap[I][J] = ...;
{int} S = ...;
{string} names = {"a", "b"};
dvar float+ x[I];
dvar int y in 0..n;
dvar bool z;
forall(i in S: i <= 3) x[i] <= cost[i];
"""

DATA_SCRIPT = """
n = 4;
cost = [1.5, 2.5, 3.5];
cap = [[1, 2], [3, 4], [5, 6]];
cost[2] = 9;
S = {1, 3, 5};
"""

EXTERNAL_MODEL_SCRIPT = """
range I = 1..2;
float a[I] = ...;
float b = ...;
dvar float x[I];
c: x[1] <= a[1] + b;
"""

ASSERTION_SCRIPT = """
range I = 1..3;
float c[I] = [1, -2, 3];
dvar float x[I];
assert c[1] >= 0;
assert forall(i in I) c[i] >= 0;
x[1] <= 1;
"""


# Tests
# ----------------------------------------------------------------------------------------------------------------------

def test_data_loading():

    manager, result = build_model(DATA_MODEL_SCRIPT, DATA_SCRIPT)
    assert result.success, result.errors

    assert check_num_result(manager.get_parameter("cost").get_value((1,)).to_float(), 1.5)
    assert check_num_result(manager.get_parameter("cost").get_value((2,)).to_float(), 9)
    assert check_num_result(manager.get_parameter("cap").get_value((3, 2)).to_float(), 6)
    assert list(manager.get_domain("S")) == [1, 3, 5]
    assert list(manager.get_primitive_set("names").values) == ["a", "b"]

    equations = manager.equations
    assert [e.index for e in equations] == [1, 3]
    assert check_num_result(equations[1].evaluate_constant(manager), 3.5)


def test_variable_declarations():

    manager, result = build_model(DATA_MODEL_SCRIPT, DATA_SCRIPT)
    assert result.success, result.errors

    x = manager.get_variable("x")
    assert x.type == "float"
    assert x.lb == 0
    assert x.enumerate_flat_names(manager) == ["x1", "x2", "x3"]

    # bounds that depend on external data are resolved once the data is loaded
    y = manager.get_variable("y")
    assert y.is_integer()
    assert y.lb == 0
    assert y.ub == 4

    z = manager.get_variable("z")
    assert z.type == "bool"
    assert (z.lb, z.ub) == (0, 1)

    assert [v.name for v in manager.get_variables_by_type("int")] == ["y"]


def test_missing_external_data_without_data_file():

    manager, result = build_model(EXTERNAL_MODEL_SCRIPT)

    assert not result.success
    assert len(manager.equations) == 0
    assert result.errors == ["External parameters require data values. Create a .dat file with:\n"
                             "  a = [value1, value2, ...];\n"
                             "  b = <value>;"]


def test_missing_external_data_with_data_file():

    manager, result = build_model(EXTERNAL_MODEL_SCRIPT, "b = 3;")

    assert not result.success
    assert len(manager.equations) == 0
    assert result.errors == ["Missing required data: parameter 'a' is declared as external (type: float) "
                             "but no value was provided in the data file(s)"]


def test_external_data():

    manager, result = build_model(EXTERNAL_MODEL_SCRIPT, "a = [1, 2];\nb = 3;")
    assert result.success, result.errors

    assert check_num_result(manager.get_equation_by_label("c").evaluate_constant(manager), 4)


def test_invalid_constraints():

    _, result = build_model("dvar float x;\nx = 10;")
    assert not result.success
    assert result.errors == ["Line 2: Invalid operator '='. Use '==' for equality"]

    _, result = build_model("dvar float x;\nx + 1;")
    assert "Missing relational operator. Must contain ==, <, >, <=, or >=" in result.get_first_error()

    _, result = build_model("dvar float x;\nx != 1;")
    assert "Operator '!=' is not supported in constraints" in result.get_first_error()

    _, result = build_model("dvar float x;\nx <= y;")
    assert "Symbol 'y' not found" in result.get_first_error()


def test_statement_errors_do_not_stop_parsing():

    manager, result = build_model("dvar float x;\nx = 10;\nx <= 10;")

    assert result.success_count == 3
    assert result.get_error_count() == 1
    assert result.get_summary() == "Parsed with errors: 3 statements, 1 errors"
    assert len(manager.equations) == 1


def test_assertions():

    manager, result = build_model(ASSERTION_SCRIPT)

    assert not result.success
    assert len(result.errors) == 1
    assert "Assertion failed: c[i] >= 0" in result.errors[0]
    assert result.errors[0].startswith("Line 6:")

    # assertions do not prevent the expansion of the model
    assert len(manager.equations) == 1


def test_data_warnings():

    manager, result = build_model("float k = 2;\ndvar float x;\nx <= k;", "k = 3;")

    assert result.success, result.errors
    assert "Data assignment to 'k' which is not declared external" in result.warnings
    assert check_num_result(manager.equations[0].evaluate_constant(manager), 3)

    _, result = build_model("dvar float x;\nx <= 1;", "q = 1;")
    assert "Symbol 'q' is not declared in the model" in result.get_first_error()

    _, result = build_model("dvar float x;\nforall(i in 1..0) x <= 1;")
    assert result.success, result.errors
    assert "Constraint 'constraint1' expanded to zero equations" in result.warnings


def test_parsing_service():

    service = ModelParsingService()

    result = service.parse_model([])
    assert not result.success
    assert result.errors == ["No model files provided"]
    assert result.get_summary() == "Parse failed: 1 errors"

    help_message = ModelParsingService.get_syntax_help_message()
    assert ".mod" in help_message
    assert ".dat" in help_message

    # sessions start from a clean state
    result = service.parse_model(["dvar float x;\nc: x <= 1;"])
    assert result.success, result.errors
    result = service.parse_model(["dvar float y;\nc: y <= 1;"])
    assert result.success, result.errors
    assert service.manager.get_variable("x") is None
    assert [e.get_variable_names() for e in service.manager.equations] == [["y"]]


def test_model_files():

    manager, result = read_opl(working_dir_path=SCRIPT_DIR_PATH)
    assert result.success, result.errors
    assert str(result) == "Parse successful: 8 statements"

    coefficients, constant = evaluate_equation(manager, manager.get_equation_by_label("budget"))
    assert check_coefficients(coefficients, {"x1": 2, "x2": 3})
    assert check_num_result(constant, 5)

    objective = manager.objective
    assert objective.name == "total"
    assert not objective.is_minimization()
    assert check_coefficients(objective.evaluate_coefficients(manager), {"x1": 1, "x2": 1})

    report = manager.generate_report()
    assert report.startswith("=== Parse Results ===")
    assert "Equations: 1" in report

    manager, result = read_opl(file_name="budget.mod",
                               data_file_name="budget.dat",
                               working_dir_path=SCRIPT_DIR_PATH)
    assert result.success, result.errors
    assert len(manager.equations) == 1


def test_missing_model_file(tmp_path):
    with pytest.raises(ValueError):
        read_opl(working_dir_path=str(tmp_path))
