import pytest

from test_util import *


# Scripts
# ----------------------------------------------------------------------------------------------------------------------

PARAMETER_SCRIPT = """
range I = 1..3;
float c[I] = [10, 20, 30];
float k = 5;
int m = 2 * k;
"""

TUPLE_SCRIPT = """
tuple Route {
    key string origin;
    key string destination;
    float cost;
}
{Route} routes = {<"A", "B", 4.5>, <"B", "C", 1.5>};
"""


# Tests
# ----------------------------------------------------------------------------------------------------------------------

def test_arithmetic_expression_literals():

    parser = build_parser()

    node = parser.parse_expression("1 + 2 * 3")
    assert str(node) == "1 + 2 * 3"
    assert check_num_result(node.evaluate(parser.manager), 7)

    node = parser.parse_expression("(1 + 2) * 3")
    assert str(node) == "(1 + 2) * 3"
    assert check_num_result(node.evaluate(parser.manager), 9)

    node = parser.parse_expression("1 - (2 - 3)")
    assert str(node) == "1 - (2 - 3)"
    assert check_num_result(node.evaluate(parser.manager), 2)

    node = parser.parse_expression("-4 / 2")
    assert check_num_result(node.evaluate(parser.manager), -2)


def test_logical_and_conditional_expressions():

    parser = build_parser()

    node = parser.parse_expression("1 < 2 && 3 > 4")
    assert str(node) == "1 < 2 && 3 > 4"
    assert node.evaluate(parser.manager) == 0

    node = parser.parse_expression("1 < 2 || 3 > 4")
    assert node.evaluate(parser.manager) == 1

    node = parser.parse_expression("!(1 > 2)")
    assert node.evaluate(parser.manager) == 1

    node = parser.parse_expression("2 > 1 ? 5 : 7")
    assert check_num_result(node.evaluate(parser.manager), 5)

    node = parser.parse_expression("1 > 2 ? 5 : 7")
    assert check_num_result(node.evaluate(parser.manager), 7)


def test_parameter_references():

    parser = build_parser(PARAMETER_SCRIPT)
    manager = parser.manager

    assert check_num_result(parser.parse_expression("c[2] + k * 2").evaluate(manager), 30)
    assert check_num_result(parser.parse_expression("m").evaluate(manager), 10)

    with pytest.raises(NotFoundError):
        parser.parse_expression("y + 1")

    with pytest.raises(ModelSyntaxError):
        parser.parse_expression("k = 5")


def test_simplify_round_trip():

    parser = build_parser(PARAMETER_SCRIPT)
    manager = parser.manager

    literals = ["(1 + 2) * 3 - 4 / 2",
                "2 > 1 ? 5 : 7",
                "-(3 + 4)",
                "c[1] * k + 2",
                "0 * k + c[3]",
                "k > 2 && !(c[1] == 20) || k < 0 ? c[2] : 0",
                "!(k >= 5) || c[1] != 10"]

    for literal in literals:

        node = parser.parse_expression(literal)
        original_literal = str(node)

        simplified_node = node.simplify(manager)

        assert check_num_result(simplified_node.evaluate(manager), node.evaluate(manager))
        assert str(simplified_node.simplify(manager)) == str(simplified_node)
        assert str(node) == original_literal  # the original tree is left intact


def test_constant_folding_without_environment():

    parser = build_parser()

    node = parser.parse_expression("(1 + 2) * 3")
    simplified_node = node.simplify()

    assert isinstance(simplified_node, NumericNode)
    assert simplified_node.value == 9


def test_summation_evaluation():

    parser = build_parser(PARAMETER_SCRIPT)
    manager = parser.manager

    node = parser.parse_expression("sum(i in I) c[i]")
    assert check_num_result(node.evaluate(manager), 60)

    # filtered summation
    node = parser.parse_expression("sum(i in I: i >= 2) c[i]")
    assert check_num_result(node.evaluate(manager), 50)

    # terms that cannot be resolved are skipped
    node = parser.parse_expression("sum(i in 1..4) c[i]")
    assert check_num_result(node.evaluate(manager), 60)


def test_iterator_references():

    parser = build_parser(PARAMETER_SCRIPT)
    manager = parser.manager

    node = parser.parse_expression("i + 1", bound_symbols=["i"])
    assert not node.is_constant()
    assert isinstance(node.lhs_operand, DummyNode)

    ctx = EvaluationContext().bind("i", 2)
    assert check_num_result(node.evaluate(manager, ctx), 3)

    node = node.substitute(manager, ctx).simplify(manager)
    assert node.is_constant()
    assert check_num_result(node.evaluate(manager), 3)


def test_tuple_valued_nodes_are_not_numeric():

    parser = build_parser(TUPLE_SCRIPT)
    manager = parser.manager

    node = ItemFunctionNode("routes", CompositeKeyNode([StringNode("A"), StringNode("B")]))
    with pytest.raises(NotNumericError):
        node.evaluate(manager)

    node = ItemFieldAccessNode(node, "cost")
    assert check_num_result(node.evaluate(manager), 4.5)

    node = ItemFieldAccessNode(node.item_node, "origin")
    with pytest.raises(TypeMismatchError):
        node.evaluate(manager)


def test_logical_simplification_without_environment():

    parser = build_parser(PARAMETER_SCRIPT)
    manager = parser.manager

    node = parser.parse_expression("k > 1 + 1 && !(c[1] == 20) || 2 < 1 ? c[2] : 0")
    original_literal = str(node)

    # only the literal sub-trees are folded
    simplified_node = node.simplify()
    assert isinstance(simplified_node, ConditionalNode)
    assert isinstance(simplified_node.condition, LogicalOperationNode)
    assert isinstance(simplified_node.condition.operands[1], NumericNode)

    assert str(simplified_node.simplify()) == str(simplified_node)
    assert str(node) == original_literal

    assert check_num_result(simplified_node.evaluate(manager), 20)
    assert check_num_result(simplified_node.simplify(manager).evaluate(manager), 20)


def test_field_access_base_is_abstract():
    with pytest.raises(TypeError):
        BaseTupleFieldAccessNode("cost")
