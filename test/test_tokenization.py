import pytest

from test_util import *


# Scripts
# ----------------------------------------------------------------------------------------------------------------------

BOUNDARY_SCRIPT = """
range I = 1..5;
range J = 1..2;
float c[I] = [1, 2, 3, 4, 5];
float d[I][J] = [[1, 2], [3, 4], [5, 6], [7, 8], [9, 10]];
float k = 5;
dvar float x[I];
"""

ROUTE_SCRIPT = """
tuple Route {
    key string origin;
    key string destination;
    float cost;
}
{Route} routes = {<"A", "B", 4.5>, <"B", "C", 1.5>};
"""

COMMENTED_SCRIPT = """range I = 1..3;
// cost of each item
float c[I] = ...; /* loaded from
the data file */ dvar float+ x[I];
subject to {
    cap: sum(i in I) c[i] * x[i] <= 10;
}
"""


# Tests
# ----------------------------------------------------------------------------------------------------------------------

def test_lexer():

    lexer = OPLLexer()

    assert lexer.tokenize("x[i] <= 2.5e3") == ["x", "[", "i", "]", "<=", "2.5e3"]
    assert lexer.tokenize("range I = 1..3;") == ["range", "I", "=", "1", "..", "3", ";"]
    assert lexer.tokenize('a != "b c" && !d') == ["a", "!=", '"b c"', "&&", "!", "d"]
    assert lexer.tokenize("float c = ...;") == ["float", "c", "=", "...", ";"]

    with pytest.raises(ModelSyntaxError):
        lexer.tokenize('s = "unterminated')


def test_statement_splitting():

    statements = split_statements(COMMENTED_SCRIPT)

    assert [s for s, _ in statements] == ["range I = 1..3",
                                          "float c[I] = ...",
                                          "dvar float+ x[I]",
                                          "cap: sum(i in I) c[i] * x[i] <= 10"]
    assert [l for _, l in statements] == [1, 3, 4, 6]

    statements = split_statements("tuple P { int a; float b; } forall(i in I) { x[i] <= 1; x[i] >= 0; }")
    assert len(statements) == 2
    assert statements[0][0] == "tuple P { int a; float b; }"


def test_token_numbering():

    parser = build_parser(BOUNDARY_SCRIPT)
    manager = parser.manager
    token_manager = parser.token_manager

    node = parser.parse_expression("c[2] + k")
    assert token_manager.get_tokens() == ["__PARAM0__", "__PARAM1__"]
    assert check_num_result(node.evaluate(manager), 7)

    # the counter keeps increasing until the token manager is cleared
    parser.parse_expression("k")
    assert token_manager.get_tokens()[-1] == "__PARAM2__"

    parser.clear()
    assert token_manager.token_count() == 0

    parser.parse_expression("k")
    assert token_manager.get_tokens() == ["__PARAM0__"]


def test_tokenization_pipeline():

    parser = build_parser(BOUNDARY_SCRIPT)
    manager = parser.manager

    token_manager = TokenManager()

    text = parser.orchestrator.tokenize("c[2] * k", token_manager, manager)
    assert text == "__PARAM0__ * __PARAM1__"
    assert str(token_manager.get_expression("__PARAM0__")) == "c[2]"
    assert token_manager.get_tokens(text) == ["__PARAM0__", "__PARAM1__"]
    assert TokenManager.is_token("__PARAM1__")
    assert not TokenManager.is_token("PARAM1")

    # two-dimensional references in both notations
    text = parser.orchestrator.tokenize("d[2][1] + d[3,2]", token_manager, manager)
    assert text == "__PARAM2__ + __PARAM3__"

    node = parser.parse_expression("d[2][1] + d[3,2]")
    assert check_num_result(node.evaluate(manager), 9)

    # references to variables are left in place
    text = parser.orchestrator.tokenize("x[1] + k", token_manager, manager)
    assert text == "x[1] + __PARAM4__"

    # iterators are not replaced
    text = parser.orchestrator.tokenize("sum(k in I) x[k]", token_manager, manager, bound_symbols=["k"])
    assert text == "sum(k in I) x[k]"


def test_index_boundaries():

    parser = build_parser(BOUNDARY_SCRIPT)
    manager = parser.manager

    for literal in ["c[0]", "c[6]", "x[0] <= 1", "x[6] <= 1", "d[0,1]", "d[6][1]", "d[1][3]"]:
        with pytest.raises(TokenizationError) as e:
            parser.parse_expression(literal)
        assert "out of range" in str(e.value)

    assert check_num_result(parser.parse_expression("c[1] + c[5]").evaluate(manager), 6)

    param = manager.get_parameter("c")
    for idx in [0, 6]:
        with pytest.raises(IndexOutOfRangeError):
            manager.check_indices(param, (idx,), "parameter")

    result = parser.parse("x[6] <= 1;")
    assert result.has_errors()
    assert "Index 6 is out of range for variable x" in result.get_error_messages()[0]


def test_tuple_field_tokenization():

    parser = build_parser(ROUTE_SCRIPT)
    manager = parser.manager

    node = parser.parse_expression("routes[2].cost + item(routes, <\"A\", \"B\">).cost")
    assert [t[:6] for t in parser.token_manager.get_tokens()] == ["__ITEM", "__TUPL"]
    assert check_num_result(node.evaluate(manager), 6)

    with pytest.raises(TokenizationError):
        parser.parse_expression("routes[1].price")

    with pytest.raises(TokenizationError):
        parser.parse_expression("routes[3].cost")
