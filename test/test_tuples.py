import pytest
import warnings

from test_util import *


# Scripts
# ----------------------------------------------------------------------------------------------------------------------

ROUTE_SCRIPT = """
tuple Route {
    key string origin;
    key string destination;
    float cost;
}
{Route} routes = {<"A", "B", 4.5>, <"B", "C", 1.5>};
dvar float+ y;
"""

ITEM_CONSTRAINT_SCRIPT = ROUTE_SCRIPT + """
c: item(routes, <"A", "B">).cost * y <= 9;
"""

POSITIONAL_CONSTRAINT_SCRIPT = ROUTE_SCRIPT + """
forall(r in routes) y >= routes[r].cost;
"""

DYNAMIC_CONSTRAINT_SCRIPT = ROUTE_SCRIPT + """
forall(r in routes) y >= r.cost;
"""

PARTIAL_KEY_SCRIPT = """
range K = 1..3;
tuple Slot {
    key int id;
    float cap;
}
{Slot} slots = {<1, 10>, <2, 20>};
dvar float+ z[K];
lim[k in K]: z[k] <= item(slots, <k>).cap;
"""

EXTERNAL_TUPLE_MODEL_SCRIPT = """
tuple Arc {
    key int i;
    key int j;
    float cost;
}
{Arc} arcs = ...;
dvar float+ f;
f >= item(arcs, <1, 2>).cost;
"""

EXTERNAL_TUPLE_DATA_SCRIPT = """
arcs = {<1, 2, 3.5>, <2, 3, 1.0>};
"""

ARC_SCRIPT = """
range N = 1..3;
range L = 1..2;
tuple Arc {
    key int src;
    key int dst;
    float cost;
}
{Arc} arcs = {<1, 2, 4>, <1, 3, 2>, <2, 3, 1>, <3, 1, 5>};
float limit[L] = [3, 1];
dvar float+ y;
"""

COMPUTED_SET_SCRIPT = ARC_SCRIPT + """
{Arc} cheap = {a | a in arcs: a.cost < 3};
{int} sources = {a.src | a in arcs};
{int} ends = {i | i in N: i != 2};
{Arc} limited = {a | a in arcs: a.cost <= limit[a.src]};
forall(a in cheap) y >= a.cost;
"""

INDEXED_COMPUTED_SET_SCRIPT = ARC_SCRIPT + """
{Arc} out[i in N] = {a | a in arcs: a.src == i};
dvar float+ x[N];
forall(i in N) x[i] <= sum(a in out[i]) a.cost;
"""


# Tests
# ----------------------------------------------------------------------------------------------------------------------

def test_scalar_matching():

    # value equality across numeric kinds
    assert scalars_match(ScalarValue.of(1), ScalarValue.of(1.0))

    # case-insensitive string representation
    assert scalars_match(ScalarValue.of("ABC"), ScalarValue.of("abc"))
    assert scalars_match(ScalarValue.of("2"), ScalarValue.of(2))

    # numeric tolerance
    assert scalars_match(ScalarValue.of(1.0), ScalarValue.of(1.0 + 1e-12))
    assert not scalars_match(ScalarValue.of(1.0), ScalarValue.of(1.001))

    assert not scalars_match(ScalarValue.of("x"), ScalarValue.of(1))


def test_key_literal_parsing():

    assert parse_key_literal('"NY"') == ScalarValue(ScalarValue.STR, "NY")
    assert parse_key_literal("true") == ScalarValue(ScalarValue.BOOL, True)
    assert parse_key_literal(" 3 ") == ScalarValue(ScalarValue.INT, 3)
    assert parse_key_literal("2.5") == ScalarValue(ScalarValue.FLOAT, 2.5)

    with pytest.raises(MalformedKeyError):
        parse_key_literal("abc")


def test_scalar_coercion():

    assert coerce_scalar(2.0, "int") == ScalarValue(ScalarValue.INT, 2)
    assert coerce_scalar(3, "float") == ScalarValue(ScalarValue.FLOAT, 3.0)
    assert coerce_scalar(1, "bool") == ScalarValue(ScalarValue.BOOL, True)
    assert str(ScalarValue.of(4.0)) == "4"

    with pytest.raises(TypeMismatchError):
        coerce_scalar(2.5, "int")

    with pytest.raises(TypeMismatchError):
        coerce_scalar(2, "string")


def test_item_resolution():

    manager = build_parser(ROUTE_SCRIPT).manager

    key = [ScalarValue.of("A"), ScalarValue.of("B")]

    instance = resolver.resolve_item(manager, "routes", key)
    assert check_num_result(instance.get_value("cost").to_float(), 4.5)

    # resolution is idempotent
    assert resolver.resolve_item(manager, "routes", key) is instance

    # keys are compared case-insensitively
    assert resolver.resolve_item(manager, "routes", [ScalarValue.of("a"), ScalarValue.of("b")]) is instance

    with pytest.raises(NoMatchError):
        resolver.resolve_item(manager, "routes", [ScalarValue.of("A"), ScalarValue.of("C")])

    with pytest.raises(KeyArityMismatchError):
        resolver.resolve_item(manager, "routes", [ScalarValue.of("A")])

    with pytest.raises(TupleSetNotFoundError):
        resolver.resolve_item(manager, "missing", key)


def test_dynamic_resolution():

    manager = build_parser(ROUTE_SCRIPT).manager

    # iterator walking through the tuple set
    ctx = EvaluationContext().bind("r", 2, "routes")
    instance = resolver.resolve_dynamic(manager, ctx, "r", "cost")
    assert check_num_result(instance.get_value("cost").to_float(), 1.5)

    # plain integer iterator used as a position
    ctx = EvaluationContext().bind("p", 1)
    instance = resolver.resolve_dynamic(manager, ctx, "p", "cost")
    assert check_num_result(instance.get_value("cost").to_float(), 4.5)

    with pytest.raises(NoMatchError):
        resolver.resolve_dynamic(manager, EvaluationContext().bind("p", 3), "p", "cost")

    with pytest.raises(NotFoundError):
        resolver.resolve_dynamic(manager, EvaluationContext(), "q", "cost")


def test_item_constraint_expansion():

    manager, result = build_model(ITEM_CONSTRAINT_SCRIPT)
    assert result.success, result.errors

    assert len(manager.equations) == 1
    coefficients, constant = evaluate_equation(manager, manager.equations[0])
    assert check_coefficients(coefficients, {"y": 4.5})
    assert check_num_result(constant, 9)


def test_tuple_iteration_expansion():

    for script in [POSITIONAL_CONSTRAINT_SCRIPT, DYNAMIC_CONSTRAINT_SCRIPT]:

        manager, result = build_model(script)
        assert result.success, result.errors

        assert len(manager.equations) == 2
        assert [e.index for e in manager.equations] == [1, 2]
        assert all([e.operator == GREATER_EQUAL_INEQUALITY_OPERATOR for e in manager.equations])

        constants = [e.evaluate_constant(manager) for e in manager.equations]
        assert check_num_result(constants[0], 4.5)
        assert check_num_result(constants[1], 1.5)


def test_unmatched_key_skips_combination():

    manager, result = build_model(PARTIAL_KEY_SCRIPT)

    assert not result.success
    assert len(manager.equations) == 2
    assert [e.label for e in manager.equations] == ["lim[1]", "lim[2]"]

    assert len(result.errors) == 1
    assert "Constraint 'lim[3]' skipped" in result.errors[0]
    assert "No tuple found in 'slots'" in result.errors[0]

    assert any(["Equation expansion warning" in w for w in result.warnings])

    coefficients, constant = evaluate_equation(manager, manager.get_equation_by_label("lim[2]"))
    assert check_coefficients(coefficients, {"z2": 1})
    assert check_num_result(constant, 20)


def test_external_tuple_set():

    manager, result = build_model(EXTERNAL_TUPLE_MODEL_SCRIPT, EXTERNAL_TUPLE_DATA_SCRIPT)
    assert result.success, result.errors

    assert len(manager.get_tuple_set("arcs")) == 2
    assert check_num_result(manager.equations[0].evaluate_constant(manager), 3.5)


def test_ambiguous_positional_iterator_warns():

    script = ROUTE_SCRIPT + """
    tuple Leg {
        key int id;
        float cost;
    }
    {Leg} legs = {<1, 2.0>, <2, 3.0>};
    """

    manager = build_parser(script).manager

    with warnings.catch_warnings(record=True) as caught_warnings:
        warnings.simplefilter("always")
        instance = resolver.resolve_dynamic(manager, EvaluationContext().bind("p", 1), "p", "cost")

    assert instance.schema_name == "Route"
    assert len(caught_warnings) == 1


def test_computed_sets():

    manager, result = build_model(COMPUTED_SET_SCRIPT)
    assert result.success, result.errors

    # filter over a tuple set keeps the source instances
    cheap = manager.get_tuple_set("cheap")
    arcs = manager.get_tuple_set("arcs")
    assert [str(i) for i in cheap.instances] == ["<1, 3, 2>", "<2, 3, 1>"]
    assert cheap.instances[0] is arcs.instances[1]

    # projection onto a field, duplicates are kept once
    assert list(manager.get_primitive_set("sources").values) == [1, 2, 3]

    # filter over an index set
    assert list(manager.get_primitive_set("ends").values) == [1, 3]

    # combinations whose filter cannot be resolved produce no member
    assert [str(i) for i in manager.get_tuple_set("limited").instances] == ["<1, 3, 2>", "<2, 3, 1>"]

    constants = [e.evaluate_constant(manager) for e in manager.equations]
    assert len(constants) == 2
    assert check_num_result(constants[0], 2)
    assert check_num_result(constants[1], 1)

    assert "Computed Sets: 4" in manager.generate_report()


def test_computed_set_resolution():

    manager = build_parser(COMPUTED_SET_SCRIPT).manager

    # members are computed once the data of the model is complete
    computed_set = manager.get_computed_set("cheap")
    assert not computed_set.is_indexed()
    assert not manager.is_domain_resolved("cheap")
    assert len(manager.get_tuple_set("cheap")) == 0

    computed_set.resolve(manager)
    assert manager.is_domain_resolved("cheap")
    assert list(manager.get_domain("cheap")) == [1, 2]

    # evaluation replaces the members of a previous evaluation
    computed_set.resolve(manager)
    assert len(manager.get_tuple_set("cheap")) == 2


def test_computed_set_over_external_data():

    model = EXTERNAL_TUPLE_MODEL_SCRIPT + """
    {Arc} short = {a | a in arcs: a.cost < 2};
    {string} labels = {"arc" | a in arcs};
    """

    manager, result = build_model(model, EXTERNAL_TUPLE_DATA_SCRIPT)
    assert result.success, result.errors

    assert [str(i) for i in manager.get_tuple_set("short").instances] == ["<2, 3, 1>"]
    assert list(manager.get_primitive_set("labels").values) == ["arc"]


def test_indexed_computed_sets():

    manager, result = build_model(INDEXED_COMPUTED_SET_SCRIPT)
    assert result.success, result.errors

    assert manager.get_computed_set("out").is_indexed()
    assert [str(i) for i in manager.get_tuple_set("out[1]").instances] == ["<1, 2, 4>", "<1, 3, 2>"]
    assert len(manager.get_tuple_set("out[2]")) == 1
    assert len(manager.get_tuple_set("out[3]")) == 1

    assert len(manager.equations) == 3
    for equation, expected_constant in zip(manager.equations, [6, 1, 5]):
        assert check_num_result(equation.evaluate_constant(manager), expected_constant)

    coefficients, _ = evaluate_equation(manager, manager.equations[1])
    assert check_coefficients(coefficients, {"x2": 1})


def test_indexed_computed_set_out_of_range():

    model = INDEXED_COMPUTED_SET_SCRIPT + """
    forall(k in 1..4) y >= sum(a in out[k]) a.cost;
    """

    manager, result = build_model(model)

    assert not result.success
    assert "Index 4 is out of range for computed set out" in result.get_first_error()


def test_computed_set_errors():

    _, result = build_model(ARC_SCRIPT + "{Arc} bad = {a | a in missing};")
    assert "Set 'missing' not found" in result.get_first_error()

    _, result = build_model(ARC_SCRIPT + "{Arc} bad[i in M] = {a | a in arcs: a.src == i};")
    assert "Index set 'M' not found" in result.get_first_error()

    _, result = build_model(ARC_SCRIPT + "{Arc} bad[i in N] = {<1, 2, 3>};")
    assert "must be defined by a comprehension" in result.get_first_error()

    _, result = build_model(ARC_SCRIPT + "{int} bad = {a | a in arcs};")
    assert "Computed set 'bad' could not be evaluated" in result.get_first_error()
    assert "cannot hold the tuple <1, 2, 4>" in result.get_first_error()

    _, result = build_model(COMPUTED_SET_SCRIPT, "cheap = {<1, 2, 4>};")
    assert "Computed set 'cheap' is defined by a comprehension" in result.get_first_error()
