import pytest

from esfold.core.evaluate import eval_node
from esfold.errors import EvaluationError
from esfold.nodes import FunctionExpression, NewExpression
from esfold.syntax import parse_expression

from tests.utils import assert_ast_equal


def check_eval(source, expected_source, **kwds):
    node = parse_expression(source)
    reference = parse_expression(source)

    result = eval_node(node, **kwds)

    assert_ast_equal(result, parse_expression(expected_source))
    # the evaluated tree is not changed
    assert_ast_equal(node, reference)


def test_arithmetic():
    check_eval("1 + 2 + 4", "7")
    check_eval("1 - 4", "-3")
    check_eval("0 / 0", "NaN")
    check_eval("-1 / 0", "-Infinity")
    check_eval("-0", "-0")
    check_eval("void 0", "undefined")


def test_structures():
    check_eval("[1, 2].concat([3])", "[1, 2, 3]")
    check_eval('({a: 1 + 1, "b": "x" + "y"})', '{a: 2, b: "xy"}')


def test_opaque_functions():
    check_eval(
        "[1].concat(function (x) { return y; })",
        "[1, function (x) { return y; }]",
        opaque_types=FunctionExpression)


def test_opaque_new():
    check_eval(
        "[1, 2].push(new Foo(), 3)",
        "4",
        opaque_types=(FunctionExpression, NewExpression))
    check_eval(
        "[new Foo()].concat([2])",
        "[new Foo(), 2]",
        opaque_types=(FunctionExpression, NewExpression))


def test_opaque_values_cannot_be_inspected():
    with pytest.raises(EvaluationError):
        eval_node(
            parse_expression("[function () {}].join()"), opaque_types=FunctionExpression)


def test_errors():
    for source in ("x + 1", "function () {}", "Math.random()", "[1].push"):
        with pytest.raises(EvaluationError):
            eval_node(parse_expression(source))


def test_max_steps():
    node = parse_expression("[1, 2, 3].map(function (x) { return x * x; })")
    with pytest.raises(EvaluationError):
        eval_node(node, max_steps=5)
    assert_ast_equal(eval_node(node), parse_expression("[1, 4, 9]"))
