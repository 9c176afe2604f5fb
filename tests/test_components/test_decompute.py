from esfold.components import decompute
from esfold.syntax import parse_expression

from tests.utils import assert_ast_equal


def check_decompute(source, expected_source=None):
    if expected_source is None:
        expected_source = source
    result = decompute(parse_expression(source))
    assert_ast_equal(result, parse_expression(expected_source))


def test_literal_key():
    check_decompute('x["a"]', "x.a")
    check_decompute('x["$b_1"]', "x.$b_1")


def test_nested():
    check_decompute('x["a"]["b"].c["d"]', "x.a.b.c.d")
    check_decompute('x[y["a"]]', "x[y.a]")


def test_not_an_identifier():
    check_decompute('x["a-b"]')
    check_decompute('x["1a"]')
    check_decompute('x[""]')


def test_other_keys():
    check_decompute("x[0]")
    check_decompute("x[y]")
    check_decompute('x["a" + "b"]')
    check_decompute("x.a")


def test_inside_functions():
    check_decompute(
        'function () { return this["a"] + x["b-c"]; }',
        'function () { return this.a + x["b-c"]; }')
