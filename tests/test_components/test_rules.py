from esfold.components import RULES, apply_rules
from esfold.syntax import parse_expression

from tests.utils import assert_ast_equal


def check_rules(source, expected_source):
    result = apply_rules(parse_expression(source))
    if expected_source is None:
        assert result is None
    else:
        assert_ast_equal(result, parse_expression(expected_source))


def test_rule_order():
    assert [rule.name for rule in RULES] == ["concat", "mapping", "mutator"]


def test_concat_splicing():
    check_rules("[1, 2].concat([3], 4, [5, [6]])", "[1, 2, 3, 4, 5, [6]]")
    check_rules("[1].concat(1 + 1, [2 + 2])", "[1, 2, 4]")
    check_rules("[1 + 1].concat([3])", "[2, 3]")
    check_rules('["a"].concat(-1, {b: 2})', '["a", -1, {b: 2}]')


def test_concat_without_arguments():
    check_rules("[].concat()", "[]")
    check_rules("[1, 2].concat()", "[1, 2]")


def test_concat_keeps_functions():
    check_rules(
        "[1].concat(function (x) { return x; })",
        "[1, function (x) { return x; }]")


def test_mapping():
    check_rules('"abc".toUpperCase()', '"ABC"')
    check_rules("[1, 2, 3].map(function (x) { return x * 2; })", "[2, 4, 6]")
    check_rules('[1, 2, 3].join("-")', '"1-2-3"')
    check_rules('"a-b".split("-")', '["a", "b"]')


def test_mutator():
    check_rules("[1, 2].push(function () { return x; })", "3")
    check_rules(
        "[1].concat(function () { return x; })",
        "[1, function () { return x; }]")
    check_rules("[new Foo(), 1].reverse()", None)
    check_rules("[1].push(new Foo())", "2")


def test_call_and_apply():
    check_rules("[1].concat.call([1], [2])", "[1, 2]")
    check_rules("[1].concat.apply([1], [[2], 3])", "[1, 2, 3]")
    check_rules('"abc".charAt.call("abc", 1)', '"b"')


def test_context_mismatch():
    check_rules("[1].concat.call([2], [3])", None)
    check_rules("[1].concat.apply(x, [[3]])", None)


def test_no_match():
    check_rules("1 + 2", None)
    check_rules("f(1)", None)
    check_rules("[1].map(function (x) { return y; })", None)
    check_rules("Math.max(1, 2)", None)
