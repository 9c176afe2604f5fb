from esfold.core.scope import (
    analyze_scope, declared_names, free_variables, identifier_names, uses_this)
from esfold.syntax import parse_expression


def test_declared_names():
    func = parse_expression(
        "function (a) { var b = 1; if (a) { let c; } var d = function () { var e; }; }")
    assert declared_names(func) == set(["b", "c", "d"])


def test_analyze_scope():
    func = parse_expression("function f(a) { var b = a + c; return f(b).d; }")
    scope = analyze_scope(func)
    assert scope.locals == set(["f", "a", "b"])
    assert scope.globals == set(["c"])


def test_property_names_are_not_references():
    func = parse_expression("function () { return {a: 1}.a + x[y]; }")
    assert free_variables(func) == set(["x", "y"])


def test_nested_functions():
    func = parse_expression(
        "function (a) { return function (b) { return a + b + c; }; }")
    assert free_variables(func) == set(["c"])

    # a name bound by the inner function does not leak out
    func = parse_expression("function () { return function (b) { return b; }; }")
    assert free_variables(func) == set()


def test_arguments_is_free():
    func = parse_expression("function () { return arguments; }")
    assert free_variables(func) == set(["arguments"])


def test_uses_this():
    assert uses_this(parse_expression("function () { return this.a; }"))
    assert uses_this(parse_expression("function () { return function () { return this; }; }"))
    assert not uses_this(parse_expression("function (x) { return x; }"))


def test_identifier_names():
    tree = parse_expression("a.b + {c: d}[e]")
    assert identifier_names(tree) == set(["a", "b", "c", "d", "e"])
