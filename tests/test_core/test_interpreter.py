import math

import pytest

from esfold.core.interpreter import MATH, execute
from esfold.core.values import UNDEFINED, Opaque
from esfold.errors import EvaluationError
from esfold.nodes import FunctionExpression, Identifier


@pytest.mark.parametrize("source, expected", [
    ("1 + 2 * 3", 7.0),
    ("7 / 2", 3.5),
    ("-7 % 3", -1.0),
    ("7 % -3", 1.0),
    ("2 ** 10", 1024.0),
    ('"a" + 1', "a1"),
    ('1 + "2"', "12"),
    ('"3" * "4"', 12.0),
    ("[1, 2] + [3]", "1,23"),
    ("({}) + 1", "[object Object]1"),
    ("true + 1", 2.0),
    ("null + 1", 1.0),
    ("1 << 31", -2147483648.0),
    ("-1 >>> 0", 4294967295.0),
    ("~5", -6.0),
    ("5 & 3 | 8 ^ 1", 9.0),
    ('"b" > "a"', True),
    ('"10" < "9"', True),
    ("10 < 9", False),
    ("1 == '1'", True),
    ("1 === '1'", False),
    ("null == undefined", True),
    ("typeof null", "object"),
    ("typeof undeclared", "undefined"),
    ("typeof function () {}", "function"),
    ("void 1", UNDEFINED),
    ("1 && 0 || 'x'", "x"),
    ("1 ? 'a' : 'b'", "a"),
    ("(1, 2, 3)", 3.0),
    ("'a' in {a: 1}", True),
    ("0 in [5]", True),
])
def test_operators(source, expected):
    assert execute(source) == expected


def test_special_numbers():
    assert math.isnan(execute("0 / 0"))
    assert execute("1 / 0") == math.inf
    assert execute("-1 / 0") == -math.inf
    assert math.copysign(1, execute("-0")) < 0
    assert execute("1 / -0") == -math.inf
    assert math.isnan(execute("NaN + 1"))


def test_arrays_and_objects():
    assert execute("[1, [2, 'a']]") == [1.0, [2.0, "a"]]
    assert execute("({a: 1, 'b c': [true]})") == {"a": 1.0, "b c": [True]}
    assert execute("[1, 2, 3].length") == 3.0
    assert execute("[1, 2, 3][1]") == 2.0
    assert execute("[1, 2, 3][5]") is UNDEFINED
    assert execute("({a: 1}).b") is UNDEFINED
    assert execute("'abc'[1]") == "b"


@pytest.mark.parametrize("source, expected", [
    ("[1, 2].concat([3], 4)", [1.0, 2.0, 3.0, 4.0]),
    ("[3, 1, 2].sort()", [1.0, 2.0, 3.0]),
    ("[10, 9, 1].sort()", [1.0, 10.0, 9.0]),
    ("[3, 1, 2].sort(function (a, b) { return b - a; })", [3.0, 2.0, 1.0]),
    ("[1, 2, 3].map(function (x) { return x * 2; })", [2.0, 4.0, 6.0]),
    ("[1, 2, 3].filter(function (x) { return x % 2; })", [1.0, 3.0]),
    ("[1, 2, 3].reduce(function (a, b) { return a + b; })", 6.0),
    ("[1, 2, 3].reduceRight(function (a, b) { return a + '' + b; })", "321"),
    ("[1, 2, 3].indexOf(2)", 1.0),
    ("[1, 2, 3].lastIndexOf(4)", -1.0),
    ("[NaN].includes(NaN)", True),
    ("[NaN].indexOf(NaN)", -1.0),
    ("[1, 2, 3].join('-')", "1-2-3"),
    ("[1, [2, 3]].toString()", "1,2,3"),
    ("[1, 2, 3].slice(-2)", [2.0, 3.0]),
    ("[1, 2, 3].at(-1)", 3.0),
    ("[1, 2, 3].push(4)", 4.0),
    ("[1, 2, 3].pop()", 3.0),
    ("[1, 2, 3].shift()", 1.0),
    ("[1, 2, 3].reverse()", [3.0, 2.0, 1.0]),
    ("[1, 2, 3].splice(1, 1)", [2.0]),
    ("[1, 2, 3].some(function (x) { return x > 2; })", True),
    ("[1, 2, 3].every(function (x) { return x > 2; })", False),
    ("[1, 2, 3].find(function (x) { return x > 1; })", 2.0),
    ("[1, 2, 3].findIndex(function (x) { return x > 5; })", -1.0),
    ("[0, 0].fill(7)", [7.0, 7.0]),
])
def test_array_methods(source, expected):
    assert execute(source) == expected


@pytest.mark.parametrize("source, expected", [
    ("'abc'.toUpperCase()", "ABC"),
    ("'abc'.charAt(1)", "b"),
    ("'abc'.charCodeAt(0)", 97.0),
    ("'a,b,c'.split(',')", ["a", "b", "c"]),
    ("'abc'.split('')", ["a", "b", "c"]),
    ("'abc'.split()", ["abc"]),
    ("'abcabc'.indexOf('c')", 2.0),
    ("'abcabc'.lastIndexOf('c')", 5.0),
    ("'abc'.slice(-2)", "bc"),
    ("'abc'.substring(2, 0)", "ab"),
    ("'abcdef'.substr(1, 3)", "bcd"),
    ("'  x  '.trim()", "x"),
    ("'ab'.repeat(3)", "ababab"),
    ("'5'.padStart(3, '0')", "005"),
    ("'aXbX'.replace('X', '-')", "a-bX"),
    ("'abc'.startsWith('ab')", True),
    ("'abc'.endsWith('bc')", True),
    ("'abc'.includes('d')", False),
    ("'abc'.length", 3.0),
])
def test_string_methods(source, expected):
    assert execute(source) == expected


@pytest.mark.parametrize("source, expected", [
    ("(1.005).toFixed(2)", "1.00"),
    ("(2.5).toFixed(0)", "3"),
    ("(-1.5).toFixed(1)", "-1.5"),
    ("(255).toString(16)", "ff"),
    ("(-8).toString(2)", "-1000"),
    ("(0.5).toString()", "0.5"),
    ("true.toString()", "true"),
    ("({a: 1}).hasOwnProperty('a')", True),
    ("[1].hasOwnProperty('length')", True),
])
def test_number_and_object_methods(source, expected):
    assert execute(source) == expected


@pytest.mark.parametrize("source, expected", [
    ("Math.PI", math.pi),
    ("Math['P' + 'I']", math.pi),
    ("Math.max(1, 3, 2)", 3.0),
    ("Math.max()", -math.inf),
    ("Math.min(1, 3, 2)", 1.0),
    ("Math.round(2.5)", 3.0),
    ("Math.round(-2.5)", -2.0),
    ("Math.floor(-1.5)", -2.0),
    ("Math.abs(-3)", 3.0),
    ("Math.sqrt(16)", 4.0),
    ("Math.pow(2, 3)", 8.0),
    ("Math.cbrt(27)", 3.0),
    ("Math.sign(-5)", -1.0),
    ("Math.imul(3, 4)", 12.0),
    ("Math.clz32(1)", 31.0),
    ("Math.hypot(3, 4)", 5.0),
    ("Math.trunc(-4.7)", -4.0),
])
def test_math(source, expected):
    assert execute(source) == expected


def test_math_special():
    assert math.isnan(execute("Math.sqrt(-1)"))
    assert execute("Math.log(0)") == -math.inf
    assert math.copysign(1, execute("Math.round(-0.2)")) < 0


def test_functions():
    assert execute("(function (a, b) { return a + b; })(1, 2)") == 3.0
    assert execute("(function (a) { return a; })()") is UNDEFINED
    assert execute("(function () {})()") is UNDEFINED
    assert execute(
        "(function f(n) { if (n <= 1) return 1; return n * f(n - 1); })(5)") == 120.0
    assert execute("(function () { var x = 1; x += 2; x++; return x; })()") == 4.0
    assert execute("(function () { var a = [1]; a[1] = 3; a[0] = 2; return a; })()") == [2.0, 3.0]
    assert execute("(function () { var a = [1, 2, 3]; a.length = 1; return a; })()") == [1.0]
    assert execute("(function () { var o = {}; o.a = 1; return o; })()") == {"a": 1.0}
    assert execute("(function () { return y; var y = 1; })()") is UNDEFINED
    assert execute("(function (a, b) { return a * b; }).call(null, 3, 4)") == 12.0
    assert execute("(function (a, b) { return a * b; }).apply(null, [3, 4])") == 12.0
    assert execute("(function (a, b) {}).length") == 2.0
    assert execute("(function foo() {}).name") == "foo"
    assert execute("[1, 2].map(function (x) { return this; }, 'a')") == ["a", "a"]


def test_update_evaluates_target_once():
    source = (
        "(function () { var i = 0; var a = [10, 20]; a[i++] += 1; return [i, a]; })()")
    assert execute(source) == [1.0, [11.0, 20.0]]


def test_bindings():
    marker = Opaque(Identifier("x"))
    assert execute("[a, 1]", bindings=dict(a=marker)) == [marker, 1.0]
    result = execute("[1].concat(f)", bindings=dict(f=Opaque(FunctionExpression(None, [], []))))
    assert isinstance(result[1], Opaque)


def test_top_level_this():
    result = execute("this || 1")
    assert isinstance(result, Opaque)


@pytest.mark.parametrize("source", [
    "x",
    "x = 1",
    "undefined = 1",
    "Math.random()",
    "Math.random",
    "new Foo()",
    "delete a.b",
    "[] instanceof Array",
    "null.a",
    "undefined.a",
    "(1)()",
    "[].reduce(function (a, b) { return a; })",
    "'a'.repeat(-1)",
    "'a'.repeat(Infinity)",
    "'x'.repeat(1e9)",
    "'a'.replace('a', '$&')",
    "'abc'.match('a')",
    "[1].toSource()",
    "(1).toFixed(101)",
    "(0.5).toString(2)",
    "({__proto__: 1})",
    "typeof this",
    "this.a",
    "'\\u{1F600}'",
    "(function f() { return f(); })()",
    "(function () { var a = []; a.x = 1; return a; })()",
    "(function () { var a = [1]; a.length = -1; })()",
    "(function () { var a = []; a[3] = 1; return a; })()",
    "(function () { var a = []; a.length = 4000000000; return 0; })()",
    "({valueOf: function () { return 5; }}) * 2",
    "({toString: function () { return 'x'; }}) + ''",
    "[{toString: function () { return 'x'; }}, 1].join()",
    "[] + {toString: 1}",
    "({valueOf: 1}) == 1",
])
def test_errors(source):
    with pytest.raises(EvaluationError):
        execute(source)


def test_step_budget():
    source = "(function f(n) { return n == 0 ? 0 : f(n - 1); })(20)"
    assert execute(source, max_steps=100000) == 0.0
    with pytest.raises(EvaluationError):
        execute(source, max_steps=100)


def test_size_budget():
    with pytest.raises(EvaluationError):
        execute("'abcdefghijklmnop'.repeat(100000)", max_steps=1000)


def test_math_namespace():
    assert MATH.members["E"] == math.e
    assert "random" not in MATH.members
