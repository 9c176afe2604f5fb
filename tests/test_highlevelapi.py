import pytest

from esfold import generate, parse_expression, transform

from tests.utils import check_transform


def test_transform():
    check_transform('[1, 2].concat([3], [4, 5]).join("-") + x', '"1-2-3-4-5" + x')
    check_transform(
        "[1, 2, 3].map(function (x) { return x * 2; })",
        "[2, 4, 6]")


def test_options_as_dict():
    check_transform("void 0", "undefined")
    check_transform("void 0", options=dict(optimize=True))
    check_transform("void 0", optimize=True)


def test_keywords_take_precedence():
    check_transform("void 0", "undefined", options=dict(optimize=True), optimize=False)


def test_decompute():
    check_transform('x["a"] + (1 + 2)', 'x["a"] + 3')
    check_transform('x["a"] + (1 + 2)', "x.a + 3", decompute=True)
    check_transform('x["a-b"]', decompute=True)


def test_decompute_after_folding():
    # The static form is produced for the keys that become literals during folding
    check_transform('x["a" + "b"]', 'x["ab"]')
    check_transform('x["a" + "b"]', "x.ab", decompute=True)


def test_decompute_reveals_builtins():
    check_transform('[1]["push"]', "[1].push", decompute=True)
    check_transform('Math["PI"]', generate(transform(parse_expression("Math.PI"))))
    # the call becomes recognizable only after its key is folded and made static
    check_transform('[1]["con" + "cat"]([2])', "[1, 2]", decompute=True)
    check_transform('x[["a"]["con" + "cat"](["b"]).join("")]', "x.ab", decompute=True)


def test_externs():
    check_transform("x + (1 + 2)", "x + 3", externs=dict(x=True))


def test_max_steps():
    source = "[1, 2, 3].map(function (x) { return x * x; })"
    check_transform(source, max_steps=5)
    check_transform(source, "[1, 4, 9]", max_steps=1000)


def test_unknown_option():
    with pytest.raises(ValueError):
        transform(parse_expression("1"), fold_everything=True)
    with pytest.raises(ValueError):
        transform(parse_expression("1"), options=dict(fold_everything=True))


def test_invalid_options():
    for options in (
            dict(externs=1),
            dict(externs=["x"]),
            dict(max_steps=0),
            dict(max_steps=-1),
            dict(max_steps=True),
            dict(max_steps="10")):
        with pytest.raises(ValueError):
            transform(parse_expression("1"), **options)
