from esfold.nodes import BinaryExpression, Identifier, Literal
from esfold.syntax import parse_expression
from esfold.tools import ast_equal, clone, replace_fields


def test_ast_equal():
    src = "function (x, y) { if (x == 'bar') return x + y; else return y['zzz']; }"

    # Different node type (`-` instead of `+`)
    different_node = "function (x, y) { if (x == 'bar') return x - y; else return y['zzz']; }"

    # Different value in a node ('zzy' instead of 'zzz')
    different_value = "function (x, y) { if (x == 'bar') return x + y; else return y['zzy']; }"

    # Additional element in a body
    different_length = (
        "function (x, y) { if (x == 'bar') { return x + y; return 1; } else return y['zzz']; }")

    tree = parse_expression(src)

    assert ast_equal(tree, tree)
    assert ast_equal(tree, parse_expression(src))
    assert not ast_equal(tree, parse_expression(different_node))
    assert not ast_equal(tree, parse_expression(different_value))
    assert not ast_equal(tree, parse_expression(different_length))


def test_ast_equal_literal_types():
    assert ast_equal(Literal(1), Literal(1))
    assert not ast_equal(Literal(1), Literal(1.0))
    assert not ast_equal(Literal(1), Literal(True))
    assert not ast_equal(Literal(0), Literal(False))
    assert not ast_equal(Literal(None), Literal(""))


def test_replace_fields():
    node = BinaryExpression("+", Identifier("x"), Literal(1))

    new_node = replace_fields(node, operator="-")
    assert new_node is not node
    assert new_node.operator == "-" and new_node.left is node.left
    assert node.operator == "+"

    new_node = replace_fields(node, operator="+")
    # no new object is created if the new value is the same as the old value
    assert new_node is node


def test_clone():
    node = parse_expression("[1, {a: x}]")
    new_node = clone(node)
    assert new_node is not node
    assert new_node.elements[1] is not node.elements[1]
    assert ast_equal(new_node, node)
