import difflib

from esfold import generate, parse_expression, transform
from esfold.nodes import dump
from esfold.tools import ast_equal


def print_diff(test, expected):
    print("\n" + "=" * 40 + " expected:\n\n" + expected)
    print("\n" + "=" * 40 + " result:\n\n" + test)
    print("\n")

    expected_lines = expected.split("\n")
    test_lines = test.split("\n")

    for line in difflib.unified_diff(
        expected_lines, test_lines, fromfile="expected", tofile="test"
    ):
        print(line)


def assert_ast_equal(test_ast, expected_ast, print_ast=True):
    """
    Check that test_ast is equal to expected_ast,
    printing helpful error message if they are not equal
    """

    equal = ast_equal(test_ast, expected_ast)
    if not equal:
        if print_ast:
            print_diff(dump(test_ast), dump(expected_ast))

        print_diff(generate(test_ast), generate(expected_ast))

    assert equal


def check_transform(source, expected_source=None, **options):
    """
    Transforms the expression in ``source`` and compares the result
    with ``expected_source`` (or with the original expression, if it is ``None``).
    Returns the transformed tree.
    """
    tree = parse_expression(source)
    new_tree = transform(tree, **options)

    if expected_source is None:
        expected_source = source
    assert_ast_equal(new_tree, parse_expression(expected_source))

    return new_tree
