from esfold import wisdom
from esfold.core import interpreter


def test_implemented_methods_are_registered():
    # Every implemented method must be known to the classifier,
    # otherwise an access to it could be folded as a plain property
    tables = [
        (wisdom.ARRAY, interpreter._ARRAY_METHODS),
        (wisdom.STRING, interpreter._STRING_METHODS),
        (wisdom.NUMBER, interpreter._NUMBER_METHODS),
        (wisdom.BOOLEAN, interpreter._BOOLEAN_METHODS),
        (wisdom.FUNCTION, interpreter._FUNCTION_METHODS),
        (wisdom.OBJECT, interpreter._OBJECT_METHODS),
    ]
    for kind, methods in tables:
        for name in methods:
            assert wisdom.is_builtin_member(kind, name), (kind, name)


def test_math():
    assert set(interpreter._MATH_IMPLEMENTATIONS) == wisdom.MATH_FUNCTIONS
    assert set(interpreter._MATH_CONSTANTS) == wisdom.MATH_CONSTANTS
    assert wisdom.is_math_member("PI")
    assert wisdom.is_math_member("max")
    assert not wisdom.is_math_member("random")
    assert wisdom.MATH_NONDETERMINISTIC.isdisjoint(wisdom.MATH_MEMBERS)


def test_safe_mutators():
    assert wisdom.SAFE_MUTATORS <= wisdom.ARRAY_STRING_METHODS


def test_inherited_members():
    for kind in (wisdom.ARRAY, wisdom.STRING, wisdom.NUMBER, wisdom.BOOLEAN, wisdom.FUNCTION):
        assert wisdom.is_builtin_member(kind, "hasOwnProperty")
        assert wisdom.builtin_members(wisdom.OBJECT) <= wisdom.builtin_members(kind)


def test_data_properties():
    assert not wisdom.is_builtin_member(wisdom.ARRAY, "length")
    assert not wisdom.is_builtin_member(wisdom.OBJECT, "a")
    assert wisdom.is_builtin_member(wisdom.FUNCTION, "length")
