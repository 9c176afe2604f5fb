import pytest

from esfold.tools import ImmutableDict, ImmutableADict


# Immutable dictionary


def test_del_syntax():
    d = ImmutableDict(a=1)
    with pytest.raises(TypeError):
        del d["a"]


def test_set_syntax():
    d = ImmutableDict(a=1)
    with pytest.raises(TypeError):
        d["b"] = 2


def test_with_item():
    d = ImmutableDict(a=1)
    nd = d.with_item("a", 1)
    assert nd is d

    nd = d.with_item("b", 2)
    assert nd == dict(a=1, b=2)
    assert d == dict(a=1)


def test_without():
    d = ImmutableDict(a=1)
    nd = d.without("b")
    assert nd is d

    nd = d.without("a")
    assert nd == {}
    assert d == dict(a=1)


def test_or():
    d = ImmutableDict(a=1, b=2)
    nd = d | dict(b=3, c=4)
    assert type(nd) == ImmutableDict
    assert nd == dict(a=1, b=3, c=4)
    assert d == dict(a=1, b=2)


def test_dict_repr():
    d = ImmutableDict(a=1)
    nd = eval(repr(d))
    assert type(nd) == type(d)
    assert nd == d


# Immutable attribute dictionary


def test_adict_getattr():
    d = ImmutableADict(a=1)
    assert d.a == 1
    with pytest.raises(AttributeError):
        d.b


def test_adict_with():
    d = ImmutableADict(a=1)
    nd = d.with_(a=2)
    assert nd.a == 2
    assert d.a == 1


def test_adict_with_unchanged():
    d = ImmutableADict(a=1)
    assert d.with_(a=1) is d


def test_adict_repr():
    d = ImmutableADict(a=1)
    nd = eval(repr(d))
    assert type(nd) == type(d)
    assert nd == d
