"""
Expression tree nodes.

The layout follows the ESTree conventions: every node class lists its fields
in ``_fields``, and the fields hold either other nodes, lists of nodes,
or plain values (strings, numbers, booleans, ``None``).
"""

import typing


class Node:

    _fields: typing.Tuple[str, ...] = ()

    def __init__(self, *args, **kwds):
        if len(args) > len(self._fields):
            raise TypeError(
                "{cls} takes at most {num} positional arguments ({given} given)".format(
                    cls=type(self).__name__, num=len(self._fields), given=len(args)))

        values = dict(zip(self._fields, args))
        for name, value in kwds.items():
            if name not in self._fields:
                raise TypeError(
                    "{cls} has no field {name!r}".format(cls=type(self).__name__, name=name))
            if name in values:
                raise TypeError(
                    "{cls} got multiple values for field {name!r}".format(
                        cls=type(self).__name__, name=name))
            values[name] = value

        for name in self._fields:
            setattr(self, name, values.get(name))

    def __repr__(self):
        return dump(self)


class Expression(Node):
    pass


class Statement(Node):
    pass


class Literal(Expression):
    _fields = ('value',)


class Identifier(Expression):
    _fields = ('name',)


class ThisExpression(Expression):
    _fields = ()


class ArrayExpression(Expression):
    _fields = ('elements',)


class Property(Node):
    _fields = ('key', 'value')


class ObjectExpression(Expression):
    _fields = ('properties',)


class MemberExpression(Expression):
    _fields = ('object', 'property', 'computed')


class CallExpression(Expression):
    _fields = ('callee', 'arguments')


class NewExpression(Expression):
    _fields = ('callee', 'arguments')


class UnaryExpression(Expression):
    _fields = ('operator', 'argument')


class UpdateExpression(Expression):
    _fields = ('operator', 'argument', 'prefix')


class BinaryExpression(Expression):
    _fields = ('operator', 'left', 'right')


class LogicalExpression(Expression):
    _fields = ('operator', 'left', 'right')


class AssignmentExpression(Expression):
    _fields = ('operator', 'left', 'right')


class ConditionalExpression(Expression):
    _fields = ('test', 'consequent', 'alternate')


class SequenceExpression(Expression):
    _fields = ('expressions',)


class FunctionExpression(Expression):
    _fields = ('id', 'params', 'body')


class ExpressionStatement(Statement):
    _fields = ('expression',)


class ReturnStatement(Statement):
    _fields = ('argument',)


class VariableDeclarator(Node):
    _fields = ('id', 'init')


class VariableDeclaration(Statement):
    _fields = ('kind', 'declarations')


class IfStatement(Statement):
    _fields = ('test', 'consequent', 'alternate')


class BlockStatement(Statement):
    _fields = ('body',)


class EmptyStatement(Statement):
    _fields = ()


def iter_fields(node: Node):
    """
    Yield a tuple of ``(fieldname, value)`` for each field in ``node._fields``.
    """
    for field in node._fields:
        yield field, getattr(node, field)


def _dump(value):
    if isinstance(value, Node):
        fields = ", ".join(
            name + "=" + _dump(field_value) for name, field_value in iter_fields(value))
        return type(value).__name__ + "(" + fields + ")"
    elif isinstance(value, list):
        return "[" + ", ".join(_dump(elem) for elem in value) + "]"
    else:
        return repr(value)


def dump(node) -> str:
    """
    Return a formatted dump of the tree in ``node``, mainly useful for debugging.
    """
    return _dump(node)
