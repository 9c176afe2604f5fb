"""
Normalization of method calls into ``(receiver, method name, arguments)`` shapes,
covering direct calls and the ``call``/``apply`` indirection forms.
"""

from collections import namedtuple
import typing

from esfold.nodes import ArrayExpression, CallExpression, MemberExpression, Node


CallShape = namedtuple("CallShape", "receiver method_name arguments context")
CallShape.__doc__ = """
A normalized method call.
``context`` is the explicit receiver of a ``call``/``apply`` form,
or ``None`` for a direct call.
"""


def _static_member(node: Node) -> bool:
    return isinstance(node, MemberExpression) and not node.computed


def resolve_call(node: Node) -> typing.Optional[CallShape]:
    """
    Returns the shape of a method call, or ``None`` if the call is not recognized:

    * ``a.b(args)`` gives ``(a, "b", args, None)``;
    * ``a.b.call(ctx, args)`` gives ``(a, "b", args, ctx)``;
    * ``a.b.apply(ctx, [args])`` gives ``(a, "b", args, ctx)``,
      if the second argument is an array literal.

    Any other callee shape is not recognized.
    """
    if not isinstance(node, CallExpression) or not _static_member(node.callee):
        return None

    callee = node.callee
    if not isinstance(callee.object, MemberExpression):
        return CallShape(callee.object, callee.property.name, list(node.arguments), None)

    method = callee.object
    if not _static_member(method) or isinstance(method.object, MemberExpression):
        return None
    if len(node.arguments) == 0:
        return None

    context = node.arguments[0]
    if callee.property.name == "call":
        return CallShape(method.object, method.property.name, list(node.arguments[1:]), context)
    if callee.property.name == "apply":
        if len(node.arguments) == 2 and isinstance(node.arguments[1], ArrayExpression):
            return CallShape(
                method.object, method.property.name, list(node.arguments[1].elements), context)
    return None


def get_call_name(node: Node) -> typing.Optional[str]:
    shape = resolve_call(node)
    return shape.method_name if shape is not None else None


def get_call_arguments(node: Node) -> typing.Optional[typing.List[Node]]:
    shape = resolve_call(node)
    return shape.arguments if shape is not None else None


def get_member_source(node: Node) -> typing.Optional[Node]:
    """
    Returns the innermost object of a member access chain (``a`` for ``a.b.c``),
    or ``None`` if ``node`` is not a member access.
    """
    if not isinstance(node, MemberExpression):
        return None
    while isinstance(node, MemberExpression):
        node = node.object
    return node
