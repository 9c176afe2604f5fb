"""
The safety classifier: decides whether a subtree can be computed statically,
without observing or depending on any external state.
"""

import logging
import typing

from esfold import wisdom
from esfold.core.callshape import CallShape, resolve_call
from esfold.core.evaluate import eval_node
from esfold.core.scope import free_variables, uses_this
from esfold.core.values import to_property_key
from esfold.errors import EvaluationError
from esfold.nodes import (
    ArrayExpression,
    FunctionExpression,
    Identifier,
    Literal,
    MemberExpression,
    NewExpression,
    Node,
    ObjectExpression,
    ThisExpression,
    UnaryExpression,
)
from esfold.tools import Dispatcher, ast_equal


logger = logging.getLogger(__name__)


def is_string(node: Node) -> bool:
    return isinstance(node, Literal) and type(node.value) is str


def is_number(node: Node) -> bool:
    return isinstance(node, Literal) and type(node.value) in (int, float)


def is_object(node: Node) -> bool:
    """
    Checks if the node always evaluates to an object (so it is truthy and has no side effects).
    """
    return isinstance(node, (ArrayExpression, ObjectExpression, FunctionExpression, ThisExpression))


def is_isolated(node: Node) -> bool:
    """
    Checks if ``node`` is a function that refers neither to outer variables nor to ``this``.
    """
    return (
        isinstance(node, FunctionExpression)
        and len(free_variables(node)) == 0
        and not uses_this(node))


def is_transferable(node: Node) -> bool:
    """
    Checks if ``node`` is a constant that can be copied into another tree as is:
    a literal, a negative number, or an array or object literal built from those.
    """
    if isinstance(node, Literal):
        return True
    if isinstance(node, UnaryExpression):
        return node.operator == "-" and is_number(node.argument)
    if isinstance(node, ArrayExpression):
        return all(is_transferable(elem) for elem in node.elements)
    if isinstance(node, ObjectExpression):
        return all(is_transferable(prop.value) for prop in node.properties)
    return False


def _literal_key(node: Node) -> typing.Optional[str]:
    if not isinstance(node, Literal):
        return None
    value = node.value
    if type(value) in (int, float):
        value = float(value)
    return to_property_key(value)


def static_property_name(node: MemberExpression) -> typing.Optional[str]:
    """
    Returns the name of the accessed property if it is known without evaluation
    (``x.name``, ``x["name"]``, ``x[0]``), ``None`` otherwise.
    """
    if not node.computed:
        return node.property.name
    return _literal_key(node.property)


def _property_name(node: MemberExpression) -> typing.Optional[str]:
    name = static_property_name(node)
    if name is not None or not is_simple(node.property):
        return name
    try:
        return _literal_key(eval_node(node.property))
    except EvaluationError:
        logger.debug("Cannot evaluate the property key of %s", node)
        return None


def _literal_kind(node: Node) -> typing.Optional[str]:
    if isinstance(node, ArrayExpression):
        return wisdom.ARRAY
    if isinstance(node, ObjectExpression):
        return wisdom.OBJECT
    if isinstance(node, FunctionExpression):
        return wisdom.FUNCTION
    if isinstance(node, Literal):
        if type(node.value) is str:
            return wisdom.STRING
        if type(node.value) is bool:
            return wisdom.BOOLEAN
        if type(node.value) in (int, float):
            return wisdom.NUMBER
    return None


def _is_math_access(node: MemberExpression) -> bool:
    if not (isinstance(node.object, Identifier) and node.object.name == wisdom.MATH_NAMESPACE):
        return False
    name = _property_name(node)
    return name is not None and wisdom.is_math_member(name)


def _is_simple_member(node: MemberExpression) -> bool:
    if _is_math_access(node):
        return True

    kind = _literal_kind(node.object)
    if kind is None or not is_simple(node.object):
        return False
    name = _property_name(node)
    return name is not None and not wisdom.is_builtin_member(kind, name)


def accepts_context(shape: CallShape) -> bool:
    """
    Checks if the explicit receiver of a ``call``/``apply`` form (if any)
    is the same as the receiver of the method.
    """
    return shape.context is None or ast_equal(shape.context, shape.receiver)


def _is_builtin_method_call(shape: typing.Optional[CallShape]) -> bool:
    if shape is None or not accepts_context(shape):
        return False

    receiver = shape.receiver
    if not ((isinstance(receiver, ArrayExpression) or is_string(receiver)) and is_simple(receiver)):
        return False

    if (shape.method_name in wisdom.ARRAY_STRING_METHODS
            and all(is_simple(arg) for arg in shape.arguments)):
        return True

    # Arguments of these methods are only stored or compared,
    # so functions and constructor calls can be passed through without evaluation.
    return shape.method_name in wisdom.SAFE_MUTATORS and all(
        is_simple(arg) or isinstance(arg, (FunctionExpression, NewExpression))
        for arg in shape.arguments)


@Dispatcher
class _is_simple:

    @staticmethod
    def handle(node):
        return False

    @staticmethod
    def handle_Literal(node):
        return True

    @staticmethod
    def handle_ArrayExpression(node):
        return all(is_simple(elem) for elem in node.elements)

    @staticmethod
    def handle_ObjectExpression(node):
        return all(is_simple(prop.value) for prop in node.properties)

    @staticmethod
    def handle_UnaryExpression(node):
        return node.operator != "delete" and is_simple(node.argument)

    @staticmethod
    def handle_UpdateExpression(node):
        return is_simple(node.argument)

    @staticmethod
    def handle_LogicalExpression(node):
        return (
            (is_object(node.left) or is_simple(node.left))
            and (is_object(node.right) or is_simple(node.right)))

    @staticmethod
    def handle_BinaryExpression(node):
        return is_simple(node.left) and is_simple(node.right)

    @staticmethod
    def handle_ConditionalExpression(node):
        return is_simple(node.test) and is_simple(node.consequent) and is_simple(node.alternate)

    @staticmethod
    def handle_SequenceExpression(node):
        return all(is_simple(expr) for expr in node.expressions)

    @staticmethod
    def handle_FunctionExpression(node):
        return is_isolated(node)

    @staticmethod
    def handle_MemberExpression(node):
        return _is_simple_member(node)

    @staticmethod
    def handle_CallExpression(node):
        if _is_builtin_method_call(resolve_call(node)):
            return True
        # Any call of a simple callee with simple arguments is assumed to be pure
        return is_simple(node.callee) and all(is_simple(arg) for arg in node.arguments)


def is_simple(node: typing.Optional[Node]) -> bool:
    """
    Checks if ``node`` can be computed statically.
    ``None`` (an absent node) is considered simple.
    """
    if node is None:
        return True
    return _is_simple(node, node)
