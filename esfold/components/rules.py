"""
Folding rules for specific built-in method call shapes.
The rules are tried in order, and the first one that matches the node and passes its test wins.
"""

from collections import namedtuple
import logging
import typing

from esfold import wisdom
from esfold.core.callshape import resolve_call
from esfold.core.evaluate import eval_node
from esfold.core.interpreter import DEFAULT_MAX_STEPS
from esfold.core.simple import accepts_context, is_simple, is_string, is_transferable
from esfold.nodes import (
    ArrayExpression,
    CallExpression,
    Expression,
    FunctionExpression,
    Identifier,
    MemberExpression,
    NewExpression,
    Node,
)
from esfold.tools import clone


logger = logging.getLogger(__name__)


Rule = namedtuple("Rule", "name match test eval")


def _transferable_or_simple(node: Node) -> bool:
    return is_transferable(node) or is_simple(node)


def _test_concat(node: CallExpression) -> bool:
    shape = resolve_call(node)
    return (
        shape is not None
        and accepts_context(shape)
        and shape.method_name == "concat"
        and isinstance(shape.receiver, ArrayExpression)
        and all(_transferable_or_simple(elem) for elem in shape.receiver.elements)
        and all(_transferable_or_simple(arg) for arg in shape.arguments))


def _eval_concat(node: CallExpression, max_steps: int = DEFAULT_MAX_STEPS) -> Expression:
    """
    Builds the concatenation result argument by argument,
    so that only the arguments that are not already constants are evaluated.
    """
    shape = resolve_call(node)

    elements = []
    for elem in shape.receiver.elements:
        if is_transferable(elem) or isinstance(elem, FunctionExpression):
            elements.append(clone(elem))
        else:
            elements.append(eval_node(elem, max_steps=max_steps))

    for arg in shape.arguments:
        if isinstance(arg, ArrayExpression) and is_transferable(arg):
            elements.extend(clone(elem) for elem in arg.elements)
        elif is_transferable(arg):
            elements.append(clone(arg))
        else:
            single = CallExpression(
                MemberExpression(ArrayExpression([]), Identifier("concat"), False), [arg])
            result = eval_node(single, opaque_types=FunctionExpression, max_steps=max_steps)
            elements.extend(result.elements)

    return ArrayExpression(elements)


def _test_mapping(node: CallExpression) -> bool:
    shape = resolve_call(node)
    return (
        shape is not None
        and accepts_context(shape)
        and shape.method_name in wisdom.ARRAY_STRING_METHODS
        and is_simple(shape.receiver)
        and all(is_simple(arg) for arg in shape.arguments))


def _eval_whole(node: CallExpression, max_steps: int = DEFAULT_MAX_STEPS) -> Expression:
    return eval_node(node, max_steps=max_steps)


def _test_mutator(node: CallExpression) -> bool:
    shape = resolve_call(node)
    return (
        shape is not None
        and accepts_context(shape)
        and shape.method_name in wisdom.SAFE_MUTATORS
        and (isinstance(shape.receiver, ArrayExpression) or is_string(shape.receiver))
        and is_simple(shape.receiver)
        and all(
            isinstance(arg, (FunctionExpression, NewExpression)) or is_simple(arg)
            for arg in shape.arguments))


def _eval_mutator(node: CallExpression, max_steps: int = DEFAULT_MAX_STEPS) -> Expression:
    return eval_node(node, opaque_types=(FunctionExpression, NewExpression), max_steps=max_steps)


RULES = (
    # ``[a].concat(b, c)`` is ``[a].concat(b).concat(c)``
    Rule("concat", CallExpression, _test_concat, _eval_concat),
    Rule("mapping", CallExpression, _test_mapping, _eval_whole),
    Rule("mutator", CallExpression, _test_mutator, _eval_mutator),
)


def apply_rules(node: Node, max_steps: int = DEFAULT_MAX_STEPS) -> typing.Optional[Expression]:
    """
    Returns the replacement for ``node`` produced by the first matching rule,
    or ``None`` if no rule matches.
    Raises :py:class:`~esfold.errors.EvaluationError` if the matching rule fails to evaluate.
    """
    for rule in RULES:
        if isinstance(node, rule.match) and rule.test(node):
            logger.debug("Rule %s matches", rule.name)
            return rule.eval(node, max_steps=max_steps)
    return None
