"""
The traversal driver: walks the tree depth-first and replaces
every maximal foldable subtree by its computed value.
"""

import logging
import typing

from esfold.components.rules import apply_rules
from esfold.core.evaluate import eval_node
from esfold.core.interpreter import DEFAULT_MAX_STEPS
from esfold.core.simple import is_simple
from esfold.errors import EvaluationError
from esfold.nodes import CallExpression, Expression, MemberExpression, Node
from esfold.syntax import generate
from esfold.tools import ast_equal, ast_walker


logger = logging.getLogger(__name__)


def _compute(node: Expression, max_steps: int) -> Expression:
    if isinstance(node, CallExpression):
        replacement = apply_rules(node, max_steps=max_steps)
        if replacement is not None:
            return replacement
    return eval_node(node, max_steps=max_steps)


def _fold_expression(state, node, ctx):
    if not is_simple(node):
        return state, node

    try:
        replacement = _compute(node, ctx.max_steps)
    except EvaluationError as exc:
        logger.debug("Leaving %s as is: %s", generate(node), exc)
        return state.with_(failures=state.failures + 1), node

    if ast_equal(replacement, node):
        return state, node

    if ctx.optimize and len(generate(replacement)) > len(generate(node)):
        logger.debug("Not folding %s, the result is longer", generate(node))
        return state, node

    logger.debug("Folded %s into %s", generate(node), generate(replacement))
    return state.with_(folds=state.folds + 1), replacement


def _walk_reference(state, target: Node, walk_field):
    # Only the parts of an assignment target that are evaluated before the assignment
    # can be folded; the target itself must stay a reference.
    if isinstance(target, MemberExpression):
        state, target.object = walk_field(state, target.object)
        if target.computed:
            state, target.property = walk_field(state, target.property)
    return state


@ast_walker
class _fold:

    @staticmethod
    def handle(state, node, ctx, **_):
        if isinstance(node, Expression):
            return _fold_expression(state, node, ctx)
        return state, node

    @staticmethod
    def handle_Literal(state, node, skip_fields, **_):
        skip_fields()
        return state, node

    @staticmethod
    def handle_Identifier(state, node, skip_fields, **_):
        skip_fields()
        return state, node

    @staticmethod
    def handle_FunctionExpression(state, node, **_):
        # Functions are never replaced themselves, but their bodies can contain foldable parts
        return state, node

    @staticmethod
    def handle_AssignmentExpression(state, node, skip_fields, walk_field, **_):
        skip_fields()
        state = _walk_reference(state, node.left, walk_field)
        state, node.right = walk_field(state, node.right)
        return state, node

    @staticmethod
    def handle_UpdateExpression(state, node, ctx, skip_fields, walk_field, **_):
        state, new_node = _fold_expression(state, node, ctx)
        if new_node is node:
            skip_fields()
            state = _walk_reference(state, node.argument, walk_field)
        return state, new_node

    @staticmethod
    def handle_UnaryExpression(state, node, ctx, skip_fields, walk_field, **_):
        if node.operator == "delete":
            skip_fields()
            return _walk_reference(state, node.argument, walk_field), node
        return _fold_expression(state, node, ctx)


def fold_counted(
        tree: Node, optimize: bool = False,
        max_steps: int = DEFAULT_MAX_STEPS) -> typing.Tuple[Node, int]:
    """
    Same as :py:func:`fold`, but also returns the total number of replaced subtrees.
    """
    ctx = dict(optimize=optimize, max_steps=max_steps)
    total = 0

    # A fold can make its parent foldable (e.g. a call on a folded receiver),
    # so the passes are repeated until nothing changes.
    while True:
        state, tree = _fold(dict(folds=0, failures=0), tree, ctx=ctx)
        logger.debug(
            "Folding pass finished: %d subtrees folded, %d evaluations failed",
            state.folds, state.failures)
        if state.folds == 0:
            break
        total += state.folds

    return tree, total


def fold(tree: Node, optimize: bool = False, max_steps: int = DEFAULT_MAX_STEPS) -> Node:
    """
    Replaces the foldable subtrees of ``tree`` with their values, in place.
    Returns the new root (which is a new node only if the whole tree was folded).

    :param optimize: if ``True``, folds that make the generated source longer are skipped.
    :param max_steps: the evaluation budget for every single fold.
    """
    tree, _ = fold_counted(tree, optimize=optimize, max_steps=max_steps)
    return tree
