"""
Evaluation of a subtree into a tree representing its value.
"""

import logging
import typing

from esfold.core.gensym import GenSym
from esfold.core.interpreter import DEFAULT_MAX_STEPS, execute
from esfold.core.reify import reify
from esfold.core.values import Opaque
from esfold.nodes import Expression, Identifier
from esfold.syntax import generate
from esfold.tools import ImmutableDict, ast_walker, clone
from esfold.typing import NodeTypeIsInstanceCriteriaT


logger = logging.getLogger(__name__)


@ast_walker
def _replace_opaque(state, node, ctx, **_):
    if isinstance(node, ctx.opaque_types):
        name, gen_sym = state.gen_sym(ctx.tag)
        return state.with_(
            gen_sym=gen_sym,
            bindings=state.bindings.with_item(name, Opaque(node))), Identifier(name)
    return state, node


def eval_node(
        node: Expression, opaque_types: NodeTypeIsInstanceCriteriaT = (),
        max_steps: int = DEFAULT_MAX_STEPS) -> Expression:
    """
    Computes the value of a subtree and returns a tree representing that value.

    The subtree is not modified.
    Sub-nodes of the types listed in ``opaque_types`` are not evaluated:
    they are replaced by placeholders for the duration of the evaluation,
    and any of them that ends up in the result is restored as a copy of the original node.

    Raises :py:class:`~esfold.errors.EvaluationError` if the subtree cannot be evaluated,
    or if its value cannot be represented as a tree.
    """
    tree = clone(node)
    bindings: typing.Mapping[str, Opaque] = {}

    if opaque_types:
        state, tree = _replace_opaque(
            dict(gen_sym=GenSym.for_tree(tree), bindings=ImmutableDict()), tree,
            ctx=dict(opaque_types=opaque_types, tag="opaque"))
        bindings = state.bindings

    source = generate(tree)
    logger.debug("Evaluating %s", source)
    value = execute(source, bindings=bindings, max_steps=max_steps)
    return reify(value)
