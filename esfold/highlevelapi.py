import typing
from collections.abc import Mapping

from esfold.components import decompute, fold, fold_counted
from esfold.core.interpreter import DEFAULT_MAX_STEPS
from esfold.nodes import Node
from esfold.tools import ImmutableADict
from esfold.typing import OptionsDictT


DEFAULT_OPTIONS = ImmutableADict(
    optimize=False,
    decompute=False,
    externs=ImmutableADict(),
    max_steps=DEFAULT_MAX_STEPS,
)


def _merge_options(options: typing.Optional[OptionsDictT], kwds: OptionsDictT) -> ImmutableADict:
    merged = dict(options or {})
    merged.update(kwds)

    unknown = set(merged).difference(DEFAULT_OPTIONS)
    if len(unknown) > 0:
        raise ValueError("Unknown options: " + ", ".join(sorted(unknown)))

    result = DEFAULT_OPTIONS.with_(**merged)

    if not isinstance(result.externs, Mapping):
        raise ValueError("`externs` must be a mapping of names to markers")
    if type(result.max_steps) is not int or result.max_steps <= 0:
        raise ValueError("`max_steps` must be a positive integer")

    return result


def transform(tree: Node, options: typing.Optional[OptionsDictT] = None, **kwds) -> Node:
    """
    Folds the constant subtrees of ``tree`` in place and returns the resulting tree
    (the root itself can be replaced if the whole tree is constant).

    Options can be passed either as a dictionary or as keyword arguments
    (the latter take precedence):

    * ``optimize``: if ``True``, folds that make the generated source longer are rejected;
    * ``decompute``: if ``True``, member accesses with literal string keys
      are rewritten into the static form, alternating with folding until neither changes the tree;
    * ``externs``: a mapping of names to markers; validated, but does not affect folding;
    * ``max_steps``: the evaluation budget for a single fold.

    Raises ``ValueError`` for unknown or invalid options.
    """
    opts = _merge_options(options, kwds)

    if not opts.decompute:
        return fold(tree, optimize=opts.optimize, max_steps=opts.max_steps)

    # Static member names can make more calls foldable,
    # and folded keys can be made static, so both passes are repeated.
    while True:
        tree = decompute(tree)
        tree, folds = fold_counted(tree, optimize=opts.optimize, max_steps=opts.max_steps)
        if folds == 0:
            break

    return tree
