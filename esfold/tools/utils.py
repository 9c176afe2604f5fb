import copy
from typing import Any

from esfold.nodes import Node, iter_fields


def replace_fields(node: Node, **kwds) -> Node:
    """
    Return a node with several of its fields replaced by the given values.
    """
    new_kwds = dict(iter_fields(node))
    for key, value in kwds.items():
        if value is not new_kwds[key]:
            break
    else:
        return node
    new_kwds.update(kwds)
    return type(node)(**new_kwds)


def clone(node: Any) -> Any:
    """
    Return a deep copy of a node (or a list of nodes).
    """
    return copy.deepcopy(node)


def _ast_equal(node1: Any, node2: Any):
    if node1 is node2:
        return True

    if type(node1) != type(node2):
        return False
    if isinstance(node1, list):
        if len(node1) != len(node2):
            return False
        for elem1, elem2 in zip(node1, node2):
            if not _ast_equal(elem1, elem2):
                return False
    elif isinstance(node1, Node):
        for attr, value1 in iter_fields(node1):
            value2 = getattr(node2, attr)
            if not _ast_equal(value1, value2):
                return False
    else:
        if node1 != node2:
            return False

    return True


def ast_equal(node1: Any, node2: Any) -> bool:
    """
    Test two nodes or two lists of nodes for equality.
    Plain values are compared together with their types,
    so ``Literal(1)``, ``Literal(1.0)`` and ``Literal(True)`` are all different.
    """
    return _ast_equal(node1, node2)
