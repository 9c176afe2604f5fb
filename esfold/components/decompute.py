"""
The decomputation pass: rewrites member accesses with literal keys into the static form.
"""

from esfold.nodes import Identifier, Literal
from esfold.syntax.tokenizer import is_identifier_name
from esfold.tools import ast_transformer, replace_fields


@ast_transformer
class _decompute:

    @staticmethod
    def handle_MemberExpression(node, visit_after, visiting_after, **_):
        # Inner accesses are rewritten first
        if not visiting_after:
            visit_after()
            return node

        prop = node.property
        if (node.computed and isinstance(prop, Literal) and type(prop.value) is str
                and is_identifier_name(prop.value)):
            return replace_fields(node, property=Identifier(prop.value), computed=False)
        return node


def decompute(tree):
    """
    Rewrites member accesses with literal string keys into the static form
    (``x["name"]`` becomes ``x.name``) where the key is a valid identifier name.
    Accesses with other keys are left as they are.
    Returns the transformed tree.
    """
    return _decompute(tree)
