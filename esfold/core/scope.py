from collections import namedtuple

from esfold.nodes import FunctionExpression, Node
from esfold.tools import ast_inspector
from esfold.typing import FreeVariableSetT


Scope = namedtuple("Scope", "locals globals")


@ast_inspector
class _collect_declarations:
    """
    Collects the names declared with ``var`` (and friends) in a function body.
    Nested functions have scopes of their own and are not entered.
    """

    @staticmethod
    def handle_VariableDeclarator(state, node, skip_fields, **_):
        skip_fields()
        return state.with_(names=state.names | {node.id.name})

    @staticmethod
    def handle_FunctionExpression(state, skip_fields, **_):
        skip_fields()
        return state


@ast_inspector
class _collect_references:
    """
    Collects the names of identifiers in reference positions.
    Property names of static member accesses and object literals are not references.
    """

    @staticmethod
    def handle_Identifier(state, node, **_):
        return state.with_(names=state.names | {node.name})

    @staticmethod
    def handle_MemberExpression(state, node, skip_fields, walk_field, **_):
        skip_fields()
        state = walk_field(state, node.object)
        if node.computed:
            state = walk_field(state, node.property)
        return state

    @staticmethod
    def handle_Property(state, node, skip_fields, walk_field, **_):
        skip_fields()
        return walk_field(state, node.value)

    @staticmethod
    def handle_VariableDeclarator(state, node, skip_fields, walk_field, **_):
        skip_fields()
        return walk_field(state, node.init)

    @staticmethod
    def handle_FunctionExpression(state, node, skip_fields, **_):
        skip_fields()
        return state.with_(names=state.names | analyze_scope(node).globals)


@ast_inspector
class _find_this:

    @staticmethod
    def handle_ThisExpression(state, skip_fields, **_):
        skip_fields()
        return state.with_(found=True)


@ast_inspector
class _collect_identifier_names:

    @staticmethod
    def handle_Identifier(state, node, **_):
        return state.with_(names=state.names | {node.name})


def declared_names(func: FunctionExpression) -> FreeVariableSetT:
    """
    Returns the names declared in the body of ``func`` (not including the parameters).
    """
    state = _collect_declarations(dict(names=frozenset()), func.body)
    return state.names


def analyze_scope(func: FunctionExpression) -> Scope:
    """
    Returns the names bound by ``func`` itself (parameters, declarations,
    and the name of a named function expression)
    and the names it refers to without binding them.

    ``arguments`` is never considered bound, so a function using it
    is not considered isolated.
    """
    locals_ = {param.name for param in func.params} | declared_names(func)
    if func.id is not None:
        locals_.add(func.id.name)

    state = _collect_references(dict(names=frozenset()), func.body)
    globals_ = state.names - locals_

    return Scope(locals=frozenset(locals_), globals=frozenset(globals_))


def free_variables(func: FunctionExpression) -> FreeVariableSetT:
    return analyze_scope(func).globals


def uses_this(node: Node) -> bool:
    """
    Checks if ``this`` appears anywhere in the tree (including nested functions).
    """
    return _find_this(dict(found=False), node).found


def identifier_names(node: Node) -> frozenset:
    """
    Returns all the identifier names used in the tree, in any position.
    """
    return _collect_identifier_names(dict(names=frozenset()), node).names
