"""
A tree walker featuring a functional interface for handlers,
explicit state passing and in-place tree transformation.
Inspired by the ``Walker`` class from ``macropy``.
"""

from esfold.nodes import Node, iter_fields
from esfold.tools.dispatcher import Dispatcher
from esfold.tools.immutable import ImmutableADict


def ast_walker(handler):
    """
    A generic tree walker decorator.
    Decorates either a function or a class (if dispatching based on node type is required).
    ``handler`` will be wrapped in a :py:class:`~esfold.tools.Dispatcher` instance;
    see :py:class:`~esfold.tools.Dispatcher` for the details of the required class structure.

    Returns a callable with the signature::

        def walker(state, node, ctx=None)

    :param state: a dictionary with the state which will be passed to every handler call.
        It will be converted into a :class:`~esfold.tools.ImmutableADict` object
        at the start of the traversal.
        Handlers can update it by returning a modified version.
    :param node: a :py:class:`~esfold.nodes.Node` object (or a list of them) to traverse.
    :param ctx: a dictionary with the global context which will be passed to every handler call.
        It will be converted into a :class:`~esfold.tools.ImmutableADict` object
        at the start of the traversal.
    :returns: a tuple ``(state, new_node)``.
        The tree is transformed in place: changed fields and list elements
        are written back into their parent nodes,
        so only the root can be replaced by a different object.

    ``handler`` will be invoked for every node during the traversal (depth-first, pre-order).
    The ``handler`` function, if it is a function, or its static methods, if it is a class
    must have the signature::

        def handler([state, node, ctx, visit_after, visiting_after,
            skip_fields, walk_field,] **kwds)

    The names of the arguments must be exactly as written here,
    but their order is not significant (they will be passed as keywords).

    If ``handler`` is a class, the default handler is a "pass-through" function
    that does not change the node or the state.

    :param state: the (supposedly immutable) state object passed during the initial call.
    :param node: the current node
    :param ctx: the (supposedly immutable) dictionary with the global context
        passed during the initial call.
        In addition to normal dictionary methods, its values can be alternatively
        accessed as attributes (e.g. either ``ctx['value']`` or ``ctx.value``).
    :param visit_after: a function of no arguments, which, when called,
        schedules to call the handler again on this node when all of its fields are traversed.
        During the second call this parameter is set to ``None``.
    :param visiting_after: set to ``False`` during the normal (pre-order) visit,
        and to ``True`` during the visit caused by ``visit_after()``.
    :param skip_fields: a function of no arguments, which, when called,
        orders the walker not to traverse this node's fields.
    :param walk_field: a function
        ``walk_field(state, value) -> (new_state, new_value)``,
        which traverses the given field value.
    :returns: must return a tuple ``(new_state, new_node)``, where ``new_node`` is one of:

        * The passed ``node`` (unchanged).
          By default, its fields will be traversed (unless ``skip_fields()`` is called).
        * A new :py:class:`~esfold.nodes.Node` object, which will replace the passed ``node``
          in the tree.
          By default, its fields will not be traversed,
          and the handler must do it manually if needed
          (by calling ``walk_field()``).
    """
    return _Walker(handler, transform=True, inspect=True)


def ast_transformer(handler):
    """
    A shortcut for :py:func:`~esfold.tools.ast_walker` with no changing state.
    Therefore:

    * the resulting walker has the signature ``def walker(node, ctx=None)``
      and returns the transformed tree;
    * the handler must return only the transformed node
      instead of a tuple ``(new_state, new_node)``;
    * ``walk_field`` has the signature ``walk_field(value) -> new_value``.
    """
    return _Walker(handler, transform=True)


def ast_inspector(handler):
    """
    A shortcut for :py:func:`~esfold.tools.ast_walker` which does not transform the tree,
    but only collects data.
    Therefore:

    * the resulting walker returns only the resulting state;
    * the handler must return only the new (or the unchanged given) state
      instead of a tuple ``(new_state, new_node)``;
    * ``walk_field`` has the signature ``walk_field(state, value) -> new_state``.
    """
    return _Walker(handler, inspect=True)


class _Walker:

    def __init__(self, handler, inspect=False, transform=False):

        self._transform = transform
        self._inspect = inspect
        if not (self._transform or self._inspect):
            raise ValueError("At least one of `transform` and `inspect` should be set")

        # These method have different signatures depending on
        # whether transform and inspect are on,
        # so for the sake of performance we're using specialized versions of them.
        if self._transform and self._inspect:
            self._walk_field_user = self._transform_inspect_field
            def default_handler(state, node, **_):
                return state, node
        elif self._transform:
            self._walk_field_user = self._transform_field
            def default_handler(node, **_):
                return node
        elif self._inspect:
            self._walk_field_user = self._inspect_field
            def default_handler(state, **_):
                return state

        self._handler = Dispatcher(handler, default_handler=default_handler)

    def _walk_list(self, state, lst, ctx):
        """
        Traverses a list of nodes, replacing the transformed elements in place.
        """
        new_state = state

        for i, node in enumerate(lst):
            new_state, new_node = self._walk_node(new_state, node, ctx)
            if self._transform and new_node is not node:
                lst[i] = new_node

        return new_state, lst

    def _walk_field(self, state, value, ctx):
        """
        Traverses a single node field.
        """
        if isinstance(value, Node):
            return self._walk_node(state, value, ctx)
        elif type(value) == list:
            return self._walk_list(state, value, ctx)
        else:
            return state, value

    # In these three functions `ctx` goes first because it makes it easier
    # to add it to the list of arguments later when `self._walk_field_user()` is called

    def _transform_field(self, ctx, value):
        return self._walk_field(None, value, ctx)[1]

    def _inspect_field(self, ctx, state, value):
        return self._walk_field(state, value, ctx)[0]

    def _transform_inspect_field(self, ctx, state, value):
        return self._walk_field(state, value, ctx)

    def _walk_fields(self, state, node, ctx):
        """
        Traverses all fields of a node.
        """
        new_state = state

        for field, value in iter_fields(node):
            new_state, new_value = self._walk_field(new_state, value, ctx)
            if self._transform and new_value is not value:
                setattr(node, field, new_value)

        return new_state, node

    def _handle_node(self, state, node, ctx, visiting_after=False):

        to_visit_after = [False]
        def visit_after():
            to_visit_after[0] = True

        to_skip_fields = [False]
        def skip_fields():
            to_skip_fields[0] = True

        def walk_field(*args, **kwds):
            return self._walk_field_user(ctx, *args, **kwds)

        result = self._handler(
            # this argument is only used by the Dispatcher;
            # the user-defined handler gets keyword arguments
            node,
            state=state, node=node, ctx=ctx,
            visit_after=None if visiting_after else visit_after,
            visiting_after=visiting_after,
            skip_fields=skip_fields,
            walk_field=walk_field)

        # depending on the walker type, we expect different returns from the user-defined handler
        if self._transform and self._inspect:
            new_state, new_node = result
        elif self._transform:
            new_state, new_node = state, result
        elif self._inspect:
            new_state, new_node = result, node

        if self._transform and not isinstance(new_node, Node):
            raise TypeError(
                "Expected callback return type is Node, got {got}".format(got=type(new_node)))

        return new_state, new_node, to_visit_after[0], to_skip_fields[0]

    def _walk_node(self, state, node, ctx):
        """
        Traverses a node and its fields.
        """

        new_state, new_node, to_visit_after, to_skip_fields = self._handle_node(
            state, node, ctx, visiting_after=False)

        if new_node is node and not to_skip_fields:
            new_state, new_node = self._walk_fields(new_state, new_node, ctx)

        if to_visit_after:
            new_state, new_node, _, _ = self._handle_node(
                new_state, new_node, ctx, visiting_after=True)

        return new_state, new_node

    def __call__(self, *args, ctx=None):

        if self._transform and self._inspect:
            if len(args) != 2:
                raise TypeError(
                    "A walker instance takes two positional arguments ({num} given)".format(
                        num=len(args)))
            state, node = args
        elif self._transform:
            if len(args) != 1:
                raise TypeError(
                    "A transformer instance takes one positional argument ({num} given)".format(
                        num=len(args)))
            state, node = None, args[0]
        elif self._inspect:
            if len(args) != 2:
                raise TypeError(
                    "An inspector instance takes two positional arguments ({num} given)".format(
                        num=len(args)))
            state, node = args

        if ctx is not None:
            ctx = ImmutableADict(ctx)

        if state is not None:
            state = ImmutableADict(state)

        if isinstance(node, Node):
            new_state, new_node = self._walk_node(state, node, ctx)
        elif isinstance(node, list):
            new_state, new_node = self._walk_list(state, node, ctx)
        else:
            raise TypeError("Cannot walk an object of type " + str(type(node)))

        if self._transform and self._inspect:
            return new_state, new_node
        elif self._transform:
            return new_node
        elif self._inspect:
            return new_state
