import types
from typing import Callable, Optional, Generic, TypeVar, Any, Dict, Type, cast
from typing_extensions import ParamSpec

from esfold import nodes
from esfold.nodes import Node


_Params = ParamSpec("_Params")
_Return = TypeVar("_Return")


class Dispatcher(Generic[_Params, _Return]):
    """
    A dispatcher that maps a call to a group of functions
    based on the type of the first argument
    (hardcoded to be a tree node at the moment).

    ``handler_obj`` can be either a function with the signature::

        def handler(*args, **kwds)

    or a class with the static methods::

        @staticmethod
        def handle_<tp>(*args, **kwds)

    where ``<tp>`` is the name of the node type that this function will handle
    (e.g., ``handle_CallExpression`` for :py:class:`esfold.nodes.CallExpression`).
    The class can also define the default handler::

        @staticmethod
        def handle(*args, **kwds)

    If it is not defined, the ``default_handler`` value will be used
    (which must be a function with the same signature as above).
    If neither ``handle`` exists or ``default_handler`` is provided,
    a ``ValueError`` is thrown.
    A ``handle_<tp>`` method naming a type that does not exist is a ``ValueError`` too.
    """

    def __init__(
        self, handler_obj: Any, default_handler: Optional[Callable[_Params, _Return]] = None
    ):
        self._handlers: Dict[Type[Node], Callable[_Params, _Return]] = {}
        if isinstance(handler_obj, types.FunctionType):
            self._default_handler = cast(Callable[_Params, _Return], handler_obj)
        else:
            handler_prefix = "handle"
            if hasattr(handler_obj, handler_prefix):
                self._default_handler = cast(
                    Callable[_Params, _Return], getattr(handler_obj, handler_prefix)
                )
            elif default_handler is not None:
                self._default_handler = default_handler
            else:
                raise ValueError("Default handler was not provided")

            attr_prefix = handler_prefix + "_"
            for attr in vars(handler_obj):
                if attr.startswith(attr_prefix):
                    typename = attr[len(attr_prefix) :]
                    node_type = getattr(nodes, typename, None)
                    if not (isinstance(node_type, type) and issubclass(node_type, Node)):
                        raise ValueError("Unknown node type in handler name: " + attr)
                    self._handlers[node_type] = getattr(handler_obj, attr)

    def __call__(
        self, dispatch_node: Any, *args: _Params.args, **kwargs: _Params.kwargs
    ) -> _Return:
        handler = self._handlers.get(type(dispatch_node), self._default_handler)
        return handler(*args, **kwargs)
