import typing

from esfold.core.scope import identifier_names
from esfold.nodes import Node
from esfold.tools import ImmutableDict


PREFIX = "__esfold_"


class GenSym:
    """
    A generator of placeholder names that do not clash with the names already used in a tree.

    Calling it returns a tuple ``(name, new_gen_sym)``;
    the object itself is never changed, so the same object always gives the same name,
    and the returned one is used to get the next name.
    """

    def __init__(
            self, taken_names: typing.AbstractSet[str] = frozenset(),
            counters: typing.Optional[ImmutableDict] = None) -> None:
        self._taken_names = frozenset(taken_names)
        # Separate counters per tag, so that unrelated tags do not shift each other's names
        self._counters = counters if counters is not None else ImmutableDict()

    @classmethod
    def for_tree(cls, tree: typing.Optional[Node] = None) -> "GenSym":
        if tree is None:
            return cls()
        return cls(taken_names=identifier_names(tree))

    def __call__(self, tag: str = "sym") -> typing.Tuple[str, "GenSym"]:
        counter = self._counters.get(tag, 1)
        name = PREFIX + tag + "_" + str(counter)
        while name in self._taken_names:
            counter += 1
            name = PREFIX + tag + "_" + str(counter)

        counters = self._counters.with_item(tag, counter + 1)
        return name, GenSym(taken_names=self._taken_names, counters=counters)
