import typing

from esfold.nodes import Node


NodeTypeT = typing.Type[Node]
NodeTypeIsInstanceCriteriaT = typing.Union[typing.Tuple[NodeTypeT, ...], NodeTypeT]

NumberT = typing.Union[int, float]

FreeVariableSetT = typing.FrozenSet[str]
OptionsDictT = typing.Dict[str, typing.Any]
