import math
import typing

from esfold.core.values import (
    UNDEFINED, Opaque, canonical_number, is_number, number_to_string, string_to_number)
from esfold.errors import EvaluationError
from esfold.nodes import (
    ArrayExpression,
    Expression,
    Identifier,
    Literal,
    ObjectExpression,
    Property,
    UnaryExpression,
)
from esfold.syntax.tokenizer import is_identifier_name
from esfold.tools import clone
from esfold.typing import NumberT


def _canonical_key(key: str) -> typing.Optional[NumberT]:
    # Returns the number that ``key`` is the canonical string form of, if any
    number = string_to_number(key)
    if math.isfinite(number) and number >= 0 and number_to_string(number) == key:
        return canonical_number(number)
    return None


def reify_number(value: float) -> Expression:
    if math.isnan(value):
        return Identifier("NaN")
    if math.isinf(value):
        node = Identifier("Infinity")
        return node if value > 0 else UnaryExpression("-", node)
    if value < 0 or (value == 0 and math.copysign(1, value) < 0):
        return UnaryExpression("-", Literal(canonical_number(-value)))
    return Literal(canonical_number(value))


def reify_key(key: str) -> Expression:
    if is_identifier_name(key):
        return Identifier(key)
    number = _canonical_key(key)
    if number is not None:
        return Literal(number)
    return Literal(key)


def _reify(value, in_progress: typing.Set[int]) -> Expression:
    if value is None or type(value) in (bool, str):
        return Literal(value)
    if value is UNDEFINED:
        return Identifier("undefined")
    if is_number(value):
        return reify_number(value)
    if isinstance(value, Opaque):
        return clone(value.node)

    if type(value) in (list, dict):
        if id(value) in in_progress:
            raise EvaluationError("cannot represent a cyclic structure")
        in_progress.add(id(value))
        if type(value) is list:
            node = ArrayExpression([_reify(elem, in_progress) for elem in value])
        else:
            node = ObjectExpression([
                Property(reify_key(key), _reify(elem, in_progress))
                for key, elem in value.items()])
        in_progress.remove(id(value))
        return node

    raise EvaluationError("cannot represent a value of type " + type(value).__name__)


def reify(value) -> Expression:
    """
    Builds a tree that evaluates to ``value``.

    Negative numbers, ``-0``, ``NaN`` and the infinities become unary and identifier forms,
    ``undefined`` becomes the ``undefined`` identifier,
    and opaque values become copies of the nodes they stand for.
    Raises :py:class:`~esfold.errors.EvaluationError` for cyclic structures and functions.
    """
    return _reify(value, set())
