"""
Values of the object language and the conversions between them.

Numbers are Python floats, strings are ``str``, booleans are ``bool``,
``null`` is ``None`` and ``undefined`` is the :py:data:`UNDEFINED` singleton.
Arrays are lists and plain objects are dicts with string keys.
"""

import math
import re
import typing

from esfold.errors import EvaluationError
from esfold.typing import NumberT


class Undefined:

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self):
        return "undefined"

    def __deepcopy__(self, memo):
        return self


UNDEFINED = Undefined()


class Opaque:
    """
    A value standing in for a node that must be carried through the evaluation verbatim
    (a function or a ``new`` expression passed as an argument, or the top-level ``this``).
    It can be stored, passed around and compared by identity, but not inspected.
    """

    def __init__(self, node):
        self.node = node

    def __repr__(self):
        return "Opaque({node})".format(node=type(self.node).__name__)


class Function:
    """
    Base class for callable values.
    """

    name = ""
    length = 0


class BuiltinFunction(Function):
    """
    A built-in method or function.
    ``impl`` is called as ``impl(interpreter, this, args)``.
    """

    def __init__(self, name: str, impl: typing.Callable, length: int = 0):
        self.name = name
        self.impl = impl
        self.length = length

    def __repr__(self):
        return "BuiltinFunction({name})".format(name=self.name)


class Namespace:
    """
    A fixed, read-only built-in object (e.g. ``Math``).
    """

    def __init__(self, name: str, members: typing.Mapping[str, typing.Any]):
        self.name = name
        self.members = dict(members)

    def __repr__(self):
        return "Namespace({name})".format(name=self.name)


def is_number(value) -> bool:
    return type(value) is float


def is_callable(value) -> bool:
    return isinstance(value, Function)


def canonical_number(value: float) -> NumberT:
    """
    Returns the canonical representation of a finite non-negative number
    stored in a ``Literal`` node: an ``int`` if the value is integral, a ``float`` otherwise.
    """
    value = float(value)
    if math.isfinite(value) and value.is_integer():
        return int(value)
    return value


def _decimal_digits(value: float) -> typing.Tuple[str, int]:
    # Returns ``(digits, n)`` such that ``value == 0.digits * 10 ** n``
    # with the shortest digit string that round-trips
    text = repr(value)
    mantissa, _, exponent = text.partition("e")
    exponent = int(exponent) if exponent else 0
    int_part, _, frac_part = mantissa.partition(".")
    int_part = int_part.lstrip("0")
    if int_part:
        n = len(int_part) + exponent
        digits = int_part + frac_part
    else:
        stripped = frac_part.lstrip("0")
        n = exponent - (len(frac_part) - len(stripped))
        digits = stripped
    return digits.rstrip("0"), n


def number_to_string(value: float) -> str:
    """
    Converts a number to a string the way the object language does it.
    """
    if math.isnan(value):
        return "NaN"
    if value == 0:
        return "0"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    if value < 0:
        return "-" + number_to_string(-value)

    digits, n = _decimal_digits(value)
    k = len(digits)

    if k <= n <= 21:
        return digits + "0" * (n - k)
    if 0 < n <= 21:
        return digits[:n] + "." + digits[n:]
    if -6 < n <= 0:
        return "0." + "0" * (-n) + digits

    exponent = n - 1
    sign = "+" if exponent >= 0 else "-"
    if k == 1:
        return digits + "e" + sign + str(abs(exponent))
    return digits[0] + "." + digits[1:] + "e" + sign + str(abs(exponent))


_DECIMAL_LITERAL = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$")

WHITESPACE = (
    " \t\n\r\v\f\u00a0\u1680\u2000\u2001\u2002\u2003\u2004\u2005\u2006"
    "\u2007\u2008\u2009\u200a\u2028\u2029\u202f\u205f\u3000\ufeff")


def string_to_number(text: str) -> float:
    text = text.strip(WHITESPACE)
    if text == "":
        return 0.0
    if text in ("Infinity", "+Infinity"):
        return math.inf
    if text == "-Infinity":
        return -math.inf
    if len(text) > 2 and text[0] == "0" and text[1] in "xXoObB":
        base = {"x": 16, "o": 8, "b": 2}[text[1].lower()]
        try:
            return float(int(text[2:], base))
        except ValueError:
            return math.nan
    if _DECIMAL_LITERAL.match(text):
        return float(text)
    return math.nan


def type_of(value) -> str:
    if value is UNDEFINED:
        return "undefined"
    if value is None:
        return "object"
    if type(value) is bool:
        return "boolean"
    if is_number(value):
        return "number"
    if type(value) is str:
        return "string"
    if isinstance(value, Opaque):
        raise EvaluationError("cannot inspect a value preserved verbatim")
    if is_callable(value):
        return "function"
    return "object"


def to_boolean(value) -> bool:
    if value is UNDEFINED or value is None:
        return False
    if type(value) is bool:
        return value
    if is_number(value):
        return not (value == 0 or math.isnan(value))
    if type(value) is str:
        return len(value) > 0
    return True


def to_primitive(value):
    if isinstance(value, Opaque):
        raise EvaluationError("cannot convert a value preserved verbatim")
    if type(value) is list:
        return array_join(value, ",")
    if type(value) is dict:
        # Own conversion methods would have to be called
        if "valueOf" in value or "toString" in value:
            raise EvaluationError("objects with own conversion methods are not supported")
        return "[object Object]"
    if isinstance(value, Namespace):
        return "[object " + value.name + "]"
    if is_callable(value):
        raise EvaluationError("cannot convert a function to a primitive")
    return value


def to_number(value) -> float:
    value = to_primitive(value)
    if value is UNDEFINED:
        return math.nan
    if value is None:
        return 0.0
    if type(value) is bool:
        return 1.0 if value else 0.0
    if is_number(value):
        return value
    return string_to_number(value)


def to_string(value) -> str:
    value = to_primitive(value)
    if value is UNDEFINED:
        return "undefined"
    if value is None:
        return "null"
    if type(value) is bool:
        return "true" if value else "false"
    if is_number(value):
        return number_to_string(value)
    return value


def to_property_key(value) -> str:
    return to_string(value)


def to_integer(value) -> float:
    number = to_number(value)
    if math.isnan(number):
        return 0.0
    if math.isinf(number):
        return number
    return float(math.trunc(number))


def to_uint32(value) -> int:
    number = to_number(value)
    if not math.isfinite(number):
        return 0
    return math.trunc(number) % 2 ** 32


def to_int32(value) -> int:
    number = to_uint32(value)
    return number - 2 ** 32 if number >= 2 ** 31 else number


def array_join(elements: list, separator: str) -> str:
    return separator.join(
        "" if elem is None or elem is UNDEFINED else to_string(elem) for elem in elements)


def array_index(key: str) -> typing.Optional[int]:
    """
    Returns the integer index if ``key`` is a canonical array index, ``None`` otherwise.
    """
    if key.isascii() and key.isdigit() and (key == "0" or key[0] != "0"):
        return int(key)
    return None


def strict_equals(left, right) -> bool:
    if is_number(left) and is_number(right):
        return left == right
    if type(left) != type(right):
        return False
    if type(left) in (str, bool) or left is None or left is UNDEFINED:
        return left == right
    return left is right


def same_value_zero(left, right) -> bool:
    if is_number(left) and is_number(right) and math.isnan(left) and math.isnan(right):
        return True
    return strict_equals(left, right)


def is_object(value) -> bool:
    return not (
        value is None or value is UNDEFINED
        or type(value) in (bool, str) or is_number(value))


def loose_equals(left, right) -> bool:
    if type(left) == type(right):
        return strict_equals(left, right)
    if (left is None or left is UNDEFINED) and (right is None or right is UNDEFINED):
        return True
    if left is None or left is UNDEFINED or right is None or right is UNDEFINED:
        return False
    if is_number(left) and type(right) is str:
        return left == string_to_number(right)
    if type(left) is str and is_number(right):
        return string_to_number(left) == right
    if type(left) is bool:
        return loose_equals(to_number(left), right)
    if type(right) is bool:
        return loose_equals(left, to_number(right))
    if is_object(left) and not is_object(right):
        return loose_equals(to_primitive(left), right)
    if is_object(right) and not is_object(left):
        return loose_equals(left, to_primitive(right))
    return False
