"""
A narrow interpreter for the expression language, used to compute the values of foldable subtrees.

It has no I/O and no access to the host runtime: the only global names are ``Math``,
``NaN``, ``Infinity``, ``undefined`` and the explicitly passed bindings.
Evaluation is limited by a step budget, and every failure
(including a runtime error of the evaluated code) is reported as
:py:class:`~esfold.errors.EvaluationError`.

Supported built-ins:

* arrays: ``concat``, ``includes``, ``indexOf``, ``lastIndexOf``, ``join``, ``pop``, ``push``,
  ``reverse``, ``shift``, ``unshift``, ``slice``, ``splice``, ``toString``, ``map``, ``filter``,
  ``forEach``, ``some``, ``every``, ``find``, ``findIndex``, ``reduce``, ``reduceRight``,
  ``sort``, ``fill``, ``at``, and the ``length`` property;
* strings: ``charAt``, ``charCodeAt``, ``concat``, ``indexOf``, ``lastIndexOf``, ``includes``,
  ``startsWith``, ``endsWith``, ``slice``, ``substring``, ``substr``, ``toUpperCase``,
  ``toLowerCase``, the ``trim`` family, ``split``, ``replace`` (string patterns only),
  ``repeat``, ``padStart``, ``padEnd``, ``at``, ``toString``, ``valueOf``,
  and the ``length`` property;
* numbers: ``toFixed``, ``toString``, ``valueOf``; booleans: ``toString``, ``valueOf``;
* all values: ``hasOwnProperty``, ``propertyIsEnumerable``, ``toString``, ``valueOf``;
* functions: ``call``, ``apply``, ``length``, ``name``;
* everything in ``Math`` except ``random``.

A built-in member that exists in a real runtime but is not listed here
makes the evaluation fail instead of silently returning ``undefined``.
"""

from decimal import Context, Decimal, ROUND_HALF_UP
import functools
import math
import struct
import typing

from esfold import wisdom
from esfold.core.scope import declared_names
from esfold.core.values import (
    UNDEFINED,
    BuiltinFunction,
    Function,
    Namespace,
    Opaque,
    WHITESPACE,
    array_index,
    array_join,
    is_callable,
    is_number,
    loose_equals,
    number_to_string,
    same_value_zero,
    strict_equals,
    to_boolean,
    to_int32,
    to_integer,
    to_number,
    to_primitive,
    to_property_key,
    to_string,
    to_uint32,
    type_of,
)
from esfold.errors import EvaluationError, ParseError
from esfold.nodes import FunctionExpression, Identifier, MemberExpression, Node, ThisExpression
from esfold.syntax.parser import parse_expression
from esfold.tools import Dispatcher


DEFAULT_MAX_STEPS = 100000

# Created strings and arrays are charged one step per this many elements
_SIZE_STEP = 16


class Closure(Function):
    """
    A function value created by evaluating a function expression.
    """

    def __init__(self, node: FunctionExpression, env: "Environment"):
        self.node = node
        self.env = env
        self.name = node.id.name if node.id is not None else ""
        self.length = len(node.params)
        self.declared = declared_names(node)

    def __repr__(self):
        return "Closure({name})".format(name=self.name or "<anonymous>")


_NO_THIS = object()


class Environment:
    """
    A scope with variable bindings.
    Blocks do not create scopes of their own, so ``let`` and ``const`` behave like ``var``.
    """

    def __init__(self, parent: typing.Optional["Environment"] = None, this=_NO_THIS,
            read_only: bool = False):
        self.parent = parent
        self.this = this
        self.read_only = read_only
        self.vars: typing.Dict[str, typing.Any] = {}

    def _find(self, name: str) -> typing.Optional["Environment"]:
        env = self
        while env is not None:
            if name in env.vars:
                return env
            env = env.parent
        return None

    def is_declared(self, name: str) -> bool:
        return self._find(name) is not None

    def lookup(self, name: str):
        env = self._find(name)
        if env is None:
            raise EvaluationError(name + " is not defined")
        return env.vars[name]

    def assign(self, name: str, value):
        env = self._find(name)
        if env is None:
            raise EvaluationError(name + " is not defined")
        if env.read_only:
            raise EvaluationError("cannot assign to the global " + name)
        env.vars[name] = value

    def declare(self, name: str, value):
        self.vars[name] = value

    def get_this(self):
        env = self
        while env is not None:
            if env.this is not _NO_THIS:
                return env.this
            env = env.parent
        return UNDEFINED


class Interpreter:

    def __init__(self, max_steps: int = DEFAULT_MAX_STEPS):
        self.max_steps = max_steps
        self.steps = 0

    def step(self, cost: int = 1):
        self.steps += cost
        if self.steps > self.max_steps:
            raise EvaluationError(
                "step budget of {steps} exhausted".format(steps=self.max_steps))

    def charge(self, value):
        self.step(len(value) // _SIZE_STEP)
        return value

    def evaluate(self, node: Node, env: Environment):
        self.step()
        return _evaluate(node, self, node, env)

    def execute_statements(self, stmts, env: Environment):
        for stmt in stmts:
            self.step()
            returned, value = _execute(stmt, self, stmt, env)
            if returned:
                return True, value
        return False, UNDEFINED

    def call(self, func, this, args: list):
        if isinstance(func, BuiltinFunction):
            return func.impl(self, this, args)
        if isinstance(func, Closure):
            return self._call_closure(func, this, args)
        raise EvaluationError(_describe(func) + " is not a function")

    def _call_closure(self, func: Closure, this, args: list):
        node = func.node
        parent = func.env
        if node.id is not None:
            parent = Environment(parent)
            parent.declare(node.id.name, func)

        env = Environment(parent, this=this)
        for name in func.declared:
            env.declare(name, UNDEFINED)
        for i, param in enumerate(node.params):
            env.declare(param.name, args[i] if i < len(args) else UNDEFINED)

        _, value = self.execute_statements(node.body, env)
        return value

    def global_environment(self, bindings=None) -> Environment:
        # The top-level ``this`` is some object that cannot be inspected
        env = Environment(this=Opaque(ThisExpression()), read_only=True)
        env.declare("NaN", math.nan)
        env.declare("Infinity", math.inf)
        env.declare("undefined", UNDEFINED)
        env.declare(wisdom.MATH_NAMESPACE, MATH)
        if bindings:
            for name, value in bindings.items():
                env.declare(name, value)
        return env


def _describe(value) -> str:
    if isinstance(value, Opaque):
        return "a value preserved verbatim"
    return type_of(value)


def _arg(args: list, idx: int):
    return args[idx] if idx < len(args) else UNDEFINED


# Expressions


@Dispatcher
class _evaluate:

    @staticmethod
    def handle(interp, node, env):
        raise EvaluationError("cannot evaluate " + type(node).__name__)

    @staticmethod
    def handle_Literal(interp, node, env):
        value = node.value
        if type(value) in (int, float):
            return float(value)
        if type(value) is str and any(ord(c) > 0xFFFF for c in value):
            raise EvaluationError("strings with astral characters are not supported")
        return value

    @staticmethod
    def handle_Identifier(interp, node, env):
        return env.lookup(node.name)

    @staticmethod
    def handle_ThisExpression(interp, node, env):
        return env.get_this()

    @staticmethod
    def handle_ArrayExpression(interp, node, env):
        return interp.charge([interp.evaluate(elem, env) for elem in node.elements])

    @staticmethod
    def handle_ObjectExpression(interp, node, env):
        result = {}
        for prop in node.properties:
            if isinstance(prop.key, Identifier):
                key = prop.key.name
            else:
                key = to_property_key(_evaluate_literal_key(prop.key.value))
            if key == "__proto__":
                raise EvaluationError("object literals with __proto__ are not supported")
            result[key] = interp.evaluate(prop.value, env)
        return result

    @staticmethod
    def handle_MemberExpression(interp, node, env):
        obj = interp.evaluate(node.object, env)
        return get_member(obj, _member_key(interp, node, env))

    @staticmethod
    def handle_CallExpression(interp, node, env):
        if isinstance(node.callee, MemberExpression):
            this = interp.evaluate(node.callee.object, env)
            func = get_member(this, _member_key(interp, node.callee, env))
        else:
            this = UNDEFINED
            func = interp.evaluate(node.callee, env)
        args = [interp.evaluate(arg, env) for arg in node.arguments]
        return interp.call(func, this, args)

    @staticmethod
    def handle_NewExpression(interp, node, env):
        raise EvaluationError("constructor calls are not supported")

    @staticmethod
    def handle_UnaryExpression(interp, node, env):
        operator = node.operator
        if operator == "delete":
            raise EvaluationError("delete is not supported")
        if (operator == "typeof" and isinstance(node.argument, Identifier)
                and not env.is_declared(node.argument.name)):
            return "undefined"

        value = interp.evaluate(node.argument, env)
        if operator == "typeof":
            return type_of(value)
        if operator == "void":
            return UNDEFINED
        if operator == "!":
            return not to_boolean(value)
        if operator == "-":
            return -to_number(value)
        if operator == "+":
            return to_number(value)
        if operator == "~":
            return float(~to_int32(value))
        raise EvaluationError("unknown unary operator " + operator)

    @staticmethod
    def handle_UpdateExpression(interp, node, env):
        reference = _resolve_reference(interp, node.argument, env)
        old = to_number(_read_reference(reference))
        new = old + 1 if node.operator == "++" else old - 1
        _write_reference(reference, new)
        return new if node.prefix else old

    @staticmethod
    def handle_BinaryExpression(interp, node, env):
        left = interp.evaluate(node.left, env)
        right = interp.evaluate(node.right, env)
        return _charged(interp, binary_operation(node.operator, left, right))

    @staticmethod
    def handle_LogicalExpression(interp, node, env):
        left = interp.evaluate(node.left, env)
        if node.operator == "&&":
            return interp.evaluate(node.right, env) if to_boolean(left) else left
        return left if to_boolean(left) else interp.evaluate(node.right, env)

    @staticmethod
    def handle_AssignmentExpression(interp, node, env):
        reference = _resolve_reference(interp, node.left, env)
        if node.operator == "=":
            value = interp.evaluate(node.right, env)
        else:
            current = _read_reference(reference)
            right = interp.evaluate(node.right, env)
            value = _charged(interp, binary_operation(node.operator[:-1], current, right))
        _write_reference(reference, value)
        return value

    @staticmethod
    def handle_ConditionalExpression(interp, node, env):
        if to_boolean(interp.evaluate(node.test, env)):
            return interp.evaluate(node.consequent, env)
        return interp.evaluate(node.alternate, env)

    @staticmethod
    def handle_SequenceExpression(interp, node, env):
        value = UNDEFINED
        for expr in node.expressions:
            value = interp.evaluate(expr, env)
        return value

    @staticmethod
    def handle_FunctionExpression(interp, node, env):
        return Closure(node, env)


def _charged(interp, value):
    if type(value) is str:
        interp.charge(value)
    return value


def _evaluate_literal_key(value):
    if type(value) in (int, float):
        return float(value)
    return value


def _member_key(interp, node: MemberExpression, env) -> str:
    if node.computed:
        return to_property_key(interp.evaluate(node.property, env))
    return node.property.name


def _resolve_reference(interp, target, env):
    # Returns ``(base, key)``; the base of a variable reference is its environment
    if isinstance(target, Identifier):
        return env, target.name
    if isinstance(target, MemberExpression):
        obj = interp.evaluate(target.object, env)
        return obj, _member_key(interp, target, env)
    raise EvaluationError("invalid assignment target")


def _read_reference(reference):
    base, key = reference
    if isinstance(base, Environment):
        return base.lookup(key)
    return get_member(base, key)


def _write_reference(reference, value):
    base, key = reference
    if isinstance(base, Environment):
        base.assign(key, value)
    else:
        set_member(base, key, value)


# Statements


_NORMAL = (False, UNDEFINED)


@Dispatcher
class _execute:

    @staticmethod
    def handle(interp, stmt, env):
        raise EvaluationError("cannot execute " + type(stmt).__name__)

    @staticmethod
    def handle_ExpressionStatement(interp, stmt, env):
        interp.evaluate(stmt.expression, env)
        return _NORMAL

    @staticmethod
    def handle_ReturnStatement(interp, stmt, env):
        if stmt.argument is None:
            return True, UNDEFINED
        return True, interp.evaluate(stmt.argument, env)

    @staticmethod
    def handle_VariableDeclaration(interp, stmt, env):
        for decl in stmt.declarations:
            if decl.init is not None:
                env.assign(decl.id.name, interp.evaluate(decl.init, env))
            elif stmt.kind != "var":
                env.assign(decl.id.name, UNDEFINED)
        return _NORMAL

    @staticmethod
    def handle_IfStatement(interp, stmt, env):
        if to_boolean(interp.evaluate(stmt.test, env)):
            return interp.execute_statements([stmt.consequent], env)
        if stmt.alternate is not None:
            return interp.execute_statements([stmt.alternate], env)
        return _NORMAL

    @staticmethod
    def handle_BlockStatement(interp, stmt, env):
        return interp.execute_statements(stmt.body, env)

    @staticmethod
    def handle_EmptyStatement(interp, stmt, env):
        return _NORMAL


# Operators


def _int32(value: int) -> int:
    value &= 0xFFFFFFFF
    return value - 2 ** 32 if value >= 2 ** 31 else value


def _is_odd_integer(value: float) -> bool:
    return math.isfinite(value) and value.is_integer() and int(value) % 2 == 1


def js_divide(left: float, right: float) -> float:
    if right == 0:
        if left == 0 or math.isnan(left):
            return math.nan
        sign = math.copysign(1, left) * math.copysign(1, right)
        return math.inf if sign > 0 else -math.inf
    return left / right


def js_remainder(left: float, right: float) -> float:
    if math.isnan(left) or math.isnan(right) or math.isinf(left) or right == 0:
        return math.nan
    if math.isinf(right) or left == 0:
        return left
    return math.fmod(left, right)


def js_pow(base: float, exponent: float) -> float:
    if math.isnan(exponent):
        return math.nan
    if exponent == 0:
        return 1.0
    if math.isnan(base):
        return math.nan
    if abs(base) == 1 and math.isinf(exponent):
        return math.nan
    try:
        return math.pow(base, exponent)
    except OverflowError:
        negative = base < 0 and _is_odd_integer(exponent)
        return -math.inf if negative else math.inf
    except ValueError:
        if base == 0:
            negative = math.copysign(1, base) < 0 and _is_odd_integer(exponent)
            return -math.inf if negative else math.inf
        return math.nan


def _compare(left, right) -> typing.Optional[bool]:
    # ``left < right``; ``None`` stands for "undefined" (a NaN was involved)
    left = to_primitive(left)
    right = to_primitive(right)
    if type(left) is str and type(right) is str:
        return left < right
    left = to_number(left)
    right = to_number(right)
    if math.isnan(left) or math.isnan(right):
        return None
    return left < right


def _has_property(obj, key: str) -> bool:
    if type(obj) is dict:
        return key in obj
    if type(obj) is list:
        idx = array_index(key)
        return key == "length" or (idx is not None and idx < len(obj)) \
            or wisdom.is_builtin_member(wisdom.ARRAY, key)
    raise EvaluationError("cannot use 'in' on " + _describe(obj))


def binary_operation(operator: str, left, right):
    if operator == "+":
        left = to_primitive(left)
        right = to_primitive(right)
        if type(left) is str or type(right) is str:
            return to_string(left) + to_string(right)
        return to_number(left) + to_number(right)
    if operator == "-":
        return to_number(left) - to_number(right)
    if operator == "*":
        return to_number(left) * to_number(right)
    if operator == "/":
        return js_divide(to_number(left), to_number(right))
    if operator == "%":
        return js_remainder(to_number(left), to_number(right))
    if operator == "**":
        return js_pow(to_number(left), to_number(right))

    if operator == "==":
        return loose_equals(left, right)
    if operator == "!=":
        return not loose_equals(left, right)
    if operator == "===":
        return strict_equals(left, right)
    if operator == "!==":
        return not strict_equals(left, right)

    if operator == "<":
        return _compare(left, right) is True
    if operator == ">":
        return _compare(right, left) is True
    if operator == "<=":
        result = _compare(right, left)
        return result is False
    if operator == ">=":
        result = _compare(left, right)
        return result is False

    if operator == "<<":
        return float(_int32(to_int32(left) << (to_uint32(right) & 31)))
    if operator == ">>":
        return float(to_int32(left) >> (to_uint32(right) & 31))
    if operator == ">>>":
        return float(to_uint32(left) >> (to_uint32(right) & 31))
    if operator == "&":
        return float(_int32(to_int32(left) & to_int32(right)))
    if operator == "|":
        return float(_int32(to_int32(left) | to_int32(right)))
    if operator == "^":
        return float(_int32(to_int32(left) ^ to_int32(right)))

    if operator == "in":
        return _has_property(right, to_property_key(left))
    if operator == "instanceof":
        raise EvaluationError("instanceof is not supported")

    raise EvaluationError("unknown binary operator " + operator)


# Property access


def _lookup_method(kind: str, methods: dict, key: str):
    if key in methods:
        return methods[key]
    if key in _OBJECT_METHODS:
        return _OBJECT_METHODS[key]
    if wisdom.is_builtin_member(kind, key):
        raise EvaluationError("built-in member " + key + " is not supported")
    return UNDEFINED


def get_member(obj, key: str):
    if obj is None or obj is UNDEFINED:
        raise EvaluationError("cannot read property " + key + " of " + to_string(obj))
    if isinstance(obj, Opaque):
        raise EvaluationError("cannot read property " + key + " of " + _describe(obj))

    if type(obj) is list:
        if key == "length":
            return float(len(obj))
        idx = array_index(key)
        if idx is not None:
            return obj[idx] if idx < len(obj) else UNDEFINED
        return _lookup_method(wisdom.ARRAY, _ARRAY_METHODS, key)

    if type(obj) is str:
        if key == "length":
            return float(len(obj))
        idx = array_index(key)
        if idx is not None:
            return obj[idx] if idx < len(obj) else UNDEFINED
        return _lookup_method(wisdom.STRING, _STRING_METHODS, key)

    if type(obj) is bool:
        return _lookup_method(wisdom.BOOLEAN, _BOOLEAN_METHODS, key)

    if is_number(obj):
        return _lookup_method(wisdom.NUMBER, _NUMBER_METHODS, key)

    if type(obj) is dict:
        if key in obj:
            return obj[key]
        return _lookup_method(wisdom.OBJECT, {}, key)

    if isinstance(obj, Namespace):
        if key in wisdom.MATH_NONDETERMINISTIC:
            raise EvaluationError(obj.name + "." + key + " is not deterministic")
        return _lookup_method(wisdom.OBJECT, obj.members, key)

    if is_callable(obj):
        if key == "length":
            return float(obj.length)
        if key == "name":
            return obj.name
        return _lookup_method(wisdom.FUNCTION, _FUNCTION_METHODS, key)

    raise EvaluationError("cannot read property " + key + " of " + _describe(obj))


def set_member(obj, key: str, value):
    if type(obj) is list:
        if key == "length":
            length = to_number(value)
            if not (length >= 0 and length.is_integer() and length < 2 ** 32):
                raise EvaluationError("invalid array length")
            length = int(length)
            if length > len(obj):
                raise EvaluationError("arrays with holes cannot be represented")
            del obj[length:]
            return
        idx = array_index(key)
        if idx is None:
            raise EvaluationError("arrays with named properties cannot be represented")
        if idx > len(obj):
            raise EvaluationError("arrays with holes cannot be represented")
        if idx == len(obj):
            obj.append(value)
        else:
            obj[idx] = value
        return

    if type(obj) is dict:
        if key == "__proto__":
            raise EvaluationError("assignment to __proto__ is not supported")
        obj[key] = value
        return

    raise EvaluationError("cannot set property " + key + " of " + _describe(obj))


def _require(this, type_, name: str):
    if type(this) is not type_:
        raise EvaluationError(name + " called on an incompatible receiver")
    return this


def _callback(args: list, name: str):
    func = _arg(args, 0)
    if not is_callable(func):
        raise EvaluationError(name + ": " + _describe(func) + " is not a function")
    return func, _arg(args, 1)


def _relative_index(value, length: int, default: int) -> int:
    if value is UNDEFINED:
        return default
    number = to_integer(value)
    if number < 0:
        return int(max(length + number, 0))
    return int(min(number, length))


def builtin(table: dict, name: str, length: int = 0):
    """
    Registers a built-in method implementation in ``table``.
    """
    def decorator(impl):
        table[name] = BuiltinFunction(name, impl, length)
        return impl
    return decorator


# Object methods (available on every value)


_OBJECT_METHODS: typing.Dict[str, BuiltinFunction] = {}


def _has_own(this, key: str) -> bool:
    if type(this) is dict:
        return key in this
    if type(this) in (list, str):
        idx = array_index(key)
        return key == "length" or (idx is not None and idx < len(this))
    return False


@builtin(_OBJECT_METHODS, "hasOwnProperty", 1)
def _object_has_own_property(interp, this, args):
    return _has_own(this, to_property_key(_arg(args, 0)))


@builtin(_OBJECT_METHODS, "propertyIsEnumerable", 1)
def _object_property_is_enumerable(interp, this, args):
    key = to_property_key(_arg(args, 0))
    return key != "length" and _has_own(this, key)


@builtin(_OBJECT_METHODS, "toString")
def _object_to_string(interp, this, args):
    if type(this) is dict:
        return "[object Object]"
    return to_string(this)


@builtin(_OBJECT_METHODS, "valueOf")
def _object_value_of(interp, this, args):
    return this


# Array methods


_ARRAY_METHODS: typing.Dict[str, BuiltinFunction] = {}


@builtin(_ARRAY_METHODS, "at", 1)
def _array_at(interp, this, args):
    this = _require(this, list, "Array.prototype.at")
    idx = to_integer(_arg(args, 0))
    if idx < 0:
        idx += len(this)
    if 0 <= idx < len(this):
        return this[int(idx)]
    return UNDEFINED


@builtin(_ARRAY_METHODS, "concat", 1)
def _array_concat(interp, this, args):
    result = list(_require(this, list, "Array.prototype.concat"))
    for arg in args:
        if type(arg) is list:
            result.extend(arg)
        else:
            result.append(arg)
    return interp.charge(result)


@builtin(_ARRAY_METHODS, "includes", 1)
def _array_includes(interp, this, args):
    this = _require(this, list, "Array.prototype.includes")
    start = _relative_index(_arg(args, 1), len(this), 0)
    return any(same_value_zero(elem, _arg(args, 0)) for elem in this[start:])


@builtin(_ARRAY_METHODS, "indexOf", 1)
def _array_index_of(interp, this, args):
    this = _require(this, list, "Array.prototype.indexOf")
    start = _relative_index(_arg(args, 1), len(this), 0)
    for idx in range(start, len(this)):
        if strict_equals(this[idx], _arg(args, 0)):
            return float(idx)
    return -1.0


@builtin(_ARRAY_METHODS, "lastIndexOf", 1)
def _array_last_index_of(interp, this, args):
    this = _require(this, list, "Array.prototype.lastIndexOf")
    if len(args) > 1:
        number = to_integer(args[1])
        start = int(min(number, len(this) - 1)) if number >= 0 else int(max(len(this) + number, -1))
    else:
        start = len(this) - 1
    for idx in range(start, -1, -1):
        if strict_equals(this[idx], _arg(args, 0)):
            return float(idx)
    return -1.0


@builtin(_ARRAY_METHODS, "join", 1)
def _array_join(interp, this, args):
    this = _require(this, list, "Array.prototype.join")
    separator = _arg(args, 0)
    separator = "," if separator is UNDEFINED else to_string(separator)
    return interp.charge(array_join(this, separator))


@builtin(_ARRAY_METHODS, "toString")
def _array_to_string(interp, this, args):
    return interp.charge(array_join(_require(this, list, "Array.prototype.toString"), ","))


@builtin(_ARRAY_METHODS, "pop")
def _array_pop(interp, this, args):
    this = _require(this, list, "Array.prototype.pop")
    return this.pop() if this else UNDEFINED


@builtin(_ARRAY_METHODS, "push", 1)
def _array_push(interp, this, args):
    this = _require(this, list, "Array.prototype.push")
    this.extend(args)
    return float(len(this))


@builtin(_ARRAY_METHODS, "shift")
def _array_shift(interp, this, args):
    this = _require(this, list, "Array.prototype.shift")
    return this.pop(0) if this else UNDEFINED


@builtin(_ARRAY_METHODS, "unshift", 1)
def _array_unshift(interp, this, args):
    this = _require(this, list, "Array.prototype.unshift")
    this[0:0] = args
    return float(len(this))


@builtin(_ARRAY_METHODS, "reverse")
def _array_reverse(interp, this, args):
    this = _require(this, list, "Array.prototype.reverse")
    this.reverse()
    return this


@builtin(_ARRAY_METHODS, "slice", 2)
def _array_slice(interp, this, args):
    this = _require(this, list, "Array.prototype.slice")
    start = _relative_index(_arg(args, 0), len(this), 0)
    end = _relative_index(_arg(args, 1), len(this), len(this))
    return interp.charge(this[start:end])


@builtin(_ARRAY_METHODS, "splice", 2)
def _array_splice(interp, this, args):
    this = _require(this, list, "Array.prototype.splice")
    start = _relative_index(_arg(args, 0), len(this), 0)
    if len(args) == 0:
        delete_count = 0
    elif len(args) == 1:
        delete_count = len(this) - start
    else:
        delete_count = int(min(max(to_integer(args[1]), 0), len(this) - start))
    removed = this[start:start + delete_count]
    this[start:start + delete_count] = args[2:]
    return removed


@builtin(_ARRAY_METHODS, "fill", 1)
def _array_fill(interp, this, args):
    this = _require(this, list, "Array.prototype.fill")
    start = _relative_index(_arg(args, 1), len(this), 0)
    end = _relative_index(_arg(args, 2), len(this), len(this))
    for idx in range(start, end):
        this[idx] = _arg(args, 0)
    return this


def _iterate(interp, this: list, func, this_arg):
    # Visits the elements that existed when the iteration started
    for idx in range(len(this)):
        if idx >= len(this):
            return
        elem = this[idx]
        yield elem, interp.call(func, this_arg, [elem, float(idx), this])


@builtin(_ARRAY_METHODS, "map", 1)
def _array_map(interp, this, args):
    this = _require(this, list, "Array.prototype.map")
    func, this_arg = _callback(args, "Array.prototype.map")
    return [result for _, result in _iterate(interp, this, func, this_arg)]


@builtin(_ARRAY_METHODS, "filter", 1)
def _array_filter(interp, this, args):
    this = _require(this, list, "Array.prototype.filter")
    func, this_arg = _callback(args, "Array.prototype.filter")
    return [elem for elem, result in _iterate(interp, this, func, this_arg) if to_boolean(result)]


@builtin(_ARRAY_METHODS, "forEach", 1)
def _array_for_each(interp, this, args):
    this = _require(this, list, "Array.prototype.forEach")
    func, this_arg = _callback(args, "Array.prototype.forEach")
    for _ in _iterate(interp, this, func, this_arg):
        pass
    return UNDEFINED


@builtin(_ARRAY_METHODS, "some", 1)
def _array_some(interp, this, args):
    this = _require(this, list, "Array.prototype.some")
    func, this_arg = _callback(args, "Array.prototype.some")
    return any(to_boolean(result) for _, result in _iterate(interp, this, func, this_arg))


@builtin(_ARRAY_METHODS, "every", 1)
def _array_every(interp, this, args):
    this = _require(this, list, "Array.prototype.every")
    func, this_arg = _callback(args, "Array.prototype.every")
    return all(to_boolean(result) for _, result in _iterate(interp, this, func, this_arg))


@builtin(_ARRAY_METHODS, "find", 1)
def _array_find(interp, this, args):
    this = _require(this, list, "Array.prototype.find")
    func, this_arg = _callback(args, "Array.prototype.find")
    for elem, result in _iterate(interp, this, func, this_arg):
        if to_boolean(result):
            return elem
    return UNDEFINED


@builtin(_ARRAY_METHODS, "findIndex", 1)
def _array_find_index(interp, this, args):
    this = _require(this, list, "Array.prototype.findIndex")
    func, this_arg = _callback(args, "Array.prototype.findIndex")
    for idx, (_, result) in enumerate(_iterate(interp, this, func, this_arg)):
        if to_boolean(result):
            return float(idx)
    return -1.0


def _reduce(interp, this: list, args: list, indices, name: str):
    func, _ = _callback(args, name)
    indices = list(indices)
    if len(args) > 1:
        acc = args[1]
    elif indices:
        acc = this[indices.pop(0)]
    else:
        raise EvaluationError(name + " of an empty array with no initial value")
    for idx in indices:
        if idx < len(this):
            acc = interp.call(func, UNDEFINED, [acc, this[idx], float(idx), this])
    return acc


@builtin(_ARRAY_METHODS, "reduce", 1)
def _array_reduce(interp, this, args):
    this = _require(this, list, "Array.prototype.reduce")
    return _reduce(interp, this, args, range(len(this)), "Array.prototype.reduce")


@builtin(_ARRAY_METHODS, "reduceRight", 1)
def _array_reduce_right(interp, this, args):
    this = _require(this, list, "Array.prototype.reduceRight")
    return _reduce(
        interp, this, args, range(len(this) - 1, -1, -1), "Array.prototype.reduceRight")


@builtin(_ARRAY_METHODS, "sort", 1)
def _array_sort(interp, this, args):
    this = _require(this, list, "Array.prototype.sort")
    comparator = _arg(args, 0)

    defined = [elem for elem in this if elem is not UNDEFINED]
    undefined_count = len(this) - len(defined)

    if comparator is UNDEFINED:
        keyed = [(to_string(elem), elem) for elem in defined]
        # UTF-16 code unit order equals code point order for the supported strings
        keyed.sort(key=lambda pair: pair[0])
        defined = [elem for _, elem in keyed]
    else:
        if not is_callable(comparator):
            raise EvaluationError("the comparator must be a function")

        def compare(left, right):
            result = to_number(interp.call(comparator, UNDEFINED, [left, right]))
            if result < 0:
                return -1
            if result > 0:
                return 1
            return 0

        defined = sorted(defined, key=functools.cmp_to_key(compare))

    this[:] = defined + [UNDEFINED] * undefined_count
    return this


# String methods


_STRING_METHODS: typing.Dict[str, BuiltinFunction] = {}

_MAX_STRING_LENGTH = 2 ** 24


def _check_length(length: float) -> int:
    if length > _MAX_STRING_LENGTH:
        raise EvaluationError("resulting string is too long")
    return int(length)


@builtin(_STRING_METHODS, "at", 1)
def _string_at(interp, this, args):
    this = _require(this, str, "String.prototype.at")
    idx = to_integer(_arg(args, 0))
    if idx < 0:
        idx += len(this)
    if 0 <= idx < len(this):
        return this[int(idx)]
    return UNDEFINED


@builtin(_STRING_METHODS, "charAt", 1)
def _string_char_at(interp, this, args):
    this = _require(this, str, "String.prototype.charAt")
    idx = to_integer(_arg(args, 0))
    return this[int(idx)] if 0 <= idx < len(this) else ""


@builtin(_STRING_METHODS, "charCodeAt", 1)
def _string_char_code_at(interp, this, args):
    this = _require(this, str, "String.prototype.charCodeAt")
    idx = to_integer(_arg(args, 0))
    return float(ord(this[int(idx)])) if 0 <= idx < len(this) else math.nan


@builtin(_STRING_METHODS, "concat", 1)
def _string_concat(interp, this, args):
    this = _require(this, str, "String.prototype.concat")
    return interp.charge(this + "".join(to_string(arg) for arg in args))


@builtin(_STRING_METHODS, "indexOf", 1)
def _string_index_of(interp, this, args):
    this = _require(this, str, "String.prototype.indexOf")
    search = to_string(_arg(args, 0))
    start = int(min(max(to_integer(_arg(args, 1)), 0), len(this)))
    return float(this.find(search, start))


@builtin(_STRING_METHODS, "lastIndexOf", 1)
def _string_last_index_of(interp, this, args):
    this = _require(this, str, "String.prototype.lastIndexOf")
    search = to_string(_arg(args, 0))
    position = to_number(_arg(args, 1))
    start = len(this) if math.isnan(position) else int(min(max(to_integer(position), 0), len(this)))
    return float(this.rfind(search, 0, start + len(search)))


@builtin(_STRING_METHODS, "includes", 1)
def _string_includes(interp, this, args):
    this = _require(this, str, "String.prototype.includes")
    start = int(min(max(to_integer(_arg(args, 1)), 0), len(this)))
    return to_string(_arg(args, 0)) in this[start:]


@builtin(_STRING_METHODS, "startsWith", 1)
def _string_starts_with(interp, this, args):
    this = _require(this, str, "String.prototype.startsWith")
    start = int(min(max(to_integer(_arg(args, 1)), 0), len(this)))
    return this.startswith(to_string(_arg(args, 0)), start)


@builtin(_STRING_METHODS, "endsWith", 1)
def _string_ends_with(interp, this, args):
    this = _require(this, str, "String.prototype.endsWith")
    end_arg = _arg(args, 1)
    end = len(this) if end_arg is UNDEFINED else int(min(max(to_integer(end_arg), 0), len(this)))
    return this[:end].endswith(to_string(_arg(args, 0)))


@builtin(_STRING_METHODS, "slice", 2)
def _string_slice(interp, this, args):
    this = _require(this, str, "String.prototype.slice")
    start = _relative_index(_arg(args, 0), len(this), 0)
    end = _relative_index(_arg(args, 1), len(this), len(this))
    return this[start:end]


@builtin(_STRING_METHODS, "substring", 2)
def _string_substring(interp, this, args):
    this = _require(this, str, "String.prototype.substring")
    start = int(min(max(to_integer(_arg(args, 0)), 0), len(this)))
    end_arg = _arg(args, 1)
    end = len(this) if end_arg is UNDEFINED else int(min(max(to_integer(end_arg), 0), len(this)))
    if start > end:
        start, end = end, start
    return this[start:end]


@builtin(_STRING_METHODS, "substr", 2)
def _string_substr(interp, this, args):
    this = _require(this, str, "String.prototype.substr")
    start = _relative_index(_arg(args, 0), len(this), 0)
    length_arg = _arg(args, 1)
    length = len(this) - start if length_arg is UNDEFINED else to_integer(length_arg)
    length = int(min(max(length, 0), len(this) - start))
    return this[start:start + length]


@builtin(_STRING_METHODS, "toUpperCase")
def _string_to_upper_case(interp, this, args):
    return _require(this, str, "String.prototype.toUpperCase").upper()


@builtin(_STRING_METHODS, "toLowerCase")
def _string_to_lower_case(interp, this, args):
    return _require(this, str, "String.prototype.toLowerCase").lower()


@builtin(_STRING_METHODS, "trim")
def _string_trim(interp, this, args):
    return _require(this, str, "String.prototype.trim").strip(WHITESPACE)


@builtin(_STRING_METHODS, "trimStart")
@builtin(_STRING_METHODS, "trimLeft")
def _string_trim_start(interp, this, args):
    return _require(this, str, "String.prototype.trimStart").lstrip(WHITESPACE)


@builtin(_STRING_METHODS, "trimEnd")
@builtin(_STRING_METHODS, "trimRight")
def _string_trim_end(interp, this, args):
    return _require(this, str, "String.prototype.trimEnd").rstrip(WHITESPACE)


@builtin(_STRING_METHODS, "split", 2)
def _string_split(interp, this, args):
    this = _require(this, str, "String.prototype.split")
    separator = _arg(args, 0)
    limit_arg = _arg(args, 1)
    limit = 2 ** 32 - 1 if limit_arg is UNDEFINED else to_uint32(limit_arg)

    if separator is UNDEFINED:
        parts = [this]
    else:
        separator = to_string(separator)
        if separator == "":
            parts = list(this)
        else:
            parts = this.split(separator)
    return interp.charge(parts[:limit])


@builtin(_STRING_METHODS, "replace", 2)
def _string_replace(interp, this, args):
    this = _require(this, str, "String.prototype.replace")
    pattern = to_string(_arg(args, 0))
    replacement = _arg(args, 1)

    idx = this.find(pattern)
    if idx == -1:
        return this

    if is_callable(replacement):
        text = to_string(interp.call(replacement, UNDEFINED, [pattern, float(idx), this]))
    else:
        text = to_string(replacement)
        if "$" in text:
            raise EvaluationError("replacement patterns are not supported")
    return interp.charge(this[:idx] + text + this[idx + len(pattern):])


@builtin(_STRING_METHODS, "repeat", 1)
def _string_repeat(interp, this, args):
    this = _require(this, str, "String.prototype.repeat")
    count = to_integer(_arg(args, 0))
    if count < 0 or math.isinf(count):
        raise EvaluationError("invalid repeat count")
    count = _check_length(len(this) * count) // len(this) if this else 0
    return interp.charge(this * count)


def _pad(interp, this: str, args: list, at_start: bool) -> str:
    target = to_integer(_arg(args, 0))
    filler = _arg(args, 1)
    filler = " " if filler is UNDEFINED else to_string(filler)
    if target <= len(this) or filler == "":
        return this
    fill_length = _check_length(target) - len(this)
    padding = (filler * (fill_length // len(filler) + 1))[:fill_length]
    return interp.charge(padding + this if at_start else this + padding)


@builtin(_STRING_METHODS, "padStart", 2)
def _string_pad_start(interp, this, args):
    return _pad(interp, _require(this, str, "String.prototype.padStart"), args, True)


@builtin(_STRING_METHODS, "padEnd", 2)
def _string_pad_end(interp, this, args):
    return _pad(interp, _require(this, str, "String.prototype.padEnd"), args, False)


@builtin(_STRING_METHODS, "toString")
@builtin(_STRING_METHODS, "valueOf")
def _string_value_of(interp, this, args):
    return _require(this, str, "String.prototype.valueOf")


# Number and boolean methods


_NUMBER_METHODS: typing.Dict[str, BuiltinFunction] = {}


@builtin(_NUMBER_METHODS, "toFixed", 1)
def _number_to_fixed(interp, this, args):
    this = _require(this, float, "Number.prototype.toFixed")
    digits = to_integer(_arg(args, 0))
    if not 0 <= digits <= 100:
        raise EvaluationError("toFixed() digits argument must be between 0 and 100")
    if not math.isfinite(this) or abs(this) >= 1e21:
        return number_to_string(this)
    quantum = Decimal(1).scaleb(-int(digits))
    text = "{value:f}".format(value=Decimal(abs(this)).quantize(
        quantum, rounding=ROUND_HALF_UP, context=_FIXED_CONTEXT))
    return "-" + text if this < 0 else text


_FIXED_CONTEXT = Context(prec=200)

_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"


@builtin(_NUMBER_METHODS, "toString", 1)
def _number_to_string(interp, this, args):
    this = _require(this, float, "Number.prototype.toString")
    radix_arg = _arg(args, 0)
    radix = 10 if radix_arg is UNDEFINED else to_integer(radix_arg)
    if not 2 <= radix <= 36:
        raise EvaluationError("toString() radix must be between 2 and 36")
    if radix == 10 or not math.isfinite(this):
        return number_to_string(this)
    if not this.is_integer():
        raise EvaluationError("non-decimal representation of fractions is not supported")

    value = abs(int(this))
    digits = []
    while True:
        value, digit = divmod(value, int(radix))
        digits.append(_DIGITS[digit])
        if value == 0:
            break
    return ("-" if this < 0 else "") + "".join(reversed(digits))


@builtin(_NUMBER_METHODS, "valueOf")
def _number_value_of(interp, this, args):
    return _require(this, float, "Number.prototype.valueOf")


_BOOLEAN_METHODS: typing.Dict[str, BuiltinFunction] = {}


@builtin(_BOOLEAN_METHODS, "toString")
def _boolean_to_string(interp, this, args):
    return to_string(_require(this, bool, "Boolean.prototype.toString"))


@builtin(_BOOLEAN_METHODS, "valueOf")
def _boolean_value_of(interp, this, args):
    return _require(this, bool, "Boolean.prototype.valueOf")


# Function methods


_FUNCTION_METHODS: typing.Dict[str, BuiltinFunction] = {}


@builtin(_FUNCTION_METHODS, "call", 1)
def _function_call(interp, this, args):
    return interp.call(this, _arg(args, 0), args[1:])


@builtin(_FUNCTION_METHODS, "apply", 2)
def _function_apply(interp, this, args):
    call_args = _arg(args, 1)
    if call_args is None or call_args is UNDEFINED:
        call_args = []
    elif type(call_args) is not list:
        raise EvaluationError("apply() arguments must be an array")
    return interp.call(this, _arg(args, 0), list(call_args))


# Math


def _math_function(func, on_overflow=lambda x: math.inf):
    def impl(interp, this, args):
        x = to_number(_arg(args, 0))
        if math.isnan(x):
            return math.nan
        try:
            return float(func(x))
        except OverflowError:
            return on_overflow(x)
        except ValueError:
            return math.nan
    return impl


def _keep_sign(func):
    # Integral rounding keeps the sign of zero results
    def rounded(x):
        if not math.isfinite(x):
            return x
        result = float(func(x))
        return math.copysign(result, x) if result == 0 else result
    return rounded


def _round(x):
    result = math.floor(x)
    if x - result >= 0.5:
        result += 1
    return result


def _cbrt(x):
    if x == 0 or not math.isfinite(x):
        return x
    result = math.copysign(abs(x) ** (1 / 3), x)
    rounded = round(result)
    if rounded ** 3 == x:
        return float(rounded)
    return result


def _log(func, pole):
    def log(x):
        if x == pole:
            return -math.inf
        if x < pole:
            return math.nan
        if math.isinf(x):
            return x
        return func(x)
    return log


def _atanh(x):
    if abs(x) == 1:
        return math.copysign(math.inf, x)
    return math.atanh(x)


def _fround(x):
    try:
        return struct.unpack("f", struct.pack("f", x))[0]
    except OverflowError:
        return math.copysign(math.inf, x)


def _sign(x):
    if x == 0:
        return x
    return math.copysign(1.0, x)


def _math_atan2(interp, this, args):
    return math.atan2(to_number(_arg(args, 0)), to_number(_arg(args, 1)))


def _math_pow(interp, this, args):
    return js_pow(to_number(_arg(args, 0)), to_number(_arg(args, 1)))


def _math_hypot(interp, this, args):
    values = [to_number(arg) for arg in args]
    if any(math.isinf(value) for value in values):
        return math.inf
    if any(math.isnan(value) for value in values):
        return math.nan
    return math.hypot(*values) if values else 0.0


def _math_imul(interp, this, args):
    return float(_int32(to_int32(_arg(args, 0)) * to_int32(_arg(args, 1))))


def _math_clz32(interp, this, args):
    return float(32 - to_uint32(_arg(args, 0)).bit_length())


def _math_extremum(pick_first):
    def impl(interp, this, args):
        result = None
        for value in (to_number(arg) for arg in args):
            if math.isnan(value):
                return math.nan
            if result is None or pick_first(value, result):
                result = value
        return result
    return impl


def _greater(value, result):
    if value == result == 0:
        return math.copysign(1, value) > math.copysign(1, result)
    return value > result


def _less(value, result):
    if value == result == 0:
        return math.copysign(1, value) < math.copysign(1, result)
    return value < result


def _math_max(interp, this, args):
    result = _math_extremum(_greater)(interp, this, args)
    return -math.inf if result is None else result


def _math_min(interp, this, args):
    result = _math_extremum(_less)(interp, this, args)
    return math.inf if result is None else result


_MATH_IMPLEMENTATIONS = dict(
    abs=_math_function(abs),
    acos=_math_function(math.acos),
    acosh=_math_function(math.acosh),
    asin=_math_function(math.asin),
    asinh=_math_function(math.asinh),
    atan=_math_function(math.atan),
    atan2=_math_atan2,
    atanh=_math_function(_atanh),
    cbrt=_math_function(_cbrt),
    ceil=_math_function(_keep_sign(math.ceil)),
    clz32=_math_clz32,
    cos=_math_function(math.cos),
    cosh=_math_function(math.cosh),
    exp=_math_function(math.exp),
    expm1=_math_function(math.expm1),
    floor=_math_function(_keep_sign(math.floor)),
    fround=_math_function(_fround),
    hypot=_math_hypot,
    imul=_math_imul,
    log=_math_function(_log(math.log, 0)),
    log10=_math_function(_log(math.log10, 0)),
    log1p=_math_function(_log(math.log1p, -1)),
    log2=_math_function(_log(math.log2, 0)),
    max=_math_max,
    min=_math_min,
    pow=_math_pow,
    round=_math_function(_keep_sign(_round)),
    sign=_math_function(_sign),
    sin=_math_function(math.sin),
    sinh=_math_function(math.sinh, on_overflow=lambda x: math.copysign(math.inf, x)),
    sqrt=_math_function(math.sqrt),
    tan=_math_function(math.tan),
    tanh=_math_function(math.tanh),
    trunc=_math_function(_keep_sign(math.trunc)),
)

_MATH_CONSTANTS = dict(
    E=math.e,
    LN10=math.log(10),
    LN2=math.log(2),
    LOG10E=math.log10(math.e),
    LOG2E=math.log2(math.e),
    PI=math.pi,
    SQRT1_2=math.sqrt(0.5),
    SQRT2=math.sqrt(2),
)


def _make_math_namespace() -> Namespace:
    members = dict(_MATH_CONSTANTS)
    for name in wisdom.MATH_FUNCTIONS:
        members[name] = BuiltinFunction(name, _MATH_IMPLEMENTATIONS[name], 1)
    return Namespace(wisdom.MATH_NAMESPACE, members)


MATH = _make_math_namespace()


def execute(source: str, bindings=None, max_steps: int = DEFAULT_MAX_STEPS):
    """
    Evaluates the source of a single expression and returns its value.

    :param source: expression source text.
    :param bindings: a mapping of additional global names to values
        (typically :py:class:`~esfold.core.values.Opaque` placeholders).
    :param max_steps: the evaluation budget.
    :raises EvaluationError: if the source cannot be parsed,
        uses an unsupported feature, fails at runtime or exceeds the budget.
    """
    try:
        tree = parse_expression(source)
    except ParseError as exc:
        raise EvaluationError("cannot parse the generated source: " + str(exc)) from exc

    interp = Interpreter(max_steps=max_steps)
    env = interp.global_environment(bindings)
    try:
        return interp.evaluate(tree, env)
    except RecursionError as exc:
        raise EvaluationError("maximum recursion depth exceeded") from exc
    except (ValueError, ArithmeticError) as exc:
        raise EvaluationError(str(exc)) from exc
