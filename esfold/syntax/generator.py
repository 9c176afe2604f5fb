"""
Source generation: turns a tree back into compact source text.
Parentheses are only emitted where the operator precedence requires them.
"""

import math
import typing

from esfold.core.values import number_to_string
from esfold.nodes import (
    CallExpression,
    FunctionExpression,
    IfStatement,
    Literal,
    MemberExpression,
    Node,
    ObjectExpression,
    Statement,
)
from esfold.tools import Dispatcher


SEQUENCE = 1
ASSIGNMENT = 2
CONDITIONAL = 3
UNARY = 15
UPDATE = 16
CALL = 17
PRIMARY = 18

BINARY_PRECEDENCE = {
    "||": 4,
    "&&": 5,
    "|": 6,
    "^": 7,
    "&": 8,
    "==": 9, "!=": 9, "===": 9, "!==": 9,
    "<": 10, ">": 10, "<=": 10, ">=": 10, "instanceof": 10, "in": 10,
    "<<": 11, ">>": 11, ">>>": 11,
    "+": 12, "-": 12,
    "*": 13, "/": 13, "%": 13,
    "**": 14,
}

WORD_OPERATORS = frozenset(["typeof", "void", "delete"])

_ESCAPES = {
    "\\": "\\\\",
    '"': '\\"',
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
    "\b": "\\b",
    "\f": "\\f",
    "\v": "\\v",
}


def quote_string(value: str) -> str:
    chars = []
    for c in value:
        if c in _ESCAPES:
            chars.append(_ESCAPES[c])
        elif ord(c) < 0x20 or ord(c) == 0x7F:
            chars.append("\\x{code:02x}".format(code=ord(c)))
        elif c in "\u2028\u2029" or 0xD800 <= ord(c) <= 0xDFFF:
            chars.append("\\u{code:04x}".format(code=ord(c)))
        else:
            chars.append(c)
    return '"' + "".join(chars) + '"'


def _number_literal(value) -> typing.Tuple[str, int]:
    value = float(value)
    text = number_to_string(value)
    if value < 0 or (value == 0 and math.copysign(1, value) < 0):
        return "-" + number_to_string(-value), UNARY
    return text, PRIMARY


def _wrap(node: Node, min_precedence: int) -> str:
    text, precedence = _expression(node, node)
    if precedence < min_precedence:
        return "(" + text + ")"
    return text


def _is_number_literal(node: Node) -> bool:
    return isinstance(node, Literal) and type(node.value) in (int, float)


def _callee_chain_has_call(node: Node) -> bool:
    while isinstance(node, MemberExpression):
        node = node.object
    return isinstance(node, CallExpression)


def _object_operand(node: Node) -> str:
    # Operand of a member access or a call
    if isinstance(node, (FunctionExpression, ObjectExpression)) or _is_number_literal(node):
        return "(" + _expression(node, node)[0] + ")"
    return _wrap(node, CALL)


def _arguments(args: typing.List[Node]) -> str:
    return "(" + ", ".join(_wrap(arg, ASSIGNMENT) for arg in args) + ")"


def _property_key(key: Node) -> str:
    if isinstance(key, Literal):
        if type(key.value) is str:
            return quote_string(key.value)
        return number_to_string(float(key.value))
    return key.name


@Dispatcher
class _expression:

    @staticmethod
    def handle(node):
        raise TypeError("Cannot generate source for " + type(node).__name__)

    @staticmethod
    def handle_Literal(node):
        value = node.value
        if value is None:
            return "null", PRIMARY
        if value is True:
            return "true", PRIMARY
        if value is False:
            return "false", PRIMARY
        if type(value) is str:
            return quote_string(value), PRIMARY
        return _number_literal(value)

    @staticmethod
    def handle_Identifier(node):
        return node.name, PRIMARY

    @staticmethod
    def handle_ThisExpression(node):
        return "this", PRIMARY

    @staticmethod
    def handle_ArrayExpression(node):
        return "[" + ", ".join(_wrap(elem, ASSIGNMENT) for elem in node.elements) + "]", PRIMARY

    @staticmethod
    def handle_ObjectExpression(node):
        if not node.properties:
            return "{}", PRIMARY
        props = [
            _property_key(prop.key) + ": " + _wrap(prop.value, ASSIGNMENT)
            for prop in node.properties]
        return "{" + ", ".join(props) + "}", PRIMARY

    @staticmethod
    def handle_MemberExpression(node):
        obj = _object_operand(node.object)
        if node.computed:
            return obj + "[" + _expression(node.property, node.property)[0] + "]", CALL
        return obj + "." + node.property.name, CALL

    @staticmethod
    def handle_CallExpression(node):
        return _object_operand(node.callee) + _arguments(node.arguments), CALL

    @staticmethod
    def handle_NewExpression(node):
        if _callee_chain_has_call(node.callee):
            callee = "(" + _expression(node.callee, node.callee)[0] + ")"
        else:
            callee = _object_operand(node.callee)
        return "new " + callee + _arguments(node.arguments), CALL

    @staticmethod
    def handle_UnaryExpression(node):
        argument = _wrap(node.argument, UNARY)
        if node.operator in WORD_OPERATORS:
            return node.operator + " " + argument, UNARY
        if argument.startswith(node.operator) and node.operator in "+-":
            # ``- -x`` must not become ``--x``
            return node.operator + " " + argument, UNARY
        return node.operator + argument, UNARY

    @staticmethod
    def handle_UpdateExpression(node):
        if node.prefix:
            return node.operator + _wrap(node.argument, UNARY), UNARY
        return _wrap(node.argument, CALL) + node.operator, UPDATE

    @staticmethod
    def handle_BinaryExpression(node):
        precedence = BINARY_PRECEDENCE[node.operator]
        if node.operator == "**":
            # right-associative, and a unary left operand is a syntax error
            left = _wrap(node.left, UNARY + 1)
            right = _wrap(node.right, precedence)
        else:
            left = _wrap(node.left, precedence)
            right = _wrap(node.right, precedence + 1)
        return left + " " + node.operator + " " + right, precedence

    @staticmethod
    def handle_LogicalExpression(node):
        precedence = BINARY_PRECEDENCE[node.operator]
        left = _wrap(node.left, precedence)
        right = _wrap(node.right, precedence + 1)
        return left + " " + node.operator + " " + right, precedence

    @staticmethod
    def handle_AssignmentExpression(node):
        left = _wrap(node.left, CALL)
        right = _wrap(node.right, ASSIGNMENT)
        return left + " " + node.operator + " " + right, ASSIGNMENT

    @staticmethod
    def handle_ConditionalExpression(node):
        test = _wrap(node.test, CONDITIONAL + 1)
        consequent = _wrap(node.consequent, ASSIGNMENT)
        alternate = _wrap(node.alternate, ASSIGNMENT)
        return test + " ? " + consequent + " : " + alternate, CONDITIONAL

    @staticmethod
    def handle_SequenceExpression(node):
        return ", ".join(_wrap(expr, ASSIGNMENT) for expr in node.expressions), SEQUENCE

    @staticmethod
    def handle_FunctionExpression(node):
        name = " " + node.id.name if node.id is not None else ""
        params = ", ".join(param.name for param in node.params)
        return "function" + name + "(" + params + ") " + _block(node.body), PRIMARY


def _block(stmts: typing.List[Statement]) -> str:
    if not stmts:
        return "{}"
    return "{ " + " ".join(_statement(stmt, stmt) for stmt in stmts) + " }"


@Dispatcher
class _statement:

    @staticmethod
    def handle(stmt):
        raise TypeError("Cannot generate source for " + type(stmt).__name__)

    @staticmethod
    def handle_ExpressionStatement(stmt):
        text = _expression(stmt.expression, stmt.expression)[0]
        if text.startswith("function") or text.startswith("{"):
            text = "(" + text + ")"
        return text + ";"

    @staticmethod
    def handle_ReturnStatement(stmt):
        if stmt.argument is None:
            return "return;"
        return "return " + _expression(stmt.argument, stmt.argument)[0] + ";"

    @staticmethod
    def handle_VariableDeclaration(stmt):
        declarations = []
        for decl in stmt.declarations:
            if decl.init is None:
                declarations.append(decl.id.name)
            else:
                declarations.append(decl.id.name + " = " + _wrap(decl.init, ASSIGNMENT))
        return stmt.kind + " " + ", ".join(declarations) + ";"

    @staticmethod
    def handle_IfStatement(stmt):
        test = _expression(stmt.test, stmt.test)[0]
        consequent = _statement(stmt.consequent, stmt.consequent)
        if stmt.alternate is None:
            return "if (" + test + ") " + consequent
        if isinstance(stmt.consequent, IfStatement):
            # keeps the ``else`` from attaching to the inner ``if``
            consequent = "{ " + consequent + " }"
        alternate = _statement(stmt.alternate, stmt.alternate)
        return "if (" + test + ") " + consequent + " else " + alternate

    @staticmethod
    def handle_BlockStatement(stmt):
        return _block(stmt.body)

    @staticmethod
    def handle_EmptyStatement(stmt):
        return ";"


def generate(node: typing.Union[Node, typing.List[Statement]]) -> str:
    """
    Returns the source text for an expression, a statement, or a list of statements.
    """
    if isinstance(node, list):
        return " ".join(_statement(stmt, stmt) for stmt in node)
    if isinstance(node, Statement):
        return _statement(node, node)
    return _expression(node, node)[0]
