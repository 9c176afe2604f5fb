"""Expression parser: recursive descent, one method per grammar production."""

import typing

from esfold.core.values import canonical_number
from esfold.errors import ParseError
from esfold.nodes import (
    ArrayExpression,
    AssignmentExpression,
    BinaryExpression,
    BlockStatement,
    CallExpression,
    ConditionalExpression,
    EmptyStatement,
    Expression,
    ExpressionStatement,
    FunctionExpression,
    Identifier,
    IfStatement,
    Literal,
    LogicalExpression,
    MemberExpression,
    NewExpression,
    ObjectExpression,
    Property,
    ReturnStatement,
    SequenceExpression,
    Statement,
    ThisExpression,
    UnaryExpression,
    UpdateExpression,
    VariableDeclaration,
    VariableDeclarator,
)
from esfold.syntax.tokenizer import (
    TK_EOF,
    TK_IDENT,
    TK_KEYWORD,
    TK_NUMBER,
    TK_OP,
    TK_STRING,
    Token,
    tokenize,
)


ASSIGN_OPS = frozenset([
    "=", "+=", "-=", "*=", "/=", "%=", "**=", "<<=", ">>=", ">>>=", "&=", "|=", "^=",
])

# Binding power of binary operators; higher binds tighter.
BINARY_PRECEDENCE = {
    "||": 1,
    "&&": 2,
    "|": 3,
    "^": 4,
    "&": 5,
    "==": 6, "!=": 6, "===": 6, "!==": 6,
    "<": 7, ">": 7, "<=": 7, ">=": 7, "instanceof": 7, "in": 7,
    "<<": 8, ">>": 8, ">>>": 8,
    "+": 9, "-": 9,
    "*": 10, "/": 10, "%": 10,
    "**": 11,
}

LOGICAL_OPS = frozenset(["||", "&&"])

UNARY_OPS = frozenset(["!", "-", "+", "~", "typeof", "void", "delete"])

UPDATE_OPS = frozenset(["++", "--"])

DECLARATION_KINDS = frozenset(["var", "let", "const"])


class Parser:
    """Recursive descent parser for expressions and function bodies."""

    def __init__(self, tokens: typing.List[Token]):
        self.tokens = tokens
        self.pos = 0

    # Helpers

    def current(self) -> Token:
        return self.tokens[self.pos]

    def advance(self) -> Token:
        tok = self.tokens[self.pos]
        if tok.type != TK_EOF:
            self.pos += 1
        return tok

    def at(self, value: str) -> bool:
        tok = self.current()
        return tok.type in (TK_OP, TK_KEYWORD) and tok.value == value

    def at_type(self, type_: str) -> bool:
        return self.current().type == type_

    def expect(self, value: str) -> Token:
        if not self.at(value):
            raise self.error("expected '" + value + "', got " + self.describe(self.current()))
        return self.advance()

    def expect_ident(self) -> Token:
        if not self.at_type(TK_IDENT):
            raise self.error("expected identifier, got " + self.describe(self.current()))
        return self.advance()

    def describe(self, tok: Token) -> str:
        if tok.type == TK_EOF:
            return "end of input"
        return "'" + str(tok.value) + "'"

    def error(self, msg: str) -> ParseError:
        tok = self.current()
        return ParseError(msg, tok.line, tok.col)

    # Top level

    def parse_expression_source(self) -> Expression:
        expr = self.parse_expression()
        if not self.at_type(TK_EOF):
            raise self.error("unexpected " + self.describe(self.current()))
        return expr

    def parse_statements_source(self) -> typing.List[Statement]:
        stmts = []
        while not self.at_type(TK_EOF):
            stmts.append(self.parse_statement())
        return stmts

    # Statements

    def parse_statement(self) -> Statement:
        if self.at("{"):
            return BlockStatement(self.parse_block())
        if self.at(";"):
            self.advance()
            return EmptyStatement()
        if self.at("return"):
            return self.parse_return_statement()
        if self.at("if"):
            return self.parse_if_statement()
        tok = self.current()
        if tok.type == TK_KEYWORD and tok.value in DECLARATION_KINDS:
            return self.parse_variable_declaration()
        if tok.type == TK_KEYWORD and tok.value not in (
                "function", "this", "new", "null", "true", "false",
                "typeof", "void", "delete"):
            raise self.error("unsupported statement '" + tok.value + "'")
        expr = self.parse_expression()
        self.consume_semicolon()
        return ExpressionStatement(expr)

    def consume_semicolon(self):
        if self.at(";"):
            self.advance()
        elif not (self.at("}") or self.at_type(TK_EOF)):
            raise self.error("expected ';', got " + self.describe(self.current()))

    def parse_block(self) -> typing.List[Statement]:
        self.expect("{")
        stmts = []
        while not self.at("}"):
            if self.at_type(TK_EOF):
                raise self.error("expected '}', got end of input")
            stmts.append(self.parse_statement())
        self.expect("}")
        return stmts

    def parse_return_statement(self) -> ReturnStatement:
        self.expect("return")
        if self.at(";") or self.at("}") or self.at_type(TK_EOF):
            argument = None
        else:
            argument = self.parse_expression()
        self.consume_semicolon()
        return ReturnStatement(argument)

    def parse_if_statement(self) -> IfStatement:
        self.expect("if")
        self.expect("(")
        test = self.parse_expression()
        self.expect(")")
        consequent = self.parse_statement()
        alternate = None
        if self.at("else"):
            self.advance()
            alternate = self.parse_statement()
        return IfStatement(test, consequent, alternate)

    def parse_variable_declaration(self) -> VariableDeclaration:
        kind = self.advance().value
        declarations = [self.parse_variable_declarator()]
        while self.at(","):
            self.advance()
            declarations.append(self.parse_variable_declarator())
        self.consume_semicolon()
        return VariableDeclaration(kind, declarations)

    def parse_variable_declarator(self) -> VariableDeclarator:
        name_tok = self.expect_ident()
        init = None
        if self.at("="):
            self.advance()
            init = self.parse_assignment()
        return VariableDeclarator(Identifier(name_tok.value), init)

    # Expressions

    def parse_expression(self) -> Expression:
        """Expression = Assignment ( ',' Assignment )*"""
        first = self.parse_assignment()
        if not self.at(","):
            return first
        expressions = [first]
        while self.at(","):
            self.advance()
            expressions.append(self.parse_assignment())
        return SequenceExpression(expressions)

    def parse_assignment(self) -> Expression:
        """Assignment = Conditional ( AssignOp Assignment )?"""
        tok = self.current()
        target = self.parse_conditional()
        if self.at_type(TK_OP) and self.current().value in ASSIGN_OPS:
            if not isinstance(target, (Identifier, MemberExpression)):
                raise ParseError("invalid assignment target", tok.line, tok.col)
            operator = self.advance().value
            return AssignmentExpression(operator, target, self.parse_assignment())
        return target

    def parse_conditional(self) -> Expression:
        """Conditional = Binary ( '?' Assignment ':' Assignment )?"""
        test = self.parse_binary(1)
        if not self.at("?"):
            return test
        self.advance()
        consequent = self.parse_assignment()
        self.expect(":")
        alternate = self.parse_assignment()
        return ConditionalExpression(test, consequent, alternate)

    def binary_operator(self) -> typing.Optional[str]:
        tok = self.current()
        if tok.type in (TK_OP, TK_KEYWORD) and tok.value in BINARY_PRECEDENCE:
            return tok.value
        return None

    def parse_binary(self, min_precedence: int) -> Expression:
        """Precedence climbing over the binary and logical operators."""
        left = self.parse_unary()
        while True:
            operator = self.binary_operator()
            if operator is None or BINARY_PRECEDENCE[operator] < min_precedence:
                return left
            self.advance()
            precedence = BINARY_PRECEDENCE[operator]
            # ``**`` is right-associative
            next_precedence = precedence if operator == "**" else precedence + 1
            right = self.parse_binary(next_precedence)
            if operator in LOGICAL_OPS:
                left = LogicalExpression(operator, left, right)
            else:
                left = BinaryExpression(operator, left, right)

    def parse_unary(self) -> Expression:
        tok = self.current()
        if tok.type in (TK_OP, TK_KEYWORD) and tok.value in UNARY_OPS:
            self.advance()
            return UnaryExpression(tok.value, self.parse_unary())
        if tok.type == TK_OP and tok.value in UPDATE_OPS:
            self.advance()
            argument = self.parse_unary()
            self.check_update_target(argument, tok)
            return UpdateExpression(tok.value, argument, True)
        return self.parse_postfix()

    def parse_postfix(self) -> Expression:
        expr = self.parse_call()
        tok = self.current()
        if tok.type == TK_OP and tok.value in UPDATE_OPS:
            self.check_update_target(expr, tok)
            self.advance()
            return UpdateExpression(tok.value, expr, False)
        return expr

    def check_update_target(self, argument: Expression, tok: Token):
        if not isinstance(argument, (Identifier, MemberExpression)):
            raise ParseError("invalid update target", tok.line, tok.col)

    def parse_call(self) -> Expression:
        """Call = ( New | Primary ) ( '.' Name | '[' Expression ']' | Arguments )*"""
        if self.at("new"):
            expr = self.parse_new()
        else:
            expr = self.parse_primary()
        while True:
            if self.at(".") or self.at("["):
                expr = self.parse_member_suffix(expr)
            elif self.at("("):
                expr = CallExpression(expr, self.parse_arguments())
            else:
                return expr

    def parse_new(self) -> NewExpression:
        self.expect("new")
        if self.at("new"):
            callee = self.parse_new()
        else:
            callee = self.parse_primary()
        while self.at(".") or self.at("["):
            callee = self.parse_member_suffix(callee)
        arguments = self.parse_arguments() if self.at("(") else []
        return NewExpression(callee, arguments)

    def parse_member_suffix(self, obj: Expression) -> MemberExpression:
        if self.at("."):
            self.advance()
            tok = self.current()
            if tok.type not in (TK_IDENT, TK_KEYWORD):
                raise self.error("expected property name, got " + self.describe(tok))
            self.advance()
            return MemberExpression(obj, Identifier(tok.value), False)
        self.expect("[")
        prop = self.parse_expression()
        self.expect("]")
        return MemberExpression(obj, prop, True)

    def parse_arguments(self) -> typing.List[Expression]:
        self.expect("(")
        args = []
        while not self.at(")"):
            args.append(self.parse_assignment())
            if not self.at(")"):
                self.expect(",")
        self.expect(")")
        return args

    def parse_primary(self) -> Expression:
        tok = self.current()

        if tok.type == TK_NUMBER:
            self.advance()
            return Literal(canonical_number(tok.value))
        if tok.type == TK_STRING:
            self.advance()
            return Literal(tok.value)
        if tok.type == TK_IDENT:
            self.advance()
            return Identifier(tok.value)

        if tok.type == TK_KEYWORD:
            if tok.value == "true" or tok.value == "false":
                self.advance()
                return Literal(tok.value == "true")
            if tok.value == "null":
                self.advance()
                return Literal(None)
            if tok.value == "this":
                self.advance()
                return ThisExpression()
            if tok.value == "function":
                return self.parse_function()

        if self.at("("):
            self.advance()
            expr = self.parse_expression()
            self.expect(")")
            return expr
        if self.at("["):
            return self.parse_array()
        if self.at("{"):
            return self.parse_object()

        raise self.error("unexpected " + self.describe(tok))

    def parse_array(self) -> ArrayExpression:
        self.expect("[")
        elements = []
        while not self.at("]"):
            if self.at(","):
                raise self.error("array holes are not supported")
            elements.append(self.parse_assignment())
            if not self.at("]"):
                self.expect(",")
        self.expect("]")
        return ArrayExpression(elements)

    def parse_object(self) -> ObjectExpression:
        self.expect("{")
        properties = []
        while not self.at("}"):
            properties.append(self.parse_property())
            if not self.at("}"):
                self.expect(",")
        self.expect("}")
        return ObjectExpression(properties)

    def parse_property(self) -> Property:
        tok = self.current()
        if tok.type in (TK_IDENT, TK_KEYWORD):
            key = Identifier(tok.value)
        elif tok.type == TK_STRING:
            key = Literal(tok.value)
        elif tok.type == TK_NUMBER:
            key = Literal(canonical_number(tok.value))
        else:
            raise self.error("expected property name, got " + self.describe(tok))
        self.advance()
        self.expect(":")
        return Property(key, self.parse_assignment())

    def parse_function(self) -> FunctionExpression:
        self.expect("function")
        name = None
        if self.at_type(TK_IDENT):
            name = Identifier(self.advance().value)
        self.expect("(")
        params = []
        while not self.at(")"):
            params.append(Identifier(self.expect_ident().value))
            if not self.at(")"):
                self.expect(",")
        self.expect(")")
        body = self.parse_block()
        return FunctionExpression(name, params, body)


def parse_expression(source: str) -> Expression:
    """
    Parse the source of a single expression into a tree.
    Raises :py:class:`~esfold.errors.ParseError` on malformed input.
    """
    return Parser(tokenize(source)).parse_expression_source()


def parse_statements(source: str) -> typing.List[Statement]:
    """
    Parse a list of statements (the body of a function expression).
    """
    return Parser(tokenize(source)).parse_statements_source()
