"""Tokenizer: lexes expression source into a flat token list."""

from esfold.errors import ParseError


TK_NUMBER = "NUMBER"
TK_STRING = "STRING"
TK_IDENT = "IDENT"
TK_KEYWORD = "KEYWORD"
TK_OP = "OP"
TK_EOF = "EOF"

KEYWORDS = frozenset([
    "break", "case", "catch", "class", "const", "continue", "debugger", "default",
    "delete", "do", "else", "export", "extends", "false", "finally", "for",
    "function", "if", "import", "in", "instanceof", "let", "new", "null", "return",
    "super", "switch", "this", "throw", "true", "try", "typeof", "var", "void",
    "while", "with", "yield",
])

# Sorted by length descending for greedy matching
OPERATORS = [
    ">>>=",
    "===", "!==", "**=", "<<=", ">>=", ">>>",
    "=>", "==", "!=", "<=", ">=", "&&", "||", "++", "--", "<<", ">>", "**",
    "+=", "-=", "*=", "/=", "%=", "&=", "|=", "^=",
    "{", "}", "(", ")", "[", "]", ".", ";", ",", "<", ">", "+", "-", "*", "/",
    "%", "&", "|", "^", "!", "~", "?", ":", "=",
]

ESCAPE_MAP = {
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "b": "\b",
    "f": "\f",
    "v": "\v",
    "0": "\0",
}

LINE_TERMINATORS = "\n\r\u2028\u2029"


class Token:
    """A token with type, value, and position."""

    def __init__(self, type_: str, value, line: int, col: int):
        self.type = type_
        self.value = value
        self.line = line
        self.col = col

    def __repr__(self) -> str:
        return "Token({type}, {value!r}, {line}, {col})".format(
            type=self.type, value=self.value, line=self.line, col=self.col)


def is_decimal_digit(c: str) -> bool:
    return c != "" and c in "0123456789"


def is_identifier_start(c: str) -> bool:
    return c.isalpha() or c == "_" or c == "$"


def is_identifier_part(c: str) -> bool:
    return c.isalnum() or c == "_" or c == "$"


def is_identifier_name(name: str) -> bool:
    """
    Checks if ``name`` can be used in the static form of a member access (``x.name``).
    Reserved words are allowed there.
    """
    return (
        len(name) > 0
        and is_identifier_start(name[0])
        and all(is_identifier_part(c) for c in name[1:]))


class _Scanner:

    def __init__(self, source: str):
        self.source = source
        self.pos = 0
        self.line = 1
        self.line_start = 0

    def col(self, pos=None) -> int:
        return (self.pos if pos is None else pos) - self.line_start + 1

    def error(self, msg, pos=None) -> ParseError:
        return ParseError(msg, self.line, self.col(pos))

    def peek(self, offset=0) -> str:
        idx = self.pos + offset
        return self.source[idx] if idx < len(self.source) else ""

    def newline(self):
        self.line += 1
        self.line_start = self.pos

    def skip_whitespace_and_comments(self):
        source = self.source
        while self.pos < len(source):
            c = source[self.pos]
            if c in LINE_TERMINATORS:
                self.pos += 1
                self.newline()
            elif c.isspace() or c == "\ufeff":
                self.pos += 1
            elif c == "/" and self.peek(1) == "/":
                while self.pos < len(source) and source[self.pos] not in LINE_TERMINATORS:
                    self.pos += 1
            elif c == "/" and self.peek(1) == "*":
                end = source.find("*/", self.pos + 2)
                if end == -1:
                    raise self.error("unterminated comment")
                for idx in range(self.pos, end):
                    if source[idx] == "\n":
                        self.line += 1
                        self.line_start = idx + 1
                self.pos = end + 2
            else:
                break

    def scan_number(self) -> float:
        source = self.source
        start = self.pos

        if self.peek() == "0" and self.peek(1) in ("x", "X", "o", "O", "b", "B"):
            base = {"x": 16, "o": 8, "b": 2}[self.peek(1).lower()]
            self.pos += 2
            digits_start = self.pos
            while self.pos < len(source) and source[self.pos].isalnum():
                self.pos += 1
            try:
                return float(int(source[digits_start:self.pos], base))
            except ValueError:
                raise self.error("invalid number literal", start)

        while is_decimal_digit(self.peek()):
            self.pos += 1
        if self.peek() == ".":
            self.pos += 1
            while is_decimal_digit(self.peek()):
                self.pos += 1
        if self.peek() in ("e", "E"):
            self.pos += 1
            if self.peek() in ("+", "-"):
                self.pos += 1
            if not is_decimal_digit(self.peek()):
                raise self.error("invalid number exponent", start)
            while is_decimal_digit(self.peek()):
                self.pos += 1
        if is_identifier_start(self.peek()):
            raise self.error("identifier starts immediately after number", start)

        text = source[start:self.pos]
        if text == ".":
            raise self.error("unexpected '.'", start)
        return float(text)

    def scan_escape(self) -> str:
        # ``self.pos`` points right after the backslash
        c = self.peek()
        if c == "":
            raise self.error("unexpected end of string in escape")
        self.pos += 1
        if c in ESCAPE_MAP and not (c == "0" and is_decimal_digit(self.peek())):
            return ESCAPE_MAP[c]
        if c == "x":
            return chr(self._scan_hex(2))
        if c == "u":
            if self.peek() == "{":
                self.pos += 1
                end = self.source.find("}", self.pos)
                if end == -1:
                    raise self.error("invalid unicode escape")
                try:
                    code = int(self.source[self.pos:end], 16)
                except ValueError:
                    raise self.error("invalid unicode escape")
                if code > 0x10FFFF:
                    raise self.error("invalid unicode escape")
                self.pos = end + 1
                return chr(code)
            return chr(self._scan_hex(4))
        if c in LINE_TERMINATORS:
            # line continuation
            if c == "\r" and self.peek() == "\n":
                self.pos += 1
            self.newline()
            return ""
        if is_decimal_digit(c):
            raise self.error("octal escapes are not supported")
        return c

    def _scan_hex(self, length) -> int:
        text = self.source[self.pos:self.pos + length]
        if len(text) != length or any(c not in "0123456789abcdefABCDEF" for c in text):
            raise self.error("invalid hex escape")
        self.pos += length
        return int(text, 16)

    def scan_string(self) -> str:
        quote = self.peek()
        start = self.pos
        self.pos += 1
        chars = []
        while True:
            c = self.peek()
            if c == "":
                raise self.error("unterminated string literal", start)
            if c == quote:
                self.pos += 1
                break
            if c in "\n\r":
                raise self.error("unterminated string literal", start)
            if c == "\\":
                self.pos += 1
                chars.append(self.scan_escape())
            else:
                chars.append(c)
                self.pos += 1
        return "".join(chars)

    def scan_identifier(self) -> str:
        start = self.pos
        while is_identifier_part(self.peek()):
            self.pos += 1
        return self.source[start:self.pos]


def tokenize(source: str):
    """
    Tokenize expression source into a flat list ending with an ``EOF`` token.
    Regular expression and template literals are not supported.
    """
    scanner = _Scanner(source)
    tokens = []

    while True:
        scanner.skip_whitespace_and_comments()
        line = scanner.line
        col = scanner.col()
        c = scanner.peek()

        if c == "":
            tokens.append(Token(TK_EOF, "", line, col))
            return tokens

        if is_decimal_digit(c) or (c == "." and is_decimal_digit(scanner.peek(1))):
            tokens.append(Token(TK_NUMBER, scanner.scan_number(), line, col))
        elif c == '"' or c == "'":
            tokens.append(Token(TK_STRING, scanner.scan_string(), line, col))
        elif is_identifier_start(c):
            name = scanner.scan_identifier()
            tokens.append(Token(TK_KEYWORD if name in KEYWORDS else TK_IDENT, name, line, col))
        else:
            for op in OPERATORS:
                if scanner.source.startswith(op, scanner.pos):
                    scanner.pos += len(op)
                    tokens.append(Token(TK_OP, op, line, col))
                    break
            else:
                raise scanner.error("unexpected character " + repr(c))
