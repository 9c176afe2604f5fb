class EvaluationError(Exception):
    """
    Raised when a subtree cannot be evaluated,
    or its value cannot be represented as a tree.
    """


class ParseError(Exception):
    """
    Parse error with location info.
    """

    def __init__(self, msg: str, line: int, col: int):
        self.msg = msg
        self.line = line
        self.col = col
        super().__init__(msg + " at line " + str(line) + " col " + str(col))
