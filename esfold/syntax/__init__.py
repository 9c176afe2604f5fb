from esfold.syntax.tokenizer import tokenize
from esfold.syntax.parser import parse_expression, parse_statements
from esfold.syntax.generator import generate
