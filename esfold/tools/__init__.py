from esfold.tools.dispatcher import Dispatcher
from esfold.tools.immutable import ImmutableDict, ImmutableADict
from esfold.tools.utils import replace_fields, clone, ast_equal
from esfold.tools.walker import ast_walker, ast_transformer, ast_inspector
