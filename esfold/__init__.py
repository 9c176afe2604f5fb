"""
High-level API
--------------

.. autofunction:: transform


Syntax
======

.. autofunction:: parse_expression
.. autofunction:: parse_statements
.. autofunction:: generate


Passes
======

.. autofunction:: fold
.. autofunction:: decompute


Low-level tools
---------------

.. autofunction:: ast_walker
.. autofunction:: ast_inspector
.. autofunction:: ast_transformer
.. autofunction:: ast_equal
.. autofunction:: eval_node
.. autofunction:: is_simple
.. autoclass:: Dispatcher
.. autoclass:: EvaluationError
.. autoclass:: ParseError
"""

from esfold.tools import Dispatcher, ast_walker, ast_inspector, ast_transformer, ast_equal
from esfold.errors import EvaluationError, ParseError
from esfold.syntax import parse_expression, parse_statements, generate
from esfold.core.evaluate import eval_node
from esfold.core.simple import is_simple
from esfold.components import fold, decompute
from esfold.highlevelapi import transform
