"""
Known built-in member names of the object language, per literal kind.

The registry is explicit and does not depend on any runtime's prototype chains.
It lists everything up to ``BUILTINS_VERSION``, plus some legacy names,
so that an access to a member a real runtime may have is never mistaken
for an access to a plain data property.
"""

BUILTINS_VERSION = "ES2023"

ARRAY = "array"
OBJECT = "object"
STRING = "string"
NUMBER = "number"
BOOLEAN = "boolean"
FUNCTION = "function"

MATH_NAMESPACE = "Math"


_OBJECT_METHODS = frozenset([
    "__defineGetter__",
    "__defineSetter__",
    "__lookupGetter__",
    "__lookupSetter__",
    "__proto__",
    "constructor",
    "hasOwnProperty",
    "isPrototypeOf",
    "propertyIsEnumerable",
    "toLocaleString",
    "toString",
    "valueOf",
])

ARRAY_METHODS = frozenset([
    "at",
    "concat",
    "copyWithin",
    "entries",
    "every",
    "fill",
    "filter",
    "find",
    "findIndex",
    "findLast",
    "findLastIndex",
    "flat",
    "flatMap",
    "forEach",
    "includes",
    "indexOf",
    "join",
    "keys",
    "lastIndexOf",
    "map",
    "pop",
    "push",
    "reduce",
    "reduceRight",
    "reverse",
    "shift",
    "slice",
    "some",
    "sort",
    "splice",
    "toLocaleString",
    "toReversed",
    "toSorted",
    "toSource",
    "toSpliced",
    "toString",
    "unshift",
    "values",
    "with",
])

STRING_METHODS = frozenset([
    "anchor",
    "at",
    "big",
    "blink",
    "bold",
    "charAt",
    "charCodeAt",
    "codePointAt",
    "concat",
    "endsWith",
    "fixed",
    "fontcolor",
    "fontsize",
    "includes",
    "indexOf",
    "isWellFormed",
    "italics",
    "lastIndexOf",
    "link",
    "localeCompare",
    "match",
    "matchAll",
    "normalize",
    "padEnd",
    "padStart",
    "repeat",
    "replace",
    "replaceAll",
    "search",
    "slice",
    "small",
    "split",
    "startsWith",
    "strike",
    "sub",
    "substr",
    "substring",
    "sup",
    "toLocaleLowerCase",
    "toLocaleUpperCase",
    "toLowerCase",
    "toString",
    "toUpperCase",
    "toWellFormed",
    "trim",
    "trimEnd",
    "trimLeft",
    "trimRight",
    "trimStart",
    "valueOf",
])

NUMBER_METHODS = frozenset([
    "toExponential",
    "toFixed",
    "toLocaleString",
    "toPrecision",
    "toString",
    "valueOf",
])

BOOLEAN_METHODS = frozenset([
    "toString",
    "valueOf",
])

FUNCTION_MEMBERS = frozenset([
    "apply",
    "arguments",
    "bind",
    "call",
    "caller",
    "length",
    "name",
    "toString",
])

MATH_CONSTANTS = frozenset([
    "E",
    "LN10",
    "LN2",
    "LOG10E",
    "LOG2E",
    "PI",
    "SQRT1_2",
    "SQRT2",
])

MATH_FUNCTIONS = frozenset([
    "abs",
    "acos",
    "acosh",
    "asin",
    "asinh",
    "atan",
    "atan2",
    "atanh",
    "cbrt",
    "ceil",
    "clz32",
    "cos",
    "cosh",
    "exp",
    "expm1",
    "floor",
    "fround",
    "hypot",
    "imul",
    "log",
    "log10",
    "log1p",
    "log2",
    "max",
    "min",
    "pow",
    "round",
    "sign",
    "sin",
    "sinh",
    "sqrt",
    "tan",
    "tanh",
    "trunc",
])

MATH_MEMBERS = MATH_CONSTANTS | MATH_FUNCTIONS

# Members a real runtime has but whose results are not a function of the source
MATH_NONDETERMINISTIC = frozenset(["random"])

# Methods that can be called on an array or a string literal receiver.
ARRAY_STRING_METHODS = ARRAY_METHODS | STRING_METHODS

# Deterministic methods whose arguments are only stored, compared or converted,
# never called, so functions and ``new`` expressions can be carried through verbatim.
SAFE_MUTATORS = frozenset([
    "concat",
    "includes",
    "indexOf",
    "join",
    "lastIndexOf",
    "pop",
    "push",
    "reverse",
    "shift",
    "slice",
    "splice",
    "toSource",
    "toString",
    "unshift",
])


_BUILTIN_MEMBERS = {
    OBJECT: _OBJECT_METHODS,
    ARRAY: ARRAY_METHODS | _OBJECT_METHODS,
    STRING: STRING_METHODS | _OBJECT_METHODS,
    NUMBER: NUMBER_METHODS | _OBJECT_METHODS,
    BOOLEAN: BOOLEAN_METHODS | _OBJECT_METHODS,
    FUNCTION: FUNCTION_MEMBERS | _OBJECT_METHODS,
}


def builtin_members(kind: str) -> frozenset:
    """
    Returns the names of all built-in members (own and inherited)
    that a value of the given kind has.
    """
    return _BUILTIN_MEMBERS[kind]


def is_builtin_member(kind: str, name: str) -> bool:
    return name in _BUILTIN_MEMBERS[kind]


def is_math_member(name: str) -> bool:
    return name in MATH_MEMBERS
