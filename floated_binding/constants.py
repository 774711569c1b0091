"""Named constants — eliminates magic strings across the codebase."""

from __future__ import annotations

LANGUAGE_JAVASCRIPT = "javascript"

HELPER_BASE_NAME = "floatedBinding"
HELPER_PARAM_NAME = "init"
HELPER_GETTER_NAME = "get"
HELPER_VALUE_NAME = "v"

ACCESSOR_SUFFIX = "__fb"
DEFAULT_BASE_NAME = "fb"

UNSAFE_NAME_CHARS_PATTERN = r"[^A-Za-z0-9_$]"

HOISTED_DECLARATION_KIND = "const"

MAX_INPUT_BYTES = 15 * 1024 * 1024

# Lowering, analysis and printing recurse once per nesting level.
RECURSION_LIMIT = 10_000

INDENT = "  "

PROGRAM_SCOPE_LABEL = "program"
ANONYMOUS_FUNCTION_LABEL = "<anonymous>"

DYNAMIC_EVAL_NAME = "eval"
ARGUMENTS_NAME = "arguments"

# Names every JavaScript scope can see without a declaration.
BUILTIN_GLOBALS: frozenset[str] = frozenset(
    {
        "arguments",
        "undefined",
        "Infinity",
        "NaN",
        "globalThis",
        "Object",
        "Function",
        "Array",
        "Number",
        "String",
        "Boolean",
        "Symbol",
        "BigInt",
        "Math",
        "JSON",
        "Date",
        "RegExp",
        "Error",
        "TypeError",
        "RangeError",
        "SyntaxError",
        "ReferenceError",
        "Map",
        "Set",
        "WeakMap",
        "WeakSet",
        "Promise",
        "Proxy",
        "Reflect",
        "parseInt",
        "parseFloat",
        "isNaN",
        "isFinite",
        "console",
        "window",
        "document",
        "require",
        "module",
        "exports",
    }
)
