"""
Quill Runtime - Tree-walking interpreter for Quill programs.

This module provides:
- Interpreter: Evaluates parsed programs
- Session: Persistent environment across runs (used by the REPL)
- Value: Runtime values tagged with their kind
- Environment / ExecutionContext: Lexical scopes and evaluation state
- BuiltinRegistry: Built-in function implementations
"""

from .values import (
    Value,
    ValueKind,
    HashKey,
    HashPair,
    Closure,
    ReturnValue,
    TRUE,
    FALSE,
    NIL,
    int_val,
    string_val,
    bool_val,
    array_val,
    hash_val,
    function_val,
    builtin_val,
    hash_key,
    is_hashable,
)

from .context import (
    Environment,
    OutputBuffer,
    ExecutionContext,
    create_context,
)

from .builtins import (
    BuiltinFunction,
    BuiltinRegistry,
    get_builtin_registry,
    call_builtin,
)

from .interpreter import (
    Interpreter,
    ExecutionResult,
    Session,
    execute,
    evaluate,
)

__all__ = [
    # Values
    "Value",
    "ValueKind",
    "HashKey",
    "HashPair",
    "Closure",
    "ReturnValue",
    "TRUE",
    "FALSE",
    "NIL",
    "int_val",
    "string_val",
    "bool_val",
    "array_val",
    "hash_val",
    "function_val",
    "builtin_val",
    "hash_key",
    "is_hashable",
    # Context
    "Environment",
    "OutputBuffer",
    "ExecutionContext",
    "create_context",
    # Builtins
    "BuiltinFunction",
    "BuiltinRegistry",
    "get_builtin_registry",
    "call_builtin",
    # Interpreter
    "Interpreter",
    "ExecutionResult",
    "Session",
    "execute",
    "evaluate",
]
