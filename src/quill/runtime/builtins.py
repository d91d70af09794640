"""
Built-in function registry for the Quill interpreter.

Builtins are the outermost implicit scope: the interpreter only consults the
registry after a name was not found anywhere in the lexical environment chain.

Each implementation receives the output sink followed by the evaluated
argument values and returns a Value.
"""

from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from .context import OutputBuffer
from .values import Value, ValueKind, NIL, int_val, array_val
from ..errors import (
    error_undefined_identifier,
    error_wrong_argument_count,
    error_wrong_argument_type,
)


@dataclass(frozen=True)
class BuiltinFunction:
    """
    A built-in function with its implementation.

    `arity` is the exact number of arguments accepted, or None for variadic.
    """
    name: str
    implementation: Callable[..., Value]
    arity: Optional[int] = None
    doc: str = ""

    def __call__(self, output: OutputBuffer, *args: Value) -> Value:
        if self.arity is not None and len(args) != self.arity:
            raise error_wrong_argument_count(self.name, self.arity, len(args))
        return self.implementation(output, *args)


def _expect_kind(name: str, arg: Value, *kinds: ValueKind) -> None:
    if arg.kind not in kinds:
        expected = "|".join(str(k) for k in kinds)
        raise error_wrong_argument_type(name, expected, str(arg.kind))


class BuiltinRegistry:
    """
    Registry of all built-in functions.

    Functions are registered by name and can be looked up for execution.
    """

    def __init__(self):
        self._functions: Dict[str, BuiltinFunction] = {}
        self._register_all()

    def get_function(self, name: str) -> Optional[BuiltinFunction]:
        """Look up a function by name."""
        return self._functions.get(name)

    def register(self, func: BuiltinFunction) -> None:
        """Register a function, replacing any existing one of that name."""
        self._functions[func.name] = func

    def names(self) -> List[str]:
        return sorted(self._functions)

    def __contains__(self, name: str) -> bool:
        return name in self._functions

    def _register_all(self) -> None:
        """Register all built-in functions."""
        self._register_collection_functions()
        self._register_io_functions()

    # --- Collection Functions ---

    def _register_collection_functions(self) -> None:
        """Register string and array functions."""

        def _len(output: OutputBuffer, arg: Value) -> Value:
            _expect_kind("len", arg, ValueKind.STRING, ValueKind.ARRAY)
            return int_val(len(arg.data))

        def _first(output: OutputBuffer, arr: Value) -> Value:
            _expect_kind("first", arr, ValueKind.ARRAY)
            return arr.data[0] if arr.data else NIL

        def _last(output: OutputBuffer, arr: Value) -> Value:
            _expect_kind("last", arr, ValueKind.ARRAY)
            return arr.data[-1] if arr.data else NIL

        def _rest(output: OutputBuffer, arr: Value) -> Value:
            _expect_kind("rest", arr, ValueKind.ARRAY)
            if not arr.data:
                return NIL
            return array_val(arr.data[1:])

        def _push(output: OutputBuffer, arr: Value, elem: Value) -> Value:
            _expect_kind("push", arr, ValueKind.ARRAY)
            return array_val(arr.data + [elem])

        collection_funcs = [
            ("len", 1, _len, "Length of a string or array."),
            ("first", 1, _first, "First element of an array, or nil if empty."),
            ("last", 1, _last, "Last element of an array, or nil if empty."),
            ("rest", 1, _rest, "All but the first element, or nil if empty."),
            ("push", 2, _push, "New array with a value appended."),
        ]

        for name, arity, impl, doc in collection_funcs:
            self.register(BuiltinFunction(name, impl, arity, doc))

    # --- Output Functions ---

    def _register_io_functions(self) -> None:
        """Register functions that write to the output sink."""

        def _puts(output: OutputBuffer, *args: Value) -> Value:
            for arg in args:
                output.write(arg.inspect() + "\n")
            return NIL

        self.register(BuiltinFunction(
            "puts",
            _puts,
            None,
            "Write each argument on its own line; returns nil.",
        ))


# Global registry instance
_registry: Optional[BuiltinRegistry] = None


def get_builtin_registry() -> BuiltinRegistry:
    """Get the global built-in function registry."""
    global _registry
    if _registry is None:
        _registry = BuiltinRegistry()
    return _registry


def call_builtin(name: str, args: List[Value], output: Optional[OutputBuffer] = None) -> Value:
    """
    Call a built-in function by name.

    Raises:
        RuntimeError: If the function is unknown or rejects its arguments
    """
    func = get_builtin_registry().get_function(name)
    if func is None:
        raise error_undefined_identifier(name)
    return func(output if output is not None else OutputBuffer(), *args)
