"""
Runtime values for the Quill interpreter.

Every runtime value is a ``Value`` whose ``kind`` says which payload ``data``
holds:

    INT       Python int, kept within the signed 64-bit range
    STRING    Python str
    BOOL      Python bool
    ARRAY     list of Value
    HASH      dict mapping HashKey -> HashPair
    FUNCTION  Closure
    BUILTIN   BuiltinFunction
    NIL       None

``TRUE``, ``FALSE`` and ``NIL`` are shared immutable constants.
"""

import hashlib
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, TYPE_CHECKING

from ..ast import Block, Identifier
from ..errors import error_unhashable

if TYPE_CHECKING:
    from .context import Environment


class ValueKind(Enum):
    """Runtime value kinds."""
    INT = "INT"
    STRING = "STRING"
    BOOL = "BOOL"
    ARRAY = "ARRAY"
    HASH = "HASH"
    FUNCTION = "FUNCTION"
    BUILTIN = "BUILTIN"
    NIL = "NIL"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Value:
    """
    A runtime value with its kind tag.

    The `data` field holds the Python payload.
    The `kind` field selects how `data` is interpreted.
    """
    data: Any
    kind: ValueKind

    def __repr__(self) -> str:
        return f"Value({self.data!r}, {self.kind})"

    def is_truthy(self) -> bool:
        """Only false and nil are falsy; 0, "" and [] are truthy."""
        if self.kind == ValueKind.NIL:
            return False
        if self.kind == ValueKind.BOOL:
            return bool(self.data)
        return True

    def inspect(self) -> str:
        """Render the value the way the REPL shows it."""
        kind = self.kind
        if kind == ValueKind.INT:
            return str(self.data)
        if kind == ValueKind.STRING:
            return self.data
        if kind == ValueKind.BOOL:
            return "true" if self.data else "false"
        if kind == ValueKind.NIL:
            return "nil"
        if kind == ValueKind.ARRAY:
            return "[" + ", ".join(v.inspect() for v in self.data) + "]"
        if kind == ValueKind.HASH:
            return "{" + ", ".join(str(pair) for pair in self.data.values()) + "}"
        if kind == ValueKind.FUNCTION:
            return str(self.data)
        if kind == ValueKind.BUILTIN:
            return f"builtin function {self.data.name}"
        return repr(self.data)


@dataclass(frozen=True)
class HashKey:
    """Content-derived key of a hashable value (INT, STRING or BOOL)."""
    kind: ValueKind
    value: int


@dataclass(frozen=True)
class HashPair:
    """Original key value and the value stored under it."""
    key: Value
    value: Value

    def __str__(self) -> str:
        return f"{self.key.inspect()}: {self.value.inspect()}"


@dataclass(eq=False)
class Closure:
    """
    A user-defined function together with the environment it was created in.

    The environment is held by reference, so later bindings made in the
    defining scope are visible when the function runs.
    """
    parameters: List[Identifier]
    body: Block
    env: "Environment"

    def __str__(self) -> str:
        params = ", ".join(p.name for p in self.parameters)
        return f"fn({params}) {self.body}"


@dataclass(frozen=True)
class ReturnValue:
    """Marks a value produced by `return` until it reaches a call boundary."""
    value: Value


# Shared constants

TRUE = Value(True, ValueKind.BOOL)
FALSE = Value(False, ValueKind.BOOL)
NIL = Value(None, ValueKind.NIL)


# Convenience constructors

def int_val(n: int) -> Value:
    """Create an integer value."""
    return Value(int(n), ValueKind.INT)


def string_val(s: str) -> Value:
    """Create a string value."""
    return Value(str(s), ValueKind.STRING)


def bool_val(b: bool) -> Value:
    """Return the shared TRUE or FALSE constant."""
    return TRUE if b else FALSE


def array_val(items: List[Value]) -> Value:
    """Create an array value from a list of Values."""
    return Value(list(items), ValueKind.ARRAY)


def hash_val(pairs: Dict[HashKey, HashPair]) -> Value:
    """Create a hash value."""
    return Value(dict(pairs), ValueKind.HASH)


def function_val(closure: Closure) -> Value:
    """Create a function value."""
    return Value(closure, ValueKind.FUNCTION)


def builtin_val(func: Any) -> Value:
    """Wrap a BuiltinFunction as a value."""
    return Value(func, ValueKind.BUILTIN)


# Hash keys

HASHABLE_KINDS = (ValueKind.INT, ValueKind.STRING, ValueKind.BOOL)


def _string_digest(s: str) -> int:
    digest = hashlib.sha256(s.encode("utf-8")).digest()
    return int.from_bytes(digest, "big")


def is_hashable(value: Value) -> bool:
    return value.kind in HASHABLE_KINDS


def hash_key(value: Value, span=None) -> HashKey:
    """
    Derive the hash key of a value.

    Equal values of the same kind always yield equal keys; strings are keyed
    by a digest of their content.

    Raises:
        RuntimeError: If the value's kind cannot be used as a key
    """
    if not is_hashable(value):
        raise error_unhashable(str(value.kind), span)
    if value.kind == ValueKind.INT:
        return HashKey(ValueKind.INT, value.data)
    if value.kind == ValueKind.BOOL:
        return HashKey(ValueKind.BOOL, int(value.data))
    return HashKey(ValueKind.STRING, _string_digest(value.data))
