"""
Execution context for the Quill interpreter.

Manages the environment chain used for lexical scoping, the output sink that
builtins write to, and the current call depth.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional
from contextlib import contextmanager

from .values import Value


@dataclass(eq=False)
class Environment:
    """
    A single scope containing variable bindings.

    Environments form a chain via the `parent` field for lexical scoping.
    Closures keep a reference to the environment they were created in, so an
    environment lives as long as any function that can still reach it.
    """
    store: Dict[str, Value] = field(default_factory=dict)
    parent: Optional["Environment"] = None
    name: str = "global"  # For debugging

    def get(self, name: str) -> Optional[Value]:
        """Look up a name in this environment or its ancestors."""
        env = self
        while env is not None:
            if name in env.store:
                return env.store[name]
            env = env.parent
        return None

    def set(self, name: str, value: Value) -> Value:
        """Bind a name in this environment (shadowing any outer binding)."""
        self.store[name] = value
        return value

    def contains(self, name: str) -> bool:
        """Check if a name is bound in this environment or its ancestors."""
        env = self
        while env is not None:
            if name in env.store:
                return True
            env = env.parent
        return False

    def extend(self, name: str = "call") -> "Environment":
        """Create a child environment whose parent is this one."""
        return Environment(parent=self, name=name)

    def __repr__(self) -> str:
        depth = 0
        env = self.parent
        while env is not None:
            depth += 1
            env = env.parent
        return f"Environment({self.name!r}, names={sorted(self.store)}, depth={depth})"


class OutputBuffer:
    """Append-only text sink written by builtins such as `puts`."""

    def __init__(self):
        self._parts: List[str] = []

    def write(self, text: str) -> None:
        self._parts.append(text)

    def empty(self) -> bool:
        return not any(self._parts)

    def getvalue(self) -> str:
        return "".join(self._parts)

    def lines(self) -> List[str]:
        """Captured output split into lines (without line endings)."""
        return self.getvalue().splitlines()

    def __str__(self) -> str:
        return self.getvalue()


@dataclass
class ExecutionContext:
    """
    The state threaded through one evaluation.

    Tracks:
    - The active environment
    - The output sink
    - Current depth of nested function calls
    """
    environment: Environment = field(default_factory=Environment)
    output: OutputBuffer = field(default_factory=OutputBuffer)
    depth: int = 0

    def get_variable(self, name: str) -> Optional[Value]:
        """Look up a name in the active environment chain."""
        return self.environment.get(name)

    def set_variable(self, name: str, value: Value) -> Value:
        """Bind a name in the active environment."""
        return self.environment.set(name, value)

    @contextmanager
    def new_scope(self, env: Environment):
        """
        Context manager that makes `env` the active environment for a call.

        Usage:
            with ctx.new_scope(closure.env.extend()) as call_env:
                call_env.set("x", int_val(1))
                ...
        """
        old_env = self.environment
        self.environment = env
        self.depth += 1
        try:
            yield env
        finally:
            self.environment = old_env
            self.depth -= 1


def create_context(
    environment: Optional[Environment] = None,
    output: Optional[OutputBuffer] = None,
) -> ExecutionContext:
    """
    Create a new execution context.

    Args:
        environment: Root environment to evaluate in (fresh one if omitted)
        output: Output sink for builtins (fresh buffer if omitted)

    Returns:
        ExecutionContext ready for evaluation
    """
    return ExecutionContext(
        environment=environment if environment is not None else Environment(),
        output=output if output is not None else OutputBuffer(),
    )
