"""
Tree-walking interpreter for Quill.

Evaluates AST nodes directly, producing runtime Values.

Early `return` travels as an ordinary result: statement and expression
evaluation hand back either a ``Value`` or a ``ReturnValue`` wrapper, and the
wrapper is passed outward untouched until a function call boundary (or the
top of the program) unwraps it.  Errors take a separate channel: they are
raised as ``quill.errors.RuntimeError`` and abort the whole evaluation.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Union

from .values import (
    Value, ValueKind, Closure, HashPair, ReturnValue,
    NIL, int_val, string_val, bool_val, array_val, hash_val,
    function_val, builtin_val, hash_key,
)
from .context import Environment, ExecutionContext, OutputBuffer, create_context
from .builtins import BuiltinRegistry, get_builtin_registry

from ..ast import (
    AstNode, Program,
    Statement, LetStatement, ReturnStatement, ExpressionStatement, Block,
    Expression, Identifier, IntegerLiteral, StringLiteral, BooleanLiteral,
    PrefixExpr, InfixExpr, IfExpr, FunctionLiteral, CallExpr,
    ArrayLiteral, HashLiteral, IndexExpr,
)
from ..errors import (
    QuillError,
    RuntimeError,
    error_undefined_identifier,
    error_type_mismatch,
    error_invalid_operator,
    error_index_out_of_range,
    error_not_indexable,
    error_not_callable,
    error_wrong_argument_count,
    error_division_by_zero,
    error_integer_overflow,
    error_call_depth_exceeded,
)
from ..parser import parse
from ..tokens import SourceSpan, TokenType, operator_symbol

logger = logging.getLogger(__name__)

INT64_MIN = -2 ** 63
INT64_MAX = 2 ** 63 - 1

Result = Union[Value, ReturnValue]


@dataclass
class ExecutionResult:
    """Result of running one piece of source text."""
    success: bool
    value: Value = NIL
    output: str = ""
    error_message: Optional[str] = None
    error: Optional[QuillError] = None


class Interpreter:
    """
    Tree-walking interpreter for Quill.

    Evaluates AST nodes by dispatching to node-specific methods.
    """

    def __init__(self, builtins: Optional[BuiltinRegistry] = None,
                 max_call_depth: Optional[int] = None):
        """
        Initialize the interpreter.

        Args:
            builtins: Registry consulted after the lexical chain (default registry if omitted)
            max_call_depth: Optional limit on nested function calls
        """
        self.builtins = builtins if builtins is not None else get_builtin_registry()
        self.max_call_depth = max_call_depth

    def evaluate(self, node: AstNode, ctx: ExecutionContext) -> Value:
        """Evaluate any node; a pending return is unwrapped to its value."""
        if isinstance(node, Program):
            return self.eval_program(node, ctx)
        if isinstance(node, Statement):
            result = self._execute_statement(node, ctx)
        else:
            result = self._evaluate(node, ctx)
        if isinstance(result, ReturnValue):
            return result.value
        return result

    def eval_program(self, program: Program, ctx: ExecutionContext) -> Value:
        """Run top-level statements; the last statement's value is the result."""
        result: Value = NIL
        for stmt in program.statements:
            outcome = self._execute_statement(stmt, ctx)
            if isinstance(outcome, ReturnValue):
                return outcome.value
            result = outcome
        return result

    # =========================================================================
    # Statements
    # =========================================================================

    def _execute_statement(self, stmt: Statement, ctx: ExecutionContext) -> Result:
        """Execute a statement."""
        if isinstance(stmt, LetStatement):
            return self._execute_let(stmt, ctx)
        elif isinstance(stmt, ReturnStatement):
            return self._execute_return(stmt, ctx)
        elif isinstance(stmt, ExpressionStatement):
            return self._evaluate(stmt.expression, ctx)
        elif isinstance(stmt, Block):
            return self._execute_block(stmt, ctx)
        else:
            raise TypeError(f"Unknown statement type: {type(stmt).__name__}")

    def _execute_let(self, stmt: LetStatement, ctx: ExecutionContext) -> Result:
        value = self._evaluate(stmt.value, ctx)
        if isinstance(value, ReturnValue):
            return value
        return ctx.set_variable(stmt.name.name, value)

    def _execute_return(self, stmt: ReturnStatement, ctx: ExecutionContext) -> ReturnValue:
        value = self._evaluate(stmt.value, ctx)
        if isinstance(value, ReturnValue):
            return value
        return ReturnValue(value)

    def _execute_block(self, block: Block, ctx: ExecutionContext) -> Result:
        """Execute a block in the active environment; a return stops it."""
        result: Result = NIL
        for stmt in block.statements:
            result = self._execute_statement(stmt, ctx)
            if isinstance(result, ReturnValue):
                return result
        return result

    # =========================================================================
    # Expressions
    # =========================================================================

    def _evaluate(self, expr: Expression, ctx: ExecutionContext) -> Result:
        """Evaluate an expression to produce a Value."""
        if isinstance(expr, IntegerLiteral):
            return int_val(expr.value)
        elif isinstance(expr, StringLiteral):
            return string_val(expr.value)
        elif isinstance(expr, BooleanLiteral):
            return bool_val(expr.value)
        elif isinstance(expr, Identifier):
            return self._eval_identifier(expr, ctx)
        elif isinstance(expr, PrefixExpr):
            return self._eval_prefix(expr, ctx)
        elif isinstance(expr, InfixExpr):
            return self._eval_infix(expr, ctx)
        elif isinstance(expr, IfExpr):
            return self._eval_if_expr(expr, ctx)
        elif isinstance(expr, FunctionLiteral):
            return function_val(Closure(expr.parameters, expr.body, ctx.environment))
        elif isinstance(expr, CallExpr):
            return self._eval_call(expr, ctx)
        elif isinstance(expr, ArrayLiteral):
            return self._eval_array_literal(expr, ctx)
        elif isinstance(expr, HashLiteral):
            return self._eval_hash_literal(expr, ctx)
        elif isinstance(expr, IndexExpr):
            return self._eval_index(expr, ctx)
        else:
            raise TypeError(f"Unknown expression type: {type(expr).__name__}")

    def _eval_identifier(self, ident: Identifier, ctx: ExecutionContext) -> Value:
        """Look up a name: lexical chain first, then builtins."""
        value = ctx.get_variable(ident.name)
        if value is not None:
            return value
        builtin = self.builtins.get_function(ident.name)
        if builtin is not None:
            return builtin_val(builtin)
        raise error_undefined_identifier(ident.name, ident.span)

    def _eval_prefix(self, op: PrefixExpr, ctx: ExecutionContext) -> Result:
        operand = self._evaluate(op.operand, ctx)
        if isinstance(operand, ReturnValue):
            return operand

        if op.operator == TokenType.BANG:
            return bool_val(not operand.is_truthy())
        if op.operator == TokenType.MINUS:
            if operand.kind != ValueKind.INT:
                raise error_invalid_operator(f"-{operand.kind}", op.span)
            return self._checked_int(-operand.data, "-", op.span)
        raise error_invalid_operator(f"{operator_symbol(op.operator)}{operand.kind}", op.span)

    def _eval_infix(self, op: InfixExpr, ctx: ExecutionContext) -> Result:
        left = self._evaluate(op.left, ctx)
        if isinstance(left, ReturnValue):
            return left
        right = self._evaluate(op.right, ctx)
        if isinstance(right, ReturnValue):
            return right

        if left.kind != right.kind:
            raise error_type_mismatch(
                str(left.kind), operator_symbol(op.operator), str(right.kind), op.span
            )

        if left.kind == ValueKind.INT:
            return self._eval_int_infix(op.operator, left.data, right.data, op.span)
        if left.kind == ValueKind.STRING:
            return self._eval_string_infix(op.operator, left.data, right.data, op.span)
        if left.kind == ValueKind.BOOL:
            return self._eval_bool_infix(op.operator, left.data, right.data, op.span)
        raise self._invalid_infix(op.operator, left.kind, op.span)

    def _invalid_infix(self, operator: TokenType, kind: ValueKind,
                       span: SourceSpan) -> RuntimeError:
        return error_invalid_operator(f"{kind} {operator_symbol(operator)} {kind}", span)

    def _checked_int(self, n: int, symbol: str, span: SourceSpan) -> Value:
        if n < INT64_MIN or n > INT64_MAX:
            raise error_integer_overflow(symbol, span)
        return int_val(n)

    def _eval_int_infix(self, operator: TokenType, a: int, b: int,
                        span: SourceSpan) -> Value:
        if operator == TokenType.PLUS:
            return self._checked_int(a + b, "+", span)
        elif operator == TokenType.MINUS:
            return self._checked_int(a - b, "-", span)
        elif operator == TokenType.STAR:
            return self._checked_int(a * b, "*", span)
        elif operator == TokenType.SLASH:
            if b == 0:
                raise error_division_by_zero(span)
            # Truncate toward zero
            quotient = abs(a) // abs(b)
            if (a < 0) != (b < 0):
                quotient = -quotient
            return self._checked_int(quotient, "/", span)
        elif operator == TokenType.EQ:
            return bool_val(a == b)
        elif operator == TokenType.NE:
            return bool_val(a != b)
        elif operator == TokenType.LT:
            return bool_val(a < b)
        elif operator == TokenType.GT:
            return bool_val(a > b)
        raise self._invalid_infix(operator, ValueKind.INT, span)

    def _eval_string_infix(self, operator: TokenType, a: str, b: str,
                           span: SourceSpan) -> Value:
        if operator == TokenType.PLUS:
            return string_val(a + b)
        elif operator == TokenType.EQ:
            return bool_val(a == b)
        elif operator == TokenType.NE:
            return bool_val(a != b)
        raise self._invalid_infix(operator, ValueKind.STRING, span)

    def _eval_bool_infix(self, operator: TokenType, a: bool, b: bool,
                         span: SourceSpan) -> Value:
        if operator == TokenType.EQ:
            return bool_val(a == b)
        elif operator == TokenType.NE:
            return bool_val(a != b)
        raise self._invalid_infix(operator, ValueKind.BOOL, span)

    def _eval_if_expr(self, if_expr: IfExpr, ctx: ExecutionContext) -> Result:
        """Only false and nil take the else branch."""
        condition = self._evaluate(if_expr.condition, ctx)
        if isinstance(condition, ReturnValue):
            return condition
        if condition.is_truthy():
            return self._execute_block(if_expr.consequence, ctx)
        if if_expr.alternative is not None:
            return self._execute_block(if_expr.alternative, ctx)
        return NIL

    def _eval_expressions(self, exprs: List[Expression],
                          ctx: ExecutionContext) -> Union[List[Value], ReturnValue]:
        """Evaluate expressions left to right, stopping at a pending return."""
        values = []
        for expr in exprs:
            value = self._evaluate(expr, ctx)
            if isinstance(value, ReturnValue):
                return value
            values.append(value)
        return values

    def _eval_call(self, call: CallExpr, ctx: ExecutionContext) -> Result:
        """Evaluate a call to a closure or builtin."""
        callee = self._evaluate(call.callee, ctx)
        if isinstance(callee, ReturnValue):
            return callee
        args = self._eval_expressions(call.arguments, ctx)
        if isinstance(args, ReturnValue):
            return args

        if callee.kind == ValueKind.FUNCTION:
            return self._call_closure(call, callee.data, args, ctx)

        if callee.kind == ValueKind.BUILTIN:
            try:
                return callee.data(ctx.output, *args)
            except RuntimeError as e:
                if not e.diagnostic.has_location:
                    e.diagnostic.span = call.span
                raise

        raise error_not_callable(str(callee.kind), call.span)

    def _call_closure(self, call: CallExpr, closure: Closure, args: List[Value],
                      ctx: ExecutionContext) -> Value:
        name = call.callee.name if isinstance(call.callee, Identifier) else "fn"
        if len(args) != len(closure.parameters):
            raise error_wrong_argument_count(name, len(closure.parameters), len(args), call.span)
        if self.max_call_depth is not None and ctx.depth >= self.max_call_depth:
            raise error_call_depth_exceeded(self.max_call_depth, call.span)

        logger.debug("call %s/%d at depth %d", name, len(args), ctx.depth + 1)
        # Parent is the defining environment, not the caller's
        with ctx.new_scope(closure.env.extend(name)) as call_env:
            for param, arg in zip(closure.parameters, args):
                call_env.set(param.name, arg)
            result = self._execute_block(closure.body, ctx)

        if isinstance(result, ReturnValue):
            return result.value
        return result

    def _eval_array_literal(self, lst: ArrayLiteral, ctx: ExecutionContext) -> Result:
        elements = self._eval_expressions(lst.elements, ctx)
        if isinstance(elements, ReturnValue):
            return elements
        return array_val(elements)

    def _eval_hash_literal(self, hsh: HashLiteral, ctx: ExecutionContext) -> Result:
        pairs = {}
        for key_expr, value_expr in hsh.pairs:
            key = self._evaluate(key_expr, ctx)
            if isinstance(key, ReturnValue):
                return key
            hk = hash_key(key, key_expr.span)
            value = self._evaluate(value_expr, ctx)
            if isinstance(value, ReturnValue):
                return value
            # Last write wins; a rewritten key moves to the end
            pairs.pop(hk, None)
            pairs[hk] = HashPair(key, value)
        return hash_val(pairs)

    def _eval_index(self, access: IndexExpr, ctx: ExecutionContext) -> Result:
        collection = self._evaluate(access.collection, ctx)
        if isinstance(collection, ReturnValue):
            return collection
        index = self._evaluate(access.index, ctx)
        if isinstance(index, ReturnValue):
            return index

        if collection.kind == ValueKind.ARRAY:
            if index.kind != ValueKind.INT:
                raise error_type_mismatch("ARRAY", "[]", str(index.kind), access.span)
            if not 0 <= index.data < len(collection.data):
                raise error_index_out_of_range(
                    index.inspect(), collection.inspect(), access.span
                )
            return collection.data[index.data]

        if collection.kind == ValueKind.HASH:
            pair = collection.data.get(hash_key(index, access.index.span))
            return pair.value if pair is not None else NIL

        raise error_not_indexable(str(collection.kind), access.span)


class Session:
    """
    A persistent evaluation session.

    Bindings made by one `run` are visible to the next, which is what the
    REPL relies on.  Each run gets a fresh output buffer.
    """

    def __init__(self, interpreter: Optional[Interpreter] = None,
                 environment: Optional[Environment] = None,
                 filename: Optional[str] = None):
        self.interpreter = interpreter if interpreter is not None else Interpreter()
        self.environment = environment if environment is not None else Environment()
        self.filename = filename

    def run(self, source: str) -> ExecutionResult:
        """
        Parse and evaluate `source` against the session environment.

        Never raises for Quill errors; they are reported in the result.
        """
        ctx = create_context(self.environment)
        try:
            program = parse(source, self.filename)
            value = self.interpreter.eval_program(program, ctx)
        except QuillError as e:
            _attach_source_line(e, source)
            logger.debug("run failed: %s", e.message)
            return ExecutionResult(
                success=False,
                output=ctx.output.getvalue(),
                error_message=e.message,
                error=e,
            )
        except RecursionError:
            error = error_call_depth_exceeded(self.interpreter.max_call_depth)
            logger.debug("run failed: host recursion limit reached")
            return ExecutionResult(
                success=False,
                output=ctx.output.getvalue(),
                error_message=error.message,
                error=error,
            )

        logger.debug("run ok: %d statements", len(program.statements))
        return ExecutionResult(success=True, value=value, output=ctx.output.getvalue())


def _attach_source_line(error: QuillError, source: str) -> None:
    diag = error.diagnostic
    if diag.source_line is None and diag.has_location:
        lines = source.splitlines()
        if diag.span.start.line <= len(lines):
            diag.source_line = lines[diag.span.start.line - 1]


# Convenience functions for simple execution

def execute(program: Program, env: Optional[Environment] = None,
            output: Optional[OutputBuffer] = None) -> Value:
    """
    Evaluate a parsed program.

    Raises:
        RuntimeError: If evaluation fails
    """
    ctx = create_context(env, output)
    return Interpreter().eval_program(program, ctx)


def evaluate(source: str) -> Value:
    """
    Parse and evaluate source text in a fresh root environment.

        from quill import evaluate

        value = evaluate('let add = fn(a, b) { a + b }; add(1, 2)')
        print(value.inspect())   # 3

    Raises:
        ParseError: If the source is malformed
        RuntimeError: If evaluation fails
    """
    return execute(parse(source))
