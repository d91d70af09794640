"""
Quill exceptions and diagnostics.

Error code ranges:
- E0xx: Lexer errors
- E1xx: Parser errors
- E4xx: Runtime errors

Parse failures (``ParseError`` and its ``LexerError`` subclass) and evaluation
failures (``RuntimeError``) never share a class hierarchy below ``QuillError``,
so hosts can catch one without the other.  Note that ``quill.errors.RuntimeError``
is not the Python builtin of the same name.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, List
from .tokens import SourceSpan, UNKNOWN_SPAN


class ErrorSeverity(Enum):
    """Severity levels for diagnostics."""
    ERROR = "error"
    WARNING = "warning"


@dataclass
class Diagnostic:
    """A single diagnostic message."""
    code: str                       # E001, E101, etc.
    message: str                    # Human-readable message
    severity: ErrorSeverity
    span: SourceSpan = UNKNOWN_SPAN
    source_line: Optional[str] = None   # The actual line of source code
    hints: List[str] = field(default_factory=list)

    @property
    def has_location(self) -> bool:
        return self.span.start.line > 0

    def format(self, show_source: bool = True) -> str:
        """Format the diagnostic for display."""
        parts = []

        if self.has_location:
            parts.append(f"{self.span.start}: {self.severity.value}[{self.code}]: {self.message}")
        else:
            parts.append(f"{self.severity.value}[{self.code}]: {self.message}")

        # Source line with caret
        if show_source and self.source_line is not None and self.has_location:
            parts.append("  |")
            line_num = str(self.span.start.line)
            parts.append(f"{line_num:>3} | {self.source_line}")

            col = self.span.start.column
            end_col = self.span.end.column if self.span.start.line == self.span.end.line else len(self.source_line) + 1
            underline_len = max(1, end_col - col)
            parts.append(f"    | {' ' * (col - 1)}{'^' * underline_len}")

        for hint in self.hints:
            parts.append(f"    = hint: {hint}")

        return "\n".join(parts)

    def to_json(self) -> dict:
        """Convert to JSON-serializable dict for tooling integration."""
        return {
            "code": self.code,
            "message": self.message,
            "severity": self.severity.value,
            "range": {
                "start": {
                    "line": self.span.start.line,
                    "column": self.span.start.column,
                    "offset": self.span.start.offset,
                },
                "end": {
                    "line": self.span.end.line,
                    "column": self.span.end.column,
                    "offset": self.span.end.offset,
                },
            },
            "hints": self.hints,
        }


class QuillError(Exception):
    """Base exception for Quill errors."""

    def __init__(self, diagnostic: Diagnostic):
        self.diagnostic = diagnostic
        super().__init__(diagnostic.message)

    @property
    def message(self) -> str:
        return self.diagnostic.message

    @property
    def code(self) -> str:
        return self.diagnostic.code

    def __str__(self) -> str:
        return self.diagnostic.format()


class ParseError(QuillError):
    """Structural defect in source text (E1xx)."""
    pass


class LexerError(ParseError):
    """Error during lexical analysis (E0xx)."""
    pass


class RuntimeError(QuillError):
    """Semantic defect found during evaluation (E4xx)."""
    pass


# --- Lexer error codes ---

def error_unexpected_character(char: str, span: SourceSpan, source_line: str = None) -> LexerError:
    """E001: Unexpected character."""
    diag = Diagnostic(
        code="E001",
        message=f"unexpected character '{char}'",
        severity=ErrorSeverity.ERROR,
        span=span,
        source_line=source_line,
    )
    return LexerError(diag)


def error_unterminated_string(span: SourceSpan, source_line: str = None) -> LexerError:
    """E002: Unterminated string literal."""
    diag = Diagnostic(
        code="E002",
        message="unterminated string literal",
        severity=ErrorSeverity.ERROR,
        span=span,
        source_line=source_line,
        hints=['string literals must be closed with a matching "'],
    )
    return LexerError(diag)


def error_invalid_escape_sequence(seq: str, span: SourceSpan, source_line: str = None) -> LexerError:
    """E003: Invalid escape sequence in string."""
    diag = Diagnostic(
        code="E003",
        message=f"invalid escape sequence '\\{seq}'",
        severity=ErrorSeverity.ERROR,
        span=span,
        source_line=source_line,
        hints=["valid escape sequences: \\n, \\t, \\r, \\\", \\\\"],
    )
    return LexerError(diag)


# --- Parser error codes ---

def error_unexpected_token(expected: str, found: str, span: SourceSpan,
                           source_line: str = None) -> ParseError:
    """E101: Unexpected token."""
    diag = Diagnostic(
        code="E101",
        message=f"expected {expected}, found {found}",
        severity=ErrorSeverity.ERROR,
        span=span,
        source_line=source_line,
    )
    return ParseError(diag)


def error_unexpected_eof(expected: str, span: SourceSpan) -> ParseError:
    """E102: Unexpected end of input."""
    diag = Diagnostic(
        code="E102",
        message=f"unexpected end of input, expected {expected}",
        severity=ErrorSeverity.ERROR,
        span=span,
    )
    return ParseError(diag)


def error_invalid_expression(found: str, span: SourceSpan,
                             source_line: str = None) -> ParseError:
    """E103: Token cannot start an expression."""
    diag = Diagnostic(
        code="E103",
        message=f"expected expression, found {found}",
        severity=ErrorSeverity.ERROR,
        span=span,
        source_line=source_line,
    )
    return ParseError(diag)


def error_invalid_int_literal(text: str, span: SourceSpan,
                              source_line: str = None) -> ParseError:
    """E104: Integer literal cannot be represented."""
    diag = Diagnostic(
        code="E104",
        message=f"cannot parse '{text}' as a 64-bit integer literal",
        severity=ErrorSeverity.ERROR,
        span=span,
        source_line=source_line,
    )
    return ParseError(diag)


# --- Runtime error codes ---

def _runtime_error(code: str, message: str, span: SourceSpan = None,
                   hints: List[str] = None) -> RuntimeError:
    diag = Diagnostic(
        code=code,
        message=message,
        severity=ErrorSeverity.ERROR,
        span=span or UNKNOWN_SPAN,
        hints=hints or [],
    )
    return RuntimeError(diag)


def error_undefined_identifier(name: str, span: SourceSpan = None) -> RuntimeError:
    """E401: Identifier is not bound in any scope."""
    return _runtime_error("E401", f"undefined identifier: {name}", span)


def error_type_mismatch(left: str, operator: str, right: str,
                        span: SourceSpan = None) -> RuntimeError:
    """E402: Operands of different kinds."""
    return _runtime_error("E402", f"type mismatch: {left} {operator} {right}", span)


def error_invalid_operator(description: str, span: SourceSpan = None) -> RuntimeError:
    """E403: Operator not supported for the operand kind(s)."""
    return _runtime_error("E403", f"invalid operator: {description}", span)


def error_index_out_of_range(index: str, collection: str,
                             span: SourceSpan = None) -> RuntimeError:
    """E404: Array index outside [0, length)."""
    return _runtime_error("E404", f"index {index} out of range for {collection}", span)


def error_not_indexable(kind: str, span: SourceSpan = None) -> RuntimeError:
    """E405: Index applied to a value that is not an array or hash."""
    return _runtime_error("E405", f"index operator not supported: {kind}", span)


def error_unhashable(kind: str, span: SourceSpan = None) -> RuntimeError:
    """E406: Value cannot be used as a hash key."""
    return _runtime_error(
        "E406", f"unusable as hash key: {kind}", span,
        hints=["only INT, STRING and BOOL values can be hash keys"],
    )


def error_not_callable(kind: str, span: SourceSpan = None) -> RuntimeError:
    """E407: Call applied to a non-function."""
    return _runtime_error("E407", f"not a function: {kind}", span)


def error_wrong_argument_count(name: str, expected: int, got: int,
                               span: SourceSpan = None) -> RuntimeError:
    """E408: Wrong number of arguments."""
    return _runtime_error(
        "E408", f"wrong number of arguments for {name}: expected={expected}, got={got}", span
    )


def error_wrong_argument_type(name: str, expected: str, got: str,
                              span: SourceSpan = None) -> RuntimeError:
    """E409: Argument of the wrong kind passed to a builtin."""
    return _runtime_error(
        "E409", f"argument to {name} not supported: expected={expected}, got={got}", span
    )


def error_division_by_zero(span: SourceSpan = None) -> RuntimeError:
    """E410: Integer division by zero."""
    return _runtime_error("E410", "division by zero", span)


def error_integer_overflow(operator: str, span: SourceSpan = None) -> RuntimeError:
    """E411: Result does not fit in a signed 64-bit integer."""
    return _runtime_error("E411", f"integer overflow in '{operator}'", span)


def error_call_depth_exceeded(limit: Optional[int], span: SourceSpan = None) -> RuntimeError:
    """E412: Too many nested calls."""
    if limit is None:
        return _runtime_error("E412", "maximum call depth exceeded (host stack exhausted)", span)
    return _runtime_error("E412", f"maximum call depth exceeded ({limit})", span)
