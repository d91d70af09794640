"""
Token types for the Quill lexer.

Error code ranges:
- E0xx: Lexer errors
- E1xx: Parser errors
- E4xx: Runtime errors
"""

from enum import Enum, auto
from dataclasses import dataclass
from typing import Any, Optional


class TokenType(Enum):
    """All token types recognized by the lexer."""

    # --- Literals ---
    INT_LITERAL = auto()        # 42
    STRING_LITERAL = auto()     # "hello"

    # --- Identifiers ---
    IDENTIFIER = auto()         # user-defined names

    # --- Keywords ---
    LET = auto()                # let
    FN = auto()                 # fn
    IF = auto()                 # if
    ELSE = auto()               # else
    RETURN = auto()             # return
    TRUE = auto()               # true
    FALSE = auto()              # false

    # --- Operators ---
    ASSIGN = auto()             # =
    PLUS = auto()               # +
    MINUS = auto()              # -
    STAR = auto()               # *
    SLASH = auto()              # /
    BANG = auto()               # !
    LT = auto()                 # <
    GT = auto()                 # >
    EQ = auto()                 # ==
    NE = auto()                 # !=

    # --- Delimiters ---
    COMMA = auto()              # ,
    SEMICOLON = auto()          # ;
    COLON = auto()              # :
    LPAREN = auto()             # (
    RPAREN = auto()             # )
    LBRACE = auto()             # {
    RBRACE = auto()             # }
    LBRACKET = auto()           # [
    RBRACKET = auto()           # ]

    # --- Special ---
    EOF = auto()                # end of input


@dataclass(frozen=True)
class SourceLocation:
    """Represents a position in source code."""
    line: int           # 1-indexed line number
    column: int         # 1-indexed column number
    offset: int         # 0-indexed character offset from start
    filename: Optional[str] = None

    def __str__(self) -> str:
        if self.filename:
            return f"{self.filename}:{self.line}:{self.column}"
        return f"{self.line}:{self.column}"


@dataclass(frozen=True)
class SourceSpan:
    """Represents a range in source code."""
    start: SourceLocation
    end: SourceLocation

    def __str__(self) -> str:
        if self.start.filename:
            return f"{self.start.filename}:{self.start.line}:{self.start.column}-{self.end.line}:{self.end.column}"
        return f"{self.start.line}:{self.start.column}-{self.end.line}:{self.end.column}"


UNKNOWN_LOCATION = SourceLocation(0, 0, 0)
UNKNOWN_SPAN = SourceSpan(UNKNOWN_LOCATION, UNKNOWN_LOCATION)


@dataclass(frozen=True)
class Token:
    """A single token from the lexer."""
    type: TokenType
    value: Any              # The actual value (int, str, bool, ...)
    lexeme: str             # The original source text
    span: SourceSpan        # Location in source

    def __str__(self) -> str:
        if self.type in (TokenType.INT_LITERAL, TokenType.STRING_LITERAL,
                         TokenType.IDENTIFIER):
            return f"{self.type.name}({self.value!r})"
        return self.type.name


# Keyword mapping - maps string to token type
KEYWORDS: dict[str, TokenType] = {
    "let": TokenType.LET,
    "fn": TokenType.FN,
    "if": TokenType.IF,
    "else": TokenType.ELSE,
    "return": TokenType.RETURN,
    "true": TokenType.TRUE,
    "false": TokenType.FALSE,
}


# Source text of operator tokens, used when rendering AST nodes and errors
OPERATOR_SYMBOLS: dict[TokenType, str] = {
    TokenType.PLUS: "+",
    TokenType.MINUS: "-",
    TokenType.STAR: "*",
    TokenType.SLASH: "/",
    TokenType.BANG: "!",
    TokenType.LT: "<",
    TokenType.GT: ">",
    TokenType.EQ: "==",
    TokenType.NE: "!=",
}


def operator_symbol(token_type: TokenType) -> str:
    """Return the source spelling of an operator token type."""
    return OPERATOR_SYMBOLS.get(token_type, token_type.name)


def describe_token(token: Token) -> str:
    """Describe a token for 'expected X, found Y' messages."""
    if token.type == TokenType.EOF:
        return "end of input"
    if token.type in (TokenType.INT_LITERAL, TokenType.STRING_LITERAL,
                      TokenType.IDENTIFIER):
        return f"{token.type.name} '{token.lexeme}'"
    return f"'{token.lexeme}'"
