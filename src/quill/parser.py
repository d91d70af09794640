"""
Pratt parser for Quill.

Converts a token stream into an Abstract Syntax Tree (AST).

The parser holds the current token plus a one-token lookahead pulled from a
token source (a ``Lexer`` or any iterable of tokens).  Every token kind that can
start an expression has a prefix rule; every token kind that can continue one
has an infix rule and a binding strength:

    Lowest:  == !=
             < >
             + -
             * /
             unary - !
    Highest: call f(x), index xs[i]

Parsing is not error-recovering: the first structural problem raises a
``ParseError`` and no partial tree is returned.
"""

import logging
from enum import IntEnum
from typing import Callable, Dict, Iterable, Iterator, List, Optional, Union

from .tokens import Token, TokenType, SourceSpan, UNKNOWN_SPAN, describe_token
from .lexer import Lexer
from .ast import (
    # Expressions
    Expression, Identifier, IntegerLiteral, StringLiteral, BooleanLiteral,
    PrefixExpr, InfixExpr, IfExpr, FunctionLiteral, CallExpr,
    ArrayLiteral, HashLiteral, IndexExpr,
    # Statements
    Statement, LetStatement, ReturnStatement, ExpressionStatement, Block,
    Program,
)
from .errors import (
    error_unexpected_token,
    error_unexpected_eof,
    error_invalid_expression,
    error_invalid_int_literal,
)

logger = logging.getLogger(__name__)

INT64_MAX = 2 ** 63 - 1


class Precedence(IntEnum):
    """Binding strength of operators (higher binds tighter)."""
    LOWEST = 1
    EQUALS = 2          # == !=
    LESSGREATER = 3     # < >
    SUM = 4             # + -
    PRODUCT = 5         # * /
    PREFIX = 6          # -x !x
    CALL = 7            # f(x) xs[i]


PRECEDENCES: Dict[TokenType, Precedence] = {
    TokenType.EQ: Precedence.EQUALS,
    TokenType.NE: Precedence.EQUALS,
    TokenType.LT: Precedence.LESSGREATER,
    TokenType.GT: Precedence.LESSGREATER,
    TokenType.PLUS: Precedence.SUM,
    TokenType.MINUS: Precedence.SUM,
    TokenType.STAR: Precedence.PRODUCT,
    TokenType.SLASH: Precedence.PRODUCT,
    TokenType.LPAREN: Precedence.CALL,
    TokenType.LBRACKET: Precedence.CALL,
}

# How token kinds are named in "expected X" messages
_EXPECTED_NAMES: Dict[TokenType, str] = {
    TokenType.IDENTIFIER: "identifier",
    TokenType.ASSIGN: "'='",
    TokenType.COLON: "':'",
    TokenType.COMMA: "','",
    TokenType.LPAREN: "'('",
    TokenType.RPAREN: "')'",
    TokenType.LBRACE: "'{'",
    TokenType.RBRACE: "'}'",
    TokenType.RBRACKET: "']'",
}


class _TokenStream:
    """Adapts an iterable of tokens to the pull-based token source contract.

    Once the iterable is exhausted the final EOF token is returned forever.
    """

    def __init__(self, tokens: Iterable[Token]):
        self._iter: Iterator[Token] = iter(tokens)
        self._eof: Optional[Token] = None

    def next_token(self) -> Token:
        if self._eof is not None:
            return self._eof
        token = next(self._iter, None)
        if token is None:
            token = Token(TokenType.EOF, None, "", UNKNOWN_SPAN)
        if token.type == TokenType.EOF:
            self._eof = token
        return token


class Parser:
    """
    Pratt parser for Quill.

    Usage:
        parser = Parser(Lexer(source))
        program = parser.parse_program()
    """

    def __init__(self, token_source: Union[Lexer, Iterable[Token]]):
        if isinstance(token_source, Lexer):
            self.lexer: Optional[Lexer] = token_source
            self._source = token_source
        else:
            self.lexer = None
            self._source = _TokenStream(token_source)

        self.prefix_rules: Dict[TokenType, Callable[[], Expression]] = {
            TokenType.IDENTIFIER: self._parse_identifier,
            TokenType.INT_LITERAL: self._parse_integer_literal,
            TokenType.STRING_LITERAL: self._parse_string_literal,
            TokenType.TRUE: self._parse_boolean_literal,
            TokenType.FALSE: self._parse_boolean_literal,
            TokenType.MINUS: self._parse_prefix_expr,
            TokenType.BANG: self._parse_prefix_expr,
            TokenType.LPAREN: self._parse_grouped_expr,
            TokenType.IF: self._parse_if_expr,
            TokenType.FN: self._parse_function_literal,
            TokenType.LBRACKET: self._parse_array_literal,
            TokenType.LBRACE: self._parse_hash_literal,
        }
        self.infix_rules: Dict[TokenType, Callable[[Expression], Expression]] = {
            TokenType.EQ: self._parse_infix_expr,
            TokenType.NE: self._parse_infix_expr,
            TokenType.LT: self._parse_infix_expr,
            TokenType.GT: self._parse_infix_expr,
            TokenType.PLUS: self._parse_infix_expr,
            TokenType.MINUS: self._parse_infix_expr,
            TokenType.STAR: self._parse_infix_expr,
            TokenType.SLASH: self._parse_infix_expr,
            TokenType.LPAREN: self._parse_call_expr,
            TokenType.LBRACKET: self._parse_index_expr,
        }

        # Prime current and lookahead tokens
        self.cur: Token = self._source.next_token()
        self.peek: Token = self._source.next_token()

    # =========================================================================
    # Token Navigation
    # =========================================================================

    def _advance(self) -> Token:
        """Shift the lookahead into the current slot and pull a new lookahead."""
        self.cur = self.peek
        self.peek = self._source.next_token()
        return self.cur

    def _check(self, token_type: TokenType) -> bool:
        return self.cur.type == token_type

    def _check_peek(self, token_type: TokenType) -> bool:
        return self.peek.type == token_type

    def _expect_peek(self, token_type: TokenType) -> Token:
        """Advance if the lookahead has the given type, otherwise raise."""
        if self.peek.type == token_type:
            return self._advance()
        self._error(self.peek, _EXPECTED_NAMES.get(token_type, token_type.name))

    def _peek_precedence(self) -> Precedence:
        return PRECEDENCES.get(self.peek.type, Precedence.LOWEST)

    def _cur_precedence(self) -> Precedence:
        return PRECEDENCES.get(self.cur.type, Precedence.LOWEST)

    def _source_line(self, token: Token) -> Optional[str]:
        if self.lexer is None:
            return None
        return self.lexer.get_source_line(token.span.start.line)

    def _error(self, token: Token, expected: str) -> None:
        """Raise a parser error for ``token``."""
        if token.type == TokenType.EOF:
            raise error_unexpected_eof(expected, token.span)
        raise error_unexpected_token(
            expected, describe_token(token), token.span, self._source_line(token)
        )

    def _span_from(self, start: Token) -> SourceSpan:
        """Span from the start token to the end of the current token."""
        return SourceSpan(start.span.start, self.cur.span.end)

    # =========================================================================
    # Expression Parsing
    # =========================================================================

    def parse_expression(self, precedence: Precedence = Precedence.LOWEST) -> Expression:
        """Parse an expression whose operators bind tighter than ``precedence``."""
        prefix = self.prefix_rules.get(self.cur.type)
        if prefix is None:
            if self.cur.type == TokenType.EOF:
                raise error_unexpected_eof("expression", self.cur.span)
            raise error_invalid_expression(
                describe_token(self.cur), self.cur.span, self._source_line(self.cur)
            )
        left = prefix()

        while not self._check_peek(TokenType.SEMICOLON) and precedence < self._peek_precedence():
            infix = self.infix_rules.get(self.peek.type)
            if infix is None:
                return left
            self._advance()
            left = infix(left)

        return left

    def _parse_identifier(self) -> Identifier:
        return Identifier(span=self.cur.span, name=self.cur.value)

    def _parse_integer_literal(self) -> IntegerLiteral:
        token = self.cur
        try:
            value = int(token.lexeme)
        except ValueError:
            value = None
        if value is None or value > INT64_MAX:
            raise error_invalid_int_literal(token.lexeme, token.span, self._source_line(token))
        return IntegerLiteral(span=token.span, value=value)

    def _parse_string_literal(self) -> StringLiteral:
        return StringLiteral(span=self.cur.span, value=self.cur.value)

    def _parse_boolean_literal(self) -> BooleanLiteral:
        return BooleanLiteral(span=self.cur.span, value=self._check(TokenType.TRUE))

    def _parse_prefix_expr(self) -> PrefixExpr:
        start = self.cur
        self._advance()
        operand = self.parse_expression(Precedence.PREFIX)
        return PrefixExpr(span=self._span_from(start), operator=start.type, operand=operand)

    def _parse_infix_expr(self, left: Expression) -> InfixExpr:
        operator = self.cur.type
        precedence = self._cur_precedence()
        self._advance()
        right = self.parse_expression(precedence)
        span = SourceSpan(left.span.start, self.cur.span.end)
        return InfixExpr(span=span, left=left, operator=operator, right=right)

    def _parse_grouped_expr(self) -> Expression:
        """Parse ``( expr )``; grouping leaves no node of its own."""
        self._advance()  # consume '('
        expr = self.parse_expression(Precedence.LOWEST)
        self._expect_peek(TokenType.RPAREN)
        return expr

    def _parse_if_expr(self) -> IfExpr:
        """Parse ``if (cond) { ... } else { ... }``."""
        start = self.cur
        self._expect_peek(TokenType.LPAREN)
        self._advance()
        condition = self.parse_expression(Precedence.LOWEST)
        self._expect_peek(TokenType.RPAREN)

        self._expect_peek(TokenType.LBRACE)
        consequence = self._parse_block()

        alternative = None
        if self._check_peek(TokenType.ELSE):
            self._advance()
            self._expect_peek(TokenType.LBRACE)
            alternative = self._parse_block()

        return IfExpr(
            span=self._span_from(start),
            condition=condition,
            consequence=consequence,
            alternative=alternative,
        )

    def _parse_function_literal(self) -> FunctionLiteral:
        """Parse ``fn(a, b) { ... }``."""
        start = self.cur
        self._expect_peek(TokenType.LPAREN)
        parameters = self._parse_parameters()
        self._expect_peek(TokenType.LBRACE)
        body = self._parse_block()
        return FunctionLiteral(span=self._span_from(start), parameters=parameters, body=body)

    def _parse_parameters(self) -> List[Identifier]:
        parameters: List[Identifier] = []
        if self._check_peek(TokenType.RPAREN):
            self._advance()
            return parameters

        token = self._expect_peek(TokenType.IDENTIFIER)
        parameters.append(Identifier(span=token.span, name=token.value))
        while self._check_peek(TokenType.COMMA):
            self._advance()
            token = self._expect_peek(TokenType.IDENTIFIER)
            parameters.append(Identifier(span=token.span, name=token.value))

        self._expect_peek(TokenType.RPAREN)
        return parameters

    def _parse_expression_list(self, end: TokenType) -> List[Expression]:
        """Parse comma-separated expressions up to the ``end`` delimiter."""
        items: List[Expression] = []
        if self._check_peek(end):
            self._advance()
            return items

        self._advance()
        items.append(self.parse_expression(Precedence.LOWEST))
        while self._check_peek(TokenType.COMMA):
            self._advance()
            self._advance()
            items.append(self.parse_expression(Precedence.LOWEST))

        self._expect_peek(end)
        return items

    def _parse_call_expr(self, callee: Expression) -> CallExpr:
        arguments = self._parse_expression_list(TokenType.RPAREN)
        span = SourceSpan(callee.span.start, self.cur.span.end)
        return CallExpr(span=span, callee=callee, arguments=arguments)

    def _parse_index_expr(self, collection: Expression) -> IndexExpr:
        self._advance()  # consume '['
        index = self.parse_expression(Precedence.LOWEST)
        self._expect_peek(TokenType.RBRACKET)
        span = SourceSpan(collection.span.start, self.cur.span.end)
        return IndexExpr(span=span, collection=collection, index=index)

    def _parse_array_literal(self) -> ArrayLiteral:
        start = self.cur
        elements = self._parse_expression_list(TokenType.RBRACKET)
        return ArrayLiteral(span=self._span_from(start), elements=elements)

    def _parse_hash_literal(self) -> HashLiteral:
        """Parse ``{ key: value, ... }``; keys are arbitrary expressions."""
        start = self.cur
        pairs = []
        while not self._check_peek(TokenType.RBRACE):
            self._advance()
            key = self.parse_expression(Precedence.LOWEST)
            self._expect_peek(TokenType.COLON)
            self._advance()
            value = self.parse_expression(Precedence.LOWEST)
            pairs.append((key, value))
            if not self._check_peek(TokenType.RBRACE):
                self._expect_peek(TokenType.COMMA)

        self._expect_peek(TokenType.RBRACE)
        return HashLiteral(span=self._span_from(start), pairs=pairs)

    # =========================================================================
    # Statement Parsing
    # =========================================================================

    def _parse_statement(self) -> Statement:
        """Parse a statement; the current token is left on its last token."""
        if self._check(TokenType.LET):
            statement = self._parse_let_statement()
        elif self._check(TokenType.RETURN):
            statement = self._parse_return_statement()
        else:
            statement = self._parse_expression_statement()

        # Terminator is optional
        if self._check_peek(TokenType.SEMICOLON):
            self._advance()
        return statement

    def _parse_let_statement(self) -> LetStatement:
        start = self.cur
        token = self._expect_peek(TokenType.IDENTIFIER)
        name = Identifier(span=token.span, name=token.value)
        self._expect_peek(TokenType.ASSIGN)
        self._advance()
        value = self.parse_expression(Precedence.LOWEST)
        return LetStatement(span=self._span_from(start), name=name, value=value)

    def _parse_return_statement(self) -> ReturnStatement:
        start = self.cur
        self._advance()
        value = self.parse_expression(Precedence.LOWEST)
        return ReturnStatement(span=self._span_from(start), value=value)

    def _parse_expression_statement(self) -> ExpressionStatement:
        start = self.cur
        expression = self.parse_expression(Precedence.LOWEST)
        return ExpressionStatement(span=self._span_from(start), expression=expression)

    def _parse_block(self) -> Block:
        """Parse statements after '{' up to the matching '}'."""
        start = self.cur
        self._advance()  # consume '{'

        statements: List[Statement] = []
        while not self._check(TokenType.RBRACE):
            if self._check(TokenType.EOF):
                raise error_unexpected_eof("'}'", self.cur.span)
            statements.append(self._parse_statement())
            self._advance()

        return Block(span=self._span_from(start), statements=statements)

    def parse_program(self) -> Program:
        """Parse the whole token stream into a program."""
        start = self.cur
        statements: List[Statement] = []
        while not self._check(TokenType.EOF):
            statements.append(self._parse_statement())
            self._advance()

        end = self.cur.span.end
        span = SourceSpan(start.span.start, end)
        logger.debug("parsed %d top-level statements", len(statements))
        return Program(span=span, statements=statements)


def parse(source: str, filename: Optional[str] = None) -> Program:
    """
    Convenience function to parse source text into a program.

    Args:
        source: The source code to parse
        filename: Optional filename for error messages

    Returns:
        Parsed Program AST

    Raises:
        ParseError: If lexing or parsing fails
    """
    parser = Parser(Lexer(source, filename))
    return parser.parse_program()
