"""
Unit tests for the Quill parser.
"""

import pytest
import textwrap
from quill import (
    tokenize, parse, Parser, Lexer, ParseError, TokenType, format_ast, AstVisitor,
    # AST nodes
    Program, LetStatement, ReturnStatement, ExpressionStatement, Block,
    Identifier, IntegerLiteral, StringLiteral, BooleanLiteral,
    PrefixExpr, InfixExpr, IfExpr, FunctionLiteral, CallExpr,
    ArrayLiteral, HashLiteral, IndexExpr,
)
from quill.tokens import Token, UNKNOWN_SPAN


def parse_source(source: str) -> Program:
    """Helper to parse (dedented) source."""
    return parse(textwrap.dedent(source))


def parse_expr(source: str):
    """Helper to parse a single expression statement."""
    program = parse(source)
    assert len(program.statements) == 1
    stmt = program.statements[0]
    assert isinstance(stmt, ExpressionStatement)
    return stmt.expression


class TestStatements:
    """Test statement parsing."""

    def test_empty_program(self):
        program = parse_source("")
        assert program.statements == []

    def test_let_statement(self):
        program = parse_source("let x = 5;")
        stmt = program.statements[0]
        assert isinstance(stmt, LetStatement)
        assert stmt.name.name == "x"
        assert isinstance(stmt.value, IntegerLiteral)
        assert stmt.value.value == 5

    def test_return_statement(self):
        program = parse_source("return x + 1;")
        stmt = program.statements[0]
        assert isinstance(stmt, ReturnStatement)
        assert str(stmt.value) == "(x + 1)"

    def test_semicolons_are_optional(self):
        program = parse_source("""
            let a = 1
            let b = 2
            a + b
        """)
        assert [type(s) for s in program.statements] == [
            LetStatement, LetStatement, ExpressionStatement,
        ]

    def test_multiple_statements_on_one_line(self):
        program = parse_source("let a = 1; let b = 2; a")
        assert len(program.statements) == 3


class TestLiterals:
    """Test literal expressions."""

    def test_integer(self):
        expr = parse_expr("42")
        assert isinstance(expr, IntegerLiteral)
        assert expr.value == 42

    def test_string(self):
        expr = parse_expr('"hi there"')
        assert isinstance(expr, StringLiteral)
        assert expr.value == "hi there"

    def test_booleans(self):
        assert parse_expr("true") == BooleanLiteral(span=parse_expr("true").span, value=True)
        assert parse_expr("false").value is False

    def test_max_int_literal(self):
        assert parse_expr("9223372036854775807").value == 2 ** 63 - 1

    def test_int_literal_out_of_range(self):
        with pytest.raises(ParseError) as exc_info:
            parse("9223372036854775808")
        assert exc_info.value.code == "E104"

    def test_unconvertible_int_token(self):
        tokens = [
            Token(TokenType.INT_LITERAL, "\u00b2", "\u00b2", UNKNOWN_SPAN),
            Token(TokenType.EOF, None, "", UNKNOWN_SPAN),
        ]
        with pytest.raises(ParseError) as exc_info:
            Parser(tokens).parse_program()
        assert exc_info.value.code == "E104"

    def test_superscript_digit_is_parse_error(self):
        with pytest.raises(ParseError):
            parse("let x = \u00b2;")

    def test_array_literal(self):
        expr = parse_expr("[1, 2 * 2, x]")
        assert isinstance(expr, ArrayLiteral)
        assert [str(e) for e in expr.elements] == ["1", "(2 * 2)", "x"]

    def test_empty_array(self):
        expr = parse_expr("[]")
        assert isinstance(expr, ArrayLiteral)
        assert expr.elements == []

    def test_hash_literal(self):
        expr = parse_expr('{"one": 1, "two": 2, 3: x}')
        assert isinstance(expr, HashLiteral)
        assert [(str(k), str(v)) for k, v in expr.pairs] == [
            ('"one"', "1"), ('"two"', "2"), ("3", "x"),
        ]

    def test_empty_hash(self):
        expr = parse_expr("{}")
        assert isinstance(expr, HashLiteral)
        assert expr.pairs == []

    def test_hash_with_expression_keys(self):
        expr = parse_expr('{"a" + "b": 1 + 1}')
        key, value = expr.pairs[0]
        assert isinstance(key, InfixExpr)
        assert isinstance(value, InfixExpr)


class TestPrecedence:
    """Test operator precedence and associativity."""

    @pytest.mark.parametrize("source,expected", [
        ("-a * b", "((-a) * b)"),
        ("!-a", "(!(-a))"),
        ("a + b + c", "((a + b) + c)"),
        ("a + b - c", "((a + b) - c)"),
        ("a * b * c", "((a * b) * c)"),
        ("a * b / c", "((a * b) / c)"),
        ("a + b / c", "(a + (b / c))"),
        ("3 + 4 * 5 == 3 * 1 + 4 * 5", "((3 + (4 * 5)) == ((3 * 1) + (4 * 5)))"),
        ("5 > 4 == 3 < 4", "((5 > 4) == (3 < 4))"),
        ("5 < 4 != 3 > 4", "((5 < 4) != (3 > 4))"),
        ("1 + (2 + 3) + 4", "((1 + (2 + 3)) + 4)"),
        ("(5 + 5) * 2", "((5 + 5) * 2)"),
        ("-(5 + 5)", "(-(5 + 5))"),
        ("!(true == true)", "(!(true == true))"),
        ("a + add(b * c) + d", "((a + add((b * c))) + d)"),
        ("add(a, b, 1, 2 * 3, 4 + 5, add(6, 7 * 8))",
         "add(a, b, 1, (2 * 3), (4 + 5), add(6, (7 * 8)))"),
        ("a * [1, 2, 3, 4][b * c] * d", "((a * ([1, 2, 3, 4][(b * c)])) * d)"),
        ("add(a * b[2], b[1], 2 * [1, 2][1])",
         "add((a * (b[2])), (b[1]), (2 * ([1, 2][1])))"),
    ])
    def test_grouping(self, source, expected):
        assert str(parse(source)) == expected

    def test_multiplication_is_right_child_of_addition(self):
        expr = parse_expr("3 + 4 * 2")
        assert isinstance(expr, InfixExpr)
        assert expr.operator == TokenType.PLUS
        assert isinstance(expr.right, InfixExpr)
        assert expr.right.operator == TokenType.STAR

    def test_call_then_index_chain(self):
        expr = parse_expr("f(x)[0]")
        assert isinstance(expr, IndexExpr)
        assert isinstance(expr.collection, CallExpr)


class TestIfAndFunctions:
    """Test if expressions and function literals."""

    def test_if_without_else(self):
        expr = parse_expr("if (x < y) { x }")
        assert isinstance(expr, IfExpr)
        assert str(expr.condition) == "(x < y)"
        assert len(expr.consequence.statements) == 1
        assert expr.alternative is None

    def test_if_else(self):
        expr = parse_expr("if (x < y) { x } else { y }")
        assert isinstance(expr.alternative, Block)
        assert str(expr.alternative) == "{ y }"

    def test_multiline_if(self):
        program = parse_source("""
            if (ready) {
                let a = 1
                a + 1
            } else {
                0
            }
        """)
        expr = program.statements[0].expression
        assert len(expr.consequence.statements) == 2

    def test_function_literal(self):
        expr = parse_expr("fn(x, y) { x + y; }")
        assert isinstance(expr, FunctionLiteral)
        assert [p.name for p in expr.parameters] == ["x", "y"]
        assert str(expr.body) == "{ (x + y) }"

    @pytest.mark.parametrize("source,params", [
        ("fn() {}", []),
        ("fn(x) {}", ["x"]),
        ("fn(x, y, z) {}", ["x", "y", "z"]),
    ])
    def test_function_parameters(self, source, params):
        expr = parse_expr(source)
        assert [p.name for p in expr.parameters] == params

    def test_call_expression(self):
        expr = parse_expr("add(1, 2 * 3, 4 + 5)")
        assert isinstance(expr, CallExpr)
        assert isinstance(expr.callee, Identifier)
        assert [str(a) for a in expr.arguments] == ["1", "(2 * 3)", "(4 + 5)"]

    def test_immediately_invoked_function(self):
        expr = parse_expr("fn(x) { x }(5)")
        assert isinstance(expr, CallExpr)
        assert isinstance(expr.callee, FunctionLiteral)

    def test_prefix_node(self):
        expr = parse_expr("!ok")
        assert isinstance(expr, PrefixExpr)
        assert expr.operator == TokenType.BANG


class TestRoundTrip:
    """Rendering a parsed program and parsing it again is stable."""

    @pytest.mark.parametrize("source", [
        "let x = 1 + 2 * 3;",
        "let make = fn(x) { fn(y) { x + y } }; make(2)(3)",
        'let h = {"a": [1, 2], true: !false}; h["a"][0]',
        "if (a > b) { return a; } else { let c = -b; c }",
        r'puts("line\nbreak \"quoted\"")',
        "fn() { }",
        "f(x)[0] * -g(1, 2)",
    ])
    def test_render_then_reparse(self, source):
        first = str(parse(source))
        second = str(parse(first))
        assert first == second

    def test_string_is_requoted(self):
        assert str(parse(r'"a\tb"')) == r'"a\tb"'


class TestErrors:
    """Test parse error reporting."""

    def test_missing_let_identifier(self):
        with pytest.raises(ParseError, match="expected identifier, found INT_LITERAL '5'"):
            parse("let 5 = 1;")

    def test_missing_assign(self):
        with pytest.raises(ParseError, match="expected '=', found INT_LITERAL '1'"):
            parse("let x 1;")

    def test_no_prefix_rule(self):
        with pytest.raises(ParseError, match=r"expected expression, found '\)'"):
            parse(")")

    def test_if_requires_parenthesis(self):
        with pytest.raises(ParseError, match=r"expected '\(', found IDENTIFIER 'x'"):
            parse("if x { 1 }")

    def test_function_requires_brace(self):
        with pytest.raises(ParseError, match=r"expected '\{', found IDENTIFIER 'x'"):
            parse("fn(a) x")

    def test_unclosed_block(self):
        with pytest.raises(ParseError) as exc_info:
            parse("if (true) { 1")
        assert exc_info.value.code == "E102"
        assert "expected '}'" in exc_info.value.message

    def test_unclosed_call(self):
        with pytest.raises(ParseError, match="unexpected end of input"):
            parse("add(1, 2")

    def test_missing_hash_colon(self):
        with pytest.raises(ParseError, match="expected ':'"):
            parse('{"a" 1}')

    def test_error_has_location(self):
        with pytest.raises(ParseError) as exc_info:
            parse("let a = 1;\nlet = 2;")
        diag = exc_info.value.diagnostic
        assert diag.span.start.line == 2
        assert diag.source_line == "let = 2;"

    def test_lexer_error_aborts_parse(self):
        with pytest.raises(ParseError):
            parse("let x = 1 @ 2")


class TestTokenSources:
    """The parser pulls tokens from a lexer or any token iterable."""

    def test_parser_from_lexer(self):
        program = Parser(Lexer("1 + 2")).parse_program()
        assert str(program) == "(1 + 2)"

    def test_parser_from_token_list(self):
        tokens = tokenize("let a = [1, 2]; a[1]")
        program = Parser(tokens).parse_program()
        assert str(program) == "let a = [1, 2]; (a[1])"

    def test_token_list_without_eof(self):
        tokens = tokenize("x")[:-1]
        program = Parser(tokens).parse_program()
        assert str(program) == "x"

    def test_ast_dump(self):
        dump = format_ast(parse("let x = -1"))
        assert dump.splitlines()[0] == "Program"
        assert "LetStatement" in dump
        assert "PrefixExpr" in dump
        assert "operator: -" in dump


class TestVisitors:
    """Test visitor dispatch through AstNode.accept."""

    def test_accept_dispatches_by_node_class(self):
        class Names(AstVisitor):
            def visit_Identifier(self, node):
                return node.name

        expr = parse_expr("foo")
        assert expr.accept(Names()) == "foo"

    def test_unhandled_node_falls_back_to_generic_visit(self):
        with pytest.raises(NotImplementedError, match="IntegerLiteral"):
            parse_expr("1").accept(AstVisitor())

    def test_dump_nests_children(self):
        lines = format_ast(parse("a + 1")).splitlines()
        assert lines[0] == "Program"
        indent = {line.strip(): len(line) - len(line.lstrip()) for line in lines}
        assert indent["InfixExpr"] > indent["ExpressionStatement"] > indent["Program"]
        assert any(line.strip() == "operator: +" for line in lines)
