"""
Quill - a small scripting language with closures, arrays and hashes.

This package provides:
- Lexer: Tokenizes Quill source code
- Parser: Builds an AST from tokens (Pratt parsing)
- Interpreter: Evaluates the AST with lexical scoping and closures
- REPL: Interactive session with persistent bindings

Usage:
    from quill import parse, evaluate, Session

    # Parse only
    program = parse('let add = fn(a, b) { a + b }; add(1, 2)')
    print(program)              # let add = fn(a, b) { (a + b) }; add(1, 2)

    # Parse and evaluate in a fresh environment
    value = evaluate('let xs = [1, 2, 3]; len(xs) * 2')
    print(value.inspect())      # 6

    # Keep bindings between runs and capture `puts` output
    session = Session()
    session.run('let greet = fn(name) { puts("hi " + name) }')
    result = session.run('greet("ada")')
    if result.success:
        print(result.output)    # hi ada
    else:
        print(result.error_message)
"""

from .tokens import (
    Token,
    TokenType,
    SourceLocation,
    SourceSpan,
    KEYWORDS,
)

from .lexer import (
    Lexer,
    tokenize,
)

from .parser import (
    Parser,
    Precedence,
    parse,
)

from .ast import (
    # Base
    AstNode,
    AstVisitor,
    # Expressions
    Expression,
    Identifier,
    IntegerLiteral,
    StringLiteral,
    BooleanLiteral,
    PrefixExpr,
    InfixExpr,
    IfExpr,
    FunctionLiteral,
    CallExpr,
    ArrayLiteral,
    HashLiteral,
    IndexExpr,
    # Statements
    Statement,
    LetStatement,
    ReturnStatement,
    ExpressionStatement,
    Block,
    Program,
    # Utilities
    PrintVisitor,
    format_ast,
    print_ast,
)

from .errors import (
    QuillError,
    ParseError,
    LexerError,
    Diagnostic,
    ErrorSeverity,
)

from .runtime import (
    Value,
    ValueKind,
    Environment,
    OutputBuffer,
    Interpreter,
    ExecutionResult,
    Session,
    execute,
    evaluate,
)

from .config import (
    QuillConfig,
    ConfigError,
    load_config,
)

__all__ = [
    # Tokens
    "Token",
    "TokenType",
    "SourceLocation",
    "SourceSpan",
    "KEYWORDS",
    # Lexer
    "Lexer",
    "tokenize",
    # Parser
    "Parser",
    "Precedence",
    "parse",
    # AST
    "AstNode",
    "AstVisitor",
    "Expression",
    "Identifier",
    "IntegerLiteral",
    "StringLiteral",
    "BooleanLiteral",
    "PrefixExpr",
    "InfixExpr",
    "IfExpr",
    "FunctionLiteral",
    "CallExpr",
    "ArrayLiteral",
    "HashLiteral",
    "IndexExpr",
    "Statement",
    "LetStatement",
    "ReturnStatement",
    "ExpressionStatement",
    "Block",
    "Program",
    "PrintVisitor",
    "format_ast",
    "print_ast",
    # Errors
    "QuillError",
    "ParseError",
    "LexerError",
    "Diagnostic",
    "ErrorSeverity",
    # Runtime
    "Value",
    "ValueKind",
    "Environment",
    "OutputBuffer",
    "Interpreter",
    "ExecutionResult",
    "Session",
    "execute",
    "evaluate",
    # Config
    "QuillConfig",
    "ConfigError",
    "load_config",
]

__version__ = "0.1.0"
