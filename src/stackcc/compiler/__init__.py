"""
stackcc Compiler
================

This module implements a compiler for a tiny statement language targeting
x86-64 (GNU assembler, Intel syntax). It provides:

- A lexer (tokenizer) for the source text
- A symbol table assigning each variable a stack slot
- A recursive descent parser producing an AST
- A stack-machine code generator emitting x86-64 assembly

Pipeline
--------

    Source → Lexer → Parser (+ SymbolTable) → AST → Code Generator → Assembly

Usage
-----
>>> from stackcc.compiler import compile_source
>>> asm_output = compile_source("a = 3; b = a * 2; b + 1")

Language
--------
- Statements separated by ';', optionally 'return expr'
- Integer literals and variables (one slot per distinct name)
- Operators: = == != < <= > >= + - * / and unary + -
- Parentheses for grouping

The value of the program is the value of the first executed 'return', or
else of the last statement.
"""

from stackcc.compiler.compiler import (
    StackCompiler,
    CompilerOptions,
    CompilerResult,
    compile_source,
)
from stackcc.compiler.errors import (
    CompilerError,
    LexError,
    InvalidCharacterError,
    ParseError,
    MissingTokenError,
    ExpectedNumberError,
    ExpectedVariableError,
    InternalInvariantError,
    CapacityExceededError,
)
from stackcc.compiler.lexer import Lexer, Token, TokenType, tokenize
from stackcc.compiler.symbols import SymbolTable, VariableSlot
from stackcc.compiler.parser import Parser, TokenCursor, parse_source
from stackcc.compiler.codegen import CodeGenerator
from stackcc.compiler.ast import (
    Node,
    Expression,
    Program,
    Return,
    Assign,
    BinaryOp,
    BinaryOperator,
    NumberLiteral,
    Variable,
    ASTVisitor,
    ASTPrinter,
)

__all__ = [
    # Main API
    "StackCompiler",
    "CompilerOptions",
    "CompilerResult",
    "compile_source",
    # Errors
    "CompilerError",
    "LexError",
    "InvalidCharacterError",
    "ParseError",
    "MissingTokenError",
    "ExpectedNumberError",
    "ExpectedVariableError",
    "InternalInvariantError",
    "CapacityExceededError",
    # Lexer
    "Lexer",
    "Token",
    "TokenType",
    "tokenize",
    # Symbols
    "SymbolTable",
    "VariableSlot",
    # Parser
    "Parser",
    "TokenCursor",
    "parse_source",
    # Code Generator
    "CodeGenerator",
    # AST Nodes
    "Node",
    "Expression",
    "Program",
    "Return",
    "Assign",
    "BinaryOp",
    "BinaryOperator",
    "NumberLiteral",
    "Variable",
    "ASTVisitor",
    "ASTPrinter",
]
