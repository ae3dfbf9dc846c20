"""
stackcc Compiler Main Module
============================

This module provides the main compiler interface for stackcc.
It orchestrates the complete compilation process:

    Source → Lex → Parse (+ symbol resolution) → Generate → Assembly

Usage
-----
Command line:
    $ stackcc "a = 3; b = a * 2; b + 1"

Programmatic:
    >>> from stackcc import compile_source
    >>> asm = compile_source("return 1 + 2 * 3")

Compilation Pipeline
--------------------
1. **Lexical Analysis**: Convert source to tokens
2. **Parsing**: Build the AST, assigning each variable a stack slot
3. **Code Generation**: Convert the AST to x86-64 assembly

Error Handling
--------------
Compilation is all-or-nothing. The first error stops the pipeline and is
raised to the caller; no assembly is produced for a failed compilation.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

from stackcc.compiler.lexer import Lexer, Token
from stackcc.compiler.parser import Parser, DEFAULT_MAX_STATEMENTS
from stackcc.compiler.codegen import CodeGenerator
from stackcc.compiler.symbols import SymbolTable, WORD_SIZE, DEFAULT_CAPACITY
from stackcc.compiler.ast import Program

logger = logging.getLogger(__name__)


@dataclass
class CompilerOptions:
    """
    Compiler configuration options.

    Attributes:
        filename: Source name used in diagnostics
        word_size: Size in bytes of one variable slot
        max_variables: Number of variable slots reserved in the frame
        max_statements: Maximum number of top-level statements
        output_comments: Annotate the assembly with the source of each statement
    """
    filename: str = "<input>"
    word_size: int = WORD_SIZE
    max_variables: int = DEFAULT_CAPACITY
    max_statements: int = DEFAULT_MAX_STATEMENTS
    output_comments: bool = False


@dataclass
class CompilerResult:
    """
    Result of a successful compilation.

    Attributes:
        filename: Source filename
        assembly: Generated assembly code
        tokens: Tokens produced by the lexer
        program: The parsed AST
        variables: Variable name to slot offset, in allocation order
        frame_size: Bytes reserved for variable slots
    """
    filename: str = ""
    assembly: str = ""
    tokens: list[Token] = field(default_factory=list)
    program: Optional[Program] = None
    variables: dict[str, int] = field(default_factory=dict)
    frame_size: int = 0

    @property
    def token_count(self) -> int:
        return len(self.tokens)


class StackCompiler:
    """
    Compiler from the stackcc statement language to x86-64 assembly.

    Example:
        compiler = StackCompiler()
        result = compiler.compile_source("a = 2; a * 21")
        print(result.assembly)

    Attributes:
        options: Compiler configuration options
    """

    def __init__(self, options: Optional[CompilerOptions] = None):
        """
        Initialize the compiler.

        Args:
            options: Compiler configuration (uses defaults if None)
        """
        self.options = options or CompilerOptions()

    def compile_source(self, source: str, filename: Optional[str] = None) -> CompilerResult:
        """
        Compile source text to assembly.

        Args:
            source: The program text
            filename: Source name for error messages (defaults to options.filename)

        Returns:
            CompilerResult with the assembly and intermediate products

        Raises:
            CompilerError: On the first lexical, syntax, capacity or
                code generation error
        """
        filename = filename or self.options.filename
        result = CompilerResult(filename=filename)

        # Stage 1: Lexical analysis
        tokens = self._lex(source, filename)
        result.tokens = tokens

        # Stage 2: Parsing, with variables resolved into a fresh table
        symbols = SymbolTable(self.options.word_size, self.options.max_variables)
        program = self._parse(tokens, symbols, filename, source.split("\n"))
        result.program = program
        result.variables = symbols.offsets
        result.frame_size = symbols.frame_size

        # Stage 3: Code generation
        result.assembly = self._generate(program, symbols.frame_size)

        logger.debug(
            f"Compiled {filename}: {len(tokens)} tokens, "
            f"{len(program.statements)} statements, {len(symbols)} variables"
        )
        return result

    def tokenize(self, source: str, filename: Optional[str] = None) -> list[Token]:
        """Run only the lexer."""
        return self._lex(source, filename or self.options.filename)

    def parse(self, source: str, filename: Optional[str] = None) -> Program:
        """Run the lexer and parser, without code generation."""
        filename = filename or self.options.filename
        tokens = self._lex(source, filename)
        symbols = SymbolTable(self.options.word_size, self.options.max_variables)
        return self._parse(tokens, symbols, filename, source.split("\n"))

    def _lex(self, source: str, filename: str) -> list[Token]:
        """Tokenize source."""
        return Lexer(source, filename).tokenize()

    def _parse(
        self,
        tokens: list[Token],
        symbols: SymbolTable,
        filename: str,
        source_lines: list[str],
    ) -> Program:
        """Parse tokens into AST."""
        parser = Parser(symbols, filename, source_lines, self.options.max_statements)
        return parser.parse(tokens)

    def _generate(self, program: Program, frame_size: int) -> str:
        """Generate assembly from AST."""
        generator = CodeGenerator()
        return generator.generate(
            program,
            frame_size=frame_size,
            output_comments=self.options.output_comments,
        )


# =============================================================================
# Convenience Functions
# =============================================================================

def compile_source(
    source: str,
    filename: str = "<input>",
    options: Optional[CompilerOptions] = None,
) -> str:
    """
    Compile source text to x86-64 assembly.

    This is the primary high-level interface for compiling stackcc programs.

    Args:
        source: The program text
        filename: Source name for error messages
        options: Compiler configuration (uses defaults if None)

    Returns:
        Generated assembly code

    Raises:
        CompilerError: If compilation fails

    Example:
        >>> asm = compile_source("a = 1; b = 2; return a + b")
        >>> asm.splitlines()[0]
        '.intel_syntax noprefix'
    """
    compiler = StackCompiler(options)
    return compiler.compile_source(source, filename).assembly
