"""
stackcc - A Minimal Stack-Machine Compiler for x86-64
=====================================================

This package compiles a tiny statement language (integer arithmetic,
comparisons, variables, assignment and return) into x86-64 assembly for
the GNU assembler, and ships an emulator for the emitted instruction
subset.

Main Components
---------------
- **compiler**: lexer, symbol table, parser and code generator (stackcc)
    Converts a program text into a single `main` function in assembly

- **emulator**: x86-64 subset emulator
    Executes the generated assembly and reports main's return value

- **cli**: the `stackcc` command

Quick Start
-----------
Compile a program:
    >>> from stackcc import compile_source
    >>> asm = compile_source("a = 3; b = a * 2; return b + 1")

Run it on the emulator:
    >>> from stackcc.emulator import run_assembly
    >>> run_assembly(asm)
    7

Or use the command-line tool:
    $ stackcc "a = 3; b = a * 2; return b + 1" > prog.s
    $ cc -o prog prog.s && ./prog; echo $?
    7

Version History
---------------
1.0.0 - Initial release with compiler, emulator and CLI
"""

__version__ = "1.0.0"

from stackcc.errors import StackccError, SourceLocation
from stackcc.compiler import (
    StackCompiler,
    CompilerOptions,
    CompilerResult,
    CompilerError,
    compile_source,
)
from stackcc.emulator import EmulatorError, run_assembly

__all__ = [
    "__version__",
    "StackccError",
    "SourceLocation",
    "StackCompiler",
    "CompilerOptions",
    "CompilerResult",
    "CompilerError",
    "compile_source",
    "EmulatorError",
    "run_assembly",
]
