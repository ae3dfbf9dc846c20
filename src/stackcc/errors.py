"""
stackcc Error Hierarchy
=======================

This module defines the root of the exception hierarchy for stackcc.
All exceptions inherit from StackccError, allowing callers to catch every
toolchain error with a single except clause if desired.

Exception Hierarchy
-------------------
StackccError (base)
├── CompilerError (lexer, parser, symbol table, code generator)
│   └── see stackcc.compiler.errors
└── EmulatorError (running generated assembly)
    └── see stackcc.emulator.machine

Design Philosophy
-----------------
Each exception captures source location information (filename, line, column
and character offset) when applicable. Error messages follow this format:

    filename:line:column: error: description
        source_line_text
            ^ (pointer to error location)
    hint: suggestion for fixing (when available)
"""

from dataclasses import dataclass


# =============================================================================
# Base Exception Class
# =============================================================================

class StackccError(Exception):
    """
    Base exception for all stackcc errors.

    All exceptions in the package inherit from this class, allowing callers
    to catch every toolchain error with a single except clause:

        try:
            asm = compile_source("a = 1; a + 1")
        except StackccError as e:
            print(f"Error: {e}")
    """
    pass


# =============================================================================
# Source Location Tracking
# =============================================================================

@dataclass(frozen=True)
class SourceLocation:
    """
    Represents a location in source code for error reporting.

    The immutable (frozen) design ensures locations cannot be accidentally
    modified once attached to a token or AST node.

    Attributes:
        filename: Name of the source (or "<input>" for command-line input)
        line: Line number (1-indexed)
        column: Column number (1-indexed)
        offset: Character offset from the start of the source (0-indexed)
    """
    filename: str
    line: int
    column: int
    offset: int = 0

    def __str__(self) -> str:
        """Format as 'filename:line:column' for error messages."""
        return f"{self.filename}:{self.line}:{self.column}"
