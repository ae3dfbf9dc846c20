"""
Compiler Error Hierarchy
========================

This module defines the exception hierarchy for the stackcc compiler.
All exceptions inherit from CompilerError, which itself inherits from
StackccError for consistent error handling across the package.

Exception Hierarchy
-------------------
CompilerError (base for all compiler errors)
├── LexError - character matches no token rule
│   └── InvalidCharacterError - unexpected character
├── ParseError - token stream does not match the grammar
│   ├── MissingTokenError - required symbol not found
│   ├── ExpectedNumberError - no number, variable or '(' where one is needed
│   └── ExpectedVariableError - assignment target is not a variable
├── InternalInvariantError - code generator contract violated
└── CapacityExceededError - too many variables or statements

Every error is terminal: the pipeline stops at the first one and nothing
is emitted.

Error Message Format
--------------------
All errors include source location information and follow this format:

    filename:line:column: error: description
        source_line_text
         ^ (pointer to error location)
    hint: suggestion for fixing

Example:
    <input>:1:2: error: invalid character '#'
        1#2
         ^
"""

from typing import Optional

from stackcc.errors import StackccError, SourceLocation


# =============================================================================
# Base Compiler Exception
# =============================================================================

class CompilerError(StackccError):
    """
    Base exception for all compiler errors.

    This class provides common functionality for error messages including
    source location tracking, source line context, and helpful hints.

    Attributes:
        message: The error description
        location: Where in the source the error occurred
        hint: A suggestion for fixing the error
        source_line: The actual source text of the offending line
    """

    def __init__(
        self,
        message: str,
        location: Optional[SourceLocation] = None,
        hint: Optional[str] = None,
        source_line: Optional[str] = None,
    ):
        self.message = message
        self.location = location
        self.hint = hint
        self.source_line = source_line
        super().__init__(self._format_message())

    @property
    def offset(self) -> Optional[int]:
        """Character offset of the error in the source, if known."""
        if self.location is None:
            return None
        return self.location.offset

    def _format_message(self) -> str:
        """
        Format the error message with location, source context, and hint.

            <input>:1:3: error: expected a number, found end of input
                1+
                  ^
        """
        parts = []

        # Location prefix: filename:line:column: error: message
        if self.location:
            parts.append(f"{self.location}: error: {self.message}")
        else:
            parts.append(f"error: {self.message}")

        # Source context with caret pointer
        if self.source_line is not None and self.location is not None:
            parts.append(f"    {self.source_line}")
            if self.location.column > 0:
                padding = " " * (4 + self.location.column - 1)
                parts.append(f"{padding}^")

        if self.hint:
            parts.append(f"hint: {self.hint}")

        return "\n".join(parts)


# =============================================================================
# Lexical Errors
# =============================================================================

class LexError(CompilerError):
    """
    Source text that cannot be tokenized.

    Raised by the lexer; tokenization halts at the first offending
    character.
    """
    pass


class InvalidCharacterError(LexError):
    """
    Invalid character in source code.

    Raised when the lexer encounters a character that starts no token.
    """

    def __init__(
        self,
        char: str,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.char = char
        super().__init__(
            f"invalid character {char!r}",
            location=location,
            source_line=source_line,
        )


# =============================================================================
# Syntax Errors
# =============================================================================

class ParseError(CompilerError):
    """
    Token stream does not match the grammar.

    Examples:
        - Missing closing parenthesis
        - Operator with no right operand
        - Assignment to something that is not a variable
    """
    pass


class MissingTokenError(ParseError):
    """
    Required token is missing.

    Raised when a required symbol (like ')' or ';') is not found
    where expected.
    """

    def __init__(
        self,
        expected: str,
        found: Optional[str] = None,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.expected = expected
        self.found = found

        message = f"expected {expected}"
        if found:
            message = f"{message}, found {found}"

        super().__init__(
            message,
            location=location,
            source_line=source_line,
        )


class ExpectedNumberError(ParseError):
    """
    A primary expression was required but not found.

    Raised when the parser needs a number, a variable or a parenthesized
    expression, for example after a trailing operator in "1+".
    """

    def __init__(
        self,
        found: str,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.found = found
        super().__init__(
            f"expected a number, found {found}",
            location=location,
            hint="an operand must be a number, a variable or '(' expression ')'",
            source_line=source_line,
        )


class ExpectedVariableError(ParseError):
    """
    Invalid left-hand side of assignment.

    Raised when the left side of '=' is not a plain variable.

    Examples of invalid targets:
        - 42 = x
        - (a + b) = x
    """

    def __init__(
        self,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        super().__init__(
            "expected a variable on the left side of '='",
            location=location,
            hint="only a variable name can be assigned to",
            source_line=source_line,
        )


# =============================================================================
# Code Generation and Resource Errors
# =============================================================================

class InternalInvariantError(CompilerError):
    """
    A code generation contract was violated.

    The grammar already rules these situations out, so reaching one means
    the AST was built by something other than the parser (or the parser
    has a bug). It is not a user syntax error.
    """
    pass


class CapacityExceededError(CompilerError):
    """
    A fixed compilation limit was exceeded.

    Raised when a program declares more variables than the reserved stack
    frame can hold, or contains more statements than the configured maximum.
    """

    def __init__(
        self,
        what: str,
        limit: int,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.what = what
        self.limit = limit
        super().__init__(
            f"too many {what} (limit is {limit})",
            location=location,
            source_line=source_line,
        )
