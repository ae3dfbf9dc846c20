"""
stackcc Lexer (Tokenizer)
=========================

This module implements the lexer for the stackcc statement language.
It converts source text into a list of tokens for the parser.

Token Categories
----------------
- Keywords: return
- Identifiers: variable names ([A-Za-z_][A-Za-z0-9_]*)
- Numbers: decimal integer literals
- Operators: + - * / == != < <= > >= =
- Delimiters: ( ) ;

Operators are matched with maximal munch: the two-character operators
(==, !=, <=, >=) are tried before their one-character prefixes.

Example Usage
-------------
>>> from stackcc.compiler.lexer import tokenize
>>> for token in tokenize("a = 42;"):
...     print(token)
Token(IDENTIFIER, 'a', 1:1)
Token(ASSIGN, '=', 1:3)
Token(NUMBER, 42, 1:5)
Token(SEMICOLON, ';', 1:7)
Token(EOF, 1:8)
"""

import logging
import string
from dataclasses import dataclass
from enum import Enum, auto

from stackcc.errors import SourceLocation
from stackcc.compiler.errors import LexError, InvalidCharacterError

logger = logging.getLogger(__name__)

# Largest literal that fits a signed machine word
MAX_INTEGER = 2**63 - 1


# =============================================================================
# Token Type Enumeration
# =============================================================================

class TokenType(Enum):
    """
    Token types for the statement language.

    Each reserved symbol has its own member so the parser can match on the
    type alone. Keywords are distinguished from identifiers by the lexer.
    """

    # === Structural Tokens ===
    EOF = auto()            # End of input

    # === Identifiers and Literals ===
    IDENTIFIER = auto()     # Variable names
    NUMBER = auto()         # Decimal integer literals

    # === Keywords ===
    RETURN = auto()         # return

    # === Arithmetic Operators ===
    PLUS = auto()           # +
    MINUS = auto()          # -
    STAR = auto()           # *
    SLASH = auto()          # /

    # === Comparison Operators ===
    EQ = auto()             # ==
    NE = auto()             # !=
    LT = auto()             # <
    GT = auto()             # >
    LE = auto()             # <=
    GE = auto()             # >=

    # === Assignment ===
    ASSIGN = auto()         # =

    # === Delimiters ===
    LPAREN = auto()         # (
    RPAREN = auto()         # )
    SEMICOLON = auto()      # ;


# Keyword strings and their token types
KEYWORDS: dict[str, TokenType] = {
    "return": TokenType.RETURN,
}

# Two-character operators, tried first (maximal munch)
TWO_CHAR_OPERATORS: dict[str, TokenType] = {
    "==": TokenType.EQ,
    "!=": TokenType.NE,
    "<=": TokenType.LE,
    ">=": TokenType.GE,
}

SINGLE_CHAR_TOKENS: dict[str, TokenType] = {
    "+": TokenType.PLUS,
    "-": TokenType.MINUS,
    "*": TokenType.STAR,
    "/": TokenType.SLASH,
    "(": TokenType.LPAREN,
    ")": TokenType.RPAREN,
    "<": TokenType.LT,
    ">": TokenType.GT,
    "=": TokenType.ASSIGN,
    ";": TokenType.SEMICOLON,
}


# =============================================================================
# Token Data Class
# =============================================================================

@dataclass(frozen=True)
class Token:
    """
    Represents a single token from the source.

    Attributes:
        type: The TokenType classification
        text: The literal source text covered by the token ("" for EOF)
        value: Parsed integer for NUMBER tokens, otherwise the text
        offset: Character offset of the first character (0-indexed)
        line: Line number in source (1-indexed)
        column: Column number in source (1-indexed)
        filename: Name of the source
    """
    type: TokenType
    text: str
    value: str | int | None
    offset: int
    line: int
    column: int
    filename: str = "<input>"

    def __repr__(self) -> str:
        """Format token for debugging output."""
        if self.value is not None:
            if isinstance(self.value, int):
                return f"Token({self.type.name}, {self.value}, {self.line}:{self.column})"
            return f"Token({self.type.name}, {self.value!r}, {self.line}:{self.column})"
        return f"Token({self.type.name}, {self.line}:{self.column})"

    @property
    def location(self) -> SourceLocation:
        """Return a SourceLocation for error reporting."""
        return SourceLocation(self.filename, self.line, self.column, self.offset)

    def describe(self) -> str:
        """Human-readable description used in diagnostics."""
        if self.type == TokenType.EOF:
            return "end of input"
        return f"'{self.text}'"


# =============================================================================
# Lexer Implementation
# =============================================================================

class Lexer:
    """
    Tokenizes stackcc source code.

    Usage:
        lexer = Lexer(source_text)
        tokens = lexer.tokenize()

    Attributes:
        source: The source code being tokenized
        filename: Name of the source (for error reporting)
    """

    # Characters that can start an identifier
    IDENT_START = string.ascii_letters + "_"

    # Characters that can continue an identifier
    IDENT_CHARS = string.ascii_letters + string.digits + "_"

    WHITESPACE = " \t\n\r\f\v"

    def __init__(self, source: str, filename: str = "<input>"):
        self.source = source
        self.filename = filename

        # Current position in source
        self._pos = 0
        self._line = 1
        self._column = 1

        # Track line start position for error reporting
        self._line_start_pos = 0

    def tokenize(self) -> list[Token]:
        """
        Tokenize the whole source.

        Returns:
            The token list, always terminated by an EOF token

        Raises:
            LexError: On the first character that starts no token
        """
        tokens = []
        while True:
            self._skip_whitespace()
            if self._at_end():
                break
            tokens.append(self._scan_token())

        tokens.append(self._make_token(TokenType.EOF, "", None, self._pos, self._line, self._column))
        logger.debug(f"Tokenized {self.filename}: {len(tokens)} tokens")
        return tokens

    # =========================================================================
    # Character Access Methods
    # =========================================================================

    def _at_end(self) -> bool:
        return self._pos >= len(self.source)

    def _peek(self, offset: int = 0) -> str:
        """Character at current position + offset, or '' past the end."""
        pos = self._pos + offset
        if pos >= len(self.source):
            return ""
        return self.source[pos]

    def _advance(self) -> str:
        """Consume and return the current character, tracking line/column."""
        char = self.source[self._pos]
        self._pos += 1

        if char == "\n":
            self._line += 1
            self._column = 1
            self._line_start_pos = self._pos
        else:
            self._column += 1

        return char

    def _skip_whitespace(self) -> None:
        while not self._at_end() and self._peek() in self.WHITESPACE:
            self._advance()

    # =========================================================================
    # Token Creation
    # =========================================================================

    def _make_token(
        self,
        token_type: TokenType,
        text: str,
        value: str | int | None,
        start_pos: int,
        start_line: int,
        start_column: int,
    ) -> Token:
        return Token(
            type=token_type,
            text=text,
            value=value,
            offset=start_pos,
            line=start_line,
            column=start_column,
            filename=self.filename,
        )

    # =========================================================================
    # Token Scanning
    # =========================================================================

    def _scan_token(self) -> Token:
        """Scan the next token; whitespace has already been skipped."""
        start_pos = self._pos
        start_line = self._line
        start_column = self._column

        char = self._peek()

        if char in self.IDENT_START:
            return self._scan_identifier(start_pos, start_line, start_column)

        if char in string.digits:
            return self._scan_number(start_pos, start_line, start_column)

        # Maximal munch: two-character operators first
        pair = char + self._peek(1)
        if pair in TWO_CHAR_OPERATORS:
            self._advance()
            self._advance()
            return self._make_token(
                TWO_CHAR_OPERATORS[pair], pair, pair, start_pos, start_line, start_column
            )

        if char in SINGLE_CHAR_TOKENS:
            self._advance()
            return self._make_token(
                SINGLE_CHAR_TOKENS[char], char, char, start_pos, start_line, start_column
            )

        raise InvalidCharacterError(
            char,
            SourceLocation(self.filename, start_line, start_column, start_pos),
            self._get_current_line(),
        )

    def _scan_identifier(self, start_pos: int, start_line: int, start_column: int) -> Token:
        """
        Scan an identifier or keyword.

        Identifiers start with a letter or underscore and continue with
        letters, digits, and underscores.
        """
        while self._peek() and self._peek() in self.IDENT_CHARS:
            self._advance()

        name = self.source[start_pos:self._pos]
        token_type = KEYWORDS.get(name, TokenType.IDENTIFIER)
        return self._make_token(token_type, name, name, start_pos, start_line, start_column)

    def _scan_number(self, start_pos: int, start_line: int, start_column: int) -> Token:
        """Scan a run of decimal digits."""
        while self._peek() and self._peek() in string.digits:
            self._advance()

        text = self.source[start_pos:self._pos]
        value = int(text)
        if value > MAX_INTEGER:
            raise LexError(
                f"integer literal {text} is too large",
                SourceLocation(self.filename, start_line, start_column, start_pos),
                hint=f"the largest supported literal is {MAX_INTEGER}",
                source_line=self._get_current_line(),
            )
        return self._make_token(TokenType.NUMBER, text, value, start_pos, start_line, start_column)

    # =========================================================================
    # Utility Methods
    # =========================================================================

    def _get_current_line(self) -> str:
        """Get the current line of source text for error reporting."""
        line_end = self.source.find("\n", self._line_start_pos)
        if line_end == -1:
            line_end = len(self.source)
        return self.source[self._line_start_pos:line_end]


# =============================================================================
# Convenience Functions
# =============================================================================

def tokenize(source: str, filename: str = "<input>") -> list[Token]:
    """
    Tokenize source text.

    Args:
        source: The program text
        filename: Source name for error messages

    Returns:
        List of tokens ending with an EOF token

    Raises:
        LexError: If the source contains a character that starts no token
    """
    return Lexer(source, filename).tokenize()
