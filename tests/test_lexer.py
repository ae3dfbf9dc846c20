# =============================================================================
# test_lexer.py - Lexer Unit Tests
# =============================================================================
# Tests for the stackcc lexer/tokenizer.
#
# Test coverage includes:
#   - Numbers, identifiers and the 'return' keyword
#   - All operators, with maximal munch for two-character operators
#   - Offset, line and column tracking
#   - Error conditions (invalid characters, oversized literals)
# =============================================================================

import pytest
from stackcc.compiler.lexer import Lexer, TokenType, Token, tokenize, MAX_INTEGER
from stackcc.compiler.errors import LexError, InvalidCharacterError


# =============================================================================
# Helper Function
# =============================================================================

def token_types(source: str) -> list[TokenType]:
    """Token types of `source`, without the trailing EOF."""
    return [t.type for t in tokenize(source) if t.type != TokenType.EOF]


# =============================================================================
# Basic Token Recognition Tests
# =============================================================================

class TestBasicTokens:
    """Test basic token recognition for simple inputs."""

    def test_empty_source(self):
        """Empty source should produce only the EOF token."""
        tokens = tokenize("")
        assert len(tokens) == 1
        assert tokens[0].type == TokenType.EOF
        assert tokens[0].offset == 0

    def test_whitespace_only(self):
        """Whitespace is skipped; EOF sits at the end of input."""
        tokens = tokenize("  \t\n ")
        assert len(tokens) == 1
        assert tokens[0].offset == 5

    def test_number(self):
        tokens = tokenize("42")
        assert tokens[0].type == TokenType.NUMBER
        assert tokens[0].value == 42
        assert tokens[0].text == "42"

    def test_number_with_leading_zeros(self):
        """Literals are decimal; leading zeros do not mean octal."""
        assert tokenize("010")[0].value == 10

    def test_identifier(self):
        tokens = tokenize("counter")
        assert tokens[0].type == TokenType.IDENTIFIER
        assert tokens[0].value == "counter"

    def test_identifier_with_underscore_and_digits(self):
        tokens = tokenize("_tmp2")
        assert tokens[0].type == TokenType.IDENTIFIER
        assert tokens[0].value == "_tmp2"

    def test_digit_then_letter_splits(self):
        """A digit cannot start an identifier: '2a' is a number then a name."""
        assert token_types("2a") == [TokenType.NUMBER, TokenType.IDENTIFIER]

    def test_return_keyword(self):
        assert token_types("return") == [TokenType.RETURN]

    def test_keyword_prefix_is_identifier(self):
        """Only the exact word 'return' is a keyword."""
        tokens = tokenize("returned")
        assert tokens[0].type == TokenType.IDENTIFIER
        assert tokens[0].value == "returned"

    def test_keyword_is_case_sensitive(self):
        assert token_types("Return") == [TokenType.IDENTIFIER]

    def test_statement(self):
        assert token_types("a = 42;") == [
            TokenType.IDENTIFIER,
            TokenType.ASSIGN,
            TokenType.NUMBER,
            TokenType.SEMICOLON,
        ]


# =============================================================================
# Operator Tests
# =============================================================================

class TestOperators:
    """Test operator and delimiter recognition."""

    @pytest.mark.parametrize("text,expected", [
        ("+", TokenType.PLUS),
        ("-", TokenType.MINUS),
        ("*", TokenType.STAR),
        ("/", TokenType.SLASH),
        ("(", TokenType.LPAREN),
        (")", TokenType.RPAREN),
        ("<", TokenType.LT),
        (">", TokenType.GT),
        ("=", TokenType.ASSIGN),
        (";", TokenType.SEMICOLON),
        ("==", TokenType.EQ),
        ("!=", TokenType.NE),
        ("<=", TokenType.LE),
        (">=", TokenType.GE),
    ])
    def test_single_operator(self, text, expected):
        assert token_types(text) == [expected]

    def test_maximal_munch(self):
        """Two-character operators win over their one-character prefixes."""
        assert token_types("a<=b") == [TokenType.IDENTIFIER, TokenType.LE, TokenType.IDENTIFIER]
        assert token_types("a==b") == [TokenType.IDENTIFIER, TokenType.EQ, TokenType.IDENTIFIER]

    def test_split_operator_is_two_tokens(self):
        """Whitespace between '<' and '=' yields two tokens."""
        assert token_types("a< =b") == [
            TokenType.IDENTIFIER, TokenType.LT, TokenType.ASSIGN, TokenType.IDENTIFIER,
        ]

    def test_triple_equals(self):
        """'===' is '==' followed by '='."""
        assert token_types("===") == [TokenType.EQ, TokenType.ASSIGN]

    def test_expression_without_spaces(self):
        assert token_types("1+2*3") == [
            TokenType.NUMBER, TokenType.PLUS, TokenType.NUMBER,
            TokenType.STAR, TokenType.NUMBER,
        ]


# =============================================================================
# Position Tracking Tests
# =============================================================================

class TestPositions:
    """Test offset, line and column tracking."""

    def test_offsets(self):
        tokens = tokenize("12 + ab")
        assert [t.offset for t in tokens] == [0, 3, 5, 7]

    def test_line_and_column(self):
        tokens = tokenize("a;\n  b")
        b = tokens[2]
        assert b.value == "b"
        assert b.line == 2
        assert b.column == 3
        assert b.offset == 5

    def test_location(self):
        token = Lexer("x", "prog.txt").tokenize()[0]
        location = token.location
        assert str(location) == "prog.txt:1:1"
        assert location.offset == 0

    def test_eof_position(self):
        tokens = tokenize("1+2")
        assert tokens[-1].type == TokenType.EOF
        assert tokens[-1].offset == 3
        assert tokens[-1].column == 4

    def test_describe(self):
        tokens = tokenize("+")
        assert tokens[0].describe() == "'+'"
        assert tokens[1].describe() == "end of input"

    def test_repr(self):
        tokens = tokenize("a 7")
        assert repr(tokens[0]) == "Token(IDENTIFIER, 'a', 1:1)"
        assert repr(tokens[1]) == "Token(NUMBER, 7, 1:3)"
        assert repr(tokens[2]) == "Token(EOF, 1:4)"


# =============================================================================
# Error Tests
# =============================================================================

class TestLexErrors:
    """Test lexical error reporting."""

    def test_invalid_character(self):
        with pytest.raises(InvalidCharacterError) as exc_info:
            tokenize("1#2")
        error = exc_info.value
        assert error.char == "#"
        assert error.offset == 1
        assert error.location.column == 2

    def test_invalid_character_diagnostic(self):
        with pytest.raises(InvalidCharacterError) as exc_info:
            tokenize("1#2")
        assert str(exc_info.value).splitlines() == [
            "<input>:1:2: error: invalid character '#'",
            "    1#2",
            "     ^",
        ]

    def test_control_character_is_escaped_in_message(self):
        with pytest.raises(InvalidCharacterError) as exc_info:
            tokenize("1;\x1c2")
        error = exc_info.value
        assert error.char == "\x1c"
        assert error.offset == 2
        assert error.message == "invalid character '\\x1c'"
        assert str(error).split("\n")[0] == "<input>:1:3: error: invalid character '\\x1c'"

    def test_lone_bang_is_invalid(self):
        """'!' is only valid as part of '!='."""
        with pytest.raises(InvalidCharacterError) as exc_info:
            tokenize("1 ! 2")
        assert exc_info.value.offset == 2

    def test_invalid_character_on_second_line(self):
        with pytest.raises(InvalidCharacterError) as exc_info:
            tokenize("a = 1;\nb = $")
        error = exc_info.value
        assert error.location.line == 2
        assert error.source_line == "b = $"
        assert error.offset == 11

    def test_largest_literal(self):
        assert tokenize(str(MAX_INTEGER))[0].value == MAX_INTEGER

    def test_literal_too_large(self):
        with pytest.raises(LexError) as exc_info:
            tokenize("x = 9223372036854775808")
        assert exc_info.value.offset == 4
        assert "too large" in str(exc_info.value)

    def test_lex_error_is_compiler_error(self):
        from stackcc.compiler.errors import CompilerError
        from stackcc.errors import StackccError

        with pytest.raises(CompilerError):
            tokenize("@")
        with pytest.raises(StackccError):
            tokenize("@")
