"""
stackcc Recursive Descent Parser
================================

This module implements a recursive descent parser for the stackcc
statement language. It takes the token list from the lexer and builds
a Program AST, resolving variables through the symbol table as it goes.

Grammar (EBNF)
--------------
program     ::= ( statement? ';' )* statement?
statement   ::= 'return' expr | expr
expr        ::= assign
assign      ::= equality ( '=' assign )?
equality    ::= relational ( ('==' | '!=') relational )*
relational  ::= add ( ('<' | '<=' | '>' | '>=') add )*
add         ::= mul ( ('+' | '-') mul )*
mul         ::= unary ( ('*' | '/') unary )*
unary       ::= ('+' | '-')? primary
primary     ::= '(' expr ')' | NUMBER | IDENTIFIER

Expression Precedence (lowest to highest)
-----------------------------------------
1. assignment     =   (right-associative)
2. equality       == !=
3. relational     < <= > >=
4. additive       + -
5. multiplicative * /
6. unary          + -
7. primary        NUMBER, IDENTIFIER, '(' expr ')'

Rewrites
--------
- '-x' becomes (0 - x); '+x' is just x.
- 'x > y' becomes (y < x) and 'x >= y' becomes (y <= x).

Statements are separated by ';'. A trailing ';' and empty statements are
allowed. Parsing stops at the first error; there is no recovery.

Example Usage
-------------
>>> from stackcc.compiler.parser import parse_source
>>> program = parse_source("a = 2; a * 3")
>>> len(program.statements)
2
"""

import logging
from typing import Callable, Optional

from stackcc.compiler.lexer import Token, TokenType, tokenize
from stackcc.compiler.symbols import SymbolTable
from stackcc.compiler.ast import (
    Program,
    Statement,
    Expression,
    Return,
    Assign,
    BinaryOp,
    BinaryOperator,
    NumberLiteral,
    Variable,
)
from stackcc.compiler.errors import (
    CapacityExceededError,
    ExpectedNumberError,
    ExpectedVariableError,
    MissingTokenError,
)

logger = logging.getLogger(__name__)

# Default limit on top-level statements per program
DEFAULT_MAX_STATEMENTS = 100


# =============================================================================
# Token Cursor
# =============================================================================

class TokenCursor:
    """
    Read position into an immutable token list.

    The cursor is the only parsing state that moves. It is handed to every
    parsing method explicitly, so each grammar rule can be exercised on its
    own cursor in isolation.

    Attributes:
        tokens: Token list ending with an EOF token
        pos: Index of the current token
    """

    def __init__(self, tokens: list[Token], pos: int = 0):
        if not tokens or tokens[-1].type != TokenType.EOF:
            raise ValueError("token list must end with an EOF token")
        self.tokens = tokens
        self.pos = pos

    def peek(self, offset: int = 0) -> Token:
        """Look at the token at current position + offset (EOF past the end)."""
        index = self.pos + offset
        if index >= len(self.tokens):
            return self.tokens[-1]
        return self.tokens[index]

    def at_end(self) -> bool:
        return self.peek().type == TokenType.EOF

    def advance(self) -> Token:
        """Consume and return the current token. EOF is never consumed."""
        token = self.peek()
        if not self.at_end():
            self.pos += 1
        return token

    def check(self, *types: TokenType) -> bool:
        return self.peek().type in types

    def match(self, *types: TokenType) -> Optional[Token]:
        """Consume the current token if it is one of `types`."""
        if self.check(*types):
            return self.advance()
        return None


# =============================================================================
# Parser
# =============================================================================

class Parser:
    """
    Recursive descent parser for stackcc.

    The parser owns the symbol table for the compilation; every identifier
    it meets is resolved (or allocated) immediately, so Variable nodes
    leave the parser with their slot offsets filled in.

    Attributes:
        symbols: The variable symbol table
        filename: Source name for error reporting
        source_lines: Source lines for error context
        max_statements: Limit on top-level statements
    """

    def __init__(
        self,
        symbols: Optional[SymbolTable] = None,
        filename: str = "<input>",
        source_lines: Optional[list[str]] = None,
        max_statements: int = DEFAULT_MAX_STATEMENTS,
    ):
        self.symbols = symbols if symbols is not None else SymbolTable()
        self.filename = filename
        self.source_lines = source_lines or []
        self.max_statements = max_statements

    def parse(self, tokens: list[Token]) -> Program:
        """
        Parse a complete token list into a Program.

        Raises:
            ParseError: On the first grammar violation
            CapacityExceededError: If a limit is exceeded
        """
        cursor = TokenCursor(tokens)
        program = self.parse_program(cursor)
        logger.debug(
            f"Parsed {len(program.statements)} statements, "
            f"{len(self.symbols)} variables"
        )
        return program

    # =========================================================================
    # Error Helpers
    # =========================================================================

    def _get_source_line(self, line: int) -> Optional[str]:
        if 0 < line <= len(self.source_lines):
            return self.source_lines[line - 1]
        return None

    def _expect(self, cursor: TokenCursor, token_type: TokenType, description: str) -> Token:
        """
        Consume a token of `token_type` or fail.

        Raises:
            MissingTokenError: If the current token has another type
        """
        token = cursor.match(token_type)
        if token is not None:
            return token

        current = cursor.peek()
        raise MissingTokenError(
            description,
            found=current.describe(),
            location=current.location,
            source_line=self._get_source_line(current.line),
        )

    # =========================================================================
    # Statements
    # =========================================================================

    def parse_program(self, cursor: TokenCursor) -> Program:
        """program ::= ( statement? ';' )* statement?"""
        location = cursor.peek().location
        statements: list[Statement] = []

        while not cursor.at_end():
            if cursor.match(TokenType.SEMICOLON):
                continue

            start = cursor.peek()
            if len(statements) >= self.max_statements:
                raise CapacityExceededError(
                    "statements",
                    self.max_statements,
                    location=start.location,
                    source_line=self._get_source_line(start.line),
                )
            statements.append(self.parse_statement(cursor))

            if not cursor.at_end():
                self._expect(cursor, TokenType.SEMICOLON, "';'")

        return Program(statements=statements, location=location)

    def parse_statement(self, cursor: TokenCursor) -> Statement:
        """statement ::= 'return' expr | expr"""
        keyword = cursor.match(TokenType.RETURN)
        if keyword is not None:
            value = self.parse_expression(cursor)
            return Return(value, location=keyword.location)
        return self.parse_expression(cursor)

    # =========================================================================
    # Expression Parsing (Operator Precedence)
    # =========================================================================

    def parse_expression(self, cursor: TokenCursor) -> Expression:
        """expr ::= assign"""
        return self._parse_assign(cursor)

    def _parse_assign(self, cursor: TokenCursor) -> Expression:
        """assign ::= equality ('=' assign)?  (right-associative)"""
        expr = self._parse_equality(cursor)

        if cursor.match(TokenType.ASSIGN):
            if not isinstance(expr, Variable):
                raise ExpectedVariableError(
                    location=expr.location,
                    source_line=self._get_source_line(expr.location.line) if expr.location else None,
                )
            value = self._parse_assign(cursor)
            return Assign(expr, value, location=expr.location)

        return expr

    def _parse_equality(self, cursor: TokenCursor) -> Expression:
        """equality ::= relational (('==' | '!=') relational)*"""
        return self._parse_binary(
            cursor,
            self._parse_relational,
            {
                TokenType.EQ: BinaryOperator.EQ,
                TokenType.NE: BinaryOperator.NE,
            },
        )

    def _parse_relational(self, cursor: TokenCursor) -> Expression:
        """
        relational ::= add (('<' | '<=' | '>' | '>=') add)*

        '>' and '>=' build LT / LE nodes with the operands swapped, so
        'x > y' and 'y < x' produce the same tree.
        """
        expr = self._parse_add(cursor)

        while True:
            if cursor.match(TokenType.LT):
                expr = BinaryOp(BinaryOperator.LT, expr, self._parse_add(cursor), location=expr.location)
            elif cursor.match(TokenType.LE):
                expr = BinaryOp(BinaryOperator.LE, expr, self._parse_add(cursor), location=expr.location)
            elif cursor.match(TokenType.GT):
                expr = BinaryOp(BinaryOperator.LT, self._parse_add(cursor), expr, location=expr.location)
            elif cursor.match(TokenType.GE):
                expr = BinaryOp(BinaryOperator.LE, self._parse_add(cursor), expr, location=expr.location)
            else:
                return expr

    def _parse_add(self, cursor: TokenCursor) -> Expression:
        """add ::= mul (('+' | '-') mul)*"""
        return self._parse_binary(
            cursor,
            self._parse_mul,
            {
                TokenType.PLUS: BinaryOperator.ADD,
                TokenType.MINUS: BinaryOperator.SUB,
            },
        )

    def _parse_mul(self, cursor: TokenCursor) -> Expression:
        """mul ::= unary (('*' | '/') unary)*"""
        return self._parse_binary(
            cursor,
            self._parse_unary,
            {
                TokenType.STAR: BinaryOperator.MUL,
                TokenType.SLASH: BinaryOperator.DIV,
            },
        )

    def _parse_binary(
        self,
        cursor: TokenCursor,
        operand_parser: Callable[[TokenCursor], Expression],
        operators: dict[TokenType, BinaryOperator],
    ) -> Expression:
        """
        Generic left-associative binary expression parser.

        Args:
            cursor: Token cursor
            operand_parser: Parser for the next-higher precedence level
            operators: Map of token types to binary operators
        """
        expr = operand_parser(cursor)

        while cursor.peek().type in operators:
            op_token = cursor.advance()
            right = operand_parser(cursor)
            expr = BinaryOp(operators[op_token.type], expr, right, location=expr.location)

        return expr

    def _parse_unary(self, cursor: TokenCursor) -> Expression:
        """unary ::= ('+' | '-')? primary"""
        if cursor.match(TokenType.PLUS):
            return self._parse_primary(cursor)

        minus = cursor.match(TokenType.MINUS)
        if minus is not None:
            operand = self._parse_primary(cursor)
            return BinaryOp(
                BinaryOperator.SUB,
                NumberLiteral(0, location=minus.location),
                operand,
                location=minus.location,
            )

        return self._parse_primary(cursor)

    def _parse_primary(self, cursor: TokenCursor) -> Expression:
        """primary ::= '(' expr ')' | NUMBER | IDENTIFIER"""
        token = cursor.peek()

        if cursor.match(TokenType.LPAREN):
            expr = self.parse_expression(cursor)
            self._expect(cursor, TokenType.RPAREN, "')'")
            return expr

        if cursor.match(TokenType.NUMBER):
            return NumberLiteral(token.value, location=token.location)

        if cursor.match(TokenType.IDENTIFIER):
            offset = self.symbols.resolve_or_allocate(
                token.value,
                location=token.location,
                source_line=self._get_source_line(token.line),
            )
            return Variable(token.value, offset, location=token.location)

        raise ExpectedNumberError(
            token.describe(),
            location=token.location,
            source_line=self._get_source_line(token.line),
        )


# =============================================================================
# Convenience Functions
# =============================================================================

def parse_source(
    source: str,
    filename: str = "<input>",
    symbols: Optional[SymbolTable] = None,
) -> Program:
    """
    Tokenize and parse source text into a Program.

    Args:
        source: The program text
        filename: Source name for error messages
        symbols: Symbol table to fill (a fresh one if None)

    Raises:
        LexError: If tokenization fails
        ParseError: If parsing fails
    """
    tokens = tokenize(source, filename)
    parser = Parser(symbols, filename, source.split("\n"))
    return parser.parse(tokens)
