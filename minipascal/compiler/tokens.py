"""
Mini-Pascal Token Definitions

Defines all token types and the Token class for lexical analysis.
"""

from enum import Enum, auto
from dataclasses import dataclass


class TokenType(Enum):
    """All token types in Mini-Pascal."""

    # Literals
    IDENT = auto()
    INT_LITERAL = auto()
    REAL_LITERAL = auto()

    # Keywords
    PROGRAM = auto()
    BEGIN = auto()
    END = auto()
    IF = auto()
    THEN = auto()
    ELSE = auto()
    WHILE = auto()
    DO = auto()
    PROCEDURE = auto()
    VAR = auto()
    READ = auto()
    WRITE = auto()
    REAL = auto()
    INTEGER = auto()

    # Operators
    PLUS = auto()          # +
    MINUS = auto()         # -
    STAR = auto()          # *
    SLASH = auto()         # /
    ASSIGN = auto()        # :=

    # Comparison
    EQ = auto()            # =
    NE = auto()            # <>
    LT = auto()            # <
    LE = auto()            # <=
    GT = auto()            # >
    GE = auto()            # >=

    # Delimiters
    LPAREN = auto()        # (
    RPAREN = auto()        # )
    COMMA = auto()         # ,
    DOT = auto()           # .
    COLON = auto()         # :
    SEMICOLON = auto()     # ;
    DOLLAR = auto()        # $

    # Special
    EOF = auto()


# Keyword mapping (keys are lowercase; lookup is case-insensitive)
KEYWORDS = {
    'program': TokenType.PROGRAM,
    'begin': TokenType.BEGIN,
    'end': TokenType.END,
    'if': TokenType.IF,
    'then': TokenType.THEN,
    'else': TokenType.ELSE,
    'while': TokenType.WHILE,
    'do': TokenType.DO,
    'procedure': TokenType.PROCEDURE,
    'var': TokenType.VAR,
    'read': TokenType.READ,
    'write': TokenType.WRITE,
    'real': TokenType.REAL,
    'integer': TokenType.INTEGER,
}

# Tokens that can start a statement
STATEMENT_START = frozenset({
    TokenType.READ,
    TokenType.WRITE,
    TokenType.IF,
    TokenType.WHILE,
    TokenType.IDENT,
})

RELATIONAL_OPERATORS = frozenset({
    TokenType.EQ,
    TokenType.NE,
    TokenType.LT,
    TokenType.LE,
    TokenType.GT,
    TokenType.GE,
})


@dataclass(frozen=True)
class Token:
    """Represents a single token from the source code."""

    type: TokenType
    lexeme: str
    line: int

    def __repr__(self) -> str:
        return f"Token({self.type.name}, {self.lexeme!r}, line={self.line})"

    def is_literal(self) -> bool:
        """Check if this token is a numeric literal."""
        return self.type in (TokenType.INT_LITERAL, TokenType.REAL_LITERAL)

    def is_relational(self) -> bool:
        """Check if this token is a relational operator."""
        return self.type in RELATIONAL_OPERATORS
